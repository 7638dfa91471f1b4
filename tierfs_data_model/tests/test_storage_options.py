import unittest

from tierfs_data_model.data_model_utils import DataModelUtils
from tierfs_data_model.data_models import BytesModel, ClientOptionsModel
from tierfs_data_model.file_info import FileInfo
from tierfs_data_model.format_utils import format_time_taken_ms, format_bytes
from tierfs_data_model.storage_options import ClientOptions, TierFsStorageType, UnderStorageType
from tierfs_exception_model.exception import ConfigurationError, InvalidPayloadError


class TestClientOptions(unittest.TestCase):

    def test_defaults(self):
        options = ClientOptions()
        self.assertTrue(options.cache)
        self.assertTrue(options.persist)
        self.assertEqual(str(options), "STORE/PERSIST")

    def test_from_tokens(self):
        options = ClientOptions.from_tokens("no_store", "PERSIST")
        self.assertEqual(options.storage_type, TierFsStorageType.NO_STORE)
        self.assertEqual(options.under_storage_type, UnderStorageType.PERSIST)
        self.assertFalse(options.cache)

    def test_unknown_token(self):
        with self.assertRaises(ConfigurationError):
            TierFsStorageType.from_token("CACHE")
        with self.assertRaises(ConfigurationError):
            UnderStorageType.from_token("THROUGH")

    def test_no_store_no_persist_rejected(self):
        with self.assertRaises(ConfigurationError):
            ClientOptions(TierFsStorageType.NO_STORE, UnderStorageType.NO_PERSIST)

    def test_wrong_types_rejected(self):
        with self.assertRaises(ConfigurationError):
            ClientOptions("STORE", UnderStorageType.PERSIST)


class TestDataModelUtils(unittest.TestCase):

    def test_client_options_conversion(self):
        options = ClientOptions(TierFsStorageType.STORE, UnderStorageType.NO_PERSIST)
        model = DataModelUtils.convert_from_client_options(options)
        self.assertEqual(model, ClientOptionsModel(storage_type="STORE", under_storage_type="NO_PERSIST"))
        self.assertEqual(DataModelUtils.convert_to_client_options(model), options)

    def test_file_info_conversion(self):
        info = FileInfo(file_id=3, path="/a", length=80, is_complete=True, in_memory=True, persisted=True)
        model = DataModelUtils.convert_from_file_info(info)
        self.assertEqual(model.length, 80)
        self.assertEqual(DataModelUtils.convert_to_file_info(model), info)

    def test_bytes_model(self):
        model = BytesModel.from_bytes(b"\x00\x01\xff", offset=4)
        self.assertEqual(model.length, 3)
        self.assertEqual(model.offset, 4)
        self.assertEqual(DataModelUtils.convert_to_bytes(model), b"\x00\x01\xff")

    def test_bytes_model_length_mismatch(self):
        model = BytesModel(b64=BytesModel.from_bytes(b"abc").b64, length=4)
        with self.assertRaises(InvalidPayloadError):
            DataModelUtils.convert_to_bytes(model)

    def test_bytes_model_bad_base64(self):
        with self.assertRaises(InvalidPayloadError):
            DataModelUtils.convert_to_bytes(BytesModel(b64="***", length=3))


class TestFormatUtils(unittest.TestCase):

    def test_format_time_taken(self):
        message = format_time_taken_ms(0, "createFile with fileId 1")
        self.assertTrue(message.startswith("createFile with fileId 1 took "))
        self.assertTrue(message.endswith(" ms."))

    def test_format_bytes(self):
        self.assertEqual(format_bytes(80), "80B")
        self.assertEqual(format_bytes(2048), "2.00KB")
        self.assertEqual(format_bytes(64 * 1024 * 1024), "64.00MB")


if __name__ == '__main__':
    unittest.main()
