import unittest

from tierfs_exception_model.exception import TierFsException, ConfigurationError, InvalidPathError, \
    FileAlreadyExistsError, FileDoesNotExistError, StorageCapacityError, StreamClosedError, StorageIOError, \
    StorageTimeoutError, InvalidPayloadError


class BaseExceptionTest(unittest.TestCase):
    """Base test class for common exception testing behavior"""

    exception_class = None  # Will be set in subclasses

    def setUp(self):
        # Skip tests in this base class
        if self.__class__ == BaseExceptionTest:
            self.skipTest("Base class")

    def test_inheritance(self):
        """Test that the exception inherits from the tierfs base"""
        self.assertTrue(issubclass(self.exception_class, TierFsException))
        self.assertTrue(issubclass(self.exception_class, Exception))

    def test_basic_instantiation(self):
        """Test that exception can be instantiated with just a message"""
        message = "Test error message"
        exc = self.exception_class(message)
        self.assertEqual(exc.message, message)
        self.assertEqual(str(exc), message)

    def test_raise_and_catch(self):
        """Test that exception can be raised and caught as the base class"""
        message = "Test error message"
        try:
            raise self.exception_class(message)
        except TierFsException as e:
            self.assertEqual(e.message, message)


class TestTierFsException(BaseExceptionTest):
    exception_class = TierFsException

    def test_with_path_and_file_id(self):
        exc = TierFsException("Operation failed", "/test/roundtrip", 7)
        self.assertEqual(exc.path, "/test/roundtrip")
        self.assertEqual(exc.file_id, 7)
        self.assertEqual(str(exc), "Operation failed (path=/test/roundtrip, file_id=7)")

    def test_with_path_only(self):
        exc = TierFsException("Operation failed", path="/a")
        self.assertIsNone(exc.file_id)
        self.assertEqual(str(exc), "Operation failed (path=/a)")


class TestConfigurationError(BaseExceptionTest):
    exception_class = ConfigurationError

    def test_with_setting_and_cause(self):
        cause = ValueError("bad port")
        exc = ConfigurationError("Invalid master address", setting="master_port", cause=cause)
        self.assertEqual(exc.setting, "master_port")
        self.assertIs(exc.cause, cause)
        self.assertEqual(str(exc), "Invalid master address (setting=master_port, cause=bad port)")


class TestInvalidPathError(BaseExceptionTest):
    exception_class = InvalidPathError

    def test_is_value_error(self):
        self.assertTrue(issubclass(InvalidPathError, ValueError))


class TestFileAlreadyExistsError(BaseExceptionTest):
    exception_class = FileAlreadyExistsError

    def test_is_builtin_file_exists_error(self):
        with self.assertRaises(FileExistsError):
            raise FileAlreadyExistsError("File already exists", "/test/roundtrip")


class TestFileDoesNotExistError(BaseExceptionTest):
    exception_class = FileDoesNotExistError

    def test_is_builtin_file_not_found_error(self):
        with self.assertRaises(FileNotFoundError):
            raise FileDoesNotExistError("File does not exist", file_id=3)

    def test_is_not_generic_io_error_subclass_of_storage_io(self):
        self.assertFalse(issubclass(FileDoesNotExistError, StorageIOError))


class TestStorageCapacityError(BaseExceptionTest):
    exception_class = StorageCapacityError

    def test_with_byte_counts(self):
        exc = StorageCapacityError("Memory tier full", file_id=1, requested_bytes=80, available_bytes=10)
        self.assertEqual(exc.requested_bytes, 80)
        self.assertEqual(exc.available_bytes, 10)
        self.assertEqual(str(exc), "Memory tier full (file_id=1)")


class TestStreamClosedError(BaseExceptionTest):
    exception_class = StreamClosedError


class TestStorageIOError(BaseExceptionTest):
    exception_class = StorageIOError

    def test_is_io_error(self):
        self.assertTrue(issubclass(StorageIOError, IOError))

    def test_with_cause(self):
        cause = OSError("disk gone")
        exc = StorageIOError("Write failed", "/a", cause=cause)
        self.assertIs(exc.cause, cause)
        self.assertEqual(str(exc), "Write failed (path=/a)")


class TestStorageTimeoutError(BaseExceptionTest):
    exception_class = StorageTimeoutError

    def test_with_operation_and_timeout(self):
        exc = StorageTimeoutError("Request timed out", operation="read_range", timeout_seconds=2.5)
        self.assertIsInstance(exc, StorageIOError)
        self.assertEqual(str(exc), "Request timed out (operation=read_range, timeout=2.5s)")


class TestInvalidPayloadError(BaseExceptionTest):
    exception_class = InvalidPayloadError


if __name__ == '__main__':
    unittest.main()
