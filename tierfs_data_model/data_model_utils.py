import binascii

from tierfs_data_model.data_models import ClientOptionsModel, FileInfoModel, BytesModel
from tierfs_data_model.file_info import FileInfo
from tierfs_data_model.storage_options import ClientOptions, TierFsStorageType, UnderStorageType
from tierfs_exception_model.exception import InvalidPayloadError


class DataModelUtils:
    @staticmethod
    def convert_to_client_options(model: ClientOptionsModel) -> ClientOptions:
        """Convert API model to ClientOptions"""
        return ClientOptions(
            storage_type=TierFsStorageType.from_token(model.storage_type),
            under_storage_type=UnderStorageType.from_token(model.under_storage_type)
        )

    @staticmethod
    def convert_from_client_options(options: ClientOptions) -> ClientOptionsModel:
        """Convert ClientOptions to an API model"""
        return ClientOptionsModel(
            storage_type=options.storage_type.value,
            under_storage_type=options.under_storage_type.value
        )

    @staticmethod
    def convert_to_file_info(model: FileInfoModel) -> FileInfo:
        return FileInfo(**model.model_dump())

    @staticmethod
    def convert_from_file_info(info: FileInfo) -> FileInfoModel:
        return FileInfoModel(**info.to_dict())

    @staticmethod
    def convert_to_bytes(model: BytesModel) -> bytes:
        """Decode a BytesModel, checking the declared length"""
        try:
            data = model.to_bytes()
        except (binascii.Error, ValueError) as e:
            raise InvalidPayloadError(f"Invalid base64 payload: {e}")
        if len(data) != model.length:
            raise InvalidPayloadError(
                f"Payload length mismatch: declared {model.length}, decoded {len(data)}")
        return data
