import logging
from typing import List, Dict, Any, Optional

import httpx

from tierfs_data_model.data_model_utils import DataModelUtils
from tierfs_data_model.data_models import CreateFileRequest, CompleteFileRequest, FileInfoModel, BytesModel
from tierfs_data_model.file_info import FileInfo
from tierfs_data_model.storage_options import ClientOptions
from tierfs_db.client.client_config import ClientConfig
from tierfs_db.core.interface.block_transport_interface import BlockTransport
from tierfs_exception_model import exception as tierfs_errors
from tierfs_exception_model.exception import TierFsException, StorageIOError, StorageTimeoutError, \
    InvalidPayloadError

logger = logging.getLogger(__name__)

# Error class names the master may report, mapped back to the client side classes
_ERROR_TYPES = {
    cls.__name__: cls for cls in (
        tierfs_errors.InvalidPathError,
        tierfs_errors.FileAlreadyExistsError,
        tierfs_errors.FileDoesNotExistError,
        tierfs_errors.StorageCapacityError,
        tierfs_errors.StorageIOError,
        tierfs_errors.InvalidPayloadError,
        tierfs_errors.ConfigurationError,
    )
}


class TierFsRestApiClient(BlockTransport):
    """Blocking client for the tierfs master REST API"""

    def __init__(self, config: ClientConfig, session: Optional[httpx.Client] = None):
        self.config = config
        self.base_url = config.endpoint.base_url
        if session is None:
            session = httpx.Client(
                timeout=httpx.Timeout(config.request_timeout, connect=config.connect_timeout),
                headers={"User-Agent": config.user_agent},
            )
        self.session = session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self.session:
            self.session.close()

    def _request(self, method: str, route: str, operation: str, **kwargs) -> Any:
        """
        Send one request and return the decoded JSON body.

        Error responses are turned back into the exception the master raised;
        transport failures become StorageIOError.
        """
        try:
            response = self.session.request(method, f"{self.base_url}{route}", **kwargs)
        except httpx.TimeoutException as e:
            raise StorageTimeoutError(f"Request to {self.base_url} timed out", operation=operation,
                                      timeout_seconds=self.config.request_timeout, cause=e)
        except httpx.TransportError as e:
            raise StorageIOError(f"Cannot reach master at {self.base_url}: {e}", cause=e)

        if response.is_error:
            raise self._to_exception(response, operation)
        try:
            return response.json()
        except ValueError as e:
            raise InvalidPayloadError(f"Malformed response to {operation}: {e}")

    @staticmethod
    def _to_exception(response: httpx.Response, operation: str) -> TierFsException:
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, dict) and detail.get("error") in _ERROR_TYPES:
            error_cls = _ERROR_TYPES[detail["error"]]
            if error_cls is tierfs_errors.ConfigurationError:
                return error_cls(detail.get("message", ""))
            return error_cls(detail.get("message", ""), path=detail.get("path"), file_id=detail.get("file_id"))
        return StorageIOError(f"{operation} failed with HTTP {response.status_code}: {response.text}")

    def create_file(self, path: str, options: ClientOptions) -> int:
        payload = CreateFileRequest(
            path=path,
            options=DataModelUtils.convert_from_client_options(options)
        ).model_dump()
        data = self._request("POST", "/files", "create_file", json=payload)
        return FileInfoModel(**data).file_id

    def complete_file(self, file_id: int, data: bytes, options: ClientOptions) -> FileInfo:
        payload = CompleteFileRequest(
            data=BytesModel.from_bytes(data),
            options=DataModelUtils.convert_from_client_options(options)
        ).model_dump()
        result = self._request("POST", f"/files/{file_id}/complete", "complete_file", json=payload)
        return DataModelUtils.convert_to_file_info(FileInfoModel(**result))

    def get_file_info(self, file_id: int) -> FileInfo:
        result = self._request("GET", f"/files/{file_id}", "get_file_info")
        return DataModelUtils.convert_to_file_info(FileInfoModel(**result))

    def get_file_info_by_path(self, path: str) -> FileInfo:
        result = self._request("GET", "/paths/status", "get_file_info_by_path", params={"path": path})
        return DataModelUtils.convert_to_file_info(FileInfoModel(**result))

    def list_status(self, path: str) -> List[FileInfo]:
        items: List[Dict[str, Any]] = self._request("GET", "/paths/list", "list_status", params={"path": path})
        return [DataModelUtils.convert_to_file_info(FileInfoModel(**item)) for item in items]

    def read_range(self, file_id: int, offset: int, length: int, options: ClientOptions) -> bytes:
        params = {
            "offset": offset,
            "length": length,
            "storage_type": options.storage_type.value,
            "under_storage_type": options.under_storage_type.value,
        }
        result = self._request("GET", f"/files/{file_id}/data", "read_range", params=params)
        return DataModelUtils.convert_to_bytes(BytesModel(**result))

    def delete_file(self, file_id: int) -> FileInfo:
        result = self._request("DELETE", f"/files/{file_id}", "delete_file")
        return DataModelUtils.convert_to_file_info(FileInfoModel(**result))
