from typing import List, Protocol, runtime_checkable

from tierfs_data_model.file_info import FileInfo
from tierfs_data_model.storage_options import ClientOptions


@runtime_checkable
class BlockTransport(Protocol):
    """
    Interface between the tierfs client and whatever serves the namespace and
    the file bytes: the in-process TieredStorageEngine or a remote master over
    HTTP.
    """
    def create_file(self, path: str, options: ClientOptions) -> int:
        ...

    def complete_file(self, file_id: int, data: bytes, options: ClientOptions) -> FileInfo:
        ...

    def get_file_info(self, file_id: int) -> FileInfo:
        ...

    def get_file_info_by_path(self, path: str) -> FileInfo:
        ...

    def list_status(self, path: str) -> List[FileInfo]:
        ...

    def read_range(self, file_id: int, offset: int, length: int, options: ClientOptions) -> bytes:
        ...

    def delete_file(self, file_id: int) -> FileInfo:
        ...

    def close(self):
        ...
