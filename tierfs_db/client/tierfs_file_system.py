import logging
from typing import List, Optional, Union

from tierfs_data_model.file_info import FileInfo, TierFsFile
from tierfs_data_model.storage_options import ClientOptions
from tierfs_data_model.tierfs_uri import TierFsPath
from tierfs_db.client.client_config import ClientConfig
from tierfs_db.client.file_in_stream import FileInStream
from tierfs_db.client.file_out_stream import FileOutStream
from tierfs_db.core.interface.block_transport_interface import BlockTransport
from tierfs_exception_model.exception import FileDoesNotExistError, StorageIOError, InvalidPathError

logger = logging.getLogger(__name__)

PathLike = Union[str, TierFsPath]


class TierFileSystem:
    """
    Client view of a tierfs namespace.

    A TierFileSystem is built around one BlockTransport and one ClientConfig.
    Use ``TierFileSystem.connect(config)`` to reach a remote master over HTTP,
    or pass a TieredStorageEngine as transport to run in-process.
    """

    def __init__(self, transport: BlockTransport, config: ClientConfig):
        self._transport = transport
        self._config = config

    @classmethod
    def connect(cls, config: ClientConfig) -> 'TierFileSystem':
        from tierfs_rest_client.tierfs_rest_api_client import TierFsRestApiClient
        return cls(TierFsRestApiClient(config), config)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def transport(self) -> BlockTransport:
        return self._transport

    def _options(self, options: Optional[ClientOptions]) -> ClientOptions:
        return options if options is not None else self._config.default_options

    def create_empty_file(self, path: PathLike, options: Optional[ClientOptions] = None) -> int:
        """
        Create a new empty file.

        Raises:
            FileAlreadyExistsError: the path is occupied.
            InvalidPathError: the path is malformed or below a file.
            StorageCapacityError: no room for a new file.
        """
        file_path = TierFsPath(path)
        return self._transport.create_file(str(file_path), self._options(options))

    def get_out_stream(self, file: TierFsFile, options: Optional[ClientOptions] = None) -> FileOutStream:
        info = self._transport.get_file_info(file.file_id)
        if info.is_folder:
            raise InvalidPathError("Cannot write to a directory", path=info.path, file_id=file.file_id)
        if info.is_complete:
            raise StorageIOError("Cannot write to a completed file", path=info.path, file_id=file.file_id)
        return FileOutStream(self._transport, file, self._options(options))

    def get_in_stream(self, file: TierFsFile, options: Optional[ClientOptions] = None) -> FileInStream:
        """
        Open a completed file for reading.

        Raises:
            FileDoesNotExistError: the handle no longer resolves to a file.
            StorageIOError: the file has not been completed yet.
        """
        info = self._transport.get_file_info(file.file_id)
        if not info.is_complete:
            raise StorageIOError("Cannot read a file that is not complete", path=info.path, file_id=file.file_id)
        return FileInStream(self._transport, info, self._options(options))

    def get_info(self, file: TierFsFile) -> FileInfo:
        return self._transport.get_file_info(file.file_id)

    def get_info_by_path(self, path: PathLike) -> FileInfo:
        return self._transport.get_file_info_by_path(str(TierFsPath(path)))

    def open(self, path: PathLike) -> TierFsFile:
        info = self.get_info_by_path(path)
        if info.is_folder:
            raise InvalidPathError("Path is a directory", path=info.path)
        return TierFsFile(info.file_id)

    def exists(self, path: PathLike) -> bool:
        try:
            self.get_info_by_path(path)
            return True
        except FileDoesNotExistError:
            return False

    def list_status(self, path: PathLike) -> List[FileInfo]:
        return self._transport.list_status(str(TierFsPath(path)))

    def delete(self, file: TierFsFile) -> FileInfo:
        return self._transport.delete_file(file.file_id)

    def delete_if_exists(self, path: PathLike) -> bool:
        """Delete the file at ``path`` if there is one; return whether it was deleted."""
        try:
            file = self.open(path)
            self.delete(file)
        except FileDoesNotExistError:
            return False
        logger.info(f"Deleted existing file {TierFsPath(path)}")
        return True

    def close(self):
        self._transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
