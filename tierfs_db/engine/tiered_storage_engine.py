import dataclasses
import itertools
import logging
import threading
from typing import Dict, List

from tierfs_data_model.file_info import FileInfo
from tierfs_data_model.format_utils import format_bytes
from tierfs_data_model.storage_options import ClientOptions
from tierfs_data_model.tierfs_uri import TierFsPath
from tierfs_db.core.interface.block_transport_interface import BlockTransport
from tierfs_db.persistence.under_storage import UnderStorage
from tierfs_exception_model.exception import FileAlreadyExistsError, InvalidPathError, FileDoesNotExistError, \
    StorageCapacityError, StorageIOError

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_CAPACITY_BYTES = 64 * 1024 * 1024
DEFAULT_MAX_FILES = 100_000


class TieredStorageEngine(BlockTransport):
    """
    Single-process tiered file store: namespace, memory tier and under-storage.

    Namespace
    ---------
    A flat ``path -> FileInfo`` map. Parent directories are created implicitly
    when a file is created below them; a file can never have a file as an
    ancestor. File ids are handed out from a monotonically increasing counter
    and are never reused.

    Tiers
    -----
    ``complete_file`` commits the bytes of a closed output stream:

        STORE    -> cached in the memory tier (bounded by memory_capacity_bytes)
        PERSIST  -> written through to the under-storage directory

    Reads are served from the memory tier when cached, else from the
    under-storage. A STORE read of an uncached file promotes it into the
    memory tier if it fits.

    ``max_read_chunk`` caps the bytes returned by a single ``read_range`` call
    so that callers exercise their partial read handling.
    """

    def __init__(self, under_storage_root: str, memory_capacity_bytes: int = DEFAULT_MEMORY_CAPACITY_BYTES,
                 max_files: int = DEFAULT_MAX_FILES, max_read_chunk: int = 0):
        self._under_storage = UnderStorage(under_storage_root)
        self._memory_capacity = memory_capacity_bytes
        self._max_files = max_files
        self._max_read_chunk = max_read_chunk
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

        root = FileInfo(file_id=0, path="/", is_folder=True, is_complete=True)
        self._entries: Dict[str, FileInfo] = {root.path: root}
        self._files_by_id: Dict[int, FileInfo] = {}
        self._memory: Dict[int, bytes] = {}
        self._memory_used = 0

    @property
    def memory_used_bytes(self) -> int:
        return self._memory_used

    @property
    def memory_capacity_bytes(self) -> int:
        return self._memory_capacity

    @property
    def file_count(self) -> int:
        return len(self._files_by_id)

    @property
    def under_storage(self) -> UnderStorage:
        return self._under_storage

    def create_file(self, path: str, options: ClientOptions) -> int:
        file_path = TierFsPath(path)
        with self._lock:
            if file_path.is_root() or str(file_path) in self._entries:
                raise FileAlreadyExistsError("File already exists", path=str(file_path))
            for ancestor in file_path.ancestors():
                entry = self._entries.get(str(ancestor))
                if entry is not None and not entry.is_folder:
                    raise InvalidPathError(f"Ancestor {ancestor} is a file", path=str(file_path))
            if len(self._files_by_id) >= self._max_files:
                raise StorageCapacityError(f"File limit of {self._max_files} reached", path=str(file_path))
            if options.cache and self._memory_used >= self._memory_capacity:
                raise StorageCapacityError("No free space in the memory tier", path=str(file_path),
                                           requested_bytes=1, available_bytes=0)

            for ancestor in file_path.ancestors():
                if str(ancestor) not in self._entries:
                    folder = FileInfo(file_id=next(self._ids), path=str(ancestor), is_folder=True, is_complete=True)
                    self._entries[folder.path] = folder

            info = FileInfo(file_id=next(self._ids), path=str(file_path))
            self._entries[info.path] = info
            self._files_by_id[info.file_id] = info

        logger.debug(f"Created file {info.path} with id {info.file_id} ({options})")
        return info.file_id

    def complete_file(self, file_id: int, data: bytes, options: ClientOptions) -> FileInfo:
        data = bytes(data)
        with self._lock:
            info = self._get_file(file_id)
            if info.is_complete:
                raise StorageIOError("File is already complete", path=info.path, file_id=file_id)

            if options.cache:
                available = self._memory_capacity - self._memory_used
                if len(data) > available:
                    raise StorageCapacityError("Not enough space in the memory tier", path=info.path,
                                               file_id=file_id, requested_bytes=len(data),
                                               available_bytes=available)
            if options.persist:
                self._under_storage.write(file_id, data)
                info.persisted = True
            if options.cache:
                self._memory[file_id] = data
                self._memory_used += len(data)
                info.in_memory = True

            info.length = len(data)
            info.is_complete = True
            logger.debug(f"Completed file {info.path} with {format_bytes(len(data))} ({options}), "
                         f"memory tier at {format_bytes(self._memory_used)}/{format_bytes(self._memory_capacity)}")
            return dataclasses.replace(info)

    def get_file_info(self, file_id: int) -> FileInfo:
        with self._lock:
            return dataclasses.replace(self._get_file(file_id))

    def get_file_info_by_path(self, path: str) -> FileInfo:
        file_path = TierFsPath(path)
        with self._lock:
            entry = self._entries.get(str(file_path))
            if entry is None:
                raise FileDoesNotExistError("Path does not exist", path=str(file_path))
            return dataclasses.replace(entry)

    def list_status(self, path: str) -> List[FileInfo]:
        file_path = TierFsPath(path)
        with self._lock:
            entry = self._entries.get(str(file_path))
            if entry is None:
                raise FileDoesNotExistError("Path does not exist", path=str(file_path))
            if not entry.is_folder:
                return [dataclasses.replace(entry)]
            children = [
                dataclasses.replace(e) for p, e in self._entries.items()
                if p != str(file_path) and TierFsPath(p).parent == file_path
            ]
        return sorted(children, key=lambda e: e.path)

    def read_range(self, file_id: int, offset: int, length: int, options: ClientOptions) -> bytes:
        if offset < 0 or length < 0:
            raise ValueError(f"Invalid range offset={offset} length={length}")
        with self._lock:
            info = self._get_file(file_id)
            if not info.is_complete:
                raise StorageIOError("File is not complete", path=info.path, file_id=file_id)
            if offset >= info.length:
                return b""
            count = min(length, info.length - offset)
            if self._max_read_chunk > 0:
                count = min(count, self._max_read_chunk)

            cached = self._memory.get(file_id)
            if cached is not None:
                return cached[offset:offset + count]
            if not info.persisted:
                raise StorageIOError("File data is in no storage tier", path=info.path, file_id=file_id)

            if options.cache:
                self._promote(info)
                cached = self._memory.get(file_id)
                if cached is not None:
                    return cached[offset:offset + count]
            return self._under_storage.read(file_id, offset, count)

    def _promote(self, info: FileInfo):
        available = self._memory_capacity - self._memory_used
        if info.length > available:
            logger.warning(f"Cannot promote {info.path} ({format_bytes(info.length)}) to the memory tier, "
                           f"only {format_bytes(available)} free")
            return
        data = self._under_storage.read(info.file_id)
        self._memory[info.file_id] = data
        self._memory_used += len(data)
        info.in_memory = True
        logger.debug(f"Promoted {info.path} to the memory tier")

    def delete_file(self, file_id: int) -> FileInfo:
        with self._lock:
            info = self._get_file(file_id)
            del self._files_by_id[file_id]
            del self._entries[info.path]
            cached = self._memory.pop(file_id, None)
            if cached is not None:
                self._memory_used -= len(cached)
            self._under_storage.delete(file_id)

        logger.debug(f"Deleted file {info.path} with id {file_id}")
        return dataclasses.replace(info, in_memory=False, persisted=False)

    def _get_file(self, file_id: int) -> FileInfo:
        info = self._files_by_id.get(file_id)
        if info is None:
            raise FileDoesNotExistError("File does not exist", file_id=file_id)
        return info

    def close(self):
        """
        Release a client's hold on the engine.

        The engine is shared by every client of the process or master, so this
        leaves both tiers intact. Use ``shutdown`` to release the memory tier.
        """
        logger.debug("Client released the tiered storage engine")

    def shutdown(self):
        with self._lock:
            self._memory.clear()
            self._memory_used = 0
            for info in self._files_by_id.values():
                info.in_memory = False
        logger.info("Tiered storage engine closed, memory tier released")
