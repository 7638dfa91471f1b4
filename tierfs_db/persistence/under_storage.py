import logging
import os
import tempfile
from pathlib import Path

from tierfs_exception_model.exception import FileDoesNotExistError, StorageIOError

logger = logging.getLogger(__name__)


class UnderStorage:
    """
    Durable under-storage: one regular file per tierfs file id under ``root``.

    Writes go to a temporary file in the same directory which is fsynced and
    then renamed over the target, so a reader sees either nothing or the whole
    committed payload.
    """

    def __init__(self, root: str):
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _file_path(self, file_id: int) -> Path:
        return self._root / f"{file_id}.blk"

    def write(self, file_id: int, data: bytes) -> int:
        """Write with proper fsync for durability."""
        target = self._file_path(file_id)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=f".{file_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())  # Ensure data is on disk
            os.replace(tmp_name, target)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageIOError("Failed to persist file to under storage", file_id=file_id, cause=e)
        logger.debug(f"Persisted {len(data)} bytes for file {file_id} to {target}")
        return len(data)

    def read(self, file_id: int, offset: int = 0, length: int = -1) -> bytes:
        target = self._file_path(file_id)
        try:
            with target.open('rb') as f:
                f.seek(offset)
                return f.read(length)
        except FileNotFoundError:
            raise FileDoesNotExistError("File is not in under storage", file_id=file_id)
        except OSError as e:
            raise StorageIOError("Failed to read file from under storage", file_id=file_id, cause=e)

    def exists(self, file_id: int) -> bool:
        return self._file_path(file_id).exists()

    def size(self, file_id: int) -> int:
        try:
            return self._file_path(file_id).stat().st_size
        except FileNotFoundError:
            raise FileDoesNotExistError("File is not in under storage", file_id=file_id)

    def delete(self, file_id: int) -> bool:
        try:
            self._file_path(file_id).unlink()
            return True
        except FileNotFoundError:
            return False
