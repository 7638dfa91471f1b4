from dataclasses import dataclass, field, asdict
from typing import Dict, Any

from tierfs_data_model.format_utils import get_current_ms


@dataclass(frozen=True)
class TierFsFile:
    """Opaque handle to a created file."""
    file_id: int

    def __str__(self):
        return f"TierFsFile({self.file_id})"


@dataclass
class FileInfo:
    """
    Client-visible status of one namespace entry.

    Attributes:
        file_id: Handle of the entry; directories have ids but cannot be opened.
        path: Normalized logical path.
        length: Committed length in bytes, 0 until the file is completed.
        is_folder: True for implicit parent directories.
        is_complete: True once an output stream has been closed on the file.
        in_memory: True while the data is cached in the memory tier.
        persisted: True once the data is in the under-storage.
        creation_time_ms: Wall clock time the entry was created.
    """
    file_id: int
    path: str
    length: int = 0
    is_folder: bool = False
    is_complete: bool = False
    in_memory: bool = False
    persisted: bool = False
    creation_time_ms: int = field(default_factory=get_current_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
