from dataclasses import dataclass
from enum import Enum

from tierfs_exception_model.exception import ConfigurationError


class TierFsStorageType(Enum):
    """Whether written data is kept in the fast memory tier."""
    STORE = "STORE"
    NO_STORE = "NO_STORE"

    @classmethod
    def from_token(cls, token: str) -> 'TierFsStorageType':
        try:
            return cls(token.strip().upper())
        except (AttributeError, ValueError):
            raise ConfigurationError(f"Unknown storage type {token!r}, expected STORE or NO_STORE",
                                     setting="storage_type")

    def is_store(self) -> bool:
        return self is TierFsStorageType.STORE


class UnderStorageType(Enum):
    """Whether written data is persisted to the durable under-storage."""
    PERSIST = "PERSIST"
    NO_PERSIST = "NO_PERSIST"

    @classmethod
    def from_token(cls, token: str) -> 'UnderStorageType':
        try:
            return cls(token.strip().upper())
        except (AttributeError, ValueError):
            raise ConfigurationError(f"Unknown under storage type {token!r}, expected PERSIST or NO_PERSIST",
                                     setting="under_storage_type")

    def is_persist(self) -> bool:
        return self is UnderStorageType.PERSIST


@dataclass(frozen=True)
class ClientOptions:
    """
    Per-operation storage tier selection.

    At least one tier has to retain the data, so NO_STORE together with
    NO_PERSIST is rejected.
    """
    storage_type: TierFsStorageType = TierFsStorageType.STORE
    under_storage_type: UnderStorageType = UnderStorageType.PERSIST

    def __post_init__(self):
        if not isinstance(self.storage_type, TierFsStorageType):
            raise ConfigurationError(f"Invalid storage type {self.storage_type!r}", setting="storage_type")
        if not isinstance(self.under_storage_type, UnderStorageType):
            raise ConfigurationError(f"Invalid under storage type {self.under_storage_type!r}",
                                     setting="under_storage_type")
        if not self.storage_type.is_store() and not self.under_storage_type.is_persist():
            raise ConfigurationError("NO_STORE with NO_PERSIST would discard all written data",
                                     setting="storage_type")

    @classmethod
    def from_tokens(cls, storage_token: str, under_storage_token: str) -> 'ClientOptions':
        return cls(TierFsStorageType.from_token(storage_token),
                   UnderStorageType.from_token(under_storage_token))

    @property
    def cache(self) -> bool:
        return self.storage_type.is_store()

    @property
    def persist(self) -> bool:
        return self.under_storage_type.is_persist()

    def __str__(self):
        return f"{self.storage_type.value}/{self.under_storage_type.value}"
