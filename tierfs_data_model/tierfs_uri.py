from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlsplit

from tierfs_exception_model.exception import ConfigurationError, InvalidPathError

SCHEME = "tierfs"
SEPARATOR = "/"


@dataclass(frozen=True)
class EndpointLocator:
    """
    Host and port of the storage coordinator (master).

    Attributes:
        host: Hostname or IP address of the master.
        port: TCP port the master listens on.
    """
    host: str
    port: int

    def __post_init__(self):
        if not self.host:
            raise ConfigurationError("Master host must not be empty", setting="master_hostname")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigurationError(f"Master port out of range: {self.port!r}", setting="master_port")

    @classmethod
    def parse(cls, address: str) -> 'EndpointLocator':
        """
        Parse a master address such as ``tierfs://localhost:19998`` or
        ``localhost:19998``.
        """
        if not address or not address.strip():
            raise ConfigurationError("Master address must not be empty", setting="master_address")
        text = address.strip()
        if "://" not in text:
            text = f"{SCHEME}://{text}"
        try:
            parts = urlsplit(text)
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid master address: {address}", setting="master_address", cause=e)
        if parts.hostname is None or port is None:
            raise ConfigurationError(f"Master address must be host:port, got {address}", setting="master_address")
        return cls(host=parts.hostname, port=port)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def __str__(self):
        return f"{SCHEME}://{self.host}:{self.port}"


class TierFsPath:
    """
    Normalized absolute path in the tierfs namespace.

    ``//test/./roundtrip/`` normalizes to ``/test/roundtrip``. Relative paths,
    ``..`` components and NUL characters are rejected with InvalidPathError.
    """

    __slots__ = ("_path",)

    def __init__(self, path):
        if isinstance(path, TierFsPath):
            self._path = path._path
            return
        self._path = self._normalize(path)

    @staticmethod
    def _normalize(path) -> str:
        if not isinstance(path, str) or not path:
            raise InvalidPathError(f"Path must be a non-empty string, got {path!r}")
        if "://" in path:
            path = urlsplit(path).path or SEPARATOR
        if "\x00" in path:
            raise InvalidPathError("Path must not contain NUL characters", path=repr(path))
        if not path.startswith(SEPARATOR):
            raise InvalidPathError("Path must be absolute", path=path)
        components = []
        for component in path.split(SEPARATOR):
            if component in ("", "."):
                continue
            if component == "..":
                raise InvalidPathError("Path must not contain '..' components", path=path)
            components.append(component)
        return SEPARATOR + SEPARATOR.join(components)

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        return self._path.rsplit(SEPARATOR, 1)[-1]

    @property
    def parent(self) -> Optional['TierFsPath']:
        if self.is_root():
            return None
        head = self._path.rsplit(SEPARATOR, 1)[0]
        return TierFsPath(head or SEPARATOR)

    def is_root(self) -> bool:
        return self._path == SEPARATOR

    def ancestors(self) -> List['TierFsPath']:
        """Return every proper ancestor, nearest to the root first."""
        result = []
        current = self.parent
        while current is not None:
            result.append(current)
            current = current.parent
        result.reverse()
        return result

    def join(self, child: str) -> 'TierFsPath':
        return TierFsPath(f"{self._path.rstrip(SEPARATOR)}{SEPARATOR}{child}")

    def __eq__(self, other):
        if isinstance(other, TierFsPath):
            return self._path == other._path
        if isinstance(other, str):
            return self._path == other
        return NotImplemented

    def __hash__(self):
        return hash(self._path)

    def __str__(self):
        return self._path

    def __repr__(self):
        return f"TierFsPath({self._path!r})"
