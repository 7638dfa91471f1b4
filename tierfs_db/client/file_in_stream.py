import logging

from tierfs_data_model.file_info import FileInfo
from tierfs_data_model.storage_options import ClientOptions
from tierfs_db.core.interface.block_transport_interface import BlockTransport
from tierfs_exception_model.exception import StreamClosedError, StorageIOError

logger = logging.getLogger(__name__)


class FileInStream:
    """
    Input stream over a completed file.

    ``read`` fills at most the requested part of a caller supplied buffer and
    returns how many bytes it placed, which can be fewer than requested when
    the transport returns a short range. ``read_fully`` loops until the buffer
    is full or the stream ends.
    """

    def __init__(self, transport: BlockTransport, info: FileInfo, options: ClientOptions):
        self._transport = transport
        self._file_id = info.file_id
        self._length = info.length
        self._options = options
        self._pos = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def position(self) -> int:
        return self._pos

    def _check_open(self, operation: str):
        if self._closed:
            raise StreamClosedError(f"Cannot {operation} a closed input stream", file_id=self._file_id)

    def remaining(self) -> int:
        """Bytes between the current position and the end of the file."""
        self._check_open("query")
        return self._length - self._pos

    def read(self, buffer, offset: int = 0, length: int = None) -> int:
        """
        Read into ``buffer[offset:offset + length]``.

        Returns:
            Number of bytes placed into the buffer, 0 at end of stream.
        """
        self._check_open("read from")
        view = memoryview(buffer).cast("B")
        if length is None:
            length = len(view) - offset
        if offset < 0 or length < 0 or offset + length > len(view):
            raise ValueError(f"Invalid read range offset={offset} length={length} for {len(view)} bytes")
        wanted = min(length, self._length - self._pos)
        if wanted <= 0:
            return 0

        data = self._transport.read_range(self._file_id, self._pos, wanted, self._options)
        if not data:
            raise StorageIOError(f"Unexpected end of file at position {self._pos} of {self._length}",
                                 file_id=self._file_id)
        count = len(data)
        if count > wanted:
            raise StorageIOError(f"Transport returned {count} bytes, requested {wanted}", file_id=self._file_id)
        view[offset:offset + count] = data
        self._pos += count
        return count

    def read_fully(self, buffer) -> int:
        """Read until ``buffer`` is full or the stream ends; return the bytes read."""
        self._check_open("read from")
        total = 0
        size = len(memoryview(buffer).cast("B"))
        while total < size:
            count = self.read(buffer, total, size - total)
            if count == 0:
                break
            total += count
        return total

    def seek(self, pos: int) -> None:
        self._check_open("seek")
        if pos < 0 or pos > self._length:
            raise ValueError(f"Seek position {pos} outside [0, {self._length}]")
        self._pos = pos

    def skip(self, n: int) -> int:
        """Advance up to ``n`` bytes; return how many were skipped."""
        self._check_open("skip")
        skipped = max(0, min(n, self._length - self._pos))
        self._pos += skipped
        return skipped

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug(f"Closed input stream for file {self._file_id} at position {self._pos}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
