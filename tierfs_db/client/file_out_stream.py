import logging

from tierfs_data_model.file_info import TierFsFile
from tierfs_data_model.storage_options import ClientOptions
from tierfs_db.core.interface.block_transport_interface import BlockTransport
from tierfs_exception_model.exception import StreamClosedError

logger = logging.getLogger(__name__)


class FileOutStream:
    """
    Output stream bound to one newly created file.

    Written bytes are buffered client side; ``close`` commits them to the
    storage tiers selected by the options in a single ``complete_file`` call,
    so the data becomes visible only after ``close`` returns. Used as a context
    manager the stream is closed on normal exit and cancelled (released
    without committing) when the block raises.
    """

    def __init__(self, transport: BlockTransport, file: TierFsFile, options: ClientOptions):
        self._transport = transport
        self._file = file
        self._options = options
        self._buffer = bytearray()
        self._closed = False

    @property
    def file(self) -> TierFsFile:
        return self._file

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def bytes_written(self) -> int:
        return len(self._buffer)

    def _check_open(self, operation: str):
        if self._closed:
            raise StreamClosedError(f"Cannot {operation} a closed output stream", file_id=self._file.file_id)

    def write(self, data, offset: int = 0, length: int = None) -> None:
        """Append ``data[offset:offset + length]`` to the stream."""
        self._check_open("write to")
        view = memoryview(data).cast("B")
        if length is None:
            length = len(view) - offset
        if offset < 0 or length < 0 or offset + length > len(view):
            raise ValueError(f"Invalid write range offset={offset} length={length} for {len(view)} bytes")
        self._buffer += view[offset:offset + length]

    def close(self) -> None:
        """Commit the written bytes and release the stream. Closing twice is a no-op."""
        if self._closed:
            return
        try:
            self._transport.complete_file(self._file.file_id, bytes(self._buffer), self._options)
            logger.debug(f"Committed {len(self._buffer)} bytes to file {self._file.file_id}")
        finally:
            self._release()

    def cancel(self) -> None:
        """Release the stream without committing anything."""
        if self._closed:
            return
        logger.debug(f"Cancelled output stream for file {self._file.file_id}, "
                     f"discarding {len(self._buffer)} bytes")
        self._release()

    def _release(self):
        self._closed = True
        self._buffer = bytearray()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.cancel()
        else:
            self.close()
