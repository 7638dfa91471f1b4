import logging
from typing import Callable, Dict, Optional

from tierfs_data_model.file_info import TierFsFile
from tierfs_data_model.format_utils import get_current_ms, format_time_taken_ms
from tierfs_data_model.payload_codec import ByteOrder, INT_SIZE, encode_sequential, decode_sequential
from tierfs_data_model.storage_options import ClientOptions
from tierfs_data_model.tierfs_uri import EndpointLocator
from tierfs_db.client.client_config import ClientConfig
from tierfs_db.client.tierfs_file_system import TierFileSystem
from tierfs_exception_model.exception import ConfigurationError, TierFsException

logger = logging.getLogger(__name__)

DEFAULT_NUM_INTS = 20

ClientFactory = Callable[[ClientConfig], TierFileSystem]


class RoundtripVerifier:
    """
    Write-then-read verification of one file.

    ``run`` creates ``path``, writes the integers ``0 .. num_ints-1`` through an
    output stream, closes it, reopens the file, reads everything back and
    checks each integer. Every phase is timed and logged.

    Infrastructure failures (configuration, create, write, read) propagate as
    exceptions; a payload that comes back different makes ``run`` return False.
    The file is left in place afterwards.
    """

    def __init__(self, endpoint: EndpointLocator, path, options: ClientOptions,
                 client_factory: Optional[ClientFactory] = None, base_config: Optional[ClientConfig] = None,
                 num_ints: int = DEFAULT_NUM_INTS, byte_order: ByteOrder = ByteOrder.LITTLE):
        if not isinstance(num_ints, int) or num_ints < 0:
            raise ConfigurationError(f"Number of integers must be non-negative, got {num_ints!r}",
                                     setting="num_ints")
        self._endpoint = endpoint
        self._path = path
        self._options = options
        self._client_factory = client_factory or TierFileSystem.connect
        self._base_config = base_config
        self._num_ints = num_ints
        self._byte_order = byte_order
        self.timings: Dict[str, int] = {}

    @property
    def path(self):
        return self._path

    def _timed(self, phase: str, start_time_ms: int, message: str):
        self.timings[phase] = get_current_ms() - start_time_ms
        logger.info(format_time_taken_ms(start_time_ms, message))

    def run(self) -> bool:
        self.timings = {}
        file_system = self._configure()
        try:
            file_id = self._create_file(file_system)
            self._write_file(file_system, file_id)
            return self._read_file(file_system, file_id)
        finally:
            file_system.close()

    def __call__(self) -> bool:
        return self.run()

    def _configure(self) -> TierFileSystem:
        start_time_ms = get_current_ms()
        if not isinstance(self._endpoint, EndpointLocator):
            raise ConfigurationError(f"Master endpoint must be an EndpointLocator, got {self._endpoint!r}",
                                     setting="endpoint")
        if self._base_config is not None:
            config = self._base_config.with_endpoint(self._endpoint)
        else:
            config = ClientConfig(endpoint=self._endpoint, default_options=self._options)
        try:
            file_system = self._client_factory(config)
        except TierFsException:
            raise
        except Exception as e:
            raise ConfigurationError(f"Cannot build a client for {self._endpoint}", setting="endpoint", cause=e)
        self._timed("configure", start_time_ms, f"configure client for {self._endpoint}")
        return file_system

    def _create_file(self, file_system: TierFileSystem) -> int:
        logger.debug("Creating file...")
        start_time_ms = get_current_ms()
        file_id = file_system.create_empty_file(self._path, self._options)
        self._timed("create", start_time_ms, f"createFile with fileId {file_id}")
        return file_id

    def _write_file(self, file_system: TierFileSystem, file_id: int):
        payload = encode_sequential(self._num_ints, self._byte_order)

        logger.debug("Writing data...")
        start_time_ms = get_current_ms()
        with file_system.get_out_stream(TierFsFile(file_id), self._options) as out_stream:
            out_stream.write(payload)
        self._timed("write", start_time_ms, f"writeFile to file {self._path}")

    def _read_file(self, file_system: TierFileSystem, file_id: int) -> bool:
        logger.debug("Reading data...")
        start_time_ms = get_current_ms()
        with file_system.get_in_stream(TierFsFile(file_id), self._options) as in_stream:
            buf = bytearray(in_stream.remaining())
            count = in_stream.read_fully(buf)
        self._timed("read", start_time_ms, f"readFile file {self._path}")

        start_time_ms = get_current_ms()
        passed = self._verify(buf, count)
        self._timed("verify", start_time_ms, f"verify file {self._path}")
        return passed

    def _verify(self, buf: bytearray, count: int) -> bool:
        expected_bytes = self._num_ints * INT_SIZE
        if count != len(buf) or len(buf) != expected_bytes:
            logger.warning(f"Read {count} of {len(buf)} bytes from {self._path}, expected {expected_bytes}")
            return False
        values = decode_sequential(buf, self._byte_order)
        passed = True
        for k in range(self._num_ints):
            passed = passed and values[k] == k
        if not passed:
            logger.warning(f"Payload read from {self._path} does not match what was written")
        return passed


def run(endpoint: EndpointLocator, path, options: ClientOptions, **kwargs) -> bool:
    """Run one roundtrip against ``endpoint``; see RoundtripVerifier for keyword arguments."""
    return RoundtripVerifier(endpoint, path, options, **kwargs).run()
