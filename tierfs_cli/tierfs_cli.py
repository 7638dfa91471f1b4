#!/usr/bin/env python3
import argparse
import logging
import sys

from tierfs_data_model.payload_codec import ByteOrder
from tierfs_data_model.storage_options import ClientOptions, TierFsStorageType, UnderStorageType
from tierfs_data_model.tierfs_uri import EndpointLocator
from tierfs_db.client.client_config import ClientConfig
from tierfs_db.client.tierfs_file_system import TierFileSystem
from tierfs_examples.roundtrip_verifier import RoundtripVerifier, DEFAULT_NUM_INTS
from tierfs_examples.utils import run_example
from tierfs_exception_model.exception import TierFsException, ConfigurationError

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_ERROR = 3

logger = logging.getLogger(__name__)


def _argument_type(parse, label):
    def convert(value):
        try:
            return parse(value)
        except ConfigurationError as e:
            raise argparse.ArgumentTypeError(f"invalid {label}: {e.message}")
    convert.__name__ = label
    return convert


parse_master_address = _argument_type(EndpointLocator.parse, "master address")
parse_storage_type = _argument_type(TierFsStorageType.from_token, "storage type")
parse_under_storage_type = _argument_type(UnderStorageType.from_token, "under storage type")


def non_negative_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def positive_float(value):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def get_parser():
    parser = argparse.ArgumentParser(
        prog="tierfs-roundtrip",
        description="Create a file on a tierfs master, write a sequence of integers, "
                    "read it back and verify it"
    )
    parser.add_argument("master_address", type=parse_master_address,
                        help="Master address, e.g. tierfs://localhost:19998")
    parser.add_argument("file_path", help="Path of the file to create, e.g. /test/roundtrip")
    parser.add_argument("storage_type", type=parse_storage_type, metavar="{STORE,NO_STORE}",
                        help="Whether to keep the data in the memory tier")
    parser.add_argument("under_storage_type", type=parse_under_storage_type, metavar="{PERSIST,NO_PERSIST}",
                        help="Whether to persist the data to the under storage")
    parser.add_argument("--num-ints", type=non_negative_int, default=DEFAULT_NUM_INTS,
                        help="Number of 32-bit integers to write")
    parser.add_argument("--byte-order", choices=[o.name for o in ByteOrder], default=ByteOrder.LITTLE.name,
                        help="Byte order of the payload")
    parser.add_argument("--timeout", type=positive_float, default=None,
                        help="Per request timeout in seconds")
    parser.add_argument("--config", default=None,
                        help="YAML client config file (defaults to $CONFIG_FILE)")
    parser.add_argument("--delete-existing", action="store_true",
                        help="Delete the file first if it already exists")
    parser.add_argument("--log-level", type=str.upper, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return parser


def _load_config(args) -> ClientConfig:
    config = ClientConfig.from_yaml(args.config) if args.config else ClientConfig.load()
    config = config.with_endpoint(args.master_address)
    if args.timeout is not None:
        config = config.with_timeout(args.timeout)
    return config


def build_verifier(args, options: ClientOptions, client_factory=None) -> RoundtripVerifier:
    config = _load_config(args)
    factory = client_factory or TierFileSystem.connect

    if args.delete_existing:
        connect = factory

        def factory(cfg):
            file_system = connect(cfg)
            try:
                file_system.delete_if_exists(args.file_path)
            except BaseException:
                file_system.close()
                raise
            return file_system

    return RoundtripVerifier(args.master_address, args.file_path, options, client_factory=factory,
                             base_config=config, num_ints=args.num_ints, byte_order=ByteOrder[args.byte_order])


def main(argv=None, client_factory=None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    try:
        options = ClientOptions(args.storage_type, args.under_storage_type)
    except ConfigurationError as e:
        parser.error(e.message)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        verifier = build_verifier(args, options, client_factory)
        passed = run_example(verifier)
    except TierFsException as e:
        logger.debug("Roundtrip aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_PASSED if passed else EXIT_FAILED


def entry_point():
    sys.exit(main())


if __name__ == "__main__":
    entry_point()
