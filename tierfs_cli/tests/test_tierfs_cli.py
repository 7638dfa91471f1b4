import argparse
import os
import sys
import tempfile
import unittest
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from tierfs_data_model.storage_options import ClientOptions, TierFsStorageType, UnderStorageType
from tierfs_data_model.tierfs_uri import EndpointLocator
from tierfs_db.client.tierfs_file_system import TierFileSystem
from tierfs_db.engine.tiered_storage_engine import TieredStorageEngine
from tierfs_cli.tierfs_cli import (
    get_parser,
    main,
    entry_point,
    parse_master_address,
    parse_storage_type,
    non_negative_int,
    positive_float,
    EXIT_PASSED,
    EXIT_FAILED,
    EXIT_USAGE,
    EXIT_ERROR,
)

ARGS = ["tierfs://localhost:19998", "/test/roundtrip", "STORE", "PERSIST"]


class TruncatingEngine(TieredStorageEngine):
    def complete_file(self, file_id, data, options):
        return super().complete_file(file_id, data[:4], options)


class TestTierFsCLI(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.engine = TieredStorageEngine(under_storage_root=self.temp_dir.name)
        self.env_patcher = patch.dict(os.environ, {}, clear=True)
        self.env_patcher.start()

    def tearDown(self):
        self.env_patcher.stop()
        self.temp_dir.cleanup()

    def _factory(self, engine=None):
        engine = engine or self.engine
        return lambda config: TierFileSystem(engine, config)

    def _run(self, argv, engine=None):
        with patch('sys.stdout', new_callable=StringIO) as stdout, \
                patch('sys.stderr', new_callable=StringIO) as stderr:
            code = main(argv, client_factory=self._factory(engine))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_parse_master_address(self):
        self.assertEqual(parse_master_address("localhost:19998"), EndpointLocator("localhost", 19998))
        with self.assertRaises(argparse.ArgumentTypeError):
            parse_master_address("localhost")

    def test_parse_storage_type(self):
        self.assertEqual(parse_storage_type("store"), TierFsStorageType.STORE)
        with self.assertRaises(argparse.ArgumentTypeError):
            parse_storage_type("CACHE")

    def test_get_parser(self):
        args = get_parser().parse_args(ARGS)
        self.assertEqual(args.master_address, EndpointLocator("localhost", 19998))
        self.assertEqual(args.file_path, "/test/roundtrip")
        self.assertEqual(args.storage_type, TierFsStorageType.STORE)
        self.assertEqual(args.under_storage_type, UnderStorageType.PERSIST)
        self.assertEqual(args.num_ints, 20)
        self.assertEqual(args.byte_order, "LITTLE")

    def test_passed(self):
        code, stdout, _ = self._run(ARGS)
        self.assertEqual(code, EXIT_PASSED)
        self.assertIn("Passed the test!", stdout)
        self.assertEqual(self.engine.get_file_info_by_path("/test/roundtrip").length, 80)

    def test_failed_verification(self):
        code, stdout, _ = self._run(ARGS, engine=TruncatingEngine(under_storage_root=self.temp_dir.name))
        self.assertEqual(code, EXIT_FAILED)
        self.assertIn("Failed the test!", stdout)

    def test_existing_file_is_infrastructure_error(self):
        self.assertEqual(self._run(ARGS)[0], EXIT_PASSED)
        code, _, stderr = self._run(ARGS)
        self.assertEqual(code, EXIT_ERROR)
        self.assertIn("Error: File already exists", stderr)

    def test_delete_existing(self):
        self.assertEqual(self._run(ARGS)[0], EXIT_PASSED)
        code, _, _ = self._run(ARGS + ["--delete-existing"])
        self.assertEqual(code, EXIT_PASSED)
        self.assertEqual(self.engine.file_count, 1)

    def test_delete_existing_failure_closes_client(self):
        self.engine.create_file("/test/roundtrip/child", ClientOptions())
        with patch.object(TierFileSystem, "close") as mock_close:
            code, _, stderr = self._run(ARGS + ["--delete-existing"])
        self.assertEqual(code, EXIT_ERROR)
        self.assertIn("Path is a directory", stderr)
        mock_close.assert_called_once()

    def test_negative_num_ints_is_usage_error(self):
        with patch('sys.stderr', new_callable=StringIO) as stderr:
            with self.assertRaises(SystemExit) as ctx:
                main(ARGS + ["--num-ints", "-1"], client_factory=self._factory())
        self.assertEqual(ctx.exception.code, EXIT_USAGE)
        self.assertIn("must be non-negative", stderr.getvalue())
        self.assertEqual(self.engine.file_count, 0)

    def test_non_positive_timeout_is_usage_error(self):
        for timeout in ("0", "-2", "soon"):
            with self.subTest(timeout=timeout):
                with patch('sys.stderr', new_callable=StringIO):
                    with self.assertRaises(SystemExit) as ctx:
                        main(ARGS + ["--timeout", timeout], client_factory=self._factory())
                self.assertEqual(ctx.exception.code, EXIT_USAGE)

    def test_argument_value_types(self):
        self.assertEqual(non_negative_int("0"), 0)
        self.assertEqual(positive_float("2.5"), 2.5)
        with self.assertRaises(argparse.ArgumentTypeError):
            non_negative_int("-1")
        with self.assertRaises(argparse.ArgumentTypeError):
            positive_float("0")

    def test_options(self):
        code, _, _ = self._run(ARGS + ["--num-ints", "100", "--byte-order", "BIG", "--timeout", "2",
                                       "--log-level", "debug"])
        self.assertEqual(code, EXIT_PASSED)
        self.assertEqual(self.engine.get_file_info_by_path("/test/roundtrip").length, 400)

    def test_config_file(self):
        config_file = Path(self.temp_dir.name) / "client.yaml"
        config_file.write_text("client:\n  request_timeout: 3.0\n")
        seen = []

        def factory(config):
            seen.append(config)
            return TierFileSystem(self.engine, config)

        with patch('sys.stdout', new_callable=StringIO):
            code = main(ARGS + ["--config", str(config_file)], client_factory=factory)
        self.assertEqual(code, EXIT_PASSED)
        self.assertEqual(seen[0].request_timeout, 3.0)
        self.assertEqual(seen[0].endpoint, EndpointLocator("localhost", 19998))

    def test_missing_config_file(self):
        code, _, stderr = self._run(ARGS + ["--config", str(Path(self.temp_dir.name) / "missing.yaml")])
        self.assertEqual(code, EXIT_ERROR)
        self.assertIn("Cannot load config file", stderr)

    def test_wrong_argument_count(self):
        for argv in ([], ARGS[:3], ARGS + ["extra"]):
            with self.subTest(argv=argv):
                with patch('sys.stderr', new_callable=StringIO) as stderr:
                    with self.assertRaises(SystemExit) as ctx:
                        main(argv)
                self.assertEqual(ctx.exception.code, EXIT_USAGE)
                self.assertIn("usage: tierfs-roundtrip", stderr.getvalue())

    def test_bad_tokens(self):
        for argv in (["localhost:19998", "/f", "CACHE", "PERSIST"],
                     ["localhost:19998", "/f", "STORE", "THROUGH"],
                     ["localhost", "/f", "STORE", "PERSIST"],
                     ["localhost:19998", "/f", "NO_STORE", "NO_PERSIST"]):
            with self.subTest(argv=argv):
                with patch('sys.stderr', new_callable=StringIO):
                    with self.assertRaises(SystemExit) as ctx:
                        main(argv)
                self.assertEqual(ctx.exception.code, EXIT_USAGE)

    def test_entry_point_exits_with_status(self):
        with patch.object(sys, 'argv', ['tierfs-roundtrip'] + ARGS), \
                patch('tierfs_cli.tierfs_cli.main', return_value=EXIT_FAILED):
            with self.assertRaises(SystemExit) as ctx:
                entry_point()
        self.assertEqual(ctx.exception.code, EXIT_FAILED)


if __name__ == '__main__':
    unittest.main()
