"""Unit tests for the logging utilities."""
import socket
import unittest

import cornerdet.utils.logger as logger_utils


class TestLogger(unittest.TestCase):
    def test_worker_id_main_process(self):
        """Outside of a Dask worker, the process is reported as the main one."""
        self.assertEqual(logger_utils._detect_worker_id_once(), f"{socket.gethostname()}-main")

    def test_records_carry_worker_id(self):
        logger = logger_utils.get_logger()

        with self.assertLogs(logger_utils.LOGGER_NAME, level="INFO") as captured:
            logger.info("hello %s", "corners")

        self.assertEqual(captured.records[0].getMessage(), "hello corners")
        self.assertEqual(captured.records[0].worker_id, logger_utils.get_worker_id())

    def test_single_handler(self):
        logger_utils.get_logger()
        adapter = logger_utils.get_logger()

        self.assertEqual(len(adapter.logger.handlers), 1)


if __name__ == "__main__":
    unittest.main()
