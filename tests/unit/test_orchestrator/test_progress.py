# SPDX-License-Identifier: LGPL-3.0-or-later
import io
import unittest
from unittest.mock import patch

from rich.console import Console

from fakes.fake_logger import FakeLogger
from vradrain.orchestrator.progress import (
    LoggingProgressReporter,
    NoopProgressReporter,
    RichProgressReporter,
    create_progress_reporter,
)


class TestProgressFactory(unittest.TestCase):
    def test_disabled(self):
        self.assertIsInstance(create_progress_reporter(FakeLogger(), show_progress=False), NoopProgressReporter)

    @patch("vradrain.orchestrator.progress._is_tty", return_value=True)
    def test_tty_gets_rich(self, _tty):
        self.assertIsInstance(create_progress_reporter(FakeLogger()), RichProgressReporter)

    @patch("vradrain.orchestrator.progress._is_tty", return_value=False)
    def test_pipe_gets_logging(self, _tty):
        self.assertIsInstance(create_progress_reporter(FakeLogger()), LoggingProgressReporter)


class TestLoggingProgressReporter(unittest.TestCase):
    def test_lines(self):
        logger = FakeLogger()
        p = LoggingProgressReporter(logger)
        p.start("Migrating workloads", 5)
        for name in ("A", "B"):
            p.advance(name)
        p.advance("C", ok=False)
        p.finish()

        info = logger.messages("info")
        self.assertEqual(info[0], "Migrating workloads: 0/5")
        self.assertEqual(info[2], "Migrating workloads: 2/5 (40.0%) ✓ B")
        self.assertEqual(info[3], "Migrating workloads: 3/5 (60.0%) ✗ C")


class TestRichProgressReporter(unittest.TestCase):
    def test_counts_items(self):
        console = Console(file=io.StringIO(), force_terminal=False)
        p = RichProgressReporter(console)
        p.start("Rebalancing C1", 3)
        p.advance("A")
        p.advance("B", ok=False)
        task = p.progress.tasks[0]
        self.assertEqual(task.completed, 2)
        self.assertEqual(task.total, 3)
        p.finish()
        self.assertIsNone(p.progress)


if __name__ == "__main__":
    unittest.main()
