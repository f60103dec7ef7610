# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
Per-item progress reporting for orchestration runs.

- RichProgressReporter: animated bar (requires a TTY)
- LoggingProgressReporter: one log line per item (works everywhere)
- NoopProgressReporter: silent
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ..core.utils import U


def _is_tty() -> bool:
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


class ProgressReporter(ABC):
    """Reports ``completed/total`` after each item attempt, success or failure."""

    @abstractmethod
    def start(self, description: str, total: int) -> None:
        ...

    @abstractmethod
    def advance(self, item: str, ok: bool = True) -> None:
        ...

    @abstractmethod
    def finish(self) -> None:
        ...


class RichProgressReporter(ProgressReporter):
    def __init__(self, console: Any):
        self.console = console
        self.progress: Optional[Progress] = None
        self.task_id: Optional[Any] = None

    def start(self, description: str, total: int) -> None:
        self.progress = Progress(
            SpinnerColumn(style="bright_green"),
            TextColumn("[progress.description]{task.description}", style="bold cyan"),
            BarColumn(complete_style="bright_blue", finished_style="bright_green"),
            MofNCompleteColumn(),
            TextColumn("[progress.percentage]{task.percentage:>5.1f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
        )
        self.progress.start()
        self.task_id = self.progress.add_task(description, total=max(0, int(total)))

    def advance(self, item: str, ok: bool = True) -> None:
        if self.progress is not None and self.task_id is not None:
            self.progress.update(self.task_id, advance=1)

    def finish(self) -> None:
        if self.progress is not None:
            self.progress.stop()
            self.progress = None


class LoggingProgressReporter(ProgressReporter):
    def __init__(self, logger: Any):
        self.logger = logger
        self.description = ""
        self.completed = 0
        self.total = 0

    def start(self, description: str, total: int) -> None:
        self.description = description
        self.completed = 0
        self.total = max(0, int(total))
        self.logger.info("%s: 0/%d", description, self.total)

    def advance(self, item: str, ok: bool = True) -> None:
        self.completed += 1
        self.logger.info(
            "%s: %d/%d (%.1f%%) %s %s",
            self.description,
            self.completed,
            self.total,
            U.pct(self.completed, self.total),
            "✓" if ok else "✗",
            item,
        )

    def finish(self) -> None:
        self.logger.debug("%s finished: %d/%d", self.description, self.completed, self.total)


class NoopProgressReporter(ProgressReporter):
    def start(self, description: str, total: int) -> None:
        pass

    def advance(self, item: str, ok: bool = True) -> None:
        pass

    def finish(self) -> None:
        pass


def create_progress_reporter(logger: logging.Logger, *, show_progress: bool = True) -> ProgressReporter:
    """
    1. show_progress=False -> NoopProgressReporter
    2. stderr is a TTY     -> RichProgressReporter
    3. otherwise           -> LoggingProgressReporter
    """
    if not show_progress:
        return NoopProgressReporter()
    if _is_tty():
        return RichProgressReporter(Console(stderr=True))
    return LoggingProgressReporter(logger)
