# SPDX-License-Identifier: LGPL-3.0-or-later
# vradrain/core/cancel.py
from __future__ import annotations

import signal
from threading import Event
from typing import Any, Dict, Iterable, Optional


class CancellationToken:
    """
    Cooperative cancel signal for long waits.

    Backed by a threading.Event so a sleeper wakes as soon as cancel() is
    called from another thread or a signal handler.
    """

    def __init__(self) -> None:
        self._event = Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        return self._event.wait(max(0.0, float(seconds)))


def install_signal_handlers(
    token: CancellationToken,
    logger: Any,
    signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
) -> Dict[int, Any]:
    """Route SIGINT/SIGTERM to ``token.cancel()``; returns the handlers replaced."""

    def _handler(signum: int, frame: Any) -> None:
        sig_name = signal.Signals(signum).name
        logger.warning("🛑 Received %s, cancelling at the next wait boundary...", sig_name)
        if token.cancelled and signum == signal.SIGINT:
            # A second Ctrl+C aborts outright.
            raise KeyboardInterrupt
        token.cancel(sig_name)

    previous: Dict[int, Any] = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else CancellationToken()


__all__ = ["CancellationToken", "install_signal_handlers", "restore_signal_handlers", "ensure_token"]
