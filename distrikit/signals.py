"""Cancellation triggered by SIGINT or SIGTERM."""

from __future__ import annotations

import signal
import threading

__all__ = ["Interruptible"]

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Interruptible:
    """Context manager which is cancelled when the program is interrupted.

    After the first signal the previous handlers are restored, so a second
    signal terminates the program immediately, which helps if cleanup hangs.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._previous: dict[int, object] = {}

    def __enter__(self) -> "Interruptible":
        for sig in _SIGNALS:
            self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def __exit__(self, *args) -> bool:
        self._restore()
        self.cancel()
        return False

    def _handle(self, signum, frame) -> None:
        self._restore()
        self.cancel()

    def _restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def cancel(self) -> None:
        """Mark the context as cancelled."""
        self._event.set()

    def cancelled(self) -> bool:
        """Return whether the context has been cancelled."""
        return self._event.is_set()