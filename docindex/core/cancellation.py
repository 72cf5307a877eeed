"""Cooperative cancellation shared between the event loop and worker threads."""

import threading

from docindex.core.exceptions import OperationCancelledError


class CancellationToken:
    """A flag that can be set once and checked from any thread.

    Parsers that run in executor threads cannot be interrupted by asyncio
    task cancellation, so they poll the token between pages, sheets and
    slides and stop at the next checkpoint.
    """

    def __init__(self, parent: "CancellationToken | None" = None):
        self._event = threading.Event()
        self._parent = parent
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            reason = self.reason or (self._parent.reason if self._parent else None)
            raise OperationCancelledError(reason or "cancelled")

    def child(self) -> "CancellationToken":
        """Return a token that also fires when this one does."""
        return CancellationToken(parent=self)
