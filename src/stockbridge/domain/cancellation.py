"""Cooperative cancellation for long-running sync work."""

from __future__ import annotations

import asyncio

from .errors import SyncCancelledError


class CancellationToken:
    """Flag checked between pages, batch chunks and inter-batch pauses.

    In-flight requests are not interrupted; the next checkpoint raises
    :class:`SyncCancelledError` instead.
    """

    __slots__ = ("_event", "reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        if self.reason is None:
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SyncCancelledError(f"Sync run {self.reason or 'cancelled'}")

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first."""

        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return
        self.raise_if_cancelled()


def raise_if_cancelled(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
