"""Bounded, chunked writes to the inventory ledger.

The dispatcher turns pending create/update commands into sequential batch calls
of at most :data:`MAX_BATCH_SIZE` items and pairs every command with its own
outcome. A chunk whose request fails at the transport level yields a failure
outcome for each of its items instead of raising, so later chunks still run.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING

from stockbridge.domain.cancellation import CancellationToken
from stockbridge.domain.errors import SOURCE_ERRORS
from stockbridge.domain.ports import (
    BatchItemOutcome,
    InventoryCreateCommand,
    InventoryUpdateCommand,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

    from stockbridge.domain.ports import InventoryLedger

log = getLogger(__name__)

MAX_BATCH_SIZE = 50


@dataclass(slots=True, frozen=True)
class DispatchedItem[TCommand]:
    command: TCommand
    outcome: BatchItemOutcome


class InventoryBatchDispatcher:
    def __init__(
        self,
        ledger: InventoryLedger,
        *,
        batch_size: int = MAX_BATCH_SIZE,
        delay_seconds: float = 0.5,
        cancel: CancellationToken | None = None,
    ) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.ledger = ledger
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self.cancel = cancel or CancellationToken()

    def dispatch_creates(
        self, commands: Sequence[InventoryCreateCommand]
    ) -> AsyncIterator[list[DispatchedItem[InventoryCreateCommand]]]:
        async def submit(chunk: tuple[InventoryCreateCommand, ...]) -> Sequence[BatchItemOutcome]:
            outcome = await self.ledger.submit_batch(creates=chunk)
            return outcome.creates

        return self._dispatch(commands, submit, kind="create")

    def dispatch_updates(
        self, commands: Sequence[InventoryUpdateCommand]
    ) -> AsyncIterator[list[DispatchedItem[InventoryUpdateCommand]]]:
        async def submit(chunk: tuple[InventoryUpdateCommand, ...]) -> Sequence[BatchItemOutcome]:
            outcome = await self.ledger.submit_batch(updates=chunk)
            return outcome.updates

        return self._dispatch(commands, submit, kind="update")

    async def _dispatch[TCommand](
        self,
        commands: Sequence[TCommand],
        submit: Callable[[tuple[TCommand, ...]], Awaitable[Sequence[BatchItemOutcome]]],
        *,
        kind: str,
    ) -> AsyncIterator[list[DispatchedItem[TCommand]]]:
        chunks = list(batched(commands, self.batch_size))
        for index, chunk in enumerate(chunks, start=1):
            if index > 1:
                await self.cancel.sleep(self.delay_seconds)
            else:
                self.cancel.raise_if_cancelled()

            log.info(
                "Submitting inventory %s batch %d/%d (%d items)",
                kind,
                index,
                len(chunks),
                len(chunk),
            )
            try:
                outcomes = await submit(chunk)
            except SOURCE_ERRORS as exc:
                log.warning("Inventory %s batch %s failed as a whole: %s", kind, index, exc)
                outcomes = [
                    BatchItemOutcome.failure(f"batch request failed: {exc}", code="transport")
                    for _ in chunk
                ]

            yield [
                DispatchedItem(command=command, outcome=outcome)
                for command, outcome in zip(chunk, _align(outcomes, len(chunk)), strict=True)
            ]


def _align(outcomes: Sequence[BatchItemOutcome], expected: int) -> list[BatchItemOutcome]:
    """Pad or trim positional results to the chunk length."""

    aligned = list(outcomes[:expected])
    missing = expected - len(aligned)
    if missing:
        log.warning("Batch response carried %d results for %d items", len(aligned), expected)
        aligned.extend(
            BatchItemOutcome.failure("no result returned for item", code="missing_result")
            for _ in range(missing)
        )
    return aligned
