"""Run statistics accumulated by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stockbridge.domain.reconciliation import ReconcileAction

if TYPE_CHECKING:
    from stockbridge.domain.model import SyncRun
    from stockbridge.domain.reconciliation import ReconcileResult

MAX_ERROR_DETAILS = 50


@dataclass(slots=True)
class RunStatistics:
    """Counters for one run; only the orchestrator writes to it.

    A partial update under the sku guard counts as ``updated`` and additionally
    as a ``conflict``. Updates that changed nothing count as ``unchanged``.
    """

    total: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    conflicts: int = 0
    errors: int = 0
    error_details: list[str] = field(default_factory=list)

    def record(self, result: ReconcileResult) -> None:
        self.total += 1
        if result.conflict:
            self.conflicts += 1
        match result.action:
            case ReconcileAction.CREATE:
                self.created += 1
            case ReconcileAction.UPDATE if result.changed:
                self.updated += 1
            case ReconcileAction.UPDATE:
                self.unchanged += 1
            case ReconcileAction.SKIP:
                self.skipped += 1
            case ReconcileAction.ERROR:
                self.errors += 1
                self.error_details.append(result.message or "unknown error")

    def record_failure(self, message: str) -> None:
        """Count an error that is not tied to a single record (phase or batch level)."""

        self.errors += 1
        self.error_details.append(message)

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def render_error_details(self) -> str | None:
        if not self.error_details:
            return None
        shown = self.error_details[:MAX_ERROR_DETAILS]
        hidden = len(self.error_details) - len(shown)
        if hidden:
            shown = [*shown, f"... and {hidden} more"]
        return "\n".join(shown)

    def apply_to(self, run: SyncRun) -> None:
        run.total = self.total
        run.created = self.created
        run.updated = self.updated
        run.unchanged = self.unchanged
        run.skipped = self.skipped
        run.conflicts = self.conflicts
        run.errors = self.errors
        run.error_details = self.render_error_details()
