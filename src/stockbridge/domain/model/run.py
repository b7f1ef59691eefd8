"""The persisted audit record of one pipeline execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import RunStatus
from .product import DEFAULT_STORE_ID, utcnow

if TYPE_CHECKING:
    from datetime import datetime, timedelta


@dataclass(eq=False, kw_only=True)
class SyncRun:
    store_id: int = DEFAULT_STORE_ID
    id: int | None = None
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    status: RunStatus = RunStatus.RUNNING
    stages: str = ""
    total: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    conflicts: int = 0
    errors: int = 0
    error_details: str | None = None

    @property
    def duration(self) -> timedelta | None:
        if self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    @property
    def is_finished(self) -> bool:
        return self.status is not RunStatus.RUNNING

    def finish(self, *, status: RunStatus, at: datetime) -> None:
        if status is RunStatus.RUNNING:
            raise ValueError("a run cannot finish in the running state")
        self.status = status
        self.completed_at = at
