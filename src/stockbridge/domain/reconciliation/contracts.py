"""Shared reconciliation contract components.

This module holds only the resolver output types and the per-record result
consumed by the orchestrator's run statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from stockbridge.domain.model import CanonicalProduct, MatchTier, SyncSource


class ResolutionStatus(StrEnum):
    NEW = "new"
    RESOLVED = "resolved"


@dataclass(slots=True, frozen=True, kw_only=True)
class NoMatch:
    """No canonical product carries any of the record's keys."""

    reason: str
    status: Literal[ResolutionStatus.NEW] = ResolutionStatus.NEW


@dataclass(slots=True, frozen=True, kw_only=True)
class ResolvedMatch:
    """Record resolved to exactly one canonical product."""

    target: CanonicalProduct
    tier: MatchTier
    matched_key: str
    status: Literal[ResolutionStatus.RESOLVED] = ResolutionStatus.RESOLVED


type Resolution = NoMatch | ResolvedMatch


class ReconcileAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    ERROR = "error"


@dataclass(slots=True, frozen=True, kw_only=True)
class ReconcileResult:
    """Decision taken for one source record.

    ``changed`` separates functional updates from no-op re-syncs; ``conflict``
    flags results where the sku guard withheld identity fields.
    """

    action: ReconcileAction
    source: SyncSource
    tier: MatchTier | None = None
    product_id: int | None = None
    subject: str | None = None
    changed: bool = False
    conflict: bool = False
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.action is not ReconcileAction.ERROR

    @property
    def error_message(self) -> str | None:
        return self.message if self.action is ReconcileAction.ERROR else None

    def as_error(self, message: str) -> ReconcileResult:
        return replace(self, action=ReconcileAction.ERROR, changed=False, message=message)

    @classmethod
    def created(
        cls,
        product: CanonicalProduct,
        *,
        source: SyncSource,
        message: str | None = None,
    ) -> ReconcileResult:
        return cls(
            action=ReconcileAction.CREATE,
            source=source,
            product_id=product.id,
            subject=product.sku,
            changed=True,
            message=message,
        )

    @classmethod
    def updated(
        cls,
        product: CanonicalProduct,
        *,
        source: SyncSource,
        tier: MatchTier | None,
        changed: bool,
        conflict: bool = False,
        message: str | None = None,
    ) -> ReconcileResult:
        return cls(
            action=ReconcileAction.UPDATE,
            source=source,
            tier=tier,
            product_id=product.id,
            subject=product.sku,
            changed=changed,
            conflict=conflict,
            message=message,
        )

    @classmethod
    def skipped(
        cls,
        *,
        source: SyncSource,
        message: str,
        subject: str | None = None,
        tier: MatchTier | None = None,
        product_id: int | None = None,
        conflict: bool = False,
    ) -> ReconcileResult:
        return cls(
            action=ReconcileAction.SKIP,
            source=source,
            tier=tier,
            product_id=product_id,
            subject=subject,
            conflict=conflict,
            message=message,
        )

    @classmethod
    def failed(
        cls,
        *,
        source: SyncSource,
        message: str,
        subject: str | None = None,
        product_id: int | None = None,
    ) -> ReconcileResult:
        return cls(
            action=ReconcileAction.ERROR,
            source=source,
            product_id=product_id,
            subject=subject,
            message=message,
        )
