"""Error taxonomy shared by connectors, reconciliation and the orchestrator.

Connectors translate transport failures into these types so the pipeline can
decide between retrying (done by the transport), skipping a record, failing a
phase or failing the whole run without knowing about HTTP.
"""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for reconciliation pipeline errors."""


class TransientSourceError(SyncError):
    """Network, timeout or server-side failure that survived the retry schedule."""


class AuthenticationError(SyncError):
    """Credentials were rejected by a source; fatal for the run."""


class SourceRequestError(SyncError):
    """Non-transient rejection of a request (4xx validation, application error)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodingError(SyncError):
    """Payload could not be decoded or did not match the expected schema."""


class RecordValidationError(SyncError):
    """A single source record is malformed or violates an invariant."""


class SkuConflictError(RecordValidationError):
    """The sku is already owned by a different canonical product."""

    def __init__(self, sku: str, *, owner_id: int) -> None:
        super().__init__(f"SKU {sku!r} already belongs to product #{owner_id}")
        self.sku = sku
        self.owner_id = owner_id


class PersistenceError(SyncError):
    """The canonical store rejected a write."""


class RequestBudgetExceededError(SyncError):
    """A hard request budget (e.g. hourly API quota) is exhausted."""


class SyncCancelledError(SyncError):
    """The run was cancelled cooperatively."""


# errors that abort the whole run instead of a record or a phase
FATAL_SYNC_ERRORS: tuple[type[SyncError], ...] = (
    AuthenticationError,
    RequestBudgetExceededError,
    SyncCancelledError,
)

# errors that abort only the phase that depends on the failing source
SOURCE_ERRORS: tuple[type[SyncError], ...] = (
    TransientSourceError,
    SourceRequestError,
    DecodingError,
)
