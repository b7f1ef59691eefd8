from __future__ import annotations

from stockbridge.domain.model import MatchTier, RunStatus, SyncRun, SyncSource
from stockbridge.domain.reconciliation import ReconcileAction, ReconcileResult
from stockbridge.domain.statistics import MAX_ERROR_DETAILS, RunStatistics


def _result(action: ReconcileAction, **kwargs: object) -> ReconcileResult:
    return ReconcileResult(action=action, source=SyncSource.ERP, **kwargs)  # type: ignore[arg-type]


def test_counters_follow_actions() -> None:
    stats = RunStatistics()

    stats.record(_result(ReconcileAction.CREATE, changed=True))
    stats.record(_result(ReconcileAction.UPDATE, changed=True, tier=MatchTier.ERP_CODE))
    stats.record(_result(ReconcileAction.UPDATE, changed=False))
    stats.record(_result(ReconcileAction.SKIP, message="creation disabled"))
    stats.record(_result(ReconcileAction.ERROR, message="A1: boom"))

    assert (stats.total, stats.created, stats.updated, stats.unchanged) == (5, 1, 1, 1)
    assert (stats.skipped, stats.errors, stats.conflicts) == (1, 1, 0)
    assert stats.error_details == ["A1: boom"]
    assert stats.has_errors


def test_partial_update_counts_as_updated_and_conflict() -> None:
    stats = RunStatistics()

    stats.record(_result(ReconcileAction.UPDATE, changed=True, conflict=True))

    assert stats.updated == 1
    assert stats.conflicts == 1
    assert stats.skipped == 0


def test_record_failure_does_not_count_a_record() -> None:
    stats = RunStatistics()

    stats.record_failure("ERP fetch failed: timeout")

    assert stats.total == 0
    assert stats.errors == 1
    assert stats.render_error_details() == "ERP fetch failed: timeout"


def test_error_details_are_capped() -> None:
    stats = RunStatistics()
    for index in range(MAX_ERROR_DETAILS + 5):
        stats.record_failure(f"error {index}")

    rendered = stats.render_error_details()

    assert rendered is not None
    lines = rendered.splitlines()
    assert len(lines) == MAX_ERROR_DETAILS + 1
    assert lines[-1] == "... and 5 more"


def test_apply_to_copies_counters_onto_run() -> None:
    stats = RunStatistics()
    stats.record(_result(ReconcileAction.CREATE, changed=True))
    run = SyncRun(stages="erp")

    stats.apply_to(run)

    assert run.total == 1
    assert run.created == 1
    assert run.error_details is None
    assert run.status is RunStatus.RUNNING
