"""Tests for sow_engine.services.snapshot_service."""

from datetime import datetime, timedelta, timezone

import pytest

from sow_engine.core.exceptions import NotFoundError, ValidationError
from sow_engine.services.snapshot_service import SnapshotService
from sow_engine.stores import AssessmentStore, ProposalStore


class _Clock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


def _service(clock=None):
    return SnapshotService(AssessmentStore(), ProposalStore(), clock=clock)


def test_resync_replaces_snapshot_wholesale(make_assessment, make_proposal):
    assessment = make_assessment(processes=[
        {"name": "Lead Routing", "function": "Sales", "status": "healthy", "addToEngagement": True},
    ])
    proposal = make_proposal(
        linked_assessment_ids=[assessment.id],
        snapshot={
            "processes": [{"name": "Old Process", "status": "warning", "addToEngagement": False}],
            "snapshotAt": "2025-01-01T00:00:00+00:00",
            "manualNote": "discarded on resync",
        },
    )

    snapshot = _service().resync(proposal.id)

    stored = ProposalStore().get(proposal.id).snapshot
    assert stored == snapshot.to_dict()
    assert stored["processes"] == [{"name": "Lead Routing", "status": "healthy", "addToEngagement": True}]
    assert "manualNote" not in stored


def test_resync_twice_is_idempotent_except_timestamp(make_assessment, make_proposal):
    assessment = make_assessment(processes=[
        {"name": "A", "status": "warning"},
        {"name": "B", "status": "healthy", "addToEngagement": True},
    ])
    proposal = make_proposal(linked_assessment_ids=[assessment.id])
    service = _service(clock=_Clock())

    first = service.resync(proposal.id).to_dict()
    second = service.resync(proposal.id).to_dict()

    assert first["processes"] == second["processes"]
    assert first["snapshotAt"] != second["snapshotAt"]


def test_resync_missing_proposal_raises_not_found():
    with pytest.raises(NotFoundError):
        _service().resync("nope")


def test_resync_without_link_raises_validation(make_proposal):
    proposal = make_proposal(linked_assessment_ids=[])
    with pytest.raises(ValidationError):
        _service().resync(proposal.id)


def test_resync_unresolved_link_raises_not_found(make_proposal):
    proposal = make_proposal(linked_assessment_ids=["stale-id"])
    with pytest.raises(NotFoundError):
        _service().resync(proposal.id)


def test_freeze_uses_clock():
    clock = _Clock()
    snapshot = _service(clock=clock).freeze([])
    assert snapshot.processes == ()
    assert snapshot.snapshot_at == clock.now.isoformat()
