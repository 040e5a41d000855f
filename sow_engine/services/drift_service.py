"""
Drift Detector.

Compares the snapshot frozen into a proposal against the customer's live
assessment and reports which processes were added, removed, or re-graded
since the snapshot was taken.

The comparison itself (`compute_drift`) is pure. `DriftDetector` only adds
the lookups around it and never writes anything.
"""

from __future__ import annotations

import logging

from sow_engine.core.exceptions import NotFoundError
from sow_engine.domain import (
    ASSESSMENT_TYPES,
    DriftReport,
    ProcessAssessment,
    Snapshot,
    parse_processes,
)
from sow_engine.models.assessment import Assessment

logger = logging.getLogger(__name__)


def compute_drift(snapshot: Snapshot, live_processes: list[ProcessAssessment]) -> DriftReport:
    """Diff a frozen snapshot against live processes, matching by name.

    Each change list is sorted by process name so the report does not depend
    on the order either side was stored in.
    """
    snap_map = {p.name: p.status for p in snapshot.processes}
    live_map = {p.name: p.status for p in live_processes}

    added = [
        {"name": name, "status": live_map[name]}
        for name in sorted(live_map.keys() - snap_map.keys())
    ]
    removed = [
        {"name": name, "previousStatus": snap_map[name]}
        for name in sorted(snap_map.keys() - live_map.keys())
    ]
    status_changed = [
        {"name": name, "previousStatus": snap_map[name], "currentStatus": live_map[name]}
        for name in sorted(snap_map.keys() & live_map.keys())
        if snap_map[name] != live_map[name]
    ]

    return DriftReport(
        has_changes=bool(added or removed or status_changed),
        added=added,
        removed=removed,
        status_changed=status_changed,
        snapshot_at=snapshot.snapshot_at,
    )


def resolve_linked_assessment(assessment_store, customer_id: str, linked_ids) -> Assessment | None:
    """Return the first live assessment, in type order, whose id is linked."""
    linked = {str(i) for i in linked_ids or []}
    for assessment_type in ASSESSMENT_TYPES:
        assessment = assessment_store.get_by_customer_and_type(customer_id, assessment_type)
        if assessment is not None and str(assessment.id) in linked:
            return assessment
    return None


class DriftDetector:
    """Read-only drift check for proposals."""

    def __init__(self, assessment_store, proposal_store) -> None:
        self.assessment_store = assessment_store
        self.proposal_store = proposal_store

    def detect(self, proposal) -> DriftReport:
        snapshot = Snapshot.from_dict(proposal.snapshot)
        if snapshot is None:
            return DriftReport(no_snapshot=True)

        if not proposal.customer_id or not proposal.linked_assessment_ids:
            return DriftReport(no_diagnostic=True)

        assessment = resolve_linked_assessment(
            self.assessment_store, proposal.customer_id, proposal.linked_assessment_ids,
        )
        if assessment is None:
            return DriftReport(diagnostic_not_found=True)

        report = compute_drift(snapshot, parse_processes(assessment.processes))
        if report.has_changes:
            logger.info(
                "Assessment drift detected changes=%d", report.total_changes,
                extra={"proposal_id": proposal.id},
            )
        return report

    def check(self, proposal_id: str) -> DriftReport:
        proposal = self.proposal_store.get(proposal_id)
        if proposal is None:
            raise NotFoundError(resource="Proposal", resource_id=proposal_id)
        return self.detect(proposal)
