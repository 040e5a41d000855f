"""
SnapshotService — freezes an assessment into a proposal.

A proposal keeps its own copy of the assessment it was drafted from so later
edits to the live assessment can be detected (see drift_service) and adopted
deliberately. Re-syncing replaces the copy wholesale; there is no merge.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sow_engine.core.exceptions import NotFoundError, ValidationError
from sow_engine.domain import ProcessAssessment, Snapshot, parse_processes
from sow_engine.services.drift_service import resolve_linked_assessment

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotService:
    """Builds and refreshes proposal snapshots."""

    def __init__(self, assessment_store, proposal_store, clock=None) -> None:
        self.assessment_store = assessment_store
        self.proposal_store = proposal_store
        self.clock = clock or _utcnow

    def freeze(self, processes: list[ProcessAssessment], at: datetime | None = None) -> Snapshot:
        return Snapshot.from_processes(processes, at or self.clock())

    def resync(self, proposal_id: str) -> Snapshot:
        """Replace the proposal's snapshot with the current live assessment.

        Raises:
            NotFoundError: proposal missing, or no linked live assessment resolves.
            ValidationError: proposal has no customer or no linked assessment.
        """
        proposal = self.proposal_store.get(proposal_id)
        if proposal is None:
            raise NotFoundError(resource="Proposal", resource_id=proposal_id)

        if not proposal.customer_id or not proposal.linked_assessment_ids:
            raise ValidationError(
                "Proposal is not linked to an assessment",
                details={"linkedAssessmentIds": "required"},
            )

        assessment = resolve_linked_assessment(
            self.assessment_store, proposal.customer_id, proposal.linked_assessment_ids,
        )
        if assessment is None:
            raise NotFoundError(resource="Assessment", resource_id=proposal.linked_assessment_ids[0])

        snapshot = self.freeze(parse_processes(assessment.processes))
        self.proposal_store.update(proposal_id, {"snapshot": snapshot.to_dict()})
        logger.info(
            "Snapshot refreshed processes=%d", len(snapshot.processes),
            extra={"proposal_id": proposal_id},
        )
        return snapshot
