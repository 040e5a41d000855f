"""
ProposalService — proposal lifecycle around the Auto-Builder.

Creates a draft proposal from a live assessment (sections, summary, rating,
frozen snapshot), lets users add, edit, delete and reorder sections while
keeping the cost totals in step, and moves the proposal through its status
vocabulary.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sow_engine.core.exceptions import NotFoundError, ValidationError
from sow_engine.domain import (
    ASSESSMENT_TYPES,
    PROPOSAL_STATUSES,
    PROPOSAL_TYPES,
    parse_processes,
)
from sow_engine.services.auto_builder import GROUP_KEYS, auto_build
from sow_engine.services.snapshot_service import SnapshotService
from sow_engine.utils.helpers import parse_date_input

logger = logging.getLogger(__name__)

DEFAULT_ASSUMPTIONS = [
    "Client will provide timely access to required systems and stakeholders.",
    "Scope changes will be managed through a change request process.",
    "All work will be performed remotely unless otherwise agreed.",
]

DEFAULT_ACCEPTANCE_CRITERIA = [
    "Deliverables reviewed and approved by client stakeholder.",
    "Knowledge transfer session completed for each section.",
]

# Section fields a caller may edit, request key → model attribute
_EDITABLE_SECTION_FIELDS = {
    "title": "title",
    "description": "description",
    "deliverables": "deliverables",
    "hours": "hours",
    "rate": "rate",
    "startDate": "start_date",
    "endDate": "end_date",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require(data: dict, *fields: str) -> None:
    missing = [f for f in fields if not data.get(f)]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}",
            details={f: "required" for f in missing},
        )


def _require_choice(value, choices, field: str) -> None:
    if value not in choices:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            details={field: f"must be one of {', '.join(choices)}"},
        )


def _non_negative_number(value, field: str):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValidationError(f"Invalid {field}: {value!r}", details={field: "non-negative number"})
    return value


def _section_fields(data: dict) -> dict:
    """Validate editable section keys in ``data`` and map them to model attributes."""
    fields = {}
    for key, attr in _EDITABLE_SECTION_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if key in ("hours", "rate"):
            value = _non_negative_number(value, key)
        elif key in ("startDate", "endDate"):
            value = parse_date_input(value, key)
        elif key == "deliverables":
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValidationError("deliverables must be a list of strings",
                                      details={"deliverables": "list[str]"})
        elif key == "title":
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("title must be a non-empty string", details={"title": "required"})
            value = value.strip()
        elif key == "description":
            if value is not None and not isinstance(value, str):
                raise ValidationError("description must be a string", details={"description": "str"})
        fields[attr] = value
    return fields


class ProposalService:
    def __init__(self, assessment_store, proposal_store, section_store, clock=None) -> None:
        self.assessment_store = assessment_store
        self.proposal_store = proposal_store
        self.section_store = section_store
        self.clock = clock or _utcnow
        self.snapshots = SnapshotService(assessment_store, proposal_store, clock=self.clock)

    def get(self, proposal_id: str):
        proposal = self.proposal_store.get(proposal_id)
        if proposal is None:
            raise NotFoundError(resource="Proposal", resource_id=proposal_id)
        return proposal

    # ── Create ───────────────────────────────────────────────────────────

    def create_from_assessment(self, data: dict) -> dict:
        """Draft a proposal from the customer's live assessment.

        Body keys: customerId, assessmentId, assessmentType (required);
        proposalType (default "custom"), customerName, createdBy, groupBy.

        Returns ``{"proposal": Proposal, "sections": [ProposalSection], "build": AutoBuildResult}``.
        """
        _require(data, "customerId", "assessmentId", "assessmentType")
        assessment_type = data["assessmentType"]
        proposal_type = data.get("proposalType") or "custom"
        group_by = data.get("groupBy") or "function"
        _require_choice(assessment_type, ASSESSMENT_TYPES, "assessmentType")
        _require_choice(proposal_type, PROPOSAL_TYPES, "proposalType")
        _require_choice(group_by, GROUP_KEYS, "groupBy")

        customer_id = str(data["customerId"])
        assessment = self.assessment_store.get_by_customer_and_type(customer_id, assessment_type)
        if assessment is None or str(assessment.id) != str(data["assessmentId"]):
            raise NotFoundError(resource="Assessment", resource_id=data["assessmentId"])

        processes = parse_processes(assessment.processes)
        customer_name = (data.get("customerName") or "").strip()
        build = auto_build(processes, customer_name or None, assessment_type, group_by)

        proposal = self.proposal_store.create({
            "customer_id": customer_id,
            "title": f"{customer_name} Statement of Work" if customer_name else "Statement of Work",
            "proposal_type": proposal_type,
            "status": "draft",
            "linked_assessment_ids": [str(assessment.id)],
            "snapshot": self.snapshots.freeze(processes).to_dict(),
            "overall_rating": build.overall_rating,
            "content": {
                "executiveSummary": build.executive_summary,
                "clientInfo": {"company": customer_name} if customer_name else {},
                "assumptions": list(DEFAULT_ASSUMPTIONS),
                "acceptanceCriteria": list(DEFAULT_ACCEPTANCE_CRITERIA),
                "statusCounts": build.status_counts,
            },
            "created_by": data.get("createdBy"),
        })

        sections = self.section_store.bulk_create(proposal.id, build.sections) if build.sections else []
        self.recalculate_totals(proposal.id)

        logger.info(
            "Proposal drafted from assessment sections=%d rating=%s",
            len(sections), build.overall_rating,
            extra={"proposal_id": proposal.id},
        )
        return {"proposal": proposal, "sections": sections, "build": build}

    # ── Totals ───────────────────────────────────────────────────────────

    def recalculate_totals(self, proposal_id: str):
        """totalHours = Σ hours; totalInvestment = Σ hours × rate."""
        self.get(proposal_id)
        total_hours = 0.0
        total_investment = 0.0
        for section in self.section_store.list(proposal_id):
            hours = float(section.hours or 0)
            total_hours += hours
            total_investment += hours * float(section.rate or 0)
        return self.proposal_store.update(proposal_id, {
            "total_hours": total_hours,
            "total_investment": total_investment,
        })

    # ── Listing ──────────────────────────────────────────────────────────

    def list_proposals(self, customer_id: str | None = None, status: str | None = None) -> list:
        """Proposals newest first; unknown status filters are rejected."""
        if status:
            _require_choice(status, PROPOSAL_STATUSES, "status")
        return self.proposal_store.list(customer_id=customer_id, status=status)

    # ── Sections ─────────────────────────────────────────────────────────

    def _owned_section(self, proposal_id: str, section_id: str):
        section = self.section_store.get(section_id)
        if section is None or section.proposal_id != proposal_id:
            raise NotFoundError(resource="Section", resource_id=section_id)
        return section

    def list_sections(self, proposal_id: str) -> list:
        self.get(proposal_id)
        return self.section_store.list(proposal_id)

    def create_section(self, proposal_id: str, data: dict):
        """Append a user-authored section and refresh the proposal totals."""
        self.get(proposal_id)
        if "title" not in data:
            raise ValidationError("title is required", details={"title": "required"})
        fields = _section_fields(data)
        fields.setdefault("deliverables", [])
        fields["addressed_process_names"] = []

        section = self.section_store.create(proposal_id, fields)
        self.recalculate_totals(proposal_id)
        logger.info("Section added sort_order=%d", section.sort_order, extra={"proposal_id": proposal_id})
        return section

    def update_section(self, proposal_id: str, section_id: str, data: dict):
        """Edit one section and refresh the proposal totals."""
        self.get(proposal_id)
        self._owned_section(proposal_id, section_id)

        patch = _section_fields(data)
        if not patch:
            raise ValidationError("No editable fields supplied",
                                  details={"fields": ", ".join(_EDITABLE_SECTION_FIELDS)})

        section = self.section_store.update(section_id, patch)
        self.recalculate_totals(proposal_id)
        return section

    def delete_section(self, proposal_id: str, section_id: str) -> None:
        self.get(proposal_id)
        self._owned_section(proposal_id, section_id)
        self.section_store.delete(section_id)
        self.recalculate_totals(proposal_id)
        logger.info("Section deleted id=%s", section_id, extra={"proposal_id": proposal_id})

    def reorder_sections(self, proposal_id: str, ordering) -> list:
        """Apply ``[{id, sortOrder}]``; every section must appear exactly once."""
        self.get(proposal_id)
        if not isinstance(ordering, list) or not all(isinstance(o, dict) for o in ordering):
            raise ValidationError("ordering must be a list of {id, sortOrder}",
                                  details={"ordering": "list[{id, sortOrder}]"})

        positions = {}
        for entry in ordering:
            sort_order = entry.get("sortOrder")
            if isinstance(sort_order, bool) or not isinstance(sort_order, int) or sort_order < 0:
                raise ValidationError(f"Invalid sortOrder: {sort_order!r}",
                                      details={"sortOrder": "non-negative integer"})
            section_id = entry.get("id")
            if not isinstance(section_id, str):
                raise ValidationError("Each ordering entry needs a section id", details={"id": "required"})
            positions[section_id] = sort_order

        current_ids = {s.id for s in self.section_store.list(proposal_id)}
        if len(positions) != len(ordering) or set(positions) != current_ids:
            raise ValidationError("ordering must list every section of the proposal exactly once",
                                  details={"ordering": "section ids mismatch"})
        if len(set(positions.values())) != len(positions):
            raise ValidationError("sortOrder values must be unique",
                                  details={"sortOrder": "duplicate"})

        return self.section_store.reorder(proposal_id, positions)

    # ── Status ───────────────────────────────────────────────────────────

    def update_status(self, proposal_id: str, status: str):
        _require_choice(status, PROPOSAL_STATUSES, "status")
        self.get(proposal_id)
        proposal = self.proposal_store.update(proposal_id, {"status": status})
        logger.info("Proposal status changed to %s", status, extra={"proposal_id": proposal_id})
        return proposal
