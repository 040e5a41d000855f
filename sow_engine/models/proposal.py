"""
Proposal (Statement of Work) models.

Proposal, ProposalSection, ProposalVersion.

ProposalVersion rows are append-only: one row per export, never updated or
deleted. The (proposal_id, version_number) unique constraint is the guard
against two racing exports receiving the same number.
"""

import uuid
from datetime import datetime, timezone

from sow_engine.models import db


__all__ = [
    "Proposal",
    "ProposalSection",
    "ProposalVersion",
]


# ── Helpers ──────────────────────────────────────────────────────────────────

def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═════════════════════════════════════════════════════════════════════════════
# Proposal
# ═════════════════════════════════════════════════════════════════════════════

class Proposal(db.Model):
    """Scope/cost/timeline document drafted from an assessment."""

    __tablename__ = "proposals"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    customer_id = db.Column(db.String(64), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    proposal_type = db.Column(
        db.String(20), nullable=False, default="custom",
        comment="clay | q2c | embedded | custom",
    )
    status = db.Column(
        db.String(20), nullable=False, default="draft",
        comment="draft | review | sent | accepted | rejected",
    )
    linked_assessment_ids = db.Column(db.JSON, nullable=False, default=list)
    snapshot = db.Column(
        db.JSON, nullable=True,
        comment="{processes: [{name, status, addToEngagement}], snapshotAt}",
    )
    overall_rating = db.Column(
        db.String(20), nullable=True,
        comment="healthy | moderate | warning | critical",
    )
    total_hours = db.Column(db.Float, nullable=False, default=0)
    total_investment = db.Column(db.Float, nullable=False, default=0)
    current_version = db.Column(db.Integer, nullable=False, default=0)
    external_project_id = db.Column(db.String(64), nullable=True)
    external_project_url = db.Column(db.String(500), nullable=True)
    content = db.Column(db.JSON, nullable=False, default=dict)
    created_by = db.Column(db.String(150), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    sections = db.relationship(
        "ProposalSection", backref="proposal", lazy="select",
        cascade="all, delete-orphan", order_by="ProposalSection.sort_order",
    )

    @property
    def external_project_ref(self) -> dict | None:
        if not self.external_project_id:
            return None
        return {"id": self.external_project_id, "url": self.external_project_url}

    def to_dict(self, include_sections: bool = False) -> dict:
        d = {
            "id": self.id,
            "customerId": self.customer_id,
            "title": self.title,
            "proposalType": self.proposal_type,
            "status": self.status,
            "linkedAssessmentIds": list(self.linked_assessment_ids or []),
            "snapshot": self.snapshot,
            "overallRating": self.overall_rating,
            "totalHours": self.total_hours,
            "totalInvestment": self.total_investment,
            "currentVersion": self.current_version,
            "externalProjectRef": self.external_project_ref,
            "content": self.content or {},
            "createdBy": self.created_by,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_sections:
            d["sections"] = [s.to_dict() for s in self.sections]
        return d

    def __repr__(self) -> str:
        return f"<Proposal {self.id} {self.title!r} {self.status}>"


# ═════════════════════════════════════════════════════════════════════════════
# ProposalSection
# ═════════════════════════════════════════════════════════════════════════════

class ProposalSection(db.Model):
    """Scoped unit of work within a proposal."""

    __tablename__ = "proposal_sections"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    proposal_id = db.Column(
        db.String(36), db.ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    deliverables = db.Column(db.JSON, nullable=False, default=list)
    hours = db.Column(db.Float, nullable=True)
    rate = db.Column(db.Float, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    addressed_process_names = db.Column(
        db.JSON, nullable=False, default=list,
        comment="Process names from the snapshot at creation time; not repaired when stale",
    )
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    external_milestone_id = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("proposal_id", "sort_order", name="uq_section_proposal_sort"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "proposalId": self.proposal_id,
            "title": self.title,
            "description": self.description,
            "deliverables": list(self.deliverables or []),
            "hours": self.hours,
            "rate": self.rate,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "addressedProcessNames": list(self.addressed_process_names or []),
            "sortOrder": self.sort_order,
            "externalMilestoneId": self.external_milestone_id,
        }

    def __repr__(self) -> str:
        return f"<ProposalSection {self.id} #{self.sort_order} {self.title!r}>"


# ═════════════════════════════════════════════════════════════════════════════
# ProposalVersion
# ═════════════════════════════════════════════════════════════════════════════

class ProposalVersion(db.Model):
    """Immutable numbered snapshot of a proposal taken at export time."""

    __tablename__ = "proposal_versions"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    proposal_id = db.Column(
        db.String(36), db.ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version_number = db.Column(db.Integer, nullable=False)
    content_snapshot = db.Column(db.JSON, nullable=False, default=dict)
    sections_snapshot = db.Column(db.JSON, nullable=False, default=list)
    exported_by = db.Column(db.String(150), nullable=True)
    exported_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    artifact_url = db.Column(db.String(500), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("proposal_id", "version_number", name="uq_version_proposal_number"),
    )

    def to_dict(self, include_snapshots: bool = True) -> dict:
        d = {
            "id": self.id,
            "proposalId": self.proposal_id,
            "versionNumber": self.version_number,
            "exportedBy": self.exported_by,
            "exportedAt": _iso(self.exported_at),
            "artifactUrl": self.artifact_url,
        }
        if include_snapshots:
            d["contentSnapshot"] = self.content_snapshot or {}
            d["sectionsSnapshot"] = list(self.sections_snapshot or [])
        return d

    def __repr__(self) -> str:
        return f"<ProposalVersion {self.proposal_id} v{self.version_number}>"
