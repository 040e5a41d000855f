"""
Assessment — live health assessment of a customer's business processes.

Authored and edited outside this engine (intake forms, import tools).
The engine only reads it: one live row per (customer_id, assessment_type).
"""

import uuid
from datetime import datetime, timezone

from sow_engine.models import db


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class Assessment(db.Model):
    """Graded survey of a customer's processes, one entry per process."""

    __tablename__ = "assessments"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    customer_id = db.Column(db.String(64), nullable=False, index=True)
    assessment_type = db.Column(
        db.String(20), nullable=False,
        comment="gtm | clay | cpq",
    )
    processes = db.Column(
        db.JSON, nullable=False, default=list,
        comment="[{name, function, status, outcome, addToEngagement}]",
    )
    assessed_by = db.Column(db.String(150), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("customer_id", "assessment_type", name="uq_assessment_customer_type"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "assessmentType": self.assessment_type,
            "processes": list(self.processes or []),
            "assessedBy": self.assessed_by,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Assessment {self.id} {self.customer_id}/{self.assessment_type}>"
