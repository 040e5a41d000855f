"""
Domain vocabularies and value records.

Validated records for data that the engine stores as JSON (assessment
processes, frozen snapshots, section drafts) and for computed values
(drift reports, auto-build results). ``from_dict`` is the boundary check:
malformed payloads raise ValidationError instead of being trusted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sow_engine.core.exceptions import ValidationError

# ── Fixed vocabularies ─────────────────────────────────────────────────────

PROCESS_STATUSES = ("healthy", "careful", "warning", "unable", "na")
CRITICAL_STATUSES = frozenset({"warning", "unable"})

# Resolution order for linked assessments is the tuple order
ASSESSMENT_TYPES = ("gtm", "clay", "cpq")
ASSESSMENT_TYPE_LABELS = {
    "gtm": "GTM Operations",
    "clay": "Clay Enrichment & Automation",
    "cpq": "Quote-to-Cash",
}

PROPOSAL_TYPES = ("clay", "q2c", "embedded", "custom")
PROPOSAL_STATUSES = ("draft", "review", "sent", "accepted", "rejected")
OVERALL_RATINGS = ("healthy", "moderate", "warning", "critical")

DEFAULT_FUNCTION = "Other"


def _require_mapping(payload: Any, label: str) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError(f"{label} must be an object", details={label: type(payload).__name__})
    return payload


# ── Assessment input ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProcessAssessment:
    """One graded process from a live assessment."""

    name: str
    status: str
    function: str = DEFAULT_FUNCTION
    outcome: str = ""
    add_to_engagement: bool = False

    @classmethod
    def from_dict(cls, payload: Any) -> ProcessAssessment:
        data = _require_mapping(payload, "process")
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Process name is required", details={"name": "required"})
        status = data.get("status")
        if status not in PROCESS_STATUSES:
            raise ValidationError(
                f"Invalid status {status!r} for process {name!r}",
                details={"status": f"must be one of {', '.join(PROCESS_STATUSES)}"},
            )
        return cls(
            name=name,
            status=status,
            function=(data.get("function") or "").strip() or DEFAULT_FUNCTION,
            outcome=(data.get("outcome") or "").strip(),
            add_to_engagement=bool(data.get("addToEngagement", False)),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "function": self.function,
            "status": self.status,
            "outcome": self.outcome,
            "addToEngagement": self.add_to_engagement,
        }


def parse_processes(payload: Any) -> list[ProcessAssessment]:
    """Validate a raw ``processes`` list; ``None`` is treated as empty."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValidationError("processes must be a list", details={"processes": type(payload).__name__})
    return [ProcessAssessment.from_dict(p) for p in payload]


# ── Snapshot ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SnapshotEntry:
    name: str
    status: str
    add_to_engagement: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "status": self.status, "addToEngagement": self.add_to_engagement}


@dataclass(frozen=True)
class Snapshot:
    """Frozen copy of an assessment embedded in a proposal."""

    processes: tuple[SnapshotEntry, ...]
    snapshot_at: str

    @classmethod
    def from_processes(cls, processes: list[ProcessAssessment], at: datetime) -> Snapshot:
        return cls(
            processes=tuple(
                SnapshotEntry(p.name, p.status, p.add_to_engagement) for p in processes
            ),
            snapshot_at=at.isoformat(),
        )

    @classmethod
    def from_dict(cls, payload: Any) -> Snapshot | None:
        """Parse a stored snapshot; returns None when no process list is present."""
        if payload is None:
            return None
        data = _require_mapping(payload, "snapshot")
        raw = data.get("processes")
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise ValidationError("snapshot.processes must be a list")
        entries = []
        for item in raw:
            item = _require_mapping(item, "snapshot.process")
            name = item.get("name")
            if not name:
                raise ValidationError("Snapshot process name is required")
            status = item.get("status")
            if status not in PROCESS_STATUSES:
                raise ValidationError(
                    f"Invalid status {status!r} for snapshot process {name!r}",
                    details={"status": f"must be one of {', '.join(PROCESS_STATUSES)}"},
                )
            entries.append(SnapshotEntry(
                name=name,
                status=status,
                add_to_engagement=bool(item.get("addToEngagement", False)),
            ))
        return cls(processes=tuple(entries), snapshot_at=data.get("snapshotAt") or "")

    def to_dict(self) -> dict:
        return {
            "processes": [e.to_dict() for e in self.processes],
            "snapshotAt": self.snapshot_at,
        }


# ── Drift ──────────────────────────────────────────────────────────────────


@dataclass
class DriftReport:
    """Divergence between a proposal's snapshot and the live assessment."""

    has_changes: bool = False
    added: list[dict] = field(default_factory=list)
    removed: list[dict] = field(default_factory=list)
    status_changed: list[dict] = field(default_factory=list)
    snapshot_at: str | None = None
    no_snapshot: bool = False
    no_diagnostic: bool = False
    diagnostic_not_found: bool = False

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.removed) + len(self.status_changed)

    def to_dict(self) -> dict:
        if self.no_snapshot:
            return {"hasChanges": False, "noSnapshot": True}
        if self.no_diagnostic:
            return {"hasChanges": False, "noDiagnostic": True}
        if self.diagnostic_not_found:
            return {"hasChanges": False, "diagnosticNotFound": True}
        return {
            "hasChanges": self.has_changes,
            "changes": {
                "added": self.added,
                "removed": self.removed,
                "statusChanged": self.status_changed,
            },
            "snapshotAt": self.snapshot_at,
            "totalChanges": self.total_changes,
        }


# ── Auto-build output ──────────────────────────────────────────────────────


@dataclass
class SectionDraft:
    """A section proposed by the auto-builder, not yet persisted."""

    title: str
    description: str
    deliverables: list[str]
    addressed_process_names: list[str]
    sort_order: int
    hours: float = 0
    rate: float = 0
    start_date: str | None = None
    end_date: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "deliverables": list(self.deliverables),
            "hours": self.hours,
            "rate": self.rate,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "addressedProcessNames": list(self.addressed_process_names),
            "sortOrder": self.sort_order,
        }


@dataclass
class AutoBuildResult:
    sections: list[SectionDraft]
    executive_summary: str
    status_counts: dict[str, int]
    overall_rating: str

    def to_dict(self) -> dict:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "executiveSummary": self.executive_summary,
            "statusCounts": dict(self.status_counts),
            "overallRating": self.overall_rating,
        }
