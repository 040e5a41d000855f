"""
Persistence stores consumed by the engine services.

Each store is a small object constructed with a SQLAlchemy session and passed
into the services that need it, so a service never reaches for a global
connection. Writes commit immediately: the task-tracker push relies on every
back-reference being durable the moment it is recorded.

Database failures are rolled back and re-raised as ExternalServiceError with
the failing step name; a duplicate version number becomes ConflictError.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sow_engine.core.exceptions import ConflictError, ExternalServiceError
from sow_engine.domain import SectionDraft
from sow_engine.models import db
from sow_engine.models.assessment import Assessment
from sow_engine.models.proposal import Proposal, ProposalSection, ProposalVersion
from sow_engine.utils.helpers import parse_date

logger = logging.getLogger(__name__)


class _BaseStore:
    name = "store"

    def __init__(self, session=None) -> None:
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @contextmanager
    def _call(self, op: str):
        """Translate database errors into ExternalServiceError for ``op``."""
        step = f"{self.name}.{op}"
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Store call failed step=%s error=%s", step, exc, extra={"step": step})
            raise ExternalServiceError(step, str(exc)[:500]) from exc


# ═════════════════════════════════════════════════════════════════════════════
# Assessments (read-only)
# ═════════════════════════════════════════════════════════════════════════════


class AssessmentStore(_BaseStore):
    name = "assessment_store"

    def get_by_customer_and_type(self, customer_id: str, assessment_type: str) -> Assessment | None:
        with self._call("get_by_customer_and_type"):
            stmt = select(Assessment).where(
                Assessment.customer_id == customer_id,
                Assessment.assessment_type == assessment_type,
            )
            return self.session.execute(stmt).scalar_one_or_none()


# ═════════════════════════════════════════════════════════════════════════════
# Proposals
# ═════════════════════════════════════════════════════════════════════════════


class ProposalStore(_BaseStore):
    name = "proposal_store"

    def get(self, proposal_id: str) -> Proposal | None:
        with self._call("get"):
            return self.session.get(Proposal, proposal_id)

    def list(self, customer_id: str | None = None, status: str | None = None) -> list[Proposal]:
        """Proposals newest first, optionally filtered by customer and status."""
        with self._call("list"):
            stmt = select(Proposal)
            if customer_id:
                stmt = stmt.where(Proposal.customer_id == customer_id)
            if status:
                stmt = stmt.where(Proposal.status == status)
            stmt = stmt.order_by(Proposal.created_at.desc(), Proposal.id)
            return list(self.session.execute(stmt).scalars().all())

    def create(self, draft: dict) -> Proposal:
        with self._call("create"):
            proposal = Proposal(**draft)
            self.session.add(proposal)
            self.session.commit()
            return proposal

    def update(self, proposal_id: str, patch: dict) -> Proposal | None:
        """Apply ``patch`` (model attribute names) and commit. None if missing."""
        with self._call("update"):
            proposal = self.session.get(Proposal, proposal_id)
            if proposal is None:
                return None
            for key, value in patch.items():
                setattr(proposal, key, value)
            self.session.commit()
            return proposal


# ═════════════════════════════════════════════════════════════════════════════
# Sections
# ═════════════════════════════════════════════════════════════════════════════


class SectionStore(_BaseStore):
    name = "section_store"

    def list(self, proposal_id: str) -> list[ProposalSection]:
        with self._call("list"):
            stmt = (
                select(ProposalSection)
                .where(ProposalSection.proposal_id == proposal_id)
                .order_by(ProposalSection.sort_order)
            )
            return list(self.session.execute(stmt).scalars().all())

    def get(self, section_id: str) -> ProposalSection | None:
        with self._call("get"):
            return self.session.get(ProposalSection, section_id)

    def next_sort_order(self, proposal_id: str) -> int:
        with self._call("next_sort_order"):
            stmt = select(func.max(ProposalSection.sort_order)).where(
                ProposalSection.proposal_id == proposal_id,
            )
            current = self.session.execute(stmt).scalar()
            return 0 if current is None else current + 1

    def create(self, proposal_id: str, fields: dict) -> ProposalSection:
        """Append a section after the current last one."""
        with self._call("create"):
            section = ProposalSection(
                proposal_id=proposal_id,
                sort_order=self.next_sort_order(proposal_id),
                **fields,
            )
            self.session.add(section)
            self.session.commit()
            return section

    def delete(self, section_id: str) -> bool:
        with self._call("delete"):
            section = self.session.get(ProposalSection, section_id)
            if section is None:
                return False
            self.session.delete(section)
            self.session.commit()
            return True

    def reorder(self, proposal_id: str, ordering: dict[str, int]) -> list[ProposalSection]:
        """Apply ``{section_id: sort_order}`` covering every section of the proposal.

        Rows are parked on distinct negative positions first so that no
        intermediate flush collides on (proposal_id, sort_order).
        """
        with self._call("reorder"):
            sections = self.list(proposal_id)
            for idx, section in enumerate(sections):
                section.sort_order = -(idx + 1)
            self.session.flush()
            for section in sections:
                section.sort_order = ordering[section.id]
            self.session.commit()
            return self.list(proposal_id)

    def bulk_create(self, proposal_id: str, drafts: list[SectionDraft]) -> list[ProposalSection]:
        with self._call("bulk_create"):
            rows = [
                ProposalSection(
                    proposal_id=proposal_id,
                    title=d.title,
                    description=d.description or None,
                    deliverables=list(d.deliverables),
                    hours=d.hours,
                    rate=d.rate,
                    start_date=parse_date(d.start_date),
                    end_date=parse_date(d.end_date),
                    addressed_process_names=list(d.addressed_process_names),
                    sort_order=d.sort_order if d.sort_order is not None else idx,
                )
                for idx, d in enumerate(drafts)
            ]
            self.session.add_all(rows)
            self.session.commit()
            return rows

    def update(self, section_id: str, patch: dict) -> ProposalSection | None:
        with self._call("update"):
            section = self.session.get(ProposalSection, section_id)
            if section is None:
                return None
            for key, value in patch.items():
                setattr(section, key, value)
            self.session.commit()
            return section


# ═════════════════════════════════════════════════════════════════════════════
# Versions (append-only)
# ═════════════════════════════════════════════════════════════════════════════


class VersionStore(_BaseStore):
    name = "version_store"

    def max_version_number(self, proposal_id: str) -> int:
        with self._call("max_version_number"):
            stmt = select(func.max(ProposalVersion.version_number)).where(
                ProposalVersion.proposal_id == proposal_id,
            )
            return self.session.execute(stmt).scalar() or 0

    def insert(self, record: dict) -> ProposalVersion:
        """Insert one version row; the unique constraint rejects duplicates."""
        try:
            version = ProposalVersion(**record)
            self.session.add(version)
            self.session.flush()  # triggers constraint before commit
            self.session.commit()
            return version
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(
                "ProposalVersion", "version_number", str(record.get("version_number")),
                details={
                    "proposalId": record.get("proposal_id"),
                    "versionNumber": record.get("version_number"),
                },
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise ExternalServiceError(f"{self.name}.insert", str(exc)[:500]) from exc

    def list_by_proposal(self, proposal_id: str) -> list[ProposalVersion]:
        with self._call("list_by_proposal"):
            stmt = (
                select(ProposalVersion)
                .where(ProposalVersion.proposal_id == proposal_id)
                .order_by(ProposalVersion.version_number.desc())
            )
            return list(self.session.execute(stmt).scalars().all())

    def get_by_id(self, version_id: str) -> ProposalVersion | None:
        with self._call("get_by_id"):
            return self.session.get(ProposalVersion, version_id)
