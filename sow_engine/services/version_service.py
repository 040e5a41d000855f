"""
VersionManager — immutable export history for proposals.

Every export freezes the proposal's content and sections into a numbered
ProposalVersion row. Numbers per proposal run 1, 2, 3, ... with no gaps or
repeats; the (proposal_id, version_number) unique constraint in the store
turns a lost race into ConflictError. Nothing here retries.

Regenerating an old export must read the frozen copy (`export_source`),
never the live proposal.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone

from sow_engine.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _content_snapshot(proposal) -> dict:
    return copy.deepcopy(proposal.content or {})


class VersionManager:
    def __init__(self, proposal_store, section_store, version_store, clock=None) -> None:
        self.proposal_store = proposal_store
        self.section_store = section_store
        self.version_store = version_store
        self.clock = clock or _utcnow

    def create_version(self, proposal_id: str, exported_by: str | None = None,
                       artifact_url: str | None = None):
        """Freeze the proposal as its next version and bump ``current_version``.

        Raises:
            NotFoundError: proposal does not exist.
            ConflictError: another export took the same version number.
        """
        proposal = self.proposal_store.get(proposal_id)
        if proposal is None:
            raise NotFoundError(resource="Proposal", resource_id=proposal_id)

        content = _content_snapshot(proposal)
        sections = copy.deepcopy([s.to_dict() for s in self.section_store.list(proposal_id)])
        next_number = self.version_store.max_version_number(proposal_id) + 1

        version = self.version_store.insert({
            "proposal_id": proposal_id,
            "version_number": next_number,
            "content_snapshot": content,
            "sections_snapshot": sections,
            "exported_by": exported_by,
            "exported_at": self.clock(),
            "artifact_url": artifact_url,
        })
        self.proposal_store.update(proposal_id, {"current_version": next_number})

        logger.info(
            "Proposal version created", extra={"proposal_id": proposal_id, "version_number": next_number},
        )
        return version

    def get_version(self, version_id: str, expected_proposal_id: str):
        """A version owned by another proposal is reported as missing."""
        version = self.version_store.get_by_id(version_id)
        if version is None or version.proposal_id != expected_proposal_id:
            raise NotFoundError(resource="Version", resource_id=version_id)
        return version

    def list_versions(self, proposal_id: str) -> list[dict]:
        """Version metadata, newest first."""
        if self.proposal_store.get(proposal_id) is None:
            raise NotFoundError(resource="Proposal", resource_id=proposal_id)
        return [v.to_dict(include_snapshots=False) for v in self.version_store.list_by_proposal(proposal_id)]

    def export_source(self, version_id: str, expected_proposal_id: str) -> dict:
        """Frozen ``{content, sections}`` for regenerating an old export."""
        version = self.get_version(version_id, expected_proposal_id)
        return {
            "versionNumber": version.version_number,
            "content": copy.deepcopy(version.content_snapshot or {}),
            "sections": copy.deepcopy(version.sections_snapshot or []),
        }
