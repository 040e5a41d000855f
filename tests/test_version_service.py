"""Tests for sow_engine.services.version_service."""

from unittest.mock import patch

import pytest

from sow_engine.core.exceptions import ConflictError, NotFoundError
from sow_engine.models import db
from sow_engine.services.version_service import VersionManager
from sow_engine.stores import ProposalStore, SectionStore, VersionStore


def _manager():
    return VersionManager(ProposalStore(), SectionStore(), VersionStore())


def test_serial_exports_number_one_to_n(make_proposal):
    proposal = make_proposal()
    manager = _manager()

    numbers = [manager.create_version(proposal.id, exported_by="pm@example.com").version_number
               for _ in range(4)]

    assert numbers == [1, 2, 3, 4]
    assert ProposalStore().get(proposal.id).current_version == 4


def test_numbers_are_per_proposal(make_proposal):
    first = make_proposal()
    second = make_proposal(title="Other Statement of Work")
    manager = _manager()

    manager.create_version(first.id)
    manager.create_version(first.id)

    assert manager.create_version(second.id).version_number == 1


def test_version_snapshot_survives_later_edits(make_proposal, make_section):
    proposal = make_proposal(content={"executiveSummary": "Original summary"})
    section = make_section(proposal, title="Lead Routing", deliverables=["Map routing rules"], hours=10, rate=200)
    manager = _manager()
    version = manager.create_version(proposal.id)

    ProposalStore().update(proposal.id, {"content": {"executiveSummary": "Rewritten"}, "title": "Renamed"})
    SectionStore().update(section.id, {"title": "Changed", "deliverables": []})

    source = manager.export_source(version.id, proposal.id)
    assert source["versionNumber"] == 1
    assert source["content"] == {"executiveSummary": "Original summary"}
    assert source["sections"][0]["title"] == "Lead Routing"
    assert source["sections"][0]["deliverables"] == ["Map routing rules"]


def test_list_versions_newest_first_without_snapshots(make_proposal):
    proposal = make_proposal()
    manager = _manager()
    for _ in range(3):
        manager.create_version(proposal.id)

    versions = manager.list_versions(proposal.id)

    assert [v["versionNumber"] for v in versions] == [3, 2, 1]
    assert "contentSnapshot" not in versions[0]


def test_get_version_under_wrong_proposal_is_not_found(make_proposal):
    owner = make_proposal()
    other = make_proposal(title="Other")
    version = _manager().create_version(owner.id)

    with pytest.raises(NotFoundError):
        _manager().get_version(version.id, other.id)
    with pytest.raises(NotFoundError):
        _manager().export_source(version.id, other.id)


def test_create_version_for_missing_proposal():
    with pytest.raises(NotFoundError):
        _manager().create_version("missing")


def test_racing_duplicate_number_raises_conflict(make_proposal):
    proposal = make_proposal()
    manager = _manager()
    manager.create_version(proposal.id)

    # Simulate a concurrent export that read the same max before our insert
    with patch.object(VersionStore, "max_version_number", return_value=0):
        with pytest.raises(ConflictError) as exc_info:
            manager.create_version(proposal.id)

    assert exc_info.value.details == {"proposalId": proposal.id, "versionNumber": 1}
    # Session is usable after the rollback and numbering continues
    db.session.expire_all()
    assert manager.create_version(proposal.id).version_number == 2


def test_content_snapshot_equals_proposal_content(make_proposal):
    content = {"executiveSummary": "Original", "assumptions": ["Remote delivery"]}
    proposal = make_proposal(content=content)
    manager = _manager()

    version = manager.create_version(proposal.id)

    assert manager.get_version(version.id, proposal.id).content_snapshot == content


def test_content_snapshot_of_empty_content_is_empty_dict(make_proposal):
    proposal = make_proposal(content={})
    manager = _manager()
    version = manager.create_version(proposal.id)
    assert manager.get_version(version.id, proposal.id).content_snapshot == {}
