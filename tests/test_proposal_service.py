"""Tests for sow_engine.services.proposal_service."""

from datetime import datetime, timedelta, timezone

import pytest

from sow_engine.core.exceptions import NotFoundError, ValidationError
from sow_engine.services.proposal_service import ProposalService
from sow_engine.stores import AssessmentStore, ProposalStore, SectionStore

_PROCESSES = [
    {"name": "Lead Routing", "function": "Sales", "status": "warning", "addToEngagement": True,
     "outcome": "Faster speed-to-lead"},
    {"name": "Invoicing", "function": "Finance", "status": "healthy", "addToEngagement": False},
]


def _service():
    return ProposalService(AssessmentStore(), ProposalStore(), SectionStore())


def test_create_from_assessment_drafts_everything(make_assessment):
    assessment = make_assessment(processes=_PROCESSES)

    result = _service().create_from_assessment({
        "customerId": "cust-1",
        "assessmentId": assessment.id,
        "assessmentType": "gtm",
        "proposalType": "q2c",
        "customerName": "Acme",
        "createdBy": "pm@example.com",
    })

    proposal = result["proposal"]
    assert proposal.title == "Acme Statement of Work"
    assert proposal.status == "draft"
    assert proposal.proposal_type == "q2c"
    assert proposal.overall_rating == "warning"
    assert proposal.linked_assessment_ids == [assessment.id]
    assert [p["name"] for p in proposal.snapshot["processes"]] == ["Lead Routing", "Invoicing"]
    assert "Acme" in proposal.content["executiveSummary"]
    assert proposal.content["clientInfo"] == {"company": "Acme"}
    assert [s.title for s in result["sections"]] == ["Lead Routing"]
    assert result["sections"][0].addressed_process_names == ["Lead Routing"]
    assert proposal.total_hours == 0


def test_create_without_customer_name_uses_generic_title(make_assessment):
    assessment = make_assessment(processes=[])
    result = _service().create_from_assessment({
        "customerId": "cust-1", "assessmentId": assessment.id, "assessmentType": "gtm",
    })
    assert result["proposal"].title == "Statement of Work"
    assert result["sections"] == []


@pytest.mark.parametrize("body", [
    {"assessmentId": "a", "assessmentType": "gtm"},
    {"customerId": "c", "assessmentId": "a", "assessmentType": "erp"},
    {"customerId": "c", "assessmentId": "a", "assessmentType": "gtm", "proposalType": "bespoke"},
])
def test_create_rejects_invalid_bodies(body):
    with pytest.raises(ValidationError):
        _service().create_from_assessment(body)


def test_create_rejects_mismatched_assessment_id(make_assessment):
    make_assessment(processes=_PROCESSES)
    with pytest.raises(NotFoundError):
        _service().create_from_assessment({
            "customerId": "cust-1", "assessmentId": "other", "assessmentType": "gtm",
        })


def test_create_rejects_malformed_processes(make_assessment):
    assessment = make_assessment(processes=[{"name": "X", "status": "broken"}])
    with pytest.raises(ValidationError):
        _service().create_from_assessment({
            "customerId": "cust-1", "assessmentId": assessment.id, "assessmentType": "gtm",
        })


def test_section_edit_recalculates_totals(make_proposal, make_section):
    proposal = make_proposal()
    first = make_section(proposal, 0)
    second = make_section(proposal, 1)
    service = _service()

    service.update_section(proposal.id, first.id, {"hours": 10, "rate": 200})
    service.update_section(proposal.id, second.id, {"hours": 5.5, "rate": 100, "endDate": "2026-05-01"})

    stored = ProposalStore().get(proposal.id)
    assert stored.total_hours == 15.5
    assert stored.total_investment == 10 * 200 + 5.5 * 100


@pytest.mark.parametrize("patch", [
    {"hours": -1}, {"rate": "a lot"}, {"endDate": "soon"}, {"title": " "}, {"title": 123},
    {"title": None}, {"description": {"text": "x"}}, {"description": 5}, {},
])
def test_section_edit_validation(make_proposal, make_section, patch):
    proposal = make_proposal()
    section = make_section(proposal)
    with pytest.raises(ValidationError):
        _service().update_section(proposal.id, section.id, patch)


def test_section_edit_under_wrong_proposal(make_proposal, make_section):
    owner = make_proposal()
    other = make_proposal(title="Other")
    section = make_section(owner)
    with pytest.raises(NotFoundError):
        _service().update_section(other.id, section.id, {"hours": 1})


def test_update_status(make_proposal):
    proposal = make_proposal()
    assert _service().update_status(proposal.id, "review").status == "review"
    with pytest.raises(ValidationError):
        _service().update_status(proposal.id, "archived")
    with pytest.raises(NotFoundError):
        _service().update_status("missing", "sent")


# ── Listing ──────────────────────────────────────────────────────────────


def test_list_proposals_filters_and_orders_newest_first(make_proposal):
    base = datetime(2026, 3, 1, tzinfo=timezone.utc)
    older = make_proposal(created_at=base)
    newer = make_proposal(title="Newer", status="review", created_at=base + timedelta(days=1))
    make_proposal(title="Elsewhere", customer_id="cust-2", created_at=base + timedelta(days=2))
    service = _service()

    assert [p.id for p in service.list_proposals(customer_id="cust-1")] == [newer.id, older.id]
    assert [p.id for p in service.list_proposals(customer_id="cust-1", status="review")] == [newer.id]
    assert len(service.list_proposals()) == 3


def test_list_proposals_rejects_unknown_status():
    with pytest.raises(ValidationError):
        _service().list_proposals(status="archived")


# ── Section management ───────────────────────────────────────────────────


def test_create_section_appends_and_refreshes_totals(make_proposal, make_section):
    proposal = make_proposal()
    make_section(proposal, 0, hours=4, rate=100)
    make_section(proposal, 3)

    section = _service().create_section(proposal.id, {
        "title": "  Data Hygiene ", "hours": 6, "rate": 150, "deliverables": ["Dedupe accounts"],
    })

    assert section.title == "Data Hygiene"
    assert section.sort_order == 4
    assert section.addressed_process_names == []
    stored = ProposalStore().get(proposal.id)
    assert stored.total_hours == 10
    assert stored.total_investment == 4 * 100 + 6 * 150


def test_create_first_section_starts_at_zero(make_proposal):
    proposal = make_proposal()
    assert _service().create_section(proposal.id, {"title": "Kickoff"}).sort_order == 0


@pytest.mark.parametrize("body", [{}, {"title": ""}, {"title": 7}, {"title": "X", "hours": -2}])
def test_create_section_validation(make_proposal, body):
    proposal = make_proposal()
    with pytest.raises(ValidationError):
        _service().create_section(proposal.id, body)


def test_create_section_for_missing_proposal():
    with pytest.raises(NotFoundError):
        _service().create_section("missing", {"title": "X"})


def test_delete_section_refreshes_totals(make_proposal, make_section):
    proposal = make_proposal()
    keep = make_section(proposal, 0, hours=2, rate=100)
    drop = make_section(proposal, 1, hours=8, rate=100)
    service = _service()
    service.recalculate_totals(proposal.id)

    service.delete_section(proposal.id, drop.id)

    assert [s.id for s in SectionStore().list(proposal.id)] == [keep.id]
    stored = ProposalStore().get(proposal.id)
    assert stored.total_hours == 2
    assert stored.total_investment == 200


def test_delete_section_under_wrong_proposal(make_proposal, make_section):
    owner = make_proposal()
    other = make_proposal(title="Other")
    section = make_section(owner)
    with pytest.raises(NotFoundError):
        _service().delete_section(other.id, section.id)
    assert SectionStore().get(section.id) is not None


def test_reorder_swaps_positions_without_collisions(make_proposal, make_section):
    proposal = make_proposal()
    a = make_section(proposal, 0, title="A")
    b = make_section(proposal, 1, title="B")
    c = make_section(proposal, 2, title="C")

    sections = _service().reorder_sections(proposal.id, [
        {"id": a.id, "sortOrder": 2},
        {"id": b.id, "sortOrder": 0},
        {"id": c.id, "sortOrder": 1},
    ])

    assert [(s.title, s.sort_order) for s in sections] == [("B", 0), ("C", 1), ("A", 2)]


@pytest.mark.parametrize("make_ordering", [
    lambda a, b: [{"id": a, "sortOrder": 0}],
    lambda a, b: [{"id": a, "sortOrder": 1}, {"id": b, "sortOrder": 1}],
    lambda a, b: [{"id": a, "sortOrder": 0}, {"id": a, "sortOrder": 1}],
    lambda a, b: [{"id": a, "sortOrder": 0}, {"id": "stranger", "sortOrder": 1}],
    lambda a, b: [{"id": a, "sortOrder": -1}, {"id": b, "sortOrder": 0}],
    lambda a, b: [{"id": a, "sortOrder": "1"}, {"id": b, "sortOrder": 0}],
    lambda a, b: [{"sortOrder": 0}, {"id": b, "sortOrder": 1}],
    lambda a, b: {"id": a},
])
def test_reorder_validation_leaves_order_untouched(make_proposal, make_section, make_ordering):
    proposal = make_proposal()
    a = make_section(proposal, 0, title="A")
    b = make_section(proposal, 1, title="B")

    with pytest.raises(ValidationError):
        _service().reorder_sections(proposal.id, make_ordering(a.id, b.id))

    assert [s.title for s in SectionStore().list(proposal.id)] == ["A", "B"]
