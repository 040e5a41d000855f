"""Tests for sow_engine.services.auto_builder (pure functions, no DB)."""

import random

import pytest

from sow_engine.core.exceptions import ValidationError
from sow_engine.domain import ProcessAssessment, parse_processes
from sow_engine.services.auto_builder import (
    MAX_DELIVERABLES,
    auto_build,
    build_grouped_sections,
    classify_rating,
    count_statuses,
    find_worst_function,
    generate_executive_summary,
    group_by_function,
    select_priority_items,
    should_use_item_sections,
)


def _p(name, status="warning", function="Sales", outcome="", add=False):
    return ProcessAssessment(name=name, status=status, function=function, outcome=outcome,
                             add_to_engagement=add)


# ── Selection ────────────────────────────────────────────────────────────


def test_flagged_items_take_precedence_over_status():
    items = [_p("A", "unable"), _p("B", "healthy", add=True), _p("C", "warning")]
    assert [p.name for p in select_priority_items(items)] == ["B"]


def test_falls_back_to_warning_and_unable():
    items = [_p("A", "unable"), _p("B", "healthy"), _p("C", "warning"), _p("D", "careful")]
    assert [p.name for p in select_priority_items(items)] == ["A", "C"]


def test_nothing_actionable_selects_nothing():
    assert select_priority_items([_p("A", "healthy"), _p("B", "careful")]) == []
    assert select_priority_items(None) == []


def test_item_section_threshold():
    assert should_use_item_sections([object()] * 8) is True
    assert should_use_item_sections([object()] * 9) is False


# ── Shape ────────────────────────────────────────────────────────────────


def test_three_flagged_in_three_functions_gives_three_sections():
    items = [
        _p("Lead Routing", function="Sales", add=True),
        _p("Campaign Tracking", function="Marketing", add=True),
        _p("Invoicing", function="Finance", add=True),
    ]
    result = auto_build(items, "Acme", "gtm")
    assert len(result.sections) == 3
    assert [s.title for s in result.sections] == ["Invoicing", "Campaign Tracking", "Lead Routing"]
    assert [s.sort_order for s in result.sections] == [0, 1, 2]


def test_twelve_flagged_in_four_functions_gives_four_grouped_sections():
    functions = ["Sales", "Marketing", "Finance", "Customer Success"]
    items = [_p(f"{fn} {i}", function=fn, add=True) for fn in functions for i in range(3)]

    result = auto_build(items, "Acme", "gtm")

    assert [s.title for s in result.sections] == sorted(functions)
    for section in result.sections:
        assert len(section.addressed_process_names) == 3
        assert section.description.endswith("Covers 3 assessment items.")


def test_group_by_outcome_and_invalid_key():
    items = [_p("A", outcome="Pipeline"), _p("B", outcome=""), _p("C", outcome="Revenue")]
    assert list(group_by_function(items, "outcome")) == ["Other", "Pipeline", "Revenue"]
    with pytest.raises(ValidationError):
        group_by_function(items, "owner")


def test_deliverables_capped():
    groups = {"Sales": [_p(f"P{i:02d}") for i in range(20)]}
    section = build_grouped_sections(groups)[0]
    assert len(section.deliverables) == MAX_DELIVERABLES
    assert len(section.addressed_process_names) == 20


def test_section_fields_for_single_item():
    result = auto_build([_p("Lead Routing", "warning", outcome="Faster speed-to-lead", add=True)])
    section = result.sections[0]
    assert section.deliverables == ["Lead Routing (Warning): Faster speed-to-lead"]
    assert section.addressed_process_names == ["Lead Routing"]
    assert section.hours == 0
    assert section.rate == 0
    assert section.description == "Lead Routing improvements: 1 warning. Covers 1 assessment item."


# ── Determinism ──────────────────────────────────────────────────────────


def test_output_unchanged_under_shuffling():
    items = [
        _p(f"Process {i}", status=["warning", "unable", "healthy", "careful"][i % 4],
           function=["Sales", "Marketing", "Finance"][i % 3], add=i % 5 == 0)
        for i in range(30)
    ]
    expected = auto_build(items, "Acme", "cpq").to_dict()

    rng = random.Random(42)
    for _ in range(5):
        shuffled = items[:]
        rng.shuffle(shuffled)
        assert auto_build(shuffled, "Acme", "cpq").to_dict() == expected


# ── Counts, rating, summary ──────────────────────────────────────────────


def test_end_to_end_example():
    processes = parse_processes([
        {"name": "Lead Routing", "function": "Sales", "status": "warning", "addToEngagement": True},
        {"name": "Invoicing", "function": "Finance", "status": "healthy", "addToEngagement": False},
    ])

    result = auto_build(processes, "Acme", "gtm")

    assert [s.title for s in result.sections] == ["Lead Routing"]
    assert result.status_counts == {"warning": 1, "healthy": 1}
    assert result.overall_rating == "warning"


@pytest.mark.parametrize("counts,expected", [
    ({"unable": 6, "healthy": 4}, "critical"),
    ({"warning": 1, "healthy": 1}, "warning"),
    ({"warning": 2, "healthy": 8}, "moderate"),
    ({"warning": 1, "healthy": 9}, "healthy"),
    ({}, "healthy"),
])
def test_classify_rating_thresholds(counts, expected):
    assert classify_rating(counts) == expected


def test_status_counts_cover_full_input_and_omit_absent_statuses():
    items = [_p("A", "warning"), _p("B", "warning"), _p("C", "unable"), _p("D", "na")]
    assert count_statuses(items) == {"warning": 2, "unable": 1, "na": 1}


def test_worst_function_prefers_highest_share():
    items = [
        _p("S1", "warning", "Sales"), _p("S2", "warning", "Sales"), _p("S3", "healthy", "Sales"),
        _p("M1", "unable", "Marketing"), _p("M2", "healthy", "Marketing"),
    ]
    assert find_worst_function(items) == ("Sales", 2, 3)


def test_worst_function_ties_break_on_unable_then_name():
    sales_vs_marketing = [
        _p("S1", "warning", "Sales"), _p("S2", "healthy", "Sales"),
        _p("M1", "unable", "Marketing"), _p("M2", "healthy", "Marketing"),
    ]
    assert find_worst_function(sales_vs_marketing) == ("Marketing", 1, 2)

    marketing_vs_finance = [
        _p("M1", "unable", "Marketing"), _p("M2", "healthy", "Marketing"),
        _p("F1", "unable", "Finance"), _p("F2", "healthy", "Finance"),
    ]
    assert find_worst_function(marketing_vs_finance) == ("Finance", 1, 2)


def test_worst_function_none_when_nothing_critical():
    assert find_worst_function([_p("A", "healthy"), _p("B", "careful")]) is None


def test_summary_names_customer_type_and_counts():
    items = [_p("A", "warning"), _p("B", "unable", function="Finance"), _p("C", "healthy")]
    summary = generate_executive_summary(items, "Acme Corp", "gtm")
    assert "Acme Corp" in summary
    assert "GTM Operations" in summary
    assert "3 processes evaluated" in summary
    assert "67%" in summary
    assert "Finance shows the weakest results" in summary


def test_summary_pluralizes_process_counts():
    one = generate_executive_summary([_p("A", "warning")], "Acme", "gtm")
    many = generate_executive_summary([_p("A", "warning"), _p("B", "healthy")], "Acme", "gtm")
    assert "with 1 process evaluated" in one
    assert "with 2 processes evaluated" in many
    assert "processs" not in many


def test_summary_defaults_customer_name_and_type_label():
    summary = generate_executive_summary([_p("A", "warning")], None, "clay")
    assert "your organization" in summary
    assert "Clay Enrichment & Automation" in summary


def test_empty_input_is_valid():
    result = auto_build([], None, "gtm")
    assert result.sections == []
    assert result.status_counts == {}
    assert result.overall_rating == "healthy"
    assert "healthy operational state" in result.executive_summary
