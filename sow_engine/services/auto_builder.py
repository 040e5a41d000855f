"""
Auto-Builder — drafts proposal sections from a graded assessment.

Pure functions, no I/O. Every entry point sorts its input canonically by
(function, name) first, so the same set of processes always yields the same
sections, summary, and rating regardless of the order they arrive in.

Pipeline:
    select_priority_items → should_use_item_sections
        → build_item_sections | group_by_function + build_grouped_sections
    count_statuses → classify_rating → generate_executive_summary
"""

from __future__ import annotations

from collections import Counter

from sow_engine.core.exceptions import ValidationError
from sow_engine.domain import (
    ASSESSMENT_TYPE_LABELS,
    CRITICAL_STATUSES,
    DEFAULT_FUNCTION,
    PROCESS_STATUSES,
    AutoBuildResult,
    ProcessAssessment,
    SectionDraft,
)

ITEM_SECTION_THRESHOLD = 8
MAX_DELIVERABLES = 15
GROUP_KEYS = ("function", "outcome")

STATUS_LABELS = {
    "healthy": "Healthy",
    "careful": "Careful",
    "warning": "Warning",
    "unable": "Unable",
    "na": "N/A",
}

RATING_LABELS = {
    "critical": "critical attention",
    "warning": "significant improvement",
    "moderate": "targeted optimization",
    "healthy": "fine-tuning",
}

# Order in which per-section status counts are spelled out
_SUMMARY_ORDER = ("warning", "unable", "careful", "healthy", "na")
_SUMMARY_WORDS = {"na": "not applicable"}


def _canonical_key(p: ProcessAssessment) -> tuple:
    return (p.function, p.name, p.status, p.outcome)


def canonical_order(processes: list[ProcessAssessment]) -> list[ProcessAssessment]:
    return sorted(processes, key=_canonical_key)


def _plural(count: int, word: str, plural: str | None = None) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {plural or word + 's'}"


# ═════════════════════════════════════════════════════════════════════════════
# Selection & shape
# ═════════════════════════════════════════════════════════════════════════════


def select_priority_items(processes: list[ProcessAssessment]) -> list[ProcessAssessment]:
    """Processes flagged for the engagement, else every warning/unable process."""
    ordered = canonical_order(processes or [])
    flagged = [p for p in ordered if p.add_to_engagement]
    if flagged:
        return flagged
    return [p for p in ordered if p.status in CRITICAL_STATUSES]


def should_use_item_sections(items: list) -> bool:
    return len(items) <= ITEM_SECTION_THRESHOLD


def group_by_function(
    items: list[ProcessAssessment], group_by: str = "function",
) -> dict[str, list[ProcessAssessment]]:
    """Group items by ``function`` (or ``outcome``); keys in sorted order."""
    if group_by not in GROUP_KEYS:
        raise ValidationError(
            f"Invalid groupBy {group_by!r}",
            details={"groupBy": f"must be one of {', '.join(GROUP_KEYS)}"},
        )
    groups: dict[str, list[ProcessAssessment]] = {}
    for item in canonical_order(items):
        key = getattr(item, group_by) or DEFAULT_FUNCTION
        groups.setdefault(key, []).append(item)
    return {key: groups[key] for key in sorted(groups)}


# ═════════════════════════════════════════════════════════════════════════════
# Section synthesis
# ═════════════════════════════════════════════════════════════════════════════


def summarize_statuses(items: list[ProcessAssessment]) -> str:
    counts = Counter(i.status for i in items)
    parts = [
        f"{counts[s]} {_SUMMARY_WORDS.get(s, s)}"
        for s in _SUMMARY_ORDER
        if counts[s]
    ]
    return ", ".join(parts)


def deliverable_line(item: ProcessAssessment) -> str:
    line = f"{item.name} ({STATUS_LABELS.get(item.status, item.status)})"
    if item.outcome:
        line += f": {item.outcome}"
    return line


def _section(title: str, members: list[ProcessAssessment], sort_order: int) -> SectionDraft:
    description = (
        f"{title} improvements: {summarize_statuses(members)}. "
        f"Covers {_plural(len(members), 'assessment item')}."
    )
    return SectionDraft(
        title=title,
        description=description,
        deliverables=[deliverable_line(m) for m in members][:MAX_DELIVERABLES],
        addressed_process_names=[m.name for m in members],
        sort_order=sort_order,
    )


def build_item_sections(items: list[ProcessAssessment]) -> list[SectionDraft]:
    """One section per selected process."""
    return [_section(item.name, [item], idx) for idx, item in enumerate(canonical_order(items))]


def build_grouped_sections(groups: dict[str, list[ProcessAssessment]]) -> list[SectionDraft]:
    """One section per group, groups in key order."""
    return [
        _section(name, canonical_order(groups[name]), idx)
        for idx, name in enumerate(sorted(groups))
    ]


# ═════════════════════════════════════════════════════════════════════════════
# Counts, rating, summary
# ═════════════════════════════════════════════════════════════════════════════


def count_statuses(processes: list[ProcessAssessment]) -> dict[str, int]:
    """Status → count over all processes; statuses with no processes are omitted."""
    counts = Counter(p.status for p in processes)
    return {s: counts[s] for s in PROCESS_STATUSES if counts[s]}


def classify_rating(status_counts: dict[str, int]) -> str:
    total = sum(status_counts.values())
    if not total:
        return "healthy"
    critical_pct = (status_counts.get("warning", 0) + status_counts.get("unable", 0)) / total
    if critical_pct > 0.5:
        return "critical"
    if critical_pct > 0.3:
        return "warning"
    if critical_pct > 0.1:
        return "moderate"
    return "healthy"


def find_worst_function(processes: list[ProcessAssessment]) -> tuple[str, int, int] | None:
    """Return ``(function, critical_count, total)`` for the weakest function.

    Weakest = highest share of warning+unable processes; ties go to the higher
    unable count, then to the alphabetically first function. None when no
    function has a warning or unable process.
    """
    stats: dict[str, list[int]] = {}
    for p in processes:
        entry = stats.setdefault(p.function, [0, 0, 0])  # critical, unable, total
        entry[2] += 1
        if p.status in CRITICAL_STATUSES:
            entry[0] += 1
        if p.status == "unable":
            entry[1] += 1

    candidates = [(fn, c, u, t) for fn, (c, u, t) in stats.items() if c]
    if not candidates:
        return None
    fn, critical, _unable, total = min(candidates, key=lambda x: (-x[1] / x[3], -x[2], x[0]))
    return fn, critical, total


def generate_executive_summary(
    processes: list[ProcessAssessment],
    customer_name: str | None,
    assessment_type: str | None,
    status_counts: dict[str, int] | None = None,
    overall_rating: str | None = None,
) -> str:
    processes = canonical_order(processes or [])
    customer = customer_name or "your organization"
    type_label = ASSESSMENT_TYPE_LABELS.get(assessment_type or "", "Operations")

    if not processes:
        return (
            f"No processes were evaluated in the {type_label} assessment for {customer}. "
            "With nothing flagged, the organization is treated as being in a "
            "healthy operational state."
        )

    counts = status_counts if status_counts is not None else count_statuses(processes)
    rating = overall_rating or classify_rating(counts)
    warning = counts.get("warning", 0)
    unable = counts.get("unable", 0)
    careful = counts.get("careful", 0)
    healthy = counts.get("healthy", 0)
    na = counts.get("na", 0)
    total = len(processes)
    critical_pct = round((warning + unable) * 100 / total)
    priority = sum(1 for p in processes if p.add_to_engagement)

    summary = (
        f"Based on a {type_label} assessment of {customer} with {_plural(total, 'process', 'processes')} evaluated, "
        f"the organization requires {RATING_LABELS[rating]}. "
        f"The assessment identified {warning + unable} critical items ({critical_pct}% of the total: "
        f"{warning} warning, {unable} unable), {careful} areas requiring caution, "
        f"and {healthy} healthy processes"
    )
    summary += f", with {na} not applicable. " if na else ". "
    summary += f"{_plural(priority, 'item')} flagged as priorities for the engagement scope."

    worst = find_worst_function(processes)
    if worst:
        fn, critical, fn_total = worst
        summary += (
            f" {fn} shows the weakest results, with {critical} of {fn_total} "
            f"processes at warning or unable."
        )
    return summary


# ═════════════════════════════════════════════════════════════════════════════
# Entry point
# ═════════════════════════════════════════════════════════════════════════════


def auto_build(
    processes: list[ProcessAssessment],
    customer_name: str | None = None,
    assessment_type: str | None = None,
    group_by: str = "function",
) -> AutoBuildResult:
    """Draft sections, executive summary, status counts and overall rating."""
    processes = canonical_order(processes or [])
    items = select_priority_items(processes)

    if not items:
        sections: list[SectionDraft] = []
    elif should_use_item_sections(items):
        sections = build_item_sections(items)
    else:
        sections = build_grouped_sections(group_by_function(items, group_by))

    status_counts = count_statuses(processes)
    rating = classify_rating(status_counts)
    summary = generate_executive_summary(
        processes, customer_name, assessment_type, status_counts, rating,
    )
    return AutoBuildResult(
        sections=sections,
        executive_summary=summary,
        status_counts=status_counts,
        overall_rating=rating,
    )
