"""
Template Projector — expands a proposal into the external task tracker.

Structure pushed for a proposal:

    company (found or created)
    └── project            (proposal title, dates spanning the sections)
        └── milestone      one per section, deadline = section end date
            ├── "{section} — Deliverables"   one task per deliverable line
            └── "{section} — {phase}"         one list per template phase

The preview and the push walk the same plan, so what the preview shows is
what the push creates.

Push contract:
  - A proposal that already has an external project is refused with
    ConflictError carrying the existing reference.
  - The project reference and each milestone id are written back the moment
    they exist, so a push that fails half way is still detectable.
  - No rollback and no retry. A failure raises ExternalServiceError with the
    failing step and everything created so far. A retried push after a
    failure is refused by the conflict check; milestones may need manual
    clean-up.
"""

from __future__ import annotations

import logging

from sow_engine.core.exceptions import (
    ConflictError,
    ExternalServiceError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from sow_engine.data.task_templates import get_template_for_proposal_type
from sow_engine.utils.helpers import parse_date

logger = logging.getLogger(__name__)

PUSHABLE_STATUSES = ("review", "sent", "accepted")


def _company_name(proposal, company: str | None) -> str:
    if company:
        return company
    client = (proposal.content or {}).get("clientInfo") or {}
    return client.get("company") or proposal.title


def _iso(value) -> str | None:
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def build_plan(proposal, sections) -> dict:
    """Full push plan: template name plus milestones with task lists and tasks."""
    template = get_template_for_proposal_type(proposal.proposal_type)
    milestones = []
    for section in sections:
        task_lists = []
        if section.deliverables:
            task_lists.append({
                "name": f"{section.title} — Deliverables",
                "source": "sow",
                "tasks": [{"content": d, "description": ""} for d in section.deliverables],
            })
        for phase in template["phases"]:
            task_lists.append({
                "name": f"{section.title} — {phase['name']}",
                "source": "template",
                "tasks": [
                    {"content": t["content"], "description": t.get("description", "")}
                    for t in phase["tasks"]
                ],
            })
        milestones.append({
            "sectionId": section.id,
            "name": section.title,
            "description": section.description or "",
            "startDate": _iso(section.start_date),
            "deadline": _iso(section.end_date),
            "taskLists": task_lists,
        })
    return {"template": template["name"], "milestones": milestones}


def project_date_span(sections) -> tuple:
    dates = [
        d for s in sections
        for d in (parse_date(s.start_date), parse_date(s.end_date))
        if d is not None
    ]
    if not dates:
        return None, None
    return min(dates), max(dates)


class TemplateProjector:
    def __init__(self, proposal_store, section_store, task_system) -> None:
        self.proposal_store = proposal_store
        self.section_store = section_store
        self.task_system = task_system

    def _load(self, proposal_id: str):
        proposal = self.proposal_store.get(proposal_id)
        if proposal is None:
            raise NotFoundError(resource="Proposal", resource_id=proposal_id)
        return proposal, self.section_store.list(proposal_id)

    # ── Preview ──────────────────────────────────────────────────────────

    def build_preview(self, proposal, sections, company: str | None = None) -> dict:
        plan = build_plan(proposal, sections)
        return {
            "company": _company_name(proposal, company),
            "project": {"name": proposal.title, "template": plan["template"]},
            "milestones": [
                {
                    "sectionId": m["sectionId"],
                    "name": m["name"],
                    "deadline": m["deadline"],
                    "taskLists": [
                        {
                            "name": tl["name"],
                            "source": tl["source"],
                            "tasks": [{"content": t["content"]} for t in tl["tasks"]],
                        }
                        for tl in m["taskLists"]
                    ],
                }
                for m in plan["milestones"]
            ],
        }

    def preview(self, proposal_id: str, company: str | None = None) -> dict:
        proposal, sections = self._load(proposal_id)
        return self.build_preview(proposal, sections, company)

    # ── Push ─────────────────────────────────────────────────────────────

    def execute_push(self, proposal_id: str, company: str | None = None) -> dict:
        """Create the external project hierarchy for a proposal.

        Raises:
            NotFoundError: proposal does not exist.
            ValidationError: proposal is not in a pushable status.
            ConflictError: proposal already has an external project.
            InternalError: the push plan does not match the proposal sections.
            ExternalServiceError: a tracker or store call failed; ``context``
                holds the project and milestones created before the failure.
        """
        proposal, sections = self._load(proposal_id)

        existing = proposal.external_project_ref
        if existing:
            raise ConflictError(
                "Proposal", "externalProjectRef", existing["id"],
                details={"externalProjectRef": existing},
            )
        if proposal.status not in PUSHABLE_STATUSES:
            raise ValidationError(
                f"Proposal must be in {', '.join(PUSHABLE_STATUSES)} status to push",
                details={"status": proposal.status},
            )

        plan = build_plan(proposal, sections)
        planned = [m["sectionId"] for m in plan["milestones"]]
        if planned != [s.id for s in sections]:
            raise InternalError(
                f"Push plan for proposal {proposal_id} covers {len(planned)} of {len(sections)} sections"
            )
        company_name = _company_name(proposal, company)
        start_date, end_date = project_date_span(sections)

        progress: dict = {"projectId": None, "projectUrl": None, "milestones": [], "sectionId": None}
        counts = {"taskLists": 0, "tasks": 0}

        try:
            company_ref = self.task_system.find_or_create_company(company_name)
            project = self.task_system.create_project(
                proposal.title,
                description=(proposal.content or {}).get("executiveSummary", ""),
                company_id=company_ref.get("id"),
                start_date=start_date,
                end_date=end_date,
            )
            progress["projectId"] = project["id"]
            progress["projectUrl"] = project["url"]
            self.proposal_store.update(proposal_id, {
                "external_project_id": project["id"],
                "external_project_url": project["url"],
            })

            for milestone_plan in plan["milestones"]:
                section_id = milestone_plan["sectionId"]
                progress["sectionId"] = section_id
                milestone = self.task_system.create_milestone(
                    project["id"],
                    milestone_plan["name"],
                    description=milestone_plan["description"],
                    deadline=milestone_plan["deadline"],
                )
                progress["milestones"].append({"sectionId": section_id, "milestoneId": milestone["id"]})
                self.section_store.update(section_id, {"external_milestone_id": milestone["id"]})

                for list_plan in milestone_plan["taskLists"]:
                    task_list = self.task_system.create_task_list(
                        project["id"], list_plan["name"], milestone_id=milestone["id"],
                    )
                    counts["taskLists"] += 1
                    for task in list_plan["tasks"]:
                        self.task_system.create_task(
                            task_list["id"],
                            task["content"],
                            description=task["description"],
                            start_date=milestone_plan["startDate"],
                            due_date=milestone_plan["deadline"],
                        )
                        counts["tasks"] += 1
        except ExternalServiceError as exc:
            logger.error(
                "Task tracker push failed step=%s project=%s milestones=%d",
                exc.step, progress["projectId"], len(progress["milestones"]),
                extra={"proposal_id": proposal_id, "step": exc.step},
            )
            raise ExternalServiceError(
                exc.step, exc.message, context={**exc.context, **progress},
            ) from exc

        logger.info(
            "Proposal pushed to task tracker project=%s milestones=%d task_lists=%d tasks=%d",
            progress["projectId"], len(progress["milestones"]), counts["taskLists"], counts["tasks"],
            extra={"proposal_id": proposal_id},
        )
        return {
            "company": company_ref,
            "project": {"id": progress["projectId"], "url": progress["projectUrl"]},
            "milestones": progress["milestones"],
            "taskListCount": counts["taskLists"],
            "taskCount": counts["tasks"],
        }
