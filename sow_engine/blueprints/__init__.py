"""
SOW Engine
Blueprint registry and shared request helpers.

Views never build stores or gateways themselves; they ask the helpers below,
which bind every service to the request's SQLAlchemy session and to the
app-wide task tracker gateway.
"""

from flask import current_app, request

from sow_engine.integrations.task_tracker_gateway import TaskTrackerGateway
from sow_engine.services.drift_service import DriftDetector
from sow_engine.services.proposal_service import ProposalService
from sow_engine.services.snapshot_service import SnapshotService
from sow_engine.services.template_projector import TemplateProjector
from sow_engine.services.version_service import VersionManager
from sow_engine.stores import AssessmentStore, ProposalStore, SectionStore, VersionStore
from sow_engine.utils.errors import E, api_error


def json_body(required: bool = True):
    """Return ``(data, None)`` for a JSON object body, else ``(None, error_response)``."""
    data = request.get_json(silent=True)
    if data is None and not required:
        return {}, None
    if not isinstance(data, dict):
        return None, api_error(E.VALIDATION_REQUIRED, "Request body must be a JSON object")
    return data, None


def task_tracker_gateway() -> TaskTrackerGateway:
    gateway = current_app.extensions.get("task_tracker_gateway")
    if gateway is None:
        gateway = TaskTrackerGateway.from_config(current_app.config)
        current_app.extensions["task_tracker_gateway"] = gateway
    return gateway


# ── Service factories ────────────────────────────────────────────────────


def proposal_service() -> ProposalService:
    return ProposalService(AssessmentStore(), ProposalStore(), SectionStore())


def drift_detector() -> DriftDetector:
    return DriftDetector(AssessmentStore(), ProposalStore())


def snapshot_service() -> SnapshotService:
    return SnapshotService(AssessmentStore(), ProposalStore())


def version_manager() -> VersionManager:
    return VersionManager(ProposalStore(), SectionStore(), VersionStore())


def template_projector() -> TemplateProjector:
    return TemplateProjector(ProposalStore(), SectionStore(), task_tracker_gateway())
