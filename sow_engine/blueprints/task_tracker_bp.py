"""
Task tracker projection blueprint.

Endpoints:
    GET  /api/v1/proposals/<id>/task-tracker/preview   — what a push would create
    POST /api/v1/proposals/<id>/task-tracker/push      — create project/milestones/lists/tasks

Query/body param ``company`` overrides the company name (defaults to the
proposal's client company, then its title).
Push is rate limited (TASK_TRACKER_PUSH_LIMIT) and answers 503 when the
tracker credentials are not configured.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from sow_engine.blueprints import json_body, task_tracker_gateway, template_projector
from sow_engine.utils.errors import E, api_error, register_error_handlers

logger = logging.getLogger(__name__)

task_tracker_bp = Blueprint("task_tracker_bp", __name__, url_prefix="/api/v1/proposals")
register_error_handlers(task_tracker_bp)

from sow_engine import limiter  # noqa: E402

_push_limit = limiter.limit(lambda: current_app.config["TASK_TRACKER_PUSH_LIMIT"])


@task_tracker_bp.route("/<proposal_id>/task-tracker/preview", methods=["GET"])
def preview(proposal_id):
    company = request.args.get("company") or None
    return jsonify(template_projector().preview(proposal_id, company)), 200


@task_tracker_bp.route("/<proposal_id>/task-tracker/push", methods=["POST"])
@_push_limit
def push(proposal_id):
    """Body (optional): {company}"""
    data, err = json_body(required=False)
    if err:
        return err
    if not task_tracker_gateway().is_configured:
        return api_error(
            E.NOT_CONFIGURED,
            "Task tracker credentials not configured. Set TASK_TRACKER_SITE_URL and TASK_TRACKER_API_TOKEN.",
        )
    result = template_projector().execute_push(proposal_id, data.get("company") or None)
    return jsonify(result), 201
