"""
Proposal blueprint.

Endpoints:
    GET    /api/v1/proposals                        — list (?customerId=&status=), newest first
    POST   /api/v1/proposals/from-assessment        — draft a proposal from a live assessment
    GET    /api/v1/proposals/<id>                   — proposal with sections
    PATCH  /api/v1/proposals/<id>/status            — move through draft/review/sent/...
    GET    /api/v1/proposals/<id>/sections          — sections in sort order
    POST   /api/v1/proposals/<id>/sections          — append a section (totals refreshed)
    PUT    /api/v1/proposals/<id>/sections          — reorder: {ordering: [{id, sortOrder}]}
    PATCH  /api/v1/proposals/<id>/sections/<sid>    — edit one section (totals refreshed)
    DELETE /api/v1/proposals/<id>/sections/<sid>    — remove one section (totals refreshed)
    POST   /api/v1/proposals/<id>/recalculate       — recompute totals from sections
    GET    /api/v1/proposals/<id>/assessment-sync   — drift report vs. live assessment
    POST   /api/v1/proposals/<id>/assessment-resync — replace the frozen snapshot

Service layer owns all business logic and commits.
"""

import logging

from flask import Blueprint, jsonify, request

from sow_engine.blueprints import drift_detector, json_body, proposal_service, snapshot_service
from sow_engine.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

proposal_bp = Blueprint("proposal_bp", __name__, url_prefix="/api/v1/proposals")
register_error_handlers(proposal_bp)


@proposal_bp.route("", methods=["GET"])
def list_proposals():
    proposals = proposal_service().list_proposals(
        customer_id=request.args.get("customerId"),
        status=request.args.get("status"),
    )
    return jsonify({"items": [p.to_dict() for p in proposals], "total": len(proposals)}), 200


@proposal_bp.route("/from-assessment", methods=["POST"])
def create_from_assessment():
    """Body: {customerId, assessmentId, assessmentType, proposalType?, customerName?, createdBy?, groupBy?}"""
    data, err = json_body()
    if err:
        return err
    result = proposal_service().create_from_assessment(data)
    payload = result["proposal"].to_dict()
    payload["sections"] = [s.to_dict() for s in result["sections"]]
    payload["statusCounts"] = result["build"].status_counts
    return jsonify(payload), 201


@proposal_bp.route("/<proposal_id>", methods=["GET"])
def get_proposal(proposal_id):
    proposal = proposal_service().get(proposal_id)
    return jsonify(proposal.to_dict(include_sections=True)), 200


@proposal_bp.route("/<proposal_id>/status", methods=["PATCH"])
def update_status(proposal_id):
    data, err = json_body()
    if err:
        return err
    proposal = proposal_service().update_status(proposal_id, data.get("status"))
    return jsonify(proposal.to_dict()), 200


@proposal_bp.route("/<proposal_id>/sections", methods=["GET"])
def list_sections(proposal_id):
    sections = proposal_service().list_sections(proposal_id)
    return jsonify({"items": [s.to_dict() for s in sections], "total": len(sections)}), 200


@proposal_bp.route("/<proposal_id>/sections", methods=["POST"])
def create_section(proposal_id):
    """Body: {title, description?, deliverables?, hours?, rate?, startDate?, endDate?}"""
    data, err = json_body()
    if err:
        return err
    section = proposal_service().create_section(proposal_id, data)
    return jsonify(section.to_dict()), 201


@proposal_bp.route("/<proposal_id>/sections", methods=["PUT"])
def reorder_sections(proposal_id):
    data, err = json_body()
    if err:
        return err
    sections = proposal_service().reorder_sections(proposal_id, data.get("ordering"))
    return jsonify({"items": [s.to_dict() for s in sections], "total": len(sections)}), 200


@proposal_bp.route("/<proposal_id>/sections/<section_id>", methods=["PATCH"])
def update_section(proposal_id, section_id):
    data, err = json_body()
    if err:
        return err
    section = proposal_service().update_section(proposal_id, section_id, data)
    return jsonify(section.to_dict()), 200


@proposal_bp.route("/<proposal_id>/sections/<section_id>", methods=["DELETE"])
def delete_section(proposal_id, section_id):
    proposal_service().delete_section(proposal_id, section_id)
    return "", 204


@proposal_bp.route("/<proposal_id>/recalculate", methods=["POST"])
def recalculate(proposal_id):
    proposal = proposal_service().recalculate_totals(proposal_id)
    return jsonify({
        "totalHours": proposal.total_hours,
        "totalInvestment": proposal.total_investment,
    }), 200


# ── Assessment sync ──────────────────────────────────────────────────────


@proposal_bp.route("/<proposal_id>/assessment-sync", methods=["GET"])
def assessment_sync(proposal_id):
    report = drift_detector().check(proposal_id)
    return jsonify(report.to_dict()), 200


@proposal_bp.route("/<proposal_id>/assessment-resync", methods=["POST"])
def assessment_resync(proposal_id):
    snapshot = snapshot_service().resync(proposal_id)
    return jsonify({
        "snapshotAt": snapshot.snapshot_at,
        "processCount": len(snapshot.processes),
    }), 200
