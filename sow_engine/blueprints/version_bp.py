"""
Proposal version blueprint.

Endpoints:
    GET  /api/v1/proposals/<id>/versions                          — metadata, newest first
    POST /api/v1/proposals/<id>/versions                          — freeze a new export version
    GET  /api/v1/proposals/<id>/versions/<vid>                    — one version with snapshots
    GET  /api/v1/proposals/<id>/versions/<vid>/export-source      — frozen content for re-export
"""

import logging

from flask import Blueprint, jsonify

from sow_engine.blueprints import json_body, version_manager
from sow_engine.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

version_bp = Blueprint("version_bp", __name__, url_prefix="/api/v1/proposals")
register_error_handlers(version_bp)


@version_bp.route("/<proposal_id>/versions", methods=["GET"])
def list_versions(proposal_id):
    versions = version_manager().list_versions(proposal_id)
    return jsonify({"items": versions, "total": len(versions)}), 200


@version_bp.route("/<proposal_id>/versions", methods=["POST"])
def create_version(proposal_id):
    """Body (optional): {exportedBy, artifactUrl}"""
    data, err = json_body(required=False)
    if err:
        return err
    version = version_manager().create_version(
        proposal_id,
        exported_by=data.get("exportedBy"),
        artifact_url=data.get("artifactUrl"),
    )
    return jsonify(version.to_dict(include_snapshots=False)), 201


@version_bp.route("/<proposal_id>/versions/<version_id>", methods=["GET"])
def get_version(proposal_id, version_id):
    version = version_manager().get_version(version_id, proposal_id)
    return jsonify(version.to_dict()), 200


@version_bp.route("/<proposal_id>/versions/<version_id>/export-source", methods=["GET"])
def export_source(proposal_id, version_id):
    return jsonify(version_manager().export_source(version_id, proposal_id)), 200
