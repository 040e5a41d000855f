"""Standardised API error responses.

Usage
-----
    from sow_engine.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Proposal not found")
    return api_error(E.VALIDATION_REQUIRED, "customerId is required")
    return api_error(E.CONFLICT_STATE, "Already pushed", details={"externalProjectRef": ref})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants."""

    # Validation – HTTP 400 / 422
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"

    # Upstream – HTTP 502 / 503
    EXTERNAL_SERVICE = "ERR_EXTERNAL_SERVICE"
    NOT_CONFIGURED = "ERR_NOT_CONFIGURED"

    # Server – HTTP 500
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 422,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.EXTERNAL_SERVICE: 502,
    E.NOT_CONFIGURED: 503,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (existing reference, failing step, etc.).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(bp) -> None:
    """Attach the engine exception → JSON mapping to a blueprint."""
    import logging

    from flask import request

    from sow_engine.core.exceptions import (
        ConflictError,
        ExternalServiceError,
        InternalError,
        NotFoundError,
        ValidationError,
    )

    logger = logging.getLogger(bp.import_name)

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_STATE, str(error), details=error.details)

    @bp.errorhandler(ExternalServiceError)
    def _handle_external(error: ExternalServiceError):
        logger.error(
            "External call failed endpoint=%s step=%s", request.endpoint, error.step,
            extra={"step": error.step},
        )
        details = {"step": error.step}
        details.update(error.context)
        return api_error(E.EXTERNAL_SERVICE, str(error), details=details)

    @bp.errorhandler(InternalError)
    def _handle_internal(error: InternalError):
        logger.exception("Internal error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
