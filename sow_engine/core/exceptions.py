"""
Engine-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and map each to a consistent HTTP status code.

Usage:
    from sow_engine.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Proposal", resource_id=proposal_id)
    raise ValidationError("assessmentType is invalid", details={"assessmentType": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Also used when a version is requested under the wrong proposal id, so a
    caller cannot tell whether the version exists elsewhere.

    Args:
        resource: Human-readable entity name (e.g. "Proposal", "Version").
        resource_id: The key that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is missing a required field or violates a fixed vocabulary.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique resource.

    Two cases in this engine: a proposal that already has an external
    project, and a racing export that lost the version-number insert.
    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
        details: Extra payload returned to the caller (e.g. the existing reference).
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        self.details = details or {}
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class ExternalServiceError(Exception):
    """Raised when a store or the external task API is unreachable or errors.

    Args:
        step: Which call failed (e.g. "proposal_store.get", "create_milestone").
        message: Underlying error text.
        context: Partial-progress data needed for manual reconciliation.
    """

    def __init__(self, step: str, message: str, context: dict | None = None) -> None:
        self.step = step
        self.message = message
        self.context = context or {}
        super().__init__(f"{step} failed: {message}")


class InternalError(Exception):
    """Raised for unexpected states that indicate a bug rather than bad input."""
