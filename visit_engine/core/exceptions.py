"""
Error taxonomy shared by the pipeline and the HTTP layer
"""

from typing import Optional, Dict, Any


class VisitEngineError(Exception):
    """Base class for all errors raised by the visit engine."""

    error_code = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(VisitEngineError):
    """Malformed input, e.g. a missing or unsupported audio file."""

    error_code = "validation_error"


class ConflictError(ValidationError):
    """The visit is not in a state that accepts the requested operation."""

    error_code = "conflict"


class NotFoundError(VisitEngineError):
    """Visit, summary or profile does not exist (or is not visible to the caller)."""

    error_code = "not_found"


class ExternalServiceError(VisitEngineError):
    """A transcription or generative service failed in a way we could not recover from."""

    error_code = "external_service_error"


class InternalError(VisitEngineError):
    """Unexpected failure."""

    error_code = "internal_error"


class UnauthorizedError(VisitEngineError):
    """The caller identity is missing."""

    error_code = "unauthorized"
