"""
Domain error taxonomy for the placement engine.

Services raise these; app.main renders them as structured JSON errors
using the same {"detail": {"error": ...}} shape as HTTPException details.
"""
from typing import Any, Dict, Iterable, Optional


class PortalError(Exception):
    """Base class for all expected, client-visible failures."""
    status_code = 400
    error_code = "portal_error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_detail(self) -> Dict[str, Any]:
        detail = {"error": self.error_code, "message": self.message}
        detail.update(self.extra)
        return detail


class ValidationError(PortalError):
    """Malformed input."""
    status_code = 422
    error_code = "validation_error"


class EligibilityError(PortalError):
    """Student does not satisfy the drive's eligibility criteria."""
    status_code = 403
    error_code = "not_eligible"

    def __init__(self, message: str, failing_reasons: Optional[Iterable[str]] = None):
        reasons = sorted(failing_reasons or [])
        super().__init__(message, failingReasons=reasons)
        self.failing_reasons = reasons


class DuplicateApplicationError(PortalError):
    status_code = 409
    error_code = "duplicate_application"


class InvalidTransitionError(PortalError):
    """Requested status edge does not exist in the state table."""
    status_code = 409
    error_code = "invalid_transition"


class InvalidStateError(PortalError):
    """Operation attempted on a record in a terminal or wrong state."""
    status_code = 409
    error_code = "invalid_state"


class NotFoundError(PortalError):
    status_code = 404
    error_code = "not_found"


class AuthorizationError(PortalError):
    """Actor lacks the role or ownership required."""
    status_code = 403
    error_code = "forbidden"


class ServiceUnavailableError(PortalError):
    """Underlying store is unreachable."""
    status_code = 503
    error_code = "service_unavailable"
