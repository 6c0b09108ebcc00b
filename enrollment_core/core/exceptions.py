# enrollment_core/core/exceptions.py
"""Error taxonomy for calls made against the enrollment, student and institution services."""
from typing import Any, Dict, Optional

DUPLICATE_ENROLLMENT_MESSAGE = (
    "An enrollment already exists for this student in the selected academic period. "
    "Please check the data or choose a different period."
)
DUPLICATE_RECORD_MESSAGE = (
    "A record with these values already exists. Please review the submitted information."
)
GENERIC_RETRY_MESSAGE = "The service is temporarily unavailable. Please try again."

# Server messages that identify a unique-constraint violation, most specific first.
UNIQUE_CONSTRAINT_SIGNATURES = (
    ('unique constraint "uq_enrollment_student_period"', DUPLICATE_ENROLLMENT_MESSAGE),
    ("duplicate key value violates unique constraint", DUPLICATE_RECORD_MESSAGE),
)


class EnrollmentServiceError(Exception):
    """Base exception for every failure surfaced by the enrollment core"""
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class TransportError(EnrollmentServiceError):
    """Timeout or connection failure before a response was received"""
    retryable = True

    def __init__(self, message: str = "Network error while contacting the service"):
        super().__init__(message, None)


class NotFoundError(EnrollmentServiceError):
    """Resource not found exception"""
    def __init__(self, resource: str = "Resource", id: Optional[str] = None, message: Optional[str] = None):
        if message is None:
            message = f"{resource} not found"
            if id:
                message += f" with id: {id}"
        self.resource = resource
        self.resource_id = id
        super().__init__(message, 404)


class ValidationError(EnrollmentServiceError):
    """Validation error, optionally carrying one message per field"""
    def __init__(self, message: str = "Validation failed", field_errors: Optional[Dict[str, str]] = None):
        self.field_errors = dict(field_errors or {})
        if self.field_errors:
            details = ", ".join(f"{key}: {value}" for key, value in self.field_errors.items())
            message = f"{message}: {details}"
        super().__init__(message, 400)


class ConflictError(EnrollmentServiceError):
    """Unique-constraint violation reported by the server"""
    def __init__(self, message: str = DUPLICATE_RECORD_MESSAGE, status_code: Optional[int] = 500,
                 server_message: Optional[str] = None):
        self.server_message = server_message
        super().__init__(message, status_code)


class DuplicateEnrollmentError(ConflictError):
    """Raised locally when the duplicate probe finds a non-cancelled enrollment"""
    def __init__(self, existing: Any):
        self.existing = existing
        reference = getattr(existing, "enrollment_code", None) or getattr(existing, "id", None)
        status = getattr(getattr(existing, "status", None), "value", None) or "UNKNOWN"
        message = (
            f"An enrollment ({status}) already exists for this student in the selected "
            f"academic period (code: {reference}). Choose a different period or contact an administrator."
        )
        super().__init__(message, status_code=None)


class ServerError(EnrollmentServiceError):
    """5xx response that does not match a known constraint signature"""
    retryable = True

    def __init__(self, message: str = "Internal server error", status_code: int = 500):
        super().__init__(message, status_code)


class ClientError(EnrollmentServiceError):
    """Other 4xx responses; never retried"""


class ResponseFormatError(EnrollmentServiceError):
    """Successful response whose body does not match the expected shape"""
    def __init__(self, message: str = "Invalid response format", status_code: Optional[int] = None):
        super().__init__(message, status_code)


def _error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if isinstance(message, str) and message:
            return message
    return default


def _field_errors(payload: Any) -> Dict[str, str]:
    if not isinstance(payload, dict):
        return {}
    for key in ("errors", "fieldErrors"):
        errors = payload.get(key)
        if isinstance(errors, dict):
            return {str(field): str(text) for field, text in errors.items()}
    return {}


def classify_response(status_code: int, payload: Any = None, reason: str = "") -> EnrollmentServiceError:
    """Map a non-2xx HTTP response to a typed error"""
    message = _error_message(payload, f"HTTP {status_code}: {reason}".strip())

    if status_code == 400:
        return ValidationError(message, _field_errors(payload))
    if status_code == 404:
        return NotFoundError(message=message)
    if status_code == 409:
        return ConflictError(DUPLICATE_RECORD_MESSAGE, status_code=409, server_message=message)
    if status_code >= 500:
        for signature, friendly in UNIQUE_CONSTRAINT_SIGNATURES:
            if signature in message:
                return ConflictError(friendly, status_code=status_code, server_message=message)
        return ServerError(message, status_code)
    return ClientError(message, status_code)


def user_message(error: Exception) -> str:
    """Text to show to the user for a failed operation"""
    if isinstance(error, ValidationError):
        if error.field_errors:
            return "\n".join(f"{field}: {text}" for field, text in error.field_errors.items())
        return error.message
    if isinstance(error, (ConflictError, NotFoundError)):
        return error.message
    if isinstance(error, (TransportError, ServerError)):
        return GENERIC_RETRY_MESSAGE
    if isinstance(error, EnrollmentServiceError):
        return error.message
    return "Unknown error"
