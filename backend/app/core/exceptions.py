"""
Custom Exceptions for CampusConnect
===================================

Every failure a service can report is one of the typed errors below. The API
layer maps them to HTTP status codes in exactly one place (see
``app.main.campus_error_handler``), so handlers never inspect message text.

Usage:
    from app.core.exceptions import NotFoundError, ConflictError

    if not club:
        raise ClubNotFoundError(club_id)

    if await validators.is_email_globally_registered(email):
        raise ConflictError("Email already exists")
"""

from typing import Optional, Any, Dict


class CampusError(Exception):
    """Base exception for all CampusConnect errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400)
# ============================================

class ValidationError(CampusError):
    """Missing or malformed input"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed from the current status"""

    def __init__(self, entity_type: str, current: str, target: str):
        super().__init__(
            f"Cannot change {entity_type} status from '{current}' to '{target}'"
        )
        self.code = "INVALID_TRANSITION"
        self.details = {"entity_type": entity_type, "from": current, "to": target}


class InvalidFileTypeError(ValidationError):
    """Uploaded file type not allowed"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}"
        )
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed_types": allowed_types}


# ============================================
# Authentication & Authorization Errors (401 / 403)
# ============================================

class AuthenticationError(CampusError):
    """No usable session"""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(CampusError):
    """Role or ownership mismatch"""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404)
# ============================================

class NotFoundError(CampusError):
    """Entity or relationship missing"""

    status_code = 404

    def __init__(self, message: str, code: str = "NOT_FOUND", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class ResourceNotFoundError(NotFoundError):
    """Typed not found error for a single entity"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class InstitutionNotFoundError(ResourceNotFoundError):
    def __init__(self, institution_id: str):
        super().__init__("Institution", institution_id)


class ClubNotFoundError(ResourceNotFoundError):
    def __init__(self, club_id: str):
        super().__init__("Club", club_id)


class EventNotFoundError(ResourceNotFoundError):
    def __init__(self, event_id: str):
        super().__init__("Event", event_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


# ============================================
# Conflict Errors (409)
# ============================================

class ConflictError(CampusError):
    """Uniqueness violation"""

    status_code = 409

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, code="CONFLICT")


# ============================================
# Storage / Unknown Errors (500)
# ============================================

class StorageError(CampusError):
    """File I/O failed"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


class UnknownError(CampusError):
    """Store or runtime failure with no more specific kind"""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="UNKNOWN_ERROR")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CampusError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    body: Dict[str, Any] = {
        "ok": False,
        "error": error.message,
        "code": error.code,
    }
    if error.details:
        body["details"] = error.details
    return body
