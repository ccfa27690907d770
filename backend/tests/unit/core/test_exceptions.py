"""
Unit Tests for the error hierarchy and the error envelope
"""
from app.core.exceptions import (
    CampusError,
    ValidationError,
    InvalidTransitionError,
    InvalidFileTypeError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ClubNotFoundError,
    EventNotFoundError,
    ConflictError,
    error_response,
)


class TestStatusCodes:

    def test_status_codes_by_kind(self):
        assert ValidationError("bad").status_code == 400
        assert AuthenticationError().status_code == 401
        assert AuthorizationError().status_code == 403
        assert NotFoundError("missing").status_code == 404
        assert ConflictError("dup").status_code == 409
        assert CampusError("boom").status_code == 500

    def test_invalid_transition_is_a_validation_error(self):
        error = InvalidTransitionError("club", "approved", "pending")

        assert isinstance(error, ValidationError)
        assert error.status_code == 400
        assert error.code == "INVALID_TRANSITION"
        assert error.details == {"entity_type": "club", "from": "approved", "to": "pending"}

    def test_not_found_subclasses(self):
        assert isinstance(ClubNotFoundError("c1"), NotFoundError)
        assert EventNotFoundError("e1").status_code == 404

    def test_invalid_file_type(self):
        error = InvalidFileTypeError("image/gif", ["image/png"])

        assert error.status_code == 400
        assert error.code == "INVALID_FILE_TYPE"


class TestErrorResponse:

    def test_envelope_without_details(self):
        assert error_response(ConflictError("Email already exists")) == {
            "ok": False,
            "error": "Email already exists",
            "code": "CONFLICT",
        }

    def test_envelope_has_ok_false_and_message(self):
        body = error_response(AuthorizationError("Forbidden"))

        assert body["ok"] is False
        assert body["error"] == "Forbidden"
        assert body["code"] == "NOT_AUTHORIZED"
        assert "details" not in body

    def test_envelope_includes_details(self):
        body = error_response(ValidationError("Venue is required", field="venue"))

        assert body["details"] == {"field": "venue"}
