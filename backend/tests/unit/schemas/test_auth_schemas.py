"""
Unit Tests for registration and login schemas
"""
import pytest
from pydantic import ValidationError

from app.schemas.auth import LoginRequest, MemberRegister, InstitutionRegister


def member_payload(**overrides):
    data = {
        "name": "Juan Dela Cruz",
        "id_number": "21-00001",
        "email": "Juan@ParSU.edu.ph",
        "password": "password123",
        "phone": "0917-123-4567",
        "institution_slug": "partido-state-university",
    }
    data.update(overrides)
    return data


class TestMemberRegister:

    def test_valid_payload_is_normalized(self):
        data = MemberRegister(**member_payload())

        assert data.email == "juan@parsu.edu.ph"
        assert data.phone == "09171234567"
        assert data.name == "Juan Dela Cruz"

    def test_blank_ids_become_none(self):
        data = MemberRegister(**member_payload(college_id="", department_id="  "))

        assert data.college_id is None
        assert data.department_id is None

    @pytest.mark.parametrize("overrides, message", [
        ({"name": " J "}, "Name must be at least 2 characters"),
        ({"password": "short"}, "Password must be at least 8 characters"),
        ({"phone": "12345"}, "Phone number must be 11 digits"),
        ({"id_number": "   "}, "ID number is required"),
        ({"institution_slug": None}, "Institution is required"),
    ])
    def test_invalid_fields(self, overrides, message):
        with pytest.raises(ValidationError) as exc_info:
            MemberRegister(**member_payload(**overrides))
        assert message in str(exc_info.value)

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            MemberRegister(**member_payload(email="not-an-email"))


class TestInstitutionRegister:

    def test_domains_lowercased_and_blank_to_none(self):
        data = InstitutionRegister(
            institution_name="  Partido State University ",
            password="password123",
            contact_person_email="Registrar@ParSU.edu.ph",
            email_domain=" ParSU.edu.ph ",
            web_domain="",
        )

        assert data.institution_name == "Partido State University"
        assert data.contact_person_email == "registrar@parsu.edu.ph"
        assert data.email_domain == "parsu.edu.ph"
        assert data.web_domain is None

    def test_short_name_rejected(self):
        with pytest.raises(ValidationError):
            InstitutionRegister(institution_name="P", password="password123", contact_person_email="a@parsu.edu.ph")


class TestLoginRequest:

    def test_email_normalized(self):
        assert LoginRequest(email=" Admin@Campus.io ", password="x").email == "admin@campus.io"

    def test_empty_password_rejected(self):
        with pytest.raises(ValidationError):
            LoginRequest(email="admin@campus.io", password="")
