"""
Unit Tests for the registration endpoints
"""
from app.models import UserStatus

from conftest import Factory


def member_payload(**overrides):
    data = {
        "name": "Juan Dela Cruz",
        "id_number": "21-00001",
        "email": "juan@parsu.edu.ph",
        "password": "password123",
        "phone": "09171234567",
        "institution_slug": "Partido State University",
    }
    data.update(overrides)
    return data


class TestMemberRegistration:

    async def test_register_student_by_slug(self, client, factory: Factory):
        institution = await factory.institution()

        response = await client.post("/api/register/student", json=member_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert body["user"]["platform_role"] == "student"
        assert body["user"]["status"] == "active"
        assert "hashed_password" not in body["user"]

        login = await client.post("/api/auth/login", json={"email": "juan@parsu.edu.ph", "password": "password123"})
        assert login.status_code == 200

        session = await client.get("/api/auth/session", headers={"Authorization": f"Bearer {login.json()['access_token']}"})
        assert session.json()["session"]["institution_id"] == institution.id

    async def test_register_employee_by_id(self, client, factory: Factory):
        institution = await factory.institution()

        response = await client.post(
            "/api/register/employee",
            json=member_payload(institution_slug=None, institution_id=institution.id),
        )

        assert response.status_code == 201
        assert response.json()["user"]["platform_role"] == "employee"

    async def test_duplicate_email_conflict(self, client, factory: Factory):
        institution = await factory.institution()
        await factory.student(institution, email="juan@parsu.edu.ph")

        response = await client.post("/api/register/student", json=member_payload(email="JUAN@parsu.edu.ph"))

        assert response.status_code == 409
        assert response.json() == {
            "ok": False,
            "error": "User with that email or ID already exists",
            "code": "CONFLICT",
        }

    async def test_duplicate_phone_conflict(self, client, factory: Factory):
        institution = await factory.institution()
        await factory.student(institution, phone="09171234567")

        response = await client.post("/api/register/student", json=member_payload())

        assert response.status_code == 409
        assert response.json()["error"] == "Phone number already exists"

    async def test_duplicate_id_number_conflict(self, client, factory: Factory):
        institution = await factory.institution()
        await factory.employee(institution, id_number="21-00001")

        response = await client.post("/api/register/student", json=member_payload())

        assert response.status_code == 409

    async def test_pending_institution_not_found(self, client, factory: Factory):
        await factory.institution(status=UserStatus.PENDING)

        response = await client.post("/api/register/student", json=member_payload())

        assert response.status_code == 404
        assert response.json()["ok"] is False

    async def test_org_unit_of_other_institution_not_found(self, client, factory: Factory):
        institution = await factory.institution()
        other = await factory.institution(name="Bicol University")
        college, _, _ = await factory.org_units(other)

        response = await client.post(
            "/api/register/student",
            json=member_payload(institution_slug=None, institution_id=institution.id, college_id=college.id),
        )

        assert response.status_code == 404
        assert response.json()["code"] == "COLLEGE_NOT_FOUND"

    async def test_org_unit_chain_accepted(self, client, factory: Factory):
        institution = await factory.institution()
        college, department, program = await factory.org_units(institution)

        response = await client.post(
            "/api/register/student",
            json=member_payload(college_id=college.id, department_id=department.id, program_id=program.id),
        )

        assert response.status_code == 201

    async def test_validation_error_envelope(self, client, factory: Factory):
        await factory.institution()

        response = await client.post("/api/register/student", json=member_payload(password="short"))

        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "error": "Password must be at least 8 characters",
            "code": "VALIDATION_ERROR",
            "details": {"field": "password"},
        }


class TestInstitutionRegistration:

    async def test_institution_starts_pending(self, client):
        response = await client.post("/api/register/institution", json={
            "institution_name": "Partido State University",
            "password": "password123",
            "contact_person_email": "registrar@parsu.edu.ph",
            "email_domain": "parsu.edu.ph",
        })

        assert response.status_code == 201
        assert response.json()["user"]["status"] == "pending"
        assert response.json()["user"]["platform_role"] == "institution"

        login = await client.post("/api/auth/login", json={
            "email": "registrar@parsu.edu.ph",
            "password": "password123",
        })
        assert login.status_code == 403
        assert login.json()["error"] == "Institution account is pending approval"

    async def test_institution_email_must_be_unused(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution)

        response = await client.post("/api/register/institution", json={
            "institution_name": "Another University",
            "password": "password123",
            "contact_person_email": student.email,
        })

        assert response.status_code == 409

    async def test_institution_slugs_are_not_unique(self, client, factory: Factory):
        first = await factory.institution()
        second = await factory.institution()

        # slug lookup resolves to the oldest approved institution
        response = await client.post("/api/register/student", json=member_payload())

        assert response.status_code == 201
        login = await client.post("/api/auth/login", json={"email": "juan@parsu.edu.ph", "password": "password123"})
        session = await client.get("/api/auth/session", headers={"Authorization": f"Bearer {login.json()['access_token']}"})
        assert session.json()["session"]["institution_id"] == first.id
        assert first.id != second.id
