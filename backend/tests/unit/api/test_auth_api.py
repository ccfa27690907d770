"""
Unit Tests for login, logout and session resolution
"""
from app.models import UserStatus, MembershipStatus, PlatformRole
from app.core.security import create_access_token

from conftest import Factory, PASSWORD, auth_headers


class TestLogin:

    async def test_login_sets_session_cookie(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution)

        response = await client.post("/api/auth/login", json={"email": student.email.upper(), "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["token_type"] == "bearer"
        assert body["user"]["id"] == student.id
        assert body["user"]["last_login"] is not None
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session=")
        assert "httponly" in cookie.lower()

    async def test_session_cookie_resolves_session(self, client, factory: Factory):
        institution = await factory.institution()
        employee = await factory.employee(institution, is_staff=True)

        login = await client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
        token = login.json()["access_token"]

        response = await client.get("/api/auth/session", headers={"Cookie": f"session={token}"})

        assert response.status_code == 200
        assert response.json()["session"] == {
            "user_id": employee.id,
            "role": "employee",
            "institution_id": institution.id,
            "email": employee.email,
            "name": employee.name,
            "is_staff": True,
        }

    async def test_wrong_password(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution)

        response = await client.post("/api/auth/login", json={"email": student.email, "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Invalid email or password", "code": "AUTH_FAILED"}

    async def test_unknown_email(self, client):
        response = await client.post("/api/auth/login", json={"email": "nobody@parsu.edu.ph", "password": PASSWORD})

        assert response.status_code == 401

    async def test_disabled_account(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution, status=UserStatus.DISABLED)

        response = await client.post("/api/auth/login", json={"email": student.email, "password": PASSWORD})

        assert response.status_code == 403
        assert response.json()["error"] == "Account is disabled"

    async def test_rejected_membership(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution, membership_status=MembershipStatus.REJECTED)

        response = await client.post("/api/auth/login", json={"email": student.email, "password": PASSWORD})

        assert response.status_code == 403
        assert response.json()["error"] == "Institution membership was rejected"

    async def test_rejected_institution(self, client, factory: Factory):
        institution = await factory.institution(status=UserStatus.REJECTED)

        response = await client.post("/api/auth/login", json={"email": institution.email, "password": PASSWORD})

        assert response.status_code == 403
        assert response.json()["error"] == "Institution account is not approved"

    async def test_approved_institution_session(self, client, factory: Factory):
        institution = await factory.institution()

        login = await client.post("/api/auth/login", json={"email": institution.email, "password": PASSWORD})
        session = await client.get(
            "/api/auth/session",
            headers={"Authorization": f"Bearer {login.json()['access_token']}"},
        )

        assert session.json()["session"]["role"] == "institution"
        assert session.json()["session"]["institution_id"] == institution.id

    async def test_missing_password_is_validation_error(self, client):
        response = await client.post("/api/auth/login", json={"email": "a@parsu.edu.ph"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["details"] == {"field": "password"}


class TestSession:

    async def test_no_token(self, client):
        response = await client.get("/api/auth/session")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_FAILED"

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/session", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401

    async def test_role_changed_since_sign_in(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution)
        stale = create_access_token({"sub": student.id, "email": student.email, "role": PlatformRole.EMPLOYEE.value})

        response = await client.get("/api/auth/session", headers={"Authorization": f"Bearer {stale}"})

        assert response.status_code == 401

    async def test_rejected_after_sign_in(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution)
        headers = auth_headers(student)

        response = await client.patch(
            f"/api/institution/users/{student.id}/reject",
            headers=auth_headers(institution),
        )
        assert response.status_code == 200

        response = await client.get("/api/auth/session", headers=headers)
        assert response.status_code == 403

    async def test_logout_clears_cookie(self, client):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session=")
        assert "max-age=0" in cookie.lower()
