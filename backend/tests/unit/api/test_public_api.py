"""
Unit Tests for public registration-form endpoints and health checks
"""
from app.models import UserStatus

from conftest import Factory


class TestPublicInstitutions:

    async def test_lists_only_approved_institutions(self, client, factory: Factory):
        approved = await factory.institution(name="Partido State University")
        await factory.institution(name="Bicol University", status=UserStatus.PENDING)
        await factory.institution(name="Ateneo de Naga", status=UserStatus.REJECTED)

        response = await client.get("/api/public/institutions")

        assert response.status_code == 200
        institutions = response.json()["institutions"]
        assert [i["id"] for i in institutions] == [approved.id]
        assert institutions[0]["slug"] == "partido-state-university"

    async def test_sorted_by_name(self, client, factory: Factory):
        await factory.institution(name="Partido State University")
        await factory.institution(name="Bicol University")

        response = await client.get("/api/public/institutions")

        assert [i["name"] for i in response.json()["institutions"]] == [
            "Bicol University",
            "Partido State University",
        ]


class TestPublicOrgUnits:

    async def test_colleges_departments_programs(self, client, factory: Factory):
        institution = await factory.institution()
        college, department, program = await factory.org_units(institution)
        base = f"/api/public/institution/{institution.id}"

        colleges = await client.get(f"{base}/colleges")
        departments = await client.get(f"{base}/departments?college_id={college.id}")
        programs = await client.get(f"{base}/programs?department_id={department.id}")

        assert [c["id"] for c in colleges.json()["colleges"]] == [college.id]
        assert [d["id"] for d in departments.json()["departments"]] == [department.id]
        assert [p["id"] for p in programs.json()["programs"]] == [program.id]

    async def test_parent_filter_excludes_other_units(self, client, factory: Factory):
        institution = await factory.institution()
        await factory.org_units(institution)

        response = await client.get(
            f"/api/public/institution/{institution.id}/departments?college_id=unknown-college"
        )

        assert response.status_code == 200
        assert response.json()["departments"] == []

    async def test_units_of_other_institution_not_listed(self, client, factory: Factory):
        institution = await factory.institution()
        other = await factory.institution(name="Bicol University")
        await factory.org_units(other)

        response = await client.get(f"/api/public/institution/{institution.id}/colleges")

        assert response.json()["colleges"] == []

    async def test_pending_institution_not_found(self, client, factory: Factory):
        institution = await factory.institution(status=UserStatus.PENDING)

        response = await client.get(f"/api/public/institution/{institution.id}/colleges")

        assert response.status_code == 404
        assert response.json()["code"] == "INSTITUTION_NOT_FOUND"


class TestHealth:

    async def test_liveness(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["status"] == "healthy"
        assert body["service"] == "CampusConnect"

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/api/health", headers={"X-Request-ID": "probe-1"})

        assert response.headers["X-Request-ID"] == "probe-1"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
