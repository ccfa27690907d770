"""
End-to-end flow through the HTTP API: institution onboarding, a student
club, an advisor-posted event and an RSVP.
"""
from conftest import Factory, auth_headers


async def login(client, email, password="password123"):
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def test_campus_club_event_flow(client, factory: Factory):
    admin = await factory.super_admin()

    # Institution signs up and is approved by the super-admin
    registered = await client.post("/api/register/institution", json={
        "institution_name": "PSU",
        "password": "password123",
        "contact_person_email": "registrar@psu.edu.ph",
        "email_domain": "psu.edu.ph",
    })
    assert registered.status_code == 201
    institution_id = registered.json()["user"]["id"]

    approved = await client.patch(
        f"/api/admin/institutions/{institution_id}/status",
        json={"action": "approve"},
        headers=auth_headers(admin),
    )
    assert approved.json()["institution"]["status"] == "approved"
    institution = await login(client, "registrar@psu.edu.ph")

    # Student and employee register against the institution slug
    student_signup = await client.post("/api/register/student", json={
        "name": "Maria Santos",
        "id_number": "21-00001",
        "email": "maria@psu.edu.ph",
        "password": "password123",
        "phone": "09170000001",
        "institution_slug": "psu",
    })
    employee_signup = await client.post("/api/register/employee", json={
        "name": "Jose Rizal",
        "id_number": "E-0001",
        "email": "jose@psu.edu.ph",
        "password": "password123",
        "phone": "09170000002",
        "institution_slug": "psu",
    })
    assert student_signup.status_code == 201
    assert employee_signup.status_code == 201
    employee_id = employee_signup.json()["user"]["id"]
    student = await login(client, "maria@psu.edu.ph")
    employee = await login(client, "jose@psu.edu.ph")

    # Student proposes a club; the institution approves it
    proposed = await client.post("/api/student/clubs", json={"name": "CS Society", "acronym": "CSS"}, headers=student)
    assert proposed.status_code == 201
    club = proposed.json()["club"]
    assert club["status"] == "pending"

    approved = await client.patch(f"/api/institution/clubs/{club['id']}/approve", headers=institution)
    assert approved.json()["club"]["status"] == "approved"

    assigned = await client.post(
        f"/api/institution/clubs/{club['id']}/advisors/{employee_id}/assign", headers=institution
    )
    assert assigned.json()["club"]["advisor_id"] == employee_id

    # The advisor's event is approved without review
    posted = await client.post(
        f"/api/employee/clubs/{club['id']}/posts",
        data={
            "type": "event",
            "title": "Hackathon",
            "description": "24 hours of code",
            "start_at": "2030-03-01T09:00:00",
            "venue": "Main Gym",
            "tags": "tech",
        },
        headers=employee,
    )
    assert posted.status_code == 201
    event = posted.json()["post"]
    assert event["status"] == "approved"

    rsvp = await client.post(f"/api/events/{event['id']}/rsvp", json={"state": "going"}, headers=student)
    assert rsvp.json()["state"] == "going"

    detail = await client.get(f"/api/events/{event['id']}", headers=student)
    assert detail.status_code == 200
    assert detail.json()["event"]["counts"] == {"going": 1, "interested": 0, "checkedIn": 0}
    assert detail.json()["event"]["rsvp_state"] == "going"
    assert detail.json()["event"]["club_name"] == "CS Society"

    feed = await client.get("/api/newsfeed?filter=institution", headers=student)
    assert [item["id"] for item in feed.json()["items"]] == [event["id"]]

    # Every transition along the way left an audit entry
    audit = await client.get(f"/api/admin/audit-logs?entity_id={club['id']}", headers=auth_headers(admin))
    actions = {item["action"] for item in audit.json()["items"]}
    assert {"club.propose", "club.approve", "club.advisor.assign"} <= actions
