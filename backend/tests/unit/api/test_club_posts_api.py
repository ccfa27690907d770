"""
Unit Tests for club posting, review and membership endpoints (employee / student)
"""
import pytest

from app.models import ClubStatus, PostStatus, Visibility

from conftest import Factory, auth_headers, image_file


EVENT_FORM = {
    "type": "event",
    "title": "Hackathon",
    "description": "24 hours of code",
    "start_at": "2030-03-01T09:00:00",
    "end_at": "2030-03-02T09:00:00",
    "venue": "Main Gym",
    "visibility": "institution",
}


@pytest.fixture
async def campus(factory: Factory):
    institution = await factory.institution()
    advisor = await factory.employee(institution)
    officer = await factory.student(institution)
    member = await factory.student(institution)
    club = await factory.club(institution, name="Computer Society", advisor=advisor, officers=[officer], members=[member])
    return {"institution": institution, "advisor": advisor, "officer": officer, "member": member, "club": club}


class TestPosting:

    async def test_advisor_post_is_approved(self, client, campus, storage):
        club = campus["club"]

        response = await client.post(
            f"/api/employee/clubs/{club.id}/posts",
            data=EVENT_FORM,
            files={"image": image_file("poster.png")},
            headers=auth_headers(campus["advisor"]),
        )

        assert response.status_code == 201
        post = response.json()["post"]
        assert post["status"] == "approved"
        assert post["type"] == "event"
        assert post["club_id"] == club.id
        assert storage.path_for(post["image_url"]).exists()

    async def test_member_post_waits_for_advisor(self, client, campus):
        club = campus["club"]

        created = await client.post(
            f"/api/student/clubs/{club.id}/posts",
            data={"type": "announcement", "title": "Meeting moved", "description": "Now at 5pm"},
            headers=auth_headers(campus["member"]),
        )
        assert created.status_code == 201
        post = created.json()["post"]
        assert post["status"] == "pending"
        assert post["type"] == "announcement"

        reviewed = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{post['id']}/approve",
            json={"action": "approve"},
            headers=auth_headers(campus["advisor"]),
        )
        assert reviewed.status_code == 200
        assert reviewed.json()["post"]["status"] == "approved"

        again = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{post['id']}/approve",
            json={"action": "reject"},
            headers=auth_headers(campus["advisor"]),
        )
        assert again.status_code == 400
        assert again.json()["code"] == "INVALID_TRANSITION"

    async def test_institution_reviews_club_post(self, client, campus):
        club = campus["club"]
        created = await client.post(
            f"/api/student/clubs/{club.id}/posts",
            data={"type": "announcement", "title": "Tryouts", "description": "Saturday"},
            headers=auth_headers(campus["member"]),
        )

        response = await client.patch(
            f"/api/institution/clubs/{club.id}/posts/{created.json()['post']['id']}/review",
            json={"action": "reject"},
            headers=auth_headers(campus["institution"]),
        )

        assert response.status_code == 200
        assert response.json()["post"]["status"] == "rejected"

    async def test_officer_event_requires_tags(self, client, campus):
        club = campus["club"]

        without = await client.post(
            f"/api/student/clubs/{club.id}/posts",
            data=EVENT_FORM,
            headers=auth_headers(campus["officer"]),
        )
        assert without.status_code == 400
        assert without.json()["details"] == {"field": "tags"}

        tagged = await client.post(
            f"/api/student/clubs/{club.id}/posts",
            data={**EVENT_FORM, "tags": "Tech, Outreach"},
            headers=auth_headers(campus["officer"]),
        )
        assert tagged.status_code == 201
        assert tagged.json()["post"]["status"] == "pending"
        assert sorted(tagged.json()["post"]["tags"]) == ["outreach", "tech"]

    async def test_event_form_validation(self, client, campus):
        response = await client.post(
            f"/api/employee/clubs/{campus['club'].id}/posts",
            data={**EVENT_FORM, "venue": ""},
            headers=auth_headers(campus["advisor"]),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Venue is required for events"

    async def test_outsider_cannot_post(self, client, factory: Factory, campus):
        outsider = await factory.student(campus["institution"])

        response = await client.post(
            f"/api/student/clubs/{campus['club'].id}/posts",
            data=EVENT_FORM,
            headers=auth_headers(outsider),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "You are not an advisor or member of this club"

    async def test_suspended_club_cannot_post(self, client, factory: Factory, campus):
        advisor = await factory.employee(campus["institution"])
        club = await factory.club(campus["institution"], status=ClubStatus.SUSPENDED, advisor=advisor)

        response = await client.post(
            f"/api/employee/clubs/{club.id}/posts",
            data=EVENT_FORM,
            headers=auth_headers(advisor),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Club is suspended"

    async def test_other_institution_club_not_found(self, client, factory: Factory, campus):
        other = await factory.institution(name="Bicol University")
        club = await factory.club(other)

        response = await client.get(f"/api/student/clubs/{club.id}/posts", headers=auth_headers(campus["member"]))

        assert response.status_code == 404

    async def test_list_posts_marks_advisor_posts(self, client, factory: Factory, campus):
        club = campus["club"]
        await factory.event(campus["institution"], club, author=campus["advisor"])
        await factory.announcement(campus["institution"], club, author=campus["member"])

        response = await client.get(f"/api/student/clubs/{club.id}/posts", headers=auth_headers(campus["member"]))

        assert response.status_code == 200
        assert sorted(p["author_type"] for p in response.json()["posts"]) == ["advisor", "member"]


class TestEditAndDelete:

    async def test_edit_resets_status_by_grant(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["advisor"])

        response = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{event.id}",
            data={"title": "Hackathon 2030", "tags": "tech"},
            headers=auth_headers(campus["advisor"]),
        )

        assert response.status_code == 200
        post = response.json()["post"]
        assert post["title"] == "Hackathon 2030"
        assert post["status"] == "approved"
        assert post["tags"] == ["tech"]

    async def test_edit_rejects_inverted_schedule(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["advisor"])

        response = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{event.id}",
            data={"end_at": "2000-01-01T00:00:00"},
            headers=auth_headers(campus["advisor"]),
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "end_at"}

    async def test_member_cannot_delete(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["member"])

        response = await client.delete(
            f"/api/student/clubs/{club.id}/posts/{event.id}",
            headers=auth_headers(campus["member"]),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Only the club advisor or officer can delete posts"

    async def test_officer_soft_deletes(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["member"])

        response = await client.delete(
            f"/api/student/clubs/{club.id}/posts/{event.id}",
            headers=auth_headers(campus["officer"]),
        )
        assert response.status_code == 200

        posts = await client.get(f"/api/student/clubs/{club.id}/posts", headers=auth_headers(campus["officer"]))
        assert posts.json()["posts"] == []
        detail = await client.get(f"/api/events/{event.id}", headers=auth_headers(campus["member"]))
        assert detail.status_code == 404

    async def test_deleted_post_stays_deleted_after_edit(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["advisor"],
                                    visibility=Visibility.PUBLIC)

        deleted = await client.delete(
            f"/api/student/clubs/{club.id}/posts/{event.id}",
            headers=auth_headers(campus["officer"]),
        )
        assert deleted.status_code == 200

        edit = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{event.id}",
            data={"title": "Back again"},
            headers=auth_headers(campus["advisor"]),
        )
        assert edit.status_code == 404
        assert edit.json()["code"] == "POST_NOT_FOUND"

        detail = await client.get(f"/api/events/{event.id}", headers=auth_headers(campus["member"]))
        assert detail.status_code == 404
        feed = await client.get("/api/newsfeed", headers=auth_headers(campus["member"]))
        assert event.id not in [item["id"] for item in feed.json()["items"]]

    async def test_pending_post_cannot_be_published_directly(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["member"], status=PostStatus.PENDING)

        response = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{event.id}/status",
            json={"status": "published"},
            headers=auth_headers(campus["advisor"]),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_TRANSITION"
        assert body["details"]["from"] == "pending"

    async def test_hide_and_publish(self, client, factory: Factory, campus):
        club = campus["club"]
        event = await factory.event(campus["institution"], club, author=campus["advisor"])
        headers = auth_headers(campus["advisor"])

        hidden = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{event.id}/status", json={"status": "hidden"}, headers=headers
        )
        published = await client.patch(
            f"/api/employee/clubs/{club.id}/posts/{event.id}/status", json={"status": "published"}, headers=headers
        )

        assert hidden.json()["post"]["status"] == "hidden"
        assert published.json()["post"]["status"] == "published"


class TestMembership:

    async def test_advisor_promotes_officer(self, client, campus):
        club = campus["club"]
        headers = auth_headers(campus["advisor"])

        response = await client.patch(
            f"/api/employee/clubs/{club.id}/members/{campus['member'].id}/reassign",
            json={"role": "officer"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["member"] == {"user_id": campus["member"].id, "role": "officer"}

        roster = await client.get(f"/api/employee/clubs/{club.id}/students", headers=headers)
        roles = {m["user_id"]: m["role"] for m in roster.json()["members"]}
        assert roles == {campus["member"].id: "officer", campus["officer"].id: "member"}

    async def test_only_advisor_reassigns(self, client, factory: Factory, campus):
        staff = await factory.employee(campus["institution"], is_staff=True)

        response = await client.patch(
            f"/api/employee/clubs/{campus['club'].id}/members/{campus['member'].id}/reassign",
            json={"role": "officer"},
            headers=auth_headers(staff),
        )

        assert response.status_code == 403

    async def test_remove_member(self, client, campus):
        club = campus["club"]
        headers = auth_headers(campus["advisor"])

        removed = await client.delete(
            f"/api/employee/clubs/{club.id}/members/{campus['member'].id}/remove", headers=headers
        )
        missing = await client.delete(
            f"/api/employee/clubs/{club.id}/members/{campus['member'].id}/remove", headers=headers
        )

        assert removed.status_code == 200
        assert missing.status_code == 404
        assert missing.json()["code"] == "MEMBER_NOT_FOUND"

    async def test_officer_adds_member(self, client, factory: Factory, campus):
        club = campus["club"]
        newcomer = await factory.student(campus["institution"])
        headers = auth_headers(campus["officer"])

        candidates = await client.get(f"/api/student/clubs/{club.id}/students", headers=headers)
        assert [s["user_id"] for s in candidates.json()["students"]] == [newcomer.id]

        added = await client.post(f"/api/student/clubs/{club.id}/members", json={"user_id": newcomer.id}, headers=headers)
        assert added.status_code == 201
        assert added.json()["member"] == {"user_id": newcomer.id, "role": "member"}

        again = await client.post(f"/api/student/clubs/{club.id}/members", json={"user_id": newcomer.id}, headers=headers)
        assert again.status_code == 409

    async def test_member_cannot_add(self, client, factory: Factory, campus):
        newcomer = await factory.student(campus["institution"])

        response = await client.post(
            f"/api/student/clubs/{campus['club'].id}/members",
            json={"user_id": newcomer.id},
            headers=auth_headers(campus["member"]),
        )

        assert response.status_code == 403

    async def test_my_clubs_relations(self, client, campus):
        officer_clubs = await client.get("/api/student/clubs", headers=auth_headers(campus["officer"]))
        advisor_clubs = await client.get("/api/employee/clubs", headers=auth_headers(campus["advisor"]))

        assert [(c["id"], c["relation"]) for c in officer_clubs.json()["clubs"]] == [(campus["club"].id, "officer")]
        assert advisor_clubs.json()["clubs"][0]["relation"] == "advisor"


class TestStudentClubs:

    async def test_propose_club(self, client, factory: Factory):
        institution = await factory.institution()
        student = await factory.student(institution)

        response = await client.post(
            "/api/student/clubs",
            json={"name": "Robotics Guild", "acronym": "RG", "about": "Build robots"},
            headers=auth_headers(student),
        )

        assert response.status_code == 201
        club = response.json()["club"]
        assert club["status"] == "pending"
        assert club["relation"] == "officer"
        assert club["created_by_id"] == student.id

        clubs = await client.get("/api/student/clubs", headers=auth_headers(student))
        assert clubs.json()["clubs"][0]["relation"] == "officer"

        approved = await client.patch(f"/api/institution/clubs/{club['id']}/approve", headers=auth_headers(institution))
        assert approved.json()["club"]["status"] == "approved"

    async def test_officer_updates_club(self, client, campus):
        club = campus["club"]

        response = await client.patch(
            f"/api/student/clubs/{club.id}",
            data={"about": "Code and community"},
            files={"logo": image_file()},
            headers=auth_headers(campus["officer"]),
        )

        assert response.status_code == 200
        assert response.json()["club"]["about"] == "Code and community"
        assert response.json()["club"]["logo_url"].startswith("/uploads/clubs/")

    async def test_member_cannot_update_club(self, client, campus):
        response = await client.patch(
            f"/api/student/clubs/{campus['club'].id}",
            data={"about": "Hijacked"},
            headers=auth_headers(campus["member"]),
        )

        assert response.status_code == 403

    async def test_employee_cannot_use_student_routes(self, client, campus):
        response = await client.get("/api/student/clubs", headers=auth_headers(campus["advisor"]))

        assert response.status_code == 403
