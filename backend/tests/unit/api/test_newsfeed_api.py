"""
Unit Tests for the newsfeed endpoint
"""
from datetime import datetime, timedelta

import pytest

from app.models import PostStatus, Visibility

from conftest import Factory, auth_headers


@pytest.fixture
async def feed(factory: Factory):
    """Two institutions with a mix of public, institution-only and unpublished posts"""
    home = await factory.institution()
    away = await factory.institution(name="Bicol University")
    student = await factory.student(home)
    club = await factory.club(home, name="Computer Society")
    now = datetime.utcnow()

    posts = {
        "home_event": await factory.event(home, club, start_at=now + timedelta(days=2), title="Hackathon"),
        "home_public": await factory.event(home, visibility=Visibility.PUBLIC, start_at=now + timedelta(days=1)),
        "away_public": await factory.event(away, visibility=Visibility.PUBLIC, start_at=now + timedelta(days=3)),
        "away_private": await factory.event(away, start_at=now + timedelta(days=4)),
        "home_announcement": await factory.announcement(home, club, created_at=now - timedelta(hours=1)),
        "pending_event": await factory.event(home, status=PostStatus.PENDING),
        "hidden_event": await factory.event(home, status=PostStatus.HIDDEN),
        "old_event": await factory.event(home, start_at=now - timedelta(days=45)),
        "approved_announcement": await factory.announcement(home, status=PostStatus.APPROVED),
        "restricted_event": await factory.event(home, visibility=Visibility.RESTRICTED),
    }
    return {"home": home, "away": away, "student": student, "club": club, "posts": posts}


def ids(response):
    return [item["id"] for item in response.json()["items"]]


class TestNewsfeed:

    async def test_all_filter(self, client, feed):
        posts = feed["posts"]

        response = await client.get("/api/newsfeed", headers=auth_headers(feed["student"]))

        assert response.status_code == 200
        assert set(ids(response)) == {
            posts["home_event"].id,
            posts["home_public"].id,
            posts["away_public"].id,
            posts["home_announcement"].id,
        }

    async def test_institution_filter(self, client, feed):
        posts = feed["posts"]

        response = await client.get("/api/newsfeed?filter=institution", headers=auth_headers(feed["student"]))

        assert set(ids(response)) == {posts["home_event"].id, posts["home_public"].id, posts["home_announcement"].id}

    async def test_public_filter(self, client, feed):
        posts = feed["posts"]

        response = await client.get("/api/newsfeed?filter=public", headers=auth_headers(feed["student"]))

        assert set(ids(response)) == {posts["home_public"].id, posts["away_public"].id}

    async def test_items_sorted_newest_first(self, client, feed):
        posts = feed["posts"]

        response = await client.get("/api/newsfeed", headers=auth_headers(feed["student"]))

        # events by start time, announcements by creation time
        assert ids(response) == [
            posts["away_public"].id,
            posts["home_event"].id,
            posts["home_public"].id,
            posts["home_announcement"].id,
        ]

    async def test_items_carry_type_counts_and_club(self, client, feed):
        headers = auth_headers(feed["student"])
        event = feed["posts"]["home_event"]
        await client.post(f"/api/events/{event.id}/rsvp", json={"state": "going"}, headers=headers)

        response = await client.get("/api/newsfeed?filter=institution", headers=headers)

        items = {item["id"]: item for item in response.json()["items"]}
        assert items[event.id]["type"] == "event"
        assert items[event.id]["club_name"] == "Computer Society"
        assert items[event.id]["rsvp_state"] == "going"
        assert items[event.id]["counts"] == {"going": 1, "interested": 0, "checkedIn": 0}
        announcement = items[feed["posts"]["home_announcement"].id]
        assert announcement["type"] == "announcement"
        assert announcement["author_type"] == "club"

    async def test_soft_deleted_event_disappears(self, client, feed):
        event = feed["posts"]["home_event"]

        await client.delete(f"/api/institution/events/{event.id}", headers=auth_headers(feed["home"]))
        response = await client.get("/api/newsfeed", headers=auth_headers(feed["student"]))

        assert event.id not in ids(response)

    async def test_limit(self, client, feed):
        response = await client.get("/api/newsfeed?limit=2", headers=auth_headers(feed["student"]))

        assert len(response.json()["items"]) == 2

    async def test_super_admin_sees_public_posts(self, client, factory: Factory, feed):
        admin = await factory.super_admin()
        posts = feed["posts"]

        response = await client.get("/api/newsfeed?filter=institution", headers=auth_headers(admin))

        assert set(ids(response)) == {posts["home_public"].id, posts["away_public"].id}

    async def test_requires_session(self, client):
        response = await client.get("/api/newsfeed")

        assert response.status_code == 401

    async def test_unknown_filter(self, client, feed):
        response = await client.get("/api/newsfeed?filter=trending", headers=auth_headers(feed["student"]))

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "filter"}

    async def test_limit_out_of_range(self, client, feed):
        response = await client.get("/api/newsfeed?limit=500", headers=auth_headers(feed["student"]))

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "limit"}
