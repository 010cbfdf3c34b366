"""
API tests: projects, sharing, courses and enrollments through the full app.

The record store and notifier dependencies are overridden with the
in-memory fakes; sessions are real JWTs sent as Bearer tokens.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import create_jwt
from app.core.notifier import get_notifier
from app.core.store import get_store
from app.main import app
from conftest import (
    BrokenRecordStore,
    add_conversation,
    add_course,
    add_profile,
    add_project,
    add_share,
)


@pytest.fixture
async def client(store, notifier):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    with patch("app.core.auth.is_jwt_revoked", AsyncMock(return_value=False)):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.clear()


def auth_headers(profile) -> dict:
    token, _ = create_jwt(profile.id, profile.email)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class TestProjectEndpoints:
    async def test_requires_authentication(self, client):
        resp = await client.get("/api/v1/projects/")
        assert resp.status_code == 401

    async def test_create_and_list(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        resp = await client.post(
            "/api/v1/projects/",
            json={"name": "Sourdough", "url_name": "sourdough"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["role"] == "owner"
        assert created["owner_id"] == str(owner.id)

        listed = await client.get("/api/v1/projects/", headers=auth_headers(owner))
        assert [p["id"] for p in listed.json()] == [created["id"]]

    async def test_stranger_gets_403_envelope(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        resp = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers(stranger))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_missing_project_is_404(self, client, store):
        user = await add_profile(store, "a@x.com")
        resp = await client.get(f"/api/v1/projects/{uuid.uuid4()}", headers=auth_headers(user))
        assert resp.status_code == 404
        assert resp.json()["error"] == {"code": "NOT_FOUND", "message": "Project not found", "status": 404}

    async def test_role_endpoint(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        member = await add_profile(store, "km@x.com")
        project = await add_project(store, owner)
        await add_share(
            store, project, email=member.email, role="knowledge_manager", status="accepted", user=member
        )

        resp = await client.get(f"/api/v1/projects/{project.id}/role", headers=auth_headers(member))
        assert resp.json() == {
            "project_id": str(project.id),
            "role": "knowledge_manager",
            "can_edit_courses": False,
            "can_view_courses": True,
            "can_manage_shares": False,
        }

    async def test_role_endpoint_without_access(self, client, store):
        user = await add_profile(store, "a@x.com")
        resp = await client.get(f"/api/v1/projects/{uuid.uuid4()}/role", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["role"] is None


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

class TestShareEndpoints:
    async def test_invite_accept_flow(self, client, store, notifier):
        owner = await add_profile(store, "owner@x.com")
        project = await add_project(store, owner, name="Sourdough")

        resp = await client.post(
            f"/api/v1/projects/{project.id}/shares",
            json={"email": "Friend@x.com", "role": "contributor"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["created"] is True
        share_id = body["share"]["id"]
        assert notifier.sent[0]["to_email"] == "friend@x.com"
        assert notifier.sent[0]["accept_url"].endswith(f"/projects?inviteId={share_id}")

        friend = await add_profile(store, "friend@x.com")
        pending = await client.get("/api/v1/shares/pending", headers=auth_headers(friend))
        assert [(p["id"], p["project_name"]) for p in pending.json()] == [(share_id, "Sourdough")]

        accepted = await client.post(f"/api/v1/shares/{share_id}/accept", headers=auth_headers(friend))
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"
        assert accepted.json()["user_id"] == str(friend.id)

        role = await client.get(f"/api/v1/projects/{project.id}/role", headers=auth_headers(friend))
        assert role.json()["role"] == "contributor"

    @pytest.mark.parametrize(
        "payload, code",
        [
            ({"email": "a@x.com", "role": "owner"}, "INVALID_ROLE"),
            ({"email": "nope", "role": "read_only"}, "INVALID_EMAIL"),
            ({"email": "owner@x.com", "role": "read_only"}, "SELF_INVITE"),
        ],
    )
    async def test_invite_validation(self, client, store, payload, code):
        owner = await add_profile(store, "owner@x.com")
        project = await add_project(store, owner)
        resp = await client.post(
            f"/api/v1/projects/{project.id}/shares", json=payload, headers=auth_headers(owner)
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == code
        assert store.tables["project_shares"] == []

    async def test_list_shares_requires_role(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        await add_share(store, project, email="a@x.com")

        ok = await client.get(f"/api/v1/projects/{project.id}/shares", headers=auth_headers(owner))
        assert len(ok.json()) == 1
        denied = await client.get(f"/api/v1/projects/{project.id}/shares", headers=auth_headers(stranger))
        assert denied.status_code == 403

    async def test_decline_then_accept_conflicts(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        friend = await add_profile(store, "friend@x.com")
        project = await add_project(store, owner)
        share = await add_share(store, project, email=friend.email)

        declined = await client.post(f"/api/v1/shares/{share.id}/decline", headers=auth_headers(friend))
        assert declined.json()["status"] == "declined"
        conflict = await client.post(f"/api/v1/shares/{share.id}/accept", headers=auth_headers(friend))
        assert conflict.status_code == 409

    async def test_owner_updates_role_and_revokes(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        friend = await add_profile(store, "friend@x.com")
        project = await add_project(store, owner)
        share = await add_share(store, project, email=friend.email, status="accepted", user=friend)

        updated = await client.patch(
            f"/api/v1/shares/{share.id}", json={"role": "knowledge_manager"}, headers=auth_headers(owner)
        )
        assert updated.json()["role"] == "knowledge_manager"

        forbidden = await client.patch(
            f"/api/v1/shares/{share.id}", json={"role": "contributor"}, headers=auth_headers(friend)
        )
        assert forbidden.status_code == 403

        revoked = await client.delete(f"/api/v1/shares/{share.id}", headers=auth_headers(owner))
        assert revoked.json() == {"ok": True}
        role = await client.get(f"/api/v1/projects/{project.id}/role", headers=auth_headers(friend))
        assert role.json()["role"] is None


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------

class TestCourseEndpoints:
    async def test_course_lifecycle(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        student = await add_profile(store, "student@x.com", role="customer")
        project = await add_project(store, owner)

        created = await client.post(
            "/api/v1/courses/",
            json={"project_id": str(project.id), "name": "Rye", "price": 20, "duration": 30},
            headers=auth_headers(owner),
        )
        assert created.status_code == 201
        course_id = created.json()["id"]

        denied = await client.get(f"/api/v1/courses/{course_id}", headers=auth_headers(student))
        assert denied.status_code == 403

        before = await client.get(f"/api/v1/courses/{course_id}/access", headers=auth_headers(student))
        assert before.json()["status"] == "none"

        enrolled = await client.post(f"/api/v1/courses/{course_id}/enroll", headers=auth_headers(student))
        assert enrolled.status_code == 201
        assert enrolled.json()["created"] is True
        assert enrolled.json()["subscription"]["is_active"] is True

        after = await client.get(f"/api/v1/courses/{course_id}/access", headers=auth_headers(student))
        assert after.json()["status"] == "active"
        assert after.json()["is_paid"] is True

        mine = await client.get("/api/v1/enrollments/", headers=auth_headers(student))
        assert [e["status"] for e in mine.json()] == ["active"]

    async def test_conversations_visibility(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        student = await add_profile(store, "student@x.com", role="customer")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project, duration=30)
        await add_conversation(store, course, student)

        denied = await client.get(f"/api/v1/courses/{course.id}/conversations", headers=auth_headers(stranger))
        assert denied.status_code == 403

        await client.post(f"/api/v1/courses/{course.id}/enroll", headers=auth_headers(student))
        own = await client.get(f"/api/v1/courses/{course.id}/conversations", headers=auth_headers(student))
        assert own.status_code == 200
        assert len(own.json()) == 1

        everything = await client.get(f"/api/v1/courses/{course.id}/conversations", headers=auth_headers(owner))
        assert len(everything.json()) == 1

    async def test_read_only_member_cannot_edit_course(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        viewer = await add_profile(store, "v@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project)
        await add_share(store, project, email=viewer.email, status="accepted", user=viewer)

        resp = await client.patch(
            f"/api/v1/courses/{course.id}", json={"name": "Hijacked"}, headers=auth_headers(viewer)
        )
        assert resp.status_code == 403
        viewed = await client.get(f"/api/v1/courses/{course.id}", headers=auth_headers(viewer))
        assert viewed.json()["name"] == course.name

    async def test_inactive_course_cannot_be_enrolled(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        student = await add_profile(store, "student@x.com", role="customer")
        project = await add_project(store, owner)
        course = await add_course(store, project, duration=30)
        await store.update("courses", {"id": course.id}, {"is_active": False})

        resp = await client.post(f"/api/v1/courses/{course.id}/enroll", headers=auth_headers(student))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"
        assert store.tables["subscriptions"] == []

    async def test_access_by_telegram_handle(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        student = await add_profile(store, "student@x.com", role="customer")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project, duration=30)
        await store.update("profiles", {"id": student.id}, {"telegram": "chef_anna"})
        await client.post(f"/api/v1/courses/{course.id}/enroll", headers=auth_headers(student))

        url = f"/api/v1/courses/{course.id}/access/telegram/@Chef_Anna"
        ok = await client.get(url, headers=auth_headers(owner))
        assert ok.status_code == 200
        assert ok.json()["status"] == "active"

        denied = await client.get(url, headers=auth_headers(stranger))
        assert denied.status_code == 403

        unknown = await client.get(
            f"/api/v1/courses/{course.id}/access/telegram/nobody", headers=auth_headers(owner)
        )
        assert unknown.status_code == 404
        assert unknown.json()["error"]["message"] == "Profile not found"


# ---------------------------------------------------------------------------
# Store failures
# ---------------------------------------------------------------------------

class TestStoreFailure:
    async def test_write_path_surfaces_503(self, client, store):
        owner = await add_profile(store, "owner@x.com")
        app.dependency_overrides[get_store] = lambda: BrokenRecordStore()
        resp = await client.post(
            f"/api/v1/projects/{uuid.uuid4()}/shares",
            json={"email": "a@x.com", "role": "read_only"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "STORE_ERROR"

    async def test_read_path_fails_closed(self, client, store):
        user = await add_profile(store, "a@x.com")
        app.dependency_overrides[get_store] = lambda: BrokenRecordStore()
        resp = await client.get(f"/api/v1/projects/{uuid.uuid4()}/role", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["can_view_courses"] is False
