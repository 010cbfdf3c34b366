"""
Tests for the project and course services.

Covers:
- Project creation, ownership and owner-only updates
- Accessible project listing (owned + accepted shares)
- Course CRUD gated by edit/view capabilities
- Conversation history visibility
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import NotFoundError, PermissionDeniedError
from app.services import projects
from app.services.profiles import ensure_profile_exists, get_profile_by_email
from creator_hub_shared.schemas.common import ProfileRole, ProjectRole
from creator_hub_shared.schemas.courses import CourseCreate, CourseUpdate
from creator_hub_shared.schemas.projects import ProjectCreate, ProjectUpdate
from conftest import (
    add_conversation,
    add_course,
    add_enrollment,
    add_profile,
    add_project,
    add_share,
    add_subscription,
)

NOW = datetime(2024, 4, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class TestEnsureProfileExists:
    async def test_creates_once(self, store):
        user_id = uuid.uuid4()
        first = await ensure_profile_exists(store, user_id, "New@Example.com")
        second = await ensure_profile_exists(store, user_id, "other@example.com")
        assert first is second
        assert first.email == "new@example.com"
        assert first.role == "influencer"
        assert len(store.tables["profiles"]) == 1

    async def test_normalizes_telegram_handle(self, store):
        profile = await ensure_profile_exists(
            store, uuid.uuid4(), "t@x.com", ProfileRole.CUSTOMER, telegram="@ChefBot"
        )
        assert profile.telegram == "chefbot"
        assert profile.role == "customer"

    async def test_lookup_by_email_is_case_insensitive(self, store):
        profile = await add_profile(store, "a@x.com")
        assert await get_profile_by_email(store, " A@X.COM ") is profile


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class TestProjects:
    async def test_creator_becomes_owner(self, store):
        owner = await add_profile(store, "owner@x.com")
        project = await projects.create_project(
            store, owner.id, ProjectCreate(name="Baking", url_name="baking")
        )
        assert project.owner_id == owner.id
        _, role = await projects.get_project_for_user(store, owner.id, project.id)
        assert role == ProjectRole.OWNER

    async def test_stranger_cannot_read_project(self, store):
        owner = await add_profile(store, "owner@x.com")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        with pytest.raises(PermissionDeniedError):
            await projects.get_project_for_user(store, stranger.id, project.id)

    async def test_missing_project(self, store):
        with pytest.raises(NotFoundError):
            await projects.get_project_or_404(store, uuid.uuid4())

    async def test_owner_updates_project(self, store):
        owner = await add_profile(store, "owner@x.com")
        project = await add_project(store, owner)
        updated = await projects.update_project(
            store, owner.id, project.id, ProjectUpdate(description="Bread and more")
        )
        assert updated.description == "Bread and more"
        assert updated.name == project.name

    async def test_contributor_cannot_update_project(self, store):
        owner = await add_profile(store, "owner@x.com")
        member = await add_profile(store, "c@x.com")
        project = await add_project(store, owner)
        await add_share(store, project, email=member.email, role="contributor", status="accepted", user=member)
        with pytest.raises(PermissionDeniedError):
            await projects.update_project(store, member.id, project.id, ProjectUpdate(name="Mine"))

    async def test_list_accessible_projects(self, store):
        me = await add_profile(store, "me@x.com")
        other = await add_profile(store, "other@x.com")
        mine = await add_project(store, me, name="Mine")
        shared = await add_project(store, other, name="Shared")
        pending = await add_project(store, other, name="Pending")
        await add_project(store, other, name="Hidden")
        await add_share(store, shared, email=me.email, role="knowledge_manager", status="accepted", user=me)
        await add_share(store, pending, email=me.email, role="contributor", status="pending", user=me)

        listed = {p.name: role for p, role in await projects.list_accessible_projects(store, me.id)}
        assert listed == {"Mine": ProjectRole.OWNER, "Shared": ProjectRole.KNOWLEDGE_MANAGER}
        assert mine.id != shared.id


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------

class TestCourses:
    async def test_contributor_creates_course(self, store):
        owner = await add_profile(store, "owner@x.com")
        member = await add_profile(store, "c@x.com")
        project = await add_project(store, owner)
        await add_share(store, project, email=member.email, role="contributor", status="accepted", user=member)

        course = await projects.create_course(
            store, member.id, CourseCreate(project_id=project.id, name="Pasta", price=10, duration=30)
        )
        assert course.project_id == project.id
        assert course.duration == 30

    @pytest.mark.parametrize("role", ["knowledge_manager", "read_only"])
    async def test_viewer_roles_cannot_edit(self, store, role):
        owner = await add_profile(store, "owner@x.com")
        member = await add_profile(store, "m@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project)
        await add_share(store, project, email=member.email, role=role, status="accepted", user=member)

        with pytest.raises(PermissionDeniedError):
            await projects.create_course(store, member.id, CourseCreate(project_id=project.id, name="X"))
        with pytest.raises(PermissionDeniedError):
            await projects.update_course(store, member.id, course.id, CourseUpdate(name="Y"))

        viewed = await projects.get_course_for_viewer(store, member.id, course.id)
        assert viewed.id == course.id
        assert [c.id for c in await projects.list_project_courses(store, member.id, project.id)] == [course.id]

    async def test_owner_updates_course(self, store):
        owner = await add_profile(store, "owner@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project)
        updated = await projects.update_course(
            store, owner.id, course.id, CourseUpdate(price=99, is_active=False)
        )
        assert updated.price == 99
        assert updated.is_active is False

    async def test_stranger_cannot_view_course(self, store):
        owner = await add_profile(store, "owner@x.com")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project)
        with pytest.raises(PermissionDeniedError):
            await projects.get_course_for_viewer(store, stranger.id, course.id)


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------

class TestConversations:
    async def test_member_sees_all_subscriber_sees_own(self, store):
        owner = await add_profile(store, "owner@x.com")
        alice = await add_profile(store, "alice@x.com", role="customer")
        bob = await add_profile(store, "bob@x.com", role="customer")
        project = await add_project(store, owner)
        course = await add_course(store, project, duration=30)
        for student in (alice, bob):
            enrollment = await add_enrollment(store, student, course)
            await add_subscription(store, enrollment, begin=NOW - timedelta(days=1), end=NOW + timedelta(days=29))
            await add_conversation(store, course, student, message=f"from {student.email}")

        all_rows = await projects.list_conversations(store, owner.id, course.id, NOW)
        assert len(all_rows) == 2

        own = await projects.list_conversations(store, alice.id, course.id, NOW)
        assert [c.user_id for c in own] == [alice.id]

    async def test_non_subscriber_is_denied(self, store):
        owner = await add_profile(store, "owner@x.com")
        stranger = await add_profile(store, "s@x.com")
        project = await add_project(store, owner)
        course = await add_course(store, project)
        with pytest.raises(PermissionDeniedError):
            await projects.list_conversations(store, stranger.id, course.id, NOW)
