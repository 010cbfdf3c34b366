"""
Project and course service: CRUD gated by the project resolver.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from app.core.errors import NotFoundError, PermissionDeniedError
from app.core.store import RecordStore, find_one
from app.models.course import Course
from app.models.project import Project
from app.services.permissions import (
    can_access_conversations,
    can_edit_courses,
    can_view_courses,
    has_capability,
    resolve_role,
)
from creator_hub_shared.schemas.common import CONVERSATION_ROLES, ProjectRole, ShareStatus
from creator_hub_shared.schemas.courses import CourseCreate, CourseUpdate
from creator_hub_shared.schemas.projects import ProjectCreate, ProjectUpdate

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

async def get_project_or_404(store: RecordStore, project_id: uuid.UUID) -> Project:
    project = await find_one(store, "projects", {"id": project_id})
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def create_project(
    store: RecordStore, owner_id: uuid.UUID, req: ProjectCreate
) -> Project:
    """Create a project; the creator becomes its permanent owner."""
    project = await store.insert(
        "projects",
        Project(
            owner_id=owner_id,
            name=req.name,
            description=req.description,
            url_name=req.url_name,
        ),
    )
    log.info("project.created", project_id=str(project.id), owner_id=str(owner_id))
    return project


async def get_project_for_user(
    store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID
) -> tuple[Project, ProjectRole]:
    project = await get_project_or_404(store, project_id)
    role = await resolve_role(store, user_id, project.id)
    if role is None:
        raise PermissionDeniedError("You do not have access to this project")
    return project, role


async def update_project(
    store: RecordStore,
    actor_id: uuid.UUID,
    project_id: uuid.UUID,
    req: ProjectUpdate,
) -> Project:
    """Owner-only update. Ownership itself is not editable."""
    project = await get_project_or_404(store, project_id)
    if project.owner_id != actor_id:
        raise PermissionDeniedError("Only the project owner can update the project")

    patch = req.model_dump(exclude_unset=True)
    if patch:
        patch["updated_at"] = datetime.now(timezone.utc)
        await store.update("projects", {"id": project.id}, patch)
        log.info("project.updated", project_id=str(project.id), fields=sorted(patch))
    return await get_project_or_404(store, project.id)


async def list_accessible_projects(
    store: RecordStore, user_id: uuid.UUID
) -> list[tuple[Project, ProjectRole]]:
    """Owned projects plus projects shared with the user (accepted shares)."""
    owned = await store.find("projects", {"owner_id": user_id})
    results: dict[uuid.UUID, tuple[Project, ProjectRole]] = {
        p.id: (p, ProjectRole.OWNER) for p in owned
    }

    shares = await store.find(
        "project_shares", {"user_id": user_id, "status": ShareStatus.ACCEPTED.value}
    )
    shared_ids = {s.project_id for s in shares} - set(results)
    if shared_ids:
        for project in await store.find("projects", {"id": list(shared_ids)}):
            role = await resolve_role(store, user_id, project.id)
            if role is not None:
                results[project.id] = (project, role)

    return sorted(results.values(), key=lambda item: item[0].created_at)


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------

async def get_course_or_404(store: RecordStore, course_id: uuid.UUID) -> Course:
    course = await find_one(store, "courses", {"id": course_id})
    if course is None:
        raise NotFoundError("Course not found")
    return course


async def create_course(
    store: RecordStore, actor_id: uuid.UUID, req: CourseCreate
) -> Course:
    project = await get_project_or_404(store, req.project_id)
    if not await can_edit_courses(store, actor_id, project.id):
        raise PermissionDeniedError("You cannot edit courses in this project")

    course = await store.insert("courses", Course(**req.model_dump()))
    log.info("course.created", course_id=str(course.id), project_id=str(project.id))
    return course


async def update_course(
    store: RecordStore,
    actor_id: uuid.UUID,
    course_id: uuid.UUID,
    req: CourseUpdate,
) -> Course:
    course = await get_course_or_404(store, course_id)
    if not await can_edit_courses(store, actor_id, course.project_id):
        raise PermissionDeniedError("You cannot edit courses in this project")

    patch = req.model_dump(exclude_unset=True)
    if patch:
        await store.update("courses", {"id": course.id}, patch)
        log.info("course.updated", course_id=str(course.id), fields=sorted(patch))
    return await get_course_or_404(store, course.id)


async def get_course_for_viewer(
    store: RecordStore, user_id: uuid.UUID, course_id: uuid.UUID
) -> Course:
    course = await get_course_or_404(store, course_id)
    if not await can_view_courses(store, user_id, course.project_id):
        raise PermissionDeniedError("You cannot view courses in this project")
    return course


async def list_project_courses(
    store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID
) -> list[Course]:
    project = await get_project_or_404(store, project_id)
    if not await can_view_courses(store, user_id, project.id):
        raise PermissionDeniedError("You cannot view courses in this project")
    courses = await store.find("courses", {"project_id": project.id})
    return sorted(courses, key=lambda c: c.created_at)


async def list_conversations(
    store: RecordStore,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> list[Any]:
    """Project members see every conversation; subscribers only their own."""
    if not await can_access_conversations(store, user_id, course_id, now):
        raise PermissionDeniedError("You cannot view conversations for this course")

    course = await get_course_or_404(store, course_id)
    filter: dict[str, Any] = {"course_id": course.id}
    if not await has_capability(store, user_id, course.project_id, CONVERSATION_ROLES):
        filter["user_id"] = user_id
    rows = await store.find("conversations", filter)
    return sorted(rows, key=lambda c: c.message_time, reverse=True)
