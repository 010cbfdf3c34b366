"""
Project authorization: role resolution and capability checks.

Every check re-reads the store; nothing is cached between calls.

- Ownership is read from the project row and wins over any share row.
- Accepted shares grant their role. Duplicate shares are tolerated; any
  accepted share whose role is in the required set is enough.
- Checks never raise. A store failure is logged and treated as "no access".
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Iterable, Optional

import structlog

from app.core.errors import StoreError
from app.core.store import RecordStore, find_one
from creator_hub_shared.schemas.common import (
    CONVERSATION_ROLES,
    EDIT_COURSES_ROLES,
    MANAGE_SHARES_ROLES,
    VIEW_COURSES_ROLES,
    ProjectRole,
    ShareStatus,
)
from creator_hub_shared.schemas.subscriptions import is_active, select_current

log = structlog.get_logger()

# Strongest first; used to report a single role when several shares exist.
ROLE_PRECEDENCE: list[ProjectRole] = [
    ProjectRole.OWNER,
    ProjectRole.CONTRIBUTOR,
    ProjectRole.KNOWLEDGE_MANAGER,
    ProjectRole.READ_ONLY,
]


async def roles_for_project(
    store: RecordStore, user_id: uuid.UUID, project: Any
) -> set[ProjectRole]:
    """All roles the user holds on an already-fetched project.

    Raises StoreError; callers on the read path must catch it.
    """
    if project.owner_id == user_id:
        return {ProjectRole.OWNER}

    shares = await store.find(
        "project_shares",
        {
            "project_id": project.id,
            "user_id": user_id,
            "status": ShareStatus.ACCEPTED.value,
        },
    )
    roles: set[ProjectRole] = set()
    for share in shares:
        try:
            role = ProjectRole(share.role)
        except ValueError:
            log.warning("permission.unknown_share_role", share_id=str(share.id), role=share.role)
            continue
        # Ownership is never granted through a share row.
        if role is not ProjectRole.OWNER:
            roles.add(role)
    return roles


async def _roles(
    store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID
) -> set[ProjectRole]:
    project = await find_one(store, "projects", {"id": project_id})
    if project is None:
        return set()
    return await roles_for_project(store, user_id, project)


def strongest(roles: Iterable[ProjectRole]) -> Optional[ProjectRole]:
    held = set(roles)
    for role in ROLE_PRECEDENCE:
        if role in held:
            return role
    return None


def roles_satisfy(roles: set[ProjectRole], required: Iterable[ProjectRole]) -> bool:
    if ProjectRole.OWNER in roles:
        return True
    return bool(roles & set(required))


async def resolve_role(
    store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID
) -> Optional[ProjectRole]:
    """Effective role of a user on a project, or None for no access."""
    try:
        roles = await _roles(store, user_id, project_id)
    except StoreError as exc:
        log.warning(
            "permission.lookup_failed",
            user_id=str(user_id),
            project_id=str(project_id),
            error=str(exc),
        )
        return None
    return strongest(roles)


async def has_capability(
    store: RecordStore,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
    required_roles: Iterable[ProjectRole],
) -> bool:
    """True for the owner, or when any held role is in ``required_roles``."""
    try:
        roles = await _roles(store, user_id, project_id)
    except StoreError as exc:
        log.warning(
            "permission.lookup_failed",
            user_id=str(user_id),
            project_id=str(project_id),
            error=str(exc),
        )
        return False
    return roles_satisfy(roles, required_roles)


async def can_edit_courses(store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID) -> bool:
    return await has_capability(store, user_id, project_id, EDIT_COURSES_ROLES)


async def can_view_courses(store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID) -> bool:
    return await has_capability(store, user_id, project_id, VIEW_COURSES_ROLES)


async def can_manage_shares(store: RecordStore, user_id: uuid.UUID, project_id: uuid.UUID) -> bool:
    return await has_capability(store, user_id, project_id, MANAGE_SHARES_ROLES)


async def has_active_subscription(
    store: RecordStore,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> bool:
    """Raises StoreError."""
    enrollments = await store.find("enrollments", {"user_id": user_id, "course_id": course_id})
    if not enrollments:
        return False
    subscriptions = await store.find(
        "subscriptions", {"enrollment_id": [e.id for e in enrollments]}
    )
    current = select_current(subscriptions, now)
    return current is not None and is_active(current, now)


async def can_access_conversations(
    store: RecordStore,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> bool:
    """Project members with any role, or paying subscribers of the course."""
    try:
        course = await find_one(store, "courses", {"id": course_id})
        if course is None:
            return False
        if await has_capability(store, user_id, course.project_id, CONVERSATION_ROLES):
            return True
        return await has_active_subscription(store, user_id, course_id, now)
    except StoreError as exc:
        log.warning(
            "permission.conversation_lookup_failed",
            user_id=str(user_id),
            course_id=str(course_id),
            error=str(exc),
        )
        return False
