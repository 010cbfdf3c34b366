"""
Project endpoints: CRUD, the caller's effective role, and sharing.

- Creating a project makes the caller its owner
- Only the owner may update the project or change share roles
- Owners and contributors may invite; anyone with a role may list shares
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.config import get_settings
from app.core.errors import PermissionDeniedError
from app.core.notifier import Notifier, get_notifier
from app.core.store import RecordStore, get_store
from app.services import permissions, projects, sharing
from creator_hub_shared.schemas.common import ProjectRole, VIEW_COURSES_ROLES
from creator_hub_shared.schemas.courses import CourseRead
from creator_hub_shared.schemas.projects import (
    ProjectCreate,
    ProjectRead,
    ProjectRoleResponse,
    ProjectUpdate,
    ShareCreate,
    ShareCreateResponse,
    ShareRead,
)

router = APIRouter()


def _project_read(project, role: ProjectRole | None) -> ProjectRead:
    data = ProjectRead.model_validate(project)
    data.role = role
    return data


@router.get("/", response_model=List[ProjectRead])
async def list_projects(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    """Projects the caller owns or has accepted a share for."""
    rows = await projects.list_accessible_projects(store, auth.user_id)
    return [_project_read(project, role) for project, role in rows]


@router.post("/", response_model=ProjectRead, status_code=201)
async def create_project(
    project_in: ProjectCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    project = await projects.create_project(store, auth.user_id, project_in)
    return _project_read(project, ProjectRole.OWNER)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    project, role = await projects.get_project_for_user(store, auth.user_id, project_id)
    return _project_read(project, role)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    project = await projects.update_project(store, auth.user_id, project_id, project_in)
    return _project_read(project, ProjectRole.OWNER)


@router.get("/{project_id}/role", response_model=ProjectRoleResponse)
async def get_my_role(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    """The caller's effective role and derived capabilities. Never errors on no access."""
    return ProjectRoleResponse(
        project_id=project_id,
        role=await permissions.resolve_role(store, auth.user_id, project_id),
        can_edit_courses=await permissions.can_edit_courses(store, auth.user_id, project_id),
        can_view_courses=await permissions.can_view_courses(store, auth.user_id, project_id),
        can_manage_shares=await permissions.can_manage_shares(store, auth.user_id, project_id),
    )


@router.get("/{project_id}/courses", response_model=List[CourseRead])
async def list_project_courses(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await projects.list_project_courses(store, auth.user_id, project_id)


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------


@router.get("/{project_id}/shares", response_model=List[ShareRead])
async def list_shares(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    project = await projects.get_project_or_404(store, project_id)
    if not await permissions.has_capability(store, auth.user_id, project.id, VIEW_COURSES_ROLES):
        raise PermissionDeniedError("You do not have access to this project")
    return await sharing.list_project_shares(store, project.id)


@router.post("/{project_id}/shares", response_model=ShareCreateResponse, status_code=201)
async def create_share(
    project_id: uuid.UUID,
    body: ShareCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Invite someone by email. Re-inviting the same address resets the share to pending."""
    result = await sharing.create_share(
        store,
        notifier,
        inviter_id=auth.user_id,
        inviter_email=auth.email,
        project_id=project_id,
        email=body.email,
        role=body.role,
        app_url=get_settings().app_url,
    )
    return ShareCreateResponse(
        share=ShareRead.model_validate(result.share), created=result.created
    )
