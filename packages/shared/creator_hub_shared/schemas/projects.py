from typing import Optional
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from .common import ProjectRole, ShareStatus


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    url_name: Optional[str] = Field(
        default=None,
        max_length=100,
        pattern=r"^[a-z0-9][a-z0-9-]*$",
    )


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    url_name: Optional[str] = Field(
        default=None,
        max_length=100,
        pattern=r"^[a-z0-9][a-z0-9-]*$",
    )
    is_active: Optional[bool] = None


class ProjectRead(ProjectBase):
    id: UUID
    owner_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime
    role: Optional[ProjectRole] = None  # the caller's effective role

    model_config = {"from_attributes": True}


class ProjectRoleResponse(BaseModel):
    project_id: UUID
    role: Optional[ProjectRole] = None
    can_edit_courses: bool
    can_view_courses: bool
    can_manage_shares: bool


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

class ShareCreate(BaseModel):
    # Validated by the sharing service so that bad input maps onto the
    # typed invitation errors instead of a generic 422.
    email: str
    role: str = ProjectRole.READ_ONLY.value


class ShareRoleUpdate(BaseModel):
    role: str


class ShareRead(BaseModel):
    id: UUID
    project_id: UUID
    user_id: Optional[UUID] = None
    invited_email: Optional[str] = None
    role: ProjectRole
    status: ShareStatus
    inviter_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ShareCreateResponse(BaseModel):
    share: ShareRead
    created: bool


class PendingInvitation(ShareRead):
    project_name: Optional[str] = None
