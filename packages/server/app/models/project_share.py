"""Project share: an invitation granting a non-owner a role on a project."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProjectShare(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_shares"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    # Null until an account with the invited email accepts the share
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id", index=True)
    invited_email: Optional[str] = Field(default=None, index=True)
    role: str = Field(nullable=False, default="read_only")  # contributor | knowledge_manager | read_only
    status: str = Field(nullable=False, default="pending")  # pending | accepted | declined
    inviter_id: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id")
