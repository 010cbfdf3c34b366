"""Project model. The owner is fixed at creation."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    owner_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    url_name: Optional[str] = Field(default=None, unique=True, index=True)
    is_active: bool = Field(default=True, nullable=False)
