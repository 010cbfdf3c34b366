"""Course model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Course(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "courses"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    details: Optional[str] = None
    price: float = Field(default=0, nullable=False)
    duration: Optional[int] = None  # days; null or 0 = unlimited access
    recurring: bool = Field(default=False, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
