"""Enrollment: a user's record of joining a course. Not proof of payment."""

import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Enrollment(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "enrollments"

    user_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    course_id: uuid.UUID = Field(foreign_key="courses.id", nullable=False, index=True)
