"""Conversation history between a course's assistant and a user."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin, _utcnow


class Conversation(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "conversations"

    course_id: uuid.UUID = Field(foreign_key="courses.id", nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    name: Optional[str] = None
    user_message: str = Field(nullable=False)
    response: str = Field(nullable=False)
    message_time: datetime = Field(
        default_factory=_utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
    response_time: datetime = Field(
        default_factory=_utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
