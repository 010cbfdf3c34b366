"""Subscription: one paid period of an enrollment. Renewals add rows."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Subscription(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"

    enrollment_id: uuid.UUID = Field(foreign_key="enrollments.id", nullable=False, index=True)
    begin_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    is_paid: bool = Field(default=False, nullable=False)
