"""User profile (one per authenticated account)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Profile(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    email: str = Field(nullable=False, unique=True, index=True)  # stored lowercased
    role: str = Field(default="influencer", nullable=False)  # influencer | customer | admin
    telegram: Optional[str] = Field(default=None, index=True)
    password_hash: Optional[str] = Field(default=None)  # bcrypt hash for email/password login
