"""Identity schemas for the email/password auth endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, UUID4

from .common import ProfileRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    role: ProfileRole = ProfileRole.INFLUENCER
    telegram: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user_id: str
    email: str
    message: str
    access_token: Optional[str] = None


class ProfileResponse(BaseModel):
    id: UUID4
    email: str
    role: ProfileRole
    telegram: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
