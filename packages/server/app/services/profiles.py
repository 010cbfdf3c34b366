"""Profile service. Profiles are created by the boundary layer, never by the resolver."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from app.core.store import RecordStore, find_one
from app.models.profile import Profile
from creator_hub_shared.schemas.common import ProfileRole, normalize_email

log = structlog.get_logger()


async def get_profile_by_email(store: RecordStore, email: str) -> Optional[Profile]:
    return await find_one(store, "profiles", {"email": normalize_email(email)})


def normalize_telegram(handle: str) -> str:
    return handle.strip().lstrip("@").strip().lower()


async def get_profile_by_telegram(store: RecordStore, handle: str) -> Optional[Profile]:
    """Handles are stored normalized, so lookups normalize too."""
    normalized = normalize_telegram(handle)
    if not normalized:
        return None
    return await find_one(store, "profiles", {"telegram": normalized})


async def ensure_profile_exists(
    store: RecordStore,
    user_id: uuid.UUID,
    email: str,
    role: ProfileRole = ProfileRole.INFLUENCER,
    *,
    telegram: Optional[str] = None,
    password_hash: Optional[str] = None,
) -> Profile:
    """Create the profile for ``user_id`` unless it already exists."""
    existing = await find_one(store, "profiles", {"id": user_id})
    if existing is not None:
        return existing

    profile = await store.insert(
        "profiles",
        Profile(
            id=user_id,
            email=normalize_email(email),
            role=role.value,
            telegram=normalize_telegram(telegram) if telegram else None,
            password_hash=password_hash,
        ),
    )
    log.info("profile.created", user_id=str(user_id), role=role.value)
    return profile
