"""
Project sharing service: invitations and their lifecycle.

State machine for a share:

    pending --accept--> accepted
    pending --decline--> declined
    any     --revoke--> (row deleted)

A declined share only comes back through a fresh invitation, which resets
the existing row to pending. Concurrent invitations for the same address
may produce duplicate rows; the resolver tolerates that.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from app.core.config import get_settings
from app.core.errors import (
    InvalidEmailError,
    InvalidRoleError,
    NotFoundError,
    PermissionDeniedError,
    SelfInviteError,
    ShareStateError,
)
from app.core.notifier import Notifier, build_accept_url
from app.core.store import RecordStore, find_one
from app.models.project_share import ProjectShare
from app.services.permissions import roles_for_project, roles_satisfy
from creator_hub_shared.schemas.common import (
    INVITABLE_ROLES,
    MANAGE_SHARES_ROLES,
    ProjectRole,
    ShareStatus,
    is_valid_email,
    normalize_email,
)

log = structlog.get_logger()


@dataclass
class ShareResult:
    share: ProjectShare
    created: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_invitable_role(role: Any) -> ProjectRole:
    """Raises InvalidRoleError for anything but contributor/knowledge_manager/read_only."""
    try:
        parsed = ProjectRole(role)
    except ValueError:
        raise InvalidRoleError(f"Unknown role '{role}'")
    if parsed not in INVITABLE_ROLES:
        raise InvalidRoleError(f"Role '{parsed.value}' cannot be granted by invitation")
    return parsed


async def _get_share(store: RecordStore, share_id: uuid.UUID) -> ProjectShare:
    share = await find_one(store, "project_shares", {"id": share_id})
    if share is None:
        raise NotFoundError("Share not found")
    return share


async def _get_project(store: RecordStore, project_id: uuid.UUID) -> Any:
    project = await find_one(store, "projects", {"id": project_id})
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def create_share(
    store: RecordStore,
    notifier: Notifier,
    *,
    inviter_id: uuid.UUID,
    inviter_email: Optional[str],
    project_id: uuid.UUID,
    email: str,
    role: Any,
    app_url: Optional[str] = None,
) -> ShareResult:
    """Invite an email address to a project, or re-issue an existing invite."""
    parsed_role = parse_invitable_role(role)

    if not is_valid_email(email):
        raise InvalidEmailError("Please enter a valid email address")
    email = normalize_email(email)

    if inviter_email and normalize_email(inviter_email) == email:
        raise SelfInviteError("You cannot invite yourself")

    project = await _get_project(store, project_id)
    inviter_roles = await roles_for_project(store, inviter_id, project)
    if not roles_satisfy(inviter_roles, MANAGE_SHARES_ROLES):
        raise PermissionDeniedError("Only owners and contributors can invite")

    profile = await find_one(store, "profiles", {"email": email})
    target_user_id = profile.id if profile is not None else None
    if target_user_id == inviter_id:
        raise SelfInviteError("You cannot invite yourself")

    existing = await find_one(
        store, "project_shares", {"project_id": project.id, "invited_email": email}
    )
    if existing is not None:
        patch: dict[str, Any] = {
            "role": parsed_role.value,
            "status": ShareStatus.PENDING.value,
            "inviter_id": inviter_id,
            "updated_at": _utcnow(),
        }
        if target_user_id is not None:
            patch["user_id"] = target_user_id
        await store.update("project_shares", {"id": existing.id}, patch)
        share = await _get_share(store, existing.id)
        created = False
    else:
        share = await store.insert(
            "project_shares",
            ProjectShare(
                project_id=project.id,
                user_id=target_user_id,
                invited_email=email,
                role=parsed_role.value,
                status=ShareStatus.PENDING.value,
                inviter_id=inviter_id,
            ),
        )
        created = True

    log.info(
        "share.created" if created else "share.reissued",
        share_id=str(share.id),
        project_id=str(project.id),
        role=parsed_role.value,
        resolved_user=target_user_id is not None,
    )

    accept_url = build_accept_url(app_url or get_settings().app_url, share.id)
    try:
        await notifier.send_invitation_email(
            email, project.name, parsed_role.value, accept_url, inviter_email
        )
    except Exception as exc:  # delivery is best-effort
        log.warning("notifier.failed", share_id=str(share.id), to=email, error=str(exc))

    return ShareResult(share=share, created=created)


def _check_invitee(
    share: ProjectShare, user_id: uuid.UUID, email: Optional[str]
) -> None:
    if share.user_id is not None and share.user_id != user_id:
        raise PermissionDeniedError("This invitation belongs to another account")
    if email and share.invited_email and normalize_email(email) != share.invited_email:
        raise PermissionDeniedError("This invitation was sent to a different email")


async def accept_share(
    store: RecordStore,
    share_id: uuid.UUID,
    accepting_user_id: uuid.UUID,
    accepting_email: Optional[str] = None,
) -> ProjectShare:
    """Accept an invitation and bind it to the accepting account. Idempotent."""
    share = await _get_share(store, share_id)
    _check_invitee(share, accepting_user_id, accepting_email)

    if share.status == ShareStatus.ACCEPTED.value:
        return share
    if share.status == ShareStatus.DECLINED.value:
        raise ShareStateError("A declined invitation cannot be accepted")

    await store.update(
        "project_shares",
        {"id": share.id},
        {
            "status": ShareStatus.ACCEPTED.value,
            "user_id": accepting_user_id,
            "updated_at": _utcnow(),
        },
    )
    log.info("share.accepted", share_id=str(share.id), user_id=str(accepting_user_id))
    return await _get_share(store, share.id)


async def decline_share(
    store: RecordStore,
    share_id: uuid.UUID,
    user_id: uuid.UUID,
    email: Optional[str] = None,
) -> ProjectShare:
    share = await _get_share(store, share_id)
    _check_invitee(share, user_id, email)

    if share.status == ShareStatus.DECLINED.value:
        return share
    if share.status == ShareStatus.ACCEPTED.value:
        raise ShareStateError("An accepted invitation cannot be declined")

    await store.update(
        "project_shares",
        {"id": share.id},
        {"status": ShareStatus.DECLINED.value, "updated_at": _utcnow()},
    )
    log.info("share.declined", share_id=str(share.id), user_id=str(user_id))
    return await _get_share(store, share.id)


async def update_share_role(
    store: RecordStore,
    actor_id: uuid.UUID,
    share_id: uuid.UUID,
    role: Any,
) -> ProjectShare:
    """Change the role on a share. Project owner only."""
    parsed_role = parse_invitable_role(role)
    share = await _get_share(store, share_id)
    project = await _get_project(store, share.project_id)
    if project.owner_id != actor_id:
        raise PermissionDeniedError("Only the project owner can change roles")

    await store.update(
        "project_shares",
        {"id": share.id},
        {"role": parsed_role.value, "updated_at": _utcnow()},
    )
    log.info("share.role_updated", share_id=str(share.id), role=parsed_role.value)
    return await _get_share(store, share.id)


async def revoke_share(
    store: RecordStore,
    share_id: uuid.UUID,
    actor_id: Optional[uuid.UUID] = None,
) -> None:
    """Delete a share.

    With ``actor_id`` the caller must own the project or be the share's
    own user (leaving the project).
    """
    share = await _get_share(store, share_id)
    if actor_id is not None and share.user_id != actor_id:
        project = await _get_project(store, share.project_id)
        if project.owner_id != actor_id:
            raise PermissionDeniedError("Only the project owner can revoke access")

    await store.delete("project_shares", {"id": share.id})
    log.info("share.revoked", share_id=str(share.id), project_id=str(share.project_id))


async def list_project_shares(store: RecordStore, project_id: uuid.UUID) -> list[ProjectShare]:
    shares = await store.find("project_shares", {"project_id": project_id})
    return sorted(shares, key=lambda s: s.created_at)


async def list_pending_invitations(
    store: RecordStore, email: str
) -> list[tuple[ProjectShare, Optional[Any]]]:
    """Pending shares addressed to ``email`` with their project (if it still exists)."""
    shares = await store.find(
        "project_shares",
        {"invited_email": normalize_email(email), "status": ShareStatus.PENDING.value},
    )
    if not shares:
        return []
    projects = await store.find("projects", {"id": [s.project_id for s in shares]})
    by_id = {p.id: p for p in projects}
    return [(share, by_id.get(share.project_id)) for share in shares]
