"""
Share endpoints for the invited side and for owners managing one share.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.store import RecordStore, get_store
from app.services import sharing
from creator_hub_shared.schemas.projects import PendingInvitation, ShareRead, ShareRoleUpdate

router = APIRouter()


@router.get("/pending", response_model=List[PendingInvitation])
async def list_pending(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    """Invitations addressed to the caller's email that await an answer."""
    rows = await sharing.list_pending_invitations(store, auth.email)
    results = []
    for share, project in rows:
        item = PendingInvitation.model_validate(share)
        item.project_name = project.name if project is not None else None
        results.append(item)
    return results


@router.post("/{share_id}/accept", response_model=ShareRead)
async def accept(
    share_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await sharing.accept_share(store, share_id, auth.user_id, auth.email)


@router.post("/{share_id}/decline", response_model=ShareRead)
async def decline(
    share_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await sharing.decline_share(store, share_id, auth.user_id, auth.email)


@router.patch("/{share_id}", response_model=ShareRead)
async def update_role(
    share_id: uuid.UUID,
    body: ShareRoleUpdate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await sharing.update_share_role(store, auth.user_id, share_id, body.role)


@router.delete("/{share_id}")
async def revoke(
    share_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    await sharing.revoke_share(store, share_id, actor_id=auth.user_id)
    return {"ok": True}
