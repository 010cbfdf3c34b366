"""Enrollment listing for the current user."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.store import RecordStore, get_store
from app.services import enrollments
from creator_hub_shared.schemas.common import SubscriptionStatus
from creator_hub_shared.schemas.subscriptions import EnrollmentRead, SubscriptionRead

router = APIRouter()


class EnrollmentStatusRead(BaseModel):
    enrollment: EnrollmentRead
    status: SubscriptionStatus
    current: Optional[SubscriptionRead] = None


@router.get("/", response_model=List[EnrollmentStatusRead])
async def list_my_enrollments(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    rows = await enrollments.list_user_enrollments(store, auth.user_id)
    return [
        EnrollmentStatusRead(
            enrollment=EnrollmentRead.model_validate(row["enrollment"]),
            status=row["status"],
            current=SubscriptionRead.from_record(row["current"]) if row["current"] else None,
        )
        for row in rows
    ]
