"""
Course endpoints: CRUD, conversation history, enrollment and access status.

Editing needs the edit-courses capability, reading needs view-courses.
Conversation history is open to project members and to paying
subscribers of the course.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.store import RecordStore, get_store
from app.services import enrollments, projects
from creator_hub_shared.schemas.courses import (
    ConversationRead,
    CourseCreate,
    CourseRead,
    CourseUpdate,
)
from creator_hub_shared.schemas.subscriptions import (
    CourseAccessResponse,
    EnrollmentRead,
    PurchaseResponse,
    SubscriptionRead,
)

router = APIRouter()


@router.post("/", response_model=CourseRead, status_code=201)
async def create_course(
    course_in: CourseCreate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await projects.create_course(store, auth.user_id, course_in)


@router.get("/{course_id}", response_model=CourseRead)
async def get_course(
    course_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await projects.get_course_for_viewer(store, auth.user_id, course_id)


@router.patch("/{course_id}", response_model=CourseRead)
async def update_course(
    course_id: uuid.UUID,
    course_in: CourseUpdate,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await projects.update_course(store, auth.user_id, course_id, course_in)


@router.get("/{course_id}/conversations", response_model=List[ConversationRead])
async def list_conversations(
    course_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await projects.list_conversations(store, auth.user_id, course_id)


@router.post("/{course_id}/enroll", response_model=PurchaseResponse, status_code=201)
async def enroll(
    course_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    """Pay for a course period. Renewals append a new subscription row."""
    enrollment, subscription, created = await enrollments.purchase_subscription(
        store, auth.user_id, course_id
    )
    return PurchaseResponse(
        enrollment=EnrollmentRead.model_validate(enrollment),
        subscription=SubscriptionRead.from_record(subscription),
        created=created,
    )


@router.get("/{course_id}/access", response_model=CourseAccessResponse)
async def get_access(
    course_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    return await enrollments.get_course_access(store, auth.user_id, course_id)


@router.get("/{course_id}/access/telegram/{handle}", response_model=CourseAccessResponse)
async def get_access_by_telegram(
    course_id: uuid.UUID,
    handle: str,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    """Access status of another user, looked up by Telegram handle.

    Restricted to callers who can view the course's project.
    """
    await projects.get_course_for_viewer(store, auth.user_id, course_id)
    return await enrollments.get_course_access_by_telegram(store, handle, course_id)
