"""
Enrollment service: joining courses and paid subscription periods.

Subscriptions are append-only: a purchase or renewal inserts a new row
and never edits an earlier one.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from app.core.errors import NotFoundError
from app.core.store import RecordStore, find_one
from app.models.enrollment import Enrollment
from app.models.subscription import Subscription
from app.services.profiles import get_profile_by_telegram
from app.services.projects import get_course_or_404
from creator_hub_shared.schemas.common import SubscriptionStatus
from creator_hub_shared.schemas.subscriptions import (
    CourseAccessResponse,
    as_utc,
    is_active,
    select_current,
    subscription_status,
)

log = structlog.get_logger()


async def get_or_create_enrollment(
    store: RecordStore, user_id: uuid.UUID, course_id: uuid.UUID
) -> tuple[Enrollment, bool]:
    """Returns (enrollment, created)."""
    existing = await find_one(store, "enrollments", {"user_id": user_id, "course_id": course_id})
    if existing is not None:
        return existing, False
    enrollment = await store.insert(
        "enrollments", Enrollment(user_id=user_id, course_id=course_id)
    )
    log.info("enrollment.created", enrollment_id=str(enrollment.id), course_id=str(course_id))
    return enrollment, True


async def list_subscriptions(store: RecordStore, enrollment_id: uuid.UUID) -> list[Subscription]:
    return await store.find("subscriptions", {"enrollment_id": enrollment_id})


async def purchase_subscription(
    store: RecordStore,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> tuple[Enrollment, Subscription, bool]:
    """Record a paid period for a course. Returns (enrollment, subscription, created).

    Unlimited courses (no duration) get an open-ended period, and an
    already-active open-ended period is returned as-is. Bounded courses
    start when the current active period ends, or now if none is active.
    Inactive courses cannot be purchased.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    course = await get_course_or_404(store, course_id)
    if not course.is_active:
        raise NotFoundError("Course is not available")
    enrollment, _ = await get_or_create_enrollment(store, user_id, course.id)

    current = select_current(await list_subscriptions(store, enrollment.id), now)
    current_active = current is not None and is_active(current, now)

    if not course.duration:
        if current_active and current.end_date is None:
            log.info("subscription.already_unlimited", enrollment_id=str(enrollment.id))
            return enrollment, current, False
        begin, end = now, None
    else:
        begin = now
        if current_active and current.end_date is not None:
            begin = max(now, as_utc(current.end_date))
        end = begin + timedelta(days=course.duration)

    subscription = await store.insert(
        "subscriptions",
        Subscription(enrollment_id=enrollment.id, begin_date=begin, end_date=end, is_paid=True),
    )
    log.info(
        "subscription.created",
        enrollment_id=str(enrollment.id),
        subscription_id=str(subscription.id),
        end_date=str(end) if end else None,
    )
    return enrollment, subscription, True


async def get_course_access(
    store: RecordStore,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> CourseAccessResponse:
    """Subscription status of a user on a course, with the current period's dates."""
    course = await get_course_or_404(store, course_id)
    enrollments = await store.find("enrollments", {"user_id": user_id, "course_id": course.id})
    if not enrollments:
        return CourseAccessResponse(course_id=course.id, status=SubscriptionStatus.NONE)

    subscriptions = await store.find(
        "subscriptions", {"enrollment_id": [e.id for e in enrollments]}
    )
    current = select_current(subscriptions, now)
    if current is None:
        return CourseAccessResponse(course_id=course.id, status=SubscriptionStatus.NONE)
    return CourseAccessResponse(
        course_id=course.id,
        status=subscription_status(subscriptions, now),
        subscription_begin=current.begin_date,
        subscription_end=current.end_date,
        is_paid=bool(current.is_paid),
    )


async def get_course_access_by_telegram(
    store: RecordStore,
    handle: str,
    course_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> CourseAccessResponse:
    """Same as get_course_access, for the profile owning a Telegram handle."""
    profile = await get_profile_by_telegram(store, handle)
    if profile is None:
        raise NotFoundError("Profile not found")
    return await get_course_access(store, profile.id, course_id, now)

async def list_user_enrollments(
    store: RecordStore, user_id: uuid.UUID, now: Optional[datetime] = None
) -> list[dict]:
    """Every enrollment of a user with its current subscription state."""
    enrollments = await store.find("enrollments", {"user_id": user_id})
    if not enrollments:
        return []
    subscriptions = await store.find(
        "subscriptions", {"enrollment_id": [e.id for e in enrollments]}
    )
    by_enrollment: dict[uuid.UUID, list[Subscription]] = {}
    for sub in subscriptions:
        by_enrollment.setdefault(sub.enrollment_id, []).append(sub)

    results = []
    for enrollment in enrollments:
        subs = by_enrollment.get(enrollment.id, [])
        current = select_current(subs, now)
        results.append(
            {
                "enrollment": enrollment,
                "current": current,
                "status": subscription_status(subs, now),
            }
        )
    return results
