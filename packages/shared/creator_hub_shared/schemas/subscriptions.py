"""
Subscription lifecycle evaluation and enrollment schemas.

Pure functions over already-fetched subscription rows. "now" is always
injectable so callers and tests never depend on the wall clock.

Ordering used to pick the current record (newest first):
- begin_date descending, a missing begin_date counts as the epoch
- created_at descending on equal begin_date
- id descending as the last resort, so the result never depends on
  the order rows came back from the store
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from pydantic import BaseModel

from .common import SubscriptionStatus

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_active(subscription: Any, now: Optional[datetime] = None) -> bool:
    """Paid and either unbounded or ending after ``now``."""
    if subscription is None or not subscription.is_paid:
        return False
    end = as_utc(subscription.end_date)
    if end is None:
        return True
    return end > as_utc(now or _utcnow())


def _sort_key(subscription: Any) -> tuple[datetime, datetime, str]:
    begin = as_utc(subscription.begin_date) or EPOCH
    created = as_utc(getattr(subscription, "created_at", None)) or EPOCH
    return begin, created, str(getattr(subscription, "id", ""))


def sort_newest_first(subscriptions: Iterable[Any]) -> list[Any]:
    return sorted(subscriptions, key=_sort_key, reverse=True)


def select_current(
    subscriptions: Sequence[Any], now: Optional[datetime] = None
) -> Optional[Any]:
    """Pick the authoritative subscription for an enrollment.

    Returns the newest active row; failing that, the newest row overall
    (so callers can still show when access ended); ``None`` only for an
    empty input.
    """
    if not subscriptions:
        return None
    now = as_utc(now or _utcnow())
    ordered = sort_newest_first(subscriptions)
    for sub in ordered:
        if is_active(sub, now):
            return sub
    return ordered[0]


def subscription_status(
    subscriptions: Sequence[Any], now: Optional[datetime] = None
) -> SubscriptionStatus:
    now = as_utc(now or _utcnow())
    current = select_current(subscriptions, now)
    if current is None:
        return SubscriptionStatus.NONE
    if is_active(current, now):
        return SubscriptionStatus.ACTIVE
    return SubscriptionStatus.EXPIRED


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class SubscriptionRead(BaseModel):
    id: uuid.UUID
    enrollment_id: uuid.UUID
    begin_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_paid: bool
    is_active: bool = False

    model_config = {"from_attributes": True}

    @classmethod
    def from_record(cls, record: Any, now: Optional[datetime] = None) -> "SubscriptionRead":
        return cls(
            id=record.id,
            enrollment_id=record.enrollment_id,
            begin_date=record.begin_date,
            end_date=record.end_date,
            is_paid=bool(record.is_paid),
            is_active=is_active(record, now),
        )


class EnrollmentRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    course_id: uuid.UUID
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CourseAccessResponse(BaseModel):
    course_id: uuid.UUID
    status: SubscriptionStatus
    subscription_begin: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    is_paid: Optional[bool] = None


class PurchaseResponse(BaseModel):
    enrollment: EnrollmentRead
    subscription: SubscriptionRead
    created: bool
