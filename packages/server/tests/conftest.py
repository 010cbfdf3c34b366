"""
Shared fixtures: an in-memory record store and recording notifiers.

The in-memory store honours the same filter semantics as SqlRecordStore
(None matches IS NULL, a list/tuple/set matches IN) so service tests
run without a database.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import pytest

from app.core.errors import StoreError
from app.models.conversation import Conversation
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.profile import Profile
from app.models.project import Project
from app.models.project_share import ProjectShare
from app.models.subscription import Subscription


def _matches(row: Any, filter: Mapping[str, Any]) -> bool:
    for key, value in filter.items():
        actual = getattr(row, key)
        if value is None:
            if actual is not None:
                return False
        elif isinstance(value, (list, tuple, set, frozenset)):
            if actual not in value:
                return False
        elif actual != value:
            return False
    return True


class InMemoryRecordStore:
    TABLES = (
        "profiles",
        "projects",
        "project_shares",
        "courses",
        "enrollments",
        "subscriptions",
        "conversations",
    )

    def __init__(self):
        self.tables: dict[str, list[Any]] = {name: [] for name in self.TABLES}
        self.calls: list[tuple[str, str]] = []

    def _table(self, table: str) -> list[Any]:
        if table not in self.tables:
            raise StoreError(f"Unknown table '{table}'")
        return self.tables[table]

    async def find(self, table: str, filter: Mapping[str, Any]) -> list[Any]:
        self.calls.append(("find", table))
        return [row for row in self._table(table) if _matches(row, filter)]

    async def insert(self, table: str, record: Any) -> Any:
        self.calls.append(("insert", table))
        self._table(table).append(record)
        return record

    async def update(self, table: str, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> None:
        self.calls.append(("update", table))
        for row in self._table(table):
            if _matches(row, filter):
                for key, value in patch.items():
                    setattr(row, key, value)

    async def delete(self, table: str, filter: Mapping[str, Any]) -> None:
        self.calls.append(("delete", table))
        self.tables[table] = [row for row in self._table(table) if not _matches(row, filter)]


class BrokenRecordStore(InMemoryRecordStore):
    """Raises StoreError on every read of the listed tables (all tables by default)."""

    def __init__(self, broken_tables: Optional[set[str]] = None):
        super().__init__()
        self.broken_tables = broken_tables

    async def find(self, table: str, filter: Mapping[str, Any]) -> list[Any]:
        if self.broken_tables is None or table in self.broken_tables:
            raise StoreError(f"Connection lost while reading {table}")
        return await super().find(table, filter)


class RecordingNotifier:
    def __init__(self):
        self.sent: list[dict] = []

    async def send_invitation_email(
        self,
        to_email: str,
        project_name: str,
        role: str,
        accept_url: str,
        inviter_email: Optional[str] = None,
    ) -> None:
        self.sent.append(
            {
                "to_email": to_email,
                "project_name": project_name,
                "role": role,
                "accept_url": accept_url,
                "inviter_email": inviter_email,
            }
        )


class FailingNotifier:
    async def send_invitation_email(self, *args, **kwargs) -> None:
        raise ConnectionError("SMTP relay unreachable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

async def add_profile(store, email: str, role: str = "influencer") -> Profile:
    return await store.insert("profiles", Profile(id=uuid.uuid4(), email=email.lower(), role=role))


async def add_project(store, owner: Profile, name: str = "Cooking 101") -> Project:
    return await store.insert("projects", Project(owner_id=owner.id, name=name))


async def add_share(
    store,
    project: Project,
    *,
    email: str,
    role: str = "read_only",
    status: str = "pending",
    user: Optional[Profile] = None,
) -> ProjectShare:
    return await store.insert(
        "project_shares",
        ProjectShare(
            project_id=project.id,
            user_id=user.id if user else None,
            invited_email=email.lower(),
            role=role,
            status=status,
        ),
    )


async def add_course(store, project: Project, *, duration: Optional[int] = None, name: str = "Knife Skills") -> Course:
    return await store.insert(
        "courses", Course(project_id=project.id, name=name, price=49.0, duration=duration)
    )


async def add_enrollment(store, user: Profile, course: Course) -> Enrollment:
    return await store.insert("enrollments", Enrollment(user_id=user.id, course_id=course.id))


async def add_subscription(
    store,
    enrollment: Enrollment,
    *,
    begin: Optional[datetime],
    end: Optional[datetime],
    is_paid: bool = True,
) -> Subscription:
    return await store.insert(
        "subscriptions",
        Subscription(enrollment_id=enrollment.id, begin_date=begin, end_date=end, is_paid=is_paid),
    )


async def add_conversation(store, course: Course, user: Profile, message: str = "hi") -> Conversation:
    return await store.insert(
        "conversations",
        Conversation(course_id=course.id, user_id=user.id, user_message=message, response="hello"),
    )
