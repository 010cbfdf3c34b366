"""
Record store: the only shared mutable resource the services touch.

Services talk to the ``RecordStore`` protocol with table names and plain
equality filters. ``SqlRecordStore`` backs it with the SQLModel tables on
an ``AsyncSession``. Each write commits on its own; there is no
transaction spanning several calls.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Protocol

import structlog
from fastapi import Depends
from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.core.database import get_session
from app.core.errors import StoreError
from app.models.conversation import Conversation
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.profile import Profile
from app.models.project import Project
from app.models.project_share import ProjectShare
from app.models.subscription import Subscription

log = structlog.get_logger()

# Driver-level connection failures (OSError subclasses, connect timeouts)
# reach us unwrapped by SQLAlchemy.
STORE_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)

TABLES: dict[str, type[SQLModel]] = {
    "profiles": Profile,
    "projects": Project,
    "project_shares": ProjectShare,
    "courses": Course,
    "enrollments": Enrollment,
    "subscriptions": Subscription,
    "conversations": Conversation,
}


class RecordStore(Protocol):
    async def find(self, table: str, filter: Mapping[str, Any]) -> list[Any]: ...

    async def insert(self, table: str, record: Any) -> Any: ...

    async def update(self, table: str, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> None: ...

    async def delete(self, table: str, filter: Mapping[str, Any]) -> None: ...


async def find_one(store: RecordStore, table: str, filter: Mapping[str, Any]) -> Any | None:
    """First matching row or None. Duplicates are tolerated, not an error."""
    rows = await store.find(table, filter)
    return rows[0] if rows else None


def _model(table: str) -> type[SQLModel]:
    try:
        return TABLES[table]
    except KeyError:
        raise StoreError(f"Unknown table '{table}'")


def _where(model: type[SQLModel], filter: Mapping[str, Any]) -> list[Any]:
    clauses = []
    for key, value in filter.items():
        column = getattr(model, key, None)
        if column is None:
            raise StoreError(f"Unknown column '{model.__tablename__}.{key}'")
        if value is None:
            clauses.append(column.is_(None))
        elif isinstance(value, (list, tuple, set, frozenset)):
            clauses.append(column.in_(list(value)))
        else:
            clauses.append(column == value)
    return clauses


class SqlRecordStore:
    """RecordStore over SQLModel tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, table: str, filter: Mapping[str, Any]) -> list[Any]:
        model = _model(table)
        stmt = (
            select(model)
            .where(*_where(model, filter))
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except STORE_FAILURES as exc:
            log.error("store.find_failed", table=table, error=str(exc))
            raise StoreError(f"Failed to read from {table}") from exc
        return list(result.scalars().all())

    async def insert(self, table: str, record: Any) -> Any:
        _model(table)
        try:
            self.session.add(record)
            await self.session.commit()
            await self.session.refresh(record)
        except STORE_FAILURES as exc:
            await self.session.rollback()
            log.error("store.insert_failed", table=table, error=str(exc))
            raise StoreError(f"Failed to insert into {table}") from exc
        return record

    async def update(
        self, table: str, filter: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> None:
        model = _model(table)
        stmt = sa_update(model).where(*_where(model, filter)).values(**dict(patch))
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except STORE_FAILURES as exc:
            await self.session.rollback()
            log.error("store.update_failed", table=table, error=str(exc))
            raise StoreError(f"Failed to update {table}") from exc

    async def delete(self, table: str, filter: Mapping[str, Any]) -> None:
        model = _model(table)
        stmt = sa_delete(model).where(*_where(model, filter))
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except STORE_FAILURES as exc:
            await self.session.rollback()
            log.error("store.delete_failed", table=table, error=str(exc))
            raise StoreError(f"Failed to delete from {table}") from exc


async def get_store(session: AsyncSession = Depends(get_session)) -> RecordStore:
    """FastAPI dependency for the record store."""
    return SqlRecordStore(session)
