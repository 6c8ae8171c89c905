"""
Task storage: a SQLAlchemy-backed repository and an in-memory test implementation.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    create_engine,
    delete,
    event,
    inspect,
    select,
    text,
    update,
)
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from todo_backend.errors import NotFoundError, StorageError
from todo_backend.patch import TaskDraft, TaskPatch, TaskStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass
class TaskRecord:
    id: str
    title: str
    description: Optional[str]
    status: str
    user_id: str
    address: Optional[str]
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "user_id": self.user_id,
            "address": self.address,
            "due_date": self.due_date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class TaskRepository(Protocol):
    """Interface for task persistence."""

    def list_all(self) -> list[TaskRecord]:
        ...

    def list_by_owner(self, owner_id: str) -> list[TaskRecord]:
        ...

    def get(self, task_id: str) -> TaskRecord:
        ...

    def ensure_user(self, user_id: str, email: Optional[str] = None) -> None:
        ...

    def create(
        self, owner_id: str, draft: TaskDraft, owner_email: Optional[str] = None
    ) -> TaskRecord:
        ...

    def update(self, task_id: str, patch: TaskPatch) -> TaskRecord:
        ...

    def delete(self, task_id: str) -> None:
        ...

    def ping(self) -> None:
        ...

    def dispose(self) -> None:
        ...


class InMemoryTaskRepository:
    """Simple in-memory task store for development and tests."""

    def __init__(self):
        self.tasks: Dict[str, TaskRecord] = {}
        self.users: Dict[str, Optional[str]] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.tasks.clear()
        self.users.clear()

    def _sorted(self, records) -> list[TaskRecord]:
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def list_all(self) -> list[TaskRecord]:
        return self._sorted(self.tasks.values())

    def list_by_owner(self, owner_id: str) -> list[TaskRecord]:
        return self._sorted(t for t in self.tasks.values() if t.user_id == owner_id)

    def get(self, task_id: str) -> TaskRecord:
        record = self.tasks.get(task_id)
        if record is None:
            raise NotFoundError()
        return record

    def ensure_user(self, user_id: str, email: Optional[str] = None) -> None:
        self.users.setdefault(user_id, email or None)

    def create(
        self, owner_id: str, draft: TaskDraft, owner_email: Optional[str] = None
    ) -> TaskRecord:
        values = draft.validated(owner_id)
        self.ensure_user(owner_id, owner_email)
        now = _utcnow()
        record = TaskRecord(
            id=str(uuid.uuid4()), created_at=now, updated_at=now, **values
        )
        self.tasks[record.id] = record
        return record

    def update(self, task_id: str, patch: TaskPatch) -> TaskRecord:
        values = patch.assignments()
        current = self.get(task_id)
        record = dataclasses.replace(current, updated_at=_utcnow(), **values)
        self.tasks[task_id] = record
        return record

    def delete(self, task_id: str) -> None:
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError()

    def ping(self) -> None:
        return None

    def dispose(self) -> None:
        return None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlTaskRepository:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres,
    or SQLite for tests).
    """

    def __init__(
        self, database_url: str, *, echo: bool = False, create_schema: bool = True
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlTaskRepository")
        url = make_url(database_url)
        engine_kwargs: dict = {"echo": echo, "pool_pre_ping": True}
        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise each thread gets an empty db.
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **engine_kwargs)
        if url.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False
        )
        if create_schema:
            self.create_schema()

    def create_schema(self) -> None:
        with self._errors("Failed to create schema"):
            Base.metadata.create_all(self.engine)

    def drop_legacy_columns(self) -> list[str]:
        """Drop the task coordinate columns older schemas carried."""
        with self._errors("Failed to drop legacy columns"):
            existing = {c["name"] for c in inspect(self.engine).get_columns("tasks")}
            dropped = [name for name in LEGACY_TASK_COLUMNS if name in existing]
            with self.engine.begin() as conn:
                for name in dropped:
                    conn.execute(text(f"ALTER TABLE tasks DROP COLUMN {name}"))
        for name in dropped:
            logger.info("Dropped legacy column tasks.%s", name)
        return dropped

    @contextmanager
    def _errors(self, message: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("%s: %s", message, exc)
            raise StorageError(message) from exc

    def _to_record(self, row: "TaskRow") -> TaskRecord:
        return TaskRecord(
            id=row.id,
            title=row.title,
            description=row.description,
            status=row.status,
            user_id=row.user_id,
            address=row.address,
            due_date=_as_utc(row.due_date),
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    def _ensure_user(
        self, session: Session, user_id: str, email: Optional[str]
    ) -> None:
        now = _utcnow()
        values = {
            "id": user_id,
            "email": email or None,
            "created_at": now,
            "updated_at": now,
        }
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            stmt = postgresql_insert(UserRow).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite_insert(UserRow).values(**values)
        else:
            if session.get(UserRow, user_id) is None:
                session.add(UserRow(**values))
                session.flush()
            return
        session.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))

    def list_all(self) -> list[TaskRecord]:
        with self._errors("Failed to list tasks"), self.Session() as session:
            rows = session.scalars(
                select(TaskRow).order_by(TaskRow.created_at.desc())
            ).all()
            return [self._to_record(row) for row in rows]

    def list_by_owner(self, owner_id: str) -> list[TaskRecord]:
        with self._errors("Failed to list tasks"), self.Session() as session:
            rows = session.scalars(
                select(TaskRow)
                .where(TaskRow.user_id == owner_id)
                .order_by(TaskRow.created_at.desc())
            ).all()
            return [self._to_record(row) for row in rows]

    def get(self, task_id: str) -> TaskRecord:
        with self._errors("Failed to fetch task"), self.Session() as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                raise NotFoundError()
            return self._to_record(row)

    def ensure_user(self, user_id: str, email: Optional[str] = None) -> None:
        with self._errors("Failed to upsert user"), self.Session() as session:
            self._ensure_user(session, user_id, email)
            session.commit()

    def create(
        self, owner_id: str, draft: TaskDraft, owner_email: Optional[str] = None
    ) -> TaskRecord:
        values = draft.validated(owner_id)
        now = _utcnow()
        with self._errors("Failed to create task"), self.Session() as session:
            # Owner upsert and task insert commit together.
            self._ensure_user(session, owner_id, owner_email)
            row = TaskRow(
                id=str(uuid.uuid4()), created_at=now, updated_at=now, **values
            )
            session.add(row)
            session.commit()
            logger.info("Created task %s for user %s", row.id, owner_id)
            return self._to_record(row)

    def update(self, task_id: str, patch: TaskPatch) -> TaskRecord:
        values = patch.assignments()
        values["updated_at"] = _utcnow()
        with self._errors("Failed to update task"), self.Session() as session:
            result = session.execute(
                update(TaskRow).where(TaskRow.id == task_id).values(**values)
            )
            if result.rowcount == 0:
                raise NotFoundError()
            session.commit()
            row = session.get(TaskRow, task_id)
            if row is None:
                raise NotFoundError()
            return self._to_record(row)

    def delete(self, task_id: str) -> None:
        with self._errors("Failed to delete task"), self.Session() as session:
            result = session.execute(delete(TaskRow).where(TaskRow.id == task_id))
            if result.rowcount == 0:
                raise NotFoundError()
            session.commit()

    def ping(self) -> None:
        with self._errors("Database unreachable"), self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


Base = declarative_base()

LEGACY_TASK_COLUMNS = ("latitude", "longitude")

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in TaskStatus)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    name = Column(String(255), nullable=True)
    photo_url = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class TaskRow(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="tasks_status_check"),
        Index("idx_tasks_user_id", "user_id"),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default=TaskStatus.CREATED.value)
    user_id = Column(
        String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    address = Column(String(500), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
