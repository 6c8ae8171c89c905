"""
Task input structures: the draft used on create and the patch used on update.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

from todo_backend.errors import ValidationError
from todo_backend.wire import to_columns


class TaskStatus(str, enum.Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Marks a patch field that was absent from the request (as opposed to null).
UNSET: Any = _Unset()


def parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise ValidationError(
            f"Invalid status {value!r}, expected one of: {allowed}"
        ) from None


def parse_due_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string into an aware UTC datetime.

    Anything that does not parse (including non-strings) yields None rather
    than an error; callers store that as "no due date".
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_text(value: Any, field: str) -> Optional[str]:
    """Blank or null clears the field; anything but a string is rejected."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


@dataclass
class TaskDraft:
    """Fields accepted when creating a task."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    address: Optional[str] = None
    due_date: Any = None

    @classmethod
    def from_wire(cls, body: Mapping[str, Any]) -> "TaskDraft":
        columns = to_columns(body)
        return cls(
            title=columns.get("title"),
            description=columns.get("description"),
            status=columns.get("status"),
            address=columns.get("address"),
            due_date=columns.get("due_date"),
        )

    def validated(self, owner_id: Optional[str]) -> dict[str, Any]:
        """Return column values for insertion, with defaults applied."""
        if not isinstance(self.title, str) or not self.title.strip() or not owner_id:
            raise ValidationError("Title is required")
        status = parse_status(self.status) if self.status else TaskStatus.CREATED
        return {
            "title": self.title,
            "description": _optional_text(self.description, "description"),
            "status": status.value,
            "user_id": owner_id,
            "address": _optional_text(self.address, "address"),
            "due_date": parse_due_date(self.due_date),
        }


@dataclass
class TaskPatch:
    """
    A partial task update. Each field is either UNSET (leave the column alone)
    or a value to write; None clears nullable columns.
    """

    title: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET
    address: Any = UNSET
    due_date: Any = UNSET

    @classmethod
    def from_wire(cls, body: Mapping[str, Any]) -> "TaskPatch":
        columns = to_columns(body)
        return cls(
            title=columns.get("title", UNSET),
            description=columns.get("description", UNSET),
            status=columns.get("status", UNSET),
            address=columns.get("address", UNSET),
            due_date=columns.get("due_date", UNSET),
        )

    def assignments(self) -> dict[str, Any]:
        """
        Translate present fields into column assignments.

        Raises ValidationError when nothing is present, before any storage
        access, and when a present value cannot be stored.
        """
        values: dict[str, Any] = {}
        if self.title is not UNSET:
            if not isinstance(self.title, str) or not self.title.strip():
                raise ValidationError("Title cannot be empty")
            values["title"] = self.title
        if self.description is not UNSET:
            values["description"] = _optional_text(self.description, "description")
        if self.status is not UNSET:
            values["status"] = parse_status(self.status).value
        if self.address is not UNSET:
            values["address"] = _optional_text(self.address, "address")
        if self.due_date is not UNSET:
            values["due_date"] = parse_due_date(self.due_date)
        if not values:
            raise ValidationError("No fields to update")
        return values
