"""
Client-side task types, built from the API's camelCase payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

TASK_STATUSES = ("created", "in_progress", "completed")


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class Task:
    id: str
    title: str
    status: str
    user_id: str
    created_at: str
    updated_at: str
    description: Optional[str] = None
    address: Optional[str] = None
    due_date: Optional[str] = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            title=data["title"],
            status=data["status"],
            user_id=data["userId"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            description=data.get("description"),
            address=data.get("address"),
            due_date=data.get("dueDate"),
        )
