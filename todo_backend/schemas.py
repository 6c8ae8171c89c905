"""
Pydantic schemas for the todo API. Field names are the camelCase wire names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from todo_backend.db import TaskRecord
from todo_backend.wire import to_wire


class TaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: Literal["created", "in_progress", "completed"]
    userId: str
    address: Optional[str] = None
    dueDate: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_record(cls, record: TaskRecord) -> "TaskResponse":
        return cls(**to_wire(record.as_dict()))


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    database: Literal["connected", "disconnected"]
    error: Optional[str] = None
