"""
Client-side task state: the collection the list, kanban and map views render.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from todo_client.api import TasksApi
from todo_client.errors import ApiError
from todo_client.models import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Holds the task collection plus ``loading``/``error`` flags.

    Mutations apply the server's response to the collection, never the local
    input, so server-computed fields (timestamps, defaults) stay in sync.
    Calls are not serialized: when two updates to the same task overlap, the
    last response to arrive wins.
    """

    def __init__(self, api: TasksApi):
        self.api = api
        self.tasks: list[Task] = []
        self.loading = False
        self.error: Optional[str] = None

    def _begin(self) -> None:
        self.loading = True
        self.error = None

    def _fail(self, exc: ApiError, fallback: str) -> None:
        self.error = exc.message or fallback
        self.loading = False
        logger.warning("%s: %s", fallback, self.error)

    def _require_token(self) -> None:
        if not self.api.token:
            raise ApiError("No token available")

    def fetch_tasks(self) -> None:
        if not self.api.token:
            return
        self._begin()
        try:
            self.tasks = self.api.get_all()
        except ApiError as exc:
            self._fail(exc, "Failed to fetch tasks")
            return
        self.loading = False

    def fetch_user_tasks(self, user_id: str) -> None:
        if not self.api.token:
            return
        self._begin()
        try:
            self.tasks = self.api.get_user_tasks(user_id)
        except ApiError as exc:
            self._fail(exc, "Failed to fetch user tasks")
            return
        self.loading = False

    def create_task(self, data: dict[str, Any]) -> Task:
        self._require_token()
        self._begin()
        try:
            task = self.api.create(data)
        except ApiError as exc:
            self._fail(exc, "Failed to create task")
            raise
        self.tasks = [*self.tasks, task]
        self.loading = False
        return task

    def update_task(self, task_id: str, data: dict[str, Any]) -> Task:
        self._require_token()
        self._begin()
        try:
            updated = self.api.update(task_id, data)
        except ApiError as exc:
            self._fail(exc, "Failed to update task")
            raise
        self.tasks = [updated if t.id == task_id else t for t in self.tasks]
        self.loading = False
        return updated

    def delete_task(self, task_id: str) -> None:
        self._require_token()
        self._begin()
        try:
            self.api.delete(task_id)
        except ApiError as exc:
            self._fail(exc, "Failed to delete task")
            raise
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self.loading = False
