"""
HTTP client for the task API.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from todo_client.config import get_client_settings
from todo_client.errors import ApiError
from todo_client.models import Task

logger = logging.getLogger(__name__)


class TasksApi:
    """
    Thin wrapper over the ``/api/tasks`` endpoints. Every request carries the
    caller's ID token as a bearer credential.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_client_settings()
        self.token = token
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or settings.request_timeout

    def _request(self, method: str, endpoint: str, body: Optional[dict] = None):
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{endpoint}",
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, endpoint, exc)
            raise ApiError(f"Network error: {exc}") from exc
        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = payload.get("error") if isinstance(payload, dict) else None
            raise ApiError(
                message or f"API error: {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def _task_list(self, response) -> list[Task]:
        try:
            return [Task.from_wire(item) for item in response.json()]
        except (KeyError, TypeError, ValueError) as exc:
            raise ApiError(
                f"Malformed response: {exc!r}", status_code=response.status_code
            ) from exc

    def _task(self, response) -> Task:
        try:
            return Task.from_wire(response.json())
        except (KeyError, TypeError, ValueError) as exc:
            raise ApiError(
                f"Malformed response: {exc!r}", status_code=response.status_code
            ) from exc

    def get_all(self) -> list[Task]:
        return self._task_list(self._request("GET", "/api/tasks"))

    def get_user_tasks(self, user_id: str) -> list[Task]:
        return self._task_list(self._request("GET", f"/api/tasks/user/{user_id}"))

    def get(self, task_id: str) -> Task:
        return self._task(self._request("GET", f"/api/tasks/{task_id}"))

    def create(self, data: dict[str, Any]) -> Task:
        """Create a task from camelCase fields (``title`` required)."""
        return self._task(self._request("POST", "/api/tasks", data))

    def update(self, task_id: str, data: dict[str, Any]) -> Task:
        """Send a partial update; only the keys in ``data`` are changed."""
        return self._task(self._request("PUT", f"/api/tasks/{task_id}", data))

    def delete(self, task_id: str) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")
