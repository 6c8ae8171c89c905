"""
HTTP routes for the todo API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

from fastapi import APIRouter, Body, Depends, Response
from fastapi.responses import JSONResponse

from todo_backend.auth import VerifiedIdentity
from todo_backend.db import TaskRepository
from todo_backend.dependencies import get_current_user, get_repository
from todo_backend.errors import StorageError
from todo_backend.patch import TaskDraft, TaskPatch
from todo_backend.schemas import ErrorResponse, HealthResponse, TaskResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    dependencies=[Depends(get_current_user)],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
health_router = APIRouter()


@contextmanager
def _storage_errors(message: str) -> Iterator[None]:
    """Replace the repository's storage message with a route-level one."""
    try:
        yield
    except StorageError as exc:
        raise StorageError(message) from exc


@health_router.get("/health", response_model=HealthResponse)
def health(repo: TaskRepository = Depends(get_repository)):
    timestamp = datetime.now(timezone.utc)
    try:
        repo.ping()
    except StorageError as exc:
        body = HealthResponse(
            status="unhealthy",
            timestamp=timestamp,
            database="disconnected",
            error=str(exc.__cause__ or exc),
        )
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return HealthResponse(status="healthy", timestamp=timestamp, database="connected")


@router.get("", response_model=list[TaskResponse])
def list_tasks(repo: TaskRepository = Depends(get_repository)):
    with _storage_errors("Failed to fetch tasks"):
        records = repo.list_all()
    return [TaskResponse.from_record(r) for r in records]


@router.get("/user/{user_id}", response_model=list[TaskResponse])
def list_user_tasks(user_id: str, repo: TaskRepository = Depends(get_repository)):
    with _storage_errors("Failed to fetch user tasks"):
        records = repo.list_by_owner(user_id)
    return [TaskResponse.from_record(r) for r in records]


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_task(task_id: str, repo: TaskRepository = Depends(get_repository)):
    with _storage_errors("Failed to fetch task"):
        record = repo.get(task_id)
    return TaskResponse.from_record(record)


@router.post(
    "",
    response_model=TaskResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
def create_task(
    body: Dict[str, Any] = Body(...),
    user: VerifiedIdentity = Depends(get_current_user),
    repo: TaskRepository = Depends(get_repository),
):
    """
    Create a task owned by the caller. Any ``userId`` in the body is ignored.
    """
    draft = TaskDraft.from_wire(body)
    with _storage_errors("Failed to create task"):
        record = repo.create(user.uid, draft, owner_email=user.email)
    return TaskResponse.from_record(record)


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_task(
    task_id: str,
    body: Dict[str, Any] = Body(...),
    repo: TaskRepository = Depends(get_repository),
):
    """
    Apply a partial update. Keys absent from the body are left untouched;
    keys sent as null clear the field.
    """
    patch = TaskPatch.from_wire(body)
    with _storage_errors("Failed to update task"):
        record = repo.update(task_id, patch)
    return TaskResponse.from_record(record)


@router.delete(
    "/{task_id}", status_code=204, responses={404: {"model": ErrorResponse}}
)
def delete_task(task_id: str, repo: TaskRepository = Depends(get_repository)):
    with _storage_errors("Failed to delete task"):
        repo.delete(task_id)
    return Response(status_code=204)
