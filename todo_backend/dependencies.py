"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from todo_backend.auth import (
    FirebaseIdentityVerifier,
    IdentityVerifier,
    StaticIdentityVerifier,
    VerifiedIdentity,
    bearer_token,
)
from todo_backend.config import get_settings
from todo_backend.db import InMemoryTaskRepository, SqlTaskRepository, TaskRepository

_repository: TaskRepository | None = None
_verifier: IdentityVerifier | None = None


def get_repository() -> TaskRepository:
    """
    Return a singleton repository so the connection pool is shared across requests.
    """
    global _repository
    if _repository:
        return _repository

    settings = get_settings()
    if settings.use_in_memory_backends:
        _repository = InMemoryTaskRepository()
    else:
        # Tables come from scripts/migrate.py.
        _repository = SqlTaskRepository(
            settings.database_url, echo=settings.database_echo, create_schema=False
        )
    return _repository


def get_identity_verifier() -> IdentityVerifier:
    global _verifier
    if _verifier:
        return _verifier

    settings = get_settings()
    if settings.use_in_memory_backends:
        _verifier = StaticIdentityVerifier.from_mapping(settings.dev_tokens)
    else:
        _verifier = FirebaseIdentityVerifier(settings.firebase_project_id)
    return _verifier


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    return verifier.verify(bearer_token(authorization))


def reset_dependencies() -> None:
    """Drop cached singletons (used on shutdown and in tests)."""
    global _repository, _verifier
    if _repository is not None:
        _repository.dispose()
    _repository = None
    _verifier = None
