"""
Error taxonomy shared by the repository, auth and HTTP layers.
"""

from __future__ import annotations


class TodoError(Exception):
    """Base error. Subclasses carry the HTTP status they render as."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class Unauthenticated(TodoError):
    status_code = 401

    def __init__(self, message: str = "No token provided"):
        super().__init__(message)


class InvalidCredential(TodoError):
    status_code = 403

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class ValidationError(TodoError):
    status_code = 400


class NotFoundError(TodoError):
    status_code = 404

    def __init__(self, message: str = "Task not found"):
        super().__init__(message)


class StorageError(TodoError):
    status_code = 500


class UpstreamError(TodoError):
    """Identity provider or geocoding provider failed to answer."""

    status_code = 502
