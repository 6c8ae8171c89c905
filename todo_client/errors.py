"""
Errors raised by the todo client.
"""

from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """The task API rejected a call or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamError(Exception):
    """The geocoding provider failed to answer."""
