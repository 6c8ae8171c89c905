"""
Translation between storage column names and camelCase wire names.

The table is explicit on purpose: a new column needs a matching entry here
before it shows up in API responses.
"""

from __future__ import annotations

from typing import Any, Mapping

COLUMN_TO_WIRE: dict[str, str] = {
    "id": "id",
    "title": "title",
    "description": "description",
    "status": "status",
    "user_id": "userId",
    "address": "address",
    "due_date": "dueDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

WIRE_TO_COLUMN: dict[str, str] = {wire: col for col, wire in COLUMN_TO_WIRE.items()}


def to_wire(row: Mapping[str, Any]) -> dict[str, Any]:
    """Rename storage keys to wire keys, dropping anything unmapped."""
    return {
        wire: row[column] for column, wire in COLUMN_TO_WIRE.items() if column in row
    }


def to_columns(body: Mapping[str, Any]) -> dict[str, Any]:
    """Rename wire keys to storage keys, dropping anything unmapped."""
    return {
        WIRE_TO_COLUMN[key]: value for key, value in body.items() if key in WIRE_TO_COLUMN
    }
