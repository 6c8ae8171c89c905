"""
Data projections behind the kanban and map views.
"""

from __future__ import annotations

from typing import Iterable

from todo_client.geocoding import GeocodingCache
from todo_client.models import TASK_STATUSES, Coordinates, Task


def kanban_columns(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Group tasks by status; every column is present, in workflow order."""
    columns: dict[str, list[Task]] = {status: [] for status in TASK_STATUSES}
    for task in tasks:
        columns.setdefault(task.status, []).append(task)
    return columns


def map_markers(
    tasks: Iterable[Task], geocoder: GeocodingCache
) -> list[tuple[Task, Coordinates]]:
    """Pair each task that has a resolvable address with its coordinates."""
    located = [t for t in tasks if t.address and t.address.strip()]
    coordinates = geocoder.lookup_many(t.address for t in located)
    return [
        (task, coordinates[task.address])
        for task in located
        if coordinates.get(task.address) is not None
    ]
