"""
Filtering and ordering of task listings.

``view`` takes serialised tasks (the dictionaries produced by
``Task.to_dict``) and the listing options chosen by the client, and returns
the tasks that should be displayed in display order.  Retailer search and
the schedule-day filter are applied by the database query before this step;
this module only handles the load-type and status filters plus sorting.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

ALL = "all"

SORT_FIELDS = ("retailer", "day", "fileCount", "updatedAt")
SORT_ORDERS = ("asc", "desc")
STATUS_FILTERS = (ALL, "completed", "pending")

DEFAULT_OPTIONS: dict[str, str] = {
    "searchQuery": "",
    "dayFilter": ALL,
    "loadTypeFilter": ALL,
    "statusFilter": ALL,
    "sortBy": "retailer",
    "sortOrder": "asc",
}


def _text_key(value: Any) -> tuple[int, str, str]:
    if value is None:
        return (0, "", "")
    # Case-insensitive first, exact text breaks ties
    text = str(value)
    return (1, text.casefold(), text)


def _number_key(value: Any) -> tuple[int, float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return (0, 0.0)
    return (1, float(value))


def _date_key(value: Any) -> tuple[int, float]:
    if isinstance(value, datetime):
        return (1, value.timestamp())
    if not isinstance(value, str) or not value:
        return (0, 0.0)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return (0, 0.0)
    return (1, parsed.timestamp())


_SORT_KEYS = {
    "retailer": lambda task: _text_key(task.get("retailer")),
    "day": lambda task: _text_key(task.get("day")),
    "fileCount": lambda task: _number_key(task.get("fileCount")),
    "updatedAt": lambda task: _date_key(task.get("updatedAt")),
}


def matches(task: Mapping[str, Any], load_type_filter: str, status_filter: str) -> bool:
    """Return True when *task* passes both the load-type and the status filter."""
    matches_load_type = load_type_filter == ALL or task.get("loadType") == load_type_filter
    matches_status = status_filter == ALL or (
        (status_filter == "completed") == bool(task.get("completed"))
    )
    return matches_load_type and matches_status


def view(tasks: Any, options: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
    """
    Build the filtered, ordered task list shown to the user.

    Args:
        tasks: Serialised tasks.  Anything other than a list (an error
            payload, ``None``) yields an empty result instead of raising.
        options: Listing options using the keys of ``DEFAULT_OPTIONS``.
            Missing keys take their default.  An unknown ``sortBy`` falls
            back to ``"retailer"``.

    Returns:
        A new list.  Sorting is stable, so tasks with equal keys keep their
        input order in both directions.
    """
    if not isinstance(tasks, list):
        return []

    opts = {**DEFAULT_OPTIONS, **{k: v for k, v in (options or {}).items() if v}}
    load_type_filter = opts["loadTypeFilter"]
    status_filter = opts["statusFilter"]
    sort_key = _SORT_KEYS.get(opts["sortBy"], _SORT_KEYS["retailer"])

    kept = [
        task
        for task in tasks
        if isinstance(task, Mapping) and matches(task, load_type_filter, status_filter)
    ]
    # sorted(reverse=True) keeps equal elements in their original order
    return sorted(kept, key=sort_key, reverse=opts["sortOrder"] == "desc")
