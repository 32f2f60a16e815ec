"""Recursive dictionary merge."""

from collections.abc import Mapping
from typing import Any


def deep_merge(left: Mapping[str, Any], right: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``right`` into ``left`` and return a new dict.

    Nested mappings are merged key by key, lists are concatenated and any other
    value from ``right`` replaces the one from ``left``. Neither input is
    modified.

    Example:
        >>> deep_merge({"a": 1, "x": {"y": None}}, {"c": 4, "x": {"y": "X"}})
        {'a': 1, 'x': {'y': 'X'}, 'c': 4}
    """
    merged: dict[str, Any] = {key: _copy(value) for key, value in left.items()}
    for key, value in right.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + [_copy(item) for item in value]
        else:
            merged[key] = _copy(value)
    return merged


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return deep_merge({}, value)
    if isinstance(value, list):
        return [_copy(item) for item in value]
    return value
