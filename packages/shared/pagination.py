"""Paginated list envelope."""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CountedData:
    """Rows of one page plus the total number of matching rows.

    ``count`` may be a sequence when it comes from a grouped query, in which
    case the number of groups is the total.
    """

    count: int | Sequence[Any]
    rows: Sequence[Any] = field(default_factory=list)


def _total(count: Any) -> int:
    if isinstance(count, int):
        return count
    if count is None:
        return 0
    return len(count)


def counted_data_to_http_view(
    counted: CountedData | Mapping[str, Any],
    limit: int | None = None,
) -> dict[str, Any]:
    """Build the ``{meta: {totalCount, pageCount}, data}`` envelope.

    Example:
        >>> counted_data_to_http_view(CountedData(count=42, rows=[]), limit=10)
        {'meta': {'totalCount': 42, 'pageCount': 5}, 'data': []}
    """
    if isinstance(counted, Mapping):
        count, rows = counted.get("count"), counted.get("rows", [])
    else:
        count, rows = counted.count, counted.rows

    total = _total(count)
    page_count = math.ceil(total / limit) if limit else None
    return {
        "meta": {"totalCount": total, "pageCount": page_count},
        "data": list(rows),
    }
