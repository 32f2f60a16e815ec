"""Parsing of number ranges such as ``"500-505,510"``."""

from collections.abc import Iterable

MAX_RANGE_SIZE = 100


def validate_range(value: str, max_size: int = MAX_RANGE_SIZE) -> str:
    """Check a comma separated list of numbers and ``a-b`` ranges.

    Returns the value unchanged, raises ``ValueError`` naming the offending
    item otherwise.
    """
    for item in _split(value):
        if "-" in item:
            start, end = _parse_bounds(item)
            if end - start + 1 > max_size:
                raise ValueError(f"Given range exceeds max size of {max_size} runs: {item}")
        elif not item.isdigit():
            raise ValueError(f"Invalid range: {item}")
    return value


def unpack_number_range(values: Iterable[str] | str, max_size: int = MAX_RANGE_SIZE) -> list[int]:
    """Expand numbers and ranges into a sorted list of unique integers."""
    if isinstance(values, str):
        values = [values]

    numbers: set[int] = set()
    for value in values:
        validate_range(value, max_size)
        for item in _split(value):
            if "-" in item:
                start, end = _parse_bounds(item)
                numbers.update(range(start, end + 1))
            else:
                numbers.add(int(item))
    return sorted(numbers)


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bounds(item: str) -> tuple[int, int]:
    parts = [part.strip() for part in item.split("-")]
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid range: {item}")
    start, end = int(parts[0]), int(parts[1])
    if start > end:
        raise ValueError(f"Invalid range: {item}")
    return start, end
