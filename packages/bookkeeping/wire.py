"""
Conversion between internal values and the external wire format.

External callers (detector and control software) exchange enums as
upper snake case strings prefixed with the enum name, e.g. ``RunDefinition``
``PHYSICS`` travels as ``RUN_DEFINITION_PHYSICS``. Some enums override that
default, ``RunQuality`` travels as the bare upper-case value (``GOOD``).

Messages are plain dicts. A message layout declares, for every field that
needs a conversion, the path of parent fields leading to it and the
converter to apply. Lists met along the path are walked item by item.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

# =============================================================================
# Enum values
# =============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_upper_snake_case(name: str) -> str:
    """``RunDefinition`` -> ``RUN_DEFINITION``."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").upper()


def _prefix(enum_name: str) -> str:
    return f"{to_upper_snake_case(enum_name)}_"


def _default_from_wire(enum_name: str, value: str) -> str:
    prefix = _prefix(enum_name)
    return value[len(prefix):] if value.startswith(prefix) else value


def _default_to_wire(enum_name: str, value: str) -> str:
    return f"{_prefix(enum_name)}{value}"


def _run_quality_from_wire(enum_name: str, value: str) -> str:
    return _default_from_wire(enum_name, value).lower()


def _run_quality_to_wire(enum_name: str, value: str) -> str:
    return value.upper()


@dataclass(frozen=True)
class EnumOverride:
    """Replacement conversion functions for one enum type."""

    from_wire: Callable[[str, str], str] = _default_from_wire
    to_wire: Callable[[str, str], str] = _default_to_wire


ENUM_OVERRIDES: dict[str, EnumOverride] = {
    "RunQuality": EnumOverride(from_wire=_run_quality_from_wire, to_wire=_run_quality_to_wire),
}


def from_wire_enum(enum_name: str, value: str | None) -> str | None:
    """Convert an external enum value to its internal value.

    Enum types without an override use the prefix convention. ``None`` is
    returned unchanged.
    """
    if value is None:
        return None
    override = ENUM_OVERRIDES.get(enum_name, EnumOverride())
    return override.from_wire(enum_name, value)


def to_wire_enum(enum_name: str, value: Any) -> str | None:
    """Convert an internal enum value to its external value."""
    if value is None:
        return None
    value = getattr(value, "value", value)
    override = ENUM_OVERRIDES.get(enum_name, EnumOverride())
    return override.to_wire(enum_name, str(value))


# =============================================================================
# Message trees
# =============================================================================


@dataclass(frozen=True)
class FieldConverter:
    """How to convert one field of a message, in both directions.

    ``path`` lists the field names from the root message down to the parent
    message of the field, ``name`` is the field itself.
    """

    path: tuple[str, ...]
    name: str
    from_wire: Callable[[Any], Any]
    to_wire: Callable[[Any], Any]

    @property
    def leaf_path(self) -> tuple[str, ...]:
        return (*self.path, self.name)


def enum_field(path: Sequence[str], name: str, enum_name: str) -> FieldConverter:
    """Field converter for an enum field."""
    return FieldConverter(
        path=tuple(path),
        name=name,
        from_wire=lambda value: from_wire_enum(enum_name, value),
        to_wire=lambda value: to_wire_enum(enum_name, value),
    )


def map_tree_leaves(tree: Any, leaf_path: Sequence[str], function: Callable[[Any], Any]) -> None:
    """Apply ``function`` in place to every leaf reached by ``leaf_path``.

    A list met along the way, or found at the leaf, is mapped item by item.
    Missing branches are skipped.

    Example:
        >>> tree = {"a": [{"b": 1}, {"b": 2}]}
        >>> map_tree_leaves(tree, ["a", "b"], lambda x: x * 10)
        >>> tree
        {'a': [{'b': 10}, {'b': 20}]}
    """
    if not tree or not leaf_path:
        return

    head, *rest = leaf_path
    if not rest:
        if isinstance(tree, dict) and head in tree:
            value = tree[head]
            tree[head] = [function(item) for item in value] if isinstance(value, list) else function(value)
        return

    subtree = tree.get(head) if isinstance(tree, dict) else None
    items = subtree if isinstance(subtree, list) else [subtree]
    for item in items:
        map_tree_leaves(item, rest, function)


def convert_from_wire(message: dict[str, Any], converters: Iterable[FieldConverter]) -> dict[str, Any]:
    """Convert an incoming message in place and return it."""
    for converter in converters:
        map_tree_leaves(message, converter.leaf_path, converter.from_wire)
    return message


def convert_to_wire(message: dict[str, Any], converters: Iterable[FieldConverter]) -> dict[str, Any]:
    """Convert an outgoing message in place and return it."""
    for converter in converters:
        map_tree_leaves(message, converter.leaf_path, converter.to_wire)
    return message
