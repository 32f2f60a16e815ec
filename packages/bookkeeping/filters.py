"""Translation of declarative list filters into SQL predicates."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import ColumnElement, and_, not_

from packages.bookkeeping.enums import CreatedByOperator, TagOperation
from packages.shared.exceptions import UnsupportedOperatorError

SUPPORTED_CREATED_BY_OPERATORS = tuple(operator.value for operator in CreatedByOperator)


def get_created_by_filter_clause(
    names: Iterable[str],
    operator: str | CreatedByOperator,
    column: Any,
) -> ColumnElement[bool]:
    """Build the predicate for a ``createdBy`` filter.

    Args:
        names: author names to look for
        operator: ``or`` to match any of the names, ``none`` to match none of them
        column: the column holding the author name

    Raises:
        UnsupportedOperatorError: the operator is neither ``or`` nor ``none``
    """
    try:
        operator = CreatedByOperator(operator)
    except ValueError:
        raise UnsupportedOperatorError(operator, SUPPORTED_CREATED_BY_OPERATORS) from None

    names = list(names)
    if operator is CreatedByOperator.OR:
        return column.in_(names)
    return not_(column.in_(names))


def get_tags_filter_clause(
    relation: Any,
    text_column: Any,
    texts: Iterable[str],
    operation: str | TagOperation = TagOperation.AND,
) -> ColumnElement[bool]:
    """Build the predicate for a ``tags`` filter on a many-to-many relation.

    ``and`` matches rows carrying every tag, ``or`` rows carrying at least one
    of them and ``none-of`` rows carrying none of them.
    """
    try:
        operation = TagOperation(operation)
    except ValueError:
        raise UnsupportedOperatorError(operation, tuple(op.value for op in TagOperation)) from None

    texts = list(texts)
    if operation is TagOperation.OR:
        return relation.any(text_column.in_(texts))
    if operation is TagOperation.NONE_OF:
        return not_(relation.any(text_column.in_(texts)))
    return and_(*(relation.any(text_column == text) for text in texts))
