"""Tests for the list filter builders."""

import pytest

from db.models import Log, Tag, User
from packages.bookkeeping.enums import CreatedByOperator
from packages.bookkeeping.filters import get_created_by_filter_clause, get_tags_filter_clause
from packages.shared.exceptions import BadParameterError, UnsupportedOperatorError


def to_sql(clause) -> str:
    return str(clause.compile(compile_kwargs={"literal_binds": True}))


class TestCreatedByFilter:
    """Tests for get_created_by_filter_clause."""

    def test_or_matches_any_name(self) -> None:
        sql = to_sql(get_created_by_filter_clause(["Jan", "Anna"], "or", User.name))

        assert "users.name IN ('Jan', 'Anna')" in sql
        assert "NOT" not in sql

    def test_none_excludes_names(self) -> None:
        sql = to_sql(get_created_by_filter_clause(["Jan"], CreatedByOperator.NONE, User.name))

        assert "NOT IN ('Jan')" in sql

    def test_unknown_operator_raises(self) -> None:
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            get_created_by_filter_clause(["Jan"], "and", User.name)

        assert "and" in str(exc_info.value)

    def test_unknown_operator_is_a_bad_parameter_and_a_value_error(self) -> None:
        with pytest.raises(BadParameterError):
            get_created_by_filter_clause(["Jan"], "xor", User.name)
        with pytest.raises(ValueError):
            get_created_by_filter_clause(["Jan"], "xor", User.name)


class TestTagsFilter:
    """Tests for get_tags_filter_clause."""

    def test_and_requires_every_tag(self) -> None:
        sql = to_sql(get_tags_filter_clause(Log.tags, Tag.text, ["FOO", "BAR"], "and"))

        assert sql.count("EXISTS") == 2
        assert "tags.text = 'FOO'" in sql
        assert "tags.text = 'BAR'" in sql

    def test_or_requires_one_tag(self) -> None:
        sql = to_sql(get_tags_filter_clause(Log.tags, Tag.text, ["FOO", "BAR"], "or"))

        assert sql.count("EXISTS") == 1
        assert "tags.text IN ('FOO', 'BAR')" in sql

    def test_none_of_excludes_tags(self) -> None:
        sql = to_sql(get_tags_filter_clause(Log.tags, Tag.text, ["FOO"], "none-of"))

        assert sql.startswith("NOT")
        assert "EXISTS" in sql

    def test_unknown_operation_raises(self) -> None:
        with pytest.raises(UnsupportedOperatorError):
            get_tags_filter_clause(Log.tags, Tag.text, ["FOO"], "xor")
