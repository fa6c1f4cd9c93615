"""Tests for the type coercion layer."""

from __future__ import annotations

import pytest

from tross_query import ValidationFailure
from tross_query.coercion import (
    Pagination,
    to_safe_boolean,
    to_safe_email,
    to_safe_integer,
    to_safe_pagination,
    to_safe_string,
    to_safe_user_id,
    to_safe_uuid,
)


class TestToSafeInteger:
    def test_truncates_decimal_string(self) -> None:
        assert to_safe_integer("12.5", "id") == 12

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(5, 5), ("42", 42), (" 7 ", 7), ("007", 7), (3.9, 3), (["9", "10"], 9)],
    )
    def test_accepts_integer_like_input(self, raw: object, expected: int) -> None:
        assert to_safe_integer(raw, "id") == expected

    def test_result_is_idempotent(self) -> None:
        once = to_safe_integer("12.5", "id")
        assert to_safe_integer(once, "id") == once

    @pytest.mark.parametrize("raw", ["abc", "12abc", "1e3", True, {}, float("nan")])
    def test_rejects_non_integer(self, raw: object) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            to_safe_integer(raw, "id")
        assert str(exc_info.value) == "id must be a valid integer"
        assert exc_info.value.field == "id"

    @pytest.mark.parametrize("raw", [None, "", []])
    def test_missing_is_required(self, raw: object) -> None:
        with pytest.raises(ValidationFailure, match="^id is required$"):
            to_safe_integer(raw, "id")

    def test_missing_with_allow_null_returns_none(self) -> None:
        assert to_safe_integer(None, "id", allow_null=True) is None
        assert to_safe_integer("", "id", allow_null=True) is None

    def test_below_minimum(self) -> None:
        with pytest.raises(ValidationFailure, match="^id must be at least 1$"):
            to_safe_integer("0", "id")

    def test_above_maximum(self) -> None:
        with pytest.raises(ValidationFailure, match="^limit must be at most 200$"):
            to_safe_integer("201", "limit", max_value=200)

    def test_bounds_are_inclusive(self) -> None:
        assert to_safe_integer("0", "n", min_value=0) == 0
        assert to_safe_integer("10", "n", max_value=10) == 10

    def test_negative_with_custom_minimum(self) -> None:
        assert to_safe_integer("-5", "delta", min_value=-10) == -5


class TestToSafeUserId:
    def test_integer_passes(self) -> None:
        assert to_safe_user_id(17) == 17

    def test_string_id_yields_none(self) -> None:
        assert to_safe_user_id("auth0|abc123") is None
        assert to_safe_user_id("42") is None

    def test_missing_yields_none(self) -> None:
        assert to_safe_user_id(None) is None

    def test_zero_is_rejected(self) -> None:
        with pytest.raises(ValidationFailure, match="userId must be at least 1"):
            to_safe_user_id(0)


class TestToSafeBoolean:
    def test_default_applies_to_missing(self) -> None:
        assert to_safe_boolean(None, "flag", True) is True
        assert to_safe_boolean("", "flag", True) is True
        assert to_safe_boolean(None, "flag") is False

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (True, True),
            (False, False),
            ("true", True),
            ("false", False),
            ("yes", True),
            ("False", True),
            (1, True),
            (0, False),
            (0.0, False),
            ([], False),
        ],
    )
    def test_coercion_table(self, raw: object, expected: bool) -> None:
        assert to_safe_boolean(raw, "flag") is expected

    def test_never_raises(self) -> None:
        assert to_safe_boolean(object(), "flag") is True

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(["false", "false"], False), (["false", "true"], False), (("true",), True)],
    )
    def test_repeated_value_uses_first(self, raw: object, expected: bool) -> None:
        assert to_safe_boolean(raw, "flag") is expected

    def test_empty_list_uses_default(self) -> None:
        assert to_safe_boolean([], "flag", True) is True


class TestToSafeString:
    def test_trims_by_default(self) -> None:
        assert to_safe_string("  hi  ", "name") == "hi"

    def test_trim_disabled(self) -> None:
        assert to_safe_string("  hi  ", "name", trim=False) == "  hi  "

    def test_non_string_is_converted(self) -> None:
        assert to_safe_string(12, "code") == "12"

    def test_required(self) -> None:
        with pytest.raises(ValidationFailure, match="^name is required$"):
            to_safe_string(None, "name")

    def test_empty_after_trim(self) -> None:
        with pytest.raises(ValidationFailure, match="^name cannot be empty$"):
            to_safe_string("   ", "name")
        assert to_safe_string("   ", "name", allow_null=True) is None

    def test_length_bounds(self) -> None:
        with pytest.raises(ValidationFailure, match="at least 3 characters"):
            to_safe_string("ab", "name", min_length=3)
        with pytest.raises(ValidationFailure, match="at most 2 characters"):
            to_safe_string("abc", "name", max_length=2)


class TestToSafeEmail:
    def test_lowercases(self) -> None:
        assert to_safe_email(" Jane.Doe@Example.COM ") == "jane.doe@example.com"

    @pytest.mark.parametrize(
        "raw", ["jane", "jane@example", "a b@example.com", "x@y.c"]
    )
    def test_rejects_malformed(self, raw: str) -> None:
        with pytest.raises(ValidationFailure, match="must be a valid email address"):
            to_safe_email(raw)

    def test_rejects_overlong(self) -> None:
        raw = "a" * 250 + "@example.com"
        with pytest.raises(ValidationFailure, match="at most 255 characters"):
            to_safe_email(raw)

    def test_allow_null(self) -> None:
        assert to_safe_email(None, allow_null=True) is None


class TestToSafeUuid:
    def test_accepts_v4_any_case(self) -> None:
        value = "550E8400-E29B-41D4-A716-446655440000"
        assert to_safe_uuid(value) == value

    def test_rejects_v1(self) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            to_safe_uuid("550e8400-e29b-11d4-a716-446655440000", "token")
        assert str(exc_info.value) == "token must be a valid UUID v4"

    def test_rejects_non_string(self) -> None:
        with pytest.raises(ValidationFailure, match="must be a valid UUID string"):
            to_safe_uuid(123, "token")

    def test_required(self) -> None:
        with pytest.raises(ValidationFailure, match="^token is required$"):
            to_safe_uuid(None, "token")


class TestToSafePagination:
    def test_defaults(self) -> None:
        assert to_safe_pagination({}) == Pagination(page=1, limit=50, offset=0)

    def test_offset_derived_from_page(self) -> None:
        result = to_safe_pagination({"page": "3", "limit": "20"})
        assert result == Pagination(page=3, limit=20, offset=40)

    def test_limit_ceiling(self) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            to_safe_pagination({"limit": "500"}, max_limit=100)
        assert exc_info.value.field == "limit"

    def test_absent_values_use_defaults(self) -> None:
        assert to_safe_pagination({"page": None, "limit": ""}).limit == 50

    @pytest.mark.parametrize("page", ["0", "-1"])
    def test_page_below_one_is_rejected(self, page: str) -> None:
        with pytest.raises(ValidationFailure, match="page must be at least 1"):
            to_safe_pagination({"page": page})
