"""Tests for the pagination service."""

from __future__ import annotations

import pytest

from tross_query import QuerySettings, ValidationFailure
from tross_query.pagination import generate_metadata, validate_params


class TestValidateParams:
    def test_defaults(self) -> None:
        result = validate_params()
        assert (result.page, result.limit, result.offset) == (1, 50, 0)

    def test_offset(self) -> None:
        result = validate_params({"page": "4", "limit": "25"})
        assert result.offset == 75

    def test_limit_above_max(self) -> None:
        with pytest.raises(ValidationFailure, match="limit must be at most 200"):
            validate_params({"limit": "201"})

    def test_settings_override_limits(self) -> None:
        settings = QuerySettings(default_page_limit=10, max_page_limit=20)
        assert validate_params({}, settings=settings).limit == 10
        with pytest.raises(ValidationFailure, match="at most 20"):
            validate_params({"limit": "21"}, settings=settings)


class TestGenerateMetadata:
    def test_middle_page(self) -> None:
        meta = generate_metadata(2, 10, 35)
        assert meta.total_pages == 4
        assert meta.offset == 10
        assert meta.has_next is True
        assert meta.has_previous is True

    def test_last_page(self) -> None:
        meta = generate_metadata(4, 10, 35)
        assert meta.has_next is False

    def test_exact_multiple(self) -> None:
        assert generate_metadata(1, 10, 30).total_pages == 3

    def test_empty_result(self) -> None:
        meta = generate_metadata(1, 50, 0)
        assert meta.total_pages == 0
        assert meta.has_next is False
        assert meta.has_previous is False

    def test_empty_result_beyond_first_page_keeps_previous(self) -> None:
        meta = generate_metadata(3, 50, 0)
        assert meta.has_previous is True
        assert meta.has_next is False

    def test_negative_total_is_clamped(self) -> None:
        assert generate_metadata(1, 10, -5).total == 0

    def test_rejects_zero_limit(self) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            generate_metadata(1, 0, 10)
        assert exc_info.value.field == "limit"

    def test_to_dict_uses_camel_case(self) -> None:
        assert generate_metadata(1, 10, 11).to_dict() == {
            "page": 1,
            "limit": 10,
            "offset": 0,
            "total": 11,
            "totalPages": 2,
            "hasNext": True,
            "hasPrevious": False,
        }
