"""Pagination service — page/limit/offset validation and result metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .coercion import Pagination, to_safe_pagination
from .exceptions import ValidationFailure
from .settings import QuerySettings

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class PaginationMetadata:
    """Page metadata returned alongside a list of results."""

    page: int
    limit: int
    offset: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the API envelope's key names."""
        return {
            "page": self.page,
            "limit": self.limit,
            "offset": self.offset,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrevious": self.has_previous,
        }


def validate_params(
    options: Mapping[str, Any] | None = None,
    *,
    settings: QuerySettings | None = None,
) -> Pagination:
    """Validate ``page``/``limit`` from *options* and compute ``offset``.

    Limits come from *settings* (defaults: 50 per page, at most 200).

    Raises:
        ValidationFailure: tagged with ``page`` or ``limit``.
    """
    settings = settings or QuerySettings()
    return to_safe_pagination(
        options or {},
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )


def generate_metadata(page: int, limit: int, total: int) -> PaginationMetadata:
    """Derive page metadata from the request and the total row count.

    ``has_previous`` depends on *page* only, so page 3 of an empty result
    still reports a previous page.
    """
    if limit < 1:
        raise ValidationFailure("limit", "limit must be at least 1")
    if page < 1:
        raise ValidationFailure("page", "page must be at least 1")
    total = max(0, total)
    total_pages = -(-total // limit)
    return PaginationMetadata(
        page=page,
        limit=limit,
        offset=(page - 1) * limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )
