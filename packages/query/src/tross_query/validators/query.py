"""Query-string validators (FastAPI dependencies).

Results land in the validated-data container:

- ``validated["pagination"]`` — :class:`~tross_query.coercion.Pagination`
- ``validated["query"]["search"]`` — trimmed search term
- ``validated["query"]["filters"]`` — ``{field: value | {op: value}}``
- ``validated["query"]["sort_by"]`` / ``["sort_order"]`` — lowercase order

Usage::

    users = registry.get("users")

    @router.get("/users")
    def list_users(
        validated: dict = Depends(validate_query(users)),
        _: dict = Depends(validate_pagination()),
    ):
        built = build_query(validated["query"], users)
        ...
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from fastapi import Request  # noqa: TC002

from ..coercion import to_safe_pagination
from ..exceptions import ConfigurationError, ValidationFailure
from ..metadata import IN_OPERATOR, EntityQueryMetadata, build_filter_schema
from ..settings import QuerySettings
from ..validation_logger import log_validation_success
from .context import get_validated, get_validated_query, query_values
from .errors import reject

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ..metadata import FilterField

SORT_ORDERS = ("asc", "desc")
SORT_ORDER_MESSAGE = 'sortOrder must be "asc" or "desc"'

_OPERATOR_KEY_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\[([A-Za-z_]+)\]$")


def _single(value: Any) -> Any:
    """Reduce a repeated query key to its first value."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _first(query: Mapping[str, Any], *keys: str) -> Any:
    """Return the first truthy value among *keys* (``sortBy`` before ``sort``).

    A repeated key contributes its first value.
    """
    for key in keys:
        value = _single(query.get(key))
        if value:
            return value
    return None


def validate_pagination(
    default_limit: int = 50,
    max_limit: int = 500,
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that validates ``page`` and ``limit``."""

    def dependency(request: Request) -> dict[str, Any]:
        query = query_values(request)
        try:
            pagination = to_safe_pagination(
                query, default_limit=default_limit, max_limit=max_limit
            )
        except ValidationFailure as exc:
            reject(
                "validate_pagination",
                request,
                "pagination",
                str(exc),
                value=query,
                cause=exc,
            )

        validated = get_validated(request)
        validated["pagination"] = pagination
        log_validation_success(validator="validate_pagination", field="pagination")
        return validated

    return dependency


def validate_search(
    min_length: int = 1,
    max_length: int = 100,
    required: bool = False,
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that validates ``search`` (alias ``q``)."""

    def dependency(request: Request) -> dict[str, Any]:
        search = _first(query_values(request), "search", "q")

        if not search and required:
            reject("validate_search", request, "search", "Search query is required")

        if isinstance(search, str):
            trimmed = search.strip()
            if len(trimmed) < min_length:
                reject(
                    "validate_search",
                    request,
                    "search",
                    f"Search query must be at least {min_length} characters",
                    value=search,
                )
            if len(trimmed) > max_length:
                reject(
                    "validate_search",
                    request,
                    "search",
                    f"Search query cannot exceed {max_length} characters",
                    value=search,
                )
            get_validated_query(request)["search"] = trimmed
            log_validation_success(validator="validate_search", field="search")

        return get_validated(request)

    return dependency


def validate_sort(
    allowed_fields: Sequence[str],
    default_field: str | None = None,
    default_order: str = "asc",
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that validates sort field and direction.

    Reads ``sortBy`` (alias ``sort``) and ``sortOrder`` (alias ``order``).

    Raises:
        ConfigurationError: at construction time if *allowed_fields* is
            empty or the defaults are not allowed.
    """
    allowed = list(allowed_fields or [])
    if not allowed:
        raise ConfigurationError("validate_sort requires at least one allowed field")
    fallback_field = default_field or allowed[0]
    if fallback_field not in allowed:
        raise ConfigurationError(
            f"default sort field {fallback_field!r} is not in the allowed fields"
        )
    fallback_order = default_order.lower()
    if fallback_order not in SORT_ORDERS:
        raise ConfigurationError(f"default sort order {default_order!r} is invalid")
    allowed_list = ", ".join(allowed)

    def dependency(request: Request) -> dict[str, Any]:
        query = query_values(request)
        sort_by = _first(query, "sortBy", "sort") or fallback_field
        raw_order = _first(query, "sortOrder", "order") or fallback_order
        sort_order = raw_order.lower() if isinstance(raw_order, str) else raw_order

        if sort_by not in allowed:
            reject(
                "validate_sort",
                request,
                "sortBy",
                f"sortBy must be one of: {allowed_list}",
                value=sort_by,
            )
        if sort_order not in SORT_ORDERS:
            reject(
                "validate_sort",
                request,
                "sortOrder",
                SORT_ORDER_MESSAGE,
                value=raw_order,
            )

        section = get_validated_query(request)
        section["sort_by"] = sort_by
        section["sort_order"] = sort_order
        log_validation_success(validator="validate_sort", field="sortBy")
        return get_validated(request)

    return dependency


def validate_filters(
    schema: Mapping[str, FilterField | Mapping[str, Any]],
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that coerces declared filters.

    Usage::

        validate_filters({
            "status": {"type": "string", "allowed": ["active", "inactive"]},
            "is_active": {"type": "boolean"},
            "role_id": {"type": "integer", "min": 1},
        })

    Absent filters are skipped; present ones are coerced by their declared
    type. The schema is normalized here, so a bad entry fails at startup.
    """
    fields = build_filter_schema(schema)

    def dependency(request: Request) -> dict[str, Any]:
        query = query_values(request)
        filters: dict[str, Any] = {}
        for key, field in fields.items():
            value = _single(query.get(key))
            if value is None:
                continue
            try:
                filters[key] = field.coerce(key, value)
            except ValidationFailure as exc:
                reject(
                    "validate_filters",
                    request,
                    "filters",
                    str(exc),
                    value=value,
                    cause=exc,
                )

        get_validated_query(request)["filters"] = filters
        log_validation_success(validator="validate_filters", field="filters")
        return get_validated(request)

    return dependency


def _extract_filters(
    query: Mapping[str, Any], filterable_fields: Sequence[str]
) -> dict[str, Any]:
    operator_values: dict[str, dict[str, Any]] = {}
    for key, value in query.items():
        match = _OPERATOR_KEY_RE.match(key)
        if match is not None and match.group(1) in filterable_fields:
            operator = match.group(2)
            if operator != IN_OPERATOR:
                value = _single(value)
            operator_values.setdefault(match.group(1), {})[operator] = value

    filters: dict[str, Any] = {}
    for name in filterable_fields:
        direct = _single(query.get(name))
        operators = operator_values.get(name)
        if operators:
            entry = dict(operators)
            if direct is not None:
                entry.setdefault("eq", direct)
            filters[name] = entry
        elif direct is not None:
            filters[name] = direct
    return filters


def validate_query(
    metadata: EntityQueryMetadata | Mapping[str, Any],
    *,
    search_max_length: int | None = None,
    settings: QuerySettings | None = None,
) -> Callable[[Request], dict[str, Any]]:
    """Create a metadata-driven dependency for entity list endpoints.

    The search ceiling is *search_max_length* when given, otherwise
    ``settings.search_max_length`` (200 by default).

    - Search (``search``/``q``) is trimmed; a blank term means "not
      searching" and is omitted rather than rejected.
    - Any filterable field is accepted directly (``?role_id=2``) or with an
      operator suffix (``?role_id[gte]=2``). Unknown keys are ignored.
    - ``sortBy``/``sort`` must be sortable and ``sortOrder``/``order`` must
      be ``asc`` or ``desc``; both default to the entity's default sort.
    """
    if not isinstance(metadata, EntityQueryMetadata):
        metadata = EntityQueryMetadata.from_dict(metadata)
    meta = metadata
    max_search = (
        search_max_length
        if search_max_length is not None
        else (settings or QuerySettings()).search_max_length
    )
    sortable_list = ", ".join(meta.sortable_fields)

    def dependency(request: Request) -> dict[str, Any]:
        query = query_values(request)
        section = get_validated_query(request)

        search = _first(query, "search", "q")
        if isinstance(search, str):
            trimmed = search.strip()
            if len(trimmed) > max_search:
                reject(
                    "validate_query",
                    request,
                    "search",
                    f"Search query cannot exceed {max_search} characters",
                    value=search,
                )
            if trimmed:
                section["search"] = trimmed
            else:
                section.pop("search", None)

        filters = _extract_filters(query, meta.filterable_fields)
        if filters:
            section["filters"] = filters
        else:
            section.pop("filters", None)

        sort_by = _first(query, "sortBy", "sort")
        if sort_by is not None and sort_by not in meta.sortable_fields:
            reject(
                "validate_query",
                request,
                "sortBy",
                f"sortBy must be one of: {sortable_list}",
                value=sort_by,
            )
        raw_order = _first(query, "sortOrder", "order")
        sort_order = raw_order.lower() if isinstance(raw_order, str) else raw_order
        if sort_order is not None and sort_order not in SORT_ORDERS:
            reject(
                "validate_query",
                request,
                "sortOrder",
                SORT_ORDER_MESSAGE,
                value=raw_order,
            )

        section["sort_by"] = sort_by or meta.default_sort.field
        section["sort_order"] = sort_order or meta.default_sort.order.value.lower()
        log_validation_success(validator="validate_query", field="query")
        return get_validated(request)

    return dependency
