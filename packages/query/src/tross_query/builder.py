"""
Query builder — parameterized SQL fragments from validated query intents.

Pure functions: nothing here executes a query or owns a connection.
Placeholders are PostgreSQL-style positional parameters (``$1``, ``$2``…).

Fragments compose by chaining ``param_offset``::

    search = build_search_clause(term, meta.searchable_fields)
    filters = build_filter_clause(
        filters, meta.filterable_fields, search.param_offset if search else 0
    )
    where = combine_where_clauses([search and search.clause, filters.clause])
    params = combine_params(search.params if search else [], filters.params)
    order_by = build_sort_clause(
        sort_by, sort_order, meta.sortable_fields, meta.default_sort
    )

Column names are never bound as parameters (SQL identifiers cannot be), so
every interpolated name must come from a caller-supplied allow-list.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .metadata import IN_OPERATOR, SortOrder, SortSpec, ensure_identifier

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

    from .metadata import EntityQueryMetadata

FILTER_OPERATORS: dict[str, str] = {
    "eq": "=",
    "ne": "<>",
    "not": "<>",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}


@dataclass(frozen=True)
class QueryFragment:
    """A partial WHERE expression with its bound values.

    ``param_offset`` is the highest placeholder number used so far, so the
    next fragment starts numbering at ``param_offset + 1``.
    """

    clause: str | None
    params: list[Any] = field(default_factory=list)
    param_offset: int = 0


@dataclass(frozen=True)
class BuiltQuery:
    """Combined WHERE / ORDER BY components for a list query."""

    where_clause: str | None
    params: list[Any]
    order_by_clause: str
    param_offset: int


def next_param_index(fragment: QueryFragment | BuiltQuery | None) -> int:
    """Return the placeholder number an ad hoc predicate should use next."""
    return 1 if fragment is None else fragment.param_offset + 1


def _column(name: str, table_prefix: str | None) -> str:
    if table_prefix:
        return f"{ensure_identifier(table_prefix, 'table prefix')}.{name}"
    return name


def build_search_clause(
    search_term: str | None,
    searchable_fields: Sequence[str],
    start_param_index: int = 0,
    *,
    table_prefix: str | None = None,
) -> QueryFragment | None:
    """Build a case-insensitive ``ILIKE`` match across *searchable_fields*.

    All fields share one bound value (``%term%``), so the fragment consumes
    exactly one parameter position.

    Returns:
        ``None`` when there is nothing to search (no term, blank term or no
        searchable fields); callers omit the clause in that case.
    """
    if not search_term or not searchable_fields:
        return None
    term = search_term.strip()
    if not term:
        return None

    index = start_param_index + 1
    conditions = [
        f"{_column(name, table_prefix)} ILIKE ${index}" for name in searchable_fields
    ]
    return QueryFragment(
        clause=f"({' OR '.join(conditions)})",
        params=[f"%{term}%"],
        param_offset=index,
    )


def build_filter_clause(
    filters: Mapping[str, Any] | None,
    filterable_fields: Collection[str],
    start_param_index: int = 0,
    *,
    table_prefix: str | None = None,
) -> QueryFragment:
    """Build AND-joined filter predicates.

    Plain values become ``field = $N`` and plain lists ``field IN (...)``.
    Operator objects such as ``{"gte": "2"}`` map through
    :data:`FILTER_OPERATORS`; ``in`` takes a list or comma-separated string
    and binds one placeholder per element. Fields outside
    *filterable_fields*, unknown operators and list operands of scalar
    operators are dropped.
    """
    conditions: list[str] = []
    params: list[Any] = []
    offset = start_param_index

    for name, value in (filters or {}).items():
        if name not in filterable_fields:
            continue
        column = _column(name, table_prefix)

        if isinstance(value, (list, tuple)):
            value = {IN_OPERATOR: value}
        elif not isinstance(value, Mapping):
            offset += 1
            conditions.append(f"{column} = ${offset}")
            params.append(value)
            continue

        for operator, operand in value.items():
            if operator == IN_OPERATOR:
                values = _in_values(operand)
                if not values:
                    continue
                placeholders = ", ".join(
                    f"${offset + i}" for i in range(1, len(values) + 1)
                )
                offset += len(values)
                conditions.append(f"{column} IN ({placeholders})")
                params.extend(values)
                continue

            sql_operator = FILTER_OPERATORS.get(operator)
            if sql_operator is None or isinstance(operand, (list, tuple)):
                continue
            offset += 1
            conditions.append(f"{column} {sql_operator} ${offset}")
            params.append(operand)

    if not conditions:
        return QueryFragment(clause=None, params=[], param_offset=start_param_index)
    return QueryFragment(
        clause=" AND ".join(conditions), params=params, param_offset=offset
    )


def _in_values(operand: Any) -> list[Any]:
    items = operand if isinstance(operand, (list, tuple)) else [operand]
    values: list[Any] = []
    for item in items:
        if isinstance(item, str):
            values.extend(v.strip() for v in item.split(",") if v.strip())
        else:
            values.append(item)
    return values


def _default_sort_parts(
    default_sort: SortSpec | Mapping[str, Any] | None,
) -> tuple[str | None, SortOrder]:
    if default_sort is None:
        return None, SortOrder.ASC
    if isinstance(default_sort, SortSpec):
        return default_sort.field, default_sort.order
    order = SortOrder.parse(default_sort.get("order")) or SortOrder.ASC
    return default_sort.get("field"), order


def build_sort_clause(
    sort_by: str | None,
    sort_order: str | None,
    sortable_fields: Sequence[str],
    default_sort: SortSpec | Mapping[str, Any] | None = None,
    *,
    table_prefix: str | None = None,
) -> str:
    """Return an ORDER BY body such as ``"created_at DESC"``.

    An unknown *sort_by* falls back to the default field *and* the default
    order. An unknown *sort_order* on a valid field falls back to the
    default order.
    """
    default_field, default_order = _default_sort_parts(default_sort)
    is_valid_field = sort_by is not None and sort_by in sortable_fields

    if is_valid_field:
        column = sort_by
    else:
        column = default_field or (sortable_fields[0] if sortable_fields else "id")

    if not is_valid_field and default_field:
        order = default_order
    else:
        order = SortOrder.parse(sort_order) or default_order

    ensure_identifier(column, "sort field")
    return f"{_column(column, table_prefix)} {order.value}"


def combine_where_clauses(clauses: Iterable[str | None]) -> str | None:
    """AND-join the non-empty clauses, or ``None`` if there are none."""
    valid = [c for c in clauses if c and c.strip()]
    return " AND ".join(valid) if valid else None


def combine_params(*param_lists: Iterable[Any]) -> list[Any]:
    """Concatenate parameter lists in clause order.

    ``None`` values are kept; dropping one would shift every later
    placeholder.
    """
    return [p for params in param_lists for p in params]


def build_query(
    options: Mapping[str, Any],
    metadata: EntityQueryMetadata,
    *,
    table_prefix: str | None = None,
) -> BuiltQuery:
    """Build WHERE and ORDER BY components from validated query options.

    *options* is the ``query`` section of the validated-data container:
    ``search``, ``filters``, ``sort_by`` and ``sort_order``, all optional.
    """
    search = build_search_clause(
        options.get("search"), metadata.searchable_fields, table_prefix=table_prefix
    )
    filters = build_filter_clause(
        options.get("filters"),
        metadata.filterable_fields,
        search.param_offset if search else 0,
        table_prefix=table_prefix,
    )
    order_by = build_sort_clause(
        options.get("sort_by"),
        options.get("sort_order"),
        metadata.sortable_fields,
        metadata.default_sort,
        table_prefix=table_prefix,
    )
    return BuiltQuery(
        where_clause=combine_where_clauses([search and search.clause, filters.clause]),
        params=combine_params(search.params if search else [], filters.params),
        order_by_clause=order_by,
        param_offset=filters.param_offset,
    )
