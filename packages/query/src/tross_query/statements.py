"""
List statements — full SELECT and COUNT queries for a paginated list.

Assembles the fragments from :mod:`tross_query.builder` into the two
statements a list endpoint runs, and converts them to SQLAlchemy
:func:`~sqlalchemy.text` constructs for execution::

    built = build_query(validated["query"], users_meta, table_prefix="u")
    stmts = build_list_statements(
        "users u", built, validated["pagination"], conditions={"u.is_active": True}
    )
    rows = (await session.execute(stmts.select_text())).mappings().all()
    total = (await session.execute(stmts.count_text())).scalar_one()
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import TextClause, text

from .builder import combine_where_clauses, next_param_index
from .exceptions import ConfigurationError
from .metadata import ensure_identifier

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .builder import BuiltQuery
    from .coercion import Pagination

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")
_TABLE_RE = re.compile(
    r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)"
    r"(?:\s+(?:AS\s+)?(?P<alias>[A-Za-z_][A-Za-z0-9_]*))?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ListStatements:
    """SELECT and COUNT statements sharing the same WHERE clause."""

    select_sql: str
    select_params: list[Any]
    count_sql: str
    count_params: list[Any]

    def select_text(self) -> TextClause:
        return to_text(self.select_sql, self.select_params)

    def count_text(self) -> TextClause:
        return to_text(self.count_sql, self.count_params)


def to_text(sql: str, params: Sequence[Any]) -> TextClause:
    """Convert ``$N`` placeholders into named SQLAlchemy bind parameters."""
    used = {int(n) for n in _PLACEHOLDER_RE.findall(sql)}
    if used and max(used) > len(params):
        raise ConfigurationError(
            f"Statement references ${max(used)} but only {len(params)} "
            "parameters were supplied"
        )
    stmt = text(_PLACEHOLDER_RE.sub(lambda m: f":p{m.group(1)}", sql))
    values = {f"p{n}": params[n - 1] for n in sorted(used)}
    return stmt.bindparams(**values) if values else stmt


def _table_expression(table: str) -> str:
    match = _TABLE_RE.match(table.strip())
    if match is None:
        raise ConfigurationError(f"table {table!r} is not a valid table expression")
    alias = match.group("alias")
    return f"{match.group('name')} {alias}" if alias else match.group("name")


def _select_column(column: str) -> str:
    if column == "*":
        return column
    if column.endswith(".*"):
        ensure_identifier(column[:-2], "table alias")
        return column
    return ensure_identifier(column, "column")


def build_list_statements(
    table: str,
    query: BuiltQuery,
    pagination: Pagination,
    *,
    columns: Sequence[str] = ("*",),
    conditions: Mapping[str, Any] | None = None,
) -> ListStatements:
    """Build the paginated SELECT and its COUNT for *table*.

    Args:
        table: Table name, optionally with an alias (``"users u"``).
        query: Output of :func:`~tross_query.builder.build_query`.
        pagination: Validated page request; supplies LIMIT and OFFSET.
        columns: Selected columns; ``"*"`` or identifiers.
        conditions: Extra equality predicates appended after the built
            query's parameters, e.g. ``{"u.is_active": True}``.
    """
    from_clause = _table_expression(table)
    select_list = ", ".join(_select_column(c) for c in columns)

    params = list(query.params)
    index = next_param_index(query)
    extra: list[str] = []
    for column, value in (conditions or {}).items():
        extra.append(f"{ensure_identifier(column, 'column')} = ${index}")
        params.append(value)
        index += 1

    where = combine_where_clauses([query.where_clause, *extra])
    where_sql = f" WHERE {where}" if where else ""

    count_sql = f"SELECT COUNT(*) FROM {from_clause}{where_sql}"
    select_sql = (
        f"SELECT {select_list} FROM {from_clause}{where_sql}"
        f" ORDER BY {query.order_by_clause}"
        f" LIMIT ${index} OFFSET ${index + 1}"
    )
    return ListStatements(
        select_sql=select_sql,
        select_params=[*params, pagination.limit, pagination.offset],
        count_sql=count_sql,
        count_params=params,
    )
