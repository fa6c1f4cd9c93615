"""
Type coercion — convert untyped request input into safe typed values.

URL path segments and query-string values always arrive as strings, while
the database expects integers, booleans and UUIDs. Every function here
either returns a value that already satisfies the caller's constraints
(range, length, format) or raises :class:`ValidationFailure` naming the
field and the violated constraint.

Usage::

    user_id = to_safe_integer(request.path_params["id"], "id")
    page = to_safe_pagination(request.query_params, max_limit=100)
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any, NamedTuple, NoReturn, cast

from .exceptions import ValidationFailure
from .validation_logger import log_type_coercion, log_validation_failure

if TYPE_CHECKING:
    from collections.abc import Mapping

_INTEGER_RE = re.compile(r"^([+-]?\d+)(?:\.\d*)?$")
_UUID_V4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_EMAIL_RE = re.compile(r"^[^\s@]+@(?:[^\s@.]+\.)+[A-Za-z]{2,}$")

EMAIL_MAX_LENGTH = 255


class Pagination(NamedTuple):
    """Validated page request."""

    page: int
    limit: int
    offset: int


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _fail(
    validator: str, field: str, value: Any, reason: str, message: str
) -> NoReturn:
    log_validation_failure(validator=validator, field=field, value=value, reason=reason)
    raise ValidationFailure(field, message)


def _parse_integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _INTEGER_RE.match(value.strip())
        if match is None:
            return None
        return int(match.group(1))
    return None


def to_safe_integer(
    value: Any,
    field_name: str = "id",
    *,
    min_value: int = 1,
    max_value: int | None = None,
    allow_null: bool = False,
    silent: bool = False,
) -> int | None:
    """Coerce *value* to an integer within ``[min_value, max_value]``.

    Decimal strings and floats are truncated (``"12.5"`` → ``12``), leading
    zeros and surrounding whitespace are accepted. A list or tuple (a
    repeated query-string key) is coerced from its first element.

    Args:
        value: Raw input.
        field_name: Field name used in error messages and logs.
        min_value: Inclusive lower bound.
        max_value: Inclusive upper bound, ``None`` for unbounded.
        allow_null: Return ``None`` for missing input instead of failing.
        silent: Suppress coercion logging for expected string inputs.

    Raises:
        ValidationFailure: if the value is missing, not an integer, or out
            of range.
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None

    if _is_missing(value):
        if allow_null:
            return None
        _fail(
            "to_safe_integer",
            field_name,
            value,
            f"Field is required but received {value!r}",
            f"{field_name} is required",
        )

    parsed = _parse_integer(value)
    if parsed is None:
        _fail(
            "to_safe_integer",
            field_name,
            value,
            "Cannot convert to integer",
            f"{field_name} must be a valid integer",
        )

    if parsed < min_value:
        _fail(
            "to_safe_integer",
            field_name,
            value,
            f"Value {parsed} is below minimum {min_value}",
            f"{field_name} must be at least {min_value}",
        )
    if max_value is not None and parsed > max_value:
        _fail(
            "to_safe_integer",
            field_name,
            value,
            f"Value {parsed} exceeds maximum {max_value}",
            f"{field_name} must be at most {max_value}",
        )

    if not isinstance(value, int) and not silent:
        log_type_coercion(
            field=field_name,
            original_value=value,
            original_type=_type_name(value),
            coerced_value=parsed,
            coerced_type="int",
            reason="Type conversion for database safety",
        )
    return parsed


def to_safe_user_id(value: Any, field_name: str = "userId") -> int | None:
    """Coerce an authenticated user's id, tolerating non-numeric identifiers.

    Development and test users authenticate with an external string id and
    have no database row, so any string yields ``None``.
    """
    if _is_missing(value):
        return None
    if isinstance(value, str):
        log_type_coercion(
            field=field_name,
            original_value=value,
            original_type="str",
            coerced_value=None,
            coerced_type="null",
            reason="String user id has no database id",
        )
        return None
    return to_safe_integer(value, field_name, min_value=1, allow_null=True)


def to_safe_boolean(
    value: Any, field_name: str = "boolean", default: bool = False
) -> bool:
    """Coerce *value* to a boolean. Never raises.

    ``"true"``/``"false"`` (exact, case-sensitive) and numbers map as
    expected; any other non-empty string is ``True``. Missing input
    returns *default*. A list or tuple is coerced from its first element.
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None

    if _is_missing(value):
        return default
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        if value == "true":
            result = True
        elif value == "false":
            result = False
        else:
            result = True
    elif isinstance(value, (int, float)):
        result = value != 0
    else:
        result = bool(value)

    log_type_coercion(
        field=field_name,
        original_value=value,
        original_type=_type_name(value),
        coerced_value=result,
        coerced_type="bool",
        reason="Conversion to boolean",
    )
    return result


def to_safe_string(
    value: Any,
    field_name: str = "field",
    *,
    allow_null: bool = False,
    min_length: int = 0,
    max_length: int | None = None,
    trim: bool = True,
) -> str | None:
    """Coerce *value* to a string with optional trimming and length bounds.

    Raises:
        ValidationFailure: if the value is missing, empty after trimming,
            or outside the length bounds.
    """
    if _is_missing(value):
        if allow_null:
            return None
        _fail(
            "to_safe_string",
            field_name,
            value,
            f"Field is required but received {value!r}",
            f"{field_name} is required",
        )

    text = value if isinstance(value, str) else str(value)
    if trim:
        text = text.strip()

    if text == "":
        if allow_null:
            return None
        _fail(
            "to_safe_string",
            field_name,
            value,
            "String is empty after trimming",
            f"{field_name} cannot be empty",
        )

    if len(text) < min_length:
        _fail(
            "to_safe_string",
            field_name,
            text,
            f"Length {len(text)} is below minimum {min_length}",
            f"{field_name} must be at least {min_length} characters",
        )
    if max_length is not None and len(text) > max_length:
        _fail(
            "to_safe_string",
            field_name,
            text,
            f"Length {len(text)} exceeds maximum {max_length}",
            f"{field_name} must be at most {max_length} characters",
        )

    if not isinstance(value, str):
        log_type_coercion(
            field=field_name,
            original_value=value,
            original_type=_type_name(value),
            coerced_value=text,
            coerced_type="str",
            reason="Type conversion to string",
        )
    return text


def to_safe_email(
    value: Any, field_name: str = "email", *, allow_null: bool = False
) -> str | None:
    """Validate an email address and normalize it to lowercase."""
    email = to_safe_string(
        value,
        field_name,
        allow_null=allow_null,
        min_length=0 if allow_null else 3,
        max_length=EMAIL_MAX_LENGTH,
    )
    if email is None:
        return None
    if not _EMAIL_RE.match(email):
        _fail(
            "to_safe_email",
            field_name,
            email,
            "Invalid email format",
            f"{field_name} must be a valid email address",
        )
    return email.lower()


def to_safe_uuid(
    value: Any, field_name: str = "uuid", *, allow_null: bool = False
) -> str | None:
    """Validate a version-4 UUID string (case-insensitive)."""
    if _is_missing(value):
        if allow_null:
            return None
        _fail(
            "to_safe_uuid",
            field_name,
            value,
            f"Field is required but received {value!r}",
            f"{field_name} is required",
        )
    if not isinstance(value, str):
        _fail(
            "to_safe_uuid",
            field_name,
            value,
            f"UUID must be a string (received {_type_name(value)})",
            f"{field_name} must be a valid UUID string",
        )
    if not _UUID_V4_RE.match(value):
        _fail(
            "to_safe_uuid",
            field_name,
            value,
            "Invalid UUID v4 format",
            f"{field_name} must be a valid UUID v4",
        )
    return value


def to_safe_pagination(
    query: Mapping[str, Any],
    *,
    default_limit: int = 50,
    max_limit: int = 200,
) -> Pagination:
    """Coerce ``page`` and ``limit`` from *query* and derive ``offset``."""
    page = cast(
        "int", to_safe_integer(query.get("page") or 1, "page", min_value=1, silent=True)
    )
    limit = cast(
        "int",
        to_safe_integer(
            query.get("limit") or default_limit,
            "limit",
            min_value=1,
            max_value=max_limit,
            silent=True,
        ),
    )
    return Pagination(page=page, limit=limit, offset=(page - 1) * limit)
