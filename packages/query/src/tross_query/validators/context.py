"""Validated-data container attached to each request.

Validators write their results into ``request.state.validated``; the
container is created on first use and never replaced, so several
validators in one dependency chain accumulate into the same dict.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.requests import Request


def get_validated(request: Request) -> dict[str, Any]:
    """Return the request's validated-data container, creating it if absent."""
    validated: dict[str, Any] | None = getattr(request.state, "validated", None)
    if validated is None:
        validated = {}
        request.state.validated = validated
    return validated


def get_validated_query(request: Request) -> dict[str, Any]:
    """Return the ``query`` section of the validated-data container."""
    return get_validated(request).setdefault("query", {})


def query_values(request: Request) -> dict[str, Any]:
    """Flatten query parameters: one value as ``str``, repeated keys as lists."""
    params = request.query_params
    out: dict[str, Any] = {}
    for key in params:
        values = params.getlist(key)
        out[key] = values[0] if len(values) == 1 else values
    return out


def request_context(request: Request) -> dict[str, Any]:
    return {"url": str(request.url), "method": request.method}
