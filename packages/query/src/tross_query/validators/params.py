"""Path-parameter validators (FastAPI dependencies).

Each factory returns a dependency that validates URL path parameters
before the route handler runs and stores the coerced values in the
validated-data container::

    @router.get("/users/{id}")
    def get_user(validated: dict = Depends(validate_id_param())):
        return repo.get(validated["id"])
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from fastapi import Request  # noqa: TC002

from ..coercion import to_safe_integer
from ..exceptions import ValidationFailure
from ..validation_logger import log_validation_success
from .context import get_validated
from .errors import reject

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_id_param(
    param_name: str = "id",
    *,
    min_value: int = 1,
    max_value: int | None = None,
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that coerces an integer path parameter.

    On success the value is stored as ``validated[param_name]`` and, for
    older handlers, as ``request.state.validated_id``.
    """

    def dependency(request: Request) -> dict[str, Any]:
        raw = request.path_params.get(param_name)
        try:
            value = to_safe_integer(
                raw, param_name, min_value=min_value, max_value=max_value, silent=True
            )
        except ValidationFailure as exc:
            reject(
                "validate_id_param",
                request,
                param_name,
                str(exc),
                value=raw,
                cause=exc,
            )

        validated = get_validated(request)
        validated[param_name] = value
        request.state.validated_id = value
        log_validation_success(validator="validate_id_param", field=param_name)
        return validated

    return dependency


def validate_id_params(
    param_names: Sequence[str],
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that coerces several integer path parameters.

    Parameters are checked in order and the first failure is reported
    with ``field`` set to ``"params"``.
    """
    names = list(param_names)

    def dependency(request: Request) -> dict[str, Any]:
        values: dict[str, int | None] = {}
        for name in names:
            raw = request.path_params.get(name)
            try:
                values[name] = to_safe_integer(raw, name, silent=True)
            except ValidationFailure as exc:
                reject(
                    "validate_id_params",
                    request,
                    "params",
                    str(exc),
                    value=raw,
                    cause=exc,
                )

        validated = get_validated(request)
        validated.update(values)
        log_validation_success(validator="validate_id_params", field="params")
        return validated

    return dependency


def validate_slug_param(
    param_name: str = "slug",
    *,
    min_length: int = 1,
    max_length: int = 100,
) -> Callable[[Request], dict[str, Any]]:
    """Create a dependency that validates a URL slug (``my-post-42``)."""

    def dependency(request: Request) -> dict[str, Any]:
        raw = request.path_params.get(param_name)
        slug = raw.strip() if isinstance(raw, str) else ""

        if not slug:
            reject(
                "validate_slug_param",
                request,
                param_name,
                f"{param_name} is required",
                value=raw,
            )
        if not min_length <= len(slug) <= max_length:
            reject(
                "validate_slug_param",
                request,
                param_name,
                f"{param_name} must be between {min_length} and {max_length} "
                "characters",
                value=raw,
            )
        if not SLUG_RE.match(slug):
            reject(
                "validate_slug_param",
                request,
                param_name,
                f"{param_name} must contain only lowercase letters, numbers, "
                "and single hyphens between words",
                value=raw,
            )

        validated = get_validated(request)
        validated[param_name] = slug
        log_validation_success(validator="validate_slug_param", field=param_name)
        return validated

    return dependency
