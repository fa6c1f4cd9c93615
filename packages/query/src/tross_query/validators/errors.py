"""HTTP rendering of validation failures.

Validators raise :class:`~tross_query.exceptions.ValidationFailure`; the
handler installed by :func:`install_exception_handlers` turns it into::

    HTTP/1.1 400 Bad Request
    Content-Type: application/json

    {"error": "Validation Error", "field": "id",
     "message": "id must be a valid integer"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NoReturn

from starlette.responses import JSONResponse

from ..exceptions import ValidationFailure
from ..validation_logger import log_validation_failure
from .context import request_context

if TYPE_CHECKING:
    from starlette.applications import Starlette
    from starlette.requests import Request

HTTP_BAD_REQUEST = 400


def validation_error_response(exc: ValidationFailure) -> JSONResponse:
    return JSONResponse(status_code=HTTP_BAD_REQUEST, content=exc.to_dict())


async def validation_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    """Starlette/FastAPI exception handler for :class:`ValidationFailure`."""
    if not isinstance(exc, ValidationFailure):  # pragma: no cover
        raise exc
    return validation_error_response(exc)


def install_exception_handlers(app: Starlette) -> None:
    """Register the 400 envelope handler on a FastAPI or Starlette app."""
    app.add_exception_handler(ValidationFailure, validation_failure_handler)


def reject(
    validator: str,
    request: Request,
    field: str,
    message: str,
    *,
    value: Any = None,
    cause: ValidationFailure | None = None,
) -> NoReturn:
    """Log a request-time failure and raise it with the response *field*."""
    log_validation_failure(
        validator=validator,
        field=field,
        value=value,
        reason=message,
        context=request_context(request),
    )
    if cause is not None:
        raise ValidationFailure(field, message) from cause
    raise ValidationFailure(field, message)
