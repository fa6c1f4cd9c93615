"""Request validators — FastAPI dependencies for path and query parameters.

The dependencies raise :class:`~tross_query.exceptions.ValidationFailure`.
An application must call :func:`install_exception_handlers` once at
startup; without it FastAPI answers a failure with a 500 instead of the
400 envelope::

    app = FastAPI()
    install_exception_handlers(app)
"""

from __future__ import annotations

from .context import get_validated, get_validated_query
from .errors import (
    install_exception_handlers,
    validation_error_response,
    validation_failure_handler,
)
from .params import validate_id_param, validate_id_params, validate_slug_param
from .query import (
    validate_filters,
    validate_pagination,
    validate_query,
    validate_search,
    validate_sort,
)

__all__ = [
    "get_validated",
    "get_validated_query",
    "install_exception_handlers",
    "validate_filters",
    "validate_id_param",
    "validate_id_params",
    "validate_pagination",
    "validate_query",
    "validate_search",
    "validate_slug_param",
    "validate_sort",
    "validation_error_response",
    "validation_failure_handler",
]
