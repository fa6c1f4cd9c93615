"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import pytest
from starlette.requests import Request

from tross_query import EntityQueryMetadata, ValidationLogger, set_validation_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def validation_logger() -> Iterator[ValidationLogger]:
    """Install a test-environment logger so tests never read TROSS_ENV."""
    logger = ValidationLogger(environment="test")
    previous = set_validation_logger(logger)
    yield logger
    set_validation_logger(previous)


@pytest.fixture
def dev_validation_logger() -> Iterator[ValidationLogger]:
    """Install a development-environment logger (coercions are logged)."""
    logger = ValidationLogger(environment="development")
    previous = set_validation_logger(logger)
    yield logger
    set_validation_logger(previous)


@pytest.fixture
def users_metadata() -> EntityQueryMetadata:
    return EntityQueryMetadata.from_dict(
        {
            "searchableFields": ["first_name", "last_name", "email"],
            "filterableFields": ["role_id", "is_active", "status"],
            "sortableFields": ["id", "email", "created_at"],
            "defaultSort": {"field": "created_at", "order": "DESC"},
        }
    )


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a starlette Request from path params and query pairs."""

    def _make(
        path: str = "/",
        *,
        path_params: dict[str, Any] | None = None,
        query: dict[str, Any] | list[tuple[str, str]] | None = None,
        method: str = "GET",
    ) -> Request:
        query_string = urlencode(query or {}, doseq=True).encode("latin-1")
        scope = {
            "type": "http",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "root_path": "",
            "path": path,
            "query_string": query_string,
            "headers": [],
            "path_params": path_params or {},
        }
        return Request(scope)

    return _make


@pytest.fixture
def caplog_debug(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG, logger="tross_query")
    return caplog
