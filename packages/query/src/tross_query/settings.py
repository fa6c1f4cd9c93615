"""QuerySettings — process-level configuration read once at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "TROSS_"


@dataclass(frozen=True)
class QuerySettings:
    """Configuration for the query pipeline.

    Attributes:
        environment: Deployment environment (``development``, ``test``,
            ``production``). Type-coercion logging is only emitted in
            ``development``.
        default_page_limit: Page size used when a request omits ``limit``.
        max_page_limit: Ceiling applied to ``limit``.
        search_max_length: Longest accepted free-text search term.
    """

    environment: str = "production"
    default_page_limit: int = 50
    max_page_limit: int = 200
    search_max_length: int = 200

    def __post_init__(self) -> None:
        if self.default_page_limit < 1:
            raise ConfigurationError("default_page_limit must be at least 1")
        if self.max_page_limit < self.default_page_limit:
            raise ConfigurationError(
                "max_page_limit must be greater than or equal to default_page_limit"
            )
        if self.search_max_length < 1:
            raise ConfigurationError("search_max_length must be at least 1")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> QuerySettings:
        """Build settings from ``TROSS_*`` environment variables."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            environment=env.get(f"{ENV_PREFIX}ENV", defaults.environment)
            .strip()
            .lower(),
            default_page_limit=_int_setting(
                env, "DEFAULT_PAGE_LIMIT", defaults.default_page_limit
            ),
            max_page_limit=_int_setting(env, "MAX_PAGE_LIMIT", defaults.max_page_limit),
            search_max_length=_int_setting(
                env, "SEARCH_MAX_LENGTH", defaults.search_max_length
            ),
        )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be an integer, got {raw!r}"
        ) from err
