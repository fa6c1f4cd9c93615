"""Exceptions for tross-query."""

from __future__ import annotations

from typing import Any


class TrossQueryError(Exception):
    """Root exception for the query pipeline."""


class ValidationFailure(TrossQueryError):
    """Raised when an input value fails coercion or validation.

    ``str(exc)`` is the human-readable reason and is surfaced to API
    consumers verbatim.
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(reason)

    @property
    def errors(self) -> dict[str, list[str]]:
        return {self.field: [self.reason]}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "Validation Error",
            "field": self.field,
            "message": self.reason,
        }


class ConfigurationError(TrossQueryError):
    """Raised at construction time when the pipeline is misconfigured.

    These are programmer errors (empty allow-lists, unsafe identifiers,
    unknown entities) and are never translated into HTTP responses.
    """
