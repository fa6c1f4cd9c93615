"""ValidationLogger — JSON log entries for validation outcomes and coercions."""

from __future__ import annotations

import json
import logging
from typing import Any

from .settings import QuerySettings

_log = logging.getLogger(__name__)


class ValidationLogger:
    """Emits validation failures, successes and type coercions.

    Failures are logged at WARNING, successes at DEBUG. Coercions are
    logged at INFO and only in the ``development`` environment.

    Logging never raises into the caller and never alters control flow.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        environment: str | None = None,
    ) -> None:
        self._log = logger or _log
        if environment is None:
            environment = QuerySettings.from_env().environment
        self.environment = environment

    @property
    def coercion_logging_enabled(self) -> bool:
        return self.environment == "development"

    def log_validation_failure(
        self,
        *,
        validator: str,
        field: str,
        value: Any,
        reason: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        entry: dict[str, Any] = {
            "event": "validation_failure",
            "validator": validator,
            "field": field,
            "value": value if isinstance(value, str) else _stringify(value),
            "reason": reason,
        }
        if context:
            entry["context"] = context
        self._emit(logging.WARNING, entry)

    def log_type_coercion(
        self,
        *,
        field: str,
        original_value: Any,
        original_type: str,
        coerced_value: Any,
        coerced_type: str,
        reason: str,
    ) -> None:
        if not self.coercion_logging_enabled:
            return
        self._emit(
            logging.INFO,
            {
                "event": "type_coercion",
                "field": field,
                "original_value": original_value,
                "original_type": original_type,
                "coerced_value": coerced_value,
                "coerced_type": coerced_type,
                "reason": reason,
            },
        )

    def log_validation_success(self, *, validator: str, field: str) -> None:
        self._emit(
            logging.DEBUG,
            {"event": "validation_success", "validator": validator, "field": field},
        )

    def _emit(self, level: int, entry: dict[str, Any]) -> None:
        try:
            self._log.log(level, json.dumps(entry, default=str))
        except Exception:  # noqa: BLE001
            _log.debug("Failed to emit validation log entry", exc_info=True)


def _stringify(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        # circular references
        return repr(value)


_default_logger: ValidationLogger | None = None


def get_validation_logger() -> ValidationLogger:
    """Return the process default logger, creating it on first use."""
    global _default_logger
    if _default_logger is None:
        _default_logger = ValidationLogger()
    return _default_logger


def set_validation_logger(logger: ValidationLogger | None) -> ValidationLogger | None:
    """Replace the process default logger and return the previous one.

    Passing ``None`` resets to a fresh instance on next use.
    """
    global _default_logger
    previous = _default_logger
    _default_logger = logger
    return previous


def log_validation_failure(
    *,
    validator: str,
    field: str,
    value: Any,
    reason: str,
    context: dict[str, Any] | None = None,
) -> None:
    get_validation_logger().log_validation_failure(
        validator=validator, field=field, value=value, reason=reason, context=context
    )


def log_type_coercion(
    *,
    field: str,
    original_value: Any,
    original_type: str,
    coerced_value: Any,
    coerced_type: str,
    reason: str,
) -> None:
    get_validation_logger().log_type_coercion(
        field=field,
        original_value=original_value,
        original_type=original_type,
        coerced_value=coerced_value,
        coerced_type=coerced_type,
        reason=reason,
    )


def log_validation_success(*, validator: str, field: str) -> None:
    get_validation_logger().log_validation_success(validator=validator, field=field)
