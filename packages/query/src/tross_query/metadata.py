"""
Entity query metadata — per-entity allow-lists for search, filter and sort.

Metadata is explicit configuration: build a :class:`MetadataRegistry` once
at application startup and hand it (or individual
:class:`EntityQueryMetadata` objects) to the validators and query builder.

JSON rule files may use camelCase keys::

    {
        "users": {
            "searchableFields": ["email", "first_name", "last_name"],
            "filterableFields": ["role_id", "is_active", "status"],
            "sortableFields": ["id", "email", "created_at"],
            "defaultSort": {"field": "id", "order": "ASC"}
        }
    }
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .coercion import to_safe_boolean, to_safe_integer
from .exceptions import ConfigurationError, ValidationFailure

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

# Filter operator whose operand is a list or comma-separated string.
IN_OPERATOR = "in"


def is_safe_identifier(name: Any) -> bool:
    """Return True if *name* may be interpolated into SQL as a column name."""
    return isinstance(name, str) and _IDENTIFIER_RE.match(name) is not None


def ensure_identifier(name: str, what: str = "identifier") -> str:
    """Return *name* or raise ConfigurationError if it is not a safe identifier."""
    if not is_safe_identifier(name):
        raise ConfigurationError(f"{what} {name!r} is not a valid SQL identifier")
    return name


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Any) -> SortOrder | None:
        """Case-insensitive lookup; ``None`` for anything else."""
        if isinstance(value, SortOrder):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class SortSpec(BaseModel):
    """Default ordering for an entity."""

    model_config = ConfigDict(frozen=True)

    field: str = "id"
    order: SortOrder = SortOrder.ASC

    @field_validator("field")
    @classmethod
    def _check_field(cls, value: str) -> str:
        if not is_safe_identifier(value):
            raise ValueError(f"{value!r} is not a valid column identifier")
        return value

    @field_validator("order", mode="before")
    @classmethod
    def _normalize_order(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class EntityQueryMetadata(BaseModel):
    """Which columns of an entity may be searched, filtered and sorted.

    Any field referenced by a request must appear in the matching
    allow-list; the query builder never interpolates anything else.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    searchable_fields: tuple[str, ...] = ()
    filterable_fields: tuple[str, ...] = ()
    sortable_fields: tuple[str, ...] = ()
    default_sort: SortSpec = SortSpec()

    @field_validator("searchable_fields", "filterable_fields", "sortable_fields")
    @classmethod
    def _check_identifiers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for name in value:
            if not is_safe_identifier(name):
                raise ValueError(f"{name!r} is not a valid column identifier")
        return value

    @model_validator(mode="after")
    def _check_default_sort(self) -> EntityQueryMetadata:
        if self.sortable_fields and self.default_sort.field not in self.sortable_fields:
            raise ValueError(
                f"default sort field {self.default_sort.field!r} "
                "is not in sortable_fields"
            )
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntityQueryMetadata:
        """Validate raw configuration, raising ConfigurationError on failure."""
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid entity metadata: {exc}") from exc


# ── Filter field types ───────────────────────────────────────────────


class FilterFieldType(str, Enum):
    """Declared type of a standalone query filter."""

    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"

    def coerce(self, key: str, value: Any, field: FilterField) -> Any:
        return _FILTER_COERCERS[self](key, value, field)


class FilterField(BaseModel):
    """Schema entry for one filter accepted by ``validate_filters``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: FilterFieldType
    min_value: int | None = Field(default=None, alias="min")
    max_value: int | None = Field(default=None, alias="max")
    allowed: tuple[str, ...] | None = None

    def coerce(self, key: str, value: Any) -> Any:
        return self.type.coerce(key, value, self)


def _coerce_integer_filter(key: str, value: Any, field: FilterField) -> int | None:
    return to_safe_integer(
        value,
        key,
        min_value=field.min_value if field.min_value is not None else 1,
        max_value=field.max_value,
    )


def _coerce_boolean_filter(key: str, value: Any, field: FilterField) -> bool:
    return to_safe_boolean(value, key)


def _coerce_string_filter(key: str, value: Any, field: FilterField) -> str:
    if not isinstance(value, str):
        raise ValidationFailure(key, f"{key} must be a string")
    text = value.strip()
    if field.allowed is not None and text not in field.allowed:
        allowed = ", ".join(field.allowed)
        raise ValidationFailure(key, f"{key} must be one of: {allowed}")
    return text


_FILTER_COERCERS: dict[FilterFieldType, Callable[[str, Any, FilterField], Any]] = {
    FilterFieldType.INTEGER: _coerce_integer_filter,
    FilterFieldType.BOOLEAN: _coerce_boolean_filter,
    FilterFieldType.STRING: _coerce_string_filter,
}


def build_filter_schema(
    schema: Mapping[str, FilterField | Mapping[str, Any]],
) -> dict[str, FilterField]:
    """Normalize a filter schema, raising ConfigurationError for bad entries."""
    out: dict[str, FilterField] = {}
    for key, entry in schema.items():
        if isinstance(entry, FilterField):
            out[key] = entry
            continue
        try:
            out[key] = FilterField.model_validate(dict(entry))
        except PydanticValidationError as exc:
            raise ConfigurationError(
                f"Invalid filter schema for {key!r}: {exc}"
            ) from exc
    return out


# ── Registry ─────────────────────────────────────────────────────────


class MetadataRegistry:
    """Holds the query metadata of every entity, built once at startup.

    Usage::

        registry = MetadataRegistry.from_json_file("config/entities.json")
        users = registry.get("users")
        router.get("/users", dependencies=[Depends(validate_query(users))])
    """

    def __init__(
        self, entities: Mapping[str, EntityQueryMetadata] | None = None
    ) -> None:
        self._entities: dict[str, EntityQueryMetadata] = {}
        for name, metadata in (entities or {}).items():
            self.register(name, metadata)

    def register(
        self, entity: str, metadata: EntityQueryMetadata | Mapping[str, Any]
    ) -> EntityQueryMetadata:
        """Register *metadata* for *entity*; duplicates are a configuration error."""
        if entity in self._entities:
            raise ConfigurationError(
                f"Metadata for entity {entity!r} already registered"
            )
        if not isinstance(metadata, EntityQueryMetadata):
            metadata = EntityQueryMetadata.from_dict(metadata)
        self._entities[entity] = metadata
        return metadata

    def get(self, entity: str) -> EntityQueryMetadata:
        try:
            return self._entities[entity]
        except KeyError as err:
            raise ConfigurationError(
                f"No query metadata for entity {entity!r}"
            ) from err

    def __contains__(self, entity: object) -> bool:
        return entity in self._entities

    def __iter__(self) -> Iterator[str]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, EntityQueryMetadata | Mapping[str, Any]]
    ) -> MetadataRegistry:
        registry = cls()
        for name, metadata in raw.items():
            registry.register(name, metadata)
        return registry

    @classmethod
    def from_json_file(cls, path: str | Path) -> MetadataRegistry:
        """Load ``{entity: metadata}`` from a JSON file."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                f"Cannot load entity metadata from {path}: {exc}"
            ) from exc
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                f"Entity metadata file {path} must contain an object"
            )
        return cls.from_mapping(raw)
