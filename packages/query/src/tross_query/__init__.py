"""Query pipeline — type coercion, request validation, SQL fragments, pagination."""

from __future__ import annotations

from .builder import (
    BuiltQuery,
    QueryFragment,
    build_filter_clause,
    build_query,
    build_search_clause,
    build_sort_clause,
    combine_params,
    combine_where_clauses,
    next_param_index,
)
from .coercion import (
    Pagination,
    to_safe_boolean,
    to_safe_email,
    to_safe_integer,
    to_safe_pagination,
    to_safe_string,
    to_safe_user_id,
    to_safe_uuid,
)
from .exceptions import ConfigurationError, TrossQueryError, ValidationFailure
from .metadata import (
    EntityQueryMetadata,
    FilterField,
    FilterFieldType,
    MetadataRegistry,
    SortOrder,
    SortSpec,
)
from .pagination import PaginationMetadata, generate_metadata, validate_params
from .settings import QuerySettings
from .statements import ListStatements, build_list_statements
from .validation_logger import (
    ValidationLogger,
    get_validation_logger,
    log_type_coercion,
    log_validation_failure,
    log_validation_success,
    set_validation_logger,
)

__all__ = [
    "BuiltQuery",
    "ConfigurationError",
    "EntityQueryMetadata",
    "FilterField",
    "FilterFieldType",
    "ListStatements",
    "MetadataRegistry",
    "Pagination",
    "PaginationMetadata",
    "QueryFragment",
    "QuerySettings",
    "SortOrder",
    "SortSpec",
    "TrossQueryError",
    "ValidationFailure",
    "ValidationLogger",
    "build_filter_clause",
    "build_list_statements",
    "build_query",
    "build_search_clause",
    "build_sort_clause",
    "combine_params",
    "combine_where_clauses",
    "generate_metadata",
    "get_validation_logger",
    "log_type_coercion",
    "log_validation_failure",
    "log_validation_success",
    "next_param_index",
    "set_validation_logger",
    "to_safe_boolean",
    "to_safe_email",
    "to_safe_integer",
    "to_safe_pagination",
    "to_safe_string",
    "to_safe_user_id",
    "to_safe_uuid",
    "validate_params",
]
