"""Common module — shared utilities for the Mawaqit API."""

from mawaqit.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Entity, RoleName
from mawaqit.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    RetrievalError,
    RetrievalTimeoutError,
    ServiceUnavailableError,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from mawaqit.common.pagination import PaginatedResponse, PaginationMeta, resolve_pagination
from mawaqit.common.query import (
    EntityQuery,
    ListQueryParams,
    build_query_spec,
    fetch_page,
    list_query_params,
)
from mawaqit.common.safelist import ColumnSafelist

__all__ = [
    # Constants / Enums
    "Entity",
    "RoleName",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "RetrievalError",
    "RetrievalTimeoutError",
    "ServiceUnavailableError",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Query engine
    "ColumnSafelist",
    "EntityQuery",
    "ListQueryParams",
    "build_query_spec",
    "fetch_page",
    "list_query_params",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "resolve_pagination",
]
