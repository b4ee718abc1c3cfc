"""Generic list-query engine shared by every ``/list`` endpoint.

A request's raw query-string values become a ``ListQueryParams``; together
with a static ``EntityQuery`` they resolve into a ``QuerySpec``, which is
assembled into one data SELECT and one COUNT and executed under a deadline.

Uses:
  - ``parse_filters / expand_search / parse_sort`` from mawaqit.common.filters
  - ``resolve_pagination / build_meta`` from mawaqit.common.pagination
  - ``RetrievalError / RetrievalTimeoutError / ServiceUnavailableError``
    from mawaqit.common.exceptions
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.exc import (
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import (
    RetrievalError,
    RetrievalTimeoutError,
    ServiceUnavailableError,
)
from mawaqit.common.filters import (
    FilterPredicate,
    SearchClause,
    expand_search,
    parse_filters,
    parse_sort,
)
from mawaqit.common.pagination import (
    PageRequest,
    PaginatedResponse,
    build_meta,
    resolve_pagination,
)
from mawaqit.common.safelist import ColumnSafelist
from mawaqit.config import settings

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# Static per-entity description
# ═════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EntityQuery:
    """Everything the engine needs to know about one listable entity."""

    entity: Entity
    envelope_key: str
    select_from: Any
    projection: tuple[Any, ...]
    filterable: ColumnSafelist
    searchable: ColumnSafelist
    primary_key: tuple[Any, ...]
    default_search: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return self.entity.value.replace("_", " ")


# ═════════════════════════════════════════════════════════════════════
# Raw request parameters
# ═════════════════════════════════════════════════════════════════════


@dataclass
class ListQueryParams:
    """Untrusted list parameters exactly as they arrived."""

    filters: Optional[str] = None
    search: Optional[str] = None
    search_fields: Optional[str] = None
    page: Optional[str] = None
    page_size: Optional[str] = None
    sort: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ListQueryParams:
        """Build from a plain query mapping, honouring the ``q`` / ``per_page`` aliases."""

        def _get(*keys: str) -> Optional[str]:
            for key in keys:
                value = raw.get(key)
                if value is not None:
                    return str(value)
            return None

        return cls(
            filters=_get("filters"),
            search=_get("search", "q"),
            search_fields=_get("searchFields"),
            page=_get("page"),
            page_size=_get("page_size", "per_page"),
            sort=_get("sort"),
        )


def list_query_params(
    filters: Optional[str] = Query(
        None, description='Equality filters, e.g. "topic:fasting,source:Bukhari"',
    ),
    search: Optional[str] = Query(None, description="Case-insensitive substring term"),
    q: Optional[str] = Query(None, include_in_schema=False),
    search_fields: Optional[str] = Query(
        None, alias="searchFields", description="Comma-separated columns to search",
    ),
    page: Optional[str] = Query(None, description="Page number (1-indexed)"),
    page_size: Optional[str] = Query(None, description="Items per page (max 100)"),
    per_page: Optional[str] = Query(None, include_in_schema=False),
    sort: Optional[str] = Query(
        None, description='Sort field; prefix "-" for DESC (e.g. "-month")',
    ),
) -> ListQueryParams:
    """Inject via ``Depends(list_query_params)`` on any list endpoint.

    ``page`` and ``page_size`` are taken as strings so that garbage values
    fall back to defaults instead of failing request validation.
    """
    return ListQueryParams(
        filters=filters,
        search=search if search is not None else q,
        search_fields=search_fields,
        page=page,
        page_size=page_size if page_size is not None else per_page,
        sort=sort,
    )


# ═════════════════════════════════════════════════════════════════════
# Resolved query
# ═════════════════════════════════════════════════════════════════════


@dataclass
class QuerySpec:
    entity: EntityQuery
    filters: list[FilterPredicate]
    search: Optional[SearchClause]
    page: PageRequest
    order_by: list[Any]
    extra_predicates: list[ColumnElement] = field(default_factory=list)

    def predicates(self) -> list[ColumnElement]:
        clauses = [f.to_clause() for f in self.filters]
        if self.search is not None:
            clauses.append(self.search.to_clause())
        clauses.extend(self.extra_predicates)
        return clauses


def build_query_spec(
    entity: EntityQuery,
    params: ListQueryParams,
    *,
    extra_predicates: Sequence[ColumnElement] = (),
    order_by: Optional[Sequence[Any]] = None,
) -> QuerySpec:
    """
    Resolve *params* against *entity*'s safelists.

    *extra_predicates* and *order_by* are trusted expressions built by the
    caller; a caller-supplied *order_by* replaces the ``sort`` parameter.
    The primary key always closes the ORDER BY so paging is stable.
    """
    if order_by:
        order = list(order_by)
    else:
        order = parse_sort(params.sort, entity.filterable)
    order.extend(col.asc() for col in entity.primary_key)

    return QuerySpec(
        entity=entity,
        filters=parse_filters(params.filters, entity.filterable),
        search=expand_search(
            params.search,
            params.search_fields,
            entity.searchable,
            entity.default_search,
        ),
        page=resolve_pagination(params.page, params.page_size),
        order_by=order,
        extra_predicates=list(extra_predicates),
    )


def assemble(spec: QuerySpec) -> tuple[Select, Select]:
    """Return ``(data_stmt, count_stmt)`` sharing the same WHERE clause."""
    where = spec.predicates()

    data_stmt = select(*spec.entity.projection).select_from(spec.entity.select_from)
    count_stmt = select(func.count()).select_from(spec.entity.select_from)
    if where:
        data_stmt = data_stmt.where(*where)
        count_stmt = count_stmt.where(*where)

    data_stmt = (
        data_stmt.order_by(*spec.order_by)
        .limit(spec.page.page_size)
        .offset(spec.page.offset)
    )
    return data_stmt, count_stmt


# ═════════════════════════════════════════════════════════════════════
# Execution
# ═════════════════════════════════════════════════════════════════════


async def _execute_before(db: AsyncSession, stmt: Select, deadline: float) -> Any:
    remaining = deadline - asyncio.get_running_loop().time()
    if remaining <= 0:
        raise asyncio.TimeoutError
    return await asyncio.wait_for(db.execute(stmt), timeout=remaining)


async def fetch_page(
    db: AsyncSession,
    spec: QuerySpec,
    *,
    timeout: Optional[float] = None,
    schema: Optional[type[BaseModel]] = None,
) -> PaginatedResponse:
    """
    Run the COUNT then the data SELECT for *spec* and return one page.

    Both statements share a single deadline of *timeout* seconds
    (``QUERY_TIMEOUT_SECONDS`` by default). Rows come back as dicts, or as
    *schema* instances when a schema is given.
    """
    if timeout is None:
        timeout = settings.QUERY_TIMEOUT_SECONDS
    label = spec.entity.label
    data_stmt, count_stmt = assemble(spec)
    deadline = asyncio.get_running_loop().time() + timeout

    try:
        total: int = (await _execute_before(db, count_stmt, deadline)).scalar_one()
        result = await _execute_before(db, data_stmt, deadline)
        rows = [dict(row) for row in result.mappings().all()]
    except asyncio.TimeoutError:
        logger.error("Listing %s exceeded %.1fs deadline", label, timeout)
        raise RetrievalTimeoutError(label, timeout) from None
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        logger.error("Database unavailable while listing %s: %s", label, exc)
        raise ServiceUnavailableError() from exc
    except SQLAlchemyError:
        logger.exception("Listing %s failed", label)
        raise RetrievalError(label) from None

    data: list[Any] = rows
    if schema is not None:
        data = [schema.model_validate(row) for row in rows]

    return PaginatedResponse(data=data, meta=build_meta(total, spec.page))


def envelope(entity: EntityQuery, page: PaginatedResponse) -> dict[str, Any]:
    """Render ``{"<entity plural>": [...], "meta": {...}}``."""
    return {
        entity.envelope_key: [
            row.model_dump(mode="json") if isinstance(row, BaseModel) else row
            for row in page.data
        ],
        "meta": page.meta.model_dump(),
    }
