"""Page resolution and the paginated response envelope."""


import math
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

from mawaqit.common.constants import DEFAULT_PAGE_SIZE, INT64_MAX, MAX_PAGE_SIZE

T = TypeVar("T")

RawInt = Union[str, int, None]


# ── Resolver ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PageRequest:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _parse_int(raw: RawInt) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(raw.strip())
    except ValueError:
        return None


def resolve_pagination(
    page: RawInt = None,
    page_size: RawInt = None,
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PageRequest:
    """
    Turn raw ``page`` / ``page_size`` values into a bounded ``PageRequest``.

    * ``page`` missing, non-numeric, or < 1 → 1.
    * ``page_size`` missing, non-numeric, or ≤ 0 → *default_page_size*.
    * ``page_size`` above *max_page_size* → *max_page_size*.
    * ``page`` whose offset would overflow a signed 64-bit OFFSET → the
      last page that still fits; it is past any real table, so it is empty.
    """
    resolved_page = _parse_int(page)
    if resolved_page is None or resolved_page < 1:
        resolved_page = 1

    resolved_size = _parse_int(page_size)
    if resolved_size is None or resolved_size <= 0:
        resolved_size = default_page_size
    resolved_size = min(resolved_size, max_page_size)

    resolved_page = min(resolved_page, INT64_MAX // resolved_size + 1)

    return PageRequest(page=resolved_page, page_size=resolved_size)


# ── Pydantic response models ───────────────────────────────────────

class PaginationMeta(BaseModel):
    """Metadata block embedded in every paginated response."""

    page: int
    page_size: int
    total_records: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginatedResponse(BaseModel, Generic[T]):
    """A page of rows plus its metadata."""

    data: Sequence[T]
    meta: PaginationMeta


def build_meta(total_records: int, page: PageRequest) -> PaginationMeta:
    total_pages = math.ceil(total_records / page.page_size) if total_records else 0
    return PaginationMeta(
        page=page.page,
        page_size=page.page_size,
        total_records=total_records,
        total_pages=total_pages,
        has_next=page.page < total_pages,
        has_prev=page.page > 1,
    )
