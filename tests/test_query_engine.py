"""List-query engine tests — assembly, execution, pagination and failures.

Runs against the in-memory SQLite database from conftest.py.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.exceptions import (
    RetrievalError,
    RetrievalTimeoutError,
    ServiceUnavailableError,
)
from mawaqit.common.query import (
    ListQueryParams,
    assemble,
    build_query_spec,
    fetch_page,
)
from mawaqit.database import get_db
from mawaqit.hadiths.models import Hadith
from mawaqit.hadiths.schemas import HadithResponse
from mawaqit.hadiths.service import HADITH_QUERY
from tests.conftest import _make_hadith


# ── Helpers ─────────────────────────────────────────────────────────


async def _seed_hadiths(db: AsyncSession, rows: list[dict]) -> list[Hadith]:
    hadiths = [Hadith(**_make_hadith(**row)) for row in rows]
    db.add_all(hadiths)
    await db.flush()
    return hadiths


async def _list(db: AsyncSession, **raw) -> tuple[list[dict], object]:
    spec = build_query_spec(HADITH_QUERY, ListQueryParams(**raw))
    page = await fetch_page(db, spec)
    return page.data, page.meta


class _FailingSession:
    """Stands in for an AsyncSession whose statements always fail."""

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def execute(self, stmt):
        raise self.exc


# ═════════════════════════════════════════════════════════════════════
# 1. ASSEMBLY
# ═════════════════════════════════════════════════════════════════════


class TestAssemble:
    """Tests for the generated SELECT / COUNT pair."""

    def test_count_shares_where_clause_without_limit(self):
        spec = build_query_spec(
            HADITH_QUERY,
            ListQueryParams(filters="topic:fasting", page="2", page_size="5"),
        )
        data_stmt, count_stmt = assemble(spec)
        data_sql = str(data_stmt)
        count_sql = str(count_stmt)

        assert "hadiths.topic = :topic_1" in data_sql
        assert "hadiths.topic = :topic_1" in count_sql
        assert "LIMIT" in data_sql and "OFFSET" in data_sql
        assert "LIMIT" not in count_sql
        assert "ORDER BY" not in count_sql

    def test_primary_key_always_closes_order(self):
        spec = build_query_spec(HADITH_QUERY, ListQueryParams(sort="-source"))
        assert [str(o) for o in spec.order_by] == [
            "hadiths.source DESC",
            "hadiths.id ASC",
        ]

    def test_caller_order_replaces_sort_param(self):
        spec = build_query_spec(
            HADITH_QUERY,
            ListQueryParams(sort="-source"),
            order_by=[Hadith.topic.asc()],
        )
        assert [str(o) for o in spec.order_by] == ["hadiths.topic ASC", "hadiths.id ASC"]

    def test_password_like_fields_never_reach_sql(self):
        spec = build_query_spec(
            HADITH_QUERY,
            ListQueryParams(filters="password:x", search_fields="password", sort="password"),
        )
        data_stmt, _ = assemble(spec)
        assert "password" not in str(data_stmt)


# ═════════════════════════════════════════════════════════════════════
# 2. EXECUTION
# ═════════════════════════════════════════════════════════════════════


class TestFetchPage:
    """Tests for filters, search and paging against real rows."""

    async def test_default_order_is_primary_key(self, db: AsyncSession):
        await _seed_hadiths(db, [{"topic": "c"}, {"topic": "a"}, {"topic": "b"}])
        rows, meta = await _list(db)
        assert [r["topic"] for r in rows] == ["c", "a", "b"]
        assert meta.total_records == 3

    async def test_filter_by_topic(self, db: AsyncSession):
        await _seed_hadiths(db, [
            {"topic": "fasting"},
            {"topic": "prayer"},
            {"topic": "fasting", "source": "Muslim"},
        ])
        rows, meta = await _list(db, filters="topic:fasting")
        assert meta.total_records == 2
        assert {r["topic"] for r in rows} == {"fasting"}

    async def test_filter_and_search_combine_with_and(self, db: AsyncSession):
        await _seed_hadiths(db, [
            {"text": "Fast in Ramadan", "topic": "fasting"},
            {"text": "Fast on Mondays", "topic": "sunnah"},
            {"text": "Pray at night", "topic": "fasting"},
        ])
        rows, _ = await _list(db, filters="topic:fasting", search="fast", search_fields="text")
        assert [r["text"] for r in rows] == ["Fast in Ramadan"]

    async def test_search_is_case_insensitive(self, db: AsyncSession):
        await _seed_hadiths(db, [{"text": "Patience is light"}, {"text": "Charity"}])
        rows, _ = await _list(db, search="PATIENCE")
        assert [r["text"] for r in rows] == ["Patience is light"]

    async def test_percent_in_search_matches_literally(self, db: AsyncSession):
        await _seed_hadiths(db, [
            {"text": "Give 50% of it"},
            {"text": "Give 500 dinars"},
            {"text": "Fifty prayers"},
        ])
        rows, _ = await _list(db, search="50%", search_fields="text")
        assert [r["text"] for r in rows] == ["Give 50% of it"]

    async def test_underscore_in_search_matches_literally(self, db: AsyncSession):
        await _seed_hadiths(db, [{"text": "a_b"}, {"text": "axb"}])
        rows, _ = await _list(db, search="a_b")
        assert [r["text"] for r in rows] == ["a_b"]

    async def test_page_past_the_end_is_empty(self, db: AsyncSession):
        await _seed_hadiths(db, [{"text": f"hadith {i}"} for i in range(25)])
        rows, meta = await _list(db, page="4", page_size="10")
        assert rows == []
        assert meta.total_records == 25
        assert meta.total_pages == 3
        assert meta.page == 4

    async def test_pages_do_not_overlap(self, db: AsyncSession):
        await _seed_hadiths(db, [{"source": "Bukhari"} for _ in range(7)])
        first, _ = await _list(db, sort="source", page="1", page_size="4")
        second, _ = await _list(db, sort="source", page="2", page_size="4")
        ids = [r["id"] for r in first + second]
        assert ids == sorted(ids)
        assert len(set(ids)) == 7

    async def test_unknown_sort_is_ignored(self, db: AsyncSession):
        await _seed_hadiths(db, [{"source": "b"}, {"source": "a"}])
        rows, _ = await _list(db, sort="-bogus")
        assert [r["source"] for r in rows] == ["b", "a"]

    async def test_descending_sort(self, db: AsyncSession):
        await _seed_hadiths(db, [{"source": "a"}, {"source": "c"}, {"source": "b"}])
        rows, _ = await _list(db, sort="-source")
        assert [r["source"] for r in rows] == ["c", "b", "a"]

    async def test_uncoercible_filter_yields_empty_page(self, db: AsyncSession):
        await _seed_hadiths(db, [{}])
        rows, meta = await _list(db, filters="id:abc")
        assert rows == []
        assert meta.total_records == 0

    async def test_page_beyond_64_bit_offset_is_empty(self, db: AsyncSession):
        await _seed_hadiths(db, [{}])
        rows, meta = await _list(db, page="100000000000000000000")
        assert rows == []
        assert meta.total_records == 1
        assert meta.has_next is False

    async def test_integer_filter_beyond_column_range_is_empty(self, db: AsyncSession):
        await _seed_hadiths(db, [{}])
        rows, meta = await _list(db, filters="id:100000000000000000000")
        assert rows == []
        assert meta.total_records == 0

    @pytest.mark.parametrize("params", [
        {"page": "100000000000000000000"},
        {"filters": "id:100000000000000000000"},
    ])
    async def test_oversized_integers_over_http(self, client, db: AsyncSession, params):
        await _seed_hadiths(db, [{}])
        await db.commit()

        resp = await client.get("/api/v1/hadiths/list", params=params)
        assert resp.status_code == 200
        assert resp.json()["hadiths"] == []

    async def test_extra_predicates_are_applied(self, db: AsyncSession):
        await _seed_hadiths(db, [{"topic": "a"}, {"topic": "b"}])
        spec = build_query_spec(
            HADITH_QUERY, ListQueryParams(), extra_predicates=[Hadith.topic == "b"],
        )
        page = await fetch_page(db, spec)
        assert [r["topic"] for r in page.data] == ["b"]

    async def test_schema_rows(self, db: AsyncSession):
        await _seed_hadiths(db, [{}])
        spec = build_query_spec(HADITH_QUERY, ListQueryParams())
        page = await fetch_page(db, spec, schema=HadithResponse)
        assert isinstance(page.data[0], HadithResponse)


# ═════════════════════════════════════════════════════════════════════
# 3. FAILURES
# ═════════════════════════════════════════════════════════════════════


class TestFailures:
    """Tests for deadline and driver-error mapping."""

    async def test_expired_deadline(self, db: AsyncSession):
        spec = build_query_spec(HADITH_QUERY, ListQueryParams())
        with pytest.raises(RetrievalTimeoutError) as exc_info:
            await fetch_page(db, spec, timeout=0)
        assert exc_info.value.status_code == 504

    async def test_connection_failure_is_retryable(self):
        exc = OperationalError("SELECT hadiths.id FROM hadiths", {}, Exception("refused"))
        spec = build_query_spec(HADITH_QUERY, ListQueryParams())
        with pytest.raises(ServiceUnavailableError) as exc_info:
            await fetch_page(_FailingSession(exc), spec)
        assert exc_info.value.status_code == 503
        assert exc_info.value.headers["Retry-After"]

    async def test_statement_failure(self):
        exc = ProgrammingError("SELECT hadiths.id FROM hadiths", {}, Exception("syntax"))
        spec = build_query_spec(HADITH_QUERY, ListQueryParams())
        with pytest.raises(RetrievalError) as exc_info:
            await fetch_page(_FailingSession(exc), spec)
        assert exc_info.value.status_code == 500
        assert "SELECT" not in exc_info.value.detail

    async def test_failure_body_hides_sql(self, app, client):
        exc = ProgrammingError("SELECT hadiths.id FROM hadiths", {}, Exception("syntax"))

        async def _failing_db():
            yield _FailingSession(exc)

        app.dependency_overrides[get_db] = _failing_db
        resp = await client.get("/api/v1/hadiths/list")

        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["type"].endswith("/retrieval-failed")
        assert "SELECT" not in resp.text
