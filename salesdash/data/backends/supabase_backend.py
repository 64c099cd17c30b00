"""Supabase-backed implementation over the PostgREST HTTP API.

The hosted table uses the human-readable labels as column names ("Customer
Name", "Final Amount", ...), so every column reference is double-quoted.
Filters and paging run server-side; PostgREST has no aggregates for the anon
role and cannot order by lower(), so summaries and string sorts scan the
filtered set in pages of `supabase_page_size`.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Tuple

import httpx

from ...config import get_config
from ...errors import StoreError
from ...logging import get_logger
from .. import fields as F
from ..fields import SEARCH_FIELDS, SalesField
from ..interface import DataAccess, FilterSummary, RecordSource, to_decimal
from ..models import FilterCriteria, SalesRecord, SortSpec

logger = get_logger(__name__)

Params = List[Tuple[str, str]]


def quote(value: str) -> str:
    """PostgREST double-quoting for column names and filter values."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def escape_like(fragment: str) -> str:
    """Make LIKE wildcards in `fragment` match literally."""
    return fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _ilike_any(fields: Tuple[SalesField, ...], fragment: str) -> str:
    pattern = quote(f"*{escape_like(fragment)}*")
    return ",".join(f"{quote(f.label)}.ilike.{pattern}" for f in fields)


def build_filter_params(criteria: FilterCriteria) -> Params:
    """Query parameters expressing `criteria` as PostgREST filters."""
    params: Params = []

    # Each group is a comma-joined list of alternatives; groups are AND-combined.
    groups = []
    if criteria.search_terms:
        per_term = [_ilike_any(SEARCH_FIELDS, term) for term in criteria.search_terms]
        if criteria.search_match == "all":
            groups.extend(per_term)
        else:
            groups.append(",".join(per_term))
    if criteria.tags:
        groups.append(",".join(_ilike_any((F.TAGS,), tag) for tag in criteria.tags))

    if len(groups) == 1:
        params.append(("or", f"({groups[0]})"))
    elif groups:
        params.append(("and", "(" + ",".join(f"or({g})" for g in groups) + ")"))

    for values, field in (
        (criteria.regions, F.REGION),
        (criteria.genders, F.GENDER),
        (criteria.categories, F.CATEGORY),
        (criteria.payment_methods, F.PAYMENT_METHOD),
    ):
        if values:
            params.append((field.label, "in.(" + ",".join(quote(v) for v in values) + ")"))

    if criteria.min_age is not None:
        params.append((F.AGE.label, f"gte.{criteria.min_age}"))
    if criteria.max_age is not None:
        params.append((F.AGE.label, f"lte.{criteria.max_age}"))
    if criteria.start_date is not None:
        params.append((F.DATE.label, f"gte.{criteria.start_date.isoformat()}"))
    if criteria.end_date is not None:
        params.append((F.DATE.label, f"lte.{criteria.end_date.isoformat()}"))

    return params


def build_order(sort: SortSpec) -> str:
    """`order` parameter for numeric and date sorts; missing numbers sort as 0 would."""
    direction = "desc" if sort.descending else "asc"
    if sort.field.kind == "date" or sort.descending:
        nulls = "nullslast"
    else:
        nulls = "nullsfirst"
    return f"{quote(sort.field.label)}.{direction}.{nulls},{quote(F.TRANSACTION_ID.label)}.asc"


def _text_key(value: Any) -> str:
    return "" if value is None else str(value).lower()


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_content_range(header: Optional[str]) -> int:
    """Total from a Content-Range header such as "0-9/120" or "*/120"."""
    if not header or "/" not in header:
        raise StoreError(f"Missing record count in Content-Range: {header!r}")
    total = header.rsplit("/", 1)[1]
    if not total.isdigit():
        raise StoreError(f"Missing record count in Content-Range: {header!r}")
    return int(total)


class SupabaseRecordSource(RecordSource):
    """RecordSource over the REST endpoint of one table."""

    def __init__(self, client: httpx.Client, table: str, page_size: int, slow_query_ms: int = 100) -> None:
        self._client = client
        self._path = f"/{table}"
        self._page_size = page_size
        self._slow_query_ms = slow_query_ms

    def _request(self, method: str, params: Params, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        started = time.perf_counter()
        response = self._client.request(method, self._path, params=params, headers=headers)
        response.raise_for_status()
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if elapsed_ms > self._slow_query_ms:
            logger.warning(f"Slow Supabase request ({elapsed_ms:.1f} ms): {response.request.url}")
        return response

    def _scan(self, params: Params, columns: str) -> Iterator[Dict[str, Any]]:
        offset = 0
        while True:
            batch = self._request("GET", params + [
                ("select", columns),
                ("order", f"{quote(F.TRANSACTION_ID.label)}.asc"),
                ("offset", str(offset)),
                ("limit", str(self._page_size)),
            ]).json()
            yield from batch
            if len(batch) < self._page_size:
                return
            offset += self._page_size

    def summarize(self, criteria: FilterCriteria) -> FilterSummary:
        columns = ",".join(quote(f.label) for f in (F.QUANTITY, F.TOTAL_AMOUNT, F.FINAL_AMOUNT))
        matched = 0
        units = 0
        total_amount = Decimal("0")
        final_amount = Decimal("0")
        for row in self._scan(build_filter_params(criteria), columns):
            matched += 1
            units += _to_int(row.get(F.QUANTITY.label))
            total_amount += to_decimal(row.get(F.TOTAL_AMOUNT.label))
            final_amount += to_decimal(row.get(F.FINAL_AMOUNT.label))
        return FilterSummary(
            matched=matched,
            units=units,
            final_amount=final_amount,
            discount=total_amount - final_amount,
        )

    def fetch_page(
        self,
        criteria: FilterCriteria,
        sort: SortSpec,
        offset: int,
        limit: int,
    ) -> List[SalesRecord]:
        params = build_filter_params(criteria)
        if sort.field.kind == "string":
            # PostgREST cannot order by lower(); scan in Transaction ID order and sort stably here
            label = sort.field.label
            rows = sorted(
                self._scan(params, "*"),
                key=lambda row: _text_key(row.get(label)),
                reverse=sort.descending,
            )[offset:offset + limit]
        else:
            rows = self._request("GET", params + [
                ("select", "*"),
                ("order", build_order(sort)),
                ("offset", str(offset)),
                ("limit", str(limit)),
            ]).json()
        return [SalesRecord.model_validate(row) for row in rows]

    def iter_column(self, field: SalesField) -> Iterator[Any]:
        for row in self._scan([], quote(field.label)):
            yield row.get(field.label)

    def count(self) -> int:
        response = self._request("HEAD", [("select", quote(F.TRANSACTION_ID.label))], headers={"Prefer": "count=exact"})
        return parse_content_range(response.headers.get("content-range"))


class SupabaseDataAccess(DataAccess):
    """
    Supabase-backed implementation.
    - Talks to {SUPABASE_URL}/rest/v1/{table} with the anon key.
    - Transport and HTTP status failures surface as StoreError.
    """

    name = "supabase"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: Optional[str] = None,
        page_size: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        config = get_config()
        url = url or config.supabase_url
        api_key = api_key or config.supabase_anon_key
        if not url or not api_key:
            raise RuntimeError(
                "Missing Supabase credentials.\n"
                "Set SUPABASE_URL and SUPABASE_ANON_KEY in the environment or in .env."
            )
        self.table = table or config.supabase_table
        self.page_size = page_size or config.supabase_page_size
        self.slow_query_ms = config.slow_query_ms
        self.logger = get_logger(__name__)
        self._client = httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=config.supabase_timeout_s,
            transport=transport,
        )

    @contextmanager
    def open_source(self) -> Iterator[SupabaseRecordSource]:
        try:
            yield SupabaseRecordSource(self._client, self.table, self.page_size, self.slow_query_ms)
        except httpx.HTTPError as e:
            self.logger.error(f"Supabase query against {self.table} failed: {e}")
            raise StoreError(f"Supabase query failed: {e}") from e

    def describe(self) -> Dict[str, Any]:
        with self.open_source() as source:
            count = source.count()
        return {"data_source": self.name, "record_count": count}

    def close(self) -> None:
        self._client.close()
