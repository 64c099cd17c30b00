"""The sales listing pipeline.

validate -> build criteria -> summarize the filtered set -> clamp the page ->
fetch the sorted page -> tag vocabulary over the whole dataset -> envelope.

The pipeline is written once; backends only answer the RecordSource questions.
"""
from __future__ import annotations

import math
from datetime import datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Tuple

import pandas as pd

from ..config import AppConfig, get_config
from ..errors import InvalidAgeRange, InvalidDateRange
from ..logging import get_logger
from . import fields as F
from .fields import resolve_sort_field
from .interface import DataAccess, FilterSummary
from .models import (
    AgeBounds,
    DateBounds,
    FilterCriteria,
    FilterOptions,
    FilterVocabulary,
    Pagination,
    SalesListResponse,
    SalesQueryParams,
    SalesStats,
    SortSpec,
)

CENT = Decimal("0.01")


# ---------- parameter parsing / validation ----------

def split_values(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated parameter into trimmed, non-empty values."""
    if not raw:
        return ()
    return tuple(v.strip() for v in raw.split(",") if v.strip())


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or not str(raw).strip():
        return None
    try:
        return int(float(str(raw).strip()))
    except (ValueError, OverflowError):
        return None


def _parse_age(raw: Optional[str], name: str) -> Optional[int]:
    if raw is None or not str(raw).strip():
        return None
    value = _parse_int(raw)
    if value is None:
        raise InvalidAgeRange(f"Invalid age range: {name} must be a number, got {raw!r}")
    return value


def _parse_timestamp(raw: Optional[str], name: str) -> Optional[datetime]:
    if raw is None or not str(raw).strip():
        return None
    try:
        ts = pd.Timestamp(str(raw).strip())
    except (ValueError, TypeError):
        raise InvalidDateRange(f"Invalid date range: {name} is not a valid date, got {raw!r}") from None
    if pd.isna(ts):
        raise InvalidDateRange(f"Invalid date range: {name} is not a valid date, got {raw!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def build_criteria(params: SalesQueryParams, search_match: str = "all") -> FilterCriteria:
    """Validate the range parameters and build the filter predicate.

    Raises:
        InvalidAgeRange: minAge > maxAge, or a non-numeric age.
        InvalidDateRange: startDate after endDate, or an unparseable date.
    """
    min_age = _parse_age(params.min_age, "minAge")
    max_age = _parse_age(params.max_age, "maxAge")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise InvalidAgeRange("Invalid age range: minimum age cannot be greater than maximum age")

    start_at = _parse_timestamp(params.start_date, "startDate")
    end_at = _parse_timestamp(params.end_date, "endDate")
    if start_at is not None and end_at is not None and start_at > end_at:
        raise InvalidDateRange("Invalid date range: start date cannot be after end date")

    # Records carry calendar dates: a start with a time of day excludes that day.
    start_date = None
    if start_at is not None:
        start_date = start_at.date()
        if start_at.time() != time.min:
            start_date += timedelta(days=1)

    return FilterCriteria(
        search_terms=tuple(term.lower() for term in split_values(params.search)),
        search_match=search_match,
        regions=split_values(params.region),
        genders=split_values(params.gender),
        categories=split_values(params.category),
        payment_methods=split_values(params.payment_method),
        tags=tuple(tag.lower() for tag in split_values(params.tags)),
        min_age=min_age,
        max_age=max_age,
        start_date=start_date,
        end_date=end_at.date() if end_at is not None else None,
    )


def resolve_sort(params: SalesQueryParams) -> SortSpec:
    """Newest first unless sortBy is given; then ascending unless sortOrder is 'desc'."""
    if not params.sort_by or not params.sort_by.strip():
        return SortSpec()
    descending = (params.sort_order or "asc").strip().lower() == "desc"
    return SortSpec(field=resolve_sort_field(params.sort_by), descending=descending)


def resolve_page_request(
    params: SalesQueryParams,
    default_limit: int = 10,
    max_limit: Optional[int] = None,
) -> Tuple[int, int]:
    """Return the requested (page, limit); page is clamped later against the total.

    Limits above `max_limit` are capped when a cap is configured.
    """
    limit = _parse_int(params.limit)
    if limit is None or limit < 1:
        limit = default_limit
    if max_limit is not None:
        limit = min(limit, max_limit)
    page = _parse_int(params.page)
    if page is None:
        page = 1
    return page, limit


# ---------- pagination / aggregation / vocabularies ----------

def paginate(total: int, page: int, limit: int) -> Pagination:
    total_pages = math.ceil(total / limit) if total else 0
    if page < 1:
        page = 1
    if total_pages > 0 and page > total_pages:
        page = total_pages
    return Pagination(total=total, page=page, limit=limit, total_pages=total_pages)


def round_money(value: Decimal) -> float:
    """Round half-up at the cent: 20.005 -> 20.01."""
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def build_stats(summary: FilterSummary) -> SalesStats:
    return SalesStats(
        total_units=summary.units,
        total_amount=round_money(summary.final_amount),
        total_discount=round_money(summary.discount),
    )


def _present(values: Iterable[Any]) -> List[Any]:
    return [v for v in values if v is not None and not (not isinstance(v, str) and pd.isna(v))]


def extract_tag_vocabulary(tag_fields: Iterable[Any]) -> List[str]:
    """Distinct, trimmed, non-empty tags across every Tags value, sorted."""
    tags = set()
    for value in _present(tag_fields):
        for tag in str(value).split(","):
            tag = tag.strip()
            if tag:
                tags.add(tag)
    return sorted(tags)


def distinct_values(values: Iterable[Any]) -> List[str]:
    return sorted({str(v).strip() for v in _present(values) if str(v).strip()})


def age_bounds(values: Iterable[Any]) -> AgeBounds:
    ages = pd.to_numeric(pd.Series(_present(values), dtype=object), errors="coerce").dropna()
    if ages.empty:
        return AgeBounds()
    return AgeBounds(min=int(ages.min()), max=int(ages.max()))


def date_bounds(values: Iterable[Any]) -> DateBounds:
    dates = pd.to_datetime(pd.Series(_present(values), dtype=object), errors="coerce", format="mixed").dropna()
    if dates.empty:
        return DateBounds()
    return DateBounds(min=dates.min().date(), max=dates.max().date())


# ---------- engine ----------

class SalesQueryEngine:
    """Runs the listing pipeline against any DataAccess backend."""

    def __init__(self, data_access: DataAccess, config: Optional[AppConfig] = None) -> None:
        self.data_access = data_access
        self.config = config or get_config()
        self.logger = get_logger(__name__)

    def query_sales(self, params: SalesQueryParams) -> SalesListResponse:
        """Answer one listing request.

        Validation runs first and touches no records. Stats and the total are
        computed over the full filtered set; the tag vocabulary over the full,
        unfiltered dataset.
        """
        criteria = build_criteria(params, self.config.search_match)
        sort = resolve_sort(params)
        page, limit = resolve_page_request(
            params, self.config.default_page_limit, self.config.max_page_limit
        )

        with self.data_access.open_source() as source:
            summary = source.summarize(criteria)
            pagination = paginate(summary.matched, page, limit)
            records = []
            if summary.matched:
                offset = (pagination.page - 1) * pagination.limit
                records = source.fetch_page(criteria, sort, offset, pagination.limit)
            tags = extract_tag_vocabulary(source.iter_column(F.TAGS))

        self.logger.debug(
            f"Sales query matched {summary.matched} records; "
            f"page {pagination.page}/{pagination.total_pages} sorted by {sort.field.label}"
            f"{' desc' if sort.descending else ''}"
        )
        return SalesListResponse(
            data=records,
            stats=build_stats(summary),
            filters=FilterVocabulary(tags=tags),
            pagination=pagination,
        )

    def filter_options(self) -> FilterOptions:
        """Option lists for the filter panel, independent of any filter."""
        with self.data_access.open_source() as source:
            return FilterOptions(
                regions=distinct_values(source.iter_column(F.REGION)),
                genders=distinct_values(source.iter_column(F.GENDER)),
                categories=distinct_values(source.iter_column(F.CATEGORY)),
                payment_methods=distinct_values(source.iter_column(F.PAYMENT_METHOD)),
                tags=extract_tag_vocabulary(source.iter_column(F.TAGS)),
                age_range=age_bounds(source.iter_column(F.AGE)),
                date_range=date_bounds(source.iter_column(F.DATE)),
            )
