from __future__ import annotations

from datetime import date, datetime, time
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..fields import SalesField, DATE

END_OF_DAY = time(23, 59, 59, 999000)


class SalesQueryParams(BaseModel):
    """Listing parameters exactly as received on the query string.

    Everything stays a string here; parsing and validation happen when the
    parameters are turned into FilterCriteria.
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    search: Optional[str] = Field(default=None, description="Comma-separated search terms")
    region: Optional[str] = Field(default=None, description="Comma-separated customer regions")
    gender: Optional[str] = Field(default=None, description="Comma-separated genders")
    min_age: Optional[str] = Field(default=None, alias="minAge", description="Minimum age (inclusive)")
    max_age: Optional[str] = Field(default=None, alias="maxAge", description="Maximum age (inclusive)")
    category: Optional[str] = Field(default=None, description="Comma-separated product categories")
    tags: Optional[str] = Field(default=None, description="Comma-separated tags (any may match)")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod", description="Comma-separated payment methods")
    start_date: Optional[str] = Field(default=None, alias="startDate", description="Start date (inclusive)")
    end_date: Optional[str] = Field(default=None, alias="endDate", description="End date (inclusive, whole day)")
    sort_by: Optional[str] = Field(default=None, alias="sortBy", description="Column label to sort by")
    sort_order: Optional[str] = Field(default="asc", alias="sortOrder", description="'asc' or 'desc'")
    page: Optional[str] = Field(default=None, description="1-based page number")
    limit: Optional[str] = Field(default=None, description="Page size")


class FilterCriteria(BaseModel):
    """Backend-neutral predicate over sales records; dimensions are AND-combined."""
    model_config = ConfigDict(frozen=True)

    search_terms: Tuple[str, ...] = Field(default=(), description="Lower-cased search terms")
    search_match: Literal["all", "any"] = Field(default="all", description="How search terms combine")
    regions: Tuple[str, ...] = Field(default=(), description="Accepted customer regions")
    genders: Tuple[str, ...] = Field(default=(), description="Accepted genders")
    categories: Tuple[str, ...] = Field(default=(), description="Accepted product categories")
    payment_methods: Tuple[str, ...] = Field(default=(), description="Accepted payment methods")
    tags: Tuple[str, ...] = Field(default=(), description="Lower-cased tag fragments, any may match")
    min_age: Optional[int] = Field(default=None, description="Minimum age (inclusive)")
    max_age: Optional[int] = Field(default=None, description="Maximum age (inclusive)")
    start_date: Optional[date] = Field(default=None, description="First included day")
    end_date: Optional[date] = Field(default=None, description="Last included day")

    @property
    def start_at(self) -> Optional[datetime]:
        if self.start_date is None:
            return None
        return datetime.combine(self.start_date, time.min)

    @property
    def end_at(self) -> Optional[datetime]:
        if self.end_date is None:
            return None
        return datetime.combine(self.end_date, END_OF_DAY)


class SortSpec(BaseModel):
    """Resolved ordering; the default is newest first."""
    model_config = ConfigDict(frozen=True)

    field: SalesField = Field(default=DATE, description="Field to order by")
    descending: bool = Field(default=True, description="Descending order when true")
