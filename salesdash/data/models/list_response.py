from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .sales_records import SalesRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SalesStats(_CamelModel):
    """Aggregates over the full filtered set, before pagination."""
    total_units: int = Field(default=0, description="SUM(quantity)")
    total_amount: float = Field(default=0.0, description="SUM(final_amount), rounded to the cent")
    total_discount: float = Field(default=0.0, description="SUM(total_amount - final_amount), rounded to the cent")


class Pagination(_CamelModel):
    total: int = Field(description="Number of records matching every filter")
    page: int = Field(description="Page actually returned, after clamping")
    limit: int = Field(description="Page size")
    total_pages: int = Field(description="ceil(total / limit)")


class FilterVocabulary(_CamelModel):
    tags: List[str] = Field(default_factory=list, description="Distinct tags across the whole dataset")


class SalesListResponse(_CamelModel):
    """Response envelope of the listing endpoint."""
    data: List[SalesRecord] = Field(default_factory=list, description="Current page of records")
    stats: SalesStats = Field(default_factory=SalesStats)
    filters: FilterVocabulary = Field(default_factory=FilterVocabulary)
    pagination: Pagination


class DateBounds(_CamelModel):
    """Response model for date bounds data."""
    min: Optional[date] = Field(default=None, description="Earliest transaction date")
    max: Optional[date] = Field(default=None, description="Latest transaction date")


class AgeBounds(_CamelModel):
    min: Optional[int] = Field(default=None, description="Youngest customer age")
    max: Optional[int] = Field(default=None, description="Oldest customer age")


class FilterOptions(_CamelModel):
    """Option lists for the dashboard's filter panel, over the unfiltered dataset."""
    regions: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    age_range: AgeBounds = Field(default_factory=AgeBounds)
    date_range: DateBounds = Field(default_factory=DateBounds)
