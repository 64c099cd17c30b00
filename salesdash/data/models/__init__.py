from .data_filters import (
    SalesQueryParams,
    FilterCriteria,
    SortSpec,
)

from .sales_records import SalesRecord
from .list_response import (
    SalesStats,
    Pagination,
    FilterVocabulary,
    SalesListResponse,
    DateBounds,
    AgeBounds,
    FilterOptions,
)

__all__ = [
    # Request / filter classes
    "SalesQueryParams",
    "FilterCriteria",
    "SortSpec",
    # Record model
    "SalesRecord",
    # Response models
    "SalesStats",
    "Pagination",
    "FilterVocabulary",
    "SalesListResponse",
    "DateBounds",
    "AgeBounds",
    "FilterOptions",
]
