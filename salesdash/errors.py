"""Exception hierarchy for the sales dashboard.

Validation errors are raised before any record is touched and are rendered as
HTTP 400 with their ``error_code``. Storage failures are wrapped in
``StoreError`` and rendered as HTTP 500.
"""
from __future__ import annotations


class SalesDashboardError(Exception):
    """Base class for all errors raised by salesdash."""


class QueryValidationError(SalesDashboardError):
    """A user-correctable problem with the query parameters."""

    error_code = "INVALID_QUERY"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidAgeRange(QueryValidationError):
    error_code = "INVALID_AGE_RANGE"


class InvalidDateRange(QueryValidationError):
    error_code = "INVALID_DATE_RANGE"


class InvalidSortField(QueryValidationError):
    error_code = "INVALID_SORT_FIELD"


class StoreError(SalesDashboardError):
    """The underlying record store failed to answer a query."""
