from __future__ import annotations

from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Protocol

from pydantic import BaseModel

from .fields import SalesField
from .models import FilterCriteria, SalesRecord, SortSpec


def to_decimal(value: Any) -> Decimal:
    """Exact decimal for a stored amount; missing or non-numeric values count as 0."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        result = Decimal(str(value))
    except ArithmeticError:
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


# ---- Types returned to the query engine ----

class FilterSummary(BaseModel):
    """Count and raw sums over the full filtered set; rounding is the engine's job."""
    matched: int = 0                      # COUNT(*) of matching records
    units: int = 0                        # SUM(quantity)
    final_amount: Decimal = Decimal("0")  # SUM(final_amount)
    discount: Decimal = Decimal("0")      # SUM(total_amount - final_amount)


# ---- Storage capability protocol ----

class RecordSource(Protocol):
    """
    A filterable, sortable, paginable view of the sales dataset, valid for the
    duration of one request.

    Implementations push the work down to their store where they can. All of
    them honour the same FilterCriteria semantics.
    """

    def summarize(self, criteria: FilterCriteria) -> FilterSummary:
        """Count and aggregate the records matching `criteria`."""
        ...

    def fetch_page(
        self,
        criteria: FilterCriteria,
        sort: SortSpec,
        offset: int,
        limit: int,
    ) -> List[SalesRecord]:
        """Return `limit` matching records starting at `offset` in `sort` order."""
        ...

    def iter_column(self, field: SalesField) -> Iterable[Any]:
        """Yield the values of `field` across the whole, unfiltered dataset.

        Duplicates may or may not be collapsed; callers de-duplicate.
        """
        ...


class DataAccess(Protocol):
    """
    Backend-agnostic contract for the sales query engine.

    IMPORTANT:
    - A request must see one consistent dataset. `open_source()` pins whatever
      the backend needs for that (a snapshot, a pooled connection) and releases
      it on exit, whether the request succeeded or failed.
    - Storage failures are raised as salesdash.errors.StoreError.
    """

    name: str

    def open_source(self) -> AbstractContextManager[RecordSource]:
        """Open a record source for one request."""
        ...

    def describe(self) -> Dict[str, Any]:
        """Return {"data_source": <name>, "record_count": <int>} for health checks."""
        ...
