from __future__ import annotations

import functools
import operator
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List

import pandas as pd

from ...config import get_config
from ...errors import StoreError
from ...logging import get_logger
from .. import fields as F
from ..fields import SALES_FIELDS, SEARCH_FIELDS, SalesField
from ..interface import DataAccess, FilterSummary, RecordSource, to_decimal
from ..models import FilterCriteria, SalesRecord, SortSpec

REQUIRED_LABELS = [
    "Transaction ID", "Date", "Customer Name", "Phone Number", "Gender", "Age",
    "Customer Region", "Product Name", "Product Category", "Tags", "Quantity",
    "Total Amount", "Final Amount", "Payment Method",
]


@dataclass(frozen=True)
class _Snapshot:
    """One fully-loaded copy of the dataset; never mutated after construction."""
    frame: pd.DataFrame          # typed columns named by attribute
    search_text: pd.DataFrame    # lower-cased search columns
    tag_tokens: pd.Series        # tuple of trimmed, lower-cased tags per row


class CsvDataAccess(DataAccess):
    """
    CSV-backed implementation.
    - Loads the sales CSV from `data_file` once at construction.
    - Every request filters, aggregates and sorts the loaded frame afresh.
    - `reload()` swaps in a new snapshot; requests already running keep theirs.
    """

    name = "csv"

    def __init__(self, data_file: str | Path = None) -> None:
        if data_file is None:
            data_file = get_config().data_file

        self.data_file = self._resolve_path(Path(data_file))
        self.logger = get_logger(__name__)
        self._snapshot = self._load_snapshot(self.data_file)
        self.logger.info(f"Loaded {len(self._snapshot.frame)} sales records from {self.data_file}")

    @staticmethod
    def _resolve_path(path: Path) -> Path:
        if path.is_absolute():
            return path
        # Relative paths are relative to the repository root
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            if (parent / "pyproject.toml").exists():
                return parent / path
        return current / path

    # ---------- loading ----------

    @staticmethod
    def _load_snapshot(data_file: Path) -> _Snapshot:
        if not data_file.exists():
            raise FileNotFoundError(
                f"Sales data file not found: {data_file}\n"
                f"Please either:\n"
                f"  1. Generate sample data: python -m salesdash.seed_data\n"
                f"  2. Set DATA_FILE environment variable to point to your sales CSV\n"
                f"  3. Create a .env file with DATA_FILE=/path/to/sales.csv"
            )

        try:
            raw = pd.read_csv(data_file, dtype=str, keep_default_na=False)
            frame = CsvDataAccess._build_frame(raw)
        except (OSError, ValueError) as e:
            raise StoreError(
                f"Error reading sales CSV {data_file}: {e}\n"
                f"Please check that the file is a valid, readable CSV."
            ) from e

        missing = [label for label in REQUIRED_LABELS if label not in raw.columns]
        if missing:
            raise StoreError(
                f"Required columns missing in {data_file}:\n"
                f"  Missing: {', '.join(missing)}\n"
                f"  Expected columns: {', '.join(REQUIRED_LABELS)}"
            )

        search_text = pd.DataFrame({f.name: frame[f.name].str.lower() for f in SEARCH_FIELDS})
        tag_tokens = frame[F.TAGS.name].map(
            lambda value: tuple(t.strip().lower() for t in value.split(",") if t.strip())
        )
        return _Snapshot(
            frame=frame,
            search_text=search_text,
            tag_tokens=tag_tokens,
        )

    @staticmethod
    def _build_frame(raw: pd.DataFrame) -> pd.DataFrame:
        columns = {}
        for field in SALES_FIELDS:
            if field.label in raw.columns:
                values = raw[field.label].str.strip()
            else:
                values = pd.Series("", index=raw.index, dtype=object)
            if field.is_numeric:
                values = pd.to_numeric(values, errors="coerce")
            elif field.kind == "date":
                # offsets are normalised to UTC, then dropped to match naive date bounds
                values = pd.to_datetime(values, errors="coerce", format="mixed", utc=True).dt.tz_convert(None)
            columns[field.name] = values
        return pd.DataFrame(columns, index=raw.index)

    def reload(self) -> int:
        """Re-read the CSV and swap it in; returns the new record count."""
        snapshot = self._load_snapshot(self.data_file)
        self._snapshot = snapshot
        self.logger.info(f"Reloaded {len(snapshot.frame)} sales records from {self.data_file}")
        return len(snapshot.frame)

    # ---------- interface implementation ----------

    @contextmanager
    def open_source(self) -> Iterator[FrameRecordSource]:
        yield FrameRecordSource(self._snapshot)

    def describe(self) -> Dict[str, Any]:
        return {"data_source": self.name, "record_count": len(self._snapshot.frame)}


def _decimal_sum(values: pd.Series) -> Decimal:
    return sum((to_decimal(v) for v in values.dropna().tolist()), Decimal("0"))


def _to_record(row: Dict[str, Any]) -> SalesRecord:
    values = {}
    for field in SALES_FIELDS:
        value = row.get(field.name)
        if field.kind == "date":
            value = None if pd.isna(value) else value.date()
        elif field.is_numeric:
            if pd.isna(value):
                value = None
            else:
                value = int(value) if field.kind == "integer" else float(value)
        values[field.name] = value
    return SalesRecord(**values)


class FrameRecordSource(RecordSource):
    """RecordSource over one pinned snapshot."""

    def __init__(self, snapshot: _Snapshot) -> None:
        self._snapshot = snapshot

    def _term_mask(self, term: str) -> pd.Series:
        text = self._snapshot.search_text
        masks = [text[column].str.contains(term, regex=False) for column in text.columns]
        return functools.reduce(operator.or_, masks)

    def _mask(self, criteria: FilterCriteria) -> pd.Series:
        df = self._snapshot.frame
        mask = pd.Series(True, index=df.index)

        if criteria.search_terms:
            combine = operator.and_ if criteria.search_match == "all" else operator.or_
            mask &= functools.reduce(combine, [self._term_mask(t) for t in criteria.search_terms])

        for values, field in (
            (criteria.regions, F.REGION),
            (criteria.genders, F.GENDER),
            (criteria.categories, F.CATEGORY),
            (criteria.payment_methods, F.PAYMENT_METHOD),
        ):
            if values:
                mask &= df[field.name].isin(values)

        if criteria.tags:
            wanted = criteria.tags
            mask &= self._snapshot.tag_tokens.map(
                lambda tokens: any(w in t for w in wanted for t in tokens)
            ).astype(bool)

        # NaN ages and NaT dates compare false, so they drop out of any active range
        if criteria.min_age is not None:
            mask &= df[F.AGE.name] >= criteria.min_age
        if criteria.max_age is not None:
            mask &= df[F.AGE.name] <= criteria.max_age
        if criteria.start_at is not None:
            mask &= df[F.DATE.name] >= pd.Timestamp(criteria.start_at)
        if criteria.end_at is not None:
            mask &= df[F.DATE.name] <= pd.Timestamp(criteria.end_at)

        return mask

    def summarize(self, criteria: FilterCriteria) -> FilterSummary:
        matched = self._snapshot.frame.loc[self._mask(criteria)]
        final_amount = _decimal_sum(matched[F.FINAL_AMOUNT.name])
        total_amount = _decimal_sum(matched[F.TOTAL_AMOUNT.name])
        return FilterSummary(
            matched=len(matched),
            units=int(matched[F.QUANTITY.name].fillna(0).sum()),
            final_amount=final_amount,
            discount=total_amount - final_amount,
        )

    @staticmethod
    def _sort_key(df: pd.DataFrame, field: SalesField) -> pd.Series:
        column = df[field.name]
        if field.is_numeric:
            return column.fillna(0)
        if field.kind == "date":
            return column
        return column.fillna("").astype(str).str.lower()

    def fetch_page(
        self,
        criteria: FilterCriteria,
        sort: SortSpec,
        offset: int,
        limit: int,
    ) -> List[SalesRecord]:
        matched = self._snapshot.frame.loc[self._mask(criteria)]
        order = self._sort_key(matched, sort.field).sort_values(
            ascending=not sort.descending, kind="mergesort", na_position="last"
        ).index
        page = matched.loc[order[offset:offset + limit]]
        return [_to_record(row) for row in page.to_dict("records")]

    def iter_column(self, field: SalesField) -> List[Any]:
        return self._snapshot.frame[field.name].drop_duplicates().tolist()
