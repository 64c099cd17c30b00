from __future__ import annotations

from typing import Literal, Optional

from ..config import get_config
from .backends.csv_backend import CsvDataAccess
from .backends.sql_backend import SqlDataAccess
from .backends.supabase_backend import SupabaseDataAccess
from .interface import DataAccess


def get_data_access(kind: Optional[Literal["csv", "postgres", "supabase"]] = None) -> DataAccess:
    config = get_config()
    kind = kind or config.data_source
    if kind == "csv":
        # Reads the configured sales CSV
        return CsvDataAccess(data_file=config.data_file)
    if kind == "postgres":
        return SqlDataAccess(database_url=config.database_url, table_name=config.db_table)
    if kind == "supabase":
        return SupabaseDataAccess()
    raise ValueError(f"Unknown data access kind: {kind}")
