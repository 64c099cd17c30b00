from .csv_backend import CsvDataAccess
from .sql_backend import SqlDataAccess
from .supabase_backend import SupabaseDataAccess

__all__ = ["CsvDataAccess", "SqlDataAccess", "SupabaseDataAccess"]
