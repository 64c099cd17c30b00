"""Retail sales dashboard backend: filterable, paginated sales listing API."""

__version__ = "0.1.0"
