"""
Data Ingestion Module
"""
from .schema import RecordSchema, SemanticType, SUPERSTORE_SCHEMA
from .loader import SalesLoader, SalesFileConfig, LoadResult, load_sales

__all__ = [
    "RecordSchema",
    "SemanticType",
    "SUPERSTORE_SCHEMA",
    "SalesLoader",
    "SalesFileConfig",
    "LoadResult",
    "load_sales",
]
