"""
Sales File Loader

Reads the raw Superstore-style CSV into a typed Polars DataFrame.
Supports:
- Header validation against an explicit ordered schema
- Per-column typing by semantic type
- Strict day-month-year date parsing (no silent nulls)
- Lenient text decoding so byte corruption reaches the cleaner
- Load audit metadata (row counts, file hash, duration)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union
import hashlib

import polars as pl
import structlog
from pydantic import BaseModel

from margin_analytics.config import get_settings
from margin_analytics.errors import DateParseError, SchemaMismatch
from .schema import RecordSchema, SemanticType, SchemaField, SUPERSTORE_SCHEMA

logger = structlog.get_logger(__name__)
settings = get_settings()


@dataclass
class SalesFileConfig:
    """Configuration for loading one raw sales file"""
    file_path: Union[str, Path]
    schema: RecordSchema = SUPERSTORE_SCHEMA
    delimiter: str = field(default_factory=lambda: settings.ingestion.delimiter)
    encoding: str = field(default_factory=lambda: settings.ingestion.encoding)
    date_format: str = field(default_factory=lambda: settings.ingestion.date_format)
    null_values: List[str] = field(default_factory=lambda: list(settings.ingestion.null_values))


class LoadResult(BaseModel):
    """Audit record of a completed load"""
    file_path: str
    rows_loaded: int = 0
    columns: int = 0
    file_hash: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    load_duration_seconds: float = 0


class SalesLoader:
    """
    Typed loader for raw sales line items.

    Every column is read as text first, the header is checked against the
    declared schema, then each column is cast by its semantic type. Values
    that fail a cast raise instead of becoming nulls.

    Example:
        loader = SalesLoader()
        df, result = loader.load(SalesFileConfig(file_path="data/raw/superstore.csv"))
    """

    def _compute_file_hash(self, file_path: Path) -> str:
        """MD5 of the raw bytes, so reruns can be matched to their input"""
        with open(file_path, "rb") as f:
            return hashlib.file_digest(f, "md5").hexdigest()

    def _read_raw(self, config: SalesFileConfig) -> pl.DataFrame:
        """Read every column as text"""
        try:
            return pl.read_csv(
                config.file_path,
                separator=config.delimiter,
                encoding=config.encoding,
                null_values=config.null_values,
                infer_schema_length=0,
            )
        except (pl.exceptions.ComputeError, pl.exceptions.NoDataError) as e:
            raise SchemaMismatch(
                f"Could not read '{config.file_path}' with the declared layout: {e}",
                expected=config.schema.labels,
            ) from e

    def _validate_header(self, df: pl.DataFrame, schema: RecordSchema) -> pl.DataFrame:
        """Check column count and order, then adopt the declared labels"""
        errors = schema.mismatches(df.columns)
        if errors:
            raise SchemaMismatch(
                f"Header does not match schema: {errors}",
                expected=schema.labels,
                actual=list(df.columns),
            )
        # Drops byte-order marks and stray whitespace from the header
        return df.rename(dict(zip(df.columns, schema.labels)))

    def _cast_expr(self, schema_field: SchemaField, date_format: str) -> pl.Expr:
        col = pl.col(schema_field.label)

        if schema_field.semantic_type == SemanticType.DATE:
            return col.str.strip_chars().str.to_date(date_format, strict=False)
        if schema_field.semantic_type in (SemanticType.INTEGER, SemanticType.DECIMAL):
            return col.str.strip_chars().cast(schema_field.dtype, strict=False)
        return col

    def _cast_columns(self, raw: pl.DataFrame, config: SalesFileConfig) -> pl.DataFrame:
        """Apply semantic types, failing on any value that does not convert"""
        typed = raw.select([
            self._cast_expr(schema_field, config.date_format) for schema_field in config.schema
        ])

        for schema_field in config.schema:
            if schema_field.dtype == pl.Utf8:
                continue

            failed = raw[schema_field.label].is_not_null() & typed[schema_field.label].is_null()
            failed_count = int(failed.sum())
            if failed_count == 0:
                continue

            examples = raw[schema_field.label].filter(failed).head(5).to_list()
            if schema_field.semantic_type == SemanticType.DATE:
                raise DateParseError(
                    column=schema_field.label,
                    date_format=config.date_format,
                    failed_count=failed_count,
                    examples=examples,
                )
            raise SchemaMismatch(
                f"Column '{schema_field.label}' has {failed_count} values that are not "
                f"{schema_field.semantic_type.value}: {examples}",
                column=schema_field.label,
                examples=examples,
            )

        return typed

    def load(self, config: SalesFileConfig) -> Tuple[pl.DataFrame, LoadResult]:
        """
        Load a raw sales file.

        Args:
            config: Sales file configuration

        Returns:
            Typed DataFrame with the schema's raw labels, and the load audit

        Raises:
            FileNotFoundError: the source does not exist
            SchemaMismatch: header or column typing disagrees with the schema
            DateParseError: a date value does not match the configured format
        """
        file_path = Path(config.file_path)
        started_at = datetime.now(timezone.utc)

        logger.info(
            "Starting sales file load",
            file=str(file_path),
            date_format=config.date_format,
        )

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            raw = self._read_raw(config)
            raw = self._validate_header(raw, config.schema)
            df = self._cast_columns(raw, config)
        except (SchemaMismatch, DateParseError) as e:
            logger.error(
                "Sales file load failed",
                error=e.message,
                file=str(file_path),
                **{k: v for k, v in e.details.items() if v is not None},
            )
            raise

        completed_at = datetime.now(timezone.utc)
        result = LoadResult(
            file_path=str(file_path),
            rows_loaded=df.height,
            columns=df.width,
            file_hash=self._compute_file_hash(file_path),
            started_at=started_at,
            completed_at=completed_at,
            load_duration_seconds=(completed_at - started_at).total_seconds(),
        )

        logger.info(
            "Sales file load completed",
            rows_loaded=result.rows_loaded,
            duration_seconds=result.load_duration_seconds,
        )

        return df, result


def load_sales(file_path: Optional[Union[str, Path]] = None, **kwargs) -> pl.DataFrame:
    """
    Convenience function to load a raw sales file.

    Args:
        file_path: CSV path; defaults to the configured source path
        **kwargs: Additional SalesFileConfig parameters

    Returns:
        Typed DataFrame
    """
    config = SalesFileConfig(file_path=file_path or settings.ingestion.source_path, **kwargs)
    df, _ = SalesLoader().load(config)
    return df
