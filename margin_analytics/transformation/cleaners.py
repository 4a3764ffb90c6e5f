"""
Data Cleaning Module

Cleaning transformations for raw sales line items.
Applied in order:
- Column pruning
- Deduplication
- Text repair (mojibake markers)
- Field name normalization
- Missing-value audit
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import re

import polars as pl
import structlog

from margin_analytics.config import get_settings
from margin_analytics.errors import MissingValueDetected
from margin_analytics.quality.validators import DataValidator

logger = structlog.get_logger(__name__)
settings = get_settings()


# Labels the generic rule gets wrong ("sub-category") or that collide with
# per-item quantities derived later
NAME_OVERRIDES: Dict[str, str] = {
    "Sub-Category": "sub_category",
    "Sales": "total_sale",
    "Profit": "total_profit",
    "Discount": "percent_discount",
}


def normalize_label(label: str, overrides: Optional[Dict[str, str]] = None) -> str:
    """Convert a display label to its lower_snake_case identifier"""
    overrides = NAME_OVERRIDES if overrides is None else overrides
    key = label.strip()
    if key in overrides:
        return overrides[key]
    return re.sub(r"\s+", "_", key.lower())


@dataclass
class CleaningStats:
    """Statistics from cleaning operations"""
    total_rows: int
    rows_after_cleaning: int
    duplicates_removed: int
    columns_dropped: List[str]
    text_repairs: int
    columns_renamed: int
    missing_values: int


class SalesCleaner:
    """
    Cleaner for raw sales records.

    Rules are matched on canonical column names, so the cleaner accepts both
    freshly loaded frames and its own output; a second pass is a no-op.

    Example:
        cleaner = SalesCleaner()
        df_clean, stats = cleaner.clean(df)
    """

    def __init__(
        self,
        drop_columns: Optional[Sequence[str]] = None,
        text_repair_columns: Optional[Sequence[str]] = None,
        corruption_pattern: Optional[str] = None,
        name_overrides: Optional[Dict[str, str]] = None,
    ):
        cleaning = settings.cleaning
        self.drop_columns = list(drop_columns if drop_columns is not None else cleaning.drop_columns)
        self.text_repair_columns = list(
            text_repair_columns if text_repair_columns is not None else cleaning.text_repair_columns
        )
        self.corruption_pattern = corruption_pattern or cleaning.corruption_pattern
        self.name_overrides = dict(NAME_OVERRIDES if name_overrides is None else name_overrides)

    def _canonical(self, column: str) -> str:
        return normalize_label(column, self.name_overrides)

    def _prune_columns(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, List[str]]:
        """Drop fields not used downstream"""
        dropped = [c for c in df.columns if self._canonical(c) in self.drop_columns]
        if dropped:
            df = df.drop(dropped)
        return df, dropped

    def _remove_duplicates(self, df: pl.DataFrame) -> pl.DataFrame:
        """Remove rows identical across all retained fields, keeping the first"""
        return df.unique(keep="first", maintain_order=True)

    def _repair_text(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, int]:
        """Replace runs of corruption markers with a single space"""
        columns = [
            c for c in df.columns
            if self._canonical(c) in self.text_repair_columns and df.schema[c] == pl.Utf8
        ]
        if not columns:
            return df, 0

        repairs = df.select([
            pl.col(c).str.contains(self.corruption_pattern).sum() for c in columns
        ]).row(0)

        df = df.with_columns([
            pl.col(c).str.replace_all(self.corruption_pattern, " ").alias(c) for c in columns
        ])

        return df, int(sum(n or 0 for n in repairs))

    def _normalize_names(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, int]:
        """Rename display labels to canonical identifiers"""
        mapping = {c: self._canonical(c) for c in df.columns if self._canonical(c) != c}
        if mapping:
            df = df.rename(mapping)
        return df, len(mapping)

    def audit_missing_values(self, df: pl.DataFrame) -> int:
        """
        Verify every retained field is complete.

        Returns:
            Null count (always 0 when it returns)

        Raises:
            MissingValueDetected: any retained field contains nulls
        """
        result = DataValidator().add_completeness_check().validate(df)
        check = result.checks[0]
        null_counts = check.details["null_counts"]

        if not check.passed:
            raise MissingValueDetected(null_counts)

        logger.info("Missing-value audit passed", null_count=0, columns=df.width)
        return 0

    def clean(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, CleaningStats]:
        """
        Apply all cleaning steps in order.

        Args:
            df: Loaded sales frame (raw or already-normalized labels)

        Returns:
            Cleaned frame and cleaning statistics
        """
        total_rows = df.height

        df, dropped = self._prune_columns(df)

        before = df.height
        df = self._remove_duplicates(df)

        df, repairs = self._repair_text(df)
        if repairs:
            # Rows differing only in corruption markers are equal once repaired
            df = self._remove_duplicates(df)
        duplicates_removed = before - df.height

        df, renamed = self._normalize_names(df)
        missing = self.audit_missing_values(df)

        stats = CleaningStats(
            total_rows=total_rows,
            rows_after_cleaning=df.height,
            duplicates_removed=duplicates_removed,
            columns_dropped=dropped,
            text_repairs=repairs,
            columns_renamed=renamed,
            missing_values=missing,
        )

        logger.info(
            "Cleaning complete",
            rows_in=total_rows,
            rows_out=df.height,
            duplicates_removed=duplicates_removed,
            columns_dropped=dropped,
            text_repairs=repairs,
        )

        return df, stats


def clean_sales(df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function to clean a loaded sales frame.

    Args:
        df: Loaded sales frame

    Returns:
        Cleaned DataFrame
    """
    cleaned, _ = SalesCleaner().clean(df)
    return cleaned
