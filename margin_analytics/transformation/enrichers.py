"""
Data Enrichment Module

Derives per-line fields from cleaned sales records:
- retail_price: list price before discount, per unit
- profit_per_item: profit per unit sold
"""

from dataclasses import dataclass
from typing import Dict

import polars as pl
import structlog

from margin_analytics.errors import EnrichmentUndefined

logger = structlog.get_logger(__name__)

DERIVED_COLUMNS = ["retail_price", "profit_per_item"]


def _count_reasons(excluded: pl.DataFrame) -> Dict[str, int]:
    if excluded.is_empty():
        return {}
    counts = excluded.group_by("undefined_reason", maintain_order=True).len()
    return dict(zip(counts["undefined_reason"].to_list(), counts["len"].to_list()))


@dataclass
class EnrichmentResult:
    """Enriched records plus the records whose derived fields are undefined"""
    frame: pl.DataFrame
    excluded: pl.DataFrame
    excluded_count: int

    @property
    def reasons(self) -> Dict[str, int]:
        return _count_reasons(self.excluded)


class SalesEnricher:
    """
    Per-record derivation of retail price and per-item profit.

    retail_price = (total_sale / quantity) / (1 - percent_discount)
    profit_per_item = total_profit / quantity

    Records with zero quantity or a full discount, and records outside
    quantity >= 1 and 0 <= percent_discount < 1, are removed from the
    enriched frame and returned in `excluded` with the reason.

    Example:
        result = SalesEnricher().enrich(cleaned_df)
        result.frame, result.excluded_count
    """

    def __init__(self, raise_on_undefined: bool = False):
        self.raise_on_undefined = raise_on_undefined

    @staticmethod
    def _undefined_reason() -> pl.Expr:
        quantity, discount = pl.col("quantity"), pl.col("percent_discount")
        return (
            pl.when(quantity == 0)
            .then(pl.lit("zero_quantity"))
            .when(quantity < 1)
            .then(pl.lit("invalid_quantity"))
            .when(discount == 1)
            .then(pl.lit("full_discount"))
            .when((discount < 0) | (discount > 1))
            .then(pl.lit("invalid_discount"))
            .otherwise(pl.lit(None, dtype=pl.Utf8))
            .alias("undefined_reason")
        )

    def enrich(self, df: pl.DataFrame) -> EnrichmentResult:
        """
        Add derived columns to every record where they are defined.

        Args:
            df: Cleaned sales frame (normalized names)

        Returns:
            EnrichmentResult

        Raises:
            EnrichmentUndefined: only when raise_on_undefined is set
        """
        df = df.drop([c for c in DERIVED_COLUMNS if c in df.columns])
        flagged = df.with_columns(self._undefined_reason())

        excluded = flagged.filter(pl.col("undefined_reason").is_not_null())
        excluded_count = excluded.height

        if excluded_count:
            reasons = _count_reasons(excluded)
            if self.raise_on_undefined:
                raise EnrichmentUndefined(excluded_count, reasons)
            logger.warning(
                "Records excluded from enrichment",
                excluded_count=excluded_count,
                reasons=reasons,
            )

        enriched = (
            flagged
            .filter(pl.col("undefined_reason").is_null())
            .drop("undefined_reason")
            .with_columns([
                ((pl.col("total_sale") / pl.col("quantity")) / (1 - pl.col("percent_discount")))
                .alias("retail_price"),
                (pl.col("total_profit") / pl.col("quantity")).alias("profit_per_item"),
            ])
        )

        logger.info("Enrichment complete", rows=enriched.height, excluded=excluded_count)

        return EnrichmentResult(frame=enriched, excluded=excluded, excluded_count=excluded_count)


def enrich_sales(df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function returning only the enriched frame.

    Args:
        df: Cleaned sales frame

    Returns:
        Enriched DataFrame
    """
    return SalesEnricher().enrich(df).frame
