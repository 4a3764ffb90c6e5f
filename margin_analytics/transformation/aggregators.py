"""
Aggregation Module

Split-apply-combine summaries over enriched sales records.
Includes:
- Time-bucketed totals (month/year, optionally by one dimension)
- Share of each dimension within its time bucket
- Customer and product summaries
- Summary-of-summaries margin overview
- Margin by discount level
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


class TimePeriod(str, Enum):
    """Calendar periods for time bucketing"""
    MONTH = "month"
    YEAR = "year"


TRUNCATE_EVERY = {
    TimePeriod.MONTH: "1mo",
    TimePeriod.YEAR: "1y",
}

CUSTOMER_KEYS = ("customer_id",)
PRODUCT_KEYS = ("product_id", "category", "sub_category", "product_name")


@dataclass(frozen=True)
class MarginOverview:
    """
    Margin across an entity table, both ways.

    pooled_margin is a ratio of sums (Σprofit / Σspend); mean_entity_margin
    is a mean of ratios (each entity weighted equally). They are not
    interchangeable.
    """
    entity_count: int
    total_spend: float
    total_profit: float
    pooled_margin: Optional[float]
    mean_entity_margin: Optional[float]


def _ratio(numerator: str, denominator: str) -> pl.Expr:
    """numerator / denominator, null where the denominator is zero"""
    return (
        pl.when(pl.col(denominator) != 0)
        .then(pl.col(numerator) / pl.col(denominator))
        .otherwise(None)
    )


def _require(df: pl.DataFrame, columns: Sequence[str]) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns for aggregation: {missing}")


class SalesAggregator:
    """
    Grouped summaries of enriched sales records.

    Entity summaries group in first-appearance order and are then sorted
    descending by total_profit with a stable sort, so ties keep their
    relative order and reruns produce identical tables.

    Example:
        aggregator = SalesAggregator()
        monthly = aggregator.aggregate_over_time(df, period="month", by="region")
        customers = aggregator.summarize_customers(df)
    """

    def _rank(self, table: pl.DataFrame) -> pl.DataFrame:
        return table.sort("total_profit", descending=True, maintain_order=True)

    def aggregate_over_time(
        self,
        df: pl.DataFrame,
        period: str = "month",
        by: Optional[str] = None,
        date_column: str = "order_date",
    ) -> pl.DataFrame:
        """
        Sum orders, sales and profit per calendar bucket.

        Args:
            df: Enriched sales frame
            period: "month" or "year"
            by: Optional categorical dimension (region, segment, category, ...)
            date_column: Date to bucket on

        Returns:
            One row per (period_start[, by]) sorted by keys. orders counts
            distinct order_id, not line items.
        """
        period = TimePeriod(period)
        keys = ["period_start"] + ([by] if by else [])
        _require(df, [date_column, "order_id", "total_sale", "total_profit"] + ([by] if by else []))

        table = (
            df.with_columns(
                pl.col(date_column).dt.truncate(TRUNCATE_EVERY[period]).alias("period_start")
            )
            .group_by(keys, maintain_order=True)
            .agg([
                pl.col("order_id").n_unique().cast(pl.Int64).alias("orders"),
                pl.len().cast(pl.Int64).alias("line_items"),
                pl.col("total_sale").sum().alias("total_sale"),
                pl.col("total_profit").sum().alias("total_profit"),
            ])
            .sort(keys, maintain_order=True)
        )

        logger.debug("Time aggregation", period=period.value, by=by, buckets=table.height)
        return table

    def share_over_time(
        self,
        table: pl.DataFrame,
        by: str,
        value: str = "total_sale",
    ) -> pl.DataFrame:
        """
        Add each dimension's share of its bucket total.

        Args:
            table: Output of aggregate_over_time(..., by=by)
            by: Dimension the table was grouped by
            value: Summed column to take shares of

        Returns:
            Table with a `<value>_share` column; null where the bucket total is zero
        """
        _require(table, ["period_start", by, value])

        return table.with_columns(
            pl.col(value).sum().over("period_start").alias("_bucket_total")
        ).with_columns(
            _ratio(value, "_bucket_total").alias(f"{value}_share")
        ).drop("_bucket_total")

    def summarize_customers(
        self,
        df: pl.DataFrame,
        keys: Sequence[str] = CUSTOMER_KEYS,
    ) -> pl.DataFrame:
        """
        One CustomerSummary row per customer.

        profit_margin is total_profit / total_spend (ratio of sums).
        """
        keys = list(keys)
        _require(df, keys + ["order_id", "total_sale", "total_profit", "percent_discount"])

        table = (
            df.group_by(keys, maintain_order=True)
            .agg([
                pl.col("order_id").n_unique().cast(pl.Int64).alias("num_orders"),
                pl.col("percent_discount").mean().alias("avg_discount"),
                pl.col("total_sale").sum().alias("total_spend"),
                pl.col("total_profit").sum().alias("total_profit"),
            ])
            .with_columns([
                (pl.col("total_spend") / pl.col("num_orders")).alias("avg_spend_per_order"),
                (pl.col("total_profit") / pl.col("num_orders")).alias("avg_profit_per_order"),
                _ratio("total_profit", "total_spend").alias("profit_margin"),
            ])
            .select(keys + [
                "num_orders",
                "avg_spend_per_order",
                "avg_discount",
                "avg_profit_per_order",
                "total_spend",
                "total_profit",
                "profit_margin",
            ])
        )

        logger.info("Customer summary built", customers=table.height)
        return self._rank(table)

    def summarize_products(
        self,
        df: pl.DataFrame,
        keys: Sequence[str] = PRODUCT_KEYS,
    ) -> pl.DataFrame:
        """
        One ProductSummary row per product, with descriptive keys attached.

        retail_price and avg_profit_per_item are means of the line-level values.
        """
        keys = list(keys)
        _require(df, keys + ["quantity", "total_sale", "total_profit", "percent_discount",
                             "retail_price", "profit_per_item"])

        table = (
            df.group_by(keys, maintain_order=True)
            .agg([
                pl.col("retail_price").mean().alias("retail_price"),
                pl.col("quantity").sum().cast(pl.Int64).alias("total_sold"),
                pl.col("total_sale").sum().alias("total_spent"),
                pl.col("percent_discount").mean().alias("avg_discount"),
                pl.col("profit_per_item").mean().alias("avg_profit_per_item"),
                pl.col("total_profit").sum().alias("total_profit"),
            ])
        )

        logger.info("Product summary built", products=table.height)
        return self._rank(table)

    def margin_overview(
        self,
        table: pl.DataFrame,
        spend_column: Optional[str] = None,
        profit_column: str = "total_profit",
    ) -> MarginOverview:
        """
        Summarize an entity table's margins as ratio-of-sums and mean-of-ratios.

        Args:
            table: Customer or product summary
            spend_column: Defaults to total_spend, falling back to total_spent

        Returns:
            MarginOverview; margins are None when undefined
        """
        if spend_column is None:
            spend_column = "total_spend" if "total_spend" in table.columns else "total_spent"
        _require(table, [spend_column, profit_column])

        total_spend = float(table[spend_column].sum())
        total_profit = float(table[profit_column].sum())
        entity_margins = table.select(_ratio(profit_column, spend_column).alias("m"))["m"]

        return MarginOverview(
            entity_count=table.height,
            total_spend=total_spend,
            total_profit=total_profit,
            pooled_margin=total_profit / total_spend if total_spend != 0 else None,
            mean_entity_margin=entity_margins.mean() if entity_margins.drop_nulls().len() else None,
        )

    def aggregate_by_discount(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Totals and pooled margin per discount level, ascending by discount.
        """
        _require(df, ["percent_discount", "order_id", "total_sale", "total_profit"])

        return (
            df.group_by("percent_discount", maintain_order=True)
            .agg([
                pl.len().cast(pl.Int64).alias("line_items"),
                pl.col("order_id").n_unique().cast(pl.Int64).alias("orders"),
                pl.col("total_sale").sum().alias("total_sale"),
                pl.col("total_profit").sum().alias("total_profit"),
            ])
            .with_columns(_ratio("total_profit", "total_sale").alias("profit_margin"))
            .sort("percent_discount", maintain_order=True)
        )
