"""
Typed row views over pipeline tables.

The pipeline passes Polars DataFrames between stages; these frozen
dataclasses give consumers named, typed rows instead.
"""

from dataclasses import dataclass, fields
from datetime import date
from typing import List, Optional, Type, TypeVar

import polars as pl

T = TypeVar("T")


@dataclass(frozen=True)
class SalesRecord:
    """One order line item after cleaning (and optionally enrichment)"""
    order_id: str
    order_date: date
    ship_date: date
    ship_mode: str
    customer_id: str
    segment: str
    region: str
    state: str
    city: str
    postal_code: str
    product_id: str
    category: str
    sub_category: str
    product_name: str
    quantity: int
    total_sale: float
    percent_discount: float
    total_profit: float
    retail_price: Optional[float] = None
    profit_per_item: Optional[float] = None


@dataclass(frozen=True)
class CustomerSummary:
    customer_id: str
    num_orders: int
    avg_spend_per_order: float
    avg_discount: float
    avg_profit_per_order: float
    total_spend: float
    total_profit: float
    profit_margin: Optional[float]


@dataclass(frozen=True)
class ProductSummary:
    product_id: str
    category: str
    sub_category: str
    product_name: str
    retail_price: float
    total_sold: int
    total_spent: float
    avg_discount: float
    avg_profit_per_item: float
    total_profit: float


@dataclass(frozen=True)
class TimeBucket:
    """Totals for one calendar period, optionally within one dimension value"""
    period_start: date
    orders: int
    total_sale: float
    total_profit: float
    dimension: Optional[str] = None
    dimension_value: Optional[str] = None


def rows_as(model: Type[T], frame: pl.DataFrame) -> List[T]:
    """
    Convert frame rows to dataclass instances.

    Columns the model does not declare are ignored; declared fields absent
    from the frame fall back to their defaults.
    """
    names = [f.name for f in fields(model) if f.name in frame.columns]
    return [model(**row) for row in frame.select(names).iter_rows(named=True)]


def time_buckets(table: pl.DataFrame, by: Optional[str] = None) -> List[TimeBucket]:
    """Convert an aggregate_over_time table into TimeBucket rows"""
    buckets = []
    for row in table.iter_rows(named=True):
        buckets.append(TimeBucket(
            period_start=row["period_start"],
            orders=row["orders"],
            total_sale=row["total_sale"],
            total_profit=row["total_profit"],
            dimension=by,
            dimension_value=row[by] if by else None,
        ))
    return buckets
