"""
Cohort Selection Module

Splits an aggregate table into top and bottom performers with a
mean ± k·std rule on one numeric field.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

ZERO_SPREAD = 1e-12


class CohortDirection(str, Enum):
    """Which tail of the distribution to select"""
    ABOVE = "above"  # F > mean + k*std
    BELOW = "below"  # F < mean - k*std


@dataclass
class CohortResult:
    """Selected rows plus the statistics that produced the threshold"""
    rows: pl.DataFrame
    field: str
    k: float
    direction: CohortDirection
    mean: Optional[float]
    std: Optional[float]
    threshold: Optional[float]
    degenerate: bool = False

    @property
    def size(self) -> int:
        return self.rows.height


class CohortSelector:
    """
    Statistical outlier cohorts over a whole table.

    The mean and sample standard deviation (ddof=1) are computed over the
    entire input table on every call. A table with zero or undefined spread
    yields an empty cohort, not an error.

    Example:
        selector = CohortSelector()
        top = selector.select(customers, "total_profit", k=2.0, direction="above")
        top.rows
    """

    def __init__(self, ddof: int = 1):
        self.ddof = ddof

    @staticmethod
    def _no_spread(mean: Optional[float], std: Optional[float]) -> bool:
        # Relative to |mean|; summing identical floats leaves noise-level std
        if std is None or mean is None or math.isnan(std):
            return True
        return std <= ZERO_SPREAD * abs(mean)

    def select(
        self,
        table: pl.DataFrame,
        field: str,
        k: float = 2.0,
        direction: str = CohortDirection.ABOVE,
    ) -> CohortResult:
        """
        Select rows beyond mean ± k·std of `field`.

        Args:
            table: Aggregate table (e.g. customer or product summary)
            field: Numeric column to compare
            k: Standard-deviation multiplier
            direction: "above" for the top cohort, "below" for the bottom

        Returns:
            CohortResult with rows in their input order
        """
        if field not in table.columns:
            raise ValueError(f"Column '{field}' not found")
        if k < 0:
            raise ValueError("k must be >= 0")
        direction = CohortDirection(direction)

        values = table[field]
        mean = values.mean()
        std = values.std(ddof=self.ddof)

        if self._no_spread(mean, std):
            logger.info(
                "Degenerate cohort: no spread in field",
                field=field,
                rows=table.height,
                direction=direction.value,
            )
            return CohortResult(
                rows=table.clear(),
                field=field,
                k=k,
                direction=direction,
                mean=mean,
                std=std,
                threshold=None,
                degenerate=True,
            )

        if direction == CohortDirection.ABOVE:
            threshold = mean + k * std
            rows = table.filter(pl.col(field) > threshold)
        else:
            threshold = mean - k * std
            rows = table.filter(pl.col(field) < threshold)

        logger.info(
            "Cohort selected",
            field=field,
            direction=direction.value,
            k=k,
            mean=mean,
            std=std,
            threshold=threshold,
            selected=rows.height,
        )

        return CohortResult(
            rows=rows,
            field=field,
            k=k,
            direction=direction,
            mean=mean,
            std=std,
            threshold=threshold,
        )

    def split(
        self,
        table: pl.DataFrame,
        field: str,
        k: float = 2.0,
    ) -> Tuple[CohortResult, CohortResult]:
        """Top and bottom cohorts with the same field and multiplier"""
        return (
            self.select(table, field, k, CohortDirection.ABOVE),
            self.select(table, field, k, CohortDirection.BELOW),
        )


def select_cohort(
    table: pl.DataFrame,
    field: str,
    k: float = 2.0,
    direction: str = "above",
) -> pl.DataFrame:
    """
    Convenience function returning only the cohort rows.
    """
    return CohortSelector().select(table, field, k, direction).rows


def split_cohorts(
    table: pl.DataFrame,
    field: str,
    k: float = 2.0,
) -> Tuple[pl.DataFrame, pl.DataFrame]:
    """
    Convenience function returning (top, bottom) rows.
    """
    top, bottom = CohortSelector().split(table, field, k)
    return top.rows, bottom.rows
