"""
Sales Pipeline

Orchestrator that runs loading, cleaning, enrichment, aggregation and
cohort selection in order and returns every table in one result.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import polars as pl
import structlog

from margin_analytics.config import get_settings
from margin_analytics.ingestion import LoadResult, SalesFileConfig, SalesLoader
from margin_analytics.quality.validators import ValidationResult, create_cleaned_sales_validator
from .aggregators import MarginOverview, SalesAggregator
from .cleaners import CleaningStats, SalesCleaner
from .cohorts import CohortResult, CohortSelector
from .enrichers import SalesEnricher

logger = structlog.get_logger(__name__)
settings = get_settings()


@dataclass
class PipelineResult:
    """Every table produced by one pipeline run"""
    records: pl.DataFrame
    cleaning: CleaningStats
    validation: ValidationResult
    enriched: pl.DataFrame
    excluded: pl.DataFrame
    customers: pl.DataFrame
    products: pl.DataFrame
    monthly: pl.DataFrame
    yearly: pl.DataFrame
    monthly_by: Dict[str, pl.DataFrame]
    discount_bands: pl.DataFrame
    customer_margins: MarginOverview
    product_margins: MarginOverview
    cohorts: Dict[str, CohortResult]
    load: Optional[LoadResult] = None
    duration_seconds: float = 0
    errors: List[str] = field(default_factory=list)

    @property
    def excluded_count(self) -> int:
        return self.excluded.height

    @property
    def top_customers(self) -> pl.DataFrame:
        return self.cohorts["top_customers"].rows

    @property
    def bottom_customers(self) -> pl.DataFrame:
        return self.cohorts["bottom_customers"].rows

    @property
    def top_products(self) -> pl.DataFrame:
        return self.cohorts["top_products"].rows

    @property
    def bottom_products(self) -> pl.DataFrame:
        return self.cohorts["bottom_products"].rows


class SalesPipeline:
    """
    End-to-end batch pipeline over one raw sales file.

    Pipeline:
    1. Load with the declared schema
    2. Clean and audit
    3. Validate cleaned records
    4. Enrich (undefined records isolated and counted)
    5. Aggregate by time, customer, product and discount
    6. Select top/bottom customer and product cohorts

    Example:
        pipeline = SalesPipeline()
        result = pipeline.run("data/raw/superstore.csv")
        result.top_customers
    """

    def __init__(
        self,
        cohort_field: Optional[str] = None,
        customer_k: Optional[float] = None,
        product_k: Optional[float] = None,
        time_dimensions: Optional[Sequence[str]] = None,
    ):
        analysis = settings.analysis
        self.cohort_field = cohort_field or analysis.cohort_field
        self.customer_k = customer_k if customer_k is not None else analysis.customer_cohort_k
        self.product_k = product_k if product_k is not None else analysis.product_cohort_k
        self.time_dimensions = list(
            time_dimensions if time_dimensions is not None else analysis.time_dimensions
        )

        self.loader = SalesLoader()
        self.cleaner = SalesCleaner()
        self.enricher = SalesEnricher()
        self.aggregator = SalesAggregator()
        self.selector = CohortSelector()

    def run(self, file_path: Optional[Union[str, Path]] = None, **load_options) -> PipelineResult:
        """
        Load a raw sales file and run every downstream stage.

        Args:
            file_path: CSV path; defaults to the configured source path
            **load_options: Additional SalesFileConfig parameters

        Returns:
            PipelineResult
        """
        config = SalesFileConfig(
            file_path=file_path or settings.ingestion.source_path,
            **load_options,
        )
        raw, load_result = self.loader.load(config)
        return self.transform(raw, load=load_result)

    def transform(self, raw: pl.DataFrame, load: Optional[LoadResult] = None) -> PipelineResult:
        """
        Run cleaning through cohort selection on an already loaded frame.

        Args:
            raw: Typed frame from SalesLoader
            load: Audit of the load that produced it, if any

        Returns:
            PipelineResult
        """
        started_at = datetime.now(timezone.utc)
        logger.info("Starting sales pipeline", input_rows=raw.height)

        records, cleaning = self.cleaner.clean(raw)
        validation = create_cleaned_sales_validator().validate(records)

        enrichment = self.enricher.enrich(records)
        enriched = enrichment.frame

        customers = self.aggregator.summarize_customers(enriched)
        products = self.aggregator.summarize_products(enriched)

        monthly_by = {
            dimension: self.aggregator.aggregate_over_time(enriched, period="month", by=dimension)
            for dimension in self.time_dimensions
            if dimension in enriched.columns
        }

        top_customers, bottom_customers = self.selector.split(customers, self.cohort_field, self.customer_k)
        top_products, bottom_products = self.selector.split(products, self.cohort_field, self.product_k)

        completed_at = datetime.now(timezone.utc)

        result = PipelineResult(
            records=records,
            cleaning=cleaning,
            validation=validation,
            enriched=enriched,
            excluded=enrichment.excluded,
            customers=customers,
            products=products,
            monthly=self.aggregator.aggregate_over_time(enriched, period="month"),
            yearly=self.aggregator.aggregate_over_time(enriched, period="year"),
            monthly_by=monthly_by,
            discount_bands=self.aggregator.aggregate_by_discount(enriched),
            customer_margins=self.aggregator.margin_overview(customers),
            product_margins=self.aggregator.margin_overview(products),
            cohorts={
                "top_customers": top_customers,
                "bottom_customers": bottom_customers,
                "top_products": top_products,
                "bottom_products": bottom_products,
            },
            load=load,
            duration_seconds=(completed_at - started_at).total_seconds(),
            errors=[c.message for c in validation.checks if not c.passed],
        )

        logger.info(
            "Sales pipeline complete",
            records=records.height,
            excluded=result.excluded_count,
            customers=customers.height,
            products=products.height,
            top_customers=top_customers.size,
            bottom_customers=bottom_customers.size,
            top_products=top_products.size,
            bottom_products=bottom_products.size,
            duration_seconds=result.duration_seconds,
        )

        return result


def run_pipeline(file_path: Optional[Union[str, Path]] = None) -> PipelineResult:
    """
    Convenience function running the pipeline with configured defaults.
    """
    return SalesPipeline().run(file_path)
