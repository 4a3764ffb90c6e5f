"""
Data Transformation Module
"""
from .cleaners import SalesCleaner, CleaningStats, clean_sales, normalize_label
from .enrichers import SalesEnricher, EnrichmentResult, enrich_sales
from .aggregators import SalesAggregator, MarginOverview, TimePeriod
from .cohorts import CohortSelector, CohortResult, CohortDirection, select_cohort, split_cohorts
from .transformers import SalesPipeline, PipelineResult, run_pipeline

__all__ = [
    "SalesCleaner",
    "CleaningStats",
    "clean_sales",
    "normalize_label",
    "SalesEnricher",
    "EnrichmentResult",
    "enrich_sales",
    "SalesAggregator",
    "MarginOverview",
    "TimePeriod",
    "CohortSelector",
    "CohortResult",
    "CohortDirection",
    "select_cohort",
    "split_cohorts",
    "SalesPipeline",
    "PipelineResult",
    "run_pipeline",
]
