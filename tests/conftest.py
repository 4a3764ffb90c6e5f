"""
Test Suite Configuration
"""
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
import polars as pl

from margin_analytics.config import Settings
from margin_analytics.ingestion.schema import SUPERSTORE_SCHEMA

HEADER = SUPERSTORE_SCHEMA.labels

# Three distinct lines of one order plus an exact duplicate of the third
# (only Row ID differs, and Row ID is pruned before deduplication)
SCENARIO_ROWS = [
    ["1", "CA-2016-152156", "08/11/2016", "11/11/2016", "Second Class", "CG-12520", "Claire Gute",
     "Consumer", "United States", "Henderson", "Kentucky", "42420", "South", "FUR-BO-10001798",
     "Furniture", "Bookcases", "Bush Somerset Collection Bookcase", "261.96", "2", "0", "41.9136"],
    ["2", "CA-2016-152156", "08/11/2016", "11/11/2016", "Second Class", "CG-12520", "Claire Gute",
     "Consumer", "United States", "Henderson", "Kentucky", "42420", "South", "FUR-CH-10000454",
     "Furniture", "Chairs", "Hon Deluxe Fabric Upholstered Stacking Chairs", "731.94", "3", "0", "219.582"],
    ["3", "CA-2016-152156", "08/11/2016", "11/11/2016", "Second Class", "CG-12520", "Claire Gute",
     "Consumer", "United States", "Henderson", "Kentucky", "42420", "South", "OFF-LA-10000240",
     "Office Supplies", "Labels", "Self-Adhesive Address Labels for Typewriters by Universal",
     "14.62", "2", "0", "6.8714"],
    ["4", "CA-2016-152156", "08/11/2016", "11/11/2016", "Second Class", "CG-12520", "Claire Gute",
     "Consumer", "United States", "Henderson", "Kentucky", "42420", "South", "OFF-LA-10000240",
     "Office Supplies", "Labels", "Self-Adhesive Address Labels for Typewriters by Universal",
     "14.62", "2", "0", "6.8714"],
]


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(APP_ENV="testing", DEBUG=True)


@pytest.fixture
def scenario_rows() -> List[List[str]]:
    return [list(row) for row in SCENARIO_ROWS]


@pytest.fixture
def write_sales_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write rows of strings (or raw bytes lines) to a CSV under tmp_path"""
    def write(
        rows: List[List[str]],
        header: Optional[List[str]] = None,
        name: str = "sales.csv",
        extra_lines: Optional[List[bytes]] = None,
    ) -> Path:
        path = tmp_path / name
        lines = [",".join(header or HEADER).encode("utf-8")]
        lines += [",".join(row).encode("utf-8") for row in rows]
        lines += extra_lines or []
        path.write_bytes(b"\n".join(lines) + b"\n")
        return path

    return write


@pytest.fixture
def scenario_csv(write_sales_csv, scenario_rows) -> Path:
    return write_sales_csv(scenario_rows)


def _record(**overrides) -> Dict[str, object]:
    record = {
        "order_id": "CA-2016-000001",
        "order_date": date(2016, 1, 15),
        "ship_date": date(2016, 1, 18),
        "ship_mode": "Standard Class",
        "customer_id": "AA-10000",
        "segment": "Consumer",
        "region": "West",
        "state": "California",
        "city": "Los Angeles",
        "postal_code": "90036",
        "product_id": "OFF-PA-10000001",
        "category": "Office Supplies",
        "sub_category": "Paper",
        "product_name": "Xerox 1967",
        "quantity": 1,
        "total_sale": 10.0,
        "percent_discount": 0.0,
        "total_profit": 2.0,
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_records() -> Callable[..., pl.DataFrame]:
    """Build a cleaned (normalized-name) frame from per-record overrides"""
    def make(*overrides: Dict[str, object]) -> pl.DataFrame:
        return pl.DataFrame(
            [_record(**o) for o in overrides],
            schema_overrides={"quantity": pl.Int64, "total_sale": pl.Float64,
                              "percent_discount": pl.Float64, "total_profit": pl.Float64},
        )

    return make


@pytest.fixture
def sales_records(make_records) -> pl.DataFrame:
    """Cleaned records: two customers, three products, two months, two years"""
    return make_records(
        {"order_id": "O-1", "customer_id": "AA-10000", "product_id": "P-1", "product_name": "Xerox 1967",
         "order_date": date(2016, 1, 5), "quantity": 2, "total_sale": 100.0,
         "percent_discount": 0.0, "total_profit": 40.0, "region": "West"},
        {"order_id": "O-1", "customer_id": "AA-10000", "product_id": "P-2", "product_name": "Stapler",
         "order_date": date(2016, 1, 5), "quantity": 1, "total_sale": 50.0,
         "percent_discount": 0.2, "total_profit": 10.0, "region": "West"},
        {"order_id": "O-2", "customer_id": "AA-10000", "product_id": "P-1", "product_name": "Xerox 1967",
         "order_date": date(2016, 2, 20), "quantity": 4, "total_sale": 200.0,
         "percent_discount": 0.0, "total_profit": 50.0, "region": "West"},
        {"order_id": "O-3", "customer_id": "BB-20000", "product_id": "P-3", "product_name": "Chair",
         "category": "Furniture", "sub_category": "Chairs",
         "order_date": date(2017, 2, 1), "quantity": 3, "total_sale": 300.0,
         "percent_discount": 0.5, "total_profit": -60.0, "region": "East"},
    )


@pytest.fixture
def enriched_records(sales_records) -> pl.DataFrame:
    from margin_analytics.transformation.enrichers import SalesEnricher
    return SalesEnricher().enrich(sales_records).frame
