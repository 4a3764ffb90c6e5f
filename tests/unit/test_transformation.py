"""
Unit Tests - Cleaning and Enrichment
"""
import pytest
import polars as pl

from margin_analytics.errors import EnrichmentUndefined, MissingValueDetected
from margin_analytics.ingestion import load_sales
from margin_analytics.transformation.cleaners import SalesCleaner, clean_sales, normalize_label
from margin_analytics.transformation.enrichers import SalesEnricher, enrich_sales

CLEANED_COLUMNS = [
    "order_id", "order_date", "ship_date", "ship_mode", "customer_id", "segment",
    "city", "state", "postal_code", "region", "product_id", "category",
    "sub_category", "product_name", "total_sale", "quantity", "percent_discount",
    "total_profit",
]


class TestNormalizeLabel:
    """Tests for field name normalization"""

    @pytest.mark.parametrize("label,expected", [
        ("Order Date", "order_date"),
        ("Postal Code", "postal_code"),
        ("Row ID", "row_id"),
        ("Quantity", "quantity"),
        ("Sub-Category", "sub_category"),
        ("Sales", "total_sale"),
        ("Profit", "total_profit"),
        ("Discount", "percent_discount"),
        ("order_date", "order_date"),
    ])
    def test_normalize(self, label, expected):
        assert normalize_label(label) == expected

    def test_custom_overrides(self):
        assert normalize_label("Sales", overrides={}) == "sales"


class TestSalesCleaner:
    """Tests for SalesCleaner"""

    def test_scenario_cleaning(self, scenario_csv):
        """Four loaded lines with one exact duplicate clean to three"""
        cleaned, stats = SalesCleaner().clean(load_sales(scenario_csv))

        assert cleaned.height == 3
        assert stats.total_rows == 4
        assert stats.duplicates_removed == 1
        assert stats.columns_dropped == ["Row ID", "Customer Name", "Country"]
        assert stats.missing_values == 0

    def test_cleaned_columns(self, scenario_csv):
        cleaned, stats = SalesCleaner().clean(load_sales(scenario_csv))

        assert cleaned.columns == CLEANED_COLUMNS
        assert stats.columns_renamed == len(CLEANED_COLUMNS)

    def test_duplicates_keep_first_occurrence_order(self, scenario_csv):
        cleaned = clean_sales(load_sales(scenario_csv))

        assert cleaned["product_id"].to_list() == [
            "FUR-BO-10001798",
            "FUR-CH-10000454",
            "OFF-LA-10000240",
        ]

    def test_rows_differing_in_one_field_are_kept(self, make_records):
        df = make_records({"total_profit": 2.0}, {"total_profit": 2.5}, {"total_profit": 2.0})

        cleaned, stats = SalesCleaner().clean(df)

        assert cleaned["total_profit"].to_list() == [2.0, 2.5]
        assert stats.duplicates_removed == 1

    def test_text_repair(self, make_records):
        df = make_records(
            {"product_name": "Bush\ufffdSomerset Bookcase"},
            {"order_id": "O-2", "product_name": "Averyï¿½ï¿½Binder"},
            {"order_id": "O-3", "product_name": "Plain Name"},
        )

        cleaned, stats = SalesCleaner().clean(df)

        assert cleaned["product_name"].to_list() == [
            "Bush Somerset Bookcase",
            "Avery Binder",
            "Plain Name",
        ]
        assert stats.text_repairs == 2

    def test_text_repair_leaves_other_columns(self, make_records):
        df = make_records({"city": "San\ufffdJose"})

        cleaned = clean_sales(df)

        assert cleaned["city"][0] == "San\ufffdJose"

    def test_idempotent(self, scenario_csv):
        """A second pass changes nothing"""
        cleaner = SalesCleaner()
        once, _ = cleaner.clean(load_sales(scenario_csv))
        twice, stats = cleaner.clean(once)

        assert once.equals(twice)
        assert stats.duplicates_removed == 0
        assert stats.columns_dropped == []
        assert stats.columns_renamed == 0

    def test_rows_equal_after_repair_are_deduplicated(self, make_records):
        df = make_records(
            {"product_name": "Bush\ufffdBookcase"},
            {"product_name": "Bush Bookcase"},
            {"product_name": "Bush\ufffd\ufffdBookcase"},
        )
        cleaner = SalesCleaner()

        once, stats = cleaner.clean(df)
        twice, second = cleaner.clean(once)

        assert once["product_name"].to_list() == ["Bush Bookcase"]
        assert once.height == once.unique().height
        assert stats.duplicates_removed == 2
        assert stats.text_repairs == 2
        assert once.equals(twice)
        assert second.duplicates_removed == 0
        assert second.text_repairs == 0

    def test_missing_value_detected(self, write_sales_csv, scenario_rows):
        scenario_rows[0][7] = ""
        scenario_rows[1][12] = ""
        df = load_sales(write_sales_csv(scenario_rows))

        with pytest.raises(MissingValueDetected) as exc_info:
            SalesCleaner().clean(df)

        assert exc_info.value.null_counts == {"segment": 1, "region": 1}
        assert exc_info.value.total_nulls == 2

    def test_nulls_in_dropped_columns_are_ignored(self, write_sales_csv, scenario_rows):
        scenario_rows[0][6] = ""
        df = load_sales(write_sales_csv(scenario_rows))

        cleaned = clean_sales(df)

        assert cleaned.height == 3


class TestSalesEnricher:
    """Tests for SalesEnricher"""

    def test_derived_fields(self, make_records):
        df = make_records({"quantity": 2, "total_sale": 100.0, "percent_discount": 0.5, "total_profit": 30.0})

        enriched = enrich_sales(df)

        assert enriched["retail_price"][0] == pytest.approx(100.0)
        assert enriched["profit_per_item"][0] == pytest.approx(15.0)

    def test_round_trip_to_total_sale(self, sales_records):
        enriched = enrich_sales(sales_records)

        rebuilt = enriched.select(
            pl.col("retail_price") * pl.col("quantity") * (1 - pl.col("percent_discount"))
        ).to_series()

        for value, expected in zip(rebuilt.to_list(), enriched["total_sale"].to_list()):
            assert value == pytest.approx(expected)

    def test_preserves_columns_and_order(self, sales_records):
        enriched = enrich_sales(sales_records)

        assert enriched.columns == sales_records.columns + ["retail_price", "profit_per_item"]
        assert enriched["order_id"].to_list() == sales_records["order_id"].to_list()

    def test_undefined_records_are_excluded(self, make_records):
        df = make_records(
            {"order_id": "O-1", "quantity": 0},
            {"order_id": "O-2", "percent_discount": 1.0},
            {"order_id": "O-3"},
        )

        result = SalesEnricher().enrich(df)

        assert result.frame["order_id"].to_list() == ["O-3"]
        assert result.excluded_count == 2
        assert result.excluded["undefined_reason"].to_list() == ["zero_quantity", "full_discount"]
        assert result.reasons == {"zero_quantity": 1, "full_discount": 1}
        assert result.frame["retail_price"].is_finite().all()

    def test_out_of_range_records_are_excluded(self, make_records):
        df = make_records(
            {"order_id": "O-1", "quantity": -2, "total_sale": 100.0},
            {"order_id": "O-2", "percent_discount": 1.5, "total_sale": 10.0},
            {"order_id": "O-3", "percent_discount": -0.1},
            {"order_id": "O-4", "quantity": 2, "percent_discount": 0.9},
        )

        result = SalesEnricher().enrich(df)

        assert result.frame["order_id"].to_list() == ["O-4"]
        assert result.excluded["undefined_reason"].to_list() == [
            "invalid_quantity", "invalid_discount", "invalid_discount",
        ]
        assert result.reasons == {"invalid_quantity": 1, "invalid_discount": 2}
        assert (result.frame["retail_price"] > 0).all()

    def test_raise_on_undefined(self, make_records):
        df = make_records({"quantity": 0})

        with pytest.raises(EnrichmentUndefined) as exc_info:
            SalesEnricher(raise_on_undefined=True).enrich(df)

        assert exc_info.value.undefined_count == 1
        assert exc_info.value.reasons == {"zero_quantity": 1}

    def test_nothing_excluded(self, sales_records):
        result = SalesEnricher().enrich(sales_records)

        assert result.excluded_count == 0
        assert result.reasons == {}

    def test_re_enrichment_is_stable(self, enriched_records):
        again = enrich_sales(enriched_records)

        assert again.equals(enriched_records)
