"""
Unit Tests - Cohort Selection
"""
import pytest
import polars as pl

from margin_analytics.transformation.cohorts import (
    CohortDirection,
    CohortSelector,
    select_cohort,
    split_cohorts,
)


@pytest.fixture
def profits():
    return pl.DataFrame({
        "customer_id": ["A", "B", "C", "D", "E"],
        "total_profit": [1.0, 1.0, 1.0, 1.0, 100.0],
    })


class TestCohortSelector:
    """Tests for CohortSelector"""

    def test_single_outlier(self, profits):
        top, bottom = CohortSelector().split(profits, "total_profit", k=1.0)

        assert top.rows["customer_id"].to_list() == ["E"]
        assert bottom.size == 0
        assert top.mean == pytest.approx(20.8)
        assert top.std == pytest.approx(44.2741, rel=1e-4)
        assert top.threshold == pytest.approx(20.8 + 44.2741, rel=1e-4)
        assert not top.degenerate

    def test_sample_standard_deviation(self, profits):
        """ddof=1; with ddof=0 the same data would give 39.6"""
        result = CohortSelector().select(profits, "total_profit", k=0.0)

        assert result.std == pytest.approx(44.2741, rel=1e-4)

    def test_rows_keep_input_order(self):
        table = pl.DataFrame({
            "product_id": ["P1", "P2", "P3", "P4", "P5", "P6"],
            "total_profit": [500.0, -300.0, 0.0, 450.0, -250.0, 10.0],
        })

        top, bottom = CohortSelector().split(table, "total_profit", k=0.5)

        assert top.rows["product_id"].to_list() == ["P1", "P4"]
        assert bottom.rows["product_id"].to_list() == ["P2", "P5"]

    def test_cohorts_are_disjoint(self):
        table = pl.DataFrame({"total_profit": [float(v) for v in range(-20, 21)]})

        top, bottom = CohortSelector().split(table, "total_profit", k=0.0)

        assert top.size + bottom.size == 40
        assert set(top.rows["total_profit"]).isdisjoint(set(bottom.rows["total_profit"]))

    def test_strict_comparison(self):
        """Rows exactly on the threshold are not selected"""
        table = pl.DataFrame({"total_profit": [-1.0, 1.0]})

        result = CohortSelector().select(table, "total_profit", k=0.0)

        assert result.threshold == pytest.approx(0.0)
        assert result.rows["total_profit"].to_list() == [1.0]

    def test_zero_variance_is_degenerate(self):
        table = pl.DataFrame({"customer_id": ["A", "B", "C"], "total_profit": [7.5, 7.5, 7.5]})

        top, bottom = CohortSelector().split(table, "total_profit", k=2.0)

        for result in (top, bottom):
            assert result.degenerate
            assert result.size == 0
            assert result.threshold is None
            assert result.rows.columns == table.columns

    def test_small_magnitude_values_keep_their_spread(self):
        table = pl.DataFrame({"profit_margin": [1e-13, 1e-13, 1e-13, 1e-13, 5e-13]})

        top = CohortSelector().select(table, "profit_margin", k=1.0)

        assert not top.degenerate
        assert top.rows["profit_margin"].to_list() == [5e-13]

    def test_float_noise_is_degenerate(self):
        table = pl.DataFrame({"total_profit": [0.1 + 0.2, 0.3, 0.1 + 0.2]})

        result = CohortSelector().select(table, "total_profit")

        assert result.degenerate

    def test_single_row_is_degenerate(self):
        table = pl.DataFrame({"total_profit": [42.0]})

        result = CohortSelector().select(table, "total_profit")

        assert result.degenerate
        assert result.threshold is None

    def test_empty_table_is_degenerate(self):
        table = pl.DataFrame({"total_profit": []}, schema={"total_profit": pl.Float64})

        result = CohortSelector().select(table, "total_profit")

        assert result.degenerate
        assert result.size == 0

    def test_threshold_recomputed_per_call(self, profits):
        selector = CohortSelector()
        before = selector.select(profits, "total_profit", k=1.0)
        smaller = profits.filter(pl.col("customer_id") != "E")
        after = selector.select(smaller, "total_profit", k=1.0)

        assert before.size == 1
        assert after.degenerate

    def test_integer_field(self):
        table = pl.DataFrame({"num_orders": [1, 1, 2, 1, 30]})

        result = CohortSelector().select(table, "num_orders", k=1.0)

        assert result.rows["num_orders"].to_list() == [30]

    def test_direction_enum(self, profits):
        result = CohortSelector().select(profits, "total_profit", k=1.0, direction=CohortDirection.BELOW)

        assert result.direction == CohortDirection.BELOW

    def test_unknown_field(self, profits):
        with pytest.raises(ValueError, match="not found"):
            CohortSelector().select(profits, "margin")

    def test_negative_k(self, profits):
        with pytest.raises(ValueError, match="k must be"):
            CohortSelector().select(profits, "total_profit", k=-1.0)

    def test_unknown_direction(self, profits):
        with pytest.raises(ValueError):
            CohortSelector().select(profits, "total_profit", direction="sideways")


class TestConvenienceFunctions:
    """Tests for select_cohort and split_cohorts"""

    def test_select_cohort(self, profits):
        rows = select_cohort(profits, "total_profit", k=1.0)

        assert rows["customer_id"].to_list() == ["E"]

    def test_split_cohorts(self, profits):
        top, bottom = split_cohorts(profits, "total_profit", k=1.0)

        assert top.height == 1
        assert bottom.height == 0
