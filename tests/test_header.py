"""Tests for header row localization."""

import pytest

from salesmapper.detection.header import (
    HeaderRowLocator,
    _serialize_rows,
    calculate_header_score,
    parse_float_prefix,
)
from salesmapper.detection.rows import extract_data_rows, is_likely_summary_row

from conftest import FakeHeaderOracle


def _score(values, row_index=0, rows=None):
    rows = rows or [dict(zip("ABCDE", values))]
    return calculate_header_score(values, rows, row_index)


class TestParseFloatPrefix:
    """Tests for leading-number parsing."""

    def test_parses_plain_and_prefixed_numbers(self):
        assert parse_float_prefix("150.50") == 150.5
        assert parse_float_prefix("12 cases") == 12.0
        assert parse_float_prefix("01/05/2024") == 1.0

    def test_rejects_text(self):
        assert parse_float_prefix("Acme") is None
        assert parse_float_prefix("") is None


class TestCalculateHeaderScore:
    """Tests for the rule-based header score."""

    def test_scenario_a_header_outscores_data_row(self, scenario_a_rows):
        header_score = calculate_header_score(list(scenario_a_rows[0].values()), scenario_a_rows, 0)
        data_score = calculate_header_score(list(scenario_a_rows[1].values()), scenario_a_rows, 1)

        assert header_score == 230
        assert data_score == 80

    def test_full_date_penalizes_row(self):
        rows = [{"A": "01/15/2024", "B": "Acme", "C": "Vodka"}]
        assert calculate_header_score(list(rows[0].values()), rows, 0) < 0

    def test_metadata_prefix_penalized(self):
        rows = [{"A": "By: Account", "B": None}]
        # 10 non-empty, -200 prefix, -150 pair, -50 sparse
        assert calculate_header_score(list(rows[0].values()), rows, 0) == -390

    def test_period_columns_bonus(self):
        values = ["Account", "01/2024", "02/2024", "03/2024", "04/2024", "05/2024"]
        rows = [dict(zip("ABCDEF", values))]
        score = calculate_header_score(values, rows, 0)
        # 60 cells + 50 keyword + 150 periods + 200 bonus - 100 numeric + 40 short text
        assert score == 400

    def test_two_decimal_amounts_penalized(self):
        # 50 cells - 150 decimals + 40 short text
        assert _score(["Acme", "Vodka", "Gin", "12.50", "30.25"]) == -60
        assert _score(["Acme", "Vodka", "Gin", "12.50", "30"]) == 90

    def test_mostly_numeric_row_penalized(self):
        # 50 cells - 4 numeric cells * 20 + 40 short text
        assert _score(["1", "2", "3", "4", "Acme"]) == 10

    def test_section_keyword_in_short_row(self):
        assert _score(["Inventory", "Acme", "Gin"]) == -70
        assert _score(["Vendor", "Acme", "Gin"]) == 30

    def test_sparse_previous_row_bonus(self):
        sparse = [{"A": "Report", "B": None, "C": None}, {"A": "Acme", "B": "Gin", "C": "Rum"}]
        full = [{"A": "x", "B": "y", "C": "z"}, {"A": "Acme", "B": "Gin", "C": "Rum"}]

        assert _score(["Acme", "Gin", "Rum"], 1, sparse) == 60
        assert _score(["Acme", "Gin", "Rum"], 1, full) == 30

    def test_underscore_bonus(self):
        assert _score(["ship_2", "Acme", "Gin"]) == 45
        assert _score(["ship2", "Acme", "Gin"]) == 30

    def test_value_pattern_variety_bonus(self):
        # text, number and empty cells
        assert _score(["Acme", "12", None, "Gin"]) == 55
        assert _score(["Acme", "12", "Gin"]) == 30

    def test_short_text_bonus(self):
        long_text = "Premium reserve single malt whisky"
        assert _score(["Acme", "Gin", "Rum", "Vodka"]) == 80
        assert _score(["Acme", "Gin", long_text, long_text]) == 40


class TestSerializeRows:
    """Tests for the oracle row payload."""

    def test_truncates_long_values_and_keeps_nulls(self):
        rows = [{"A": "x" * 60, "B": None, "C": 12}]
        serialized = _serialize_rows(rows, 15)

        assert serialized == [{"rowIndex": 0, "values": ["x" * 50 + "...", None, "12"]}]

    def test_limits_row_count(self):
        rows = [{"A": str(i)} for i in range(20)]
        assert len(_serialize_rows(rows, 15)) == 15


class TestHeaderRowLocatorRules:
    """Tests for rule-based header detection."""

    @pytest.mark.asyncio
    async def test_empty_rows(self):
        detection = await HeaderRowLocator().locate([])

        assert detection.index == 0
        assert detection.columns == []
        assert detection.confidence == 0

    @pytest.mark.asyncio
    async def test_scenario_a(self, scenario_a_rows):
        detection = await HeaderRowLocator().locate(scenario_a_rows)

        assert detection.index == 0
        assert detection.columns == ["Order Date", "Account", "Product", "Qty"]
        assert detection.column_indices == [0, 1, 2, 3]
        assert detection.column_keys == ["A", "B", "C", "D"]
        assert detection.confidence == 60

    @pytest.mark.asyncio
    async def test_skips_title_and_metadata_rows(self, report_rows):
        detection = await HeaderRowLocator().locate(report_rows)

        assert detection.index == 3
        assert detection.columns == ["Customer_Name", "Product_Name", "Cases", "Amount"]

    @pytest.mark.asyncio
    async def test_skips_blank_header_cells(self):
        rows = [
            {"A": "Customer", "B": None, "C": "Product", "D": "", "E": "Quantity"},
            {"A": "Acme", "B": None, "C": "Vodka", "D": None, "E": "3"},
        ]
        detection = await HeaderRowLocator().locate(rows)

        assert detection.columns == ["Customer", "Product", "Quantity"]
        assert detection.column_indices == [0, 2, 4]
        assert detection.column_keys == ["A", "C", "E"]

    @pytest.mark.asyncio
    async def test_falls_back_to_keys_for_empty_header_row(self):
        rows = [{"Account": None, "Product": ""}]
        detection = await HeaderRowLocator().locate(rows)

        assert detection.index == 0
        assert detection.columns == ["Account", "Product"]
        assert detection.confidence == 50

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rows",
        [
            [{"A": None}],
            [{"A": "1.5", "B": "2.5"}, {"A": "3.5", "B": "4.5"}],
            [{"A": f"row {i}", "B": str(i)} for i in range(30)],
        ],
    )
    async def test_index_and_confidence_in_range(self, rows):
        detection = await HeaderRowLocator().locate(rows)

        assert 0 <= detection.index < len(rows)
        assert 0 <= detection.confidence <= 100


class TestHeaderRowLocatorOracle:
    """Tests for oracle-assisted header detection."""

    @pytest.mark.asyncio
    async def test_accepts_confident_oracle_answer(self, report_rows):
        oracle = FakeHeaderOracle(
            {
                "headerRowIndex": 3,
                "columnNames": ["Customer_Name", "Amount"],
                "columnIndices": [0, 3],
                "confidence": 92,
                "reasoning": "Row 3 holds field names",
            }
        )
        detection = await HeaderRowLocator(oracle=oracle).locate(report_rows)

        assert detection.index == 3
        assert detection.columns == ["Customer_Name", "Amount"]
        assert detection.column_indices == [0, 3]
        assert detection.column_keys == ["A", "D"]
        assert detection.confidence == 92
        assert len(oracle.requests[0]) == len(report_rows)

    @pytest.mark.asyncio
    async def test_low_confidence_falls_back_to_rules(self, scenario_a_rows):
        oracle = FakeHeaderOracle(
            {
                "headerRowIndex": 1,
                "columnNames": ["2024-01-05"],
                "columnIndices": [0],
                "confidence": 69,
            }
        )
        detection = await HeaderRowLocator(oracle=oracle).locate(scenario_a_rows)

        assert detection.index == 0
        assert detection.confidence == 60

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            None,
            {"headerRowIndex": "0", "columnNames": [], "columnIndices": [], "confidence": 90},
            {"headerRowIndex": 0, "columnNames": "Account", "columnIndices": [], "confidence": 90},
            {"headerRowIndex": 0, "columnNames": [], "columnIndices": [0]},
            {"headerRowIndex": 7, "columnNames": ["A"], "columnIndices": [0], "confidence": 90},
            {"headerRowIndex": 0, "columnNames": ["A"], "columnIndices": [0], "confidence": True},
        ],
    )
    async def test_malformed_oracle_answer_falls_back_to_rules(self, scenario_a_rows, response):
        detection = await HeaderRowLocator(oracle=FakeHeaderOracle(response)).locate(
            scenario_a_rows
        )

        assert detection.index == 0
        assert detection.columns == ["Order Date", "Account", "Product", "Qty"]
        assert detection.confidence == 60

    @pytest.mark.asyncio
    async def test_oracle_error_falls_back_to_rules(self, scenario_a_rows, failing_oracle_error):
        oracle = FakeHeaderOracle(error=failing_oracle_error)
        detection = await HeaderRowLocator(oracle=oracle).locate(scenario_a_rows)

        assert detection.index == 0
        assert detection.confidence == 60


class TestDataRows:
    """Tests for slicing data rows below the header."""

    def test_summary_row_detection(self):
        assert is_likely_summary_row({"A": "Grand Total", "B": "100"})
        assert is_likely_summary_row({"A": None, "B": "subtotal"})
        assert not is_likely_summary_row({"A": "Acme Bar", "B": "Total Wine"})
        assert not is_likely_summary_row({"A": 12, "B": "Total"})

    @pytest.mark.asyncio
    async def test_extract_drops_empty_and_summary_rows(self, report_rows):
        header = await HeaderRowLocator().locate(report_rows)
        data_rows = extract_data_rows(report_rows + [{"A": None, "B": "", "C": None, "D": None}], header)

        assert data_rows == [
            {"Customer_Name": "Acme Bar", "Product_Name": "Vodka 750mL", "Cases": "12", "Amount": "150.50"},
            {"Customer_Name": "Corner Store", "Product_Name": "Gin 1L", "Cases": "4", "Amount": "88.00"},
        ]
