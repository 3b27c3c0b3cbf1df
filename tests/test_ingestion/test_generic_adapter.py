"""Tests for the generic CSV adapter and the parse_csv entry point."""

from pathlib import Path

import pytest

from cryptobasis.ingestion.parser import parse_csv, parse_csv_file
from cryptobasis.models.enums import ExchangeFormat


class TestGenericAdapter:
    def test_buy_and_sell_rows(self, generic_csv: str):
        parsed = parse_csv(generic_csv)
        assert parsed.format == ExchangeFormat.GENERIC
        assert len(parsed.lots) == 2
        assert parsed.lots[0].qty == 2.0
        assert parsed.lots[0].notes == "first"
        assert parsed.lots[1].qty == -1.0
        assert parsed.lots[1].notes is None
        assert parsed.symbol == "ETH"
        assert parsed.token_id == "eth"

    def test_column_aliases(self):
        text = "Timestamp,Side,Asset,Amount,Unit_Price,Memo\n01/15/2024,Buy,sol,10,95,x\n"
        parsed = parse_csv(text)
        lot = parsed.lots[0]
        assert lot.date == "2024-01-15"
        assert lot.qty == 10.0
        assert lot.price_per_unit == 95.0
        assert parsed.symbol == "SOL"

    def test_sign_kept_without_indicator(self):
        parsed = parse_csv("date,qty,price\n2024-01-01,-0.5,100\n")
        assert parsed.lots[0].qty == -0.5

    def test_indicator_overrides_sign(self):
        parsed = parse_csv("date,type,qty,price\n2024-01-01,sell,0.5,100\n2024-01-02,buy,-1,100\n")
        assert [lot.qty for lot in parsed.lots] == [-0.5, 1.0]

    def test_no_symbol_column(self):
        parsed = parse_csv("date,qty,price\n2024-01-01,1,100\n")
        assert parsed.symbol == "UNKNOWN"
        assert parsed.token_id == "unknown"

    def test_no_symbol_column_with_target(self):
        parsed = parse_csv("date,qty,price\n2024-01-01,1,100\n", target_symbol="ada")
        assert parsed.symbol == "ADA"
        assert len(parsed.lots) == 1

    def test_missing_fields_warn(self):
        parsed = parse_csv("date,qty,price\n2024-01-01,,100\n2024-01-02,1,100\n")
        assert len(parsed.lots) == 1
        assert parsed.warnings == ["Line 2: Missing required fields (quantity), skipped"]

    def test_malformed_number_errors_without_aborting(self):
        parsed = parse_csv("date,qty,price\n2024-01-01,abc,100\n2024-01-02,1,100\n")
        assert len(parsed.lots) == 1
        assert parsed.errors == ["Line 2: Invalid number format for quantity: 'abc'"]

    def test_column_count_mismatch_warns(self):
        parsed = parse_csv("date,qty,price\n2024-01-01,1\n2024-01-02,1,100\n")
        assert len(parsed.lots) == 1
        assert parsed.warnings == ["Line 2: expected 3 columns, found 2, skipped"]

    def test_multiple_assets_warn_without_target(self):
        text = "date,symbol,qty,price\n2024-01-01,BTC,1,100\n2024-01-02,ETH,2,10\n"
        parsed = parse_csv(text)
        assert len(parsed.lots) == 2
        assert parsed.symbol == "BTC"
        assert parsed.symbols == ["BTC", "ETH"]
        assert any("several assets" in w for w in parsed.warnings)

    def test_target_filter_is_silent(self):
        text = "date,symbol,qty,price\n2024-01-01,BTC,1,100\n2024-01-02,ETH,2,10\n"
        parsed = parse_csv(text, target_symbol="ETH")
        assert len(parsed.lots) == 1
        assert parsed.lots[0].qty == 2.0
        assert parsed.warnings == []


class TestParseCsv:
    def test_header_only(self):
        parsed = parse_csv("date,qty,price\n")
        assert parsed.errors == ["No data rows found in CSV"]
        assert parsed.lots == []

    def test_empty(self):
        assert parse_csv("").errors == ["No data rows found in CSV"]

    def test_file_with_bom(self, tmp_path: Path, generic_csv: str):
        path = tmp_path / "export.csv"
        path.write_bytes(b"\xef\xbb\xbf" + generic_csv.encode("utf-8"))
        parsed = parse_csv_file(path)
        assert len(parsed.lots) == 2

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            parse_csv_file(tmp_path / "missing.csv")
