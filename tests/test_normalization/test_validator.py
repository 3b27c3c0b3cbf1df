"""Tests for lot validation."""

import pytest

from cryptobasis.models.lot import Lot
from cryptobasis.normalization.validator import LotValidator, ValidationIssue


class TestLotValidator:
    def setup_method(self):
        self.validator = LotValidator()

    def test_valid_lots(self, btc_lots):
        result = self.validator.validate(btc_lots)
        assert result.valid
        assert result.issues == []

    def test_empty_list_is_valid(self):
        assert self.validator.validate([]).valid

    @pytest.mark.parametrize("bad_date", ["2024-1-01", "01/15/2024", "2024-13-01", "2023-02-29", ""])
    def test_rejects_bad_dates(self, bad_date):
        result = self.validator.validate([Lot(date=bad_date, qty=1.0, price_per_unit=1.0)])
        assert not result.valid
        assert result.issues[0].field == "date"
        assert result.issues[0].message == "Invalid date format (expected YYYY-MM-DD)"

    def test_leap_day_is_valid(self):
        assert self.validator.validate([Lot(date="2024-02-29", qty=1.0, price_per_unit=1.0)]).valid

    @pytest.mark.parametrize("bad_qty", [0.0, float("nan"), float("inf")])
    def test_rejects_bad_quantity(self, bad_qty):
        result = self.validator.validate([Lot(date="2024-01-01", qty=bad_qty, price_per_unit=1.0)])
        assert [i.field for i in result.issues] == ["qty"]

    @pytest.mark.parametrize("bad_price", [0.0, -1.0, float("nan")])
    def test_rejects_bad_price(self, bad_price):
        result = self.validator.validate([Lot(date="2024-01-01", qty=1.0, price_per_unit=bad_price)])
        assert [i.field for i in result.issues] == ["price_per_unit"]
        assert result.issues[0].message == "Price must be a positive number"

    def test_rejects_long_notes(self):
        lot = Lot(date="2024-01-01", qty=1.0, price_per_unit=1.0, notes="x" * 501)
        result = self.validator.validate([lot])
        assert [i.field for i in result.issues] == ["notes"]

    def test_accepts_notes_at_limit(self):
        lot = Lot(date="2024-01-01", qty=1.0, price_per_unit=1.0, notes="x" * 500)
        assert self.validator.validate([lot]).valid

    def test_reports_every_issue_with_position(self):
        lots = [
            Lot(date="2024-01-01", qty=1.0, price_per_unit=100.0),
            Lot(date="bad", qty=0.0, price_per_unit=-5.0),
        ]
        result = self.validator.validate(lots)
        assert [(i.index, i.field) for i in result.issues] == [
            (2, "date"),
            (2, "qty"),
            (2, "price_per_unit"),
        ]
        assert result.errors[1] == "Lot 2: qty: Quantity must be a non-zero number"

    def test_allow_zero_price(self):
        validator = LotValidator(allow_zero_price=True)
        assert validator.validate([Lot(date="2024-01-01", qty=1.0, price_per_unit=0.0)]).valid
        assert not validator.validate([Lot(date="2024-01-01", qty=1.0, price_per_unit=-1.0)]).valid


class TestValidateEntry:
    def setup_method(self):
        self.validator = LotValidator()

    def test_valid_entry(self, btc_lots):
        assert self.validator.validate_entry("bitcoin", "BTC", btc_lots).valid

    def test_identifier_limits(self, btc_lots):
        result = self.validator.validate_entry("x" * 101, "S" * 21, btc_lots)
        assert [i.field for i in result.issues] == ["token_id", "symbol"]
        assert all(i.index == 0 for i in result.issues)

    def test_requires_lots(self):
        result = self.validator.validate_entry("bitcoin", "BTC", [])
        assert [i.field for i in result.issues] == ["lots"]
        assert result.errors == ["lots: At least one lot is required"]

    def test_combines_entry_and_lot_issues(self):
        result = self.validator.validate_entry(
            "", "BTC", [Lot(date="2024-01-01", qty=0.0, price_per_unit=1.0)]
        )
        assert [i.field for i in result.issues] == ["token_id", "qty"]


class TestValidationIssue:
    def test_str(self):
        assert str(ValidationIssue(index=3, field="date", message="bad")) == "Lot 3: date: bad"
        assert str(ValidationIssue(index=0, field="symbol", message="bad")) == "symbol: bad"
