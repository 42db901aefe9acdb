"""Tests for mapper service — number, integer, boolean and date parsing."""
from datetime import date, datetime
from decimal import Decimal

from app.services.mapper_service import (
    deal_to_payload,
    normalize_text,
    parse_bool,
    parse_date,
    parse_int,
    parse_number,
)


class TestParseNumber:
    def test_numbers_pass_through(self):
        assert parse_number(1850) == 1850.0
        assert parse_number(2.5) == 2.5
        assert parse_number(Decimal("85000.00")) == 85000.0

    def test_text_with_separators(self):
        assert parse_number("1850") == 1850.0
        assert parse_number(" 1,850 ") == 1850.0
        assert parse_number("$85,000") == 85000.0

    def test_unreadable_is_none(self):
        assert parse_number(None) is None
        assert parse_number("") is None
        assert parse_number("call for price") is None
        assert parse_number("NaN") is None
        assert parse_number(float("inf")) is None

    def test_bool_is_not_a_number(self):
        assert parse_number(True) is None


class TestParseInt:
    def test_from_string(self):
        assert parse_int("3") == 3

    def test_truncates(self):
        assert parse_int("3.7") == 3
        assert parse_int(2.9) == 2

    def test_invalid(self):
        assert parse_int("abc") is None


class TestParseBool:
    def test_true_values(self):
        for value in ("true", "1", "yes", "On", True):
            assert parse_bool(value) is True

    def test_false_values(self):
        for value in ("false", "0", "no", False):
            assert parse_bool(value) is False

    def test_unknown(self):
        assert parse_bool("maybe") is None
        assert parse_bool(None) is None


class TestParseDate:
    def test_iso(self):
        assert parse_date("2026-03-01") == date(2026, 3, 1)

    def test_us_format(self):
        assert parse_date("03/01/2026") == date(2026, 3, 1)

    def test_datetime(self):
        assert parse_date(datetime(2026, 3, 1, 9, 30)) == date(2026, 3, 1)

    def test_invalid(self):
        assert parse_date("soon") is None
        assert parse_date("") is None


class TestNormalizeText:
    def test_strips(self):
        assert normalize_text("  Dayton ") == "Dayton"

    def test_blank_is_none(self):
        assert normalize_text("   ") is None
        assert normalize_text(None) is None


class TestDealToPayload:
    def test_maps_owner_name(self):
        class Owner:
            display_name = "Wanda Wholesale"

        class Row:
            id = "deal-1"
            wholesaler_id = "wholesaler-1"
            wholesaler = Owner()
            title = "Ranch"
            description = None
            property_address = "1 Main St"
            property_city = "Dayton"
            property_state = "OH"
            property_zip = "45402"
            property_type = None
            asking_price = Decimal("100000.00")
            buyer_entry_cost = None
            arv = None
            repair_estimate = None
            deal_type = "cash_deal"
            bedrooms = 3
            bathrooms = 2.0
            square_feet = 1500
            lot_size_acres = None
            status = "approved"
            disposition_status = None
            expected_closing_date = None
            created_at = None
            updated_at = None

        payload = deal_to_payload(Row())
        assert payload["owner_id"] == "wholesaler-1"
        assert payload["owner_name"] == "Wanda Wholesale"
        assert payload["asking_price"] == Decimal("100000.00")
