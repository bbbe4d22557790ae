"""Tests for output formatters."""

import json

import pytest

from charter.aggregation import RankedQuote
from charter.output import get_formatter
from charter.output.json_formatter import JsonFormatter
from charter.output.plain_formatter import PlainFormatter
from charter.output.rich_formatter import RichFormatter
from charter.models import QuoteResult, reject


@pytest.fixture
def ok_result(engine, make_trip, make_knobs, airports):
    knobs = make_knobs(
        repo={"mode": "fixed_base", "fixedBase": airports["KHPN"]},
        fees={"landingFees": {"defaultAmount": 250}},
    )
    return engine.quote(make_trip(), knobs)


@pytest.fixture
def rejected_result():
    return QuoteResult.rejected(reject("PAX_LIMIT", "Passengers 9 exceeds max 8.", "eligibility.maxPassengers"))


class TestGetFormatter:
    @pytest.mark.parametrize(
        "name,cls", [("rich", RichFormatter), ("plain", PlainFormatter), ("json", JsonFormatter)]
    )
    def test_known(self, name, cls):
        assert isinstance(get_formatter(name), cls)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown formatter"):
            get_formatter("xml")


class TestJsonFormatter:
    def test_quote(self, ok_result):
        data = json.loads(JsonFormatter().format_quote(ok_result))
        assert data["status"] == "OK"
        assert data["totals"]["total"] == ok_result.total
        assert data["lineItems"][0]["code"] == "BASE_OCCUPIED"
        assert data["legs"][0]["to"]["icao"] == "KTEB"
        assert "zoneCalculation" not in data

    def test_rejected(self, rejected_result):
        data = json.loads(JsonFormatter().format_quote(rejected_result))
        assert data["status"] == "REJECTED"
        assert data["rejectReasons"][0] == {
            "code": "PAX_LIMIT",
            "message": "Passengers 9 exceeds max 8.",
            "fieldPath": "eligibility.maxPassengers",
        }
        assert "totals" not in data

    def test_comparison(self, ok_result):
        data = json.loads(JsonFormatter().format_comparison([RankedQuote("CAT3", ok_result)]))
        assert data["type"] == "comparison"
        assert data["count"] == 1
        assert data["quotes"][0]["label"] == "CAT3"

    def test_airport(self, airport):
        data = json.loads(JsonFormatter().format_airport(airport("KTEB")))
        assert data["icao"] == "KTEB"
        assert data["mississippi_direction"] == "EAST"


class TestPlainFormatter:
    def test_quote_sections(self, ok_result):
        text = PlainFormatter().format_quote(ok_result)
        for section in ("Quote", "Legs", "Line Items", "Totals"):
            assert section in text
        assert "KHPN-KTEB" in text
        assert "FEE_LANDING" in text
        assert "$30,250.00" in text
        assert "\x1b[" not in text

    def test_rejected(self, rejected_result):
        text = PlainFormatter().format_quote(rejected_result)
        assert "Status: REJECTED" in text
        assert "PAX_LIMIT: Passengers 9 exceeds max 8." in text
        assert "Field: eligibility.maxPassengers" in text

    def test_split_items_marked(self, engine, make_trip, make_knobs):
        result = engine.quote(make_trip(ret="2026-10-15T17:00:00"), make_knobs(trip={"maxNightsBeforeSplit": 2}))
        text = PlainFormatter().format_quote(result)
        assert "[OUTBOUND]" in text
        assert "[RETURN]" in text
        assert "INFO_SPLIT" in text

    def test_empty_comparison(self):
        assert "No eligible quotes." in PlainFormatter().format_comparison([])

    def test_comparison_rows(self, ok_result):
        text = PlainFormatter().format_comparison([RankedQuote("CAT3", ok_result)])
        assert "CAT3" in text
        assert "$30,250.00" in text

    def test_airport(self, airport):
        text = PlainFormatter().format_airport(airport("KVNY"))
        assert "Airport KVNY" in text
        assert "WEST" in text


class TestRichFormatter:
    def test_quote(self, ok_result):
        text = RichFormatter().format_quote(ok_result)
        assert "30,250.00" in text
        assert "KHPN" in text

    def test_rejected(self, rejected_result):
        text = RichFormatter().format_quote(rejected_result)
        assert "REJECTED" in text
        assert "PAX_LIMIT" in text

    def test_empty_comparison(self):
        assert "No eligible quotes" in RichFormatter().format_comparison([])

    def test_airport(self, airport):
        assert "KTEB" in RichFormatter().format_airport(airport("KTEB"))
