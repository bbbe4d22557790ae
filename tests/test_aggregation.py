"""Tests for totals, split merging, ranking and knob migrations."""

import pytest

from charter.aggregation import RankedQuote, merge_split_quotes, rank_quotes, summarize_totals
from charter.knobs import ResultsKnobs
from charter.migrations import migrate_knobs
from charter.models import (
    LineItem,
    LineItemCode,
    QuoteResult,
    QuoteStatus,
    TimeSummary,
    Totals,
    reject,
)


def _item(code, amount):
    return LineItem(code=code, label=code.value, amount=amount)


def _ok(total, occupied=2.0, repo=1.0, score=None):
    items = [_item(LineItemCode.BASE_OCCUPIED, total)]
    return QuoteResult(
        status=QuoteStatus.OK,
        times=TimeSummary(occupied_hours=occupied, repo_hours=repo, total_hours=occupied + repo, match_score=score),
        line_items=items,
        totals=summarize_totals(items),
    )


def _rejected():
    return QuoteResult.rejected(reject("PAX_LIMIT", "too many"))


class TestSummarizeTotals:
    def test_buckets(self):
        items = [
            _item(LineItemCode.BASE_OCCUPIED, 10000.0),
            _item(LineItemCode.BASE_REPO, 1000.0),
            _item(LineItemCode.BASE_REPO_ZONE, 500.0),
            _item(LineItemCode.FEE_LANDING, 200.0),
            _item(LineItemCode.FEE_MIN_TRIP_PRICE, 300.0),
            _item(LineItemCode.DISCOUNT_VHB, -1150.0),
            _item(LineItemCode.INFO_MATCH_SCORE, 0.0),
        ]
        assert summarize_totals(items) == Totals(
            base_occupied=10000.0, base_repo=1500.0, fees=500.0, discounts=-1150.0, total=10850.0
        )

    def test_cap_reaches_exact_ceiling(self):
        items = [
            _item(LineItemCode.BASE_OCCUPIED, 12345.67),
            _item(LineItemCode.DISCOUNT_MAX_TRIP_PRICE_CAP, -2345.67),
        ]
        assert summarize_totals(items).total == 10000.00

    def test_empty(self):
        assert summarize_totals([]).total == 0.0


class TestMergeSplit:
    def test_merge(self, make_trip):
        trip = make_trip(ret="2026-10-15T17:00:00")
        merged = merge_split_quotes(_ok(8000.0), _ok(9000.0, occupied=3.0, repo=0.5), trip, threshold=3)

        assert merged.ok
        assert merged.total == 17000.0
        assert merged.times.occupied_hours == 5.0
        assert merged.times.repo_hours == 1.5
        assert merged.times.total_hours == 6.5
        assert merged.times.overnights == 5
        assert merged.times.calendar_days_touched == 6
        assert merged.times.match_score == pytest.approx(7.69)

    def test_items_tagged_by_half(self, make_trip):
        trip = make_trip(ret="2026-10-15T17:00:00")
        merged = merge_split_quotes(_ok(8000.0), _ok(9000.0), trip, threshold=3)
        tags = [i.meta.get("leg") for i in merged.line_items]
        assert tags == ["OUTBOUND", "RETURN", None]

    def test_split_info_item(self, make_trip):
        trip = make_trip(ret="2026-10-15T17:00:00")
        merged = merge_split_quotes(_ok(8000.0), _ok(9000.0), trip, threshold=3)
        info = merged.line_items[-1]
        assert info.code == LineItemCode.INFO_SPLIT
        assert info.amount == 0.0
        assert info.meta["overnights"] == 5
        assert info.meta["threshold"] == 3
        assert "overnights (5) > 3" in info.meta["note"]


class TestRankQuotes:
    @pytest.fixture
    def quotes(self):
        return [
            RankedQuote("CAT3", _ok(9000.0, score=6.0)),
            RankedQuote("CAT5", _rejected()),
            RankedQuote("CAT1", _ok(7000.0, score=8.0)),
            RankedQuote("CAT7", _ok(15000.0)),
        ]

    def test_lowest_price(self, quotes):
        ranked = rank_quotes(quotes, ResultsKnobs())
        assert [q.label for q in ranked] == ["CAT1"]

    def test_highest_price(self, quotes):
        ranked = rank_quotes(quotes, ResultsKnobs(selection="highest"))
        assert [q.label for q in ranked] == ["CAT7"]

    def test_all_ascending(self, quotes):
        ranked = rank_quotes(quotes, ResultsKnobs(selection="all"))
        assert [q.label for q in ranked] == ["CAT1", "CAT3", "CAT7"]

    def test_match_score_skips_unscored(self, quotes):
        ranked = rank_quotes(quotes, ResultsKnobs.model_validate({"selection": "all", "rankMetric": "matchScore"}))
        assert [q.label for q in ranked] == ["CAT3", "CAT1"]

    def test_highest_match_score(self, quotes):
        ranked = rank_quotes(quotes, ResultsKnobs.model_validate({"selection": "highest", "rankMetric": "matchScore"}))
        assert [q.label for q in ranked] == ["CAT1"]

    def test_nothing_eligible(self):
        assert rank_quotes([RankedQuote("CAT1", _rejected())], ResultsKnobs()) == []


class TestMigrations:
    def test_moves_legacy_split_threshold(self):
        raw = {"fees": {"overnight": {"amountPerNight": 500, "maxNightsBeforeSplit": 3}}}
        migrated = migrate_knobs(raw)
        assert migrated["trip"] == {"maxNightsBeforeSplit": 3}
        assert "maxNightsBeforeSplit" not in migrated["fees"]["overnight"]

    def test_input_not_mutated(self):
        raw = {"fees": {"overnight": {"maxNightsBeforeSplit": 3}}}
        migrate_knobs(raw)
        assert raw == {"fees": {"overnight": {"maxNightsBeforeSplit": 3}}}

    def test_explicit_trip_value_wins(self):
        raw = {"fees": {"overnight": {"maxNightsBeforeSplit": 3}}, "trip": {"maxNightsBeforeSplit": 5}}
        assert migrate_knobs(raw)["trip"]["maxNightsBeforeSplit"] == 5

    def test_idempotent(self):
        raw = {"fees": {"overnight": {"maxNightsBeforeSplit": 3}}}
        once = migrate_knobs(raw)
        assert migrate_knobs(once) == once

    def test_current_schema_untouched(self):
        raw = {"repo": {"mode": "floating_fleet"}, "trip": {"maxNightsBeforeSplit": 2}}
        assert migrate_knobs(raw) == raw
