"""Tests for discounts and price constraints."""

import pytest

from charter.discounts import (
    Subtotals,
    apply_price_constraints,
    calc_discounts,
    calc_time_based_discount,
    calc_vhb_discount,
    subtotals,
)
from charter.knobs import DiscountBase
from charter.models import LineItem, LineItemCode


@pytest.fixture
def items():
    return [
        LineItem(code=LineItemCode.BASE_OCCUPIED, label="Base cost (occupied)", amount=10000.0),
        LineItem(code=LineItemCode.BASE_REPO, label="Base cost (repo)", amount=2000.0),
        LineItem(code=LineItemCode.FEE_LANDING, label="Landing fees", amount=500.0),
        LineItem(code=LineItemCode.INFO_MATCH_SCORE, label="Match score", amount=0.0),
    ]


@pytest.fixture
def occupied_legs(make_trip):
    trip = make_trip(ret="2026-10-12T17:00:00")
    return [leg.with_meta(actual_hours=h) for leg, h in zip(trip.occupied_legs(), [2.5, 3.0])]


class TestSubtotals:
    def test_buckets(self, items):
        totals = subtotals(items)
        assert totals == Subtotals(base=12000.0, fees=500.0, running_total=12500.0)

    @pytest.mark.parametrize(
        "applies_to,expected",
        [
            (DiscountBase.BASE_ONLY, 12000.0),
            (DiscountBase.SUBTOTAL_BEFORE_FEES, 12500.0),
            (DiscountBase.TOTAL, 11000.0),
        ],
    )
    def test_for_base(self, applies_to, expected):
        assert Subtotals(base=12000.0, fees=500.0, running_total=11000.0).for_base(applies_to) == expected


class TestVhbDiscount:
    def _knobs(self, make_knobs, mode, **extra):
        return make_knobs(discounts={"vhbDiscount": {"mode": mode, "percent": 0.1, **extra}})

    def test_origin_or_destination(self, make_trip, make_knobs, airport, items):
        knobs = self._knobs(make_knobs, "origin_or_destination")
        item = calc_vhb_discount(make_trip(), knobs, [airport("KTEB")], subtotals(items))
        assert item.code == LineItemCode.DISCOUNT_VHB
        assert item.amount == -1200.0
        assert item.meta["originIsVhb"] is True
        assert item.meta["destIsVhb"] is False

    def test_both_required(self, make_trip, make_knobs, airport, items):
        knobs = self._knobs(make_knobs, "both_required")
        assert calc_vhb_discount(make_trip(), knobs, [airport("KTEB")], subtotals(items)) is None
        bases = [airport("KTEB"), airport("KPBI")]
        assert calc_vhb_discount(make_trip(), knobs, bases, subtotals(items)).amount == -1200.0

    def test_not_a_home_base(self, make_trip, make_knobs, airport, items):
        knobs = self._knobs(make_knobs, "origin_or_destination")
        assert calc_vhb_discount(make_trip(), knobs, [airport("KBOS")], subtotals(items)) is None

    def test_mode_none(self, make_trip, make_knobs, airport, items):
        knobs = self._knobs(make_knobs, "none")
        assert calc_vhb_discount(make_trip(), knobs, [airport("KTEB")], subtotals(items)) is None

    def test_applies_to_subtotal(self, make_trip, make_knobs, airport, items):
        knobs = self._knobs(make_knobs, "origin_or_destination", appliesTo="subtotal_before_fees")
        item = calc_vhb_discount(make_trip(), knobs, [airport("KTEB")], subtotals(items))
        assert item.amount == -1250.0
        assert item.meta["baseForDiscount"] == 12500.0


class TestTimeBasedDiscount:
    def _knobs(self, make_knobs, min_hours):
        return make_knobs(
            discounts={
                "timeBasedDiscount": {
                    "enabled": True,
                    "minOccupiedHoursPerLeg": min_hours,
                    "discountPercent": 5,
                }
            }
        )

    def test_every_leg_qualifies(self, make_knobs, occupied_legs, items):
        item = calc_time_based_discount(self._knobs(make_knobs, 2.5), occupied_legs, subtotals(items))
        assert item.amount == -600.0
        assert item.meta["qualifyingLegs"] == 2

    def test_one_short_leg(self, make_knobs, occupied_legs, items):
        assert calc_time_based_discount(self._knobs(make_knobs, 2.75), occupied_legs, subtotals(items)) is None

    def test_disabled(self, make_knobs, occupied_legs, items):
        knobs = make_knobs(discounts={"timeBasedDiscount": {"enabled": False, "discountPercent": 5}})
        assert calc_time_based_discount(knobs, occupied_legs, subtotals(items)) is None


class TestCalcDiscounts:
    def test_sequential_running_total(self, make_trip, make_knobs, airport, occupied_legs, items):
        knobs = make_knobs(
            discounts={
                "vhbDiscount": {"mode": "origin_or_destination", "percent": 0.1, "appliesTo": "total"},
                "timeBasedDiscount": {"enabled": True, "discountPercent": 10, "appliesTo": "total"},
            }
        )
        out = calc_discounts(make_trip(), knobs, occupied_legs, [airport("KTEB")], items)
        assert [i.code for i in out] == [LineItemCode.DISCOUNT_VHB, LineItemCode.DISCOUNT_TIME_BASED]
        # 12500 -> -1250 -> 11250 -> -1125
        assert [i.amount for i in out] == [-1250.0, -1125.0]

    def test_nothing_configured(self, make_trip, make_knobs, occupied_legs, items):
        assert calc_discounts(make_trip(), make_knobs(), occupied_legs, [], items) == []


class TestPriceConstraints:
    def test_max_trip_price_cap(self, make_knobs):
        knobs = make_knobs(fees={"priceConstraints": {"maxTripPrice": 10000}})
        (item,) = apply_price_constraints(knobs, 12345.67, 1)
        assert item.code == LineItemCode.DISCOUNT_MAX_TRIP_PRICE_CAP
        assert item.amount == -2345.67
        assert round(12345.67 + item.amount, 2) == 10000.00

    def test_min_price_per_leg(self, make_knobs):
        knobs = make_knobs(fees={"priceConstraints": {"minPricePerLeg": 4000}})
        (item,) = apply_price_constraints(knobs, 5000.0, 2)
        assert item.code == LineItemCode.FEE_MIN_PRICE_PER_LEG
        assert item.amount == 3000.0
        assert "2 legs" in item.label

    def test_min_trip_after_per_leg(self, make_knobs):
        knobs = make_knobs(fees={"priceConstraints": {"minPricePerLeg": 4000, "minTripPrice": 10000}})
        items = apply_price_constraints(knobs, 3000.0, 2)
        assert [(i.code, i.amount) for i in items] == [
            (LineItemCode.FEE_MIN_PRICE_PER_LEG, 5000.0),
            (LineItemCode.FEE_MIN_TRIP_PRICE, 2000.0),
        ]

    def test_within_bounds(self, make_knobs):
        knobs = make_knobs(fees={"priceConstraints": {"minTripPrice": 1000, "maxTripPrice": 10000}})
        assert apply_price_constraints(knobs, 5000.0, 1) == []

    def test_not_configured(self, make_knobs):
        assert apply_price_constraints(make_knobs(), 99999.0, 1) == []
