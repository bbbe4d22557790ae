"""Fee engine: itemized surcharges for a priced itinerary.

Each fee is independent and optional. A fee whose configured amount is zero,
or whose trigger does not fire, produces no line item. Zero-length
(zone) repositioning legs are never flown, so they are never counted as
segments or landings.
"""

from datetime import date as Date
from datetime import timedelta
from typing import Optional

from charter.dates import compute_overnights, list_dates_touched
from charter.knobs import (
    DailyFee,
    DayCounting,
    GroundHandlingFee,
    GroundHandlingScope,
    HighDensityCounting,
    HighDensityFee,
    LandingCounting,
    LandingFees,
    LandingLogic,
    OvernightFee,
    OvernightTrigger,
    PricingKnobs,
)
from charter.models import Airport, Leg, LineItem, LineItemCode, Trip
from charter.money import round_money

# Chargeable landings when the trip does not start at the home base
_HOMEBASE_AWAY_LANDINGS = 3


def _codes(airports: list[Airport]) -> set[str]:
    return {a.icao.upper() for a in airports}


def trip_overnights(trip: Trip) -> int:
    """Overnights for round trips; one-ways never stay overnight."""
    if not trip.is_round_trip:
        return 0
    return compute_overnights(trip.depart_local, trip.return_local)


def ground_handling_fee(cfg: GroundHandlingFee, legs: list[Leg]) -> Optional[LineItem]:
    if not cfg.per_segment_amount:
        return None
    if cfg.applies_to == GroundHandlingScope.ALL_LEGS:
        segments = len(legs)
    else:
        segments = sum(1 for leg in legs if leg.is_occupied)
    amount = round_money(segments * cfg.per_segment_amount)
    if amount <= 0:
        return None
    return LineItem(
        code=LineItemCode.FEE_GROUND_HANDLING,
        label="Ground handling",
        amount=amount,
        meta={"segments": segments, "appliesTo": cfg.applies_to.value},
    )


def count_hd_visits(cfg: HighDensityFee, trip: Trip, legs: list[Leg]) -> int:
    hd = _codes(cfg.airports)
    occupied = [leg for leg in legs if leg.is_occupied]
    visits = 0
    if cfg.counting_mode == HighDensityCounting.SEGMENT_ENDPOINTS:
        for leg in occupied:
            visits += (leg.origin.icao in hd) + (leg.destination.icao in hd)
    elif cfg.counting_mode == HighDensityCounting.ARRIVALS_ONLY:
        visits = sum(1 for leg in occupied if leg.destination.icao in hd)
    elif cfg.counting_mode == HighDensityCounting.LANDINGS:
        visits = sum(1 for leg in legs if leg.destination.icao in hd)
    else:
        raise ValueError(f"Unsupported high-density counting mode {cfg.counting_mode!r}")

    if trip.is_round_trip and cfg.round_trip_origin_double_charge and trip.origin.icao in hd:
        visits += 1
    return visits


def high_density_fee(cfg: HighDensityFee, trip: Trip, legs: list[Leg]) -> Optional[LineItem]:
    if not cfg.fee_per_visit or not cfg.airports:
        return None
    visits = count_hd_visits(cfg, trip, legs)
    amount = visits * cfg.fee_per_visit
    if cfg.trip_cap is not None:
        amount = min(amount, cfg.trip_cap)
    amount = round_money(amount)
    if amount <= 0:
        return None
    return LineItem(
        code=LineItemCode.FEE_HIGH_DENSITY,
        label="High-density airport fees",
        amount=amount,
        meta={"visits": visits, "countingMode": cfg.counting_mode.value},
    )


def _landing_amount(cfg: LandingFees, hd: set[str], leg: Leg) -> float:
    if cfg.hd_override_amount and leg.destination.icao in hd:
        return cfg.hd_override_amount
    return cfg.default_amount


def landing_fee(cfg: LandingFees, trip: Trip, legs: list[Leg]) -> Optional[LineItem]:
    """Per-landing fee.

    Homebase-conditional mode charges the occupied legs when the trip starts
    at the home base, otherwise the first three landings of the whole leg
    list (the inbound repositioning leg plus both occupied legs).
    """
    if not cfg.default_amount:
        return None
    hd = _codes(cfg.hd_airports)
    logic = cfg.conditional_logic

    if logic == LandingLogic.HOMEBASE_CONDITIONAL and cfg.homebase is not None:
        if trip.origin.same_as(cfg.homebase):
            charged = [leg for leg in legs if leg.is_occupied]
        else:
            charged = legs[:_HOMEBASE_AWAY_LANDINGS]
    elif cfg.counting_mode == LandingCounting.ARRIVALS_ONLY:
        charged = [leg for leg in legs if leg.is_occupied]
    else:
        charged = list(legs)

    amount = round_money(sum(_landing_amount(cfg, hd, leg) for leg in charged))
    if amount <= 0:
        return None
    return LineItem(
        code=LineItemCode.FEE_LANDING,
        label="Landing fees",
        amount=amount,
        meta={"landings": len(charged), "conditionalLogic": logic.value},
    )


def overnight_fee(cfg: OvernightFee, trip: Trip) -> Optional[LineItem]:
    if cfg.applies_when == OvernightTrigger.NONE:
        return None
    applies = cfg.applies_when == OvernightTrigger.ALWAYS or (
        cfg.applies_when == OvernightTrigger.ROUND_TRIP_ONLY and trip.is_round_trip
    )
    overnights = trip_overnights(trip)
    if not applies or overnights <= 0 or cfg.amount_per_night <= 0:
        return None
    return LineItem(
        code=LineItemCode.FEE_OVERNIGHT,
        label="Overnight fees",
        amount=round_money(overnights * cfg.amount_per_night),
        meta={"overnights": overnights},
    )


def billable_dates(cfg: DailyFee, trip: Trip) -> list[Date]:
    if cfg.calendar_day_counting == DayCounting.NIGHTS_PLUS_ONE:
        start = trip.depart_local.date()
        return [start + timedelta(days=i) for i in range(trip_overnights(trip) + 1)]
    return list_dates_touched(trip.depart_local, trip.span_end)


def daily_fee(cfg: DailyFee, trip: Trip) -> Optional[LineItem]:
    if not cfg.amount_per_calendar_day:
        return None
    dates = billable_dates(cfg, trip)
    total = 0.0
    overridden = 0
    for day in dates:
        # First matching override in list order wins
        override = next((o for o in cfg.date_overrides if o.contains(day)), None)
        if override is not None:
            overridden += 1
            total += override.amount_per_day
        else:
            total += cfg.amount_per_calendar_day
    total = round_money(total)
    if total <= 0:
        return None
    return LineItem(
        code=LineItemCode.FEE_DAILY,
        label="Daily fees",
        amount=total,
        meta={"daysTouched": len(dates), "overriddenDays": overridden},
    )


def calc_fees(trip: Trip, knobs: PricingKnobs, legs: list[Leg]) -> list[LineItem]:
    """All configured fees, in a fixed order."""
    fees = knobs.fees
    flown = [leg for leg in legs if not leg.meta.is_zone_repo]
    candidates = [
        ground_handling_fee(fees.ground_handling, flown) if fees.ground_handling else None,
        high_density_fee(fees.high_density, trip, flown) if fees.high_density else None,
        landing_fee(fees.landing_fees, trip, flown) if fees.landing_fees else None,
        overnight_fee(fees.overnight, trip) if fees.overnight else None,
        daily_fee(fees.daily, trip) if fees.daily else None,
    ]
    return [item for item in candidates if item is not None]
