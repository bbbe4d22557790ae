"""Eligibility: builds context and runs the registered rules against a trip.

Rules run in a fixed order and stop at the first failure, so the same trip
and configuration always report the same rejection.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from charter.dates import compute_overnights, days_until, is_same_local_date
from charter.knobs import PricingKnobs
from charter.models import Leg, RejectReason, Trip, reject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityContext:
    """Pre-computed values shared by the rules."""

    now: datetime
    days_until_departure: float
    # None for a round trip with no return timestamp
    overnights: Optional[int]


def build_context(trip: Trip, now: datetime) -> EligibilityContext:
    if trip.is_round_trip:
        overnights = (
            compute_overnights(trip.depart_local, trip.return_local)
            if trip.return_local is not None
            else None
        )
    else:
        overnights = 0
    return EligibilityContext(
        now=now,
        days_until_departure=days_until(trip.depart_local, trip.timezone, now),
        overnights=overnights,
    )


def _discover_rules() -> None:
    """Import rule modules in evaluation order so @register_rule fires."""
    import charter.rules.region  # noqa: F401
    import charter.rules.booking  # noqa: F401
    import charter.rules.geography  # noqa: F401


def check_eligibility(trip: Trip, knobs: PricingKnobs, now: datetime) -> Optional[RejectReason]:
    """First failing admission rule, or None when the trip is eligible."""
    from charter.rules.base import get_registered_rules

    _discover_rules()
    context = build_context(trip, now)
    for rule_cls in get_registered_rules():
        rule = rule_cls()
        reason = rule.check(trip, knobs, context)
        if reason is not None:
            logger.debug("Eligibility rule %s rejected: %s", rule.rule_id, reason.code)
            return reason
    return None


def check_leg_hours(trip: Trip, knobs: PricingKnobs, legs: list[Leg]) -> Optional[RejectReason]:
    """Occupied-hour ceilings, evaluated once adjusted hours are known."""
    elig = knobs.eligibility
    occupied = [leg for leg in legs if leg.is_occupied]

    if elig.max_occupied_hours_per_leg is not None:
        for leg in occupied:
            hours = leg.meta.adjusted_hours or 0.0
            if hours > elig.max_occupied_hours_per_leg:
                return reject(
                    "LEG_HOURS_EXCEEDED",
                    f"Occupied leg {leg.route} {hours:.2f}h > max {elig.max_occupied_hours_per_leg:g}h",
                    "eligibility.maxOccupiedHoursPerLeg",
                )

    if (
        elig.max_same_day_round_trip_hours is not None
        and trip.is_round_trip
        and is_same_local_date(trip.depart_local, trip.return_local)
    ):
        total = sum(leg.meta.adjusted_hours or 0.0 for leg in occupied)
        if total > elig.max_same_day_round_trip_hours:
            return reject(
                "SAME_DAY_RT_HOURS_EXCEEDED",
                f"Same-day round trip {total:.2f}h > max {elig.max_same_day_round_trip_hours:g}h",
                "eligibility.maxSameDayRoundTripHours",
            )
    return None
