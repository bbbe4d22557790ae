"""Time adjustment and validation.

Converts raw flight seconds into billable hours per leg, adds taxi and
buffer time according to policy, and enforces minimum/maximum time rules.
"""

from dataclasses import dataclass
from typing import Optional, Union

from charter.dates import calendar_days_touched
from charter.distance import haversine_nm
from charter.knobs import AdjustmentTarget, PricingKnobs
from charter.models import Leg, RejectReason, Trip, reject
from charter.money import round_hours

_MAX_ADJUSTMENT_HOURS = 10.0
_EPSILON = 1e-9


@dataclass
class TimedLegs:
    legs: list[Leg]
    occupied_hours: float
    repo_hours: float
    total_hours: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _adjusts(target: AdjustmentTarget, leg: Leg) -> bool:
    if target == AdjustmentTarget.BOTH:
        return True
    if target == AdjustmentTarget.OCCUPIED:
        return leg.is_occupied
    return leg.is_repo


def _sum_adjusted(legs: list[Leg]) -> float:
    return sum(leg.meta.adjusted_hours or 0.0 for leg in legs)


def _check_leg_minimums(knobs: PricingKnobs, legs: list[Leg], actual: list[float]) -> Optional[RejectReason]:
    """Per-leg minimums, evaluated on actual hours before taxi/buffer."""
    mins = knobs.time.minimums

    if mins.min_actual_flight_hours_per_leg is not None:
        for leg, hours in zip(legs, actual):
            if leg.is_occupied and hours < mins.min_actual_flight_hours_per_leg:
                return reject(
                    "MIN_LEG_TIME",
                    f"Occupied leg {leg.route} actual {hours:.2f}h < min "
                    f"{mins.min_actual_flight_hours_per_leg:g}h",
                    "time.minimums.minActualFlightHoursPerLeg",
                )

    if mins.min_first_occupied_leg_hours is not None:
        first = next((i for i, leg in enumerate(legs) if leg.is_occupied), None)
        if first is not None and actual[first] < mins.min_first_occupied_leg_hours:
            return reject(
                "MIN_FIRST_OCCUPIED",
                f"First occupied leg actual {actual[first]:.2f}h < min "
                f"{mins.min_first_occupied_leg_hours:g}h",
                "time.minimums.minFirstOccupiedLegHours",
            )
    return None


def apply_time_adjustments(
    trip: Trip,
    knobs: PricingKnobs,
    legs: list[Leg],
    actual_seconds: list[int],
) -> Union[TimedLegs, RejectReason]:
    """Attach actual/adjusted hours to every leg and validate the totals.

    Zone repositioning legs already carry their hours and are passed through
    unchanged.
    """
    if len(actual_seconds) != len(legs):
        raise ValueError(f"Expected {len(legs)} flight times, got {len(actual_seconds)}")

    tk = knobs.time
    taxi = _clamp(tk.taxi_hours_per_leg, 0.0, _MAX_ADJUSTMENT_HOURS)
    buffer = _clamp(tk.buffer_hours_per_leg, 0.0, _MAX_ADJUSTMENT_HOURS)

    actual = [
        (leg.meta.actual_hours or 0.0) if leg.meta.is_zone_repo else seconds / 3600
        for leg, seconds in zip(legs, actual_seconds)
    ]

    reason = _check_leg_minimums(knobs, legs, actual)
    if reason is not None:
        return reason

    timed: list[Leg] = []
    for leg, hours in zip(legs, actual):
        if leg.meta.is_zone_repo:
            timed.append(leg)
            continue
        adjusted = hours + taxi + buffer if _adjusts(tk.apply_to, leg) else hours
        timed.append(
            leg.with_meta(
                actual_hours=round_hours(hours),
                adjusted_hours=round_hours(adjusted),
                distance_nm=round(haversine_nm(leg.origin, leg.destination), 1),
            )
        )

    occupied_hours = round_hours(_sum_adjusted([l for l in timed if l.is_occupied]))
    repo_hours = round_hours(_sum_adjusted([l for l in timed if l.is_repo]))
    total_hours = round_hours(occupied_hours + repo_hours)

    mins = tk.minimums
    if mins.min_total_trip_hours is not None and total_hours < mins.min_total_trip_hours:
        return reject(
            "MIN_TOTAL_TIME",
            f"Total time {total_hours:.2f}h < min {mins.min_total_trip_hours:g}h",
            "time.minimums.minTotalTripHours",
        )

    if mins.min_occupied_hours_total is not None and occupied_hours < mins.min_occupied_hours_total:
        return reject(
            "MIN_OCCUPIED_TOTAL",
            f"Occupied time {occupied_hours:.2f}h < min {mins.min_occupied_hours_total:g}h",
            "time.minimums.minOccupiedHoursTotal",
        )

    max_per_day = tk.daily_limits.max_occupied_hours_per_day
    if max_per_day is not None:
        days = calendar_days_touched(trip.depart_local, trip.span_end)
        average = occupied_hours / days
        if average > max_per_day + _EPSILON:
            return reject(
                "DAILY_OCCUPIED_LIMIT",
                f"Avg occupied hours/day {average:.2f}h > max {max_per_day:g}h",
                "time.dailyLimits.maxOccupiedHoursPerDay",
            )

    return TimedLegs(
        legs=timed,
        occupied_hours=occupied_hours,
        repo_hours=repo_hours,
        total_hours=total_hours,
    )
