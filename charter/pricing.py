"""Base pricing: turns occupied and repositioning hours into money.

Three rate models are supported. Every amount is rounded to cents at the
point it is computed.
"""

from dataclasses import dataclass
from typing import Optional, Union

from charter.knobs import PricingKnobs, RateModel, RepoMode
from charter.models import (
    LineItem,
    LineItemCode,
    Leg,
    RejectReason,
    Trip,
    ZoneCalculationInfo,
    reject,
)
from charter.money import round_money
from charter.timing import TimedLegs
from charter.zones import build_zone_calculation_info, peak_multipliers


@dataclass
class BasePricing:
    items: list[LineItem]
    legs: list[Leg]
    zone_calculation: Optional[ZoneCalculationInfo] = None


# Rates each model needs: (alias used in messages, field name)
_REQUIRED_RATES = {
    RateModel.SINGLE_HOURLY: [("hourlyRate", "hourly_rate")],
    RateModel.DUAL_RATE: [("repoRate", "repo_rate"), ("occupiedRate", "occupied_rate")],
    RateModel.ZONE_BASED: [("occupiedRate", "occupied_rate"), ("repoRate", "repo_rate")],
}


def require_rates(knobs: PricingKnobs) -> Optional[RejectReason]:
    """MISSING_RATE for the first absent or non-positive rate the model needs."""
    p = knobs.pricing
    required = _REQUIRED_RATES.get(p.rate_model)
    if required is None:
        return reject(
            "INVALID_RATE_MODEL",
            f"Unsupported rateModel {p.rate_model!r}",
            "pricing.rateModel",
        )
    for alias, name in required:
        value = getattr(p, name)
        if value is None or value <= 0:
            return reject(
                "MISSING_RATE",
                f"pricing.{alias} required when pricing.rateModel={p.rate_model.value}",
                f"pricing.{alias}",
            )
    return None


def _flat_items(occupied_hours: float, repo_hours: float, occupied_rate: float, repo_rate: float) -> list[LineItem]:
    return [
        LineItem(
            code=LineItemCode.BASE_OCCUPIED,
            label="Base cost (occupied)",
            amount=round_money(occupied_hours * occupied_rate),
            meta={"occupiedHours": occupied_hours, "rate": occupied_rate},
        ),
        LineItem(
            code=LineItemCode.BASE_REPO,
            label="Base cost (repo)",
            amount=round_money(repo_hours * repo_rate),
            meta={"repoHours": repo_hours, "rate": repo_rate},
        ),
    ]


def calc_base_cost(knobs: PricingKnobs, timed: TimedLegs, trip: Trip) -> Union[BasePricing, RejectReason]:
    p = knobs.pricing
    model = p.rate_model

    reason = require_rates(knobs)
    if reason is not None:
        return reason

    if model == RateModel.SINGLE_HOURLY:
        items = _flat_items(timed.occupied_hours, timed.repo_hours, p.hourly_rate, p.hourly_rate)
        return BasePricing(items=items, legs=timed.legs)

    if model == RateModel.DUAL_RATE:
        items = _flat_items(timed.occupied_hours, timed.repo_hours, p.occupied_rate, p.repo_rate)
        return BasePricing(items=items, legs=timed.legs)

    if model == RateModel.ZONE_BASED:
        return calc_zone_based_cost(knobs, timed, trip)

    return reject(
        "INVALID_RATE_MODEL",
        f"Unsupported rateModel {model!r}",
        "pricing.rateModel",
    )


def calc_zone_based_cost(knobs: PricingKnobs, timed: TimedLegs, trip: Trip) -> Union[BasePricing, RejectReason]:
    """Occupied hours at the (peak-multiplied) occupied rate, plus one line per zone repo leg."""
    p = knobs.pricing
    config = knobs.repo.zone_network
    if config is None:
        return reject(
            "MISSING_ZONE_CONFIG",
            "repo.zoneNetwork required for zone_based pricing",
            "repo.zoneNetwork",
        )
    if knobs.repo.mode != RepoMode.ZONE_NETWORK:
        return reject(
            "ZONE_PRICING_REQUIRES_ZONE_NETWORK",
            "pricing.rateModel=zone_based requires repo.mode=zone_network",
            "pricing.rateModel",
        )

    depart_day = trip.depart_local.date()
    peak = config.peak_for(depart_day)
    repo_mult, occupied_mult = peak_multipliers(peak)
    occupied_rate = p.occupied_rate * occupied_mult
    repo_rate = p.repo_rate * repo_mult

    items = [
        LineItem(
            code=LineItemCode.BASE_OCCUPIED,
            label="Base cost (occupied)",
            amount=round_money(timed.occupied_hours * occupied_rate),
            meta={
                "occupiedHours": timed.occupied_hours,
                "baseRate": p.occupied_rate,
                "appliedRate": occupied_rate,
                "peakMultiplier": occupied_mult,
            },
        )
    ]

    legs: list[Leg] = []
    for leg in timed.legs:
        if not leg.meta.is_zone_repo:
            legs.append(leg)
            continue
        hours = leg.meta.adjusted_hours or 0.0
        direction = leg.meta.repo_direction.value if leg.meta.repo_direction else None
        legs.append(leg.with_meta(applied_rate=repo_rate, peak_multiplier=repo_mult))
        items.append(
            LineItem(
                code=LineItemCode.BASE_REPO_ZONE,
                label=f"Repo: {leg.meta.zone_name} ({direction})",
                amount=round_money(hours * repo_rate),
                meta={
                    "zoneId": leg.meta.zone_id,
                    "zoneName": leg.meta.zone_name,
                    "direction": direction,
                    "hours": hours,
                    "baseRate": p.repo_rate,
                    "appliedRate": repo_rate,
                    "peakPeriod": leg.meta.peak_period_name,
                    "peakMultiplier": repo_mult,
                    "airport": leg.origin.icao,
                },
            )
        )

    info = build_zone_calculation_info(legs, config, depart_day, p.repo_rate, p.occupied_rate)
    return BasePricing(items=items, legs=legs, zone_calculation=info)
