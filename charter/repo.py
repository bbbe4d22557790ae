"""Repositioning resolver: where the aircraft starts and ends.

Four strategies select the base on each side of the itinerary; a policy
then decides which of the two repositioning legs are materialized.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from charter.distance import DistanceCalculator
from charter.knobs import PricingKnobs, RepoMode, RepoPolicy, Zone
from charter.models import (
    Airport,
    CategoryId,
    Leg,
    LegKind,
    LegMeta,
    RejectReason,
    RepoDirection,
    Trip,
    reject,
)
from charter.zones import build_zone_repo_leg, find_zone

logger = logging.getLogger(__name__)


@dataclass
class RepoPlan:
    """Repositioning legs on each side of the itinerary and the bases chosen."""

    legs_out: list[Leg] = field(default_factory=list)
    legs_back: list[Leg] = field(default_factory=list)
    chosen_out_base: Optional[Airport] = None
    chosen_back_base: Optional[Airport] = None
    out_zone: Optional[Zone] = None
    back_zone: Optional[Zone] = None


def unique_by_icao(airports: list[Airport]) -> list[Airport]:
    """Drop repeated ICAO codes, keeping the first occurrence."""
    seen: dict[str, Airport] = {}
    for airport in airports:
        seen.setdefault(airport.icao, airport)
    return list(seen.values())


def resolve_candidates(category: CategoryId, knobs: PricingKnobs) -> list[Airport]:
    """Candidate virtual bases: the default set plus the category's own set."""
    sets = knobs.repo.vhb_sets
    return unique_by_icao([*sets.default, *sets.by_category.get(category, [])])


def _repo_leg(base: Airport, endpoint: Airport, outbound: bool) -> Leg:
    origin, dest = (base, endpoint) if outbound else (endpoint, base)
    return Leg(
        kind=LegKind.REPO,
        origin=origin,
        destination=dest,
        meta=LegMeta(
            chosen_base_icao=base.icao,
            repo_direction=RepoDirection.ORIGIN if outbound else RepoDirection.DESTINATION,
        ),
    )


def _wants(policy: RepoPolicy, outbound: bool) -> bool:
    if policy == RepoPolicy.BOTH:
        return True
    return policy == (RepoPolicy.OUTBOUND_ONLY if outbound else RepoPolicy.INBOUND_ONLY)


def resolve_repo(
    trip: Trip,
    knobs: PricingKnobs,
    candidates: list[Airport],
    distances: Optional[DistanceCalculator] = None,
) -> Union[RepoPlan, RejectReason]:
    """Build the repositioning plan for one itinerary."""
    distances = distances or DistanceCalculator()
    repo = knobs.repo
    start, end = trip.origin, trip.itinerary_end
    plan = RepoPlan()

    if repo.mode == RepoMode.FLOATING_FLEET:
        return plan

    if repo.mode == RepoMode.ZONE_NETWORK:
        return _resolve_zones(trip, knobs, plan)

    if repo.mode == RepoMode.FIXED_BASE:
        if repo.fixed_base is None:
            return reject(
                "MISSING_BASE",
                "repo.fixedBase (Airport) required when repo.mode=fixed_base",
                "repo.fixedBase",
            )
        plan.chosen_out_base = plan.chosen_back_base = repo.fixed_base
    elif repo.mode == RepoMode.VHB_NETWORK:
        if not candidates:
            return reject(
                "MISSING_VHB_LIST",
                "VHB candidate list is empty.",
                "repo.vhbSets.default",
            )
        plan.chosen_out_base = distances.closest(start, candidates)
        plan.chosen_back_base = distances.closest(end, candidates)
    else:
        return reject(
            "INVALID_REPO_MODE",
            f"Unsupported repo mode {repo.mode!r}",
            "repo.mode",
        )

    if _wants(repo.policy, outbound=True) and not plan.chosen_out_base.same_as(start):
        plan.legs_out.append(_repo_leg(plan.chosen_out_base, start, outbound=True))
    if _wants(repo.policy, outbound=False) and not plan.chosen_back_base.same_as(end):
        plan.legs_back.append(_repo_leg(plan.chosen_back_base, end, outbound=False))

    logger.debug(
        "Repo plan: out base %s, back base %s",
        plan.chosen_out_base.icao,
        plan.chosen_back_base.icao,
    )
    return plan


def _resolve_zones(trip: Trip, knobs: PricingKnobs, plan: RepoPlan) -> Union[RepoPlan, RejectReason]:
    config = knobs.repo.zone_network
    if config is None:
        return reject(
            "MISSING_ZONE_CONFIG",
            "repo.zoneNetwork required when repo.mode=zone_network",
            "repo.zoneNetwork",
        )

    start, end = trip.origin, trip.itinerary_end
    for airport, side in ((start, "origin"), (end, "destination")):
        if find_zone(airport, config) is None:
            return reject(
                "ZONE_NOT_COVERED",
                f"No zone covers {side} {airport.icao} (region {airport.region or 'unknown'}).",
                "repo.zoneNetwork.zones",
            )

    # The endpoint is its own base; nothing is flown on either side
    plan.out_zone = find_zone(start, config)
    plan.back_zone = find_zone(end, config)
    plan.chosen_out_base, plan.chosen_back_base = start, end

    peak = config.peak_for(trip.depart_local.date())
    if _wants(knobs.repo.policy, outbound=True):
        plan.legs_out.append(
            build_zone_repo_leg(start, plan.out_zone, RepoDirection.ORIGIN, config, peak)
        )
    if _wants(knobs.repo.policy, outbound=False):
        plan.legs_back.append(
            build_zone_repo_leg(end, plan.back_zone, RepoDirection.DESTINATION, config, peak)
        )
    return plan


def repo_hours_by_side(legs: list[Leg]) -> tuple[float, float]:
    """Adjusted REPO hours before and after the first occupied leg."""
    out_hours = back_hours = 0.0
    seen_occupied = False
    for leg in legs:
        if leg.is_occupied:
            seen_occupied = True
        elif not seen_occupied:
            out_hours += leg.meta.adjusted_hours or 0.0
        else:
            back_hours += leg.meta.adjusted_hours or 0.0
    return out_hours, back_hours


def enforce_repo_constraints(knobs: PricingKnobs, legs: list[Leg]) -> Optional[RejectReason]:
    """Reject when a repositioning side exceeds its configured ceiling."""
    c = knobs.repo.constraints
    if c is None or not c.reject_if_exceeded:
        return None

    out_hours, back_hours = repo_hours_by_side(legs)
    if c.max_origin_repo_hours is not None and out_hours > c.max_origin_repo_hours:
        return reject(
            "REPO_OUT_TOO_LONG",
            f"Outbound repo {out_hours:.2f}h > max {c.max_origin_repo_hours:g}h",
            "repo.constraints.maxOriginRepoHours",
        )
    if c.max_destination_repo_hours is not None and back_hours > c.max_destination_repo_hours:
        return reject(
            "REPO_BACK_TOO_LONG",
            f"Inbound repo {back_hours:.2f}h > max {c.max_destination_repo_hours:g}h",
            "repo.constraints.maxDestinationRepoHours",
        )
    return None
