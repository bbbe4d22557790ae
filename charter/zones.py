"""Zone-network helpers: zone lookup, peak periods and virtual repo legs.

Under zone-based repositioning the aircraft is assumed to wait in the zone
the itinerary starts or ends in, so nothing is actually flown. Each
repositioning side is represented by a zero-length REPO leg whose hours
come from the zone's configured repo time (overridable by a peak period).
"""

import logging
from datetime import date as Date
from typing import Optional

from charter.knobs import PeakPeriod, ZoneNetworkConfig, Zone
from charter.models import (
    Airport,
    Leg,
    LegKind,
    LegMeta,
    PeakInfo,
    RateInfo,
    RepoDirection,
    ZoneCalculationInfo,
    ZoneSideInfo,
)
from charter.money import round_hours

logger = logging.getLogger(__name__)


def find_zone(airport: Airport, config: ZoneNetworkConfig) -> Optional[Zone]:
    """Zone covering the airport's region (state, else country)."""
    return config.zone_for_region(airport.region)


def zone_repo_time(
    zone: Zone,
    direction: RepoDirection,
    config: ZoneNetworkConfig,
    peak: Optional[PeakPeriod],
) -> tuple[float, float, bool, bool]:
    """Repo hours for one side of a trip in ``zone``.

    Returns (base_time, applied_time, is_peak_override, missing_entry).
    A peak override of 0 or no override entry leaves the base time.
    """
    times = config.repo_times_for(zone.id)
    missing = times is None
    if missing:
        base = 0.0
    elif direction == RepoDirection.ORIGIN:
        base = times.origin_repo_time
    else:
        base = times.destination_repo_time

    applied, overridden = base, False
    override = peak.time_override_for(zone.id) if peak else None
    if override is not None:
        value = (
            override.origin_repo_time
            if direction == RepoDirection.ORIGIN
            else override.destination_repo_time
        )
        if value:
            applied, overridden = value, True
    return base, applied, overridden, missing


def build_zone_repo_leg(
    endpoint: Airport,
    zone: Zone,
    direction: RepoDirection,
    config: ZoneNetworkConfig,
    peak: Optional[PeakPeriod],
) -> Leg:
    """Zero-length REPO leg at ``endpoint`` carrying the zone repo time as its hours."""
    _, applied, overridden, missing = zone_repo_time(zone, direction, config, peak)
    if missing:
        logger.warning("Zone %s has no repo time entry; charging 0h", zone.id)
    hours = round_hours(max(0.0, applied))
    return Leg(
        kind=LegKind.REPO,
        origin=endpoint,
        destination=endpoint,
        meta=LegMeta(
            chosen_base_icao=endpoint.icao,
            actual_hours=hours,
            adjusted_hours=hours,
            distance_nm=0.0,
            is_zone_repo=True,
            zone_id=zone.id,
            zone_name=zone.name,
            zone_repo_time=hours,
            repo_direction=direction,
            peak_period_name=peak.name if peak else None,
            is_peak_override=overridden,
            missing_zone_repo_time=missing or None,
        ),
    )


def peak_multipliers(peak: Optional[PeakPeriod]) -> tuple[float, float]:
    """(repo_rate_multiplier, occupied_multiplier), each defaulting to 1.0."""
    if peak is None:
        return 1.0, 1.0
    repo = peak.repo_rate_multiplier if peak.repo_rate_multiplier is not None else 1.0
    occupied = peak.occupied_multiplier if peak.occupied_multiplier is not None else 1.0
    return repo, occupied


def _side_info(
    leg: Leg, config: ZoneNetworkConfig, peak: Optional[PeakPeriod]
) -> Optional[ZoneSideInfo]:
    zone = next((z for z in config.zones if z.id == leg.meta.zone_id), None)
    if zone is None or leg.meta.repo_direction is None:
        return None
    base, applied, _, _ = zone_repo_time(zone, leg.meta.repo_direction, config, peak)
    return ZoneSideInfo(
        zone_id=zone.id,
        zone_name=zone.name,
        selected_airport=leg.meta.chosen_base_icao or leg.origin.icao,
        base_repo_time=base,
        applied_repo_time=applied,
        repo_direction=leg.meta.repo_direction,
    )


def build_zone_calculation_info(
    legs: list[Leg],
    config: ZoneNetworkConfig,
    depart_day: Date,
    repo_rate: float,
    occupied_rate: float,
) -> ZoneCalculationInfo:
    """Explain how zone pricing derived its repo hours and rates."""
    peak = config.peak_for(depart_day)
    repo_mult, occupied_mult = peak_multipliers(peak)
    info = ZoneCalculationInfo(
        repo_rate=RateInfo(base_rate=repo_rate, applied_rate=repo_rate * repo_mult),
        occupied_rate=RateInfo(base_rate=occupied_rate, applied_rate=occupied_rate * occupied_mult),
    )

    for leg in legs:
        if not leg.meta.is_zone_repo:
            continue
        side = _side_info(leg, config, peak)
        if side is None:
            continue
        if side.repo_direction == RepoDirection.ORIGIN:
            info.outbound_zone = side
        else:
            info.inbound_zone = side

    if peak is not None:
        info.peak_period = PeakInfo(
            id=peak.id,
            name=peak.name,
            outbound_repo_time=info.outbound_zone.applied_repo_time if info.outbound_zone else None,
            inbound_repo_time=info.inbound_zone.applied_repo_time if info.inbound_zone else None,
            repo_rate_multiplier=peak.repo_rate_multiplier,
            occupied_multiplier=peak.occupied_multiplier,
        )
    return info
