"""Geography rules: allowed countries and the Mississippi rule.

Configured rules are evaluated in list order; the first failure wins.
"""

from typing import Optional

from charter.knobs import AllowedCountriesRule, MississippiRule, SideName, SideRequirement
from charter.models import Airport, RejectReason, Side, Trip, reject
from charter.rules.base import register_rule

_FIELD = "eligibility.geoRules"

_REQUIRED_SIDE = {
    SideRequirement.BOTH_EAST: Side.EAST,
    SideRequirement.BOTH_WEST: Side.WEST,
    SideName.EAST: Side.EAST,
    SideName.WEST: Side.WEST,
}


def _both_on(side: Side, *airports: Airport) -> bool:
    return all(a.mississippi_direction == side for a in airports)


def check_allowed_countries(trip: Trip, rule: AllowedCountriesRule) -> Optional[RejectReason]:
    allowed = {c.upper() for c in rule.countries}
    for airport in (trip.origin, trip.destination):
        # Unknown countries are not held against the trip
        if airport.country and airport.country.upper() not in allowed:
            return reject(
                "COUNTRY_NOT_ALLOWED",
                f"{airport.icao} is in {airport.country}, not in the allowed list.",
                _FIELD,
            )
    return None


def check_mississippi(trip: Trip, rule: MississippiRule, overnights: Optional[int]) -> Optional[RejectReason]:
    """One-way: both endpoints on the required side.

    Round trip: up to N overnights only the origin side is checked,
    beyond that both endpoints must be on the required side.
    """
    origin, dest = trip.origin, trip.destination

    if not trip.is_round_trip:
        if not _both_on(_REQUIRED_SIDE[rule.one_way_requires], origin, dest):
            return reject("GEO_RULE_FAIL", "One-way Mississippi rule failed.", _FIELD)
        return None

    if overnights is None:
        return reject(
            "MISSING_RETURN",
            "returnLocalISO required for ROUND_TRIP",
            "trip.returnLocalISO",
        )

    if overnights <= rule.round_trip_up_to_nights_requires_origin:
        if origin.mississippi_direction != _REQUIRED_SIDE[rule.round_trip_up_to_nights_side]:
            return reject(
                "GEO_RULE_FAIL",
                "Round-trip (short) Mississippi origin-side rule failed.",
                _FIELD,
            )
        return None

    if not _both_on(_REQUIRED_SIDE[rule.round_trip_beyond_nights_requires], origin, dest):
        return reject(
            "GEO_RULE_FAIL",
            "Round-trip (long) Mississippi both-side rule failed.",
            _FIELD,
        )
    return None


@register_rule
class GeoRulesRule:
    rule_id = "geo_rules"
    rule_name = "Geography Rules"

    def check(self, trip, knobs, context):
        for rule in knobs.eligibility.geo_rules:
            if isinstance(rule, AllowedCountriesRule):
                reason = check_allowed_countries(trip, rule)
            elif isinstance(rule, MississippiRule):
                reason = check_mississippi(trip, rule, context.overnights)
            else:
                return reject("GEO_RULE_FAIL", f"Unsupported geography rule {rule!r}.", _FIELD)
            if reason is not None:
                return reason
        return None
