"""Region admission rules: domestic-only and excluded states."""

from charter.models import reject
from charter.rules.base import register_rule

_HOME_COUNTRY = "US"


@register_rule
class DomesticOnlyRule:
    """Both endpoints must be in the home country when domestic-only is set."""

    rule_id = "domestic_only"
    rule_name = "Domestic Only"

    def check(self, trip, knobs, context):
        if not knobs.eligibility.domestic_only:
            return None
        # Airports without a country are treated as domestic
        countries = {(a.country or _HOME_COUNTRY).upper() for a in (trip.origin, trip.destination)}
        if countries != {_HOME_COUNTRY}:
            return reject(
                "DOMESTIC_ONLY",
                "Trip is not US domestic.",
                "eligibility.domesticOnly",
            )
        return None


@register_rule
class ExcludedStatesRule:
    rule_id = "excluded_states"
    rule_name = "Excluded States"

    def check(self, trip, knobs, context):
        excluded = {s.upper() for s in knobs.eligibility.exclude_states}
        if not excluded:
            return None
        for airport in (trip.origin, trip.destination):
            if airport.state and airport.state.upper() in excluded:
                return reject(
                    "STATE_EXCLUDED",
                    f"Trip touches excluded state {airport.state} ({airport.icao}).",
                    "eligibility.excludeStates",
                )
        return None
