"""Booking-window and party-size rules."""

from charter.models import reject
from charter.rules.base import register_rule

_EPSILON = 1e-9


@register_rule
class AdvanceBookingRule:
    """Departure may not be further out than ``max_advance_days``."""

    rule_id = "advance_booking"
    rule_name = "Advance Booking Window"

    def check(self, trip, knobs, context):
        max_days = knobs.eligibility.max_advance_days
        if max_days is None:
            return None
        if context.days_until_departure > max_days + _EPSILON:
            return reject(
                "ADVANCE_TOO_FAR",
                f"Departure is {context.days_until_departure:.0f} days away; max is {max_days:g}.",
                "eligibility.maxAdvanceDays",
            )
        return None


@register_rule
class PassengerCapRule:
    rule_id = "passenger_cap"
    rule_name = "Passenger Cap"

    def check(self, trip, knobs, context):
        cap = knobs.eligibility.max_passengers
        if cap is None or trip.passengers is None:
            return None
        if trip.passengers > cap:
            return reject(
                "PAX_LIMIT",
                f"Passengers {trip.passengers} exceeds max {cap}.",
                "eligibility.maxPassengers",
            )
        return None
