"""Schema migrations for stored pricing configurations.

Applied to the raw mapping before it is validated into ``PricingKnobs``.
"""

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)


def _move_split_threshold(knobs: dict[str, Any]) -> None:
    """fees.overnight.maxNightsBeforeSplit -> trip.maxNightsBeforeSplit."""
    overnight = (knobs.get("fees") or {}).get("overnight")
    if not isinstance(overnight, dict) or "maxNightsBeforeSplit" not in overnight:
        return
    value = overnight.pop("maxNightsBeforeSplit")
    trip = knobs.get("trip")
    if not isinstance(trip, dict):
        trip = knobs["trip"] = {}
    # An explicit trip-level value wins over the legacy location
    trip.setdefault("maxNightsBeforeSplit", value)
    logger.info("Migrated fees.overnight.maxNightsBeforeSplit to trip.maxNightsBeforeSplit")


MIGRATIONS = [_move_split_threshold]


def migrate_knobs(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a migrated copy of ``raw``; the input is never mutated.

    Every migration is idempotent, so already-current configurations pass
    through unchanged.
    """
    knobs = copy.deepcopy(raw)
    for migration in MIGRATIONS:
        migration(knobs)
    return knobs
