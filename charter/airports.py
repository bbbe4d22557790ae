"""Airport reference lookup built on the airportsdata ICAO database.

Resolves a code to an ``Airport`` with state code, timezone and the
Mississippi side tag the eligibility rules need.
"""

from pathlib import Path
from typing import Optional

import airportsdata
import yaml

from charter.models import Airport, Side

_DATA_DIR = Path(__file__).parent / "data"

_ICAO_DB = airportsdata.load("ICAO")
_IATA_DB = airportsdata.load("IATA")

with open(_DATA_DIR / "us_states.yaml") as f:
    _STATE_DATA = yaml.safe_load(f)

_REFERENCE_MERIDIAN: float = float(_STATE_DATA.get("reference_meridian", -90.0))
_STATE_CODES: dict[str, str] = _STATE_DATA.get("states", {})
_EAST: set[str] = set(_STATE_DATA.get("east", []))
_WEST: set[str] = set(_STATE_DATA.get("west", []))
_STRADDLING: dict[str, float] = _STATE_DATA.get("straddling", {})


def state_code(subdivision: str) -> Optional[str]:
    """Map an airportsdata subdivision name ("New Jersey") to "NJ"."""
    if not subdivision:
        return None
    if subdivision.upper() in _EAST | _WEST | set(_STRADDLING):
        return subdivision.upper()
    return _STATE_CODES.get(subdivision)


def mississippi_side(state: Optional[str], lon: float) -> Side:
    """Which side of the Mississippi an airport sits on.

    Resolution order:
    1. States wholly east or west of the river
    2. Straddling states: longitude against the river's meridian there
    3. Anything else: longitude against the reference meridian
    """
    if state in _EAST:
        return Side.EAST
    if state in _WEST:
        return Side.WEST
    meridian = _STRADDLING.get(state, _REFERENCE_MERIDIAN) if state else _REFERENCE_MERIDIAN
    return Side.EAST if lon >= meridian else Side.WEST


def _record(code: str) -> Optional[dict]:
    code = code.upper()
    return _ICAO_DB.get(code) or _IATA_DB.get(code)


def lookup_airport(code: str) -> Optional[Airport]:
    """Build an Airport from reference data. Returns None if the code is unknown."""
    rec = _record(code)
    if rec is None:
        return None

    country = rec.get("country") or None
    state = state_code(rec.get("subd", "")) if country == "US" else None
    lat = float(rec["lat"])
    lon = float(rec["lon"])
    return Airport(
        icao=rec.get("icao") or code.upper(),
        lat=lat,
        lon=lon,
        country=country,
        state=state,
        mississippi_direction=mississippi_side(state, lon),
        timezone_id=rec.get("tz") or None,
    )


def known_codes() -> list[str]:
    """All ICAO codes in the reference database (for fuzzy suggestions)."""
    return list(_ICAO_DB.keys())
