"""Shared test fixtures for the charter quote engine."""

from datetime import datetime
from pathlib import Path

import pytest
import yaml

from charter.engine import QuoteEngine
from charter.flight_time import FlightTimeEstimator
from charter.knobs import PricingKnobs
from charter.models import Airport, Trip

FIXTURES_DIR = Path(__file__).parent / "fixtures"

NOW = datetime(2026, 10, 1, 8, 0)

AIRPORTS = {
    "KTEB": dict(icao="KTEB", lat=40.8501, lon=-74.0608, country="US", state="NJ", mississippi_direction="EAST"),
    "KHPN": dict(icao="KHPN", lat=41.0670, lon=-73.7076, country="US", state="NY", mississippi_direction="EAST"),
    "KBOS": dict(icao="KBOS", lat=42.3643, lon=-71.0052, country="US", state="MA", mississippi_direction="EAST"),
    "KPBI": dict(icao="KPBI", lat=26.6832, lon=-80.0956, country="US", state="FL", mississippi_direction="EAST"),
    "KVNY": dict(icao="KVNY", lat=34.2098, lon=-118.4897, country="US", state="CA", mississippi_direction="WEST"),
    "KDAL": dict(icao="KDAL", lat=32.8471, lon=-96.8518, country="US", state="TX", mississippi_direction="WEST"),
    "KASE": dict(icao="KASE", lat=39.2232, lon=-106.8688, country="US", state="CO", mississippi_direction="WEST"),
    "CYYZ": dict(icao="CYYZ", lat=43.6777, lon=-79.6248, country="CA", mississippi_direction="EAST"),
}


def _airport(code: str) -> Airport:
    return Airport(**AIRPORTS[code])


def _make_trip(origin="KTEB", dest="KPBI", depart="2026-10-10T09:00:00", ret=None, **extra) -> Trip:
    data = {
        "tripType": "ROUND_TRIP" if ret else "ONE_WAY",
        "category": "CAT3",
        "from": AIRPORTS[origin],
        "to": AIRPORTS[dest],
        "departLocalISO": depart,
        "returnLocalISO": ret,
    }
    data.update(extra)
    return Trip.model_validate(data)


def _make_knobs(**sections) -> PricingKnobs:
    """Minimal valid knobs (floating fleet, $5,000/h) with section overrides."""
    data = {
        "repo": {"mode": "floating_fleet"},
        "pricing": {"rateModel": "single_hourly", "hourlyRate": 5000},
    }
    data.update(sections)
    return PricingKnobs.model_validate(data)


class FixedEstimator(FlightTimeEstimator):
    """Estimator returning preset seconds per route, geometric fallback otherwise."""

    def __init__(self, seconds_by_route=None):
        super().__init__(client=None)
        self.seconds_by_route = seconds_by_route or {}
        self.calls = 0

    def estimate(self, legs, category, trip):
        self.calls += 1
        fallback = super().estimate(legs, category, trip)
        return [self.seconds_by_route.get(leg.route, s) for leg, s in zip(legs, fallback)]


@pytest.fixture
def load_yaml():
    """Return a function that loads a YAML fixture file."""

    def _load(name: str) -> dict:
        path = FIXTURES_DIR / name
        with open(path) as f:
            return yaml.safe_load(f)

    return _load


@pytest.fixture
def engine():
    """Engine with a fixed clock and 2h (7200s) per flown leg."""

    class _TwoHours(FlightTimeEstimator):
        def estimate(self, legs, category, trip):
            return [0 if leg.is_zero_length else 7200 for leg in legs]

    return QuoteEngine(estimator=_TwoHours(), clock=lambda: NOW)


@pytest.fixture
def geometric_engine():
    """Engine with a fixed clock using only the distance/speed estimate."""
    return QuoteEngine(estimator=FlightTimeEstimator(), clock=lambda: NOW)


@pytest.fixture
def tmp_cache_dir(tmp_path):
    d = tmp_path / "cache"
    d.mkdir()
    return d


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def airports():
    """Reference airport dicts keyed by ICAO code."""
    return AIRPORTS


@pytest.fixture
def airport():
    """Return a function building an Airport from the reference table."""
    return _airport


@pytest.fixture
def make_trip():
    """Return a trip factory: make_trip(origin, dest, depart, ret, **fields)."""
    return _make_trip


@pytest.fixture
def make_knobs():
    """Return a knobs factory: make_knobs(section=dict, ...)."""
    return _make_knobs


@pytest.fixture
def fixed_estimator():
    """Return a factory for estimators with preset seconds per route."""
    return FixedEstimator


@pytest.fixture
def zone_network():
    """Two-zone network (Northeast, Southeast) with a holiday peak period."""
    return {
        "zones": [
            {"id": "ne", "name": "Northeast", "states": ["NJ", "NY", "MA"]},
            {"id": "se", "name": "Southeast", "states": ["FL", "GA"]},
        ],
        "zoneRepoTimes": [
            {"zoneId": "ne", "originRepoTime": 1.0, "destinationRepoTime": 1.5},
            {"zoneId": "se", "originRepoTime": 0.5, "destinationRepoTime": 0.75},
        ],
        "peakPeriods": [
            {
                "id": "holidays",
                "name": "Holidays",
                "startDate": "2026-12-20",
                "endDate": "2027-01-03",
                "zoneTimeOverrides": [
                    {"zoneId": "ne", "originRepoTime": 2.0, "destinationRepoTime": 0},
                ],
                "repoRateMultiplier": 1.5,
                "occupiedMultiplier": 1.2,
            }
        ],
    }
