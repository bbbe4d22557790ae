"""Flight-time estimation for quote legs.

Delegates to an external flight-time service keyed by aircraft model when one
is configured, averaging per-leg durations across the matching models. Any
failure (no configuration, transport error, timeout, non-success status,
malformed payload) degrades to a deterministic geometric estimate:
great-circle distance divided by the category's average speed.

Configuration:
- CHARTER_FLIGHT_TIME_BASE_URL: service root (POST {base}/flight_time)
- CHARTER_FLIGHT_TIME_API_KEY: API key; falls back to the system keyring
- CHARTER_FLIGHT_TIME_TIMEOUT_S: request timeout in seconds (default 10)
"""

from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import keyring
import requests
import yaml
from keyring.errors import KeyringError

from charter.cache import FlightTimeCache
from charter.distance import haversine_nm
from charter.models import CategoryId, Leg, Trip

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent / "data"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_URL_ENV = "CHARTER_FLIGHT_TIME_BASE_URL"
API_KEY_ENV = "CHARTER_FLIGHT_TIME_API_KEY"
TIMEOUT_ENV = "CHARTER_FLIGHT_TIME_TIMEOUT_S"
KEYRING_SERVICE = "charter-flight-time"

_DEFAULT_TIMEOUT_S = 10.0
_ESTIMATE_WORKERS = 4

CATEGORY_SPEED_KNOTS: dict[CategoryId, int] = {
    CategoryId.CAT1: 160,
    CategoryId.CAT2: 260,
    CategoryId.CAT3: 330,
    CategoryId.CAT4: 380,
    CategoryId.CAT5: 410,
    CategoryId.CAT6: 430,
    CategoryId.CAT7: 450,
    CategoryId.CAT8: 470,
}
DEFAULT_SPEED_KNOTS = 430

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FlightTimeServiceError(Exception):
    """Base exception for flight-time service failures."""


class FlightTimeAuthError(FlightTimeServiceError):
    """HTTP 401/403 -- invalid or missing API key."""


class FlightTimeResponseError(FlightTimeServiceError):
    """Response body did not match the expected shape."""


# ---------------------------------------------------------------------------
# Aircraft catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AircraftModel:
    model_id: str
    name: str = ""
    avg_speed_knots: float = DEFAULT_SPEED_KNOTS


def load_aircraft_catalog(path: Optional[Path] = None) -> dict[CategoryId, list[AircraftModel]]:
    """Load category -> candidate models from aircraft.yaml."""
    with open(path or _DATA_DIR / "aircraft.yaml") as f:
        raw = yaml.safe_load(f) or {}

    catalog: dict[CategoryId, list[AircraftModel]] = {}
    for cat, models in (raw.get("categories") or {}).items():
        catalog[CategoryId(cat)] = [
            AircraftModel(
                model_id=str(m["model_id"]),
                name=m.get("name", ""),
                avg_speed_knots=float(m.get("avg_speed_knots", DEFAULT_SPEED_KNOTS)),
            )
            for m in models
        ]
    return catalog


def models_for(
    category: CategoryId,
    model_id: Optional[str] = None,
    catalog: Optional[dict[CategoryId, list[AircraftModel]]] = None,
) -> list[AircraftModel]:
    """A specific model when the trip names one, else every model in the category."""
    if model_id:
        return [AircraftModel(model_id=model_id, avg_speed_knots=category_speed_knots(category))]
    catalog = catalog if catalog is not None else load_aircraft_catalog()
    return list(catalog.get(category, []))


# ---------------------------------------------------------------------------
# Geometric fallback
# ---------------------------------------------------------------------------


def category_speed_knots(category: CategoryId) -> int:
    return CATEGORY_SPEED_KNOTS.get(category, DEFAULT_SPEED_KNOTS)


def fallback_seconds(legs: list[Leg], category: CategoryId) -> list[int]:
    """Distance / average category speed, in whole seconds, never negative."""
    speed = category_speed_knots(category)
    return [max(0, round(haversine_nm(leg.origin, leg.destination) / speed * 3600)) for leg in legs]


def leg_departures(legs: list[Leg], trip: Trip) -> list[datetime]:
    """Local departure timestamp to report for each leg.

    Legs up to and including the first occupied leg depart on the trip's
    departure; everything after the outbound occupied leg departs on the
    return date when the trip has one.
    """
    out: list[datetime] = []
    seen_occupied = 0
    later = trip.return_local or trip.depart_local
    for leg in legs:
        if leg.is_occupied:
            seen_occupied += 1
        outbound = seen_occupied == 0 or (leg.is_occupied and seen_occupied == 1)
        out.append(trip.depart_local if outbound else later)
    return out


# ---------------------------------------------------------------------------
# Service client
# ---------------------------------------------------------------------------


def _timeout_from_env() -> float:
    raw = os.environ.get(TIMEOUT_ENV, "").strip()
    try:
        return float(raw) if raw else _DEFAULT_TIMEOUT_S
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", TIMEOUT_ENV, raw)
        return _DEFAULT_TIMEOUT_S


def _api_key() -> str:
    key = os.environ.get(API_KEY_ENV, "").strip()
    if key:
        return key
    try:
        return (keyring.get_password(KEYRING_SERVICE, "api_key") or "").strip()
    except KeyringError as exc:
        logger.debug("Keyring unavailable: %s", exc)
        return ""


class FlightTimeClient:
    """Thin HTTP client for the external flight-time service."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    @classmethod
    def from_environment(cls) -> Optional["FlightTimeClient"]:
        """Client built from env/keyring settings, or None when not configured."""
        base_url = os.environ.get(BASE_URL_ENV, "").strip()
        if not base_url:
            logger.debug("%s not set, flight times use the geometric estimate", BASE_URL_ENV)
            return None
        api_key = _api_key()
        if not api_key:
            logger.warning("Flight time API key missing, using fallback calculations")
            return None
        return cls(base_url, api_key, timeout_s=_timeout_from_env())

    def build_payload(
        self, legs: list[Leg], departures: list[datetime], model_ids: list[str]
    ) -> dict:
        return {
            "flightLegs": [
                {
                    "originIcao": leg.origin.icao,
                    "destinationIcao": leg.destination.icao,
                    "departDate": when.date().isoformat(),
                    "departTime": when.strftime("%H:%M"),
                    "originLat": leg.origin.lat,
                    "originLon": leg.origin.lon,
                    "destinationLat": leg.destination.lat,
                    "destinationLon": leg.destination.lon,
                }
                for leg, when in zip(legs, departures)
            ],
            "aircraft": {"models": model_ids},
        }

    def fetch(
        self, legs: list[Leg], departures: list[datetime], model_ids: list[str]
    ) -> dict[str, list[int]]:
        """Per-model, per-leg flight seconds.

        Raises FlightTimeServiceError on any transport or payload problem.
        """
        try:
            resp = self._session.post(
                f"{self.base_url}/flight_time",
                json=self.build_payload(legs, departures, model_ids),
                headers={"Accept": "application/json", "x-api-key": self.api_key},
                timeout=self.timeout_s,
            )
        except requests.Timeout as exc:
            raise FlightTimeServiceError(f"timeout after {self.timeout_s}s") from exc
        except requests.RequestException as exc:
            raise FlightTimeServiceError(f"network error: {exc}") from exc

        if resp.status_code in (401, 403):
            raise FlightTimeAuthError(f"HTTP {resp.status_code}: check the flight time API key")
        if resp.status_code >= 400:
            raise FlightTimeServiceError(f"HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise FlightTimeResponseError("non-JSON response") from exc

        return parse_flight_time_response(payload, len(legs))


def parse_flight_time_response(payload: object, leg_count: int) -> dict[str, list[int]]:
    """Extract ``{modelId: [seconds per leg]}`` from a service payload.

    Models whose leg list is missing, the wrong length, or holds a
    non-numeric/negative duration are dropped. Raises
    FlightTimeResponseError when no model survives.
    """
    if not isinstance(payload, dict):
        raise FlightTimeResponseError("payload is not an object")
    data = payload.get("data")
    results = data.get("results") if isinstance(data, dict) else None
    if not isinstance(results, list):
        raise FlightTimeResponseError("missing data.results")

    per_model: dict[str, list[int]] = {}
    for result in results:
        if not isinstance(result, dict) or not result.get("modelId"):
            continue
        legs = result.get("flightLegs")
        if not isinstance(legs, list) or len(legs) != leg_count:
            logger.debug("Model %s: expected %d legs", result.get("modelId"), leg_count)
            continue
        seconds: list[int] = []
        for leg in legs:
            value = (leg.get("flightTime") or {}).get("flightTimeSec") if isinstance(leg, dict) else None
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                break
            seconds.append(round(value))
        else:
            per_model[str(result["modelId"])] = seconds

    if not per_model:
        raise FlightTimeResponseError("no usable model results")
    return per_model


# ---------------------------------------------------------------------------
# Estimator
# ---------------------------------------------------------------------------


def average_per_leg(per_model: dict[str, list[int]]) -> list[int]:
    """Average each leg's duration across the models that answered."""
    columns = list(zip(*per_model.values()))
    return [round(sum(col) / len(col)) for col in columns]


class FlightTimeEstimator:
    """Estimate flight seconds per leg, one element per leg in order."""

    def __init__(
        self,
        client: Optional[FlightTimeClient] = None,
        cache: Optional[FlightTimeCache] = None,
        catalog: Optional[dict[CategoryId, list[AircraftModel]]] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._catalog = catalog
        self.timeout_s = timeout_s if timeout_s is not None else (
            client.timeout_s + 1 if client else _DEFAULT_TIMEOUT_S
        )
        # Not the loop default executor: asyncio.run() must not join a fetch past its deadline.
        self._executor = ThreadPoolExecutor(max_workers=_ESTIMATE_WORKERS, thread_name_prefix="flight-time")

    @classmethod
    def from_environment(cls, cache: Optional[FlightTimeCache] = None) -> "FlightTimeEstimator":
        return cls(client=FlightTimeClient.from_environment(), cache=cache)

    def estimate(self, legs: list[Leg], category: CategoryId, trip: Trip) -> list[int]:
        fallback = fallback_seconds(legs, category)
        if self._client is None or not legs:
            return fallback

        flown = [i for i, leg in enumerate(legs) if not leg.is_zero_length]
        if not flown:
            return fallback

        models = models_for(category, trip.aircraft_model_id, self._catalog)
        if not models:
            logger.warning("No aircraft models for %s, using geometric estimate", category.value)
            return fallback

        flown_legs = [legs[i] for i in flown]
        departures = leg_departures(legs, trip)
        flown_departures = [departures[i] for i in flown]
        model_ids = [m.model_id for m in models]

        cache_key = self._cache_key(flown_legs, flown_departures, model_ids)
        averaged = self._cache.lookup(cache_key, len(flown)) if self._cache else None
        if averaged is None:
            try:
                per_model = self._client.fetch(flown_legs, flown_departures, model_ids)
            except FlightTimeServiceError as exc:
                logger.warning("Flight time API request failed, using fallback: %s", exc)
                return fallback
            averaged = average_per_leg(per_model)
            if self._cache:
                self._cache.store(cache_key, averaged)

        seconds = list(fallback)
        for idx, value in zip(flown, averaged):
            seconds[idx] = max(0, int(value))
        return seconds

    async def estimate_async(self, legs: list[Leg], category: CategoryId, trip: Trip) -> list[int]:
        """Bounded, cancellable estimate; a timeout yields the geometric estimate."""
        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(self._executor, self.estimate, legs, category, trip)
        try:
            return await asyncio.wait_for(pending, timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Flight time estimate timed out after %.1fs, using fallback", self.timeout_s)
            return fallback_seconds(legs, category)

    @staticmethod
    def _cache_key(legs: list[Leg], departures: list[datetime], model_ids: list[str]) -> str:
        route = "_".join(
            f"{leg.origin.icao}-{leg.destination.icao}@{when:%Y%m%d%H%M}" for leg, when in zip(legs, departures)
        )
        return f"ft_{route}_{'-'.join(sorted(model_ids))}"
