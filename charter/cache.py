"""On-disk cache of per-leg flight times returned by the flight-time service.

One JSON file per request under ~/.charter/cache/, holding the averaged
seconds for every flown leg and an absolute expiry. An entry that cannot be
read, has expired, or does not hold one non-negative duration per leg is a
miss and is deleted, so a bad file never reaches the pricing pipeline.
"""

import hashlib
import logging
import time
from pathlib import Path
from typing import Optional

from pydantic import NonNegativeInt, ValidationError

from charter.models import CamelModel

logger = logging.getLogger(__name__)

_DEFAULT_CACHE_DIR = Path.home() / ".charter" / "cache"
_DEFAULT_TTL_HOURS = 24


class CachedFlightTimes(CamelModel):
    """Stored form of one estimate: seconds per flown leg, in leg order."""

    seconds: list[NonNegativeInt]
    expires_at: float


class FlightTimeCache:
    def __init__(self, cache_dir: Optional[Path] = None, ttl_hours: float = _DEFAULT_TTL_HOURS) -> None:
        self.cache_dir = cache_dir or _DEFAULT_CACHE_DIR
        self.ttl_hours = ttl_hours
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Entry file for ``key``. Keys embed routes and timestamps, so only a digest is used."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self.cache_dir / f"ft_{digest}.json"

    def store(self, key: str, seconds: list[int], ttl_hours: Optional[float] = None) -> None:
        ttl = self.ttl_hours if ttl_hours is None else ttl_hours
        entry = CachedFlightTimes(seconds=seconds, expires_at=time.time() + ttl * 3600)
        try:
            self.path_for(key).write_text(entry.model_dump_json(by_alias=True), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write flight-time cache entry: %s", exc)

    def lookup(self, key: str, leg_count: int) -> Optional[list[int]]:
        """Cached seconds for ``leg_count`` legs, or None on any kind of miss."""
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Unreadable flight-time cache entry %s: %s", path.name, exc)
            return None

        try:
            entry = CachedFlightTimes.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed flight-time cache entry %s (%d errors)", path.name, exc.error_count())
            self._discard(path)
            return None

        if entry.expires_at <= time.time():
            self._discard(path)
            return None
        if len(entry.seconds) != leg_count:
            logger.warning(
                "Discarding flight-time cache entry %s: %d legs cached, %d expected",
                path.name,
                len(entry.seconds),
                leg_count,
            )
            self._discard(path)
            return None
        return entry.seconds

    def clear(self) -> int:
        """Delete every entry. Returns the number of files removed."""
        if not self.cache_dir.exists():
            return 0
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            if self._discard(path):
                removed += 1
        return removed

    @staticmethod
    def _discard(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.debug("Could not remove flight-time cache entry %s: %s", path.name, exc)
            return False
        return True
