"""Great-circle distance between airports, in nautical miles."""

from typing import Optional

from haversine import Unit, haversine

from charter.models import Airport


def haversine_nm(origin: Airport, dest: Airport) -> float:
    """Return the great-circle distance in nautical miles between two airports.

    Returns 0.0 when both ends are the same airport.
    """
    if origin.icao == dest.icao:
        return 0.0
    return haversine((origin.lat, origin.lon), (dest.lat, dest.lon), unit=Unit.NAUTICAL_MILES)


class DistanceCalculator:
    """Calculate great-circle distances between airports."""

    def nm(self, origin: Airport, dest: Airport) -> float:
        return haversine_nm(origin, dest)

    def closest(self, reference: Airport, candidates: list[Airport]) -> Optional[Airport]:
        """Candidate nearest to ``reference``; first one wins ties. None if empty."""
        best: Optional[Airport] = None
        best_nm = float("inf")
        for candidate in candidates:
            d = haversine_nm(reference, candidate)
            if d < best_nm:
                best, best_nm = candidate, d
        return best
