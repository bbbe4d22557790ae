"""Quote engine: sequences every pipeline stage for one quote request.

A request is validated once, optionally split into two one-way
itineraries, and each itinerary runs the same fixed pipeline:

    eligibility -> repositioning -> flight time -> time adjustment
    -> repo limits -> match score -> leg-hour limits -> base pricing
    -> fees -> discounts -> price constraints -> totals

Any stage may stop the pipeline with a RejectReason.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from charter.aggregation import merge_split_quotes, summarize_totals
from charter.dates import calendar_days_touched, compute_overnights
from charter.discounts import apply_price_constraints, calc_discounts
from charter.distance import DistanceCalculator
from charter.eligibility import check_eligibility, check_leg_hours
from charter.fees import calc_fees, trip_overnights
from charter.flight_time import FlightTimeEstimator
from charter.knobs import PricingKnobs, RateModel, RepoMode
from charter.models import (
    QuoteResult,
    QuoteStatus,
    RejectReason,
    TimeSummary,
    Trip,
    reject,
)
from charter.pricing import BasePricing, calc_base_cost, require_rates
from charter.repo import enforce_repo_constraints, resolve_candidates, resolve_repo, unique_by_icao
from charter.scoring import calc_match_score, check_match_score, match_score_item, reported_match_score
from charter.timing import apply_time_adjustments

logger = logging.getLogger(__name__)


def validate_basics(trip: Trip, knobs: PricingKnobs) -> Optional[RejectReason]:
    """Fields a request needs before any itinerary is evaluated."""
    if trip.is_round_trip and trip.return_local is None:
        return reject(
            "MISSING_RETURN",
            "returnLocalISO required for ROUND_TRIP",
            "trip.returnLocalISO",
        )

    reason = require_rates(knobs)
    if reason is not None:
        return reason

    repo = knobs.repo
    if repo.mode == RepoMode.FIXED_BASE and repo.fixed_base is None:
        return reject(
            "MISSING_BASE",
            "repo.fixedBase (Airport) required when repo.mode=fixed_base",
            "repo.fixedBase",
        )
    if repo.mode == RepoMode.VHB_NETWORK and not resolve_candidates(trip.category, knobs):
        return reject(
            "MISSING_VHB_LIST",
            "repo.vhbSets.default must include at least 1 VHB Airport when repo.mode=vhb_network",
            "repo.vhbSets.default",
        )
    needs_zones = repo.mode == RepoMode.ZONE_NETWORK or knobs.pricing.rate_model == RateModel.ZONE_BASED
    if needs_zones and repo.zone_network is None:
        return reject(
            "MISSING_ZONE_CONFIG",
            "repo.zoneNetwork required for zone_network repositioning or zone_based pricing",
            "repo.zoneNetwork",
        )
    if knobs.pricing.rate_model == RateModel.ZONE_BASED and repo.mode != RepoMode.ZONE_NETWORK:
        return reject(
            "ZONE_PRICING_REQUIRES_ZONE_NETWORK",
            "pricing.rateModel=zone_based requires repo.mode=zone_network",
            "pricing.rateModel",
        )
    return None


class QuoteEngine:
    """Computes quotes. Holds no per-request state, so one engine can serve
    any number of concurrent requests.

    ``clock`` supplies "now" for the advance-booking window; inject a fixed
    clock for reproducible results.
    """

    def __init__(
        self,
        estimator: Optional[FlightTimeEstimator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        distances: Optional[DistanceCalculator] = None,
    ) -> None:
        self.estimator = estimator or FlightTimeEstimator()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.distances = distances or DistanceCalculator()

    def quote(self, trip: Trip, knobs: PricingKnobs, now: Optional[datetime] = None) -> QuoteResult:
        """Blocking entry point."""
        return asyncio.run(self.quote_async(trip, knobs, now))

    async def quote_async(self, trip: Trip, knobs: PricingKnobs, now: Optional[datetime] = None) -> QuoteResult:
        now = now or self._clock()

        reason = validate_basics(trip, knobs)
        if reason is not None:
            return QuoteResult.rejected(reason)

        threshold = knobs.trip.max_nights_before_split
        if trip.is_round_trip and threshold is not None:
            overnights = compute_overnights(trip.depart_local, trip.return_local)
            if overnights > threshold:
                return await self._quote_split(trip, knobs, now, threshold)

        return await self.quote_itinerary(trip, knobs, now)

    async def _quote_split(self, trip: Trip, knobs: PricingKnobs, now: datetime, threshold: int) -> QuoteResult:
        logger.info(
            "Splitting %s round trip into two one-ways (threshold %d nights)",
            trip.origin.icao,
            threshold,
        )
        outbound, back = await asyncio.gather(
            self.quote_itinerary(trip.outbound_one_way(), knobs, now),
            self.quote_itinerary(trip.return_one_way(), knobs, now),
        )
        # Outbound rejection wins when both halves fail
        for half in (outbound, back):
            if not half.ok:
                return half
        return merge_split_quotes(outbound, back, trip, threshold)

    async def quote_itinerary(self, trip: Trip, knobs: PricingKnobs, now: datetime) -> QuoteResult:
        """Run the single-itinerary pipeline. Never re-checks the split condition."""
        reason = check_eligibility(trip, knobs, now)
        if reason is not None:
            return self._rejected(trip, reason)

        candidates = resolve_candidates(trip.category, knobs)
        plan = resolve_repo(trip, knobs, candidates, self.distances)
        if isinstance(plan, RejectReason):
            return self._rejected(trip, plan)

        legs = [*plan.legs_out, *trip.occupied_legs(), *plan.legs_back]
        seconds = await self.estimator.estimate_async(legs, trip.category, trip)

        timed = apply_time_adjustments(trip, knobs, legs, seconds)
        if isinstance(timed, RejectReason):
            return self._rejected(trip, timed)

        reason = enforce_repo_constraints(knobs, timed.legs)
        if reason is not None:
            return self._rejected(trip, reason)

        score = calc_match_score(timed.occupied_hours, timed.repo_hours)
        reason = check_match_score(knobs, score) or check_leg_hours(trip, knobs, timed.legs)
        if reason is not None:
            return self._rejected(trip, reason)

        base = calc_base_cost(knobs, timed, trip)
        if isinstance(base, RejectReason):
            return self._rejected(trip, base)

        return self._priced(trip, knobs, base, candidates, timed, score)

    def _priced(self, trip, knobs, base: BasePricing, candidates, timed, score) -> QuoteResult:
        items = list(base.items)
        info = match_score_item(knobs, score)
        if info is not None:
            items.append(info)
        items += calc_fees(trip, knobs, base.legs)

        home_bases = unique_by_icao([*candidates, *filter(None, [knobs.repo.fixed_base])])
        items += calc_discounts(trip, knobs, base.legs, home_bases, items)

        occupied_count = sum(1 for leg in base.legs if leg.is_occupied)
        items += apply_price_constraints(knobs, sum(i.amount for i in items), occupied_count)

        times = TimeSummary(
            occupied_hours=timed.occupied_hours,
            repo_hours=timed.repo_hours,
            total_hours=timed.total_hours,
            match_score=reported_match_score(score),
            overnights=trip_overnights(trip),
            calendar_days_touched=calendar_days_touched(trip.depart_local, trip.span_end),
        )
        return QuoteResult(
            status=QuoteStatus.OK,
            legs=base.legs,
            times=times,
            line_items=items,
            totals=summarize_totals(items),
            zone_calculation=base.zone_calculation,
        )

    @staticmethod
    def _rejected(trip: Trip, reason: RejectReason) -> QuoteResult:
        logger.debug("%s-%s rejected: %s %s", trip.origin.icao, trip.destination.icao, reason.code, reason.message)
        return QuoteResult.rejected(reason)
