"""Aggregation: totals, split round-trip merging and quote ranking."""

from dataclasses import dataclass
from typing import Optional

from charter.dates import calendar_days_touched, compute_overnights
from charter.knobs import RankMetric, ResultSelection, ResultsKnobs
from charter.models import (
    LineItem,
    LineItemCode,
    QuoteResult,
    QuoteStatus,
    TimeSummary,
    Totals,
    Trip,
)
from charter.money import round_hours, round_money
from charter.scoring import calc_match_score, reported_match_score


def summarize_totals(items: list[LineItem]) -> Totals:
    """Bucket line items by code prefix; each bucket is rounded on its own."""
    base_occupied = sum(i.amount for i in items if i.code == LineItemCode.BASE_OCCUPIED)
    base_repo = sum(i.amount for i in items if i.code.value.startswith("BASE_REPO"))
    fees = sum(i.amount for i in items if i.code.value.startswith("FEE_"))
    discounts = sum(i.amount for i in items if i.amount < 0)
    total = sum(i.amount for i in items)
    return Totals(
        base_occupied=round_money(base_occupied),
        base_repo=round_money(base_repo),
        fees=round_money(fees),
        discounts=round_money(discounts),
        total=round_money(total),
    )


def split_note(overnights: int, threshold: int) -> str:
    return f"Split RT into 2 one-ways because overnights ({overnights}) > {threshold}."


def merge_split_quotes(outbound: QuoteResult, back: QuoteResult, trip: Trip, threshold: int) -> QuoteResult:
    """Combine the two one-way halves of a split round trip.

    Both halves must be OK. Line items are tagged with the half they came
    from and an informational item records why the trip was split.
    """
    overnights = compute_overnights(trip.depart_local, trip.return_local)
    items = [i.tagged(leg="OUTBOUND") for i in outbound.line_items]
    items += [i.tagged(leg="RETURN") for i in back.line_items]
    items.append(
        LineItem(
            code=LineItemCode.INFO_SPLIT,
            label="Round trip split",
            amount=0.0,
            meta={
                "overnights": overnights,
                "threshold": threshold,
                "note": split_note(overnights, threshold),
            },
        )
    )

    occupied = round_hours(outbound.times.occupied_hours + back.times.occupied_hours)
    repo = round_hours(outbound.times.repo_hours + back.times.repo_hours)
    times = TimeSummary(
        occupied_hours=occupied,
        repo_hours=repo,
        total_hours=round_hours(occupied + repo),
        match_score=reported_match_score(calc_match_score(occupied, repo)),
        overnights=overnights,
        calendar_days_touched=calendar_days_touched(trip.depart_local, trip.return_local),
    )
    return QuoteResult(
        status=QuoteStatus.OK,
        legs=[*outbound.legs, *back.legs],
        times=times,
        line_items=items,
        totals=summarize_totals(items),
    )


@dataclass
class RankedQuote:
    label: str
    result: QuoteResult

    def metric(self, rank_metric: RankMetric) -> Optional[float]:
        if not self.result.ok:
            return None
        if rank_metric == RankMetric.MATCH_SCORE:
            return self.result.times.match_score
        return self.result.total


def rank_quotes(quotes: list[RankedQuote], prefs: ResultsKnobs) -> list[RankedQuote]:
    """Order OK quotes by the configured metric and apply the selection.

    Rejected quotes and quotes without a value for the metric are dropped.
    ``all`` returns every remaining quote in ascending metric order.
    """
    scored = [q for q in quotes if q.metric(prefs.rank_metric) is not None]
    scored.sort(key=lambda q: q.metric(prefs.rank_metric))
    if not scored or prefs.selection == ResultSelection.ALL:
        return scored
    if prefs.selection == ResultSelection.LOWEST:
        return scored[:1]
    return scored[-1:]
