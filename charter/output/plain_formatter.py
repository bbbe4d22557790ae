"""Plain text output formatter -- no ANSI escapes."""

from __future__ import annotations

from charter.aggregation import RankedQuote
from charter.models import Airport, QuoteResult


def _header(title: str) -> str:
    """Create a plain text section header."""
    return f"\n{'=' * 60}\n  {title}\n{'=' * 60}\n"


def _subheader(title: str) -> str:
    """Create a plain text sub-header."""
    return f"\n--- {title} ---\n"


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


class PlainFormatter:
    """Format quote results as plain text without ANSI escapes."""

    def format_quote(self, result: QuoteResult) -> str:
        lines: list[str] = [_header("Quote")]
        lines.append(f"  Status: {result.status.value}")

        if not result.ok:
            for reason in result.reject_reasons:
                lines.append(f"  {reason.code}: {reason.message}")
                if reason.field_path:
                    lines.append(f"    Field: {reason.field_path}")
            return "\n".join(lines)

        t = result.times
        lines.append(
            f"  Hours:  {t.occupied_hours:.3f} occupied + {t.repo_hours:.3f} repo = {t.total_hours:.3f}"
        )
        if t.match_score is not None:
            lines.append(f"  Match:  {t.match_score:.2f} / 10")
        lines.append(f"  Nights: {t.overnights}   Days: {t.calendar_days_touched}")

        lines.append(_subheader("Legs"))
        lines.append(f"  {'#':>3}  {'Kind':<9} {'Route':<11} {'Dist nm':>8} {'Actual':>7} {'Billed':>7}")
        lines.append(f"  {'-' * 3}  {'-' * 9} {'-' * 11} {'-' * 8} {'-' * 7} {'-' * 7}")
        for i, leg in enumerate(result.legs, 1):
            m = leg.meta
            lines.append(
                f"  {i:>3}  {leg.kind.value:<9} {leg.route:<11} {m.distance_nm or 0:>8.1f} "
                f"{m.actual_hours or 0:>7.3f} {m.adjusted_hours or 0:>7.3f}"
            )

        lines.append(_subheader("Line Items"))
        for item in result.line_items:
            half = item.meta.get("leg")
            label = f"{item.label} [{half}]" if half else item.label
            lines.append(f"  {item.code.value:<28} {label:<40} {_money(item.amount):>14}")

        totals = result.totals
        lines.append(_subheader("Totals"))
        lines.append(f"  Base (occupied): {_money(totals.base_occupied):>14}")
        lines.append(f"  Base (repo):     {_money(totals.base_repo):>14}")
        lines.append(f"  Fees:            {_money(totals.fees):>14}")
        lines.append(f"  Discounts:       {_money(totals.discounts):>14}")
        lines.append(f"  TOTAL:           {_money(totals.total):>14}")
        return "\n".join(lines)

    def format_comparison(self, ranked: list[RankedQuote]) -> str:
        lines: list[str] = [_header("Comparison")]
        if not ranked:
            lines.append("  No eligible quotes.")
            return "\n".join(lines)
        lines.append(f"  {'#':>3}  {'Option':<12} {'Total':>14} {'Match':>6} {'Hours':>8}")
        lines.append(f"  {'-' * 3}  {'-' * 12} {'-' * 14} {'-' * 6} {'-' * 8}")
        for i, q in enumerate(ranked, 1):
            t = q.result.times
            score = f"{t.match_score:.2f}" if t.match_score is not None else "-"
            lines.append(f"  {i:>3}  {q.label:<12} {_money(q.result.total):>14} {score:>6} {t.total_hours:>8.3f}")
        return "\n".join(lines)

    def format_airport(self, airport: Airport) -> str:
        lines = [_header(f"Airport {airport.icao}")]
        lines.append(f"  Location:    {airport.lat:.4f}, {airport.lon:.4f}")
        lines.append(f"  Country:     {airport.country or '-'}")
        lines.append(f"  State:       {airport.state or '-'}")
        lines.append(f"  Mississippi: {airport.mississippi_direction.value}")
        lines.append(f"  Timezone:    {airport.timezone_id or '-'}")
        return "\n".join(lines)
