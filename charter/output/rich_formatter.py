"""Rich-based output formatter with colored tables and panels."""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from charter.aggregation import RankedQuote
from charter.models import Airport, LegKind, QuoteResult

_KIND_STYLES = {
    LegKind.OCCUPIED: "green",
    LegKind.REPO: "dim",
}


def _render(renderable) -> str:
    """Render a Rich object to a string."""
    buf = StringIO()
    console = Console(file=buf, force_terminal=True, width=120)
    console.print(renderable)
    return buf.getvalue()


def _money(amount: float) -> Text:
    style = "green" if amount < 0 else ""
    return Text(f"${amount:,.2f}", style=style)


class RichFormatter:
    """Format quote results using Rich tables and panels."""

    def format_quote(self, result: QuoteResult) -> str:
        if not result.ok:
            body = Text()
            body.append("REJECTED\n", style="bold red")
            for reason in result.reject_reasons:
                body.append(f"{reason.code}", style="bold")
                body.append(f": {reason.message}\n")
                if reason.field_path:
                    body.append(f"  field: {reason.field_path}\n", style="dim")
            return _render(Panel(body, title="Quote", border_style="red"))

        parts: list[str] = []
        t = result.times
        summary = Text()
        summary.append("Total: ")
        summary.append(f"${result.total:,.2f}\n", style="bold green")
        summary.append(
            f"Hours: {t.occupied_hours:.3f} occupied + {t.repo_hours:.3f} repo = {t.total_hours:.3f}\n"
        )
        if t.match_score is not None:
            summary.append(f"Match score: {t.match_score:.2f} / 10\n")
        summary.append(f"Overnights: {t.overnights}   Calendar days: {t.calendar_days_touched}")
        parts.append(_render(Panel(summary, title="Quote", border_style="cyan")))

        legs = Table(title="Legs", show_lines=False)
        legs.add_column("#", style="dim", justify="right")
        legs.add_column("Kind")
        legs.add_column("Route", style="cyan")
        legs.add_column("Distance (nm)", justify="right")
        legs.add_column("Actual h", justify="right")
        legs.add_column("Billed h", justify="right")
        legs.add_column("Notes")
        for i, leg in enumerate(result.legs, 1):
            m = leg.meta
            notes = []
            if m.zone_name:
                notes.append(f"zone {m.zone_name}")
            if m.peak_period_name:
                notes.append(f"peak {m.peak_period_name}")
            legs.add_row(
                str(i),
                Text(leg.kind.value, style=_KIND_STYLES.get(leg.kind, "")),
                leg.route,
                f"{m.distance_nm or 0:,.1f}",
                f"{m.actual_hours or 0:.3f}",
                f"{m.adjusted_hours or 0:.3f}",
                ", ".join(notes),
            )
        parts.append(_render(legs))

        items = Table(title="Line Items", show_lines=False)
        items.add_column("Code", style="dim")
        items.add_column("Item")
        items.add_column("Half")
        items.add_column("Amount", justify="right")
        for item in result.line_items:
            items.add_row(item.code.value, item.label, item.meta.get("leg", ""), _money(item.amount))
        totals = result.totals
        items.add_section()
        items.add_row("", "Base (occupied)", "", _money(totals.base_occupied))
        items.add_row("", "Base (repo)", "", _money(totals.base_repo))
        items.add_row("", "Fees", "", _money(totals.fees))
        items.add_row("", "Discounts", "", _money(totals.discounts))
        items.add_row("", Text("TOTAL", style="bold"), "", Text(f"${totals.total:,.2f}", style="bold"))
        parts.append(_render(items))
        return "\n".join(parts)

    def format_comparison(self, ranked: list[RankedQuote]) -> str:
        if not ranked:
            return _render(Text("No eligible quotes.", style="yellow"))
        table = Table(title="Comparison", show_lines=False)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Option", style="cyan")
        table.add_column("Total", justify="right")
        table.add_column("Match", justify="right")
        table.add_column("Hours", justify="right")
        for i, q in enumerate(ranked, 1):
            t = q.result.times
            table.add_row(
                str(i),
                q.label,
                f"${q.result.total:,.2f}",
                f"{t.match_score:.2f}" if t.match_score is not None else "-",
                f"{t.total_hours:.3f}",
            )
        return _render(table)

    def format_airport(self, airport: Airport) -> str:
        body = Text()
        body.append(f"Location:    {airport.lat:.4f}, {airport.lon:.4f}\n")
        body.append(f"Country:     {airport.country or '-'}\n")
        body.append(f"State:       {airport.state or '-'}\n")
        body.append(f"Mississippi: {airport.mississippi_direction.value}\n")
        body.append(f"Timezone:    {airport.timezone_id or '-'}")
        return _render(Panel(body, title=f"Airport {airport.icao}", border_style="cyan"))
