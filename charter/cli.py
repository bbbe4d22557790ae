"""Charter quote CLI -- price private aircraft trips from operator knobs.

Provides commands for quoting a trip, comparing aircraft categories,
migrating stored knob files, and inspecting airport reference data.
"""

import asyncio
import difflib
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml
from pydantic import ValidationError

from charter.knobs import PricingKnobs
from charter.models import CategoryId, Trip

# ---------------------------------------------------------------------------
# App and sub-apps
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="charter",
    help="Charter quote engine -- quote, compare, migrate knobs.",
    no_args_is_help=True,
)

config_app = typer.Typer(
    name="config",
    help="Manage charter configuration.",
    no_args_is_help=True,
)

cache_app = typer.Typer(
    name="cache",
    help="Manage the flight-time cache.",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.add_typer(cache_app, name="cache")


# ---------------------------------------------------------------------------
# Global option types
# ---------------------------------------------------------------------------

JsonFlag = Annotated[bool, typer.Option("--json", help="Output as JSON.")]
PlainFlag = Annotated[bool, typer.Option("--plain", help="Output as plain text (no color).")]
VerboseFlag = Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output.")]
QuietFlag = Annotated[bool, typer.Option("--quiet", "-q", help="Suppress non-essential output.")]
OfflineFlag = Annotated[
    bool, typer.Option("--offline", help="Skip the flight-time service; use the geometric estimate.")
]
NowOption = Annotated[
    Optional[str], typer.Option("--now", help="Evaluate as of this ISO timestamp (default: current time).")
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_format(json_flag: bool = False, plain_flag: bool = False) -> str:
    """Determine output format: json > plain > TTY auto-detect > rich."""
    if json_flag:
        return "json"
    if plain_flag:
        return "plain"
    if sys.stdout.isatty():
        return "rich"
    return "plain"


def _setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)


def _fuzzy_airport_suggestion(code: str) -> str:
    """Suggest close airport codes using difflib."""
    from charter.airports import known_codes

    matches = difflib.get_close_matches(code.upper(), known_codes(), n=3, cutoff=0.6)
    if matches:
        return f" Did you mean: {', '.join(matches)}?"
    return ""


def _load_yaml(file: str) -> dict[str, Any]:
    """Load a YAML mapping, with helpful errors for missing files and bad syntax."""
    path = Path(file)

    if not path.exists():
        hint = ""
        if not path.is_absolute():
            hint = f" (looked in {Path.cwd()})"
        raise typer.BadParameter(
            f"File not found: {file}{hint}\n  Hint: Check the file path and try again."
        )

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        msg = f"YAML parse error in {file}"
        if hasattr(exc, "problem_mark") and exc.problem_mark is not None:
            mark = exc.problem_mark
            msg += f" at line {mark.line + 1}, column {mark.column + 1}"
        if hasattr(exc, "problem") and exc.problem:
            msg += f": {exc.problem}"
        raise typer.BadParameter(msg)

    if not isinstance(raw, dict):
        raise typer.BadParameter(
            f"Expected a YAML mapping (dict) in {file}, got {type(raw).__name__}"
        )
    return raw


def _validation_message(file: str, exc: ValidationError) -> str:
    lines = [f"Validation errors in {file}:"]
    for err in exc.errors():
        loc = " -> ".join(str(x) for x in err["loc"])
        lines.append(f"  {loc}: {err['msg']}")
        if "unknown airport code" in err["msg"] and isinstance(err.get("input"), str):
            suggestion = _fuzzy_airport_suggestion(err["input"])
            if suggestion:
                lines.append(f"    {suggestion}")
    return "\n".join(lines)


def _load_trip(file: str) -> Trip:
    raw = _load_yaml(file)
    try:
        return Trip.model_validate(raw)
    except ValidationError as exc:
        raise typer.BadParameter(_validation_message(file, exc))


def _load_knobs(file: str) -> PricingKnobs:
    """Load, migrate and validate a pricing knobs file."""
    from charter.migrations import migrate_knobs

    raw = migrate_knobs(_load_yaml(file))
    try:
        return PricingKnobs.model_validate(raw)
    except ValidationError as exc:
        raise typer.BadParameter(_validation_message(file, exc))


def _parse_now(now: Optional[str]) -> Optional[datetime]:
    if now is None:
        return None
    try:
        return datetime.fromisoformat(now)
    except ValueError:
        raise typer.BadParameter(f"--now must be an ISO timestamp, got {now!r}")


def _build_engine(offline: bool):
    from charter.cache import FlightTimeCache
    from charter.engine import QuoteEngine
    from charter.flight_time import FlightTimeEstimator

    if offline:
        return QuoteEngine(estimator=FlightTimeEstimator())
    return QuoteEngine(estimator=FlightTimeEstimator.from_environment(cache=FlightTimeCache()))


def _error_panel(message: str) -> None:
    """Print an error message in a Rich panel."""
    from rich.console import Console
    from rich.panel import Panel

    console = Console(stderr=True)
    console.print(Panel(message, title="Error", border_style="red"))


# ---------------------------------------------------------------------------
# Core commands
# ---------------------------------------------------------------------------


@app.command()
def quote(
    trip_file: str = typer.Argument(help="Path to trip YAML file"),
    knobs_file: str = typer.Argument(help="Path to pricing knobs YAML file"),
    now: NowOption = None,
    offline: OfflineFlag = False,
    json: JsonFlag = False,
    plain: PlainFlag = False,
    verbose: VerboseFlag = False,
    quiet: QuietFlag = False,
) -> None:
    """Quote a trip. Exits 1 when the quote is rejected."""
    _setup_logging(verbose, quiet)
    try:
        trip = _load_trip(trip_file)
        knobs = _load_knobs(knobs_file)
        from charter.output import get_formatter

        engine = _build_engine(offline)
        result = engine.quote(trip, knobs, now=_parse_now(now))
        fmt = get_formatter(_get_format(json, plain))
        typer.echo(fmt.format_quote(result))

        if not result.ok:
            raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except typer.BadParameter:
        raise
    except Exception as exc:
        _error_panel(str(exc))
        raise typer.Exit(code=2)


@app.command()
def compare(
    trip_file: str = typer.Argument(help="Path to trip YAML file"),
    knobs_file: str = typer.Argument(help="Path to pricing knobs YAML file"),
    category: Annotated[
        Optional[list[CategoryId]],
        typer.Option("--category", "-c", help="Category to quote (repeatable; default: all)."),
    ] = None,
    now: NowOption = None,
    offline: OfflineFlag = False,
    json: JsonFlag = False,
    plain: PlainFlag = False,
    verbose: VerboseFlag = False,
    quiet: QuietFlag = False,
) -> None:
    """Quote the trip in several aircraft categories and rank the results.

    Ranking follows the knobs' results.selection and results.rankMetric.
    """
    _setup_logging(verbose, quiet)
    try:
        trip = _load_trip(trip_file)
        knobs = _load_knobs(knobs_file)
        from charter.aggregation import RankedQuote, rank_quotes
        from charter.output import get_formatter

        engine = _build_engine(offline)
        when = _parse_now(now)
        categories = category or list(CategoryId)
        variants = [trip.model_copy(update={"category": c, "aircraft_model_id": None}) for c in categories]

        async def _quote_all():
            return await asyncio.gather(*(engine.quote_async(v, knobs, when) for v in variants))

        results = asyncio.run(_quote_all())
        quotes = [RankedQuote(label=c.value, result=r) for c, r in zip(categories, results)]
        ranked = rank_quotes(quotes, knobs.results)

        fmt = get_formatter(_get_format(json, plain))
        typer.echo(fmt.format_comparison(ranked))

        if not ranked:
            raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except typer.BadParameter:
        raise
    except Exception as exc:
        _error_panel(str(exc))
        raise typer.Exit(code=2)


@app.command()
def migrate(
    knobs_file: str = typer.Argument(help="Path to pricing knobs YAML file"),
    verbose: VerboseFlag = False,
    quiet: QuietFlag = False,
) -> None:
    """Print a knobs file upgraded to the current schema."""
    _setup_logging(verbose, quiet)
    from charter.migrations import migrate_knobs

    migrated = migrate_knobs(_load_yaml(knobs_file))
    typer.echo(yaml.safe_dump(migrated, sort_keys=False), nl=False)


@app.command()
def airport(
    code: str = typer.Argument(help="ICAO or IATA airport code"),
    json: JsonFlag = False,
    plain: PlainFlag = False,
) -> None:
    """Show the reference data the engine uses for an airport."""
    from charter.airports import lookup_airport
    from charter.output import get_formatter

    found = lookup_airport(code)
    if found is None:
        raise typer.BadParameter(f"Unknown airport code {code.upper()}.{_fuzzy_airport_suggestion(code)}")
    fmt = get_formatter(_get_format(json, plain))
    typer.echo(fmt.format_airport(found))


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


@config_app.command(name="set-flight-time")
def config_set_flight_time(
    api_key: str = typer.Option(..., prompt=True, hide_input=True, help="Flight-time service API key"),
) -> None:
    """Store the flight-time service API key in the system keyring."""
    import keyring
    from keyring.errors import KeyringError

    from charter.flight_time import BASE_URL_ENV, KEYRING_SERVICE

    try:
        keyring.set_password(KEYRING_SERVICE, "api_key", api_key)
    except KeyringError as exc:
        _error_panel(f"Failed to save API key: {exc}")
        raise typer.Exit(code=1)
    typer.echo("Flight-time API key saved to system keyring.")
    typer.echo(f"Set {BASE_URL_ENV} to enable the service.")


# ---------------------------------------------------------------------------
# Cache commands
# ---------------------------------------------------------------------------


@cache_app.command(name="clear")
def cache_clear() -> None:
    """Clear the flight-time cache."""
    from charter.cache import FlightTimeCache

    removed = FlightTimeCache().clear()
    typer.echo(f"Flight-time cache cleared ({removed} entries).")


if __name__ == "__main__":
    app()
