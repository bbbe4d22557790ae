"""Output formatters for charter quotes.

Provides a Formatter protocol and three implementations:
- RichFormatter: colored Rich tables and panels
- PlainFormatter: plain text without ANSI escapes
- JsonFormatter: valid JSON for piping to jq
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from charter.aggregation import RankedQuote
    from charter.models import Airport, QuoteResult


class Formatter(Protocol):
    """Protocol for formatting quote results."""

    def format_quote(self, result: QuoteResult) -> str:
        """Format a single quote result."""
        ...

    def format_comparison(self, ranked: list[RankedQuote]) -> str:
        """Format ranked quotes for several categories."""
        ...

    def format_airport(self, airport: Airport) -> str:
        """Format resolved airport reference data."""
        ...


def get_formatter(name: str = "rich") -> Formatter:
    """Get a formatter by name.

    Args:
        name: One of "rich", "plain", "json".

    Raises:
        ValueError: If the name is not recognized.
    """
    if name == "rich":
        from charter.output.rich_formatter import RichFormatter

        return RichFormatter()
    elif name == "plain":
        from charter.output.plain_formatter import PlainFormatter

        return PlainFormatter()
    elif name == "json":
        from charter.output.json_formatter import JsonFormatter

        return JsonFormatter()
    else:
        raise ValueError(f"Unknown formatter: {name!r}. Use 'rich', 'plain', or 'json'.")
