"""JSON output formatter -- valid JSON suitable for piping to jq."""

from __future__ import annotations

import json

from charter.aggregation import RankedQuote
from charter.models import Airport, QuoteResult


def _dump(result: QuoteResult) -> dict:
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


class JsonFormatter:
    """Format quote results as pretty-printed JSON, camelCase keys."""

    def format_quote(self, result: QuoteResult) -> str:
        return json.dumps(_dump(result), indent=2)

    def format_comparison(self, ranked: list[RankedQuote]) -> str:
        data = {
            "type": "comparison",
            "count": len(ranked),
            "quotes": [{"label": q.label, **_dump(q.result)} for q in ranked],
        }
        return json.dumps(data, indent=2)

    def format_airport(self, airport: Airport) -> str:
        return json.dumps(airport.model_dump(mode="json", by_alias=True), indent=2)
