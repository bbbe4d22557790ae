"""Match score: how much of the flown time carries passengers, on a 0-10 scale."""

from typing import Optional

from charter.knobs import MatchScoreAction, PricingKnobs
from charter.models import LineItem, LineItemCode, RejectReason, reject


def calc_match_score(occupied_hours: float, repo_hours: float) -> Optional[float]:
    """10 x occupied / (occupied + repo), unrounded. None with no hours.

    Thresholds compare against this value; round with ``reported_match_score``
    only for display.
    """
    total = occupied_hours + repo_hours
    if total <= 0:
        return None
    return occupied_hours / total * 10


def reported_match_score(score: Optional[float]) -> Optional[float]:
    return None if score is None else round(score, 2)


def check_match_score(knobs: PricingKnobs, score: Optional[float]) -> Optional[RejectReason]:
    cfg = knobs.scoring.match_score
    if cfg is None or not cfg.enabled or score is None:
        return None
    if cfg.action == MatchScoreAction.REJECT and score < cfg.threshold:
        return reject(
            "MATCH_SCORE_TOO_LOW",
            f"Match score {score:.3f} < threshold {cfg.threshold:g}",
            "scoring.matchScore.threshold",
        )
    return None


def match_score_item(knobs: PricingKnobs, score: Optional[float]) -> Optional[LineItem]:
    """Informational zero-amount line item, present whenever scoring is enabled."""
    cfg = knobs.scoring.match_score
    if cfg is None or not cfg.enabled:
        return None
    return LineItem(
        code=LineItemCode.INFO_MATCH_SCORE,
        label="Match score",
        amount=0.0,
        meta={"matchScore": reported_match_score(score), "threshold": cfg.threshold, "action": cfg.action.value},
    )
