"""
LADDER_ORGANIZER.PY - Risk-tiered single-leg ladders

Each surfaced alert lands in at most one tier, decided only by its own
confidence and severity (script membership plays no part):

    safe        confidence >= 0.70 AND severity high
    moderate    0.50 <= confidence < 0.70, OR severity medium at any confidence
    aggressive  0.30 <= confidence < 0.50
    excluded    anything else

Rungs per tier are ordered by confidence (desc) then id and capped: safe at
min(3, max_rungs), the other tiers at max_rungs (1-5, default 3).

Stake:
    base (safe 5%, moderate 3%, aggressive 1%) + (mean confidence - 0.5) * 2
    clamped to [0.5, 10] and rounded to 1 decimal
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from core.invariants import (
    LADDER_MAX_RUNGS,
    LADDER_MIN_RUNGS,
    SAFE_TIER_MAX_RUNGS,
    STAKE_PCT_MAX,
    STAKE_PCT_MIN,
    enforce_invariant,
    validate_ladder_shape,
)
from env_config import Config
from models.alert import Alert
from models.portfolio import Ladder, LadderTier, Rung

logger = logging.getLogger(__name__)

SAFE_MIN_CONFIDENCE = 0.7
MODERATE_MIN_CONFIDENCE = 0.5
AGGRESSIVE_MIN_CONFIDENCE = 0.3

TIER_ORDER = (LadderTier.SAFE.value, LadderTier.MODERATE.value, LadderTier.AGGRESSIVE.value)

TIER_NAMES = {
    "safe": "High Confidence Picks",
    "moderate": "Balanced Plays",
    "aggressive": "High Upside Longshots",
}

BASE_STAKE_PCT = {
    "safe": 5.0,
    "moderate": 3.0,
    "aggressive": 1.0,
}


@dataclass
class LadderResult:
    ladders: List[Ladder] = field(default_factory=list)
    used_alert_ids: List[str] = field(default_factory=list)
    excluded_alert_ids: List[str] = field(default_factory=list)


def classify_tier(confidence: float, severity: str) -> Optional[str]:
    """Tier for one alert, or None when it qualifies for none."""
    if confidence >= SAFE_MIN_CONFIDENCE and severity == "high":
        return LadderTier.SAFE.value
    if MODERATE_MIN_CONFIDENCE <= confidence < SAFE_MIN_CONFIDENCE or severity == "medium":
        return LadderTier.MODERATE.value
    if AGGRESSIVE_MIN_CONFIDENCE <= confidence < MODERATE_MIN_CONFIDENCE:
        return LadderTier.AGGRESSIVE.value
    return None


def clamp_max_rungs(max_rungs: Optional[int]) -> int:
    if max_rungs is None:
        max_rungs = Config.LADDER_MAX_RUNGS
    return min(max(int(max_rungs), LADDER_MIN_RUNGS), LADDER_MAX_RUNGS)


def tier_cap(tier: str, max_rungs: int) -> int:
    if tier == LadderTier.SAFE.value:
        return min(SAFE_TIER_MAX_RUNGS, max_rungs)
    return max_rungs


def stake_pct(tier: str, avg_confidence: float) -> float:
    stake = BASE_STAKE_PCT[tier] + (avg_confidence - 0.5) * 2
    return round(min(max(stake, STAKE_PCT_MIN), STAKE_PCT_MAX), 1)


def build_rung(alert: Alert) -> Rung:
    return Rung(
        alert_id=alert.id,
        market=alert.implications[0],
        implied_probability=alert.confidence,
        domain=alert.domain,
        rationale=f"{alert.domain.upper()} signal - {alert.severity} severity",
    )


def organize_ladders(
    alerts: Sequence[Alert],
    max_rungs: Optional[int] = None,
    include_aggressive: bool = True,
) -> LadderResult:
    """
    Bucket surfaced alerts into safe / moderate / aggressive ladders.

    Args:
        alerts: Alerts; suppressed ones are ignored
        max_rungs: Rung cap for moderate and aggressive tiers (1-5)
        include_aggressive: False leaves the aggressive tier out entirely

    Returns:
        LadderResult with ladders in tier order plus used/excluded alert ids
    """
    cap = clamp_max_rungs(max_rungs)
    buckets: Dict[str, List[Alert]] = {tier: [] for tier in TIER_ORDER}
    result = LadderResult()

    for alert in alerts:
        if alert.suppressions:
            continue
        tier = classify_tier(alert.confidence, alert.severity)
        if tier is None or (tier == LadderTier.AGGRESSIVE.value and not include_aggressive):
            result.excluded_alert_ids.append(alert.id)
            continue
        buckets[tier].append(alert)

    for tier in TIER_ORDER:
        members = sorted(buckets[tier], key=lambda a: (-a.confidence, a.id))
        limit = tier_cap(tier, cap)
        chosen, overflow = members[:limit], members[limit:]
        result.excluded_alert_ids.extend(a.id for a in overflow)
        if not chosen:
            continue

        is_valid, message = validate_ladder_shape(len(chosen), limit)
        enforce_invariant(is_valid, message, tier)

        avg = sum(a.confidence for a in chosen) / len(chosen)
        result.ladders.append(Ladder(
            tier=tier,
            name=TIER_NAMES[tier],
            rungs=[build_rung(a) for a in chosen],
            total_implied_probability=round(avg, 2),
            recommended_stake_pct=stake_pct(tier, avg),
        ))
        result.used_alert_ids.extend(a.id for a in chosen)

    logger.info(
        "Organized %d ladders (%d alerts used, %d excluded)",
        len(result.ladders), len(result.used_alert_ids), len(result.excluded_alert_ids),
    )
    return result
