"""
SCRIPT_ASSEMBLER.PY - Correlated multi-leg scripts

Turns each correlation group into a priced, risk-classified Script.

    combined_confidence = product(leg confidences) + 0.15 * 0.1
    capped at 0.94 so it always stays strictly below the 0.95 ceiling

    risk: conservative  legs <= 2 and confidence >= 0.5
          moderate      legs <= 4 and confidence >= 0.3
          aggressive    otherwise

Groups are truncated to `max_legs` (2-6, default 4). Groups that resolve to
fewer than two known alerts are discarded, never padded.
"""

import logging
from math import prod
from typing import Dict, List, Optional, Sequence

from core.invariants import (
    COMBINED_CONFIDENCE_CEILING,
    CORRELATION_BONUS,
    CORRELATION_BONUS_SCALE,
    SCRIPT_MAX_LEGS,
    SCRIPT_MIN_LEGS,
    enforce_invariant,
    validate_script_shape,
)
from core.provenance import hash_object
from correlation_engine import CorrelationGroup
from env_config import Config
from models.alert import Alert
from models.portfolio import RiskLevel, Script, ScriptLeg

logger = logging.getLogger(__name__)

# Highest value a combined confidence may take
COMBINED_CONFIDENCE_CAP = round(COMBINED_CONFIDENCE_CEILING - 0.01, 2)

SCRIPT_NAMES = {
    "weather_cascade": "Weather Impact Parlay",
    "defensive_funnel": "Defensive Pressure Stack",
    "volume_share": "Target Volume Parlay",
    "game_script": "Game Script Stack",
    "player_stack": "Player Stack Parlay",
}


def clamp_max_legs(max_legs: Optional[int]) -> int:
    if max_legs is None:
        max_legs = Config.SCRIPT_MAX_LEGS
    return min(max(int(max_legs), SCRIPT_MIN_LEGS), SCRIPT_MAX_LEGS)


def combined_confidence(leg_confidences: Sequence[float]) -> float:
    """Product of leg confidences plus the scaled correlation bonus, capped."""
    base = prod(leg_confidences)
    adjusted = round(base + CORRELATION_BONUS * CORRELATION_BONUS_SCALE, 2)
    return min(adjusted, COMBINED_CONFIDENCE_CAP)


def risk_level(confidence: float, leg_count: int) -> str:
    if leg_count <= 2 and confidence >= 0.5:
        return RiskLevel.CONSERVATIVE.value
    if leg_count <= 4 and confidence >= 0.3:
        return RiskLevel.MODERATE.value
    return RiskLevel.AGGRESSIVE.value


def leg_market(alert: Alert) -> str:
    """Primary market tag of an alert."""
    return alert.implications[0]


def build_script(group: CorrelationGroup, alerts_by_id: Dict[str, Alert], index: int, max_legs: int) -> Optional[Script]:
    legs = [
        ScriptLeg(
            alert_id=alerts_by_id[alert_id].id,
            market=leg_market(alerts_by_id[alert_id]),
            implied_probability=alerts_by_id[alert_id].confidence,
            domain=alerts_by_id[alert_id].domain,
        )
        for alert_id in group.alert_ids[:max_legs]
        if alert_id in alerts_by_id
    ]
    if len(legs) < SCRIPT_MIN_LEGS:
        logger.debug("Discarding %s group: only %d valid legs", group.type, len(legs))
        return None

    confidence = combined_confidence([leg.implied_probability for leg in legs])
    is_valid, message = validate_script_shape(len(legs), confidence)
    enforce_invariant(is_valid, message, group.type)

    return Script(
        id=f"script-{group.type}-{index}",
        name=SCRIPT_NAMES.get(group.type, "Custom Parlay"),
        correlation_type=group.type,
        legs=legs,
        combined_confidence=confidence,
        risk_level=risk_level(confidence, len(legs)),
        explanation=group.explanation,
        provenance_hash=hash_object({"type": group.type, "alert_ids": [leg.alert_id for leg in legs]}),
    )


def assemble_scripts(
    groups: Sequence[CorrelationGroup],
    alerts: Sequence[Alert],
    max_legs: Optional[int] = None,
) -> List[Script]:
    """Build one script per viable group, in group order."""
    limit = clamp_max_legs(max_legs)
    alerts_by_id = {a.id: a for a in alerts if not a.suppressions}

    scripts = []
    for group in groups:
        script = build_script(group, alerts_by_id, len(scripts), limit)
        if script is not None:
            scripts.append(script)

    logger.info("Assembled %d scripts from %d groups", len(scripts), len(groups))
    return scripts
