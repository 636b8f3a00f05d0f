"""
CONFIDENCE_CALCULATOR.PY - Deterministic Finding Confidence

Maps a Finding's source, sample size, matchup extremity, age and data
quality to a 0-1 score. Same Finding in, same score out.

Scoring:
    start      rule-assigned confidence, else 0.50
    source     +0.10 local/notes, +0.05 matchup_context, +0.08 web fresher than 4h
    sample     >= 100: +0.12, >= 50: +0.06, below 50: -0.10 (skipped when unknown)
    extreme    +0.10 for a top-5 vs bottom-5 rank matchup
    age        -0.20 when older than 7 days vs the reference timestamp

The result is clamped to [0, 1], capped by data quality (full 0.95,
partial 0.80, fallback 0.65) and rounded to 3 places.
"""

import logging
from typing import Iterable, List, Optional

from core.invariants import DATA_QUALITY_CEILINGS
from models.finding import Finding

logger = logging.getLogger(__name__)

BASELINE_CONFIDENCE = 0.5

SOURCE_BONUS = {
    "local": 0.10,
    "notes": 0.10,
    "matchup_context": 0.05,
}
WEB_FRESH_BONUS = 0.08
WEB_FRESH_SECONDS = 4 * 3600

LARGE_SAMPLE = 100
MEDIUM_SAMPLE = 50
LARGE_SAMPLE_BONUS = 0.12
MEDIUM_SAMPLE_BONUS = 0.06
SMALL_SAMPLE_PENALTY = -0.10

EXTREME_MATCHUP_BONUS = 0.10

STALE_SECONDS = 7 * 86400
STALE_PENALTY = -0.20


def calculate_confidence(finding: Finding, reference_timestamp: Optional[int] = None) -> float:
    """
    Score one finding.

    Args:
        finding: Rule output
        reference_timestamp: "Now" for age checks; defaults to the finding's
            own timestamp so the score never depends on wall-clock time

    Returns:
        Confidence in [0, ceiling(data_quality)], 3 decimal places
    """
    reference = finding.source_timestamp if reference_timestamp is None else reference_timestamp
    age = max(reference - finding.source_timestamp, 0)

    score = finding.confidence if finding.confidence is not None else BASELINE_CONFIDENCE

    if finding.source_type == "web":
        if age < WEB_FRESH_SECONDS:
            score += WEB_FRESH_BONUS
    else:
        score += SOURCE_BONUS.get(finding.source_type, 0.0)

    if finding.sample_size is not None:
        if finding.sample_size >= LARGE_SAMPLE:
            score += LARGE_SAMPLE_BONUS
        elif finding.sample_size >= MEDIUM_SAMPLE:
            score += MEDIUM_SAMPLE_BONUS
        else:
            score += SMALL_SAMPLE_PENALTY

    if finding.extreme_matchup:
        score += EXTREME_MATCHUP_BONUS

    if age > STALE_SECONDS:
        score += STALE_PENALTY

    score = min(max(score, 0.0), 1.0)
    score = min(score, DATA_QUALITY_CEILINGS[finding.data_quality])
    return round(score, 3)


def apply_confidence(
    findings: Iterable[Finding],
    reference_timestamp: Optional[int] = None,
) -> List[Finding]:
    """Return new Finding instances carrying their calculated confidence."""
    scored = [f.with_confidence(calculate_confidence(f, reference_timestamp)) for f in findings]
    logger.debug("Scored %d findings", len(scored))
    return scored
