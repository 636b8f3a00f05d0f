"""
validators/alert_integrity.py - Alert Integrity Validator

Checks that every alert still honours the Finding it was derived from:
identity, domain and confidence carried verbatim, implications inside the
domain allow-list, evidence pointing at the finding's source, and freshness
matching the evidence age.

DOES NOT MUTATE INPUT - returns violation strings only.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from models.alert import Alert, freshness_for_age
from models.finding import Finding
from models.implications import allowed_for

logger = logging.getLogger("alert_integrity")

# =============================================================================
# CONFIGURATION
# =============================================================================

CONFIDENCE_TOLERANCE = 0.001

# =============================================================================
# VALIDATORS
# =============================================================================

def validate_alert_integrity(
    alert: Alert,
    finding: Optional[Finding],
    as_of: Optional[int] = None,
) -> Tuple[bool, Optional[str]]:
    """
    Validate one alert against its source finding.

    Args:
        alert: Alert under test
        finding: Finding with the same id (None when there is none)
        as_of: Reference timestamp used when the alert was assembled;
            defaults to the finding timestamp

    Returns:
        (True, None) if valid, (False, "REASON") otherwise
    """
    if finding is None:
        return (False, "NO_SOURCE_FINDING")

    if alert.domain != finding.domain:
        return (False, f"DOMAIN_MISMATCH {alert.domain}!={finding.domain}")

    if alert.type != finding.type:
        return (False, f"TYPE_MISMATCH {alert.type}!={finding.type}")

    if finding.confidence is not None and abs(alert.confidence - finding.confidence) > CONFIDENCE_TOLERANCE:
        return (False, f"CONFIDENCE_MISMATCH {alert.confidence}!={finding.confidence}")

    allowed = allowed_for(alert.domain)
    outside = [imp for imp in alert.implications if imp not in allowed]
    if outside:
        return (False, f"IMPLICATIONS_OUTSIDE_ALLOW_LIST {outside}")

    if not any(e.source_ref == finding.source_ref for e in alert.evidence):
        return (False, "EVIDENCE_SOURCE_MISMATCH")

    reference = finding.source_timestamp if as_of is None else as_of
    expected = freshness_for_age(max(reference - finding.source_timestamp, 0))
    if alert.freshness != expected:
        return (False, f"FRESHNESS_MISMATCH {alert.freshness}!={expected}")

    return (True, None)


def validate_alerts(
    alerts: Sequence[Alert],
    findings: Sequence[Finding],
    as_of: Optional[int] = None,
) -> List[str]:
    """
    Validate a batch of alerts.

    Returns:
        Violation strings "alert_id: REASON" (empty when every alert is valid)
    """
    by_id: Dict[str, Finding] = {f.id: f for f in findings}
    violations = []

    for alert in alerts:
        is_valid, reason = validate_alert_integrity(alert, by_id.get(alert.id), as_of)
        if not is_valid:
            violations.append(f"{alert.id}: {reason}")

    seen = set()
    for alert in alerts:
        if alert.id in seen:
            violations.append(f"{alert.id}: DUPLICATE_ALERT")
        seen.add(alert.id)

    if violations:
        logger.error("Alert integrity: %d violations", len(violations))
    return violations
