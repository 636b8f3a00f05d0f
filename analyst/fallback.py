"""
FALLBACK.PY - Deterministic alert renderer

Used for the whole batch when the collaborator is disabled, times out, is
cancelled, or returns a malformed response. Exactly one alert per finding,
no narrative generation: the claim is built only from the finding's own
stat, value and context, and implications come only from the domain's
default set.
"""

import logging
from typing import List, Optional

from analyst.assembly import assemble_alert
from analyst.severity import fallback_severity
from core.invariants import MAX_CLAIM_LENGTH
from models.alert import Alert
from models.finding import Finding
from models.implications import fallback_implications

logger = logging.getLogger(__name__)


def fallback_claim(finding: Finding) -> str:
    """Stat, value and context only, truncated to the claim limit."""
    return f"{finding.stat}: {finding.value} ({finding.comparison_context})"[:MAX_CLAIM_LENGTH]


def build_fallback_alert(finding: Finding, as_of: Optional[int] = None) -> Alert:
    return assemble_alert(
        finding,
        severity=fallback_severity(finding),
        claim=fallback_claim(finding),
        implications=fallback_implications(finding.domain, finding.implications),
        as_of=as_of,
        fallback=True,
    )


def fallback_alerts(findings: List[Finding], as_of: Optional[int] = None) -> List[Alert]:
    alerts = [build_fallback_alert(f, as_of) for f in findings]
    logger.info("Fallback rendered %d alerts", len(alerts))
    return alerts
