"""
Severity rules shared by validation and fallback.

Rank findings: high only for an elite-vs-weak (top-5 vs bottom-5) matchup.
Non-rank findings (weather, injury, usage, pace, notes): high when the
finding's confidence is at least 0.70.
"""

from typing import Optional, Tuple

from core.errors import ErrorCode, format_warning
from core.invariants import FALLBACK_HIGH_SEVERITY_CONFIDENCE
from models.alert import Severity
from models.finding import Finding


def supports_high(finding: Finding) -> bool:
    if finding.is_rank_finding:
        return bool(finding.extreme_matchup)
    return (finding.confidence or 0.0) >= FALLBACK_HIGH_SEVERITY_CONFIDENCE


def fallback_severity(finding: Finding) -> str:
    return Severity.HIGH.value if supports_high(finding) else Severity.MEDIUM.value


def repair_severity(finding: Finding, severity: str) -> Tuple[str, Optional[str]]:
    """Downgrade an unsupported "high" to "medium", returning a warning when it does."""
    if severity == Severity.HIGH.value and not supports_high(finding):
        return Severity.MEDIUM.value, format_warning(
            ErrorCode.SEVERITY_DOWNGRADED,
            "high severity requires an elite-vs-weak matchup",
            finding.id,
        )
    return severity, None
