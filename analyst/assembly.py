"""
Alert assembly: merge code-derived Finding fields with enrichment fields.

Identity, domain, confidence and evidence always come from the Finding.
"""

from typing import Optional, Sequence

from confidence_calculator import calculate_confidence
from core.invariants import MAX_CLAIM_LENGTH
from models.alert import Alert, Evidence, freshness_for_age
from models.finding import Finding


def build_evidence(finding: Finding) -> Evidence:
    return Evidence(
        source_type=finding.source_type,
        source_ref=finding.source_ref,
        stat=finding.stat,
        value=finding.value,
        comparison_context=finding.comparison_context,
        timestamp=finding.source_timestamp,
    )


def assemble_alert(
    finding: Finding,
    *,
    severity: str,
    claim: str,
    implications: Sequence[str],
    suppressions: Sequence[str] = (),
    as_of: Optional[int] = None,
    fallback: bool = False,
) -> Alert:
    confidence = finding.confidence
    if confidence is None:
        confidence = calculate_confidence(finding, as_of)
    reference = finding.source_timestamp if as_of is None else as_of

    return Alert(
        id=finding.id,
        domain=finding.domain,
        type=finding.type,
        confidence=confidence,
        evidence=[build_evidence(finding)],
        sources=[finding.source_ref],
        freshness=freshness_for_age(max(reference - finding.source_timestamp, 0)),
        team=finding.team,
        subject=finding.subject,
        severity=severity,
        claim=claim[:MAX_CLAIM_LENGTH],
        implications=list(implications),
        suppressions=list(suppressions),
        fallback=fallback,
    )
