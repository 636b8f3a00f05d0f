"""
VALIDATION.PY - Per-finding validation of collaborator output

The collaborator is untrusted. Each finding's result is one of

    Validated(fields)   record passed every check (possibly repaired)
    Rejected(reason)    record present but unusable
    Absent()            no record for this finding

Validation never raises. A bad record only affects its own finding.

Checks, in order:
    record is an object
    severity in {high, medium}
    claim_parts parse and render to <= 200 chars
    rendered claim has no banned promotional language
    implications: outside-allow-list entries are filtered, none left => Rejected
    suppressions is a list of strings

Repairs (with a warning): unsupported "high" severity -> "medium",
filtered implications, more than five implications truncated.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple, Union

from pydantic import ValidationError

from analyst.severity import repair_severity
from core.errors import ErrorCode, format_warning
from core.invariants import MAX_CLAIM_LENGTH, MAX_IMPLICATIONS, SEVERITIES, find_banned_terms
from models.claim import ClaimParts, render_claim
from models.finding import Finding
from models.implications import filter_allowed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Validated:
    severity: str
    claim: str
    implications: Tuple[str, ...]
    suppressions: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Rejected:
    code: str
    reason: str


@dataclass(frozen=True)
class Absent:
    pass


EnrichmentResult = Union[Validated, Rejected, Absent]


@dataclass
class ValidationReport:
    results: Dict[str, EnrichmentResult] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def validated(self) -> Dict[str, Validated]:
        return {k: v for k, v in self.results.items() if isinstance(v, Validated)}


def validate_record(finding: Finding, record: Any) -> EnrichmentResult:
    """Validate one collaborator record against its source finding."""
    if not isinstance(record, Mapping):
        return Rejected(ErrorCode.INVALID_RECORD, f"record is a {type(record).__name__}, expected an object")

    severity = record.get("severity")
    if severity not in SEVERITIES:
        return Rejected(ErrorCode.INVALID_SEVERITY, f"invalid severity {severity!r}")

    try:
        parts = ClaimParts.model_validate(record.get("claim_parts"))
    except ValidationError as e:
        return Rejected(ErrorCode.INVALID_CLAIM, f"invalid claim_parts ({e.error_count()} errors)")

    claim = render_claim(parts)
    if len(claim) > MAX_CLAIM_LENGTH:
        return Rejected(ErrorCode.INVALID_CLAIM, f"rendered claim is {len(claim)} chars")

    banned = find_banned_terms(claim)
    if banned:
        return Rejected(ErrorCode.BANNED_LANGUAGE, f"banned language: {', '.join(banned)}")

    raw_implications = record.get("implications") or []
    if not isinstance(raw_implications, list):
        return Rejected(ErrorCode.INVALID_RECORD, "implications must be a list")

    warnings: List[str] = []
    kept, dropped = filter_allowed(finding.domain, [str(i) for i in raw_implications])
    if dropped:
        warnings.append(format_warning(
            ErrorCode.IMPLICATIONS_FILTERED,
            f"dropped {', '.join(dropped)} (not allowed for {finding.domain})",
            finding.id,
        ))
    if not kept:
        return Rejected(ErrorCode.NO_ALLOWED_IMPLICATIONS, "no implications inside the allow-list")
    if len(kept) > MAX_IMPLICATIONS:
        warnings.append(format_warning(
            ErrorCode.IMPLICATIONS_FILTERED,
            f"kept first {MAX_IMPLICATIONS} of {len(kept)} implications",
            finding.id,
        ))
        kept = kept[:MAX_IMPLICATIONS]

    suppressions = record.get("suppressions") or []
    if not isinstance(suppressions, list):
        return Rejected(ErrorCode.INVALID_RECORD, "suppressions must be a list")

    severity, downgrade = repair_severity(finding, severity)
    if downgrade:
        warnings.append(downgrade)

    return Validated(
        severity=severity,
        claim=claim,
        implications=tuple(kept),
        suppressions=tuple(str(s) for s in suppressions),
        warnings=tuple(warnings),
    )


def validate_response(parsed: Mapping[str, Any], findings: List[Finding]) -> ValidationReport:
    """
    Validate a decoded collaborator response for a whole batch.

    Every finding gets exactly one result. Records keyed by unknown ids are
    reported as warnings and otherwise ignored.
    """
    report = ValidationReport()
    by_id = {f.id: f for f in findings}

    for record_id in parsed:
        if record_id not in by_id:
            report.warnings.append(format_warning(ErrorCode.UNKNOWN_FINDING, "record for unknown finding", record_id))

    for finding in findings:
        if finding.id not in parsed:
            result: EnrichmentResult = Absent()
            report.warnings.append(format_warning(
                ErrorCode.MISSING_ENRICHMENT, "no enrichment record; finding dropped", finding.id,
            ))
        else:
            result = validate_record(finding, parsed[finding.id])
            if isinstance(result, Rejected):
                report.warnings.append(format_warning(result.code, f"{result.reason}; finding dropped", finding.id))
            else:
                report.warnings.extend(result.warnings)
        report.results[finding.id] = result

    logger.debug(
        "Validated %d/%d enrichment records",
        len(report.validated()), len(findings),
    )
    return report


def unparseable_report(findings: List[Finding], reason: str) -> ValidationReport:
    """Every finding is Absent; one warning explains why."""
    report = ValidationReport(results={f.id: Absent() for f in findings})
    report.warnings.append(format_warning(ErrorCode.LLM_MALFORMED, f"{reason}; {len(findings)} findings dropped"))
    return report
