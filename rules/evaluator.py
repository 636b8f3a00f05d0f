"""
Generic Threshold Evaluator
===========================

Every rank/threshold domain is a data-described RuleSet consumed by one
evaluator. Two gating patterns are reproduced exactly:

1. Joint thresholds - a subject gate AND an opponent gate must both pass.
   Neither alone is sufficient. A missing value on either side emits nothing.
2. Sample-size suppression - below the sample minimum the check emits ZERO
   findings. This is a hard gate, never a confidence penalty.

Checks in one RuleSet are independent and evaluated in declared order, so
emission order (volume, efficiency, scoring, role) is stable.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.finding_ids import compose_finding_id
from core.invariants import ELITE_RANK_MAX, WEAK_RANK_MIN
from models.finding import DataQuality, Finding, SourceType

logger = logging.getLogger(__name__)


def ordinal(n: Any) -> str:
    """1 -> 1st, 22 -> 22nd, 13 -> 13th."""
    n = int(n)
    v = n % 100
    if 10 <= v <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_number(value: Any) -> str:
    """Integers without a trailing .0, everything else as given."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_OPS = {
    "le": lambda v, c: v <= c,
    "lt": lambda v, c: v < c,
    "ge": lambda v, c: v >= c,
    "gt": lambda v, c: v > c,
}

_OP_SYMBOLS = {"le": "<=", "lt": "<", "ge": ">=", "gt": ">"}


@dataclass(frozen=True)
class Gate:
    """A single comparison on one field."""
    field: str
    op: str
    cutoff: float

    def passes(self, value: Any) -> bool:
        return value is not None and _OPS[self.op](value, self.cutoff)

    def is_extreme(self, value: Any) -> bool:
        """Inside the top-5 (for <= gates) or bottom-5 (for >= gates) band."""
        if value is None:
            return False
        if self.op in ("le", "lt"):
            return value <= ELITE_RANK_MAX
        return value >= WEAK_RANK_MIN

    def describe(self, label: str) -> str:
        return f"{label} {_OP_SYMBOLS[self.op]} {format_number(self.cutoff)}"


@dataclass(frozen=True)
class SampleGate:
    """Hard suppression below `minimum` (missing counts as zero)."""
    field: str
    minimum: int

    def passes(self, value: Optional[int]) -> bool:
        return (value or 0) >= self.minimum


@dataclass(frozen=True)
class Check:
    finding_type: str
    suffix: str
    subject_gate: Gate
    context: str
    opponent_gate: Optional[Gate] = None
    sample: Optional[SampleGate] = None
    implications: Tuple[str, ...] = ()
    rank_based: bool = True
    threshold_met: str = ""
    # Source object for the subject gate when it differs from the default
    subject_source: str = "subject"


@dataclass(frozen=True)
class RuleSet:
    domain: str
    checks: Tuple[Check, ...]
    source_type: SourceType = SourceType.LOCAL

    def source_ref(self, data_version: str) -> str:
        return f"local://data/{self.domain}/{data_version}.json"

    def check_types(self) -> List[str]:
        return [c.finding_type for c in self.checks]


@dataclass(frozen=True)
class RuleContext:
    """Snapshot stamp shared by every rule in a run."""
    data_timestamp: int
    data_version: str
    home_team: str = ""
    away_team: str = ""
    year: Optional[int] = None
    week: Optional[int] = None


@dataclass
class Subject:
    """Who a rule set is evaluated for and what it reads."""
    key: str
    name: str
    team: Optional[str]
    sources: Dict[str, Any] = field(default_factory=dict)
    labels: Dict[str, Any] = field(default_factory=dict)


def describe_check(check: Check) -> str:
    """Readable form of the gates, e.g. "rush_yards_rank <= 10 AND rush_defense_rank >= 22"."""
    parts = [check.subject_gate.describe(check.subject_gate.field)]
    if check.opponent_gate is not None:
        parts.append(check.opponent_gate.describe(check.opponent_gate.field))
    if check.sample is not None:
        parts.append(f"{check.sample.field} >= {check.sample.minimum}")
    return " AND ".join(parts)


def _read(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def evaluate_rule_set(
    rule_set: RuleSet,
    subject: Subject,
    opponent: Any,
    ctx: RuleContext,
) -> List[Finding]:
    """
    Evaluate every check of a rule set for one subject against one opponent.

    Args:
        rule_set: Declarative checks for the domain
        subject: Subject identity plus the objects gates read from
        opponent: Opponent stats object (or None for single-sided domains)
        ctx: Snapshot stamp

    Returns:
        Findings in check-declaration order (possibly empty)
    """
    findings: List[Finding] = []

    for check in rule_set.checks:
        source = subject.sources.get(check.subject_source)
        subject_value = _read(source, check.subject_gate.field)
        if not check.subject_gate.passes(subject_value):
            continue

        opponent_value = None
        if check.opponent_gate is not None:
            opponent_value = _read(opponent, check.opponent_gate.field)
            if not check.opponent_gate.passes(opponent_value):
                continue

        sample_value = None
        if check.sample is not None:
            sample_value = _read(source, check.sample.field)
            if not check.sample.passes(sample_value):
                logger.debug(
                    "Suppressed %s for %s: %s=%s < %s",
                    check.finding_type, subject.name, check.sample.field,
                    sample_value, check.sample.minimum,
                )
                continue

        extreme = None
        if check.rank_based:
            extreme = (
                check.opponent_gate is not None
                and check.subject_gate.is_extreme(subject_value)
                and check.opponent_gate.is_extreme(opponent_value)
            )

        values = dict(subject.labels)
        values.update({
            "name": subject.name,
            "team": subject.team or "",
            "value": format_number(subject_value),
            "ord": ordinal(subject_value) if check.rank_based else format_number(subject_value),
            "opp_value": format_number(opponent_value) if opponent_value is not None else "",
            "opp_ord": ordinal(opponent_value) if opponent_value is not None else "",
        })

        findings.append(Finding(
            id=compose_finding_id(rule_set.domain, subject.key, check.suffix, ctx.data_timestamp),
            domain=rule_set.domain,
            type=check.finding_type,
            stat=check.subject_gate.field,
            value=subject_value,
            threshold_met=check.threshold_met or describe_check(check),
            comparison_context=check.context.format(**values),
            source_ref=rule_set.source_ref(ctx.data_version),
            source_type=rule_set.source_type,
            source_timestamp=ctx.data_timestamp,
            subject=subject.name,
            team=subject.team,
            sample_size=sample_value,
            data_quality=DataQuality.FULL,
            subject_rank=int(subject_value) if check.rank_based else None,
            opponent_rank=int(opponent_value) if (check.rank_based and opponent_value is not None) else None,
            extreme_matchup=extreme,
            implications=check.implications,
        ))

    return findings


def ordered_teams(keys: Iterable[str], ctx: RuleContext) -> List[str]:
    """Home team first, then away, then any other keys alphabetically."""
    keys = list(keys)
    ordered = [t for t in (ctx.home_team, ctx.away_team) if t in keys]
    return ordered + sorted(t for t in keys if t not in ordered)
