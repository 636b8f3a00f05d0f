"""
RULES - Threshold Engine

One module per rule domain plus a generic evaluator. Every domain is a pure
function of (subject stats, opponent stats, snapshot context) returning
zero or more Findings.

Domains, in emission order:
- epa: receiving / rushing EPA mismatches
- pressure: pass rush vs pass protection, QB under pressure
- weather: wind, cold, heat, precipitation
- qb, hb, wr, te: position rank matchups with sample-size gates
- notes: curated scouting notes
- injury: material absences
- usage: volume leaders and usage trends
- pace: combined tempo
"""

from .evaluator import (
    Check,
    Gate,
    RuleContext,
    RuleSet,
    SampleGate,
    Subject,
    evaluate_rule_set,
    ordinal,
)
from .runner import EngineResult, run_rules, rule_context

__all__ = [
    "Check",
    "Gate",
    "RuleContext",
    "RuleSet",
    "SampleGate",
    "Subject",
    "evaluate_rule_set",
    "ordinal",
    "EngineResult",
    "run_rules",
    "rule_context",
]
