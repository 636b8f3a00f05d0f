"""
EPA.PY - Expected Points Added mismatches

A player with a top-10 receiving or rushing EPA rank facing a defense that
allows top-10 EPA to that position group. Both ranks use 1 = most EPA, so
the opponent gate is also a `<=` gate.
"""

from typing import Any, List

from models.finding import Finding
from models.matchup import PlayerStats
from rules.evaluator import Check, Gate, RuleContext, RuleSet, SampleGate, Subject, evaluate_rule_set

EPA_THRESHOLDS = {
    "receiving_epa_rank": 10,
    "rushing_epa_rank": 10,
    "epa_allowed_rank": 10,
    "min_sample": 50,
}

EPA_RULES = RuleSet(
    domain="epa",
    checks=(
        Check(
            finding_type="receiving_epa_mismatch",
            suffix="recv",
            subject_gate=Gate("receiving_epa_rank", "le", EPA_THRESHOLDS["receiving_epa_rank"]),
            opponent_gate=Gate("epa_allowed_to_wr_rank", "le", EPA_THRESHOLDS["epa_allowed_rank"]),
            sample=SampleGate("targets", EPA_THRESHOLDS["min_sample"]),
            context="{name}: {ord} receiving EPA vs {opp_ord} EPA allowed to WR",
            implications=("wr_yards_over", "wr_receptions_over"),
        ),
        Check(
            finding_type="rushing_epa_mismatch",
            suffix="rush",
            subject_gate=Gate("rushing_epa_rank", "le", EPA_THRESHOLDS["rushing_epa_rank"]),
            opponent_gate=Gate("epa_allowed_to_rb_rank", "le", EPA_THRESHOLDS["epa_allowed_rank"]),
            sample=SampleGate("rushes", EPA_THRESHOLDS["min_sample"]),
            context="{name}: {ord} rushing EPA vs {opp_ord} EPA allowed to RB",
            implications=("rb_yards_over",),
        ),
    ),
)


def check_epa(player: PlayerStats, opponent: Any, ctx: RuleContext) -> List[Finding]:
    subject = Subject(key=player.name, name=player.name, team=player.team, sources={"subject": player})
    return evaluate_rule_set(EPA_RULES, subject, opponent, ctx)
