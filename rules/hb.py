"""
HB.PY - Running back matchup checks

Emission order is volume, efficiency, scoring, role. Volume and efficiency
are hard-gated on carries; the scoring and receiving-role checks are not.
"""

from typing import Any, List

from models.finding import Finding
from models.matchup import PlayerStats
from rules.evaluator import Check, Gate, RuleContext, RuleSet, SampleGate, Subject, evaluate_rule_set

HB_THRESHOLDS = {
    "rush_yards_rank": 10,
    "yards_per_carry_rank": 10,
    "rush_td_rank": 10,
    "defense_rush_rank": 22,
    "yards_allowed_rank": 22,
    "min_carries": 80,
    "reception_rank": 15,
}

_CARRIES = SampleGate("carries", HB_THRESHOLDS["min_carries"])

HB_RULES = RuleSet(
    domain="hb",
    checks=(
        Check(
            finding_type="hb_volume_advantage",
            suffix="volume",
            subject_gate=Gate("rush_yards_rank", "le", HB_THRESHOLDS["rush_yards_rank"]),
            opponent_gate=Gate("rush_defense_rank", "ge", HB_THRESHOLDS["defense_rush_rank"]),
            sample=_CARRIES,
            context="{name}: {ord} rush yards vs {opp_ord} rush defense",
            implications=("rb_rush_yards_over", "rb_rush_attempts_over"),
        ),
        Check(
            finding_type="hb_efficiency_advantage",
            suffix="efficiency",
            subject_gate=Gate("yards_per_carry_rank", "le", HB_THRESHOLDS["yards_per_carry_rank"]),
            opponent_gate=Gate("rush_yards_allowed_rank", "ge", HB_THRESHOLDS["yards_allowed_rank"]),
            sample=_CARRIES,
            context="{name}: {ord} YPC vs {opp_ord} yards allowed",
            implications=("rb_rush_yards_over",),
        ),
        Check(
            finding_type="hb_td_opportunity",
            suffix="td",
            subject_gate=Gate("rush_td_rank", "le", HB_THRESHOLDS["rush_td_rank"]),
            opponent_gate=Gate("rush_td_allowed_rank", "ge", HB_THRESHOLDS["defense_rush_rank"]),
            context="{name}: {ord} rush TDs vs {opp_ord} TD allowed",
            implications=("rb_tds_over",),
        ),
        Check(
            finding_type="hb_receiving_factor",
            suffix="receiving",
            subject_gate=Gate("reception_rank", "le", HB_THRESHOLDS["reception_rank"]),
            context="{name}: {ord} in RB receptions - dual threat",
            implications=("rb_receptions_over",),
        ),
    ),
)


def check_hb(player: PlayerStats, defense: Any, ctx: RuleContext) -> List[Finding]:
    """Evaluate one running back against the opposing defense."""
    subject = Subject(key=player.name, name=player.name, team=player.team, sources={"subject": player})
    return evaluate_rule_set(HB_RULES, subject, defense, ctx)
