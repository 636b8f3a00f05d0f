"""
TE.PY - Tight end matchup checks

Same shape as the receiver checks with a tighter top-8 cutoff and a lower
target minimum, since the position pool is smaller.
"""

from typing import Any, List

from models.finding import Finding
from models.matchup import PlayerStats
from rules.evaluator import Check, Gate, RuleContext, RuleSet, SampleGate, Subject, evaluate_rule_set

TE_THRESHOLDS = {
    "target_share_rank": 8,
    "receiving_yards_rank": 8,
    "receiving_td_rank": 8,
    "defense_te_rank": 22,
    "red_zone_target_rank": 8,
    "min_targets": 40,
}

_TARGETS = SampleGate("targets", TE_THRESHOLDS["min_targets"])

TE_RULES = RuleSet(
    domain="te",
    checks=(
        Check(
            finding_type="te_target_volume",
            suffix="volume",
            subject_gate=Gate("target_share_rank", "le", TE_THRESHOLDS["target_share_rank"]),
            opponent_gate=Gate("te_defense_rank", "ge", TE_THRESHOLDS["defense_te_rank"]),
            sample=_TARGETS,
            context="{name}: {ord} target share vs {opp_ord} TE defense",
            implications=("te_receptions_over",),
        ),
        Check(
            finding_type="te_yardage_advantage",
            suffix="yards",
            subject_gate=Gate("receiving_yards_rank", "le", TE_THRESHOLDS["receiving_yards_rank"]),
            opponent_gate=Gate("yards_allowed_to_te_rank", "ge", TE_THRESHOLDS["defense_te_rank"]),
            sample=_TARGETS,
            context="{name}: {ord} TE receiving yards vs {opp_ord} yards allowed",
            implications=("te_yards_over",),
        ),
        Check(
            finding_type="te_td_opportunity",
            suffix="td",
            subject_gate=Gate("receiving_td_rank", "le", TE_THRESHOLDS["receiving_td_rank"]),
            opponent_gate=Gate("td_allowed_to_te_rank", "ge", TE_THRESHOLDS["defense_te_rank"]),
            context="{name}: {ord} TE TDs vs {opp_ord} TD allowed to TE",
            implications=("te_tds_over",),
        ),
        Check(
            finding_type="te_red_zone_factor",
            suffix="rz",
            subject_gate=Gate("red_zone_target_rank", "le", TE_THRESHOLDS["red_zone_target_rank"]),
            context="{name}: {ord} red zone TE targets - high TD upside",
            implications=("te_tds_over",),
        ),
    ),
)


def check_te(player: PlayerStats, defense: Any, ctx: RuleContext) -> List[Finding]:
    subject = Subject(key=player.name, name=player.name, team=player.team, sources={"subject": player})
    return evaluate_rule_set(TE_RULES, subject, defense, ctx)
