"""
WR.PY - Wide receiver matchup checks

Volume and yardage are hard-gated on targets. Scoring and separation are
evaluated independently of that gate.
"""

from typing import Any, List

from models.finding import Finding
from models.matchup import PlayerStats
from rules.evaluator import Check, Gate, RuleContext, RuleSet, SampleGate, Subject, evaluate_rule_set

WR_THRESHOLDS = {
    "target_share_rank": 10,
    "receiving_yards_rank": 10,
    "receiving_td_rank": 10,
    "defense_pass_rank": 22,
    "separation_rank": 10,
    "min_targets": 50,
}

_TARGETS = SampleGate("targets", WR_THRESHOLDS["min_targets"])

WR_RULES = RuleSet(
    domain="wr",
    checks=(
        Check(
            finding_type="wr_target_volume",
            suffix="volume",
            subject_gate=Gate("target_share_rank", "le", WR_THRESHOLDS["target_share_rank"]),
            opponent_gate=Gate("pass_defense_rank", "ge", WR_THRESHOLDS["defense_pass_rank"]),
            sample=_TARGETS,
            context="{name}: {ord} target share vs {opp_ord} pass defense",
            implications=("wr_receptions_over",),
        ),
        Check(
            finding_type="wr_yardage_advantage",
            suffix="yards",
            subject_gate=Gate("receiving_yards_rank", "le", WR_THRESHOLDS["receiving_yards_rank"]),
            opponent_gate=Gate("yards_allowed_to_wr_rank", "ge", WR_THRESHOLDS["defense_pass_rank"]),
            sample=_TARGETS,
            context="{name}: {ord} receiving yards vs {opp_ord} yards allowed",
            implications=("wr_yards_over",),
        ),
        Check(
            finding_type="wr_td_opportunity",
            suffix="td",
            subject_gate=Gate("receiving_td_rank", "le", WR_THRESHOLDS["receiving_td_rank"]),
            opponent_gate=Gate("td_allowed_to_wr_rank", "ge", WR_THRESHOLDS["defense_pass_rank"]),
            context="{name}: {ord} receiving TDs vs {opp_ord} TD allowed to WR",
            implications=("wr_tds_over",),
        ),
        Check(
            finding_type="wr_separation_advantage",
            suffix="sep",
            subject_gate=Gate("separation_rank", "le", WR_THRESHOLDS["separation_rank"]),
            context="{name}: {ord} separation - elite route runner",
            implications=("wr_yards_over", "wr_longest_reception_over"),
        ),
    ),
)


def check_wr(player: PlayerStats, defense: Any, ctx: RuleContext) -> List[Finding]:
    subject = Subject(key=player.name, name=player.name, team=player.team, sources={"subject": player})
    return evaluate_rule_set(WR_RULES, subject, defense, ctx)
