"""
QB.PY - Quarterback matchup checks
"""

from typing import Any, List

from models.finding import Finding
from models.matchup import PlayerStats
from rules.evaluator import Check, Gate, RuleContext, RuleSet, SampleGate, Subject, evaluate_rule_set

QB_THRESHOLDS = {
    "qb_rating_rank": 10,
    "yards_per_attempt_rank": 10,
    "turnover_pct_rank": 22,
    "defense_pass_rank": 22,
    "defense_int_rank": 10,
    "min_attempts": 150,
}

_ATTEMPTS = SampleGate("attempts", QB_THRESHOLDS["min_attempts"])

QB_RULES = RuleSet(
    domain="qb",
    checks=(
        Check(
            finding_type="qb_rating_advantage",
            suffix="rating",
            subject_gate=Gate("qb_rating_rank", "le", QB_THRESHOLDS["qb_rating_rank"]),
            opponent_gate=Gate("pass_defense_rank", "ge", QB_THRESHOLDS["defense_pass_rank"]),
            sample=_ATTEMPTS,
            context="{name}: {ord} QB rating vs {opp_ord} pass defense",
            implications=("qb_pass_yards_over", "qb_pass_tds_over"),
        ),
        Check(
            finding_type="qb_ypa_advantage",
            suffix="ypa",
            subject_gate=Gate("yards_per_attempt_rank", "le", QB_THRESHOLDS["yards_per_attempt_rank"]),
            opponent_gate=Gate("pass_yards_allowed_rank", "ge", QB_THRESHOLDS["defense_pass_rank"]),
            sample=_ATTEMPTS,
            context="{name}: {ord} YPA vs {opp_ord} yards allowed",
            implications=("qb_pass_yards_over",),
        ),
        # 32 = most turnover-prone, INT rank 1 = most interceptions
        Check(
            finding_type="qb_turnover_risk",
            suffix="turnover",
            subject_gate=Gate("turnover_pct_rank", "ge", QB_THRESHOLDS["turnover_pct_rank"]),
            opponent_gate=Gate("interception_rate_rank", "le", QB_THRESHOLDS["defense_int_rank"]),
            context="{name}: {ord} turnover rate vs {opp_ord} INT rate",
            implications=("qb_ints_over",),
        ),
    ),
)


def check_qb(player: PlayerStats, defense: Any, ctx: RuleContext) -> List[Finding]:
    subject = Subject(key=player.name, name=player.name, team=player.team, sources={"subject": player})
    return evaluate_rule_set(QB_RULES, subject, defense, ctx)
