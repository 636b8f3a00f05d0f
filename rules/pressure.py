"""
PRESSURE.PY - Pass rush vs pass protection

The subject here is the defense: an elite pass rush (pressure rate rank
<= 10) against a weak offensive line (pass block win rate rank >= 22).
The quarterback vulnerability check only runs once that mismatch has fired.
"""

from typing import List

from models.finding import Finding
from models.matchup import TeamStats
from rules.evaluator import Check, Gate, RuleContext, RuleSet, Subject, evaluate_rule_set

PRESSURE_THRESHOLDS = {
    "pressure_rate_rank": 10,
    "pass_block_win_rate_rank": 22,
    "qb_pressured_rating": 60,
}

PRESSURE_RULES = RuleSet(
    domain="pressure",
    checks=(
        Check(
            finding_type="pressure_rate_advantage",
            suffix="rate",
            subject_gate=Gate("pressure_rate_rank", "le", PRESSURE_THRESHOLDS["pressure_rate_rank"]),
            opponent_gate=Gate("pass_block_win_rate_rank", "ge", PRESSURE_THRESHOLDS["pass_block_win_rate_rank"]),
            context="{team}: {ord} pass rush vs {offense} {opp_ord} OL",
            implications=("qb_sacks_over", "def_sacks_over"),
        ),
    ),
)

QB_VULNERABILITY_RULES = RuleSet(
    domain="pressure",
    checks=(
        Check(
            finding_type="qb_pressure_vulnerability",
            suffix="vuln",
            subject_gate=Gate("qb_passer_rating_under_pressure", "lt", PRESSURE_THRESHOLDS["qb_pressured_rating"]),
            context="{name}: {value} rating when pressured",
            implications=("qb_pass_yards_under", "qb_ints_over"),
            rank_based=False,
        ),
    ),
)


def check_pressure(
    defense_team: str,
    defense: TeamStats,
    offense_team: str,
    offense: TeamStats,
    ctx: RuleContext,
) -> List[Finding]:
    """
    Evaluate one defense's pass rush against the opposing offensive line.

    Nothing is evaluated when the defense reports no pressure rank.
    """
    if defense.pressure_rate_rank is None:
        return []

    rush = Subject(
        key=f"{defense_team} vs {offense_team}",
        name=defense_team,
        team=defense_team,
        sources={"subject": defense},
        labels={"offense": offense_team},
    )
    findings = evaluate_rule_set(PRESSURE_RULES, rush, offense, ctx)
    if not findings:
        return findings

    qb_name = offense.qb_name or f"{offense_team} QB"
    qb = Subject(key=qb_name, name=qb_name, team=offense_team, sources={"subject": offense})
    findings.extend(evaluate_rule_set(QB_VULNERABILITY_RULES, qb, None, ctx))
    return findings
