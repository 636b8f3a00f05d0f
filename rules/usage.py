"""
USAGE.PY - Volume leaders and usage trajectory

Reads season vs last-4-game (L4) usage shares from the matchup players and
emits at most one finding per skill player: the first matching type of

    target_share_elite > target_share_alpha > volume_workhorse >
    usage_trending_up > usage_trending_down > snap_share_committee

Small samples are hard-suppressed (zero findings), never down-weighted.
"""

import logging
from typing import Dict, List, Optional, Tuple

from core.finding_ids import compose_finding_id
from models.finding import DataQuality, Finding, SourceType
from models.matchup import PlayerStats
from rules.evaluator import RuleContext, ordered_teams

logger = logging.getLogger(__name__)

USAGE_THRESHOLDS = {
    "snap_pct_high": 0.80,
    "snap_pct_low": 0.50,
    "target_share_high": 0.25,
    "target_share_elite": 0.30,
    "target_share_extreme": 0.35,
    "trend_rising": 0.05,
    "trend_falling": -0.05,
    "min_games_in_window": 4,
    "min_routes_sample": 50,
    "min_targets_sample": 15,
}

SKILL_POSITIONS = ("RB", "HB", "WR", "TE")

_THRESHOLD_TEXT = {
    "target_share_elite": f"target_share_l4 >= {USAGE_THRESHOLDS['target_share_elite']}",
    "target_share_alpha": f"target_share_l4 >= {USAGE_THRESHOLDS['target_share_high']}",
    "volume_workhorse": f"snap_pct_l4 >= {USAGE_THRESHOLDS['snap_pct_high']}",
    "usage_trending_up": f"delta >= {USAGE_THRESHOLDS['trend_rising']}",
    "usage_trending_down": f"delta <= {USAGE_THRESHOLDS['trend_falling']}",
    "snap_share_committee": f"snap_pct_l4 <= {USAGE_THRESHOLDS['snap_pct_low']}",
}


def _position(player: PlayerStats) -> str:
    return "RB" if player.position == "HB" else player.position


def suppression_reason(player: PlayerStats) -> Optional[str]:
    """Why a player's usage data is too thin to read, or None."""
    if player.injury_limited:
        return "injury_limited"
    if player.games_in_window is not None and player.games_in_window < USAGE_THRESHOLDS["min_games_in_window"]:
        return f"games_in_window < {USAGE_THRESHOLDS['min_games_in_window']}"
    if player.routes_sample is not None and player.routes_sample < USAGE_THRESHOLDS["min_routes_sample"]:
        return f"routes_sample < {USAGE_THRESHOLDS['min_routes_sample']}"
    if player.targets_sample is not None and player.targets_sample < USAGE_THRESHOLDS["min_targets_sample"]:
        return f"targets_sample < {USAGE_THRESHOLDS['min_targets_sample']}"
    return None


def trend(season: Optional[float], l4: Optional[float]) -> Optional[str]:
    if season is None or l4 is None:
        return None
    # Rounded so 0.30 - 0.25 counts as a full 0.05 move
    delta = round(l4 - season, 4)
    if delta >= USAGE_THRESHOLDS["trend_rising"]:
        return "rising"
    if delta <= USAGE_THRESHOLDS["trend_falling"]:
        return "falling"
    return "stable"


def classify_usage(player: PlayerStats) -> Optional[str]:
    position = _position(player)
    share = player.target_share_l4
    snaps = player.snap_pct_l4

    if share is not None and share >= USAGE_THRESHOLDS["target_share_elite"]:
        return "target_share_elite"
    if share is not None and share >= USAGE_THRESHOLDS["target_share_high"]:
        return "target_share_alpha"
    if position == "RB" and snaps is not None and snaps >= USAGE_THRESHOLDS["snap_pct_high"]:
        return "volume_workhorse"

    snap_trend = trend(player.snap_pct_season, snaps)
    target_trend = trend(player.target_share_season, share)
    if "rising" in (snap_trend, target_trend):
        return "usage_trending_up"
    if "falling" in (snap_trend, target_trend):
        return "usage_trending_down"

    if position == "RB" and snaps is not None and snaps <= USAGE_THRESHOLDS["snap_pct_low"]:
        return "snap_share_committee"
    return None


def usage_implications(finding_type: str, position: str) -> Tuple[str, ...]:
    """Markets a usage pattern points at, by position."""
    if finding_type in ("target_share_elite", "target_share_alpha"):
        if position == "RB":
            return ("rb_receptions_over",)
        if position == "TE":
            return ("te_receptions_over",)
        if finding_type == "target_share_elite":
            return ("wr_receptions_over", "wr_yards_over")
        return ("wr_receptions_over",)
    if finding_type == "volume_workhorse":
        return ("rb_rush_attempts_over",)
    if finding_type == "usage_trending_up":
        return {"RB": ("rb_rush_attempts_over",), "TE": ("te_receptions_over",)}.get(
            position, ("wr_receptions_over",))
    if finding_type == "usage_trending_down":
        return {"RB": ("rb_rush_attempts_under",), "TE": ("te_receptions_under",)}.get(
            position, ("wr_receptions_under",))
    if finding_type == "snap_share_committee":
        return ("rb_rush_attempts_under", "rb_rush_yards_under")
    return ()


def usage_confidence(player: PlayerStats, finding_type: str) -> float:
    confidence = 0.7
    if player.games_in_window and player.games_in_window >= USAGE_THRESHOLDS["min_games_in_window"]:
        confidence += 0.1
    if player.routes_sample and player.routes_sample >= USAGE_THRESHOLDS["min_routes_sample"]:
        confidence += 0.05
    if player.targets_sample and player.targets_sample >= USAGE_THRESHOLDS["min_targets_sample"]:
        confidence += 0.05
    if (
        finding_type == "target_share_elite"
        and player.target_share_l4
        and player.target_share_l4 >= USAGE_THRESHOLDS["target_share_extreme"]
    ):
        confidence += 0.1
    return round(min(confidence, 0.95), 3)


def _pct(value: Optional[float]) -> str:
    return f"{value * 100:.1f}%" if value is not None else "N/A"


def _context(finding_type: str, player: PlayerStats) -> str:
    if finding_type == "target_share_elite":
        return f"{player.name}: {_pct(player.target_share_l4)} target share (elite)"
    if finding_type == "target_share_alpha":
        return f"{player.name}: {_pct(player.target_share_l4)} target share (alpha)"
    if finding_type == "volume_workhorse":
        return f"{player.name}: {_pct(player.snap_pct_l4)} snap share (workhorse)"
    if finding_type == "usage_trending_up":
        return f"{player.name}: usage trending up ({_pct(player.snap_pct_season)} -> {_pct(player.snap_pct_l4)})"
    if finding_type == "usage_trending_down":
        return f"{player.name}: usage trending down ({_pct(player.snap_pct_season)} -> {_pct(player.snap_pct_l4)})"
    return f"{player.name}: {_pct(player.snap_pct_l4)} snap share (committee)"


def check_usage(players: Dict[str, List[PlayerStats]], ctx: RuleContext) -> List[Finding]:
    findings: List[Finding] = []
    for team in ordered_teams(players, ctx):
        for player in players[team]:
            if player.position not in SKILL_POSITIONS:
                continue

            reason = suppression_reason(player)
            if reason:
                logger.debug("Suppressing usage for %s: %s", player.name, reason)
                continue

            finding_type = classify_usage(player)
            if finding_type is None:
                continue

            value = player.target_share_l4
            if value is None:
                value = player.snap_pct_l4 if player.snap_pct_l4 is not None else 0.0

            findings.append(Finding(
                id=compose_finding_id("usage", f"{team} {player.name}", finding_type, ctx.data_timestamp),
                domain="usage",
                type=finding_type,
                stat="usage_metrics",
                value=value,
                threshold_met=_THRESHOLD_TEXT[finding_type],
                comparison_context=_context(finding_type, player),
                source_ref=f"matchup_context://players/{team}/{player.name}",
                source_type=SourceType.MATCHUP_CONTEXT,
                source_timestamp=ctx.data_timestamp,
                confidence=usage_confidence(player, finding_type),
                subject=player.name,
                team=team,
                sample_size=player.targets_sample if player.targets_sample is not None else player.routes_sample,
                data_quality=DataQuality.FULL,
                implications=usage_implications(finding_type, _position(player)),
                payload={
                    "snap_pct_season": player.snap_pct_season,
                    "snap_pct_l4": player.snap_pct_l4,
                    "route_participation_season": player.route_participation_season,
                    "route_participation_l4": player.route_participation_l4,
                    "target_share_season": player.target_share_season,
                    "target_share_l4": player.target_share_l4,
                    "trend": trend(player.target_share_season, player.target_share_l4)
                    or trend(player.snap_pct_season, player.snap_pct_l4),
                    "window": "l4",
                    "games_in_window": player.games_in_window,
                },
            ))
            logger.debug("Found usage pattern: %s (%s)", player.name, finding_type)

    return findings
