"""
PACE.PY - Combined tempo of both offenses

Projects plays for the matchup from each team's plays per game, falling back
to 1800 / seconds_per_play (partial quality) and then to the league average
(fallback quality). Matchup-level signals win over per-team signals.

High wind is a confidence modifier here, not a suppression: confidence is
scaled down (never below a floor) and total-market implications are removed.
"""

import logging
from typing import List, Optional, Tuple

from core.finding_ids import compose_finding_id
from models.finding import DataQuality, Finding, SourceType
from models.matchup import TeamStats, WeatherData
from rules.evaluator import RuleContext, ordinal
from rules.league_constants import get_league_stats

logger = logging.getLogger(__name__)

PACE_THRESHOLDS = {
    "fast_pace_rank": 10,
    "slow_pace_rank": 23,
    "projected_plays_high": 68,
    "projected_plays_low": 58,
    "projected_plays_delta": 5,
    "wind_mph_penalty_threshold": 20,
    "wind_confidence_penalty": 0.3,
    "wind_confidence_floor": 0.3,
}

PACE_IMPLICATIONS = {
    "pace_over_signal": ("game_total_over", "team_total_over", "qb_pass_attempts_over"),
    "pace_under_signal": ("game_total_under", "team_total_under", "qb_pass_attempts_under"),
    "pace_mismatch": ("team_total_over", "team_total_under"),
    "team_plays_above_avg": ("team_total_over", "qb_pass_attempts_over"),
    "team_plays_below_avg": ("team_total_under", "qb_pass_attempts_under"),
}

MISMATCH_CONFIDENCE = 0.65
TEAM_SIGNAL_CONFIDENCE = 0.7


def _contribution(stats: Optional[TeamStats], league_avg: float) -> Tuple[float, DataQuality]:
    if stats is not None and stats.plays_per_game:
        return stats.plays_per_game, DataQuality.FULL
    if stats is not None and stats.seconds_per_play:
        return 1800 / stats.seconds_per_play, DataQuality.PARTIAL
    return league_avg, DataQuality.FALLBACK


def project_plays(home: Optional[TeamStats], away: Optional[TeamStats], year: Optional[int]) -> dict:
    """Average of both teams' play contributions plus the weakest data quality used."""
    league_avg = get_league_stats(year)["avg_plays_per_game"]
    home_plays, home_quality = _contribution(home, league_avg)
    away_plays, away_quality = _contribution(away, league_avg)

    order = [DataQuality.FULL, DataQuality.PARTIAL, DataQuality.FALLBACK]
    quality = max(home_quality, away_quality, key=order.index)

    return {
        "plays": (home_plays + away_plays) / 2,
        "data_quality": quality,
        "home_contrib": home_plays,
        "away_contrib": away_plays,
    }


def matchup_signal(projected: float, league_avg: float) -> Optional[str]:
    if projected >= PACE_THRESHOLDS["projected_plays_high"]:
        return "pace_over_signal"
    if projected <= PACE_THRESHOLDS["projected_plays_low"]:
        return "pace_under_signal"
    delta = projected - league_avg
    if abs(delta) >= PACE_THRESHOLDS["projected_plays_delta"]:
        return "pace_over_signal" if delta > 0 else "pace_under_signal"
    return None


def team_signal(stats: Optional[TeamStats], league_avg: float) -> Optional[str]:
    if stats is None or (stats.pace_rank is None and stats.plays_per_game is None):
        return None
    if stats.pace_rank is not None:
        if stats.pace_rank <= PACE_THRESHOLDS["fast_pace_rank"]:
            return "team_plays_above_avg"
        if stats.pace_rank >= PACE_THRESHOLDS["slow_pace_rank"]:
            return "team_plays_below_avg"
    if stats.plays_per_game is not None:
        delta = stats.plays_per_game - league_avg
        if delta >= PACE_THRESHOLDS["projected_plays_delta"]:
            return "team_plays_above_avg"
        if delta <= -PACE_THRESHOLDS["projected_plays_delta"]:
            return "team_plays_below_avg"
    return None


def is_mismatch(home: Optional[TeamStats], away: Optional[TeamStats]) -> bool:
    if home is None or away is None or home.pace_rank is None or away.pace_rank is None:
        return False
    fast, slow = PACE_THRESHOLDS["fast_pace_rank"], PACE_THRESHOLDS["slow_pace_rank"]
    return (
        (home.pace_rank <= fast and away.pace_rank >= slow)
        or (home.pace_rank >= slow and away.pace_rank <= fast)
    )


def matchup_confidence(quality: DataQuality) -> float:
    base = 0.75
    if quality == DataQuality.FULL:
        base += 0.1
    elif quality == DataQuality.FALLBACK:
        base -= 0.15
    # Over/under signals are the only matchup-level types
    base += 0.05
    return round(min(max(base, 0.5), 0.9), 3)


def apply_wind_modifier(
    confidence: float,
    implications: Tuple[str, ...],
    weather: Optional[WeatherData],
) -> Tuple[float, Tuple[str, ...]]:
    """Scale confidence down and drop total markets in high outdoor wind."""
    if weather is None or weather.indoor:
        return confidence, implications
    if weather.wind_mph <= PACE_THRESHOLDS["wind_mph_penalty_threshold"]:
        return confidence, implications

    scaled = confidence * (1 - PACE_THRESHOLDS["wind_confidence_penalty"])
    scaled = round(max(scaled, PACE_THRESHOLDS["wind_confidence_floor"]), 3)
    return scaled, tuple(imp for imp in implications if "total" not in imp)


def check_pace(
    home_stats: Optional[TeamStats],
    away_stats: Optional[TeamStats],
    weather: Optional[WeatherData],
    ctx: RuleContext,
) -> List[Finding]:
    findings: List[Finding] = []
    if home_stats is None and away_stats is None:
        logger.debug("No team stats provided")
        return findings

    league_avg = get_league_stats(ctx.year)["avg_plays_per_game"]
    projected = project_plays(home_stats, away_stats, ctx.year)
    plays = projected["plays"]
    delta = plays - league_avg
    matchup_ref = f"matchup_context://team_stats/{ctx.home_team}+{ctx.away_team}"
    matchup_key = f"{ctx.home_team} {ctx.away_team}"
    payload = {
        "projected_plays": round(plays, 2),
        "home_plays_per_game": round(projected["home_contrib"], 2),
        "away_plays_per_game": round(projected["away_contrib"], 2),
        "delta_vs_league": round(delta, 2),
        "data_quality": projected["data_quality"].value,
    }

    signal = matchup_signal(plays, league_avg)
    if signal:
        confidence, implications = apply_wind_modifier(
            matchup_confidence(projected["data_quality"]), PACE_IMPLICATIONS[signal], weather,
        )
        is_over = "over" in signal
        cutoff = PACE_THRESHOLDS["projected_plays_high"] if is_over else PACE_THRESHOLDS["projected_plays_low"]
        findings.append(Finding(
            id=compose_finding_id("pace", matchup_key, "matchup", ctx.data_timestamp),
            domain="pace",
            type=signal,
            stat="projected_plays",
            value=round(plays, 2),
            threshold_met=f"projected_plays {'>=' if is_over else '<='} {cutoff} or {PACE_THRESHOLDS['projected_plays_delta']} vs league",
            comparison_context=f"Projected {plays:.1f} plays ({'+' if delta > 0 else ''}{delta:.1f} vs league avg)",
            source_ref=matchup_ref,
            source_type=SourceType.MATCHUP_CONTEXT,
            source_timestamp=ctx.data_timestamp,
            confidence=confidence,
            subject=f"{ctx.away_team} at {ctx.home_team}",
            data_quality=projected["data_quality"],
            implications=implications,
            payload=payload,
        ))
        logger.debug("Found pace signal: %s (%.1f plays)", signal, plays)

    if is_mismatch(home_stats, away_stats):
        findings.append(Finding(
            id=compose_finding_id("pace", matchup_key, "mismatch", ctx.data_timestamp),
            domain="pace",
            type="pace_mismatch",
            stat="pace_rank",
            value=f"{home_stats.pace_rank} vs {away_stats.pace_rank}",
            threshold_met=(
                f"one pace_rank <= {PACE_THRESHOLDS['fast_pace_rank']} "
                f"and the other >= {PACE_THRESHOLDS['slow_pace_rank']}"
            ),
            comparison_context=(
                f"Pace mismatch: {ctx.home_team} ({home_stats.pace_rank}) "
                f"vs {ctx.away_team} ({away_stats.pace_rank})"
            ),
            source_ref=matchup_ref,
            source_type=SourceType.MATCHUP_CONTEXT,
            source_timestamp=ctx.data_timestamp,
            confidence=MISMATCH_CONFIDENCE,
            subject=f"{ctx.away_team} at {ctx.home_team}",
            data_quality=projected["data_quality"],
            implications=PACE_IMPLICATIONS["pace_mismatch"],
            payload=payload,
        ))

    if signal:
        return findings

    for team, stats in ((ctx.home_team, home_stats), (ctx.away_team, away_stats)):
        team_type = team_signal(stats, league_avg)
        if team_type is None:
            continue

        confidence, implications = apply_wind_modifier(
            TEAM_SIGNAL_CONFIDENCE, PACE_IMPLICATIONS[team_type], weather,
        )
        above = "above" in team_type
        if stats.pace_rank is not None:
            threshold_met = (
                f"pace_rank {'<=' if above else '>='} "
                f"{PACE_THRESHOLDS['fast_pace_rank'] if above else PACE_THRESHOLDS['slow_pace_rank']}"
            )
            context = f"{team}: {ordinal(stats.pace_rank)} in pace"
        else:
            threshold_met = f"plays_per_game delta >= {PACE_THRESHOLDS['projected_plays_delta']}"
            context = f"{team}: {stats.plays_per_game:.1f} plays/game"

        findings.append(Finding(
            id=compose_finding_id("pace", team, "team", ctx.data_timestamp),
            domain="pace",
            type=team_type,
            stat="pace",
            value=stats.plays_per_game if stats.plays_per_game is not None else stats.pace_rank,
            threshold_met=threshold_met,
            comparison_context=context,
            source_ref=f"matchup_context://team_stats/{team}",
            source_type=SourceType.MATCHUP_CONTEXT,
            source_timestamp=ctx.data_timestamp,
            confidence=confidence,
            subject=team,
            team=team,
            data_quality=DataQuality.FULL,
            implications=implications,
            payload={
                "projected_plays": stats.plays_per_game or league_avg,
                "delta_vs_league": round((stats.plays_per_game or league_avg) - league_avg, 2),
            },
        ))
        logger.debug("Found team pace: %s (%s)", team, team_type)

    return findings
