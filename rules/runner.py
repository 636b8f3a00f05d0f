"""
RUNNER.PY - Threshold Engine entry point

Runs every applicable rule domain for one matchup and merges the findings in
a fixed domain order, home team first, so ids and provenance hashes are
reproducible. Domains share no mutable state, so they can also run on a
thread pool; the merge order is the same either way.

Usage:
    from rules.runner import run_rules

    result = run_rules(context)
    result.findings          # List[Finding]
    result.domains_invoked   # domains that emitted at least one finding
    result.domains_silent    # domains that ran and emitted nothing
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from core.invariants import DOMAIN_ORDER
from models.finding import Finding
from models.matchup import MatchupContext
from rules.epa import check_epa
from rules.evaluator import RuleContext
from rules.hb import check_hb
from rules.injury import check_injuries
from rules.notes import check_notes
from rules.pace import check_pace
from rules.pressure import check_pressure
from rules.qb import check_qb
from rules.te import check_te
from rules.usage import check_usage
from rules.weather import check_weather
from rules.wr import check_wr

logger = logging.getLogger(__name__)

# Player domains: which positions each one reads
POSITION_DOMAINS = {
    "epa": ("WR", "TE", "RB", "HB"),
    "qb": ("QB",),
    "hb": ("RB", "HB"),
    "wr": ("WR",),
    "te": ("TE",),
}

_PLAYER_CHECKS = {
    "epa": check_epa,
    "qb": check_qb,
    "hb": check_hb,
    "wr": check_wr,
    "te": check_te,
}


@dataclass
class EngineResult:
    findings: List[Finding] = field(default_factory=list)
    domains_invoked: List[str] = field(default_factory=list)
    domains_silent: List[str] = field(default_factory=list)
    by_domain: Dict[str, List[Finding]] = field(default_factory=dict)


def rule_context(context: MatchupContext) -> RuleContext:
    return RuleContext(
        data_timestamp=context.data_timestamp,
        data_version=context.data_version,
        home_team=context.home_team,
        away_team=context.away_team,
        year=context.year,
        week=context.week,
    )


def _player_domain(domain: str, context: MatchupContext, ctx: RuleContext) -> List[Finding]:
    check = _PLAYER_CHECKS[domain]
    positions = POSITION_DOMAINS[domain]
    findings: List[Finding] = []
    for team in context.teams:
        opponent = context.stats_for(context.opponent_of(team))
        for player in context.players_for(team):
            if player.position in positions:
                findings.extend(check(player, opponent, ctx))
    return findings


def _pressure(context: MatchupContext, ctx: RuleContext) -> List[Finding]:
    findings: List[Finding] = []
    for team in context.teams:
        defense_team = context.opponent_of(team)
        findings.extend(check_pressure(
            defense_team, context.stats_for(defense_team), team, context.stats_for(team), ctx,
        ))
    return findings


def _injuries(context: MatchupContext, ctx: RuleContext) -> List[Finding]:
    injuries = context.injuries
    if not injuries and context.notes is not None:
        injuries = context.notes.injuries
    return check_injuries(injuries, ctx)


def _pace(context: MatchupContext, ctx: RuleContext) -> List[Finding]:
    return check_pace(
        context.team_stats.get(context.home_team),
        context.team_stats.get(context.away_team),
        context.weather,
        ctx,
    )


DOMAIN_RUNNERS: Dict[str, Callable[[MatchupContext, RuleContext], List[Finding]]] = {
    "epa": lambda c, r: _player_domain("epa", c, r),
    "pressure": _pressure,
    "weather": lambda c, r: check_weather(c.weather, r),
    "qb": lambda c, r: _player_domain("qb", c, r),
    "hb": lambda c, r: _player_domain("hb", c, r),
    "wr": lambda c, r: _player_domain("wr", c, r),
    "te": lambda c, r: _player_domain("te", c, r),
    "notes": lambda c, r: check_notes(c.curated_notes(), r),
    "injury": _injuries,
    "usage": lambda c, r: check_usage(c.players, r),
    "pace": _pace,
}


def run_rules(
    context: MatchupContext,
    domains: Optional[Iterable[str]] = None,
    concurrent: bool = False,
) -> EngineResult:
    """
    Run the selected rule domains (all by default) for one matchup.

    Args:
        context: Assembled matchup statistics
        domains: Optional subset of domain names; unknown names raise ValueError
        concurrent: Run domains on a thread pool

    Returns:
        EngineResult with findings merged in fixed domain order
    """
    requested = set(domains) if domains is not None else set(DOMAIN_ORDER)
    unknown = requested - set(DOMAIN_ORDER)
    if unknown:
        raise ValueError(f"Unknown rule domains: {sorted(unknown)}")

    selected = [d for d in DOMAIN_ORDER if d in requested]
    ctx = rule_context(context)

    if concurrent:
        with ThreadPoolExecutor(max_workers=max(len(selected), 1), thread_name_prefix="rules") as executor:
            futures = {d: executor.submit(DOMAIN_RUNNERS[d], context, ctx) for d in selected}
            by_domain = {d: futures[d].result() for d in selected}
    else:
        by_domain = {d: DOMAIN_RUNNERS[d](context, ctx) for d in selected}

    result = EngineResult(by_domain=by_domain)
    for domain in selected:
        emitted = by_domain[domain]
        if emitted:
            result.domains_invoked.append(domain)
            result.findings.extend(emitted)
        else:
            result.domains_silent.append(domain)

    logger.info(
        "Threshold engine: %d findings (%s invoked, %s silent)",
        len(result.findings),
        ",".join(result.domains_invoked) or "none",
        ",".join(result.domains_silent) or "none",
    )
    return result
