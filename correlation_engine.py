"""
CORRELATION_ENGINE.PY - Correlation Identifier

Scans the domains present across a set of alerts and proposes named
correlation groups from fixed co-occurrence rules. Each rule inspects the
alerts independently and emits zero or one group, so one alert can sit in
several groups. Groups with fewer than two members are discarded.

Rules (alerts taken in input order):
    weather_cascade   every weather alert + first 2 QB/WR/TE alerts
    defensive_funnel  every pressure alert + every QB alert
    volume_share      3+ WR alerts, capped to the first 3
    game_script       first 2 EPA alerts + first 2 HB alerts
    player_stack      a QB alert + up to 2 WR/TE alerts from the same team
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from models.alert import Alert
from models.portfolio import CorrelationType

logger = logging.getLogger(__name__)

VOLUME_SHARE_MIN = 3
VOLUME_SHARE_CAP = 3
PASSING_DOMAINS = ("qb", "wr", "te")


@dataclass(frozen=True)
class CorrelationGroup:
    type: str
    alert_ids: List[str]
    explanation: str

    @property
    def size(self) -> int:
        return len(self.alert_ids)


def _of(alerts: Sequence[Alert], *domains: str) -> List[Alert]:
    return [a for a in alerts if a.domain in domains]


def _ids(alerts: Sequence[Alert]) -> List[str]:
    # An alert listed twice still counts once
    return list(dict.fromkeys(a.id for a in alerts))


def weather_cascade(alerts: Sequence[Alert]) -> Optional[CorrelationGroup]:
    weather = _of(alerts, "weather")
    passing = _of(alerts, *PASSING_DOMAINS)
    if not weather or not passing:
        return None
    return CorrelationGroup(
        type=CorrelationType.WEATHER_CASCADE.value,
        alert_ids=_ids(weather + passing[:2]),
        explanation="Weather conditions affect passing game metrics across multiple positions",
    )


def defensive_funnel(alerts: Sequence[Alert]) -> Optional[CorrelationGroup]:
    pressure = _of(alerts, "pressure")
    qb = _of(alerts, "qb")
    if not pressure or not qb:
        return None
    return CorrelationGroup(
        type=CorrelationType.DEFENSIVE_FUNNEL.value,
        alert_ids=_ids(pressure + qb),
        explanation="Pass rush pressure correlates with QB performance metrics",
    )


def volume_share(alerts: Sequence[Alert]) -> Optional[CorrelationGroup]:
    wr = _of(alerts, "wr")
    if len(wr) < VOLUME_SHARE_MIN:
        return None
    return CorrelationGroup(
        type=CorrelationType.VOLUME_SHARE.value,
        alert_ids=_ids(wr[:VOLUME_SHARE_CAP]),
        explanation="Target share concentration among receiving options",
    )


def game_script(alerts: Sequence[Alert]) -> Optional[CorrelationGroup]:
    epa = _of(alerts, "epa")
    hb = _of(alerts, "hb")
    if not epa or not hb:
        return None
    return CorrelationGroup(
        type=CorrelationType.GAME_SCRIPT.value,
        alert_ids=_ids(epa[:2] + hb[:2]),
        explanation="EPA efficiency patterns predict game script and usage",
    )


def player_stack(alerts: Sequence[Alert]) -> Optional[CorrelationGroup]:
    catchers = _of(alerts, "wr", "te")
    for qb in _of(alerts, "qb"):
        if qb.team is None:
            continue
        teammates = [a for a in catchers if a.team == qb.team]
        if teammates:
            return CorrelationGroup(
                type=CorrelationType.PLAYER_STACK.value,
                alert_ids=_ids([qb] + teammates[:2]),
                explanation=f"{qb.team} passing game: quarterback and receivers rise or fall together",
            )
    return None


CORRELATION_RULES: List[Callable[[Sequence[Alert]], Optional[CorrelationGroup]]] = [
    weather_cascade,
    defensive_funnel,
    volume_share,
    game_script,
    player_stack,
]


def identify_correlations(alerts: Sequence[Alert]) -> List[CorrelationGroup]:
    """
    Propose correlation groups for a set of alerts.

    Suppressed alerts never take part.
    """
    eligible = [a for a in alerts if not a.suppressions]
    groups = []
    for rule in CORRELATION_RULES:
        group = rule(eligible)
        if group is not None and group.size >= 2:
            groups.append(group)

    logger.debug("Correlation groups: %s", [g.type for g in groups] or "none")
    return groups
