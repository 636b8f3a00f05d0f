"""
Claim Parts
===========

The collaborator never writes claim text directly. It returns structured
claim parts drawn from closed vocabularies; code renders the sentence.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClaimMetric(str, Enum):
    RECEIVING_EPA = "receiving_epa"
    RUSHING_EPA = "rushing_epa"
    PASS_BLOCK_WIN_RATE = "pass_block_win_rate"
    PRESSURE_RATE = "pressure_rate"
    TARGET_SHARE = "target_share"
    SNAP_COUNT = "snap_count"
    RED_ZONE_EPA = "red_zone_epa"
    EPA_ALLOWED = "epa_allowed"
    COMPLETION_RATE = "completion_rate"
    YARDS_PER_ATTEMPT = "yards_per_attempt"
    SACK_RATE = "sack_rate"
    PASSER_RATING = "passer_rating"
    YARDS_AFTER_CONTACT = "yards_after_contact"
    SEPARATION = "separation"
    CONTESTED_CATCH_RATE = "contested_catch_rate"
    ROUTE_PARTICIPATION = "route_participation"
    RED_ZONE_TARGETS = "red_zone_targets"
    RUSHING_YARDS = "rushing_yards"
    YARDS_PER_CARRY = "yards_per_carry"
    TOUCHDOWNS = "touchdowns"
    PLAYS_PER_GAME = "plays_per_game"
    WIND_SPEED = "wind_speed"
    TEMPERATURE = "temperature"
    PRECIPITATION = "precipitation"
    AVAILABILITY = "availability"


class Direction(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Comparator(str, Enum):
    RANKS = "ranks"
    EXCEEDS = "exceeds"
    TRAILS = "trails"
    MATCHES = "matches"
    DIVERGES_FROM = "diverges_from"


class RankType(str, Enum):
    RANK = "rank"
    PERCENTILE = "percentile"


class RankDirection(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


class RankScope(str, Enum):
    LEAGUE = "league"
    POSITION = "position"
    CONFERENCE = "conference"
    DIVISION = "division"


class ComparisonTarget(str, Enum):
    LEAGUE_AVERAGE = "league_average"
    OPPONENT_AVERAGE = "opponent_average"
    POSITION_AVERAGE = "position_average"
    SEASON_BASELINE = "season_baseline"
    HISTORICAL_SELF = "historical_self"


class ContextQualifier(str, Enum):
    IN_DIVISION = "in_division"
    AT_HOME = "at_home"
    AS_UNDERDOG = "as_underdog"
    IN_PRIMETIME = "in_primetime"
    VS_TOP_10_DEFENSE = "vs_top_10_defense"
    WITH_CURRENT_QB = "with_current_qb"


COMPARISON_DISPLAY = {
    ComparisonTarget.LEAGUE_AVERAGE.value: "league average",
    ComparisonTarget.OPPONENT_AVERAGE.value: "opponent average",
    ComparisonTarget.POSITION_AVERAGE.value: "position average",
    ComparisonTarget.SEASON_BASELINE.value: "season baseline",
    ComparisonTarget.HISTORICAL_SELF.value: "historical self",
}

QUALIFIER_DISPLAY = {
    ContextQualifier.IN_DIVISION.value: "in division games",
    ContextQualifier.AT_HOME.value: "at home",
    ContextQualifier.AS_UNDERDOG.value: "as underdog",
    ContextQualifier.IN_PRIMETIME.value: "in primetime",
    ContextQualifier.VS_TOP_10_DEFENSE.value: "vs top 10 defense",
    ContextQualifier.WITH_CURRENT_QB.value: "with current QB",
}


class RankOrPercentile(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    type: RankType
    value: int = Field(..., ge=1, le=100)
    scope: RankScope
    direction: RankDirection = RankDirection.TOP


class ClaimParts(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    metrics: List[ClaimMetric] = Field(..., min_length=1, max_length=3)
    direction: Direction
    comparator: Comparator
    rank_or_percentile: Optional[RankOrPercentile] = None
    comparison_target: Optional[ComparisonTarget] = None
    context_qualifier: Optional[ContextQualifier] = None


def _val(x) -> str:
    return x.value if isinstance(x, Enum) else str(x)


def _metric_label(metric) -> str:
    words = _val(metric).split("_")
    return " ".join(word.upper() if word == "epa" else word.capitalize() for word in words)


def render_claim(parts: ClaimParts) -> str:
    """
    Render claim parts into the display sentence.

    Example:
        "Receiving EPA ranks top 5 in league vs opponent average (at home)"
    """
    text = " + ".join(_metric_label(m) for m in parts.metrics)
    text += " " + _val(parts.comparator).replace("_", " ")

    rp = parts.rank_or_percentile
    if rp is not None:
        if _val(rp.type) == RankType.PERCENTILE.value:
            text += f" {rp.value}th percentile in {_val(rp.scope)}"
        else:
            text += f" {_val(rp.direction)} {rp.value} in {_val(rp.scope)}"

    if parts.comparison_target:
        text += f" vs {COMPARISON_DISPLAY[_val(parts.comparison_target)]}"

    if parts.context_qualifier:
        text += f" ({QUALIFIER_DISPLAY[_val(parts.context_qualifier)]})"

    return text
