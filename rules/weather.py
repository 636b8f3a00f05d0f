"""
WEATHER.PY - Game-level weather conditions

Single-sided threshold checks on the forecast. Indoor games emit nothing.
Order: wind, cold, heat, precipitation.
"""

from typing import List, Optional

from models.finding import Finding
from models.matchup import WeatherData
from rules.evaluator import Check, Gate, RuleContext, RuleSet, Subject, evaluate_rule_set

WEATHER_THRESHOLDS = {
    "wind_mph": 15,
    "cold_temp": 32,
    "hot_temp": 90,
    "precipitation_chance": 50,
}

WEATHER_RULES = RuleSet(
    domain="weather",
    checks=(
        Check(
            finding_type="weather_wind",
            suffix="wind",
            subject_gate=Gate("wind_mph", "ge", WEATHER_THRESHOLDS["wind_mph"]),
            context="{value} mph wind - affects deep passing",
            implications=("pass_yards_under", "game_total_under"),
            rank_based=False,
        ),
        Check(
            finding_type="weather_cold",
            suffix="cold",
            subject_gate=Gate("temperature", "le", WEATHER_THRESHOLDS["cold_temp"]),
            context="{value}F - cold weather game",
            implications=("game_total_under",),
            rank_based=False,
        ),
        Check(
            finding_type="weather_heat",
            suffix="heat",
            subject_gate=Gate("temperature", "ge", WEATHER_THRESHOLDS["hot_temp"]),
            context="{value}F - heat affects conditioning",
            implications=("game_total_under",),
            rank_based=False,
        ),
        Check(
            finding_type="weather_rain",
            suffix="precip",
            subject_gate=Gate("precipitation_chance", "ge", WEATHER_THRESHOLDS["precipitation_chance"]),
            context="{value}% chance of {precip}",
            implications=("game_total_under", "pass_yards_under"),
            rank_based=False,
        ),
    ),
)


def check_weather(weather: Optional[WeatherData], ctx: RuleContext) -> List[Finding]:
    if weather is None or weather.indoor:
        return []

    venue = weather.stadium or f"{ctx.away_team} at {ctx.home_team}"
    subject = Subject(
        key=venue,
        name=venue,
        team=None,
        sources={"subject": weather},
        labels={"precip": weather.precipitation_type or "precipitation"},
    )
    return evaluate_rule_set(WEATHER_RULES, subject, None, ctx)
