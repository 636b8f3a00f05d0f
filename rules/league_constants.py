"""
League-wide pace averages by season. Update yearly.
"""

from typing import Dict, Optional

LEAGUE_CONSTANTS: Dict[int, Dict[str, float]] = {
    2024: {"avg_plays_per_game": 62.5, "avg_seconds_per_play": 30.2},
    2025: {"avg_plays_per_game": 63.0, "avg_seconds_per_play": 30.0},
}


def get_league_stats(year: Optional[int]) -> Dict[str, float]:
    """Stats for `year`, or the most recent season on file."""
    if year in LEAGUE_CONSTANTS:
        return LEAGUE_CONSTANTS[year]
    return LEAGUE_CONSTANTS[max(LEAGUE_CONSTANTS)]
