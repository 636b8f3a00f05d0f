"""
Implication Allow-Lists
=======================

Implications are downstream betting-market tags an alert supports. Every
domain has a closed allow-list; anything else is rejected or filtered.

DEFAULT_IMPLICATIONS is the per-domain default set used by the deterministic
fallback renderer. It is always a subset of the allow-list, and every
implication a rule suggests lies inside it.
"""

from typing import Dict, Iterable, List, Tuple

ALLOWED_IMPLICATIONS: Dict[str, Tuple[str, ...]] = {
    "epa": (
        "wr_receptions_over", "wr_receptions_under",
        "wr_yards_over", "wr_yards_under",
        "rb_yards_over", "rb_yards_under",
        "te_receptions_over", "te_yards_over",
        "team_total_over", "team_total_under",
    ),
    "pressure": (
        "qb_sacks_over", "qb_sacks_under",
        "qb_ints_over", "qb_pass_yards_under",
        "def_sacks_over",
    ),
    "weather": (
        "game_total_under", "pass_yards_under", "field_goals_over",
    ),
    "qb": (
        "qb_pass_yards_over", "qb_pass_yards_under",
        "qb_pass_tds_over", "qb_pass_tds_under",
        "qb_completions_over", "qb_completions_under",
        "qb_ints_over",
    ),
    "hb": (
        "rb_rush_yards_over", "rb_rush_yards_under",
        "rb_receptions_over", "rb_rush_attempts_over",
        "rb_tds_over",
    ),
    "wr": (
        "wr_receptions_over", "wr_receptions_under",
        "wr_yards_over", "wr_yards_under",
        "wr_tds_over", "wr_longest_reception_over",
    ),
    "te": (
        "te_receptions_over", "te_receptions_under",
        "te_yards_over", "te_yards_under",
        "te_tds_over",
    ),
    "injury": (
        "team_total_under", "team_total_over",
        "game_total_under",
        "qb_pass_yards_under", "qb_pass_tds_under",
        "qb_sacks_over",
        "wr_receptions_over", "rb_rush_attempts_over",
    ),
    "usage": (
        "wr_receptions_over", "wr_receptions_under", "wr_yards_over",
        "te_receptions_over", "te_receptions_under",
        "rb_receptions_over",
        "rb_rush_attempts_over", "rb_rush_attempts_under",
        "rb_rush_yards_under",
    ),
    "pace": (
        "game_total_over", "game_total_under",
        "team_total_over", "team_total_under",
        "qb_pass_attempts_over", "qb_pass_attempts_under",
        "rb_rush_attempts_over",
    ),
    "notes": (
        "team_total_over", "team_total_under",
        "game_total_over", "game_total_under",
        "pass_yards_under",
    ),
}

# First entry is the domain's single default when a finding suggests nothing
DEFAULT_IMPLICATIONS: Dict[str, Tuple[str, ...]] = {
    "epa": ("team_total_over", "wr_yards_over", "wr_receptions_over", "rb_yards_over"),
    "pressure": ("qb_sacks_over", "def_sacks_over", "qb_pass_yards_under", "qb_ints_over"),
    "weather": ("game_total_under", "pass_yards_under", "field_goals_over"),
    "qb": ("qb_pass_yards_over", "qb_pass_tds_over", "qb_ints_over"),
    "hb": ("rb_rush_yards_over", "rb_rush_attempts_over", "rb_tds_over", "rb_receptions_over"),
    "wr": ("wr_yards_over", "wr_receptions_over", "wr_tds_over", "wr_longest_reception_over"),
    "te": ("te_receptions_over", "te_yards_over", "te_tds_over"),
    "injury": (
        "team_total_under", "qb_pass_yards_under", "qb_sacks_over",
        "team_total_over", "wr_receptions_over",
    ),
    "usage": ALLOWED_IMPLICATIONS["usage"],
    "pace": ALLOWED_IMPLICATIONS["pace"],
    "notes": ("team_total_over", "game_total_under"),
}


def allowed_for(domain: str) -> Tuple[str, ...]:
    """Allow-list for a domain (empty for unknown domains)."""
    return ALLOWED_IMPLICATIONS.get(domain, ())


def filter_allowed(domain: str, implications: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Split implications into (kept, dropped) against the domain allow-list.

    Order is preserved and duplicates are removed from the kept list.
    """
    allowed = allowed_for(domain)
    kept: List[str] = []
    dropped: List[str] = []
    for imp in implications:
        if imp in allowed:
            if imp not in kept:
                kept.append(imp)
        else:
            dropped.append(imp)
    return kept, dropped


def fallback_implications(domain: str, suggested: Iterable[str] = ()) -> List[str]:
    """
    Implications for a fallback alert, drawn only from the domain default set.

    Rule suggestions that sit in the default set win; otherwise the first
    default is used.
    """
    defaults = DEFAULT_IMPLICATIONS.get(domain, ())
    picked = [imp for imp in suggested if imp in defaults]
    if picked:
        return list(dict.fromkeys(picked))[:5]
    return list(defaults[:1])
