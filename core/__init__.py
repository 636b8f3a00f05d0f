"""
Core module - System invariants and single source of truth
"""

from .invariants import (
    # Domains
    DOMAIN_ORDER,

    # Rank bands
    ELITE_RANK_MAX,
    WEAK_RANK_MIN,

    # Enrichment contract
    BANNED_CLAIM_TERMS,
    MAX_CLAIM_LENGTH,

    # Scripts / ladders
    SCRIPT_MIN_LEGS,
    SCRIPT_MAX_LEGS,
    COMBINED_CONFIDENCE_CEILING,
    LADDER_MAX_RUNGS,

    # Guards
    find_banned_terms,
    validate_script_shape,
    validate_ladder_shape,
    enforce_invariant,
)

__all__ = [
    "DOMAIN_ORDER",
    "ELITE_RANK_MAX",
    "WEAK_RANK_MIN",
    "BANNED_CLAIM_TERMS",
    "MAX_CLAIM_LENGTH",
    "SCRIPT_MIN_LEGS",
    "SCRIPT_MAX_LEGS",
    "COMBINED_CONFIDENCE_CEILING",
    "LADDER_MAX_RUNGS",
    "find_banned_terms",
    "validate_script_shape",
    "validate_ladder_shape",
    "enforce_invariant",
]
