"""
Test System Invariants

- Scripts carry 2-6 legs and combined_confidence stays below 0.95
- Ladders carry at least one rung and never exceed their cap
- Claims never contain promotional language
- enforce_invariant raises under pytest, logs otherwise
"""

import logging

import pytest

from core.invariants import (
    BANNED_CLAIM_TERMS,
    COMBINED_CONFIDENCE_CEILING,
    DATA_QUALITY_CEILINGS,
    DOMAIN_ORDER,
    WEAK_RANK_MIN,
    enforce_invariant,
    find_banned_terms,
    validate_ladder_shape,
    validate_script_shape,
)
from models.implications import ALLOWED_IMPLICATIONS, DEFAULT_IMPLICATIONS


class TestConstants:
    """Constants that other stages rely on"""

    def test_domain_order_covers_allow_lists(self):
        """Every domain has an allow-list and a default set"""
        assert set(DOMAIN_ORDER) == set(ALLOWED_IMPLICATIONS) == set(DEFAULT_IMPLICATIONS)

    def test_weak_band(self):
        """Bottom-5 of 32 starts at 28"""
        assert WEAK_RANK_MIN == 28

    def test_ceilings_ordered(self):
        assert DATA_QUALITY_CEILINGS["full"] > DATA_QUALITY_CEILINGS["partial"] > DATA_QUALITY_CEILINGS["fallback"]

    @pytest.mark.parametrize("domain", DOMAIN_ORDER)
    def test_defaults_inside_allow_list(self, domain):
        """The fallback can never emit an implication validation would drop"""
        assert set(DEFAULT_IMPLICATIONS[domain]) <= set(ALLOWED_IMPLICATIONS[domain])


class TestScriptShape:
    """validate_script_shape()"""

    @pytest.mark.parametrize("legs", [2, 4, 6])
    def test_valid(self, legs):
        assert validate_script_shape(legs, 0.5) == (True, "")

    @pytest.mark.parametrize("legs", [0, 1, 7])
    def test_leg_count(self, legs):
        is_valid, message = validate_script_shape(legs, 0.5)
        assert not is_valid
        assert "legs" in message

    def test_ceiling(self):
        is_valid, message = validate_script_shape(2, COMBINED_CONFIDENCE_CEILING)
        assert not is_valid
        assert "combined_confidence" in message


class TestLadderShape:
    """validate_ladder_shape()"""

    def test_valid(self):
        assert validate_ladder_shape(3, 3) == (True, "")

    def test_empty(self):
        assert validate_ladder_shape(0, 3)[0] is False

    def test_over_cap(self):
        assert validate_ladder_shape(4, 3) == (False, "INVARIANT VIOLATION: ladder has 4 rungs (cap 3)")


class TestBannedTerms:
    """find_banned_terms()"""

    def test_clean(self):
        assert find_banned_terms("Rushing Yards ranks top 5 in league") == []

    def test_whole_words_only(self):
        """'sharpness' and 'valued' are not banned words"""
        assert find_banned_terms("sharpness valued") == []

    def test_case_insensitive(self):
        assert find_banned_terms("A LOCK with real Edge") == ["lock", "edge"]

    def test_all_terms_detected(self):
        assert find_banned_terms(" ".join(BANNED_CLAIM_TERMS)) == BANNED_CLAIM_TERMS


class TestEnforceInvariant:
    """enforce_invariant()"""

    def test_valid_is_silent(self):
        enforce_invariant(True, "never raised")

    def test_raises_under_pytest(self):
        with pytest.raises(AssertionError, match="broken"):
            enforce_invariant(False, "broken", "script-x")

    def test_logs_outside_pytest(self, monkeypatch, caplog):
        """Production degrades: ERROR log, no exception"""
        monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
        with caplog.at_level(logging.ERROR, logger="core.invariants"):
            enforce_invariant(False, "broken", "script-x")
        assert "broken | id=script-x" in caplog.text
