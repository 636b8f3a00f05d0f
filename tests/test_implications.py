"""
Tests for models/implications.py

Allow-lists, default sets and the containment chain
rule suggestion ⊆ default set ⊆ allow-list.
"""

import pytest

from core.invariants import DOMAIN_ORDER
from models.implications import (
    ALLOWED_IMPLICATIONS,
    DEFAULT_IMPLICATIONS,
    allowed_for,
    fallback_implications,
    filter_allowed,
)
from rules.epa import EPA_RULES
from rules.hb import HB_RULES
from rules.injury import INJURY_IMPLICATIONS
from rules.notes import NOTE_IMPLICATIONS
from rules.pace import PACE_IMPLICATIONS
from rules.pressure import PRESSURE_RULES, QB_VULNERABILITY_RULES
from rules.qb import QB_RULES
from rules.te import TE_RULES
from rules.usage import usage_implications
from rules.weather import WEATHER_RULES
from rules.wr import WR_RULES

RULE_SETS = [EPA_RULES, HB_RULES, PRESSURE_RULES, QB_VULNERABILITY_RULES, QB_RULES, TE_RULES, WEATHER_RULES, WR_RULES]


def _suggestions():
    for rule_set in RULE_SETS:
        for check in rule_set.checks:
            yield rule_set.domain, check.implications
    for implications in INJURY_IMPLICATIONS.values():
        yield "injury", implications
    for implications in PACE_IMPLICATIONS.values():
        yield "pace", implications
    for implications in NOTE_IMPLICATIONS.values():
        yield "notes", implications
    for finding_type in ("target_share_elite", "target_share_alpha", "volume_workhorse",
                         "usage_trending_up", "usage_trending_down", "snap_share_committee"):
        for position in ("RB", "WR", "TE"):
            yield "usage", usage_implications(finding_type, position)


class TestContainment:
    """Every layer sits inside the next."""

    def test_every_domain_has_lists(self):
        """All eleven domains have an allow-list and a default set."""
        for domain in DOMAIN_ORDER:
            assert ALLOWED_IMPLICATIONS[domain], domain
            assert DEFAULT_IMPLICATIONS[domain], domain

    def test_defaults_inside_allow_list(self):
        """Default sets never leave the allow-list."""
        for domain, defaults in DEFAULT_IMPLICATIONS.items():
            assert set(defaults) <= set(ALLOWED_IMPLICATIONS[domain]), domain

    def test_rule_suggestions_inside_defaults(self):
        """Whatever a rule suggests, the fallback renderer may use."""
        for domain, implications in _suggestions():
            assert set(implications) <= set(DEFAULT_IMPLICATIONS[domain]), (domain, implications)


class TestFilterAllowed:
    """Splitting collaborator implications."""

    def test_keeps_order_and_drops_outsiders(self):
        """Allowed entries keep their order; others are reported."""
        kept, dropped = filter_allowed("wr", ["wr_yards_over", "rb_tds_over", "wr_receptions_over"])
        assert kept == ["wr_yards_over", "wr_receptions_over"]
        assert dropped == ["rb_tds_over"]

    def test_deduplicates(self):
        """Repeated entries are kept once."""
        kept, _ = filter_allowed("wr", ["wr_yards_over", "wr_yards_over"])
        assert kept == ["wr_yards_over"]

    def test_unknown_domain(self):
        """Unknown domains allow nothing."""
        assert allowed_for("kicking") == ()
        assert filter_allowed("kicking", ["x"]) == ([], ["x"])


class TestFallbackImplications:
    """Deterministic implications for fallback alerts."""

    def test_uses_suggestions_in_default_set(self):
        """Rule suggestions inside the default set are used as-is."""
        assert fallback_implications("weather", ("pass_yards_under", "game_total_under")) == [
            "pass_yards_under", "game_total_under",
        ]

    def test_falls_back_to_first_default(self):
        """Without usable suggestions the first default is used."""
        assert fallback_implications("hb") == ["rb_rush_yards_over"]
        assert fallback_implications("te", ("te_yards_under",)) == ["te_receptions_over"]

    @pytest.mark.parametrize("domain", DOMAIN_ORDER)
    def test_never_empty(self, domain):
        """Every domain yields at least one implication."""
        assert fallback_implications(domain)
