"""
Tests for the synchronous half of the Enrichment Transformer:
claim rendering, record validation, severity repair, fallback rendering,
prompt building and guidance loading.
"""

import json

import pytest

from analyst.fallback import build_fallback_alert, fallback_alerts, fallback_claim
from analyst.guidance import BUILT_IN_GUIDANCE, load_guidance
from analyst.prompt import build_prompt, check_prompt_budget, estimate_tokens
from analyst.severity import fallback_severity, repair_severity, supports_high
from analyst.validation import Absent, Rejected, Validated, validate_record, validate_response
from core.errors import ErrorCode, GuardrailError
from models.claim import ClaimParts, render_claim
from models.matchup import GameNotes

from conftest import DATA_TIMESTAMP, enrichment_record, make_finding


def _record(**overrides):
    record = enrichment_record({"domain": "hb", "implications": ["rb_rush_yards_over"]}, metrics=["rushing_yards"])
    record.update(overrides)
    return record


# =============================================================================
# CLAIMS
# =============================================================================

class TestRenderClaim:
    """Claims are rendered from structured parts."""

    def test_rank_claim(self):
        """Metrics, comparator, rank, target and qualifier in order."""
        parts = ClaimParts(
            metrics=["receiving_epa", "target_share"],
            direction="positive",
            comparator="ranks",
            rank_or_percentile={"type": "rank", "value": 5, "scope": "league", "direction": "top"},
            comparison_target="opponent_average",
            context_qualifier="with_current_qb",
        )
        assert render_claim(parts) == (
            "Receiving EPA + Target Share ranks top 5 in league vs opponent average (with current QB)"
        )

    def test_percentile_claim(self):
        """Percentiles render as Nth percentile."""
        parts = ClaimParts(
            metrics=["yards_per_carry"],
            direction="negative",
            comparator="trails",
            rank_or_percentile={"type": "percentile", "value": 12, "scope": "position"},
            context_qualifier="in_division",
        )
        assert render_claim(parts) == "Yards Per Carry trails 12th percentile in position (in division games)"

    def test_diverges_from(self):
        """Underscored comparators render with spaces."""
        parts = ClaimParts(metrics=["snap_count"], direction="neutral", comparator="diverges_from")
        assert render_claim(parts) == "Snap Count diverges from"


# =============================================================================
# SEVERITY
# =============================================================================

class TestSeverity:
    """High severity needs support."""

    def test_extreme_rank_supports_high(self):
        """Top-5 vs bottom-5 supports high."""
        assert supports_high(make_finding(extreme_matchup=True))
        assert fallback_severity(make_finding(extreme_matchup=True)) == "high"

    def test_plain_rank_is_medium(self):
        """Top-10 vs bottom-10 is medium."""
        assert fallback_severity(make_finding(extreme_matchup=False, confidence=0.9)) == "medium"

    @pytest.mark.parametrize("confidence,expected", [(0.7, "high"), (0.69, "medium"), (None, "medium")])
    def test_non_rank_uses_confidence(self, confidence, expected):
        """Non-rank findings are high from 0.70 confidence."""
        finding = make_finding(domain="weather", type="weather_wind", extreme_matchup=None, confidence=confidence)
        assert fallback_severity(finding) == expected

    def test_rank_domain_without_opponent_gate_uses_confidence(self):
        """Severity keys on the rank comparison, not the domain name."""
        finding = make_finding(domain="wr", type="wr_separation", extreme_matchup=None, confidence=0.75)
        assert fallback_severity(finding) == "high"

    def test_repair_downgrades_with_warning(self):
        """An unsupported high becomes medium with a warning."""
        severity, warning = repair_severity(make_finding(), "high")
        assert severity == "medium"
        assert warning.startswith(ErrorCode.SEVERITY_DOWNGRADED)

    def test_repair_keeps_supported_high(self):
        """Supported high passes untouched."""
        assert repair_severity(make_finding(extreme_matchup=True), "high") == ("high", None)


# =============================================================================
# RECORD VALIDATION
# =============================================================================

class TestValidateRecord:
    """One record, one finding."""

    def test_valid_record(self):
        """A clean record validates with a rendered claim."""
        result = validate_record(make_finding(), _record())
        assert isinstance(result, Validated)
        assert result.severity == "medium"
        assert result.implications == ("rb_rush_yards_over",)
        assert result.claim == "Rushing Yards ranks top 5 in league vs opponent average"
        assert result.warnings == ()

    def test_not_an_object(self):
        """Lists and strings are rejected."""
        assert validate_record(make_finding(), ["medium"]) == Rejected(
            ErrorCode.INVALID_RECORD, "record is a list, expected an object",
        )

    @pytest.mark.parametrize("severity", ["low", "critical", None, 3])
    def test_invalid_severity(self, severity):
        """Only high and medium exist."""
        result = validate_record(make_finding(), _record(severity=severity))
        assert isinstance(result, Rejected)
        assert result.code == ErrorCode.INVALID_SEVERITY

    def test_unknown_metric(self):
        """Metrics come from a closed list."""
        parts = dict(_record()["claim_parts"], metrics=["vibes"])
        result = validate_record(make_finding(), _record(claim_parts=parts))
        assert isinstance(result, Rejected)
        assert result.code == ErrorCode.INVALID_CLAIM

    def test_free_text_claim_is_rejected(self):
        """A raw claim string instead of claim_parts is rejected."""
        record = _record()
        del record["claim_parts"]
        record["claim"] = "Lock of the week"
        assert validate_record(make_finding(), record).code == ErrorCode.INVALID_CLAIM

    @pytest.mark.parametrize("field,text", [
        ("comparison_target", "a defense that will get smoked"),
        ("context_qualifier", "bet the house, free money"),
        ("context_qualifier", "sharp money spot"),
    ])
    def test_free_text_claim_parts_rejected(self, field, text):
        """Targets and qualifiers come from closed lists, not collaborator prose."""
        parts = dict(_record()["claim_parts"], **{field: text})
        result = validate_record(make_finding(), _record(claim_parts=parts))
        assert isinstance(result, Rejected)
        assert result.code == ErrorCode.INVALID_CLAIM

    def test_free_text_scope_rejected(self):
        """Rank scope is league, position, conference or division."""
        rank = {"type": "rank", "value": 1, "scope": "guaranteed winners", "direction": "top"}
        parts = dict(_record()["claim_parts"], rank_or_percentile=rank)
        assert validate_record(make_finding(), _record(claim_parts=parts)).code == ErrorCode.INVALID_CLAIM

    def test_banned_language(self, monkeypatch):
        """A rendered claim carrying promotional words is rejected."""
        monkeypatch.setattr("analyst.validation.render_claim", lambda parts: "Rushing Yards lock of the week")
        result = validate_record(make_finding(), _record())
        assert isinstance(result, Rejected)
        assert result.code == ErrorCode.BANNED_LANGUAGE

    def test_implications_filtered_with_warning(self):
        """Outsiders are dropped, the record survives."""
        result = validate_record(make_finding(), _record(implications=["rb_rush_yards_over", "wr_yards_over"]))
        assert isinstance(result, Validated)
        assert result.implications == ("rb_rush_yards_over",)
        assert result.warnings[0].startswith(ErrorCode.IMPLICATIONS_FILTERED)

    def test_no_allowed_implications(self):
        """All outsiders means rejection."""
        result = validate_record(make_finding(), _record(implications=["wr_yards_over"]))
        assert result.code == ErrorCode.NO_ALLOWED_IMPLICATIONS

    def test_high_severity_downgraded(self):
        """High on a non-extreme finding is repaired, not rejected."""
        result = validate_record(make_finding(), _record(severity="high"))
        assert isinstance(result, Validated)
        assert result.severity == "medium"
        assert any(w.startswith(ErrorCode.SEVERITY_DOWNGRADED) for w in result.warnings)

    def test_suppressions_carried(self):
        """Suppression reasons pass through as strings."""
        result = validate_record(make_finding(), _record(suppressions=["backup QB announced"]))
        assert result.suppressions == ("backup QB announced",)


class TestValidateResponse:
    """Whole-batch validation."""

    def test_every_finding_gets_a_result(self):
        """Validated, rejected and absent are all reported."""
        good = make_finding(id="hb-a")
        bad = make_finding(id="hb-b")
        missing = make_finding(id="hb-c")
        parsed = {"hb-a": _record(), "hb-b": _record(severity="low"), "ghost": _record()}

        report = validate_response(parsed, [good, bad, missing])

        assert isinstance(report.results["hb-a"], Validated)
        assert isinstance(report.results["hb-b"], Rejected)
        assert isinstance(report.results["hb-c"], Absent)
        assert list(report.validated()) == ["hb-a"]
        assert any(w.startswith(ErrorCode.UNKNOWN_FINDING) and "[ghost]" in w for w in report.warnings)
        assert any(w.startswith(ErrorCode.MISSING_ENRICHMENT) and "[hb-c]" in w for w in report.warnings)
        assert any(w.startswith(ErrorCode.INVALID_SEVERITY) and "finding dropped" in w for w in report.warnings)


# =============================================================================
# FALLBACK
# =============================================================================

class TestFallback:
    """Deterministic rendering."""

    def test_claim_uses_only_finding_fields(self):
        """stat: value (context)."""
        assert fallback_claim(make_finding()) == "rush_yards_rank: 8 (Test Back: 8th rush yards vs 24th rush defense)"

    def test_claim_truncated(self):
        """Long contexts are cut to 200 characters."""
        assert len(fallback_claim(make_finding(comparison_context="x" * 500))) == 200

    def test_alert_shape(self):
        """Fallback alerts carry finding identity and default implications."""
        finding = make_finding(confidence=0.66, implications=("rb_rush_yards_over", "rb_rush_attempts_over"))
        alert = build_fallback_alert(finding, DATA_TIMESTAMP)

        assert alert.id == finding.id
        assert alert.domain == "hb"
        assert alert.confidence == 0.66
        assert alert.severity == "medium"
        assert alert.implications == ["rb_rush_yards_over", "rb_rush_attempts_over"]
        assert alert.fallback is True
        assert alert.freshness == "live"
        assert alert.evidence[0].source_ref == finding.source_ref
        assert alert.suppressions == []

    def test_one_alert_per_finding(self):
        """Nothing is dropped on the fallback path."""
        findings = [make_finding(id=f"hb-{i}", confidence=0.6) for i in range(4)]
        assert [a.id for a in fallback_alerts(findings)] == [f.id for f in findings]

    def test_stale_freshness(self):
        """Freshness is relative to the reference timestamp."""
        alert = build_fallback_alert(make_finding(confidence=0.6), DATA_TIMESTAMP + 10 * 86400)
        assert alert.freshness == "stale"


# =============================================================================
# PROMPT + GUIDANCE
# =============================================================================

class TestPrompt:
    """Prompt construction and budget."""

    def test_sections(self):
        """Guidance, findings, allow-list, metrics, rules and format are present."""
        findings = [make_finding(id="hb-b"), make_finding(id="hb-a")]
        prompt = build_prompt(findings, {"hb": "HB guide text"})

        assert "## HB Guidance\n\nHB guide text" in prompt
        assert "## Valid Implications by Domain" in prompt
        assert "- HB: rb_rush_yards_over" in prompt
        assert "## Output Format" in prompt
        block = prompt.split("## Findings\n\n", 1)[1].split("\n\n---\n\n", 1)[0]
        assert [f["id"] for f in json.loads(block)] == ["hb-a", "hb-b"]

    def test_claim_vocabulary_listed(self):
        """Every allowed scope, target and qualifier is spelled out."""
        prompt = build_prompt([make_finding()], {})
        assert "## Valid Claim Values" in prompt
        assert "- scope: league, position, conference, division" in prompt
        assert "historical_self" in prompt
        assert "with_current_qb" in prompt
        assert "vs_bottom_5_defense" not in prompt

    def test_independent_of_input_order(self):
        """Findings are sorted by id, so order does not change the prompt."""
        a, b = make_finding(id="hb-a"), make_finding(id="hb-b")
        assert build_prompt([a, b], {}) == build_prompt([b, a], {})

    def test_game_notes_section(self):
        """Curated notes appear when provided."""
        notes = GameNotes(notes="Cold one in Buffalo", key_matchups=["Kelce vs LBs"])
        prompt = build_prompt([make_finding()], {}, notes)
        assert "## Game Notes" in prompt
        assert "Scout Report: Cold one in Buffalo" in prompt
        assert "- Kelce vs LBs" in prompt

    def test_token_estimate(self):
        """Four characters per token, rounded up."""
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2

    def test_budget_guard(self):
        """Over-budget prompts raise GuardrailError."""
        assert check_prompt_budget("x" * 40, 10) == 10
        with pytest.raises(GuardrailError) as exc:
            check_prompt_budget("x" * 41, 10)
        assert exc.value.code == ErrorCode.PROMPT_TOO_LARGE


class TestGuidance:
    """Guidance precedence."""

    def test_built_in(self):
        """Built-in text by default."""
        assert load_guidance(["hb", "wr", "hb"]) == {"hb": BUILT_IN_GUIDANCE["hb"], "wr": BUILT_IN_GUIDANCE["wr"]}

    def test_directory_override(self, tmp_path):
        """{dir}/{domain}.md overrides the built-in text."""
        (tmp_path / "wr.md").write_text("Custom WR guidance", encoding="utf-8")
        guidance = load_guidance(["wr", "te"], guidance_dir=str(tmp_path))
        assert guidance["wr"] == "Custom WR guidance"
        assert guidance["te"] == BUILT_IN_GUIDANCE["te"]

    def test_explicit_override_wins(self, tmp_path):
        """Caller overrides beat files."""
        (tmp_path / "wr.md").write_text("File", encoding="utf-8")
        assert load_guidance(["wr"], guidance_dir=str(tmp_path), overrides={"wr": "Arg"}) == {"wr": "Arg"}
