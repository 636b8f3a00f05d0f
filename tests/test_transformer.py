"""
Tests for analyst/transformer.py - one collaborator call per batch, with a
deterministic fallback for every collaborator failure.
"""

import asyncio
import json

import pytest

from analyst.transformer import FALLBACK_MODEL, call_with_timeout, enrich_findings
from core.errors import ErrorCode, LLMUnavailableError

from conftest import (
    DATA_TIMESTAMP,
    FailingLLMClient,
    FakeLLMClient,
    SlowLLMClient,
    echo_responder,
    enrichment_record,
    make_finding,
)


@pytest.fixture
def findings():
    return [
        make_finding(id="hb-a-volume", confidence=0.72),
        make_finding(id="hb-b-volume", confidence=0.55, extreme_matchup=True, value=3),
    ]


def _codes(warnings):
    return [w.split(":", 1)[0] for w in warnings]


class TestEnrichedPath:
    """Validated records become alerts."""

    @pytest.mark.asyncio
    async def test_enriched_alerts(self, findings, fake_llm):
        """One call, one alert per validated record, code-owned fields from the finding."""
        outcome = await enrich_findings(findings, client=fake_llm, as_of=DATA_TIMESTAMP)

        assert outcome.fallback is False
        assert outcome.fallback_reason is None
        assert len(fake_llm.prompts) == 1
        assert outcome.prompt == fake_llm.prompts[0]
        assert outcome.model == "fake-model"
        assert outcome.temperature == 0.1
        assert [a.id for a in outcome.alerts] == ["hb-a-volume", "hb-b-volume"]
        assert [a.confidence for a in outcome.alerts] == [0.72, 0.55]
        assert all(a.fallback is False for a in outcome.alerts)
        assert outcome.alerts[0].claim == "Target Share ranks top 5 in league vs opponent average"
        assert outcome.warnings == []

    @pytest.mark.asyncio
    async def test_guidance_loaded_for_present_domains(self, findings, fake_llm):
        """Only the domains in the batch get guidance."""
        outcome = await enrich_findings(findings, client=fake_llm, guidance={"hb": "Custom"})
        assert outcome.guidance == {"hb": "Custom"}
        assert "## HB Guidance\n\nCustom" in outcome.prompt

    @pytest.mark.asyncio
    async def test_high_severity_repaired(self, findings):
        """Unsupported high is downgraded, supported high is kept."""
        client = FakeLLMClient(responder=echo_responder(severity="high"))
        outcome = await enrich_findings(findings, client=client)

        assert [a.severity for a in outcome.alerts] == ["medium", "high"]
        assert _codes(outcome.warnings) == [ErrorCode.SEVERITY_DOWNGRADED]

    @pytest.mark.asyncio
    async def test_missing_record_dropped(self, findings):
        """An absent record drops its finding with a warning; the rest survive."""
        client = FakeLLMClient(responder=echo_responder(skip=["hb-a-volume"]))
        outcome = await enrich_findings(findings, client=client)

        assert outcome.fallback is False
        assert [a.id for a in outcome.alerts] == ["hb-b-volume"]
        assert outcome.warnings == ["MISSING_ENRICHMENT: no enrichment record; finding dropped [hb-a-volume]"]

    @pytest.mark.asyncio
    async def test_rejected_record_dropped(self, findings):
        """A bad record only affects its own finding."""
        bad = enrichment_record({"domain": "hb"}, implications=["wr_yards_over"])
        client = FakeLLMClient(responder=echo_responder(overrides={"hb-b-volume": bad}))
        outcome = await enrich_findings(findings, client=client)

        assert [a.id for a in outcome.alerts] == ["hb-a-volume"]
        assert ErrorCode.NO_ALLOWED_IMPLICATIONS in _codes(outcome.warnings)

    @pytest.mark.asyncio
    async def test_suppressions_kept_on_alert(self, findings):
        """Suppressed alerts are still returned, carrying their reasons."""
        record = enrichment_record({"domain": "hb"}, suppressions=["starter ruled out"])
        client = FakeLLMClient(responder=echo_responder(overrides={"hb-a-volume": record}))
        outcome = await enrich_findings(findings, client=client)

        assert outcome.alerts[0].suppressions == ["starter ruled out"]
        assert outcome.alerts[0].is_suppressed

    @pytest.mark.parametrize("response", ["Sure! Here are your alerts:", "[1, 2, 3]", '"just a string"'])
    @pytest.mark.asyncio
    async def test_unparseable_output_drops_batch(self, findings, response):
        """A reply that is not a JSON object drops every finding without falling back."""
        outcome = await enrich_findings(findings, client=FakeLLMClient(response=response))

        assert outcome.fallback is False
        assert outcome.fallback_reason is None
        assert outcome.model == "fake-model"
        assert outcome.alerts == []
        assert _codes(outcome.warnings) == [ErrorCode.LLM_MALFORMED]
        assert "2 findings dropped" in outcome.warnings[0]

    @pytest.mark.asyncio
    async def test_code_fences_stripped(self, findings):
        """A fenced JSON answer is accepted."""
        body = {f.id: enrichment_record({"domain": "hb"}) for f in findings}
        client = FakeLLMClient(response="```json\n" + json.dumps(body) + "\n```")
        outcome = await enrich_findings(findings, client=client)

        assert outcome.fallback is False
        assert len(outcome.alerts) == 2

    @pytest.mark.asyncio
    async def test_no_findings(self, fake_llm):
        """Nothing to enrich means no call."""
        outcome = await enrich_findings([], client=fake_llm)
        assert outcome.alerts == []
        assert fake_llm.prompts == []


class TestFallbackPath:
    """Every collaborator failure renders the whole batch deterministically."""

    def _assert_fallback(self, outcome, findings, code):
        assert outcome.fallback is True
        assert outcome.fallback_reason == code
        assert outcome.model == FALLBACK_MODEL
        assert outcome.temperature is None
        assert [a.id for a in outcome.alerts] == [f.id for f in findings]
        assert all(a.fallback for a in outcome.alerts)
        assert _codes(outcome.warnings) == [code]

    @pytest.mark.asyncio
    async def test_use_llm_false(self, findings, fake_llm):
        """use_llm=False never calls the client."""
        outcome = await enrich_findings(findings, client=fake_llm, use_llm=False)
        self._assert_fallback(outcome, findings, ErrorCode.LLM_DISABLED)
        assert outcome.prompt is None
        assert fake_llm.prompts == []

    @pytest.mark.asyncio
    async def test_no_client_configured(self, findings):
        """No API key means fallback."""
        outcome = await enrich_findings(findings)
        self._assert_fallback(outcome, findings, ErrorCode.LLM_DISABLED)

    @pytest.mark.asyncio
    async def test_timeout(self, findings):
        """A slow collaborator is abandoned and cancelled."""
        client = SlowLLMClient(delay=5)
        outcome = await enrich_findings(findings, client=client, timeout_s=0.05)

        self._assert_fallback(outcome, findings, ErrorCode.LLM_TIMEOUT)
        assert client.cancelled is True
        assert outcome.prompt is not None

    @pytest.mark.asyncio
    async def test_cancel_event(self, findings):
        """Setting the cancel event abandons the call."""
        client = SlowLLMClient(delay=5)
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, cancel.set)

        outcome = await enrich_findings(findings, client=client, cancel_event=cancel, timeout_s=2)

        self._assert_fallback(outcome, findings, ErrorCode.LLM_CANCELLED)
        assert client.cancelled is True

    @pytest.mark.asyncio
    async def test_transport_exception(self, findings):
        """Unexpected client exceptions fall back as transport errors."""
        outcome = await enrich_findings(findings, client=FailingLLMClient(RuntimeError("socket closed")))
        self._assert_fallback(outcome, findings, ErrorCode.LLM_TRANSPORT)
        assert "RuntimeError: socket closed" in outcome.warnings[0]

    @pytest.mark.asyncio
    async def test_unavailable_error_keeps_code(self, findings):
        """LLMUnavailableError codes pass through."""
        exc = LLMUnavailableError("No choices in LLM response", code=ErrorCode.LLM_MALFORMED)
        outcome = await enrich_findings(findings, client=FailingLLMClient(exc))
        self._assert_fallback(outcome, findings, ErrorCode.LLM_MALFORMED)

    @pytest.mark.asyncio
    async def test_prompt_too_large(self, findings, fake_llm):
        """Over-budget prompts are never sent."""
        outcome = await enrich_findings(findings, client=fake_llm, max_input_tokens=10)
        self._assert_fallback(outcome, findings, ErrorCode.PROMPT_TOO_LARGE)
        assert fake_llm.prompts == []


class TestCallWithTimeout:
    """The race between call, timeout and cancel event."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        """Fast calls return their text."""
        assert await call_with_timeout(FakeLLMClient(response="{}"), "p", 1.0) == "{}"

    @pytest.mark.asyncio
    async def test_already_set_event(self):
        """A pre-set cancel event wins before the call finishes."""
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(LLMUnavailableError) as exc:
            await call_with_timeout(SlowLLMClient(delay=1), "p", 1.0, cancel)
        assert exc.value.code == ErrorCode.LLM_CANCELLED
