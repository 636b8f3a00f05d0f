"""
tests/conftest.py - Pytest configuration and fixtures

- Isolates every test from real LLM credentials (no network, ever)
- Builds matchup contexts that fire known rules
- Provides fake collaborators implementing the LLMClient protocol
"""

import asyncio
import copy
import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from env_config import Config
from models.finding import Finding
from models.implications import DEFAULT_IMPLICATIONS
from rules.evaluator import RuleContext

# 2024-10-27 03:33:20 UTC; hour bucket 1729998000
DATA_TIMESTAMP = 1_730_000_000
DATA_VERSION = "2024-wk8"


@pytest.fixture(autouse=True)
def isolate_llm_config(monkeypatch):
    """No test ever reaches a real collaborator through env config."""
    monkeypatch.setattr(Config, "LLM_API_KEY", None)
    monkeypatch.setattr(Config, "LLM_ENABLED", False)
    monkeypatch.setattr(Config, "GUIDANCE_DIR", None)
    monkeypatch.setattr(Config, "NOTES_DIR", None)
    monkeypatch.setattr(Config, "SCRIPT_MAX_LEGS", 4)
    monkeypatch.setattr(Config, "LADDER_MAX_RUNGS", 3)
    monkeypatch.setattr(Config, "LLM_TIMEOUT_S", 5.0)
    monkeypatch.setattr(Config, "LLM_MAX_INPUT_TOKENS", 8000)


# =============================================================================
# MATCHUP CONTEXTS
# =============================================================================

BASE_CONTEXT: Dict[str, Any] = {
    "home_team": "KC",
    "away_team": "BUF",
    "data_timestamp": DATA_TIMESTAMP,
    "data_version": DATA_VERSION,
    "players": {
        "KC": [
            {"name": "Isiah Pacheco", "team": "KC", "position": "RB", "rush_yards_rank": 2, "carries": 120},
            {"name": "Patrick Mahomes", "team": "KC", "position": "QB", "qb_rating_rank": 4, "attempts": 400},
            {"name": "Rashee Rice", "team": "KC", "position": "WR", "target_share_rank": 5, "targets": 80},
            {"name": "Xavier Worthy", "team": "KC", "position": "WR", "target_share_rank": 8, "targets": 60},
            {"name": "Hollywood Brown", "team": "KC", "position": "WR", "target_share_rank": 9, "targets": 55},
        ],
        "BUF": [],
    },
    "team_stats": {
        "KC": {},
        "BUF": {"rush_defense_rank": 28, "pass_defense_rank": 24},
    },
    "weather": {"temperature": 55, "wind_mph": 18, "precipitation_chance": 10, "indoor": False, "stadium": "Arrowhead"},
}


def build_context(**overrides: Any) -> Dict[str, Any]:
    """Deep copy of the base context with top-level overrides applied."""
    context = copy.deepcopy(BASE_CONTEXT)
    context.update(overrides)
    return context


@pytest.fixture
def context_dict() -> Dict[str, Any]:
    return build_context()


@pytest.fixture
def hb_only_context() -> Dict[str, Any]:
    """One running back, one weak run defense, indoors."""
    return build_context(
        players={"KC": [{"name": "Isiah Pacheco", "team": "KC", "position": "RB", "rush_yards_rank": 2, "carries": 80}]},
        team_stats={"KC": {}, "BUF": {"rush_defense_rank": 28}},
        weather={"temperature": 70, "wind_mph": 0, "indoor": True},
    )


@pytest.fixture
def rule_ctx() -> RuleContext:
    return RuleContext(
        data_timestamp=DATA_TIMESTAMP,
        data_version=DATA_VERSION,
        home_team="KC",
        away_team="BUF",
        year=2024,
        week=8,
    )


# =============================================================================
# FINDINGS
# =============================================================================

def make_finding(**overrides: Any) -> Finding:
    """A rank finding (hb volume, not extreme) with any field overridden."""
    fields: Dict[str, Any] = dict(
        id="hb-test-back-volume-1729998000",
        domain="hb",
        type="hb_volume_advantage",
        stat="rush_yards_rank",
        value=8,
        threshold_met="rush_yards_rank <= 10",
        comparison_context="Test Back: 8th rush yards vs 24th rush defense",
        source_ref="local://data/hb/2024-wk8.json",
        source_type="local",
        source_timestamp=DATA_TIMESTAMP,
        sample_size=None,
        extreme_matchup=False,
        team="KC",
        subject="Test Back",
    )
    fields.update(overrides)
    return Finding(**fields)


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

def findings_from_prompt(prompt: str) -> List[Dict[str, Any]]:
    """Decode the findings block the prompt builder embeds."""
    block = prompt.split("## Findings\n\n", 1)[1].split("\n\n---\n\n", 1)[0]
    return json.loads(block)


def enrichment_record(
    finding: Dict[str, Any],
    severity: str = "medium",
    implications: Optional[List[str]] = None,
    suppressions: Optional[List[str]] = None,
    metrics: Optional[List[str]] = None,
) -> Dict[str, Any]:
    if implications is None:
        implications = list(finding.get("implications") or DEFAULT_IMPLICATIONS[finding["domain"]][:1])
    return {
        "severity": severity,
        "claim_parts": {
            "metrics": metrics or ["target_share"],
            "direction": "positive",
            "comparator": "ranks",
            "rank_or_percentile": {"type": "rank", "value": 5, "scope": "league", "direction": "top"},
            "comparison_target": "opponent_average",
        },
        "implications": implications,
        "suppressions": suppressions or [],
    }


def echo_responder(
    severity: str = "medium",
    overrides: Optional[Dict[str, Any]] = None,
    skip: Optional[List[str]] = None,
) -> Callable[[str], str]:
    """Responder that enriches every finding in the prompt, with per-id overrides."""
    overrides = overrides or {}
    skip = skip or []

    def respond(prompt: str) -> str:
        body = {}
        for finding in findings_from_prompt(prompt):
            if finding["id"] in skip:
                continue
            body[finding["id"]] = overrides.get(finding["id"], enrichment_record(finding, severity))
        return json.dumps(body)

    return respond


class FakeLLMClient:
    """Returns a canned string, or the output of a responder over the prompt."""

    def __init__(
        self,
        response: Optional[str] = None,
        responder: Optional[Callable[[str], str]] = None,
        model: str = "fake-model",
        temperature: float = 0.1,
    ):
        self.response = response
        self.responder = responder or echo_responder()
        self.model = model
        self.temperature = temperature
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.response is not None:
            return self.response
        return self.responder(prompt)


class SlowLLMClient(FakeLLMClient):
    """Sleeps before answering; used for timeout and cancellation."""

    def __init__(self, delay: float, **kwargs: Any):
        super().__init__(**kwargs)
        self.delay = delay
        self.cancelled = False

    async def complete(self, prompt: str) -> str:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return await super().complete(prompt)


class FailingLLMClient(FakeLLMClient):
    """Raises the given exception from complete()."""

    def __init__(self, exc: BaseException, **kwargs: Any):
        super().__init__(**kwargs)
        self.exc = exc

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        raise self.exc


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()
