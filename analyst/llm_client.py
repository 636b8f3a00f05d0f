"""
LLM_CLIENT.PY - Generative collaborator transport

One async chat-completions call against an OpenAI-compatible endpoint over
httpx. No retry: a single failure sends the whole batch to the deterministic
fallback, trading availability for predictable latency.

Every transport problem surfaces as LLMUnavailableError. Content that
arrives but cannot be decoded surfaces as MalformedOutputError.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Protocol

import httpx

from analyst.prompt import SYSTEM_PROMPT
from core.errors import ErrorCode, LLMUnavailableError, MalformedOutputError
from core.log_sanitizer import safe_log_response, sanitize, sanitize_headers
from core.structured_logging import log_debug, log_error
from env_config import Config

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LLMClient(Protocol):
    """Anything that can turn one prompt into one raw text response."""

    model: str
    temperature: float

    async def complete(self, prompt: str) -> str:
        ...


class OpenAICompatibleClient:
    """Chat completions client (OpenAI, OpenRouter, local gateways)."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        system_prompt: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or Config.LLM_BASE_URL).rstrip("/")
        self.model = model or Config.LLM_MODEL
        self.temperature = Config.LLM_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or Config.LLM_MAX_OUTPUT_TOKENS
        self.system_prompt = system_prompt or SYSTEM_PROMPT
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_config(cls) -> Optional["OpenAICompatibleClient"]:
        """Client built from env config, or None when the collaborator is unavailable."""
        if not Config.llm_available():
            return None
        return cls(api_key=Config.LLM_API_KEY)

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def complete(self, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }

        client = self._client or httpx.AsyncClient(timeout=Config.LLM_TIMEOUT_S)
        log_debug(logger, "LLM request", url=self.url, model=self.model, headers=sanitize_headers(headers))
        try:
            response = await client.post(self.url, headers=headers, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            log_error(
                logger, "LLM API error",
                detail=safe_log_response(e.response.status_code, self.url, e.response.text),
            )
            raise LLMUnavailableError(
                f"LLM returned HTTP {e.response.status_code}", code=ErrorCode.LLM_TRANSPORT,
            ) from e
        except httpx.TimeoutException as e:
            raise LLMUnavailableError("LLM request timed out", code=ErrorCode.LLM_TIMEOUT) from e
        except httpx.HTTPError as e:
            log_error(logger, "LLM transport error", detail=sanitize(str(e)))
            raise LLMUnavailableError(f"LLM transport error: {type(e).__name__}", code=ErrorCode.LLM_TRANSPORT) from e
        except ValueError as e:
            raise LLMUnavailableError("LLM response body is not JSON", code=ErrorCode.LLM_MALFORMED) from e
        finally:
            if self._owns_client:
                await client.aclose()

        content = extract_content(data)
        logger.info("Received response from %s (%d chars)", self.model, len(content))
        return content


def extract_content(data: Any) -> str:
    """Pull the first choice's message content out of a completions body."""
    if not isinstance(data, dict) or not data.get("choices"):
        raise LLMUnavailableError("No choices in LLM response", code=ErrorCode.LLM_MALFORMED)
    content = (data["choices"][0] or {}).get("message", {}).get("content")
    if not content or not str(content).strip():
        raise LLMUnavailableError("Empty LLM response", code=ErrorCode.LLM_MALFORMED)
    return str(content)


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw.strip()).strip()


def parse_response(raw: str) -> Dict[str, Any]:
    """
    Decode the collaborator's text into a mapping keyed by finding id.

    Content that is not a JSON object raises MalformedOutputError. That is an
    output problem, not a transport one, so it never triggers the fallback.
    """
    try:
        parsed = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"LLM output is not valid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise MalformedOutputError(f"LLM output is a JSON {type(parsed).__name__}, expected an object")
    return parsed
