"""
ERRORS.PY - Terminal Error Taxonomy

Only malformed input context is allowed to fail a run. Everything else is
absorbed by the pipeline:

    suppressed          rule gate declined to emit            silent
    validation-rejected enrichment record failed checks        warning string
    collaborator        transport / timeout / quota failure    fallback=True
    malformed input     required matchup fields missing        MatchupContextError

Usage:
    from core.errors import MatchupContextError, ErrorCode

    raise MatchupContextError(
        "Matchup context is invalid",
        details=[ErrorDetail(ErrorCode.MISSING_FIELD, "field required", "home_team")],
    )
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class ErrorCode:
    """Standard error codes used in exceptions and warning strings."""

    # Input context (hard failure)
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"
    INVALID_MATCHUP = "INVALID_MATCHUP"

    # Collaborator (routes to fallback)
    LLM_DISABLED = "LLM_DISABLED"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_CANCELLED = "LLM_CANCELLED"
    LLM_TRANSPORT = "LLM_TRANSPORT"
    LLM_MALFORMED = "LLM_MALFORMED"
    PROMPT_TOO_LARGE = "PROMPT_TOO_LARGE"

    # Per-finding enrichment (warning only)
    UNKNOWN_FINDING = "UNKNOWN_FINDING"
    MISSING_ENRICHMENT = "MISSING_ENRICHMENT"
    INVALID_RECORD = "INVALID_RECORD"
    INVALID_SEVERITY = "INVALID_SEVERITY"
    INVALID_CLAIM = "INVALID_CLAIM"
    BANNED_LANGUAGE = "BANNED_LANGUAGE"
    NO_ALLOWED_IMPLICATIONS = "NO_ALLOWED_IMPLICATIONS"
    SEVERITY_DOWNGRADED = "SEVERITY_DOWNGRADED"
    IMPLICATIONS_FILTERED = "IMPLICATIONS_FILTERED"


@dataclass
class ErrorDetail:
    """Single error detail."""
    code: str
    message: str
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None fields."""
        result = {"code": self.code, "message": self.message}
        if self.field is not None:
            result["field"] = self.field
        return result


class TerminalError(Exception):
    """Base class for terminal pipeline errors."""

    code = "TERMINAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[List[ErrorDetail]] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["errors"] = [d.to_dict() for d in self.details]
        return result


class MatchupContextError(TerminalError):
    """Required matchup fields are missing or invalid. The only hard failure."""

    code = ErrorCode.INVALID_MATCHUP


class GuardrailError(TerminalError):
    """Prompt or output budget exceeded before calling the collaborator."""

    code = ErrorCode.PROMPT_TOO_LARGE


class LLMUnavailableError(TerminalError):
    """Collaborator call failed or returned no usable completion."""

    code = ErrorCode.LLM_TRANSPORT


class MalformedOutputError(TerminalError):
    """The call succeeded but its content does not decode to a JSON object."""

    code = ErrorCode.LLM_MALFORMED


def format_warning(code: str, message: str, subject_id: Optional[str] = None) -> str:
    """Render a non-fatal warning string: "CODE: message [id]"."""
    if subject_id:
        return f"{code}: {message} [{subject_id}]"
    return f"{code}: {message}"
