"""
Environment Configuration Helper
================================
Centralized env var loading with fallback names.
Values are read once at import; pipeline arguments override them per run.
"""

import os
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)


def get_env(*names: str, default: Any = None) -> Optional[str]:
    """
    Get environment variable with fallback names.

    Tries each name in order, returns first non-empty value.

    Example:
        get_env("LLM_API_KEY", "OPENAI_API_KEY")
    """
    for name in names:
        value = os.getenv(name)
        if value and str(value).strip():
            return value.strip()
    return default


def get_env_bool(name: str, default: bool = False) -> bool:
    """Get boolean env var (true/false/1/0)."""
    value = os.getenv(name, "").lower().strip()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(name: str, default: int) -> int:
    """Get integer env var, falling back to default on missing or bad values."""
    value = get_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, value)
        return default


def get_env_float(name: str, default: float) -> float:
    """Get float env var, falling back to default on missing or bad values."""
    value = get_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, value)
        return default


# ============================================================================
# CENTRALIZED CONFIG (loaded once at import)
# ============================================================================

class Config:
    """Centralized configuration from env vars."""

    ENGINE_VERSION = "terminal-1.0"

    # Generative collaborator (OpenAI-compatible chat completions)
    LLM_ENABLED = get_env_bool("LLM_ENABLED", True)
    LLM_API_KEY = get_env("LLM_API_KEY", "OPENAI_API_KEY")
    LLM_BASE_URL = get_env("LLM_BASE_URL", default="https://api.openai.com/v1")
    LLM_MODEL = get_env("LLM_MODEL", default="gpt-4o-mini")
    LLM_TEMPERATURE = get_env_float("LLM_TEMPERATURE", 0.2)
    LLM_TIMEOUT_S = get_env_float("LLM_TIMEOUT_S", 45.0)
    LLM_MAX_INPUT_TOKENS = get_env_int("LLM_MAX_INPUT_TOKENS", 8000)
    LLM_MAX_OUTPUT_TOKENS = get_env_int("LLM_MAX_OUTPUT_TOKENS", 2000)

    # Portfolio sizing
    SCRIPT_MAX_LEGS = get_env_int("SCRIPT_MAX_LEGS", 4)
    LADDER_MAX_RUNGS = get_env_int("LADDER_MAX_RUNGS", 3)

    # Optional override directory for per-domain guidance documents
    GUIDANCE_DIR = get_env("GUIDANCE_DIR")

    # Optional directory of curated game notes: {NOTES_DIR}/{year}-wk{week}/{away}@{home}.json
    NOTES_DIR = get_env("NOTES_DIR")

    @classmethod
    def llm_available(cls) -> bool:
        """True when the collaborator is enabled and has credentials."""
        return bool(cls.LLM_ENABLED and cls.LLM_API_KEY)

    @classmethod
    def log_status(cls):
        """Log config status at boot (no secrets, just availability)."""
        status = {
            "llm": cls.llm_available(),
            "model": cls.LLM_MODEL,
            "timeout_s": cls.LLM_TIMEOUT_S,
            "max_legs": cls.SCRIPT_MAX_LEGS,
            "max_rungs": cls.LADDER_MAX_RUNGS,
            "guidance_dir": bool(cls.GUIDANCE_DIR),
            "notes_dir": bool(cls.NOTES_DIR),
        }

        status_str = " ".join(f"{k}={v}" for k, v in status.items())
        logger.info(f"ENV OK: {status_str}")

        return status
