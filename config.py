"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all Superset Help Assistant settings: provider API keys,
  model names, server port, CORS origins, timeouts, history limits, and the
  system prompt built around the Superset/IPP knowledge document.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Exposes the provider credentials (GEMINI_API_KEY, GROQ_API_KEY, OPENAI_API_KEY)
    and picks which provider to use (LLM_PROVIDER, or the first key that is set).
  - Defines PORT, CORS origins, provider timeout/retry, transcript cap, log file path.
  - Holds the built-in knowledge document and the rules the assistant must follow.
  - validate_config() checks everything at startup and raises StartupConfigError
    so the server refuses to start without a usable credential.

USAGE:
  Import what you need: `from config import PORT, MAX_HISTORY_TURNS, validate_config`
  All modules import from here so behaviour is consistent.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from superset_bot.errors import StartupConfigError


logger = logging.getLogger("SupersetBot")


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()

BASE_DIR = Path(__file__).parent

# Problems found while parsing numeric settings; reported together by validate_config().
_CONFIG_PROBLEMS: List[str] = []


def _env_number(name: str, default, cast=float):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        _CONFIG_PROBLEMS.append(f"{name} must be a number, got {raw!r}")
        return default


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ============================================================================
# LLM PROVIDER CONFIGURATION
# ============================================================================
# Three interchangeable hosted providers. Only the selected provider's key is
# required. If LLM_PROVIDER is empty the first provider with a key wins,
# in this order: gemini, groq, openai.

PROVIDER_KEY_VARS = {
    "gemini": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
}
PROVIDER_MODEL_VARS = {
    "gemini": ("GEMINI_MODEL", "gemini-2.5-flash"),
    "groq": ("GROQ_MODEL", "llama-3.3-70b-versatile"),
    "openai": ("OPENAI_MODEL", "gpt-4o-mini"),
}

MODEL_TEMPERATURE = _env_number("MODEL_TEMPERATURE", 0.2)

# The provider call is the only slow step in a request. 20s matches what the
# web UI waits before giving up.
PROVIDER_TIMEOUT = _env_number("PROVIDER_TIMEOUT", 20.0)
# Extra attempts for transient failures only (rate limit, overload, timeout). 0 = no retry.
PROVIDER_RETRIES = _env_number("PROVIDER_RETRIES", 0, int)
PROVIDER_RETRY_DELAY = _env_number("PROVIDER_RETRY_DELAY", 1.0)


@dataclass(frozen=True)
class ProviderSettings:
    name: str
    api_key: str
    model: str


def resolve_provider_settings(env: Optional[Mapping[str, str]] = None) -> ProviderSettings:
    """
    Decide which provider to use and return its key and model.

    Raises StartupConfigError when LLM_PROVIDER names an unknown provider, when the
    selected provider has no key, or when no provider key is set at all.
    """
    env = os.environ if env is None else env

    def _get(name: str) -> str:
        return (env.get(name) or "").strip()

    name = _get("LLM_PROVIDER").lower()
    if name:
        if name not in PROVIDER_KEY_VARS:
            raise StartupConfigError(
                f"LLM_PROVIDER={name!r} is not supported (choose one of: {', '.join(PROVIDER_KEY_VARS)})"
            )
        if not _get(PROVIDER_KEY_VARS[name]):
            raise StartupConfigError(f"{PROVIDER_KEY_VARS[name]} is missing (LLM_PROVIDER={name})")
    else:
        name = next((p for p, var in PROVIDER_KEY_VARS.items() if _get(var)), "")
        if not name:
            raise StartupConfigError(
                "No provider API key found. Set one of: " + ", ".join(PROVIDER_KEY_VARS.values())
            )

    model_var, default_model = PROVIDER_MODEL_VARS[name]
    return ProviderSettings(
        name=name,
        api_key=_get(PROVIDER_KEY_VARS[name]),
        model=_get(model_var) or default_model,
    )


# ============================================================================
# SERVER AND CORS
# ============================================================================

HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_number("PORT", 5050, int)

# The production frontend is served from GitHub Pages; its origin is always
# https://<username>.github.io (lowercase), whatever the repository name.
DEFAULT_CORS_ORIGINS = [
    "https://fazal2204.github.io",
    "http://localhost:3000", "http://127.0.0.1:3000",  # React dev server
    "http://localhost:5173", "http://127.0.0.1:5173",  # Vite
]


def get_cors_origins() -> List[str]:
    """Allow-list for CORSMiddleware. CORS_ALLOW_ALL=1 opens it completely (debugging only)."""
    if _env_flag("CORS_ALLOW_ALL"):
        return ["*"]
    origins = list(DEFAULT_CORS_ORIGINS)
    for origin in os.getenv("FRONTEND_ORIGIN", "").split(","):
        origin = origin.strip().rstrip("/")
        if origin and origin not in origins:
            origins.append(origin)
    return origins


# ============================================================================
# CONVERSATION SETTINGS
# ============================================================================
# Maximum number of turns kept per session, counting the system turn.
# When exceeded, the oldest user/assistant turns are dropped; the system turn
# (knowledge document) always stays, and so does every kept reply's question.
# 13 = system turn + the last 6 exchanges. 0 disables trimming.
MAX_HISTORY_TURNS = _env_number("MAX_HISTORY_TURNS", 13, int)

# Include the provider's own error text as "details" in error responses.
EXPOSE_ERROR_DETAILS = _env_flag("EXPOSE_ERROR_DETAILS", "1")

# One line per completed exchange. Set CHAT_LOG_FILE= (empty) to disable.
_chat_log = os.getenv("CHAT_LOG_FILE")
if _chat_log is None:
    CHAT_LOG_FILE: Optional[Path] = BASE_DIR / "logs" / "chat_log.txt"
else:
    CHAT_LOG_FILE = Path(_chat_log.strip()) if _chat_log.strip() else None


# ============================================================================
# KNOWLEDGE DOCUMENT AND SYSTEM PROMPT
# ============================================================================
# Everything the assistant is allowed to know. KNOWLEDGE_BASE_FILE can point
# to a text file that replaces it without touching the code.

KNOWLEDGE_BASE_FILE = os.getenv("KNOWLEDGE_BASE_FILE", "").strip()

SUPERSET_DOC = """
Internship Preparation Program (IPP)
• IPP is mandatory before accessing Superset.
• Superset is Ashoka University’s internship & placement platform.
• Only verified data is shared with recruiters.
• Resume must be one page and factually correct.
• Minimum internship duration: 30 days.
• Coursera certificates are allowed.
• Proof verification takes up to 48 hours.
"""

_SYSTEM_PROMPT_TEMPLATE = """You are an AI assistant for Ashoka University students.
Answer ONLY using this document:

{document}

Rules:
1. Only answer Superset/IPP related queries. For anything else, reply that you can only answer Superset/IPP related questions.
2. Be factual and concise.
3. If information is missing, say so."""


def load_knowledge_document() -> str:
    """Return the knowledge document: KNOWLEDGE_BASE_FILE if set, else the built-in SUPERSET_DOC."""
    if not KNOWLEDGE_BASE_FILE:
        return SUPERSET_DOC
    with open(KNOWLEDGE_BASE_FILE, "r", encoding="utf-8") as f:
        return f.read()


def build_system_prompt(document: str) -> str:
    return _SYSTEM_PROMPT_TEMPLATE.format(document=document.strip("\n"))


# ============================================================================
# STARTUP VALIDATION
# ============================================================================

def validate_config(env: Optional[Mapping[str, str]] = None) -> ProviderSettings:
    """
    Check the whole configuration before the server accepts connections.
    Returns the resolved provider settings; raises StartupConfigError otherwise.
    """
    if _CONFIG_PROBLEMS:
        raise StartupConfigError("; ".join(_CONFIG_PROBLEMS))
    if PROVIDER_TIMEOUT <= 0:
        raise StartupConfigError("PROVIDER_TIMEOUT must be greater than 0")
    if PROVIDER_RETRIES < 0 or PROVIDER_RETRY_DELAY < 0:
        raise StartupConfigError("PROVIDER_RETRIES and PROVIDER_RETRY_DELAY cannot be negative")
    # A cap of 1 or 2 could not hold system + user + assistant.
    if 0 < MAX_HISTORY_TURNS < 3:
        raise StartupConfigError("MAX_HISTORY_TURNS must be 0 (disabled) or at least 3")
    if KNOWLEDGE_BASE_FILE and not Path(KNOWLEDGE_BASE_FILE).is_file():
        raise StartupConfigError(f"KNOWLEDGE_BASE_FILE not found: {KNOWLEDGE_BASE_FILE}")
    return resolve_provider_settings(env)
