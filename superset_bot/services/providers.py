"""
COMPLETION PROVIDERS MODULE
===========================

One small adapter per hosted LLM. Each takes the session's turns and returns a
Completion (text + model id + token usage). ChatService only knows the
CompletionProvider interface; switching provider is a config change
(LLM_PROVIDER) and never touches the session or handler logic.

PROVIDERS:
  GroqProvider    - Llama models on Groq (langchain_groq.ChatGroq).
  OpenAIProvider  - OpenAI chat models (langchain_openai.ChatOpenAI).
  GeminiProvider  - Google Gemini (langchain_google_genai.ChatGoogleGenerativeAI).
                    The transcript is flattened into one prompt ("User: ..." /
                    "Assistant: ..." lines under the system text).

All three wrap a LangChain chat model, so conversion to messages, the async
call and reading usage metadata live once in LangChainProvider. LangChain's own
retries are turned off; ChatService decides about retries and timeouts.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq
from langchain_openai import ChatOpenAI

from config import ProviderSettings
from superset_bot.models import Turn

logger = logging.getLogger("SupersetBot")


@dataclass
class Completion:
    text: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)


# ==============================================================================
# PROVIDER INTERFACE
# ==============================================================================

class CompletionProvider:
    """Turns in, text out. Subclasses set `name` and implement complete()."""

    name = "base"

    def __init__(self, model: str):
        self.model = model

    async def complete(self, turns: List[Turn]) -> Completion:
        raise NotImplementedError


def _content_text(content: Any) -> str:
    """AIMessage.content is a string, or a list of strings / {"type": "text", "text": ...} blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text") or "")
    return "".join(parts)


class LangChainProvider(CompletionProvider):
    """
    Base for providers backed by a LangChain chat model.

    Pass `llm` to reuse an existing chat model (handy in tests); otherwise
    _build_llm() creates one from the API key.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.2,
        timeout: Optional[float] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        super().__init__(model)
        self.llm = llm if llm is not None else self._build_llm(api_key, model, temperature, timeout)

    def _build_llm(self, api_key: str, model: str, temperature: float, timeout: Optional[float]) -> BaseChatModel:
        raise NotImplementedError

    def to_messages(self, turns: List[Turn]) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        for turn in turns:
            if turn.role == "system":
                messages.append(SystemMessage(content=turn.content))
            elif turn.role == "assistant":
                messages.append(AIMessage(content=turn.content))
            else:
                messages.append(HumanMessage(content=turn.content))
        return messages

    async def complete(self, turns: List[Turn]) -> Completion:
        response = await self.llm.ainvoke(self.to_messages(turns))
        metadata = getattr(response, "response_metadata", None) or {}
        usage = getattr(response, "usage_metadata", None) or {}
        return Completion(
            text=_content_text(response.content),
            model=metadata.get("model_name") or metadata.get("model") or self.model,
            usage=dict(usage),
        )


# ==============================================================================
# PROVIDER ADAPTERS
# ==============================================================================

class GroqProvider(LangChainProvider):
    name = "groq"

    def _build_llm(self, api_key, model, temperature, timeout):
        return ChatGroq(
            model=model,
            api_key=api_key,
            temperature=temperature,
            timeout=timeout,
            max_retries=0,
        )


class OpenAIProvider(LangChainProvider):
    name = "openai"

    def _build_llm(self, api_key, model, temperature, timeout):
        return ChatOpenAI(
            model=model,
            api_key=api_key,
            temperature=temperature,
            timeout=timeout,
            max_retries=0,
        )


def flatten_turns(turns: List[Turn]) -> str:
    """System text first, then one "User: ..." / "Assistant: ..." line per turn."""
    lines = []
    for turn in turns:
        if turn.role == "user":
            lines.append(f"User: {turn.content}")
        elif turn.role == "assistant":
            lines.append(f"Assistant: {turn.content}")
        else:
            lines.append(turn.content)
    return "\n".join(lines)


class GeminiProvider(LangChainProvider):
    """Gemini gets the whole conversation as a single user prompt."""

    name = "gemini"

    def _build_llm(self, api_key, model, temperature, timeout):
        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            temperature=temperature,
            timeout=timeout,
            max_retries=0,
        )

    def to_messages(self, turns: List[Turn]) -> List[BaseMessage]:
        return [HumanMessage(content=flatten_turns(turns))]


PROVIDERS = {
    GeminiProvider.name: GeminiProvider,
    GroqProvider.name: GroqProvider,
    OpenAIProvider.name: OpenAIProvider,
}


def build_provider(settings: ProviderSettings, temperature: float = 0.2, timeout: Optional[float] = None) -> CompletionProvider:
    """Create the adapter named by settings.name (already validated by config.resolve_provider_settings)."""
    provider_cls = PROVIDERS[settings.name]
    logger.info("Using %s provider (model: %s)", settings.name, settings.model)
    return provider_cls(settings.api_key, settings.model, temperature=temperature, timeout=timeout)


# ==============================================================================
# ERROR CLASSIFICATION
# ==============================================================================
# Each SDK raises its own exception types. We only look at what they have in
# common: an HTTP status (status_code / code / response.status_code), the class
# name, and the message text.

RATE_LIMIT = "rate_limit"
UNAVAILABLE = "unavailable"
TIMEOUT = "timeout"
NETWORK = "network"
OTHER = "other"

TRANSIENT_ERRORS = {RATE_LIMIT, UNAVAILABLE, TIMEOUT, NETWORK}


def _status_of(exc: Exception) -> Optional[int]:
    for candidate in (
        getattr(exc, "status_code", None),
        getattr(exc, "code", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int):
            return candidate
    return None


def classify_provider_error(exc: Exception) -> str:
    """Return RATE_LIMIT, UNAVAILABLE, TIMEOUT, NETWORK or OTHER for a provider exception."""
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return TIMEOUT

    status = _status_of(exc)
    type_name = type(exc).__name__.lower()
    msg = str(exc).lower()

    # An explicit HTTP status wins over class name and message text
    # (a 403 mentioning "quota" is still an auth problem).
    if status is not None:
        if status == 429:
            return RATE_LIMIT
        if status in (502, 503, 504):
            return UNAVAILABLE
        return OTHER

    if "ratelimit" in type_name or "resourceexhausted" in type_name:
        return RATE_LIMIT
    if "rate limit" in msg or "tokens per day" in msg or "quota" in msg or "resource exhausted" in msg:
        return RATE_LIMIT
    if "serviceunavailable" in type_name:
        return UNAVAILABLE
    if "timeout" in type_name or "timed out" in msg:
        return TIMEOUT
    if "overloaded" in msg or "unavailable" in msg:
        return UNAVAILABLE
    if isinstance(exc, ConnectionError) or "connection" in type_name:
        return NETWORK
    return OTHER
