"""
CHAT SERVICE MODULE
===================

The one operation the API exposes: handle_chat(message, session_id) -> reply.

FLOW (per request):
  1. Reject empty message / session id (BadRequest, nothing changed).
  2. Get or create the session (new sessions start with the system turn).
  3. Append the user turn and trim to MAX_HISTORY_TURNS.
  4. Send the whole transcript to the completion provider (timeout, optional retry).
  5. Empty reply -> FALLBACK_REPLY.
  6. Append the assistant turn, trim again, write the exchange log line.
  7. Return the reply.

ERRORS:
  Every provider failure is caught here and re-raised as ServiceUnavailable
  (rate limit 429, overload 503) or InternalError (500), with a user-safe
  message and the provider's own text as `details`. If the provider fails, the
  user turn stays in the transcript.

CONCURRENCY:
  Requests for the same session are serialised with one asyncio.Lock per
  session id so turns never interleave. Different sessions run concurrently;
  the provider call is the only place a request waits.
"""

import asyncio
import logging
from typing import Dict, Optional

from superset_bot.errors import BadRequest, InternalError, ServiceUnavailable
from superset_bot.models import Turn
from superset_bot.services.exchange_log import ExchangeLog
from superset_bot.services.providers import (
    RATE_LIMIT,
    TRANSIENT_ERRORS,
    UNAVAILABLE,
    Completion,
    CompletionProvider,
    classify_provider_error,
)
from superset_bot.services.session_store import SessionStore
from superset_bot.utils.retry import with_retry

logger = logging.getLogger("SupersetBot")

# User-facing messages. Provider details go in `details`, never in these.
MISSING_FIELDS_MESSAGE = "message and sessionId are required"
RATE_LIMIT_MESSAGE = (
    "The assistant is receiving too many requests right now. "
    "Please wait a moment and try again."
)
UNAVAILABLE_MESSAGE = "The assistant is temporarily unavailable. Please try again shortly."
FAILURE_MESSAGE = "Failed to generate response"
DEFAULT_FALLBACK_REPLY = "Sorry, I could not generate a response."


class ChatService:
    """
    Ties the session store, the completion provider and the exchange log together.
    All collaborators are injected, so tests can pass a fake provider and a
    fresh InMemorySessionStore.
    """

    def __init__(
        self,
        store: SessionStore,
        provider: CompletionProvider,
        exchange_log: Optional[ExchangeLog] = None,
        max_turns: int = 13,
        timeout: Optional[float] = 20.0,
        max_retries: int = 0,
        retry_delay: float = 1.0,
        fallback_reply: str = DEFAULT_FALLBACK_REPLY,
    ):
        self.store = store
        self.provider = provider
        self.exchange_log = exchange_log or ExchangeLog(None)
        self.max_turns = max_turns
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.fallback_reply = fallback_reply
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def _complete(self, turns) -> Completion:
        if self.timeout:
            return await asyncio.wait_for(self.provider.complete(turns), timeout=self.timeout)
        return await self.provider.complete(turns)

    async def handle_chat(self, message: Optional[str], session_id: Optional[str]) -> str:
        # Both fields are required; reject before touching the store or the provider.
        if not message or not message.strip() or not session_id or not session_id.strip():
            raise BadRequest(MISSING_FIELDS_MESSAGE)

        # One request per session at a time, so user/assistant turns stay paired.
        async with self._lock_for(session_id):
            # New sessions get their system turn here.
            self.store.get_or_create(session_id)
            self.store.append(session_id, Turn(role="user", content=message))
            self.store.evict(session_id, self.max_turns)
            # Snapshot of the transcript the provider will see.
            turns = self.store.get_or_create(session_id)

            # Provider call: the only slow step. Transient errors may be retried;
            # whatever still fails is translated to 429/503/500 here.
            try:
                completion = await with_retry(
                    lambda: self._complete(turns),
                    max_retries=self.max_retries,
                    delay=self.retry_delay,
                    should_retry=lambda e: classify_provider_error(e) in TRANSIENT_ERRORS,
                )
            except Exception as e:
                raise self._translate_error(e, session_id) from e

            # Never hand an empty reply to the UI.
            reply = (completion.text or "").strip() or self.fallback_reply
            logger.info(
                "Reply for session %s (model: %s, usage: %s)",
                session_id,
                completion.model,
                completion.usage or "n/a",
            )

            self.store.append(session_id, Turn(role="assistant", content=reply))
            self.store.evict(session_id, self.max_turns)

        # Audit line; file I/O runs in a worker thread and never fails the request.
        await asyncio.to_thread(self.exchange_log.record, session_id, message, reply)
        return reply

    def _translate_error(self, exc: Exception, session_id: str):
        kind = classify_provider_error(exc)
        details = str(exc) or type(exc).__name__
        if kind == RATE_LIMIT:
            logger.warning("Rate limit hit for session %s: %s", session_id, details)
            return ServiceUnavailable(RATE_LIMIT_MESSAGE, details=details, status_code=429)
        if kind == UNAVAILABLE:
            logger.warning("Provider unavailable for session %s: %s", session_id, details)
            return ServiceUnavailable(UNAVAILABLE_MESSAGE, details=details, status_code=503)
        logger.error("%s error for session %s: %s", self.provider.name, session_id, details, exc_info=exc)
        return InternalError(FAILURE_MESSAGE, details=details)
