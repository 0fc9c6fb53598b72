"""
SUPERSET HELP ASSISTANT API
===========================

This module defines the FastAPI application and all HTTP endpoints used by the
Superset Help web UI (GitHub Pages). Students ask questions about Superset and
the Internship Preparation Program; answers come from the configured LLM,
grounded in the knowledge document from config.py.

ENDPOINTS:
  GET  /                          - Plain-text liveness string.
  GET  /api/health                - {"status": "ok", provider, model, sessions, time}.
  POST /api/chat                  - {"message", "sessionId"} -> {"reply"}.
  GET  /api/chat/history/{id}     - User/assistant messages of a session.

ERRORS:
  Every failure is returned as {"error": "...", "details": "..."} with status
  400 (missing fields), 429/503 (provider rate limit / overload) or 500.

SESSION:
  The UI generates the sessionId once per page load and sends it with every
  message. Sessions live in memory only and are gone after a restart.

STARTUP:
  The lifespan function validates the configuration (provider API key etc.),
  then builds the provider, session store and chat service. A missing key
  stops the server before it accepts any connection.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

import config
from superset_bot.errors import ChatError, ServiceUnavailable, StartupConfigError
from superset_bot.models import ChatHistory, ChatRequest, ChatResponse, ErrorResponse, HealthResponse
from superset_bot.services.chat_service import MISSING_FIELDS_MESSAGE, ChatService
from superset_bot.services.exchange_log import ExchangeLog
from superset_bot.services.providers import build_provider
from superset_bot.services.session_store import InMemorySessionStore
from superset_bot.utils.time_info import utc_timestamp


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("SupersetBot")


def build_chat_service() -> ChatService:
    """Validate config and wire provider + store + exchange log into a ChatService."""
    settings = config.validate_config()
    provider = build_provider(settings, temperature=config.MODEL_TEMPERATURE, timeout=config.PROVIDER_TIMEOUT)
    system_prompt = config.build_system_prompt(config.load_knowledge_document())
    return ChatService(
        store=InMemorySessionStore(system_prompt),
        provider=provider,
        exchange_log=ExchangeLog(config.CHAT_LOG_FILE),
        max_turns=config.MAX_HISTORY_TURNS,
        timeout=config.PROVIDER_TIMEOUT,
        max_retries=config.PROVIDER_RETRIES,
        retry_delay=config.PROVIDER_RETRY_DELAY,
    )


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the chat service unless one was injected (tests do that).
    Any startup error is logged and re-raised, so uvicorn exits instead of serving.
    """
    logger.info("=" * 60)
    logger.info("Superset Help Assistant - Starting Up...")
    logger.info("=" * 60)

    if app.state.chat_service is None:
        try:
            app.state.chat_service = build_chat_service()
        except StartupConfigError as e:
            logger.error("Configuration error: %s", e)
            raise
        except Exception as e:
            logger.error(f"Fatal error during startup: {e}", exc_info=True)
            raise

    service: ChatService = app.state.chat_service
    logger.info("Provider: %s (model: %s)", service.provider.name, service.provider.model)
    logger.info("History cap: %s turns | exchange log: %s",
                service.max_turns or "off",
                service.exchange_log.path or "off")
    logger.info("Superset Help Assistant is online and ready!")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down Superset Help Assistant (%s sessions in memory are dropped).",
                service.store.session_count())


# -------------------------------------------------------------------------
# ERROR RESPONSES
# -------------------------------------------------------------------------

def _error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details if config.EXPOSE_ERROR_DETAILS else None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed or non-object JSON bodies get the same 400 as missing fields.
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error_response(400, MISSING_FIELDS_MESSAGE)


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------

def create_app(chat_service: Optional[ChatService] = None) -> FastAPI:
    app = FastAPI(
        title="Superset Help Assistant API",
        description="Answers Superset / IPP questions for Ashoka University students",
        lifespan=lifespan,
    )
    app.state.chat_service = chat_service

    # Only the UI origins need access; the UI sends JSON with GET/POST only.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(ChatError, chat_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # =========================================================================
    # API ENDPOINTS
    # =========================================================================

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Superset Chatbot Backend is running"

    @app.get("/api/health", response_model=HealthResponse)
    async def health(request: Request):
        """Always "ok" while the process is serving; provider and session state don't matter."""
        service: Optional[ChatService] = request.app.state.chat_service
        return HealthResponse(
            status="ok",
            provider=service.provider.name if service else None,
            model=service.provider.model if service else None,
            sessions=service.store.session_count() if service else 0,
            time=utc_timestamp(),
        )

    @app.post(
        "/api/chat",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse},
                   500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    )
    async def chat(body: ChatRequest, request: Request):
        """
        Send one student message and get the assistant's reply.

        REQUEST BODY:
        {
            "message": "What is the minimum internship duration?",
            "sessionId": "session_1718000000000"
        }

        RESPONSE:
        {
            "reply": "The minimum internship duration is 30 days."
        }
        """
        service: Optional[ChatService] = request.app.state.chat_service
        if service is None:
            raise ServiceUnavailable("Chat service not initialized")
        reply = await service.handle_chat(body.message, body.session_id)
        return ChatResponse(reply=reply)

    @app.get("/api/chat/history/{session_id}", response_model=ChatHistory, response_model_by_alias=True)
    async def chat_history(session_id: str, request: Request):
        """Messages of a session in order. Unknown sessions return an empty list (nothing is created)."""
        service: Optional[ChatService] = request.app.state.chat_service
        if service is None:
            raise ServiceUnavailable("Chat service not initialized")
        turns = [t for t in service.store.get(session_id) if t.role != "system"]
        return ChatHistory(session_id=session_id, messages=turns)

    return app


app = create_app()
