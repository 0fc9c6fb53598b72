"""
SUPERSET HELP ASSISTANT PACKAGE
===============================

Backend for the Superset Help chatbot: a student asks a question in the web UI,
the backend adds it to the session transcript (which starts with the Superset /
IPP knowledge document) and asks the configured LLM for an answer.

  from superset_bot.main import app
  from superset_bot.services.chat_service import ChatService

FILE STRUCTURE:
  superset_bot/
    __init__.py   - This file; marks 'superset_bot' as a package.
    main.py       - FastAPI app, lifespan and HTTP endpoints (/, /api/health, /api/chat).
    models.py     - Pydantic models for turns, requests and responses.
    errors.py     - BadRequest / ServiceUnavailable / InternalError / StartupConfigError.
    services/     - Session store, completion providers, chat flow, exchange log.
    utils/        - Helpers: fixed-delay retry, ISO timestamps.
"""
