"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (superset_bot.main) calls these
services; they don't handle HTTP, only the chat flow, LLM calls, and data.

MODULES:
    session_store - SessionStore interface + InMemorySessionStore (transcripts per session id)
    providers     - CompletionProvider interface + Gemini / Groq / OpenAI adapters
    chat_service  - ChatService.handle_chat: the whole request flow and error translation
    exchange_log  - best-effort one-line-per-exchange text log
"""
