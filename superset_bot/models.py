"""
DATA MODELS MODULE
==================

Pydantic models used for API requests, responses, and the in-memory transcript.
FastAPI uses these to parse incoming JSON and to serialize responses; the
session store and chat service use Turn for every message of a conversation.

MODELS:
  Turn            - One message in a conversation (role + content).
  ChatRequest     - Body of POST /api/chat (message + sessionId).
  ChatResponse    - Body returned by POST /api/chat ({reply}).
  ErrorResponse   - Body returned for any failure ({error, details?}).
  HealthResponse  - Body of GET /api/health.
  ChatHistory     - Body of GET /api/chat/history/{session_id}.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ==============================================================================
# TRANSCRIPT
# ==============================================================================

Role = Literal["system", "user", "assistant"]


class Turn(BaseModel):
    """
    A single message in a session. The first turn of every session is the
    system turn (instructions + knowledge document); order defines chronology.
    """
    role: Role
    content: str


# ==============================================================================
# REQUEST / RESPONSE MODELS
# ==============================================================================

class ChatRequest(BaseModel):
    """
    Request body for POST /api/chat, as sent by the web UI:
    {"message": "...", "sessionId": "session_1718000000000"}

    Both fields are optional here on purpose: the chat service decides what
    counts as missing and answers 400 with the usual {error} body, instead of
    FastAPI's 422 validation payload.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatResponse(BaseModel):
    reply: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    provider: Optional[str] = None
    model: Optional[str] = None
    sessions: int = 0
    time: str


class ChatHistory(BaseModel):
    """User and assistant turns of one session (the system turn is not exposed)."""
    session_id: str = Field(serialization_alias="sessionId")
    messages: List[Turn]
