"""
SESSION STORE MODULE
====================

Holds the transcript of every conversation, keyed by the session id the web UI
generates (e.g. "session_1718000000000"). The backend never creates, validates
or deletes ids: a session exists once its first message arrives and lives until
the process restarts.

Every new session starts with exactly one system turn (instructions + knowledge
document). ChatService talks to the SessionStore interface only, so the
in-memory store can be swapped for a shared cache without touching the handler.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from superset_bot.models import Turn


class SessionStore(ABC):
    """Interface used by ChatService."""

    @abstractmethod
    def get_or_create(self, session_id: str) -> List[Turn]:
        """Return the session's turns, creating the session with its system turn if unseen."""

    @abstractmethod
    def append(self, session_id: str, turn: Turn) -> None:
        """Append a turn. The session must already exist (see get_or_create)."""

    @abstractmethod
    def evict(self, session_id: str, max_turns: int) -> int:
        """Trim the session to max_turns, keeping the system turn. Returns how many turns were dropped."""

    @abstractmethod
    def get(self, session_id: str) -> List[Turn]:
        """Return the session's turns without creating it ([] if unknown)."""

    @abstractmethod
    def session_count(self) -> int:
        ...


class InMemorySessionStore(SessionStore):
    """
    Process-local dict of session id -> list of turns.
    Callers always get copies, so nothing outside the store can reorder or drop turns.
    """

    def __init__(self, system_prompt: str):
        self.system_prompt = system_prompt
        self.sessions: Dict[str, List[Turn]] = {}

    def get_or_create(self, session_id: str) -> List[Turn]:
        turns = self.sessions.get(session_id)
        if turns is None:
            # First message for this id: the system turn is always turn 0.
            turns = [Turn(role="system", content=self.system_prompt)]
            self.sessions[session_id] = turns
        return list(turns)

    def append(self, session_id: str, turn: Turn) -> None:
        if session_id not in self.sessions:
            raise KeyError(f"Unknown session {session_id!r}; call get_or_create first")
        # Append only, never reorder.
        self.sessions[session_id].append(turn)

    def evict(self, session_id: str, max_turns: int) -> int:
        turns = self.sessions.get(session_id)
        # Nothing to do: unknown session, trimming disabled, or still under the cap.
        if not turns or max_turns <= 0 or len(turns) <= max_turns:
            return 0
        # turns[0] is the system turn; keep it and the newest max_turns - 1 others.
        start = 1 + len(turns) - max_turns
        # A reply whose question was dropped goes too.
        while start < len(turns) and turns[start].role == "assistant":
            start += 1
        self.sessions[session_id] = [turns[0]] + turns[start:]
        return start - 1

    def get(self, session_id: str) -> List[Turn]:
        return list(self.sessions.get(session_id, []))

    def session_count(self) -> int:
        return len(self.sessions)
