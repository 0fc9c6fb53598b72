import asyncio
from typing import List

import pytest
from fastapi.testclient import TestClient

import config
from superset_bot.main import create_app
from superset_bot.models import Turn
from superset_bot.services.chat_service import ChatService
from superset_bot.services.exchange_log import ExchangeLog
from superset_bot.services.providers import Completion, CompletionProvider
from superset_bot.services.session_store import InMemorySessionStore


SYSTEM_PROMPT = config.build_system_prompt(config.SUPERSET_DOC)


class RateLimitError(Exception):
    status_code = 429


class OverloadedError(Exception):
    status_code = 503


class ScriptedProvider(CompletionProvider):
    """Returns (or raises) the scripted items in order, then echoes the last user message."""

    name = "fake"

    def __init__(self, replies=None, model="fake-model", delay=0.0):
        super().__init__(model)
        self.replies = list(replies or [])
        self.delay = delay
        self.calls: List[List[Turn]] = []

    async def complete(self, turns):
        self.calls.append(list(turns))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.replies:
            item = self.replies.pop(0)
        else:
            item = f"re: {turns[-1].content}"
        if isinstance(item, Exception):
            raise item
        return Completion(text=item, model=self.model, usage={"total_tokens": 3})


class DocumentGroundedProvider(CompletionProvider):
    """Answers only what the system turn's document says, like the real prompt asks the model to."""

    name = "grounded"

    def __init__(self):
        super().__init__("grounded-model")

    async def complete(self, turns):
        system, question = turns[0].content, turns[-1].content.lower()
        if "internship duration" in question and "Minimum internship duration: 30 days" in system:
            return Completion(text="The minimum internship duration is 30 days.", model=self.model)
        return Completion(
            text="I can only answer Superset/IPP related questions.", model=self.model
        )


@pytest.fixture
def store():
    return InMemorySessionStore(SYSTEM_PROMPT)


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def service(store, provider):
    return ChatService(store, provider, exchange_log=ExchangeLog(None), max_turns=0, retry_delay=0)


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client
