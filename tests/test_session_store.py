import pytest

from superset_bot.models import Turn
from superset_bot.services.session_store import InMemorySessionStore


def _turn(role, content):
    return Turn(role=role, content=content)


def test_new_session_starts_with_single_system_turn(store):
    turns = store.get_or_create("s1")

    assert len(turns) == 1
    assert turns[0].role == "system"
    assert "Minimum internship duration: 30 days" in turns[0].content


def test_get_or_create_does_not_reseed_existing_session(store):
    store.get_or_create("s1")
    store.append("s1", _turn("user", "hi"))

    turns = store.get_or_create("s1")

    assert [t.role for t in turns] == ["system", "user"]


def test_append_requires_existing_session(store):
    with pytest.raises(KeyError):
        store.append("never-seen", _turn("user", "hi"))


def test_returned_turns_are_copies(store):
    turns = store.get_or_create("s1")
    turns.append(_turn("user", "sneaky"))

    assert len(store.get_or_create("s1")) == 1


def test_sessions_are_isolated(store):
    store.get_or_create("a")
    store.get_or_create("b")
    store.append("a", _turn("user", "only in a"))

    assert [t.content for t in store.get("b")][1:] == []
    assert store.get("a")[-1].content == "only in a"
    assert store.session_count() == 2


def test_get_does_not_create(store):
    assert store.get("ghost") == []
    assert store.session_count() == 0


def test_evict_keeps_system_turn_and_newest_turns(store):
    store.get_or_create("s1")
    for i in range(6):
        store.append("s1", _turn("user" if i % 2 == 0 else "assistant", f"m{i}"))

    dropped = store.evict("s1", 5)

    turns = store.get("s1")
    assert dropped == 2
    assert turns[0].role == "system"
    assert [t.content for t in turns[1:]] == ["m2", "m3", "m4", "m5"]


def test_evict_never_keeps_a_reply_without_its_question(store):
    store.get_or_create("s1")
    for i in range(6):
        store.append("s1", _turn("user" if i % 2 == 0 else "assistant", f"m{i}"))

    # Cap 4 would keep m3 (a reply) whose question m2 is dropped.
    dropped = store.evict("s1", 4)

    turns = store.get("s1")
    assert dropped == 4
    assert [t.role for t in turns] == ["system", "user", "assistant"]
    assert [t.content for t in turns[1:]] == ["m4", "m5"]


def test_evict_is_noop_under_cap_or_when_disabled():
    store = InMemorySessionStore("sys")
    store.get_or_create("s1")
    for i in range(5):
        store.append("s1", _turn("user", f"m{i}"))

    assert store.evict("s1", 0) == 0
    assert store.evict("s1", 10) == 0
    assert store.evict("unknown", 3) == 0
    assert len(store.get("s1")) == 6
