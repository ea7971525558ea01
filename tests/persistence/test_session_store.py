"""Tests for session persistence (SQLite-backed and null variants)."""

import pytest

from chatguard.persistence.session_store import (
    MAX_MEMORY_MESSAGES,
    NullSessionStore,
    SessionSummary,
    SqlSessionStore,
    build_session_store,
)


@pytest.fixture
def store(tmp_path) -> SqlSessionStore:
    return SqlSessionStore(f"sqlite:///{tmp_path / 'sessions.db'}")


def _summary(session_id: str, **overrides) -> SessionSummary:
    values = {"session_id": session_id, "message_count": 1, "cache_hits": 0, "rate_limited": False, "status": "ok"}
    values.update(overrides)
    return SessionSummary(**values)


def test_build_session_store_without_url_is_null() -> None:
    store = build_session_store("")

    assert isinstance(store, NullSessionStore)
    assert not store.configured


def test_null_store_reads_are_empty() -> None:
    store = NullSessionStore()
    store.write_session_summary(_summary("s1"))
    store.append_session_memory("s1", [{"role": "user", "content": "hi"}])

    assert store.get_session_memory("s1") == []
    assert store.get_session_stats("s1").message_count == 0
    assert store.set_contact_email("s1", "a@b.co") is False
    assert store.list_sessions() == []
    assert store.get_session("s1") is None


def test_summary_upsert_and_stats(store: SqlSessionStore) -> None:
    store.write_session_summary(_summary("s1", message_count=1, trace_id="t1"))
    store.write_session_summary(_summary("s1", message_count=2, cache_hits=1, trace_id="t2"))

    stats = store.get_session_stats("s1")
    session = store.get_session("s1")

    assert stats.message_count == 2
    assert stats.cache_hits == 1
    assert session is not None
    assert session.trace_id == "t2"
    assert session.started_at is not None


def test_memory_is_capped_to_most_recent(store: SqlSessionStore) -> None:
    for i in range(15):
        store.append_session_memory(
            "s1",
            [{"role": "user", "content": f"q{i}"}, {"role": "assistant", "content": f"a{i}"}],
        )

    memory = store.get_session_memory("s1")

    assert len(memory) == MAX_MEMORY_MESSAGES
    assert memory[-1] == {"role": "assistant", "content": "a14"}
    assert memory[0] == {"role": "user", "content": "q5"}


def test_contact_email_requires_existing_session(store: SqlSessionStore) -> None:
    assert store.set_contact_email("missing", "a@b.co") is False

    store.write_session_summary(_summary("s1"))
    assert store.set_contact_email("s1", "a@b.co") is True
    assert store.get_session("s1").contact_email == "a@b.co"


def test_summary_without_email_keeps_captured_email(store: SqlSessionStore) -> None:
    store.write_session_summary(_summary("s1"))
    store.set_contact_email("s1", "a@b.co")
    store.write_session_summary(_summary("s1", message_count=3))

    assert store.get_session("s1").contact_email == "a@b.co"


def test_list_sessions_newest_first_with_limit(store: SqlSessionStore) -> None:
    store.write_session_summary(_summary("old"))
    store.write_session_summary(_summary("new"))

    sessions = store.list_sessions(limit=1)

    assert [session.session_id for session in sessions] == ["new"]
    assert len(store.list_sessions()) == 2
