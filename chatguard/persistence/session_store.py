"""Optional session analytics and memory persistence.

Two variants behind one interface:
- ``NullSessionStore``: no database configured. Writes are dropped, reads
  return empty values. This is a normal, supported state.
- ``SqlSessionStore``: SQLAlchemy-backed store for any DATABASE_URL.

Callers treat every store call as an external boundary; see
``ChatGuardEngine.persist_turn``.
"""

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Protocol

from loguru import logger
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from chatguard.persistence.models import Base, ChatMemory, ChatSession
from chatguard.security.validator import ChatMessage

MAX_MEMORY_MESSAGES = 20

SessionStatus = Literal["ok", "error", "rate_limited"]


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    message_count: int
    cache_hits: int
    rate_limited: bool
    status: SessionStatus
    total_duration_ms: float | None = None
    trace_id: str | None = None
    engagement_score: float | None = None
    contact_email: str | None = None
    started_at: datetime | None = None
    last_activity_at: datetime | None = None


@dataclass(frozen=True)
class SessionStats:
    message_count: int = 0
    engagement_score: float = 0.0
    cache_hits: int = 0


class SessionStore(Protocol):
    configured: bool

    def write_session_summary(self, summary: SessionSummary) -> None: ...

    def get_session_memory(self, session_id: str) -> list[ChatMessage]: ...

    def append_session_memory(self, session_id: str, messages: list[ChatMessage]) -> None: ...

    def get_session_stats(self, session_id: str) -> SessionStats: ...

    def set_contact_email(self, session_id: str, email: str) -> bool: ...

    def list_sessions(self, limit: int = 50) -> list[SessionSummary]: ...

    def get_session(self, session_id: str) -> SessionSummary | None: ...


class NullSessionStore:
    configured = False

    def write_session_summary(self, summary: SessionSummary) -> None:
        return None

    def get_session_memory(self, session_id: str) -> list[ChatMessage]:
        return []

    def append_session_memory(self, session_id: str, messages: list[ChatMessage]) -> None:
        return None

    def get_session_stats(self, session_id: str) -> SessionStats:
        return SessionStats()

    def set_contact_email(self, session_id: str, email: str) -> bool:
        return False

    def list_sessions(self, limit: int = 50) -> list[SessionSummary]:
        return []

    def get_session(self, session_id: str) -> SessionSummary | None:
        return None


def _to_summary(row: ChatSession) -> SessionSummary:
    return SessionSummary(
        session_id=row.session_id,
        message_count=row.message_count,
        cache_hits=row.cache_hits,
        rate_limited=row.rate_limited,
        status=row.status,  # type: ignore[arg-type]
        total_duration_ms=row.total_duration_ms,
        trace_id=row.trace_id,
        engagement_score=row.engagement_score,
        contact_email=row.contact_email,
        started_at=row.started_at,
        last_activity_at=row.last_activity_at,
    )


class SqlSessionStore:
    configured = True

    def __init__(self, database_url: str) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self._engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        Base.metadata.create_all(bind=self._engine)
        logger.info("Session store initialized", dialect=self._engine.dialect.name)

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def write_session_summary(self, summary: SessionSummary) -> None:
        """Upsert the analytics row for a session. Never stores message content."""
        now = datetime.now(timezone.utc)
        with self._session() as db:
            row = db.get(ChatSession, summary.session_id)
            if row is None:
                row = ChatSession(session_id=summary.session_id, started_at=now)
                db.add(row)
            row.last_activity_at = now
            row.message_count = summary.message_count
            row.cache_hits = summary.cache_hits
            row.rate_limited = summary.rate_limited
            row.status = summary.status
            row.total_duration_ms = summary.total_duration_ms
            row.trace_id = summary.trace_id
            row.engagement_score = summary.engagement_score
            if summary.contact_email is not None:
                row.contact_email = summary.contact_email

    def get_session_memory(self, session_id: str) -> list[ChatMessage]:
        with self._session() as db:
            row = db.get(ChatMemory, session_id)
            if row is None or not row.messages:
                return []
            return list(row.messages)[-MAX_MEMORY_MESSAGES:]

    def append_session_memory(self, session_id: str, messages: list[ChatMessage]) -> None:
        """Append messages, keeping only the most recent ``MAX_MEMORY_MESSAGES``."""
        with self._session() as db:
            row = db.get(ChatMemory, session_id)
            existing = list(row.messages) if row is not None and row.messages else []
            merged = [*existing, *messages][-MAX_MEMORY_MESSAGES:]
            if row is None:
                db.add(ChatMemory(session_id=session_id, messages=merged))
            else:
                # Reassign so the JSON column is flagged dirty
                row.messages = merged
                row.updated_at = datetime.now(timezone.utc)

    def get_session_stats(self, session_id: str) -> SessionStats:
        with self._session() as db:
            row = db.get(ChatSession, session_id)
            if row is None:
                return SessionStats()
            return SessionStats(
                message_count=row.message_count or 0,
                engagement_score=row.engagement_score or 0.0,
                cache_hits=row.cache_hits or 0,
            )

    def set_contact_email(self, session_id: str, email: str) -> bool:
        with self._session() as db:
            row = db.get(ChatSession, session_id)
            if row is None:
                return False
            row.contact_email = email
            row.last_activity_at = datetime.now(timezone.utc)
            return True

    def list_sessions(self, limit: int = 50) -> list[SessionSummary]:
        with self._session() as db:
            rows = db.execute(
                select(ChatSession).order_by(ChatSession.last_activity_at.desc()).limit(limit)
            ).scalars().all()
            return [_to_summary(row) for row in rows]

    def get_session(self, session_id: str) -> SessionSummary | None:
        with self._session() as db:
            row = db.get(ChatSession, session_id)
            return _to_summary(row) if row is not None else None


def build_session_store(database_url: str) -> SessionStore:
    if not database_url:
        logger.info("DATABASE_URL not set; session persistence disabled")
        return NullSessionStore()
    return SqlSessionStore(database_url)
