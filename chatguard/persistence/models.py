from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class ChatSession(Base):
    """Chat session analytics (no message content).

    Stores:
    - Counters: message_count, cache_hits
    - Outcome: rate_limited, status, total_duration_ms, trace_id
    - engagement_score and an optional contact email captured by the UI
    """

    __tablename__ = "chat_sessions"

    session_id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=lambda: datetime.now(timezone.utc), index=True
    )
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cache_hits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rate_limited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ok")  # ok | error | rate_limited
    total_duration_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    trace_id: Mapped[str | None] = mapped_column(String, nullable=True)
    engagement_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String, nullable=True)


class ChatMemory(Base):
    """Capped conversation memory (role + content) for one session."""

    __tablename__ = "chat_memory"

    session_id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    messages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
