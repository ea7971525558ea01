"""Shared test doubles and builders.

A controllable clock, a scripted inference client and engine builders. The
fixtures in ``conftest.py`` wrap these; tests that need custom settings call
the builders directly.
"""

from chatguard.config.settings import Settings
from chatguard.engine import ChatGuardEngine
from chatguard.persistence.session_store import NullSessionStore, SessionStore

# 2023-11-14 22:13:20 UTC
START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeInference:
    """Inference client that returns scripted replies and records calls."""

    def __init__(self, reply: str = "Luis works within a large payments team.", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def generate(self, system_prompt, messages, *, max_output_tokens=400, temperature=0.2) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": list(messages),
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


def make_settings(**overrides) -> Settings:
    values = {
        "inferencia_api_key": "test-key",
        "inferencia_base_url": "http://inference.test/v1",
        "chat_max_rpm_per_ip": 3,
        "chat_daily_budget": 150,
        "chat_max_messages": 10,
        "rate_limits_disabled": False,
        "chat_eval_token": "",
        "admin_secret": "",
        "database_url": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_engine(
    settings: Settings | None = None,
    *,
    clock: FakeClock | None = None,
    inference: FakeInference | None = None,
    session_store: SessionStore | None = None,
) -> ChatGuardEngine:
    return ChatGuardEngine.from_settings(
        settings or make_settings(),
        clock=clock or FakeClock(),
        inference=inference or FakeInference(),
        session_store=session_store or NullSessionStore(),
    )


def user(content: str) -> dict:
    return {"role": "user", "content": content}
