"""Batch validation for a conversation payload.

Runs before the per-message safety gate; any violation rejects the whole batch.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, TypedDict

from chatguard.security.sanitizer import MAX_MESSAGE_LENGTH

MAX_MESSAGES_IN_CONTEXT = 8
MAX_TOTAL_CHARS = 8000
ALLOWED_ROLES = frozenset({"user", "assistant"})


class ChatMessage(TypedDict):
    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True)
class MessageValidationResult:
    safe: bool
    reason: str | None = None
    parsed: list[ChatMessage] | None = None


def _reject(reason: str) -> MessageValidationResult:
    return MessageValidationResult(safe=False, reason=reason)


def validate_messages(messages: object) -> MessageValidationResult:
    """Validate a conversation array.

    Checks, in order: list type, non-empty, message count, per-message shape
    and role, per-message length, cumulative length.

    Args:
        messages: Decoded JSON value from the request body

    Returns:
        MessageValidationResult with ``parsed`` messages on success
    """
    if not isinstance(messages, list):
        return _reject("Invalid request format.")

    if not messages:
        return _reject("No messages provided.")

    if len(messages) > MAX_MESSAGES_IN_CONTEXT:
        return _reject(f"Too many messages. Maximum {MAX_MESSAGES_IN_CONTEXT} allowed per request.")

    total_chars = 0
    parsed: list[ChatMessage] = []

    for message in messages:
        if not isinstance(message, Mapping):
            return _reject("Invalid message format.")

        role = message.get("role")
        if not isinstance(role, str) or role not in ALLOWED_ROLES:
            return _reject("Invalid message role.")

        content = message.get("content")
        if not isinstance(content, str):
            return _reject("Invalid message content.")

        if len(content) > MAX_MESSAGE_LENGTH:
            return _reject("Individual message too long.")

        total_chars += len(content)
        if total_chars > MAX_TOTAL_CHARS:
            return _reject("Total conversation too long.")

        parsed.append({"role": role, "content": content})

    return MessageValidationResult(safe=True, parsed=parsed)
