"""Input safety gate for the chat endpoint.

Defenses (OWASP Top 10 for LLM):
- LLM01 Prompt Injection: pattern-based detection
- LLM07 System Prompt Leakage: extraction-attempt detection
- LLM08 Vector/Embedding Weaknesses: zero-width/control character stripping
- LLM10 Unbounded Consumption: length limits (see validator for batch caps)

Gates run in order and the first failure wins. Invisible characters are
removed before pattern matching, so an injection split by zero-width
characters still matches. Every detector hit produces the same refusal text.
"""

import re
from dataclasses import dataclass

from loguru import logger

from chatguard.infra.llm.prompts import PORTFOLIO_ONLY_REFUSAL
from chatguard.security.patterns import detect_injection

MAX_MESSAGE_LENGTH = 1500

INVISIBLE_CHARS = re.compile(r"[\u200b-\u200f\u2028-\u202f\ufeff\u00ad]")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


@dataclass(frozen=True)
class SecurityCheckResult:
    safe: bool
    reason: str | None = None
    sanitized: str | None = None

    def __post_init__(self) -> None:
        if not self.safe and (not self.reason or self.sanitized is not None):
            raise ValueError("An unsafe verdict needs a reason and no sanitized text")


def _strip(content: str, replacement: str = "") -> str:
    return CONTROL_CHARS.sub("", INVISIBLE_CHARS.sub(replacement, content)).strip()


def sanitize_input(content: object) -> SecurityCheckResult:
    """Check a single user message.

    Args:
        content: Raw message content (anything; non-strings are rejected)

    Returns:
        SecurityCheckResult; on success ``sanitized`` holds the stripped text
    """
    if not isinstance(content, str) or not content:
        return SecurityCheckResult(safe=False, reason="Invalid input.")

    if len(content) > MAX_MESSAGE_LENGTH:
        return SecurityCheckResult(
            safe=False,
            reason=f"Message too long. Please keep it under {MAX_MESSAGE_LENGTH} characters.",
        )

    cleaned = _strip(content)
    if not cleaned:
        return SecurityCheckResult(safe=False, reason="Empty message.")

    # Invisible characters used as word separators become real spaces here
    spaced = _strip(content, replacement=" ")
    category = detect_injection(cleaned) or detect_injection(spaced)
    if category is not None:
        logger.warning("Input rejected by safety gate", category=category, length=len(content))
        return SecurityCheckResult(safe=False, reason=PORTFOLIO_ONLY_REFUSAL)

    return SecurityCheckResult(safe=True, sanitized=cleaned)


def blocked_category(content: str) -> str | None:
    """Detector category for already-rejected content (metrics only)."""
    return detect_injection(_strip(content)) or detect_injection(_strip(content, replacement=" "))
