"""Input safety gate: batch validation, sanitizing and injection detection."""

from chatguard.security.patterns import INJECTION_PATTERNS, detect_injection
from chatguard.security.sanitizer import SecurityCheckResult, sanitize_input
from chatguard.security.validator import MessageValidationResult, validate_messages

__all__ = [
    "INJECTION_PATTERNS",
    "MessageValidationResult",
    "SecurityCheckResult",
    "detect_injection",
    "sanitize_input",
    "validate_messages",
]
