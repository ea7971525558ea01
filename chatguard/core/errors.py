"""Error taxonomy for the chat gate.

Chat turns report expected conditions (bad input, blocked prompts, exhausted
limits) as typed results. The other entry points raise these exceptions: the
inference client raises ``UpstreamFailure``, provider validation raises
``ConfigurationError``, and standalone retrieval and war-room error
explanations raise the validation, safety and admission kinds. The API turns
any ``ChatGuardError`` into a JSON response using ``public_message`` only.
Raw causes stay in the logs.
"""

from typing import Literal

ErrorKind = Literal["validation", "safety", "admission", "upstream", "configuration"]

GENERIC_RETRY_MESSAGE = "The assistant is temporarily unavailable. Please try again in a moment."
GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again later."


class ChatGuardError(Exception):
    """Base class for errors that carry a user-safe message."""

    kind: ErrorKind = "validation"
    status_code: int = 400

    def __init__(self, public_message: str, *, detail: str | None = None) -> None:
        super().__init__(detail or public_message)
        self.public_message = public_message
        self.detail = detail


class InputValidationError(ChatGuardError):
    """Malformed or oversized input. The message names the remedy."""

    kind: ErrorKind = "validation"
    status_code = 400


class SafetyRejection(ChatGuardError):
    """A detector fired. The message never says which one."""

    kind: ErrorKind = "safety"
    status_code = 400


class AdmissionRejection(ChatGuardError):
    """Rate limit or daily budget exceeded."""

    kind: ErrorKind = "admission"
    status_code = 429

    def __init__(self, public_message: str, *, remaining: int = 0, reset_at: float | None = None) -> None:
        super().__init__(public_message)
        self.remaining = remaining
        self.reset_at = reset_at


class UpstreamFailure(ChatGuardError):
    """Inference or retrieval failed or timed out."""

    kind: ErrorKind = "upstream"
    status_code = 502

    def __init__(self, detail: str) -> None:
        super().__init__(GENERIC_RETRY_MESSAGE, detail=detail)


class ConfigurationError(ChatGuardError):
    """A required external credential or endpoint is missing."""

    kind: ErrorKind = "configuration"
    status_code = 503
