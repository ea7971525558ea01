"""Inference client boundary.

The model endpoint is unreliable by assumption. Every failure (transport,
timeout, provider error) is converted to ``UpstreamFailure`` here so callers
handle one exception type and never see raw provider errors.
"""

import asyncio
from typing import Protocol

from loguru import logger
from pydantic_ai import Agent
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart

from chatguard.core.errors import UpstreamFailure
from chatguard.infra.llm.provider import ChatProviderConfig, get_model
from chatguard.security.validator import ChatMessage

DEFAULT_TIMEOUT_SECONDS = 45.0
DEFAULT_MAX_OUTPUT_TOKENS = 400
DEFAULT_TEMPERATURE = 0.2


class InferenceClient(Protocol):
    async def generate(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        *,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str: ...


def _to_history(messages: list[ChatMessage]) -> list[ModelMessage]:
    history: list[ModelMessage] = []
    for message in messages:
        if message["role"] == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=message["content"])]))
        else:
            history.append(ModelResponse(parts=[TextPart(content=message["content"])]))
    return history


class PydanticAIInference:
    """Inference over an OpenAI-compatible endpoint via pydantic-ai."""

    def __init__(self, config: ChatProviderConfig, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.config = config
        self.timeout_seconds = timeout_seconds

    async def generate(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        *,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """Generate a reply to the last user message.

        Args:
            system_prompt: Immutable system instruction
            messages: Conversation, oldest first; the last entry must be the user turn
            max_output_tokens: Completion token ceiling
            temperature: Sampling temperature

        Returns:
            Generated text, stripped

        Raises:
            UpstreamFailure: On any provider, transport or timeout error
        """
        if not messages or messages[-1]["role"] != "user":
            raise UpstreamFailure("Conversation must end with a user message")

        agent = Agent(model=get_model(self.config), system_prompt=system_prompt)
        try:
            result = await asyncio.wait_for(
                agent.run(
                    messages[-1]["content"],
                    message_history=_to_history(messages[:-1]) or None,
                    model_settings={"max_tokens": max_output_tokens, "temperature": temperature},
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Inference timed out after {self.timeout_seconds}s")
            raise UpstreamFailure(f"Inference timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            logger.warning(f"Inference call failed: {type(e).__name__}")
            raise UpstreamFailure(f"{type(e).__name__}: {e}") from e

        return str(result.output).strip()
