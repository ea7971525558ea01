"""Inference provider configuration and model construction."""

import re
from dataclasses import dataclass

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from chatguard.config.settings import Settings
from chatguard.core.errors import ConfigurationError

URL_PROTOCOL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class ChatProviderConfig:
    api_key: str
    base_url: str
    model: str


@dataclass(frozen=True)
class ProviderValidation:
    ok: bool
    reason: str | None = None


def get_chat_provider_config(settings: Settings) -> ChatProviderConfig:
    return ChatProviderConfig(
        api_key=settings.inferencia_api_key,
        base_url=settings.inferencia_base_url,
        model=settings.inferencia_chat_model,
    )


def validate_provider_config(config: ChatProviderConfig) -> ProviderValidation:
    """Check that the provider can be called at all.

    Returns:
        ProviderValidation; ``reason`` names the missing setting
    """
    if not config.api_key:
        return ProviderValidation(ok=False, reason="INFERENCIA_API_KEY is not configured.")

    if not config.base_url or not URL_PROTOCOL_PATTERN.match(config.base_url):
        return ProviderValidation(ok=False, reason="INFERENCIA_BASE_URL must be an http(s) URL.")

    if not config.model:
        return ProviderValidation(ok=False, reason="INFERENCIA_CHAT_MODEL is empty.")

    return ProviderValidation(ok=True)


def get_model(config: ChatProviderConfig) -> OpenAIChatModel:
    """Build a pydantic-ai model for an OpenAI-compatible endpoint.

    Raises:
        ConfigurationError: If the provider config is incomplete
    """
    validation = validate_provider_config(config)
    if not validation.ok:
        raise ConfigurationError("The assistant is not configured right now.", detail=validation.reason)

    provider = OpenAIProvider(base_url=config.base_url, api_key=config.api_key)
    return OpenAIChatModel(config.model, provider=provider)
