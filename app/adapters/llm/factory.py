"""Factory pattern for creating LLM client instances."""

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.openai_client import OpenAIClient
from app.core.config import settings
from app.services.ai.errors import ai_errors

# Providers reachable through the OpenAI-compatible chat completions API
OPENAI_COMPATIBLE_PROVIDERS = {"openrouter", "openai"}


def create_llm_client(
    *,
    api_key: str,
    base_url: str | None = None,
    provider: str | None = None,
) -> AbstractLLMClient:
    """Instantiate the LLM client for the configured provider.

    Args:
        api_key: Provider API key (already validated by the caller).
        base_url: OpenAI-compatible endpoint.
        provider: Provider name; defaults to ``settings.ai.provider``.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        DomainError: ``ai/invalid-config`` if the provider is unknown.
    """
    name = (provider or settings.ai.provider).lower()

    if name in OPENAI_COMPATIBLE_PROVIDERS:
        return OpenAIClient(api_key=api_key, base_url=base_url)

    raise ai_errors.InvalidConfig(
        detail=(
            f"Unknown LLM provider: '{name}'. Supported providers: "
            f"{', '.join(sorted(OPENAI_COMPATIBLE_PROVIDERS))}"
        ),
        meta={"field": "provider"},
    )
