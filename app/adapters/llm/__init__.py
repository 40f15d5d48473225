"""LLM adapter layer - abstracts over multiple LLM providers."""

from app.adapters.llm.base import AbstractLLMClient, ProviderFailure
from app.adapters.llm.factory import create_llm_client
from app.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "ProviderFailure",
    "create_llm_client",
]
