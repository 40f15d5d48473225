"""OpenAI-compatible LLM client adapter (OpenAI or OpenRouter)."""

import json
from typing import Any, Mapping

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from app.adapters.llm.base import AbstractLLMClient, ProviderFailure
from app.services.ai.config import ModelParams
from app.services.ai.errors import ai_errors


class OpenAIClient(AbstractLLMClient):
    """Client for calling chat completions and returning JSON.

    Uses the official OpenAI Python SDK with async support. The SDK's own
    retries are disabled: attempts, backoff and timeouts are driven by the
    service's retry executor.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize the async client.

        Args:
            api_key: Provider API key.
            base_url: Optional OpenAI-compatible base URL (e.g. OpenRouter).
            timeout_seconds: Transport-level upper bound for one request.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    async def generate_json(
        self,
        *,
        model: str,
        system: str,
        user: str,
        schema: dict[str, Any],
        params: ModelParams,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Generate structured JSON using chat completions in JSON mode.

        The schema is embedded in the system message as a shape hint; the
        caller re-validates the result.

        Raises:
            ProviderFailure: If the API call fails.
            DomainError: ``ai/parse-error`` if the content is empty or not a
                JSON object.
        """
        messages = [
            {
                "role": "system",
                "content": (
                    f"{system}\n\n"
                    "Output JSON only, matching this JSON schema. "
                    "No extra text or markdown formatting.\n"
                    f"{json.dumps(schema, ensure_ascii=False)}"
                ),
            },
            {"role": "user", "content": user},
        ]

        request_params: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "response_format": {"type": "json_object"},
        }
        if params.temperature is not None:
            request_params["temperature"] = params.temperature
        if params.max_tokens is not None:
            request_params["max_tokens"] = params.max_tokens
        if params.top_p is not None:
            request_params["top_p"] = params.top_p
        if params.seed is not None:
            request_params["seed"] = params.seed
        if headers:
            request_params["extra_headers"] = dict(headers)

        try:
            response = await self.client.chat.completions.create(**request_params)
        except APITimeoutError as exc:
            raise ProviderFailure("Provider request timed out", code="timeout") from exc
        except APIStatusError as exc:
            raise ProviderFailure(
                exc.message, status=exc.status_code, code=exc.code
            ) from exc
        except APIConnectionError as exc:
            # Provider unreachable; treated like a 503 so it is retried.
            raise ProviderFailure(
                "Could not reach the provider", code="service_unavailable"
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ai_errors.ParseError(
                detail="Provider returned an empty response",
                meta={"model": model},
            )

        try:
            data = json.loads(content.strip())
        except json.JSONDecodeError as exc:
            raise ai_errors.ParseError(
                detail=f"Provider returned invalid JSON: {exc.msg}",
                meta={"model": model, "position": exc.pos},
                cause=exc,
            ) from exc

        if not isinstance(data, dict):
            raise ai_errors.ParseError(
                detail="Provider returned JSON that is not an object",
                meta={"model": model, "json_type": type(data).__name__},
            )
        return data
