from abc import ABC, abstractmethod
from typing import Any, Mapping

from app.services.ai.config import ModelParams


class ProviderFailure(Exception):
	"""Transport or provider failure raised by an LLM client adapter.

	Carries the signals the error classifier needs (HTTP status and provider
	error code) without tying the service layer to a particular SDK.

	Attributes:
		status: HTTP status returned by the provider, if any.
		code: Provider error code (e.g. "rate_limit_exceeded"), if any.
	"""

	def __init__(
		self,
		message: str,
		*,
		status: int | None = None,
		code: str | int | None = None,
	) -> None:
		super().__init__(message)
		self.message = message
		self.status = status
		self.code = str(code) if code is not None else None


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that produce structured JSON outputs."""

	@abstractmethod
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
		"""Generate a structured JSON response from the model.

		One call is one request/response exchange with the provider; retries
		and timeouts are owned by the caller.

		Args:
			model: Provider model id.
			system: System prompt.
			user: User prompt.
			schema: JSON schema describing the expected object.
			params: Sampling parameters (unset values are not sent).
			headers: Extra request headers.

		Returns:
			dict[str, Any]: Parsed JSON object returned by the model.

		Raises:
			ProviderFailure: If the provider call fails.
			DomainError: ``ai/parse-error`` if the response is not a JSON object.
		"""
		...
