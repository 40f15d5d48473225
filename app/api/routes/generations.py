from functools import lru_cache

from fastapi import APIRouter, Depends, Request

from app.core.request_validation import validate_body
from app.schemas.generation import GenerationRequest, GenerationResponse
from app.services.ai.presets import create_ai_service
from app.services.generation_errors import generation_errors
from app.services.generation_service import GenerationService

router = APIRouter(tags=["Generations"])


@lru_cache(maxsize=1)
def get_generation_service() -> GenerationService:
    """Build the generation service once, on first use.

    Raises:
        DomainError: ``ai/unauthorized`` if no provider API key is configured.
    """
    return GenerationService(ai=create_ai_service())


@router.post(
    "/generations",
    response_model=GenerationResponse,
    status_code=201,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": GenerationRequest.model_json_schema(),
                }
            },
        }
    },
)
async def create_generation(
    request: Request,
    service: GenerationService = Depends(get_generation_service),
) -> GenerationResponse:
    """Generate flashcard proposals from a source text.

    The body is validated before any call to the model. Proposals are
    returned to the client and not stored.

    Args:
        request: Incoming request carrying ``{source_text, model}``.
        service: Generation service (overridable in tests).

    Returns:
        GenerationResponse: Proposed flashcards and generation metadata.

    Raises:
        DomainError: ``generation/validation-failed`` for an invalid body,
            or any ``ai`` domain error from the generation call.
    """
    body = await validate_body(
        request, GenerationRequest, generation_errors.ValidationFailed
    )
    return await service.generate(body)
