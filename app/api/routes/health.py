from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.routes.generations import get_generation_service
from app.services.generation_service import GenerationService

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ai")
async def ai_health_check(
    service: GenerationService = Depends(get_generation_service),
) -> dict:
    """Readiness of the model provider.

    Sends one tiny structured request (no retries, short timeout). Always
    answers 200; ``status`` is "degraded" when the provider did not respond
    correctly.

    Returns:
        dict: ``{"status": "ok"}`` or ``{"status": "degraded"}``.
    """

    healthy = await service.ai.is_healthy()
    return {"status": "ok" if healthy else "degraded"}
