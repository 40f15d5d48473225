from __future__ import annotations

from app.api.routes.generations import router as generations_router
from app.api.routes.health import router as health_router

__all__ = ["generations_router", "health_router"]
