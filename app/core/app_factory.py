"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import generations_router, health_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import problem_response_middleware
from app.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Flashcards Generation API",
        description=(
            "Generates study flashcard proposals from a source text with an LLM. "
            "Provider calls run under a per-attempt timeout with retries and "
            "exponential backoff; model output is validated against a schema. "
            "Every failure is returned as an application/problem+json document "
            "with a stable machine-readable code."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    # Middleware
    app.middleware("http")(problem_response_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(generations_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (problem documents, tags)
    apply_openapi_customizations(app)

    return app
