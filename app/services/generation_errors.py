"""Errors of the ``generation`` domain (flashcard generation endpoint)."""

from app.core.error_registry import ErrorDefinition, define_domain

generation_errors = define_domain(
    "generation",
    {
        "ValidationFailed": ErrorDefinition(
            status=400, title="errors.generation.validation_failed"
        ),
    },
)
