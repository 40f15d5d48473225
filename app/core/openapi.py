"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- The ``ProblemDocument`` component schema
- A default ``application/problem+json`` error response on every operation

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.error_registry import registered_codes
from app.core.errors import ProblemDocument
from app.core.exception_handlers import PROBLEM_MEDIA_TYPE

PROBLEM_SCHEMA_REF = "#/components/schemas/ProblemDocument"


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to document problem responses.

    - Registers ``ProblemDocument`` under components.schemas, listing every
      registered error code
    - Adds a ``default`` problem+json response to each operation
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        # Components / problem document
        components = schema.setdefault("components", {})
        schemas = components.setdefault("schemas", {})
        problem_schema = ProblemDocument.model_json_schema(
            ref_template="#/components/schemas/{model}"
        )
        problem_schema["properties"]["code"]["enum"] = sorted(registered_codes())
        schemas.setdefault("ProblemDocument", problem_schema)

        # Tags metadata
        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Generations",
                "description": "AI flashcard generation from source text.",
            },
            {
                "name": "Health",
                "description": "Liveness and provider readiness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        # Every operation may answer with a problem document
        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("responses", {}).setdefault(
                        "default",
                        {
                            "description": "Problem details (RFC 7807)",
                            "content": {
                                PROBLEM_MEDIA_TYPE: {
                                    "schema": {"$ref": PROBLEM_SCHEMA_REF}
                                }
                            },
                        },
                    )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
