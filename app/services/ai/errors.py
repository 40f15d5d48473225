"""Errors of the ``ai`` domain (structured-generation client)."""

from app.core.error_registry import ErrorDefinition, define_domain

ai_errors = define_domain(
    "ai",
    {
        "InvalidInput": ErrorDefinition(status=400, title="errors.ai.invalid_input"),
        "InvalidConfig": ErrorDefinition(status=400, title="errors.ai.invalid_config"),
        "Unauthorized": ErrorDefinition(status=401, title="errors.ai.unauthorized"),
        "Forbidden": ErrorDefinition(status=403, title="errors.ai.forbidden"),
        "BadRequest": ErrorDefinition(status=400, title="errors.ai.bad_request"),
        "RateLimited": ErrorDefinition(status=429, title="errors.ai.rate_limited"),
        "Timeout": ErrorDefinition(status=408, title="errors.ai.timeout"),
        "ProviderError": ErrorDefinition(status=502, title="errors.ai.provider_error"),
        "ServiceUnavailable": ErrorDefinition(
            status=503, title="errors.ai.service_unavailable"
        ),
        "SchemaError": ErrorDefinition(status=422, title="errors.ai.schema_error"),
        "ValidationFailed": ErrorDefinition(
            status=422, title="errors.ai.validation_failed"
        ),
        "ParseError": ErrorDefinition(status=422, title="errors.ai.parse_error"),
        "RetryExhausted": ErrorDefinition(status=503, title="errors.ai.retry_exhausted"),
    },
)

# Kinds eligible for another attempt under the retry policy.
RETRYABLE_KINDS: frozenset[str] = frozenset(
    {"RateLimited", "Timeout", "ProviderError", "ServiceUnavailable"}
)
