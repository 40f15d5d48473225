"""Errors of the ``system`` domain: failures not owned by any service."""

from app.core.error_registry import ErrorDefinition, define_domain

system_errors = define_domain(
    "system",
    {
        "Unexpected": ErrorDefinition(status=500, title="errors.system.unexpected"),
        "NotFound": ErrorDefinition(status=404, title="errors.system.not_found"),
        "MethodNotAllowed": ErrorDefinition(
            status=405, title="errors.system.method_not_allowed"
        ),
        "InvalidRequest": ErrorDefinition(
            status=400, title="errors.system.invalid_request"
        ),
    },
)
