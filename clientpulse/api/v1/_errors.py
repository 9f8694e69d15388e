"""Translation of engine exceptions into HTTP status codes and bodies."""

from __future__ import annotations

from clientpulse.core.exceptions import (
    NotFoundError,
    PersistenceUnavailable,
    PreconditionFailure,
    ValidationError,
)


def map_domain_error(exc: Exception) -> tuple[int, dict]:
    if isinstance(exc, ValidationError):
        return 422, {"status": "error", "errors": exc.errors}
    if isinstance(exc, NotFoundError):
        return 404, {"status": "error", "error_code": "not_found", "detail": str(exc)}
    if isinstance(exc, PreconditionFailure):
        return 409, {"status": "error", **exc.to_payload()}
    if isinstance(exc, PersistenceUnavailable):
        return 503, {
            "status": "error",
            "error_code": "persistence_unavailable",
            "detail": "The store is temporarily unavailable; please retry.",
        }
    return 500, {"status": "error", "error_code": "internal_error", "detail": "Internal server error."}


def request_errors_to_fields(errors: list[dict]) -> dict[str, str]:
    """Flatten FastAPI request validation errors into a field -> message map."""
    fields: dict[str, str] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        fields.setdefault(field, str(error.get("msg", "Invalid value.")))
    return fields
