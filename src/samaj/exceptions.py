"""
═══════════════════════════════════════════════════════════════════════════════
Samaj — Domain error hierarchy (Custom Exception Hierarchy)
═══════════════════════════════════════════════════════════════════════════════

Base class ``SamajError``. HTTP status mapping is done once, in
``samaj.main:samaj_error_handler``.

Denied access is not an error: the access gate returns a ``Decision``.
``AuthenticationError`` / ``AuthorizationError`` are raised only by HTTP
guards that cannot render an upsell (admin endpoints, missing token).
"""


class SamajError(Exception):
    """
    Base exception for every domain error of the service.

    Attributes
    ──────────
        message (str):  Human readable description, sent to the client.
        code (str):     String code, mapped to an HTTP status.
        details (dict): Extra data (entity, id, field, ...).
    """

    def __init__(
        self,
        message: str,
        code: str = "SAMAJ_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(SamajError):
    """No (valid) session: 401 Unauthorized."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="SAMAJ_AUTH_ERROR", details={"next": "login"})


class AuthorizationError(SamajError):
    """Authenticated, but not allowed: 403 Forbidden."""

    def __init__(self, message: str = "Insufficient permissions", next_action: str = "home"):
        super().__init__(message, code="SAMAJ_AUTHZ_ERROR", details={"next": next_action})


class NotFoundError(SamajError):
    """Entity not found: 404 Not Found."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            code="SAMAJ_NOT_FOUND",
            details={"entity": entity, "id": entity_id},
        )


class ConflictError(SamajError):
    """Conflict with the current state: 409 Conflict."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="SAMAJ_CONFLICT", details=details)


class ValidationError(SamajError):
    """Bad or missing input: 422 Unprocessable Entity. State is unchanged."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="SAMAJ_VALIDATION_ERROR", details=details)


class StoreError(SamajError):
    """Backing store unreachable or write rejected: 503. Retry is up to the caller."""

    def __init__(self, message: str = "Data store unavailable", details: dict | None = None):
        super().__init__(message, code="SAMAJ_STORE_ERROR", details=details)


class UnknownFeatureError(SamajError):
    """Access gate called with a feature name it does not know (programmer error)."""

    def __init__(self, feature: str):
        super().__init__(
            message=f"Unknown feature: {feature}",
            code="SAMAJ_UNKNOWN_FEATURE",
            details={"feature": feature},
        )


__all__ = [
    "SamajError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "StoreError",
    "UnknownFeatureError",
]
