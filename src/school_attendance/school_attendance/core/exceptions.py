class DomainError(Exception):
    """Base exception for business rule violations.

    Each subclass carries the HTTP status the API surface answers with.
    """

    status_code = 500


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when credentials or the bearer token are missing or invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when an actor lacks the role or scope for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a resource is absent, or deliberately reported as absent."""

    status_code = 404


class ConflictError(DomainError):
    """Raised on uniqueness conflicts or deletes blocked by referencing rows."""

    status_code = 409


class ServiceUnavailableError(DomainError):
    """Raised when no database connection could be obtained in time."""

    status_code = 503
