"""
Domain Exceptions

Business errors raised by the catalog services. They carry no HTTP
machinery; main.py maps each one to a status code through `status_code`.

Taxonomy:
- ValidationError: malformed input (id format, rating range, pagination)
- UnauthorizedError: an identity is required but none was resolved
- ForbiddenError: identity present but not permitted (ownership mismatch)
- NotFoundError: book, review or user absent
- ConflictError: stale concurrent write or duplicate registration

Anything else (store connectivity, unexpected bugs) is NOT a CatalogError
and surfaces as a generic internal failure.
"""

from fastapi import status


class CatalogError(Exception):
    """Base exception for all catalog service errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Catalog error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    """Input is malformed or out of range."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class UnauthorizedError(CatalogError):
    """Operation requires an authenticated caller."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(CatalogError):
    """Caller is authenticated but may not perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(CatalogError):
    """Book, review or user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(CatalogError):
    """Write was based on stale data, or a unique value is already taken."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"
