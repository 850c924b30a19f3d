"""Catalog error taxonomy.

Every rule violation raised by the services derives from ``CatalogError``.
The HTTP layer turns each subclass into a JSON envelope using ``status_code``
and ``to_response()``.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(CatalogError):
    """Malformed or missing input, including ids that are not ObjectIds."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]

    def to_response(self) -> Dict[str, Any]:
        return {"errors": self.errors}


class HierarchyError(CatalogError):
    """Category level/parent arithmetic violated."""


class NotFoundError(CatalogError):
    """Referenced entity is absent.

    404 when the missing entity is the request target, 400 when it is a
    relation named by the request body (a parent category, a product id...).
    """

    def __init__(self, message: str, status_code: int = 404):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(CatalogError):
    """No authenticated identity was supplied for an identity-scoped read."""

    status_code = 401


class ConflictError(CatalogError):
    """Delete blocked by dependents; ``details`` carries blocker counts and names."""

    def __init__(self, message: str, error: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error = error or message
        self.details = details or {}

    def to_response(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error, "details": self.details}
