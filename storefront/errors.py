# storefront/errors.py
from typing import Optional


class StorefrontError(Exception):
    """Base error; the HTTP layer maps ``status_code`` and ``message`` to the response."""

    status_code = 500
    message = "Server Error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.message
        self.error = error
        super().__init__(self.message)


class ValidationError(StorefrontError):
    status_code = 400
    message = "Invalid input"


class NotFoundError(StorefrontError):
    status_code = 404
    message = "Not found"


class AuthorizationError(StorefrontError):
    status_code = 401
    message = "Not authorized"


class ForbiddenError(AuthorizationError):
    status_code = 403
    message = "Forbidden"


class ConflictError(StorefrontError):
    status_code = 409
    message = "Resource was modified concurrently, retry"


class PersistenceError(StorefrontError):
    status_code = 500
    message = "Database error"


class UploadError(StorefrontError):
    status_code = 500
    message = "Image upload failed"
