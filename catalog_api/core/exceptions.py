"""
Error taxonomy for the catalog API.

Services raise these; the HTTP layer renders them as
``{"success": false, "message": ..., "details": ...}`` envelopes with the
class's ``status_code``.
"""
from typing import Optional, Dict, Any, List


class CatalogError(Exception):
    """Base exception for all catalog errors.

    Carries an HTTP status and an optional context dictionary that is
    returned to the client as ``details``.
    """

    status_code: int = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ValidationError(CatalogError):
    """Raised when required fields are missing or malformed."""

    status_code = 400

    @classmethod
    def missing_fields(cls, fields: List[str]) -> "ValidationError":
        return cls(
            f"Missing required fields: {', '.join(fields)}",
            {"missing_fields": fields},
        )


class InvalidIdentifierError(CatalogError):
    """Raised when a record id is not a well-formed store key."""

    status_code = 400


class NotFoundError(CatalogError):
    status_code = 404


class DuplicateEmailError(CatalogError):
    status_code = 400


class InvalidCredentialsError(CatalogError):
    """Raised on login failure.

    The message is the same whether the email is unknown or the password is
    wrong.
    """

    status_code = 400

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class UploadError(CatalogError):
    """Raised when the media host rejects a payload or it cannot be read."""

    status_code = 500


class InternalError(CatalogError):
    status_code = 500
