"""Exceptions raised by the webmail services."""


class WebmailError(Exception):
    """Base exception for all webmail errors."""

    status_code = 500

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(WebmailError):
    """Raised when a request is missing or has malformed fields."""

    status_code = 400


class UnresolvedRecipientError(ValidationError):
    """Raised when a recipient address does not match an active account."""

    def __init__(self, addresses: list[str]):
        super().__init__(
            "One or more recipients not found",
            [{"field": "recipients", "message": f"Unknown recipient: {a}"} for a in addresses],
        )
        self.addresses = addresses


class NotFoundError(WebmailError):
    """Raised when a referenced message or user does not exist."""

    status_code = 404


class AuthenticationError(WebmailError):
    """Raised when a request carries no valid session or bad credentials."""

    status_code = 401


class AuthorizationError(WebmailError):
    """Raised when an authenticated user may not perform an operation."""

    status_code = 403
