"""
Domain exceptions shared by services and translated to HTTP errors in routers.
"""


class ForumError(Exception):
    """Base class for all forum domain errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(ForumError):
    """Bad input shape or policy violation. Carries every unmet rule."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        if self.errors:
            return f"{self.message}: {', '.join(self.errors)}"
        return self.message


class NotFoundError(ForumError):
    """Requested record does not exist."""


class ConflictError(ForumError):
    """Unique field (username, email) already taken."""


class PermissionDeniedError(ForumError):
    """Caller is not allowed to touch this record."""


class InvalidCredentialsError(ForumError):
    """Generic login failure. Never says which part was wrong."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class AccountLockedError(ForumError):
    """Login rejected because the account is in its lockout window."""

    def __init__(self, remaining_minutes: int):
        super().__init__(
            f"Account is locked. Try again in {remaining_minutes} minutes."
        )
        self.remaining_minutes = remaining_minutes


class TransientError(ForumError):
    """Retryable failure of an external collaborator (email, ledger)."""


class InvalidTokenError(NotFoundError):
    """Reset token is expired, already consumed, or was never issued."""

    MESSAGES = {
        "expired": "This password reset link has expired. Please request a new one.",
        "not_found": "This password reset link is invalid. Please request a new one.",
    }

    def __init__(self, status: str):
        super().__init__(self.MESSAGES.get(status, self.MESSAGES["not_found"]))
        self.status = status
