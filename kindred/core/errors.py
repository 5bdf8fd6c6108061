from typing import Any


class DomainError(Exception):
    """Base class for failures reported to API callers as a 4xx/5xx response."""

    status_code: int = 400
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, **self.extra}


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class Conflict(DomainError):
    status_code = 409
    default_message = "Conflict"


class MatchLimitReached(DomainError):
    status_code = 400
    default_message = "You've reached the maximum of 4 matches"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        extra.setdefault("maxMatchesReached", True)
        super().__init__(message, **extra)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(DomainError):
    status_code = 401
    default_message = "Not authorized"


class Forbidden(DomainError):
    status_code = 403
    default_message = "Forbidden"


class AccountLocked(DomainError):
    status_code = 423
    default_message = "Account is temporarily locked. Try again later."


class StorageUnavailable(DomainError):
    status_code = 503
    default_message = "Storage temporarily unavailable."


class VersionConflict(Exception):
    """A document changed between read and write. Callers replay the operation."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Version conflict on {key}")
