"""Exception hierarchy for the listings service."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class ListingsError(Exception):
    """Base exception for all listings errors."""


class ValidationError(ListingsError):
    """Raised when a payload fails validation. Carries every field error."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(sorted({e.field for e in self.errors})) or "payload"
        super().__init__(f"Invalid {fields}")


class UsernameTakenError(ValidationError):
    """Raised by either backend when a username already exists."""

    def __init__(self, username: str):
        self.username = username
        super().__init__([FieldError("username", "Username already exists")])


class StorageUnavailable(ListingsError):
    """Raised when the persistent store is reachable but failing."""
