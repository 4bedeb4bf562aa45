"""Exceptions raised by CompSetIQ services."""

from __future__ import annotations


class CompSetError(Exception):
    """Base class for all CompSetIQ errors."""


class ValidationError(CompSetError):
    """Input that cannot be normalized into something usable."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ConflictError(CompSetError):
    """A relationship already exists for the property pair."""

    def __init__(self, message: str, existing_id: str | None = None):
        self.existing_id = existing_id
        super().__init__(message)


class NotFoundError(CompSetError):
    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Unknown {kind}: {identifier}")
