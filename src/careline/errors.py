"""Exception hierarchy shared by the persistence and service layers."""

from __future__ import annotations


class CareLineError(Exception):
    """Base class for domain errors raised by the delivery tracking core."""


class NotFoundError(CareLineError, LookupError):
    """A stop, route or driver referenced by an operation does not exist."""


class InvalidInputError(CareLineError, ValueError):
    """A required field is missing or malformed."""


class InvalidTransitionError(InvalidInputError):
    """The requested status change is refused by the active status policy."""


class StorageFailure(CareLineError, OSError):
    """A JSON collection could not be written durably."""
