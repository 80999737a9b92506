from __future__ import annotations


class LoadGuardError(Exception):
    """Base exception for all loadguard errors."""


class InvalidInputError(LoadGuardError, ValueError):
    """A snapshot or argument is malformed (negative power, empty time range, ...)."""


class TimeFormatError(InvalidInputError):
    """A time-of-day value could not be parsed into minutes since midnight."""
