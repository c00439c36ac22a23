"""Errors raised by the setup API layer.

The wizard never lets these escape a step: submission handlers catch them
and turn them into the step's inline error message.
"""

from __future__ import annotations


class SetupError(Exception):
    """Base class for setup failures."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class ValidationError(SetupError):
    """Bad input shape, length or mismatch (duplicate library name/path included)."""


class ConflictError(SetupError):
    """The resource already exists, e.g. an owner account."""


class SetupIOError(SetupError):
    """Filesystem check or create failure on the server."""


class NetworkError(SetupError):
    """Transport failure talking to the server."""


def error_message(exc: BaseException, fallback: str) -> str:
    """Human-readable message for an exception, or *fallback* if it has none."""
    text = str(exc).strip()
    return text or fallback
