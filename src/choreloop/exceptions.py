"""Custom exception hierarchy for the ChoreLoop package."""

from __future__ import annotations


class ChoreLoopError(Exception):
    """Base class for all ChoreLoop specific errors."""


class NotFoundError(ChoreLoopError):
    """Raised when an operation needs an entity that is not in the state."""


class ValidationError(ChoreLoopError):
    """Raised when input to a transition is malformed; no state change happens."""


class StorageDecodeError(ChoreLoopError):
    """Raised when the persisted state blob cannot be decoded."""


class BackupImportError(ChoreLoopError):
    """Raised when a backup file cannot be parsed into a state."""


class ConfirmationRequiredError(ChoreLoopError):
    """Raised when a destructive replace is requested without confirmation."""
