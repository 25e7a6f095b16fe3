"""
Error taxonomy for today.

Every failure the tool can report derives from TodayError so the CLI can turn
it into a single diagnostic line and an exit code.
"""

from __future__ import annotations

from typing import Optional

# Process exit codes used by the CLI
EXIT_MISSING_ARGUMENT = 1
EXIT_INVALID_DIRECTORY = 2
EXIT_FAILURE = 3


class TodayError(Exception):
    """Base class for all errors raised while collecting commit messages."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InvalidPathError(TodayError):
    """A requested path does not exist or is not a directory."""
    pass


class NotTrackedError(TodayError):
    """A directory exists but is not tracked by git."""
    pass


class RepositoryOpenError(TodayError):
    """Git metadata exists but the repository could not be opened."""
    pass


class HistoryUnavailableError(TodayError):
    """The current reference could not be resolved to a commit."""
    pass


class WalkError(TodayError):
    """Advancing through the commit history failed part way."""
    pass


# Errors detected before any history is read
VALIDATION_ERRORS = (InvalidPathError, NotTrackedError)
