"""
Error taxonomy for fsfind.

Request-level errors (invalid pattern, missing root) are raised to the caller
before any traversal starts. Entry-level errors are absorbed by the walker and
matchers and only reported through callbacks and statistics.
"""

from pathlib import Path
from typing import Optional, Union


class FinderError(Exception):
    """Base class for all fsfind errors."""
    pass


class InvalidPatternError(FinderError, ValueError):
    """
    Raised when a name-match term is not a valid regular expression.

    Attributes:
        pattern: The offending pattern text
        reason: Message reported by the regex compiler
    """

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid search pattern '{pattern}': {reason}")


class RootNotFoundError(FinderError):
    """Raised when the search root does not exist or is not a directory."""

    def __init__(self, root: Union[str, Path], reason: str = "does not exist"):
        self.root = str(root)
        self.reason = reason
        super().__init__(f"Search root {reason}: {self.root}")


class EntryAccessError(FinderError):
    """
    A single filesystem entry could not be read.

    Never raised out of a walk; instances are handed to error callbacks so
    callers can log or count skipped entries.
    """

    def __init__(self, path: Union[str, Path], cause: Union[BaseException, str]):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Cannot access {self.path}: {cause}")


class ChannelClosedPrematurely(FinderError):
    """Raised to a stream consumer when the search worker terminated abnormally."""

    def __init__(self, cause: Optional[BaseException] = None):
        self.cause = cause
        message = "Search worker terminated before completing the walk"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
