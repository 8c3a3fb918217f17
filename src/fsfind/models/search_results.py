"""
Search results data models for fsfind.

This module defines the entries produced by directory traversal and the
aggregated result set returned by a batch search.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .search_query import SearchRequest


class EntryKind(Enum):
    """Kind of filesystem node visited during traversal."""
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class Entry:
    """
    A filesystem node visited during a walk.

    Attributes:
        path: Full path of the entry
        kind: File, directory or other node type
        depth: Distance from the search root (1 for direct children)
    """
    path: Path
    kind: EntryKind
    depth: int = 1

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def display(self) -> str:
        """Path as shown to the user."""
        return str(self.path)


class SearchResults(BaseModel):
    """
    Complete results from a batch search.

    Matches keep discovery order; nothing is sorted or deduplicated.

    Attributes:
        request: The request that produced these results
        matches: Matched paths as display strings, in discovery order
        entries_scanned: Number of entries evaluated by the matcher
        execution_time: Time taken to execute the search in seconds
        timestamp: When the search was executed
        errors: Entries skipped because they could not be read
        truncated: Whether the result limit stopped the search early
        cancelled: Whether the search was cancelled before the walk finished
    """

    request: SearchRequest = Field(..., description="The original search request")
    matches: List[str] = Field(default_factory=list, description="Matched paths in discovery order")
    entries_scanned: int = Field(0, ge=0, description="Number of entries evaluated")
    execution_time: float = Field(0.0, ge=0.0, description="Time taken to execute the search")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the search was executed")
    errors: List[str] = Field(default_factory=list, description="Entries skipped during the search")
    truncated: bool = Field(False, description="Whether max_results stopped the search")
    cancelled: bool = Field(False, description="Whether the search was cancelled")

    def get_match_count(self) -> int:
        """Get the total number of matches."""
        return len(self.matches)

    def has_errors(self) -> bool:
        """Check if any entries were skipped."""
        return len(self.errors) > 0

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def add_match(self, path: str) -> None:
        self.matches.append(path)

    def to_text(self, separator: str = "\n") -> str:
        """Join all matches into one text blob, each followed by ``separator``."""
        return "".join(f"{match}{separator}" for match in self.matches)

    def to_dict(self) -> Dict[str, Any]:
        """Convert search results to dictionary representation."""
        data = self.model_dump()
        data['request'] = self.request.to_dict()
        data['match_count'] = self.get_match_count()
        data['timestamp'] = self.timestamp.isoformat()
        data['has_errors'] = self.has_errors()
        return data

    def __str__(self) -> str:
        """String representation of search results."""
        parts = [f"Found {self.get_match_count()} matches"]
        parts.append(f"Scanned {self.entries_scanned} entries")
        parts.append(f"Took {self.execution_time:.2f}s")

        if self.has_errors():
            parts.append(f"Skipped: {len(self.errors)}")
        if self.truncated:
            parts.append("Truncated")
        if self.cancelled:
            parts.append("Cancelled")

        return " | ".join(parts)
