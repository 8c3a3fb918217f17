"""
Search request data models for fsfind.

This module defines the immutable request handed to the search engine: the
root directory, the search term and how the term is interpreted.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchMode(Enum):
    """How a search term is applied to filesystem entries."""
    NAME = "name"
    CONTENT = "content"


class SearchRequest(BaseModel):
    """
    Represents one search action.

    The request is frozen once built, so it can be handed to a worker thread
    without sharing mutable state with the caller.

    Attributes:
        root: Directory to search, normalized to an absolute path
        term: Regular expression (name mode) or literal substring (content mode)
        mode: Whether to match entry names or file contents
        case_sensitive: Name-mode case handling; None defers to configuration
    """

    model_config = ConfigDict(frozen=True)

    root: str = Field(default_factory=os.getcwd, description="Root directory to search")
    term: str = Field(..., min_length=1, description="Search term")
    mode: SearchMode = Field(SearchMode.NAME, description="Match by name or by content")
    case_sensitive: Optional[bool] = Field(None, description="Case sensitivity for name matching")

    @field_validator('root', mode='before')
    @classmethod
    def validate_root(cls, v: Any) -> str:
        """Normalize the root path; existence is checked when the search runs."""
        if v is None:
            return os.getcwd()
        if isinstance(v, Path):
            v = str(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Search root cannot be empty")
        return str(Path(v).expanduser().absolute())

    @field_validator('term')
    @classmethod
    def validate_term(cls, v: str) -> str:
        """Reject blank terms. Whitespace is kept: it is significant for content search."""
        if not v.strip():
            raise ValueError("Search term cannot be empty")
        return v

    @field_validator('mode', mode='before')
    @classmethod
    def validate_mode(cls, v) -> SearchMode:
        """Accept the enum or its string value."""
        if isinstance(v, str):
            try:
                return SearchMode(v.lower())
            except ValueError:
                raise ValueError(f"Invalid search mode: {v}")
        return v

    @property
    def root_path(self) -> Path:
        return Path(self.root)

    def is_name_search(self) -> bool:
        return self.mode is SearchMode.NAME

    def is_content_search(self) -> bool:
        return self.mode is SearchMode.CONTENT

    def to_dict(self) -> Dict[str, Any]:
        """Convert the request to a dictionary representation."""
        data = self.model_dump()
        data['mode'] = self.mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchRequest':
        """Create a SearchRequest instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the search request."""
        parts = [f"Term: '{self.term}'"]
        parts.append(f"Mode: {self.mode.value}")
        parts.append(f"Root: {self.root}")
        if self.case_sensitive is not None:
            parts.append(f"Case sensitive: {self.case_sensitive}")
        return " | ".join(parts)
