"""
Search tools for fsfind.

This module contains the traversal, matching, search and streaming
components.
"""

from .fs_walker import FSWalker, walk
from .matchers import ContentMatcher, NameMatcher, build_matcher
from .search_engine import SearchEngine
from .session import SearchSession
from .streaming import SearchHandle, SearchStatus

__all__ = [
    'FSWalker',
    'walk',
    'ContentMatcher',
    'NameMatcher',
    'build_matcher',
    'SearchEngine',
    'SearchSession',
    'SearchHandle',
    'SearchStatus',
]
