"""
Data models for fsfind.

This module contains all the core data structures used throughout the system.
"""

from .search_query import SearchMode, SearchRequest
from .search_results import Entry, EntryKind, SearchResults

__all__ = ['SearchMode', 'SearchRequest', 'Entry', 'EntryKind', 'SearchResults']
