"""
fsfind - Filesystem Search

Finds files and directories under a root by name (regular expression) or by
content (literal text), either all at once or streamed from a background
worker as matches are discovered.
"""

__version__ = "0.1.0"
__author__ = "fsfind Team"

from .errors import (
    ChannelClosedPrematurely,
    EntryAccessError,
    FinderError,
    InvalidPatternError,
    RootNotFoundError,
)
from .models import SearchMode, SearchRequest, SearchResults
from .api import search, search_stream
from .tools import SearchEngine, SearchHandle, SearchSession, SearchStatus

__all__ = [
    'search',
    'search_stream',
    'SearchMode',
    'SearchRequest',
    'SearchResults',
    'SearchEngine',
    'SearchHandle',
    'SearchSession',
    'SearchStatus',
    'FinderError',
    'InvalidPatternError',
    'RootNotFoundError',
    'EntryAccessError',
    'ChannelClosedPrematurely',
]
