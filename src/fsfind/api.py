"""
Public search functions for fsfind.

These wrap SearchEngine for callers that just want results for one
(root, term, mode) triple.
"""

from pathlib import Path
from typing import List, Optional, Union

from .models.config import FinderConfig
from .models.search_query import SearchMode, SearchRequest
from .tools.search_engine import SearchEngine
from .tools.streaming import SearchHandle

PathLike = Union[str, Path]


def search(
    root: Optional[PathLike],
    term: str,
    mode: Union[SearchMode, str] = SearchMode.NAME,
    *,
    case_sensitive: Optional[bool] = None,
    config: Optional[FinderConfig] = None,
) -> List[str]:
    """
    Search a directory tree and return all matching paths.

    Args:
        root: Directory to search; None means the current working directory
        term: Regular expression (name mode) or literal text (content mode)
        mode: SearchMode or its value, "name" or "content"
        case_sensitive: Override the configured case handling for name mode
        config: Search configuration (defaults apply when omitted)

    Returns:
        Matched paths in discovery order

    Raises:
        InvalidPatternError: If a name-mode term is not a valid regular expression
        RootNotFoundError: If root does not exist or is not a directory
    """
    request = SearchRequest(root=root, term=term, mode=mode, case_sensitive=case_sensitive)
    return SearchEngine(config).search(request).matches


def search_stream(
    root: Optional[PathLike],
    term: str,
    mode: Union[SearchMode, str] = SearchMode.NAME,
    *,
    case_sensitive: Optional[bool] = None,
    config: Optional[FinderConfig] = None,
    line_separator: Optional[str] = None,
) -> SearchHandle:
    """
    Start a background search and return a handle that streams matches.

    Arguments are the same as for ``search``; ``line_separator``, when given,
    is appended to every streamed path.

    Raises:
        InvalidPatternError: If a name-mode term is not a valid regular expression
        RootNotFoundError: If root does not exist or is not a directory
    """
    request = SearchRequest(root=root, term=term, mode=mode, case_sensitive=case_sensitive)
    return SearchEngine(config).search_stream(request, line_separator=line_separator)
