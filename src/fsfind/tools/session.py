"""
Interactive search session for fsfind.

Front ends that let a user search repeatedly (a TUI, a GUI, a REPL) keep a
"current directory" and usually want only the latest search to stay alive.
SearchSession owns that state: the root is read once under a lock and copied
into each request, and starting a new search cancels the previous one.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional, Union

from ..models.config import FinderConfig
from ..models.search_query import SearchMode, SearchRequest
from .search_engine import SearchEngine
from .streaming import SearchHandle


logger = logging.getLogger(__name__)


class SearchSession:
    """
    Holds the current root and at most one active streaming search.

    A superseded search is cancelled and detached: the session does not wait
    for its worker, which stops at its next entry and closes its own channel.
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        engine: Optional[SearchEngine] = None,
        config: Optional[FinderConfig] = None,
    ):
        self.engine = engine or SearchEngine(config)
        self._lock = threading.Lock()
        self._root = str(Path(root).expanduser()) if root is not None else os.getcwd()
        self._active: Optional[SearchHandle] = None

    @property
    def root(self) -> str:
        with self._lock:
            return self._root

    def change_root(self, root: Union[str, Path]) -> None:
        """Set the root used by subsequent searches. Running searches keep their own copy."""
        with self._lock:
            self._root = str(Path(root).expanduser())
        logger.debug(f"Session root changed to {root}")

    @property
    def active(self) -> Optional[SearchHandle]:
        with self._lock:
            return self._active

    def start(
        self,
        term: str,
        mode: Union[SearchMode, str] = SearchMode.NAME,
        case_sensitive: Optional[bool] = None,
        line_separator: Optional[str] = None,
    ) -> SearchHandle:
        """
        Start a streaming search in the current root, replacing any active one.

        Raises:
            InvalidPatternError: If the name pattern does not compile
            RootNotFoundError: If the current root is missing or not a directory
        """
        with self._lock:
            root = self._root
            previous = self._active
            self._active = None

        if previous is not None and not previous.done:
            logger.debug(f"Cancelling superseded search: {previous}")
            previous.cancel()

        request = SearchRequest(root=root, term=term, mode=mode, case_sensitive=case_sensitive)
        handle = self.engine.search_stream(request, line_separator=line_separator)

        with self._lock:
            self._active = handle
        return handle

    def cancel(self) -> None:
        """Cancel the active search, if any."""
        handle = self.active
        if handle is not None:
            handle.cancel()

    def close(self, timeout: Optional[float] = None) -> None:
        """Cancel the active search and wait for its worker to exit."""
        with self._lock:
            handle = self._active
            self._active = None
        if handle is not None:
            handle.cancel()
            handle.join(timeout)

    def __enter__(self) -> 'SearchSession':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
