"""
Search engine for fsfind.

Combines the filesystem walker with a name or content matcher. Requests are
validated up front: the pattern is compiled before the root is touched, and a
missing root fails the call before any entry is read or any worker started.
"""

import logging
import threading
import time
from typing import Callable, Iterator, Optional, Tuple, Union

from ..errors import EntryAccessError
from ..models.config import FinderConfig
from ..models.search_query import SearchRequest
from ..models.search_results import Entry, SearchResults
from .fs_walker import FSWalker
from .matchers import ContentMatcher, NameMatcher, build_matcher
from .streaming import SearchHandle


logger = logging.getLogger(__name__)

Matcher = Union[NameMatcher, ContentMatcher]


class SearchEngine:
    """
    Runs searches described by SearchRequest objects.

    The engine holds configuration only. Every search gets its own walker and
    matcher, so independent searches may run concurrently on one engine.
    """

    def __init__(self, config: Optional[FinderConfig] = None):
        self.config = config or FinderConfig()

    def _start(
        self,
        request: SearchRequest,
        cancel_event: Optional[threading.Event],
        on_error: Optional[Callable[[EntryAccessError], None]],
    ) -> Tuple[FSWalker, Iterator[Entry], Matcher]:
        # Order matters: a bad pattern must be reported before the root is accessed.
        matcher = build_matcher(request, self.config, on_error=on_error)
        walker = FSWalker(self.config)
        entries = walker.walk(request.root, cancel_event=cancel_event, on_error=on_error)
        return walker, entries, matcher

    def _generate(self, entries: Iterator[Entry], matcher: Matcher) -> Iterator[str]:
        max_results = self.config.limits.max_results
        found = 0
        for entry in entries:
            if matcher.matches(entry):
                found += 1
                yield entry.display()
                if max_results is not None and found >= max_results:
                    logger.info(f"Reached maximum result limit: {max_results}")
                    return

    def iter_matches(
        self,
        request: SearchRequest,
        cancel_event: Optional[threading.Event] = None,
        on_error: Optional[Callable[[EntryAccessError], None]] = None,
    ) -> Iterator[str]:
        """
        Lazily yield matching paths in discovery order.

        Args:
            request: The search to run
            cancel_event: When set, the walk stops before the next entry
            on_error: Called for every skipped entry

        Returns:
            Iterator of matched paths as display strings

        Raises:
            InvalidPatternError: If the name pattern does not compile
            RootNotFoundError: If the root is missing or not a directory
        """
        _, entries, matcher = self._start(request, cancel_event, on_error)
        return self._generate(entries, matcher)

    def search(self, request: SearchRequest, cancel_event: Optional[threading.Event] = None) -> SearchResults:
        """
        Run a search to completion and return all matches at once.

        Args:
            request: The search to run
            cancel_event: When set, the walk stops and partial results are returned

        Returns:
            SearchResults with matches in discovery order

        Raises:
            InvalidPatternError: If the name pattern does not compile
            RootNotFoundError: If the root is missing or not a directory
        """
        start_time = time.time()
        results = SearchResults(request=request)

        def record_error(error: EntryAccessError) -> None:
            results.add_error(str(error))

        walker, entries, matcher = self._start(request, cancel_event, record_error)
        max_results = self.config.limits.max_results

        scanned = 0
        for entry in entries:
            scanned += 1
            if matcher.matches(entry):
                results.add_match(entry.display())
                if max_results is not None and results.get_match_count() >= max_results:
                    logger.info(f"Reached maximum result limit: {max_results}")
                    results.truncated = True
                    break

        results.entries_scanned = scanned
        results.cancelled = bool(cancel_event is not None and cancel_event.is_set() and not results.truncated)
        results.execution_time = time.time() - start_time
        logger.debug(f"Search finished: {results} (walker stats: {walker.get_stats()})")
        return results

    def search_stream(self, request: SearchRequest, line_separator: Optional[str] = None) -> SearchHandle:
        """
        Start a search on a background worker and return its handle.

        Validation happens here, on the caller's thread; only the walk and
        predicate evaluation run on the worker.

        Args:
            request: The search to run
            line_separator: Appended to each streamed path when given

        Returns:
            A started SearchHandle

        Raises:
            InvalidPatternError: If the name pattern does not compile
            RootNotFoundError: If the root is missing or not a directory
        """
        cancel_event = threading.Event()
        _, entries, matcher = self._start(request, cancel_event, None)
        handle = SearchHandle(
            request,
            self._generate(entries, matcher),
            cancel_event=cancel_event,
            line_separator=line_separator,
            poll_interval=self.config.streaming.poll_interval,
        )
        return handle.start()
