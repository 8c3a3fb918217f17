"""
Streaming delivery for fsfind.

A SearchHandle runs one search on a background thread and relays each match
to the consumer through a FIFO channel as soon as it is found. The worker is
the only producer; the handle's owner is the only consumer.
"""

import itertools
import logging
import threading
import time
from enum import Enum
from queue import Empty, Queue
from typing import Iterable, Iterator, List, Optional

from ..errors import ChannelClosedPrematurely
from ..models.search_query import SearchRequest


logger = logging.getLogger(__name__)

# Marks the end of the stream; the worker puts it on every exit path.
_CLOSED = object()

_handle_ids = itertools.count(1)


class SearchStatus(Enum):
    """Lifecycle state of a streaming search."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SearchHandle:
    """
    Handle to one in-flight streaming search.

    The consumer can block on the handle (``for path in handle``), wait for a
    single fragment with a timeout (``wait_next``), or drain whatever has
    arrived without blocking (``poll``), e.g. once per UI tick. Every fragment
    received through any of these is also appended to ``received``.

    When the worker crashes, the consumer sees ChannelClosedPrematurely at the
    end of the stream instead of a normal end, and ``status`` is FAILED.
    """

    def __init__(
        self,
        request: SearchRequest,
        matches: Iterable[str],
        cancel_event: Optional[threading.Event] = None,
        line_separator: Optional[str] = None,
        poll_interval: float = 0.1,
    ):
        """
        Create a handle; the worker is not started until ``start()``.

        Args:
            request: The search being run, kept for reporting
            matches: Iterable producing matched paths; consumed on the worker thread
            cancel_event: Event the producer checks between entries
            line_separator: Appended to each fragment when given
            poll_interval: Seconds between worker liveness checks while waiting
        """
        self.request = request
        self.line_separator = line_separator
        self.poll_interval = poll_interval
        self.received: List[str] = []
        self.error: Optional[BaseException] = None

        self._matches = matches
        self._cancel_event = cancel_event or threading.Event()
        self._channel: "Queue[object]" = Queue()
        self._status = SearchStatus.PENDING
        self._closed = False
        self._thread = threading.Thread(
            target=self._run,
            name=f"fsfind-search-{next(_handle_ids)}",
            daemon=True,
        )

    # Producer side

    def start(self) -> 'SearchHandle':
        """Start the worker thread. Returns self for chaining."""
        if self._status is not SearchStatus.PENDING:
            raise RuntimeError("Search has already been started")
        self._status = SearchStatus.RUNNING
        self._thread.start()
        logger.debug(f"Started {self._thread.name}: {self.request}")
        return self

    def _run(self) -> None:
        status = SearchStatus.FAILED
        try:
            for path in self._matches:
                if self._cancel_event.is_set():
                    break
                self._channel.put(self._format(path))
            if self._cancel_event.is_set():
                status = SearchStatus.CANCELLED
            else:
                status = SearchStatus.COMPLETED
        except Exception as e:
            logger.exception(f"Search worker failed: {self.request}")
            self.error = e
        finally:
            self._status = status
            self._channel.put(_CLOSED)

    def _format(self, path: str) -> str:
        if self.line_separator is None:
            return path
        return f"{path}{self.line_separator}"

    # Consumer side

    def wait_next(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Block until the next fragment arrives or the stream ends.

        Args:
            timeout: Maximum seconds to wait (None = wait indefinitely)

        Returns:
            The next fragment, or None once the stream has ended normally

        Raises:
            TimeoutError: If no fragment arrived within timeout
            ChannelClosedPrematurely: If the worker terminated abnormally
        """
        if self._status is SearchStatus.PENDING:
            raise RuntimeError("Search has not been started")
        if self._closed:
            return self._end_of_stream()

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait = self.poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"No search result within {timeout} seconds")
                wait = min(wait, remaining)

            try:
                item = self._channel.get(timeout=wait)
            except Empty:
                if self._worker_vanished():
                    return self._end_of_stream()
                continue
            fragment = self._take(item)
            if fragment is None:
                return self._end_of_stream()
            return fragment

    def poll(self) -> List[str]:
        """
        Drain every fragment that has already arrived, without blocking.

        Check ``done`` and ``status`` afterwards to learn whether the stream
        has ended and how.
        """
        fragments = []
        while not self._closed:
            try:
                item = self._channel.get_nowait()
            except Empty:
                self._worker_vanished()
                break
            fragment = self._take(item)
            if fragment is not None:
                fragments.append(fragment)
        return fragments

    def __iter__(self) -> Iterator[str]:
        while True:
            fragment = self.wait_next()
            if fragment is None:
                return
            yield fragment

    def collect(self) -> List[str]:
        """Block until the stream ends and return all fragments received."""
        for _ in self:
            pass
        return list(self.received)

    def _take(self, item: object) -> Optional[str]:
        if item is _CLOSED:
            self._closed = True
            logger.debug(f"{self._thread.name} closed with status {self._status.value}")
            return None
        self.received.append(item)
        return item

    def _end_of_stream(self) -> None:
        if self._status is SearchStatus.FAILED:
            raise ChannelClosedPrematurely(self.error) from self.error
        return None

    def _worker_vanished(self) -> bool:
        """Detect a worker that died without closing the channel."""
        if self._status is SearchStatus.PENDING or self._closed:
            return False
        if self._thread.is_alive() or not self._channel.empty():
            return False
        logger.error(f"{self._thread.name} exited without closing its channel")
        self._status = SearchStatus.FAILED
        if self.error is None:
            self.error = RuntimeError("search worker exited without closing its channel")
        self._closed = True
        return True

    # Lifecycle

    def cancel(self) -> None:
        """Ask the worker to stop before the next entry. Best effort; never interrupts I/O."""
        self._cancel_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the worker thread to exit.

        Returns:
            True if the worker has exited
        """
        if self._status is SearchStatus.PENDING:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def status(self) -> SearchStatus:
        return self._status

    @property
    def done(self) -> bool:
        """True once the consumer has observed the end of the stream."""
        return self._closed

    @property
    def failed(self) -> bool:
        return self._status is SearchStatus.FAILED

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def text(self) -> str:
        """All fragments received so far as one text blob."""
        joiner = "" if self.line_separator is not None else "\n"
        return joiner.join(self.received)

    def __enter__(self) -> 'SearchHandle':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.cancel()
        self.join()

    def __repr__(self) -> str:
        return f"SearchHandle({self._thread.name}, status={self._status.value}, received={len(self.received)})"
