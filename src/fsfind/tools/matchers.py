"""
Entry predicates for fsfind.

A matcher decides whether a single traversal entry is a search result.
Name matching applies a regular expression to the entry's base name; content
matching scans a file's lines for a literal substring.
"""

import logging
import re
from typing import Callable, Optional

from ..errors import EntryAccessError, InvalidPatternError
from ..models.config import FinderConfig
from ..models.search_query import SearchMode, SearchRequest
from ..models.search_results import Entry, EntryKind


logger = logging.getLogger(__name__)


class NameMatcher:
    """
    Match files and directories whose base name matches a regular expression.

    The pattern is searched for anywhere in the name (not anchored), so
    ``report`` matches ``report.txt`` and ``old-report.csv``.
    """

    eligible_kinds = (EntryKind.FILE, EntryKind.DIRECTORY)

    def __init__(self, term: str, case_sensitive: bool = False):
        """
        Compile the name pattern.

        Args:
            term: Regular expression applied to base names
            case_sensitive: Whether matching distinguishes letter case

        Raises:
            InvalidPatternError: If term is not a valid regular expression
        """
        self.term = term
        self.case_sensitive = case_sensitive
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            self.pattern = re.compile(term, flags)
        except re.error as e:
            raise InvalidPatternError(term, str(e)) from e

    def matches(self, entry: Entry) -> bool:
        if entry.kind not in self.eligible_kinds:
            return False
        return self.pattern.search(entry.name) is not None

    def __repr__(self) -> str:
        return f"NameMatcher({self.term!r}, case_sensitive={self.case_sensitive})"


class ContentMatcher:
    """
    Match files containing a literal substring on at least one line.

    Scanning stops at the first matching line. Lines that cannot be decoded are
    passed over; files that cannot be opened are skipped, never raised.
    """

    eligible_kinds = (EntryKind.FILE,)

    def __init__(
        self,
        term: str,
        encoding: str = "utf-8",
        max_bytes_per_file: Optional[int] = None,
        on_error: Optional[Callable[[EntryAccessError], None]] = None,
    ):
        """
        Initialize the content matcher.

        Args:
            term: Literal text to look for; never interpreted as a pattern
            encoding: Text encoding of scanned files
            max_bytes_per_file: Larger files are skipped (None = no limit)
            on_error: Called with an EntryAccessError for every skipped file
        """
        self.term = term
        self.encoding = encoding
        self.max_bytes_per_file = max_bytes_per_file
        self.on_error = on_error
        self.files_scanned = 0
        self.files_skipped = 0
        self.lines_undecodable = 0

    def matches(self, entry: Entry) -> bool:
        if entry.kind not in self.eligible_kinds:
            return False

        try:
            if self.max_bytes_per_file is not None:
                size = entry.path.stat().st_size
                if size > self.max_bytes_per_file:
                    logger.debug(f"Skipping large file: {entry.path} ({size} bytes)")
                    self.files_skipped += 1
                    return False

            self.files_scanned += 1
            # Lines are decoded one at a time so a single bad line never hides the rest of the file.
            with open(entry.path, 'rb') as handle:
                for raw_line in handle:
                    try:
                        line = raw_line.decode(self.encoding)
                    except UnicodeDecodeError:
                        self.lines_undecodable += 1
                        continue
                    if self.term in line.rstrip('\r\n'):
                        return True
        except OSError as e:
            self._skip(entry, e)
        return False

    def _skip(self, entry: Entry, cause: Exception) -> None:
        self.files_skipped += 1
        error = EntryAccessError(entry.path, cause)
        logger.debug(f"Skipping unreadable file: {error}")
        if self.on_error is not None:
            self.on_error(error)

    def __repr__(self) -> str:
        return f"ContentMatcher({self.term!r}, encoding={self.encoding!r})"


def build_matcher(
    request: SearchRequest,
    config: Optional[FinderConfig] = None,
    on_error: Optional[Callable[[EntryAccessError], None]] = None,
):
    """
    Create the matcher for a request.

    Args:
        request: The search request
        config: Configuration supplying matching defaults and limits
        on_error: Error callback for content mode

    Returns:
        NameMatcher or ContentMatcher

    Raises:
        InvalidPatternError: If a name-mode term is not a valid regular expression
    """
    config = config or FinderConfig()

    if request.mode is SearchMode.NAME:
        case_sensitive = request.case_sensitive
        if case_sensitive is None:
            case_sensitive = config.matching.case_sensitive
        return NameMatcher(request.term, case_sensitive=case_sensitive)

    return ContentMatcher(
        request.term,
        encoding=config.matching.encoding,
        max_bytes_per_file=config.limits.max_bytes_per_file,
        on_error=on_error,
    )
