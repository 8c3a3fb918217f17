"""
Filesystem walker for fsfind.

This module traverses a directory tree and yields every entry below the root
as it is discovered. Unreadable entries are reported and skipped so a single
permission problem never hides the rest of the tree.
"""

import os
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple, Union

from ..errors import EntryAccessError, RootNotFoundError
from ..models.config import FinderConfig
from ..models.search_results import Entry, EntryKind


logger = logging.getLogger(__name__)

ErrorCallback = Callable[[EntryAccessError], None]


class FSWalker:
    """
    Filesystem walker that lazily traverses one directory tree.

    The walk is depth-first and pre-order: a directory is yielded before its
    children, and its children are listed in name order so repeated walks of
    an unchanged tree produce the same sequence. Supports:
    - Gitignore-style ignore patterns (ignored directories are pruned)
    - Depth limits and optional symlink following with cycle detection
    - Cooperative cancellation between entries
    """

    def __init__(self, config: Optional[FinderConfig] = None):
        """
        Initialize the filesystem walker.

        Args:
            config: Configuration providing ignore patterns and traversal options
        """
        self.config = config or FinderConfig()
        self._stats = self._new_stats()

    @staticmethod
    def _new_stats() -> Dict[str, int]:
        return {
            'entries_visited': 0,
            'directories_traversed': 0,
            'entries_ignored': 0,
            'errors': 0
        }

    def walk(
        self,
        root: Union[str, Path],
        cancel_event: Optional[threading.Event] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Iterator[Entry]:
        """
        Walk a directory tree and yield its entries.

        The root is validated immediately, before the first entry is
        requested, so a bad root fails the call rather than the iteration.

        Args:
            root: Directory to walk; the root itself is not yielded
            cancel_event: When set, the walk stops before the next entry
            on_error: Called with an EntryAccessError for every skipped entry

        Returns:
            Lazy iterator of Entry objects

        Raises:
            RootNotFoundError: If root does not exist or is not a directory
        """
        root_path = self._validate_root(root)
        return self._walk_tree(root_path, cancel_event, on_error)

    def _validate_root(self, root: Union[str, Path]) -> Path:
        root_path = Path(root).expanduser().absolute()
        try:
            if not root_path.exists():
                raise RootNotFoundError(root_path, "does not exist")
            if not root_path.is_dir():
                raise RootNotFoundError(root_path, "is not a directory")
        except OSError as e:
            raise RootNotFoundError(root_path, f"cannot be accessed ({e})") from e
        return root_path

    def _walk_tree(
        self,
        root_path: Path,
        cancel_event: Optional[threading.Event],
        on_error: Optional[ErrorCallback],
    ) -> Iterator[Entry]:
        logger.info(f"Walking directory tree: {root_path}")
        traversal = self.config.traversal
        visited: Set[Tuple[int, int]] = set()
        if traversal.follow_symlinks:
            self._mark_visited(root_path, visited)

        listing = self._list_directory(root_path, on_error)
        if listing is None:
            return
        self._stats['directories_traversed'] += 1
        stack: List[Tuple[Iterator[os.DirEntry], int]] = [(iter(listing), 1)]

        while stack:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Walk cancelled: {root_path}")
                return

            children, depth = stack[-1]
            dir_entry = next(children, None)
            if dir_entry is None:
                stack.pop()
                continue

            if not traversal.include_hidden and dir_entry.name.startswith('.'):
                self._stats['entries_ignored'] += 1
                continue

            entry = self._make_entry(dir_entry, depth, on_error)
            if entry is None:
                continue

            if self.config.has_ignore_rules():
                relative = Path(dir_entry.path).relative_to(root_path).as_posix()
                if self.config.should_ignore(relative, is_dir=entry.is_dir):
                    self._stats['entries_ignored'] += 1
                    continue

            self._stats['entries_visited'] += 1
            yield entry

            if entry.is_dir and self._should_descend(dir_entry, depth, visited, on_error):
                sub_listing = self._list_directory(entry.path, on_error)
                if sub_listing is not None:
                    self._stats['directories_traversed'] += 1
                    stack.append((iter(sub_listing), depth + 1))

        logger.info(f"Finished walking {root_path}: {self._stats['entries_visited']} entries")

    def _list_directory(self, path: Path, on_error: Optional[ErrorCallback]) -> Optional[List[os.DirEntry]]:
        """
        Read one directory, sorted by name.

        Args:
            path: Directory to list
            on_error: Error callback for an unreadable directory

        Returns:
            Sorted directory entries, or None if the directory cannot be read
        """
        try:
            with os.scandir(path) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as e:
            self._report(EntryAccessError(path, e), on_error)
            return None

    def _make_entry(self, dir_entry: os.DirEntry, depth: int, on_error: Optional[ErrorCallback]) -> Optional[Entry]:
        """
        Classify a directory entry.

        Symlinks are classified by their target. A link whose target is gone
        is reported as an access error and skipped.
        """
        path = Path(dir_entry.path)
        try:
            if dir_entry.is_dir():
                kind = EntryKind.DIRECTORY
            elif dir_entry.is_file():
                kind = EntryKind.FILE
            elif dir_entry.is_symlink():
                self._report(EntryAccessError(path, "broken symbolic link"), on_error)
                return None
            else:
                kind = EntryKind.OTHER
        except OSError as e:
            self._report(EntryAccessError(path, e), on_error)
            return None
        return Entry(path=path, kind=kind, depth=depth)

    def _should_descend(
        self,
        dir_entry: os.DirEntry,
        depth: int,
        visited: Set[Tuple[int, int]],
        on_error: Optional[ErrorCallback],
    ) -> bool:
        traversal = self.config.traversal
        if traversal.max_depth is not None and depth >= traversal.max_depth:
            return False

        try:
            is_link = dir_entry.is_symlink()
        except OSError as e:
            self._report(EntryAccessError(dir_entry.path, e), on_error)
            return False

        if not traversal.follow_symlinks:
            return not is_link

        if not self._mark_visited(Path(dir_entry.path), visited):
            self._report(EntryAccessError(dir_entry.path, "directory already visited (symlink cycle)"), on_error)
            return False
        return True

    def _mark_visited(self, path: Path, visited: Set[Tuple[int, int]]) -> bool:
        """Record a directory's identity; False if it was seen before or cannot be stat'ed."""
        try:
            stat_result = path.stat()
        except OSError:
            return False
        key = (stat_result.st_dev, stat_result.st_ino)
        if key in visited:
            return False
        visited.add(key)
        return True

    def _report(self, error: EntryAccessError, on_error: Optional[ErrorCallback]) -> None:
        self._stats['errors'] += 1
        logger.debug(f"Skipping entry: {error}")
        if on_error is not None:
            on_error(error)

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the walk.

        Returns:
            Dictionary containing walk statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters."""
        self._stats = self._new_stats()


def walk(
    root: Union[str, Path],
    config: Optional[FinderConfig] = None,
    cancel_event: Optional[threading.Event] = None,
    on_error: Optional[ErrorCallback] = None,
) -> Iterator[Entry]:
    """
    Convenience function to walk a tree with a fresh walker.

    Raises:
        RootNotFoundError: If root does not exist or is not a directory
    """
    return FSWalker(config).walk(root, cancel_event=cancel_event, on_error=on_error)
