"""
Unit tests for the filesystem walker module.

Tests traversal order, ignore handling, depth limits, symlinks, error
reporting and cancellation of the FSWalker class.
"""

import os
import sys
import tempfile
import shutil
import threading
from pathlib import Path
from unittest.mock import patch
import pytest

from fsfind.errors import EntryAccessError, RootNotFoundError
from fsfind.models.config import FinderConfig
from fsfind.models.search_results import EntryKind
from fsfind.tools.fs_walker import FSWalker, walk


EXPECTED_ORDER = [
    ".git",
    ".git/config",
    "docs",
    "docs/api",
    "docs/api/index.md",
    "docs/readme.md",
    "setup.py",
    "src",
    "src/main.py",
    "src/utils.py",
]


class TestFSWalker:
    """Test cases for the FSWalker class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir)
        self._create_test_structure()

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _create_test_structure(self):
        """Create a small project tree."""
        for directory in [".git", "docs/api", "src"]:
            (self.test_root / directory).mkdir(parents=True)

        for file_path in ["src/utils.py", "src/main.py", "docs/readme.md",
                          "docs/api/index.md", "setup.py", ".git/config"]:
            (self.test_root / file_path).write_text(f"content of {file_path}\n")

    def _relative(self, entries):
        return [entry.path.relative_to(self.test_root).as_posix() for entry in entries]

    def test_walk_order(self):
        """Test pre-order, name-sorted traversal of the whole tree."""
        entries = list(FSWalker().walk(self.test_root))
        assert self._relative(entries) == EXPECTED_ORDER

    def test_walk_is_repeatable(self):
        """Test that walking an unchanged tree twice gives the same sequence."""
        first = self._relative(walk(self.test_root))
        second = self._relative(walk(self.test_root))
        assert first == second

    def test_root_not_yielded(self):
        """Test that only entries below the root are produced."""
        paths = [entry.path for entry in walk(self.test_root)]
        assert self.test_root not in paths

    def test_entry_kinds_and_depth(self):
        """Test entry classification and depth bookkeeping."""
        entries = {e.path.relative_to(self.test_root).as_posix(): e for e in walk(self.test_root)}

        assert entries["docs"].kind is EntryKind.DIRECTORY
        assert entries["docs"].depth == 1
        assert entries["docs/api/index.md"].kind is EntryKind.FILE
        assert entries["docs/api/index.md"].depth == 3
        assert all(entry.path.is_absolute() for entry in entries.values())

    def test_empty_directory(self):
        """Test that an empty root yields nothing."""
        empty = self.test_root / "empty"
        empty.mkdir()
        assert list(walk(empty)) == []

    def test_walk_is_lazy(self):
        """Test that entries are discovered as the iterator advances."""
        iterator = walk(self.test_root)
        first = next(iterator)
        assert first.name == ".git"

        # src has not been listed yet, so a file created now is still found
        (self.test_root / "src" / "late.py").write_text("late\n")

        remaining = self._relative(iterator)
        assert "src/late.py" in remaining

    def test_missing_root_raises_immediately(self):
        """Test that a missing root fails the call, not the iteration."""
        with pytest.raises(RootNotFoundError, match="does not exist"):
            walk(self.test_root / "missing")

    def test_file_root_rejected(self):
        """Test that a regular file is not a valid root."""
        with pytest.raises(RootNotFoundError, match="is not a directory"):
            walk(self.test_root / "setup.py")

    def test_ignore_patterns_prune_directories(self):
        """Test that an ignored directory is skipped with everything inside it."""
        walker = FSWalker(FinderConfig(ignore=[".git/", "*.md"]))
        relative = self._relative(walker.walk(self.test_root))

        assert relative == ["docs", "docs/api", "setup.py", "src", "src/main.py", "src/utils.py"]
        assert walker.get_stats()['entries_ignored'] == 3

    def test_ignore_negation(self):
        """Test that a negation re-includes a single file."""
        config = FinderConfig(ignore=["*.py", "!main.py"])
        relative = self._relative(walk(self.test_root, config=config))

        assert "src/main.py" in relative
        assert "src/utils.py" not in relative
        assert "setup.py" not in relative

    def test_hidden_entries_excluded(self):
        """Test that dot-entries can be left out entirely."""
        config = FinderConfig(traversal={'include_hidden': False})
        relative = self._relative(walk(self.test_root, config=config))

        assert relative == EXPECTED_ORDER[2:]

    def test_max_depth(self):
        """Test that depth limits stop descent but still yield the directory."""
        config = FinderConfig(traversal={'max_depth': 1})
        relative = self._relative(walk(self.test_root, config=config))
        assert relative == [".git", "docs", "setup.py", "src"]

        config = FinderConfig(traversal={'max_depth': 2})
        relative = self._relative(walk(self.test_root, config=config))
        assert "docs/api" in relative
        assert "docs/api/index.md" not in relative

    def test_unreadable_directory_reported(self):
        """Test that a directory that cannot be listed is skipped and reported."""
        real_scandir = os.scandir

        def fake_scandir(path):
            if Path(path).name == "docs":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        errors = []
        walker = FSWalker()
        with patch('os.scandir', side_effect=fake_scandir):
            relative = self._relative(walker.walk(self.test_root, on_error=errors.append))

        # The directory itself is still an entry; its contents are not
        assert "docs" in relative
        assert "docs/readme.md" not in relative
        assert "src/main.py" in relative

        assert len(errors) == 1
        assert isinstance(errors[0], EntryAccessError)
        assert errors[0].path == str(self.test_root / "docs")
        assert walker.get_stats()['errors'] == 1

    @pytest.mark.skipif(sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
                        reason="permission bits are not enforced")
    def test_permission_denied_directory(self):
        """Test a real unreadable directory."""
        locked = self.test_root / "locked"
        locked.mkdir()
        (locked / "secret.txt").write_text("secret\n")
        locked.chmod(0)

        try:
            errors = []
            relative = self._relative(walk(self.test_root, on_error=errors.append))

            assert "locked" in relative
            assert "locked/secret.txt" not in relative
            assert len(errors) == 1
        finally:
            locked.chmod(0o755)

    def test_cancellation(self):
        """Test that a set cancel event stops the walk before the next entry."""
        cancel = threading.Event()
        iterator = walk(self.test_root, cancel_event=cancel)

        assert next(iterator).name == ".git"
        cancel.set()

        assert list(iterator) == []

    def test_stats_tracking(self):
        """Test statistics tracking."""
        walker = FSWalker()
        list(walker.walk(self.test_root))

        stats = walker.get_stats()
        assert stats['entries_visited'] == len(EXPECTED_ORDER)
        # root, .git, docs, docs/api, src
        assert stats['directories_traversed'] == 5
        assert stats['errors'] == 0

        walker.reset_stats()
        assert walker.get_stats()['entries_visited'] == 0


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
class TestFSWalkerSymlinks:
    """Test cases for symbolic link handling."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir)
        (self.test_root / "real").mkdir()
        (self.test_root / "real" / "data.txt").write_text("data\n")

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _relative(self, entries):
        return [entry.path.relative_to(self.test_root).as_posix() for entry in entries]

    def test_symlinked_directory_not_followed_by_default(self):
        """Test that a link to a directory is listed but not descended."""
        os.symlink(self.test_root / "real", self.test_root / "alias")

        entries = list(walk(self.test_root))
        relative = self._relative(entries)

        assert relative == ["alias", "real", "real/data.txt"]
        assert entries[0].kind is EntryKind.DIRECTORY

    def test_symlinked_directory_followed(self):
        """Test descending into linked directories when enabled."""
        os.symlink(self.test_root / "real", self.test_root / "alias")
        config = FinderConfig(traversal={'follow_symlinks': True})

        relative = self._relative(walk(self.test_root, config=config))

        # The target is only walked once; whichever path reaches it first wins
        assert relative == ["alias", "alias/data.txt", "real"]

    def test_symlink_cycle_detected(self):
        """Test that a link back to an ancestor does not loop forever."""
        os.symlink(self.test_root, self.test_root / "real" / "loop")
        config = FinderConfig(traversal={'follow_symlinks': True})

        errors = []
        relative = self._relative(walk(self.test_root, config=config, on_error=errors.append))

        assert relative == ["real", "real/data.txt", "real/loop"]
        assert len(errors) == 1
        assert "symlink cycle" in str(errors[0])

    def test_broken_symlink_reported(self):
        """Test that a dangling link is reported and skipped."""
        os.symlink(self.test_root / "gone", self.test_root / "dangling")

        errors = []
        relative = self._relative(walk(self.test_root, on_error=errors.append))

        assert "dangling" not in relative
        assert len(errors) == 1
        assert "broken symbolic link" in str(errors[0])

    def test_symlinked_file_is_file(self):
        """Test that a link to a file is classified by its target."""
        os.symlink(self.test_root / "real" / "data.txt", self.test_root / "link.txt")

        entries = {e.name: e for e in walk(self.test_root)}
        assert entries["link.txt"].kind is EntryKind.FILE
