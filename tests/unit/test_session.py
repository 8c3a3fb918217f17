"""
Unit tests for SearchSession.
"""

import os
import tempfile
import shutil
import threading
from pathlib import Path
import pytest

from fsfind.errors import RootNotFoundError
from fsfind.models.config import FinderConfig
from fsfind.models.search_query import SearchMode
from fsfind.tools.search_engine import SearchEngine
from fsfind.tools.session import SearchSession
from fsfind.tools.streaming import SearchStatus


class TestSearchSession:
    """Test cases for SearchSession."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir)
        (self.test_root / "one").mkdir()
        (self.test_root / "one" / "notes.txt").write_text("first\n")
        (self.test_root / "two").mkdir()
        (self.test_root / "two" / "notes.md").write_text("second\n")

        self.session = SearchSession(
            root=self.test_root / "one",
            config=FinderConfig(streaming={'poll_interval': 0.01}),
        )

    def teardown_method(self):
        """Clean up test fixtures."""
        self.session.close(5)
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_root_defaults_to_cwd(self):
        assert SearchSession().root == os.getcwd()

    def test_search_uses_current_root(self):
        """Test that searches run in the session's root."""
        handle = self.session.start("notes")

        assert handle.collect() == [str(self.test_root / "one" / "notes.txt")]
        assert self.session.active is handle

    def test_change_root(self):
        """Test that later searches see the new root."""
        self.session.change_root(self.test_root / "two")
        handle = self.session.start("second", mode=SearchMode.CONTENT)

        assert self.session.root == str(self.test_root / "two")
        assert handle.collect() == [str(self.test_root / "two" / "notes.md")]

    def test_running_search_keeps_its_root(self):
        """Test that changing the root does not affect a search in flight."""
        handle = self.session.start("notes")
        self.session.change_root(self.test_root / "two")

        assert handle.request.root == str(self.test_root / "one")
        assert handle.collect() == [str(self.test_root / "one" / "notes.txt")]

    def test_new_search_cancels_previous(self):
        """Test that only the latest search stays active."""
        first = self.session.start("notes")
        second = self.session.start("notes")

        assert self.session.active is second
        assert first.done or first.cancelled
        assert first.join(5)
        assert not second.cancelled

    def test_finished_search_not_cancelled(self):
        """Test that a search whose stream already ended is left alone."""
        first = self.session.start("notes")
        first.collect()

        self.session.start("notes")
        assert not first.cancelled
        assert first.status is SearchStatus.COMPLETED

    def test_start_error_leaves_no_active_search(self):
        """Test that a failed start does not keep the superseded handle."""
        self.session.start("notes")
        self.session.change_root(self.test_root / "missing")

        with pytest.raises(RootNotFoundError):
            self.session.start("notes")
        assert self.session.active is None

    def test_cancel_and_close(self):
        """Test explicit cancellation and shutdown."""
        handle = self.session.start("notes")
        self.session.cancel()
        assert handle.cancelled

        self.session.close(5)
        assert self.session.active is None
        assert handle.join(0)

    def test_shared_engine(self):
        """Test that a session can reuse an existing engine."""
        engine = SearchEngine()
        session = SearchSession(root=self.test_root, engine=engine)

        assert session.engine is engine

    def test_concurrent_root_changes(self):
        """Test that root updates from other threads are safe."""
        roots = [self.test_root / "one", self.test_root / "two"]

        def flip():
            for index in range(200):
                self.session.change_root(roots[index % 2])

        threads = [threading.Thread(target=flip) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert self.session.root in {str(root) for root in roots}
