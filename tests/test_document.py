"""Tests for the document text holder."""

from __future__ import annotations

import pytest

from sheet_editor.document import DocumentContext


class TestDocumentContext:
    """Test DocumentContext."""

    def test_from_text_is_ready_and_untitled(self) -> None:
        """Should start ready with the given text."""
        context = DocumentContext.from_text("a,b", "/tmp/Untitled-1.csv")

        assert context.is_ready
        assert context.is_untitled
        assert context.text() == "a,b"
        assert context.name == "Untitled-1.csv"

    def test_set_text_marks_dirty_once(self) -> None:
        """Should only announce real changes."""
        context = DocumentContext.from_text("a", "x.csv")
        changes = []
        dirty = []
        context.content_changed.connect(lambda: changes.append(True))
        context.dirty_changed.connect(dirty.append)

        context.set_text("a")
        context.set_text("b")
        context.set_text("c")

        assert len(changes) == 2
        assert dirty == [True]
        assert context.is_dirty

    def test_load_and_save(self, tmp_path) -> None:
        """Should read and write the file byte for byte."""
        path = tmp_path / "data.csv"
        path.write_bytes(b"a,b\r\n1,2\r\n")
        context = DocumentContext(str(path))
        ready = []
        context.ready.connect(lambda: ready.append(True))

        context.load()
        assert ready == [True]
        assert context.text() == "a,b\r\n1,2\r\n"

        context.set_text("a,b\r\n3,4\r\n")
        context.save()

        assert path.read_bytes() == b"a,b\r\n3,4\r\n"
        assert context.is_dirty is False

    def test_save_as_changes_path(self, tmp_path) -> None:
        """Should adopt the new path and stop being untitled."""
        context = DocumentContext.from_text("x", str(tmp_path / "Untitled-1.csv"))
        paths = []
        context.path_changed.connect(paths.append)
        target = tmp_path / "named.csv"

        context.save(str(target))

        assert context.path == str(target)
        assert paths == [str(target)]
        assert context.is_untitled is False
        assert target.read_text(encoding="utf-8") == "x"

    def test_reload_announces_external_change(self, tmp_path) -> None:
        """Should notify listeners when the file changed on disk."""
        path = tmp_path / "data.csv"
        path.write_text("a", encoding="utf-8")
        context = DocumentContext(str(path))
        context.load()
        changes = []
        context.content_changed.connect(lambda: changes.append(True))

        context.reload()
        path.write_text("b", encoding="utf-8")
        context.reload()

        assert changes == [True]
        assert context.text() == "b"

    def test_save_error_propagates(self, tmp_path) -> None:
        """Should raise file system errors to the caller."""
        context = DocumentContext.from_text("x", str(tmp_path / "missing" / "dir" / "a.csv"))

        with pytest.raises(OSError):
            context.save()
