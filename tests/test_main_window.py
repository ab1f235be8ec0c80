"""Tests for the application window and its search widgets."""

from __future__ import annotations

import pytest

from sheet_editor.models import SelectionBox
from sheet_editor.widgets.find_panel import match_counter_text
from sheet_editor.widgets.status import SelectionStatus, selection_status_text
from sheet_editor.windows.main_window import MainWindow


@pytest.fixture
def window(qapp, ini_settings):
    win = MainWindow(settings=ini_settings)
    yield win
    win.deleteLater()


class TestStatusText:
    """Test the selection and match counter texts."""

    @pytest.mark.parametrize(
        ("selection", "expected"),
        [
            (None, ""),
            (SelectionBox(0, 0, 0, 0), ""),
            (SelectionBox(0, 0, 2, 1), "2 rows, 3 columns"),
            (SelectionBox(1, 4, 1, 5), "2 rows, 1 columns"),
        ],
    )
    def test_selection_status_text(self, selection, expected: str) -> None:
        """Should describe only multi-cell selections."""
        assert selection_status_text(selection) == expected

    def test_selection_status_visibility(self, qapp) -> None:
        """Should hide itself for single cells."""
        status = SelectionStatus()

        status.update_selection(SelectionBox(0, 0, 1, 1))
        assert status.text() == "2 rows, 2 columns"
        assert not status.isHidden()

        status.update_selection(SelectionBox(0, 0, 0, 0))
        assert status.isHidden()

    def test_match_counter_text(self) -> None:
        """Should show the one-based position of the current match."""
        assert match_counter_text(0, 0) == "No results"
        assert match_counter_text(1, 3) == "2 of 3"


class TestMainWindow:
    """Test MainWindow."""

    def test_new_files(self, window) -> None:
        """Should open untitled documents with the right delimiter."""
        csv_sheet = window.new_file(".csv")
        tsv_sheet = window.new_file(".tsv")

        assert csv_sheet.context.is_untitled
        assert csv_sheet.context.name == "Untitled-1.csv"
        assert tsv_sheet.context.name == "Untitled-2.tsv"
        assert tsv_sheet.text_format.delimiter == "\t"
        assert window.current_sheet() is tsv_sheet
        assert csv_sheet.view.get_data() == [[""]]

    def test_open_file_once(self, window, tmp_path) -> None:
        """Should reuse the tab of an already open file."""
        path = tmp_path / "data.csv"
        path.write_text("a,b\n1,2", encoding="utf-8")

        first = window.open_file(str(path))
        second = window.open_file(str(path))

        assert first is second
        assert len(window.sheets()) == 1
        assert first.view.get_data() == [["a", "b"], ["1", "2"]]

    def test_current_search_is_cached(self, window) -> None:
        """Should keep one search provider per tab."""
        sheet = window.new_file(".csv")

        provider = window.current_search()

        assert provider is window.current_search()
        assert provider.sheet is sheet

    def test_close_tab_ends_search(self, window) -> None:
        """Should stop the tab's search when it closes."""
        window.new_file(".csv")
        provider = window.current_search()
        provider.start_query("x")

        window.close_current_tab()

        assert provider.is_active is False
        assert window.sheets() == []

    def test_save_writes_document(self, window, tmp_path) -> None:
        """Should write the grid's text to disk."""
        path = tmp_path / "data.csv"
        path.write_text("a,b\n1,2", encoding="utf-8")
        sheet = window.open_file(str(path))

        sheet.view.set_value(0, 1, "9")
        window.save_current()

        assert path.read_text(encoding="utf-8") == "a,b\n9,2"
        assert sheet.context.is_dirty is False
