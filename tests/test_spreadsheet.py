"""Tests for keeping the document text and the grid in sync."""

from __future__ import annotations

from PyQt6 import QtCore

from sheet_editor.columns import ColumnType
from sheet_editor.document import DocumentContext
from sheet_editor.layout import FitMode
from sheet_editor.widgets.spreadsheet import SpreadsheetWidget

SAMPLE = "a,b\n1,2\n3,4"


class TestSpreadsheetWidget:
    """Test SpreadsheetWidget."""

    def test_loads_grid_from_text(self, make_sheet) -> None:
        """Should parse the document into untitled columns."""
        sheet = make_sheet(SAMPLE)

        assert sheet.is_ready
        assert sheet.view.get_data() == [["a", "b"], ["1", "2"], ["3", "4"]]
        assert sheet.column_model.titles is None
        assert sheet.get_value() == SAMPLE
        assert sheet.context.is_dirty is False

    def test_toggle_header_keeps_text(self, make_sheet) -> None:
        """Should move the first row into titles without touching the text."""
        sheet = make_sheet(SAMPLE)

        sheet.toggle_header()

        assert sheet.view.get_data() == [["1", "2"], ["3", "4"]]
        assert sheet.column_model.titles == ["a", "b"]
        assert sheet.view.model.headerData(0, QtCore.Qt.Orientation.Horizontal) == "a"
        assert sheet.get_value() == SAMPLE
        assert sheet.context.text() == SAMPLE

        sheet.toggle_header()

        assert sheet.view.get_data() == [["a", "b"], ["1", "2"], ["3", "4"]]
        assert sheet.column_model.titles is None

    def test_toggle_header_on_header_only_document(self, make_sheet) -> None:
        """Should keep the columns and the text when the header is the only row."""
        sheet = make_sheet("name,age")

        sheet.toggle_header()

        assert sheet.view.get_data() == []
        assert sheet.view.column_count() == 2
        assert sheet.column_model.titles == ["name", "age"]
        assert sheet.context.text() == "name,age"

        sheet.insert_row()

        assert sheet.view.get_data() == [["", ""]]
        assert sheet.context.text() == "name,age\n,"

    def test_toggle_header_twice_on_single_row(self, make_sheet) -> None:
        """Should restore a single-row grid after promoting and demoting."""
        sheet = make_sheet("x,y\n")

        sheet.toggle_header()
        sheet.toggle_header()

        assert sheet.view.get_data() == [["x", "y"]]
        assert sheet.column_model.titles is None
        assert sheet.context.text() == "x,y\n"

    def test_trailing_blank_line_round_trips(self, make_sheet) -> None:
        """Should write back a blank last line after an edit."""
        sheet = make_sheet("a\nb\n\n")

        assert sheet.view.get_data() == [["a"], ["b"], [""]]

        sheet.view.set_value(0, 0, "z")

        assert sheet.context.text() == "z\nb\n\n"

    def test_crlf_file_with_multiline_cell(self, make_sheet) -> None:
        """Should keep CRLF record breaks around a quoted bare LF."""
        text = '"a\nb",c\r\n1,2\r\n'
        sheet = make_sheet(text)

        sheet.view.set_value(0, 1, "9")

        assert sheet.context.text() == '"a\nb",c\r\n9,2\r\n'

    def test_tsv_extension_pins_tab(self, make_sheet) -> None:
        """Should not guess the delimiter for .tsv files."""
        sheet = make_sheet("a,b\tc", path="data.tsv")

        assert sheet.view.get_data() == [["a,b", "c"]]
        assert sheet.text_format.delimiter == "\t"

    def test_cell_edit_updates_document(self, make_sheet) -> None:
        """Should serialize grid edits back into the document."""
        sheet = make_sheet(SAMPLE)
        events = []
        sheet.changed.connect(lambda: events.append(True))

        sheet.view.set_value(1, 2, "x")

        assert sheet.context.text() == "a,b\n1,2\n3,x"
        assert sheet.context.is_dirty is True
        assert events

    def test_external_change_reparses(self, make_sheet) -> None:
        """Should rebuild the grid when the document text changes elsewhere."""
        sheet = make_sheet(SAMPLE)

        sheet.context.set_text("x;y\n1;2")

        assert sheet.view.get_data() == [["x;y"], ["1;2"]]
        assert sheet.get_value() == "x;y\n1;2"

    def test_external_change_keeps_header_mode(self, make_sheet) -> None:
        """Should re-promote the first row while the header is on."""
        sheet = make_sheet(SAMPLE)
        sheet.toggle_header()

        sheet.context.set_text("p,q\n5,6")

        assert sheet.column_model.titles == ["p", "q"]
        assert sheet.view.get_data() == [["5", "6"]]
        assert sheet.context.text() == "p,q\n5,6"

    def test_insert_and_remove_column(self, make_sheet) -> None:
        """Should add and drop trailing columns and keep types aligned."""
        sheet = make_sheet(SAMPLE)
        sheet.set_column_type(1, ColumnType.NUMERIC)

        sheet.insert_column()

        assert sheet.context.text() == "a,b,\n1,2,\n3,4,"
        assert sheet.column_model.column_type(1) == ColumnType.NUMERIC
        assert sheet.column_model.column_type(2) == ColumnType.TEXT

        sheet.remove_column()

        assert sheet.context.text() == SAMPLE

    def test_insert_and_remove_row(self, make_sheet) -> None:
        """Should add and drop the last row."""
        sheet = make_sheet(SAMPLE)

        sheet.insert_row()
        assert sheet.context.text() == "a,b\n1,2\n3,4\n,"

        sheet.remove_row()
        assert sheet.context.text() == SAMPLE

    def test_undo_redo(self, make_sheet) -> None:
        """Should restore earlier grid states and their text."""
        sheet = make_sheet(SAMPLE)
        sheet.view.set_value(0, 0, "z")

        sheet.undo()
        assert sheet.context.text() == SAMPLE

        sheet.redo()
        assert sheet.context.text() == "z,b\n1,2\n3,4"

    def test_set_column_type_rebuilds(self, make_sheet) -> None:
        """Should rebuild the grid with the new column type."""
        sheet = make_sheet(SAMPLE)
        rebuilt = []
        sheet.rebuilt.connect(lambda: rebuilt.append(True))

        sheet.set_column_type(0, ColumnType.HIDDEN)

        assert rebuilt
        assert sheet.view.config().columns[0].type == ColumnType.HIDDEN
        assert sheet.view.table.isColumnHidden(0)
        assert sheet.get_value() == SAMPLE

    def test_type_bar_selection(self, make_sheet) -> None:
        """Should apply types picked in the column type bar."""
        sheet = make_sheet(SAMPLE)

        sheet.type_bar.type_selected.emit(1, ColumnType.CHECKBOX)

        assert sheet.column_model.column_type(1) == ColumnType.CHECKBOX
        assert sheet.type_bar.column_types() == [ColumnType.TEXT, ColumnType.CHECKBOX]

    def test_freeze_and_unfreeze(self, make_sheet) -> None:
        """Should freeze through the rightmost selected column."""
        sheet = make_sheet(SAMPLE)

        sheet.freeze_selected_columns()
        assert sheet.has_frozen_columns is False

        sheet.view.select_cell(1, 0)
        sheet.freeze_selected_columns()
        assert sheet.view.config().freeze_columns == 2

        sheet.unfreeze_columns()
        assert sheet.view.config().freeze_columns is None

    def test_fit_mode_cycle(self, make_sheet) -> None:
        """Should start small grids fitted to content and cycle on request."""
        sheet = make_sheet(SAMPLE)

        assert sheet.fit_mode == FitMode.FIT_CELLS
        assert sheet.cycle_fit_mode() == FitMode.ALL_EQUAL_FIT
        assert sheet.cycle_fit_mode() == FitMode.ALL_EQUAL_DEFAULT
        assert sheet.view.column_width(0) == sheet.view.default_column_width()

    def test_toggle_index(self, make_sheet) -> None:
        """Should hide and show row numbers."""
        sheet = make_sheet(SAMPLE)

        sheet.toggle_index()
        assert sheet.view.index_visible() is False
        assert sheet.view.gutter_width() == 0

        sheet.toggle_index()
        assert sheet.view.index_visible() is True

    def test_parse_warnings(self, make_sheet) -> None:
        """Should expose rows that did not fit the column count."""
        sheet = make_sheet("a,b,c\n1,2")

        assert [warning.row for warning in sheet.parse_warnings] == [1]

    def test_selection(self, make_sheet) -> None:
        """Should report the selected box."""
        sheet = make_sheet(SAMPLE)
        boxes = []
        sheet.selection_changed.connect(boxes.append)

        sheet.view.select_cell(1, 2)

        assert sheet.selection().left == 1
        assert sheet.selection().top == 2
        assert boxes and boxes[-1] == sheet.selection()

    def test_operations_before_ready_are_ignored(self, qapp, tmp_path) -> None:
        """Should do nothing until the document is loaded."""
        path = tmp_path / "late.csv"
        path.write_text("k,v\n1,2", encoding="utf-8")
        context = DocumentContext(str(path))
        sheet = SpreadsheetWidget(context)

        sheet.insert_row()
        sheet.toggle_header()
        sheet.freeze_selected_columns()
        sheet.undo()
        assert sheet.view is None
        assert sheet.selection() is None

        context.load()

        assert sheet.is_ready
        assert sheet.view.get_data() == [["k", "v"], ["1", "2"]]
        sheet.deleteLater()
