from typing import Optional

from PyQt6 import QtWidgets

from sheet_editor.models import SelectionBox


def selection_status_text(selection: Optional[SelectionBox]) -> str:
    if selection is None or (selection.rows == 1 and selection.columns == 1):
        return ""
    return f"{selection.rows} rows, {selection.columns} columns"


class SelectionStatus(QtWidgets.QLabel):
    """Status bar item describing the size of a multi-cell selection."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.hide()

    def update_selection(self, selection: Optional[SelectionBox]) -> None:
        text = selection_status_text(selection)
        self.setText(text)
        self.setVisible(bool(text))
