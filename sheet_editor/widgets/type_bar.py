from typing import List, Optional

from PyQt6 import QtCore, QtWidgets

from sheet_editor.columns import ColumnDescriptor, ColumnType
from sheet_editor.widgets.sheet_view import SheetView


class ColumnTypeBar(QtWidgets.QWidget):
    """Strip of per-column type pickers kept aligned with the grid's header sections."""

    type_selected = QtCore.pyqtSignal(int, object)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._view: Optional[SheetView] = None
        self._combos: List[QtWidgets.QComboBox] = []
        sample_combo = QtWidgets.QComboBox(self)
        self.setFixedHeight(sample_combo.sizeHint().height())
        sample_combo.deleteLater()
        self.setContextMenuPolicy(QtCore.Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)

    def bind(self, view: SheetView) -> None:
        self._view = view
        header = view.horizontal_header()
        header.sectionResized.connect(lambda *_: self.sync_geometry())
        view.table.horizontalScrollBar().valueChanged.connect(lambda *_: self.sync_geometry())
        self.set_columns(view.config().columns)

    def set_columns(self, columns: List[ColumnDescriptor]) -> None:
        for combo in self._combos:
            combo.setParent(None)
            combo.deleteLater()
        self._combos = []
        for col, descriptor in enumerate(columns):
            combo = QtWidgets.QComboBox(self)
            for column_type in ColumnType:
                combo.addItem(column_type.value, column_type)
            combo.setCurrentIndex(combo.findData(descriptor.type))
            combo.setToolTip(f"Column {col + 1} type")
            combo.activated.connect(lambda _, c=col, box=combo: self._on_activated(c, box))
            combo.show()
            self._combos.append(combo)
        self.sync_geometry()

    def column_types(self) -> List[ColumnType]:
        return [combo.currentData() for combo in self._combos]

    def sync_geometry(self) -> None:
        if self._view is None:
            return
        header = self._view.horizontal_header()
        offset = self._view.gutter_width() + self._view.table.frameWidth()
        for col, combo in enumerate(self._combos):
            width = header.sectionSize(col)
            if header.isSectionHidden(col) or width <= 0:
                combo.hide()
                continue
            x = offset + header.sectionViewportPosition(col)
            combo.setGeometry(x, 0, width, self.height())
            combo.show()

    def resizeEvent(self, event) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        self.sync_geometry()

    def _on_activated(self, column: int, combo: QtWidgets.QComboBox) -> None:
        column_type = combo.currentData()
        if isinstance(column_type, ColumnType):
            self.type_selected.emit(column, column_type)

    def _show_context_menu(self, position: QtCore.QPoint) -> None:
        hidden = [
            col for col, column_type in enumerate(self.column_types()) if column_type == ColumnType.HIDDEN
        ]
        menu = QtWidgets.QMenu(self)
        reveal = menu.addAction("Reveal Hidden Columns")
        reveal.setEnabled(bool(hidden))
        reveal.triggered.connect(lambda: self._reveal(hidden))
        menu.exec(self.mapToGlobal(position))

    def _reveal(self, columns: List[int]) -> None:
        for col in columns:
            self.type_selected.emit(col, ColumnType.TEXT)
