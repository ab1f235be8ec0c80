import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from PyQt6 import QtCore, QtGui, QtWidgets

from sheet_editor.codec import CellValue, Grid
from sheet_editor.columns import ColumnDescriptor, ColumnType
from sheet_editor.models import Coordinates, GridConfig, SelectionBox, SheetTableModel

logger = logging.getLogger(__name__)

CELL_PADDING = 6
SCROLL_MARGIN = 3


def needs_scroll(cell: QtCore.QRect, viewport: QtCore.QRect, margin: int = SCROLL_MARGIN) -> bool:
    if cell.isEmpty():
        return True
    area = viewport.adjusted(-margin, -margin, margin, margin)
    return not area.contains(cell)


class SheetView(QtWidgets.QWidget):
    cell_edited = QtCore.pyqtSignal(int, int)
    rows_inserted = QtCore.pyqtSignal(int, int)
    rows_removed = QtCore.pyqtSignal(int, int)
    rows_moved = QtCore.pyqtSignal(int, int)
    columns_inserted = QtCore.pyqtSignal(int, int)
    columns_removed = QtCore.pyqtSignal(int, int)
    columns_moved = QtCore.pyqtSignal(int, int)
    column_resized = QtCore.pyqtSignal(int, int, int)
    selection_changed = QtCore.pyqtSignal(object)
    data_changed = QtCore.pyqtSignal()
    grid_reset = QtCore.pyqtSignal()
    rebuilt = QtCore.pyqtSignal()

    def __init__(
        self,
        rows: Grid,
        config: GridConfig,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._config = replace(config, columns=list(config.columns))
        self._model = SheetTableModel(rows, self._config.columns, self)
        self._table: Optional[QtWidgets.QTableView] = None
        self._frozen: Optional[QtWidgets.QTableView] = None
        self._undo_stack: List[Tuple[Grid, List[ColumnDescriptor]]] = []
        self._undo_index = -1
        self._ignore_history = False

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._layout = layout

        self._model.cell_edited.connect(self._on_cell_edited)
        self._model.rowsInserted.connect(
            lambda _, first, last: self._on_structure_changed(self.rows_inserted, first, last - first + 1)
        )
        self._model.rowsRemoved.connect(
            lambda _, first, last: self._on_structure_changed(self.rows_removed, first, last - first + 1)
        )
        self._model.rowsMoved.connect(
            lambda _, start, __, ___, row: self._on_structure_changed(
                self.rows_moved, start, row - 1 if row > start else row
            )
        )
        self._model.columnsInserted.connect(
            lambda _, first, last: self._on_structure_changed(self.columns_inserted, first, last - first + 1)
        )
        self._model.columnsRemoved.connect(
            lambda _, first, last: self._on_structure_changed(self.columns_removed, first, last - first + 1)
        )
        self._model.columnsMoved.connect(
            lambda _, start, __, ___, column: self._on_structure_changed(
                self.columns_moved, start, column - 1 if column > start else column
            )
        )
        self._model.modelReset.connect(self._on_model_reset)

        self._build()
        self._push_history()

    @property
    def model(self) -> SheetTableModel:
        return self._model

    @property
    def table(self) -> QtWidgets.QTableView:
        return self._table

    def config(self) -> GridConfig:
        return replace(self._config, columns=self._model.columns())

    def rebuild(self, config: GridConfig) -> None:
        widths = [self.column_width(col) for col in range(self.column_count())]
        selection = self.selection_box()
        self._destroy()
        self._config = replace(config, columns=list(config.columns))
        self._model.set_columns(self._config.columns)
        self._build()
        self.set_column_widths(widths)
        if selection is not None:
            self.select_cell(selection.left, selection.top)
        logger.debug("Grid view rebuilt (freeze_columns=%s)", self._config.freeze_columns)
        self.rebuilt.emit()

    def _destroy(self) -> None:
        if self._frozen is not None:
            self._frozen.setParent(None)
            self._frozen.deleteLater()
            self._frozen = None
        if self._table is not None:
            self._table.removeEventFilter(self)
            self._layout.removeWidget(self._table)
            self._table.setParent(None)
            self._table.deleteLater()
            self._table = None

    def _build(self) -> None:
        table = QtWidgets.QTableView(self)
        table.setModel(self._model)
        table.setAlternatingRowColors(True)
        table.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectionBehavior.SelectItems)
        table.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.ExtendedSelection)
        table.setTextElideMode(QtCore.Qt.TextElideMode.ElideNone)
        table.setHorizontalScrollMode(QtWidgets.QAbstractItemView.ScrollMode.ScrollPerPixel)
        table.setVerticalScrollMode(QtWidgets.QAbstractItemView.ScrollMode.ScrollPerPixel)
        table.horizontalHeader().setDefaultSectionSize(self._config.default_column_width)
        table.horizontalHeader().setSectionsMovable(False)
        table.verticalHeader().setVisible(self._config.index_visible)
        table.horizontalHeader().sectionResized.connect(self._on_section_resized)
        table.selectionModel().selectionChanged.connect(self._on_selection_changed)
        table.installEventFilter(self)
        self._layout.addWidget(table)
        self._table = table
        self._apply_hidden_columns()
        if self._config.freeze_columns:
            self._build_frozen(self._config.freeze_columns)

    def _build_frozen(self, count: int) -> None:
        table = self.table
        frozen = QtWidgets.QTableView(table)
        frozen.setModel(self._model)
        frozen.setSelectionModel(table.selectionModel())
        frozen.setFocusPolicy(QtCore.Qt.FocusPolicy.NoFocus)
        frozen.verticalHeader().hide()
        frozen.horizontalHeader().setSectionResizeMode(QtWidgets.QHeaderView.ResizeMode.Fixed)
        frozen.setHorizontalScrollBarPolicy(QtCore.Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        frozen.setVerticalScrollBarPolicy(QtCore.Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        frozen.setVerticalScrollMode(QtWidgets.QAbstractItemView.ScrollMode.ScrollPerPixel)
        frozen.setStyleSheet("QTableView { border: none; border-right: 2px solid palette(mid); }")
        table.viewport().stackUnder(frozen)
        for col in range(self._model.columnCount()):
            frozen.setColumnHidden(col, col >= count or self._model.column_type(col) == ColumnType.HIDDEN)
        for row in range(self._model.rowCount()):
            frozen.setRowHeight(row, table.rowHeight(row))
        table.verticalHeader().sectionResized.connect(
            lambda row, _, size: frozen.setRowHeight(row, size)
        )
        frozen.verticalScrollBar().valueChanged.connect(table.verticalScrollBar().setValue)
        table.verticalScrollBar().valueChanged.connect(frozen.verticalScrollBar().setValue)
        self._frozen = frozen
        frozen.show()
        self._update_frozen_geometry()

    def _update_frozen_geometry(self) -> None:
        if self._frozen is None or self._table is None:
            return
        table = self._table
        count = self._config.freeze_columns or 0
        width = sum(table.columnWidth(col) for col in range(min(count, self._model.columnCount())))
        for col in range(min(count, self._model.columnCount())):
            self._frozen.setColumnWidth(col, table.columnWidth(col))
        frame = table.frameWidth()
        self._frozen.setGeometry(
            self.gutter_width() + frame,
            frame,
            width,
            table.viewport().height() + table.horizontalHeader().height(),
        )

    def _apply_hidden_columns(self) -> None:
        if self._table is None:
            return
        for col in range(self._model.columnCount()):
            self._table.setColumnHidden(col, self._model.column_type(col) == ColumnType.HIDDEN)

    def eventFilter(self, obj: QtCore.QObject, event: QtCore.QEvent) -> bool:
        if obj is self._table and event.type() == QtCore.QEvent.Type.Resize:
            self._update_frozen_geometry()
        return super().eventFilter(obj, event)

    def horizontal_header(self) -> QtWidgets.QHeaderView:
        return self.table.horizontalHeader()

    def row_count(self) -> int:
        return self._model.rowCount()

    def column_count(self) -> int:
        return self._model.columnCount()

    def get_data(self) -> Grid:
        return self._model.grid()

    def set_data(
        self, rows: Grid, columns: Optional[List[ColumnDescriptor]] = None, width: Optional[int] = None
    ) -> None:
        self._model.set_grid(rows, columns, width)
        self._apply_hidden_columns()

    def get_value(self, column: int, row: int) -> CellValue:
        return self._model.value(column, row)

    def set_value(self, column: int, row: int, value: CellValue) -> bool:
        return self._model.set_value(column, row, value)

    def default_column_width(self) -> int:
        return self._config.default_column_width

    def column_width(self, column: int) -> int:
        return self.table.columnWidth(column)

    def set_column_width(self, column: int, width: float) -> None:
        self.table.setColumnWidth(column, max(1, int(round(width))))

    def set_column_widths(self, widths: Sequence[float]) -> None:
        for column, width in enumerate(widths[: self.column_count()]):
            self.set_column_width(column, width)
        self._update_frozen_geometry()

    def gutter_width(self) -> int:
        if not self._config.index_visible:
            return 0
        header = self.table.verticalHeader()
        return header.width() or header.sizeHint().width()

    def viewport_width(self) -> int:
        table = self.table
        width = table.width() - 2 * table.frameWidth()
        scrollbar = table.verticalScrollBar()
        if scrollbar.isVisible():
            width -= scrollbar.width()
        return max(0, width)

    def measure_text(self, text: str) -> int:
        metrics = QtGui.QFontMetrics(self.table.font())
        widest = max((metrics.horizontalAdvance(line) for line in text.split("\n")), default=0)
        return widest + CELL_PADDING * 2

    def index_visible(self) -> bool:
        return self._config.index_visible

    def set_index_visible(self, visible: bool) -> None:
        self._config.index_visible = visible
        self.table.verticalHeader().setVisible(visible)
        self._update_frozen_geometry()

    def selected_columns(self) -> List[int]:
        indexes = self.table.selectionModel().selectedIndexes()
        return sorted({index.column() for index in indexes})

    def selected_rows(self) -> List[int]:
        indexes = self.table.selectionModel().selectedIndexes()
        return sorted({index.row() for index in indexes})

    def selection_box(self) -> Optional[SelectionBox]:
        if self._table is None:
            return None
        indexes = self._table.selectionModel().selectedIndexes()
        if not indexes:
            return None
        rows = [index.row() for index in indexes]
        cols = [index.column() for index in indexes]
        return SelectionBox(min(cols), min(rows), max(cols), max(rows))

    def current_cell(self) -> Optional[Coordinates]:
        current = self.table.selectionModel().currentIndex()
        if not current.isValid():
            return None
        return Coordinates(current.column(), current.row())

    def select_cell(self, column: int, row: int) -> None:
        index = self._model.index(row, column)
        if not index.isValid():
            return
        selection = self.table.selectionModel()
        selection.clearSelection()
        selection.setCurrentIndex(index, QtCore.QItemSelectionModel.SelectionFlag.ClearAndSelect)

    def clear_selection(self) -> None:
        selection = self.table.selectionModel()
        selection.clearSelection()
        selection.setCurrentIndex(QtCore.QModelIndex(), QtCore.QItemSelectionModel.SelectionFlag.NoUpdate)

    def cell_rect(self, column: int, row: int) -> QtCore.QRect:
        return self.table.visualRect(self._model.index(row, column))

    def scroll_cell_into_view(self, column: int, row: int, margin: int = SCROLL_MARGIN) -> bool:
        index = self._model.index(row, column)
        if not index.isValid():
            return False
        if not needs_scroll(self.cell_rect(column, row), self.table.viewport().rect(), margin):
            return False
        self.table.scrollTo(index, QtWidgets.QAbstractItemView.ScrollHint.EnsureVisible)
        return True

    def set_backlight(self, coordinates: Iterable[Coordinates], enabled: bool) -> None:
        self._model.set_backlit(coordinates, enabled)

    def backlit(self) -> set:
        return self._model.backlit()

    def clear_backlight(self) -> None:
        self._model.set_backlit(self._model.backlit(), False)

    def insert_row(self, index: Optional[int] = None, count: int = 1) -> None:
        self._model.insertRows(self.row_count() if index is None else index, count)

    def delete_row(self, index: int, count: int = 1) -> None:
        self._model.removeRows(index, count)

    def insert_column(self, index: Optional[int] = None, count: int = 1) -> None:
        self._model.insertColumns(self.column_count() if index is None else index, count)

    def delete_column(self, index: int, count: int = 1) -> None:
        self._model.removeColumns(index, count)

    def move_row(self, source: int, target: int) -> None:
        self._model.move_row(source, target)

    def move_column(self, source: int, target: int) -> None:
        self._model.move_column(source, target)

    def _on_cell_edited(self, column: int, row: int) -> None:
        self._push_history()
        self.cell_edited.emit(column, row)
        self.data_changed.emit()

    def _on_structure_changed(self, signal, start: int, value: int) -> None:
        self._apply_hidden_columns()
        self._update_frozen_geometry()
        self._push_history()
        signal.emit(start, value)
        self.data_changed.emit()

    def _on_model_reset(self) -> None:
        self._update_frozen_geometry()
        self._push_history()
        self.grid_reset.emit()
        self.data_changed.emit()

    def _on_section_resized(self, column: int, old_size: int, new_size: int) -> None:
        self._update_frozen_geometry()
        self.column_resized.emit(column, old_size, new_size)

    def _on_selection_changed(self, *_: object) -> None:
        self.selection_changed.emit(self.selection_box())

    def _snapshot(self) -> Tuple[Grid, List[ColumnDescriptor]]:
        return self._model.grid(), self._model.columns()

    def _push_history(self) -> None:
        if self._ignore_history:
            return
        snapshot = self._snapshot()
        if 0 <= self._undo_index < len(self._undo_stack):
            if self._undo_stack[self._undo_index] == snapshot:
                return
        if self._undo_index < len(self._undo_stack) - 1:
            self._undo_stack = self._undo_stack[: self._undo_index + 1]
        self._undo_stack.append(snapshot)
        self._undo_index = len(self._undo_stack) - 1

    def can_undo(self) -> bool:
        return self._undo_index > 0

    def can_redo(self) -> bool:
        return self._undo_index < len(self._undo_stack) - 1

    def undo(self) -> None:
        if not self.can_undo():
            return
        self._undo_index -= 1
        self._restore_history(self._undo_stack[self._undo_index])

    def redo(self) -> None:
        if not self.can_redo():
            return
        self._undo_index += 1
        self._restore_history(self._undo_stack[self._undo_index])

    def _restore_history(self, snapshot: Tuple[Grid, List[ColumnDescriptor]]) -> None:
        rows, columns = snapshot
        self._ignore_history = True
        try:
            self.set_data([list(row) for row in rows], list(columns))
        finally:
            self._ignore_history = False

    def clear_history(self) -> None:
        self._undo_stack = []
        self._undo_index = -1
        self._push_history()
