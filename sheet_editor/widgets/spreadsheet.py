import logging
from typing import List, Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from sheet_editor.codec import (
    Grid,
    ParseWarning,
    TextFormat,
    delimiter_for_path,
    parse_text,
    promote_header,
    serialize_grid,
)
from sheet_editor.columns import ColumnModel, ColumnType
from sheet_editor.document import DocumentContext
from sheet_editor.layout import FitMode, LayoutEngine
from sheet_editor.models import GridConfig, SelectionBox
from sheet_editor.settings import EditorSettings
from sheet_editor.widgets.sheet_view import SheetView
from sheet_editor.widgets.type_bar import ColumnTypeBar

logger = logging.getLogger(__name__)


class SpreadsheetWidget(QtWidgets.QWidget):
    changed = QtCore.pyqtSignal()
    ready = QtCore.pyqtSignal()
    rebuilt = QtCore.pyqtSignal()
    selection_changed = QtCore.pyqtSignal(object)

    def __init__(
        self,
        context: DocumentContext,
        settings: Optional[EditorSettings] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._context = context
        self._settings = settings or EditorSettings()
        self._delimiter = delimiter_for_path(context.path)
        self._text_format = TextFormat(delimiter=self._delimiter or ",")
        self._warnings: List[ParseWarning] = []
        self._columns = ColumnModel(self)
        self._layout_engine = LayoutEngine(self._settings.fit_cells_limit)
        self._view: Optional[SheetView] = None
        self.active_search = None

        self._type_bar = ColumnTypeBar(self)
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._type_bar)
        self._layout = layout

        self._columns.structure_changed.connect(self._on_column_structure_changed)
        self._type_bar.type_selected.connect(self.set_column_type)

        if context.is_ready:
            self._on_context_ready()
        else:
            context.ready.connect(self._on_context_ready)

    @property
    def context(self) -> DocumentContext:
        return self._context

    @property
    def view(self) -> Optional[SheetView]:
        return self._view

    @property
    def column_model(self) -> ColumnModel:
        return self._columns

    @property
    def type_bar(self) -> ColumnTypeBar:
        return self._type_bar

    @property
    def text_format(self) -> TextFormat:
        return self._text_format

    @property
    def parse_warnings(self) -> List[ParseWarning]:
        return list(self._warnings)

    @property
    def fit_mode(self) -> FitMode:
        return self._layout_engine.mode

    @property
    def layout_engine(self) -> LayoutEngine:
        return self._layout_engine

    @property
    def is_ready(self) -> bool:
        return self._view is not None

    @property
    def has_frozen_columns(self) -> bool:
        return self._view is not None and bool(self._view.config().freeze_columns)

    def _parse_value(self, content: str) -> Grid:
        result = parse_text(content, self._delimiter)
        if not self._delimiter:
            self._delimiter = result.text_format.delimiter
        self._text_format = result.text_format
        self._warnings = result.warnings
        return result.grid

    def _on_context_ready(self) -> None:
        if self._view is not None:
            return
        grid = self._parse_value(self._context.text())
        width = len(grid[0]) if grid else 0
        self._columns.resize(width)
        config = GridConfig(
            columns=self._columns.columns(width),
            default_column_width=self._settings.default_column_width,
        )
        view = SheetView(grid, config, self)
        self._layout.addWidget(view)
        self._view = view

        view.data_changed.connect(self._on_grid_changed)
        view.grid_reset.connect(self._on_grid_reset)
        view.columns_inserted.connect(self._on_columns_inserted)
        view.columns_removed.connect(self._on_columns_removed)
        view.columns_moved.connect(self._on_columns_moved)
        view.column_resized.connect(lambda *_: self._type_bar.sync_geometry())
        view.selection_changed.connect(self.selection_changed.emit)
        self._context.content_changed.connect(self._on_content_changed)
        self._type_bar.bind(view)

        self._layout_engine.initial_mode(view.row_count(), view.column_count())
        self.relayout()
        self.ready.emit()

    def get_value(self) -> str:
        if self._view is None:
            return self._context.text()
        titles = self._columns.titles if self._columns.header_enabled else None
        return serialize_grid(self._view.get_data(), self._text_format, titles)

    def set_value(self, value: str) -> None:
        if self._view is None:
            return
        grid = self._parse_value(value)
        if self._columns.header_enabled:
            titles, grid = promote_header(grid)
            self._columns.set_titles(titles)
        width = len(grid[0]) if grid else len(self._columns.titles or [])
        self._columns.resize(width)
        self._view.set_data(grid, self._columns.columns(width), width)
        self._view.clear_history()
        self._type_bar.set_columns(self._view.config().columns)
        if self._layout_engine.mode == FitMode.FIT_CELLS:
            self.relayout()

    def update_model(self) -> None:
        if self._view is None:
            return
        self._context.set_text(self.get_value())

    def _on_grid_changed(self) -> None:
        self.update_model()
        self.changed.emit()

    def _on_grid_reset(self) -> None:
        if self._view is None:
            return
        self._columns.sync(self._view.config().columns)
        self._type_bar.set_columns(self._view.config().columns)

    def _on_content_changed(self) -> None:
        old_value = self.get_value()
        new_value = self._context.text()
        if old_value != new_value:
            logger.debug("Document changed outside the grid; re-parsing %s", self._context.name)
            self.set_value(new_value)

    def _on_columns_inserted(self, index: int, count: int) -> None:
        self._columns.insert_columns(index, count)
        self._after_column_count_changed()

    def _on_columns_removed(self, index: int, count: int) -> None:
        self._columns.remove_columns(index, count)
        self._after_column_count_changed()

    def _on_columns_moved(self, source: int, target: int) -> None:
        self._columns.move_column(source, target)
        self._type_bar.set_columns(self._view.config().columns if self._view else [])

    def _after_column_count_changed(self) -> None:
        if self._view is None:
            return
        self._type_bar.set_columns(self._view.config().columns)
        self._on_resize()

    def _on_resize(self) -> None:
        if self._view is None:
            return
        if self._layout_engine.mode == FitMode.ALL_EQUAL_FIT:
            self.relayout()
        self._type_bar.sync_geometry()

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        self._on_resize()

    def showEvent(self, event: QtGui.QShowEvent) -> None:  # noqa: N802 - Qt override
        super().showEvent(event)
        self.relayout()

    def relayout(self) -> None:
        if self._view is None:
            return
        self._layout_engine.relayout(self._view, self._columns.titles)
        self._type_bar.sync_geometry()

    def cycle_fit_mode(self) -> Optional[FitMode]:
        if self._view is None:
            return None
        mode = self._layout_engine.cycle()
        self.relayout()
        return mode

    def set_column_type(self, index: int, column_type: ColumnType) -> None:
        if self._view is None or not (0 <= index < self._view.column_count()):
            return
        self._columns.set_column_type(index, column_type)

    def _on_column_structure_changed(self) -> None:
        if self._view is None:
            return
        config = self._view.config()
        config.columns = self._columns.columns(self._view.column_count())
        self._rebuild(config)

    def freeze_selected_columns(self) -> None:
        if self._view is None:
            return
        columns = self._view.selected_columns()
        if not columns:
            return
        config = self._view.config()
        config.freeze_columns = max(columns) + 1
        self._rebuild(config)

    def unfreeze_columns(self) -> None:
        if self._view is None:
            return
        config = self._view.config()
        config.freeze_columns = None
        self._rebuild(config)

    def _rebuild(self, config: GridConfig) -> None:
        if self._view is None:
            return
        self._view.rebuild(config)
        self._type_bar.bind(self._view)
        self.relayout()
        self.rebuilt.emit()

    def toggle_header(self) -> None:
        if self._view is None:
            return
        grid = self._view.get_data()
        if self._columns.header_enabled:
            grid = self._columns.demote_header(grid)
        else:
            grid = self._columns.promote_header(grid)
        width = len(grid[0]) if grid else self._view.column_count()
        self._view.set_data(grid, self._columns.columns(width), width)
        self._view.clear_history()
        self.relayout()
        self.rebuilt.emit()

    def insert_row(self) -> None:
        if self._view is None:
            return
        self._view.insert_row()

    def remove_row(self) -> None:
        if self._view is None or self._view.row_count() == 0:
            return
        self._view.delete_row(self._view.row_count() - 1)

    def insert_column(self) -> None:
        if self._view is None:
            return
        self._view.insert_column()

    def remove_column(self) -> None:
        if self._view is None or self._view.column_count() <= 1:
            return
        self._view.delete_column(self._view.column_count() - 1)

    def toggle_index(self) -> None:
        if self._view is None:
            return
        self._view.set_index_visible(not self._view.index_visible())
        self._on_resize()

    def undo(self) -> None:
        if self._view is not None:
            self._view.undo()

    def redo(self) -> None:
        if self._view is not None:
            self._view.redo()

    def selection(self) -> Optional[SelectionBox]:
        if self._view is None:
            return None
        return self._view.selection_box()

    def focus_grid(self) -> None:
        if self._view is not None:
            self._view.table.setFocus()
