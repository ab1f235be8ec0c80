from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Set

from PyQt6 import QtCore, QtGui

from sheet_editor.codec import CellValue, Grid, column_label, stringify
from sheet_editor.columns import ColumnDescriptor, ColumnType, coerce_value


class Coordinates(NamedTuple):
    column: int
    row: int


@dataclass(frozen=True)
class SelectionBox:
    left: int
    top: int
    right: int
    bottom: int

    @property
    def rows(self) -> int:
        return self.bottom - self.top + 1

    @property
    def columns(self) -> int:
        return self.right - self.left + 1


@dataclass
class GridConfig:
    columns: List[ColumnDescriptor] = field(default_factory=list)
    freeze_columns: Optional[int] = None
    default_column_width: int = 100
    index_visible: bool = True


class SheetTableModel(QtCore.QAbstractTableModel):
    cell_edited = QtCore.pyqtSignal(int, int)

    def __init__(
        self,
        rows: Grid,
        columns: List[ColumnDescriptor],
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._rows: Grid = [list(row) for row in rows]
        self._columns: List[ColumnDescriptor] = self._fit_columns(columns, self._width_of(self._rows, columns))
        self._backlit: Set[Coordinates] = set()
        self._backlight_brush = QtGui.QBrush(QtGui.QColor("#FFE08A"))

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._columns)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return None
        column_type = self.column_type(index.column())
        if role in (QtCore.Qt.ItemDataRole.DisplayRole, QtCore.Qt.ItemDataRole.EditRole):
            if column_type == ColumnType.CHECKBOX and role == QtCore.Qt.ItemDataRole.DisplayRole:
                return None
            return stringify(self.value(index.column(), index.row()))
        if role == QtCore.Qt.ItemDataRole.CheckStateRole and column_type == ColumnType.CHECKBOX:
            checked = coerce_value(ColumnType.CHECKBOX, self.value(index.column(), index.row()))
            if checked is True:
                return QtCore.Qt.CheckState.Checked
            return QtCore.Qt.CheckState.Unchecked
        if role == QtCore.Qt.ItemDataRole.TextAlignmentRole and column_type == ColumnType.NUMERIC:
            return QtCore.Qt.AlignmentFlag.AlignRight | QtCore.Qt.AlignmentFlag.AlignVCenter
        if role == QtCore.Qt.ItemDataRole.BackgroundRole:
            if Coordinates(index.column(), index.row()) in self._backlit:
                return self._backlight_brush
        return None

    def setData(self, index: QtCore.QModelIndex, value, role: int = QtCore.Qt.ItemDataRole.EditRole) -> bool:
        if not index.isValid():
            return False
        column_type = self.column_type(index.column())
        if role == QtCore.Qt.ItemDataRole.CheckStateRole and column_type == ColumnType.CHECKBOX:
            state = QtCore.Qt.CheckState(value) if isinstance(value, int) else value
            value = state == QtCore.Qt.CheckState.Checked
        elif role != QtCore.Qt.ItemDataRole.EditRole:
            return False
        self._rows[index.row()][index.column()] = coerce_value(column_type, value)
        self.dataChanged.emit(index, index, [role])
        self.cell_edited.emit(index.column(), index.row())
        return True

    def flags(self, index: QtCore.QModelIndex) -> QtCore.Qt.ItemFlag:
        if not index.isValid():
            return QtCore.Qt.ItemFlag.NoItemFlags
        flags = (
            QtCore.Qt.ItemFlag.ItemIsSelectable
            | QtCore.Qt.ItemFlag.ItemIsEnabled
            | QtCore.Qt.ItemFlag.ItemIsEditable
        )
        if self.column_type(index.column()) == ColumnType.CHECKBOX:
            flags |= QtCore.Qt.ItemFlag.ItemIsUserCheckable
        return flags

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if role != QtCore.Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == QtCore.Qt.Orientation.Horizontal:
            if 0 <= section < len(self._columns) and self._columns[section].title is not None:
                return self._columns[section].title
            return column_label(section)
        return str(section + 1)

    def column_type(self, column: int) -> ColumnType:
        if 0 <= column < len(self._columns):
            return self._columns[column].type
        return ColumnType.TEXT

    def columns(self) -> List[ColumnDescriptor]:
        return list(self._columns)

    def value(self, column: int, row: int) -> CellValue:
        try:
            return self._rows[row][column]
        except IndexError:
            return ""

    def set_value(self, column: int, row: int, value: CellValue) -> bool:
        return self.setData(self.index(row, column), value)

    def grid(self) -> Grid:
        return [list(row) for row in self._rows]

    def set_grid(
        self, rows: Grid, columns: Optional[List[ColumnDescriptor]] = None, width: Optional[int] = None
    ) -> None:
        self.beginResetModel()
        self._rows = [list(row) for row in rows]
        if columns is None:
            columns = self._columns
        if width is None:
            width = self._width_of(self._rows, columns)
        self._columns = self._fit_columns(columns, width)
        self._backlit = {coords for coords in self._backlit if self._contains(coords)}
        self.endResetModel()

    def set_columns(self, columns: List[ColumnDescriptor]) -> None:
        self._columns = self._fit_columns(columns, len(self._columns))
        if self._columns:
            self.headerDataChanged.emit(QtCore.Qt.Orientation.Horizontal, 0, len(self._columns) - 1)
            self._emit_all_changed()

    def set_backlight_color(self, color: str) -> None:
        self._backlight_brush = QtGui.QBrush(QtGui.QColor(color))
        self._emit_all_changed([QtCore.Qt.ItemDataRole.BackgroundRole])

    def backlit(self) -> Set[Coordinates]:
        return set(self._backlit)

    def set_backlit(self, coordinates: Iterable[Coordinates], enabled: bool) -> None:
        for coords in coordinates:
            coords = Coordinates(*coords)
            if not self._contains(coords):
                continue
            if enabled:
                if coords in self._backlit:
                    continue
                self._backlit.add(coords)
            else:
                if coords not in self._backlit:
                    continue
                self._backlit.discard(coords)
            index = self.index(coords.row, coords.column)
            self.dataChanged.emit(index, index, [QtCore.Qt.ItemDataRole.BackgroundRole])

    def insertRows(
        self, row: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        row = max(0, min(row, len(self._rows)))
        self.beginInsertRows(parent, row, row + count - 1)
        for _ in range(count):
            self._rows.insert(row, [""] * len(self._columns))
        self._shift_backlit_rows(row, count)
        self.endInsertRows()
        return True

    def removeRows(
        self, row: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        if row < 0 or row >= len(self._rows):
            return False
        end_row = min(row + count - 1, len(self._rows) - 1)
        self.beginRemoveRows(parent, row, end_row)
        del self._rows[row : end_row + 1]
        self._shift_backlit_rows(row, -(end_row - row + 1))
        self.endRemoveRows()
        return True

    def insertColumns(
        self, column: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        column = max(0, min(column, len(self._columns)))
        self.beginInsertColumns(parent, column, column + count - 1)
        self._columns[column:column] = [ColumnDescriptor()] * count
        for row in self._rows:
            row[column:column] = [""] * count
        self._shift_backlit_columns(column, count)
        self.endInsertColumns()
        return True

    def removeColumns(
        self, column: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        if column < 0 or column >= len(self._columns):
            return False
        end_col = min(column + count - 1, len(self._columns) - 1)
        self.beginRemoveColumns(parent, column, end_col)
        del self._columns[column : end_col + 1]
        for row in self._rows:
            del row[column : end_col + 1]
        self._shift_backlit_columns(column, -(end_col - column + 1))
        self.endRemoveColumns()
        return True

    def move_row(self, source: int, target: int) -> bool:
        if not (0 <= source < len(self._rows)) or not (0 <= target < len(self._rows)):
            return False
        if source == target:
            return False
        destination = target + 1 if target > source else target
        if not self.beginMoveRows(QtCore.QModelIndex(), source, source, QtCore.QModelIndex(), destination):
            return False
        self._rows.insert(target, self._rows.pop(source))
        self._backlit = {
            Coordinates(coords.column, self._moved_index(coords.row, source, target))
            for coords in self._backlit
        }
        self.endMoveRows()
        return True

    def move_column(self, source: int, target: int) -> bool:
        if not (0 <= source < len(self._columns)) or not (0 <= target < len(self._columns)):
            return False
        if source == target:
            return False
        destination = target + 1 if target > source else target
        if not self.beginMoveColumns(QtCore.QModelIndex(), source, source, QtCore.QModelIndex(), destination):
            return False
        self._columns.insert(target, self._columns.pop(source))
        for row in self._rows:
            row.insert(target, row.pop(source))
        self._backlit = {
            Coordinates(self._moved_index(coords.column, source, target), coords.row)
            for coords in self._backlit
        }
        self.endMoveColumns()
        return True

    def _moved_index(self, index: int, source: int, target: int) -> int:
        if index == source:
            return target
        if source < index <= target:
            return index - 1
        if target <= index < source:
            return index + 1
        return index

    def _contains(self, coords: Coordinates) -> bool:
        return 0 <= coords.row < len(self._rows) and 0 <= coords.column < len(self._columns)

    def _width_of(self, rows: Grid, columns: List[ColumnDescriptor]) -> int:
        # a grid without rows keeps its columns
        return max((len(row) for row in rows), default=len(columns))

    def _fit_columns(self, columns: List[ColumnDescriptor], width: int) -> List[ColumnDescriptor]:
        fitted = list(columns[:width])
        fitted.extend([ColumnDescriptor()] * (width - len(fitted)))
        for row in self._rows:
            if len(row) < width:
                row.extend([""] * (width - len(row)))
        return fitted

    def _emit_all_changed(self, roles: Optional[List[int]] = None) -> None:
        if self.rowCount() <= 0 or self.columnCount() <= 0:
            return
        start = self.index(0, 0)
        end = self.index(self.rowCount() - 1, self.columnCount() - 1)
        self.dataChanged.emit(start, end, roles or [])

    def _shift_backlit_rows(self, row: int, delta: int) -> None:
        if not delta or not self._backlit:
            return
        updated: Set[Coordinates] = set()
        for coords in self._backlit:
            if coords.row < row:
                updated.add(coords)
            elif delta < 0 and coords.row < row - delta:
                continue
            else:
                updated.add(Coordinates(coords.column, coords.row + delta))
        self._backlit = updated

    def _shift_backlit_columns(self, column: int, delta: int) -> None:
        if not delta or not self._backlit:
            return
        updated: Set[Coordinates] = set()
        for coords in self._backlit:
            if coords.column < column:
                updated.add(coords)
            elif delta < 0 and coords.column < column - delta:
                continue
            else:
                updated.add(Coordinates(coords.column + delta, coords.row))
        self._backlit = updated
