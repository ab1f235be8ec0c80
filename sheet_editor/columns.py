import enum
from dataclasses import dataclass
from typing import List, Optional

from PyQt6 import QtCore

from sheet_editor.codec import CellValue, Grid, demote_header, promote_header, stringify


class ColumnType(enum.Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    HIDDEN = "hidden"
    DROPDOWN = "dropdown"
    AUTOCOMPLETE = "autocomplete"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    CALENDAR = "calendar"
    IMAGE = "image"
    COLOR = "color"
    HTML = "html"


@dataclass(frozen=True)
class ColumnDescriptor:
    title: Optional[str] = None
    type: ColumnType = ColumnType.TEXT


_TRUE_WORDS = {"1", "true", "t", "yes", "y", "on"}
_FALSE_WORDS = {"0", "false", "f", "no", "n", "off"}


def coerce_value(column_type: ColumnType, value: CellValue) -> CellValue:
    if column_type == ColumnType.NUMERIC:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        text = stringify(value).strip()
        if text == "":
            return ""
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return stringify(value)
    if column_type == ColumnType.CHECKBOX:
        if isinstance(value, bool):
            return value
        lowered = stringify(value).strip().lower()
        if lowered == "":
            return ""
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        return stringify(value)
    if value is None:
        return ""
    return value


class ColumnModel(QtCore.QObject):
    """Per-column type and header-title state backing the grid's column descriptors."""

    structure_changed = QtCore.pyqtSignal()

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._types: List[ColumnType] = []
        self._titles: Optional[List[Optional[str]]] = None

    @property
    def header_enabled(self) -> bool:
        return self._titles is not None

    @property
    def titles(self) -> Optional[List[Optional[str]]]:
        if self._titles is None:
            return None
        return list(self._titles)

    def column_type(self, index: int) -> ColumnType:
        if 0 <= index < len(self._types):
            return self._types[index]
        return ColumnType.TEXT

    def columns(self, count: int) -> List[ColumnDescriptor]:
        descriptors: List[ColumnDescriptor] = []
        for index in range(count):
            title = None
            if self._titles is not None and index < len(self._titles):
                title = self._titles[index]
            descriptors.append(ColumnDescriptor(title, self.column_type(index)))
        return descriptors

    def set_column_type(self, index: int, column_type: ColumnType) -> None:
        if index < 0:
            raise IndexError(f"Column index {index} is out of range.")
        if index >= len(self._types):
            self._types.extend([ColumnType.TEXT] * (index + 1 - len(self._types)))
        if self._types[index] == column_type:
            return
        self._types[index] = column_type
        self.structure_changed.emit()

    def resize(self, count: int) -> None:
        if count < len(self._types):
            del self._types[count:]
        else:
            self._types.extend([ColumnType.TEXT] * (count - len(self._types)))
        if self._titles is not None:
            if count < len(self._titles):
                del self._titles[count:]
            else:
                self._titles.extend([None] * (count - len(self._titles)))

    def insert_columns(self, index: int, count: int = 1) -> None:
        if count <= 0:
            return
        index = max(0, min(index, len(self._types)))
        self._types[index:index] = [ColumnType.TEXT] * count
        if self._titles is not None:
            index = min(index, len(self._titles))
            self._titles[index:index] = [None] * count

    def remove_columns(self, index: int, count: int = 1) -> None:
        if count <= 0 or index < 0:
            return
        del self._types[index : index + count]
        if self._titles is not None:
            del self._titles[index : index + count]

    def move_column(self, source: int, target: int) -> None:
        if source == target:
            return
        for values in (self._types, self._titles):
            if values is None or not (0 <= source < len(values)):
                continue
            item = values.pop(source)
            values.insert(max(0, min(target, len(values))), item)

    def sync(self, descriptors: List[ColumnDescriptor]) -> None:
        self._types = [descriptor.type for descriptor in descriptors]
        if self._titles is not None:
            self._titles = [descriptor.title for descriptor in descriptors]

    def set_titles(self, titles: List[Optional[str]]) -> None:
        self._titles = list(titles)
        self.resize(len(self._titles))

    def set_title(self, index: int, title: Optional[str]) -> None:
        if self._titles is None or not (0 <= index < len(self._titles)):
            return
        self._titles[index] = title

    def promote_header(self, grid: Grid) -> Grid:
        if self._titles is not None:
            return grid
        titles, rest = promote_header(grid)
        self._titles = list(titles)
        self.resize(len(titles))
        return rest

    def demote_header(self, grid: Grid) -> Grid:
        if self._titles is None:
            return grid
        restored = demote_header(self._titles, grid)
        self._titles = None
        return restored

    def clear(self) -> None:
        self._types = []
        self._titles = None
