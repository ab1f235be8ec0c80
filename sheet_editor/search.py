"""Find and replace over the cells of a spreadsheet editor.

A provider owns one search session on one editor at a time. Matches are
indexed in row-major order, with one entry per non-empty occurrence inside a
cell, and the list is rebuilt whenever the grid reports a content change.
"""

import contextlib
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from PyQt6 import QtCore

from sheet_editor.codec import stringify
from sheet_editor.models import Coordinates
from sheet_editor.widgets.sheet_view import SCROLL_MARGIN, SheetView
from sheet_editor.widgets.spreadsheet import SpreadsheetWidget

logger = logging.getLogger(__name__)

DEFAULT_BACKLIGHT_WINDOW = 1000


class SearchError(RuntimeError):
    pass


@dataclass
class SearchMatch:
    column: int
    row: int
    position: int
    text: str

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.column, self.row)


def compile_query(
    query: Union[str, re.Pattern, None], case_sensitive: bool = False, regex: bool = False
) -> Optional[re.Pattern]:
    """Turn user input into a compiled pattern, or None when nothing can match."""
    if query is None:
        return None
    if isinstance(query, re.Pattern):
        return query
    if not query:
        return None
    flags = 0 if case_sensitive else re.IGNORECASE
    source = query if regex else re.escape(query)
    try:
        return re.compile(source, flags)
    except re.error as exc:
        logger.warning("Invalid search pattern %r: %s", query, exc)
        return None


def replace_occurrences(pattern: re.Pattern, value: str, positions: Set[int], text: str) -> Tuple[str, int]:
    """Replace the listed non-empty occurrences of ``pattern`` in ``value``.

    Occurrences are numbered from zero in left-to-right order, skipping
    zero-width matches. Returns the new value and how many were replaced.
    """
    ordinal = -1
    replaced = 0

    def substitute(match: "re.Match") -> str:
        nonlocal ordinal, replaced
        found = match.group(0)
        if not found:
            return found
        ordinal += 1
        if ordinal in positions:
            replaced += 1
            return text
        return found

    return pattern.sub(substitute, value), replaced


def count_occurrences(pattern: re.Pattern, value: str) -> int:
    return sum(1 for match in pattern.finditer(value) if match.group(0))


class SheetSearchProvider(QtCore.QObject):
    changed = QtCore.pyqtSignal()

    def __init__(
        self,
        sheet: SpreadsheetWidget,
        backlight_window: int = DEFAULT_BACKLIGHT_WINDOW,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        if not self.is_applicable(sheet):
            raise SearchError(f"Cannot search {type(sheet).__name__}; a spreadsheet editor is required.")
        super().__init__(parent)
        self._sheet = sheet
        self.backlight_window = backlight_window
        self._query: Optional[re.Pattern] = None
        self._matches: List[SearchMatch] = []
        self._current_match_index = 0
        self._backlit: Set[Coordinates] = set()
        self._initial_query_coordinates: Optional[Coordinates] = None
        self._most_recent_selected_cell: Optional[Coordinates] = None
        self._active = False
        self._suppress_reindex = False

    @staticmethod
    def is_applicable(widget: object) -> bool:
        return isinstance(widget, SpreadsheetWidget)

    @property
    def sheet(self) -> SpreadsheetWidget:
        return self._sheet

    @property
    def query(self) -> Optional[re.Pattern]:
        return self._query

    @property
    def matches(self) -> List[SearchMatch]:
        return list(self._matches)

    @property
    def matches_count(self) -> int:
        return len(self._matches)

    @property
    def current_match_index(self) -> int:
        return self._current_match_index

    @property
    def current_match(self) -> Optional[SearchMatch]:
        if not self._matches:
            return None
        return self._matches[self._current_match_index]

    @property
    def is_active(self) -> bool:
        return self._active

    def _view(self) -> SheetView:
        view = self._sheet.view
        if view is None:
            raise SearchError("The spreadsheet grid has not been initialized yet.")
        return view

    def _require_active(self) -> SheetView:
        if not self._active:
            raise SearchError("No search is active; start a query first.")
        return self._view()

    @contextlib.contextmanager
    def _suppressed(self) -> Iterator[None]:
        previous = self._suppress_reindex
        self._suppress_reindex = True
        try:
            yield
        finally:
            self._suppress_reindex = previous

    def get_initial_query(self) -> str:
        """Seed the query from a single selected cell, clearing any other selection."""
        view = self._view()
        box = view.selection_box()
        coordinates = None
        if box is not None and box.rows == 1 and box.columns == 1:
            coordinates = Coordinates(box.left, box.top)
        self._initial_query_coordinates = coordinates
        if coordinates is not None:
            value = stringify(view.get_value(coordinates.column, coordinates.row))
            if value:
                return value
        view.clear_selection()
        return ""

    def start_query(
        self, query: Union[str, re.Pattern, None], case_sensitive: bool = False, regex: bool = False
    ) -> List[SearchMatch]:
        self._view()
        if self._active:
            self.end_query()
        owner = self._sheet.active_search
        if owner is not None and owner is not self:
            owner.end_query()
        self._query = compile_query(query, case_sensitive, regex)
        self._sheet.active_search = self
        self._sheet.changed.connect(self._on_sheet_changed)
        self._sheet.rebuilt.connect(self._on_sheet_rebuilt)
        self._active = True
        matches = self._find_matches()
        logger.debug("Search %r found %d matches", query, len(matches))
        self.changed.emit()
        return matches

    def end_query(self) -> None:
        self._backlight_off()
        self._current_match_index = 0
        self._matches = []
        if self._active:
            self._sheet.changed.disconnect(self._on_sheet_changed)
            self._sheet.rebuilt.disconnect(self._on_sheet_rebuilt)
            self._active = False
        if self._sheet.active_search is self:
            self._sheet.active_search = None

    def end_search(self) -> None:
        view = self._sheet.view
        cell = self._most_recent_selected_cell
        if view is not None and cell is not None and view.selection_box() is None:
            view.select_cell(cell.column, cell.row)
        self.end_query()

    def clear_highlight(self) -> None:
        self._backlight_off()

    def highlight_next(self) -> Optional[SearchMatch]:
        self._require_active()
        if not self._matches:
            return None
        self._current_match_index = (self._current_match_index + 1) % len(self._matches)
        match = self._matches[self._current_match_index]
        self._highlight(match)
        return match

    def highlight_previous(self) -> Optional[SearchMatch]:
        self._require_active()
        if not self._matches:
            return None
        self._current_match_index = (self._current_match_index - 1) % len(self._matches)
        match = self._matches[self._current_match_index]
        self._highlight(match)
        return match

    def replace_current_match(self, text: str, is_replace_all: bool = False) -> bool:
        """Replace the occurrence under the cursor and move on to the next one.

        With ``is_replace_all`` the match list is left for the caller to rebuild.
        """
        view = self._require_active()
        if not self._matches or self._query is None:
            return False
        index = self._current_match_index
        match = self._matches[index]
        coordinates = match.coordinates
        value = stringify(view.get_value(match.column, match.row))
        new_value, replaced = replace_occurrences(self._query, value, {match.position}, text)
        if not replaced:
            return False

        later = index + 1
        while later < len(self._matches) and self._matches[later].coordinates == coordinates:
            self._matches[later].position -= 1
            later += 1

        with self._suppressed():
            view.set_value(match.column, match.row, new_value)
        if is_replace_all:
            return True

        del self._matches[index]
        remaining = sum(1 for item in self._matches if item.coordinates == coordinates)
        stored = stringify(view.get_value(match.column, match.row))
        if count_occurrences(self._query, stored) != remaining:
            self._find_matches(highlight_first=False)
            remaining = sum(1 for item in self._matches if item.coordinates == coordinates)
        if remaining == 0:
            view.set_backlight([coordinates], False)
            self._backlit.discard(coordinates)

        if self._matches:
            self._current_match_index = index % len(self._matches)
            self._highlight(self._matches[self._current_match_index])
        else:
            self._current_match_index = 0
        self.changed.emit()
        return True

    def replace_all_matches(self, text: str) -> bool:
        view = self._require_active()
        if not self._matches or self._query is None:
            return False
        grouped: Dict[Coordinates, Set[int]] = {}
        for match in self._matches:
            grouped.setdefault(match.coordinates, set()).add(match.position)

        replaced = 0
        with self._suppressed():
            for coordinates, positions in grouped.items():
                value = stringify(view.get_value(coordinates.column, coordinates.row))
                new_value, count = replace_occurrences(self._query, value, positions, text)
                if count:
                    view.set_value(coordinates.column, coordinates.row, new_value)
                    replaced += count
        logger.info("Replaced %d matches in %d cells", replaced, len(grouped))

        self._current_match_index = 0
        self._find_matches(highlight_first=False)
        self._backlight_off()
        self._backlight_matches()
        self.changed.emit()
        return replaced > 0

    def _find_matches(self, highlight_first: bool = True) -> List[SearchMatch]:
        target = self._initial_query_coordinates
        self._initial_query_coordinates = None
        view = self._view()
        query = self._query
        matches: List[SearchMatch] = []
        current: Optional[int] = None
        if query is not None:
            for row_number, row in enumerate(view.get_data()):
                for column_number, cell in enumerate(row):
                    value = stringify(cell)
                    if not value:
                        continue
                    found = [item.group(0) for item in query.finditer(value) if item.group(0)]
                    if not found:
                        continue
                    if current is None and target == (column_number, row_number):
                        current = len(matches)
                    for position, matched in enumerate(found):
                        matches.append(SearchMatch(column_number, row_number, position, matched))

        if highlight_first:
            index = current or 0
        elif self._current_match_index < len(matches):
            index = self._current_match_index
        else:
            index = 0
        self._matches = matches
        self._current_match_index = index if matches else 0
        if matches and highlight_first:
            self._highlight(matches[self._current_match_index])
        return matches

    def _highlight(self, match: SearchMatch) -> None:
        view = self._view()
        self._backlight_matches()
        view.select_cell(match.column, match.row)
        self._most_recent_selected_cell = match.coordinates
        view.scroll_cell_into_view(match.column, match.row, SCROLL_MARGIN)

    def _backlight_matches(self, window: Optional[int] = None) -> None:
        view = self._sheet.view
        if view is None or not self._matches:
            return
        half = (window or self.backlight_window) // 2
        start = max(0, self._current_match_index - half)
        end = min(self._current_match_index + max(half, 1), len(self._matches))
        coordinates = {match.coordinates for match in self._matches[start:end]} - self._backlit
        if coordinates:
            view.set_backlight(coordinates, True)
            self._backlit |= coordinates

    def _backlight_off(self) -> None:
        view = self._sheet.view
        if view is not None:
            view.clear_backlight()
        self._backlit.clear()

    def _on_sheet_changed(self) -> None:
        if self._suppress_reindex:
            return
        self._find_matches(highlight_first=False)
        self._backlight_off()
        self._backlight_matches()
        self.changed.emit()

    def _on_sheet_rebuilt(self) -> None:
        self._backlight_off()
        self._backlight_matches()
