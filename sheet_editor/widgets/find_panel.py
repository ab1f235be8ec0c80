from typing import Optional, TYPE_CHECKING

from PyQt6 import QtCore, QtGui, QtWidgets

from sheet_editor.search import SheetSearchProvider

if TYPE_CHECKING:
    from sheet_editor.windows.main_window import MainWindow


def match_counter_text(index: int, count: int) -> str:
    if count == 0:
        return "No results"
    return f"{index + 1} of {count}"


class FindPanel(QtWidgets.QWidget):
    """Inline find bar driving the search provider of the current tab."""

    def __init__(self, parent: "MainWindow") -> None:
        super().__init__(parent)
        self._main_window = parent
        self._provider: Optional[SheetSearchProvider] = None

        layout = QtWidgets.QHBoxLayout(self)
        layout.setContentsMargins(6, 4, 6, 4)

        self._find_input = QtWidgets.QLineEdit(self)
        self._find_input.setPlaceholderText("Find")
        self._case_check = QtWidgets.QCheckBox("Aa", self)
        self._case_check.setToolTip("Match case")
        self._regex_check = QtWidgets.QCheckBox(".*", self)
        self._regex_check.setToolTip("Use regular expression")
        self._counter = QtWidgets.QLabel(match_counter_text(0, 0), self)
        self._counter.setObjectName("matchCounter")
        self._previous_btn = QtWidgets.QToolButton(self)
        self._previous_btn.setText("Previous")
        self._next_btn = QtWidgets.QToolButton(self)
        self._next_btn.setText("Next")
        self._close_btn = QtWidgets.QToolButton(self)
        self._close_btn.setText("Close")

        layout.addWidget(self._find_input, 1)
        layout.addWidget(self._case_check)
        layout.addWidget(self._regex_check)
        layout.addWidget(self._counter)
        layout.addWidget(self._previous_btn)
        layout.addWidget(self._next_btn)
        layout.addWidget(self._close_btn)

        self._find_input.textChanged.connect(self._run_query)
        self._find_input.returnPressed.connect(self.find_next)
        self._case_check.toggled.connect(self._run_query)
        self._regex_check.toggled.connect(self._run_query)
        self._previous_btn.clicked.connect(self.find_previous)
        self._next_btn.clicked.connect(self.find_next)
        self._close_btn.clicked.connect(self.close_panel)

        previous = QtGui.QShortcut(QtGui.QKeySequence("Shift+Return"), self._find_input)
        previous.activated.connect(self.find_previous)
        escape = QtGui.QShortcut(QtGui.QKeySequence("Escape"), self)
        escape.setContext(QtCore.Qt.ShortcutContext.WidgetWithChildrenShortcut)
        escape.activated.connect(self.close_panel)

    @property
    def query_text(self) -> str:
        return self._find_input.text()

    @property
    def case_sensitive(self) -> bool:
        return self._case_check.isChecked()

    @property
    def regex(self) -> bool:
        return self._regex_check.isChecked()

    @property
    def counter_text(self) -> str:
        return self._counter.text()

    def open_panel(self) -> None:
        provider = self._bind_provider()
        if provider is not None:
            initial = provider.get_initial_query()
            if initial:
                self._find_input.blockSignals(True)
                self._find_input.setText(initial)
                self._find_input.blockSignals(False)
        self.show()
        self._find_input.setFocus()
        self._find_input.selectAll()
        self._run_query()

    def close_panel(self) -> None:
        if self._provider is not None:
            self._provider.end_search()
        self._unbind_provider()
        self.hide()
        sheet = self._main_window.current_sheet()
        if sheet is not None:
            sheet.focus_grid()

    def on_tab_changed(self) -> None:
        if not self.isVisible():
            return
        if self._provider is not None:
            self._provider.end_query()
        self._bind_provider()
        self._run_query()

    def find_next(self) -> None:
        provider = self._active_provider()
        if provider is not None:
            provider.highlight_next()
            self._update_counter()

    def find_previous(self) -> None:
        provider = self._active_provider()
        if provider is not None:
            provider.highlight_previous()
            self._update_counter()

    def _active_provider(self) -> Optional[SheetSearchProvider]:
        # a fresh query already lands on the first match
        if self._provider is None or not self._provider.is_active:
            self._bind_provider()
            self._run_query()
            return None
        return self._provider

    def _bind_provider(self) -> Optional[SheetSearchProvider]:
        provider = self._main_window.current_search()
        if provider is self._provider:
            return provider
        self._unbind_provider()
        self._provider = provider
        if provider is not None:
            provider.changed.connect(self._update_counter)
        return provider

    def _unbind_provider(self) -> None:
        if self._provider is not None:
            self._provider.changed.disconnect(self._update_counter)
            self._provider = None

    def _run_query(self) -> None:
        provider = self._provider
        if provider is None:
            self._update_counter()
            return
        provider.start_query(self.query_text, self.case_sensitive, self.regex)
        self._update_counter()

    def _update_counter(self) -> None:
        provider = self._provider
        if provider is None or not provider.is_active:
            self._counter.setText(match_counter_text(0, 0))
            return
        self._counter.setText(match_counter_text(provider.current_match_index, provider.matches_count))
