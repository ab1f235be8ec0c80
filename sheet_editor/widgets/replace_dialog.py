from typing import Optional, Tuple, TYPE_CHECKING

from PyQt6 import QtWidgets

from sheet_editor.search import SheetSearchProvider
from sheet_editor.widgets.find_panel import match_counter_text

if TYPE_CHECKING:
    from sheet_editor.windows.main_window import MainWindow


class ReplaceDialog(QtWidgets.QDialog):
    def __init__(self, parent: "MainWindow") -> None:
        super().__init__(parent)
        self._main_window = parent
        self._query_key: Optional[Tuple[str, bool, bool]] = None
        self._provider: Optional[SheetSearchProvider] = None
        self.setWindowTitle("Replace")
        self.setModal(False)
        layout = QtWidgets.QGridLayout(self)

        self._find_input = QtWidgets.QLineEdit(self)
        self._replace_input = QtWidgets.QLineEdit(self)
        self._case_check = QtWidgets.QCheckBox("Case sensitive", self)
        self._regex_check = QtWidgets.QCheckBox("Regular expression", self)
        self._counter = QtWidgets.QLabel("", self)
        self._counter.setObjectName("matchCounter")

        self._find_next_btn = QtWidgets.QPushButton("Find Next", self)
        self._replace_btn = QtWidgets.QPushButton("Replace", self)
        self._replace_all_btn = QtWidgets.QPushButton("Replace All", self)
        self._close_btn = QtWidgets.QPushButton("Close", self)

        layout.addWidget(QtWidgets.QLabel("Find:", self), 0, 0)
        layout.addWidget(self._find_input, 0, 1, 1, 3)
        layout.addWidget(QtWidgets.QLabel("Replace:", self), 1, 0)
        layout.addWidget(self._replace_input, 1, 1, 1, 3)
        layout.addWidget(self._case_check, 2, 1)
        layout.addWidget(self._regex_check, 2, 2)
        layout.addWidget(self._counter, 2, 3)
        layout.addWidget(self._find_next_btn, 3, 0)
        layout.addWidget(self._replace_btn, 3, 1)
        layout.addWidget(self._replace_all_btn, 3, 2)
        layout.addWidget(self._close_btn, 3, 3)

        self._find_next_btn.clicked.connect(self._on_find_next)
        self._replace_btn.clicked.connect(self._on_replace)
        self._replace_all_btn.clicked.connect(self._on_replace_all)
        self._close_btn.clicked.connect(self.close)

    def open_dialog(self) -> None:
        provider = self._main_window.current_search()
        if provider is not None and not self._find_input.text():
            self._find_input.setText(provider.get_initial_query())
        self._query_key = None
        self.show()
        self.raise_()
        self._find_input.setFocus()
        self._find_input.selectAll()

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        if self._provider is not None and self._provider.is_active:
            self._provider.end_search()
        self._provider = None
        self._query_key = None
        super().closeEvent(event)

    def _ensure_query(self) -> Tuple[Optional[SheetSearchProvider], bool]:
        """Return the provider, and whether a new query was just started."""
        provider = self._main_window.current_search()
        if provider is None:
            return None, False
        key = (self._find_input.text(), self._case_check.isChecked(), self._regex_check.isChecked())
        if provider is self._provider and provider.is_active and key == self._query_key:
            return provider, False
        if self._provider is not None and self._provider is not provider and self._provider.is_active:
            self._provider.end_query()
        provider.start_query(*key)
        self._provider = provider
        self._query_key = key
        return provider, True

    def _update_counter(self, provider: SheetSearchProvider) -> None:
        self._counter.setText(match_counter_text(provider.current_match_index, provider.matches_count))

    def _on_find_next(self) -> None:
        provider, started = self._ensure_query()
        if provider is None:
            return
        if not started:
            provider.highlight_next()
        self._update_counter(provider)
        if provider.matches_count == 0:
            QtWidgets.QMessageBox.information(self, "Find", "No matches found.")

    def _on_replace(self) -> None:
        provider, _ = self._ensure_query()
        if provider is None:
            return
        replaced = provider.replace_current_match(self._replace_input.text())
        self._update_counter(provider)
        if not replaced:
            QtWidgets.QMessageBox.information(self, "Replace", "No match selected.")

    def _on_replace_all(self) -> None:
        provider, _ = self._ensure_query()
        if provider is None:
            return
        count = provider.matches_count
        if not provider.replace_all_matches(self._replace_input.text()):
            count = 0
        self._update_counter(provider)
        QtWidgets.QMessageBox.information(self, "Replace All", f"Replaced {count} match(es).")
