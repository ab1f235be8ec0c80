import logging
import os
from typing import Dict, List, Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from sheet_editor.document import DocumentContext
from sheet_editor.search import SheetSearchProvider
from sheet_editor.settings import EditorSettings, open_settings
from sheet_editor.theme import THEMES, apply_theme, theme_palette
from sheet_editor.widgets.find_panel import FindPanel
from sheet_editor.widgets.replace_dialog import ReplaceDialog
from sheet_editor.widgets.spreadsheet import SpreadsheetWidget
from sheet_editor.widgets.status import SelectionStatus

logger = logging.getLogger(__name__)

APP_TITLE = "SheetEdit"
FILE_FILTER = "Delimited Text (*.csv *.tsv);;All Files (*)"


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, settings: Optional[QtCore.QSettings] = None) -> None:
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.resize(1200, 720)
        self._settings = settings if settings is not None else open_settings()
        self._editor_settings = EditorSettings.load(self._settings)
        self._search_providers: Dict[SpreadsheetWidget, SheetSearchProvider] = {}
        self._untitled_counter = 0
        self._replace_dialog: Optional[ReplaceDialog] = None
        self._backlight_color = theme_palette(self._editor_settings.theme)["backlight"]

        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._find_panel = FindPanel(self)
        self._find_panel.hide()
        self._tabs = QtWidgets.QTabWidget(self)
        self._tabs.setTabsClosable(True)
        self._tabs.setMovable(False)
        self._tabs.tabCloseRequested.connect(self.close_tab)
        self._tabs.currentChanged.connect(self._on_tab_changed)

        layout.addWidget(self._find_panel)
        layout.addWidget(self._tabs)
        self.setCentralWidget(central)

        self._status_bar = self.statusBar()
        self._selection_status = SelectionStatus(self)
        self._status_bar.addPermanentWidget(self._selection_status)
        self._status_bar.showMessage("Ready")

        self._build_actions()
        self._apply_theme(self._editor_settings.theme)

    def _build_actions(self) -> None:
        new_csv_action = QtGui.QAction("New CSV", self)
        new_csv_action.setShortcut(QtGui.QKeySequence.StandardKey.New)
        new_csv_action.triggered.connect(lambda: self.new_file(".csv"))

        new_tsv_action = QtGui.QAction("New TSV", self)
        new_tsv_action.setShortcut(QtGui.QKeySequence("Ctrl+Shift+N"))
        new_tsv_action.triggered.connect(lambda: self.new_file(".tsv"))

        open_action = QtGui.QAction("Open File...", self)
        open_action.setShortcut(QtGui.QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_file_dialog)

        save_action = QtGui.QAction("Save", self)
        save_action.setShortcut(QtGui.QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self.save_current)

        save_as_action = QtGui.QAction("Save As...", self)
        save_as_action.setShortcut(QtGui.QKeySequence.StandardKey.SaveAs)
        save_as_action.triggered.connect(self.save_as_current)

        close_action = QtGui.QAction("Close File", self)
        close_action.setShortcut(QtGui.QKeySequence.StandardKey.Close)
        close_action.triggered.connect(self.close_current_tab)

        undo_action = QtGui.QAction("Undo", self)
        undo_action.setShortcut(QtGui.QKeySequence.StandardKey.Undo)
        undo_action.triggered.connect(lambda: self._apply_to_current("undo"))

        redo_action = QtGui.QAction("Redo", self)
        redo_action.setShortcut(QtGui.QKeySequence.StandardKey.Redo)
        redo_action.triggered.connect(lambda: self._apply_to_current("redo"))

        find_action = QtGui.QAction("Find...", self)
        find_action.setShortcut(QtGui.QKeySequence.StandardKey.Find)
        find_action.triggered.connect(self.open_find_panel)

        find_next_action = QtGui.QAction("Find Next", self)
        find_next_action.setShortcut(QtGui.QKeySequence.StandardKey.FindNext)
        find_next_action.triggered.connect(self._find_panel.find_next)

        find_previous_action = QtGui.QAction("Find Previous", self)
        find_previous_action.setShortcut(QtGui.QKeySequence.StandardKey.FindPrevious)
        find_previous_action.triggered.connect(self._find_panel.find_previous)

        replace_action = QtGui.QAction("Replace...", self)
        replace_action.setShortcut(QtGui.QKeySequence.StandardKey.Replace)
        replace_action.triggered.connect(self.open_replace_dialog)

        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction(new_csv_action)
        file_menu.addAction(new_tsv_action)
        file_menu.addAction(open_action)
        file_menu.addSeparator()
        file_menu.addAction(save_action)
        file_menu.addAction(save_as_action)
        file_menu.addSeparator()
        file_menu.addAction(close_action)

        edit_menu = self.menuBar().addMenu("Edit")
        edit_menu.addAction(undo_action)
        edit_menu.addAction(redo_action)
        edit_menu.addSeparator()
        edit_menu.addAction(find_action)
        edit_menu.addAction(find_next_action)
        edit_menu.addAction(find_previous_action)
        edit_menu.addAction(replace_action)

        toolbar = self.addToolBar("Grid")
        toolbar.setObjectName("gridToolbar")
        for label, method_name in (
            ("Add Row", "insert_row"),
            ("Remove Row", "remove_row"),
            ("Add Column", "insert_column"),
            ("Remove Column", "remove_column"),
            ("Row Numbers", "toggle_index"),
            ("Fit Columns", "cycle_fit_mode"),
            ("Freeze", "freeze_selected_columns"),
            ("Unfreeze", "unfreeze_columns"),
            ("Header", "toggle_header"),
        ):
            action = toolbar.addAction(label)
            action.triggered.connect(lambda _, name=method_name: self._apply_to_current(name))

        view_menu = self.menuBar().addMenu("View")
        theme_group = QtGui.QActionGroup(self)
        theme_group.setExclusive(True)
        for name in THEMES:
            theme_action = QtGui.QAction(f"{name.title()} Theme", self)
            theme_action.setCheckable(True)
            theme_action.setChecked(name == self._editor_settings.theme)
            theme_action.triggered.connect(lambda _, theme=name: self._set_theme(theme))
            theme_group.addAction(theme_action)
            view_menu.addAction(theme_action)

        # Shortcuts must reach the window while the grid editor has focus.
        for action in (
            new_csv_action,
            new_tsv_action,
            open_action,
            save_action,
            save_as_action,
            close_action,
            undo_action,
            redo_action,
            find_action,
            find_next_action,
            find_previous_action,
            replace_action,
        ):
            action.setShortcutContext(QtCore.Qt.ShortcutContext.ApplicationShortcut)
            action.setShortcutVisibleInContextMenu(True)
            self.addAction(action)

    def _set_theme(self, name: str) -> None:
        if name not in THEMES or name == self._editor_settings.theme:
            return
        self._editor_settings.theme = name
        self._editor_settings.save(self._settings)
        self._apply_theme(name)

    def _apply_theme(self, name: str) -> None:
        app = QtWidgets.QApplication.instance()
        if not app:
            return
        colors = apply_theme(app, name)
        for sheet in self.sheets():
            if sheet.view is not None:
                sheet.view.model.set_backlight_color(colors["backlight"])
        self._backlight_color = colors["backlight"]

    def _apply_to_current(self, method_name: str) -> None:
        sheet = self.current_sheet()
        if sheet and hasattr(sheet, method_name):
            getattr(sheet, method_name)()

    def current_sheet(self) -> Optional[SpreadsheetWidget]:
        widget = self._tabs.currentWidget()
        if isinstance(widget, SpreadsheetWidget):
            return widget
        return None

    def sheets(self) -> List[SpreadsheetWidget]:
        return [
            widget
            for widget in (self._tabs.widget(index) for index in range(self._tabs.count()))
            if isinstance(widget, SpreadsheetWidget)
        ]

    def current_search(self) -> Optional[SheetSearchProvider]:
        sheet = self.current_sheet()
        if sheet is None or not sheet.is_ready:
            return None
        provider = self._search_providers.get(sheet)
        if provider is None:
            provider = SheetSearchProvider(sheet, self._editor_settings.backlight_window, self)
            self._search_providers[sheet] = provider
        return provider

    def new_file(self, extension: str = ".csv") -> SpreadsheetWidget:
        self._untitled_counter += 1
        directory = self._editor_settings.last_directory or QtCore.QDir.currentPath()
        path = os.path.join(directory, f"Untitled-{self._untitled_counter}{extension}")
        context = DocumentContext.from_text("", path, self)
        return self._add_sheet(context)

    def open_file_dialog(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Open File", self._editor_settings.last_directory, FILE_FILTER
        )
        if path:
            self.open_file(path)

    def open_file(self, path: str) -> Optional[SpreadsheetWidget]:
        path = os.path.abspath(path)
        for sheet in self.sheets():
            if sheet.context.path == path:
                self._tabs.setCurrentWidget(sheet)
                return sheet
        context = DocumentContext(path, self)
        try:
            context.load()
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not open %s: %s", path, exc)
            QtWidgets.QMessageBox.warning(self, "Open failed", str(exc))
            return None
        self._remember_directory(path)
        return self._add_sheet(context)

    def _add_sheet(self, context: DocumentContext) -> SpreadsheetWidget:
        sheet = SpreadsheetWidget(context, self._editor_settings, self)
        if sheet.view is not None:
            sheet.view.model.set_backlight_color(self._backlight_color)
        sheet.selection_changed.connect(self._selection_status.update_selection)
        context.dirty_changed.connect(lambda _, s=sheet: self._update_window_title(s))
        context.path_changed.connect(lambda _, s=sheet: self._update_window_title(s))
        index = self._tabs.addTab(sheet, context.name)
        self._tabs.setCurrentIndex(index)
        warnings = sheet.parse_warnings
        if warnings:
            self._status_bar.showMessage(
                f"{context.name}: {len(warnings)} row(s) did not match the column count", 5000
            )
        return sheet

    def open_find_panel(self) -> None:
        if self.current_sheet() is None:
            return
        self._find_panel.open_panel()

    def open_replace_dialog(self) -> None:
        if self.current_sheet() is None:
            return
        if self._replace_dialog is None:
            self._replace_dialog = ReplaceDialog(self)
        self._replace_dialog.open_dialog()

    def save_current(self) -> None:
        sheet = self.current_sheet()
        if not sheet:
            return
        if sheet.context.is_untitled:
            self.save_as_current()
            return
        self._save_sheet(sheet, None)

    def save_as_current(self) -> None:
        sheet = self.current_sheet()
        if not sheet:
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(self, "Save As", sheet.context.path, FILE_FILTER)
        if path:
            self._save_sheet(sheet, path)

    def _save_sheet(self, sheet: SpreadsheetWidget, path: Optional[str]) -> bool:
        sheet.update_model()
        try:
            sheet.context.save(path)
        except OSError as exc:
            logger.error("Could not save %s: %s", path or sheet.context.path, exc)
            QtWidgets.QMessageBox.warning(self, "Save failed", str(exc))
            return False
        self._remember_directory(sheet.context.path)
        self._status_bar.showMessage(f"Saved: {sheet.context.name}", 3000)
        return True

    def _remember_directory(self, path: str) -> None:
        directory = os.path.dirname(path)
        if directory and directory != self._editor_settings.last_directory:
            self._editor_settings.last_directory = directory
            self._editor_settings.save(self._settings)

    def close_current_tab(self) -> None:
        index = self._tabs.currentIndex()
        if index >= 0:
            self.close_tab(index)

    def close_tab(self, index: int) -> None:
        widget = self._tabs.widget(index)
        if not isinstance(widget, SpreadsheetWidget):
            return
        if widget.context.is_dirty and not self._confirm_discard(widget):
            return
        provider = self._search_providers.pop(widget, None)
        if provider is not None:
            provider.end_query()
        self._tabs.removeTab(index)
        widget.deleteLater()
        if self._tabs.count() == 0:
            self._find_panel.hide()
            self._update_window_title(None)

    def _on_tab_changed(self, index: int) -> None:
        widget = self._tabs.widget(index)
        sheet = widget if isinstance(widget, SpreadsheetWidget) else None
        self._update_window_title(sheet)
        self._selection_status.update_selection(sheet.selection() if sheet else None)
        self._find_panel.on_tab_changed()

    def _update_window_title(self, sheet: Optional[SpreadsheetWidget]) -> None:
        if sheet is None:
            self.setWindowTitle(APP_TITLE)
            return
        label = sheet.context.name
        if sheet.context.is_dirty:
            label = f"*{label}"
        index = self._tabs.indexOf(sheet)
        if index != -1:
            self._tabs.setTabText(index, label)
        if sheet is self.current_sheet():
            self.setWindowTitle(f"{label} - {APP_TITLE}")

    def _confirm_discard(self, sheet: SpreadsheetWidget) -> bool:
        result = QtWidgets.QMessageBox.question(
            self,
            "Unsaved Changes",
            f"Save changes to {sheet.context.name}?",
            QtWidgets.QMessageBox.StandardButton.Save
            | QtWidgets.QMessageBox.StandardButton.Discard
            | QtWidgets.QMessageBox.StandardButton.Cancel,
        )
        if result == QtWidgets.QMessageBox.StandardButton.Save:
            if sheet.context.is_untitled:
                path, _ = QtWidgets.QFileDialog.getSaveFileName(
                    self, "Save As", sheet.context.path, FILE_FILTER
                )
                return bool(path) and self._save_sheet(sheet, path)
            return self._save_sheet(sheet, None)
        return result == QtWidgets.QMessageBox.StandardButton.Discard

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # noqa: N802 - Qt override
        for sheet in self.sheets():
            if sheet.context.is_dirty and not self._confirm_discard(sheet):
                event.ignore()
                return
        self._editor_settings.save(self._settings)
        event.accept()
