"""Application preferences stored in QSettings."""

from dataclasses import dataclass, fields

from PyQt6 import QtCore

from sheet_editor.layout import DEFAULT_FIT_CELLS_LIMIT

ORGANIZATION = "SheetEdit"
APPLICATION = "SheetEdit"


@dataclass
class EditorSettings:
    theme: str = "light"
    fit_cells_limit: int = DEFAULT_FIT_CELLS_LIMIT
    backlight_window: int = 1000
    default_column_width: int = 100
    last_directory: str = ""

    @classmethod
    def load(cls, settings: QtCore.QSettings) -> "EditorSettings":
        defaults = cls()
        values = {}
        for item in fields(cls):
            default = getattr(defaults, item.name)
            values[item.name] = settings.value(item.name, default, type=type(default))
        loaded = cls(**values)
        if loaded.theme not in {"light", "dark"}:
            loaded.theme = defaults.theme
        if loaded.fit_cells_limit < 0:
            loaded.fit_cells_limit = defaults.fit_cells_limit
        if loaded.backlight_window <= 0:
            loaded.backlight_window = defaults.backlight_window
        if loaded.default_column_width <= 0:
            loaded.default_column_width = defaults.default_column_width
        return loaded

    def save(self, settings: QtCore.QSettings) -> None:
        for item in fields(self):
            settings.setValue(item.name, getattr(self, item.name))


def open_settings() -> QtCore.QSettings:
    return QtCore.QSettings(ORGANIZATION, APPLICATION)
