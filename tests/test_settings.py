"""Tests for persisted preferences."""

from __future__ import annotations

from sheet_editor.layout import DEFAULT_FIT_CELLS_LIMIT
from sheet_editor.settings import EditorSettings


class TestEditorSettings:
    """Test EditorSettings."""

    def test_defaults(self, ini_settings) -> None:
        """Should fall back to defaults for an empty store."""
        settings = EditorSettings.load(ini_settings)

        assert settings == EditorSettings()
        assert settings.fit_cells_limit == DEFAULT_FIT_CELLS_LIMIT
        assert settings.backlight_window == 1000

    def test_round_trip(self, ini_settings) -> None:
        """Should persist every field."""
        EditorSettings(theme="dark", fit_cells_limit=50, backlight_window=10, last_directory="/data").save(
            ini_settings
        )
        ini_settings.sync()

        loaded = EditorSettings.load(ini_settings)

        assert loaded.theme == "dark"
        assert loaded.fit_cells_limit == 50
        assert loaded.backlight_window == 10
        assert loaded.last_directory == "/data"

    def test_invalid_values_are_replaced(self, ini_settings) -> None:
        """Should ignore values outside their valid range."""
        ini_settings.setValue("theme", "neon")
        ini_settings.setValue("backlight_window", 0)
        ini_settings.setValue("default_column_width", -5)

        loaded = EditorSettings.load(ini_settings)

        assert loaded.theme == "light"
        assert loaded.backlight_window == 1000
        assert loaded.default_column_width == 100
