"""Shared fixtures for the Qt-backed tests."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6 import QtCore, QtWidgets

from sheet_editor.document import DocumentContext
from sheet_editor.widgets.spreadsheet import SpreadsheetWidget


@pytest.fixture(scope="session")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture
def make_sheet(qapp):
    """Build a ready spreadsheet editor over in-memory text."""
    created = []

    def factory(text: str, path: str = "sheet.csv", settings=None) -> SpreadsheetWidget:
        context = DocumentContext.from_text(text, path)
        sheet = SpreadsheetWidget(context, settings)
        sheet.resize(600, 400)
        created.append(sheet)
        return sheet

    yield factory
    for sheet in created:
        sheet.deleteLater()


@pytest.fixture
def ini_settings(tmp_path) -> QtCore.QSettings:
    return QtCore.QSettings(str(tmp_path / "settings.ini"), QtCore.QSettings.Format.IniFormat)
