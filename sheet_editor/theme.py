from typing import Dict

from PyQt6 import QtGui, QtWidgets

THEMES = ("light", "dark")

_PALETTES: Dict[str, Dict[str, str]] = {
    "light": {
        "window": "#F4F5F7",
        "base": "#FFFFFF",
        "base_alt": "#F0F2F5",
        "text": "#1C1E21",
        "muted": "#5F6670",
        "border": "#D3D7DD",
        "accent": "#2F6FDB",
        "accent_text": "#FFFFFF",
        "backlight": "#FFE08A",
    },
    "dark": {
        "window": "#17191C",
        "base": "#1E2125",
        "base_alt": "#25292E",
        "text": "#E4E6EA",
        "muted": "#9AA2AD",
        "border": "#33383F",
        "accent": "#5B93F0",
        "accent_text": "#0E1013",
        "backlight": "#6B5A1E",
    },
}


def theme_palette(name: str) -> Dict[str, str]:
    return dict(_PALETTES.get(name, _PALETTES["light"]))


def apply_theme(app: QtWidgets.QApplication, name: str) -> Dict[str, str]:
    """Install the named palette on the application and return its colors."""
    app.setStyle("Fusion")
    colors = theme_palette(name)
    roles = {
        QtGui.QPalette.ColorRole.Window: "window",
        QtGui.QPalette.ColorRole.WindowText: "text",
        QtGui.QPalette.ColorRole.Base: "base",
        QtGui.QPalette.ColorRole.AlternateBase: "base_alt",
        QtGui.QPalette.ColorRole.Text: "text",
        QtGui.QPalette.ColorRole.Button: "window",
        QtGui.QPalette.ColorRole.ButtonText: "text",
        QtGui.QPalette.ColorRole.ToolTipBase: "base",
        QtGui.QPalette.ColorRole.ToolTipText: "text",
        QtGui.QPalette.ColorRole.Highlight: "accent",
        QtGui.QPalette.ColorRole.HighlightedText: "accent_text",
    }
    palette = QtGui.QPalette()
    for role, key in roles.items():
        palette.setColor(role, QtGui.QColor(colors[key]))
    app.setPalette(palette)

    app.setStyleSheet(
        f"""
        QTableView {{
            background: {colors['base']};
            alternate-background-color: {colors['base_alt']};
            gridline-color: {colors['border']};
        }}
        QHeaderView::section {{
            background: {colors['window']};
            color: {colors['muted']};
            border: none;
            border-right: 1px solid {colors['border']};
            border-bottom: 1px solid {colors['border']};
            padding: 2px 4px;
        }}
        QLineEdit {{
            border: 1px solid {colors['border']};
            border-radius: 4px;
            padding: 3px 6px;
        }}
        QLineEdit:focus {{
            border-color: {colors['accent']};
        }}
        QLabel#matchCounter {{
            color: {colors['muted']};
        }}
        QStatusBar {{
            color: {colors['muted']};
        }}
        """
    )
    return colors
