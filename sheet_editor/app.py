import faulthandler
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import typer
from PyQt6 import QtCore, QtWidgets

from sheet_editor.windows.main_window import MainWindow

logger = logging.getLogger("sheet_editor")

cli = typer.Typer(add_completion=False, help="SheetEdit - edit CSV and TSV files as a grid")


def _install_crash_handlers() -> None:
    def _log_unhandled(exc_type, exc_value, exc_traceback) -> None:
        logger.error("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = _log_unhandled
    faulthandler.enable()

    def _log_sigterm(signum, frame) -> None:
        logger.warning("Received signal %s, dumping stack.", signum)
        faulthandler.dump_traceback(file=sys.stderr, all_threads=True)

    signal.signal(signal.SIGTERM, _log_sigterm)


@cli.command()
def run(
    files: Optional[List[Path]] = typer.Argument(None, help="Delimited text files to open"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    _install_crash_handlers()

    app = QtWidgets.QApplication(sys.argv[:1])
    window = MainWindow()
    for path in files or []:
        window.open_file(str(path))
    if not window.sheets():
        window.new_file(".csv")
    window.show()
    window.raise_()
    window.activateWindow()
    QtCore.QTimer.singleShot(0, window.activateWindow)
    app.exec()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
