import logging
import os
from typing import Optional

from PyQt6 import QtCore

logger = logging.getLogger(__name__)


class DocumentContext(QtCore.QObject):
    """Holds the authoritative flat text of one document and announces when it changes."""

    ready = QtCore.pyqtSignal()
    content_changed = QtCore.pyqtSignal()
    dirty_changed = QtCore.pyqtSignal(bool)
    path_changed = QtCore.pyqtSignal(str)

    def __init__(self, path: str, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._path = path
        self._text = ""
        self._ready = False
        self._dirty = False
        self._untitled = False

    @classmethod
    def from_text(cls, text: str, path: str, parent: Optional[QtCore.QObject] = None) -> "DocumentContext":
        context = cls(path, parent)
        context._text = text
        context._untitled = True
        context.mark_ready()
        return context

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        return os.path.basename(self._path)

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_untitled(self) -> bool:
        return self._untitled

    def text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        if text == self._text:
            return
        self._text = text
        self._set_dirty(True)
        self.content_changed.emit()

    def load(self) -> None:
        self._text = self._read()
        self._set_dirty(False)
        self.mark_ready()

    def mark_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        self.ready.emit()

    def reload(self) -> None:
        text = self._read()
        changed = text != self._text
        self._text = text
        self._set_dirty(False)
        if changed:
            self.content_changed.emit()

    def save(self, path: Optional[str] = None) -> None:
        target = path or self._path
        with open(target, "w", encoding="utf-8", newline="") as handle:
            handle.write(self._text)
        logger.info("Saved %s", target)
        if target != self._path:
            self._path = target
            self.path_changed.emit(target)
        self._untitled = False
        self._set_dirty(False)

    def _read(self) -> str:
        if not os.path.exists(self._path):
            return ""
        with open(self._path, "r", encoding="utf-8", newline="") as handle:
            return handle.read()

    def _set_dirty(self, dirty: bool) -> None:
        if dirty == self._dirty:
            return
        self._dirty = dirty
        self.dirty_changed.emit(dirty)
