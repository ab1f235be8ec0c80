import enum
import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from sheet_editor.codec import CellValue, column_label, stringify

if TYPE_CHECKING:
    from sheet_editor.widgets.sheet_view import SheetView

logger = logging.getLogger(__name__)

MINIMUM_COLUMN_WIDTH = 25
DEFAULT_FIT_CELLS_LIMIT = 100 * 100


class FitMode(enum.Enum):
    ALL_EQUAL_DEFAULT = "all-equal-default"
    ALL_EQUAL_FIT = "all-equal-fit"
    FIT_CELLS = "fit-cells"


_NEXT_MODE = {
    FitMode.FIT_CELLS: FitMode.ALL_EQUAL_FIT,
    FitMode.ALL_EQUAL_FIT: FitMode.ALL_EQUAL_DEFAULT,
    FitMode.ALL_EQUAL_DEFAULT: FitMode.FIT_CELLS,
}


def next_fit_mode(mode: FitMode) -> FitMode:
    return _NEXT_MODE[mode]


def compute_column_widths(
    mode: FitMode,
    grid: Sequence[Sequence[CellValue]],
    column_count: int,
    default_width: int,
    available_width: float,
    measure: Callable[[str], float],
    titles: Optional[Sequence[Optional[str]]] = None,
) -> List[float]:
    if column_count <= 0:
        return []
    if mode == FitMode.ALL_EQUAL_DEFAULT:
        return [default_width] * column_count
    if mode == FitMode.ALL_EQUAL_FIT:
        return [available_width / column_count] * column_count

    widths: List[float] = []
    for col in range(column_count):
        title = None
        if titles is not None and col < len(titles):
            title = titles[col]
        width = max(MINIMUM_COLUMN_WIDTH, measure(title if title is not None else column_label(col)))
        for row in grid:
            if col < len(row):
                width = max(width, measure(stringify(row[col])))
        widths.append(width)
    return widths


class LayoutEngine:
    def __init__(self, fit_cells_limit: int = DEFAULT_FIT_CELLS_LIMIT) -> None:
        self.fit_cells_limit = fit_cells_limit
        self.mode = FitMode.ALL_EQUAL_DEFAULT

    def initial_mode(self, row_count: int, column_count: int) -> FitMode:
        if row_count and column_count and row_count * column_count < self.fit_cells_limit:
            self.mode = FitMode.FIT_CELLS
        else:
            self.mode = FitMode.ALL_EQUAL_DEFAULT
        return self.mode

    def cycle(self) -> FitMode:
        self.mode = next_fit_mode(self.mode)
        logger.debug("Fit mode switched to %s", self.mode.value)
        return self.mode

    def relayout(
        self,
        view: "SheetView",
        titles: Optional[Sequence[Optional[str]]] = None,
        mode: Optional[FitMode] = None,
    ) -> List[float]:
        column_count = view.column_count()
        if not column_count:
            return []
        mode = mode or self.mode
        grid = view.get_data() if mode == FitMode.FIT_CELLS else []
        widths = compute_column_widths(
            mode,
            grid,
            column_count,
            view.default_column_width(),
            view.viewport_width() - view.gutter_width(),
            view.measure_text,
            titles,
        )
        view.set_column_widths(widths)
        return widths
