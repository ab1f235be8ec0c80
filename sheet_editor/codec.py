import csv
import io
import logging
import os
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

CellValue = Union[str, int, float, bool, None]
Grid = List[List[CellValue]]

DEFAULT_DELIMITER = ","
CANDIDATE_DELIMITERS = (",", "\t", "|", ";", "\x1e", "\x1f")
PREVIEW_RECORDS = 10
QUOTED_SPAN = re.compile(r'"[^"]*"')

EXTENSION_DELIMITERS = {
    ".csv": ",",
    ".tsv": "\t",
}


@dataclass
class TextFormat:
    delimiter: str = DEFAULT_DELIMITER
    linebreak: str = "\n"
    trailing_linebreak: bool = False


@dataclass
class ParseWarning:
    row: int
    expected: int
    found: int

    @property
    def message(self) -> str:
        return f"Row {self.row + 1} has {self.found} fields, expected {self.expected}."


@dataclass
class ParseResult:
    grid: Grid
    text_format: TextFormat
    warnings: List[ParseWarning] = field(default_factory=list)


def delimiter_for_path(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    _, ext = os.path.splitext(path)
    return EXTENSION_DELIMITERS.get(ext.lower())


def column_label(index: int) -> str:
    label = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        label = chr(ord("A") + remainder) + label
    return label


def stringify(value: CellValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _strip_quoted(text: str) -> str:
    return QUOTED_SPAN.sub("", text)


def detect_linebreak(text: str) -> str:
    pieces = _strip_quoted(text).split("\r")
    if len(pieces) == 1:
        return "\n"
    crlf = sum(1 for piece in pieces[1:] if piece.startswith("\n"))
    return "\r\n" if crlf >= len(pieces) / 2 else "\r"


def _read_records(text: str, delimiter: str, limit: Optional[int] = None) -> List[List[str]]:
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=False)
    records: List[List[str]] = []
    for record in reader:
        # csv.reader yields [] for blank lines; a blank line is one empty field.
        records.append(record or [""])
        if limit is not None and len(records) >= limit:
            break
    return records


def detect_delimiter(text: str) -> str:
    best_delimiter = DEFAULT_DELIMITER
    best_delta: Optional[float] = None
    for delimiter in CANDIDATE_DELIMITERS:
        try:
            preview = _read_records(text, delimiter, PREVIEW_RECORDS)
        except csv.Error:
            continue
        if not preview:
            continue
        counts = [len(record) for record in preview]
        average = sum(counts) / len(counts)
        if average <= 1.99:
            continue
        delta = sum(abs(count - average) for count in counts)
        if best_delta is None or delta < best_delta:
            best_delta = delta
            best_delimiter = delimiter
    logger.debug("Detected delimiter %r", best_delimiter)
    return best_delimiter


def _dominant_width(records: Sequence[Sequence[str]]) -> int:
    counts = Counter(len(record) for record in records)
    best = max(counts.values())
    for record in records:
        if counts[len(record)] == best:
            return len(record)
    return 1


def parse_text(text: str, delimiter: Optional[str] = None) -> ParseResult:
    linebreak = detect_linebreak(text)
    trailing = bool(text) and text.endswith(linebreak)
    body = text[: -len(linebreak)] if trailing else text
    if not delimiter:
        delimiter = detect_delimiter(body)
    text_format = TextFormat(delimiter=delimiter, linebreak=linebreak, trailing_linebreak=trailing)

    if not body:
        return ParseResult([[""]], text_format)

    records = _read_records(body, delimiter)
    if _strip_quoted(body).endswith(linebreak):
        records.append([""])
    width = _dominant_width(records)
    warnings: List[ParseWarning] = []
    grid: Grid = []
    for row, record in enumerate(records):
        if len(record) != width:
            warnings.append(ParseWarning(row, width, len(record)))
            if len(record) < width:
                record = record + [""] * (width - len(record))
            else:
                record = record[:width]
        grid.append(list(record))
    if warnings:
        logger.warning(
            "Parsing errors encountered: %s",
            "; ".join(warning.message for warning in warnings),
        )
    return ParseResult(grid, text_format, warnings)


def _format_record(values: Sequence[CellValue], text_format: TextFormat) -> str:
    cells = [stringify(value) for value in values]
    if len(cells) == 1 and cells[0] == "":
        return ""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=text_format.delimiter, lineterminator="\r\n")
    writer.writerow(cells)
    return buffer.getvalue()[:-2]


def serialize_grid(
    grid: Sequence[Sequence[CellValue]],
    text_format: TextFormat,
    titles: Optional[Sequence[Optional[str]]] = None,
) -> str:
    lines: List[str] = []
    if titles is not None:
        width = len(grid[0]) if grid else len(titles)
        header = [
            titles[col] if col < len(titles) and titles[col] is not None else column_label(col)
            for col in range(width)
        ]
        lines.append(_format_record(header, text_format))
    for row in grid:
        lines.append(_format_record(row, text_format))
    text = text_format.linebreak.join(lines)
    if text_format.trailing_linebreak:
        text += text_format.linebreak
    return text


def promote_header(grid: Grid) -> Tuple[List[str], Grid]:
    if not grid:
        return [], []
    titles = [stringify(value) for value in grid[0]]
    rest = [list(row) for row in grid[1:]]
    return titles, rest


def demote_header(titles: Sequence[Optional[str]], grid: Grid) -> Grid:
    width = len(grid[0]) if grid else len(titles)
    header: List[CellValue] = [
        titles[col] if col < len(titles) and titles[col] is not None else ""
        for col in range(width)
    ]
    return [header] + [list(row) for row in grid]
