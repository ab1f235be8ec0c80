"""Tests for delimited text parsing and serialization."""

from __future__ import annotations

import pytest

from sheet_editor.codec import (
    TextFormat,
    column_label,
    delimiter_for_path,
    demote_header,
    detect_delimiter,
    detect_linebreak,
    parse_text,
    promote_header,
    serialize_grid,
    stringify,
)


class TestParseText:
    """Test parse_text."""

    def test_parse_simple_csv(self) -> None:
        """Should split records into a rectangular grid."""
        result = parse_text("a,b\n1,2\n3,4")

        assert result.grid == [["a", "b"], ["1", "2"], ["3", "4"]]
        assert result.text_format.delimiter == ","
        assert result.text_format.linebreak == "\n"
        assert result.text_format.trailing_linebreak is False
        assert result.warnings == []

    def test_detects_semicolon_and_crlf(self) -> None:
        """Should guess the delimiter and keep the trailing CRLF."""
        result = parse_text("a;b\r\nc;d\r\n")

        assert result.grid == [["a", "b"], ["c", "d"]]
        assert result.text_format == TextFormat(";", "\r\n", True)

    def test_pinned_delimiter_wins(self) -> None:
        """Should not guess when a delimiter is given."""
        result = parse_text("a\tb,c", "\t")

        assert result.grid == [["a", "b,c"]]

    def test_quoted_fields(self) -> None:
        """Should honour quotes and doubled quotes."""
        result = parse_text('x,"y,z"\n"q""r",s')

        assert result.grid == [["x", "y,z"], ['q"r', "s"]]

    def test_ragged_rows_are_padded_and_reported(self) -> None:
        """Should pad short rows and collect a warning for each."""
        result = parse_text("a,b,c\n1,2\n3,4,5")

        assert result.grid == [["a", "b", "c"], ["1", "2", ""], ["3", "4", "5"]]
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert (warning.row, warning.expected, warning.found) == (1, 3, 2)
        assert "Row 2" in warning.message

    def test_long_rows_are_truncated(self) -> None:
        """Should cut rows wider than the dominant width."""
        result = parse_text("a,b\n1,2,3\n4,5")

        assert result.grid == [["a", "b"], ["1", "2"], ["4", "5"]]
        assert len(result.warnings) == 1

    def test_empty_text(self) -> None:
        """Should produce a single empty cell."""
        assert parse_text("").grid == [[""]]

    def test_multiline_cell_in_crlf_file(self) -> None:
        """Should keep CRLF when a quoted cell holds a bare LF."""
        result = parse_text('"a\nb",c\r\n1,2\r\n')

        assert result.grid == [["a\nb", "c"], ["1", "2"]]
        assert result.text_format == TextFormat(",", "\r\n", True)

    def test_trailing_blank_line(self) -> None:
        """Should keep a blank last record apart from the trailing line break."""
        result = parse_text("a\nb\n\n")

        assert result.grid == [["a"], ["b"], [""]]
        assert result.text_format.trailing_linebreak is True

    def test_header_only(self) -> None:
        """Should read a lone header row as one record."""
        result = parse_text("name,age")

        assert result.grid == [["name", "age"]]
        assert result.warnings == []


class TestDetectDelimiter:
    """Test detect_delimiter."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("a,b,c\n1,2,3", ","),
            ("a\tb\n1\t2", "\t"),
            ("a|b\n1|2", "|"),
            ("single column\nvalues", ","),
        ],
    )
    def test_detect(self, text: str, expected: str) -> None:
        """Should pick the most consistent candidate or fall back to a comma."""
        assert detect_delimiter(text) == expected


class TestDetectLinebreak:
    """Test detect_linebreak."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("a,b\n1,2", "\n"),
            ("a,b\r\n1,2\r\n", "\r\n"),
            ("a,b\r1,2", "\r"),
            ("single", "\n"),
            ('"a\nb",c\r\n1,2\r\n', "\r\n"),
            ('"x\r\ny",z\n1,2\n', "\n"),
        ],
    )
    def test_detect(self, text: str, expected: str) -> None:
        """Should ignore line breaks inside quoted fields."""
        assert detect_linebreak(text) == expected


class TestSerializeGrid:
    """Test serialize_grid."""

    @pytest.mark.parametrize(
        "text",
        [
            "a,b\n1,2\n3,4",
            "a;b\r\nc;d\r\n",
            'x,"y,z"\n"q""r",s\n',
            'name\tnote\nbob\t"two\nlines"',
            '"a\nb",c\r\n1,2\r\n',
            "a\nb\n\n",
            "only\n",
        ],
    )
    def test_round_trip(self, text: str) -> None:
        """Should reproduce well-formed input exactly."""
        result = parse_text(text)

        assert serialize_grid(result.grid, result.text_format) == text

    def test_header_titles_are_prepended(self) -> None:
        """Should emit titles first, labelling untitled columns."""
        text = serialize_grid([["1", "2"]], TextFormat(), titles=["a", None])

        assert text == "a,B\n1,2"

    def test_non_string_values(self) -> None:
        """Should write typed values in their text form."""
        text = serialize_grid([[1, 2.0, True, None]], TextFormat())

        assert text == "1,2,true,"


class TestHeaderHelpers:
    """Test promote_header and demote_header."""

    def test_promote_then_demote(self) -> None:
        """Should restore the original grid."""
        grid = [["a", "b"], ["1", "2"]]

        titles, rest = promote_header(grid)

        assert titles == ["a", "b"]
        assert rest == [["1", "2"]]
        assert demote_header(titles, rest) == grid

    def test_promote_single_row(self) -> None:
        """Should leave an empty body."""
        titles, rest = promote_header([["x", "y"]])

        assert titles == ["x", "y"]
        assert rest == []


class TestHelpers:
    """Test small codec helpers."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [("data.csv", ","), ("DATA.TSV", "\t"), ("notes.txt", None), (None, None)],
    )
    def test_delimiter_for_path(self, path, expected) -> None:
        """Should bind the delimiter from the file extension."""
        assert delimiter_for_path(path) == expected

    @pytest.mark.parametrize(("index", "label"), [(0, "A"), (25, "Z"), (26, "AA"), (27, "AB"), (701, "ZZ")])
    def test_column_label(self, index: int, label: str) -> None:
        """Should produce spreadsheet-style column letters."""
        assert column_label(index) == label

    def test_stringify(self) -> None:
        """Should render typed cell values as text."""
        assert stringify(None) == ""
        assert stringify(True) == "true"
        assert stringify(False) == "false"
        assert stringify(3.0) == "3"
        assert stringify(2.5) == "2.5"
        assert stringify("x") == "x"
