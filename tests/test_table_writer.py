from __future__ import annotations

import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from cellcast.io.xlsx.errors import EnumTableWriteStage, TableWriteError  # noqa: E402
from cellcast.io.xlsx.spec import (  # noqa: E402
    RawCell,
    SpecCellFormat,
    SpecHeaderColumn,
    SpecTableLayout,
    SpecTotalColumn,
)
from cellcast.io.xlsx.table import write_header, write_rows, write_table  # noqa: E402
from cellcast.io.xlsx.util import create_workbook_format_factory  # noqa: E402


class RecordingSheet:
    """Worksheet double recording every write as ``(op, args)``."""

    def __init__(
        self,
        *,
        dict_return_codes: dict[str, int] | None = None,
        dict_raises: dict[str, Exception] | None = None,
    ) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._dict_return_codes = dict_return_codes or {}
        self._dict_raises = dict_raises or {}

    def _record(self, op: str, *args: Any) -> int:
        self.calls.append((op, args))
        if op in self._dict_raises:
            raise self._dict_raises[op]
        return self._dict_return_codes.get(op, 0)

    def set_column(self, first_col: int, last_col: int, width: float) -> int:
        return self._record("set_column", first_col, last_col, width)

    def write_string(self, row: int, col: int, s: str, fmt: Any = None) -> int:
        return self._record("write_string", row, col, s, fmt)

    def write_number(self, row: int, col: int, x: float, fmt: Any = None) -> int:
        return self._record("write_number", row, col, x, fmt)

    def write_datetime(self, row: int, col: int, dt: datetime, fmt: Any = None) -> int:
        return self._record("write_datetime", row, col, dt, fmt)

    def write_boolean(self, row: int, col: int, b: bool, fmt: Any = None) -> int:
        return self._record("write_boolean", row, col, b, fmt)

    def write_formula(
        self, row: int, col: int, formula: str, fmt: Any = None, value: Any = 0
    ) -> int:
        return self._record("write_formula", row, col, formula, fmt, value)

    def calls_at(self, row: int, col: int) -> list[tuple[str, tuple[Any, ...]]]:
        return [
            _call
            for _call in self.calls
            if _call[0] != "set_column" and _call[1][:2] == (row, col)
        ]


def _identity_format(spec: SpecCellFormat) -> SpecCellFormat:
    return spec


def test_totals_row_follows_the_last_data_row() -> None:
    ws = RecordingSheet()
    n_start_row = 3

    layout = write_table(
        ws,
        n_start_row,
        "white",
        "navy",
        [("Date", 10.0), ("Count", 5.0)],
        [[date(2021, 4, 3), 10], [date(2021, 4, 2), 5]],
        True,
        [SpecTotalColumn(value=15, col_idx=1, col_letter="B")],
        format_factory=_identity_format,
    )

    n_row_total = n_start_row + 1 + 2
    assert layout == SpecTableLayout(
        row_header=3, row_data_start=4, row_data_end=5, row_total=6, n_cols=2
    )

    ((op_label, args_label),) = ws.calls_at(n_row_total, 0)
    assert op_label == "write_string"
    assert args_label[2] == "Total"
    assert args_label[3].bold is True
    assert args_label[3].top == 2

    ((op_formula, args_formula),) = ws.calls_at(n_row_total, 1)
    assert op_formula == "write_formula"
    assert args_formula[2] == f"=SUM(B{n_start_row + 2}:B{n_start_row + 1 + 2})"
    assert args_formula[2] == "=SUM(B5:B6)"
    assert args_formula[4] == 15.0


def test_header_sets_widths_and_styles_titles() -> None:
    ws = RecordingSheet()

    write_header(
        ws,
        2,
        "red",
        "yellow",
        [SpecHeaderColumn("A", 12.5), ("B", 4)],
        format_factory=_identity_format,
    )

    assert ws.calls[0] == ("set_column", (0, 0, 12.5))
    assert ws.calls[2] == ("set_column", (1, 1, 4.0))

    op_title, args_title = ws.calls[1]
    assert op_title == "write_string"
    assert args_title[:3] == (2, 0, "A")
    fmt_header = args_title[3]
    assert fmt_header.align == "center_across"
    assert fmt_header.font_color == "red"
    assert fmt_header.bg_color == "yellow"


def test_none_cells_are_never_written() -> None:
    ws = RecordingSheet()

    layout = write_rows(
        ws,
        0,
        [["a", None, RawCell.empty()], [None, 2, "c"]],
        format_factory=_identity_format,
    )

    assert ws.calls_at(0, 1) == []
    assert ws.calls_at(0, 2) == []
    assert ws.calls_at(1, 0) == []
    assert len(ws.calls) == 3
    assert layout.row_total is None
    assert layout.row_data_end == 1


def test_cells_use_typed_writes() -> None:
    ws = RecordingSheet()

    write_rows(
        ws,
        1,
        [
            [
                "text",
                7,
                Decimal("1.25"),
                date(2021, 4, 3),
                True,
                RawCell.duration(0.5),
            ]
        ],
        format_factory=_identity_format,
    )

    assert ws.calls_at(1, 0) == [("write_string", (1, 0, "text", None))]
    assert ws.calls_at(1, 1) == [("write_number", (1, 1, 7.0, None))]
    assert ws.calls_at(1, 2) == [("write_number", (1, 2, 1.25, None))]
    assert ws.calls_at(1, 4) == [("write_boolean", (1, 4, True, None))]
    assert ws.calls_at(1, 5) == [("write_number", (1, 5, 0.5, None))]

    ((op_date, args_date),) = ws.calls_at(1, 3)
    assert op_date == "write_datetime"
    assert args_date[2] == datetime(2021, 4, 3, 12, 0, 0)
    assert args_date[3] == SpecCellFormat(num_format="yyyy-mm-dd")


def test_error_cells_are_skipped() -> None:
    ws = RecordingSheet()
    write_rows(ws, 0, [[RawCell.error("#N/A"), 1]], format_factory=_identity_format)
    assert ws.calls_at(0, 0) == []
    assert len(ws.calls) == 1


def test_totals_without_letter_use_the_column_index() -> None:
    ws = RecordingSheet()

    layout = write_rows(
        ws,
        4,
        [[1, 2, 3]],
        True,
        [(6, 2, "")],
        format_factory=_identity_format,
    )

    assert layout.row_total == 5
    ((_, args_formula),) = ws.calls_at(5, 2)
    assert args_formula[2] == "=SUM(C5:C5)"
    assert args_formula[4] == 6.0


def test_custom_formats_replace_defaults() -> None:
    ws = RecordingSheet()
    fmt_total = SpecCellFormat(bold=True, bg_color="gray")

    write_rows(
        ws,
        0,
        [[1]],
        True,
        format_factory=_identity_format,
        fmt_total=fmt_total,
    )

    ((_, args_label),) = ws.calls_at(1, 0)
    assert args_label[3] == fmt_total


def test_negative_start_row_is_rejected() -> None:
    with pytest.raises(ValueError, match="row_start"):
        write_rows(RecordingSheet(), -1, [[1]], format_factory=_identity_format)


def test_sink_error_code_names_the_failed_write() -> None:
    ws = RecordingSheet(dict_return_codes={"write_number": -1})

    with pytest.raises(TableWriteError) as exc_info:
        write_rows(ws, 0, [["a", 5, "b"]], format_factory=_identity_format)

    assert exc_info.value.stage == EnumTableWriteStage.CELL_INTEGER
    assert (exc_info.value.row, exc_info.value.col) == (0, 1)
    assert "out of worksheet bounds" in str(exc_info.value)
    # nothing after the failed write
    assert ws.calls_at(0, 2) == []


def test_sink_exception_is_chained() -> None:
    exc_sink = OSError("disk full")
    ws = RecordingSheet(dict_raises={"write_string": exc_sink})

    with pytest.raises(TableWriteError) as exc_info:
        write_header(
            ws,
            0,
            "white",
            "navy",
            [("A", 10.0)],
            format_factory=_identity_format,
        )

    assert exc_info.value.stage == EnumTableWriteStage.HEADER_CELL
    assert exc_info.value.__cause__ is exc_sink


@pytest.mark.parametrize(
    ("c_op", "stage"),
    [
        ("set_column", EnumTableWriteStage.COLUMN_WIDTH),
        ("write_formula", EnumTableWriteStage.TOTAL_FORMULA),
        ("write_datetime", EnumTableWriteStage.CELL_DATE),
        ("write_boolean", EnumTableWriteStage.CELL_BOOLEAN),
    ],
)
def test_each_write_reports_its_stage(c_op: str, stage: EnumTableWriteStage) -> None:
    ws = RecordingSheet(dict_return_codes={c_op: -1})

    with pytest.raises(TableWriteError) as exc_info:
        write_table(
            ws,
            0,
            "white",
            "navy",
            [("D", 10.0), ("B", 5.0)],
            [[date(2021, 4, 3), False]],
            True,
            [SpecTotalColumn(value=0, col_idx=1)],
            format_factory=_identity_format,
        )

    assert exc_info.value.stage == stage


def test_total_label_failure_stops_before_formulas() -> None:
    ws = RecordingSheet(dict_raises={"write_string": RuntimeError("closed")})

    with pytest.raises(TableWriteError) as exc_info:
        write_rows(
            ws,
            0,
            [[1, 2]],
            True,
            [SpecTotalColumn(value=2, col_idx=1)],
            format_factory=_identity_format,
        )

    assert exc_info.value.stage == EnumTableWriteStage.TOTAL_LABEL
    assert all(_op != "write_formula" for _op, _ in ws.calls)


def test_truncated_string_fails_the_write() -> None:
    ws = RecordingSheet(dict_return_codes={"write_string": -2})

    with pytest.raises(TableWriteError) as exc_info:
        write_rows(ws, 0, [["x" * 40_000, 1]], format_factory=_identity_format)

    assert exc_info.value.stage == EnumTableWriteStage.CELL_STRING
    assert "truncated" in exc_info.value.reason
    assert ws.calls_at(0, 1) == []


def test_truncated_header_title_fails_the_header_write() -> None:
    ws = RecordingSheet(dict_return_codes={"write_string": -2})

    with pytest.raises(TableWriteError) as exc_info:
        write_header(
            ws,
            0,
            "white",
            "navy",
            [("t" * 40_000, 10.0)],
            format_factory=_identity_format,
        )

    assert exc_info.value.stage == EnumTableWriteStage.HEADER_CELL


def test_date_serial_time_of_day_keeps_its_day() -> None:
    ws = RecordingSheet()
    write_rows(
        ws,
        0,
        [[RawCell.date_serial(44289.75)]],
        format_factory=_identity_format,
    )
    ((_, args_date),) = ws.calls_at(0, 0)
    assert args_date[2] == datetime(2021, 4, 3, 12, 0, 0)


def test_date_serial_out_of_range_fails_the_date_write() -> None:
    ws = RecordingSheet()

    with pytest.raises(TableWriteError) as exc_info:
        write_rows(
            ws,
            0,
            [[RawCell.date_serial(1e12)]],
            format_factory=_identity_format,
        )

    assert exc_info.value.stage == EnumTableWriteStage.CELL_DATE
    assert ws.calls == []


def test_workbook_format_factory_adds_each_format_once() -> None:
    class _RecordingWorkbook:
        def __init__(self) -> None:
            self.l_added: list[dict[str, Any]] = []

        def add_format(self, props: dict[str, Any]) -> object:
            self.l_added.append(props)
            return object()

    wb = _RecordingWorkbook()
    create_format = create_workbook_format_factory(wb)

    fmt_a = create_format(SpecCellFormat(bold=True, top=2))
    fmt_b = create_format(SpecCellFormat(bold=True, top=2))
    create_format(SpecCellFormat(num_format="yyyy-mm-dd"))

    assert fmt_a is fmt_b
    assert wb.l_added == [{"bold": True, "top": 2}, {"num_format": "yyyy-mm-dd"}]
