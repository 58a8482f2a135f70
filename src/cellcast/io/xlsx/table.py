"""Header, body and totals rows written into one worksheet.

The worksheet is any object with XlsxWriter's ``Worksheet`` write methods.
Formats are handed to it through ``format_factory``, which maps a
:class:`SpecCellFormat` to whatever the worksheet accepts as a format (for
XlsxWriter, see :func:`cellcast.io.xlsx.util.create_workbook_format_factory`).

Rows hold values already converted for output. ``None`` and empty cells are
skipped: the destination cell is left untouched, never blanked or zeroed.
"""

import math
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from loguru import logger

from .conf import DEFAULT_XLSX_FORMATS, TIME_DATE_WRITE, TOTAL_LABEL
from .errors import EnumTableWriteStage, TableWriteError
from .spec import (
    CellValue,
    EnumCellKind,
    RawCell,
    SpecCellFormat,
    SpecHeaderColumn,
    SpecTableLayout,
    SpecTotalColumn,
)
from .util import (
    convert_total_value,
    create_sum_formula,
    normalize_header,
    normalize_totals,
    resolve_col_letter,
)
from .value_conversion import convert_value_to_cell, epoch_offset_to_date

FormatFactory = Callable[[SpecCellFormat], Any]

# XlsxWriter worksheet return codes
_DICT_SINK_RC_ERRORS = {
    -1: "row or column is out of worksheet bounds",
    -2: "string longer than 32767 characters was truncated",
    -3: "empty formula",
}

################################################################################
# #region SinkCalls


def _call_sink(
    stage: EnumTableWriteStage,
    row: int,
    col: int,
    fn_write: Callable[..., Any],
    *args: Any,
) -> None:
    try:
        v_rc = fn_write(*args)
    except Exception as e:
        raise TableWriteError(stage, row=row, col=col, reason=repr(e)) from e

    if not isinstance(v_rc, int) or v_rc >= 0:
        return
    raise TableWriteError(
        stage,
        row=row,
        col=col,
        reason=_DICT_SINK_RC_ERRORS.get(v_rc, f"worksheet returned {v_rc}"),
    )


def _write_cell(
    ws: Any,
    row: int,
    col: int,
    cell: RawCell | None,
    *,
    fmt_date: Any,
) -> None:
    if cell is None:
        return
    match cell.kind:
        case EnumCellKind.TEXT:
            _call_sink(
                EnumTableWriteStage.CELL_STRING,
                row,
                col,
                ws.write_string,
                row,
                col,
                cell.value,
            )
        case EnumCellKind.INTEGER:
            _call_sink(
                EnumTableWriteStage.CELL_INTEGER,
                row,
                col,
                ws.write_number,
                row,
                col,
                float(cell.value),  # type: ignore[arg-type]
            )
        case EnumCellKind.NUMBER | EnumCellKind.DURATION:
            _call_sink(
                EnumTableWriteStage.CELL_NUMBER,
                row,
                col,
                ws.write_number,
                row,
                col,
                cell.value,
            )
        case EnumCellKind.DATETIME:
            # floored like convert_to_date, so a serial read back from a noon
            # write keeps its day; the date is written at noon
            n_serial = float(cell.value)  # type: ignore[arg-type]
            date_value = (
                epoch_offset_to_date(math.floor(n_serial))
                if math.isfinite(n_serial)
                else None
            )
            if date_value is None:
                raise TableWriteError(
                    EnumTableWriteStage.CELL_DATE,
                    row=row,
                    col=col,
                    reason=f"date serial {cell.value!r} is out of range",
                )
            _call_sink(
                EnumTableWriteStage.CELL_DATE,
                row,
                col,
                ws.write_datetime,
                row,
                col,
                datetime.combine(date_value, TIME_DATE_WRITE),
                fmt_date,
            )
        case EnumCellKind.BOOLEAN:
            _call_sink(
                EnumTableWriteStage.CELL_BOOLEAN,
                row,
                col,
                ws.write_boolean,
                row,
                col,
                cell.value,
            )
        case EnumCellKind.ERROR:
            logger.warning(
                f"Skipping error cell {cell.value!r} at (row={row}, col={col})."
            )
        case EnumCellKind.EMPTY:
            return


# #endregion
################################################################################
# #region TableWrites


def write_header(
    ws: Any,
    row_start: int,
    font_color: str,
    bg_color: str,
    header: Sequence[SpecHeaderColumn | tuple[str, float]],
    *,
    format_factory: FormatFactory,
    fmt_header: SpecCellFormat | None = None,
) -> None:
    """Write header titles in one row and size each column.

    Column ``i`` gets the ``i``-th header entry's width and title.
    """
    cfg_fmt_header = format_factory(
        (fmt_header or DEFAULT_XLSX_FORMATS["header"]).with_(
            font_color=font_color, bg_color=bg_color
        )
    )
    for _col_idx, _column in enumerate(normalize_header(header)):
        _call_sink(
            EnumTableWriteStage.COLUMN_WIDTH,
            row_start,
            _col_idx,
            ws.set_column,
            _col_idx,
            _col_idx,
            _column.width,
        )
        _call_sink(
            EnumTableWriteStage.HEADER_CELL,
            row_start,
            _col_idx,
            ws.write_string,
            row_start,
            _col_idx,
            _column.title,
            cfg_fmt_header,
        )


def write_rows(
    ws: Any,
    row_start: int,
    rows: Sequence[Sequence[CellValue]],
    if_include_total_row: bool = False,
    totals: Sequence[SpecTotalColumn | tuple[Any, int, str]] | None = None,
    *,
    format_factory: FormatFactory,
    fmt_total: SpecCellFormat | None = None,
    fmt_date: SpecCellFormat | None = None,
) -> SpecTableLayout:
    """Write data rows from ``row_start`` on, then the optional totals row.

    The totals row sits right under the last data row: ``"Total"`` in column
    0 and, per ``totals`` entry, a ``SUM`` over that column's data rows with
    the entry's value as the cached result.
    """
    if row_start < 0:
        raise ValueError(f"row_start must be >= 0, got {row_start}.")

    cfg_fmt_date = format_factory(fmt_date or DEFAULT_XLSX_FORMATS["date"])
    n_rows = len(rows)
    n_cols = 0

    for _row_idx, _row_values in enumerate(rows):
        n_row_ = row_start + _row_idx
        n_cols = max(n_cols, len(_row_values))
        for _col_idx, _value in enumerate(_row_values):
            _write_cell(
                ws,
                n_row_,
                _col_idx,
                convert_value_to_cell(_value),
                fmt_date=cfg_fmt_date,
            )

    n_row_total: int | None = None
    if if_include_total_row:
        n_row_total = row_start + n_rows
        cfg_fmt_total = format_factory(fmt_total or DEFAULT_XLSX_FORMATS["total"])
        _call_sink(
            EnumTableWriteStage.TOTAL_LABEL,
            n_row_total,
            0,
            ws.write_string,
            n_row_total,
            0,
            TOTAL_LABEL,
            cfg_fmt_total,
        )

        for _total in normalize_totals(totals):
            c_formula_ = create_sum_formula(
                resolve_col_letter(_total), row_start + 1, row_start + n_rows
            )
            _call_sink(
                EnumTableWriteStage.TOTAL_FORMULA,
                n_row_total,
                _total.col_idx,
                ws.write_formula,
                n_row_total,
                _total.col_idx,
                c_formula_,
                cfg_fmt_total,
                convert_total_value(_total.value),
            )

    return SpecTableLayout(
        row_header=None,
        row_data_start=row_start,
        row_data_end=row_start + n_rows - 1 if n_rows else None,
        row_total=n_row_total,
        n_cols=n_cols,
    )


def write_table(
    ws: Any,
    row_start: int,
    header_font_color: str,
    header_bg_color: str,
    header: Sequence[SpecHeaderColumn | tuple[str, float]],
    rows: Sequence[Sequence[CellValue]],
    if_include_total_row: bool = False,
    totals: Sequence[SpecTotalColumn | tuple[Any, int, str]] | None = None,
    *,
    format_factory: FormatFactory,
    fmt_header: SpecCellFormat | None = None,
    fmt_total: SpecCellFormat | None = None,
    fmt_date: SpecCellFormat | None = None,
) -> SpecTableLayout:
    """Header at ``row_start``, data from ``row_start + 1``, then totals."""
    write_header(
        ws,
        row_start,
        header_font_color,
        header_bg_color,
        header,
        format_factory=format_factory,
        fmt_header=fmt_header,
    )
    layout = write_rows(
        ws,
        row_start + 1,
        rows,
        if_include_total_row,
        totals,
        format_factory=format_factory,
        fmt_total=fmt_total,
        fmt_date=fmt_date,
    )
    logger.debug(
        f"Table written: header row {row_start}, {len(rows)} data row(s), "
        f"total row {layout.row_total}."
    )
    return SpecTableLayout(
        row_header=row_start,
        row_data_start=layout.row_data_start,
        row_data_end=layout.row_data_end,
        row_total=layout.row_total,
        n_cols=max(layout.n_cols, len(header)),
    )
