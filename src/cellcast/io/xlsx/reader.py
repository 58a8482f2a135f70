import os
import zipfile
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

from loguru import logger
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .conf import EPOCH_DATE
from .errors import WorkbookOpenError, WorkbookReadError, WorksheetIndexError
from .spec import RawCell

_DATETIME_EPOCH = datetime.combine(EPOCH_DATE, time())
_N_SECONDS_PER_DAY = 86_400
# openpyxl cell data type of error values ("#N/A", "#DIV/0!", ...)
_C_DATA_TYPE_ERROR = "e"


def convert_worksheet_value_to_cell(
    value: Any, data_type: str | None = None
) -> RawCell:
    """Map an openpyxl cell value (and its ``data_type``) to a :class:`RawCell`.

    Dates and datetimes become native date cells (serial days, time as the
    fraction); times and timedeltas become durations in days.
    """
    if value is None:
        return RawCell.empty()
    if data_type == _C_DATA_TYPE_ERROR:
        return RawCell.error(str(value))
    if isinstance(value, bool):
        return RawCell.boolean(value)
    if isinstance(value, int):
        return RawCell.integer(value)
    if isinstance(value, float):
        return RawCell.number(value)
    if isinstance(value, str):
        return RawCell.text(value)
    # datetime before date: datetime is a date subclass
    if isinstance(value, datetime):
        td_offset = value.replace(tzinfo=None) - _DATETIME_EPOCH
        return RawCell.date_serial(td_offset.total_seconds() / _N_SECONDS_PER_DAY)
    if isinstance(value, date):
        return RawCell.date_serial((value - EPOCH_DATE).days)
    if isinstance(value, time):
        n_seconds = value.hour * 3600 + value.minute * 60 + value.second
        n_seconds += value.microsecond / 1_000_000
        return RawCell.duration(n_seconds / _N_SECONDS_PER_DAY)
    if isinstance(value, timedelta):
        return RawCell.duration(value.total_seconds() / _N_SECONDS_PER_DAY)
    return RawCell.error(str(value))


@dataclass(frozen=True, slots=True)
class SheetGrid:
    """Cells of one worksheet addressed by 0-based ``(row, col)``.

    Coordinates are absolute: leading empty rows/columns of the sheet are
    kept, so ``cell_at(0, 0)`` is always ``A1``.
    """

    sheet_name: str
    rows: tuple[tuple[RawCell, ...], ...]

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return max((len(_row) for _row in self.rows), default=0)

    def cell_at(self, row: int, col: int) -> RawCell | None:
        """The cell at ``(row, col)``, or ``None`` outside the used area."""
        if row < 0 or col < 0 or row >= len(self.rows):
            return None
        l_row = self.rows[row]
        return l_row[col] if col < len(l_row) else None

    def iter_rows(self) -> Iterator[tuple[RawCell, ...]]:
        yield from self.rows


def open_nth_worksheet(path: os.PathLike[str] | str, worksheet_idx: int) -> SheetGrid:
    """Open the ``worksheet_idx``-th (0-based) worksheet of a workbook file.

    Any format openpyxl loads is accepted (xlsx, xlsm, xltx, xltm). Formula
    cells hold their cached result, as last saved by the writing application.

    Raises
    ------
    WorkbookOpenError
        The file is missing, unreadable or not a recognized workbook.
    WorksheetIndexError
        The workbook has no worksheet at ``worksheet_idx``.
    WorkbookReadError
        The worksheet exists but its cells could not be decoded.
    """
    path_in = Path(path)
    try:
        wb = load_workbook(filename=path_in, data_only=True)
    # KeyError: a zip archive without the workbook parts
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as e:
        raise WorkbookOpenError(path_in, str(e)) from e

    try:
        # chartsheets hold no cells and are not counted
        l_sheet_names = [_ws.title for _ws in wb.worksheets]
        n_sheets = len(l_sheet_names)
        if not 0 <= worksheet_idx < n_sheets:
            raise WorksheetIndexError(path_in, worksheet_idx, n_sheets)

        ws = wb.worksheets[worksheet_idx]
        try:
            tup_rows = tuple(
                tuple(
                    convert_worksheet_value_to_cell(_cell.value, _cell.data_type)
                    for _cell in _row
                )
                for _row in ws.iter_rows()
            )
        except (ValueError, TypeError, OverflowError) as e:
            raise WorkbookReadError(path_in, str(e)) from e
    finally:
        wb.close()

    grid = SheetGrid(sheet_name=l_sheet_names[worksheet_idx], rows=tup_rows)
    logger.debug(
        f"Worksheet {grid.sheet_name!r} of {path_in.name}: "
        f"{grid.height} x {grid.width} cells."
    )
    return grid
