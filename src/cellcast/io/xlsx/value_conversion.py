"""Conversions between spreadsheet cells and domain values.

Reading: ``convert_to_*`` turn a :class:`RawCell` (or ``None`` for an absent
cell) into ``date``/``int``/``Decimal``/``str``. They are total: input that
cannot be read as the requested type gives ``None``, never an exception.

Writing: :func:`convert_date_to_cell` and :func:`convert_value_to_cell`
go the other way, from domain values to cells.

Date heuristic
--------------
A ``NUMBER`` cell whose rounded value has 7 or 8 digits is always read as a
compact ``DDMMYYYY`` date (``16112020.0`` is 2020-11-16), never as a day
offset or a plain quantity. A genuine 7 or 8 digit quantity read with
:func:`convert_to_date` is therefore misread as a date.
"""

import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation

from .conf import (
    EPOCH_DATE,
    N_INT32_MAX,
    N_INT32_MIN,
    N_LEN_COMPACT_DATE,
    TUP_LEN_COMPACT_DATE_NUMERIC,
)
from .spec import CellValue, EnumCellKind, RawCell

################################################################################
# #region NumericHelpers


def convert_nan_inf_to_str(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Inf" if x > 0 else "-Inf"
    raise ValueError("Input is neither NaN nor Inf.")


def round_half_away_from_zero(x: float) -> int:
    """Round to the nearest integer, ties away from zero (``2.5 -> 3``).

    ``round()`` rounds ties to even, which is not how spreadsheets round.
    """
    n_floor = math.floor(abs(x) + 0.5)
    return n_floor if x >= 0 else -n_floor


def _parse_ascii_uint(s: str) -> int | None:
    # int() alone would also take " 7", "+7", "1_0" and non-ASCII digits.
    if not s or not (s.isascii() and s.isdigit()):
        return None
    return int(s)


def _wrap_int32(n: int) -> int:
    return (n - N_INT32_MIN) % 2**32 + N_INT32_MIN


# #endregion
################################################################################
# #region EpochOffsets


def date_to_epoch_offset(d: date) -> int:
    if isinstance(d, datetime):
        d = d.date()
    return (d - EPOCH_DATE).days


def epoch_offset_to_date(n_days: int) -> date | None:
    try:
        return EPOCH_DATE + timedelta(days=n_days)
    except OverflowError:
        return None


# #endregion
################################################################################
# #region CellToValue


def _create_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_compact_date(s: str) -> date | None:
    if len(s) == N_LEN_COMPACT_DATE - 1:
        s = "0" + s
    if len(s) != N_LEN_COMPACT_DATE or _parse_ascii_uint(s) is None:
        return None
    return _create_date(int(s[4:8]), int(s[2:4]), int(s[0:2]))


def _parse_text_date(s: str) -> date | None:
    l_parts = s.split("/")
    match len(l_parts):
        case 3:
            n_day, n_month, n_year = (_parse_ascii_uint(_p) for _p in l_parts)
            if n_day is None or n_month is None or n_year is None:
                return None
            return _create_date(n_year, n_month, n_day)
        case 1:
            return _parse_compact_date(s)
        case _:
            return None


def _parse_number_date(x: float) -> date | None:
    if not math.isfinite(x):
        return None
    n_rounded = round_half_away_from_zero(x)
    # negative values never look like a compact date
    c_digits = str(max(n_rounded, 0))
    if len(c_digits) in TUP_LEN_COMPACT_DATE_NUMERIC:
        return _parse_compact_date(c_digits)
    return epoch_offset_to_date(n_rounded)


def convert_to_date(cell: RawCell | None) -> date | None:
    """Read a date from text (``D/M/YYYY`` or compact), a number or a date cell.

    Text with three ``/``-separated parts is day/month/year. Text without a
    separator is a compact ``DDMMYYYY`` (or ``DMMYYYY``) date. Numbers with 7
    or 8 digits after rounding are compact dates too; any other number is a
    day offset from 1899-12-30. Native date cells always use the day offset
    (their time of day is dropped).
    """
    if cell is None:
        return None
    match cell.kind:
        case EnumCellKind.TEXT:
            return _parse_text_date(str(cell.value))
        case EnumCellKind.NUMBER:
            return _parse_number_date(float(cell.value))  # type: ignore[arg-type]
        case EnumCellKind.DATETIME:
            n_serial = float(cell.value)  # type: ignore[arg-type]
            if not math.isfinite(n_serial):
                return None
            # the fraction is the time of day
            return epoch_offset_to_date(math.floor(n_serial))
        case _:
            return None


def convert_to_integer(cell: RawCell | None) -> int | None:
    if cell is None:
        return None
    match cell.kind:
        case EnumCellKind.NUMBER:
            n_value = float(cell.value)  # type: ignore[arg-type]
            if not math.isfinite(n_value):
                return None
            n_rounded = round_half_away_from_zero(n_value)
            return min(max(n_rounded, N_INT32_MIN), N_INT32_MAX)
        case EnumCellKind.INTEGER:
            return _wrap_int32(int(cell.value))  # type: ignore[arg-type]
        case _:
            return None


def convert_to_decimal(cell: RawCell | None) -> Decimal | None:
    """Read a two-decimal number; text may use ``,`` as decimal separator.

    Floats are rounded in cents (``x * 100``, ties away from zero) and scaled
    back with ``Decimal`` so no binary fraction leaks into the result.
    """
    if cell is None:
        return None
    match cell.kind:
        case EnumCellKind.NUMBER:
            n_cents = float(cell.value) * 100  # type: ignore[arg-type]
            if not math.isfinite(n_cents):
                return None
            return Decimal(round_half_away_from_zero(n_cents)).scaleb(-2)
        case EnumCellKind.INTEGER:
            return Decimal(int(cell.value))  # type: ignore[arg-type]
        case EnumCellKind.TEXT:
            try:
                dec_value = Decimal(str(cell.value).replace(",", "."))
            except InvalidOperation:
                return None
            return dec_value if dec_value.is_finite() else None
        case _:
            return None


def _format_float(x: float) -> str:
    if not math.isfinite(x):
        # "Inf"/"-Inf", not the lowercase "inf" of str(float)
        return convert_nan_inf_to_str(x)
    if x.is_integer():
        return str(int(x))
    # shortest round-trip digits, never in exponent form
    return format(Decimal(repr(x)), "f")


def convert_to_text(cell: RawCell | None) -> str | None:
    if cell is None:
        return None
    match cell.kind:
        case EnumCellKind.TEXT:
            c_value = str(cell.value).strip()
            return c_value or None
        case EnumCellKind.NUMBER:
            return _format_float(float(cell.value))  # type: ignore[arg-type]
        case EnumCellKind.INTEGER:
            return str(int(cell.value))  # type: ignore[arg-type]
        case _:
            return None


# #endregion
################################################################################
# #region ValueToCell


def convert_date_to_cell(d: date) -> RawCell:
    """Encode ``d`` as a native date cell holding its day offset.

    Only the day-offset reading of :func:`convert_to_date` is undone by this;
    a date parsed from ``"16/11/2020"`` or ``16112020`` comes back as a day
    offset, not in its original layout.
    """
    return RawCell.date_serial(date_to_epoch_offset(d))


def convert_value_to_cell(value: CellValue) -> RawCell | None:
    if value is None or isinstance(value, RawCell):
        return value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return RawCell.boolean(value)
    if isinstance(value, int):
        return RawCell.integer(value)
    if isinstance(value, (float, Decimal)):
        return RawCell.number(float(value))
    if isinstance(value, str):
        return RawCell.text(value)
    if isinstance(value, date):
        return convert_date_to_cell(value)
    if isinstance(value, time):
        td_of_day = timedelta(
            hours=value.hour,
            minutes=value.minute,
            seconds=value.second,
            microseconds=value.microsecond,
        )
        return RawCell.duration(td_of_day.total_seconds() / 86_400)
    if isinstance(value, timedelta):
        return RawCell.duration(value.total_seconds() / 86_400)
    raise TypeError(f"Unsupported cell value type: {type(value).__name__}")


# #endregion
################################################################################
