from collections.abc import Mapping
from datetime import date, time
from types import MappingProxyType
from typing import Literal

from .spec import SpecCellFormat

N_NROWS_EXCEL_MAX = 1_048_576
N_NCOLS_EXCEL_MAX = 16_384
N_LEN_EXCEL_SHEET_NAME_MAX = 31
TUP_EXCEL_ILLEGAL = ("*", ":", "?", "/", "\\", "[", "]")

# Serial day 0. Spreadsheets count days from here (the 1900 leap-year bug is
# baked into this choice); not configurable.
EPOCH_DATE = date(1899, 12, 30)

# Compact dates: DDMMYYYY, or DMMYYYY with the day's leading zero dropped.
N_LEN_COMPACT_DATE = 8
TUP_LEN_COMPACT_DATE_NUMERIC = (7, 8)

N_INT32_MIN = -(2**31)
N_INT32_MAX = 2**31 - 1

# Time of day attached to every written date.
TIME_DATE_WRITE = time(12, 0, 0)
DATE_NUM_FORMAT = "yyyy-mm-dd"
TOTAL_LABEL = "Total"

# XlsxWriter border style index: 2 = medium.
N_BORDER_MEDIUM = 2

# Strategy/Preference/Adjustable Parameters for table writes.

LIT_FMT_KEYS = Literal["header", "total", "date"]

DEFAULT_XLSX_FORMATS: Mapping[LIT_FMT_KEYS, SpecCellFormat] = MappingProxyType(
    {
        "header": SpecCellFormat(align="center_across"),
        "total": SpecCellFormat(bold=True, top=N_BORDER_MEDIUM),
        "date": SpecCellFormat(num_format=DATE_NUM_FORMAT),
    }
)

DEFAULT_HEADER_FONT_COLOR = "white"
DEFAULT_HEADER_BG_COLOR = "navy"
