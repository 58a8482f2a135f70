# Cell model plus the value objects consumed/produced by table writes.

from dataclasses import dataclass, field, replace
from datetime import date, time, timedelta
from decimal import Decimal
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias


################################################################################
# #region CellSpecification
class EnumCellKind(StrEnum):
    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"
    DATETIME = "datetime"  # float day-count from the spreadsheet epoch
    DURATION = "duration"  # float days
    BOOLEAN = "boolean"
    ERROR = "error"  # e.g. "#DIV/0!"


@dataclass(frozen=True, slots=True)
class RawCell:
    """One stored spreadsheet value, tagged by kind and nothing else.

    Whether a ``NUMBER`` is a quantity or a date is decided by whoever reads
    it (see :mod:`cellcast.io.xlsx.value_conversion`), never by the cell.
    """

    kind: EnumCellKind
    value: str | float | int | bool | None = None

    _EMPTY: ClassVar["RawCell"]

    @classmethod
    def empty(cls) -> "RawCell":
        return cls._EMPTY

    @classmethod
    def text(cls, value: str) -> "RawCell":
        return cls(EnumCellKind.TEXT, str(value))

    @classmethod
    def number(cls, value: float) -> "RawCell":
        return cls(EnumCellKind.NUMBER, float(value))

    @classmethod
    def integer(cls, value: int) -> "RawCell":
        return cls(EnumCellKind.INTEGER, int(value))

    @classmethod
    def date_serial(cls, value: float) -> "RawCell":
        return cls(EnumCellKind.DATETIME, float(value))

    @classmethod
    def duration(cls, value: float) -> "RawCell":
        return cls(EnumCellKind.DURATION, float(value))

    @classmethod
    def boolean(cls, value: bool) -> "RawCell":
        return cls(EnumCellKind.BOOLEAN, bool(value))

    @classmethod
    def error(cls, value: str) -> "RawCell":
        return cls(EnumCellKind.ERROR, str(value))


RawCell._EMPTY = RawCell(EnumCellKind.EMPTY)

# What a table row may hold before normalization to RawCell.
CellValue: TypeAlias = (
    RawCell | str | bool | int | float | Decimal | date | time | timedelta | None
)


# #endregion
################################################################################
# #region CellFormatSpecification
@dataclass(frozen=True, slots=True)
class SpecCellFormat:
    # field names follow XlsxWriter format property keys
    font_name: str | None = None
    font_size: int | None = None
    font_color: str | None = None
    bold: bool | None = None

    align: str | None = None
    valign: str | None = None
    border: int | None = None
    top: int | None = None

    num_format: str | None = None
    bg_color: str | None = None

    def with_(self, **kwargs: Any) -> "SpecCellFormat":
        return replace(self, **kwargs)

    def merge(self, other: "SpecCellFormat | None") -> "SpecCellFormat":
        if other is None:
            return self
        # right-hand non-None wins
        return SpecCellFormat(
            **{
                k: (
                    getattr(other, k)
                    if getattr(other, k) is not None
                    else getattr(self, k)
                )
                for k in self.__dataclass_fields__
            }
        )

    def to_xlsxwriter(self) -> dict[str, Any]:
        return {
            k: getattr(self, k)
            for k in self.__dataclass_fields__
            if getattr(self, k) is not None
        }


# #endregion
################################################################################
# #region TableSpecification
@dataclass(frozen=True, slots=True)
class SpecHeaderColumn:
    title: str
    width: float


@dataclass(frozen=True, slots=True)
class SpecTotalColumn:
    """Sum formula request for one column of the totals row.

    ``value`` is shown by readers that do not recalculate formulas.
    ``col_letter`` defaults to the letter of ``col_idx``.
    """

    value: float | int | Decimal | RawCell | None
    col_idx: int
    col_letter: str | None = None


@dataclass(frozen=True, slots=True)
class SpecTableLayout:
    # 0-based worksheet rows
    row_header: int | None
    row_data_start: int
    row_data_end: int | None  # inclusive; None when there are no data rows
    row_total: int | None
    n_cols: int


# #endregion
################################################################################
# #region ReportSpecification
@dataclass(slots=True)
class SpecXlsxReport:
    sheet_name: str
    tables: list[SpecTableLayout] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def warn(self, msg: str) -> None:
        self.warnings.append(str(msg))


# #endregion
################################################################################
