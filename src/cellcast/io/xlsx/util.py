from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Any

from xlsxwriter.utility import xl_col_to_name

from .conf import N_LEN_EXCEL_SHEET_NAME_MAX, TUP_EXCEL_ILLEGAL
from .spec import (
    EnumCellKind,
    RawCell,
    SpecCellFormat,
    SpecHeaderColumn,
    SpecTotalColumn,
)

################################################################################
# #region TableInputs


def normalize_header(
    header: Sequence[SpecHeaderColumn | tuple[str, float]],
) -> list[SpecHeaderColumn]:
    l_header: list[SpecHeaderColumn] = []
    for _item in header:
        if isinstance(_item, SpecHeaderColumn):
            l_header.append(_item)
            continue
        c_title, n_width = _item
        l_header.append(SpecHeaderColumn(title=str(c_title), width=float(n_width)))
    return l_header


def normalize_totals(
    totals: Sequence[SpecTotalColumn | tuple[Any, int, str]] | None,
) -> list[SpecTotalColumn]:
    if not totals:
        return []
    l_totals: list[SpecTotalColumn] = []
    for _item in totals:
        if isinstance(_item, SpecTotalColumn):
            l_totals.append(_item)
            continue
        v_value, n_col_idx, c_col_letter = _item
        l_totals.append(
            SpecTotalColumn(value=v_value, col_idx=n_col_idx, col_letter=c_col_letter)
        )
    return l_totals


def convert_total_value(value: float | int | Decimal | RawCell | None) -> float:
    """Display fallback of a total: numbers as float, anything else ``0.0``."""
    if isinstance(value, RawCell):
        if value.kind in (EnumCellKind.NUMBER, EnumCellKind.INTEGER):
            return float(value.value)  # type: ignore[arg-type]
        return 0.0
    if isinstance(value, bool) or value is None:
        return 0.0
    return float(value)


def create_sum_formula(col_letter: str, row_first: int, row_last: int) -> str:
    """``=SUM(D3:D4)`` style formula; rows are 1-based, inclusive."""
    return f"=SUM({col_letter}{row_first}:{col_letter}{row_last})"


def resolve_col_letter(total: SpecTotalColumn) -> str:
    return total.col_letter if total.col_letter else xl_col_to_name(total.col_idx)


# #endregion
################################################################################
# #region Workbook


def create_workbook_format_factory(wb: Any) -> Callable[[SpecCellFormat], Any]:
    """Cached ``SpecCellFormat -> Format`` factory over ``wb.add_format``."""
    dict_format_cache: dict[SpecCellFormat, Any] = {}

    def _create_format(spec: SpecCellFormat) -> Any:
        fmt = dict_format_cache.get(spec)
        if fmt is None:
            fmt = wb.add_format(spec.to_xlsxwriter())
            dict_format_cache[spec] = fmt
        return fmt

    return _create_format


def sanitize_sheet_name(name: str, *, replace_to: str = "_") -> str:
    for ch in TUP_EXCEL_ILLEGAL:
        name = name.replace(ch, replace_to)
    name = name.strip() or "Sheet"
    return name[:N_LEN_EXCEL_SHEET_NAME_MAX]


def estimate_width_len(value: Any) -> int:
    """Approximate display width of a value in characters.

    Non-ASCII characters count 1.6 wide; Excel widths are not character
    counts anyway, this only has to be close enough for reports.
    """
    if value is None:
        return 0
    if isinstance(value, float) and value.is_integer():
        s = str(int(value))
    else:
        s = str(value)
    n_ascii = sum(1 for _chr in s if ord(_chr) < 128)
    return n_ascii + int(1.6 * (len(s) - n_ascii))


# #endregion
################################################################################
