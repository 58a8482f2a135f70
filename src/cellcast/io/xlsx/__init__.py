from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cellcast._optional_deps import import_optional_attr

from .errors import (
    EnumTableWriteStage,
    TableWriteError,
    WorkbookOpenError,
    WorkbookReadError,
    WorksheetIndexError,
)
from .spec import (
    EnumCellKind,
    RawCell,
    SpecCellFormat,
    SpecHeaderColumn,
    SpecTableLayout,
    SpecTotalColumn,
    SpecXlsxReport,
)
from .value_conversion import (
    convert_date_to_cell,
    convert_to_date,
    convert_to_decimal,
    convert_to_integer,
    convert_to_text,
    convert_value_to_cell,
    date_to_epoch_offset,
    epoch_offset_to_date,
)

__all__ = [
    "EnumCellKind",
    "EnumTableWriteStage",
    "RawCell",
    "SheetGrid",
    "SpecCellFormat",
    "SpecHeaderColumn",
    "SpecTableLayout",
    "SpecTotalColumn",
    "SpecXlsxReport",
    "TableWriteError",
    "WorkbookOpenError",
    "WorkbookReadError",
    "WorksheetIndexError",
    "XlsxTableWriter",
    "convert_date_to_cell",
    "convert_to_date",
    "convert_to_decimal",
    "convert_to_integer",
    "convert_to_text",
    "convert_value_to_cell",
    "create_workbook_format_factory",
    "date_to_epoch_offset",
    "epoch_offset_to_date",
    "open_nth_worksheet",
    "write_header",
    "write_rows",
    "write_table",
]

if TYPE_CHECKING:
    from .reader import SheetGrid, open_nth_worksheet
    from .table import write_header, write_rows, write_table
    from .util import create_workbook_format_factory
    from .writer import XlsxTableWriter

# name -> (module, extra, third-party modules it needs)
_DICT_LAZY_ATTRS: dict[str, tuple[str, str, tuple[str, ...]]] = {
    "SheetGrid": (".reader", "read", ("openpyxl",)),
    "open_nth_worksheet": (".reader", "read", ("openpyxl",)),
    "write_header": (".table", "xlsx", ("xlsxwriter",)),
    "write_rows": (".table", "xlsx", ("xlsxwriter",)),
    "write_table": (".table", "xlsx", ("xlsxwriter",)),
    "create_workbook_format_factory": (".util", "xlsx", ("xlsxwriter",)),
    "XlsxTableWriter": (".writer", "xlsx", ("xlsxwriter",)),
}


def __getattr__(name: str) -> Any:
    tup_lazy = _DICT_LAZY_ATTRS.get(name)
    if tup_lazy is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, c_extra, tup_required = tup_lazy
    return import_optional_attr(
        module_name=module_name,
        attr_name=name,
        package=__name__,
        feature=f"cellcast.io.xlsx.{name}",
        extras=(c_extra,),
        required_modules=tup_required,
    )
