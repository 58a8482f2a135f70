"""cellcast: typed spreadsheet cells in, typed tables out.

``cellcast.io.xlsx`` holds everything: the cell model, the converters from
loosely-typed cells to ``date``/``int``/``Decimal``/``str``, an
openpyxl worksheet reader and an XlsxWriter table writer.

The converters only need the standard library and are importable from the
package root; reader and writer pieces are resolved lazily so a missing
optional dependency only fails when it is actually used.
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version
from types import ModuleType
from typing import TYPE_CHECKING, Any

from cellcast.io.xlsx.spec import EnumCellKind, RawCell
from cellcast.io.xlsx.value_conversion import (
    convert_date_to_cell,
    convert_to_date,
    convert_to_decimal,
    convert_to_integer,
    convert_to_text,
)

__all__ = [
    "__version__",
    "EnumCellKind",
    "RawCell",
    "convert_date_to_cell",
    "convert_to_date",
    "convert_to_decimal",
    "convert_to_integer",
    "convert_to_text",
    "io_xlsx",
]

try:
    __version__ = version("cellcast")
except PackageNotFoundError:
    __version__ = "0.0.0"

if TYPE_CHECKING:
    import cellcast.io.xlsx as io_xlsx


def __getattr__(name: str) -> Any:
    if name != "io_xlsx":
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_loaded: ModuleType = import_module("cellcast.io.xlsx")
    globals()[name] = module_loaded
    return module_loaded


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
