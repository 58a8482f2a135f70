import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import TracebackType
from typing import Any, Self

import xlsxwriter
import xlsxwriter.worksheet
from loguru import logger
from xlsxwriter.utility import xl_col_to_name

from cellcast._optional_deps import import_optional_module

from .conf import (
    DEFAULT_HEADER_BG_COLOR,
    DEFAULT_HEADER_FONT_COLOR,
    DEFAULT_XLSX_FORMATS,
    N_LEN_EXCEL_SHEET_NAME_MAX,
    N_NCOLS_EXCEL_MAX,
    N_NROWS_EXCEL_MAX,
)
from .spec import (
    CellValue,
    SpecCellFormat,
    SpecHeaderColumn,
    SpecTotalColumn,
    SpecXlsxReport,
)
from .table import write_table
from .util import (
    create_workbook_format_factory,
    estimate_width_len,
    sanitize_sheet_name,
)


class XlsxTableWriter:
    """
    Write header/body/totals tables into an XLSX workbook with ``xlsxwriter``.

    Each :meth:`write_table` or :meth:`write_frame` call adds one worksheet.
    The workbook is created on initialization and closed via :meth:`close`
    or automatically when used in a ``with`` block::

        from cellcast.io.xlsx import XlsxTableWriter

        with XlsxTableWriter("report.xlsx") as xw:
            xw.write_table(
                "Sales",
                header=[("Date", 10.0), ("Count", 5.0)],
                rows=[[date(2021, 4, 3), 10], [date(2021, 4, 2), 5]],
                if_include_total_row=True,
                totals=[SpecTotalColumn(value=15, col_idx=1)],
            )

    Parameters
    ----------
    file_out:
        Path to the output ``.xlsx`` file.
    fmt_header, fmt_total, fmt_date:
        Replace the default header (center-across), totals (bold, medium top
        border) and date (``yyyy-mm-dd``) formats.
    if_constant_memory:
        Enable xlsxwriter's ``constant_memory`` mode. Rows must then be
        written top to bottom, one table per sheet.
    """

    def __init__(
        self,
        file_out: os.PathLike[str] | str,
        *,
        fmt_header: SpecCellFormat | None = None,
        fmt_total: SpecCellFormat | None = None,
        fmt_date: SpecCellFormat | None = None,
        if_constant_memory: bool = False,
    ):
        self.file_out = Path(file_out)
        self.wb = xlsxwriter.Workbook(
            self.file_out.as_posix(),
            {"constant_memory": if_constant_memory},
        )
        self._create_format_cached = create_workbook_format_factory(self.wb)

        self.fmt_header = (
            DEFAULT_XLSX_FORMATS["header"] if fmt_header is None else fmt_header
        )
        self.fmt_total = (
            DEFAULT_XLSX_FORMATS["total"] if fmt_total is None else fmt_total
        )
        self.fmt_date = DEFAULT_XLSX_FORMATS["date"] if fmt_date is None else fmt_date
        self._existing_sheet_names: set[str] = set()
        self._reports: list[SpecXlsxReport] = []

    def __enter__(self) -> "XlsxTableWriter":
        return self

    def __exit__(
        self, exc_type: type | None, exc: BaseException | None, tb: TracebackType | None
    ) -> None:
        self.close()

    def close(self) -> None:
        self.wb.close()
        logger.debug(f"Workbook closed: {self.file_out}")

    def report(self) -> tuple[SpecXlsxReport, ...]:
        return tuple(self._reports)

    def _create_unique_sheet_name(self, name: str) -> str:
        # Excel compares sheet names case-insensitively
        if name.casefold() not in self._existing_sheet_names:
            self._existing_sheet_names.add(name.casefold())
            return name

        # deterministic bump: name__2, name__3 ...
        i = 2
        while True:
            c_suffix = f"__{i}"
            c_candidate_name = (
                name[: max(1, N_LEN_EXCEL_SHEET_NAME_MAX - len(c_suffix))] + c_suffix
            )
            if c_candidate_name.casefold() not in self._existing_sheet_names:
                break
            i += 1
        self._existing_sheet_names.add(c_candidate_name.casefold())
        return c_candidate_name

    def add_worksheet(self, sheet_name: str) -> xlsxwriter.worksheet.Worksheet:
        c_sheet_name = self._create_unique_sheet_name(sanitize_sheet_name(sheet_name))
        self._reports.append(SpecXlsxReport(sheet_name=c_sheet_name))
        return self.wb.add_worksheet(c_sheet_name)

    def write_table(
        self,
        sheet_name: str,
        header: Sequence[SpecHeaderColumn | tuple[str, float]],
        rows: Sequence[Sequence[CellValue]],
        *,
        row_start: int = 0,
        header_font_color: str = DEFAULT_HEADER_FONT_COLOR,
        header_bg_color: str = DEFAULT_HEADER_BG_COLOR,
        if_include_total_row: bool = False,
        totals: Sequence[SpecTotalColumn | tuple[Any, int, str]] | None = None,
    ) -> Self:
        n_rows_needed = row_start + 1 + len(rows) + int(if_include_total_row)
        if n_rows_needed > N_NROWS_EXCEL_MAX:
            raise ValueError(
                f"Table needs {n_rows_needed} rows; "
                f"a worksheet holds {N_NROWS_EXCEL_MAX}."
            )
        n_cols_needed = max([len(header)] + [len(_row) for _row in rows])
        if n_cols_needed > N_NCOLS_EXCEL_MAX:
            raise ValueError(
                f"Table needs {n_cols_needed} columns; "
                f"a worksheet holds {N_NCOLS_EXCEL_MAX}."
            )

        ws = self.add_worksheet(sheet_name)
        report = self._reports[-1]

        n_header_cols = len(header)
        for _row_idx, _row in enumerate(rows):
            if len(_row) != n_header_cols:
                report.warn(
                    f"Row {_row_idx} has {len(_row)} value(s) for "
                    f"{n_header_cols} header column(s)."
                )

        layout = write_table(
            ws,
            row_start,
            header_font_color,
            header_bg_color,
            header,
            rows,
            if_include_total_row,
            totals,
            format_factory=self._create_format_cached,
            fmt_header=self.fmt_header,
            fmt_total=self.fmt_total,
            fmt_date=self.fmt_date,
        )
        report.tables.append(layout)
        return self

    def write_frame(
        self,
        df: Any,
        sheet_name: str,
        *,
        cols_total: Sequence[str] = (),
        widths: Mapping[str, float] | None = None,
        row_start: int = 0,
        header_font_color: str = DEFAULT_HEADER_FONT_COLOR,
        header_bg_color: str = DEFAULT_HEADER_BG_COLOR,
        width_cell_min: int = 8,
        width_cell_max: int = 60,
        width_cell_padding: int = 2,
    ) -> Self:
        """Write a polars DataFrame (or anything ``pl.DataFrame`` accepts).

        Column names become the header. Widths not given in ``widths`` are
        estimated from header and body text. A non-empty ``cols_total`` adds
        the totals row, with each listed column's polars sum as the cached
        formula value.
        """
        pl = import_optional_module(
            module_name="polars",
            package=None,
            feature="XlsxTableWriter.write_frame",
            extras=("frame",),
            required_modules=("polars",),
        )
        df_custom = df if isinstance(df, pl.DataFrame) else pl.DataFrame(df)
        l_colnames = df_custom.columns
        dict_widths = dict(widths or {})

        l_unknown = [_col for _col in cols_total if _col not in l_colnames]
        if l_unknown:
            raise KeyError(f"Total column(s) not found: {l_unknown!r}")

        l_rows: list[tuple[Any, ...]] = list(df_custom.iter_rows())

        l_header: list[SpecHeaderColumn] = []
        for _col_idx, _colname in enumerate(l_colnames):
            if _colname in dict_widths:
                l_header.append(
                    SpecHeaderColumn(_colname, float(dict_widths[_colname]))
                )
                continue
            n_width_ = max(
                [estimate_width_len(_colname)]
                + [estimate_width_len(_row[_col_idx]) for _row in l_rows]
            )
            n_width_ = min(
                width_cell_max, max(width_cell_min, n_width_ + width_cell_padding)
            )
            l_header.append(SpecHeaderColumn(_colname, float(n_width_)))

        l_totals = [
            SpecTotalColumn(
                value=df_custom.get_column(_colname).sum(),
                col_idx=l_colnames.index(_colname),
                col_letter=xl_col_to_name(l_colnames.index(_colname)),
            )
            for _colname in cols_total
        ]

        return self.write_table(
            sheet_name,
            l_header,
            l_rows,
            row_start=row_start,
            header_font_color=header_font_color,
            header_bg_color=header_bg_color,
            if_include_total_row=bool(l_totals),
            totals=l_totals,
        )
