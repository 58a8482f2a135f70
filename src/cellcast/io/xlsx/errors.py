from enum import StrEnum
from pathlib import Path


class EnumTableWriteStage(StrEnum):
    COLUMN_WIDTH = "column_width"
    HEADER_CELL = "header_cell"
    CELL_STRING = "cell_string"
    CELL_NUMBER = "cell_number"
    CELL_INTEGER = "cell_integer"
    CELL_DATE = "cell_date"
    CELL_BOOLEAN = "cell_boolean"
    TOTAL_LABEL = "total_label"
    TOTAL_FORMULA = "total_formula"


class TableWriteError(RuntimeError):
    """A worksheet write failed; nothing after it was attempted.

    The sink's own exception, when there is one, is chained as ``__cause__``.
    """

    def __init__(
        self,
        stage: EnumTableWriteStage,
        *,
        row: int,
        col: int,
        reason: str,
    ) -> None:
        self.stage = stage
        self.row = row
        self.col = col
        self.reason = reason
        super().__init__(f"Error writing {stage} at (row={row}, col={col}): {reason}")


class WorkbookReadError(OSError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error reading workbook {str(path)!r}: {reason}")


class WorkbookOpenError(WorkbookReadError):
    pass


class WorksheetIndexError(WorkbookReadError):
    def __init__(self, path: Path, worksheet_idx: int, n_worksheets: int) -> None:
        self.worksheet_idx = worksheet_idx
        self.n_worksheets = n_worksheets
        super().__init__(
            path,
            f"worksheet index {worksheet_idx} out of range "
            f"({n_worksheets} worksheet(s))",
        )
