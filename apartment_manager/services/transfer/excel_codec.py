"""
Excel (.xlsx) codec.

Single worksheet named "Sheet1", header on row 1, data from row 2.
Booleans are written as native Excel booleans. Strings are always written
as text, so a name starting with "=" is never stored as a formula.

On read, every row is padded to the sheet's used width, so an empty
Resident cell comes back as "" rather than a short row.
"""

import zipfile
from datetime import date, datetime
from typing import Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException

from apartment_manager.services.transfer.interface import (
    TabularCodec,
    TransferError,
    drop_trailing_blank_rows,
)


SHEET_NAME = "Sheet1"


def _cell_to_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    # Unit numbers typed into Excel come back as numbers
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _write_row(ws, row_index: int, values: list) -> None:
    # Strings are always stored as text, so "=Bob" is never turned into a formula
    for column, value in enumerate(values, start=1):
        cell = ws.cell(row=row_index, column=column, value=value)
        if isinstance(value, str):
            cell.data_type = "s"


class ExcelCodec(TabularCodec):
    """Single-sheet .xlsx workbook."""

    extension = ".xlsx"
    format_name = "xlsx"

    def read_rows(self, path: str) -> list[list[str]]:
        try:
            wb = load_workbook(path, data_only=True)
        except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
            raise TransferError(f"Failed to open workbook {path}: {e}") from e

        try:
            if SHEET_NAME not in wb.sheetnames:
                raise TransferError(
                    f"Workbook {path} has no sheet named {SHEET_NAME!r}"
                )
            ws = wb[SHEET_NAME]
            rows = [
                [_cell_to_text(value) for value in row]
                for row in ws.iter_rows(values_only=True)
            ]
        finally:
            wb.close()

        return drop_trailing_blank_rows(rows)

    def write_rows(
        self,
        path: str,
        header: list[str],
        rows: Iterable[list],
    ) -> int:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_NAME

        written = 0
        try:
            _write_row(ws, 1, header)
            for row in rows:
                _write_row(ws, written + 2, row)
                written += 1
            wb.save(path)
        except (OSError, IllegalCharacterError, ValueError) as e:
            raise TransferError(
                f"Failed to write workbook {path} after {written} rows: {e}"
            ) from e
        finally:
            wb.close()
        return written
