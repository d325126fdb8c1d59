"""
CSV codec.

UTF-8, comma separated. Booleans are written as "true"/"false".
A UTF-8 byte order mark (as written by Excel's "CSV UTF-8") is accepted
on read.
"""

import csv
from typing import Iterable

from apartment_manager.services.transfer.interface import (
    TabularCodec,
    TransferError,
    drop_trailing_blank_rows,
)


def _format_cell(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


class CSVCodec(TabularCodec):
    """Delimited text with a header row."""

    extension = ".csv"
    format_name = "csv"

    def read_rows(self, path: str) -> list[list[str]]:
        try:
            with open(path, newline="", encoding="utf-8-sig") as handle:
                rows = [list(row) for row in csv.reader(handle)]
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise TransferError(f"Failed to read CSV file {path}: {e}") from e
        return drop_trailing_blank_rows(rows)

    def write_rows(
        self,
        path: str,
        header: list[str],
        rows: Iterable[list],
    ) -> int:
        written = 0
        try:
            with open(path, "w", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle)
                writer.writerow(header)
                for row in rows:
                    writer.writerow([_format_cell(value) for value in row])
                    written += 1
        except (OSError, csv.Error) as e:
            raise TransferError(
                f"Failed to write CSV file {path} after {written} rows: {e}"
            ) from e
        return written
