"""
Tabular Codec Interface

A codec turns a file into rows of strings and rows of values back into a
file. It knows nothing about apartments: header handling, column meaning
and transactions belong to the BulkTransferEngine.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional


class TabularCodec(ABC):
    """
    Abstract interface for one tabular file format.

    `read_rows` returns every row including the header. Cells are strings;
    empty cells are "". Trailing rows with no content are dropped.
    """

    # Lower-case extension including the dot, e.g. ".csv"
    extension: str = ""
    format_name: str = ""

    @abstractmethod
    def read_rows(self, path: str) -> list[list[str]]:
        """
        Read the whole file.

        Raises:
            TransferError: If the file can't be opened or parsed
        """
        pass

    @abstractmethod
    def write_rows(
        self,
        path: str,
        header: list[str],
        rows: Iterable[list],
    ) -> int:
        """
        Write the header then every row, in order.

        Returns:
            Number of data rows written

        Raises:
            TransferError: If any write fails. The file may be left partial.
        """
        pass


def drop_trailing_blank_rows(rows: list[list[str]]) -> list[list[str]]:
    """Remove rows at the end of the file that have no content at all."""
    end = len(rows)
    while end > 0 and not any(cell != "" for cell in rows[end - 1]):
        end -= 1
    return rows[:end]


class TransferError(Exception):
    """Base exception for import/export operations."""
    pass


class UnsupportedFormatError(TransferError):
    """File extension doesn't map to a known codec."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"unsupported file type: {extension or '(no extension)'}")


class MalformedRowError(TransferError):
    """An import row can't be turned into an apartment."""

    def __init__(self, line: int, reason: str, row: Optional[list] = None):
        self.line = line
        self.reason = reason
        self.row = row
        super().__init__(f"row {line}: {reason}")
