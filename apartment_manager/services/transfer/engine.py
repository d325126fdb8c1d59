"""
Bulk Transfer Engine

Moves apartments between the store and CSV/Excel files.

IMPORT: read file -> skip header -> per row: check, reconcile, upsert.
All upserts of one import share a single transaction. The first failing
row aborts the import and nothing from that file is kept.

EXPORT: header, then every stored apartment in list order, unchanged,
streamed straight from the store.
A failed export may leave a partial file behind; callers must treat
the file as unusable when an error is raised.

The codec is picked from the file extension before any file is opened.
"""

import os
from typing import Optional

import structlog

from apartment_manager.models.occupancy import (
    TRANSFER_HEADER,
    ExportSummary,
    ImportSummary,
    OccupancyRecord,
)
from apartment_manager.reconcile import build_record
from apartment_manager.services.storage import (
    OccupancyStorageInterface,
    SQLiteClient,
    StorageError,
)
from apartment_manager.services.transfer.csv_codec import CSVCodec
from apartment_manager.services.transfer.excel_codec import ExcelCodec
from apartment_manager.services.transfer.interface import (
    MalformedRowError,
    TabularCodec,
    TransferError,
    UnsupportedFormatError,
)


logger = structlog.get_logger(__name__)


CODECS: dict[str, TabularCodec] = {
    codec.extension: codec for codec in (CSVCodec(), ExcelCodec())
}

# Columns read on import: ID, Owner, Resident. "Same" is never read.
REQUIRED_COLUMNS = 3


def codec_for_path(path: str) -> TabularCodec:
    """
    Pick the codec for a file by its extension (case-insensitive).

    Raises:
        UnsupportedFormatError: For anything other than .csv / .xlsx
    """
    extension = os.path.splitext(path)[1]
    codec = CODECS.get(extension.lower())
    if codec is None:
        raise UnsupportedFormatError(extension)
    return codec


def row_to_record(row: list[str], line: int) -> OccupancyRecord:
    """
    Turn one data row into a reconciled record.

    Args:
        row: Cells of the row
        line: 1-based line number in the file (for error messages)

    Raises:
        MalformedRowError: Fewer than three columns, or no apartment ID
    """
    if len(row) < REQUIRED_COLUMNS:
        raise MalformedRowError(
            line,
            f"expected at least {REQUIRED_COLUMNS} columns (ID, Owner, Resident), got {len(row)}",
            row,
        )

    unit_id, owner, resident = row[0], row[1], row[2]
    if unit_id == "":
        raise MalformedRowError(line, "apartment ID is empty", row)

    return build_record(unit_id, owner, resident, owner_is_resident=False)


class BulkTransferEngine:
    """
    Imports and exports the apartments collection.

    Needs the storage for reads/writes and the client for the
    transaction that wraps an import.
    """

    def __init__(
        self,
        storage: OccupancyStorageInterface,
        client: SQLiteClient,
    ):
        self._storage = storage
        self._client = client

    def import_file(self, path: str) -> ImportSummary:
        """
        Load every data row of a CSV or Excel file, all or nothing.

        Returns:
            ImportSummary with the number of rows upserted

        Raises:
            UnsupportedFormatError: Unknown extension (no file I/O attempted)
            MalformedRowError: A data row is unusable; nothing was saved
            TransferError: The file couldn't be read, or a row failed to save
        """
        codec = codec_for_path(path)
        rows = codec.read_rows(path)

        imported = 0
        try:
            with self._client.transaction():
                for index, row in enumerate(rows):
                    if index == 0:
                        continue  # header
                    record = row_to_record(row, line=index + 1)
                    self._storage.upsert(record)
                    imported += 1
        except MalformedRowError:
            logger.warning("import_rolled_back", path=path, rows_before_failure=imported)
            raise
        except StorageError as e:
            logger.warning("import_rolled_back", path=path, rows_before_failure=imported)
            raise TransferError(
                f"Import failed at row {imported + 2}, nothing was saved: {e}"
            ) from e

        logger.info("import_completed", path=path, format=codec.format_name, rows=imported)
        return ImportSummary(
            source=path,
            file_format=codec.format_name,
            rows_imported=imported,
        )

    def export_file(self, path: str) -> ExportSummary:
        """
        Write every stored apartment to a CSV or Excel file.

        Raises:
            UnsupportedFormatError: Unknown extension (no file I/O attempted)
            TransferError: Reading the store or writing the file failed
        """
        codec = codec_for_path(path)

        records = self._storage.iter_all()
        try:
            written = codec.write_rows(
                path,
                TRANSFER_HEADER,
                (record.to_transfer_row() for record in records),
            )
        except StorageError as e:
            raise TransferError(f"Export failed while reading apartments: {e}") from e
        finally:
            records.close()

        logger.info("export_completed", path=path, format=codec.format_name, rows=written)
        return ExportSummary(
            destination=path,
            file_format=codec.format_name,
            rows_exported=written,
        )


def supported_extensions() -> list[str]:
    """Extensions accepted by import/export, e.g. for a file picker filter."""
    return sorted(CODECS)


def describe_failure(error: Exception) -> Optional[str]:
    """Short text for a transfer error, None for anything else."""
    if isinstance(error, MalformedRowError):
        return f"Line {error.line}: {error.reason}"
    if isinstance(error, TransferError):
        return str(error)
    return None
