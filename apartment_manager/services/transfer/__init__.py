"""
Bulk Transfer Package

CSV and Excel import/export for the apartments collection.
"""

from apartment_manager.services.transfer.interface import (
    MalformedRowError,
    TabularCodec,
    TransferError,
    UnsupportedFormatError,
)
from apartment_manager.services.transfer.csv_codec import CSVCodec
from apartment_manager.services.transfer.excel_codec import ExcelCodec
from apartment_manager.services.transfer.engine import (
    BulkTransferEngine,
    codec_for_path,
    describe_failure,
    row_to_record,
    supported_extensions,
)

__all__ = [
    # Engine
    "BulkTransferEngine",
    "codec_for_path",
    "describe_failure",
    "row_to_record",
    "supported_extensions",
    # Codecs
    "CSVCodec",
    "ExcelCodec",
    "TabularCodec",
    # Exceptions
    "MalformedRowError",
    "TransferError",
    "UnsupportedFormatError",
]
