"""
Tests for CSV/Excel import and export.
"""

import csv

import pytest
from openpyxl import Workbook, load_workbook

from apartment_manager.models.occupancy import VACANT, OccupancyRecord
from apartment_manager.reconcile import build_record
from apartment_manager.services.storage import SQLiteOccupancyStorage, StorageError
from apartment_manager.services.transfer import (
    BulkTransferEngine,
    MalformedRowError,
    TransferError,
    UnsupportedFormatError,
    codec_for_path,
    describe_failure,
    supported_extensions,
)
from apartment_manager.services.transfer.interface import drop_trailing_blank_rows


HEADER = ["ID", "Owner", "Resident", "Same"]


def write_csv(path, rows):
    with open(path, "w", newline="", encoding="utf-8") as handle:
        csv.writer(handle).writerows(rows)
    return str(path)


def write_xlsx(path, rows, sheet_name="Sheet1"):
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    for row in rows:
        ws.append(row)
    wb.save(path)
    return str(path)


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


def stored_triples(storage):
    return [
        (r.unit_id, r.owner, r.resident, r.owner_is_resident)
        for r in storage.list_all()
    ]


class TestCodecSelection:
    """Tests for picking a codec from the file name."""

    def test_known_extensions(self):
        assert codec_for_path("a.csv").format_name == "csv"
        assert codec_for_path("a.xlsx").format_name == "xlsx"
        assert supported_extensions() == [".csv", ".xlsx"]

    def test_extension_is_case_insensitive(self):
        assert codec_for_path("DATA.CSV").format_name == "csv"
        assert codec_for_path("Data.XlSx").format_name == "xlsx"

    @pytest.mark.parametrize("name", ["data.txt", "data.xls", "data", "data.csv.bak"])
    def test_unknown_extension_rejected(self, name):
        with pytest.raises(UnsupportedFormatError):
            codec_for_path(name)

    def test_unsupported_message_names_extension(self):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            codec_for_path("data.txt")
        assert str(exc_info.value) == "unsupported file type: .txt"


class TestCSVImport:
    """Tests for importing CSV files."""

    def test_reconciles_each_row(self, engine, occupancy_storage, tmp_path):
        path = write_csv(tmp_path / "in.csv", [
            HEADER,
            ["U1", "Bob", "Bob", "false"],
            ["U2", "Carol", "", "true"],
        ])
        summary = engine.import_file(path)

        assert summary.rows_imported == 2
        assert summary.file_format == "csv"
        assert stored_triples(occupancy_storage) == [
            ("U1", "Bob", "Bob", True),
            ("U2", "Carol", VACANT, False),
        ]

    def test_same_column_is_ignored(self, engine, occupancy_storage, tmp_path):
        """The flag is derived from the names, whatever the file says."""
        path = write_csv(tmp_path / "in.csv", [
            HEADER,
            ["U1", "Bob", "Alice", "true"],
        ])
        engine.import_file(path)
        assert occupancy_storage.get("U1").owner_is_resident is False

    def test_three_column_rows_accepted(self, engine, occupancy_storage, tmp_path):
        path = write_csv(tmp_path / "in.csv", [["ID", "Owner", "Resident"], ["U1", "Bob", ""]])
        engine.import_file(path)
        assert occupancy_storage.get("U1").resident == VACANT

    def test_header_is_skipped_unchecked(self, engine, occupancy_storage, tmp_path):
        path = write_csv(tmp_path / "in.csv", [["foo", "bar", "baz"], ["U1", "Bob", "Bob"]])
        assert engine.import_file(path).rows_imported == 1
        assert occupancy_storage.get("foo") is None

    def test_header_only_imports_nothing(self, engine, occupancy_storage, tmp_path):
        path = write_csv(tmp_path / "in.csv", [HEADER])
        assert engine.import_file(path).rows_imported == 0
        assert occupancy_storage.count() == 0

    def test_trailing_blank_lines_ignored(self, engine, occupancy_storage, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("ID,Owner,Resident,Same\nU1,Bob,Bob,true\n\n\n", encoding="utf-8")
        assert engine.import_file(str(path)).rows_imported == 1

    def test_byte_order_mark_accepted(self, engine, occupancy_storage, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("ID,Owner,Resident\nU1,Bob,Bob\n", encoding="utf-8-sig")
        engine.import_file(str(path))
        assert occupancy_storage.get("U1") is not None

    def test_import_replaces_existing(self, engine, occupancy_storage, tmp_path):
        occupancy_storage.upsert(
            OccupancyRecord(unit_id="U1", owner="Old", resident=VACANT)
        )
        path = write_csv(tmp_path / "in.csv", [HEADER, ["U1", "New", "New"]])
        engine.import_file(path)
        assert occupancy_storage.get("U1").owner == "New"
        assert occupancy_storage.count() == 1

    def test_duplicate_ids_last_row_wins(self, engine, occupancy_storage, tmp_path):
        path = write_csv(tmp_path / "in.csv", [
            HEADER,
            ["U1", "Bob", "Bob"],
            ["U1", "Carol", ""],
        ])
        engine.import_file(path)
        assert stored_triples(occupancy_storage) == [("U1", "Carol", VACANT, False)]

    def test_short_row_aborts_whole_import(self, engine, occupancy_storage, tmp_path):
        """Nothing from a file with a bad row is kept."""
        occupancy_storage.upsert(
            OccupancyRecord(unit_id="U0", owner="Dan", resident=VACANT)
        )
        path = write_csv(tmp_path / "in.csv", [
            HEADER,
            ["U0", "Eve", "Eve"],
            ["U1", "Bob", "Bob"],
            ["U2", "Carol"],
        ])

        with pytest.raises(MalformedRowError) as exc_info:
            engine.import_file(path)

        assert exc_info.value.line == 4
        assert stored_triples(occupancy_storage) == [("U0", "Dan", VACANT, False)]

    def test_empty_id_aborts_import(self, engine, occupancy_storage, tmp_path):
        path = write_csv(tmp_path / "in.csv", [HEADER, ["U1", "Bob", "Bob"], ["", "Carol", ""]])
        with pytest.raises(MalformedRowError) as exc_info:
            engine.import_file(path)
        assert exc_info.value.reason == "apartment ID is empty"
        assert occupancy_storage.count() == 0

    def test_unsupported_extension_checked_before_io(self, engine, tmp_path):
        """The file doesn't exist; the extension is rejected first."""
        with pytest.raises(UnsupportedFormatError):
            engine.import_file(str(tmp_path / "missing.txt"))

    def test_missing_file(self, engine, tmp_path):
        with pytest.raises(TransferError) as exc_info:
            engine.import_file(str(tmp_path / "missing.csv"))
        assert not isinstance(exc_info.value, UnsupportedFormatError)

    def test_storage_failure_rolls_back(self, client, tmp_path):
        """A failed write midway leaves the store as it was."""

        class FailingStorage(SQLiteOccupancyStorage):
            calls = 0

            def upsert(self, record):
                self.calls += 1
                if self.calls == 2:
                    raise StorageError("disk full")
                return super().upsert(record)

        storage = FailingStorage(client)
        engine = BulkTransferEngine(storage, client)
        path = write_csv(tmp_path / "in.csv", [HEADER, ["U1", "Bob", "Bob"], ["U2", "Carol", ""]])

        with pytest.raises(TransferError) as exc_info:
            engine.import_file(path)

        assert "nothing was saved" in str(exc_info.value)
        assert SQLiteOccupancyStorage(client).count() == 0


class TestExcelImport:
    """Tests for importing .xlsx workbooks."""

    def test_reconciles_each_row(self, engine, occupancy_storage, tmp_path):
        path = write_xlsx(tmp_path / "in.xlsx", [
            HEADER,
            ["U1", "Bob", "Bob", False],
            ["U2", "Carol", None, True],
        ])
        summary = engine.import_file(path)

        assert summary.file_format == "xlsx"
        assert stored_triples(occupancy_storage) == [
            ("U1", "Bob", "Bob", True),
            ("U2", "Carol", VACANT, False),
        ]

    def test_numeric_ids_read_as_text(self, engine, occupancy_storage, tmp_path):
        path = write_xlsx(tmp_path / "in.xlsx", [HEADER, [101, "Bob", "Bob"], [102.0, "Carol", ""]])
        engine.import_file(path)
        assert [r.unit_id for r in occupancy_storage.list_all()] == ["101", "102"]

    def test_missing_sheet1(self, engine, occupancy_storage, tmp_path):
        path = write_xlsx(tmp_path / "in.xlsx", [HEADER, ["U1", "Bob", "Bob"]], sheet_name="Data")
        with pytest.raises(TransferError):
            engine.import_file(path)
        assert occupancy_storage.count() == 0

    def test_not_a_workbook(self, engine, tmp_path):
        path = tmp_path / "in.xlsx"
        path.write_text("this is not a zip file", encoding="utf-8")
        with pytest.raises(TransferError):
            engine.import_file(str(path))

    def test_empty_id_cell_aborts_import(self, engine, occupancy_storage, tmp_path):
        path = write_xlsx(tmp_path / "in.xlsx", [HEADER, ["U1", "Bob", "Bob"], [None, "Carol", "Carol"]])
        with pytest.raises(MalformedRowError):
            engine.import_file(path)
        assert occupancy_storage.count() == 0


class TestExport:
    """Tests for exporting the store."""

    @pytest.fixture
    def populated(self, occupancy_storage):
        occupancy_storage.upsert(
            OccupancyRecord(unit_id="U1", owner="Bob", resident="Bob", owner_is_resident=True)
        )
        occupancy_storage.upsert(
            OccupancyRecord(unit_id="U2", owner="Carol", resident=VACANT)
        )
        return occupancy_storage

    def test_csv_export(self, engine, populated, tmp_path):
        path = str(tmp_path / "out.csv")
        summary = engine.export_file(path)

        assert summary.rows_exported == 2
        assert read_csv(path) == [
            HEADER,
            ["U1", "Bob", "Bob", "true"],
            ["U2", "Carol", "Vacant", "false"],
        ]

    def test_xlsx_export(self, engine, populated, tmp_path):
        path = str(tmp_path / "out.xlsx")
        engine.export_file(path)

        wb = load_workbook(path)
        try:
            assert wb.sheetnames == ["Sheet1"]
            rows = [list(row) for row in wb["Sheet1"].iter_rows(values_only=True)]
        finally:
            wb.close()
        assert rows == [
            HEADER,
            ["U1", "Bob", "Bob", True],
            ["U2", "Carol", "Vacant", False],
        ]

    def test_empty_store_exports_header(self, engine, tmp_path):
        path = str(tmp_path / "out.csv")
        assert engine.export_file(path).rows_exported == 0
        assert read_csv(path) == [HEADER]

    def test_unsupported_extension_creates_no_file(self, engine, tmp_path):
        path = tmp_path / "out.json"
        with pytest.raises(UnsupportedFormatError):
            engine.export_file(str(path))
        assert not path.exists()

    def test_unwritable_destination(self, engine, populated, tmp_path):
        with pytest.raises(TransferError):
            engine.export_file(str(tmp_path / "no-such-dir" / "out.csv"))

    @pytest.mark.parametrize("extension", [".csv", ".xlsx"])
    def test_round_trip(self, engine, populated, other_client, tmp_path, extension):
        """Export then import into an empty store gives the same apartments."""
        path = str(tmp_path / f"out{extension}")
        engine.export_file(path)

        target = SQLiteOccupancyStorage(other_client)
        BulkTransferEngine(target, other_client).import_file(path)

        assert stored_triples(target) == stored_triples(populated)

    def test_formula_like_names_stay_text(self, engine, occupancy_storage, other_client, tmp_path):
        """A name starting with "=" is exported as text and reads back unchanged."""
        occupancy_storage.upsert(build_record("U1", "=Bob", "=Bob"))
        path = str(tmp_path / "out.xlsx")
        engine.export_file(path)

        wb = load_workbook(path)
        try:
            owner_cell = wb["Sheet1"]["B2"]
            assert owner_cell.value == "=Bob"
            assert owner_cell.data_type == "s"
        finally:
            wb.close()

        target = SQLiteOccupancyStorage(other_client)
        BulkTransferEngine(target, other_client).import_file(path)
        assert stored_triples(target) == [("U1", "=Bob", "=Bob", True)]

    def test_illegal_character_is_transfer_error(self, engine, occupancy_storage, tmp_path):
        """Control characters can't go into a worksheet; the failure stays a TransferError."""
        occupancy_storage.upsert(build_record("U1", "Bo\x01b", ""))
        with pytest.raises(TransferError) as exc_info:
            engine.export_file(str(tmp_path / "out.xlsx"))
        assert exc_info.value.__cause__ is not None

    def test_store_failure_during_export(self, engine, populated, client, tmp_path):
        client.apartments.execute("DROP TABLE apartments")
        with pytest.raises(TransferError) as exc_info:
            engine.export_file(str(tmp_path / "out.csv"))
        assert isinstance(exc_info.value.__cause__, StorageError)

    def test_export_releases_store(self, engine, populated, occupancy_storage, tmp_path):
        """Writes work normally after an export has finished or failed."""
        engine.export_file(str(tmp_path / "out.csv"))
        with pytest.raises(TransferError):
            engine.export_file(str(tmp_path / "no-such-dir" / "out.csv"))
        occupancy_storage.upsert(build_record("U3", "Eve", ""))
        assert occupancy_storage.count() == 3


class TestHelpers:

    def test_drop_trailing_blank_rows(self):
        rows = [["a"], [""], ["b"], ["", ""], []]
        assert drop_trailing_blank_rows(rows) == [["a"], [""], ["b"]]

    def test_describe_failure(self):
        assert describe_failure(MalformedRowError(3, "apartment ID is empty")) == (
            "Line 3: apartment ID is empty"
        )
        assert describe_failure(UnsupportedFormatError(".txt")) == "unsupported file type: .txt"
        assert describe_failure(RuntimeError("x")) is None
