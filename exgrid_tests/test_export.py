import asyncio
import csv
import io
from datetime import date, datetime, timezone
from unittest import mock

import pytest
from openpyxl import load_workbook
from pydantic import ValidationError

from exgrid.accessor import FieldPath
from exgrid.encoders.api import export_path, get_encoder, write_export
from exgrid.export import (
    ExportColumn,
    ExportData,
    ExportFormat,
    ExportOptions,
    ExportRunner,
    build_export_data,
    default_filename,
)
from exgrid.table import TableState


def test_default_filename():
    assert default_filename(date(2024, 1, 31)) == "export-2024-01-31"
    assert ExportOptions().filename.startswith("export-")


def test_options_validation():
    options = ExportOptions()
    assert options.orientation == "landscape"
    assert options.page_size == "A4"
    assert not options.include_hidden_columns
    with pytest.raises(ValidationError):
        ExportOptions(page_size="B5")
    with pytest.raises(ValidationError):
        ExportOptions(filename="")


def test_format_enum():
    assert [str(f) for f in ExportFormat] == ["csv", "excel", "pdf"]
    assert ExportFormat.EXCEL.extension == ".xlsx"
    with pytest.raises(ValueError):
        get_encoder("docx")


class TestBuildExportData:
    def test_visible_columns(self, table):
        data = table.export_data()
        assert [c.key for c in data.columns] == [
            "id",
            "name",
            "age",
            "city",
            "initials",
        ]
        assert len(data.rows) == 20

    def test_include_hidden_columns(self, table):
        data = table.export_data(ExportOptions(include_hidden_columns=True))
        assert [c.key for c in data.columns] == [
            "id",
            "name",
            "age",
            "city",
            "initials",
            "email",
            "blood_type",
        ]

    def test_hiding_a_column_only_affects_default_export(self, table):
        table.toggle_column("name")
        keys = [c.key for c in table.export_data().columns]
        assert "name" not in keys
        options = ExportOptions(include_hidden_columns=True)
        keys = [c.key for c in table.export_data(options).columns]
        assert "name" in keys

    def test_titles_and_filters(self, table):
        options = ExportOptions(title="People", subtitle="All of them")
        data = table.export_data(options)
        assert data.title == "People"
        assert data.subtitle == "All of them"
        assert data.filters == ()

    def test_resolved(self, table, people):
        data = table.export_data(rows=people[:2]).resolved()
        assert data.rows[0] == {
            "id": 1,
            "name": "Person 1 Example",
            "age": 21,
            "city": "Berlin",
            "initials": "P1E",
        }
        assert all(isinstance(c.accessor, FieldPath) for c in data.columns)
        assert not any(c.is_derived for c in data.columns)

    def test_to_matrix(self, table, people):
        headers, rows = table.export_data(rows=people[9:10]).to_matrix()
        assert headers == ["ID", "Name", "Age", "City", "Initials"]
        assert rows == [[10, "Person 10 Example", None, "Berlin", "P1E"]]

    def test_registry_directly(self, table, people):
        data = build_export_data(table.registry, people)
        assert len(data.rows) == 47


class TestExportRunner:
    def test_busy_flag(self):
        runner = ExportRunner()
        states = []
        runner.on_busy_changed.append(lambda r, busy: states.append(busy))
        runner.open_menu()

        result = asyncio.run(runner.run(lambda: "done"))

        assert result == "done"
        assert states == [True, False]
        assert not runner.busy
        assert not runner.menu_open

    def test_failure_clears_busy_flag(self):
        runner = ExportRunner()
        runner.open_menu()

        async def fail():
            raise RuntimeError("encoder crashed")

        with pytest.raises(RuntimeError, match="encoder crashed"):
            asyncio.run(runner.run(fail))
        assert not runner.busy
        assert not runner.menu_open

    def test_reentrant_request_is_ignored(self):
        runner = ExportRunner()
        calls = []

        async def slow():
            calls.append("slow")
            await asyncio.sleep(0.01)
            return "slow"

        async def scenario():
            first = asyncio.ensure_future(runner.run(slow))
            await asyncio.sleep(0)
            assert runner.busy
            second = await runner.run(slow)
            return await first, second

        assert asyncio.run(scenario()) == ("slow", None)
        assert calls == ["slow"]

    def test_menu_stays_closed_while_busy(self):
        runner = ExportRunner()

        async def check():
            runner.open_menu()
            assert not runner.menu_open

        asyncio.run(runner.run(check))


class TestTableExport:
    def test_host_callback(self, table):
        on_export = mock.MagicMock(return_value="handled")
        table.on_export = on_export
        options = ExportOptions(filename="people")

        result = asyncio.run(table.export("csv", options))

        assert result == "handled"
        fmt, opts, data = on_export.call_args.args
        assert fmt is ExportFormat.CSV
        assert opts is options
        assert len(data.rows) == 20
        assert not table.is_exporting

    def test_async_host_callback_failure(self, table):
        async def on_export(fmt, options, data):
            raise OSError("disk full")

        table.on_export = on_export
        with pytest.raises(OSError):
            asyncio.run(table.export(ExportFormat.PDF))
        assert not table.is_exporting
        assert not table.exporter.menu_open

    def test_builtin_encoder(self, columns, people, tmp_path):
        table = TableState(columns, people, 47)
        table.settings.export_directory = str(tmp_path)
        options = ExportOptions(filename="people")

        path = asyncio.run(table.export("csv", options))

        assert path == str(tmp_path / "people.csv")
        text = (tmp_path / "people.csv").read_text(encoding="utf-8-sig")
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == ["ID", "Name", "Age", "City", "Initials"]
        assert rows[1] == ["1", "Person 1 Example", "21", "Berlin", "P1E"]
        assert rows[10][2] == ""
        assert len(rows) == 48

    def test_unknown_format(self, table):
        with pytest.raises(ValueError):
            asyncio.run(table.export("docx"))


class TestEncoders:
    @pytest.fixture
    def data(self, table, people):
        options = ExportOptions(title="People", subtitle="Everyone")
        return table.export_data(options, people)

    def test_excel(self, data, tmp_path):
        options = ExportOptions(filename="people", orientation="portrait")
        path = write_export("excel", data, options, str(tmp_path))
        assert path == export_path("excel", options, str(tmp_path))

        wb = load_workbook(path)
        sht = wb.active
        assert sht.title == "Sheet1"
        assert sht.cell(row=1, column=1).value == "People"
        assert sht.cell(row=2, column=1).value == "Everyone"
        assert sht.cell(row=3, column=1).value is None
        assert [c.value for c in sht[4]] == [
            "ID",
            "Name",
            "Age",
            "City",
            "Initials",
        ]
        assert [c.value for c in sht[5]] == [
            1,
            "Person 1 Example",
            21,
            "Berlin",
            "P1E",
        ]
        assert sht.max_row == 4 + 47
        assert "A1:E1" in [str(r) for r in sht.merged_cells.ranges]
        assert sht.page_setup.orientation == "portrait"

    def test_excel_without_title(self, table, tmp_path):
        data = table.export_data()
        path = write_export(
            "excel", data, ExportOptions(filename="x"), str(tmp_path)
        )
        sht = load_workbook(path).active
        assert sht.cell(row=1, column=1).value == "ID"

    def test_excel_text_and_aware_datetimes(self, tmp_path):
        data = ExportData(
            columns=[
                ExportColumn("note", "Note", FieldPath("note")),
                ExportColumn("at", "At", FieldPath("at")),
            ],
            rows=[
                {
                    "note": "=1+1",
                    "at": datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc),
                }
            ],
        )
        path = write_export(
            "excel", data, ExportOptions(filename="x"), str(tmp_path)
        )
        sht = load_workbook(path).active
        note = sht.cell(row=2, column=1)
        assert note.value == "=1+1"
        assert note.data_type == "s"
        assert sht.cell(row=2, column=2).value == datetime(2024, 5, 1, 10, 30)

    def test_pdf(self, data, tmp_path):
        options = ExportOptions(filename="people", page_size="Letter")
        path = write_export("pdf", data, options, str(tmp_path))
        with open(path, "rb") as f:
            assert f.read(5) == b"%PDF-"

    def test_failed_encode_writes_nothing(self, data, tmp_path):
        with mock.patch.dict(
            "exgrid.encoders.api.encoders",
            {ExportFormat.CSV: mock.MagicMock(side_effect=ValueError("bad"))},
        ):
            with pytest.raises(ValueError):
                write_export(
                    "csv", data, ExportOptions(filename="x"), str(tmp_path)
                )
        assert list(tmp_path.iterdir()) == []
