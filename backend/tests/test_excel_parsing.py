import io

from openpyxl import Workbook, load_workbook

from dcc_sfa.services.import_export import ImportExportFactory
from dcc_sfa.services.import_export.vehicles import VehiclesImportExportService


def workbook_bytes(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def test_valid_rows_carry_sheet_row_numbers():
    content = workbook_bytes([
        ["Vehicle Number", "Type", "Year", "Status"],
        ["kda 123a", "Truck", 2021, None],
        [None, None, None, None],
        ["KDB 456B", "van", "2019", "in_use"],
    ])
    parsed = VehiclesImportExportService().parse_excel_file(content)

    assert not parsed.has_errors
    assert parsed.total_count == 2
    assert parsed.valid_count == 2
    first, second = parsed.data
    assert first["vehicle_number"] == "KDA 123A"
    assert first["type"] == "truck"
    assert first["status"] == "available"
    assert first["is_active"] == "Y"
    assert first["_row"] == 2
    assert second["_row"] == 4
    assert second["year"] == 2019


def test_invalid_cells_are_reported_per_row():
    content = workbook_bytes([
        ["Vehicle Number", "Type", "Year"],
        ["KDA 123A", "spaceship", 2021],
        ["", "van", "abc"],
        ["KDC 789C", "van", 2020],
    ])
    parsed = VehiclesImportExportService().parse_excel_file(content)

    assert parsed.has_errors
    assert parsed.total_count == 3
    assert parsed.valid_count == 1
    assert [r["row"] for r in parsed.errors["errors"]["rows"]] == [2, 3]
    assert "Row 3: Vehicle Number is required and cannot be empty" in parsed.messages
    assert parsed.data[0]["_row"] == 4


def test_missing_required_header():
    content = workbook_bytes([["Vehicle Number", "Make"], ["KDA 123A", "Isuzu"]])
    parsed = VehiclesImportExportService().parse_excel_file(content)

    assert parsed.has_errors
    assert parsed.errors["message"] == "Invalid file structure: Missing required columns: Type"


def test_garbage_upload_is_a_file_error():
    parsed = VehiclesImportExportService().parse_excel_file(b"definitely not a workbook")
    assert parsed.has_errors
    assert parsed.errors["errors"]["file"][0]["message"].startswith("Unable to read the file")


def test_header_only_sheet_has_no_data():
    parsed = VehiclesImportExportService().parse_excel_file(workbook_bytes([["Vehicle Number", "Type"]]))
    assert parsed.errors["message"] == "File validation failed: The file does not contain any data rows"


def test_factory_lists_supported_tables():
    assert ImportExportFactory.get_supported_tables() == [
        "depots", "vehicles", "customers", "asset-maintenance", "credit-notes",
    ]
    described = {t["name"]: t for t in ImportExportFactory.describe_tables()}
    assert described["vehicles"]["uniqueFields"] == ["vehicle_number"]
    assert described["depots"]["columns"][0]["header"] == "Depot Name"


def test_template_sample_rows_parse_cleanly(run_db):
    service = VehiclesImportExportService()
    content = run_db(service.generate_template)

    workbook = load_workbook(io.BytesIO(content))
    assert workbook.sheetnames == ["Vehicles", "Instructions"]
    parsed = service.parse_excel_file(content)
    assert parsed.valid_count == 2
