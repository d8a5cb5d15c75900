import io

from openpyxl import Workbook, load_workbook

from dcc_sfa.services.import_export.base import XLSX_MEDIA_TYPE
from dcc_sfa.services.import_export.vehicles import VehiclesImportExportService

HEADERS = ["Vehicle Number", "Type", "Make", "Year"]


def upload(rows, name="vehicles.xlsx"):
    workbook = Workbook()
    for row in rows:
        workbook.active.append(row)
    output = io.BytesIO()
    workbook.save(output)
    return {"file": (name, output.getvalue(), XLSX_MEDIA_TYPE)}


def last_cell(workbook):
    sheet = workbook.worksheets[0]
    return sheet.cell(row=sheet.max_row, column=1).value


def make_vehicle(api, number="KDA 123A"):
    response = api("post", "/vehicles", json={"vehicle_number": number, "type": "truck", "make": "Isuzu"})
    assert response.status_code == 201
    return response.json()["data"]


def test_supported_tables(client, viewer_headers):
    response = client.get("/api/v1/import-export/tables", headers=viewer_headers)
    assert response.status_code == 200
    tables = {t["name"]: t for t in response.json()["data"]}
    assert set(tables) == {"depots", "vehicles", "customers", "asset-maintenance", "credit-notes"}
    assert tables["vehicles"]["uniqueFields"] == ["vehicle_number"]


def test_unknown_table(api):
    response = api("get", "/import-export/planets/count")
    assert response.status_code == 400
    assert response.json()["message"] == "Import/export not supported for table: planets"


def test_template_download(api):
    response = api("get", "/import-export/vehicles/template")
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert response.headers["content-disposition"] == 'attachment; filename="vehicles_template.xlsx"'
    workbook = load_workbook(io.BytesIO(response.content))
    assert workbook.sheetnames == ["Vehicles", "Instructions"]


def test_preview_does_not_import(api):
    response = api("post", "/import-export/vehicles/preview",
                   files=upload([HEADERS, ["KDC 789C", "van", "Toyota", 2020]]))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalRows"] == 1
    assert data["preview"][0]["vehicle_number"] == "KDC 789C"
    assert api("get", "/import-export/vehicles/count").json()["data"]["count"] == 0


def test_import_reports_duplicates_by_row(api):
    make_vehicle(api)
    rows = [HEADERS, ["KDC 789C", "van", "Toyota", 2020], ["kda 123a", "truck", "Hino", 2018]]
    response = api("post", "/import-export/vehicles/import", files=upload(rows))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Import completed: 1 imported, 1 failed"
    assert body["data"]["errors"] == ["Row 3: Vehicle with number KDA 123A already exists"]
    assert body["data"]["detailedErrors"][0]["field"] == "duplicate"
    assert api("get", "/import-export/vehicles/count").json()["data"] == {"table": "vehicles", "count": 2}


def test_import_can_update_existing(api):
    vehicle = make_vehicle(api)
    response = api("post", "/import-export/vehicles/import", params={"updateExisting": "true"},
                   files=upload([HEADERS, ["KDA 123A", "truck", "Hino", 2018]]))

    assert response.json()["data"]["success"] == 1
    updated = api("get", f"/vehicles/{vehicle['id']}").json()["data"]
    assert updated["make"] == "Hino"
    assert updated["year"] == 2018


def test_import_can_skip_duplicates(api):
    make_vehicle(api)
    response = api("post", "/import-export/vehicles/import", params={"skipDuplicates": "true"},
                   files=upload([HEADERS, ["KDA 123A", "truck", "Hino", 2018]]))
    assert response.json()["data"]["errors"] == ["Row 2: Skipped - Vehicle with number KDA 123A already exists"]


def test_invalid_workbook_is_rejected_before_import(api):
    response = api("post", "/import-export/vehicles/import",
                   files=upload([HEADERS, ["KDC 789C", "spaceship", "Toyota", 2020]]))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"]["rows"][0]["row"] == 2
    assert api("get", "/import-export/vehicles/count").json()["data"]["count"] == 0


def test_upload_checks(api):
    response = api("post", "/import-export/vehicles/import", files={"file": ("vehicles.csv", b"a,b", "text/csv")})
    assert response.status_code == 400
    assert response.json()["message"] == "Only Excel files (.xlsx) are allowed"

    response = api("post", "/import-export/vehicles/import", files={"file": ("vehicles.xlsx", b"", XLSX_MEDIA_TYPE)})
    assert response.json()["message"] == "No file uploaded"


def test_exports(api):
    make_vehicle(api)
    make_vehicle(api, "KDB 456B")

    excel = api("get", "/import-export/vehicles/export/excel")
    assert excel.status_code == 200
    assert excel.headers["content-disposition"].startswith('attachment; filename="vehicles_export_')
    workbook = load_workbook(io.BytesIO(excel.content))
    assert workbook.sheetnames == ["Vehicles", "Summary"]
    assert last_cell(workbook) == "Total Records: 2"

    limited = api("get", "/import-export/vehicles/export/excel", params={"limit": 1})
    assert last_cell(load_workbook(io.BytesIO(limited.content))) == "Total Records: 1"

    pdf = api("get", "/import-export/vehicles/export/pdf", params={"search": "KDB"})
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_permissions_follow_the_table(client, viewer_headers):
    assert client.get("/api/v1/import-export/depots/count", headers=viewer_headers).status_code == 200
    assert client.get("/api/v1/import-export/vehicles/count", headers=viewer_headers).status_code == 403
    response = client.post("/api/v1/import-export/depots/import", headers=viewer_headers,
                           files=upload([["Depot Name", "Company ID"], ["East", 1]], "depots.xlsx"))
    assert response.status_code == 403


def test_preview_with_invalid_rows(api):
    rows = [HEADERS, ["KDC 789C", "van", "Toyota", 2020], ["KDD 111D", "spaceship", "Tata", 2019]]
    response = api("post", "/import-export/vehicles/preview", files=upload(rows))
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Preview failed: Validation errors found"
    assert body["data"]["validRows"] == 1
    assert body["data"]["messages"][0].startswith("Row 3:")


class FailingVehiclesService(VehiclesImportExportService):
    async def validate_foreign_keys(self, db, data):
        if data["vehicle_number"] == "KDB 456B":
            raise RuntimeError("registry lookup failed")
        return await super().validate_foreign_keys(db, data)


def test_unexpected_row_error_does_not_stop_import(run_db):
    rows = [
        {"_row": 2, "vehicle_number": "KDA 123A", "type": "truck"},
        {"_row": 3, "vehicle_number": "KDB 456B", "type": "van"},
        {"_row": 4, "vehicle_number": "KDC 789C", "type": "car"},
    ]
    result = run_db(lambda db: FailingVehiclesService().import_data(db, rows, 1))

    assert result.success == 2
    assert result.failed == 1
    assert result.errors == ["Row 3: registry lookup failed"]
    assert [v["vehicle_number"] for v in result.data] == ["KDA 123A", "KDC 789C"]
