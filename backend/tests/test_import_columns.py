from datetime import datetime

import pytest

from dcc_sfa.core.exceptions import validation_message
from dcc_sfa.services.import_export.columns import (
    ColumnDefinition,
    parse_date,
    parse_number,
    positive_int,
    to_export_value,
    upper_flag,
    yes_no,
)
from dcc_sfa.services.import_export.errors import ImportExportErrorHandler


def test_number_parsing():
    assert parse_number("12") == 12
    assert parse_number("12.5") == 12.5
    assert parse_number(7) == 7
    with pytest.raises(ValueError):
        parse_number("twelve")
    with pytest.raises(ValueError):
        parse_number(True)


def test_date_parsing_accepts_common_formats():
    assert parse_date("2024-03-01") == datetime(2024, 3, 1)
    assert parse_date("01/03/2024") == datetime(2024, 3, 1)
    assert parse_date("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30)
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_flag_helpers():
    assert yes_no("y") is True
    assert yes_no("maybe") == "Must be Y or N"
    assert upper_flag(" n ") == "N"
    assert upper_flag("") == "Y"
    assert positive_int("Company ID")("3") is True
    assert positive_int("Company ID")("-1") == "Company ID must be a positive number"


def test_export_values():
    assert to_export_value(None) == ""
    assert to_export_value(datetime(2024, 1, 2, 15, 0)) == "2024-01-02"


def test_error_handler_collects_row_errors():
    columns = [
        ColumnDefinition("name", "Name", required=True),
        ColumnDefinition("email", "Email", type="email"),
        ColumnDefinition("qty", "Qty", type="number"),
    ]
    handler = ImportExportErrorHandler(columns)
    handler.check_missing_fields({"Name": "", "Email": "x@y.com"}, 2)
    assert handler.validate_field("not-an-email", columns[1], 3) is False
    assert handler.validate_field("abc", columns[2], 3) is False
    assert handler.validate_field("5", columns[2], 4) is True
    handler.set_total_rows(3)
    handler.set_valid_rows(1)

    response = handler.build_error_response()
    assert response["success"] is False
    assert response["summary"] == {"totalRows": 3, "validRows": 1, "errorRows": 2, "totalErrors": 3}
    assert [r["row"] for r in response["errors"]["rows"]] == [2, 3]
    assert response["fieldSummary"]["Qty"]["examples"] == ["abc"]
    assert response["message"].startswith("Import validation failed: 3 error(s) found in 2 row(s)")
    assert handler.format_messages()[0] == "Row 2: Name is required and cannot be empty"


def test_file_errors_take_priority_in_message():
    handler = ImportExportErrorHandler([])
    handler.add_file_error("The file does not contain any data rows")
    assert handler.build_error_response()["message"] == \
        "File validation failed: The file does not contain any data rows"


def test_validation_message_for_missing_field():
    errors = [{"type": "missing", "loc": ("body", "vehicle_number"), "msg": "Field required"}]
    assert validation_message(errors) == "vehicle_number is required"
    assert validation_message([]) == "Invalid request"
