"""
Error collection for spreadsheet imports

Errors are grouped per sheet row (1-based, header is row 1), plus file-level
and header-level errors, and rendered as one response with a per-field summary.
"""
from typing import Any, Dict, List, Optional

from dcc_sfa.services.import_export.columns import (
    BOOL_VALUES,
    EMAIL_RE,
    ColumnDefinition,
    is_blank,
    parse_bool,
    parse_date,
    parse_number,
)


class ImportExportErrorHandler:
    def __init__(self, columns: List[ColumnDefinition]):
        self.columns = columns
        self.row_errors: Dict[int, List[dict]] = {}
        self.file_errors: List[dict] = []
        self.header_errors: List[dict] = []
        self.total_rows = 0
        self.valid_rows = 0

    def add_field_error(self, row: int, field: str, message: str, error_type: str = "validation", value: Any = None):
        self.row_errors.setdefault(row, []).append({
            "field": field,
            "value": value,
            "message": message,
            "type": error_type,
        })

    def add_file_error(self, message: str, details: Any = None):
        self.file_errors.append({"type": "file", "message": message, "details": details})

    def add_header_error(self, message: str, details: Any = None):
        self.header_errors.append({"type": "header", "message": message, "details": details})

    def check_missing_fields(self, row: dict, row_num: int):
        """row is keyed by column header"""
        for column in self.columns:
            if column.required and is_blank(row.get(column.header)):
                self.add_field_error(
                    row_num, column.header,
                    f"{column.header} is required and cannot be empty",
                    "missing", None,
                )

    def validate_field(self, value, column: ColumnDefinition, row_num: int) -> bool:
        if is_blank(value):
            # missing required values are reported by check_missing_fields
            return True

        if column.type == "number":
            try:
                parse_number(value)
            except (TypeError, ValueError):
                self.add_field_error(row_num, column.header, f"{column.header} must be a valid number", "validation", value)
                return False
        elif column.type == "email":
            if not EMAIL_RE.match(str(value).strip()):
                self.add_field_error(row_num, column.header, f"{column.header} must be a valid email address", "validation", value)
                return False
        elif column.type == "date":
            try:
                parse_date(value)
            except (TypeError, ValueError):
                self.add_field_error(
                    row_num, column.header,
                    f"{column.header} must be a valid date (YYYY-MM-DD format recommended)",
                    "validation", value,
                )
                return False
        elif column.type == "boolean":
            if str(value).strip().lower() not in BOOL_VALUES:
                self.add_field_error(
                    row_num, column.header,
                    f"{column.header} must be a boolean value (Y/N, Yes/No, True/False, or 1/0)",
                    "validation", value,
                )
                return False

        if column.validation:
            result = column.validation(value)
            if result is not True:
                message = result if isinstance(result, str) else f"{column.header} validation failed"
                self.add_field_error(row_num, column.header, message, "validation", value)
                return False
        return True

    def transform_field(self, value, column: ColumnDefinition, row_num: int):
        """Cell value → model value; records a transform error and re-raises on failure"""
        try:
            if is_blank(value):
                return column.default_value
            if column.transform:
                return column.transform(value)
            if column.type == "number":
                return parse_number(value)
            if column.type == "date":
                return parse_date(value)
            if column.type == "boolean":
                return parse_bool(value)
            return str(value).strip()
        except (TypeError, ValueError) as e:
            self.add_field_error(row_num, column.header, f"Failed to transform value: {e}", "transform", value)
            raise

    def set_total_rows(self, count: int):
        self.total_rows = count

    def set_valid_rows(self, count: int):
        self.valid_rows = count

    def has_errors(self) -> bool:
        return bool(self.file_errors or self.header_errors or self.row_errors)

    def generate_field_summary(self) -> dict:
        summary: Dict[str, dict] = {}
        for errors in self.row_errors.values():
            for error in errors:
                entry = summary.setdefault(error["field"], {"errorCount": 0, "errorTypes": [], "examples": []})
                entry["errorCount"] += 1
                if error["type"] not in entry["errorTypes"]:
                    entry["errorTypes"].append(error["type"])
                if len(entry["examples"]) < 3 and error["value"] is not None:
                    entry["examples"].append(error["value"])
        return summary

    def total_errors(self) -> int:
        return (
            len(self.file_errors)
            + len(self.header_errors)
            + sum(len(errors) for errors in self.row_errors.values())
        )

    def build_error_response(self, custom_message: Optional[str] = None) -> dict:
        total_errors = self.total_errors()
        errors: Dict[str, Any] = {}
        if self.file_errors:
            errors["file"] = self.file_errors
        if self.header_errors:
            errors["headers"] = self.header_errors
        if self.row_errors:
            errors["rows"] = [
                {"row": row, "errors": self.row_errors[row]}
                for row in sorted(self.row_errors)
            ]
        return {
            "success": False,
            "message": custom_message or self.generate_error_message(total_errors),
            "summary": {
                "totalRows": self.total_rows,
                "validRows": self.valid_rows,
                "errorRows": len(self.row_errors),
                "totalErrors": total_errors,
            },
            "errors": errors,
            "fieldSummary": self.generate_field_summary(),
        }

    def generate_error_message(self, total_errors: int) -> str:
        if self.file_errors:
            return f"File validation failed: {self.file_errors[0]['message']}"
        if self.header_errors:
            return f"Invalid file structure: {self.header_errors[0]['message']}"
        if self.row_errors:
            error_rate = (len(self.row_errors) / self.total_rows * 100) if self.total_rows else 100.0
            return (
                f"Import validation failed: {total_errors} error(s) found in "
                f"{len(self.row_errors)} row(s) ({error_rate:.1f}% error rate)"
            )
        return "Import validation failed"

    def format_messages(self) -> List[str]:
        """Flat, human readable list ("Row 3: Email - Email must be a valid email address")"""
        messages = [f"File Error: {e['message']}" for e in self.file_errors]
        messages += [f"Header Error: {e['message']}" for e in self.header_errors]
        for row in sorted(self.row_errors):
            for error in self.row_errors[row]:
                if error["type"] == "missing":
                    messages.append(f"Row {row}: {error['field']} is required and cannot be empty")
                elif error["type"] == "validation":
                    messages.append(f"Row {row}: {error['field']} - {error['message']}")
                else:
                    messages.append(f"Row {row}: {error['message']}")
        return messages

    def clear(self):
        self.row_errors.clear()
        self.file_errors = []
        self.header_errors = []
        self.total_rows = 0
        self.valid_rows = 0
