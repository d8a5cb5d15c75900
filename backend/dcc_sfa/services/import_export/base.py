"""
Spreadsheet import / export base service

Subclasses describe a table with ColumnDefinition entries and implement the
duplicate, foreign-key and data-preparation hooks. The base class handles:
- parse_excel_file: header check, per-cell validation and transformation
- generate_template: styled header, sample rows, Instructions sheet
- import_data / batch_import: row by row, each row committed on its own
- export_to_excel / export_to_pdf
"""
import io
import logging
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.config import settings
from dcc_sfa.services.import_export.columns import (
    ColumnDefinition,
    is_blank,
    to_export_value,
    to_jsonable,
)
from dcc_sfa.services.import_export.errors import ImportExportErrorHandler

logger = logging.getLogger(__name__)

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="FF4472C4", end_color="FF4472C4", fill_type="solid")
ALT_ROW_FILL = PatternFill(start_color="FFF2F2F2", end_color="FFF2F2F2", fill_type="solid")
BOLD_FONT = Font(name="Calibri", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin", color="FFBFBFBF"),
    right=Side(style="thin", color="FFBFBFBF"),
    top=Side(style="thin", color="FFBFBFBF"),
    bottom=Side(style="thin", color="FFBFBFBF"),
)
PDF_HEADER_COLOR = colors.HexColor("#4472C4")
PDF_ALT_ROW_COLOR = colors.HexColor("#F2F2F2")
PDF_MAX_COLUMNS = 7

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _row_error_message(error: Exception) -> str:
    if isinstance(error, SQLAlchemyError):
        return str(getattr(error, "orig", None) or error)
    return str(getattr(error, "detail", None) or error) or error.__class__.__name__


@dataclass
class ImportOptions:
    skip_duplicates: bool = False
    update_existing: bool = False


@dataclass
class ParseResult:
    data: List[dict] = field(default_factory=list)
    total_count: int = 0
    valid_count: int = 0
    errors: Optional[dict] = None
    messages: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.errors is not None


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    data: List[dict] = field(default_factory=list)
    detailed_errors: List[dict] = field(default_factory=list)

    def add_error(self, row_num: int, message: str, field_name: str = None):
        self.failed += 1
        self.errors.append(f"Row {row_num}: {message}")
        self.detailed_errors.append({"row": row_num, "field": field_name, "message": message})

    def merge(self, other: "ImportResult"):
        self.success += other.success
        self.failed += other.failed
        self.errors.extend(other.errors)
        self.data.extend(other.data)
        self.detailed_errors.extend(other.detailed_errors)

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "failed": self.failed,
            "errors": self.errors,
            "data": self.data,
            "detailedErrors": self.detailed_errors,
        }


class ImportExportService(ABC):
    model = None
    display_name: str = ""
    columns: List[ColumnDefinition] = []
    unique_fields: List[str] = []
    search_fields: List[str] = []
    # permission module gating this table's import/export routes
    permission_module: str = ""

    GENERAL_INSTRUCTIONS = [
        "Do not rename, reorder or delete the column headers in the data sheet.",
        "Fields marked as required must not be left empty.",
        "Enter dates in YYYY-MM-DD format (for example 2024-01-31).",
        "Enter numbers without currency symbols or thousands separators.",
        "Use Y or N for active status columns.",
        "Remove the sample rows before adding your own data.",
        "Each row is imported on its own; rows with errors are reported and skipped.",
    ]

    # ---- metadata -------------------------------------------------------

    def get_display_name(self) -> str:
        return self.display_name

    def get_columns(self) -> List[dict]:
        return [column.as_dict() for column in self.columns]

    def get_search_fields(self) -> List[str]:
        return list(self.search_fields)

    def get_column_description(self, key: str) -> str:
        for column in self.columns:
            if column.key == key:
                return column.description
        return ""

    async def get_count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(self.model.id)))
        return result.scalar() or 0

    # ---- hooks ----------------------------------------------------------

    @abstractmethod
    async def get_sample_data(self, db: AsyncSession) -> List[dict]:
        """Template sample rows keyed by column key"""

    @abstractmethod
    async def check_duplicate(self, db: AsyncSession, data: dict) -> Optional[str]:
        """Message describing the existing record, or None"""

    @abstractmethod
    async def validate_foreign_keys(self, db: AsyncSession, data: dict) -> Optional[str]:
        """Message for the first missing referenced record, or None"""

    @abstractmethod
    async def prepare_data_for_import(self, db: AsyncSession, data: dict, user_id: int) -> dict:
        """Model constructor kwargs for a parsed row"""

    @abstractmethod
    async def update_existing(self, db: AsyncSession, data: dict, user_id: int):
        """Update the record a duplicate row points at; None when nothing matched"""

    def export_columns(self) -> List[Tuple[str, str, int]]:
        """(key, header, width) of exported columns"""
        return [(c.key, c.header, c.width) for c in self.columns]

    def export_options(self) -> Sequence:
        return ()

    async def transform_data_for_export(self, records: List[Any]) -> List[dict]:
        return [
            {key: to_export_value(getattr(record, key, None)) for key, _, _ in self.export_columns()}
            for record in records
        ]

    def build_summary(self, records: List[Any]) -> List[Tuple[str, Any]]:
        """(metric, value) rows of the Summary sheet"""
        active = sum(1 for r in records if getattr(r, "is_active", "Y") == "Y")
        return [
            ("Total Records", len(records)),
            ("Active Records", active),
            ("Inactive Records", len(records) - active),
        ]

    def serialize_record(self, record) -> dict:
        data = {"id": record.id}
        for column in self.columns:
            data[column.key] = to_jsonable(getattr(record, column.key, None))
        return data

    # ---- parsing --------------------------------------------------------

    def parse_excel_file(self, content: bytes) -> ParseResult:
        handler = ImportExportErrorHandler(self.columns)
        result = ParseResult()

        try:
            workbook = load_workbook(io.BytesIO(content), data_only=True, read_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
            handler.add_file_error("Unable to read the file. Please upload a valid .xlsx file", str(e))
            return self._failed_parse(handler, result)

        try:
            if not workbook.worksheets:
                handler.add_file_error("No worksheet found in the file")
                return self._failed_parse(handler, result)
            rows = list(workbook.worksheets[0].iter_rows(values_only=True))
        finally:
            workbook.close()

        if len(rows) < 2:
            handler.add_file_error("The file does not contain any data rows")
            return self._failed_parse(handler, result)

        headers = [str(h).strip() if h is not None else "" for h in rows[0]]
        missing = [c.header for c in self.columns if c.required and c.header not in headers]
        if missing:
            handler.add_header_error(
                f"Missing required columns: {', '.join(missing)}",
                {"missing": missing, "found": [h for h in headers if h]},
            )
            return self._failed_parse(handler, result)

        total = 0
        for row_num, values in enumerate(rows[1:], start=2):
            if all(is_blank(v) for v in values):
                continue
            total += 1
            row = {headers[i]: values[i] for i in range(min(len(headers), len(values))) if headers[i]}
            handler.check_missing_fields(row, row_num)

            record: Dict[str, Any] = {}
            for column in self.columns:
                value = row.get(column.header)
                if not handler.validate_field(value, column, row_num):
                    continue
                try:
                    record[column.key] = handler.transform_field(value, column, row_num)
                except (TypeError, ValueError):
                    continue

            if row_num not in handler.row_errors:
                record["_row"] = row_num
                result.data.append(record)

        handler.set_total_rows(total)
        handler.set_valid_rows(len(result.data))
        result.total_count = total
        result.valid_count = len(result.data)
        if handler.has_errors():
            result.errors = handler.build_error_response()
            result.messages = handler.format_messages()
        return result

    @staticmethod
    def _failed_parse(handler: ImportExportErrorHandler, result: ParseResult) -> ParseResult:
        result.errors = handler.build_error_response()
        result.messages = handler.format_messages()
        return result

    # ---- import ---------------------------------------------------------

    async def import_data(
        self,
        db: AsyncSession,
        rows: List[dict],
        user_id: int,
        options: ImportOptions = None) -> ImportResult:
        """
        Import parsed rows one at a time.

        Each row is committed by itself; a failing row is rolled back and
        reported as "Row N: message" with N the sheet row of the record.
        """
        options = options or ImportOptions()
        result = ImportResult()

        for index, row in enumerate(rows):
            row_num = row.get("_row", index + 2)
            data = {k: v for k, v in row.items() if k != "_row"}
            try:
                duplicate = await self.check_duplicate(db, data)
                if duplicate:
                    if options.skip_duplicates:
                        result.add_error(row_num, f"Skipped - {duplicate}", "duplicate")
                        continue
                    if options.update_existing:
                        updated = await self.update_existing(db, data, user_id)
                        if updated is not None:
                            await db.commit()
                            result.success += 1
                            result.data.append(self.serialize_record(updated))
                            continue
                    else:
                        result.add_error(row_num, duplicate, "duplicate")
                        continue

                fk_error = await self.validate_foreign_keys(db, data)
                if fk_error:
                    result.add_error(row_num, fk_error, "foreign_key")
                    continue

                prepared = await self.prepare_data_for_import(db, data, user_id)
                record = self.model(**prepared)
                db.add(record)
                await db.commit()
                result.success += 1
                result.data.append(self.serialize_record(record))
            except Exception as e:
                await db.rollback()
                logger.exception(f"{self.display_name} import row {row_num} failed")
                result.add_error(row_num, _row_error_message(e))

        logger.info(
            f"📥 {self.display_name} import: {result.success} imported, {result.failed} failed"
        )
        return result

    async def batch_import(
        self,
        db: AsyncSession,
        rows: List[dict],
        user_id: int,
        batch_size: int = None,
        options: ImportOptions = None,
        on_progress: Callable[[int, int], None] = None) -> ImportResult:
        batch_size = batch_size or settings.IMPORT_BATCH_SIZE
        result = ImportResult()
        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            result.merge(await self.import_data(db, batch, user_id, options))
            processed = min(start + batch_size, len(rows))
            logger.info(f"{self.display_name} batch import progress: {processed}/{len(rows)}")
            if on_progress:
                on_progress(processed, len(rows))
        return result

    # ---- export ---------------------------------------------------------

    async def fetch_for_export(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None) -> List[Any]:
        query = select(self.model)
        conditions = []
        if search and self.search_fields:
            conditions.append(or_(*[
                getattr(self.model, f).ilike(f"%{search}%") for f in self.search_fields
            ]))
        for key, value in (filters or {}).items():
            if hasattr(self.model, key) and value not in (None, ""):
                conditions.append(getattr(self.model, key) == value)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(self.model.id.desc())
        options = self.export_options()
        if options:
            query = query.options(*options)
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def _style_header(sheet, headers: List[str], widths: List[int]):
        for col, (header, width) in enumerate(zip(headers, widths), start=1):
            cell = sheet.cell(row=1, column=col, value=header)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
            cell.border = THIN_BORDER
            sheet.column_dimensions[get_column_letter(col)].width = width
        sheet.row_dimensions[1].height = 22

    async def generate_template(self, db: AsyncSession) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.display_name[:31] or "Data"

        self._style_header(sheet, [c.header for c in self.columns], [c.width for c in self.columns])
        samples = await self.get_sample_data(db)
        for row_index, sample in enumerate(samples, start=2):
            for col, column in enumerate(self.columns, start=1):
                cell = sheet.cell(row=row_index, column=col, value=to_export_value(sample.get(column.key)))
                cell.border = THIN_BORDER
                if row_index % 2 == 0:
                    cell.fill = ALT_ROW_FILL
        sheet.freeze_panes = "A2"

        instructions = workbook.create_sheet("Instructions")
        instructions.append([f"{self.display_name} Import Instructions"])
        instructions["A1"].font = Font(name="Calibri", bold=True, size=14)
        instructions.append([])
        instructions.append(["Field", "Required", "Type", "Description"])
        for col in range(1, 5):
            header_cell = instructions.cell(row=3, column=col)
            header_cell.font = HEADER_FONT
            header_cell.fill = HEADER_FILL
        for column in self.columns:
            instructions.append([
                column.header,
                "Yes" if column.required else "No",
                column.type,
                column.description or self.get_column_description(column.key),
            ])
        instructions.append([])
        instructions.append(["General Instructions:"])
        instructions.cell(row=instructions.max_row, column=1).font = BOLD_FONT
        for number, text in enumerate(self.GENERAL_INSTRUCTIONS, start=1):
            instructions.append([f"{number}. {text}"])
        instructions.append([f"Maximum file size: {settings.IMPORT_MAX_FILE_SIZE_MB} MB"])
        for letter, width in zip("ABCD", (30, 12, 12, 70)):
            instructions.column_dimensions[letter].width = width

        output = io.BytesIO()
        workbook.save(output)
        return output.getvalue()

    async def export_to_excel(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None) -> bytes:
        records = await self.fetch_for_export(db, search, filters, limit)
        rows = await self.transform_data_for_export(records)
        export_columns = self.export_columns()

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.display_name[:31] or "Data"
        self._style_header(sheet, [h for _, h, _ in export_columns], [w for _, _, w in export_columns])

        for row_index, row in enumerate(rows, start=2):
            for col, (key, _, _) in enumerate(export_columns, start=1):
                cell = sheet.cell(row=row_index, column=col, value=row.get(key, ""))
                cell.border = THIN_BORDER
                if row_index % 2 == 1:
                    cell.fill = ALT_ROW_FILL

        last_row = len(rows) + 1
        sheet.freeze_panes = "A2"
        sheet.auto_filter.ref = f"A1:{get_column_letter(len(export_columns))}{last_row}"
        total_cell = sheet.cell(row=last_row + 2, column=1, value=f"Total Records: {len(rows)}")
        total_cell.font = BOLD_FONT

        summary = workbook.create_sheet("Summary")
        self._style_header(summary, ["Metric", "Value"], [35, 20])
        for metric, value in self.build_summary(records):
            summary.append([metric, to_export_value(value)])
        summary.append([])
        summary.append(["Exported At", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])

        output = io.BytesIO()
        workbook.save(output)
        logger.info(f"📤 {self.display_name} Excel export: {len(rows)} record(s)")
        return output.getvalue()

    async def export_to_pdf(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None) -> bytes:
        records = await self.fetch_for_export(db, search, filters, limit)
        rows = await self.transform_data_for_export(records)
        export_columns = self.export_columns()[:PDF_MAX_COLUMNS]

        pagesize = landscape(A4) if len(self.export_columns()) > 5 else A4
        width, height = pagesize
        margin = 15 * mm
        table_width = width - 2 * margin
        total_weight = sum(w for _, _, w in export_columns) or 1
        col_widths = [table_width * w / total_weight for _, _, w in export_columns]
        row_height = 7 * mm
        top = height - margin - 18 * mm
        bottom = margin + 12 * mm
        rows_per_page = max(int((top - bottom) / row_height) - 1, 1)
        total_pages = max((len(rows) + rows_per_page - 1) // rows_per_page, 1)
        if len(rows) and len(rows) % rows_per_page == 0:
            # the closing total line needs a page of its own
            total_pages += 1

        def fit(text: str, font: str, size: float, max_width: float) -> str:
            text = str(text)
            if stringWidth(text, font, size) <= max_width:
                return text
            while text and stringWidth(text + "...", font, size) > max_width:
                text = text[:-1]
            return text + "..."

        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        c.setTitle(f"{self.display_name} Export")

        def draw_page_frame(page_number: int) -> float:
            c.setFont("Helvetica-Bold", 16)
            c.drawString(margin, height - margin - 6 * mm, f"{self.display_name} Export")
            c.setFont("Helvetica", 9)
            c.drawString(margin, height - margin - 12 * mm, f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
            c.drawCentredString(width / 2, margin, f"Page {page_number} of {total_pages}")
            y = top
            x = margin
            c.setFillColor(PDF_HEADER_COLOR)
            c.rect(margin, y - row_height + 2 * mm, table_width, row_height, fill=1, stroke=0)
            c.setFillColor(colors.white)
            c.setFont("Helvetica-Bold", 9)
            for (_, header, _), col_width in zip(export_columns, col_widths):
                c.drawString(x + 1.5 * mm, y - 2.5 * mm, fit(header, "Helvetica-Bold", 9, col_width - 3 * mm))
                x += col_width
            c.setFillColor(colors.black)
            return y - row_height

        page_number = 1
        y = draw_page_frame(page_number)
        for index, row in enumerate(rows):
            if index and index % rows_per_page == 0:
                c.showPage()
                page_number += 1
                y = draw_page_frame(page_number)
            if index % 2 == 1:
                c.setFillColor(PDF_ALT_ROW_COLOR)
                c.rect(margin, y - row_height + 2 * mm, table_width, row_height, fill=1, stroke=0)
                c.setFillColor(colors.black)
            x = margin
            c.setFont("Helvetica", 8)
            for (key, _, _), col_width in zip(export_columns, col_widths):
                c.drawString(x + 1.5 * mm, y - 2.5 * mm, fit(row.get(key, ""), "Helvetica", 8, col_width - 3 * mm))
                x += col_width
            y -= row_height

        if rows and len(rows) % rows_per_page == 0:
            c.showPage()
            page_number += 1
            y = draw_page_frame(page_number)
        c.setFont("Helvetica-Bold", 10)
        c.drawString(margin, y - 6 * mm, f"Total Records: {len(rows)}")
        c.showPage()
        c.save()
        logger.info(f"📤 {self.display_name} PDF export: {len(rows)} record(s), {total_pages} page(s)")
        return buffer.getvalue()
