"""
Spreadsheet import / export API

Routes are generic over the table name; each table's service decides the
permission module (create for import, read for everything else).
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.config import settings
from dcc_sfa.core.deps import AuthUser, ensure_permission, get_current_user, get_db
from dcc_sfa.services.audit import create_audit_log, request_ip
from dcc_sfa.services.import_export import ImportExportFactory, ImportExportService
from dcc_sfa.services.import_export.base import XLSX_MEDIA_TYPE, ImportOptions

logger = logging.getLogger(__name__)

router = APIRouter()

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
PREVIEW_ROWS = 10


def _service_for(table: str, current_user: AuthUser, action: str) -> ImportExportService:
    service = ImportExportFactory.get_service(table)
    ensure_permission(current_user, (service.permission_module, action))
    return service


async def _read_upload(file: UploadFile) -> bytes:
    filename = (file.filename or "").lower()
    if not filename.endswith(EXCEL_EXTENSIONS):
        raise HTTPException(status_code=400, detail="Only Excel files (.xlsx) are allowed")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")
    max_bytes = settings.IMPORT_MAX_FILE_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {settings.IMPORT_MAX_FILE_SIZE_MB}MB limit",
        )
    return content


def _export_filters(is_active: Optional[str]) -> dict:
    return {"is_active": is_active} if is_active else {}


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/tables")
async def list_supported_tables(
    *,
    current_user: AuthUser = Depends(get_current_user)) -> Any:
    """Tables with import/export support and their column layout"""
    return {
        "success": True,
        "message": "Supported tables retrieved successfully",
        "data": ImportExportFactory.describe_tables(),
    }


@router.get("/{table}/template")
async def download_template(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    table: str) -> Any:
    """Empty import workbook with sample rows and instructions"""
    service = _service_for(table, current_user, "read")
    content = await service.generate_template(db)
    return _attachment(content, XLSX_MEDIA_TYPE, f"{table}_template.xlsx")


@router.post("/{table}/preview")
async def preview_import(
    *,
    current_user: AuthUser = Depends(get_current_user),
    table: str,
    file: UploadFile = File(...)) -> Any:
    """Parse and validate a workbook without importing it"""
    service = _service_for(table, current_user, "create")
    content = await _read_upload(file)
    parsed = service.parse_excel_file(content)
    data = jsonable_encoder({
        "totalRows": parsed.total_count,
        "validRows": parsed.valid_count,
        "preview": parsed.data[:PREVIEW_ROWS],
        "errors": parsed.errors,
        "messages": parsed.messages,
    })
    if parsed.has_errors:
        return JSONResponse(status_code=400, content={
            "success": False,
            "message": "Preview failed: Validation errors found",
            "data": data,
        })
    return {"success": True, "message": "File parsed successfully", "data": data}


@router.post("/{table}/import")
async def import_table(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    request: Request,
    table: str,
    file: UploadFile = File(...),
    skip_duplicates: bool = Query(False, alias="skipDuplicates"),
    update_existing: bool = Query(False, alias="updateExisting")) -> Any:
    """Import a workbook row by row"""
    service = _service_for(table, current_user, "create")
    content = await _read_upload(file)
    parsed = service.parse_excel_file(content)
    if parsed.has_errors:
        logger.warning(f"{service.display_name} import rejected: {parsed.errors['message']}")
        return JSONResponse(status_code=400, content=jsonable_encoder(parsed.errors))

    result = await service.batch_import(
        db, parsed.data, current_user.id,
        options=ImportOptions(skip_duplicates=skip_duplicates, update_existing=update_existing),
    )
    await create_audit_log(
        db, current_user.id, "import", table,
        resource_name=file.filename,
        description=f"Imported {result.success} {service.display_name.lower()} row(s), {result.failed} failed",
        ip_address=request_ip(request),
    )
    await db.commit()
    return {
        "success": True,
        "message": f"Import completed: {result.success} imported, {result.failed} failed",
        "data": jsonable_encoder(result.as_dict()),
    }


@router.get("/{table}/export/excel")
async def export_excel(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    table: str,
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    limit: Optional[int] = Query(None, ge=1)) -> Any:
    """Export rows as a workbook with a summary sheet"""
    service = _service_for(table, current_user, "read")
    content = await service.export_to_excel(db, search, _export_filters(is_active), limit)
    stamp = datetime.utcnow().strftime("%Y-%m-%d")
    return _attachment(content, XLSX_MEDIA_TYPE, f"{table}_export_{stamp}.xlsx")


@router.get("/{table}/export/pdf")
async def export_pdf(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    table: str,
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    limit: Optional[int] = Query(None, ge=1)) -> Any:
    """Export rows as a PDF table"""
    service = _service_for(table, current_user, "read")
    content = await service.export_to_pdf(db, search, _export_filters(is_active), limit)
    stamp = datetime.utcnow().strftime("%Y-%m-%d")
    return _attachment(content, "application/pdf", f"{table}_export_{stamp}.pdf")


@router.get("/{table}/count")
async def count_rows(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    table: str) -> Any:
    """Number of rows an export would contain"""
    service = _service_for(table, current_user, "read")
    return {
        "success": True,
        "message": "Count retrieved successfully",
        "data": {"table": table, "count": await service.get_count(db)},
    }
