"""
Cooler issuance contract

Renders a PDF for an asset movement, stores it and records it against the
movement. Regenerating replaces earlier contracts of the same movement:
render → upload → delete old files and rows → persist the new row.
"""
import io
import logging
import time
from datetime import datetime
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import AssetMovement, AssetMovementContract
from dcc_sfa.services.storage import LocalFileStorage, StorageError, get_storage

logger = logging.getLogger(__name__)

CONTRACT_TERMS = [
    "1. The cooler(s) listed above are issued on the basis of this contract.",
    "2. The recipient is responsible for the proper maintenance and security of the cooler(s).",
    "3. Any damage to the cooler(s) must be reported immediately.",
    "4. The cooler(s) must be returned in the same condition as received.",
    "5. This contract is valid until the cooler(s) are officially returned.",
]


class ContractGenerationError(Exception):
    pass


def contract_number(movement_id: int) -> str:
    return f"COOL-{movement_id:06d}"


def movement_reference(movement_id: int) -> str:
    return f"AMV-{movement_id:05d}"


def _party(depot, customer) -> Optional[str]:
    if depot:
        return f"{depot.name} (Depot)"
    if customer:
        return f"{customer.name} (Customer)"
    return None


def render_contract_pdf(movement: AssetMovement, issued_on: datetime = None) -> bytes:
    """Draw the contract for an already loaded movement"""
    issued_on = issued_on or datetime.now()
    date_str = issued_on.strftime("%d/%m/%Y")

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"Cooler Issuance Contract {contract_number(movement.id)}")
    width, height = A4
    left_margin = 20 * mm
    text_width = width - 2 * left_margin
    y = height - 20 * mm

    def ensure_space(needed):
        nonlocal y
        if y - needed < 20 * mm:
            c.showPage()
            y = height - 20 * mm

    def draw(text, bold=False, font_size=11, gap=1.5):
        nonlocal y
        font = "Helvetica-Bold" if bold else "Helvetica"
        for line in simpleSplit(str(text), font, font_size, text_width) or [""]:
            ensure_space(font_size * gap)
            c.setFont(font, font_size)
            c.drawString(left_margin, y, line)
            y -= font_size * gap

    def heading(text):
        nonlocal y
        y -= 3 * mm
        draw(text, bold=True, font_size=14)
        y -= 1 * mm

    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(width / 2, y, "COOLER ISSUANCE CONTRACT")
    y -= 14 * mm

    draw(f"Contract Number: {contract_number(movement.id)}", font_size=12)
    draw(f"Date: {date_str}", font_size=12)
    draw(f"Movement Reference: {movement_reference(movement.id)}", font_size=12)

    heading("PARTIES INVOLVED:")
    source = _party(movement.from_depot, movement.from_customer)
    destination = _party(movement.to_depot, movement.to_customer)
    if source:
        draw(f"From: {source}")
    if destination:
        draw(f"To: {destination}")

    heading("ASSETS DETAILS:")
    assets = [movement.asset] if movement.asset else []
    for index, asset in enumerate(assets, start=1):
        draw(f"{index}. {asset.display_name}")
        draw(f"   Serial Number: {asset.serial_number}")
        draw(f"   Type: {asset.asset_type.name if asset.asset_type else 'N/A'}")

    heading("MOVEMENT DETAILS:")
    performer = movement.performer.name if movement.performer else "N/A"
    draw(f"Movement Type: {movement.movement_type}")
    if movement.movement_date:
        draw(f"Movement Date: {movement.movement_date.strftime('%d/%m/%Y')}")
    draw(f"Performed By: {performer}")
    if movement.notes:
        draw(f"Notes: {movement.notes}")

    heading("TERMS AND CONDITIONS:")
    for term in CONTRACT_TERMS:
        draw(term, font_size=10)

    heading("SIGNATURES:")
    ensure_space(25 * mm)
    received_by = (
        (movement.to_customer.name if movement.to_customer else None)
        or (movement.to_depot.name if movement.to_depot else None)
        or "N/A"
    )
    c.setFont("Helvetica", 11)
    for x, label, name in ((left_margin, "Issued By:", performer), (left_margin + 85 * mm, "Received By:", received_by)):
        c.drawString(x, y, label)
        c.drawString(x, y - 6 * mm, "_________________________")
        c.drawString(x, y - 12 * mm, name)
        c.drawString(x, y - 18 * mm, f"Date: {date_str}")

    c.showPage()
    c.save()
    pdf_content = buffer.getvalue()
    buffer.close()
    return pdf_content


async def load_movement(db: AsyncSession, movement_id: int) -> AssetMovement:
    movement = await db.get(AssetMovement, movement_id, populate_existing=True)
    if not movement:
        raise ContractGenerationError("Asset movement not found")
    return movement


async def generate_cooler_issuance_contract(db: AsyncSession, movement_id: int) -> bytes:
    movement = await load_movement(db, movement_id)
    return render_contract_pdf(movement)


def upload_contract(storage: LocalFileStorage, movement_id: int, pdf: bytes) -> str:
    stamp = int(time.time() * 1000)
    key = f"contracts/cooler-contract-{movement_id}-{stamp}.pdf"
    while storage.exists(key):
        stamp += 1
        key = f"contracts/cooler-contract-{movement_id}-{stamp}.pdf"
    url = storage.upload_file(pdf, key, "application/pdf")
    logger.info(f"📄 Contract uploaded for asset movement {movement_id}: {url}")
    return url


async def delete_previous_contracts(
    db: AsyncSession,
    storage: LocalFileStorage,
    movement_id: int,
    keep_url: str = None) -> int:
    """Remove earlier contract files and rows of a movement; file errors are only logged"""
    result = await db.execute(
        select(AssetMovementContract).where(AssetMovementContract.asset_movement_id == movement_id)
    )
    previous = result.scalars().all()
    for contract in previous:
        if contract.contract_url == keep_url:
            continue
        try:
            storage.delete_file(contract.contract_url)
        except (StorageError, OSError) as e:
            logger.warning(f"Could not delete old contract file {contract.contract_url}: {e}")
    await db.execute(
        delete(AssetMovementContract).where(AssetMovementContract.asset_movement_id == movement_id)
    )
    return len(previous)


async def generate_contract_on_approval(
    db: AsyncSession,
    movement_id: int,
    user_id: int = 1,
    storage: LocalFileStorage = None) -> AssetMovementContract:
    """Render, store and record a fresh contract; commits the session"""
    storage = storage or get_storage()
    movement = await load_movement(db, movement_id)
    pdf = render_contract_pdf(movement)
    url = upload_contract(storage, movement_id, pdf)

    removed = await delete_previous_contracts(db, storage, movement_id, keep_url=url)
    if removed:
        logger.info(f"Replaced {removed} previous contract(s) of asset movement {movement_id}")

    contract = AssetMovementContract(
        asset_movement_id=movement_id,
        contract_number=contract_number(movement_id),
        contract_date=datetime.utcnow(),
        file_name=storage.key_from_url(url).rsplit("/", 1)[-1],
        contract_url=url,
        file_size=len(pdf),
        is_active="Y",
        createdby=user_id,
        createdate=datetime.utcnow(),
        log_inst=1,
    )
    db.add(contract)
    await db.commit()
    await db.refresh(contract)
    logger.info(f"✅ Contract {contract.contract_number} generated for asset movement {movement_id}")
    return contract


async def get_contract_by_asset_movement_id(db: AsyncSession, movement_id: int) -> Optional[AssetMovementContract]:
    result = await db.execute(
        select(AssetMovementContract)
        .where(
            AssetMovementContract.asset_movement_id == movement_id,
            AssetMovementContract.is_active == "Y",
        )
        .order_by(AssetMovementContract.createdate.desc(), AssetMovementContract.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
