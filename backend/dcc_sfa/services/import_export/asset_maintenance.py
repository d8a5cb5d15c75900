from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import AssetMaintenance, AssetMaster, AssetWarrantyClaim, User
from dcc_sfa.services.audit import stamp_create, touch
from dcc_sfa.services.import_export.base import ImportExportService
from dcc_sfa.services.import_export.columns import (
    ColumnDefinition,
    positive_int,
    to_export_value,
    upper_flag,
    yes_no,
)


async def has_active_warranty_claim(db: AsyncSession, asset_id: int) -> bool:
    result = await db.execute(
        select(AssetWarrantyClaim.id).where(
            AssetWarrantyClaim.asset_id == asset_id,
            AssetWarrantyClaim.is_active == "Y",
        ).limit(1)
    )
    return result.scalar() is not None


class AssetMaintenanceImportExportService(ImportExportService):
    model = AssetMaintenance
    display_name = "Asset Maintenance"
    permission_module = "maintenance"
    unique_fields = ["asset_id", "maintenance_date", "technician_id"]
    search_fields = ["issue_reported", "action_taken", "remarks"]
    columns = [
        ColumnDefinition("asset_id", "Asset ID", required=True, type="number", width=12,
                         validation=positive_int("Asset ID"),
                         description="ID of the asset (required)"),
        ColumnDefinition("maintenance_date", "Maintenance Date", required=True, type="date", width=18,
                         description="Date of maintenance in YYYY-MM-DD format (required)"),
        ColumnDefinition("issue_reported", "Issue Reported", width=35),
        ColumnDefinition("action_taken", "Action Taken", width=35),
        ColumnDefinition("technician_id", "Technician ID", required=True, type="number", width=14,
                         validation=positive_int("Technician ID"),
                         description="User ID of the technician (required)"),
        ColumnDefinition("cost", "Cost", type="number", width=12,
                         validation=lambda v: float(v) >= 0 or "Cost must be zero or more"),
        ColumnDefinition("remarks", "Remarks", width=35),
        ColumnDefinition("is_active", "Is Active", width=10, validation=yes_no,
                         transform=upper_flag, default_value="Y",
                         description="Active status - Y for Yes, N for No (defaults to Y)"),
    ]

    async def get_sample_data(self, db: AsyncSession) -> List[dict]:
        assets = (await db.execute(select(AssetMaster.id).order_by(AssetMaster.id).limit(2))).scalars().all()
        users = (await db.execute(select(User.id).order_by(User.id).limit(1))).scalars().all()
        asset_ids = list(assets) + [999, 999]
        technician_id = users[0] if users else 999
        return [
            {"asset_id": asset_ids[0], "maintenance_date": "2024-01-15",
             "issue_reported": "Equipment not functioning properly",
             "action_taken": "Replaced faulty component and tested functionality",
             "technician_id": technician_id, "cost": 150.0,
             "remarks": "Regular maintenance completed successfully", "is_active": "Y"},
            {"asset_id": asset_ids[1], "maintenance_date": "2024-01-16",
             "issue_reported": "Unusual noise during operation",
             "action_taken": "Lubricated moving parts and adjusted alignment",
             "technician_id": technician_id, "cost": 75.5,
             "remarks": "Preventive maintenance", "is_active": "Y"},
        ]

    async def _find_existing(self, db: AsyncSession, data: dict) -> Optional[AssetMaintenance]:
        day = data["maintenance_date"]
        start = datetime(day.year, day.month, day.day)
        result = await db.execute(
            select(AssetMaintenance).where(
                AssetMaintenance.asset_id == data["asset_id"],
                AssetMaintenance.technician_id == data["technician_id"],
                AssetMaintenance.maintenance_date >= start,
                AssetMaintenance.maintenance_date < start + timedelta(days=1),
            )
        )
        return result.scalars().first()

    async def check_duplicate(self, db: AsyncSession, data: dict) -> Optional[str]:
        if await self._find_existing(db, data):
            return (
                f"Maintenance already exists for Asset ID {data['asset_id']} by Technician ID "
                f"{data['technician_id']} on {data['maintenance_date'].strftime('%Y-%m-%d')}"
            )
        return None

    async def validate_foreign_keys(self, db: AsyncSession, data: dict) -> Optional[str]:
        if not await db.get(AssetMaster, data["asset_id"]):
            return f"Asset with ID {data['asset_id']} does not exist"
        if not await db.get(User, data["technician_id"]):
            return f"User with ID {data['technician_id']} does not exist"
        if not await has_active_warranty_claim(db, data["asset_id"]):
            return f"No active warranty claim found for Asset ID {data['asset_id']}"
        return None

    async def prepare_data_for_import(self, db: AsyncSession, data: dict, user_id: int) -> dict:
        prepared = {k: v for k, v in data.items() if v is not None}
        prepared.update(stamp_create(user_id))
        return prepared

    async def update_existing(self, db: AsyncSession, data: dict, user_id: int):
        existing = await self._find_existing(db, data)
        if not existing:
            return None
        for key in ("issue_reported", "action_taken", "cost", "remarks", "is_active"):
            if data.get(key) is not None:
                setattr(existing, key, data[key])
        touch(existing, user_id)
        return existing

    def export_columns(self):
        return [("id", "Maintenance ID", 12)] + super().export_columns() + [
            ("asset_name", "Asset Name", 25),
            ("asset_serial", "Asset Serial", 20),
            ("technician_name", "Technician Name", 25),
            ("technician_email", "Technician Email", 30),
        ]

    async def transform_data_for_export(self, records):
        rows = await super().transform_data_for_export(records)
        for row, maintenance in zip(rows, records):
            row["id"] = maintenance.id
            row["asset_name"] = maintenance.asset.display_name if maintenance.asset else ""
            row["asset_serial"] = maintenance.asset.serial_number if maintenance.asset else ""
            row["technician_name"] = maintenance.technician.name if maintenance.technician else ""
            row["technician_email"] = maintenance.technician.email if maintenance.technician else ""
            row["maintenance_date"] = to_export_value(maintenance.maintenance_date)
        return rows

    def build_summary(self, records):
        summary = super().build_summary(records)
        total_cost = sum(float(m.cost or 0) for m in records)
        assets = {m.asset_id for m in records}
        technicians = {m.technician_id for m in records}
        return summary + [
            ("Total Maintenance Cost", round(total_cost, 2)),
            ("Average Cost", round(total_cost / len(records), 2) if records else 0),
            ("Assets Serviced", len(assets)),
            ("Technicians Involved", len(technicians)),
        ]
