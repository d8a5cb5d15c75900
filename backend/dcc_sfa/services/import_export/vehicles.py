from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import User, Vehicle
from dcc_sfa.services.audit import stamp_create, touch
from dcc_sfa.services.import_export.base import ImportExportService
from dcc_sfa.services.import_export.columns import (
    ColumnDefinition,
    max_length,
    one_of,
    positive_int,
    upper_flag,
    yes_no,
)

VEHICLE_TYPES = ("truck", "van", "car", "bike", "motorcycle", "pickup")
VEHICLE_STATUSES = ("available", "in_use", "maintenance", "inactive")


class VehiclesImportExportService(ImportExportService):
    model = Vehicle
    display_name = "Vehicles"
    permission_module = "vehicle"
    unique_fields = ["vehicle_number"]
    search_fields = ["vehicle_number", "type", "make", "model"]
    columns = [
        ColumnDefinition("vehicle_number", "Vehicle Number", required=True, width=18,
                         validation=max_length("Vehicle Number", 50),
                         transform=lambda v: str(v).strip().upper(),
                         description="Registration number, unique (required)"),
        ColumnDefinition("type", "Type", required=True, width=12,
                         validation=one_of("Type", VEHICLE_TYPES),
                         transform=lambda v: str(v).strip().lower(),
                         description=f"One of: {', '.join(VEHICLE_TYPES)}"),
        ColumnDefinition("make", "Make", width=15),
        ColumnDefinition("model", "Model", width=15),
        ColumnDefinition("year", "Year", type="number", width=8,
                         validation=lambda v: 1950 <= int(float(v)) <= 2100 or "Year must be between 1950 and 2100"),
        ColumnDefinition("capacity", "Capacity", type="number", width=10, description="Load capacity"),
        ColumnDefinition("fuel_type", "Fuel Type", width=12),
        ColumnDefinition("status", "Status", width=12, default_value="available",
                         validation=one_of("Status", VEHICLE_STATUSES),
                         transform=lambda v: str(v).strip().lower(),
                         description=f"One of: {', '.join(VEHICLE_STATUSES)} (defaults to available)"),
        ColumnDefinition("assigned_to", "Driver ID", type="number", width=10,
                         validation=positive_int("Driver ID"), description="User ID of the assigned driver"),
        ColumnDefinition("mileage", "Mileage", type="number", width=10),
        ColumnDefinition("last_service_date", "Last Service Date", type="date", width=16),
        ColumnDefinition("next_service_due", "Next Service Due", type="date", width=16),
        ColumnDefinition("insurance_expiry", "Insurance Expiry", type="date", width=16),
        ColumnDefinition("registration_expiry", "Registration Expiry", type="date", width=18),
        ColumnDefinition("is_active", "Is Active", width=10, validation=yes_no,
                         transform=upper_flag, default_value="Y",
                         description="Y for active, N for inactive (defaults to Y)"),
    ]

    async def get_sample_data(self, db: AsyncSession) -> List[dict]:
        return [
            {"vehicle_number": "KDA 123A", "type": "truck", "make": "Isuzu", "model": "FRR",
             "year": 2021, "capacity": 5000, "fuel_type": "diesel", "status": "available",
             "mileage": 42000, "insurance_expiry": "2025-06-30", "is_active": "Y"},
            {"vehicle_number": "KDB 456B", "type": "van", "make": "Toyota", "model": "HiAce",
             "year": 2020, "capacity": 1200, "fuel_type": "petrol", "status": "in_use",
             "mileage": 61000, "insurance_expiry": "2025-03-31", "is_active": "Y"},
        ]

    async def _find_existing(self, db: AsyncSession, data: dict) -> Optional[Vehicle]:
        result = await db.execute(select(Vehicle).where(Vehicle.vehicle_number == data["vehicle_number"]))
        return result.scalars().first()

    async def check_duplicate(self, db: AsyncSession, data: dict) -> Optional[str]:
        if await self._find_existing(db, data):
            return f"Vehicle with number {data['vehicle_number']} already exists"
        return None

    async def validate_foreign_keys(self, db: AsyncSession, data: dict) -> Optional[str]:
        if data.get("assigned_to") and not await db.get(User, data["assigned_to"]):
            return f"User with ID {data['assigned_to']} does not exist"
        return None

    async def prepare_data_for_import(self, db: AsyncSession, data: dict, user_id: int) -> dict:
        prepared = {k: v for k, v in data.items() if v is not None}
        prepared.update(stamp_create(user_id))
        return prepared

    async def update_existing(self, db: AsyncSession, data: dict, user_id: int):
        existing = await self._find_existing(db, data)
        if not existing:
            return None
        for key, value in data.items():
            if value is not None:
                setattr(existing, key, value)
        touch(existing, user_id)
        return existing

    def build_summary(self, records):
        summary = super().build_summary(records)
        by_type = {}
        for vehicle in records:
            by_type[vehicle.type] = by_type.get(vehicle.type, 0) + 1
        total_capacity = sum(float(v.capacity or 0) for v in records)
        return summary + [("Total Capacity", total_capacity)] + [
            (f"Type: {vehicle_type}", count) for vehicle_type, count in sorted(by_type.items())
        ]
