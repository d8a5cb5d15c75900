from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import Customer, User, Zone
from dcc_sfa.services.audit import stamp_create, touch
from dcc_sfa.services.import_export.base import ImportExportService
from dcc_sfa.services.import_export.columns import (
    ColumnDefinition,
    max_length,
    positive_int,
    to_export_value,
    upper_flag,
    yes_no,
)
from dcc_sfa.services.numbering import generate_prefixed_code


def _latitude(value):
    return -90 <= float(value) <= 90 or "Latitude must be between -90 and 90"


def _longitude(value):
    return -180 <= float(value) <= 180 or "Longitude must be between -180 and 180"


class CustomersImportExportService(ImportExportService):
    model = Customer
    display_name = "Customers"
    permission_module = "outlet"
    unique_fields = ["code"]
    search_fields = ["name", "code", "contact_person", "email", "city"]
    columns = [
        ColumnDefinition("name", "Customer Name", required=True, width=30,
                         validation=max_length("Customer Name", 255),
                         description="Outlet / customer name (required)"),
        ColumnDefinition("code", "Customer Code", width=15,
                         description="Unique code; generated when empty"),
        ColumnDefinition("short_name", "Short Name", width=15),
        ColumnDefinition("zones_id", "Zone ID", type="number", width=10,
                         validation=positive_int("Zone ID")),
        ColumnDefinition("type", "Type", width=15, description="Retail, wholesale, distributor ..."),
        ColumnDefinition("contact_person", "Contact Person", width=25),
        ColumnDefinition("phone_number", "Phone Number", width=18),
        ColumnDefinition("email", "Email", type="email", width=30),
        ColumnDefinition("address", "Address", width=35),
        ColumnDefinition("city", "City", width=18),
        ColumnDefinition("state", "State", width=18),
        ColumnDefinition("zipcode", "Zip Code", width=12),
        ColumnDefinition("latitude", "Latitude", type="number", width=12, validation=_latitude),
        ColumnDefinition("longitude", "Longitude", type="number", width=12, validation=_longitude),
        ColumnDefinition("credit_limit", "Credit Limit", type="number", width=14, default_value=0),
        ColumnDefinition("outstanding_amount", "Outstanding Amount", type="number", width=18, default_value=0),
        ColumnDefinition("salesperson_id", "Salesperson ID", type="number", width=14,
                         validation=positive_int("Salesperson ID")),
        ColumnDefinition("is_active", "Is Active", width=10, validation=yes_no,
                         transform=upper_flag, default_value="Y",
                         description="Y for active, N for inactive (defaults to Y)"),
    ]

    async def get_sample_data(self, db: AsyncSession) -> List[dict]:
        result = await db.execute(select(Zone.id).order_by(Zone.id).limit(1))
        zone_id = result.scalar()
        return [
            {"name": "Sunrise Supermarket", "short_name": "Sunrise", "zones_id": zone_id,
             "type": "retail", "contact_person": "Jane Doe", "phone_number": "+254711000001",
             "email": "sunrise@example.com", "city": "Nairobi", "credit_limit": 50000, "is_active": "Y"},
            {"name": "Lakeview Wholesalers", "short_name": "Lakeview", "zones_id": zone_id,
             "type": "wholesale", "contact_person": "John Smith", "phone_number": "+254711000002",
             "email": "lakeview@example.com", "city": "Kisumu", "credit_limit": 150000, "is_active": "Y"},
        ]

    async def _find_existing(self, db: AsyncSession, data: dict) -> Optional[Customer]:
        if not data.get("code"):
            return None
        result = await db.execute(select(Customer).where(Customer.code == data["code"]))
        return result.scalars().first()

    async def check_duplicate(self, db: AsyncSession, data: dict) -> Optional[str]:
        if await self._find_existing(db, data):
            return f"Customer with code {data['code']} already exists"
        return None

    async def validate_foreign_keys(self, db: AsyncSession, data: dict) -> Optional[str]:
        if data.get("zones_id") and not await db.get(Zone, data["zones_id"]):
            return f"Zone with ID {data['zones_id']} does not exist"
        if data.get("salesperson_id") and not await db.get(User, data["salesperson_id"]):
            return f"User with ID {data['salesperson_id']} does not exist"
        return None

    async def prepare_data_for_import(self, db: AsyncSession, data: dict, user_id: int) -> dict:
        prepared = {k: v for k, v in data.items() if v is not None}
        if not prepared.get("code"):
            prepared["code"] = await generate_prefixed_code(db, Customer, "CUS")
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

    def export_columns(self):
        return super().export_columns() + [
            ("zone_name", "Zone Name", 20),
            ("salesperson_name", "Salesperson Name", 25),
            ("last_visit_date", "Last Visit Date", 15),
        ]

    async def transform_data_for_export(self, records):
        rows = await super().transform_data_for_export(records)
        for row, customer in zip(rows, records):
            row["zone_name"] = customer.zone.name if customer.zone else ""
            row["salesperson_name"] = customer.salesperson.name if customer.salesperson else ""
            row["last_visit_date"] = to_export_value(customer.last_visit_date)
        return rows

    def build_summary(self, records):
        summary = super().build_summary(records)
        return summary + [
            ("Total Credit Limit", sum(float(c.credit_limit or 0) for c in records)),
            ("Total Outstanding", sum(float(c.outstanding_amount or 0) for c in records)),
        ]
