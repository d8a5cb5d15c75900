from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import Company, Depot, User
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
from dcc_sfa.services.numbering import generate_name_code


class DepotsImportExportService(ImportExportService):
    model = Depot
    display_name = "Depots"
    permission_module = "depot"
    unique_fields = ["code"]
    search_fields = ["name", "code", "email", "city"]
    columns = [
        ColumnDefinition("name", "Depot Name", required=True, width=30,
                         validation=max_length("Depot Name", 255),
                         description="Depot name (required)"),
        ColumnDefinition("code", "Depot Code", width=15,
                         validation=max_length("Depot Code", 50),
                         description="Unique code; generated from the name when empty"),
        ColumnDefinition("parent_id", "Company ID", required=True, type="number", width=12,
                         validation=positive_int("Company ID"),
                         description="ID of the owning company (required)"),
        ColumnDefinition("address", "Address", width=35, description="Street address"),
        ColumnDefinition("city", "City", width=20),
        ColumnDefinition("state", "State", width=20),
        ColumnDefinition("zipcode", "Zip Code", width=12),
        ColumnDefinition("phone_number", "Phone Number", width=18),
        ColumnDefinition("email", "Email", type="email", width=30),
        ColumnDefinition("manager_id", "Manager ID", type="number", width=12,
                         validation=positive_int("Manager ID"),
                         description="User ID of the depot manager"),
        ColumnDefinition("latitude", "Latitude", type="number", width=14),
        ColumnDefinition("longitude", "Longitude", type="number", width=14),
        ColumnDefinition("is_active", "Is Active", width=10, validation=yes_no,
                         transform=upper_flag, default_value="Y",
                         description="Y for active, N for inactive (defaults to Y)"),
    ]

    async def get_sample_data(self, db: AsyncSession) -> List[dict]:
        result = await db.execute(select(Company.id).order_by(Company.id).limit(1))
        company_id = result.scalar() or 1
        return [
            {"name": "North Distribution Depot", "code": "", "parent_id": company_id,
             "address": "12 Industrial Road", "city": "Nairobi", "state": "Nairobi",
             "zipcode": "00100", "phone_number": "+254700000001",
             "email": "north.depot@example.com", "is_active": "Y"},
            {"name": "Coastal Depot", "code": "", "parent_id": company_id,
             "address": "4 Harbour Street", "city": "Mombasa", "state": "Mombasa",
             "zipcode": "80100", "phone_number": "+254700000002",
             "email": "coastal.depot@example.com", "is_active": "Y"},
        ]

    async def _find_existing(self, db: AsyncSession, data: dict) -> Optional[Depot]:
        if data.get("code"):
            result = await db.execute(select(Depot).where(Depot.code == data["code"]))
            depot = result.scalars().first()
            if depot:
                return depot
        result = await db.execute(
            select(Depot).where(Depot.name == data["name"], Depot.parent_id == data["parent_id"])
        )
        return result.scalars().first()

    async def check_duplicate(self, db: AsyncSession, data: dict) -> Optional[str]:
        existing = await self._find_existing(db, data)
        if not existing:
            return None
        if data.get("code") and existing.code == data["code"]:
            return f"Depot with code {data['code']} already exists"
        return f"Depot with name {data['name']} already exists for company {data['parent_id']}"

    async def validate_foreign_keys(self, db: AsyncSession, data: dict) -> Optional[str]:
        if not await db.get(Company, data["parent_id"]):
            return f"Company with ID {data['parent_id']} does not exist"
        if data.get("manager_id") and not await db.get(User, data["manager_id"]):
            return f"User with ID {data['manager_id']} does not exist"
        return None

    async def prepare_data_for_import(self, db: AsyncSession, data: dict, user_id: int) -> dict:
        prepared = {k: v for k, v in data.items() if v is not None}
        if not prepared.get("code"):
            prepared["code"] = await generate_name_code(db, Depot, data["name"], "DEP")
        prepared.setdefault("is_active", "Y")
        prepared.update(stamp_create(user_id))
        return prepared

    async def update_existing(self, db: AsyncSession, data: dict, user_id: int):
        existing = await self._find_existing(db, data)
        if not existing:
            return None
        for key, value in data.items():
            if value is not None and key != "code":
                setattr(existing, key, value)
        touch(existing, user_id)
        return existing

    def export_columns(self):
        return [("id", "Depot ID", 10)] + super().export_columns() + [
            ("company_name", "Company Name", 25),
            ("manager_name", "Manager Name", 25),
            ("created_date", "Created Date", 15),
        ]

    async def transform_data_for_export(self, records):
        rows = await super().transform_data_for_export(records)
        for row, depot in zip(rows, records):
            row["id"] = depot.id
            row["company_name"] = depot.company.name if depot.company else ""
            row["manager_name"] = depot.manager.name if depot.manager else ""
            row["created_date"] = to_export_value(depot.createdate)
        return rows

    def build_summary(self, records):
        summary = super().build_summary(records)
        companies = {d.parent_id for d in records}
        cities = {d.city for d in records if d.city}
        with_manager = sum(1 for d in records if d.manager_id)
        return summary + [
            ("Companies Covered", len(companies)),
            ("Cities Covered", len(cities)),
            ("Depots With Manager", with_manager),
        ]
