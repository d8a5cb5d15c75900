from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import CreditNote, Customer, Order
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
from dcc_sfa.services.numbering import generate_credit_note_number

CREDIT_NOTE_STATUSES = ("draft", "pending", "approved", "rejected", "cancelled")
PAYMENT_METHODS = ("cash", "credit", "cheque", "bank_transfer")
AMOUNT_FIELDS = (
    "subtotal", "discount_amount", "tax_amount", "shipping_amount",
    "total_amount", "amount_applied", "balance_due",
)


def _non_negative(label):
    def check(value):
        return float(value) >= 0 or f"{label} must be a non-negative number"
    return check


def _amount_column(key: str, header: str) -> ColumnDefinition:
    return ColumnDefinition(key, header, type="number", width=15, default_value=0,
                            validation=_non_negative(header),
                            description=f"{header} (defaults to 0)")


class CreditNotesImportExportService(ImportExportService):
    model = CreditNote
    display_name = "Credit Notes"
    permission_module = "credit-note"
    unique_fields = ["credit_note_number"]
    search_fields = ["credit_note_number", "status", "reason", "payment_method"]
    columns = [
        ColumnDefinition("credit_note_number", "Credit Note Number", width=20,
                         validation=lambda v: 3 <= len(str(v).strip()) <= 50
                         or "Credit note number must be 3-50 characters",
                         description="Unique number; generated as CN-00001 when empty"),
        ColumnDefinition("parent_id", "Order ID", required=True, type="number", width=15,
                         validation=positive_int("Order ID"),
                         description="Related Order ID (required, must be valid order)"),
        ColumnDefinition("customer_id", "Customer ID", required=True, type="number", width=15,
                         validation=positive_int("Customer ID"),
                         description="Customer ID (required, must be valid customer)"),
        ColumnDefinition("credit_note_date", "Credit Note Date", type="date", width=15,
                         description="Credit note date (optional, YYYY-MM-DD format)"),
        ColumnDefinition("due_date", "Due Date", type="date", width=15,
                         description="Due date (optional, YYYY-MM-DD format)"),
        ColumnDefinition("status", "Status", width=15, default_value="draft",
                         validation=one_of("Status", CREDIT_NOTE_STATUSES),
                         transform=lambda v: str(v).strip().lower(),
                         description=f"Credit note status ({', '.join(CREDIT_NOTE_STATUSES)})"),
        ColumnDefinition("reason", "Reason", width=30, validation=max_length("Reason", 500)),
        ColumnDefinition("payment_method", "Payment Method", width=15, default_value="credit",
                         validation=one_of("Payment Method", PAYMENT_METHODS),
                         transform=lambda v: str(v).strip().lower(),
                         description=f"Payment method ({', '.join(PAYMENT_METHODS)})"),
        _amount_column("subtotal", "Subtotal"),
        _amount_column("discount_amount", "Discount Amount"),
        _amount_column("tax_amount", "Tax Amount"),
        _amount_column("shipping_amount", "Shipping Amount"),
        _amount_column("total_amount", "Total Amount"),
        _amount_column("amount_applied", "Amount Applied"),
        _amount_column("balance_due", "Balance Due"),
        ColumnDefinition("notes", "Notes", width=30, validation=max_length("Notes", 1000)),
        ColumnDefinition("billing_address", "Billing Address", width=40,
                         validation=max_length("Billing Address", 500)),
        ColumnDefinition("is_active", "Is Active", width=12, validation=yes_no,
                         transform=upper_flag, default_value="Y",
                         description="Active status - Y for Yes, N for No (defaults to Y)"),
    ]

    async def get_sample_data(self, db: AsyncSession) -> List[dict]:
        customers = (await db.execute(select(Customer.id).order_by(Customer.id).limit(2))).scalars().all()
        orders = (await db.execute(select(Order.id).order_by(Order.id).limit(2))).scalars().all()
        customer_ids = list(customers) + [999, 999]
        order_ids = list(orders) + [999, 999]
        return [
            {"credit_note_number": "CN-2024-001", "parent_id": order_ids[0], "customer_id": customer_ids[0],
             "credit_note_date": "2024-01-20", "due_date": "2024-01-25", "status": "approved",
             "reason": "Product defect - customer returned damaged goods", "payment_method": "credit",
             "subtotal": 500.0, "total_amount": 500.0, "amount_applied": 500.0, "balance_due": 0,
             "is_active": "Y"},
            {"credit_note_number": "CN-2024-002", "parent_id": order_ids[1], "customer_id": customer_ids[1],
             "credit_note_date": "2024-01-21", "due_date": "2024-01-28", "status": "pending",
             "reason": "Overcharge correction - billing error", "payment_method": "bank_transfer",
             "subtotal": 250.0, "total_amount": 250.0, "amount_applied": 0, "balance_due": 250.0,
             "is_active": "Y"},
        ]

    async def _find_existing(self, db: AsyncSession, data: dict) -> Optional[CreditNote]:
        if not data.get("credit_note_number"):
            return None
        result = await db.execute(
            select(CreditNote).where(CreditNote.credit_note_number == data["credit_note_number"])
        )
        return result.scalars().first()

    async def check_duplicate(self, db: AsyncSession, data: dict) -> Optional[str]:
        if await self._find_existing(db, data):
            return f"Credit note with number {data['credit_note_number']} already exists"
        return None

    async def validate_foreign_keys(self, db: AsyncSession, data: dict) -> Optional[str]:
        if not await db.get(Customer, data["customer_id"]):
            return (
                f"Customer with ID {data['customer_id']} does not exist. "
                "Please check the customer ID or create the customer first."
            )
        if not await db.get(Order, data["parent_id"]):
            return (
                f"Order with ID {data['parent_id']} does not exist. "
                "Please check the order ID or create the order first."
            )
        return None

    async def prepare_data_for_import(self, db: AsyncSession, data: dict, user_id: int) -> dict:
        prepared = {k: v for k, v in data.items() if v is not None}
        if not prepared.get("credit_note_number"):
            prepared["credit_note_number"] = await generate_credit_note_number(db, CreditNote)
        for key in AMOUNT_FIELDS:
            prepared[key] = float(prepared.get(key) or 0)
        prepared.update(stamp_create(user_id))
        return prepared

    async def update_existing(self, db: AsyncSession, data: dict, user_id: int):
        existing = await self._find_existing(db, data)
        if not existing:
            return None
        for key, value in data.items():
            if value is not None and key != "credit_note_number":
                setattr(existing, key, value)
        touch(existing, user_id)
        return existing

    def export_columns(self):
        return super().export_columns() + [
            ("order_number", "Order Number", 22),
            ("customer_name", "Customer Name", 25),
            ("created_date", "Created Date", 15),
        ]

    async def transform_data_for_export(self, records):
        rows = await super().transform_data_for_export(records)
        for row, note in zip(rows, records):
            row["order_number"] = note.order.order_number if note.order else ""
            row["customer_name"] = note.customer.name if note.customer else ""
            row["created_date"] = note.createdate.strftime("%Y-%m-%d") if note.createdate else ""
        return rows

    def build_summary(self, records):
        summary = super().build_summary(records)
        by_status = {}
        for note in records:
            by_status[note.status or "draft"] = by_status.get(note.status or "draft", 0) + 1
        return summary + [
            ("Total Credit Amount", round(sum(float(n.total_amount or 0) for n in records), 2)),
            ("Total Amount Applied", round(sum(float(n.amount_applied or 0) for n in records), 2)),
            ("Total Balance Due", round(sum(float(n.balance_due or 0) for n in records), 2)),
        ] + [(f"Status: {status}", count) for status, count in sorted(by_status.items())]
