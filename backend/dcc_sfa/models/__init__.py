# Data models
# Company → Depot / Zone → Customer; sales documents; assets; returns

from dcc_sfa.models.company import Company
from dcc_sfa.models.depot import Depot, Zone
from dcc_sfa.models.user import ApiToken, Permission, Role, RolePermission, User
from dcc_sfa.models.customer import (
    Customer,
    CustomerGroup,
    CustomerGroupDepot,
    CustomerGroupMember,
    CustomerGroupZone,
)
from dcc_sfa.models.product import Product
from dcc_sfa.models.price_list import PriceList, PriceListItem
from dcc_sfa.models.order import Order, OrderItem
from dcc_sfa.models.invoice import Invoice, InvoiceItem
from dcc_sfa.models.payment import Payment, PaymentLine
from dcc_sfa.models.credit_note import CreditNote, CreditNoteItem
from dcc_sfa.models.vehicle import Vehicle
from dcc_sfa.models.warehouse import Warehouse
from dcc_sfa.models.asset import (
    AssetMaintenance,
    AssetMaster,
    AssetMovement,
    AssetMovementContract,
    AssetType,
    AssetWarrantyClaim,
)
from dcc_sfa.models.return_request import ReturnRequest, ReturnWorkflowStep
from dcc_sfa.models.audit_log import AuditLog

__all__ = [
    "Company",
    "Depot",
    "Zone",
    "ApiToken",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "Customer",
    "CustomerGroup",
    "CustomerGroupDepot",
    "CustomerGroupMember",
    "CustomerGroupZone",
    "Product",
    "PriceList",
    "PriceListItem",
    "Order",
    "OrderItem",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "PaymentLine",
    "CreditNote",
    "CreditNoteItem",
    "Vehicle",
    "Warehouse",
    "AssetMaintenance",
    "AssetMaster",
    "AssetMovement",
    "AssetMovementContract",
    "AssetType",
    "AssetWarrantyClaim",
    "ReturnRequest",
    "ReturnWorkflowStep",
    "AuditLog",
]
