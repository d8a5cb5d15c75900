"""V1 API router aggregation"""
from fastapi import APIRouter

from dcc_sfa.api.api_v1.endpoints import (
    asset_maintenance, asset_master, asset_movements, asset_types, asset_warranty_claims,
    audit_logs, companies, credit_notes, customer_groups, customers, depots,
    import_export, invoices, orders, payments, price_lists, products, return_requests,
    roles, users, vehicles, warehouses, zones,
)

api_router = APIRouter()

# Organisation and access control
api_router.include_router(companies.router, prefix="/companies", tags=["Companies"])
api_router.include_router(depots.router, prefix="/depots", tags=["Depots"])
api_router.include_router(zones.router, prefix="/zones", tags=["Zones"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(roles.router, prefix="/roles", tags=["Roles"])
api_router.include_router(roles.permissions_router, prefix="/permissions", tags=["Permissions"])

# Customers and catalogue
api_router.include_router(customers.router, prefix="/customers", tags=["Customers"])
api_router.include_router(customer_groups.router, prefix="/customer-groups", tags=["Customer Groups"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(price_lists.router, prefix="/price-lists", tags=["Price Lists"])

# Sales documents
api_router.include_router(orders.router, prefix="/orders", tags=["Orders"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(credit_notes.router, prefix="/credit-notes", tags=["Credit Notes"])
api_router.include_router(return_requests.router, prefix="/return-requests", tags=["Return Requests"])

# Logistics
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])
api_router.include_router(warehouses.router, prefix="/warehouses", tags=["Warehouses"])

# Assets
api_router.include_router(asset_types.router, prefix="/asset-types", tags=["Asset Types"])
api_router.include_router(asset_master.router, prefix="/asset-master", tags=["Asset Master"])
api_router.include_router(asset_warranty_claims.router, prefix="/asset-warranty-claims", tags=["Asset Warranty Claims"])
api_router.include_router(asset_maintenance.router, prefix="/asset-maintenance", tags=["Asset Maintenance"])
api_router.include_router(asset_movements.router, prefix="/asset-movements", tags=["Asset Movements"])

# System
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit Logs"])
api_router.include_router(import_export.router, prefix="/import-export", tags=["Import / Export"])
