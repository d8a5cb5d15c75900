"""
Table name → import/export service
"""
from typing import Dict, List, Type

from fastapi import HTTPException, status

from dcc_sfa.services.import_export.asset_maintenance import AssetMaintenanceImportExportService
from dcc_sfa.services.import_export.base import ImportExportService
from dcc_sfa.services.import_export.credit_notes import CreditNotesImportExportService
from dcc_sfa.services.import_export.customers import CustomersImportExportService
from dcc_sfa.services.import_export.depots import DepotsImportExportService
from dcc_sfa.services.import_export.vehicles import VehiclesImportExportService


class ImportExportFactory:
    _services: Dict[str, Type[ImportExportService]] = {
        "depots": DepotsImportExportService,
        "vehicles": VehiclesImportExportService,
        "customers": CustomersImportExportService,
        "asset-maintenance": AssetMaintenanceImportExportService,
        "credit-notes": CreditNotesImportExportService,
    }

    @classmethod
    def get_service(cls, table: str) -> ImportExportService:
        service_class = cls._services.get(table)
        if not service_class:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Import/export not supported for table: {table}",
            )
        return service_class()

    @classmethod
    def get_supported_tables(cls) -> List[str]:
        return list(cls._services)

    @classmethod
    def describe_tables(cls) -> List[dict]:
        tables = []
        for table, service_class in cls._services.items():
            service = service_class()
            tables.append({
                "name": table,
                "displayName": service.get_display_name(),
                "columns": service.get_columns(),
                "uniqueFields": list(service.unique_fields),
                "searchFields": service.get_search_fields(),
            })
        return tables
