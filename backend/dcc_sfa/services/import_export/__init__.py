from dcc_sfa.services.import_export.base import ImportExportService, ImportOptions, ImportResult, ParseResult
from dcc_sfa.services.import_export.columns import ColumnDefinition
from dcc_sfa.services.import_export.errors import ImportExportErrorHandler
from dcc_sfa.services.import_export.factory import ImportExportFactory

__all__ = [
    "ColumnDefinition",
    "ImportExportErrorHandler",
    "ImportExportFactory",
    "ImportExportService",
    "ImportOptions",
    "ImportResult",
    "ParseResult",
]
