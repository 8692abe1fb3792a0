"""
ledger_erp -- ERP pull: paginated client, entity mapper, sync service.

    ErpClient                  search/detail over HTTP with endpoint fallback
    ErpMapper                  order/invoice/financial payloads -> drafts
    ErpSyncService             fetch -> map -> reconcile per module
    IntegrationConfigService   per-tenant token/modules/frequency
"""

from ledger_erp.client import ErpClient, SearchWindow
from ledger_erp.config_service import IntegrationConfigService
from ledger_erp.mapper import ErpMapper
from ledger_erp.resources import ModuleKind
from ledger_erp.service import ErpSyncService, ModuleSyncResult, TenantSyncResult

__all__ = [
    "ErpClient",
    "ErpMapper",
    "ErpSyncService",
    "IntegrationConfigService",
    "ModuleKind",
    "ModuleSyncResult",
    "SearchWindow",
    "TenantSyncResult",
]
