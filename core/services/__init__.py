# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .user_service import UserService
from .store_service import StoreService
from .store_backup_service import StoreBackupService
from .storage_service import StorageService
from .product_service import ProductService
from .form_service import FormService
from .visit_log_service import VisitLogService
from .route_service import RouteService
from .workgroup_service import WorkgroupService

__all__ = [
    "UserService",
    "StoreService",
    "StoreBackupService",
    "StorageService",
    "ProductService",
    "FormService",
    "VisitLogService",
    "RouteService",
    "WorkgroupService",
]
