from .admin_actions import AdminActionService
from .audit_service import AuditService
from .metrics import DashboardMetricsService
from .monitoring import MonitoringFeed, MonitoringService, sort_monitor_items

__all__ = [
    "AdminActionService",
    "AuditService",
    "DashboardMetricsService",
    "MonitoringFeed",
    "MonitoringService",
    "sort_monitor_items",
]
