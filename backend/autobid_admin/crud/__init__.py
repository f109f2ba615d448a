from .admin_user import AdminUserRepository
from .auction_monitoring import AuctionMonitoringRepository
from .audit_log import AuditLogRepository
from .dashboard_metrics import DashboardMetricsRepository

__all__ = [
    "AdminUserRepository",
    "AuctionMonitoringRepository",
    "AuditLogRepository",
    "DashboardMetricsRepository",
]
