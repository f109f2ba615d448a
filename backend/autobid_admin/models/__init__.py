from .base import Base
from .admin_role import AdminRoleRecord
from .admin_user import AdminUser
from .auction import Auction
from .auction_monitoring import AuctionMonitoring
from .audit_log import AdminAuditLog
from .dashboard_metrics import DashboardMetricsSnapshot

__all__ = [
    "Base",
    "AdminRoleRecord",
    "AdminUser",
    "Auction",
    "AuctionMonitoring",
    "AdminAuditLog",
    "DashboardMetricsSnapshot",
]
