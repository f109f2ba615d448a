from .admin import (
    AuditRecord,
    AuditRecordList,
    CurrentAdminRead,
    DashboardMetrics,
    NavigationItem,
    Principal,
)
from .auction import Auction, FlagAuctionRequest, MonitorItem

__all__ = [
    "Auction",
    "AuditRecord",
    "AuditRecordList",
    "CurrentAdminRead",
    "DashboardMetrics",
    "FlagAuctionRequest",
    "MonitorItem",
    "NavigationItem",
    "Principal",
]
