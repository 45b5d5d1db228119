from app.models.shop import Shop
from app.models.repair_case import RepairCase
from app.models.case_catalog import ShopCaseType, ShopCaseStatus
from app.models.notification import Notification, SLA_ALERT_TYPE

__all__ = [
    "Shop",
    "RepairCase",
    "ShopCaseType", "ShopCaseStatus",
    "Notification", "SLA_ALERT_TYPE",
]
