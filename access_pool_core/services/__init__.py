"""Service layer for issuance, administration and redemption."""

from .admin_service import AdminService, is_admin
from .issuance_service import IssuanceService
from .redemption_service import RedemptionService

__all__ = [
    "AdminService",
    "IssuanceService",
    "RedemptionService",
    "is_admin",
]
