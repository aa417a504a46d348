"""
Admin API Client Module
"""
from .api_client import (
    AdminApiAuthError,
    AdminApiClient,
    AdminApiError,
    DashboardSnapshot,
    normalize_order_amounts,
    unwrap_collection,
)

__all__ = [
    "AdminApiAuthError",
    "AdminApiClient",
    "AdminApiError",
    "DashboardSnapshot",
    "normalize_order_amounts",
    "unwrap_collection",
]
