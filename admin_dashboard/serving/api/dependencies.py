"""
API Dependencies

Per-request collaborators for the route handlers.
"""

from typing import AsyncGenerator, Optional

from fastapi import Header, HTTPException

from admin_dashboard.client import AdminApiAuthError, AdminApiClient, AdminApiError
from admin_dashboard.metrics import MetricsAggregator


async def get_admin_client() -> AsyncGenerator[AdminApiClient, None]:
    """Admin API client scoped to a single request"""
    async with AdminApiClient() as client:
        yield client


def get_aggregator() -> MetricsAggregator:
    """Metrics aggregator built from dashboard settings"""
    return MetricsAggregator.from_settings()


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller's bearer token, forwarded to the admin API"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def backend_error(e: AdminApiError, detail: str) -> HTTPException:
    """Map an admin API failure onto the response we surface"""
    if isinstance(e, AdminApiAuthError):
        return HTTPException(
            status_code=401,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return HTTPException(status_code=502, detail=detail)
