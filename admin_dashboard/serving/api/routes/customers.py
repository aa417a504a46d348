"""
Customer API Endpoints

Customer listing with lifetime spend derived from their orders.
"""

import asyncio
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
import structlog

from admin_dashboard.client import AdminApiClient, AdminApiError
from admin_dashboard.config import get_settings
from admin_dashboard.metrics import summarize_customers
from admin_dashboard.serving.api.dependencies import backend_error, get_admin_client, get_bearer_token

router = APIRouter()
logger = structlog.get_logger(__name__)


class CustomerResponse(BaseModel):
    """Customer with spend"""
    id: Optional[str]
    email: str
    role: str
    active: bool
    created_at: Optional[datetime]
    spent: float


class CustomerListResponse(BaseModel):
    """Customer listing with header totals"""
    items: List[CustomerResponse]
    total: int
    active: int
    inactive: int
    total_spend_shown: float


@router.get("/customers", response_model=CustomerListResponse)
async def list_customers(
    status: Literal["all", "active", "inactive"] = Query(default="all"),
    q: str = Query(default="", description="Email search"),
    sort_by: Literal["newest", "oldest", "spent_desc", "spent_asc"] = Query(default="newest"),
    client: AdminApiClient = Depends(get_admin_client),
    token: Optional[str] = Depends(get_bearer_token),
) -> CustomerListResponse:
    """
    List customers with their net spend over revenue orders.
    """
    logger.info("list_customers called", status=status, sort_by=sort_by)

    try:
        users, orders = await asyncio.gather(
            client.fetch_users(query=q, token=token),
            client.fetch_orders(token=token),
        )
    except AdminApiError as e:
        raise backend_error(e, "Failed to load customers") from e

    report = summarize_customers(
        users,
        orders,
        status=status,
        query=q,
        sort_by=sort_by,
        exclude_flagged_refunds=get_settings().dashboard.exclude_flagged_refunds,
    )

    return CustomerListResponse(
        items=[
            CustomerResponse(
                id=entry.customer.id,
                email=entry.customer.email,
                role=entry.customer.role,
                active=entry.customer.active,
                created_at=entry.customer.created_at,
                spent=entry.spent,
            )
            for entry in report.customers
        ],
        total=report.total,
        active=report.active,
        inactive=report.inactive,
        total_spend_shown=report.total_spend_shown,
    )
