"""
Dashboard API Endpoints

Fetches a fresh snapshot from the admin API and returns the aggregated
dashboard metrics.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import structlog

from admin_dashboard.client import AdminApiClient, AdminApiError
from admin_dashboard.config import get_settings
from admin_dashboard.metrics import (
    DashboardMetrics,
    EmbeddedRef,
    InvalidTimeRangeError,
    MetricsAggregator,
    TimeRange,
    order_total,
    reference_key,
)
from admin_dashboard.serving.api.dependencies import (
    backend_error,
    get_admin_client,
    get_aggregator,
    get_bearer_token,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class SeriesPointResponse(BaseModel):
    """One day of a series"""
    day: date
    label: str
    value: float


class RankedItemResponse(BaseModel):
    """Top product entry"""
    key: str
    label: str
    value: float


class OrderCountsResponse(BaseModel):
    """Order counts by status"""
    total: int
    pending: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
    failed: int
    refunded: int
    unrecognized: int
    by_status: Dict[str, int]


class StockItemResponse(BaseModel):
    """Product with low stock"""
    id: Optional[str]
    name: str
    stock: int
    price: float


class RecentOrderResponse(BaseModel):
    """Recent order row"""
    id: Optional[str]
    customer: Optional[str]
    status: str
    total: float
    created_at: datetime


class ReviewStatsResponse(BaseModel):
    """Review moderation summary"""
    total: int
    approved: int
    pending: int
    average_rating: float


class DashboardResponse(BaseModel):
    """Dashboard metrics"""
    range: str
    generated_at: datetime
    from_date: Optional[datetime]
    gross_revenue: float
    refunds: float
    net_revenue: float
    average_order_value: float
    revenue_order_count: int
    units_sold: float
    unique_customers: int
    order_counts: OrderCountsResponse
    revenue_series: List[SeriesPointResponse]
    orders_series: List[SeriesPointResponse]
    top_products: List[RankedItemResponse]
    low_stock_products: List[StockItemResponse]
    out_of_stock_count: int
    recent_orders: List[RecentOrderResponse]
    all_time_revenue: float
    all_time_orders: int
    pending_reviews: int
    review_stats: ReviewStatsResponse
    malformed_rows: int


def _customer_label(order) -> Optional[str]:
    if isinstance(order.customer, EmbeddedRef) and order.customer.email:
        return order.customer.email
    return reference_key(order.customer)


def to_response(metrics: DashboardMetrics) -> DashboardResponse:
    """Render aggregator output as the API response"""
    counts = metrics.order_counts
    return DashboardResponse(
        range=metrics.time_range.value,
        generated_at=metrics.generated_at,
        from_date=metrics.from_date,
        gross_revenue=metrics.gross_revenue,
        refunds=metrics.refunds,
        net_revenue=metrics.net_revenue,
        average_order_value=metrics.average_order_value,
        revenue_order_count=metrics.revenue_order_count,
        units_sold=metrics.units_sold,
        unique_customers=metrics.unique_customers,
        order_counts=OrderCountsResponse(
            total=counts.total,
            pending=counts.pending,
            processing=counts.processing,
            shipped=counts.shipped,
            delivered=counts.delivered,
            cancelled=counts.cancelled,
            failed=counts.failed,
            refunded=counts.refunded,
            unrecognized=counts.unrecognized,
            by_status=counts.by_status,
        ),
        revenue_series=[
            SeriesPointResponse(day=p.day, label=p.label, value=p.value) for p in metrics.revenue_series
        ],
        orders_series=[
            SeriesPointResponse(day=p.day, label=p.label, value=p.value) for p in metrics.orders_series
        ],
        top_products=[
            RankedItemResponse(key=i.key, label=i.label, value=i.value) for i in metrics.top_products
        ],
        low_stock_products=[
            StockItemResponse(id=p.id, name=p.name, stock=p.stock, price=p.price)
            for p in metrics.low_stock_products
        ],
        out_of_stock_count=metrics.out_of_stock_count,
        recent_orders=[
            RecentOrderResponse(
                id=o.id,
                customer=_customer_label(o),
                status=o.status,
                total=order_total(o),
                created_at=o.created_at,
            )
            for o in metrics.recent_orders
        ],
        all_time_revenue=metrics.all_time_revenue,
        all_time_orders=metrics.all_time_orders,
        pending_reviews=metrics.pending_reviews,
        review_stats=ReviewStatsResponse(
            total=metrics.review_stats.total,
            approved=metrics.review_stats.approved,
            pending=metrics.review_stats.pending,
            average_rating=metrics.review_stats.average_rating,
        ),
        malformed_rows=metrics.malformed_rows,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    time_range: Optional[str] = Query(default=None, alias="range", description="7d, 30d, 90d or all"),
    series_days: Optional[int] = Query(default=None, ge=1, le=366, description="Series length for range=all"),
    client: AdminApiClient = Depends(get_admin_client),
    aggregator: MetricsAggregator = Depends(get_aggregator),
    token: Optional[str] = Depends(get_bearer_token),
) -> DashboardResponse:
    """
    Get dashboard metrics for a time range.
    """
    try:
        selected = TimeRange.parse(time_range or get_settings().dashboard.default_range)
    except InvalidTimeRangeError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info("get_dashboard called", time_range=selected.value)

    try:
        snapshot = await client.fetch_snapshot(token=token)
    except AdminApiError as e:
        raise backend_error(e, "Failed to load dashboard data") from e

    metrics = aggregator.aggregate(
        snapshot.orders,
        snapshot.products,
        snapshot.reviews,
        time_range=selected,
        series_days=series_days,
    )
    return to_response(metrics)
