"""
Dashboard Metrics Module
"""
from .aggregator import MetricsAggregator, aggregate_dashboard
from .customers import CustomerReport, customer_spend, summarize_customers
from .models import (
    DashboardMetrics,
    EmbeddedRef,
    IdRef,
    InvalidTimeRangeError,
    Order,
    Product,
    Review,
    ReviewStats,
    TimeRange,
    parse_reference,
    reference_key,
)
from .orders import is_revenue_order, order_net, order_total

__all__ = [
    "MetricsAggregator",
    "aggregate_dashboard",
    "CustomerReport",
    "customer_spend",
    "summarize_customers",
    "DashboardMetrics",
    "EmbeddedRef",
    "IdRef",
    "InvalidTimeRangeError",
    "Order",
    "Product",
    "Review",
    "ReviewStats",
    "TimeRange",
    "parse_reference",
    "reference_key",
    "is_revenue_order",
    "order_net",
    "order_total",
]
