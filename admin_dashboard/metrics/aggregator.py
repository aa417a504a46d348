"""
Dashboard Metrics Aggregator

Pure computation over a snapshot of orders, products and reviews.
Produces:
- Gross/net revenue and refunds for a time range
- Order counts by status
- Inventory health (low stock, out of stock)
- Per-day revenue and order volume series
- Top products by quantity sold
- Most recent orders
- Review moderation summary

The aggregator performs no I/O and keeps no state between calls.
"""

from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

import structlog

from admin_dashboard.config.settings import DashboardSettings, get_settings
from .models import (
    EPOCH,
    DashboardMetrics,
    EmbeddedRef,
    Order,
    OrderCounts,
    Product,
    RankedItem,
    Review,
    ReviewStats,
    SeriesPoint,
    TimeRange,
    coerce_rows,
    reference_key,
)
from .orders import (
    RECOGNIZED_STATUSES,
    is_revenue_order,
    order_total,
    refund_amount,
    status_bucket,
)

logger = structlog.get_logger(__name__)

UNKNOWN_PRODUCT = "Unknown"


def _money(value: float) -> float:
    return round(value, 2)


class MetricsAggregator:
    """
    Stateless dashboard metrics aggregator.

    Example:
        aggregator = MetricsAggregator(top_products_limit=5)
        metrics = aggregator.aggregate(orders, products, reviews, time_range="30d")
    """

    def __init__(
        self,
        top_products_limit: int = 6,
        low_stock_threshold: int = 5,
        low_stock_limit: int = 6,
        recent_orders_limit: int = 6,
        all_range_series_days: int = 30,
        tz: Optional[tzinfo] = None,
        exclude_flagged_refunds: bool = False,
    ):
        if all_range_series_days < 1:
            raise ValueError("all_range_series_days must be at least 1")
        for name, value in (
            ("top_products_limit", top_products_limit),
            ("low_stock_threshold", low_stock_threshold),
            ("low_stock_limit", low_stock_limit),
            ("recent_orders_limit", recent_orders_limit),
        ):
            if value < 0:
                raise ValueError(f"{name} must not be negative")

        self.top_products_limit = top_products_limit
        self.low_stock_threshold = low_stock_threshold
        self.low_stock_limit = low_stock_limit
        self.recent_orders_limit = recent_orders_limit
        self.all_range_series_days = all_range_series_days
        self.tz = tz
        self.exclude_flagged_refunds = exclude_flagged_refunds

    @classmethod
    def from_settings(cls, settings: Optional[DashboardSettings] = None) -> "MetricsAggregator":
        """Build an aggregator from dashboard settings"""
        settings = settings or get_settings().dashboard
        return cls(
            top_products_limit=settings.top_products_limit,
            low_stock_threshold=settings.low_stock_threshold,
            low_stock_limit=settings.low_stock_limit,
            recent_orders_limit=settings.recent_orders_limit,
            all_range_series_days=settings.all_range_series_days,
            tz=ZoneInfo(settings.timezone) if settings.timezone else None,
            exclude_flagged_refunds=settings.exclude_flagged_refunds,
        )

    def _localize(self, value: datetime) -> datetime:
        """Express a timestamp in the observer's zone (naive means already local)"""
        try:
            if value.tzinfo is None:
                return value.replace(tzinfo=self.tz) if self.tz is not None else value.astimezone()
            return value.astimezone(self.tz)
        except (OverflowError, ValueError):
            # Out of range once shifted into the observer's zone
            logger.warning("Timestamp out of range, treating as epoch", value=value.isoformat())
            return EPOCH.astimezone(self.tz)

    def _is_revenue(self, order: Order) -> bool:
        return is_revenue_order(order, exclude_flagged_refunds=self.exclude_flagged_refunds)

    def _count_statuses(self, orders: List[Order]) -> OrderCounts:
        buckets = Counter(status_bucket(order) for order in orders)
        by_status = {status: buckets[status] for status in sorted(RECOGNIZED_STATUSES) if buckets[status]}

        return OrderCounts(
            total=len(orders),
            pending=buckets["pending"],
            processing=buckets["processing"],
            shipped=buckets["shipped"],
            delivered=buckets["delivered"] + buckets["completed"],
            cancelled=buckets["cancelled"] + buckets["canceled"],
            failed=buckets["failed"],
            refunded=buckets["refunded"],
            unrecognized=buckets["unrecognized"],
            by_status=by_status,
        )

    def _build_series(
        self,
        stamped: List[Tuple[Order, datetime]],
        today: date,
        length: int,
    ) -> Tuple[List[SeriesPoint], List[SeriesPoint]]:
        """Revenue and order-count series for ``length`` days ending today"""
        days = [today - timedelta(days=offset) for offset in reversed(range(length))]
        wanted = set(days)

        revenue_by_day: Dict[date, float] = defaultdict(float)
        orders_by_day: Counter = Counter()

        for order, stamp in stamped:
            day = stamp.date()
            if day not in wanted:
                continue
            orders_by_day[day] += 1
            if self._is_revenue(order):
                revenue_by_day[day] += order_total(order)

        revenue_series = [
            SeriesPoint(day=day, label=day.strftime("%d %b"), value=_money(revenue_by_day[day]))
            for day in days
        ]
        orders_series = [
            SeriesPoint(day=day, label=day.strftime("%d %b"), value=orders_by_day[day])
            for day in days
        ]
        return revenue_series, orders_series

    def _top_products(self, orders: List[Order], products: List[Product]) -> List[RankedItem]:
        """Products ranked by quantity sold; ties keep first-seen order"""
        catalog_names = {product.id: product.name for product in products if product.id and product.name}

        quantities: Dict[str, float] = {}
        labels: Dict[str, str] = {}

        for order in orders:
            for item in order.items:
                key = reference_key(item.product) or UNKNOWN_PRODUCT
                quantities[key] = quantities.get(key, 0) + item.quantity

                if key not in labels:
                    embedded_name = item.product.name if isinstance(item.product, EmbeddedRef) else None
                    labels[key] = embedded_name or catalog_names.get(key) or key

        ranked = sorted(quantities.items(), key=lambda entry: entry[1], reverse=True)
        return [
            RankedItem(key=key, label=labels[key], value=quantity)
            for key, quantity in ranked[: self.top_products_limit]
        ]

    def _review_stats(self, reviews: List[Review]) -> ReviewStats:
        approved = sum(1 for review in reviews if review.approved)
        average = sum(review.rating for review in reviews) / len(reviews) if reviews else 0.0
        return ReviewStats(
            total=len(reviews),
            approved=approved,
            pending=len(reviews) - approved,
            average_rating=round(average, 2),
        )

    def aggregate(
        self,
        orders: Optional[Iterable[Any]],
        products: Optional[Iterable[Any]],
        reviews: Optional[Iterable[Any]],
        time_range: Union[TimeRange, str] = TimeRange.LAST_7_DAYS,
        now: Optional[datetime] = None,
        series_days: Optional[int] = None,
    ) -> DashboardMetrics:
        """
        Aggregate a snapshot into dashboard metrics.

        Args:
            orders: Orders (parsed or raw API mappings)
            products: Products (parsed or raw API mappings)
            reviews: Reviews (parsed or raw API mappings)
            time_range: One of 7d, 30d, 90d, all
            now: Reference instant, defaults to the current time
            series_days: Series length for the ``all`` range; bounded
                ranges always produce one point per day of the range

        Returns:
            DashboardMetrics for the snapshot

        Raises:
            InvalidTimeRangeError: If time_range is not a supported range
        """
        time_range = TimeRange.parse(time_range)
        if series_days is not None and series_days < 1:
            raise ValueError("series_days must be at least 1")

        now = self._localize(now or datetime.now(timezone.utc))
        today = now.date()

        order_rows, bad_orders = coerce_rows(orders, Order)
        product_rows, bad_products = coerce_rows(products, Product)
        review_rows, bad_reviews = coerce_rows(reviews, Review)
        malformed = bad_orders + bad_products + bad_reviews
        if malformed:
            logger.warning(
                f"Skipped {malformed} malformed rows",
                orders=bad_orders,
                products=bad_products,
                reviews=bad_reviews,
            )

        stamped = [(order, self._localize(order.created_at)) for order in order_rows]

        # Range selection
        days = time_range.days
        if days is None:
            from_date = None
            in_range = [order for order, _ in stamped]
            series_length = series_days or self.all_range_series_days
        else:
            first_day = today - timedelta(days=days - 1)
            from_date = datetime.combine(first_day, time.min, tzinfo=now.tzinfo)
            in_range = [order for order, stamp in stamped if first_day <= stamp.date() and stamp <= now]
            series_length = days

        revenue_orders = [order for order in in_range if self._is_revenue(order)]

        # Revenue
        gross_revenue = sum(order_total(order) for order in revenue_orders)
        refunds = sum(refund_amount(order) for order in in_range)
        net_revenue = max(0.0, gross_revenue - refunds)
        average_order_value = gross_revenue / len(revenue_orders) if revenue_orders else 0.0
        all_time_revenue = sum(order_total(order) for order in order_rows if self._is_revenue(order))

        # Volume
        units_sold = sum(item.quantity for order in revenue_orders for item in order.items)
        customers = {reference_key(order.customer) for order in in_range}
        customers.discard(None)

        revenue_series, orders_series = self._build_series(stamped, today, series_length)

        # Inventory
        low_stock = [
            product for product in product_rows
            if 0 < product.stock <= self.low_stock_threshold
        ][: self.low_stock_limit]
        out_of_stock = sum(1 for product in product_rows if product.stock == 0)

        recent = sorted(stamped, key=lambda entry: entry[1], reverse=True)[: self.recent_orders_limit]
        review_stats = self._review_stats(review_rows)

        metrics = DashboardMetrics(
            time_range=time_range,
            generated_at=now,
            from_date=from_date,
            gross_revenue=_money(gross_revenue),
            refunds=_money(refunds),
            net_revenue=_money(net_revenue),
            order_counts=self._count_statuses(in_range),
            revenue_order_count=len(revenue_orders),
            average_order_value=_money(average_order_value),
            units_sold=units_sold,
            unique_customers=len(customers),
            revenue_series=revenue_series,
            orders_series=orders_series,
            top_products=self._top_products(revenue_orders, product_rows),
            low_stock_products=low_stock,
            out_of_stock_count=out_of_stock,
            recent_orders=[order for order, _ in recent],
            all_time_revenue=_money(all_time_revenue),
            all_time_orders=len(order_rows),
            pending_reviews=review_stats.pending,
            review_stats=review_stats,
            malformed_rows=malformed,
        )

        logger.debug(
            "Dashboard metrics aggregated",
            time_range=time_range.value,
            orders=len(order_rows),
            orders_in_range=len(in_range),
            gross_revenue=metrics.gross_revenue,
        )

        return metrics


def aggregate_dashboard(
    orders: Optional[Iterable[Any]],
    products: Optional[Iterable[Any]],
    reviews: Optional[Iterable[Any]],
    time_range: Union[TimeRange, str] = TimeRange.LAST_7_DAYS,
    now: Optional[datetime] = None,
    series_days: Optional[int] = None,
    **options: Any,
) -> DashboardMetrics:
    """
    Convenience function to aggregate a snapshot.

    Args:
        orders: Orders collection
        products: Products collection
        reviews: Reviews collection
        time_range: One of 7d, 30d, 90d, all
        now: Reference instant
        series_days: Series length for the ``all`` range
        **options: MetricsAggregator constructor options

    Returns:
        DashboardMetrics
    """
    aggregator = MetricsAggregator(**options)
    return aggregator.aggregate(
        orders,
        products,
        reviews,
        time_range=time_range,
        now=now,
        series_days=series_days,
    )
