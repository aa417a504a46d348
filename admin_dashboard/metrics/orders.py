"""
Order Revenue Policy

The single place that decides whether an order counts toward revenue and
what an order is worth. Every report in the service (dashboard KPIs, time
series, customer spend) goes through these functions.

All amounts are in major currency units (dollars); conversion from cents
happens at the API client boundary.
"""

from enum import Enum
from typing import Any, Mapping, Union

from .models import LineItem, Order

OrderLike = Union[Order, Mapping[str, Any]]


class OrderStatus(str, Enum):
    """Recognized order statuses"""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CANCELED = "canceled"
    FAILED = "failed"
    REFUNDED = "refunded"


RECOGNIZED_STATUSES = frozenset(s.value for s in OrderStatus)

# Order statuses that count toward revenue ("paid" appears as a status in some payloads)
REVENUE_STATUSES = frozenset({"pending", "processing", "shipped", "delivered", "completed", "paid"})

# Payment statuses that count toward revenue regardless of order status
PAID_PAYMENT_STATUSES = frozenset({"paid", "captured", "succeeded"})

# Order statuses that never count, whatever the payment says
EXCLUDED_STATUSES = frozenset({"cancelled", "canceled", "failed", "refunded"})


def as_order(order: OrderLike) -> Order:
    """Accept either a parsed Order or a raw API mapping"""
    if isinstance(order, Order):
        return order
    return Order.from_dict(order)


def is_revenue_order(order: OrderLike, exclude_flagged_refunds: bool = False) -> bool:
    """
    Decide whether an order counts toward revenue.

    An order counts when its status or its payment status says money came
    in, unless the status says the order was cancelled, failed or refunded.
    Only ``status`` and ``paymentStatus`` are consulted.

    Args:
        order: Order or raw order mapping
        exclude_flagged_refunds: Also exclude orders flagged ``refunded``
            with a positive refund amount

    Returns:
        True if the order is revenue
    """
    order = as_order(order)

    included = order.status in REVENUE_STATUSES or order.payment_status in PAID_PAYMENT_STATUSES
    excluded = order.status in EXCLUDED_STATUSES

    if exclude_flagged_refunds and order.refunded and order.refund_amount > 0:
        excluded = True

    return included and not excluded


def unit_price(item: LineItem) -> float:
    """Line item price: ``price``, then ``unitPrice``, then the product's price"""
    for candidate in (item.price, item.unit_price, item.product_price):
        if candidate:
            return candidate
    return 0.0


def order_total(order: OrderLike) -> float:
    """
    Order value in major units.

    A positive ``totalAmount`` is authoritative. Otherwise the total is
    derived from the line items plus shipping and tax, minus discount,
    never below zero.
    """
    order = as_order(order)

    if order.total_amount is not None and order.total_amount > 0:
        return order.total_amount

    items_total = sum(unit_price(item) * item.quantity for item in order.items)
    return max(0.0, items_total + order.shipping + order.tax - order.discount)


def refund_amount(order: OrderLike) -> float:
    """Refunded amount, zero when missing or negative"""
    return max(0.0, as_order(order).refund_amount)


def order_net(order: OrderLike) -> float:
    """Order value after refunds, never below zero"""
    order = as_order(order)
    return max(0.0, order_total(order) - refund_amount(order))


def status_bucket(order: OrderLike) -> str:
    """Status key used for counting; 'unrecognized' for anything off-vocabulary"""
    status = as_order(order).status
    return status if status in RECOGNIZED_STATUSES else "unrecognized"
