"""
Customer Spend Roll-up

Attaches lifetime spend to admin user rows and produces the filtered,
sorted customer report shown on the users screen.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from .models import Order, coerce_rows, parse_datetime, reference_key
from .orders import is_revenue_order, order_net

logger = structlog.get_logger(__name__)

STATUS_FILTERS = ("all", "active", "inactive")
SORT_ORDERS = ("newest", "oldest", "spent_desc", "spent_asc")


@dataclass(frozen=True)
class Customer:
    """Admin user row"""
    id: Optional[str]
    email: str = ""
    role: str = "customer"
    active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Customer":
        raw_id = data.get("_id") or data.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "customer").lower(),
            # missing flag means active
            active=data.get("active") is not False,
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass(frozen=True)
class CustomerSpend:
    """Customer with net revenue attributed to them"""
    customer: Customer
    spent: float


@dataclass
class CustomerReport:
    """Filtered customer listing with header totals"""
    customers: List[CustomerSpend] = field(default_factory=list)
    total: int = 0
    active: int = 0
    inactive: int = 0
    total_spend_shown: float = 0.0


def customer_spend(orders: Iterable[Any], exclude_flagged_refunds: bool = False) -> Dict[str, float]:
    """
    Net spend per customer over revenue orders.

    Orders with no customer reference are skipped.

    Returns:
        Mapping of customer key to spend in major units
    """
    rows, _ = coerce_rows(orders, Order)
    spend: Dict[str, float] = {}

    for order in rows:
        if not is_revenue_order(order, exclude_flagged_refunds=exclude_flagged_refunds):
            continue
        key = reference_key(order.customer)
        if key is None:
            continue
        spend[key] = spend.get(key, 0.0) + order_net(order)

    return {key: round(value, 2) for key, value in spend.items()}


def _spend_for(customer: Customer, spend: Dict[str, float]) -> float:
    # orders embedding a customer without an id are keyed by email
    keys = {key for key in (customer.id, customer.email) if key}
    return round(sum(spend.get(key, 0.0) for key in keys), 2)


def _sort_key_created(entry: CustomerSpend) -> float:
    created = entry.customer.created_at
    if created is None:
        return 0.0
    try:
        return created.timestamp()
    except (OverflowError, ValueError, OSError):
        return 0.0


def summarize_customers(
    users: Iterable[Any],
    orders: Iterable[Any],
    status: str = "all",
    query: str = "",
    sort_by: str = "newest",
    exclude_flagged_refunds: bool = False,
) -> CustomerReport:
    """
    Build the customer report.

    Args:
        users: Raw user rows or Customer objects
        orders: Raw order rows or Order objects
        status: all, active or inactive
        query: Case-insensitive email substring
        sort_by: newest, oldest, spent_desc or spent_asc
        exclude_flagged_refunds: Apply the stricter refund policy to spend

    Returns:
        CustomerReport with totals over all customers and spend over those shown

    Raises:
        ValueError: If status or sort_by is not supported
    """
    if status not in STATUS_FILTERS:
        raise ValueError(f"status must be one of: {list(STATUS_FILTERS)}")
    if sort_by not in SORT_ORDERS:
        raise ValueError(f"sort_by must be one of: {list(SORT_ORDERS)}")

    customers: List[Customer] = []
    for row in users or ():
        if isinstance(row, Customer):
            customers.append(row)
        elif isinstance(row, Mapping):
            customers.append(Customer.from_dict(row))
        else:
            logger.warning("Skipping malformed user row", row_type=type(row).__name__)

    spend = customer_spend(orders, exclude_flagged_refunds=exclude_flagged_refunds)
    entries = [CustomerSpend(customer=c, spent=_spend_for(c, spend)) for c in customers]

    shown = entries
    if status == "active":
        shown = [e for e in shown if e.customer.active]
    elif status == "inactive":
        shown = [e for e in shown if not e.customer.active]

    text = query.strip().lower()
    if text:
        shown = [e for e in shown if text in e.customer.email.lower()]

    if sort_by == "spent_desc":
        shown = sorted(shown, key=lambda e: e.spent, reverse=True)
    elif sort_by == "spent_asc":
        shown = sorted(shown, key=lambda e: e.spent)
    else:
        shown = sorted(shown, key=_sort_key_created, reverse=sort_by == "newest")

    active = sum(1 for e in entries if e.customer.active)
    return CustomerReport(
        customers=shown,
        total=len(entries),
        active=active,
        inactive=len(entries) - active,
        total_spend_shown=round(sum(e.spent for e in shown), 2),
    )
