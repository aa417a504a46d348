"""
Dashboard Data Models

Typed views over the raw JSON collections served by the admin REST API,
plus the result structures produced by the metrics aggregator.

Raw rows are loosely shaped: numbers may arrive as strings, dates may be
missing, and references to customers/products may be a bare id or an
embedded document. Everything here coerces instead of raising so that a
single malformed row never blanks out a report.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar, Union

import structlog

logger = structlog.get_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# COERCION HELPERS
# =============================================================================

def optional_number(value: Any) -> Optional[float]:
    """Parse a finite number, returning None for missing or non-numeric values"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def to_number(value: Any, default: float = 0.0) -> float:
    """Parse a finite number, falling back to default"""
    result = optional_number(value)
    return default if result is None else result


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from the API.

    Accepts datetime/date objects, ISO-8601 strings (with or without a
    trailing ``Z``) and epoch milliseconds. Naive results are kept naive and
    interpreted later in the observer's local zone.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return value is True or (isinstance(value, (int, float)) and value == 1)


def _identifier(data: Mapping[str, Any]) -> Optional[str]:
    raw = data.get("_id")
    if raw is None:
        raw = data.get("id")
    return _text(raw)


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


# =============================================================================
# REFERENCES
# =============================================================================

@dataclass(frozen=True)
class IdRef:
    """Reference carried as a bare identifier"""
    id: str


@dataclass(frozen=True)
class EmbeddedRef:
    """Reference carried as an embedded (populated) document"""
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    price: Optional[float] = None


Reference = Union[IdRef, EmbeddedRef]


def parse_reference(value: Any) -> Optional[Reference]:
    """Turn an id string or an embedded document into a Reference"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (IdRef, EmbeddedRef)):
        return value
    if isinstance(value, Mapping):
        ref = EmbeddedRef(
            id=_identifier(value),
            name=_text(value.get("name")) or _text(value.get("title")),
            email=_text(value.get("email")),
            price=optional_number(value.get("price")),
        )
        if ref.id is None and ref.name is None and ref.email is None:
            return None
        return ref
    if isinstance(value, (str, int)):
        text = _text(value)
        return IdRef(text) if text else None
    return None


def reference_key(ref: Optional[Reference]) -> Optional[str]:
    """Stable identity of a reference: its id, else email, else name"""
    if ref is None:
        return None
    if isinstance(ref, IdRef):
        return ref.id
    return ref.id or ref.email or ref.name


# =============================================================================
# INPUT ENTITIES
# =============================================================================

@dataclass(frozen=True)
class LineItem:
    """Order line item"""
    product: Optional[Reference] = None
    quantity: float = 1.0
    price: Optional[float] = None
    unit_price: Optional[float] = None
    product_price: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineItem":
        product = parse_reference(_first_present(data, "productId", "product"))
        nested = data.get("product")
        product_price = optional_number(nested.get("price")) if isinstance(nested, Mapping) else None
        if product_price is None and isinstance(product, EmbeddedRef):
            product_price = product.price

        raw_quantity = _first_present(data, "quantity", "qty")
        quantity = max(0.0, to_number(raw_quantity, 1.0))

        return cls(
            product=product,
            quantity=quantity,
            price=optional_number(data.get("price")),
            unit_price=optional_number(data.get("unitPrice")),
            product_price=product_price,
        )


@dataclass(frozen=True)
class Order:
    """Customer order as served by ``GET /orders``"""
    id: Optional[str] = None
    customer: Optional[Reference] = None
    items: Tuple[LineItem, ...] = ()
    total_amount: Optional[float] = None
    status: str = ""
    payment_status: str = ""
    refund_amount: float = 0.0
    refunded: bool = False
    shipping: float = 0.0
    tax: float = 0.0
    discount: float = 0.0
    created_at: datetime = EPOCH

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Order":
        raw_items = _first_present(data, "products", "items")
        items = tuple(
            LineItem.from_dict(item)
            for item in (raw_items if isinstance(raw_items, (list, tuple)) else ())
            if isinstance(item, Mapping)
        )

        return cls(
            id=_identifier(data),
            customer=parse_reference(_first_present(data, "userId", "customer", "user")),
            items=items,
            total_amount=optional_number(data.get("totalAmount")),
            status=(_text(data.get("status")) or "").lower(),
            payment_status=(_text(data.get("paymentStatus")) or "").lower(),
            refund_amount=to_number(data.get("refundAmount")),
            refunded=_flag(data.get("refunded")),
            shipping=to_number(_first_present(data, "shippingFee", "shipping", "shippingAmount")),
            tax=to_number(_first_present(data, "tax", "taxAmount")),
            discount=to_number(_first_present(data, "discount", "discountAmount")),
            created_at=parse_datetime(data.get("createdAt")) or EPOCH,
        )


@dataclass(frozen=True)
class Product:
    """Catalog product as served by ``GET /products``"""
    id: Optional[str] = None
    name: str = ""
    price: float = 0.0
    stock: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        return cls(
            id=_identifier(data),
            name=_text(data.get("name")) or _text(data.get("title")) or "",
            price=to_number(data.get("price")),
            stock=max(0, int(to_number(data.get("stock")))),
        )


@dataclass(frozen=True)
class Review:
    """Product review as served by ``GET /reviews``"""
    id: Optional[str] = None
    approved: bool = False
    rating: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Review":
        return cls(
            id=_identifier(data),
            approved=_flag(data.get("approved")),
            rating=to_number(data.get("rating")),
        )


T = TypeVar("T", Order, Product, Review)


def coerce_rows(rows: Optional[Iterable[Any]], model: Type[T]) -> Tuple[List[T], int]:
    """
    Coerce raw rows into model instances.

    Returns:
        Tuple of (parsed rows, number of rows skipped as malformed)
    """
    parsed: List[T] = []
    malformed = 0

    for row in rows or ():
        if isinstance(row, model):
            parsed.append(row)
            continue
        if not isinstance(row, Mapping):
            malformed += 1
            continue
        try:
            parsed.append(model.from_dict(row))
        except (TypeError, ValueError, AttributeError) as e:
            malformed += 1
            logger.warning(f"Skipping malformed {model.__name__.lower()} row", error=str(e))

    return parsed, malformed


# =============================================================================
# TIME RANGES
# =============================================================================

class InvalidTimeRangeError(ValueError):
    """Raised when a caller asks for a range outside the supported set"""

    def __init__(self, value: Any):
        self.value = value
        allowed = ", ".join(r.value for r in TimeRange)
        super().__init__(f"Invalid time range {value!r}; expected one of: {allowed}")


class TimeRange(str, Enum):
    """Dashboard time ranges"""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        """Number of calendar days covered, None when unbounded"""
        return {
            TimeRange.LAST_7_DAYS: 7,
            TimeRange.LAST_30_DAYS: 30,
            TimeRange.LAST_90_DAYS: 90,
        }.get(self)

    @classmethod
    def parse(cls, value: Union["TimeRange", str]) -> "TimeRange":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidTimeRangeError(value)
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidTimeRangeError(value) from None


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class SeriesPoint:
    """One calendar day of a time series"""
    day: date
    label: str
    value: float


@dataclass(frozen=True)
class RankedItem:
    """Labelled value in a ranking"""
    key: str
    label: str
    value: float


@dataclass
class OrderCounts:
    """Order counts by status for the selected range"""
    total: int = 0
    pending: int = 0
    processing: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0
    failed: int = 0
    refunded: int = 0
    unrecognized: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)


@dataclass
class ReviewStats:
    """Review moderation summary"""
    total: int = 0
    approved: int = 0
    pending: int = 0
    average_rating: float = 0.0


@dataclass
class DashboardMetrics:
    """Complete dashboard aggregation result"""
    time_range: TimeRange
    generated_at: datetime
    from_date: Optional[datetime]
    gross_revenue: float
    refunds: float
    net_revenue: float
    order_counts: OrderCounts
    revenue_order_count: int
    average_order_value: float
    units_sold: float
    unique_customers: int
    revenue_series: List[SeriesPoint]
    orders_series: List[SeriesPoint]
    top_products: List[RankedItem]
    low_stock_products: List[Product]
    out_of_stock_count: int
    recent_orders: List[Order]
    all_time_revenue: float = 0.0
    all_time_orders: int = 0
    pending_reviews: int = 0
    review_stats: ReviewStats = field(default_factory=ReviewStats)
    malformed_rows: int = 0
