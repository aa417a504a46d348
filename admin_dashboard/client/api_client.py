"""
Admin REST API Client

Fetches the raw collections the dashboard is computed from. Handles:
- Bearer authentication on every request
- Collections served bare or wrapped under their name
- Normalizing order amounts to major currency units
- Concurrent snapshot fetching
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

from admin_dashboard.config import get_settings

logger = structlog.get_logger(__name__)

MINOR_UNITS_PER_MAJOR = 100

# Fields that are always integer cents, whatever the configured unit
CENTS_TOTAL_FIELDS = ("grandTotalCents", "amountCents")


class AdminApiError(Exception):
    """Admin API request failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AdminApiAuthError(AdminApiError):
    """Admin API rejected the bearer credential"""


@dataclass(frozen=True)
class DashboardSnapshot:
    """Immutable set of collections fetched together"""
    orders: Tuple[Dict[str, Any], ...] = ()
    products: Tuple[Dict[str, Any], ...] = ()
    reviews: Tuple[Dict[str, Any], ...] = ()
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def unwrap_collection(payload: Any, key: str) -> List[Dict[str, Any]]:
    """Accept ``[...]`` or ``{key: [...]}``; anything else is an empty collection"""
    if isinstance(payload, dict):
        payload = payload.get(key)
    if isinstance(payload, list):
        return payload
    return []


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_order_amounts(order: Dict[str, Any], amount_unit: str = "major") -> Dict[str, Any]:
    """
    Return a copy of an order with amounts in major units.

    Args:
        order: Raw order mapping
        amount_unit: "major" if totalAmount/refundAmount are dollars,
            "minor" if they are cents

    Returns:
        Normalized order mapping
    """
    if not isinstance(order, dict):
        return order

    normalized = dict(order)

    if amount_unit == "minor":
        for key in ("totalAmount", "refundAmount"):
            value = _number(normalized.get(key))
            if value is not None:
                normalized[key] = value / MINOR_UNITS_PER_MAJOR

    if _number(normalized.get("totalAmount")) is None:
        for key in CENTS_TOTAL_FIELDS:
            value = _number(normalized.get(key))
            if value is not None:
                normalized["totalAmount"] = value / MINOR_UNITS_PER_MAJOR
                break

    return normalized


class AdminApiClient:
    """
    Async client for the admin REST API.

    Example:
        async with AdminApiClient(token="...") as client:
            snapshot = await client.fetch_snapshot()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        amount_unit: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings().admin_api

        self.base_url = base_url or settings.base_url
        if token is None and settings.token is not None:
            token = settings.token.get_secret_value()
        self.token = token
        self.amount_unit = amount_unit or settings.amount_unit
        if self.amount_unit not in ("major", "minor"):
            raise ValueError("amount_unit must be 'major' or 'minor'")

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "AdminApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client"""
        await self._client.aclose()

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        bearer = token or self.token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        """GET a path and decode the JSON body"""
        try:
            response = await self._client.get(path, params=params, headers=self._headers(token))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            message = _error_message(e.response)
            logger.error(
                "Admin API request failed",
                path=path,
                status_code=status_code,
                message=message,
            )
            if status_code in (401, 403):
                raise AdminApiAuthError(message, status_code=status_code) from e
            raise AdminApiError(message, status_code=status_code) from e
        except httpx.RequestError as e:
            logger.error("Admin API connection error", path=path, error=str(e))
            raise AdminApiError(f"Connection error: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            logger.error("Admin API returned invalid JSON", path=path)
            raise AdminApiError("Invalid JSON response", status_code=response.status_code) from e

    async def fetch_orders(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch orders with amounts normalized to major units"""
        orders = unwrap_collection(await self._get("/orders", token=token), "orders")
        return [normalize_order_amounts(order, self.amount_unit) for order in orders]

    async def fetch_products(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch products"""
        return unwrap_collection(await self._get("/products", token=token), "products")

    async def fetch_reviews(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch reviews"""
        return unwrap_collection(await self._get("/reviews", token=token), "reviews")

    async def fetch_users(self, query: str = "", token: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch admin users, optionally filtered server-side by ``q``"""
        params = {"q": query} if query else None
        return unwrap_collection(await self._get("/users", params=params, token=token), "users")

    async def fetch_snapshot(self, token: Optional[str] = None) -> DashboardSnapshot:
        """
        Fetch orders, products and reviews concurrently.

        Raises:
            AdminApiError: If any of the requests fails
        """
        orders, products, reviews = await asyncio.gather(
            self.fetch_orders(token=token),
            self.fetch_products(token=token),
            self.fetch_reviews(token=token),
        )

        logger.info(
            "Dashboard snapshot fetched",
            orders=len(orders),
            products=len(products),
            reviews=len(reviews),
        )

        return DashboardSnapshot(
            orders=tuple(orders),
            products=tuple(products),
            reviews=tuple(reviews),
        )


def _error_message(response: httpx.Response) -> str:
    """Prefer the API's own ``message`` field over the status phrase"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}: {response.reason_phrase}"
