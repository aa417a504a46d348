"""
Test Suite Configuration
"""
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from admin_dashboard.config import Settings
from admin_dashboard.metrics import MetricsAggregator

ADMIN_API_URL = "http://admin.test/api/admin/v1"

# Monday afternoon, UTC
NOW = datetime(2025, 1, 20, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant"""
    return NOW


@pytest.fixture
def aggregator() -> MetricsAggregator:
    """Aggregator observing UTC day boundaries"""
    return MetricsAggregator(tz=timezone.utc)


@pytest.fixture
def sample_orders() -> List[Dict[str, Any]]:
    """Raw orders as served by GET /orders"""
    return [
        {
            "_id": "ord-1",
            "userId": {"_id": "u1", "email": "ann@example.com"},
            "products": [{"productId": {"_id": "p1", "name": "Wireless Mouse"}, "quantity": 2}],
            "totalAmount": 100,
            "status": "delivered",
            "createdAt": "2025-01-20T10:00:00.000Z",
        },
        {
            "_id": "ord-2",
            "userId": "u2",
            "products": [{"productId": "p2", "quantity": 1}],
            "totalAmount": 50,
            "status": "cancelled",
            "createdAt": "2025-01-20T09:00:00.000Z",
        },
        {
            "_id": "ord-3",
            "userId": "u1",
            "products": [{"productId": {"_id": "p2", "name": "USB Keyboard"}, "quantity": 3}],
            "totalAmount": 80,
            "refundAmount": 20,
            "status": "shipped",
            "createdAt": "2025-01-18T12:00:00.000Z",
        },
        {
            "_id": "ord-4",
            "userId": {"_id": "u3", "email": "cara@example.com"},
            "items": [{"productId": "p3", "price": 25, "quantity": 2}],
            "shippingFee": 5,
            "tax": 3,
            "discount": 8,
            "status": "pending",
            "paymentStatus": "paid",
            "createdAt": "2025-01-15T08:00:00.000Z",
        },
        {
            "_id": "ord-5",
            "userId": "u2",
            "products": [{"productId": "p1", "quantity": 4}],
            "totalAmount": 200,
            "status": "delivered",
            "createdAt": "2024-12-01T10:00:00.000Z",
        },
        {
            "_id": "ord-6",
            "products": [],
            "totalAmount": 40,
            "status": "on-hold",
            "createdAt": "2025-01-19T23:30:00.000Z",
        },
        {
            "_id": "ord-7",
            "userId": "u4",
            "totalAmount": 10,
            "status": "delivered",
        },
    ]


@pytest.fixture
def sample_products() -> List[Dict[str, Any]]:
    """Raw products as served by GET /products"""
    return [
        {"_id": "p1", "name": "Wireless Mouse", "price": 29.99, "stock": 100},
        {"_id": "p2", "name": "USB Keyboard", "price": 49.99, "stock": 3},
        {"_id": "p3", "name": "Monitor Stand", "price": 39.99, "stock": 0},
        {"_id": "p4", "name": "Desk Lamp", "price": 19.99, "stock": 5},
        {"_id": "p5", "name": "HDMI Cable", "price": 9.99, "stock": 6},
        {"_id": "p6", "name": "USB Hub", "price": 24.99, "stock": -2},
    ]


@pytest.fixture
def sample_reviews() -> List[Dict[str, Any]]:
    """Raw reviews as served by GET /reviews"""
    return [
        {"_id": "r1", "approved": True, "rating": 5},
        {"_id": "r2", "approved": False, "rating": 2},
        {"_id": "r3", "rating": 4},
    ]


@pytest.fixture
def sample_users() -> List[Dict[str, Any]]:
    """Raw users as served by GET /users"""
    return [
        {"_id": "u1", "email": "ann@example.com", "role": "customer", "createdAt": "2024-06-01T00:00:00Z"},
        {"_id": "u2", "email": "bob@example.com", "active": False, "createdAt": "2024-09-01T00:00:00Z"},
        {"_id": "u3", "email": "cara@example.com", "role": "Admin", "createdAt": "2024-03-01T00:00:00Z"},
        {"_id": "u9", "email": "dan@shop.test"},
    ]


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})


@pytest.fixture
def admin_api() -> Callable[..., httpx.MockTransport]:
    """
    Build a mock admin API transport.

    Usage:
        transport = admin_api({"/orders": [...]}, status={"/orders": 500})

    Every request is appended to ``transport.requests``.
    """
    def build(
        payloads: Dict[str, Any],
        status: Optional[Dict[str, int]] = None,
    ) -> httpx.MockTransport:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            path = request.url.path.removeprefix("/api/admin/v1")
            code = (status or {}).get(path, 200)
            if code != 200:
                return json_response({"message": f"backend said {code}"}, status_code=code)
            if path not in payloads:
                return json_response({"message": "not found"}, status_code=404)
            return json_response(payloads[path])

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        return transport

    return build
