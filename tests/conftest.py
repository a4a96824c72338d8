import copy
import os
import uuid
from datetime import datetime
from typing import Any, Dict, List

import pytest

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:5173")

from fastapi.testclient import TestClient  # noqa: E402

from errors import OrderNotFound, PersistenceError  # noqa: E402
from main import app  # noqa: E402
from schemas import Order  # noqa: E402
from services.orders_service import OrderService, get_order_service  # noqa: E402

AUTH_HEADERS = {"Authorization": "Bearer test-token"}


class FakeOrderRepository:
    """In-memory stand-in for the Supabase orders table."""

    def __init__(self) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.fail_with: str | None = None
        self.update_calls = 0

    def _check(self) -> None:
        if self.fail_with:
            raise PersistenceError(self.fail_with)

    def create(self, record: Dict[str, Any]) -> Order:
        self._check()
        row = copy.deepcopy(record)
        row["id"] = str(uuid.uuid4())
        row["created_at"] = row["placed_at"]
        self.rows[row["id"]] = row
        return Order.model_validate(row)

    def list_by_owner(self, owner_id: str) -> List[Order]:
        self._check()
        rows = [row for row in self.rows.values() if row["user_id"] == owner_id]
        rows.sort(key=lambda row: datetime.fromisoformat(row["placed_at"]), reverse=True)
        return [Order.model_validate(row) for row in rows]

    def get_by_id_for_owner(self, order_id: str, owner_id: str) -> Order:
        self._check()
        row = self.rows.get(order_id)
        if row is None or row["user_id"] != owner_id:
            raise OrderNotFound(order_id)
        return Order.model_validate(row)

    def update_status_for_owner(
        self,
        order_id: str,
        owner_id: str,
        *,
        tracking_steps,
        status_value,
        updated_at,
    ) -> Order:
        self._check()
        self.update_calls += 1
        row = self.rows.get(order_id)
        if row is None or row["user_id"] != owner_id:
            raise OrderNotFound(order_id)
        row.update(
            {
                "status": status_value,
                "tracking_steps": copy.deepcopy(tracking_steps),
                "updated_at": updated_at.isoformat(),
            }
        )
        return Order.model_validate(row)


def make_submission(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "restaurant_id": "r1",
        "restaurant_name": "Bistro",
        "items": [{"id": "i1", "name": "Soup", "price": 9.5, "quantity": 2}],
        "total": 19.0,
        "address": {
            "fullName": "A",
            "phoneNumber": "555",
            "addressLine1": "1 St",
            "city": "X",
            "state": "Y",
            "zipCode": "0",
            "deliveryInstructions": "",
        },
        "payment": {"method": "cod"},
        "userId": "u1",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def submission() -> Dict[str, Any]:
    return make_submission()


@pytest.fixture
def repository() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def service(repository) -> OrderService:
    return OrderService(repository)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_order_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
