import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from config import settings
from errors import OrderNotFound, PersistenceError
from schemas import Order

logger = logging.getLogger("flavorverse")

# Postgres "invalid input syntax", e.g. a malformed uuid in the id filter.
INVALID_TEXT_REPRESENTATION = "22P02"

STORE_ERRORS = (APIError, httpx.HTTPError)


class OrderRepository(Protocol):
    def create(self, record: Dict[str, Any]) -> Order: ...

    def list_by_owner(self, owner_id: str) -> List[Order]: ...

    def get_by_id_for_owner(self, order_id: str, owner_id: str) -> Order: ...

    def update_status_for_owner(
        self,
        order_id: str,
        owner_id: str,
        *,
        tracking_steps: List[Dict[str, Any]],
        status_value: str,
        updated_at: datetime,
    ) -> Order: ...


def _store_message(exc: Exception) -> str:
    if isinstance(exc, APIError):
        return exc.message or str(exc)
    return str(exc)


class SupabaseOrderRepository:
    def __init__(self, client: Client, table_name: Optional[str] = None) -> None:
        self._client = client
        self._table_name = table_name or settings.orders_table

    def _table(self):
        return self._client.table(self._table_name)

    def create(self, record: Dict[str, Any]) -> Order:
        try:
            response = self._table().insert(record).execute()
        except STORE_ERRORS as exc:
            raise PersistenceError(_store_message(exc)) from exc
        if not response.data:
            raise PersistenceError("Insert returned no rows")
        return Order.model_validate(response.data[0])

    def list_by_owner(self, owner_id: str) -> List[Order]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("user_id", owner_id)
                .order("placed_at", desc=True)
                .execute()
            )
        except STORE_ERRORS as exc:
            raise PersistenceError(_store_message(exc)) from exc
        return [Order.model_validate(row) for row in response.data or []]

    def get_by_id_for_owner(self, order_id: str, owner_id: str) -> Order:
        try:
            response = (
                self._table()
                .select("*")
                .eq("id", order_id)
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )
        except APIError as exc:
            if exc.code == INVALID_TEXT_REPRESENTATION:
                raise OrderNotFound(order_id) from exc
            raise PersistenceError(_store_message(exc)) from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(_store_message(exc)) from exc
        items = response.data or []
        if not items:
            raise OrderNotFound(order_id)
        return Order.model_validate(items[0])

    def update_status_for_owner(
        self,
        order_id: str,
        owner_id: str,
        *,
        tracking_steps: List[Dict[str, Any]],
        status_value: str,
        updated_at: datetime,
    ) -> Order:
        # No version precondition: concurrent updates to one order can drop a step.
        payload = {
            "status": status_value,
            "tracking_steps": tracking_steps,
            "updated_at": updated_at.isoformat(),
        }
        try:
            response = (
                self._table()
                .update(payload)
                .eq("id", order_id)
                .eq("user_id", owner_id)
                .execute()
            )
        except STORE_ERRORS as exc:
            raise PersistenceError(_store_message(exc)) from exc
        items = response.data or []
        if not items:
            raise OrderNotFound(order_id)
        return Order.model_validate(items[0])
