import asyncio
import logging
from functools import lru_cache
from typing import Any, List, Optional

from config import settings
from errors import OrderValidationError, PersistenceError
from repositories.orders_repository import OrderRepository, SupabaseOrderRepository
from schemas import Order
from services.order_lifecycle import advance, build_order_record, parse_status
from services.order_validation import validate_order_submission, warn_on_total_mismatch
from supabase_client import get_supabase

logger = logging.getLogger("flavorverse")


class OrderService:
    def __init__(self, repository: OrderRepository) -> None:
        self._repository = repository

    async def _call_store(self, public_error: str, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except PersistenceError as exc:
            logger.error("%s: %s", public_error, exc.detail)
            exc.error = public_error
            exc.expose_detail = settings.debug
            raise

    async def list_orders(self, user_id: str) -> List[Order]:
        return await self._call_store(
            "Failed to fetch orders", self._repository.list_by_owner, user_id
        )

    async def place_order(self, payload: Any) -> Order:
        result = validate_order_submission(payload)
        if not result.ok:
            raise OrderValidationError(result.errors)
        draft = result.draft
        warn_on_total_mismatch(draft)
        record = build_order_record(draft)
        order = await self._call_store(
            "Failed to create order", self._repository.create, record
        )
        logger.info(
            "Order placed order=%s user=%s restaurant=%s total=%s",
            order.id,
            order.user_id,
            order.restaurant_id,
            order.total,
        )
        return order

    async def get_order(self, order_id: str, user_id: str) -> Order:
        return await self._call_store(
            "Failed to fetch order",
            self._repository.get_by_id_for_owner,
            order_id,
            user_id,
        )

    async def update_status(
        self,
        order_id: str,
        user_id: str,
        status_value: Any,
        message: Optional[str] = None,
    ) -> Order:
        # Reject unknown labels before touching the store.
        parse_status(status_value)
        current = await self.get_order(order_id, user_id)
        updated = advance(current, status_value, message)
        order = await self._call_store(
            "Failed to update order status",
            self._repository.update_status_for_owner,
            order_id,
            user_id,
            tracking_steps=[step.model_dump(mode="json") for step in updated.tracking_steps],
            status_value=updated.status.value,
            updated_at=updated.updated_at,
        )
        logger.info(
            "Order status updated order=%s user=%s status=%s steps=%s",
            order.id,
            user_id,
            order.status.value,
            len(order.tracking_steps),
        )
        return order


@lru_cache(maxsize=1)
def get_order_service() -> OrderService:
    return OrderService(SupabaseOrderRepository(get_supabase()))
