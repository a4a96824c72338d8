"""
Order status state machine and tracking log.

Every status update appends exactly one tracking step; the log is never
truncated, reordered or deduplicated. Terminal statuses are reported but
not enforced, so an order can leave ``delivered`` or ``cancelled``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from config import settings
from errors import InvalidStatus
from schemas import Order, OrderCreate, OrderStatus, TrackingStep

logger = logging.getLogger("flavorverse")

VALID_STATUSES: List[str] = [status.value for status in OrderStatus]
INITIAL_STATUS = OrderStatus.CONFIRMED
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

ORDER_PLACED_STEP = "order_placed"
ORDER_PLACED_MESSAGE = "Order has been placed successfully"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as exc:
        raise InvalidStatus(value, VALID_STATUSES) from exc


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def default_status_message(status: OrderStatus) -> str:
    return f"Order status updated to {status.value}"


def initial_tracking_step(now: datetime) -> TrackingStep:
    return TrackingStep(step=ORDER_PLACED_STEP, timestamp=now, message=ORDER_PLACED_MESSAGE)


def build_order_record(draft: OrderCreate, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Row for a freshly placed order, ready for the store to assign an id."""
    now = now or _now()
    estimated = now + timedelta(minutes=settings.estimated_delivery_minutes)
    return {
        "user_id": draft.user_id,
        "restaurant_id": draft.restaurant_id,
        "restaurant_name": draft.restaurant_name,
        "items": [item.model_dump(mode="json", exclude_none=True) for item in draft.items],
        "total": draft.total,
        "address": draft.address.model_dump(mode="json", exclude_none=True),
        "payment": draft.payment.model_dump(mode="json", exclude_none=True),
        "status": INITIAL_STATUS.value,
        "placed_at": now.isoformat(),
        "estimated_delivery": estimated.isoformat(),
        "tracking_steps": [initial_tracking_step(now).model_dump(mode="json")],
    }


def advance(
    order: Order,
    requested_status: Any,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Return a copy of ``order`` moved to ``requested_status``.

    Raises InvalidStatus for unknown labels, leaving ``order`` untouched.
    Repeating the current status still appends a step.
    """
    status = parse_status(requested_status)
    now = now or _now()
    if is_terminal(order.status) and status != order.status:
        logger.warning(
            "Order %s leaving terminal status %s -> %s",
            order.id,
            order.status.value,
            status.value,
        )
    step = TrackingStep(
        step=status.value,
        timestamp=now,
        message=message or default_status_message(status),
    )
    return order.model_copy(
        update={
            "status": status,
            "tracking_steps": [*order.tracking_steps, step],
            "updated_at": now,
        }
    )
