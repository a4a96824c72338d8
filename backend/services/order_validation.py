"""
Order submission validation.
Malformed input is an expected outcome: callers get every failure at once.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from schemas import OrderCreate

logger = logging.getLogger("flavorverse")

TOTAL_TOLERANCE = 0.01


@dataclass
class ValidationResult:
    draft: Optional[OrderCreate] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.draft is not None and not self.errors


def _format_location(loc: tuple) -> str:
    parts = [str(part) for part in loc]
    return ".".join(parts) if parts else "body"


def format_error(error: Dict[str, Any]) -> str:
    message = error.get("msg", "is invalid")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f'"{_format_location(error.get("loc", ()))}" {message}'


def validate_order_submission(raw: Any) -> ValidationResult:
    try:
        draft = OrderCreate.model_validate(raw)
    except ValidationError as exc:
        return ValidationResult(errors=[format_error(err) for err in exc.errors()])
    return ValidationResult(draft=draft)


def line_items_subtotal(draft: OrderCreate) -> float:
    return round(sum(item.price * item.quantity for item in draft.items), 2)


def warn_on_total_mismatch(draft: OrderCreate) -> None:
    # The client total is stored as given; mismatches are only reported.
    subtotal = line_items_subtotal(draft)
    if abs(subtotal - draft.total) > TOTAL_TOLERANCE:
        logger.warning(
            "Order total differs from line items user=%s total=%s items_subtotal=%s",
            draft.user_id,
            draft.total,
            subtotal,
        )
