from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, status

from auth import ensure_token_owner, get_request_user_id, require_bearer_token
from errors import BadRequest
from schemas import (
    ErrorResponse,
    OrderListResponse,
    OrderMutationResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from services.orders_service import OrderService, get_order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("", response_model=OrderListResponse, responses=ERROR_RESPONSES)
@router.get("/", response_model=OrderListResponse, include_in_schema=False)
async def list_orders(
    user_id: str = Depends(get_request_user_id),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders = await service.list_orders(user_id)
    return OrderListResponse(orders=orders, count=len(orders))


@router.post(
    "",
    response_model=OrderMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
@router.post(
    "/",
    response_model=OrderMutationResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_order(
    payload: Any = Body(default=None),
    access_token: str = Depends(require_bearer_token),
    service: OrderService = Depends(get_order_service),
) -> OrderMutationResponse:
    claimed_user = payload.get("userId") if isinstance(payload, dict) else None
    if isinstance(claimed_user, str) and claimed_user:
        await ensure_token_owner(access_token, claimed_user)
    order = await service.place_order(payload)
    return OrderMutationResponse(order=order, message="Order created successfully")


@router.get("/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def read_order(
    order_id: str,
    user_id: str = Depends(get_request_user_id),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.get_order(order_id, user_id)
    return OrderResponse(order=order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderMutationResponse,
    responses=ERROR_RESPONSES,
)
async def update_order_status(
    order_id: str,
    payload: Optional[OrderStatusUpdate] = None,
    user_id: str = Depends(get_request_user_id),
    service: OrderService = Depends(get_order_service),
) -> OrderMutationResponse:
    if payload is None or not payload.status:
        raise BadRequest("Status is required")
    order = await service.update_status(order_id, user_id, payload.status, payload.message)
    return OrderMutationResponse(order=order, message="Order status updated successfully")
