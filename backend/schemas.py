from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CARD = "card"
    UPI = "upi"
    CASH_ON_DELIVERY = "cod"


def _reject_bool(value: Any) -> Any:
    # JSON true/false would otherwise be read as 1/0.
    if isinstance(value, bool):
        raise ValueError("must be a number")
    return value


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0, allow_inf_nan=False)
    quantity: int = Field(..., gt=0)
    image: Optional[str] = None
    restaurantId: Optional[str] = None
    restaurantName: Optional[str] = None

    @field_validator("image")
    @classmethod
    def _image_is_uri(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = urlparse(value)
        if not parsed.scheme or not (parsed.netloc or parsed.path):
            raise ValueError("must be a valid uri")
        return value

    @field_validator("price", "quantity", mode="before")
    @classmethod
    def _numbers_not_bool(cls, value: Any) -> Any:
        return _reject_bool(value)


class DeliveryAddress(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fullName: str = Field(..., min_length=1)
    phoneNumber: str = Field(..., min_length=1)
    addressLine1: str = Field(..., min_length=1)
    addressLine2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zipCode: str = Field(..., min_length=1)
    deliveryInstructions: Optional[str] = None


class PaymentInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    method: PaymentMethod
    cardNumber: Optional[str] = None
    nameOnCard: Optional[str] = None
    upiId: Optional[str] = None


class OrderCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    restaurant_id: str = Field(..., min_length=1)
    restaurant_name: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(..., min_length=1)
    total: float = Field(..., gt=0, allow_inf_nan=False)
    address: DeliveryAddress
    payment: PaymentInfo
    user_id: str = Field(..., alias="userId", min_length=1)

    @field_validator("total", mode="before")
    @classmethod
    def _total_not_bool(cls, value: Any) -> Any:
        return _reject_bool(value)


class TrackingStep(BaseModel):
    model_config = ConfigDict(extra="allow")

    step: str
    timestamp: datetime
    message: str

    @field_serializer("timestamp")
    def _timestamp_as_iso(self, value: datetime) -> str:
        return value.isoformat()


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    user_id: str
    restaurant_id: str
    restaurant_name: str
    items: List[OrderItem]
    total: float
    address: DeliveryAddress
    payment: PaymentInfo
    status: OrderStatus
    placed_at: datetime
    estimated_delivery: Optional[datetime] = None
    tracking_steps: List[TrackingStep] = []
    updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    status: Optional[str] = Field(default=None, description="Target lifecycle status")
    message: Optional[str] = Field(
        default=None, description="Tracking message, defaults to a generic one"
    )


class OrderListResponse(BaseModel):
    success: bool = True
    orders: List[Order]
    count: int


class OrderResponse(BaseModel):
    success: bool = True
    order: Order


class OrderMutationResponse(BaseModel):
    success: bool = True
    order: Order
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: datetime
    uptime: float
    environment: str
    version: str


class DetailedHealthResponse(BaseModel):
    status: str
    timestamp: datetime
    uptime: float
    environment: Dict[str, str]
    services: Dict[str, str]


class WelcomeResponse(BaseModel):
    message: str
    version: str
    status: str
    timestamp: datetime
    endpoints: Dict[str, str]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
