"""
Cafeteria — Order schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, Field

from cafeteria.models.order import OrderStatus


class OrderItemRequest(BaseModel):
    # "id"/"price" are what the cart builder historically sends
    product_id: int = Field(..., ge=1, validation_alias=AliasChoices("product_id", "id"))
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(
        ..., ge=0, max_digits=10, decimal_places=2,
        validation_alias=AliasChoices("unit_price", "price"),
    )


class OrderRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255, examples=["Walk-in"])
    items: list[OrderItemRequest] = Field(..., min_length=1)
    total_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class OrderCreatedResponse(BaseModel):
    message: str = "Order placed!"
    order_id: int


class PlacedOrderItem(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal


class PlacedOrder(BaseModel):
    """Payload of the new_order event."""
    id: int
    customer_name: str
    items: list[PlacedOrderItem]
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class StatusUpdateResponse(BaseModel):
    message: str = "Status updated"
    id: int
    status: OrderStatus


class ActiveOrderItem(BaseModel):
    name: str
    quantity: int


class ActiveOrder(BaseModel):
    id: int
    customer_name: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    items: list[ActiveOrderItem]


class OrderHistoryEntry(BaseModel):
    id: int
    customer_name: str
    total_amount: Decimal
    created_at: datetime
    items_summary: str


class OrderSummary(BaseModel):
    id: int
    customer_name: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class ReportResponse(BaseModel):
    revenue: Decimal
    total_orders: int
    recent_history: list[OrderSummary]
