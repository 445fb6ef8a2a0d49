"""
Cafeteria — Orders API

Flow for a checkout:
  1. Request validated by the OrderRequest schema (422 on malformed carts)
  2. Stock checked and decremented, order and lines stored, in one transaction
  3. new_order broadcast to kitchen and admin screens after commit
  4. 201 with the new order id
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafeteria.api.errors import to_http
from cafeteria.core.broadcast import get_broadcaster
from cafeteria.core.errors import CafeteriaError
from cafeteria.db.database import get_db
from cafeteria.db.order_ops import place_order, set_order_status
from cafeteria.db.order_queries import list_active_orders, list_order_history
from cafeteria.schemas.order import (
    ActiveOrder,
    OrderCreatedResponse,
    OrderHistoryEntry,
    OrderRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderRequest,
    db: AsyncSession = Depends(get_db),
    broadcaster=Depends(get_broadcaster),
):
    """Place an order. 409 when a product is short, 503 when storage failed."""
    try:
        placed = await place_order(
            db, broadcaster, payload.customer_name, payload.items, payload.total_amount
        )
    except CafeteriaError as exc:
        raise to_http(exc)
    return OrderCreatedResponse(order_id=placed.id)


@router.get("", response_model=list[ActiveOrder])
async def get_active_orders(db: AsyncSession = Depends(get_db)):
    """Kitchen board: every order that is not completed, newest first."""
    return await list_active_orders(db)


@router.get("/history", response_model=list[OrderHistoryEntry])
async def get_order_history(db: AsyncSession = Depends(get_db)):
    """Last completed orders with a "2x Coffee, 1x Bagel" summary."""
    return await list_order_history(db)


@router.put("/{order_id}", response_model=StatusUpdateResponse)
async def update_order_status(
    order_id: int,
    payload: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    broadcaster=Depends(get_broadcaster),
):
    """Move an order to another status (kitchen staff action)."""
    try:
        new_status = await set_order_status(db, broadcaster, order_id, payload.status)
    except CafeteriaError as exc:
        raise to_http(exc)
    return StatusUpdateResponse(id=order_id, status=new_status)
