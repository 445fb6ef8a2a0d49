"""
Cafeteria — Read side: kitchen board, history and revenue report
"""
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cafeteria.core.config import get_settings
from cafeteria.core.errors import money
from cafeteria.models.order import Order, OrderItem, OrderStatus
from cafeteria.models.product import Product
from cafeteria.schemas.order import (
    ActiveOrder,
    ActiveOrderItem,
    OrderHistoryEntry,
    OrderSummary,
    ReportResponse,
)

settings = get_settings()


def summarize_items(lines: list[tuple[int, str]]) -> str:
    """[(2, "Coffee"), (1, "Bagel")] -> "2x Coffee, 1x Bagel"."""
    return ", ".join(f"{quantity}x {name}" for quantity, name in lines)


async def list_active_orders(db: AsyncSession) -> list[ActiveOrder]:
    """Orders not yet completed, newest first, with their item names."""
    result = await db.execute(
        select(
            Order.id,
            Order.customer_name,
            Order.total_amount,
            Order.status,
            Order.created_at,
            Product.name,
            OrderItem.quantity,
        )
        .join(OrderItem, OrderItem.order_id == Order.id)
        .join(Product, Product.id == OrderItem.product_id)
        .where(Order.status != OrderStatus.COMPLETED)
        .order_by(Order.created_at.desc(), Order.id.desc(), OrderItem.id)
    )

    # One row per line; fold them back into orders
    orders: dict[int, ActiveOrder] = {}
    for row in result.all():
        order = orders.get(row.id)
        if order is None:
            order = orders[row.id] = ActiveOrder(
                id=row.id,
                customer_name=row.customer_name,
                total_amount=row.total_amount,
                status=row.status,
                created_at=row.created_at,
                items=[],
            )
        order.items.append(ActiveOrderItem(name=row.name, quantity=row.quantity))
    return list(orders.values())


async def _completed_orders(db: AsyncSession, limit: int) -> list[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.status == OrderStatus.COMPLETED)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_order_history(db: AsyncSession, limit: int | None = None) -> list[OrderHistoryEntry]:
    """Most recent completed orders with a one-line item summary."""
    orders = await _completed_orders(db, limit or settings.HISTORY_LIMIT)
    if not orders:
        return []

    result = await db.execute(
        select(OrderItem.order_id, OrderItem.quantity, Product.name)
        .join(Product, Product.id == OrderItem.product_id)
        .where(OrderItem.order_id.in_([o.id for o in orders]))
        .order_by(OrderItem.id)
    )
    lines: dict[int, list[tuple[int, str]]] = defaultdict(list)
    for order_id, quantity, name in result.all():
        lines[order_id].append((quantity, name))

    return [
        OrderHistoryEntry(
            id=o.id,
            customer_name=o.customer_name,
            total_amount=o.total_amount,
            created_at=o.created_at,
            items_summary=summarize_items(lines[o.id]),
        )
        for o in orders
    ]


async def build_report(db: AsyncSession) -> ReportResponse:
    """Revenue and order count over completed orders, plus the latest of them."""
    revenue, total_orders = (
        await db.execute(
            select(func.sum(Order.total_amount), func.count(Order.id))
            .where(Order.status == OrderStatus.COMPLETED)
        )
    ).one()

    recent = await _completed_orders(db, settings.REPORT_HISTORY_LIMIT)
    return ReportResponse(
        revenue=money(revenue if revenue is not None else Decimal("0")),
        total_orders=total_orders or 0,
        recent_history=[OrderSummary.model_validate(o) for o in recent],
    )
