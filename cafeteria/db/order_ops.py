"""
Cafeteria — Order placement and status transitions

Placement is one atomic unit:
  1. read every product the cart references
  2. check stock (lines naming the same product are summed)
  3. insert the order and its lines
  4. decrement stock; each UPDATE is guarded by the product's version_id
  5. commit

A version conflict means another checkout touched one of our products
between our read and write. The whole unit is rolled back and replayed from
the read, so the loser of a race re-checks against the winner's stock.
Events are published only after the commit; a failed publish is logged and
never undoes the order.
"""
import logging
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cafeteria.core.broadcast import NEW_ORDER, ORDER_STATUS_UPDATED
from cafeteria.core.errors import (
    CafeteriaError,
    InsufficientStock,
    OrderNotFound,
    ProductNotFound,
    StorageFailure,
    ValidationFailure,
    money,
)
from cafeteria.core.metrics import (
    broadcast_failures_total,
    order_status_changes_total,
    orders_placed_total,
    orders_rejected_total,
)
from cafeteria.core.optimistic_lock import with_optimistic_retry
from cafeteria.models.order import Order, OrderItem, OrderStatus, utcnow
from cafeteria.models.product import Product
from cafeteria.schemas.order import OrderItemRequest, PlacedOrder, PlacedOrderItem

logger = logging.getLogger(__name__)


def validate_order(customer_name: str, items: Sequence[OrderItemRequest], declared_total: Decimal):
    if not customer_name or not customer_name.strip():
        raise ValidationFailure("Customer name is required.")
    if not items:
        raise ValidationFailure("An order needs at least one item.")
    for item in items:
        if item.quantity <= 0:
            raise ValidationFailure(f"Quantity for product {item.product_id} must be positive.")
        if item.unit_price < 0:
            raise ValidationFailure(f"Unit price for product {item.product_id} must not be negative.")
    if declared_total < 0:
        raise ValidationFailure("Order total must not be negative.")


def requested_quantities(items: Iterable[OrderItemRequest]) -> dict[int, int]:
    """Total quantity per product, in first-seen order."""
    totals: dict[int, int] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


@with_optimistic_retry()
async def commit_order(
    db: AsyncSession,
    customer_name: str,
    items: Sequence[OrderItemRequest],
    declared_total: Decimal,
) -> PlacedOrder:
    """Run steps 1-5 in a single transaction. Retried on version conflicts."""
    requested = requested_quantities(items)

    async with db.begin():
        result = await db.execute(
            select(Product).where(Product.id.in_(list(requested))).order_by(Product.id)
        )
        products = {p.id: p for p in result.scalars()}

        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if product.stock_quantity < quantity:
                raise InsufficientStock(product_id, quantity, product.stock_quantity)

        order = Order(
            customer_name=customer_name,
            total_amount=money(declared_total),
            status=OrderStatus.PENDING,
            created_at=utcnow(),
            items=[
                OrderItem(product_id=i.product_id, quantity=i.quantity, unit_price=money(i.unit_price))
                for i in items
            ],
        )
        db.add(order)

        for product_id, quantity in requested.items():
            products[product_id].stock_quantity -= quantity

        # Raises StaleDataError if any guarded UPDATE matched no row
        await db.flush()

        placed = PlacedOrder(
            id=order.id,
            customer_name=order.customer_name,
            items=[
                PlacedOrderItem(
                    product_id=i.product_id,
                    name=products[i.product_id].name,
                    quantity=i.quantity,
                    unit_price=money(i.unit_price),
                )
                for i in items
            ],
            total_amount=order.total_amount,
            status=order.status,
            created_at=order.created_at,
        )

    return placed


async def publish_event(broadcaster, event: str, data: dict) -> None:
    """Post-commit side effect. Failures must not affect the committed change."""
    try:
        await broadcaster.publish(event, data)
    except Exception as exc:
        broadcast_failures_total.labels(event=event).inc()
        logger.warning("Failed to publish %s event: %s", event, exc)


async def place_order(
    db: AsyncSession,
    broadcaster,
    customer_name: str,
    items: Sequence[OrderItemRequest],
    declared_total: Decimal,
) -> PlacedOrder:
    """
    Validate and commit a checkout, then announce it to every connected viewer.

    Raises ValidationFailure, ProductNotFound or InsufficientStock for cart
    problems and StorageFailure for infrastructure problems. In every error
    case nothing was written.
    """
    try:
        validate_order(customer_name, items, declared_total)
        placed = await commit_order(db, customer_name, items, declared_total)
    except CafeteriaError as exc:
        orders_rejected_total.labels(reason=exc.code).inc()
        logger.info("Checkout rejected (%s): %s", exc.code, exc.message)
        raise
    except StaleDataError as exc:
        orders_rejected_total.labels(reason=StorageFailure.code).inc()
        raise StorageFailure("Stock changed concurrently too many times. Please retry.") from exc
    except (SQLAlchemyError, OSError) as exc:
        orders_rejected_total.labels(reason=StorageFailure.code).inc()
        logger.exception("Storage failure while placing order for %s", customer_name)
        raise StorageFailure("Order could not be stored. Please retry.") from exc

    # Total is trusted as declared by the till
    line_total = money(sum((i.unit_price * i.quantity for i in items), Decimal("0")))
    if line_total != placed.total_amount:
        logger.warning(
            "Order %d declared total %s differs from line total %s",
            placed.id, placed.total_amount, line_total,
        )

    orders_placed_total.inc()
    logger.info("Order %d placed for %s (%d lines)", placed.id, placed.customer_name, len(placed.items))

    await publish_event(broadcaster, NEW_ORDER, placed.model_dump(mode="json"))
    return placed


async def set_order_status(db: AsyncSession, broadcaster, order_id: int, status: OrderStatus | str) -> OrderStatus:
    """
    Write the new status unconditionally. Any status may follow any other;
    the kitchen board decides the sequence.
    """
    try:
        status = OrderStatus(status)
    except ValueError:
        raise ValidationFailure(f"Unknown order status '{status}'.") from None

    try:
        async with db.begin():
            result = await db.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(status=status)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise OrderNotFound(order_id)
    except (SQLAlchemyError, OSError) as exc:
        logger.exception("Storage failure while updating order %s", order_id)
        raise StorageFailure("Order status could not be stored. Please retry.") from exc

    order_status_changes_total.labels(status=status.value).inc()
    logger.info("Order %d -> %s", order_id, status.value)

    await publish_event(broadcaster, ORDER_STATUS_UPDATED, {"id": order_id, "status": status.value})
    return status
