"""
Cafeteria — Product catalog administration
"""
import logging

from sqlalchemy import exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cafeteria.core.errors import ProductInUse, ProductNotFound, StorageFailure
from cafeteria.core.optimistic_lock import with_optimistic_retry
from cafeteria.models.order import OrderItem
from cafeteria.models.product import Product
from cafeteria.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


async def list_products(db: AsyncSession) -> list[Product]:
    result = await db.execute(select(Product).order_by(Product.category, Product.name, Product.id))
    return list(result.scalars().all())


async def create_product(db: AsyncSession, payload: ProductCreate) -> Product:
    product = Product(**payload.model_dump())
    try:
        async with db.begin():
            db.add(product)
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while creating product %s", payload.name)
        raise StorageFailure("Product could not be stored. Please retry.") from exc
    logger.info("Product %d created: %s (stock %d)", product.id, product.name, product.stock_quantity)
    return product


@with_optimistic_retry()
async def _apply_product_update(db: AsyncSession, product_id: int, changes: dict) -> Product:
    async with db.begin():
        product = await db.get(Product, product_id, populate_existing=True)
        if product is None:
            raise ProductNotFound(product_id)
        for field, value in changes.items():
            setattr(product, field, value)
    return product


async def update_product(db: AsyncSession, product_id: int, payload: ProductUpdate) -> Product:
    """Partial update. Shares the version guard with checkouts, so a stock
    edit never silently overwrites a concurrent decrement."""
    changes = payload.model_dump(exclude_unset=True)
    try:
        product = await _apply_product_update(db, product_id, changes)
    except StaleDataError as exc:
        raise StorageFailure("Product changed concurrently. Please retry.") from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while updating product %s", product_id)
        raise StorageFailure("Product could not be updated. Please retry.") from exc
    logger.info("Product %d updated: %s", product_id, sorted(changes))
    return product


async def delete_product(db: AsyncSession, product_id: int) -> None:
    """Products referenced by historical order lines cannot be removed."""
    try:
        async with db.begin():
            product = await db.get(Product, product_id)
            if product is None:
                raise ProductNotFound(product_id)
            referenced = await db.scalar(select(exists().where(OrderItem.product_id == product_id)))
            if referenced:
                raise ProductInUse(product_id)
            await db.delete(product)
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while deleting product %s", product_id)
        raise StorageFailure("Product could not be deleted. Please retry.") from exc
    logger.info("Product %d deleted", product_id)
