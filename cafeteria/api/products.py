"""
Cafeteria — Product catalog API (writes are admin-only, see JWTAuthMiddleware)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafeteria.api.errors import to_http
from cafeteria.core.errors import CafeteriaError
from cafeteria.db.catalog_ops import create_product, delete_product, list_products, update_product
from cafeteria.db.database import get_db
from cafeteria.schemas.product import ProductCreate, ProductResponse, ProductUpdate

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=list[ProductResponse])
async def get_products(db: AsyncSession = Depends(get_db)):
    return await list_products(db)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def add_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await create_product(db, payload)
    except CafeteriaError as exc:
        raise to_http(exc)


@router.put("/{product_id}", response_model=ProductResponse)
async def edit_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await update_product(db, product_id, payload)
    except CafeteriaError as exc:
        raise to_http(exc)


@router.delete("/{product_id}", status_code=status.HTTP_200_OK)
async def remove_product(product_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await delete_product(db, product_id)
    except CafeteriaError as exc:
        raise to_http(exc)
    return {"message": "Product deleted!", "id": product_id}
