"""
Cafeteria — Revenue report (admin dashboard)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cafeteria.db.database import get_db
from cafeteria.db.order_queries import build_report
from cafeteria.schemas.order import ReportResponse

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("", response_model=ReportResponse)
async def get_report(db: AsyncSession = Depends(get_db)):
    """Revenue and count of completed orders with the most recent ones."""
    return await build_report(db)
