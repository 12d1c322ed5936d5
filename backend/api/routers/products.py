"""
Products Router — read-only catalog endpoint consumed by the dashboard.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from db.models import Product

router = APIRouter(prefix="/api/products", tags=["products"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ProductResponse(BaseModel):
    id: int
    name: str
    current_inventory: int
    avg_sales: int
    lead_time: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=list[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)):
    """Return the whole catalog in id order. No paging, filtering or auth."""
    result = await db.execute(select(Product).order_by(Product.id))
    return result.scalars().all()
