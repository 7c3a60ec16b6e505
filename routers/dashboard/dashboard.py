from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db, DEFAULT_TRUST_SCORE
from models import Order, Product, GroupBuying, VendorInventoryItem
from routers.auth.auth import get_optional_current_user
from routers.orders.schemas import OrderResponse
from utils.response_helpers import safe_model_validate_list
from .helpers import start_of_month, compute_vendor_stats, compute_supplier_stats
from .schemas import VendorStatsResponse, SupplierStatsResponse
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def profile_with_role(current_user: Optional[dict], role: str):
    if current_user is None:
        return None
    profile = current_user.get("profile")
    if profile is None or profile.role != role:
        return None
    return profile


@router.get("/vendor", response_model=Optional[VendorStatsResponse])
async def get_vendor_stats(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Spend, inventory alerts and group buy counters for the current vendor"""
    profile = profile_with_role(current_user, "vendor")
    if profile is None:
        return None

    vendor_id = current_user["user_id"]

    try:
        orders_result = await db.execute(
            select(Order).where(Order.vendor_id == vendor_id)
        )
        orders = orders_result.scalars().all()

        inventory_result = await db.execute(
            select(VendorInventoryItem).where(VendorInventoryItem.vendor_id == vendor_id)
        )
        inventory = inventory_result.scalars().all()

        group_result = await db.execute(
            select(GroupBuying).where(GroupBuying.created_by == vendor_id)
        )
        group_buys = group_result.scalars().all()

        stats = compute_vendor_stats(
            orders,
            inventory,
            group_buys,
            trust_score=profile.trust_score or DEFAULT_TRUST_SCORE,
            month_start=start_of_month()
        )
        stats["recent_orders"] = safe_model_validate_list(OrderResponse, stats["recent_orders"])

        return VendorStatsResponse(**stats)

    except Exception as e:
        logger.error(f"Error computing vendor stats: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve dashboard stats"
        )


@router.get("/supplier", response_model=Optional[SupplierStatsResponse])
async def get_supplier_stats(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Order, revenue and catalog counters for the current supplier; revenue counts delivered orders only"""
    profile = profile_with_role(current_user, "supplier")
    if profile is None:
        return None

    supplier_id = current_user["user_id"]

    try:
        orders_result = await db.execute(
            select(Order).where(Order.supplier_id == supplier_id)
        )
        orders = orders_result.scalars().all()

        products_result = await db.execute(
            select(Product).where(Product.supplier_id == supplier_id)
        )
        products = products_result.scalars().all()

        stats = compute_supplier_stats(orders, products, month_start=start_of_month())
        stats["recent_orders"] = safe_model_validate_list(OrderResponse, stats["recent_orders"])

        return SupplierStatsResponse(**stats)

    except Exception as e:
        logger.error(f"Error computing supplier stats: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve dashboard stats"
        )
