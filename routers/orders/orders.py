from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db, ENFORCE_ORDER_TRANSITIONS
from models import Order, Product, GroupBuying
from routers.auth.auth import get_current_user, get_optional_current_user
from dependencies.rbac import require_order_write, require_order_status_write
from utils.response_helpers import safe_model_validate
from utils.lookups import (
    fetch_profiles_by_user_ids, fetch_products_by_ids, business_name_or, utc_now,
    UNKNOWN_PRODUCT, UNKNOWN_SUPPLIER, UNKNOWN_VENDOR
)
from .schemas import (
    OrderCreate, OrderStatus, OrderStatusUpdate, OrderResponse,
    VendorOrderResponse, SupplierOrderResponse
)
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

# The flow the UI drives; only checked when ENFORCE_ORDER_TRANSITIONS is on
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def is_transition_allowed(current: OrderStatus, new: OrderStatus, enforce: bool) -> bool:
    if not enforce:
        return True
    return new in ALLOWED_TRANSITIONS[current]


def calculate_order_total(unit_price: float, quantity: float) -> float:
    return unit_price * quantity


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_order_write)
):
    """
    Place an order at the product's current price, or at a group buy's
    discounted price when group_buying_id resolves to an existing group buy
    """
    try:
        product_result = await db.execute(
            select(Product).where(Product.id == order_data.product_id)
        )
        product = product_result.scalar_one_or_none()
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )

        unit_price = product.price
        group_buying_id = None

        if order_data.group_buying_id:
            group_result = await db.execute(
                select(GroupBuying).where(GroupBuying.id == order_data.group_buying_id)
            )
            group_buy = group_result.scalar_one_or_none()
            # Capacity, status and product match are not checked here
            if group_buy:
                unit_price = group_buy.discounted_price
                group_buying_id = group_buy.id
            else:
                logger.info(f"Group buy {order_data.group_buying_id} not found, ordering at list price")

        order = Order(
            vendor_id=current_user["user_id"],
            supplier_id=product.supplier_id,
            product_id=product.id,
            quantity=order_data.quantity,
            unit_price=unit_price,
            total_amount=calculate_order_total(unit_price, order_data.quantity),
            status=OrderStatus.PENDING.value,
            order_date=utc_now(),
            group_buying_id=group_buying_id
        )

        db.add(order)
        await db.commit()
        await db.refresh(order)

        return safe_model_validate(OrderResponse, order)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating order: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order"
        )


@router.get("/vendor", response_model=List[VendorOrderResponse])
async def get_vendor_orders(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Orders placed by the current vendor, newest first"""
    if current_user is None:
        return []

    try:
        result = await db.execute(
            select(Order)
            .where(Order.vendor_id == current_user["user_id"])
            .order_by(Order.order_date.desc())
        )
        orders = result.scalars().all()

        products = await fetch_products_by_ids(db, (order.product_id for order in orders))
        suppliers = await fetch_profiles_by_user_ids(db, (order.supplier_id for order in orders))

        orders_with_details = []
        for order in orders:
            order_dict = safe_model_validate(OrderResponse, order).model_dump()
            product = products.get(order.product_id)
            order_dict["product_name"] = product.name if product else UNKNOWN_PRODUCT
            order_dict["product_unit"] = product.unit if product else ""
            order_dict["supplier_name"] = business_name_or(suppliers.get(order.supplier_id), UNKNOWN_SUPPLIER)
            orders_with_details.append(VendorOrderResponse.model_validate(order_dict))

        return orders_with_details

    except Exception as e:
        logger.error(f"Error getting vendor orders: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve orders"
        )


@router.get("/supplier", response_model=List[SupplierOrderResponse])
async def get_supplier_orders(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Orders received by the current supplier, newest first"""
    if current_user is None:
        return []

    try:
        result = await db.execute(
            select(Order)
            .where(Order.supplier_id == current_user["user_id"])
            .order_by(Order.order_date.desc())
        )
        orders = result.scalars().all()

        products = await fetch_products_by_ids(db, (order.product_id for order in orders))
        vendors = await fetch_profiles_by_user_ids(db, (order.vendor_id for order in orders))

        orders_with_details = []
        for order in orders:
            order_dict = safe_model_validate(OrderResponse, order).model_dump()
            product = products.get(order.product_id)
            order_dict["product_name"] = product.name if product else UNKNOWN_PRODUCT
            order_dict["product_unit"] = product.unit if product else ""
            order_dict["vendor_name"] = business_name_or(vendors.get(order.vendor_id), UNKNOWN_VENDOR)
            orders_with_details.append(SupplierOrderResponse.model_validate(order_dict))

        return orders_with_details

    except Exception as e:
        logger.error(f"Error getting supplier orders: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve orders"
        )


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_update: OrderStatusUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_order_status_write)
):
    """Set an order's status (supplier of the order only)"""
    try:
        result = await db.execute(
            select(Order).where(Order.id == order_id)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found"
            )

        if order.supplier_id != current_user["user_id"]:
            logger.warning(f"User {current_user['user_id']} tried to update order {order_id} they do not supply")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the order's supplier can update its status"
            )

        current_status = OrderStatus(order.status)
        new_status = status_update.status
        if not is_transition_allowed(current_status, new_status, ENFORCE_ORDER_TRANSITIONS):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change order status from {current_status.value} to {new_status.value}"
            )

        order.status = new_status.value
        order.delivery_date = utc_now() if new_status == OrderStatus.DELIVERED else None

        await db.commit()
        await db.refresh(order)

        logger.info(f"Order {order_id} moved from {current_status.value} to {new_status.value}")
        return safe_model_validate(OrderResponse, order)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating order status: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order status"
        )
