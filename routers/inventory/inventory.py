from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import VendorInventoryItem
from routers.auth.auth import get_current_user, get_optional_current_user
from dependencies.rbac import require_inventory_access
from utils.response_helpers import convert_uuids_to_strings
from utils.lookups import utc_now
from .schemas import InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def is_low_stock(item: VendorInventoryItem) -> bool:
    return item.current_stock <= item.min_stock_level


def item_to_response(item: VendorInventoryItem) -> InventoryItemResponse:
    item_dict = convert_uuids_to_strings(item)
    item_dict["is_low_stock"] = is_low_stock(item)
    return InventoryItemResponse.model_validate(item_dict)


async def get_owned_item(db: AsyncSession, item_id: uuid.UUID, current_user: dict) -> VendorInventoryItem:
    result = await db.execute(
        select(VendorInventoryItem).where(VendorInventoryItem.id == item_id)
    )
    item = result.scalar_one_or_none()

    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Inventory item not found"
        )

    if item.vendor_id != current_user["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own inventory"
        )

    return item


async def list_vendor_inventory(db: AsyncSession, vendor_id: uuid.UUID) -> List[VendorInventoryItem]:
    result = await db.execute(
        select(VendorInventoryItem)
        .where(VendorInventoryItem.vendor_id == vendor_id)
        .order_by(VendorInventoryItem.product_name)
    )
    return list(result.scalars().all())


@router.post("/", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    item_data: InventoryItemCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_inventory_access)
):
    """Track a new stock item for the current vendor"""
    try:
        item = VendorInventoryItem(
            vendor_id=current_user["user_id"],
            last_restocked=utc_now(),
            **item_data.model_dump()
        )

        db.add(item)
        await db.commit()
        await db.refresh(item)

        return item_to_response(item)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating inventory item: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create inventory item"
        )


@router.get("/", response_model=List[InventoryItemResponse])
async def get_my_inventory(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    if current_user is None:
        return []

    try:
        items = await list_vendor_inventory(db, current_user["user_id"])
        return [item_to_response(item) for item in items]

    except Exception as e:
        logger.error(f"Error getting inventory: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve inventory"
        )


@router.get("/low-stock", response_model=List[InventoryItemResponse])
async def get_low_stock_items(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Items at or below their minimum stock level"""
    if current_user is None:
        return []

    try:
        items = await list_vendor_inventory(db, current_user["user_id"])
        return [item_to_response(item) for item in items if is_low_stock(item)]

    except Exception as e:
        logger.error(f"Error getting low stock items: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve inventory"
        )


@router.put("/{item_id}", response_model=InventoryItemResponse)
async def update_inventory_item(
    item_id: uuid.UUID,
    item_update: InventoryItemUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_inventory_access)
):
    try:
        item = await get_owned_item(db, item_id, current_user)

        update_data = item_update.model_dump(exclude_unset=True, exclude_none=True)

        # A stock increase counts as a restock
        new_stock = update_data.get("current_stock")
        if new_stock is not None and new_stock > item.current_stock:
            item.last_restocked = utc_now()

        for field, value in update_data.items():
            setattr(item, field, value)

        await db.commit()
        await db.refresh(item)

        return item_to_response(item)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating inventory item: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update inventory item"
        )


@router.delete("/{item_id}")
async def delete_inventory_item(
    item_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_inventory_access)
):
    try:
        item = await get_owned_item(db, item_id, current_user)

        await db.delete(item)
        await db.commit()

        return {"message": "Inventory item deleted successfully", "item_id": str(item_id)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting inventory item: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete inventory item"
        )
