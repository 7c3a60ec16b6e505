from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from config import get_db
from models import Product
from routers.auth.auth import get_current_user, get_optional_current_user
from dependencies.rbac import require_product_write, require_product_delete
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from utils.lookups import fetch_profiles_by_user_ids, UNKNOWN_SUPPLIER
from routers.products.schemas import (
    ProductCreate, ProductUpdate, ProductResponse, CatalogProductResponse, ProductDeleteResponse
)
from typing import Optional, List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


async def get_owned_product(db: AsyncSession, product_id: uuid.UUID, current_user: dict) -> Product:
    """Load a product and make sure the caller is the supplier who owns it"""
    result = await db.execute(
        select(Product).where(Product.id == product_id)
    )
    product = result.scalar_one_or_none()

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    if product.supplier_id != current_user["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own products"
        )

    return product


# =================
# CATALOG ROUTES (PUBLIC)
# =================

@router.get("/", response_model=List[CatalogProductResponse])
async def get_all_active_products(
    category: Optional[str] = Query(None, description="Exact category, case-insensitive"),
    search: Optional[str] = Query(None, description="Matches product name or description"),
    db: AsyncSession = Depends(get_db)
):
    """Get all active products with their supplier's business name and city"""
    try:
        query = select(Product).where(Product.is_active == True)

        if category and category.lower() != "all":
            query = query.where(func.lower(Product.category) == category.lower())

        if search:
            query = query.where(
                or_(
                    Product.name.icontains(search, autoescape=True),
                    Product.description.icontains(search, autoescape=True)
                )
            )

        result = await db.execute(query.order_by(Product.created_at.desc()))
        products = result.scalars().all()

        suppliers = await fetch_profiles_by_user_ids(db, (product.supplier_id for product in products))

        catalog = []
        for product in products:
            product_dict = safe_model_validate(ProductResponse, product).model_dump()
            supplier = suppliers.get(product.supplier_id)
            product_dict["supplier_name"] = supplier.business_name if supplier else UNKNOWN_SUPPLIER
            product_dict["supplier_city"] = supplier.city if supplier else ""
            catalog.append(CatalogProductResponse.model_validate(product_dict))

        return catalog

    except Exception as e:
        logger.error(f"Error getting active products: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get products"
        )


@router.get("/categories", response_model=List[str])
async def get_active_categories(
    db: AsyncSession = Depends(get_db)
):
    """Distinct categories among active products, for catalog filtering"""
    try:
        result = await db.execute(
            select(func.lower(Product.category))
            .where(Product.is_active == True)
            .distinct()
            .order_by(func.lower(Product.category))
        )
        return list(result.scalars().all())

    except Exception as e:
        logger.error(f"Error getting categories: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get categories"
        )


# =================
# SUPPLIER ROUTES
# =================

@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_product_write)
):
    """Create a new product (suppliers only)"""
    try:
        product = Product(
            supplier_id=current_user["user_id"],
            is_active=True,
            **product_data.model_dump()
        )

        db.add(product)
        await db.commit()
        await db.refresh(product)

        return safe_model_validate(ProductResponse, product)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating product: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product"
        )


@router.get("/my-products", response_model=List[ProductResponse])
async def get_supplier_products(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current supplier's products, active or not"""
    if current_user is None:
        return []

    try:
        result = await db.execute(
            select(Product)
            .where(Product.supplier_id == current_user["user_id"])
            .order_by(Product.created_at.desc())
        )
        return safe_model_validate_list(ProductResponse, result.scalars().all())

    except Exception as e:
        logger.error(f"Error getting supplier products: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get products"
        )


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_update: ProductUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update product (only by owner supplier)"""
    try:
        product = await get_owned_product(db, product_id, current_user)

        update_data = product_update.model_dump(exclude_unset=True, exclude_none=True)

        min_quantity = update_data.get("min_order_quantity", product.min_order_quantity)
        max_quantity = update_data.get("max_order_quantity", product.max_order_quantity)
        if max_quantity is not None and min_quantity > max_quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="min_order_quantity cannot be greater than max_order_quantity"
            )

        for field, value in update_data.items():
            setattr(product, field, value)

        await db.commit()
        await db.refresh(product)

        return safe_model_validate(ProductResponse, product)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating product: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product"
        )


@router.delete("/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_product_delete)
):
    """Delete product (only by owner supplier)"""
    try:
        product = await get_owned_product(db, product_id, current_user)

        await db.delete(product)
        await db.commit()

        logger.info(f"Deleted product {product_id}")
        return ProductDeleteResponse(
            message="Product deleted successfully",
            product_id=str(product_id)
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting product: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product"
        )
