"""
Batch lookups for read-side joins

Listings collect the ids they reference and resolve them with one IN query per
table instead of one query per row.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import Profile, Product, GroupBuying
from typing import Dict, Iterable
from datetime import datetime, timezone
import uuid

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_SUPPLIER = "Unknown Supplier"
UNKNOWN_VENDOR = "Unknown Vendor"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(value: datetime) -> datetime:
    """Treat naive timestamps read back from the store as UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_utc(value: datetime) -> datetime:
    """Normalize client-supplied timestamps before they are stored or compared"""
    return as_aware(value).astimezone(timezone.utc)


async def fetch_profiles_by_user_ids(db: AsyncSession, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Profile]:
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}

    result = await db.execute(select(Profile).where(Profile.user_id.in_(ids)))
    return {profile.user_id: profile for profile in result.scalars().all()}


async def fetch_products_by_ids(db: AsyncSession, product_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Product]:
    ids = {product_id for product_id in product_ids if product_id is not None}
    if not ids:
        return {}

    result = await db.execute(select(Product).where(Product.id.in_(ids)))
    return {product.id: product for product in result.scalars().all()}


async def fetch_group_buys_by_ids(db: AsyncSession, group_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, GroupBuying]:
    ids = {group_id for group_id in group_ids if group_id is not None}
    if not ids:
        return {}

    result = await db.execute(select(GroupBuying).where(GroupBuying.id.in_(ids)))
    return {group_buy.id: group_buy for group_buy in result.scalars().all()}


def business_name_or(profile, placeholder: str) -> str:
    if profile is None or not profile.business_name:
        return placeholder
    return profile.business_name
