from sqlalchemy.ext.asyncio import AsyncSession
from models import GroupBuying
from utils.response_helpers import group_buy_to_dict
from utils.lookups import (
    fetch_products_by_ids, fetch_profiles_by_user_ids, business_name_or,
    UNKNOWN_PRODUCT, UNKNOWN_SUPPLIER
)
from .schemas import GroupBuyStatus, GroupBuyWithDetailsResponse
from typing import List, Sequence


def calculate_discounted_price(price: float, discount_percentage: float) -> float:
    return price * (1 - discount_percentage / 100)


def resolve_closing_status(group_buy: GroupBuying) -> GroupBuyStatus:
    """Status for a group buy whose deadline has passed"""
    reached_target = group_buy.current_quantity >= group_buy.target_quantity
    enough_people = group_buy.current_participants >= group_buy.min_participants
    if reached_target and enough_people:
        return GroupBuyStatus.COMPLETED
    return GroupBuyStatus.EXPIRED


async def enrich_group_buys(db: AsyncSession, group_buys: Sequence[GroupBuying]) -> List[dict]:
    """Attach product name/unit and supplier business name to each group buy"""
    products = await fetch_products_by_ids(db, (group_buy.product_id for group_buy in group_buys))
    suppliers = await fetch_profiles_by_user_ids(db, (group_buy.supplier_id for group_buy in group_buys))

    enriched = []
    for group_buy in group_buys:
        group_dict = group_buy_to_dict(group_buy)
        product = products.get(group_buy.product_id)
        group_dict["product_name"] = product.name if product else UNKNOWN_PRODUCT
        group_dict["product_unit"] = product.unit if product else ""
        group_dict["supplier_name"] = business_name_or(suppliers.get(group_buy.supplier_id), UNKNOWN_SUPPLIER)
        enriched.append(group_dict)

    return enriched


def to_details_response(group_dicts: List[dict]) -> List[GroupBuyWithDetailsResponse]:
    return [GroupBuyWithDetailsResponse.model_validate(group_dict) for group_dict in group_dicts]
