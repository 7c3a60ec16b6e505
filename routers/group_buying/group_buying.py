from fastapi import APIRouter, Depends, HTTPException, status, Header
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from config import get_db, INTERNAL_SECRET
from models import GroupBuying, GroupParticipant, Product
from routers.auth.auth import get_current_user, get_optional_current_user
from dependencies.rbac import require_group_buy_create, require_group_buy_join
from utils.response_helpers import safe_model_validate, group_buy_to_dict
from utils.lookups import (
    fetch_group_buys_by_ids, fetch_profiles_by_user_ids, business_name_or, utc_now, to_utc, UNKNOWN_VENDOR
)
from .helpers import calculate_discounted_price, resolve_closing_status, enrich_group_buys, to_details_response
from .schemas import (
    GroupBuyCreate, GroupBuyJoin, GroupBuyStatus, GroupBuyResponse, GroupBuyWithDetailsResponse,
    ParticipatingGroupBuyResponse, MyGroupBuysResponse, GroupBuyDetailResponse, ParticipantResponse,
    ProcessExpiredResponse
)
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/group-buys", tags=["Group Buying"])


@router.post("/", response_model=GroupBuyResponse, status_code=status.HTTP_201_CREATED)
async def create_group_buy(
    group_data: GroupBuyCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_group_buy_create)
):
    """
    Start a group buy on a product
    The discounted price is fixed now and does not follow later product price changes
    """
    try:
        product_result = await db.execute(
            select(Product).where(Product.id == group_data.product_id)
        )
        product = product_result.scalar_one_or_none()
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )

        group_buy = GroupBuying(
            product_id=product.id,
            supplier_id=product.supplier_id,
            created_by=current_user["user_id"],
            title=group_data.title,
            description=group_data.description,
            target_quantity=group_data.target_quantity,
            current_quantity=0,
            discount_percentage=group_data.discount_percentage,
            original_price=product.price,
            discounted_price=calculate_discounted_price(product.price, group_data.discount_percentage),
            min_participants=group_data.min_participants,
            max_participants=group_data.max_participants,
            current_participants=0,
            deadline=to_utc(group_data.deadline),
            status=GroupBuyStatus.ACTIVE.value,
            created_at=utc_now()
        )

        db.add(group_buy)
        await db.commit()
        await db.refresh(group_buy)

        logger.info(f"Group buy {group_buy.id} created on product {product.id}")
        return safe_model_validate(GroupBuyResponse, group_buy_to_dict(group_buy))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating group buy: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create group buy"
        )


@router.get("/active", response_model=List[GroupBuyWithDetailsResponse])
async def get_active_group_buys(
    db: AsyncSession = Depends(get_db)
):
    """Active group buys whose deadline has not passed"""
    try:
        result = await db.execute(
            select(GroupBuying)
            .where(
                and_(
                    GroupBuying.status == GroupBuyStatus.ACTIVE.value,
                    GroupBuying.deadline > utc_now()
                )
            )
            .order_by(GroupBuying.deadline.asc())
        )
        group_buys = result.scalars().all()

        return to_details_response(await enrich_group_buys(db, group_buys))

    except Exception as e:
        logger.error(f"Error getting active group buys: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve group buys"
        )


@router.get("/mine", response_model=MyGroupBuysResponse)
async def get_my_group_buys(
    current_user = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Group buys the caller created and the ones they joined (with their own quantity)"""
    if current_user is None:
        return MyGroupBuysResponse()

    try:
        created_result = await db.execute(
            select(GroupBuying)
            .where(GroupBuying.created_by == current_user["user_id"])
            .order_by(GroupBuying.created_at.desc())
        )
        created = [
            safe_model_validate(GroupBuyResponse, group_buy_to_dict(group_buy))
            for group_buy in created_result.scalars().all()
        ]

        participation_result = await db.execute(
            select(GroupParticipant)
            .where(GroupParticipant.vendor_id == current_user["user_id"])
            .order_by(GroupParticipant.joined_at.desc())
        )
        participations = participation_result.scalars().all()
        group_buys = await fetch_group_buys_by_ids(db, (p.group_buying_id for p in participations))

        participating = []
        for participation in participations:
            group_buy = group_buys.get(participation.group_buying_id)
            if group_buy is None:
                continue
            group_dict = group_buy_to_dict(group_buy)
            group_dict["user_quantity"] = participation.quantity
            participating.append(ParticipatingGroupBuyResponse.model_validate(group_dict))

        return MyGroupBuysResponse(created=created, participating=participating)

    except Exception as e:
        logger.error(f"Error getting my group buys: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve group buys"
        )


@router.post("/process-expired", response_model=ProcessExpiredResponse)
async def process_expired_group_buys(
    x_internal_secret: str = Header(...),
    db: AsyncSession = Depends(get_db)
):
    """Close active group buys past their deadline - called by an external scheduler"""
    if not INTERNAL_SECRET or x_internal_secret != INTERNAL_SECRET:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    try:
        result = await db.execute(
            select(GroupBuying).where(
                and_(
                    GroupBuying.status == GroupBuyStatus.ACTIVE.value,
                    GroupBuying.deadline <= utc_now()
                )
            )
        )
        due = result.scalars().all()

        completed_count = 0
        for group_buy in due:
            closing_status = resolve_closing_status(group_buy)
            group_buy.status = closing_status.value
            if closing_status == GroupBuyStatus.COMPLETED:
                completed_count += 1
            logger.info(f"Group buy {group_buy.id} closed as {closing_status.value}: "
                        f"{group_buy.current_quantity}/{group_buy.target_quantity}, "
                        f"{group_buy.current_participants} participants")

        await db.commit()

        return ProcessExpiredResponse(
            message=f"Successfully processed {len(due)} group buys",
            processed_count=len(due),
            completed_count=completed_count,
            expired_count=len(due) - completed_count
        )

    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to process expired group buys: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process expired group buys"
        )


@router.get("/{group_buying_id}", response_model=GroupBuyDetailResponse)
async def get_group_buy(
    group_buying_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    """One group buy with product/supplier details and its participants"""
    try:
        result = await db.execute(
            select(GroupBuying).where(GroupBuying.id == group_buying_id)
        )
        group_buy = result.scalar_one_or_none()
        if not group_buy:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Group buy not found"
            )

        participants_result = await db.execute(
            select(GroupParticipant)
            .where(GroupParticipant.group_buying_id == group_buying_id)
            .order_by(GroupParticipant.joined_at.asc())
        )
        participants = participants_result.scalars().all()
        vendors = await fetch_profiles_by_user_ids(db, (p.vendor_id for p in participants))

        group_dict = (await enrich_group_buys(db, [group_buy]))[0]
        group_dict["participants"] = [
            ParticipantResponse(
                vendor_id=str(participant.vendor_id),
                vendor_name=business_name_or(vendors.get(participant.vendor_id), UNKNOWN_VENDOR),
                quantity=participant.quantity,
                joined_at=participant.joined_at
            )
            for participant in participants
        ]

        return GroupBuyDetailResponse.model_validate(group_dict)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting group buy details: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve group buy"
        )


@router.post("/{group_buying_id}/join", response_model=GroupBuyResponse)
async def join_group_buy(
    group_buying_id: uuid.UUID,
    join_data: GroupBuyJoin,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: dict = Depends(require_group_buy_join)
):
    """
    Join a group buy once with a quantity

    Counters are bumped in one UPDATE relative to the stored values, guarded on
    status and capacity, so concurrent joins are all counted and none overfills.
    Joins are not checked against target quantity or deadline.
    """
    vendor_id = current_user["user_id"]

    try:
        result = await db.execute(
            select(GroupBuying).where(GroupBuying.id == group_buying_id)
        )
        group_buy = result.scalar_one_or_none()
        if not group_buy:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Group buy not found"
            )

        if group_buy.status != GroupBuyStatus.ACTIVE.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Group buy not available"
            )

        existing_result = await db.execute(
            select(GroupParticipant).where(
                and_(
                    GroupParticipant.group_buying_id == group_buying_id,
                    GroupParticipant.vendor_id == vendor_id
                )
            )
        )
        if existing_result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Already participating in this group buy"
            )

        if group_buy.current_participants >= group_buy.max_participants:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Group buy is full"
            )

        db.add(GroupParticipant(
            group_buying_id=group_buying_id,
            vendor_id=vendor_id,
            quantity=join_data.quantity,
            joined_at=utc_now()
        ))
        await db.flush()

        bump = await db.execute(
            update(GroupBuying)
            .where(
                and_(
                    GroupBuying.id == group_buying_id,
                    GroupBuying.status == GroupBuyStatus.ACTIVE.value,
                    GroupBuying.current_participants < GroupBuying.max_participants
                )
            )
            .values(
                current_quantity=GroupBuying.current_quantity + join_data.quantity,
                current_participants=GroupBuying.current_participants + 1
            )
            .execution_options(synchronize_session=False)
        )

        # Filled up or closed by a concurrent request since it was read
        if bump.rowcount != 1:
            await db.rollback()
            logger.warning(f"Group buy {group_buying_id} filled or closed before join by {vendor_id} was applied")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Group buy is full"
            )

        await db.commit()
        await db.refresh(group_buy)

        logger.info(f"Vendor {vendor_id} joined group buy {group_buying_id} with {join_data.quantity}")
        return safe_model_validate(GroupBuyResponse, group_buy_to_dict(group_buy))

    except HTTPException:
        raise
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already participating in this group buy"
        )
    except Exception as e:
        logger.error(f"Error joining group buy: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to join group buy"
        )
