from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from config import get_db, DEFAULT_TRUST_SCORE
from models import Profile
from routers.auth.auth import get_current_user, get_optional_current_user
from utils.response_helpers import safe_model_validate, profile_to_dict
from .schemas import ProfileCreate, ProfileUpdate, ProfileResponse, CurrentProfileResponse, ProfileRole
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/profile", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create the business profile for the current identity (once)"""
    try:
        if current_user["profile"] is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Profile already exists"
            )

        profile = Profile(
            user_id=current_user["user_id"],
            role=profile_data.role.value,
            business_name=profile_data.business_name,
            contact_phone=profile_data.contact_phone,
            address=profile_data.address,
            city=profile_data.city,
            trust_score=DEFAULT_TRUST_SCORE if profile_data.role == ProfileRole.VENDOR else None,
            is_verified=False
        )

        db.add(profile)
        await db.commit()
        await db.refresh(profile)

        logger.info(f"Created {profile.role} profile for user {profile.user_id}")
        return safe_model_validate(ProfileResponse, profile_to_dict(profile))

    except HTTPException:
        raise
    except IntegrityError:
        # Lost a race with a concurrent create for the same identity
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Profile already exists"
        )
    except Exception as e:
        logger.error(f"Error creating profile: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create profile"
        )


@router.get("/profile/me", response_model=Optional[CurrentProfileResponse])
async def get_current_profile(
    current_user = Depends(get_optional_current_user)
):
    """Current user's profile merged with their email; null if signed out or not onboarded"""
    if current_user is None or current_user["profile"] is None:
        return None

    profile_data = profile_to_dict(current_user["profile"])
    profile_data["email"] = current_user["email"]

    return safe_model_validate(CurrentProfileResponse, profile_data)


@router.put("/profile/me", response_model=ProfileResponse)
async def update_profile(
    profile_update: ProfileUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update current user's profile information"""
    try:
        result = await db.execute(
            select(Profile).where(Profile.user_id == current_user["user_id"])
        )
        profile = result.scalar_one_or_none()

        if not profile:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found"
            )

        update_data = profile_update.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(profile, field, value)

        await db.commit()
        await db.refresh(profile)

        return safe_model_validate(ProfileResponse, profile_to_dict(profile))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating profile: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )
