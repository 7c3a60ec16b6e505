from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Profile
from .schemas import (
    UserRegister,
    UserLogin,
    RefreshRequest,
    AuthResponse,
    TokenResponse,
    IdentityResponse
)
from .helpers import auth_helpers
from typing import Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

security = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> dict:
    identity = auth_helpers.verify_token(token)

    try:
        user_id = UUID(str(identity.id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed user ID"
        )

    current_user = {
        "user_id": user_id,
        "email": identity.email,
        "role": None,
        "profile": None
    }

    # Role lives on the profile, not in the token
    result = await db.execute(
        select(Profile).where(Profile.user_id == user_id)
    )
    profile = result.scalar_one_or_none()
    if profile:
        current_user["role"] = profile.role
        current_user["profile"] = profile
    else:
        logger.info(f"No profile yet for user {user_id}")

    return current_user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    """Get current user from JWT token; mutations fail without one"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"}
        )

    current_user = await _resolve_user(credentials.credentials, db)
    request.state.current_user = current_user
    return current_user


async def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    """Like get_current_user, but queries get None instead of a 401 when no token is sent"""
    if credentials is None:
        return None

    current_user = await _resolve_user(credentials.credentials, db)
    request.state.current_user = current_user
    return current_user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserRegister):
    try:
        auth_response = auth_helpers.sign_up(user_data.email, user_data.password)

        if auth_response.user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to create user account"
            )

        if auth_response.session is None:
            return AuthResponse(
                access_token="",
                refresh_token="",
                message="User created successfully. Please check your email to verify your account before logging in."
            )

        return AuthResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post("/login", response_model=AuthResponse)
async def login(user_data: UserLogin):
    try:
        auth_response = auth_helpers.sign_in(user_data.email, user_data.password)

        if auth_response.user is None or auth_response.session is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        return AuthResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request_data: RefreshRequest):
    session = await auth_helpers.refresh_token(request_data.refresh_token)
    return TokenResponse(access_token=session.access_token)


@router.get("/me", response_model=Optional[IdentityResponse])
async def logged_in_user(
    current_user = Depends(get_optional_current_user)
):
    """Identity behind the bearer token, or null when signed out"""
    if current_user is None:
        return None

    return IdentityResponse(
        user_id=str(current_user["user_id"]),
        email=current_user["email"],
        role=current_user["role"],
        has_profile=current_user["profile"] is not None
    )
