import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.security import hash_password, verify_password
from app.models.household import HouseholdMember
from app.models.user import User
from app.schemas.user import (
    AccountDelete,
    PreferencesResponse,
    PreferencesUpdate,
    UserPasswordChange,
    UserProfileUpdate,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    payload: UserProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(user, field, value)

    # Keep the display name shown in households in step with the profile
    if "full_name" in data:
        result = await db.execute(select(HouseholdMember).where(HouseholdMember.user_id == user.id))
        for member in result.scalars().all():
            member.name = user.display_name

    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(user)
    return user


@router.post("/me/change-password", status_code=204)
async def change_password(
    payload: UserPasswordChange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.auth_provider != "password":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This account signs in with Google and has no password",
        )
    if not verify_password(payload.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    user.hashed_password = hash_password(payload.new_password)
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()


@router.delete("/me", status_code=204)
async def delete_account(
    payload: AccountDelete,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the account and everything it owns.

    Owned households go with it (their shared entries fall back to personal);
    memberships in other households are removed.
    """
    if user.auth_provider == "password" and not verify_password(payload.password or "", user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password is incorrect",
        )

    logger.info("Deleting account %s", user.id)
    await db.delete(user)
    await db.flush()
    response.delete_cookie(key="access_token", path="/")
    response.delete_cookie(key="refresh_token", path="/")


# ─── UI preferences ────────────────────────────────────────────────────────────

@router.get("/me/preferences", response_model=PreferencesResponse)
async def get_preferences(user: User = Depends(get_current_user)):
    return user


@router.patch("/me/preferences", response_model=PreferencesResponse)
async def update_preferences(
    payload: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in ("net_worth_target", "default_monthly_contribution"):
            continue
        setattr(user, field, value)
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(user)
    return user
