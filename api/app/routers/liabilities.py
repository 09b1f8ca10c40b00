import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.liability import Liability
from app.models.user import User
from app.schemas.liability import LiabilityCreate, LiabilityResponse, LiabilityUpdate
from app.services.queries import get_or_404, owned

router = APIRouter(prefix="/liabilities", tags=["liabilities"])


@router.get("/", response_model=list[LiabilityResponse])
async def list_liabilities(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await owned(db, Liability, user)


@router.post("/", response_model=LiabilityResponse, status_code=201)
async def create_liability(
    payload: LiabilityCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liability = Liability(
        user_id=user.id,
        name=payload.name,
        type=payload.type.value,
        current_balance=payload.current_balance,
        apr=payload.apr,
    )
    db.add(liability)
    await db.flush()
    await db.refresh(liability)
    return liability


@router.get("/{liability_id}", response_model=LiabilityResponse)
async def get_liability(
    liability_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liability = await get_or_404(db, Liability, liability_id, "Liability")
    authorize(user, "liability", "read", liability)
    return liability


@router.patch("/{liability_id}", response_model=LiabilityResponse)
async def update_liability(
    liability_id: uuid.UUID,
    payload: LiabilityUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liability = await get_or_404(db, Liability, liability_id, "Liability")
    authorize(user, "liability", "write", liability)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(liability, field, value.value if field == "type" else value)
    await db.flush()
    await db.refresh(liability)
    return liability


@router.delete("/{liability_id}", status_code=204)
async def delete_liability(
    liability_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liability = await get_or_404(db, Liability, liability_id, "Liability")
    authorize(user, "liability", "write", liability)
    await db.delete(liability)
