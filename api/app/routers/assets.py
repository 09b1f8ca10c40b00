import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.asset import Asset, AssetContribution, AssetValueChange
from app.models.user import User
from app.schemas.asset import (
    AssetContributionIn,
    AssetCreate,
    AssetResponse,
    AssetUpdate,
    ValueChangeIn,
)
from app.services.queries import get_or_404, owned
from app.services.valuation import latest_at

router = APIRouter(prefix="/assets", tags=["assets"])


def _to_response(asset: Asset) -> AssetResponse:
    latest = latest_at(asset.value_history, date.today())
    response = AssetResponse.model_validate(asset)
    response.current_value = latest.value if latest else Decimal(0)
    return response


async def _load(db: AsyncSession, user: User, asset_id: uuid.UUID) -> Asset:
    asset = await get_or_404(db, Asset, asset_id, "Asset")
    authorize(user, "asset", "write", asset)
    return asset


@router.get("/", response_model=list[AssetResponse])
async def list_assets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [_to_response(a) for a in await owned(db, Asset, user)]


@router.post("/", response_model=AssetResponse, status_code=201)
async def create_asset(
    payload: AssetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = Asset(user_id=user.id, name=payload.name, type=payload.type, currency=payload.currency)
    asset.value_history = [
        AssetValueChange(value=payload.initial_value, date=payload.value_date or date.today())
    ]
    asset.contributions = []
    db.add(asset)
    await db.flush()
    await db.refresh(asset)
    return _to_response(asset)


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset(
    asset_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await get_or_404(db, Asset, asset_id, "Asset")
    authorize(user, "asset", "read", asset)
    return _to_response(asset)


@router.patch("/{asset_id}", response_model=AssetResponse)
async def update_asset(
    asset_id: uuid.UUID,
    payload: AssetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await _load(db, user, asset_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(asset, field, value)
    await db.flush()
    await db.refresh(asset)
    return _to_response(asset)


@router.delete("/{asset_id}", status_code=204)
async def delete_asset(
    asset_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(await _load(db, user, asset_id))


# ─── Value history ─────────────────────────────────────────────────────────────

@router.post("/{asset_id}/values", response_model=AssetResponse, status_code=201)
async def add_value(
    asset_id: uuid.UUID,
    payload: ValueChangeIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await _load(db, user, asset_id)
    asset.value_history.append(AssetValueChange(value=payload.value, date=payload.date))
    await db.flush()
    await db.refresh(asset)
    return _to_response(asset)


@router.delete("/{asset_id}/values/{entry_id}", response_model=AssetResponse)
async def delete_value(
    asset_id: uuid.UUID,
    entry_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await _load(db, user, asset_id)
    if not any(v.id == entry_id for v in asset.value_history):
        raise HTTPException(status_code=404, detail="Value entry not found")
    asset.value_history = [v for v in asset.value_history if v.id != entry_id]
    await db.flush()
    await db.refresh(asset)
    return _to_response(asset)


# ─── Contributions ─────────────────────────────────────────────────────────────

@router.post("/{asset_id}/contributions", response_model=AssetResponse, status_code=201)
async def add_contribution(
    asset_id: uuid.UUID,
    payload: AssetContributionIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await _load(db, user, asset_id)
    asset.contributions.append(AssetContribution(amount=payload.amount, date=payload.date))
    await db.flush()
    await db.refresh(asset)
    return _to_response(asset)


@router.delete("/{asset_id}/contributions/{entry_id}", response_model=AssetResponse)
async def delete_contribution(
    asset_id: uuid.UUID,
    entry_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await _load(db, user, asset_id)
    if not any(c.id == entry_id for c in asset.contributions):
        raise HTTPException(status_code=404, detail="Contribution not found")
    asset.contributions = [c for c in asset.contributions if c.id != entry_id]
    await db.flush()
    await db.refresh(asset)
    return _to_response(asset)
