import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.transaction import AmountChange, Transaction
from app.models.user import User
from app.schemas.transaction import (
    AmountChangeIn,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)
from app.services.budget import amount_for_date, first_amount_date
from app.services.queries import get_or_404, load_household, my_households, parse_sharing, visible_transactions

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _to_response(tx: Transaction) -> TransactionResponse:
    response = TransactionResponse.model_validate(tx)
    response.current_amount = amount_for_date(tx, date.today())
    return response


async def _load(db: AsyncSession, user: User, tx_id: uuid.UUID, action: str) -> Transaction:
    tx = await get_or_404(db, Transaction, tx_id, "Transaction")
    household = await load_household(db, tx.household_id)
    authorize(user, "transaction", action, tx, household=household)
    return tx


@router.get("/", response_model=list[TransactionResponse])
async def list_transactions(
    transaction_type: str | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    households = await my_households(db, user)
    rows = await visible_transactions(db, user, [h.id for h in households])
    if transaction_type:
        rows = [t for t in rows if t.transaction_type == transaction_type]
    return [_to_response(t) for t in rows]


@router.post("/", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    payload: TransactionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household_id = parse_sharing(payload.sharing, await my_households(db, user))
    tx = Transaction(
        user_id=user.id,
        household_id=household_id,
        transaction_type=payload.transaction_type.value,
        name=payload.name,
        frequency=payload.frequency.value,
        end_date=payload.end_date,
        category_id=payload.category_id,
        classification=payload.classification.value if payload.classification else None,
    )
    tx.amounts = [AmountChange(amount=payload.amount, date=payload.start_date)]
    db.add(tx)
    await db.flush()
    await db.refresh(tx)
    return _to_response(tx)


@router.get("/{tx_id}", response_model=TransactionResponse)
async def get_transaction(
    tx_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await _load(db, user, tx_id, "read"))


@router.patch("/{tx_id}", response_model=TransactionResponse)
async def update_transaction(
    tx_id: uuid.UUID,
    payload: TransactionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tx = await _load(db, user, tx_id, "write")
    data = payload.model_dump(exclude_unset=True)

    if "sharing" in data:
        tx.household_id = parse_sharing(data.pop("sharing"), await my_households(db, user))
    for field, value in data.items():
        if field in ("frequency", "classification") and value is not None:
            value = value.value
        setattr(tx, field, value)

    if tx.transaction_type == "expense" and not tx.classification:
        raise HTTPException(status_code=422, detail="classification is required for expenses")
    if tx.frequency == "one-off":
        tx.end_date = None
    elif tx.end_date is not None:
        start = first_amount_date(tx)
        if start is not None and tx.end_date <= start:
            raise HTTPException(status_code=422, detail="end_date must be after start_date")

    await db.flush()
    await db.refresh(tx)
    return _to_response(tx)


@router.delete("/{tx_id}", status_code=204)
async def delete_transaction(
    tx_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(await _load(db, user, tx_id, "write"))


# ─── Amount history ────────────────────────────────────────────────────────────

@router.post("/{tx_id}/amounts", response_model=TransactionResponse, status_code=201)
async def add_amount_change(
    tx_id: uuid.UUID,
    payload: AmountChangeIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tx = await _load(db, user, tx_id, "write")
    tx.amounts.append(AmountChange(amount=payload.amount, date=payload.date))
    await db.flush()
    await db.refresh(tx)
    return _to_response(tx)


@router.delete("/{tx_id}/amounts/{entry_id}", response_model=TransactionResponse)
async def delete_amount_change(
    tx_id: uuid.UUID,
    entry_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tx = await _load(db, user, tx_id, "write")
    if not any(a.id == entry_id for a in tx.amounts):
        raise HTTPException(status_code=404, detail="Amount entry not found")
    if len(tx.amounts) <= 1:
        raise HTTPException(status_code=400, detail="An entry needs at least one amount")
    tx.amounts = [a for a in tx.amounts if a.id != entry_id]
    await db.flush()
    await db.refresh(tx)
    return _to_response(tx)
