import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.savings import SavingContribution, SavingGoal
from app.models.user import User
from app.schemas.savings import (
    ContributionIn,
    SavingGoalCreate,
    SavingGoalResponse,
    SavingGoalUpdate,
)
from app.services.queries import get_or_404, load_household, my_households, parse_sharing, visible_goals
from app.services.valuation import savings_value

router = APIRouter(prefix="/savings", tags=["savings"])


def _to_response(goal: SavingGoal) -> SavingGoalResponse:
    response = SavingGoalResponse.model_validate(goal)
    current = savings_value(goal, date.max)
    response.current_amount = current
    if goal.target_amount:
        response.progress_percent = min(current / goal.target_amount * 100, Decimal(100)).quantize(Decimal("0.01"))
    return response


async def _load(db: AsyncSession, user: User, goal_id: uuid.UUID, action: str, **ctx) -> SavingGoal:
    goal = await get_or_404(db, SavingGoal, goal_id, "Savings goal")
    household = await load_household(db, goal.household_id)
    authorize(user, "saving_goal", action, goal, household=household, **ctx)
    return goal


@router.get("/", response_model=list[SavingGoalResponse])
async def list_goals(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The user's own goals plus goals shared with their households."""
    households = await my_households(db, user)
    goals = await visible_goals(db, user, [h.id for h in households])
    return [_to_response(g) for g in goals]


@router.post("/", response_model=SavingGoalResponse, status_code=201)
async def create_goal(
    payload: SavingGoalCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household_id = parse_sharing(payload.sharing, await my_households(db, user))
    goal = SavingGoal(
        user_id=user.id,
        household_id=household_id,
        name=payload.name,
        target_amount=payload.target_amount,
        start_date=payload.start_date,
        target_date=payload.target_date,
        split_type=payload.split_type if household_id else None,
    )
    goal.contributions = []
    if payload.initial_contribution:
        goal.contributions.append(
            SavingContribution(
                amount=payload.initial_contribution,
                date=payload.start_date,
                user_id=user.id,
                user_name=user.display_name,
            )
        )
    db.add(goal)
    await db.flush()
    await db.refresh(goal)
    return _to_response(goal)


@router.get("/{goal_id}", response_model=SavingGoalResponse)
async def get_goal(
    goal_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await _load(db, user, goal_id, "read"))


@router.patch("/{goal_id}", response_model=SavingGoalResponse)
async def update_goal(
    goal_id: uuid.UUID,
    payload: SavingGoalUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal = await _load(db, user, goal_id, "write")
    data = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "sharing" in data:
        goal.household_id = parse_sharing(data.pop("sharing"), await my_households(db, user))
    for field, value in data.items():
        setattr(goal, field, value)

    if goal.target_date <= goal.start_date:
        raise HTTPException(status_code=422, detail="target_date must be after start_date")
    if goal.household_id is None:
        goal.split_type = None
    elif goal.split_type is None:
        goal.split_type = "equal"

    await db.flush()
    await db.refresh(goal)
    return _to_response(goal)


@router.delete("/{goal_id}", status_code=204)
async def delete_goal(
    goal_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(await _load(db, user, goal_id, "write"))


# ─── Contributions ─────────────────────────────────────────────────────────────

@router.post("/{goal_id}/contributions", response_model=SavingGoalResponse, status_code=201)
async def add_contribution(
    goal_id: uuid.UUID,
    payload: ContributionIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal = await _load(db, user, goal_id, "contribute")
    goal.contributions.append(
        SavingContribution(
            amount=payload.amount,
            date=payload.date,
            user_id=user.id,
            user_name=user.display_name,
        )
    )
    await db.flush()
    await db.refresh(goal)
    return _to_response(goal)


def _find_contribution(goal: SavingGoal, entry_id: uuid.UUID) -> SavingContribution:
    entry = next((c for c in goal.contributions if c.id == entry_id), None)
    if entry is None:
        raise HTTPException(status_code=404, detail="Contribution not found")
    return entry


@router.put("/{goal_id}/contributions/{entry_id}", response_model=SavingGoalResponse)
async def update_contribution(
    goal_id: uuid.UUID,
    entry_id: uuid.UUID,
    payload: ContributionIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal = await _load(db, user, goal_id, "read")
    entry = _find_contribution(goal, entry_id)
    household = await load_household(db, goal.household_id)
    authorize(user, "saving_goal", "edit_contribution", goal, household=household, contribution=entry)
    entry.amount = payload.amount
    entry.date = payload.date
    await db.flush()
    await db.refresh(goal)
    return _to_response(goal)


@router.delete("/{goal_id}/contributions/{entry_id}", response_model=SavingGoalResponse)
async def delete_contribution(
    goal_id: uuid.UUID,
    entry_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal = await _load(db, user, goal_id, "read")
    entry = _find_contribution(goal, entry_id)
    household = await load_household(db, goal.household_id)
    authorize(user, "saving_goal", "edit_contribution", goal, household=household, contribution=entry)
    goal.contributions.remove(entry)
    await db.flush()
    await db.refresh(goal)
    return _to_response(goal)
