"""Households: sharing scopes for goals and income / expense entries.

The owner manages the name, split settings, invitations and membership. Any
member can see the household, its shared entries and the activity log, and
can leave. Invitations are addressed to an email and answered by whoever
signs in with it.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.household import (
    Household,
    HouseholdEvent,
    HouseholdMember,
    Invitation,
    MemberIncomeChange,
)
from app.models.savings import SavingGoal
from app.models.transaction import Transaction
from app.models.user import User
from app.schemas.household import (
    EventResponse,
    HouseholdCreate,
    HouseholdDetail,
    HouseholdRename,
    HouseholdResponse,
    HouseholdSummary,
    IncomeChangeIn,
    InvitationResponse,
    InviteCreate,
    MemberRename,
    MyInvitationResponse,
    SharedExpense,
    SharedGoal,
    SplitSettingsUpdate,
)
from app.services.budget import amount_for_date, is_active_in_month, split_amount
from app.services.email import send_invitation_email
from app.services.formatting import format_currency
from app.services.membership import admit_member, append_event, check_invitable, check_split_total
from app.services.queries import get_or_404, my_households
from app.services.valuation import savings_value

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/households", tags=["households"])


# ─── Helpers ───────────────────────────────────────────────────────────────────

async def _load(db: AsyncSession, user: User, household_id: uuid.UUID, action: str) -> Household:
    household = await get_or_404(db, Household, household_id, "Household")
    authorize(user, "household", action, household)
    return household


def _member_or_404(household: Household, user_id: uuid.UUID) -> HouseholdMember:
    member = household.member(user_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


async def _log_event(db: AsyncSession, household: Household, actor: User, message: str) -> None:
    """Append to the activity log, keeping only the newest EVENT_LOG_LIMIT entries."""
    append_event(
        household,
        HouseholdEvent(
            actor_id=actor.id,
            actor_name=actor.display_name,
            message=message,
            timestamp=datetime.now(timezone.utc),
        ),
    )
    await db.flush()


async def _refreshed(db: AsyncSession, household: Household) -> Household:
    await db.flush()
    await db.refresh(household)
    return household


async def _shared_rows(db: AsyncSession, household_id: uuid.UUID) -> tuple[list[Transaction], list[SavingGoal]]:
    txs = await db.execute(
        select(Transaction).where(
            Transaction.household_id == household_id,
            Transaction.transaction_type == "expense",
        )
    )
    goals = await db.execute(select(SavingGoal).where(SavingGoal.household_id == household_id))
    return list(txs.scalars().all()), list(goals.scalars().all())


def _monthly_shared_total(expenses: list[Transaction], today: date) -> Decimal:
    return sum(
        (amount_for_date(t, today) for t in expenses if is_active_in_month(t, today)),
        Decimal(0),
    )


# ─── Households ────────────────────────────────────────────────────────────────

@router.get("/", response_model=list[HouseholdSummary])
async def list_households(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Households the user owns or has joined, with their shared totals."""
    today = date.today()
    rows = []
    for household in await my_households(db, user):
        expenses, goals = await _shared_rows(db, household.id)
        rows.append(
            HouseholdSummary(
                **HouseholdResponse.model_validate(household).model_dump(),
                is_owner=household.owner_id == user.id,
                monthly_shared_expenses=_monthly_shared_total(expenses, today),
                shared_goal_count=len(goals),
            )
        )
    return rows


@router.post("/", response_model=HouseholdResponse, status_code=201)
async def create_household(
    payload: HouseholdCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = Household(owner_id=user.id, name=payload.name, split_type="equal")
    household.members = [
        HouseholdMember(user_id=user.id, name=user.display_name, email=user.email, share=Decimal(1))
    ]
    household.invitations = []
    household.events = []
    db.add(household)
    await db.flush()
    await _log_event(db, household, user, f"{user.display_name} created the household.")
    logger.info("User %s created household %s", user.id, household.id)
    return await _refreshed(db, household)


@router.get("/{household_id}", response_model=HouseholdDetail)
async def get_household(
    household_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Members, invitations, activity and every shared entry with its per-member split."""
    household = await _load(db, user, household_id, "read")
    today = date.today()
    expenses, goals = await _shared_rows(db, household.id)

    shared_expenses = []
    member_totals: dict[uuid.UUID, Decimal] = {m.user_id: Decimal(0) for m in household.members}
    for tx in expenses:
        if not is_active_in_month(tx, today):
            continue
        amount = amount_for_date(tx, today)
        split = split_amount(household, amount, today)
        for member_id, share in split.items():
            member_totals[member_id] = member_totals.get(member_id, Decimal(0)) + share
        shared_expenses.append(
            SharedExpense(id=tx.id, name=tx.name, owner_id=tx.user_id, amount=amount, split=split)
        )

    shared_goals = []
    for goal in goals:
        contributed: dict[uuid.UUID, Decimal] = {}
        for c in goal.contributions:
            if c.user_id is not None:
                contributed[c.user_id] = contributed.get(c.user_id, Decimal(0)) + c.amount
        shared_goals.append(
            SharedGoal(
                id=goal.id,
                name=goal.name,
                owner_id=goal.user_id,
                target_amount=goal.target_amount,
                current_amount=savings_value(goal, today),
                split_type=goal.split_type,
                contributed_by=contributed,
            )
        )

    invitations = household.invitations if household.owner_id == user.id else []
    return HouseholdDetail(
        **HouseholdResponse.model_validate(household).model_dump(),
        invitations=[InvitationResponse.model_validate(i) for i in invitations],
        events=[EventResponse.model_validate(e) for e in household.events],
        shared_expenses=shared_expenses,
        shared_goals=shared_goals,
        member_totals=member_totals,
    )


@router.patch("/{household_id}", response_model=HouseholdResponse)
async def rename_household(
    household_id: uuid.UUID,
    payload: HouseholdRename,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = await _load(db, user, household_id, "write")
    old_name = household.name
    household.name = payload.name
    await _log_event(db, household, user, f'{user.display_name} renamed the household from "{old_name}" to "{payload.name}".')
    return await _refreshed(db, household)


@router.delete("/{household_id}", status_code=204)
async def delete_household(
    household_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the household. Entries shared with it become personal to their owners."""
    household = await _load(db, user, household_id, "write")
    await db.execute(
        update(Transaction).where(Transaction.household_id == household.id).values(household_id=None)
    )
    await db.execute(
        update(SavingGoal)
        .where(SavingGoal.household_id == household.id)
        .values(household_id=None, split_type=None)
    )
    await db.delete(household)
    logger.info("User %s deleted household %s", user.id, household_id)


@router.put("/{household_id}/split", response_model=HouseholdResponse)
async def update_split_settings(
    household_id: uuid.UUID,
    payload: SplitSettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = await _load(db, user, household_id, "write")
    household.split_type = payload.split_type.value
    for entry in payload.shares:
        _member_or_404(household, entry.user_id).share = entry.share
    check_split_total(household)
    labels = {"equal": "equal split", "shares": "custom shares", "income_ratio": "income-based split"}
    await _log_event(db, household, user, f"{user.display_name} changed the split to {labels[household.split_type]}.")
    return await _refreshed(db, household)


@router.get("/{household_id}/events", response_model=list[EventResponse])
async def list_events(
    household_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = await _load(db, user, household_id, "read")
    return household.events


# ─── Members ───────────────────────────────────────────────────────────────────

@router.patch("/{household_id}/members/{user_id}", response_model=HouseholdResponse)
async def rename_member(
    household_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: MemberRename,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Members may rename themselves; the owner may rename anyone."""
    household = await _load(db, user, household_id, "read")
    if user_id != user.id:
        authorize(user, "household", "write", household)
    _member_or_404(household, user_id).name = payload.name
    return await _refreshed(db, household)


@router.delete("/{household_id}/members/{user_id}", response_model=HouseholdResponse)
async def remove_member(
    household_id: uuid.UUID,
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = await _load(db, user, household_id, "write")
    if user_id == household.owner_id:
        raise HTTPException(status_code=400, detail="The owner can't be removed from the household")
    member = _member_or_404(household, user_id)
    household.members.remove(member)
    await _log_event(db, household, user, f"{user.display_name} removed {member.name} from the household.")
    return await _refreshed(db, household)


@router.post("/{household_id}/leave", status_code=204)
async def leave_household(
    household_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = await get_or_404(db, Household, household_id, "Household")
    if household.owner_id == user.id:
        raise HTTPException(status_code=400, detail="The owner can't leave; delete the household instead")
    authorize(user, "household", "leave", household)
    household.members.remove(household.member(user.id))
    await _log_event(db, household, user, f"{user.display_name} left the household.")


@router.post("/{household_id}/members/{user_id}/income", response_model=HouseholdResponse, status_code=201)
async def add_income_change(
    household_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: IncomeChangeIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a member's income from a date onward (used by the income-based split)."""
    household = await _load(db, user, household_id, "read")
    if user_id != user.id:
        authorize(user, "household", "write", household)
    member = _member_or_404(household, user_id)
    member.income_history.append(MemberIncomeChange(amount=payload.amount, date=payload.date))
    await _log_event(
        db, household, user,
        f"{user.display_name} set {member.name}'s income to {format_currency(payload.amount, user.currency)} from {payload.date.isoformat()}.",
    )
    return await _refreshed(db, household)


@router.delete("/{household_id}/members/{user_id}/income/{entry_id}", response_model=HouseholdResponse)
async def delete_income_change(
    household_id: uuid.UUID,
    user_id: uuid.UUID,
    entry_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    household = await _load(db, user, household_id, "read")
    if user_id != user.id:
        authorize(user, "household", "write", household)
    member = _member_or_404(household, user_id)
    member.income_history = [i for i in member.income_history if i.id != entry_id]
    return await _refreshed(db, household)


# ─── Invitations ───────────────────────────────────────────────────────────────

@router.post("/{household_id}/invitations", response_model=InvitationResponse, status_code=201)
async def invite(
    household_id: uuid.UUID,
    payload: InviteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Invite an email address. The email goes out after the invitation is stored; a
    delivery failure is logged and the invitation stands."""
    household = await _load(db, user, household_id, "write")
    email = check_invitable(household, user.email, payload.email)

    invitation = Invitation(household_id=household.id, invited_email=email, invited_by=user.id, status="pending")
    household.invitations.append(invitation)
    await _log_event(db, household, user, f"{user.display_name} invited {email} to the household.")
    await db.flush()
    await db.refresh(invitation)
    await db.commit()

    await run_in_threadpool(send_invitation_email, email, household.name, user.display_name)
    return invitation


@router.delete("/{household_id}/invitations/{invitation_id}", status_code=204)
async def cancel_invitation(
    household_id: uuid.UUID,
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a pending invitation or clear a declined one."""
    household = await _load(db, user, household_id, "write")
    invitation = next((i for i in household.invitations if i.id == invitation_id), None)
    if invitation is None:
        raise HTTPException(status_code=404, detail="Invitation not found")
    authorize(user, "invitation", "cancel", invitation, household=household)
    household.invitations.remove(invitation)
    if invitation.status == "pending":
        await _log_event(db, household, user, f"{user.display_name} cancelled the invitation for {invitation.invited_email}.")


invitations_router = APIRouter(prefix="/invitations", tags=["households"])


@invitations_router.get("/", response_model=list[MyInvitationResponse])
async def my_invitations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pending invitations addressed to the signed-in user's email."""
    result = await db.execute(
        select(Invitation, Household, User)
        .join(Household, Household.id == Invitation.household_id)
        .join(User, User.id == Invitation.invited_by)
        .where(Invitation.invited_email == user.email.lower(), Invitation.status == "pending")
        .order_by(Invitation.created_at.desc())
    )
    return [
        MyInvitationResponse(
            **InvitationResponse.model_validate(inv).model_dump(),
            household_name=household.name,
            inviter_name=inviter.display_name,
        )
        for inv, household, inviter in result.all()
    ]


async def _load_invitation(db: AsyncSession, user: User, invitation_id: uuid.UUID) -> tuple[Invitation, Household]:
    invitation = await get_or_404(db, Invitation, invitation_id, "Invitation")
    household = await get_or_404(db, Household, invitation.household_id, "Household")
    authorize(user, "invitation", "read", invitation, household=household)
    return invitation, household


@invitations_router.post("/{invitation_id}/accept", response_model=HouseholdResponse)
async def accept_invitation(
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Join the household. Adding the member and deleting the invitation commit together."""
    invitation, household = await _load_invitation(db, user, invitation_id)

    if invitation.status != "pending":
        await db.delete(invitation)
        await db.commit()
        raise HTTPException(status_code=410, detail="This invitation is no longer valid")
    authorize(user, "invitation", "respond", invitation)

    member = HouseholdMember(user_id=user.id, name=user.display_name, email=user.email, share=Decimal(1))
    admit_member(household, invitation, member)
    await _log_event(db, household, user, f"{user.display_name} joined the household.")
    logger.info("User %s joined household %s", user.id, household.id)
    return await _refreshed(db, household)


@invitations_router.post("/{invitation_id}/decline", status_code=204)
async def decline_invitation(
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark the invitation declined; the owner sees it and can clear it."""
    invitation, household = await _load_invitation(db, user, invitation_id)
    authorize(user, "invitation", "respond", invitation)
    invitation.status = "declined"
    await _log_event(db, household, user, f"{invitation.invited_email} declined the invitation.")
