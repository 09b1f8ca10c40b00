"""Household membership rules over loaded rows.

These operate on a household's in-memory collections; the caller flushes.
Trimming the event log removes rows from ``household.events``, which the
delete-orphan cascade turns into deletes.
"""

from decimal import Decimal

from fastapi import HTTPException

from app.models.household import EVENT_LOG_LIMIT


def append_event(household, event, limit: int = EVENT_LOG_LIMIT) -> list:
    """Add `event` to the activity log and drop everything past the newest `limit`.

    Returns the dropped events.
    """
    household.events.append(event)
    newest_first = sorted(household.events, key=lambda e: e.timestamp, reverse=True)
    stale = newest_first[limit:]
    for old in stale:
        household.events.remove(old)
    return stale


def check_invitable(household, inviter_email: str, email: str) -> str:
    """Normalise the invited address, refusing the inviter, members and repeat invites."""
    email = email.strip().lower()
    if email == inviter_email.lower():
        raise HTTPException(status_code=400, detail="You can't invite yourself")
    if any(m.email.lower() == email for m in household.members):
        raise HTTPException(status_code=409, detail="That person is already a member")
    if any(i.invited_email.lower() == email for i in household.invitations):
        raise HTTPException(status_code=409, detail="That email has already been invited")
    return email


def check_split_total(household) -> None:
    if household.split_type == "shares" and sum((m.share or 0 for m in household.members), Decimal(0)) <= 0:
        raise HTTPException(status_code=422, detail="Total shares must be greater than zero")


def admit_member(household, invitation, member) -> bool:
    """Add `member` (unless already in) and consume the invitation.

    Both changes land in the same flush. Returns False when the user was already a member.
    """
    added = not any(m.user_id == member.user_id for m in household.members)
    if added:
        household.members.append(member)
    household.invitations.remove(invitation)
    return added
