"""Declarative access rules.

Every read or write of a user document goes through ``authorize()``, which
looks the (resource, action) pair up in RULES and evaluates its predicate
against the signed-in user. Denials are a generic 403 so the response never
reveals whether someone else's document exists.

Predicates receive (user, obj, ctx). ``ctx`` carries what the predicate can't
read off the object itself: ``household`` (the loaded household a shared
document points at) and, for contribution rules, ``contribution``.
"""

from typing import Any, Callable

from fastapi import HTTPException, status

Predicate = Callable[[Any, Any, dict], bool]


def _owner(user, obj, ctx) -> bool:
    return obj.user_id == user.id


def _household_member(user, obj, ctx) -> bool:
    household = ctx.get("household")
    if household is None or getattr(obj, "household_id", None) is None:
        return False
    return household.id == obj.household_id and user.id in household.member_ids


def _owner_or_member(user, obj, ctx) -> bool:
    return _owner(user, obj, ctx) or _household_member(user, obj, ctx)


def _own_contribution(user, obj, ctx) -> bool:
    """Everyone edits only their own contributions; orphaned ones belong to the goal owner."""
    contribution = ctx.get("contribution")
    if contribution is None or not _owner_or_member(user, obj, ctx):
        return False
    if contribution.user_id is None:
        return _owner(user, obj, ctx)
    return contribution.user_id == user.id


def _is_household_member(user, household, ctx) -> bool:
    return user.id in household.member_ids


def _is_household_owner(user, household, ctx) -> bool:
    return household.owner_id == user.id


def _may_leave(user, household, ctx) -> bool:
    return _is_household_member(user, household, ctx) and not _is_household_owner(user, household, ctx)


def _invitee(user, invitation, ctx) -> bool:
    return invitation.invited_email.lower() == user.email.lower()


def _invitee_pending(user, invitation, ctx) -> bool:
    return _invitee(user, invitation, ctx) and invitation.status == "pending"


def _invitation_household_owner(user, invitation, ctx) -> bool:
    household = ctx.get("household")
    return household is not None and household.owner_id == user.id


RULES: dict[tuple[str, str], Predicate] = {
    # Personal documents
    ("asset", "read"): _owner,
    ("asset", "write"): _owner,
    ("liability", "read"): _owner,
    ("liability", "write"): _owner,
    ("investment", "read"): _owner,
    ("investment", "write"): _owner,
    ("category", "write"): _owner,

    # Shareable documents
    ("saving_goal", "read"): _owner_or_member,
    ("saving_goal", "write"): _owner,
    ("saving_goal", "contribute"): _owner_or_member,
    ("saving_goal", "edit_contribution"): _own_contribution,
    ("transaction", "read"): _owner_or_member,
    ("transaction", "write"): _owner,

    # Households
    ("household", "read"): _is_household_member,
    ("household", "write"): _is_household_owner,
    ("household", "leave"): _may_leave,

    # Invitations
    ("invitation", "read"): lambda u, i, c: _invitee(u, i, c) or _invitation_household_owner(u, i, c),
    ("invitation", "respond"): _invitee_pending,
    ("invitation", "cancel"): _invitation_household_owner,
}


def is_allowed(user, resource: str, action: str, obj, **ctx) -> bool:
    rule = RULES.get((resource, action))
    if rule is None or obj is None:
        return False
    return bool(rule(user, obj, ctx))


def authorize(user, resource: str, action: str, obj, **ctx) -> None:
    if not is_allowed(user, resource, action, obj, **ctx):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to do that",
        )
