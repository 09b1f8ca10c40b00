"""
Household and invitation handlers driven directly against an in-memory session.
"""
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import requests
from fastapi import HTTPException

from app.core.config import settings
from app.models.household import EVENT_LOG_LIMIT, Household, HouseholdEvent, HouseholdMember, Invitation
from app.models.user import User
from app.routers import households
from app.schemas.household import InviteCreate, SplitSettingsUpdate
from app.services import email

OWNER = User(id=uuid.uuid4(), email="olivia@example.com", full_name="Olivia")
GUEST = User(id=uuid.uuid4(), email="gus@example.com", full_name="Gus")


def _household(*, invited=None, status="pending"):
    household = Household(id=uuid.uuid4(), owner_id=OWNER.id, name="Flat", split_type="equal")
    household.members.append(
        HouseholdMember(id=uuid.uuid4(), user_id=OWNER.id, name="Olivia", email=OWNER.email, share=Decimal(1))
    )
    invitation = None
    if invited:
        invitation = Invitation(
            id=uuid.uuid4(), household_id=household.id, invited_email=invited, invited_by=OWNER.id, status=status
        )
        household.invitations.append(invitation)
    return household, invitation


# ── invite ───────────────────────────────────────────────────────────────────

class TestInvite:
    @pytest.mark.asyncio
    async def test_invitation_committed_before_email_goes_out(self, make_session, monkeypatch):
        household, _ = _household()
        db = make_session(household)
        commits_when_sent = []
        monkeypatch.setattr(households, "send_invitation_email", lambda *args: commits_when_sent.append(db.commits))

        invitation = await households.invite(household.id, InviteCreate(email="Gus@Example.com"), user=OWNER, db=db)

        assert invitation.invited_email == "gus@example.com"
        assert invitation in household.invitations
        assert commits_when_sent == [1]

    @pytest.mark.asyncio
    async def test_failed_email_keeps_invitation(self, make_session, monkeypatch):
        def unreachable(*args, **kwargs):
            raise requests.ConnectionError("resend down")

        monkeypatch.setattr(settings, "resend_api_key", "re_test")
        monkeypatch.setattr(email.requests, "post", unreachable)
        household, _ = _household()
        db = make_session(household)

        invitation = await households.invite(household.id, InviteCreate(email="gus@example.com"), user=OWNER, db=db)

        assert invitation in household.invitations
        assert invitation.status == "pending"
        assert db.commits == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "address,status_code",
        [("olivia@example.com", 400), ("OLIVIA@example.com", 400), ("gus@example.com", 409)],
    )
    async def test_refusals(self, make_session, monkeypatch, address, status_code):
        monkeypatch.setattr(households, "send_invitation_email", lambda *args: None)
        household, _ = _household(invited="gus@example.com")
        db = make_session(household)
        with pytest.raises(HTTPException) as exc:
            await households.invite(household.id, InviteCreate(email=address), user=OWNER, db=db)
        assert exc.value.status_code == status_code
        assert db.commits == 0

    @pytest.mark.asyncio
    async def test_member_cannot_be_invited_again(self, make_session, monkeypatch):
        monkeypatch.setattr(households, "send_invitation_email", lambda *args: None)
        household, _ = _household()
        household.members.append(HouseholdMember(user_id=GUEST.id, name="Gus", email=GUEST.email, share=Decimal(1)))
        with pytest.raises(HTTPException) as exc:
            await households.invite(household.id, InviteCreate(email=GUEST.email), user=OWNER, db=make_session(household))
        assert exc.value.status_code == 409

    @pytest.mark.asyncio
    async def test_event_log_capped(self, make_session, monkeypatch):
        monkeypatch.setattr(households, "send_invitation_email", lambda *args: None)
        household, _ = _household()
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(EVENT_LOG_LIMIT):
            household.events.append(
                HouseholdEvent(actor_id=OWNER.id, actor_name="Olivia", message=f"old {i}", timestamp=start + timedelta(hours=i))
            )

        await households.invite(household.id, InviteCreate(email="gus@example.com"), user=OWNER, db=make_session(household))

        messages = [e.message for e in household.events]
        assert len(messages) == EVENT_LOG_LIMIT
        assert "old 0" not in messages
        assert "Olivia invited gus@example.com to the household." in messages


# ── accept ───────────────────────────────────────────────────────────────────

class TestAccept:
    @pytest.mark.asyncio
    async def test_joins_and_consumes_invitation_in_one_flush(self, make_session):
        household, invitation = _household(invited="gus@example.com")
        db = make_session(household, invitation)

        result = await households.accept_invitation(invitation.id, user=GUEST, db=db)

        assert GUEST.id in result.member_ids
        assert result.invitations == []
        assert result.member(GUEST.id).share == Decimal(1)
        # get_db commits both changes together
        assert db.commits == 0
        assert household.events[-1].message == "Gus joined the household."

    @pytest.mark.asyncio
    async def test_declined_invitation_is_gone(self, make_session):
        household, invitation = _household(invited="gus@example.com", status="declined")
        db = make_session(household, invitation)

        with pytest.raises(HTTPException) as exc:
            await households.accept_invitation(invitation.id, user=GUEST, db=db)

        assert exc.value.status_code == 410
        assert db.deleted == [invitation]
        assert db.commits == 1
        assert GUEST.id not in household.member_ids

    @pytest.mark.asyncio
    async def test_someone_else_cannot_accept(self, make_session):
        household, invitation = _household(invited="gus@example.com")
        stranger = User(id=uuid.uuid4(), email="eve@example.com", full_name="Eve")
        with pytest.raises(HTTPException) as exc:
            await households.accept_invitation(invitation.id, user=stranger, db=make_session(household, invitation))
        assert exc.value.status_code == 403
        assert invitation in household.invitations


# ── split settings ───────────────────────────────────────────────────────────

class TestSplitSettings:
    @pytest.mark.asyncio
    async def test_shares_total_checked_over_members(self, make_session):
        household, _ = _household()
        payload = SplitSettingsUpdate(
            split_type="shares",
            shares=[{"user_id": OWNER.id, "share": "2"}, {"user_id": OWNER.id, "share": "0"}],
        )
        with pytest.raises(HTTPException) as exc:
            await households.update_split_settings(household.id, payload, user=OWNER, db=make_session(household))
        assert exc.value.status_code == 422

    @pytest.mark.asyncio
    async def test_shares_applied(self, make_session):
        household, _ = _household()
        payload = SplitSettingsUpdate(split_type="shares", shares=[{"user_id": OWNER.id, "share": "3"}])
        result = await households.update_split_settings(household.id, payload, user=OWNER, db=make_session(household))
        assert result.split_type == "shares"
        assert result.member(OWNER.id).share == Decimal(3)
