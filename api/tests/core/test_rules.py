"""
Unit tests for the access rules: predicates evaluated against plain objects.
"""
import uuid
from types import SimpleNamespace as NS

import pytest
from fastapi import HTTPException

from app.core.rules import authorize, is_allowed

OWNER = NS(id=uuid.uuid4(), email="owner@example.com")
MEMBER = NS(id=uuid.uuid4(), email="member@example.com")
STRANGER = NS(id=uuid.uuid4(), email="stranger@example.com")

HOUSEHOLD = NS(id=uuid.uuid4(), owner_id=OWNER.id, member_ids=[OWNER.id, MEMBER.id])


def _goal(household_id=None):
    return NS(user_id=OWNER.id, household_id=household_id)


class TestPersonalDocuments:
    @pytest.mark.parametrize("resource", ["asset", "liability", "investment"])
    def test_owner_only(self, resource):
        doc = NS(user_id=OWNER.id)
        assert is_allowed(OWNER, resource, "read", doc)
        assert is_allowed(OWNER, resource, "write", doc)
        assert not is_allowed(STRANGER, resource, "read", doc)

    def test_unknown_rule_denied(self):
        assert not is_allowed(OWNER, "asset", "explode", NS(user_id=OWNER.id))

    def test_missing_object_denied(self):
        assert not is_allowed(OWNER, "asset", "read", None)

    def test_authorize_raises_generic_403(self):
        with pytest.raises(HTTPException) as exc:
            authorize(STRANGER, "asset", "read", NS(user_id=OWNER.id))
        assert exc.value.status_code == 403
        assert exc.value.detail == "You don't have permission to do that"


class TestSharedDocuments:
    def test_member_reads_shared_goal(self):
        goal = _goal(HOUSEHOLD.id)
        assert is_allowed(MEMBER, "saving_goal", "read", goal, household=HOUSEHOLD)
        assert is_allowed(MEMBER, "saving_goal", "contribute", goal, household=HOUSEHOLD)

    def test_member_cannot_edit_goal(self):
        assert not is_allowed(MEMBER, "saving_goal", "write", _goal(HOUSEHOLD.id), household=HOUSEHOLD)

    def test_personal_goal_hidden_from_member(self):
        assert not is_allowed(MEMBER, "saving_goal", "read", _goal(), household=HOUSEHOLD)

    def test_household_must_match(self):
        other = NS(id=uuid.uuid4(), owner_id=MEMBER.id, member_ids=[MEMBER.id])
        assert not is_allowed(MEMBER, "transaction", "read", NS(user_id=OWNER.id, household_id=HOUSEHOLD.id), household=other)

    def test_own_contribution_only(self):
        goal = _goal(HOUSEHOLD.id)
        mine = NS(user_id=MEMBER.id)
        theirs = NS(user_id=OWNER.id)
        assert is_allowed(MEMBER, "saving_goal", "edit_contribution", goal, household=HOUSEHOLD, contribution=mine)
        assert not is_allowed(MEMBER, "saving_goal", "edit_contribution", goal, household=HOUSEHOLD, contribution=theirs)

    def test_orphaned_contribution_belongs_to_goal_owner(self):
        goal = _goal(HOUSEHOLD.id)
        orphan = NS(user_id=None)
        assert is_allowed(OWNER, "saving_goal", "edit_contribution", goal, household=HOUSEHOLD, contribution=orphan)
        assert not is_allowed(MEMBER, "saving_goal", "edit_contribution", goal, household=HOUSEHOLD, contribution=orphan)


class TestHouseholds:
    def test_read_write_leave(self):
        assert is_allowed(MEMBER, "household", "read", HOUSEHOLD)
        assert not is_allowed(STRANGER, "household", "read", HOUSEHOLD)
        assert not is_allowed(MEMBER, "household", "write", HOUSEHOLD)
        assert is_allowed(MEMBER, "household", "leave", HOUSEHOLD)
        assert not is_allowed(OWNER, "household", "leave", HOUSEHOLD)


class TestInvitations:
    def _invitation(self, status="pending"):
        return NS(invited_email="Stranger@Example.com", status=status, household_id=HOUSEHOLD.id)

    def test_invitee_matches_case_insensitively(self):
        assert is_allowed(STRANGER, "invitation", "read", self._invitation())
        assert is_allowed(STRANGER, "invitation", "respond", self._invitation())

    def test_declined_cannot_be_answered(self):
        assert not is_allowed(STRANGER, "invitation", "respond", self._invitation("declined"))

    def test_household_owner_sees_and_cancels(self):
        invitation = self._invitation()
        assert is_allowed(OWNER, "invitation", "read", invitation, household=HOUSEHOLD)
        assert is_allowed(OWNER, "invitation", "cancel", invitation, household=HOUSEHOLD)
        assert not is_allowed(MEMBER, "invitation", "cancel", invitation, household=HOUSEHOLD)
