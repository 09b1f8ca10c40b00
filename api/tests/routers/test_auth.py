"""
Google sign-in linking, with token verification patched out.
"""
import uuid

import pytest
from fastapi import Response

from app.core.security import verify_password
from app.models.user import User
from app.routers import auth
from app.schemas.user import GoogleLogin


def _account(verified):
    return User(
        id=uuid.uuid4(),
        email="vic@example.com",
        full_name="Vic",
        hashed_password="$2b$12$existingpasswordhashexistingpasswordhashexistingpas",
        auth_provider="password",
        is_verified=verified,
        is_active=True,
    )


@pytest.fixture
def google_claims(monkeypatch):
    async def verified(id_token):
        return {"sub": "google-sub-1", "email": "Vic@Example.com", "email_verified": "true", "name": "Vic"}

    monkeypatch.setattr(auth, "_verify_google_token", verified)


class TestGoogleLinking:
    @pytest.mark.asyncio
    async def test_unverified_password_account_becomes_google_only(self, make_session, google_claims):
        # Someone registered this address with a password but never verified it
        account = _account(verified=False)
        db = make_session(results=[None, account])

        user = await auth.google_login(GoogleLogin(id_token="t"), Response(), db=db)

        assert user is account
        assert user.hashed_password is None
        assert user.auth_provider == "google"
        assert user.provider_subject == "google-sub-1"
        assert user.is_verified is True
        assert not verify_password("whatever-they-chose", user.hashed_password)

    @pytest.mark.asyncio
    async def test_verified_password_account_keeps_its_password(self, make_session, google_claims):
        account = _account(verified=True)
        original_hash = account.hashed_password
        db = make_session(results=[None, account])

        user = await auth.google_login(GoogleLogin(id_token="t"), Response(), db=db)

        assert user.hashed_password == original_hash
        assert user.auth_provider == "password"
        assert user.provider_subject == "google-sub-1"
