import logging
import uuid
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.redis import (
    blacklist_token,
    claim_verification_slot,
    clear_login_failures,
    is_blacklisted,
    is_locked_out,
    record_login_failure,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    create_verification_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.user import User
from app.schemas.user import GoogleLogin, ResendVerification, UserCreate, UserLogin, UserResponse, VerifyEmail
from app.services.email import send_verification_email

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/auth", tags=["auth"])

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
_GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

# httpOnly cookies: strict+secure in production, lax in dev for cross-port localhost
_SECURE = settings.environment != "development"
_SAMESITE = "strict" if settings.environment != "development" else "lax"


def _set_auth_cookies(response: Response, user_id: str) -> None:
    response.set_cookie(
        key="access_token",
        value=create_access_token({"sub": user_id}),
        httponly=True,
        secure=_SECURE,
        samesite=_SAMESITE,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    response.set_cookie(
        key="refresh_token",
        value=create_refresh_token({"sub": user_id}),
        httponly=True,
        secure=_SECURE,
        samesite=_SAMESITE,
        max_age=settings.refresh_token_expire_days * 86400,
        path="/",
    )


async def _revoke(token_data: dict) -> None:
    jti = token_data.get("jti")
    if jti:
        exp = token_data.get("exp", 0)
        ttl = max(0, int(exp - datetime.now(timezone.utc).timestamp()))
        await blacklist_token(jti, ttl)


async def _send_verification(user: User) -> None:
    token = create_verification_token(str(user.id), user.email)
    sent = await run_in_threadpool(send_verification_email, user.email, user.display_name, token)
    if not sent:
        logger.warning("Verification email for user %s was not delivered", user.id)


@router.post("/register", response_model=UserResponse, status_code=201)
@limiter.limit("5/hour")
async def register(request: Request, payload: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a password account. No cookies are issued until the email is verified."""
    email = payload.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        auth_provider="password",
        is_verified=False,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    await claim_verification_slot(email)
    await _send_verification(user)
    logger.info("Registered user %s", user.id)
    return user


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(payload: VerifyEmail, db: AsyncSession = Depends(get_db)):
    token_data = decode_token(payload.token)
    if token_data is None or token_data.get("type") != "verify":
        raise HTTPException(status_code=400, detail="Invalid or expired verification link")

    try:
        user_id = uuid.UUID(token_data.get("sub", ""))
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid or expired verification link")

    user = await db.get(User, user_id)
    if user is None or user.email.lower() != token_data.get("email"):
        raise HTTPException(status_code=400, detail="Invalid or expired verification link")

    user.is_verified = True
    await db.flush()
    return user


@router.post("/resend-verification", status_code=202)
@limiter.limit("5/hour")
async def resend_verification(request: Request, payload: ResendVerification, db: AsyncSession = Depends(get_db)):
    """Always 202 so the response doesn't reveal whether the address is registered."""
    email = payload.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is not None and not user.is_verified and await claim_verification_slot(email):
        await _send_verification(user)
    return {"ok": True}


@router.post("/login", response_model=UserResponse)
@limiter.limit("10/minute;30/hour")
async def login(
    request: Request,
    payload: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    email = payload.email.lower()
    # Lockout is checked before any DB lookup
    if await is_locked_out(email):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Account temporarily locked due to too many failed attempts. Try again in 15 minutes.",
        )

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.hashed_password):
        # Unknown emails record a failure too
        await record_login_failure(email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email address before signing in",
        )

    await clear_login_failures(email)
    _set_auth_cookies(response, str(user.id))
    return user


async def _verify_google_token(id_token: str) -> dict:
    if not settings.google_client_id:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
    except httpx.HTTPError as exc:
        logger.error("Google tokeninfo request failed: %s", exc)
        raise HTTPException(status_code=502, detail="Could not reach Google. Please try again.")

    if resp.status_code != 200:
        raise HTTPException(status_code=401, detail="Invalid Google credential")
    claims = resp.json()
    if claims.get("aud") != settings.google_client_id or claims.get("iss") not in _GOOGLE_ISSUERS:
        raise HTTPException(status_code=401, detail="Invalid Google credential")
    if str(claims.get("email_verified")).lower() != "true" or not claims.get("email"):
        raise HTTPException(status_code=401, detail="Google account email is not verified")
    return claims


def _link_google_account(user: User, subject: str) -> None:
    """Attach a Google identity to the account registered under the same email.

    An unverified password account was never proven to belong to the address
    owner, so its password is dropped and the account becomes Google-only.
    """
    if not user.is_verified and user.hashed_password:
        logger.warning("Dropping unverified password on account %s linked to Google", user.id)
        user.hashed_password = None
        user.auth_provider = "google"
    user.provider_subject = subject
    user.is_verified = True


@router.post("/google", response_model=UserResponse)
async def google_login(payload: GoogleLogin, response: Response, db: AsyncSession = Depends(get_db)):
    """Sign in with a Google ID token; the first sign-in creates a verified account."""
    claims = await _verify_google_token(payload.id_token)
    subject = claims["sub"]
    email = claims["email"].lower()

    result = await db.execute(select(User).where(User.provider_subject == subject))
    user = result.scalar_one_or_none()
    if user is None:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(
                email=email,
                full_name=claims.get("name") or email.split("@")[0],
                auth_provider="google",
                provider_subject=subject,
                is_verified=True,
            )
            db.add(user)
            logger.info("Created account for Google sign-in %s", email)
        else:
            _link_google_account(user, subject)
        await db.flush()
        await db.refresh(user)

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    _set_auth_cookies(response, str(user.id))
    return user


@router.post("/refresh")
async def refresh_token(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    refresh = request.cookies.get("refresh_token")
    if not refresh:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No refresh token",
        )

    token_data = decode_token(refresh)
    if token_data is None or token_data.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    jti = token_data.get("jti")
    if jti and await is_blacklisted(jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
        )

    try:
        user_id = uuid.UUID(token_data.get("sub", ""))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    # Rotation: the old refresh token is revoked before new cookies go out
    await _revoke(token_data)
    _set_auth_cookies(response, str(user.id))
    return {"ok": True}


@router.post("/logout", status_code=204)
async def logout(request: Request, response: Response):
    refresh = request.cookies.get("refresh_token")
    if refresh:
        token_data = decode_token(refresh)
        if token_data:
            await _revoke(token_data)

    response.delete_cookie(key="access_token", path="/")
    response.delete_cookie(key="refresh_token", path="/")


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user
