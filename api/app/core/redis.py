import redis.asyncio as aioredis

from app.core.config import settings

# Shared async Redis client (created lazily, reused across requests)
_redis: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _redis


# ─── Refresh-token revocation ──────────────────────────────────────────────────

_BLACKLIST_PREFIX = "rt_blacklist:"


async def blacklist_token(jti: str, ttl_seconds: int) -> None:
    """Revoke a refresh token JTI for the rest of its lifetime."""
    if ttl_seconds > 0:
        await get_redis().setex(f"{_BLACKLIST_PREFIX}{jti}", ttl_seconds, "1")


async def is_blacklisted(jti: str) -> bool:
    return await get_redis().exists(f"{_BLACKLIST_PREFIX}{jti}") == 1


# ─── Login lockout ─────────────────────────────────────────────────────────────

_FAIL_PREFIX = "login_fails:"
_LOCKOUT_SECONDS = 15 * 60
_MAX_ATTEMPTS = 5


async def record_login_failure(email: str) -> int:
    """Increment the failure counter; the first failure opens the lockout window."""
    r = get_redis()
    key = f"{_FAIL_PREFIX}{email.lower()}"
    count = await r.incr(key)
    if count == 1:
        await r.expire(key, _LOCKOUT_SECONDS)
    return count


async def is_locked_out(email: str) -> bool:
    count = await get_redis().get(f"{_FAIL_PREFIX}{email.lower()}")
    return int(count) >= _MAX_ATTEMPTS if count else False


async def clear_login_failures(email: str) -> None:
    await get_redis().delete(f"{_FAIL_PREFIX}{email.lower()}")


# ─── Verification email throttle ───────────────────────────────────────────────

_VERIFY_PREFIX = "verify_sent:"
_VERIFY_COOLDOWN_SECONDS = 60


async def claim_verification_slot(email: str) -> bool:
    """Return True if a verification email may be sent now (one per minute per address)."""
    return bool(
        await get_redis().set(
            f"{_VERIFY_PREFIX}{email.lower()}", "1", ex=_VERIFY_COOLDOWN_SECONDS, nx=True
        )
    )
