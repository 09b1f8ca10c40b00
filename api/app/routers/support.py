import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool

from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.support import SupportRequest, SupportResponse
from app.services.email import send_support_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/support", tags=["support"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/", response_model=SupportResponse)
@limiter.limit("5/hour")
async def contact_support(
    request: Request,
    payload: SupportRequest,
    user: User = Depends(get_current_user),
):
    """Forward a message to the support inbox with the user as reply-to."""
    reply_to = payload.email or user.email
    success, message = await run_in_threadpool(send_support_email, payload.topic, payload.message, reply_to)
    if not success:
        logger.warning("Support request from user %s failed: %s", user.id, message)
        raise HTTPException(status_code=502, detail=message)
    return SupportResponse(success=True, message=message)
