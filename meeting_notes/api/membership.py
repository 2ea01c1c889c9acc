"""
Membership validation for the Whop storefront
"""
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meeting_notes.api.auth import AuthUser, get_current_user
from meeting_notes.services import membership_service as membership
from meeting_notes.utils.errors import RelayError
from meeting_notes.utils.helpers import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


class MembershipRequest(BaseModel):
    memberId: Optional[str] = None


@router.post("/validate-membership")
async def validate_membership(
    body: MembershipRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    if not body.memberId:
        raise RelayError(400, "memberId required")

    try:
        valid = await membership.membership_service.validate(body.memberId)
    except httpx.HTTPError as e:
        logger.error(f"Membership validation error: {e}")
        raise RelayError(500, "Failed to validate membership") from e

    return {
        "valid": valid,
        "memberId": body.memberId,
        "validatedAt": utc_now().isoformat(),
    }
