"""
Whop membership lookups
"""
import logging
from typing import Optional

import httpx

from meeting_notes.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class MembershipService:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.WHOP_API_KEY
        self.base_url = (base_url or settings.WHOP_API_URL).rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def validate(self, member_id: str) -> bool:
        """
        Ask Whop whether the membership is valid. Without an API key the
        check is not configured and every membership is accepted.
        """
        if not self.is_configured:
            logger.warning(f"Membership validation not configured; accepting {member_id}")
            return True

        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                f"{self.base_url}/memberships/{member_id}",
                headers={"Authorization": f"Bearer {self.api_key}"},
            )

        if response.status_code == 404:
            return False
        response.raise_for_status()
        return bool(response.json().get("valid", False))


membership_service = MembershipService()
