"""
Outbound notifications.

Notifications are best effort: they run after the review is committed and
a failed delivery is logged, never raised.
"""

from __future__ import annotations

import uuid
from functools import lru_cache
from typing import Optional

import httpx
import structlog

from sideline.core.config import get_settings

log = structlog.get_logger()


class Notifier:
    """Posts membership events to a webhook (e.g. the mailer)."""

    def __init__(
        self,
        webhook_url: str = "",
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def membership_granted(
        self,
        user_id: uuid.UUID,
        team_id: uuid.UUID,
        team_name: Optional[str] = None,
        roles: Optional[list[str]] = None,
    ) -> bool:
        """Tell a user they joined a team. Returns whether delivery succeeded."""
        return await self._post({
            "type": "membership.granted",
            "user_id": str(user_id),
            "team_id": str(team_id),
            "team_name": team_name,
            "roles": roles or [],
        })

    async def request_rejected(
        self,
        user_id: uuid.UUID,
        team_name: Optional[str] = None,
        roles: Optional[list[str]] = None,
        reason: Optional[str] = None,
    ) -> bool:
        """Tell a user their request was turned down, with the reviewer's reason."""
        return await self._post({
            "type": "request.rejected",
            "user_id": str(user_id),
            "team_name": team_name,
            "roles": roles or [],
            "reason": reason,
        })

    async def _post(self, payload: dict) -> bool:
        if not self.webhook_url:
            log.info("notify.skipped", reason="no webhook configured", event=payload["type"])
            return False

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning(
                "notify.failed", error=str(exc), event=payload["type"], user_id=payload["user_id"]
            )
            return False

        log.info("notify.sent", event=payload["type"], user_id=payload["user_id"])
        return True


@lru_cache
def get_notifier() -> Notifier:
    settings = get_settings()
    return Notifier(
        webhook_url=settings.notification_webhook_url,
        timeout_seconds=settings.notification_timeout_seconds,
    )
