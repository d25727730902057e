"""
Approval and rejection notification tests against a mocked webhook.
"""

from __future__ import annotations

import json
import uuid

import httpx

from sideline.core.notifications import Notifier

USER = uuid.uuid4()
TEAM = uuid.uuid4()


async def test_posts_payload():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(204)

    notifier = Notifier("http://mailer.test/hooks", transport=httpx.MockTransport(handler))
    assert await notifier.membership_granted(USER, TEAM, team_name="Hawks", roles=["coach"])
    assert received == [{
        "type": "membership.granted",
        "user_id": str(USER),
        "team_id": str(TEAM),
        "team_name": "Hawks",
        "roles": ["coach"],
    }]


async def test_skipped_without_url():
    assert await Notifier("").membership_granted(USER, TEAM) is False


async def test_server_error_is_not_raised():
    notifier = Notifier(
        "http://mailer.test/hooks",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    assert await notifier.membership_granted(USER, TEAM) is False


async def test_connection_error_is_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    notifier = Notifier("http://mailer.test/hooks", transport=httpx.MockTransport(handler))
    assert await notifier.membership_granted(USER, TEAM) is False


async def test_rejection_payload():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(202)

    notifier = Notifier("http://mailer.test/hooks", transport=httpx.MockTransport(handler))
    assert await notifier.request_rejected(
        USER, team_name="Hawks", roles=["parent"], reason="Roster is full"
    )
    assert received == [{
        "type": "request.rejected",
        "user_id": str(USER),
        "team_name": "Hawks",
        "roles": ["parent"],
        "reason": "Roster is full",
    }]


async def test_rejection_failure_is_not_raised():
    notifier = Notifier(
        "http://mailer.test/hooks",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    assert await notifier.request_rejected(USER, team_name="Hawks") is False
