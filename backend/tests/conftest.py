"""Shared fixtures: a fresh SQLite database per test and fake collaborators."""
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from pinboard.config import Settings
from pinboard.database import close_db, init_db
from pinboard.main import create_app
from pinboard.services.auth_gateway import AuthenticatedUser
from pinboard.services.container import build_pinboard
from pinboard.services.push_sender import DeliveryResult, PushNotification


class FakePushSender:
    """Stands in for APNs; outcomes can be set per device token."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: List[Tuple[str, PushNotification, str]] = []
        self.outcomes: Dict[str, object] = {}

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, device_token: str, notification: PushNotification, environment: str) -> DeliveryResult:
        self.sent.append((device_token, notification, environment))
        outcome = self.outcomes.get(device_token, True)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is True:
            return DeliveryResult(True)
        return DeliveryResult(False, "BadDeviceToken")


class StaticAuthGateway:
    """Token -> user lookup backed by a dict."""

    def __init__(self, users: Optional[Dict[str, AuthenticatedUser]] = None):
        self.users = users or {}

    async def resolve_user(self, token: str) -> Optional[AuthenticatedUser]:
        return self.users.get(token)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_path=str(tmp_path),
        database_url=None,
        reaper_enabled=False,
        notify_in_background=False,
        enforce_single_live_pin=True,
        admin_api_token="admin-secret",
        apns_use_sandbox=False,
    )


@pytest.fixture
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture
def auth_gateway() -> StaticAuthGateway:
    return StaticAuthGateway({
        "token-alice": AuthenticatedUser(id=1, email="alice@x.com"),
        "token-bob": AuthenticatedUser(id=2, email="bob@x.com"),
        "token-muted": AuthenticatedUser(id=3, email="muted@x.com", status="muted"),
        "token-banned": AuthenticatedUser(id=4, email="banned@x.com", status="banned"),
    })


@pytest.fixture
async def pinboard(settings, push_sender, auth_gateway):
    board = build_pinboard(settings, push_sender=push_sender, auth_gateway=auth_gateway)
    await init_db(board.engine, settings.grid_rows, settings.grid_cols)
    yield board
    await board.reply_thread.drain()
    await close_db(board.engine)


@pytest.fixture
def slot_store(pinboard):
    return pinboard.slot_store


@pytest.fixture
def dispatcher(pinboard):
    return pinboard.dispatcher


@pytest.fixture
async def client(settings, pinboard):
    app = create_app(settings, pinboard)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
