"""Tests for login-token resolution."""
from pinboard.models import User
from pinboard.services.auth_gateway import DatabaseAuthGateway, normalize_user_status


async def test_resolves_token_to_normalized_user(pinboard):
    async with pinboard.session_factory() as session:
        session.add_all([
            User(email=" Alice@X.com ", login_token="tok-a", status="MUTED"),
            User(email="bob@x.com", login_token="tok-b", status=None),
        ])
        await session.commit()

    gateway = DatabaseAuthGateway(pinboard.session_factory)

    alice = await gateway.resolve_user("tok-a")
    assert alice.email == "alice@x.com"
    assert alice.status == "muted"
    assert alice.is_suspended

    bob = await gateway.resolve_user(" tok-b ")
    assert bob.status == "regular"
    assert not bob.is_suspended

    assert await gateway.resolve_user("unknown") is None
    assert await gateway.resolve_user("") is None


def test_unknown_status_is_regular():
    assert normalize_user_status("suspended?") == "regular"
    assert normalize_user_status(" Banned ") == "banned"
