"""Bearer-token lookup against the login service's users table."""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import User
from ..utils.text import normalize_email

logger = logging.getLogger(__name__)

USER_STATUS_REGULAR = "regular"
USER_STATUS_MUTED = "muted"
USER_STATUS_BANNED = "banned"
USER_STATUSES = (USER_STATUS_REGULAR, USER_STATUS_MUTED, USER_STATUS_BANNED)


def normalize_user_status(status: Optional[str]) -> str:
    """Unknown or missing statuses count as regular."""
    normalized = (status or "").strip().lower()
    return normalized if normalized in USER_STATUSES else USER_STATUS_REGULAR


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email: str
    status: str = USER_STATUS_REGULAR

    @property
    def is_suspended(self) -> bool:
        """Muted and banned users may read but not write."""
        return self.status in (USER_STATUS_MUTED, USER_STATUS_BANNED)


class AuthGateway(Protocol):
    async def resolve_user(self, token: str) -> Optional[AuthenticatedUser]:
        ...


class DatabaseAuthGateway:
    """Resolves login tokens issued by the login service."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def resolve_user(self, token: str) -> Optional[AuthenticatedUser]:
        token = (token or "").strip()
        if not token:
            return None

        async with self._session_factory() as session:
            result = await session.execute(
                select(User.id, User.email, User.status).where(User.login_token == token).limit(1)
            )
            row = result.first()

        if row is None:
            logger.debug("No user for presented login token")
            return None

        return AuthenticatedUser(
            id=row.id,
            email=normalize_email(row.email),
            status=normalize_user_status(row.status),
        )
