"""Reply thread - durable replies addressed to a pin's creator."""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import InvalidInput, PinNotFound
from ..models import Message, Pin
from ..utils.db_utils import retry_on_lock
from ..utils.text import normalize_email, normalize_optional
from .dispatcher import NotificationDispatcher
from .lifecycle import utcnow

logger = logging.getLogger(__name__)

BOX_RECEIVED = "received"
BOX_SENT = "sent"


class ReplyThread:
    """Append-only conversation attached to pins.

    Messages are never deleted here; they survive the pin they answer.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: NotificationDispatcher,
        notify_in_background: bool = False,
    ):
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._notify_in_background = notify_in_background
        self._pending: Set[asyncio.Task] = set()

    async def post(
        self,
        pin_id: int,
        sender_email: str,
        text: str,
        author: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Message:
        """Persist a reply and notify the pin's creator.

        Raises:
            InvalidInput: empty text or sender
            PinNotFound: the pin no longer exists
        """
        text = (text or "").strip()
        sender = normalize_email(sender_email)
        author = normalize_optional(author)
        if not text:
            raise InvalidInput("Message text is required.")
        if not sender:
            raise InvalidInput("Sender email is required.")

        created_at = now or utcnow()

        async def attempt() -> Message:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        select(Pin.creator_email).where(Pin.id == pin_id)
                    )
                    creator_email = result.scalar_one_or_none()
                    if creator_email is None:
                        raise PinNotFound()

                    message = Message(
                        pin_id=pin_id,
                        sender_email=sender,
                        receiver_email=normalize_email(creator_email),
                        text=text,
                        author=author,
                        created_at=created_at,
                    )
                    session.add(message)
                    await session.flush()
                return message

        message = await retry_on_lock(attempt)
        logger.info(f"Message {message.id} on pin {pin_id} from {sender} to {message.receiver_email}")

        if message.sender_email == message.receiver_email:
            logger.debug("Skipping push because sender and receiver are identical")
        elif self._notify_in_background:
            task = asyncio.create_task(self._notify(message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            await self._notify(message)

        return message

    async def _notify(self, message: Message) -> int:
        """Send the reply notification; failures are logged, never raised."""
        try:
            return await self._dispatcher.notify_reply(
                receiver_email=message.receiver_email,
                sender_email=message.sender_email,
                pin_id=message.pin_id,
                message_text=message.text,
                message_id=message.id,
                sender_author=message.author,
            )
        except Exception as e:
            logger.error(f"Reply notification for message {message.id} failed: {e}")
            return 0

    async def list(self, owner_email: str, box: str = BOX_RECEIVED) -> List[Message]:
        """Messages received by or sent by owner_email, newest first."""
        owner = normalize_email(owner_email)
        column = Message.sender_email if box == BOX_SENT else Message.receiver_email

        async with self._session_factory() as session:
            result = await session.execute(
                select(Message)
                .where(column == owner)
                .order_by(Message.created_at.desc(), Message.id.desc())
            )
            return list(result.scalars().all())

    async def drain(self):
        """Wait for background notifications still in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
