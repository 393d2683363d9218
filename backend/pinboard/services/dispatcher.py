"""Notification dispatcher - device registrations and multi-device fan-out."""
import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import InvalidInput, NotFound
from ..models import NotificationDelivery, NotificationDevice, NotificationLog
from ..utils.db_utils import retry_on_lock
from ..utils.text import (
    display_name_for_email,
    normalize_email,
    normalize_optional,
    normalize_token,
    truncate,
)
from .lifecycle import utcnow
from .push_sender import (
    ENVIRONMENT_PRODUCTION,
    VALID_ENVIRONMENTS,
    DeliveryResult,
    PushNotification,
    PushSenderService,
)

logger = logging.getLogger(__name__)

PLATFORM_IOS = "ios"
VALID_PLATFORMS = (PLATFORM_IOS,)

MESSAGE_PREVIEW_LENGTH = 140
REPLY_THREAD_ID = "whiteboard-replies"
BROADCAST_THREAD_ID = "admin-broadcast"


@dataclass
class BroadcastResult:
    targets: List[str]
    delivered: int


class NotificationDispatcher:
    """Registers device tokens and pushes notifications to every active device of a user."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        push_sender: PushSenderService,
        default_environment: str = ENVIRONMENT_PRODUCTION,
    ):
        self._session_factory = session_factory
        self._push_sender = push_sender
        self.default_environment = (
            default_environment if default_environment in VALID_ENVIRONMENTS else ENVIRONMENT_PRODUCTION
        )

    def is_configured(self) -> bool:
        return self._push_sender.is_configured()

    async def register_device(
        self,
        email: str,
        device_token: str,
        platform: Optional[str] = None,
        environment: Optional[str] = None,
        app_version: Optional[str] = None,
        os_version: Optional[str] = None,
    ) -> NotificationDevice:
        """Register or refresh a device token (upsert by token, reactivates).

        The app calls this on every launch, so it must be idempotent.
        """
        email = normalize_email(email)
        token = normalize_token(device_token)
        if not email or not token:
            raise InvalidInput("Email and device token are required.")

        platform = (platform or PLATFORM_IOS).strip().lower()
        if platform not in VALID_PLATFORMS:
            platform = PLATFORM_IOS

        environment = (environment or self.default_environment).strip().lower()
        if environment not in VALID_ENVIRONMENTS:
            environment = self.default_environment

        fields = {
            "email": email,
            "platform": platform,
            "environment": environment,
            "app_version": normalize_optional(app_version),
            "os_version": normalize_optional(os_version),
            "is_active": True,
        }

        async def upsert() -> NotificationDevice:
            async with self._session_factory() as session:
                now = utcnow()
                result = await session.execute(
                    select(NotificationDevice).where(NotificationDevice.device_token == token)
                )
                device = result.scalar_one_or_none()

                if device is None:
                    device = NotificationDevice(device_token=token, registered_at=now, **fields)
                    session.add(device)
                else:
                    for key, value in fields.items():
                        setattr(device, key, value)
                device.updated_at = now
                device.last_used_at = now

                try:
                    await session.commit()
                except IntegrityError:
                    # Another request inserted the same token first
                    await session.rollback()
                    await session.execute(
                        update(NotificationDevice)
                        .where(NotificationDevice.device_token == token)
                        .values(updated_at=now, last_used_at=now, **fields)
                    )
                    await session.commit()
                    result = await session.execute(
                        select(NotificationDevice).where(NotificationDevice.device_token == token)
                    )
                    device = result.scalar_one()
                return device

        device = await retry_on_lock(upsert)
        logger.info(f"Registered device token {token[:16]}... for {email} ({environment})")
        return device

    async def unregister_device(self, email: str, device_token: str) -> None:
        """Deactivate an (email, token) pair. Missing rows are not an error."""
        email = normalize_email(email)
        token = normalize_token(device_token)
        if not email or not token:
            return

        async def deactivate():
            async with self._session_factory() as session:
                now = utcnow()
                await session.execute(
                    update(NotificationDevice)
                    .where(
                        and_(
                            NotificationDevice.device_token == token,
                            NotificationDevice.email == email,
                        )
                    )
                    .values(is_active=False, updated_at=now, last_used_at=now)
                )
                await session.commit()

        await retry_on_lock(deactivate)
        logger.info(f"Unregistered device token {token[:16]}... for {email}")

    async def list_active_devices(self, email: Optional[str] = None) -> List[NotificationDevice]:
        """Active registrations, most recently updated first."""
        query = select(NotificationDevice).where(NotificationDevice.is_active.is_(True))
        email = normalize_email(email)
        if email:
            query = query.where(NotificationDevice.email == email)

        async with self._session_factory() as session:
            result = await session.execute(
                query.order_by(NotificationDevice.updated_at.desc(), NotificationDevice.id.desc())
            )
            return list(result.scalars().all())

    async def notify_reply(
        self,
        receiver_email: str,
        sender_email: str,
        pin_id: int,
        message_text: str,
        message_id: int,
        sender_author: Optional[str] = None,
    ) -> int:
        """Tell a pin's creator that someone replied.

        Returns:
            Number of devices that accepted the push
        """
        receiver = normalize_email(receiver_email)
        if not receiver:
            return 0

        sender_name = self.resolve_sender_descriptor(sender_email, sender_author)
        extra: Dict[str, Any] = {
            "type": "message.reply",
            "pinId": pin_id,
            "messageId": message_id,
            "senderEmail": normalize_email(sender_email),
            "senderName": sender_name,
            "messagePreview": truncate(message_text or "", MESSAGE_PREVIEW_LENGTH),
        }
        author = normalize_optional(sender_author)
        if author:
            extra["author"] = author

        notification = PushNotification(
            title=f"📌 {sender_name} replied to your pin!",
            body="Check out what they said 👀",
            collapse_id=f"message_reply_{pin_id}",
            thread_id=REPLY_THREAD_ID,
            category="MESSAGE_REPLY",
            content_available=True,
            extra=extra,
        )

        sent = await self.send_to_email(receiver, notification)
        logger.info(f"Message reply notification for {receiver} attempted -> {sent} deliveries")
        return sent

    @staticmethod
    def resolve_sender_descriptor(sender_email: str, author: Optional[str]) -> str:
        """Explicit author name if given, else a name derived from the email."""
        author = normalize_optional(author)
        if author:
            return author
        return display_name_for_email(sender_email)

    async def send_to_email(self, email: str, notification: PushNotification) -> int:
        """Fan a notification out to every active device of one user.

        Each device is sent concurrently with its own timeout; failures are
        recorded per device and never stop the others.
        """
        email = normalize_email(email)
        if not email:
            return 0

        if not self.is_configured():
            logger.debug(f"Push not configured, skipping notification for {email}")
            return 0

        devices = [
            device for device in await self.list_active_devices(email)
            if (device.platform or PLATFORM_IOS) == PLATFORM_IOS
        ]
        if not devices:
            logger.debug(f"No active devices for {email}, skipping push")
            return 0

        results = await asyncio.gather(
            *(
                self._push_sender.send(
                    device.device_token,
                    notification,
                    device.environment or self.default_environment,
                )
                for device in devices
            ),
            return_exceptions=True,
        )

        outcomes = []
        for device, result in zip(devices, results):
            if isinstance(result, BaseException):
                logger.error(f"Push to {device.device_token[:16]}... raised: {result}")
                result = DeliveryResult(False, str(result))
            outcomes.append((device, result))

        delivered = sum(1 for _, result in outcomes if result.success)
        await self._record(email, notification, outcomes, delivered)

        logger.info(f"Push notifications for {email}: {delivered} success, {len(outcomes) - delivered} failed")
        return delivered

    async def _record(
        self,
        email: str,
        notification: PushNotification,
        outcomes: list,
        delivered: int,
    ):
        """Store per-device outcomes, touch devices that accepted, audit on success."""
        now = utcnow()
        try:
            async with self._session_factory() as session:
                for device, result in outcomes:
                    session.add(NotificationDelivery(
                        email=email,
                        device_token=device.device_token,
                        environment=device.environment or self.default_environment,
                        collapse_id=notification.collapse_id,
                        success=result.success,
                        detail=result.detail,
                        attempted_at=now,
                    ))

                accepted = [device.device_token for device, result in outcomes if result.success]
                if accepted:
                    await session.execute(
                        update(NotificationDevice)
                        .where(NotificationDevice.device_token.in_(accepted))
                        .values(last_used_at=now)
                    )

                if delivered > 0:
                    session.add(NotificationLog(
                        email=email,
                        title=notification.title,
                        body=notification.body,
                        payload=json.dumps(notification.extra, ensure_ascii=False),
                        created_at=now,
                    ))

                await retry_on_lock(session.commit)
        except Exception as e:
            # Delivery already happened; bookkeeping must not turn it into an error
            logger.error(f"Failed to record notification outcome for {email}: {e}")

    async def broadcast(
        self,
        title: str,
        body: str,
        target_email: Optional[str] = None,
        send_all: bool = False,
        extra: Optional[Dict[str, Any]] = None,
    ) -> BroadcastResult:
        """Admin push to one email or every distinct email with an active device.

        Raises:
            InvalidInput: missing title/body or neither target nor send_all
            NotFound: no target devices
        """
        title = (title or "").strip()
        body = (body or "").strip()
        if not title or not body:
            raise InvalidInput("A title and message body are required.")

        if send_all:
            devices = await self.list_active_devices()
            targets = sorted({normalize_email(device.email) for device in devices} - {""})
        else:
            target = normalize_email(target_email)
            if not target:
                raise InvalidInput('Provide a target email or choose "Send to everyone".')
            targets = [target]

        if not targets:
            raise NotFound("No target devices were found for the requested action.")

        collapse_id = "admin_" + hashlib.sha1((title + body).encode("utf-8")).hexdigest()[:24]

        delivered = 0
        for email in targets:
            payload: Dict[str, Any] = {"type": "admin.broadcast", "targetEmail": email}
            payload.update(extra or {})
            delivered += await self.send_to_email(
                email,
                PushNotification(
                    title=title,
                    body=body,
                    collapse_id=collapse_id,
                    thread_id=BROADCAST_THREAD_ID,
                    category="ADMIN_BROADCAST",
                    extra=payload,
                ),
            )

        logger.info(f"Admin broadcast to {len(targets)} recipients -> {delivered} deliveries")
        return BroadcastResult(targets=targets, delivered=delivered)
