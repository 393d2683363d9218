"""Push notification sender service using APNs for iOS."""
import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from aioapns import APNs, NotificationRequest, PushType

from ..errors import Unavailable

logger = logging.getLogger(__name__)

ENVIRONMENT_SANDBOX = "sandbox"
ENVIRONMENT_PRODUCTION = "production"
VALID_ENVIRONMENTS = (ENVIRONMENT_SANDBOX, ENVIRONMENT_PRODUCTION)


@dataclass(frozen=True)
class ApnsCredentials:
    """Provider token credentials issued by Apple."""
    key_path: str = ""  # Path to .p8 key file
    key_id: str = ""
    team_id: str = ""
    bundle_id: str = ""

    def is_complete(self) -> bool:
        if not all([self.key_path, self.key_id, self.team_id, self.bundle_id]):
            return False
        return os.path.isfile(self.key_path)


@dataclass
class PushNotification:
    """One logical notification, rendered identically for every device."""
    title: str
    body: str
    collapse_id: Optional[str] = None
    thread_id: Optional[str] = None
    category: Optional[str] = None
    content_available: bool = False
    badge: Optional[int] = None
    sound: str = "default"
    extra: Dict[str, Any] = field(default_factory=dict)

    def build_payload(self) -> dict:
        """Build the APNs JSON body; custom keys never override ``aps``."""
        aps: Dict[str, Any] = {
            "alert": {"title": self.title, "body": self.body},
            "sound": self.sound,
        }
        if self.content_available:
            aps["content-available"] = 1
        if self.thread_id:
            aps["thread-id"] = self.thread_id
        if self.category:
            aps["category"] = self.category
        if self.badge is not None:
            aps["badge"] = self.badge

        payload = {"aps": aps}
        for key, value in self.extra.items():
            if key == "aps":
                continue
            payload[key] = value
        return payload


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a single device send."""
    success: bool
    detail: Optional[str] = None


def build_apns_client(credentials: ApnsCredentials, use_sandbox: bool) -> APNs:
    """Default client factory.

    aioapns signs ES256 provider tokens from the key and reuses each token
    until it nears Apple's one-hour limit.
    """
    return APNs(
        key=credentials.key_path,
        key_id=credentials.key_id,
        team_id=credentials.team_id,
        topic=credentials.bundle_id,
        use_sandbox=use_sandbox,
    )


class PushSenderService:
    """Service for sending push notifications via APNs."""

    def __init__(
        self,
        credentials: Optional[ApnsCredentials] = None,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[ApnsCredentials, bool], Any] = build_apns_client,
    ):
        self._credentials = credentials or ApnsCredentials()
        self._timeout = timeout_seconds
        self._client_factory = client_factory
        self._clients: Dict[str, Any] = {}

    def configure(self, credentials: ApnsCredentials):
        """Swap credentials; clients are rebuilt on next send."""
        self._credentials = credentials
        self._clients = {}
        if credentials.is_complete():
            logger.info("APNs credentials configured")
        else:
            logger.warning("APNs not fully configured - push notifications disabled")

    def is_configured(self) -> bool:
        return self._credentials.is_complete()

    def _client_for(self, environment: str):
        """Get (or lazily build) the client for one APNs environment."""
        client = self._clients.get(environment)
        if client is not None:
            return client

        try:
            client = self._client_factory(
                self._credentials,
                environment == ENVIRONMENT_SANDBOX,
            )
        except Exception as e:
            raise Unavailable(f"Failed to configure APNs client: {e}") from e

        self._clients[environment] = client
        logger.info(f"APNs client configured (environment={environment})")
        return client

    async def send(
        self,
        device_token: str,
        notification: PushNotification,
        environment: str = ENVIRONMENT_PRODUCTION,
    ) -> DeliveryResult:
        """Send a push notification to a single device.

        Never raises: transport errors and timeouts come back as a failed
        DeliveryResult so one device can't break a fan-out.
        """
        if not self.is_configured():
            logger.debug("Push notifications not configured, skipping")
            return DeliveryResult(False, "not configured")

        if environment not in VALID_ENVIRONMENTS:
            environment = ENVIRONMENT_PRODUCTION

        request = NotificationRequest(
            device_token=device_token,
            message=notification.build_payload(),
            collapse_key=notification.collapse_id,
            push_type=PushType.ALERT,
        )

        try:
            client = self._client_for(environment)
            response = await asyncio.wait_for(
                client.send_notification(request),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Push notification timed out after {self._timeout}s (token: {device_token[:16]}...)")
            return DeliveryResult(False, "timeout")
        except Unavailable as e:
            logger.error(str(e))
            return DeliveryResult(False, e.message)
        except Exception as e:
            logger.error(f"Failed to send push notification: {e}")
            return DeliveryResult(False, str(e))

        if response.is_successful:
            logger.info(f"Push notification sent to {device_token[:16]}...")
            return DeliveryResult(True, None)

        logger.warning(
            f"Push notification failed: {response.description} "
            f"(token: {device_token[:16]}...)"
        )
        return DeliveryResult(False, response.description)
