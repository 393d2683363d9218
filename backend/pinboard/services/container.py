"""Wiring of the pinboard services.

Everything is built once at start-up and passed explicitly to whoever
needs it; routers reach the instances through ``app.state.pinboard``.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..config import Settings, get_database_url
from ..database import build_engine, build_session_factory, close_db, init_db
from .auth_gateway import AuthGateway, DatabaseAuthGateway
from .dispatcher import NotificationDispatcher
from .lifecycle import PinLifecycle
from .push_sender import (
    ENVIRONMENT_PRODUCTION,
    ENVIRONMENT_SANDBOX,
    ApnsCredentials,
    PushSenderService,
)
from .reply_thread import ReplyThread
from .scheduler import MaintenanceScheduler
from .slot_store import GridBounds, SlotStore


@dataclass
class Pinboard:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    lifecycle: PinLifecycle
    slot_store: SlotStore
    dispatcher: NotificationDispatcher
    reply_thread: ReplyThread
    auth_gateway: AuthGateway
    scheduler: MaintenanceScheduler

    async def startup(self):
        await init_db(self.engine, self.settings.grid_rows, self.settings.grid_cols)
        if self.settings.reaper_enabled:
            self.scheduler.start()

    async def shutdown(self):
        self.scheduler.stop()
        await self.reply_thread.drain()
        await close_db(self.engine)


def build_pinboard(
    settings: Settings,
    push_sender: Optional[PushSenderService] = None,
    auth_gateway: Optional[AuthGateway] = None,
    engine: Optional[AsyncEngine] = None,
) -> Pinboard:
    """Build every service from settings; any piece can be swapped in (tests do)."""
    engine = engine or build_engine(get_database_url(settings))
    session_factory = build_session_factory(engine)

    lifecycle = PinLifecycle.from_hours(settings.pin_ttl_hours)
    slot_store = SlotStore(
        session_factory,
        lifecycle,
        GridBounds(rows=settings.grid_rows, cols=settings.grid_cols),
        enforce_single_live_pin=settings.enforce_single_live_pin,
    )

    push_sender = push_sender or PushSenderService(
        ApnsCredentials(
            key_path=settings.apns_key_path,
            key_id=settings.apns_key_id,
            team_id=settings.apns_team_id,
            bundle_id=settings.apns_bundle_id,
        ),
        timeout_seconds=settings.push_timeout_seconds,
    )
    dispatcher = NotificationDispatcher(
        session_factory,
        push_sender,
        default_environment=ENVIRONMENT_SANDBOX if settings.apns_use_sandbox else ENVIRONMENT_PRODUCTION,
    )
    reply_thread = ReplyThread(
        session_factory,
        dispatcher,
        notify_in_background=settings.notify_in_background,
    )

    return Pinboard(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        lifecycle=lifecycle,
        slot_store=slot_store,
        dispatcher=dispatcher,
        reply_thread=reply_thread,
        auth_gateway=auth_gateway or DatabaseAuthGateway(session_factory),
        scheduler=MaintenanceScheduler(slot_store, settings.reaper_interval_minutes),
    )
