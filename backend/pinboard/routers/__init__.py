"""API routers."""
from .pins import router as pins_router
from .messages import router as messages_router
from .notification_tokens import router as notification_tokens_router
from .admin import router as admin_router

__all__ = ["pins_router", "messages_router", "notification_tokens_router", "admin_router"]
