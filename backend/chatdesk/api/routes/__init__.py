# API Routes Module
from chatdesk.api.routes import (
    messages,
    settings,
    subscriptions,
)

__all__ = [
    "messages",
    "settings",
    "subscriptions",
]
