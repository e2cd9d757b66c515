from __future__ import annotations

from procvicka_offline.models.http import Request, RequestMode, Response
from procvicka_offline.models.notifications import NotificationAction, NotificationOptions
from procvicka_offline.models.routing import Route, StoreKind, StrategyName

__all__ = [
    # http
    "Request",
    "RequestMode",
    "Response",
    # routing
    "Route",
    "StoreKind",
    "StrategyName",
    # notifications
    "NotificationAction",
    "NotificationOptions",
]
