from __future__ import annotations

from pydantic import BaseModel


class NotificationAction(BaseModel):
    action: str  # "open" | "close"
    title: str


class NotificationOptions(BaseModel):
    """Options passed to the host when displaying a push notification."""

    body: str
    icon: str
    badge: str
    tag: str
    actions: list[NotificationAction] = []
