"""Shared fixtures: settings, storage, fetcher and fake host collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from procvicka_offline.config import Settings
from procvicka_offline.fetcher import HttpxFetcher
from procvicka_offline.storage import MemoryCacheStorage

if TYPE_CHECKING:
    from procvicka_offline.models.notifications import NotificationOptions

ORIGIN = "https://procvicka.test"


class FakeWindow:
    def __init__(self) -> None:
        self.focus_count = 0

    async def focus(self) -> None:
        self.focus_count += 1


class FakeClients:
    """Records what the worker asked of the host's window clients."""

    def __init__(self) -> None:
        self.windows: list[FakeWindow] = []
        self.opened_urls: list[str] = []
        self.claim_count = 0

    def add_window(self) -> FakeWindow:
        window = FakeWindow()
        self.windows.append(window)
        return window

    async def match_all(self, type: str = "window") -> list[FakeWindow]:
        return list(self.windows)

    async def open_window(self, url: str) -> FakeWindow:
        self.opened_urls.append(url)
        return self.add_window()

    async def claim(self) -> None:
        self.claim_count += 1


class FakeNotificationCenter:
    def __init__(self) -> None:
        self.shown: list[tuple[str, NotificationOptions]] = []

    async def show_notification(self, title: str, options: NotificationOptions) -> None:
        self.shown.append((title, options))


class FakeNotification:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


def make_settings(version: str = "v3", **overrides: object) -> Settings:
    return Settings(
        origin={"base_url": ORIGIN},
        generation={"app_name": "procvicka", "version": version},
        storage={"backend": "memory"},
        **overrides,
    )


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def settings_factory():
    """Build settings for an arbitrary generation, e.g. ``settings_factory("v2")``."""
    return make_settings


@pytest.fixture()
def storage() -> MemoryCacheStorage:
    return MemoryCacheStorage()


@pytest.fixture()
async def fetcher():
    async with httpx.AsyncClient() as client:
        yield HttpxFetcher(client)


@pytest.fixture()
def clients() -> FakeClients:
    return FakeClients()


@pytest.fixture()
def notifications() -> FakeNotificationCenter:
    return FakeNotificationCenter()


@pytest.fixture()
def notification() -> FakeNotification:
    return FakeNotification()
