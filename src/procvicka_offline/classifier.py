"""Request classification: which requests are intercepted and how.

``classify()`` is total. Rules are checked in a fixed order and the first
match wins, so ``/favicon.ico`` is an image and ``/app.js`` on a Supabase
host is still a static asset.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from procvicka_offline.models.routing import Route, StoreKind, StrategyName

if TYPE_CHECKING:
    from procvicka_offline.models.http import Request

_STATIC_SUFFIXES = (".js", ".css", ".woff2")
_STATIC_PATHS = frozenset({"/", "/manifest.json"})
_IMAGE_RE = re.compile(r"\.(png|jpg|jpeg|gif|webp|svg|ico)$", re.IGNORECASE)
_BYPASS_SCHEMES = frozenset({"chrome-extension", "moz-extension"})

STATIC_ROUTE = Route(strategy=StrategyName.CACHE_FIRST, store=StoreKind.STATIC)
IMAGE_ROUTE = Route(strategy=StrategyName.STALE_WHILE_REVALIDATE, store=StoreKind.IMAGES)
API_ROUTE = Route(strategy=StrategyName.NETWORK_FIRST, store=StoreKind.DYNAMIC)
DEFAULT_ROUTE = Route(strategy=StrategyName.STALE_WHILE_REVALIDATE, store=StoreKind.DYNAMIC)


def should_intercept(request: Request) -> bool:
    """Return False for requests that must go straight to the network."""
    if request.method != "GET":
        return False
    return urlsplit(request.url).scheme.lower() not in _BYPASS_SCHEMES


def is_static_asset(path: str) -> bool:
    return path.endswith(_STATIC_SUFFIXES) or path in _STATIC_PATHS


def is_image(path: str) -> bool:
    return _IMAGE_RE.search(path) is not None


def is_api_call(path: str, hostname: str) -> bool:
    return path.startswith("/api/") or "supabase" in hostname


def classify(url: str) -> Route:
    """Map a request URL to its strategy and store."""
    parts = urlsplit(url)
    path = parts.path or "/"
    hostname = parts.hostname or ""

    if is_static_asset(path):
        return STATIC_ROUTE
    if is_image(path):
        return IMAGE_ROUTE
    if is_api_call(path, hostname):
        return API_ROUTE
    return DEFAULT_ROUTE
