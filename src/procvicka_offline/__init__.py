"""Offline caching worker for the Procvička practice game."""

from __future__ import annotations

from procvicka_offline.classifier import classify, should_intercept
from procvicka_offline.config import Settings
from procvicka_offline.errors import ErrorCode, ProcvickaError
from procvicka_offline.models.http import Request, Response
from procvicka_offline.storage import CacheStorage, MemoryCacheStorage, Store
from procvicka_offline.worker import OfflineWorker, WorkerState

__version__ = "0.3.0"

__all__ = [
    "CacheStorage",
    "ErrorCode",
    "MemoryCacheStorage",
    "OfflineWorker",
    "ProcvickaError",
    "Request",
    "Response",
    "Settings",
    "Store",
    "WorkerState",
    "classify",
    "should_intercept",
]
