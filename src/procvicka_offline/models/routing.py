from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class StrategyName(StrEnum):
    CACHE_FIRST = "cache-first"
    NETWORK_FIRST = "network-first"
    STALE_WHILE_REVALIDATE = "stale-while-revalidate"


class StoreKind(StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    IMAGES = "images"


class Route(BaseModel):
    """Strategy assignment for one request: which strategy, against which store."""

    model_config = ConfigDict(frozen=True)

    strategy: StrategyName
    store: StoreKind
