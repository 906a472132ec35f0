"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from sms_relay.application.ports.bus import MessagePublisher
from sms_relay.infrastructure.cache.dedup import DedupCache


def get_dedup_cache(request: Request) -> DedupCache:
    return request.app.state.dedup_cache


def get_publisher(request: Request) -> MessagePublisher:
    return request.app.state.publisher


DedupCacheDep = Annotated[DedupCache, Depends(get_dedup_cache)]
PublisherDep = Annotated[MessagePublisher, Depends(get_publisher)]
