"""Cache-then-upstream status service shared by every endpoint variant."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from uptime_proxy.analyzer import analyze, annotate_cache, error_response
from uptime_proxy.cache import CacheEntry, CacheStore, read_any, read_fresh
from uptime_proxy.config import Settings
from uptime_proxy.errors import (
    CacheMissingError,
    CacheUnreadableError,
    EmptyRequestBodyError,
    UpstreamError,
)
from uptime_proxy.models import ErrorResponse, OverallStatus, StatusResponse
from uptime_proxy.upstream import UptimeRobotClient

logger = logging.getLogger("uptime_proxy.service")

T = TypeVar("T")

UPSTREAM_FAILED = "upstream request failed"
CACHE_LOADING = "fetching status data..."
CACHE_UNREADABLE = "cache file unreadable"
CACHE_MALFORMED = "cache data malformed"
FALLBACK_SUFFIX = " (cached data)"
OUTDATED_SUFFIX = " (data may be outdated)"


class ResponseMode(str, Enum):
    RAW = "raw"
    LIVE = "live"
    CACHED = "cached"


@dataclass(frozen=True)
class EndpointVariant:
    name: str
    path: str
    method: str
    mode: ResponseMode


VARIANTS: tuple[EndpointVariant, ...] = (
    EndpointVariant("uptime-proxy", "/api/uptime", "POST", ResponseMode.RAW),
    EndpointVariant("status", "/api/status", "POST", ResponseMode.LIVE),
    EndpointVariant("status-cached", "/api/status/cached", "GET", ResponseMode.CACHED),
)


@dataclass(frozen=True)
class RawResult:
    content: bytes
    status_code: int = 200


class StatusService:
    def __init__(self, settings: Settings, store: CacheStore, client: UptimeRobotClient):
        self._settings = settings
        self._store = store
        self._client = client
        # One in-flight upstream refresh per response mode; concurrent callers await the same task.
        self._inflight: dict[ResponseMode, asyncio.Task] = {}

    async def _fresh_entry(self) -> Optional[CacheEntry]:
        return await asyncio.to_thread(self._store.get_fresh, self._settings.cache_ttl_seconds)

    async def _write(self, raw: bytes) -> None:
        try:
            await asyncio.to_thread(self._store.put, raw)
        except OSError:
            logger.exception("Failed writing cache")

    def _age(self, entry: CacheEntry) -> int:
        return entry.age(self._store.now())

    def _from_cache(self, entry: CacheEntry, payload: dict[str, Any], *, fallback: bool = False) -> StatusResponse:
        return annotate_cache(
            analyze(payload),
            age_seconds=self._age(entry),
            stale_threshold_seconds=self._settings.stale_threshold_seconds,
            fallback=fallback,
        )

    async def _single_flight(self, mode: ResponseMode, refresh: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(mode)
        if task is None:
            task = asyncio.create_task(refresh(), name=f"uptime-{mode.value}-refresh")
            self._inflight[mode] = task

            def _clear(done: asyncio.Task) -> None:
                if self._inflight.get(mode) is done:
                    del self._inflight[mode]

            task.add_done_callback(_clear)
        else:
            logger.debug("Joining in-flight %s refresh", mode.value)
        # A cancelled caller must not cancel the refresh the others are waiting on.
        return await asyncio.shield(task)

    async def proxy_raw(self, body: bytes) -> RawResult:
        """Forward a client-built getMonitors body, answering from cache when fresh."""
        entry = await self._fresh_entry()
        if entry is not None:
            return RawResult(entry.raw)

        if not body or not body.strip():
            raise EmptyRequestBodyError("request body is empty")

        try:
            raw = await self._single_flight(ResponseMode.RAW, lambda: self._refresh_raw(body))
        except UpstreamError as exc:
            stale = await asyncio.to_thread(self._store.get)
            if stale is not None:
                logger.info("Serving stale cache after upstream failure age=%ds", self._age(stale))
                return RawResult(stale.raw)
            error = ErrorResponse(error=UPSTREAM_FAILED, code=exc.code)
            return RawResult(error.model_dump_json().encode("utf-8"), status_code=502)
        return RawResult(raw)

    async def _refresh_raw(self, body: bytes) -> bytes:
        entry = await self._fresh_entry()
        if entry is not None:
            return entry.raw
        raw = await self._client.fetch(
            body,
            connect_timeout=self._settings.proxy_connect_timeout_seconds,
            total_timeout=self._settings.proxy_timeout_seconds,
        )
        await self._write(raw)
        return raw

    async def live_status(self) -> StatusResponse:
        """Analyzed status using the configured API key, with stale-cache fallback."""
        cached = await self._fresh_response()
        if cached is not None:
            return cached

        try:
            return await self._single_flight(ResponseMode.LIVE, self._refresh_live)
        except UpstreamError:
            return await self._live_fallback()

    async def _fresh_response(self) -> Optional[StatusResponse]:
        found = await asyncio.to_thread(read_fresh, self._store, self._settings.cache_ttl_seconds)
        if found is None:
            return None
        entry, payload = found
        return self._from_cache(entry, payload)

    async def _refresh_live(self) -> StatusResponse:
        cached = await self._fresh_response()
        if cached is not None:
            return cached
        raw, payload = await self._client.fetch_monitors()
        await self._write(raw)
        return analyze(payload)

    async def _live_fallback(self) -> StatusResponse:
        found = await asyncio.to_thread(read_any, self._store)
        if found is None:
            logger.warning("Upstream failed and no usable cache exists")
            return error_response(UPSTREAM_FAILED)

        entry, payload = found
        logger.info("Serving stale cache after upstream failure age=%ds", self._age(entry))
        response = self._from_cache(entry, payload, fallback=True)
        return response.model_copy(update={"message": response.message + FALLBACK_SUFFIX})

    async def cached_status(self) -> StatusResponse:
        """Analyze whatever is on disk without ever calling upstream."""
        try:
            entry = await asyncio.to_thread(self._store.load)
        except CacheMissingError:
            return error_response(CACHE_LOADING, status=OverallStatus.LOADING)
        except CacheUnreadableError as exc:
            logger.warning("Cache unreadable at %s (%s)", exc.path, exc.reason)
            return error_response(CACHE_UNREADABLE)

        payload = entry.payload()
        if payload is None or payload.get("monitors") is None:
            return error_response(CACHE_MALFORMED)

        response = self._from_cache(entry, payload)
        if response.stale:
            response = response.model_copy(update={"message": response.message + OUTDATED_SUFFIX})
        return response
