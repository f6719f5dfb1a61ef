"""UptimeRobot getMonitors client."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from uptime_proxy.config import Settings
from uptime_proxy.errors import (
    UpstreamEmptyResponseError,
    UpstreamHTTPError,
    UpstreamInvalidPayloadError,
    UpstreamRejectedError,
    UpstreamTransportError,
)
from uptime_proxy.log_redact import httpx_event_hooks

logger = logging.getLogger("uptime_proxy.upstream")

UPTIME_RANGES = "1-7-30"


def build_request_body(api_key: str) -> dict[str, Any]:
    return {
        "api_key": api_key,
        "format": "json",
        "logs": 1,
        "response_times": 1,
        "custom_uptime_ranges": UPTIME_RANGES,
    }


def _failure_reason(payload: dict[str, Any]) -> str:
    error = payload.get("error")
    if isinstance(error, dict):
        return str(error.get("type") or "fail")
    return "fail"


class UptimeRobotClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def fetch(self, body: bytes, *, connect_timeout: float, total_timeout: float) -> bytes:
        """POST *body* verbatim and return the response bytes. One attempt, no retries."""
        timeout = httpx.Timeout(timeout=total_timeout, connect=connect_timeout)
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                verify=self._settings.upstream_verify_ssl,
                transport=self._transport,
                event_hooks=httpx_event_hooks(),
            ) as client:
                resp = await asyncio.wait_for(
                    client.post(
                        self._settings.api_url,
                        content=body,
                        headers={"Content-Type": "application/json"},
                    ),
                    timeout=total_timeout,
                )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.warning("Timed out calling UptimeRobot after %.1fs", total_timeout)
            raise UpstreamTransportError("timeout") from exc
        except httpx.HTTPError as exc:
            logger.warning("Error calling UptimeRobot (%s)", exc.__class__.__name__)
            raise UpstreamTransportError(exc.__class__.__name__) from exc

        if not resp.is_success:
            logger.warning("UptimeRobot responded with HTTP %d", resp.status_code)
            raise UpstreamHTTPError(resp.status_code)
        if not resp.content.strip():
            logger.warning("UptimeRobot returned an empty body")
            raise UpstreamEmptyResponseError()
        return resp.content

    async def fetch_monitors(self) -> tuple[bytes, dict[str, Any]]:
        """Fetch with the configured key. Returns the raw body and its decoded object."""
        body = json.dumps(build_request_body(self._settings.api_key)).encode("utf-8")
        raw = await self.fetch(
            body,
            connect_timeout=self._settings.fetch_connect_timeout_seconds,
            total_timeout=self._settings.fetch_timeout_seconds,
        )
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning("UptimeRobot body is not valid JSON")
            raise UpstreamInvalidPayloadError() from exc
        if not isinstance(payload, dict):
            logger.warning("UptimeRobot body is not a JSON object")
            raise UpstreamInvalidPayloadError()
        if payload.get("stat") == "fail":
            reason = _failure_reason(payload)
            logger.warning("UptimeRobot rejected the request (%s)", reason)
            raise UpstreamRejectedError(reason)
        return raw, payload
