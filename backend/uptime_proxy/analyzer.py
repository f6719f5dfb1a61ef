"""Turn a raw getMonitors payload into the dashboard status shape.

Everything here is pure: the same payload always yields the same response.
Cache annotations are layered on afterwards by ``annotate_cache``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from uptime_proxy.models import (
    CacheInfo,
    MonitorRecord,
    MonitorStatusCode,
    MonitorView,
    OverallStatus,
    StatusResponse,
    StatusSummary,
    status_label,
)

NO_MONITOR_DATA = "no monitor data"
NO_ACTIVE_MONITORS = "no active monitors"
ALL_NORMAL = "all services normal"
ALL_DOWN = "all services down"

_DOWN_CODES = frozenset({MonitorStatusCode.DOWN, MonitorStatusCode.SEEMS_DOWN})


def format_number(value: float) -> str:
    """Two decimals at most, trailing zeros dropped: 99.9 -> '99.9', 100.0 -> '100'."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text


def format_percent(value: float) -> str:
    return f"{format_number(value)}%"


def _records_from_payload(payload: Any) -> list[MonitorRecord]:
    if not isinstance(payload, Mapping):
        return []
    monitors = payload.get("monitors")
    if not isinstance(monitors, list):
        return []
    records: list[MonitorRecord] = []
    for entry in monitors:
        if not isinstance(entry, Mapping):
            continue
        try:
            records.append(MonitorRecord.model_validate(dict(entry)))
        except ValidationError:
            continue
    return records


def _bucket(code: int) -> str:
    if code == MonitorStatusCode.UP:
        return "up"
    if code in _DOWN_CODES:
        return "down"
    if code == MonitorStatusCode.PAUSED:
        return "paused"
    return "unknown"


def summarize(records: list[MonitorRecord]) -> StatusSummary:
    counts = {"up": 0, "down": 0, "paused": 0, "unknown": 0}
    for record in records:
        counts[_bucket(record.status)] += 1
    return StatusSummary(total=len(records), **counts)


def classify(summary: StatusSummary) -> tuple[OverallStatus, str]:
    active = summary.active
    if active <= 0:
        return OverallStatus.ERROR, NO_ACTIVE_MONITORS
    if summary.down == 0:
        return OverallStatus.OK, ALL_NORMAL
    if summary.down < active:
        return OverallStatus.PARTIAL, f"some services down ({summary.down}/{active})"
    return OverallStatus.ERROR, ALL_DOWN


def monitor_view(record: MonitorRecord) -> MonitorView:
    uptime = record.uptime
    return MonitorView(
        id=record.id,
        name=record.name,
        url=record.url,
        status=record.status,
        status_text=status_label(record.status),
        uptime_1d=format_percent(uptime.day_1),
        uptime_7d=format_percent(uptime.day_7),
        uptime_30d=format_percent(uptime.day_30),
        avg_response=format_number(record.average_response_time),
    )


def error_response(message: str, status: OverallStatus = OverallStatus.ERROR) -> StatusResponse:
    return StatusResponse(status=status, message=message)


def analyze(payload: Any) -> StatusResponse:
    records = _records_from_payload(payload)
    if not records:
        return error_response(NO_MONITOR_DATA)

    summary = summarize(records)
    status, message = classify(summary)
    return StatusResponse(
        status=status,
        message=message,
        monitors=[monitor_view(record) for record in records],
        summary=summary,
    )


def age_text(age_seconds: int) -> str:
    if age_seconds < 60:
        return f"{age_seconds}s ago"
    # Half-up rounding, so 90s reads as 2 min.
    return f"{int(age_seconds / 60 + 0.5)} min ago"


def annotate_cache(
    response: StatusResponse,
    *,
    age_seconds: int,
    stale_threshold_seconds: float,
    fallback: bool = False,
) -> StatusResponse:
    """Return a copy of *response* marked as served from cache.

    ``cache.stale`` reflects only the entry age. *fallback* additionally marks the
    top-level ``stale`` flag when the data is served because upstream failed.
    """
    outdated = age_seconds > stale_threshold_seconds
    return response.model_copy(
        update={
            "cached": True,
            "stale": fallback or outdated,
            "cache": CacheInfo(age=age_seconds, age_text=age_text(age_seconds), stale=outdated),
        }
    )
