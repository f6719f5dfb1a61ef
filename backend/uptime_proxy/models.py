"""Upstream monitor records and response models for the status API."""

from __future__ import annotations

import math
from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MonitorStatusCode(IntEnum):
    PAUSED = 0
    NOT_CHECKED = 1
    UP = 2
    SEEMS_DOWN = 8
    DOWN = 9


STATUS_LABELS: dict[int, str] = {
    MonitorStatusCode.PAUSED: "paused",
    MonitorStatusCode.NOT_CHECKED: "not checked yet",
    MonitorStatusCode.UP: "up",
    MonitorStatusCode.SEEMS_DOWN: "seems down",
    MonitorStatusCode.DOWN: "down",
}
UNKNOWN_STATUS_LABEL = "unknown"


def status_label(code: int) -> str:
    return STATUS_LABELS.get(code, UNKNOWN_STATUS_LABEL)


class OverallStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    ERROR = "error"
    LOADING = "loading"


def _to_float(value: Any) -> float:
    """Lenient numeric parse; anything unusable reads as 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


class UptimeRanges(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_1: float = 0.0
    day_7: float = 0.0
    day_30: float = 0.0

    @classmethod
    def parse(cls, raw: str) -> "UptimeRanges":
        parts = raw.split("-") if raw else []
        values = [_to_float(part) for part in parts[:3]]
        values += [0.0] * (3 - len(values))
        return cls(day_1=values[0], day_7=values[1], day_30=values[2])


class MonitorRecord(BaseModel):
    """One entry of the upstream ``monitors`` list. Unknown keys are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int = 0
    name: str = Field(default="Unknown", alias="friendly_name")
    url: str = ""
    status: int = 0
    custom_uptime_ranges: str = "0-0-0"
    average_response_time: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("id", "status", mode="before")
    @classmethod
    def coerce_int(cls, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return int(_to_float(value))

    @field_validator("name", "url", "custom_uptime_ranges", mode="before")
    @classmethod
    def coerce_str(cls, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return ""

    @field_validator("average_response_time", mode="before")
    @classmethod
    def coerce_float(cls, value: Any) -> float:
        return _to_float(value)

    @property
    def uptime(self) -> UptimeRanges:
        return UptimeRanges.parse(self.custom_uptime_ranges)


class MonitorView(BaseModel):
    id: int
    name: str
    url: str
    status: int
    status_text: str
    uptime_1d: str
    uptime_7d: str
    uptime_30d: str
    avg_response: str


class StatusSummary(BaseModel):
    total: int = 0
    up: int = 0
    down: int = 0
    paused: int = 0
    unknown: int = 0

    @property
    def active(self) -> int:
        return self.total - self.paused


class CacheInfo(BaseModel):
    age: int
    age_text: str
    stale: bool


class StatusResponse(BaseModel):
    status: OverallStatus
    message: str
    monitors: list[MonitorView] = Field(default_factory=list)
    summary: StatusSummary = Field(default_factory=StatusSummary)
    cached: bool = False
    stale: bool = False
    cache: Optional[CacheInfo] = None


class ErrorResponse(BaseModel):
    error: str
    code: Optional[int | str] = None
