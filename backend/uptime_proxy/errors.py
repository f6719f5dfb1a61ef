"""Error types raised by the cache store, upstream client and status service."""

from __future__ import annotations


class EmptyRequestBodyError(Exception):
    """Raised when the raw proxy receives a POST without a body."""


class UpstreamError(Exception):
    """Base class for a failed UptimeRobot call.

    ``code`` is reported back to raw-proxy clients when no cache exists.
    """

    code: int | str = 0


class UpstreamTransportError(UpstreamError):
    """Network failure or timeout before a response was received."""

    def __init__(self, reason: str) -> None:
        self.code = reason
        super().__init__(f"Upstream transport failure: {reason}")


class UpstreamHTTPError(UpstreamError):
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        self.code = status_code
        super().__init__(f"Upstream responded with HTTP {status_code}")


class UpstreamEmptyResponseError(UpstreamError):
    def __init__(self) -> None:
        super().__init__("Upstream returned an empty body")


class UpstreamInvalidPayloadError(UpstreamError):
    def __init__(self) -> None:
        super().__init__("Upstream body is not a JSON object")


class CacheMissingError(Exception):
    """Raised by strict cache reads when nothing has been written yet."""


class CacheUnreadableError(Exception):
    """Raised by strict cache reads when the file exists but cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cache file {path!r} is unreadable: {reason}")


class UpstreamRejectedError(UpstreamError):
    """UptimeRobot answered 200 with ``"stat": "fail"`` (bad key, rate limit, ...)."""

    def __init__(self, reason: str) -> None:
        self.code = reason
        super().__init__(f"Upstream rejected the request: {reason}")
