"""Keep the UptimeRobot API key out of logs.

Keys show up in three places: the JSON body posted upstream, query strings
when someone configures a GET-style URL, and exception text from httpx.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping
from urllib.parse import parse_qsl, quote_plus, urlsplit, urlunsplit

import httpx

MASK = "***"

_SENSITIVE_KEYS = frozenset({"api_key", "apikey", "api-key", "token", "secret", "password"})
_KEY_NAMES = r"(?:api[_-]?key|token|secret|password)"
# UptimeRobot main, monitor-specific and read-only keys: u123-..., m123-..., ur123-...
_UPTIMEROBOT_KEY_PATTERN = re.compile(r"\b(?:ur|u|m)\d+-[0-9a-fA-F]{8,}\b")
_URL_PATTERN = re.compile(r"(?i)https?://[^\s\"'<>]+")
_JSON_SECRET_PATTERN = re.compile(rf"(?i)(\"{_KEY_NAMES}\"\s*:\s*\")([^\"]*)(\")")
_KV_SECRET_PATTERN = re.compile(rf"(?i)(\b{_KEY_NAMES}\b\s*[=:]\s*)([^&\s,;\"'<>]+)")

_FILTER_LOGGERS = (
    "",
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "httpx",
    "httpcore",
    "uptime_proxy",
)
_HTTP_LOGGER = logging.getLogger("uptime_proxy.http")


def redact_url(url: str) -> str:
    """Mask sensitive query values, leaving scheme, host and path readable."""
    if not url or "?" not in url:
        return url
    try:
        parsed = urlsplit(url)
    except ValueError:
        return url

    pairs = parse_qsl(parsed.query, keep_blank_values=True)
    if not any(key.strip().lower() in _SENSITIVE_KEYS for key, _ in pairs):
        return url

    query = "&".join(
        f"{quote_plus(key)}={MASK if key.strip().lower() in _SENSITIVE_KEYS else quote_plus(value)}"
        for key, value in pairs
    )
    return urlunsplit((parsed.scheme, parsed.netloc, parsed.path, query, parsed.fragment))


def redact_text(value: str | None) -> str | None:
    if value is None:
        return None
    text = str(value)
    text = _URL_PATTERN.sub(lambda match: redact_url(match.group(0)), text)
    text = _JSON_SECRET_PATTERN.sub(rf"\1{MASK}\3", text)
    text = _KV_SECRET_PATTERN.sub(rf"\1{MASK}", text)
    return _UPTIMEROBOT_KEY_PATTERN.sub(MASK, text)


def _redact_arg(value: Any) -> Any:
    # Numbers pass through so %d and %.1f placeholders still format.
    if isinstance(value, (int, float)):
        return value
    text = str(value)
    redacted = redact_text(text)
    return value if redacted == text else redacted


class SecretRedactionFilter(logging.Filter):
    """Masks keys in the format string, its arguments and any traceback text.

    Arguments are redacted one by one rather than pre-rendering the message, so
    handlers further down still see the original format string.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_text(record.msg)
        if isinstance(record.args, Mapping):
            record.args = {key: _redact_arg(value) for key, value in record.args.items()}
        elif record.args:
            record.args = tuple(_redact_arg(value) for value in record.args)
        if record.exc_info and not record.exc_text:
            record.exc_text = redact_text(_EXC_FORMATTER.formatException(record.exc_info))
        return True


_REDACTION_FILTER = SecretRedactionFilter()
_EXC_FORMATTER = logging.Formatter()


def _attach(target: logging.Filterer) -> None:
    if not any(isinstance(existing, SecretRedactionFilter) for existing in target.filters):
        target.addFilter(_REDACTION_FILTER)


def install_log_redaction() -> None:
    """Attach the shared filter to the package, server and HTTP client loggers. Idempotent."""
    for logger in map(logging.getLogger, _FILTER_LOGGERS):
        _attach(logger)
        for handler in logger.handlers:
            _attach(handler)

    # httpx logs full request lines at INFO.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


async def _log_request(request: httpx.Request) -> None:
    _HTTP_LOGGER.debug("Upstream request method=%s url=%s", request.method, redact_url(str(request.url)))


async def _log_response(response: httpx.Response) -> None:
    _HTTP_LOGGER.info(
        "Upstream response method=%s url=%s status=%d",
        response.request.method,
        redact_url(str(response.request.url)),
        response.status_code,
    )


def httpx_event_hooks() -> dict[str, list]:
    return {"request": [_log_request], "response": [_log_response]}
