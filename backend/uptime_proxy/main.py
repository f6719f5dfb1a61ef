"""uptime-proxy main application."""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from uptime_proxy.analyzer import error_response
from uptime_proxy.cache import FileCacheStore
from uptime_proxy.config import Settings, load_settings, log_level_name
from uptime_proxy.errors import EmptyRequestBodyError
from uptime_proxy.log_redact import install_log_redaction, redact_text
from uptime_proxy.models import ErrorResponse, StatusResponse
from uptime_proxy.service import VARIANTS, EndpointVariant, ResponseMode, StatusService
from uptime_proxy.upstream import UptimeRobotClient

# --- Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("uptime_proxy.api")

JSON_MEDIA_TYPE = "application/json; charset=utf-8"
_VARIANTS_BY_PATH = {variant.path: variant for variant in VARIANTS}


class UTF8JSONResponse(JSONResponse):
    media_type = JSON_MEDIA_TYPE


def _log_startup_warnings(settings: Settings) -> None:
    if not settings.api_key:
        logger.warning("UPTIMEROBOT_API_KEY is not set; /api/status can only serve cached data.")
    if settings.cache_ttl_seconds <= 0:
        logger.warning("CACHE_TTL_SECONDS=%s disables fresh-cache hits.", settings.cache_ttl_seconds)


def _allowed_methods(variant: Optional[EndpointVariant]) -> str:
    if variant is None:
        return "GET, POST, OPTIONS"
    return f"{variant.method}, OPTIONS"


def _allow_origin(settings: Settings, origin: Optional[str]) -> Optional[str]:
    if "*" in settings.cors_origins:
        return "*"
    if origin and origin in settings.cors_origins:
        return origin
    return None


def _error_body(message: str, status_code: int, headers=None) -> UTF8JSONResponse:
    body = ErrorResponse(error=message).model_dump(exclude_none=True)
    return UTF8JSONResponse(body, status_code=status_code, headers=headers)


def _internal_error(variant: EndpointVariant, exc: Exception) -> UTF8JSONResponse:
    logger.exception("Unhandled error serving %s", variant.name)
    if variant.mode is ResponseMode.RAW:
        return _error_body("internal server error", 500)
    body = error_response(f"internal server error: {redact_text(str(exc))}")
    return UTF8JSONResponse(body.model_dump(mode="json"), status_code=500)


def _raw_handler(variant: EndpointVariant, service: StatusService) -> Callable[[Request], Awaitable[Response]]:
    async def handler(request: Request) -> Response:
        try:
            body = await request.body()
            result = await service.proxy_raw(body)
        except EmptyRequestBodyError:
            return _error_body("request body is empty", 400)
        except Exception as exc:
            return _internal_error(variant, exc)
        return Response(content=result.content, status_code=result.status_code, media_type=JSON_MEDIA_TYPE)

    return handler


def _status_handler(
    variant: EndpointVariant,
    produce: Callable[[], Awaitable[StatusResponse]],
) -> Callable[[], Awaitable[Response]]:
    async def handler() -> Response:
        try:
            result = await produce()
        except Exception as exc:
            return _internal_error(variant, exc)
        return UTF8JSONResponse(result.model_dump(mode="json"))

    return handler


async def _preflight() -> Response:
    return Response(status_code=204, media_type=JSON_MEDIA_TYPE)


def _register_variant(app: FastAPI, variant: EndpointVariant, service: StatusService) -> None:
    if variant.mode is ResponseMode.RAW:
        handler = _raw_handler(variant, service)
    elif variant.mode is ResponseMode.LIVE:
        handler = _status_handler(variant, service.live_status)
    else:
        handler = _status_handler(variant, service.cached_status)

    app.add_api_route(variant.path, handler, methods=[variant.method], name=variant.name)
    app.add_api_route(variant.path, _preflight, methods=["OPTIONS"], name=f"{variant.name}-preflight")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()
    install_log_redaction()
    logging.getLogger().setLevel(log_level_name(settings.log_level))

    service = StatusService(
        settings,
        FileCacheStore(settings.cache_path),
        UptimeRobotClient(settings, transport=transport),
    )

    @asynccontextmanager
    async def _lifespan(_: FastAPI):
        _log_startup_warnings(settings)
        logger.info("Serving UptimeRobot status from cache %s", settings.cache_path)
        yield

    app = FastAPI(
        title="uptime-proxy",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=_lifespan,
        default_response_class=UTF8JSONResponse,
    )
    app.state.settings = settings
    app.state.status_service = service

    @app.middleware("http")
    async def _cors_headers(request: Request, call_next):
        response = await call_next(request)
        variant = _VARIANTS_BY_PATH.get(request.url.path)
        allow_origin = _allow_origin(settings, request.headers.get("origin"))
        if allow_origin is not None:
            response.headers["Access-Control-Allow-Origin"] = allow_origin
            if allow_origin != "*":
                response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = _allowed_methods(variant)
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        variant = _VARIANTS_BY_PATH.get(request.url.path)
        if exc.status_code == 405 and variant is not None:
            message = f"only {variant.method} requests are supported"
        else:
            message = str(exc.detail)
        return _error_body(message, exc.status_code, headers=exc.headers)

    for variant in VARIANTS:
        _register_variant(app, variant, service)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


app = create_app()
