"""
HTTP surface for the website widget.

Routes::

    GET     /api/lucius-web-chat          health check
    POST    /api/lucius-web-chat          chat turn
    OPTIONS /api/lucius-web-chat          CORS preflight
    GET     /api/lucius-web-chat/status   pack resolution diagnostics
    GET     /api/ping                     liveness

End users only ever see generic error messages. Details go to the log and,
for upstream failures, to the status view.
"""
from __future__ import annotations

import asyncio
import copy
import json
import logging
import math
import signal
from typing import Any

from aiohttp import web

from lucius import __version__
from lucius.chat import ChatService, TranscriptStore, parse_chat_request
from lucius.clients.oai import TextGenerator
from lucius.config import core
from lucius.errors import ConfigurationMissing, InvalidChatRequest, UpstreamServiceError
from lucius.packs import LayerCache, build_layer_cache
from lucius.packs.report import describe_layers
from lucius.utils import redact_url

logger = logging.getLogger(__name__)

__all__ = ["create_app", "install_reload_signal", "SERVICE_KEY"]

SERVICE_NAME = "lucius-web-chat"
CHAT_PATH = "/api/lucius-web-chat"
MAX_BODY_BYTES = 64 * 1024

SERVICE_KEY = web.AppKey("service", ChatService)
ORIGIN_KEY = web.AppKey("allowed_origin", str)

GENERIC_UPSTREAM_ERROR = "The assistant is unavailable right now. Please try again shortly."
GENERIC_SERVER_ERROR = "Server error"


def _cors_headers(origin: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


@web.middleware
async def cors_middleware(request: web.Request, handler):
    headers = _cors_headers(request.app[ORIGIN_KEY])
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=headers)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(headers)
        raise
    response.headers.update(headers)
    return response


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"ok": False, "error": message}, status=status)


async def _read_body(request: web.Request) -> Any:
    try:
        raw = (await request.read()).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidChatRequest("Request body is not valid UTF-8.") from exc
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        if request.content_type == "application/json":
            raise InvalidChatRequest("Request body is not valid JSON.") from exc
        return raw


# ------------------------------------------------------------------ #
# Handlers
# ------------------------------------------------------------------ #

async def health(request: web.Request) -> web.Response:
    return web.json_response({"ok": True, "service": SERVICE_NAME})


async def ping(request: web.Request) -> web.Response:
    return web.json_response({"ok": True, "version": __version__})


async def chat(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]

    try:
        chat_request = parse_chat_request(await _read_body(request))
    except InvalidChatRequest as exc:
        return _error(400, str(exc))

    try:
        reply = await service.respond(chat_request)
    except ConfigurationMissing as exc:
        logger.error("Chat request rejected, configuration missing: %s", exc)
        return _error(500, "Server not configured")
    except UpstreamServiceError as exc:
        logger.error(
            "Upstream failure (%s, status=%s): %s %s",
            type(exc).__name__,
            exc.status,
            exc,
            exc.detail,
        )
        return _error(502, GENERIC_UPSTREAM_ERROR)
    except Exception:
        logger.exception("Unhandled error while answering chat request")
        return _error(500, GENERIC_SERVER_ERROR)

    return web.json_response({"ok": True, "reply": reply.reply, "model": reply.model})


def build_status(service: ChatService) -> dict[str, Any]:
    """Read-only diagnostics. Never starts a resolution pass, never exposes secrets."""

    cache: LayerCache = service.cache
    entry = cache.peek()
    expires_in = cache.seconds_until_expiry()
    generator = service.generator

    return {
        "ok": True,
        "service": SERVICE_NAME,
        "version": __version__,
        "cache": {
            "populated": entry is not None,
            "fresh": cache.is_fresh(),
            "ttl_s": cache.ttl,
            "expires_in_s": round(expires_in, 3) if expires_in is not None and math.isfinite(expires_in) else None,
            "passes": cache.passes,
            "created_at": entry.created_at if entry else None,
        },
        "resolution": copy.deepcopy(entry.report) if entry else None,
        "sources": describe_layers(cache.layers),
        "upstream": {
            "model": generator.model,
            "api_style": generator.api_style,
            "api_base": redact_url(core.OPENAI_API_BASE),
            "api_key_configured": bool(core.OPENAI_API_KEY),
            "last_error": copy.deepcopy(service.last_upstream_error),
        },
    }


async def status(request: web.Request) -> web.Response:
    if not core.STATUS_ENABLED:
        raise web.HTTPNotFound()
    return web.json_response(build_status(request.app[SERVICE_KEY]))


# ------------------------------------------------------------------ #
# Lifecycle
# ------------------------------------------------------------------ #

async def _log_routes(app: web.Application) -> None:
    for route in app.router.routes():
        if route.method in {"HEAD", "*"}:
            continue
        logger.info("  %-7s %s", route.method, route.resource.canonical if route.resource else "")


async def _drain_transcripts(app: web.Application) -> None:
    transcripts = app[SERVICE_KEY].transcripts
    if transcripts is not None:
        await transcripts.drain()


def install_reload_signal(app: web.Application) -> None:
    """Invalidate the layer cache on SIGHUP so edited packs are picked up without a restart."""

    async def _install(app: web.Application) -> None:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGHUP, app[SERVICE_KEY].cache.invalidate)
        except (NotImplementedError, AttributeError, RuntimeError) as exc:
            logger.info("SIGHUP reload not available: %s", exc)

    app.on_startup.append(_install)


def create_app(
    *,
    cache: LayerCache | None = None,
    generator: TextGenerator | None = None,
    transcripts: TranscriptStore | None = None,
    allowed_origin: str | None = None,
) -> web.Application:
    """Build the aiohttp application. Collaborators default to the configured ones."""

    service = ChatService(
        cache if cache is not None else build_layer_cache(),
        generator if generator is not None else TextGenerator(),
        transcripts if transcripts is not None else TranscriptStore(),
    )

    app = web.Application(middlewares=[cors_middleware], client_max_size=MAX_BODY_BYTES)
    app[SERVICE_KEY] = service
    app[ORIGIN_KEY] = allowed_origin or core.ALLOWED_ORIGIN

    app.router.add_get(CHAT_PATH, health)
    app.router.add_post(CHAT_PATH, chat)
    app.router.add_get(f"{CHAT_PATH}/status", status)
    app.router.add_get("/api/ping", ping)

    app.on_startup.append(_log_routes)
    app.on_cleanup.append(_drain_transcripts)
    return app
