"""HTTP surface for the portfolio chatbot.

JSON API under ``/api`` plus a static-file fallback for the browser chat UI.
Every response carries a permissive CORS header so the UI can be hosted on a
different origin.
"""

from __future__ import annotations

import hmac
import logging
from datetime import UTC, datetime
from typing import Any

import pydantic
from aiohttp import web

from folio.chat.service import ChatService
from folio.config import settings
from folio.errors import ValidationError
from folio.models import ContentRecord
from folio.vector.indexer import ContentIndexer

logger = logging.getLogger(__name__)

CHAT_SERVICE = web.AppKey("chat_service", ChatService)
INDEXER = web.AppKey("indexer", ContentIndexer)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

_API_ROUTES = {
    "/api/chat": "POST",
    "/api/chat/clear": "POST",
    "/api/admin/ingest": "POST",
    "/api/health": "GET",
}

_records_adapter = pydantic.TypeAdapter(list[ContentRecord])


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _read_json(request: web.Request) -> Any:
    try:
        return await request.json()
    except Exception:
        return None


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Add ``Access-Control-Allow-Origin: *`` to every response."""
    response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


# -- Handlers ------------------------------------------------------------------


async def _handle_chat(request: web.Request) -> web.Response:
    """POST /api/chat: run one chat turn."""
    body = await _read_json(request)
    if not isinstance(body, dict):
        return _error("Message is required", 400)

    message = body.get("message")
    session_id = body.get("sessionId")
    if not isinstance(message, str) or (session_id is not None and not isinstance(session_id, str)):
        return _error("Message is required", 400)

    try:
        reply = await request.app[CHAT_SERVICE].chat(message, session_id)
    except ValidationError as exc:
        return _error(str(exc), 400)
    except Exception:
        logger.exception("Chat request failed")
        return _error("Failed to process chat request", 500)

    return web.json_response({"response": reply.response, "sessionId": reply.session_id})


async def _handle_clear(request: web.Request) -> web.Response:
    """POST /api/chat/clear: empty a session's history."""
    body = await _read_json(request)
    session_id = body.get("sessionId") if isinstance(body, dict) else None
    if session_id is not None and not isinstance(session_id, str):
        session_id = None

    try:
        await request.app[CHAT_SERVICE].clear(session_id)
    except ValidationError as exc:
        return _error(str(exc), 400)
    except Exception:
        logger.exception("Clearing session %s failed", session_id)
        return _error("Failed to clear session", 500)

    return web.json_response({"success": True})


def _is_authorized(request: web.Request) -> bool:
    if not settings.admin_auth_enabled:
        return True
    header = request.headers.get("Authorization", "")
    provided = header.removeprefix("Bearer ").strip()
    return hmac.compare_digest(provided.encode(), settings.admin_api_key.strip().encode())


async def _handle_ingest(request: web.Request) -> web.Response:
    """POST /api/admin/ingest: index a list of content records."""
    if not _is_authorized(request):
        logger.warning("Ingest rejected: invalid admin key")
        return _error("Unauthorized", 401)

    body = await _read_json(request)
    try:
        records = _records_adapter.validate_python(body)
    except pydantic.ValidationError as exc:
        logger.warning("Ingest rejected: %d validation error(s)", exc.error_count())
        return _error("Invalid ingest payload", 400)

    try:
        result = await request.app[INDEXER].index_batch(records)
    except Exception:
        logger.exception("Ingest failed")
        return _error("Failed to ingest data", 500)

    return web.json_response(result.model_dump())


async def _health(request: web.Request) -> web.Response:
    """GET /api/health: basic liveness check."""
    return web.json_response({"status": "ok", "timestamp": datetime.now(UTC).isoformat()})


async def _preflight(request: web.Request) -> web.Response:
    """OPTIONS on any path: CORS preflight."""
    return web.Response(status=204, headers=_CORS_HEADERS)


async def _fallback(request: web.Request) -> web.StreamResponse:
    """Anything unmatched: wrong-method API calls, or static assets."""
    path = request.path
    if path in _API_ROUTES:
        return web.json_response(
            {"error": "Method not allowed"},
            status=405,
            headers={"Allow": _API_ROUTES[path]},
        )
    if path.startswith("/api/") or request.method != "GET":
        return _error("Not found", 404)

    root = settings.static_dir.resolve()
    target = (root / path.lstrip("/")).resolve()
    if not target.is_relative_to(root):
        return _error("Not found", 404)
    if target.is_dir():
        target = target / "index.html"
    if not target.is_file():
        return _error("Not found", 404)
    return web.FileResponse(target)


def create_app(
    chat_service: ChatService | None = None,
    indexer: ContentIndexer | None = None,
) -> web.Application:
    """Build the aiohttp Application with routes."""
    app = web.Application(middlewares=[cors_middleware])
    app[CHAT_SERVICE] = chat_service or ChatService()
    app[INDEXER] = indexer or ContentIndexer()

    app.router.add_post("/api/chat", _handle_chat)
    app.router.add_post("/api/chat/clear", _handle_clear)
    app.router.add_post("/api/admin/ingest", _handle_ingest)
    app.router.add_get("/api/health", _health)
    app.router.add_route("OPTIONS", "/{tail:.*}", _preflight)
    app.router.add_route("*", "/{tail:.*}", _fallback)

    if not settings.admin_auth_enabled:
        logger.warning("ADMIN_API_KEY empty: /api/admin/ingest is open")
    return app
