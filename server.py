"""
server.py — aiohttp web server exposing the product analysis endpoint.

Endpoints:
  POST    /api/analyze   → run the model chain, return the analysis JSON
  OPTIONS /api/analyze   → CORS preflight (204, no body)
  GET     /health        → JSON health check incl. google-genai version

/api/analyze is also mounted at /.netlify/functions/analyze so frontends
built against the old serverless deployment keep working.

Every response, errors included, carries the same permissive CORS headers.

Status codes:
  200  analysis JSON
  400  body is not JSON, or productName missing/blank
  500  API key not configured, or every model in the chain failed
"""
from __future__ import annotations

import json
import logging
from importlib import metadata
from typing import Optional

from aiohttp import web

import config
import key_store
from analysis_models import AnalysisRequest, ConfigurationError, ValidationError
from providers import manager
from providers.manager import ChainExhaustedError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin":  "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _error(status: int, message: str, details: Optional[str] = None) -> web.Response:
    body = {"error": message}
    if details:
        body["details"] = details
    return web.json_response(body, status=status)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """
    Attach CORS headers to every response, including aiohttp's own HTTP errors.
    Anything else that escapes a handler becomes a JSON 500.
    """
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(CORS_HEADERS)
        raise
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        response = _error(500, "Internal server error.")
    response.headers.update(CORS_HEADERS)
    return response


# ── Request handlers ───────────────────────────────────────────────────────────

async def handle_preflight(request: web.Request) -> web.Response:
    return web.Response(status=204)


async def handle_analyze(request: web.Request) -> web.Response:
    """
    Validate the request, run the model chain, return the first valid analysis.
    The key check comes first so a missing key is a 500 whatever the body holds.
    """
    api_key = key_store.get("gemini_api_key")
    if not api_key:
        logger.error("Rejecting request: GEMINI_API_KEY is not set")
        return _error(500, "API key is not configured.")

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "Invalid JSON body.")

    try:
        analysis_request = AnalysisRequest.from_payload(payload)
    except ValidationError as exc:
        return _error(400, str(exc))

    try:
        report = await manager.analyse_product(analysis_request, api_key)
    except ConfigurationError as exc:
        logger.error("Configuration problem: %s", exc)
        return _error(500, str(exc))
    except ChainExhaustedError as exc:
        return _error(500, "Failed to get analysis after multiple attempts.", exc.detail)

    return web.json_response(report.result.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    """Health check — reports which google-genai build is installed and the chain."""
    try:
        version = metadata.version("google-genai")
    except metadata.PackageNotFoundError as exc:
        version = f"Error finding version: {exc}"
    return web.json_response({
        "status":             "ok",
        "googleGenaiVersion": version,
        "modelChain":         config.MODEL_CHAIN,
        "apiKey":             key_store.mask(key_store.get("gemini_api_key")),
    })


# ── App factory ────────────────────────────────────────────────────────────────

def build_web_app() -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    app.router.add_get("/health", handle_health)
    for path in dict.fromkeys((config.ANALYZE_PATH, config.LEGACY_ANALYZE_PATH)):
        app.router.add_post(path, handle_analyze)
        app.router.add_route("OPTIONS", path, handle_preflight)
    return app


async def start_server() -> web.AppRunner:
    """Start the web server. Returns runner so caller can shut it down cleanly."""
    app    = build_web_app()
    runner = web.AppRunner(app, access_log=logger)
    await runner.setup()
    site = web.TCPSite(runner, config.HOST, config.PORT)
    await site.start()
    logger.info(
        "📊 Analysis endpoint listening on %s:%d%s  (chain: %s)",
        config.HOST, config.PORT, config.ANALYZE_PATH, " → ".join(config.MODEL_CHAIN),
    )
    return runner
