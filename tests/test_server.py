"""
Tests for server.py using aiohttp's in-process TestServer.

Covers:
  - OPTIONS preflight: 204, empty body, CORS headers
  - POST: missing key → 500 (whatever the body), bad JSON → 400,
    missing productName → 400, chain exhausted → 500 with details,
    success → 200 with analysis JSON
  - CORS headers on every response, legacy path, /health
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

import server
from analysis_models import (
    AnalysisRequest,
    AnalysisResult,
    AttemptOutcome,
    ChainReport,
    ConfigurationError,
)
from providers.manager import ChainExhaustedError

PATH = "/api/analyze"

RESULT = AnalysisResult(
    pros=["a", "b", "c"],
    cons=["d", "e", "f"],
    factors={"urgency": {"score": 6, "reason": "Solves a real pain."}},
)


@pytest_asyncio.fixture
async def client():
    async with TestClient(TestServer(server.build_web_app())) as c:
        yield c


def assert_cors(resp) -> None:
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert "Content-Type" in resp.headers["Access-Control-Allow-Headers"]
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]
    assert "OPTIONS" in resp.headers["Access-Control-Allow-Methods"]


@pytest.mark.asyncio
class TestPreflight:
    async def test_options_returns_204_with_cors(self, client):
        resp = await client.options(PATH)
        assert resp.status == 204
        assert await resp.read() == b""
        assert_cors(resp)

    async def test_options_without_key_still_204(self, client):
        resp = await client.options(PATH)
        assert resp.status == 204


@pytest.mark.asyncio
class TestAnalyzeErrors:
    async def test_missing_key_is_500_even_with_valid_body(self, client):
        resp = await client.post(PATH, json={"productName": "Yoga mat"})
        assert resp.status == 500
        body = await resp.json()
        assert body["error"] == "API key is not configured."
        assert_cors(resp)

    async def test_missing_key_is_500_even_with_invalid_body(self, client):
        resp = await client.post(PATH, data="not json")
        assert resp.status == 500

    async def test_invalid_json_is_400(self, client, api_key):
        resp = await client.post(PATH, data="{not json",
                                 headers={"Content-Type": "application/json"})
        assert resp.status == 400
        assert (await resp.json())["error"] == "Invalid JSON body."
        assert_cors(resp)

    async def test_empty_body_is_400(self, client, api_key):
        resp = await client.post(PATH, data=b"")
        assert resp.status == 400

    async def test_missing_product_name_is_400(self, client, api_key):
        with patch("providers.manager.analyse_product", new=AsyncMock()) as run:
            resp = await client.post(PATH, json={})
        assert resp.status == 400
        assert (await resp.json())["error"] == "productName is required."
        run.assert_not_awaited()
        assert_cors(resp)

    async def test_blank_product_name_is_400(self, client, api_key):
        resp = await client.post(PATH, json={"productName": "   "})
        assert resp.status == 400
        assert (await resp.json())["error"] == "productName is required."

    async def test_array_body_is_400(self, client, api_key):
        resp = await client.post(PATH, json=["Yoga mat"])
        assert resp.status == 400

    async def test_chain_exhausted_is_500_with_last_detail(self, client, api_key):
        exc = ChainExhaustedError(
            "[gemini-2.0-flash] JSON parse error",
            [AttemptOutcome("gemini-2.5-pro", False, "[gemini-2.5-pro] timed out after 9s"),
             AttemptOutcome("gemini-2.0-flash", False, "[gemini-2.0-flash] JSON parse error")],
        )
        with patch("providers.manager.analyse_product", new=AsyncMock(side_effect=exc)):
            resp = await client.post(PATH, json={"productName": "Yoga mat"})
        assert resp.status == 500
        body = await resp.json()
        assert body["error"] == "Failed to get analysis after multiple attempts."
        assert body["details"] == "[gemini-2.0-flash] JSON parse error"
        assert "timed out" not in body["details"]
        assert_cors(resp)

    async def test_unexpected_error_is_json_500_with_cors(self, client, api_key):
        exc = RecursionError("maximum recursion depth exceeded")
        with patch("providers.manager.analyse_product", new=AsyncMock(side_effect=exc)):
            resp = await client.post(PATH, json={"productName": "Yoga mat"})
        assert resp.status == 500
        assert resp.content_type == "application/json"
        assert (await resp.json())["error"] == "Internal server error."
        assert_cors(resp)

    async def test_no_models_configured_is_500(self, client, api_key):
        exc = ConfigurationError("No models available.")
        with patch("providers.manager.analyse_product", new=AsyncMock(side_effect=exc)):
            resp = await client.post(PATH, json={"productName": "Yoga mat"})
        assert resp.status == 500
        assert (await resp.json())["error"] == "No models available."


@pytest.mark.asyncio
class TestAnalyzeSuccess:
    async def test_returns_analysis(self, client, api_key):
        report = ChainReport(RESULT, [AttemptOutcome("gemini-2.5-pro", True, latency_ms=800)])
        with patch("providers.manager.analyse_product",
                   new=AsyncMock(return_value=report)) as run:
            resp = await client.post(PATH, json={"productName": "  Yoga mat ",
                                                 "targetMarket": "UK"})
        assert resp.status == 200
        assert await resp.json() == RESULT.to_dict()
        assert_cors(resp)
        run.assert_awaited_once_with(
            AnalysisRequest("Yoga mat", "UK", "Amazon FBA"), api_key
        )

    async def test_legacy_path(self, client, api_key):
        report = ChainReport(RESULT, [])
        with patch("providers.manager.analyse_product", new=AsyncMock(return_value=report)):
            resp = await client.post("/.netlify/functions/analyze",
                                     json={"productName": "Yoga mat"})
        assert resp.status == 200

    async def test_get_not_allowed(self, client):
        resp = await client.get(PATH)
        assert resp.status == 405
        assert_cors(resp)


@pytest.mark.asyncio
class TestHealth:
    async def test_reports_version_and_chain(self, client, monkeypatch):
        import config
        monkeypatch.setattr(config, "MODEL_CHAIN", ["gemini-2.5-pro", "gemini-2.5-flash"])
        resp = await client.get("/health")
        assert resp.status == 200
        body = await resp.json()
        assert body["status"] == "ok"
        assert body["googleGenaiVersion"]
        assert body["modelChain"] == ["gemini-2.5-pro", "gemini-2.5-flash"]
        assert body["apiKey"] == "not set"

    async def test_key_masked(self, client, api_key):
        body = await (await client.get("/health")).json()
        assert api_key not in body["apiKey"]
