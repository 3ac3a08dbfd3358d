"""Tests for the HTTP gateway (POST /generate)."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime

import httpx
import pytest
from google.genai import errors as genai_errors

from cine_prompt import gateway
from cine_prompt.errors import UpstreamAuthError, UpstreamQuotaError
from cine_prompt.gateway import cors_headers, create_app

ALLOWED = "http://localhost:5173"


class FakeUpstream:
    """Records calls; returns *text* or raises *error*."""

    def __init__(self, text: str = "generated", error: Exception | None = None, hang: bool = False):
        self.text = text
        self.error = error
        self.hang = hang
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, prompt: str, model: str) -> str:
        self.calls.append((prompt, model))
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return self.text


async def _request(upstream, method: str = "POST", json=None, content=None, origin: str | None = ALLOWED):
    headers = {"Origin": origin} if origin else {}
    transport = httpx.ASGITransport(app=create_app(upstream))
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as client:
        return await client.request(method, "/generate", json=json, content=content, headers=headers)


class TestCors:
    def test_allowed_origin_echoed(self):
        headers = cors_headers(ALLOWED, [ALLOWED])
        assert headers["Access-Control-Allow-Origin"] == ALLOWED
        assert headers["Vary"] == "Origin"

    def test_unknown_origin_gets_no_allow_origin(self):
        headers = cors_headers("https://evil.example", [ALLOWED])
        assert "Access-Control-Allow-Origin" not in headers
        assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"

    @pytest.mark.asyncio
    async def test_preflight(self):
        upstream = FakeUpstream()
        resp = await _request(upstream, method="OPTIONS")
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == ALLOWED
        assert resp.headers["access-control-allow-headers"] == "Content-Type"
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_disallowed_origin_still_served_without_header(self):
        resp = await _request(FakeUpstream(), json={"prompt": "hi"}, origin="https://evil.example")
        assert resp.status_code == 200
        assert "access-control-allow-origin" not in resp.headers

    @pytest.mark.asyncio
    async def test_custom_allow_list(self, monkeypatch):
        monkeypatch.setenv("CINE_PROMPT_ALLOWED_ORIGINS", "https://studio.example/, https://b.example")
        resp = await _request(FakeUpstream(), json={"prompt": "hi"}, origin="https://studio.example")
        assert resp.headers["access-control-allow-origin"] == "https://studio.example"


class TestValidation:
    @pytest.mark.asyncio
    async def test_get_not_allowed(self):
        resp = await _request(FakeUpstream(), method="GET")
        assert resp.status_code == 405
        assert resp.json()["error"] == "Method not allowed"

    @pytest.mark.asyncio
    async def test_missing_key_checked_before_body(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        upstream = FakeUpstream()
        resp = await _request(upstream, json={"prompt": 42})
        assert resp.status_code == 500
        assert resp.json() == {
            "error": "Configuration error",
            "message": "API key not configured on server",
        }
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_oversized_prompt(self):
        upstream = FakeUpstream()
        resp = await _request(upstream, json={"prompt": "x" * 10001})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Prompt exceeds maximum length of 10000 characters"
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_prompt_at_limit_accepted(self):
        upstream = FakeUpstream()
        resp = await _request(upstream, json={"prompt": "x" * 10000})
        assert resp.status_code == 200
        assert len(upstream.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"prompt": ""}, {"prompt": 42}, {"prompt": ["a"]}, ["prompt"]])
    async def test_bad_prompt(self, body):
        upstream = FakeUpstream()
        resp = await _request(upstream, json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        resp = await _request(FakeUpstream(), content=b"{not json", origin=None)
        assert resp.status_code == 400


class TestUpstream:
    @pytest.mark.asyncio
    async def test_success(self):
        upstream = FakeUpstream(text="A lone rider crests the ridge.")
        resp = await _request(upstream, json={"prompt": "describe a rider"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["text"] == "A lone rider crests the ridge."
        assert body["model"] == "gemini-2.5-flash"
        assert datetime.fromisoformat(body["timestamp"]).tzinfo is not None
        assert upstream.calls == [("describe a rider", "gemini-2.5-flash")]

    @pytest.mark.asyncio
    async def test_model_override(self):
        upstream = FakeUpstream()
        resp = await _request(upstream, json={"prompt": "hi", "modelName": "gemini-2.5-pro"})
        assert resp.json()["model"] == "gemini-2.5-pro"
        assert upstream.calls[0][1] == "gemini-2.5-pro"

    @pytest.mark.asyncio
    async def test_timeout_does_not_wait_for_upstream_teardown(self, monkeypatch):
        monkeypatch.setenv("CINE_PROMPT_GATEWAY_TIMEOUT", "0.1")
        monkeypatch.setattr(gateway, "_abandoned", set())
        torn_down = asyncio.Event()

        async def _slow_to_cancel(prompt: str, model: str) -> str:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                await asyncio.sleep(1.0)
                torn_down.set()
                raise
            return "unreachable"

        start = time.monotonic()
        resp = await _request(_slow_to_cancel, json={"prompt": "hi"})
        elapsed = time.monotonic() - start

        assert resp.status_code == 504
        assert elapsed < 0.6
        assert not torn_down.is_set()
        assert len(gateway._abandoned) == 1

        await asyncio.gather(*gateway._abandoned, return_exceptions=True)
        assert torn_down.is_set()
        assert gateway._abandoned == set()

    @pytest.mark.asyncio
    async def test_timeout_returns_504(self, monkeypatch):
        monkeypatch.setenv("CINE_PROMPT_GATEWAY_TIMEOUT", "0.05")
        monkeypatch.setattr(gateway, "_abandoned", set())
        start = time.monotonic()
        resp = await _request(FakeUpstream(hang=True), json={"prompt": "hi"})
        elapsed = time.monotonic() - start

        assert resp.status_code == 504
        assert resp.json()["error"] == "Gateway timeout"
        assert 0.05 <= elapsed < 5
        await asyncio.gather(*gateway._abandoned, return_exceptions=True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error, status, title", [
        (UpstreamAuthError("bad key"), 401, "Authentication error"),
        (UpstreamQuotaError("slow down"), 429, "Rate limit exceeded"),
        (genai_errors.ClientError(429, {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}}),
         429, "Rate limit exceeded"),
        (genai_errors.ClientError(403, {"error": {"code": 403, "status": "PERMISSION_DENIED"}}),
         401, "Authentication error"),
    ])
    async def test_classified_failures(self, error, status, title):
        resp = await _request(FakeUpstream(error=error), json={"prompt": "hi"})
        assert resp.status_code == status
        assert resp.json()["error"] == title

    @pytest.mark.asyncio
    async def test_unknown_failure_hides_details_in_production(self):
        resp = await _request(FakeUpstream(error=RuntimeError("kaboom")), json={"prompt": "hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error", "message": "Failed to generate content"}

    @pytest.mark.asyncio
    async def test_unknown_failure_details_in_development(self, monkeypatch):
        monkeypatch.setenv("CINE_PROMPT_ENV", "development")
        resp = await _request(FakeUpstream(error=RuntimeError("kaboom")), json={"prompt": "hi"})
        assert resp.status_code == 500
        assert resp.json()["details"] == "kaboom"

    @pytest.mark.asyncio
    async def test_default_upstream_uses_gemini_client(self, mock_gemini_client):
        mock_gemini_client["generate"].return_value = "from gemini"
        resp = await _request(None, json={"prompt": "hi"})
        assert resp.json()["text"] == "from gemini"
        mock_gemini_client["generate"].assert_awaited_once_with("hi", model="gemini-2.5-flash")


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self):
        transport = httpx.ASGITransport(app=create_app(FakeUpstream()))
        async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as client:
            resp = await client.get("/health")
        assert resp.json() == {"status": "ok"}
