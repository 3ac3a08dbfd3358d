"""Single-prompt HTTP gateway in front of Gemini.

``POST /generate`` takes ``{"prompt": str, "modelName"?: str}`` and returns
the generated text. The server holds the API key, answers CORS only for
allow-listed origins, and caps every upstream call at a fixed timeout
after which the client gets a 504 regardless of what upstream does.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .client import GeminiClient
from .config import get_config
from .errors import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamTimeoutError,
    ValidationError,
    classify_upstream_error,
)

logger = logging.getLogger(__name__)

Upstream = Callable[[str, str], Awaitable[str]]

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# (status, error title, client-facing message) per upstream error class
_UPSTREAM_RESPONSES: dict[type[UpstreamError], tuple[int, str, str]] = {
    UpstreamTimeoutError: (504, "Gateway timeout", "Request to AI service timed out"),
    UpstreamAuthError: (401, "Authentication error", "Invalid API key configuration"),
    UpstreamQuotaError: (429, "Rate limit exceeded", "API quota exceeded, please try again later"),
}


async def gemini_upstream(prompt: str, model: str) -> str:
    """Plain text generation, no schema or system instruction."""
    return await GeminiClient.generate(prompt, model=model)


def cors_headers(origin: str, allowed: list[str]) -> dict[str, str]:
    """CORS headers for *origin*; the origin is echoed only when allow-listed."""
    headers = {
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if origin and origin.rstrip("/") in allowed:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def _error(status: int, error: str, message: str, headers: dict[str, str], **extra: str) -> JSONResponse:
    return JSONResponse({"error": error, "message": message, **extra}, status_code=status, headers=headers)


def _validate_body(body: object, max_chars: int, default_model: str) -> tuple[str, str]:
    """Return ``(prompt, model)`` or raise ValidationError."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    prompt = body.get("prompt")
    if not prompt or not isinstance(prompt, str):
        raise ValidationError("Prompt is required and must be a string")
    if len(prompt) > max_chars:
        raise ValidationError(f"Prompt exceeds maximum length of {max_chars} characters")
    model = body.get("modelName") or default_model
    if not isinstance(model, str):
        raise ValidationError("modelName must be a string")
    return prompt, model


# Abandoned upstream calls, referenced until their teardown settles
_abandoned: set[asyncio.Future] = set()


def _reap(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Abandoned upstream call failed: %s", task.exception())


def _abandon(task: asyncio.Future) -> None:
    """Cancel *task* without waiting for it to unwind."""
    task.cancel()
    _abandoned.add(task)
    task.add_done_callback(_reap)


def _upstream_failure(exc: Exception, headers: dict[str, str], development: bool) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        return _error(500, "Configuration error", "API key not configured on server", headers)
    classified = classify_upstream_error(exc)
    for cls, (status, error, message) in _UPSTREAM_RESPONSES.items():
        if isinstance(classified, cls):
            return _error(status, error, message, headers)
    extra = {"details": str(exc)} if development else {}
    return _error(500, "Internal server error", "Failed to generate content", headers, **extra)


def create_app(upstream: Upstream | None = None) -> Starlette:
    """Build the gateway ASGI app.

    Args:
        upstream: ``(prompt, model) -> text`` coroutine; Gemini by default.
    """
    call_upstream = upstream or gemini_upstream

    async def generate(request: Request) -> Response:
        cfg = get_config()
        headers = cors_headers(request.headers.get("origin", ""), cfg.allowed_origins)

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)
        if request.method != "POST":
            return _error(405, "Method not allowed", "Only POST requests are accepted", headers)

        if not cfg.gemini_api_key:
            logger.error("GEMINI_API_KEY environment variable is not set")
            return _error(500, "Configuration error", "API key not configured on server", headers)

        try:
            body = await request.json()
        except ValueError:
            return _error(400, "Invalid request", "Request body must be valid JSON", headers)
        try:
            prompt, model = _validate_body(body, cfg.max_prompt_chars, cfg.gateway_model)
        except ValidationError as exc:
            return _error(400, "Invalid request", str(exc), headers)

        task = asyncio.ensure_future(call_upstream(prompt, model))
        try:
            done, _ = await asyncio.wait({task}, timeout=cfg.gateway_timeout_seconds)
        except asyncio.CancelledError:
            _abandon(task)
            raise
        if not done:
            _abandon(task)
            logger.error("Gemini API timeout after %.1fs (model=%s)", cfg.gateway_timeout_seconds, model)
            return _error(504, "Gateway timeout", "Request to AI service timed out", headers)

        try:
            text = task.result()
        except Exception as exc:
            logger.exception("Gemini API error (model=%s)", model)
            return _upstream_failure(exc, headers, cfg.development_mode)

        logger.info("Generated %d char(s) with %s", len(text), model)
        return JSONResponse(
            {
                "success": True,
                "text": text,
                "model": model,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            headers=headers,
        )

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    return Starlette(routes=[
        Route("/generate", generate, methods=_ALL_METHODS),
        Route("/health", health, methods=["GET"]),
    ])


def main() -> None:
    """Entry-point for ``cine-prompt-gateway`` console script."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    cfg = get_config()
    uvicorn.run(create_app(), host=cfg.gateway_host, port=cfg.gateway_port)


if __name__ == "__main__":
    main()
