"""Shared Gemini client with typed failure classification and schema validation."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import get_config
from .errors import (
    EmptyResponseError,
    MissingCredentialError,
    SchemaViolationError,
    classify_upstream_error,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key)."""

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> genai.Client:
        """Return (or create) the shared client for *api_key*.

        Raises:
            MissingCredentialError: No key passed and none configured.
        """
        key = api_key or get_config().gemini_api_key
        if not key:
            raise MissingCredentialError("API key not configured — set GEMINI_API_KEY")
        if key not in cls._clients:
            cls._clients[key] = genai.Client(api_key=key)
            logger.info("Created Gemini client (key …%s)", key[-4:])
        return cls._clients[key]

    @classmethod
    async def generate(
        cls,
        contents: Any,
        *,
        model: str | None = None,
        response_schema: dict | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
        thinking_level: str | None = None,
    ) -> str:
        """Run one ``generate_content`` call and return the visible text.

        No retries happen here; every failure surfaces to the caller as a
        typed ``UpstreamError`` produced by ``classify_upstream_error``.

        Args:
            contents: Prompt contents (plain text or a list of parts).
            model: Override model ID (defaults to config's default_model).
            response_schema: JSON schema dict to constrain output format.
            temperature: Sampling temperature; model default when None.
            system_instruction: System-level instruction for the model.
            thinking_level: Override thinking level (config default when None).

        Returns:
            The model's text response with thinking parts stripped.
        """
        cfg = get_config()
        client = cls.get()
        resolved_model = model or cfg.default_model

        config = types.GenerateContentConfig()
        if temperature is not None:
            config.temperature = temperature
        if system_instruction:
            config.system_instruction = system_instruction
        if response_schema:
            config.response_mime_type = "application/json"
            config.response_json_schema = response_schema
        level = thinking_level or cfg.default_thinking_level
        if level:
            config.thinking_config = types.ThinkingConfig(thinking_level=level)

        try:
            response = await client.aio.models.generate_content(
                model=resolved_model,
                contents=contents,
                config=config,
            )
        except Exception as exc:
            classified = classify_upstream_error(exc)
            logger.warning("Gemini call failed (%s): %s", classified.category.value, exc)
            raise classified from exc

        # Strip thinking parts, keep user-visible text
        parts = response.candidates[0].content.parts if response.candidates else None
        text_parts = [p.text for p in parts or [] if p.text and not getattr(p, "thought", False)]
        return "\n".join(text_parts) if text_parts else (response.text or "")

    @classmethod
    async def generate_structured(
        cls,
        contents: Any,
        *,
        schema: type[M],
        response_schema: dict | None = None,
        **kwargs: Any,
    ) -> M:
        """Generate JSON constrained by *schema* and validate it into the model.

        Args:
            contents: Prompt contents.
            schema: Pydantic model class defining the expected output shape.
            response_schema: Pre-computed JSON schema; derived from *schema* when None.
            **kwargs: Forwarded to ``generate()``.

        Raises:
            EmptyResponseError: The model returned no text.
            SchemaViolationError: The text is not JSON matching *schema*.
        """
        raw = await cls.generate(
            contents,
            response_schema=response_schema or schema.model_json_schema(),
            **kwargs,
        )
        if not raw or not raw.strip():
            raise EmptyResponseError("No response from AI")
        try:
            return schema.model_validate_json(raw)
        except PydanticValidationError as exc:
            logger.error("Response failed %s validation: %.200r", schema.__name__, raw)
            raise SchemaViolationError(
                f"AI response did not match {schema.__name__}: {exc.error_count()} error(s)"
            ) from exc

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for client in list(cls._clients.values()):
            try:
                await client.aio.aclose()
            except Exception as exc:
                logger.debug("Async client close failed: %s", exc)
            try:
                client.close()
            except Exception as exc:
                logger.debug("Client close failed: %s", exc)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count
