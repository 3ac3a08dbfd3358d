"""Transition tools — 2 tools on a FastMCP sub-server."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Literal

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..builder import check_transition_input, generate_transitions
from ..errors import make_tool_error
from ..formatting import render_transition_span, render_transitions
from ..media import load_reference_image
from ..models.transition import TransitionConfig
from ..sessions import session_store
from ..types import ImageBase64, ImageMimeType, ImagePath, SessionId

logger = logging.getLogger(__name__)
transition_server = FastMCP("transitions")


@transition_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
async def transition_generate(
    image_path: ImagePath = None,
    image_base64: ImageBase64 = None,
    image_mime_type: ImageMimeType = None,
    transition_count: Literal[1, 2, 3] = 1,
    notes: Annotated[str, Field(description="Extra instructions, e.g. 'focus on character movement'")] = "",
    session_id: Annotated[str | None, Field(description="Reuse an existing transition session")] = None,
) -> dict:
    """Generate in-between frame prompts for an existing storyboard grid image.

    Panels are read left-to-right, top-to-bottom; every adjacent pair gets
    ``transition_count`` intermediate prompts in the storyboard's style.

    Args:
        image_path: Local storyboard grid image.
        image_base64: Storyboard grid image as base64 or data URL.
        image_mime_type: MIME type override for the image.
        transition_count: Intermediate frames per adjacent pair (1-3).
        notes: Additional free-text instructions.
        session_id: Existing transition session.

    Returns:
        Dict with session_id, generation, data and rendering, or a tool error.
    """
    try:
        config = TransitionConfig(transition_count=transition_count, additional_notes=notes)
        image = load_reference_image(
            image_path=image_path, image_base64=image_base64, mime_type=image_mime_type,
        )
        check_transition_input(image)
        session = session_store.get_transition(session_id) if session_id else session_store.create_transition()
        token = session.begin_generation()
    except Exception as exc:
        return make_tool_error(exc)

    try:
        result = await generate_transitions(config, image)
    except asyncio.CancelledError:
        session.fail_generation(token, "Generation cancelled")
        raise
    except Exception as exc:
        session.fail_generation(token, exc)
        return {**make_tool_error(exc), "session_id": session.session_id}

    if not session.complete_generation(token, result):
        return {"session_id": session.session_id, "generation": token, "discarded": True}
    session.config = config

    logger.info(
        "Transition %s generation %d: %d span(s)", session.session_id, token, len(result.transitions),
    )
    return {
        "session_id": session.session_id,
        "generation": token,
        "data": result.model_dump(by_alias=True),
        "rendering": render_transitions(result, config.transition_count),
    }


@transition_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
async def transition_render(session_id: SessionId) -> dict:
    """Re-render the session's latest transition result."""
    try:
        session = session_store.get_transition(session_id)
        if session.result is None:
            raise ValueError("No transitions generated yet for this session")
        count = session.config.transition_count
        return {
            "session_id": session.session_id,
            "analysis": session.result.analysis,
            "spans": [render_transition_span(s, count) for s in session.result.transitions],
            "rendering": render_transitions(session.result, count),
            "last_error": session.error,
        }
    except Exception as exc:
        return make_tool_error(exc)
