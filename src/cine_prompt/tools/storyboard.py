"""Storyboard tools — 4 tools on a FastMCP sub-server."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Literal

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..builder import check_storyboard_input, generate_storyboard
from ..errors import make_tool_error
from ..formatting import render_grid, render_short, render_split, render_storyboard
from ..media import InlineImage, load_reference_image
from ..models.storyboard import GlobalParams, GlobalParamsPatch, UserConfig
from ..sessions import StoryboardSession, session_store
from ..types import ImageBase64, ImageMimeType, ImagePath, RenderVariant, SessionId, StyleField

logger = logging.getLogger(__name__)
storyboard_server = FastMCP("storyboard")


async def _run_generation(
    session: StoryboardSession,
    config: UserConfig,
    image: InlineImage | None,
    seed: GlobalParams | None,
) -> dict:
    """Drive one generation through the session state machine."""
    try:
        token = session.begin_generation()
    except Exception as exc:
        return make_tool_error(exc)
    try:
        data = await generate_storyboard(config, image, seed)
    except asyncio.CancelledError:
        session.fail_generation(token, "Generation cancelled")
        raise
    except Exception as exc:
        session.fail_generation(token, exc)
        return {**make_tool_error(exc), "session_id": session.session_id}

    if not session.complete_generation(token, data):
        return {"session_id": session.session_id, "generation": token, "discarded": True}
    session.config = config
    session.image = image

    logger.info("Storyboard %s generation %d: %d shot(s)", session.session_id, token, len(data.shots))
    return {
        "session_id": session.session_id,
        "generation": token,
        "data": data.model_dump(by_alias=True),
        "renderings": render_storyboard(data, session.global_params),
    }


@storyboard_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
async def storyboard_generate(
    description: Annotated[str, Field(description="Scene/story description; may be empty when an image is attached")] = "",
    shot_count: Literal[3, 4, 6, 9, 16, 20] = 9,
    aspect_ratio: Literal["16:9", "2.39:1", "9:16", "1:1", "4:3"] = "16:9",
    notes: Annotated[str, Field(description="Additional notes for the director")] = "",
    image_path: ImagePath = None,
    image_base64: ImageBase64 = None,
    image_mime_type: ImageMimeType = None,
    session_id: Annotated[str | None, Field(
        description="Continue an existing session; its current style parameters seed the new storyboard",
    )] = None,
    keep_style: Annotated[bool, Field(
        description="When continuing a session, anchor the new storyboard to its current style parameters",
    )] = True,
) -> dict:
    """Generate a storyboard: layout, subject intro, per-shot prompts and style block.

    Provide a description, a reference image, or both. The response holds
    the structured data plus grid, split and short renderings.

    Args:
        description: Free-text description of the scene.
        shot_count: Number of shots in the grid.
        aspect_ratio: Frame aspect ratio.
        notes: Additional free-text notes.
        image_path: Local reference image.
        image_base64: Reference image as base64 or data URL.
        image_mime_type: MIME type override for the image.
        session_id: Existing session to regenerate in.
        keep_style: Seed the request with the session's style parameters.

    Returns:
        Dict with session_id, generation, data and renderings, or a tool error.
    """
    try:
        config = UserConfig(
            shot_count=shot_count,
            aspect_ratio=aspect_ratio,
            main_description=description,
            additional_notes=notes,
        )
        image = load_reference_image(
            image_path=image_path, image_base64=image_base64, mime_type=image_mime_type,
        )
        check_storyboard_input(config, image)
        session = session_store.get_storyboard(session_id) if session_id else session_store.create_storyboard()
    except Exception as exc:
        return make_tool_error(exc)

    seed = session.global_params if keep_style else None
    return await _run_generation(session, config, image, seed)


@storyboard_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
async def storyboard_refine(session_id: SessionId) -> dict:
    """Regenerate a session's storyboard anchored to its (possibly edited) style parameters.

    Reuses the session's last configuration and reference image.
    """
    try:
        session = session_store.get_storyboard(session_id)
    except Exception as exc:
        return make_tool_error(exc)
    return await _run_generation(session, session.config, session.image, session.global_params)


@storyboard_server.tool(annotations=ToolAnnotations(readOnlyHint=False, idempotentHint=True, openWorldHint=False))
async def storyboard_update_style(
    session_id: SessionId,
    theme: StyleField = None,
    environment: StyleField = None,
    lighting: StyleField = None,
    artist_style: StyleField = None,
    camera: StyleField = None,
    color_grade: StyleField = None,
) -> dict:
    """Edit the session's global style parameters and return re-rendered prompts.

    No model call is made; grid, split and short renderings all pick up
    the new values.
    """
    try:
        session = session_store.get_storyboard(session_id)
        params = session.update_global_params(GlobalParamsPatch(
            theme=theme,
            environment=environment,
            lighting=lighting,
            artist_style=artist_style,
            camera=camera,
            color_grade=color_grade,
        ))
        return {
            "session_id": session.session_id,
            "global_params": params.model_dump(by_alias=True),
            "renderings": render_storyboard(session.result, params),
        }
    except Exception as exc:
        return make_tool_error(exc)


@storyboard_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
async def storyboard_render(
    session_id: SessionId,
    variant: RenderVariant = "all",
    shot_id: Annotated[int | None, Field(ge=1, description="Limit split/short output to one shot")] = None,
) -> dict:
    """Render the session's current storyboard as grid, split, or short prompts."""
    try:
        session = session_store.get_storyboard(session_id)
        data, params = session.result, session.global_params
        if data is None or params is None:
            raise ValueError("No storyboard generated yet for this session")

        shots = [s for s in data.shots if shot_id is None or s.id == shot_id]
        if not shots:
            raise ValueError(f"Shot {shot_id} not found (storyboard has {len(data.shots)} shots)")

        out: dict = {"session_id": session.session_id, "last_error": session.error}
        if variant in ("grid", "all"):
            out["grid"] = render_grid(data, params)
        if variant in ("split", "all"):
            out["split"] = [{"id": s.id, "text": render_split(s, params)} for s in shots]
        if variant in ("short", "all"):
            out["short"] = [render_short(s, params).as_dict() for s in shots]
        return out
    except Exception as exc:
        return make_tool_error(exc)
