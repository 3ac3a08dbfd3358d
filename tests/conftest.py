"""Shared test fixtures for cine-prompt."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cine_prompt.models.storyboard import GeneratedData, GlobalParams, ShotEntry
from cine_prompt.models.transition import TransitionPrompt, TransitionResult, TransitionSpan


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped."""
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable.

    FastMCP 2.x wraps @server.tool in FunctionTool (not callable); 3.x
    preserves the function. Tests ``await tool_func(...)`` either way.
    """
    import cine_prompt.tools.storyboard as storyboard_mod
    import cine_prompt.tools.transitions as transitions_mod

    for mod in (storyboard_mod, transitions_mod):
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/cine-prompt/.env."""
    monkeypatch.setattr("cine_prompt.dotenv.DEFAULT_ENV_PATH", tmp_path / "nonexistent.env")


@pytest.fixture(autouse=True)
def _clean_state():
    """Reset the config singleton, client pool, and session store between tests."""
    import cine_prompt.config as cfg_mod
    from cine_prompt.client import GeminiClient
    from cine_prompt.sessions import session_store

    cfg_mod._config = None
    GeminiClient._clients.clear()
    session_store._sessions.clear()
    yield
    cfg_mod._config = None
    GeminiClient._clients.clear()
    session_store._sessions.clear()


@pytest.fixture()
def mock_gemini_client():
    """Patch GeminiClient.get(), .generate(), and .generate_structured() for unit tests."""
    with (
        patch("cine_prompt.client.GeminiClient.get") as mock_get,
        patch("cine_prompt.client.GeminiClient.generate", new_callable=AsyncMock) as mock_gen,
        patch(
            "cine_prompt.client.GeminiClient.generate_structured",
            new_callable=AsyncMock,
        ) as mock_structured,
    ):
        client = MagicMock()
        mock_get.return_value = client
        yield {
            "get": mock_get,
            "generate": mock_gen,
            "generate_structured": mock_structured,
            "client": client,
        }


@pytest.fixture()
def global_params() -> GlobalParams:
    return GlobalParams(
        theme="Revenge western",
        environment="Dusty frontier town at dawn",
        lighting="Low golden backlight, long shadows",
        artist_style="Sergio Leone",
        camera="Anamorphic 40mm",
        color_grade="Bleach bypass amber",
    )


@pytest.fixture()
def storyboard_data(global_params) -> GeneratedData:
    """A 4-shot storyboard with one shot missing its shortContent."""
    return GeneratedData(
        shot="2x2 Grid Storyboard Layout, 16:9 panels",
        subject_intro="Two gunslingers, Character 1 and Character 2, face off on main street.",
        shots=[
            ShotEntry(
                id=1,
                title="[Shot 1 Role 1 walks out]",
                content="Camera Rig: dolly\nComposition: wide\nCharacter: duster coat",
                short_content="Gunslinger steps into   the street,\nwide dolly",
            ),
            ShotEntry(
                id=2,
                title="[Shot 2 Role 2 waits]",
                content="Camera Rig: static\nComposition: medium\nCharacter: black hat",
                short_content="Rival waits under the saloon sign",
            ),
            ShotEntry(
                id=3,
                title="[Shot 3 Hands hover]",
                content="Camera Rig: macro\nComposition: insert\nCharacter: twitching fingers",
                short_content="Extreme close-up on hovering hands",
            ),
            ShotEntry(
                id=4,
                title="[Shot 4 The draw]",
                content="Camera Rig: crash zoom\nComposition: two-shot\nCharacter: both draw",
                short_content="",
            ),
        ],
        global_params=global_params,
    )


@pytest.fixture()
def transition_result() -> TransitionResult:
    return TransitionResult(
        analysis="Desaturated western, anamorphic framing, amber highlights.",
        transitions=[
            TransitionSpan(
                from_shot_index=1,
                to_shot_index=2,
                transition_prompts=[
                    TransitionPrompt(order=1, content="Boots kick up dust mid-stride"),
                    TransitionPrompt(order=2, content="Camera pans to the saloon"),
                ],
            ),
            TransitionSpan(
                from_shot_index=2,
                to_shot_index=3,
                transition_prompts=[
                    TransitionPrompt(order=1, content="Rival's eyes narrow"),
                    TransitionPrompt(order=2, content="Tilt down to the holster"),
                ],
            ),
        ],
    )


@pytest.fixture()
def png_bytes() -> bytes:
    """Minimal PNG signature plus padding; never decoded as an image."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
