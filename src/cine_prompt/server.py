"""Main FastMCP server — mounts the storyboard and transition sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .client import GeminiClient
from .tools.storyboard import storyboard_server
from .tools.transitions import transition_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — tears down shared Gemini clients."""
    yield {}
    closed = await GeminiClient.close_all()
    logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "cine-prompt",
    instructions=(
        "Cinematic storyboard prompt generator. storyboard_generate turns a "
        "description and/or reference image into grid, split and short shot "
        "prompts; storyboard_update_style edits the shared style block without "
        "a new model call; transition_generate writes in-between frames for an "
        "existing storyboard grid image."
    ),
    lifespan=_lifespan,
)

app.mount(storyboard_server)
app.mount(transition_server)


def main() -> None:
    """Entry-point for ``cine-prompt-mcp`` console script."""
    logging.basicConfig(level=logging.INFO)
    app.run()


if __name__ == "__main__":
    main()
