"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

RenderVariant = Literal["grid", "split", "short", "all"]

SessionId = Annotated[str, Field(min_length=1, description="Session ID returned by a previous generate call")]
ImagePath = Annotated[str | None, Field(description="Local path to a reference image (image/* only)")]
ImageBase64 = Annotated[str | None, Field(
    description="Reference image as base64 or a data:image/...;base64 URL",
)]
ImageMimeType = Annotated[str | None, Field(
    description="MIME type of the image; guessed from the path or data URL when omitted",
)]
StyleField = Annotated[str | None, Field(description="New value; omit to keep the current one")]
