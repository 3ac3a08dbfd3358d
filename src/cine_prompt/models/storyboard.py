"""Storyboard models — user configuration and the structured output schema.

``GeneratedData`` doubles as the ``response_json_schema`` sent to Gemini
and as the validator for the text that comes back. Field names travel
in camelCase on the wire and are snake_case in Python.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)

SHORT_CONTENT_TARGET_CHARS = 400


class AspectRatio(str, Enum):
    """Frame aspect ratios offered to the user."""

    WIDE_16_9 = "16:9"
    CINEMA_2_39_1 = "2.39:1"
    PORTRAIT_9_16 = "9:16"
    SQUARE_1_1 = "1:1"
    CLASSIC_4_3 = "4:3"


class ShotCount(IntEnum):
    """Supported storyboard sizes."""

    THREE = 3
    FOUR = 4
    SIX = 6
    NINE = 9
    SIXTEEN = 16
    TWENTY = 20


class UserConfig(BaseModel):
    """Layout parameters and free text collected from the user."""

    model_config = _WIRE

    shot_count: ShotCount = ShotCount.NINE
    aspect_ratio: AspectRatio = AspectRatio.WIDE_16_9
    main_description: str = ""
    additional_notes: str = ""


class GlobalParams(BaseModel):
    """Cross-shot stylistic baseline shared by every shot of one generation."""

    model_config = _WIRE

    theme: str
    environment: str
    lighting: str
    artist_style: str
    camera: str
    color_grade: str


class GlobalParamsPatch(BaseModel):
    """Partial update of :class:`GlobalParams`; ``None`` leaves a field untouched."""

    model_config = _WIRE

    theme: str | None = None
    environment: str | None = None
    lighting: str | None = None
    artist_style: str | None = None
    camera: str | None = None
    color_grade: str | None = None

    def apply(self, params: GlobalParams) -> GlobalParams:
        """Return a new GlobalParams with the non-None fields of this patch applied."""
        return params.model_copy(update=self.model_dump(exclude_none=True))


class ShotEntry(BaseModel):
    """One panel of the storyboard."""

    model_config = _WIRE

    id: int = Field(ge=1)
    title: str = Field(description="e.g. '[Shot 1 Role 1 meets Role 2]'")
    content: str = Field(
        description="The detailed prompt block for this specific shot (Camera Rig, Composition, Character).",
    )
    short_content: str = Field(
        description=f"Condensed version of the prompt (< {SHORT_CONTENT_TARGET_CHARS} chars).",
    )


class GeneratedData(BaseModel):
    """Structured output for a storyboard generation."""

    model_config = _WIRE

    shot: str = Field(description="Description of the grid layout (e.g. '3x3 Grid Storyboard Layout...')")
    subject_intro: str = Field(description="Overall scene introduction and character definitions.")
    shots: list[ShotEntry] = Field(min_length=1, description="List of individual shot details")
    global_params: GlobalParams = Field(description="Global stylistic parameters")

    @model_validator(mode="after")
    def _contiguous_ids(self) -> GeneratedData:
        ids = sorted(s.id for s in self.shots)
        if ids != list(range(1, len(ids) + 1)):
            raise ValueError(f"Shot ids must be contiguous from 1, got {ids}")
        self.shots.sort(key=lambda s: s.id)
        return self
