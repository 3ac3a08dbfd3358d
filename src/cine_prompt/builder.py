"""Model request assembly for storyboard and transition generations.

Both request kinds share one shape: a fixed system instruction, a JSON
response schema derived from the pydantic output model, and an ordered
list of parts (optional inline image first, text parts after).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from google.genai import types
from pydantic import BaseModel

from .client import GeminiClient
from .errors import ValidationError
from .media import InlineImage
from .models.storyboard import GeneratedData, GlobalParams, UserConfig
from .models.transition import TransitionConfig, TransitionResult
from .prompts.storyboard import (
    REFERENCE_IMAGE_ANALYSIS,
    STORYBOARD_REQUEST,
    STORYBOARD_SYSTEM,
    STYLE_ANCHOR,
)
from .prompts.transition import TRANSITION_REQUEST, TRANSITION_SYSTEM
from .schema_guard import check_schema_complexity

logger = logging.getLogger(__name__)

STORYBOARD_TEMPERATURE = 0.7
TRANSITION_TEMPERATURE = 0.6


@dataclass
class ModelRequest:
    """Everything needed for one ``generate_content`` call."""

    system_instruction: str
    output_model: type[BaseModel]
    contents: list[types.Part]
    temperature: float
    response_schema: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.response_schema:
            self.response_schema = self.output_model.model_json_schema()
        check_schema_complexity(self.response_schema)

    @property
    def text_parts(self) -> list[str]:
        return [p.text for p in self.contents if p.text is not None]

    @property
    def image_parts(self) -> list[types.Part]:
        return [p for p in self.contents if p.inline_data is not None]


def grid_dimension(shot_count: int) -> int:
    """Side length of the square-ish grid requested for *shot_count* shots."""
    return math.ceil(math.sqrt(shot_count))


def check_storyboard_input(config: UserConfig, image: InlineImage | None) -> None:
    """Raise ValidationError when there is neither a description nor an image."""
    if not config.main_description.strip() and image is None:
        raise ValidationError("Provide a description or a reference image")


def check_transition_input(image: InlineImage | None) -> None:
    """Raise ValidationError when the storyboard image is missing."""
    if image is None:
        raise ValidationError("A storyboard image is required to generate transitions")


def build_storyboard_request(
    config: UserConfig,
    image: InlineImage | None = None,
    previous_params: GlobalParams | None = None,
) -> ModelRequest:
    """Assemble the storyboard request.

    The final part is always the main text part carrying shot count,
    aspect ratio, description and notes. With *previous_params* (refine
    path) the six style fields are appended as a style anchor.

    Raises:
        ValidationError: Neither a description nor an image was supplied.
    """
    check_storyboard_input(config, image)

    parts: list[types.Part] = []
    if image is not None:
        parts.append(image.to_part())
        parts.append(types.Part(text=REFERENCE_IMAGE_ANALYSIS))

    side = grid_dimension(int(config.shot_count))
    text = STORYBOARD_REQUEST.format(
        shot_count=int(config.shot_count),
        aspect_ratio=config.aspect_ratio.value,
        description=config.main_description,
        notes=config.additional_notes,
        rows=side,
        cols=side,
    )
    if previous_params is not None:
        text += "\n\n" + STYLE_ANCHOR.format(**previous_params.model_dump())
    parts.append(types.Part(text=text))

    return ModelRequest(
        system_instruction=STORYBOARD_SYSTEM,
        output_model=GeneratedData,
        contents=parts,
        temperature=STORYBOARD_TEMPERATURE,
    )


def build_transition_request(config: TransitionConfig, image: InlineImage | None) -> ModelRequest:
    """Assemble the transition request; the storyboard image is mandatory.

    Raises:
        ValidationError: No image was supplied.
    """
    check_transition_input(image)

    text = TRANSITION_REQUEST.format(
        transition_count=config.transition_count,
        notes=config.additional_notes,
    )
    return ModelRequest(
        system_instruction=TRANSITION_SYSTEM,
        output_model=TransitionResult,
        contents=[image.to_part(), types.Part(text=text)],
        temperature=TRANSITION_TEMPERATURE,
    )


async def execute(request: ModelRequest, *, model: str | None = None) -> BaseModel:
    """Send *request* once and return the validated output model."""
    logger.info(
        "Requesting %s (%d part(s), temperature=%.1f)",
        request.output_model.__name__,
        len(request.contents),
        request.temperature,
    )
    return await GeminiClient.generate_structured(
        types.Content(role="user", parts=request.contents),
        schema=request.output_model,
        response_schema=request.response_schema,
        system_instruction=request.system_instruction,
        temperature=request.temperature,
        model=model,
    )


async def generate_storyboard(
    config: UserConfig,
    image: InlineImage | None = None,
    previous_params: GlobalParams | None = None,
) -> GeneratedData:
    """Build and run a storyboard request; warns when the shot count drifts."""
    request = build_storyboard_request(config, image, previous_params)
    data = await execute(request)
    if len(data.shots) != int(config.shot_count):
        logger.warning(
            "Requested %d shots, model returned %d", int(config.shot_count), len(data.shots)
        )
    return data


async def generate_transitions(config: TransitionConfig, image: InlineImage | None) -> TransitionResult:
    """Build and run a transition request."""
    request = build_transition_request(config, image)
    result = await execute(request)
    gaps = [t for t in result.transitions if not t.is_adjacent]
    if gaps:
        logger.warning("%d transition span(s) are not between adjacent shots", len(gaps))
    return result
