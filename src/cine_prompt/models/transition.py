"""Transition models — in-between frame prompts for an existing storyboard grid."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)

TransitionCount = Literal[1, 2, 3]


class TransitionConfig(BaseModel):
    """How many intermediate frames to request between each adjacent pair."""

    model_config = _WIRE

    transition_count: TransitionCount = 1
    additional_notes: str = ""


class TransitionPrompt(BaseModel):
    model_config = _WIRE

    order: int = Field(ge=1, description="1, 2, or 3 depending on sequence")
    content: str = Field(description="The full cinematic prompt for this intermediate frame.")


class TransitionSpan(BaseModel):
    """Transition prompts bridging two adjacent panels.

    ``to_shot_index`` is expected to be ``from_shot_index + 1`` but the
    model output is rendered as-is when it is not.
    """

    model_config = _WIRE

    from_shot_index: int = Field(ge=1, description="The index of the preceding shot (1-based).")
    to_shot_index: int = Field(ge=1, description="The index of the following shot (1-based).")
    transition_prompts: list[TransitionPrompt]

    @property
    def is_adjacent(self) -> bool:
        return self.to_shot_index == self.from_shot_index + 1


class TransitionResult(BaseModel):
    """Structured output for a transition generation."""

    model_config = _WIRE

    analysis: str = Field(
        description="Brief analysis of the storyboard style, character, and setting found in the image.",
    )
    transitions: list[TransitionSpan]
