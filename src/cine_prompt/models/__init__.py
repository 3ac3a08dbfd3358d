"""Pydantic contracts for configuration and generation results."""

from .storyboard import (
    AspectRatio,
    GeneratedData,
    GlobalParams,
    GlobalParamsPatch,
    ShotCount,
    ShotEntry,
    UserConfig,
)
from .transition import TransitionConfig, TransitionPrompt, TransitionResult, TransitionSpan

__all__ = [
    "AspectRatio",
    "GeneratedData",
    "GlobalParams",
    "GlobalParamsPatch",
    "ShotCount",
    "ShotEntry",
    "TransitionConfig",
    "TransitionPrompt",
    "TransitionResult",
    "TransitionSpan",
    "UserConfig",
]
