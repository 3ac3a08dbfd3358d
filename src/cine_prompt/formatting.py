"""Text renderings of generation results.

Every function here is pure: output depends only on the result object and
the GlobalParams passed in, so editing a style field and re-rendering
updates all variants without another model call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models.storyboard import SHORT_CONTENT_TARGET_CHARS, GeneratedData, GlobalParams, ShotEntry
from .models.transition import TransitionResult, TransitionSpan

SHORT_UNAVAILABLE_MESSAGE = "Short prompt unavailable for this shot, please regenerate."

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ShortPrompt:
    """Short rendering of one shot, or the unavailable state when it has no shortContent."""

    shot_id: int
    text: str | None

    @property
    def available(self) -> bool:
        return self.text is not None

    @property
    def length(self) -> int:
        return len(self.text) if self.text else 0

    @property
    def over_limit(self) -> bool:
        return self.length > SHORT_CONTENT_TARGET_CHARS

    @property
    def display(self) -> str:
        return self.text if self.text is not None else SHORT_UNAVAILABLE_MESSAGE

    def as_dict(self) -> dict:
        return {
            "id": self.shot_id,
            "available": self.available,
            "text": self.display,
            "length": self.length,
            "over_limit": self.over_limit,
        }


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def render_grid(data: GeneratedData, params: GlobalParams) -> str:
    """Single block: layout, subject, every shot, then the six style fields."""
    shots = "\n\n".join(f"{s.title}\n{s.content}" for s in data.shots)
    return "\n".join([
        f'"shot": "{data.shot}",',
        f'"subject": "{data.subject_intro}",',
        '"shots": [',
        shots,
        "],",
        f'"Theme": "{params.theme}",',
        f'"Environment": "{params.environment}",',
        f'"Lighting Studio": "{params.lighting}",',
        f'"Camera": "{params.camera}",',
        f'"Color Grade": "{params.color_grade}",',
        f'"Artist": "{params.artist_style}"',
    ])


def render_split(shot: ShotEntry, params: GlobalParams) -> str:
    """Self-contained prompt for one shot with its own copy of the style block."""
    return "\n".join([
        f"=== SHOT {shot.id}: {shot.title} ===",
        shot.content.strip(),
        "",
        "-- Style Parameters --",
        f"Theme: {params.theme}",
        f"Environment: {params.environment}",
        f"Lighting: {params.lighting}",
        f"Camera: {params.camera}",
        f"Color Grade: {params.color_grade}",
        f"Artist/Style: {params.artist_style}",
    ])


def render_short(shot: ShotEntry, params: GlobalParams) -> ShortPrompt:
    """One-line condensed prompt; unavailable when the shot has no shortContent.

    The 400-character target is advisory: the text is never truncated,
    ``over_limit`` reports when it is exceeded.
    """
    if not (shot.short_content or "").strip():
        return ShortPrompt(shot_id=shot.id, text=None)
    line = " :: ".join([
        shot.title,
        shot.short_content,
        f"Theme: {params.theme}, {params.environment}",
        f"Lighting: {params.lighting}",
        f"Cam: {params.camera}, {params.color_grade}, {params.artist_style}",
    ])
    return ShortPrompt(shot_id=shot.id, text=collapse_whitespace(line))


def render_storyboard(data: GeneratedData, params: GlobalParams | None = None) -> dict:
    """All three storyboard renderings keyed by variant name."""
    params = params or data.global_params
    return {
        "grid": render_grid(data, params),
        "split": [{"id": s.id, "text": render_split(s, params)} for s in data.shots],
        "short": [render_short(s, params).as_dict() for s in data.shots],
    }


def render_transition_span(span: TransitionSpan, transition_count: int) -> str:
    header = (
        f"SHOT {span.from_shot_index} → SHOT {span.to_shot_index} "
        f"({transition_count} transition{'s' if transition_count != 1 else ''})"
    )
    lines = [header]
    lines.extend(f"[{p.order}] {p.content}" for p in span.transition_prompts)
    return "\n".join(lines)


def render_transitions(result: TransitionResult, transition_count: int) -> str:
    """Style analysis followed by every span, in model order, separated by blank lines."""
    blocks = [f"Style Analysis: {result.analysis}"]
    blocks.extend(render_transition_span(s, transition_count) for s in result.transitions)
    return "\n\n".join(blocks)
