"""In-memory session state for storyboard and transition generations.

Each session owns one generation slot. ``begin_generation`` issues a
monotonically increasing token; a completion or failure is applied only
when its token is still the latest one issued, so a late response from a
superseded request is discarded silently.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from .config import get_config
from .errors import GenerationInProgressError, SessionNotFoundError, ValidationError
from .media import InlineImage
from .models.storyboard import GeneratedData, GlobalParams, GlobalParamsPatch, UserConfig
from .models.transition import TransitionConfig, TransitionResult

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass
class GenerationState(Generic[R]):
    """Result/error/in-flight bookkeeping shared by both session kinds."""

    result: R | None = None
    error: str | None = None
    in_flight: bool = False
    generation: int = 0

    def begin_generation(self, *, supersede: bool = False) -> int:
        """Start a generation and return its token.

        Raises:
            GenerationInProgressError: A request is outstanding and *supersede* is False.
        """
        if self.in_flight and not supersede:
            raise GenerationInProgressError("A generation is already in progress")
        self.generation += 1
        self.in_flight = True
        self.error = None
        return self.generation

    def complete_generation(self, token: int, result: R) -> bool:
        """Store *result* if *token* is current. Returns whether it was applied."""
        if token != self.generation:
            logger.warning("Discarding stale result (token %d, latest %d)", token, self.generation)
            return False
        self.result = result
        self.error = None
        self.in_flight = False
        self._on_result(result)
        return True

    def fail_generation(self, token: int, error: Exception | str) -> bool:
        """Record a failure if *token* is current; the previous result stays untouched."""
        if token != self.generation:
            logger.warning("Discarding stale failure (token %d, latest %d)", token, self.generation)
            return False
        self.error = str(error)
        self.in_flight = False
        return True

    def _on_result(self, result: R) -> None:
        """Hook for subclasses that derive state from a new result."""


@dataclass
class StoryboardSession(GenerationState[GeneratedData]):
    """Storyboard view state: config, last result, and the editable style block."""

    session_id: str = ""
    config: UserConfig = field(default_factory=UserConfig)
    image: InlineImage | None = None
    global_params: GlobalParams | None = None
    created_at: datetime = field(default_factory=datetime.now)
    last_active: datetime = field(default_factory=datetime.now)

    def _on_result(self, result: GeneratedData) -> None:
        self.global_params = result.global_params

    def update_global_params(self, patch: GlobalParamsPatch) -> GlobalParams:
        """Apply *patch* to the current style block.

        Raises:
            ValidationError: Nothing has been generated yet.
        """
        if self.global_params is None:
            raise ValidationError("No storyboard to edit — generate one first")
        self.global_params = patch.apply(self.global_params)
        return self.global_params


@dataclass
class TransitionSession(GenerationState[TransitionResult]):
    """Transition view state: config and last result."""

    session_id: str = ""
    config: TransitionConfig = field(default_factory=TransitionConfig)
    created_at: datetime = field(default_factory=datetime.now)
    last_active: datetime = field(default_factory=datetime.now)


Session = StoryboardSession | TransitionSession


class SessionStore:
    """Process-wide session registry with TTL and max-count eviction."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def create_storyboard(self) -> StoryboardSession:
        session = StoryboardSession(session_id=self._new_id())
        self._add(session)
        return session

    def create_transition(self) -> TransitionSession:
        session = TransitionSession(session_id=self._new_id())
        self._add(session)
        return session

    def get_storyboard(self, session_id: str) -> StoryboardSession:
        return self._get(session_id, StoryboardSession)

    def get_transition(self, session_id: str) -> TransitionSession:
        return self._get(session_id, TransitionSession)

    def _new_id(self) -> str:
        return uuid.uuid4().hex[:12]

    def _add(self, session: Session) -> None:
        self._evict_expired()
        cfg = get_config()
        if len(self._sessions) >= cfg.max_sessions:
            oldest_id = min(self._sessions, key=lambda k: self._sessions[k].last_active)
            del self._sessions[oldest_id]
        self._sessions[session.session_id] = session

    def _get(self, session_id: str, kind: type) -> Session:
        self._evict_expired()
        session = self._sessions.get(session_id)
        if not isinstance(session, kind):
            raise SessionNotFoundError(f"Session {session_id} not found")
        session.last_active = datetime.now()
        return session

    def _evict_expired(self) -> int:
        """Remove sessions idle longer than the configured timeout. Returns count evicted."""
        timeout = timedelta(hours=get_config().session_timeout_hours)
        now = datetime.now()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_active > timeout]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    @property
    def count(self) -> int:
        """Number of active in-memory sessions."""
        return len(self._sessions)


# Module-level singleton
session_store = SessionStore()
