"""
Session store abstraction for multi-turn conversations.

The scoring core is stateless; whoever drives a conversation keeps the
per-session turn list here and hands the finished list to
WellnessAggregator.summarize().  Entries expire ``ttl_s`` seconds after
their last write.
"""
from __future__ import annotations
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from mindmate.config import settings
from mindmate.models.emotion import EmotionResult


@dataclass
class SessionState:
    session_id: str
    user_id: Optional[str] = None
    turns: List[EmotionResult] = field(default_factory=list)
    answers: List[str] = field(default_factory=list)

    def add_turn(self, result: EmotionResult, answer: str = "") -> None:
        # keep both lists aligned, most-recent-last
        self.turns.append(result)
        self.answers.append(answer)


class SessionStore(Protocol):
    def get(self, session_id: str) -> Optional[SessionState]: ...

    def put(self, state: SessionState) -> None: ...

    def expire(self, session_id: Optional[str] = None) -> int: ...


class InMemorySessionStore:
    """Process-local store; expired entries are dropped lazily and on expire()."""

    def __init__(self, ttl_s: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = settings.SESSION_TTL_S if ttl_s is None else ttl_s
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, Tuple[float, SessionState]] = {}

    def get(self, session_id: str) -> Optional[SessionState]:
        with self._lock:
            item = self._items.get(session_id)
            if item is None:
                return None
            deadline, state = item
            if self._clock() >= deadline:
                del self._items[session_id]
                return None
            return state

    def put(self, state: SessionState) -> None:
        with self._lock:
            self._items[state.session_id] = (self._clock() + self.ttl_s, state)

    def expire(self, session_id: Optional[str] = None) -> int:
        """Drop one session, or every expired one when no id is given."""
        with self._lock:
            if session_id is not None:
                return 1 if self._items.pop(session_id, None) is not None else 0
            now = self._clock()
            stale = [sid for sid, (deadline, _) in self._items.items() if now >= deadline]
            for sid in stale:
                del self._items[sid]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
