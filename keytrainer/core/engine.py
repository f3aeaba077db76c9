from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from keytrainer.core.patterns import Pattern
from keytrainer.core.tokens import Token, join_tokens, token_at

logger = logging.getLogger(__name__)


class MatchState(Enum):
    IDLE = "idle"
    AWAITING_FIRST_INPUT = "awaiting_first_input"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Outcome(Enum):
    IGNORED = "ignored"
    ACCEPTED = "accepted"
    RESET = "reset"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MistakeEvent:
    pattern: Pattern
    position: int
    expected: Token
    actual: Token


@dataclass(frozen=True)
class PatternCompletionEvent:
    pattern: Pattern
    elapsed: int  # nanoseconds
    reset_count: int

    @property
    def perfect(self) -> bool:
        return self.reset_count == 0


@dataclass(frozen=True)
class MatchResult:
    """What a single submitted token did to the engine."""

    outcome: Outcome
    mistake: Optional[MistakeEvent] = None
    completion: Optional[PatternCompletionEvent] = None


_IGNORED = MatchResult(Outcome.IGNORED)


class MatchEngine:
    """Validates tokens one at a time against the active pattern.

    The buffer of accepted tokens is always a prefix of the pattern. A wrong
    token on an empty buffer is ignored; on a non-empty buffer it is a reset:
    the buffer is cleared and a mistake is reported, but the timer keeps
    running so the eventual completion time includes the lost effort.
    """

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns) -> None:
        self._clock = clock
        self._pattern: Optional[Pattern] = None
        self._buffer: List[Token] = []
        self._reset_count = 0
        self._started_at: Optional[int] = None
        self._finished_at: Optional[int] = None
        self._completed = False

    @property
    def state(self) -> MatchState:
        if self._pattern is None:
            return MatchState.IDLE
        if self._completed:
            return MatchState.COMPLETED
        if self._buffer:
            return MatchState.IN_PROGRESS
        return MatchState.AWAITING_FIRST_INPUT

    @property
    def pattern(self) -> Optional[Pattern]:
        return self._pattern

    @property
    def buffer(self) -> Tuple[Token, ...]:
        return tuple(self._buffer)

    @property
    def reset_count(self) -> int:
        return self._reset_count

    @property
    def started(self) -> bool:
        return self._started_at is not None

    def elapsed(self) -> int:
        """Nanoseconds since the first accepted token, 0 before it."""
        if self._started_at is None:
            return 0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return end - self._started_at

    def load(self, pattern: Pattern) -> None:
        if not pattern.tokens:
            logger.debug("load() ignored: pattern %r has no tokens", pattern.name)
            self.clear()
            return
        self._pattern = pattern
        self._buffer = []
        self._reset_count = 0
        self._started_at = None
        self._finished_at = None
        self._completed = False

    def clear(self) -> None:
        """Drop the active pattern and any partial progress."""
        self._pattern = None
        self._buffer = []
        self._reset_count = 0
        self._started_at = None
        self._finished_at = None
        self._completed = False

    def submit(self, token: Token) -> MatchResult:
        state = self.state
        if state in (MatchState.IDLE, MatchState.COMPLETED):
            logger.debug("Ignoring %s while %s", token, state.value)
            return _IGNORED

        pattern = self._pattern
        position = len(self._buffer)
        if position >= len(pattern.tokens):
            return _IGNORED
        if pattern.tokens[position] == token:
            return self._accept(token)

        if not self._buffer:
            # Stray first input: not counted against the user.
            return _IGNORED

        expected = token_at(pattern.text, len(join_tokens(self._buffer)))
        self._reset_count += 1
        self._buffer = []
        return MatchResult(
            Outcome.RESET,
            mistake=MistakeEvent(pattern=pattern, position=position, expected=expected, actual=token),
        )

    def _accept(self, token: Token) -> MatchResult:
        if self._started_at is None:
            self._started_at = self._clock()
        self._buffer.append(token)
        if len(self._buffer) < len(self._pattern.tokens):
            return MatchResult(Outcome.ACCEPTED)
        self._completed = True
        self._finished_at = self._clock()
        return MatchResult(
            Outcome.COMPLETED,
            completion=PatternCompletionEvent(
                pattern=self._pattern,
                elapsed=self.elapsed(),
                reset_count=self._reset_count,
            ),
        )
