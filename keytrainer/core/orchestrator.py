from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol

from keytrainer.core.engine import (
    MatchEngine,
    MatchState,
    MistakeEvent,
    Outcome,
    PatternCompletionEvent,
)
from keytrainer.core.events import AbortSession, BeginSession, InputEvent, TokenInput
from keytrainer.core.pattern_queue import PatternQueue
from keytrainer.core.patterns import Pattern
from keytrainer.core.stats import SessionRecord, StatsAggregator
from keytrainer.core.tokens import Token

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"


class EndReason(Enum):
    STOPPED = "stopped"
    COMPLETED = "completed"


class UpdateKind(Enum):
    SESSION_STARTED = "session_started"
    PATTERN_LOADED = "pattern_loaded"
    ACCEPTED = "accepted"
    RESET = "reset"
    PATTERN_COMPLETED = "pattern_completed"
    SESSION_ENDED = "session_ended"


@dataclass(frozen=True)
class TrainerUpdate:
    kind: UpdateKind
    mistake: Optional[MistakeEvent] = None
    completion: Optional[PatternCompletionEvent] = None
    new_best: bool = False
    record: Optional[SessionRecord] = None


class ScheduledCall(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledCall:
        ...


class _DoneCall:
    def cancel(self) -> None:
        pass


class ImmediateScheduler:
    """Runs callbacks straight away; for headless use where no delay is wanted."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledCall:
        callback()
        return _DoneCall()


class SessionOrchestrator:
    """Owns the session lifecycle and routes engine events to the stats.

    All input arrives through :meth:`handle` on a single thread. After a
    pattern is completed the next one is loaded by a deferred call; that call
    carries the session generation it was scheduled in and does nothing if the
    session was stopped or restarted in the meantime.
    """

    def __init__(
        self,
        patterns: Iterable[Pattern],
        stats: StatsAggregator,
        *,
        engine: Optional[MatchEngine] = None,
        queue: Optional[PatternQueue] = None,
        scheduler: Optional[Scheduler] = None,
        advance_delay_ms: int = 400,
        rng: Optional[random.Random] = None,
        listener: Optional[Callable[[TrainerUpdate], None]] = None,
    ) -> None:
        self._patterns: List[Pattern] = [p for p in patterns if p.tokens]
        self._stats = stats
        self._engine = engine if engine is not None else MatchEngine()
        self._queue = queue if queue is not None else PatternQueue(rng)
        self._scheduler: Scheduler = scheduler or ImmediateScheduler()
        self._advance_delay_ms = advance_delay_ms
        self.listener = listener

        self._state = SessionState.IDLE
        self._end_reason: Optional[EndReason] = None
        self._generation = 0
        self._pending_advance: Optional[ScheduledCall] = None
        self._awaiting_advance = False
        self._session_start: Optional[datetime] = None
        self._patterns_total = 0
        self._patterns_perfect = 0
        self._last_record: Optional[SessionRecord] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def end_reason(self) -> Optional[EndReason]:
        return self._end_reason

    @property
    def engine(self) -> MatchEngine:
        return self._engine

    @property
    def stats(self) -> StatsAggregator:
        return self._stats

    @property
    def patterns(self) -> List[Pattern]:
        return list(self._patterns)

    @property
    def current_pattern(self) -> Optional[Pattern]:
        return self._engine.pattern

    @property
    def pending_count(self) -> int:
        """Patterns still waiting in the queue, not counting the active one."""
        return len(self._queue)

    @property
    def patterns_total(self) -> int:
        return self._patterns_total

    @property
    def patterns_perfect(self) -> int:
        return self._patterns_perfect

    @property
    def session_start(self) -> Optional[datetime]:
        return self._session_start

    @property
    def last_record(self) -> Optional[SessionRecord]:
        return self._last_record

    @property
    def advance_pending(self) -> bool:
        return self._awaiting_advance

    def handle(self, event: InputEvent) -> None:
        if isinstance(event, TokenInput):
            self.submit(event.token)
        elif isinstance(event, BeginSession):
            self.start()
        elif isinstance(event, AbortSession):
            self.stop()
        else:
            logger.debug("Unhandled event %r", event)

    def start(self) -> None:
        if self._state is SessionState.RUNNING:
            logger.debug("start() ignored: session already running")
            return
        self._cancel_pending()
        self._generation += 1
        self._queue.shuffle(self._patterns)
        self._patterns_total = 0
        self._patterns_perfect = 0
        self._end_reason = None
        self._last_record = None
        self._session_start = self._stats.start_session()
        self._state = SessionState.RUNNING
        logger.info("Session started with %d patterns", len(self._patterns))
        self._notify(TrainerUpdate(UpdateKind.SESSION_STARTED))
        self.advance()

    def advance(self) -> None:
        if self._state is not SessionState.RUNNING:
            return
        if self._engine.state not in (MatchState.IDLE, MatchState.COMPLETED):
            logger.debug("advance() ignored: pattern still in progress")
            return
        self._awaiting_advance = False
        self._pending_advance = None
        pattern = self._queue.dequeue_next()
        if pattern is None:
            self._finish(EndReason.COMPLETED)
            return
        self._engine.load(pattern)
        self._notify(TrainerUpdate(UpdateKind.PATTERN_LOADED))

    def stop(self) -> None:
        if self._state is not SessionState.RUNNING:
            logger.debug("stop() ignored: no running session")
            return
        self._finish(EndReason.STOPPED)

    def submit(self, token: Token) -> None:
        if self._state is not SessionState.RUNNING:
            return
        result = self._engine.submit(token)
        if result.outcome is Outcome.RESET:
            mistake = result.mistake
            self._stats.record_mistake(
                mistake.pattern, mistake.position, mistake.expected.text, mistake.actual.text
            )
            self._stats.save()
            self._notify(TrainerUpdate(UpdateKind.RESET, mistake=mistake))
        elif result.outcome is Outcome.ACCEPTED:
            self._notify(TrainerUpdate(UpdateKind.ACCEPTED))
        elif result.outcome is Outcome.COMPLETED:
            self._complete(result.completion)

    def _complete(self, completion: PatternCompletionEvent) -> None:
        self._patterns_total += 1
        row = self._stats.record_attempt(completion.pattern, completion.elapsed, completion.reset_count)
        self._stats.save()

        new_best = False
        if completion.perfect:
            self._patterns_perfect += 1
            new_best = completion.elapsed == row.best_time
        else:
            self._queue.requeue(completion.pattern)

        self._notify(TrainerUpdate(UpdateKind.PATTERN_COMPLETED, completion=completion, new_best=new_best))

        generation = self._generation
        self._awaiting_advance = True
        call = self._scheduler.schedule(
            self._advance_delay_ms, lambda: self._deferred_advance(generation)
        )
        # An immediate scheduler has already run the advance by now.
        if self._awaiting_advance:
            self._pending_advance = call

    def _deferred_advance(self, generation: int) -> None:
        if generation != self._generation or self._state is not SessionState.RUNNING:
            logger.debug("Dropping stale advance for session %d", generation)
            return
        self.advance()

    def _cancel_pending(self) -> None:
        self._awaiting_advance = False
        if self._pending_advance is not None:
            self._pending_advance.cancel()
            self._pending_advance = None

    def _finish(self, reason: EndReason) -> None:
        self._cancel_pending()
        self._generation += 1
        self._state = SessionState.ENDED
        self._end_reason = reason
        self._engine.clear()
        self._queue.clear()
        self._last_record = self._stats.end_session(
            self._session_start,
            self._patterns_total,
            self._patterns_perfect,
            reason is EndReason.COMPLETED,
        )
        logger.info(
            "Session %s: %d/%d perfect",
            reason.value,
            self._patterns_perfect,
            self._patterns_total,
        )
        self._notify(TrainerUpdate(UpdateKind.SESSION_ENDED, record=self._last_record))

    def _notify(self, update: TrainerUpdate) -> None:
        if self.listener is not None:
            self.listener(update)
