from __future__ import annotations

import random
from collections import deque
from typing import Deque, Iterable, List, Optional

from keytrainer.core.patterns import Pattern


class PatternQueue:
    """Working queue of a session: shuffled once, drained from the head,
    failed patterns appended back to the tail."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self._queue: Deque[Pattern] = deque()

    def shuffle(self, patterns: Iterable[Pattern]) -> List[Pattern]:
        """Replace the queue with a uniformly random permutation of ``patterns``."""
        order = list(patterns)
        self._rng.shuffle(order)
        self._queue = deque(order)
        return list(order)

    def dequeue_next(self) -> Optional[Pattern]:
        """Pop the head, or return None when the queue is drained."""
        if not self._queue:
            return None
        return self._queue.popleft()

    def requeue(self, pattern: Pattern) -> None:
        self._queue.append(pattern)

    def clear(self) -> None:
        self._queue.clear()

    @property
    def remaining(self) -> List[Pattern]:
        return list(self._queue)

    def __len__(self) -> int:
        return len(self._queue)
