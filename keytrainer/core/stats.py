from __future__ import annotations

import contextlib
import json
import logging
import os
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from keytrainer.core.patterns import Pattern

logger = logging.getLogger(__name__)

MAX_MISTAKES = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def duration_ns(delta: timedelta) -> int:
    """Exact integer nanoseconds of a timedelta."""
    return ((delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds) * 1000


def format_duration(ns: int) -> str:
    """Human readable duration rounded to milliseconds, e.g. ``1.234s``."""
    ms = round(ns / 1_000_000)
    if ms < 1000:
        return f"{ms}ms"
    seconds, ms = divmod(ms, 1000)
    if seconds < 60:
        return f"{seconds}.{ms:03d}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m{seconds:02d}.{ms:03d}s"


_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat wants exactly six fraction digits before Python 3.11.
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


@dataclass
class Mistake:
    position: int
    expected: str
    actual: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "expected": self.expected,
            "actual": self.actual,
            "timestamp": _format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, value: Dict[str, Any]) -> "Mistake":
        return cls(
            position=int(value.get("position", 0)),
            expected=str(value.get("expected", "")),
            actual=str(value.get("actual", "")),
            timestamp=_parse_timestamp(value.get("timestamp")) or utc_now(),
        )


@dataclass
class PatternStats:
    pattern: str
    name: str
    total_attempts: int = 0
    perfect_count: int = 0
    total_resets: int = 0
    best_time: int = 0  # ns, 0 until the first perfect attempt
    total_time: int = 0
    current_streak: int = 0
    best_streak: int = 0
    last_practiced: Optional[datetime] = None
    mistakes: List[Mistake] = field(default_factory=list)

    @property
    def average_time(self) -> int:
        if not self.total_attempts:
            return 0
        return self.total_time // self.total_attempts

    @property
    def perfect_rate(self) -> float:
        """Share of attempts finished without a reset, as a percentage."""
        if not self.total_attempts:
            return 0.0
        return self.perfect_count / self.total_attempts * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "name": self.name,
            "total_attempts": self.total_attempts,
            "perfect_count": self.perfect_count,
            "total_resets": self.total_resets,
            "best_time": self.best_time,
            "total_time": self.total_time,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "last_practiced": _format_timestamp(self.last_practiced),
            "mistakes": [m.to_dict() for m in self.mistakes],
        }

    @classmethod
    def from_dict(cls, key: str, value: Dict[str, Any]) -> "PatternStats":
        return cls(
            pattern=str(value.get("pattern") or key),
            name=str(value.get("name") or key),
            total_attempts=int(value.get("total_attempts", 0)),
            perfect_count=int(value.get("perfect_count", 0)),
            total_resets=int(value.get("total_resets", 0)),
            best_time=int(value.get("best_time", 0)),
            total_time=int(value.get("total_time", 0)),
            current_streak=int(value.get("current_streak", 0)),
            best_streak=int(value.get("best_streak", 0)),
            last_practiced=_parse_timestamp(value.get("last_practiced")),
            mistakes=[Mistake.from_dict(m) for m in value.get("mistakes") or []],
        )


@dataclass(frozen=True)
class SessionRecord:
    start_time: datetime
    end_time: datetime
    duration: int  # ns
    patterns_total: int
    patterns_perfect: int
    completed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": _format_timestamp(self.start_time),
            "end_time": _format_timestamp(self.end_time),
            "duration": self.duration,
            "patterns_total": self.patterns_total,
            "patterns_perfect": self.patterns_perfect,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, value: Dict[str, Any]) -> "SessionRecord":
        start = _parse_timestamp(value.get("start_time"))
        end = _parse_timestamp(value.get("end_time"))
        if start is None or end is None:
            raise ValueError("session record without start_time/end_time")
        return cls(
            start_time=start,
            end_time=end,
            duration=int(value.get("duration", 0)),
            patterns_total=int(value.get("patterns_total", 0)),
            patterns_perfect=int(value.get("patterns_perfect", 0)),
            completed=bool(value.get("completed", False)),
        )


@dataclass
class AllStats:
    pattern_stats: Dict[str, PatternStats] = field(default_factory=dict)
    sessions: List[SessionRecord] = field(default_factory=list)
    total_sessions: int = 0
    total_train_time: int = 0
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_stats": {key: ps.to_dict() for key, ps in self.pattern_stats.items()},
            "sessions": [s.to_dict() for s in self.sessions],
            "total_sessions": self.total_sessions,
            "total_train_time": self.total_train_time,
            "last_updated": _format_timestamp(self.last_updated),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AllStats":
        stats = cls(
            total_sessions=int(payload.get("total_sessions", 0)),
            total_train_time=int(payload.get("total_train_time", 0)),
        )
        try:
            stats.last_updated = _parse_timestamp(payload.get("last_updated"))
        except ValueError as e:
            logger.warning("Ignoring malformed last_updated: %s", e)
        for key, value in (payload.get("pattern_stats") or {}).items():
            try:
                stats.pattern_stats[key] = PatternStats.from_dict(key, value)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed stats for pattern %r: %s", key, e)
        for value in payload.get("sessions") or []:
            try:
                stats.sessions.append(SessionRecord.from_dict(value))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed session record: %s", e)
        return stats


class StatsStore:
    """JSON file holding the whole :class:`AllStats` document."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path).expanduser()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> AllStats:
        if not self._file_path.exists():
            return AllStats()
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not load stats from %s: %s", self._file_path, e)
            return AllStats()
        if not isinstance(payload, dict):
            logger.warning("Could not load stats from %s: not a JSON object", self._file_path)
            return AllStats()
        try:
            return AllStats.from_dict(payload)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Could not load stats from %s: %s", self._file_path, e)
            return AllStats()

    def save(self, stats: AllStats) -> bool:
        """Write atomically. Returns False (and logs) when the write fails."""
        tmp_path = self._file_path.with_name(self._file_path.name + ".tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(stats.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self._file_path)
        except OSError as e:
            logger.warning("Could not save stats to %s: %s", self._file_path, e)
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            return False
        return True


class StatsAggregator:
    """Turns completion, mistake and session events into cumulative stats.

    The aggregator is the only writer of its :class:`AllStats`.
    """

    def __init__(self, store: StatsStore, now: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._now = now
        self._stats = store.load()

    @property
    def stats(self) -> AllStats:
        return self._stats

    def get(self, pattern_text: str) -> Optional[PatternStats]:
        return self._stats.pattern_stats.get(pattern_text)

    def _row(self, pattern: Pattern) -> PatternStats:
        row = self._stats.pattern_stats.get(pattern.text)
        if row is None:
            row = PatternStats(pattern=pattern.text, name=pattern.name)
            self._stats.pattern_stats[pattern.text] = row
        return row

    def record_attempt(self, pattern: Pattern, elapsed: int, reset_count: int) -> PatternStats:
        row = self._row(pattern)
        row.total_attempts += 1
        row.total_time += elapsed
        row.total_resets += reset_count
        row.last_practiced = self._now()

        if reset_count == 0:
            row.perfect_count += 1
            row.current_streak += 1
            row.best_streak = max(row.best_streak, row.current_streak)
            if row.best_time == 0 or elapsed < row.best_time:
                row.best_time = elapsed
        else:
            row.current_streak = 0
        return row

    def record_mistake(self, pattern: Pattern, position: int, expected: str, actual: str) -> None:
        row = self._row(pattern)
        row.mistakes.append(
            Mistake(position=position, expected=expected, actual=actual, timestamp=self._now())
        )
        if len(row.mistakes) > MAX_MISTAKES:
            del row.mistakes[: len(row.mistakes) - MAX_MISTAKES]

    def start_session(self) -> datetime:
        return self._now()

    def end_session(self, start: datetime, total: int, perfect: int, completed: bool) -> SessionRecord:
        end = self._now()
        record = SessionRecord(
            start_time=start,
            end_time=end,
            duration=duration_ns(end - start),
            patterns_total=total,
            patterns_perfect=perfect,
            completed=completed,
        )
        self._stats.sessions.append(record)
        self._stats.total_sessions += 1
        self._stats.total_train_time += record.duration
        self.save()
        return record

    def save(self) -> bool:
        self._stats.last_updated = self._now()
        return self._store.save(self._stats)

    def best_time(self, pattern_text: str) -> int:
        row = self.get(pattern_text)
        return row.best_time if row else 0

    def current_streak(self, pattern_text: str) -> int:
        row = self.get(pattern_text)
        return row.current_streak if row else 0

    def best_streak(self, pattern_text: str) -> int:
        row = self.get(pattern_text)
        return row.best_streak if row else 0

    def average_time(self, pattern_text: str) -> int:
        row = self.get(pattern_text)
        return row.average_time if row else 0

    def perfect_rate(self, pattern_text: str) -> float:
        row = self.get(pattern_text)
        return row.perfect_rate if row else 0.0

    def common_mistakes(self, pattern_text: str, limit: int = 3) -> List[Tuple[Tuple[str, str], int]]:
        """Most frequent ``(expected, actual)`` pairs among the kept mistakes."""
        row = self.get(pattern_text)
        if row is None:
            return []
        return Counter((m.expected, m.actual) for m in row.mistakes).most_common(limit)
