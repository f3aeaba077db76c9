from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from keytrainer.core.tokens import Token, tokenize

logger = logging.getLogger(__name__)

PATTERNS_FILE_NAME = "keystroke_patterns.txt"


@dataclass(frozen=True)
class Pattern:
    """A named drill. Statistics are keyed by ``text``, not by ``name``."""

    name: str
    text: str
    tokens: Tuple[Token, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tokenize(self.text))

    def __len__(self) -> int:
        return len(self.tokens)


DEFAULT_PATTERNS: Tuple[Pattern, ...] = (
    Pattern("5 Group Cycle", "1a2a3a4a5a"),
    Pattern("4 Group Cycle", "1a2a3a4a"),
    Pattern("3 Group Cycle", "1a2a3a"),
    Pattern("F-Key Cycle", "F1aF2aF3a"),
    Pattern("Click Practice", "LCaRCa"),
)


def parse_patterns(text: str, source: str = "<string>") -> List[Pattern]:
    """Parse the line format: ``Name|TokenString`` or a bare token string.

    Blank lines and ``#`` comments are skipped.
    """
    patterns: List[Pattern] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "|" in line:
            name, pattern_text = line.split("|", 1)
        else:
            name = pattern_text = line
        if not pattern_text:
            logger.warning("%s:%d: empty pattern for %r, skipped", source, lineno, name)
            continue
        patterns.append(Pattern(name=name, text=pattern_text))
    return patterns


class PatternRepository:
    """Loads the drill list, falling back to the built-in defaults."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._patterns, self._source = self._load_patterns()

    def all(self) -> List[Pattern]:
        return list(self._patterns)

    @property
    def source(self) -> Optional[Path]:
        """File the patterns came from, or None for the defaults."""
        return self._source

    def __len__(self) -> int:
        return len(self._patterns)

    def _candidates(self) -> List[Path]:
        candidates = []
        if self._path is not None:
            candidates.append(Path(self._path).expanduser())
        candidates.append(Path.cwd() / PATTERNS_FILE_NAME)
        candidates.append(Path(__file__).resolve().parent.parent / PATTERNS_FILE_NAME)
        return candidates

    def _load_patterns(self) -> Tuple[List[Pattern], Optional[Path]]:
        for candidate in self._candidates():
            if not candidate.is_file():
                continue
            try:
                text = candidate.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read patterns from %s: %s", candidate, e)
                continue
            patterns = parse_patterns(text, source=str(candidate))
            if patterns:
                logger.info("Loaded %d patterns from %s", len(patterns), candidate)
                return patterns, candidate
            logger.warning("No patterns found in %s", candidate)
        logger.info("Using %d built-in patterns", len(DEFAULT_PATTERNS))
        return list(DEFAULT_PATTERNS), None
