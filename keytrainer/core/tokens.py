"""Input tokens and the pattern tokenizer.

A pattern string such as ``"F1aSLCb"`` is a compact encoding of the inputs the
user has to produce: function keys, mouse clicks and plain characters.
``tokenize`` splits it into :class:`Token` values using longest-match-first,
leftmost scanning, so ``"SLC"`` is always a single shift-left-click and never
``"S"`` followed by ``"LC"``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence, Tuple, Union


class TokenKind(Enum):
    CHAR = "char"
    FUNCTION_KEY = "function_key"
    CLICK = "click"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Token:
    """One atomic input. Equal only when both kind and text match."""

    kind: TokenKind
    text: str

    def __str__(self) -> str:
        return self.text

    @property
    def icon(self) -> str:
        """Glyph used when showing the token on screen."""
        return _ICONS.get(self.text, self.text)


UNKNOWN = Token(TokenKind.UNKNOWN, "?")

CLICK_NAMES = ("LC", "RC", "MC", "SLC", "SRC")
FUNCTION_KEY_NAMES = tuple(f"F{n}" for n in range(1, 13))

_ICONS = {
    "LC": "◐",
    "RC": "◑",
    "MC": "◉",
    "SLC": "⇧◐",
    "SRC": "⇧◑",
}
_ICONS.update({name: f"[{name}]" for name in FUNCTION_KEY_NAMES})

# Longest literals first; stable sort keeps declaration order among equals.
_LITERALS: Tuple[Token, ...] = tuple(
    sorted(
        [Token(TokenKind.CLICK, name) for name in CLICK_NAMES]
        + [Token(TokenKind.FUNCTION_KEY, name) for name in FUNCTION_KEY_NAMES],
        key=lambda token: len(token.text),
        reverse=True,
    )
)


def char_token(char: str) -> Token:
    if len(char) != 1:
        raise ValueError(f"expected a single character, got {char!r}")
    return Token(TokenKind.CHAR, char)


def function_key_token(number: int) -> Token:
    if not 1 <= number <= 12:
        raise ValueError(f"function key out of range: F{number}")
    return Token(TokenKind.FUNCTION_KEY, f"F{number}")


def click_token(button: str, shift: bool = False) -> Token:
    """Build a click token for ``button`` in ``"left" | "right" | "middle"``.

    The middle button has no shift-modified variant.
    """
    letter = {"left": "L", "right": "R", "middle": "M"}.get(button)
    if letter is None:
        raise ValueError(f"unknown mouse button: {button!r}")
    prefix = "S" if shift and letter != "M" else ""
    return Token(TokenKind.CLICK, f"{prefix}{letter}C")


def _literal_at(text: str, pos: int) -> Union[Token, None]:
    for literal in _LITERALS:
        if text.startswith(literal.text, pos):
            return literal
    return None


def _scan(text: str) -> Iterable[Tuple[int, Token]]:
    """Yield ``(start_offset, token)`` for every token in ``text``."""
    pos = 0
    while pos < len(text):
        token = _literal_at(text, pos) or Token(TokenKind.CHAR, text[pos])
        yield pos, token
        pos += len(token.text)


def tokenize(text: str) -> Tuple[Token, ...]:
    """Split a pattern string into its ordered tokens."""
    return tuple(token for _, token in _scan(text))


def token_at(text: str, offset: int) -> Token:
    """Return the token covering character ``offset`` of ``text``.

    Offsets outside the string give :data:`UNKNOWN` rather than an error,
    since this feeds mistake reporting.
    """
    if offset < 0:
        return UNKNOWN
    for start, token in _scan(text):
        if start <= offset < start + len(token.text):
            return token
    return UNKNOWN


def join_tokens(tokens: Iterable[Token]) -> str:
    return "".join(token.text for token in tokens)


def format_for_display(pattern: Union[str, Sequence[Token]]) -> str:
    """Render a pattern string or token sequence with click/F-key glyphs."""
    tokens = tokenize(pattern) if isinstance(pattern, str) else pattern
    return "".join(token.icon for token in tokens)
