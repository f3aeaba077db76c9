"""Messages delivered to the session orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from keytrainer.core.tokens import Token


@dataclass(frozen=True)
class BeginSession:
    pass


@dataclass(frozen=True)
class AbortSession:
    pass


@dataclass(frozen=True)
class TokenInput:
    token: Token


InputEvent = Union[BeginSession, AbortSession, TokenInput]
