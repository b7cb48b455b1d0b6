"""
DuoChat - Events and Effects
Everything that can wake the reactor, and everything a transition can ask it to do.
"""

from dataclasses import dataclass
from typing import Union

from duochat.chat.message import Message


# ─── Events ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ListenStarted:
    port: int


@dataclass(frozen=True)
class ConnectStarted:
    host: str
    port: int


@dataclass(frozen=True)
class Connected:
    peer: str


@dataclass(frozen=True)
class DataReceived:
    data: bytes


@dataclass(frozen=True)
class ConnectionClosed:
    had_error: bool = False


@dataclass(frozen=True)
class ConnectionFailed:
    error: str


@dataclass(frozen=True)
class Resized:
    pass


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class LineSubmitted:
    text: str


@dataclass(frozen=True)
class Interrupted:
    pass


@dataclass(frozen=True)
class Notice:
    """A system message that does not change the session (CLI warnings etc.)."""
    message: Message


Event = Union[ListenStarted, ConnectStarted, Connected, DataReceived, ConnectionClosed,
              ConnectionFailed, Resized, KeyPressed, LineSubmitted, Interrupted, Notice]


# ─── Effects ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Display:
    message: Message


@dataclass(frozen=True)
class Redraw:
    pass


@dataclass(frozen=True)
class OffsetInput:
    pass


@dataclass(frozen=True)
class Send:
    data: bytes


@dataclass(frozen=True)
class CloseConnection:
    graceful: bool


@dataclass(frozen=True)
class StopListening:
    pass


@dataclass(frozen=True)
class Exit:
    code: int


Effect = Union[Display, Redraw, OffsetInput, Send, CloseConnection, StopListening, Exit]
