"""
DuoChat - Message Model
A single entry of the message log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Origin(Enum):
    SYSTEM = "system"
    INCOMING = "incoming"
    OUTGOING = "outgoing"


LEVELS = ('INFO', 'SUCCESS', 'WARNING', 'ERROR')


@dataclass(frozen=True)
class Message:
    """An immutable log entry. ``level`` only matters for system messages."""

    content: str
    origin: Origin = Origin.SYSTEM
    level: str = 'INFO'
    timestamp: datetime = field(default_factory=datetime.now, compare=False, repr=False)

    def __post_init__(self):
        if self.level not in LEVELS:
            raise ValueError(f"Unknown message level: {self.level!r}")

    @classmethod
    def system(cls, content: str, level: str = 'INFO') -> "Message":
        return cls(content=content, origin=Origin.SYSTEM, level=level)

    @classmethod
    def incoming(cls, content: str) -> "Message":
        return cls(content=content, origin=Origin.INCOMING)

    @classmethod
    def outgoing(cls, content: str) -> "Message":
        return cls(content=content, origin=Origin.OUTGOING)

    @property
    def is_system(self) -> bool:
        return self.origin is Origin.SYSTEM

    def time_str(self) -> str:
        return self.timestamp.strftime('%H:%M:%S')
