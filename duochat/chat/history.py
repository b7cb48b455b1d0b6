"""
DuoChat - Message Log
Append-only, chronologically ordered record of everything shown on screen.
"""

from typing import Iterator, List

from duochat.chat.message import Message


class MessageLog:
    def __init__(self):
        self._messages: List[Message] = []

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def get_all(self) -> List[Message]:
        return list(self._messages)

    def __iter__(self) -> Iterator[Message]:
        # Iterate over a snapshot so a replay never sees its own appends.
        return iter(self.get_all())

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)
