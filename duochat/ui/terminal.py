"""
DuoChat - Terminal Surface
The small set of cursor and erase operations the renderer needs, written to a
real terminal through a Rich console.
"""

import sys
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Optional

import colorama
from colorama import Cursor, Style, ansi
from rich.console import Console
from rich.text import Text

from duochat.ui.colors import CHAT_THEME

try:
    import termios
    import tty
except ImportError:  # Windows
    termios = None
    tty = None


class Terminal(ABC):
    """Cursor coordinates are zero-based; ``y`` counts rows from the top of the screen."""

    @property
    @abstractmethod
    def columns(self) -> int: ...

    @property
    @abstractmethod
    def rows(self) -> int: ...

    @abstractmethod
    def write(self, text: str, style: Optional[str] = None) -> None:
        """Write text at the cursor. ``\\n`` moves to column 0 of the next row, scrolling at the bottom."""

    @abstractmethod
    def move_cursor(self, dx: int, dy: int) -> None: ...

    @abstractmethod
    def cursor_to(self, x: int, y: Optional[int] = None) -> None: ...

    @abstractmethod
    def clear_screen_down(self) -> None: ...

    @abstractmethod
    def clear_all(self) -> None:
        """Clear the visible screen and the scrollback."""

    def flush(self) -> None:
        pass


def create_console() -> Console:
    """Create a Rich console with our theme."""
    return Console(theme=CHAT_THEME, highlight=False)


class ConsoleTerminal(Terminal):
    def __init__(self, console: Optional[Console] = None):
        self.console = console or create_console()

    @property
    def columns(self) -> int:
        return self.console.size.width

    @property
    def rows(self) -> int:
        return self.console.size.height

    def _control(self, sequence: str):
        self.console.file.write(sequence)

    def write(self, text: str, style: Optional[str] = None):
        if not text:
            return
        if style is None:
            self.console.file.write(text)
        else:
            self.console.print(Text(text, style=style), end='', soft_wrap=True,
                               markup=False, highlight=False)

    def move_cursor(self, dx: int, dy: int):
        if dx > 0:
            self._control(Cursor.FORWARD(dx))
        elif dx < 0:
            self._control(Cursor.BACK(-dx))
        if dy > 0:
            self._control(Cursor.DOWN(dy))
        elif dy < 0:
            self._control(Cursor.UP(-dy))

    def cursor_to(self, x: int, y: Optional[int] = None):
        if y is None:
            # CSI 0C moves one column on most terminals, so only move when needed.
            self._control('\r' + (Cursor.FORWARD(x) if x > 0 else ''))
        else:
            self._control(Cursor.POS(x + 1, y + 1))

    def clear_screen_down(self):
        self._control(ansi.clear_screen(0))

    def clear_all(self):
        self._control(ansi.clear_screen(2) + ansi.clear_screen(3))

    def reset(self):
        """Drop any lingering style and leave the cursor on a fresh line."""
        self._control(Style.RESET_ALL + '\n')
        self.flush()

    def flush(self):
        self.console.file.flush()


def enable_ansi():
    """Turn on escape-sequence handling where the platform needs it (old Windows consoles)."""
    colorama.just_fix_windows_console()


@contextmanager
def terminal_mode(stream=None):
    """Disable line buffering and echo for the lifetime of the session.

    Output processing is left alone, so ``\\n`` still returns the carriage.
    """
    stream = stream or sys.stdin
    if termios is None or not stream.isatty():
        yield
        return
    fd = stream.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)
