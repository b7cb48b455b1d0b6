"""
DuoChat - Input Controller
A one-line editor pinned to the bottom row, plus the thread that feeds it keys.
"""

import codecs
import os
import sys
import threading
from typing import Callable, List, Optional

from duochat.chat.events import Interrupted, KeyPressed
from duochat.config.settings import PROMPT
from duochat.ui.terminal import Terminal

# ─── Cross-platform getch ──────────────────────────────────────
try:
    import msvcrt

    _WINDOWS_KEYS = {'K': '\x1b[D', 'M': '\x1b[C', 'G': '\x1b[H', 'O': '\x1b[F', 'S': '\x1b[3~'}

    def _getch():
        while True:
            ch = msvcrt.getwch()
            if ch not in ('\x00', '\xe0'):
                return ch
            key = _WINDOWS_KEYS.get(msvcrt.getwch())
            if key:
                return key
except ImportError:
    _decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')

    def _getch():
        # Unbuffered read: stdin is in cbreak mode for the whole session (see terminal_mode),
        # and the thread blocked here must not hold the sys.stdin buffer lock at exit.
        while True:
            data = os.read(sys.stdin.fileno(), 1)
            if not data:
                return ''
            ch = _decoder.decode(data)
            if ch:
                return ch


ESCAPE_ACTIONS = {
    '\x1b[D': 'left', '\x1b[C': 'right',
    '\x1b[H': 'home', '\x1b[1~': 'home', '\x1bOH': 'home',
    '\x1b[F': 'end', '\x1b[4~': 'end', '\x1bOF': 'end',
    '\x1b[3~': 'delete',
}

CONTROL_ACTIONS = {
    '\r': 'submit', '\n': 'submit',
    '\x7f': 'backspace', '\b': 'backspace',
    '\x01': 'home', '\x05': 'end',
    '\x15': 'clear',
    '\x03': 'interrupt',
    '\x04': 'eof',
}


class InputController:
    """Line editing for the input row.

    ``on_line`` receives each submitted line after the newline has been echoed;
    ``on_interrupt`` is called for Ctrl+C typed as a character and for Ctrl+D on
    an empty line.
    """

    def __init__(self, terminal: Terminal, prompt: str = PROMPT,
                 on_line: Optional[Callable[[str], None]] = None,
                 on_interrupt: Optional[Callable[[], None]] = None):
        self.terminal = terminal
        self.prompt = prompt
        self.on_line = on_line
        self.on_interrupt = on_interrupt
        self.buffer: List[str] = []
        self.cursor = 0
        self.armed = False
        self._escape = ''

    @property
    def text(self) -> str:
        return ''.join(self.buffer)

    def _window(self):
        """Visible slice of the buffer so the line never wraps, and where the cursor lands in it."""
        room = max(1, self.terminal.columns - len(self.prompt) - 1)
        start = 0 if len(self.buffer) <= room else max(0, self.cursor - room)
        return start, self.text[start:start + room]

    @property
    def column(self) -> int:
        start, _ = self._window()
        return min(len(self.prompt) + self.cursor - start, self.terminal.columns - 1)

    def rearm(self):
        self.armed = True

    def disarm(self):
        self.armed = False

    def redraw(self):
        """Rewrite the bottom row with the prompt and the current line."""
        bottom = self.terminal.rows - 1
        _, visible = self._window()
        self.terminal.cursor_to(0, bottom)
        self.terminal.clear_screen_down()
        self.terminal.write(self.prompt, 'input')
        self.terminal.write(visible, 'input')
        self.terminal.cursor_to(self.column, bottom)
        self.terminal.flush()

    # ─── Keys ───────────────────────────────────────────────────

    def handle_key(self, key: str):
        for ch in key:
            self._handle_char(ch)

    def _handle_char(self, ch: str):
        if self._escape:
            self._escape += ch
            if len(self._escape) == 2 and ch not in '[O':
                self._escape = ''
            elif len(self._escape) > 2 and (ch.isalpha() or ch == '~'):
                sequence, self._escape = self._escape, ''
                self._apply(ESCAPE_ACTIONS.get(sequence))
            return
        if ch == '\x1b':
            self._escape = ch
            return
        action = CONTROL_ACTIONS.get(ch)
        if action is None and ch.isprintable():
            action = 'insert'
        self._apply(action, ch)

    def _apply(self, action: Optional[str], ch: str = ''):
        if action is None:
            return
        if action == 'interrupt' or (action == 'eof' and not self.buffer):
            if self.on_interrupt:
                self.on_interrupt()
            return
        if not self.armed:
            return
        if action == 'submit':
            self._submit()
            return
        if action == 'insert':
            self.buffer.insert(self.cursor, ch)
            self.cursor += 1
        elif action == 'backspace':
            if self.cursor > 0:
                self.cursor -= 1
                del self.buffer[self.cursor]
        elif action in ('delete', 'eof'):
            if self.cursor < len(self.buffer):
                del self.buffer[self.cursor]
        elif action == 'left':
            self.cursor = max(0, self.cursor - 1)
        elif action == 'right':
            self.cursor = min(len(self.buffer), self.cursor + 1)
        elif action == 'home':
            self.cursor = 0
        elif action == 'end':
            self.cursor = len(self.buffer)
        elif action == 'clear':
            self.buffer.clear()
            self.cursor = 0
        self.redraw()

    def _submit(self):
        line = self.text
        self.buffer.clear()
        self.cursor = 0
        self.disarm()
        # Echo the newline the way a line-buffered terminal would.
        self.terminal.write('\n')
        if self.on_line:
            self.on_line(line)


class KeyReader(threading.Thread):
    """Reads keys on a daemon thread and posts them to the reactor."""

    def __init__(self, post: Callable, read_key: Callable[[], str] = _getch):
        super().__init__(name="duochat-keys", daemon=True)
        self._post = post
        self._read_key = read_key
        self._running = True

    def run(self):
        while self._running:
            try:
                key = self._read_key()
            except (OSError, ValueError):
                key = ''
            if not key:
                # stdin closed: treat like Ctrl+C.
                self._post(Interrupted())
                return
            self._post(KeyPressed(key))

    def stop(self):
        self._running = False
