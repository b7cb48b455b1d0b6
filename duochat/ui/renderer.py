"""
DuoChat - Terminal Renderer
Keeps the message log on screen above a prompt bar and the input row.

Screen layout, bottom up: input row, prompt bar, one blank spacer row, messages.
Every public call leaves the cursor on the input row; a live print starts by
moving two rows up, which lands on the spacer (or, after a submitted line, on
the spacer above the echoed line).
"""

from duochat.chat.history import MessageLog
from duochat.chat.message import Message, Origin
from duochat.config.settings import BAR_CHAR, BAR_MARKER, INDICATOR
from duochat.ui.colors import LEVEL_STYLES
from duochat.ui.input import InputController
from duochat.ui.terminal import Terminal
from duochat.ui.wrap import Side, max_text_width, row_column, wrap

_BLANKS = str.maketrans({'\r': ' ', '\n': ' ', '\t': ' '})


def display_text(content: str) -> str:
    """Drop one trailing line terminator and flatten other control whitespace."""
    if content.endswith('\r\n'):
        content = content[:-2]
    elif content.endswith('\n'):
        content = content[:-1]
    return content.translate(_BLANKS)


def message_layout(message: Message):
    """(text style, side, indicator) for a message."""
    if message.is_system:
        return LEVEL_STYLES[message.level], Side.LEFT, ''
    if message.origin is Origin.INCOMING:
        return 'incoming', Side.LEFT, INDICATOR
    return 'outgoing', Side.RIGHT, INDICATOR


class Renderer:
    def __init__(self, terminal: Terminal, log: MessageLog, input_controller: InputController):
        self.terminal = terminal
        self.log = log
        self.input = input_controller

    def print_message(self, message: Message, replay: bool = False):
        """Print one message above the prompt. ``replay`` is only used by :meth:`full_redraw`."""
        t = self.terminal
        if not replay:
            self.log.append(message)
            # One row for the newline the input produced, one for the prompt bar.
            t.move_cursor(0, -2)
        t.cursor_to(0)
        t.clear_screen_down()

        style, side, indicator = message_layout(message)
        columns = t.columns
        rows = wrap(display_text(message.content), max_text_width(columns), side, indicator)
        column = row_column(rows, columns, side)
        for row in rows:
            t.cursor_to(column)
            if row.prefix:
                t.write(row.prefix, 'indicator')
            t.write(row.text, style)
            t.write('\n')

        t.cursor_to(0)
        if not replay:
            t.write('\n')
            self.regenerate_prompt()

    def regenerate_prompt(self):
        """Draw the bar, put the cursor back on the input row and accept the next line."""
        t = self.terminal
        t.write(BAR_MARKER, 'bar.marker')
        t.write(BAR_CHAR * max(0, t.columns - 1), 'bar')
        t.write('\n')
        t.cursor_to(self.input.column, t.rows - 1)
        self.input.redraw()
        self.input.rearm()

    def full_redraw(self):
        """Clear screen and scrollback, then replay the whole log from the bottom row."""
        t = self.terminal
        t.clear_all()
        t.cursor_to(0, t.rows - 1)
        for message in self.log:
            self.print_message(message, replay=True)
        t.write('\n')
        self.regenerate_prompt()

    def offset_submitted_line(self):
        """Step back over the newline echoed when a line was submitted."""
        self.terminal.move_cursor(0, -1)
