"""
DuoChat - Main Application
The reactor: one queue of events, one thread that handles them. Each event runs
through the session state machine and the resulting effects are carried out
before the next event is taken.
"""

import logging
import queue
import signal
import sys
from typing import Optional, Sequence

from duochat.chat.events import (
    CloseConnection, ConnectStarted, Display, Effect, Event, Exit, Interrupted, KeyPressed,
    LineSubmitted, ListenStarted, Notice, OffsetInput, Redraw, Resized, Send, StopListening,
)
from duochat.chat.history import MessageLog
from duochat.chat.session import SessionState, transition
from duochat.cli import Options, parse_args
from duochat.config.settings import DEBUG_LOG_FORMAT, LISTEN_HOST, RESIZE_POLL_INTERVAL
from duochat.network.connection import ConnectionManager
from duochat.ui.input import InputController, KeyReader
from duochat.ui.renderer import Renderer
from duochat.ui.terminal import ConsoleTerminal, Terminal, enable_ansi, terminal_mode

logger = logging.getLogger(__name__)


class ChatApp:
    def __init__(self, terminal: Terminal, options: Optional[Options] = None):
        self.terminal = terminal
        self.options = options or Options()
        self.events: "queue.SimpleQueue[Event]" = queue.SimpleQueue()
        self.log = MessageLog()
        self.input = InputController(terminal, on_line=self._on_line,
                                     on_interrupt=self._on_interrupt)
        self.renderer = Renderer(terminal, self.log, self.input)
        self.connection = ConnectionManager(self.post)
        self.state = SessionState()
        self._size = (terminal.columns, terminal.rows)

    @property
    def exit_code(self) -> Optional[int]:
        return self.state.exit_code

    @property
    def finished(self) -> bool:
        return self.state.exit_code is not None

    def post(self, event: Event):
        """Queue an event from any thread or from a signal handler."""
        self.events.put(event)

    # ─── Startup ────────────────────────────────────────────────

    def start(self):
        self.renderer.full_redraw()
        for message in self.options.notices:
            self.dispatch(Notice(message))
        mode = self.options.mode
        if mode == 'server':
            self.dispatch(ListenStarted(self.options.port))
            self.connection.start_as_host(self.options.port, LISTEN_HOST)
        elif mode == 'client':
            self.dispatch(ConnectStarted(self.options.host, self.options.port))
            self.connection.start_as_peer(self.options.host, self.options.port)

    # ─── Event handling ─────────────────────────────────────────

    def dispatch(self, event: Event):
        if self.finished:
            return
        if isinstance(event, KeyPressed):
            self.input.handle_key(event.key)
            return
        if isinstance(event, Resized):
            self._size = (self.terminal.columns, self.terminal.rows)
        logger.debug("event %r in %s", event, self.state.phase.value)
        self.state, effects = transition(self.state, event)
        for effect in effects:
            self._execute(effect)
        self.terminal.flush()

    def _execute(self, effect: Effect):
        if isinstance(effect, Display):
            message = effect.message
            logger.debug("[%s] %s: %s", message.time_str(), message.origin.value, message.content)
            self.renderer.print_message(message)
        elif isinstance(effect, Redraw):
            self.renderer.full_redraw()
        elif isinstance(effect, OffsetInput):
            self.renderer.offset_submitted_line()
        elif isinstance(effect, Send):
            self.connection.send(effect.data)
        elif isinstance(effect, CloseConnection):
            self.connection.close(effect.graceful)
        elif isinstance(effect, StopListening):
            self.connection.stop_listening()
        elif isinstance(effect, Exit):
            self.input.disarm()
            logger.debug("exit with status %s (%s)", effect.code, self.state.reason)
        else:
            raise TypeError(f"Unknown effect {effect!r}")

    def _on_line(self, line: str):
        self.dispatch(LineSubmitted(line))

    def _on_interrupt(self):
        self.dispatch(Interrupted())

    def pump(self, timeout: Optional[float] = None) -> bool:
        """Handle one queued event. Returns False if none arrived within ``timeout``."""
        try:
            event = self.events.get(timeout=timeout)
        except queue.Empty:
            return False
        self.dispatch(event)
        return True

    def poll_resize(self):
        size = (self.terminal.columns, self.terminal.rows)
        if size != self._size:
            self.dispatch(Resized())

    def run(self) -> int:
        """Serve events until the session ends; returns the process exit status."""
        watch_size = not hasattr(signal, 'SIGWINCH')
        while not self.finished:
            timeout = RESIZE_POLL_INTERVAL if watch_size else None
            if not self.pump(timeout) and watch_size:
                self.poll_resize()
        return self.exit_code

    # ─── Signals ────────────────────────────────────────────────

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, lambda signum, frame: self.post(Interrupted()))
        if hasattr(signal, 'SIGWINCH'):
            signal.signal(signal.SIGWINCH, lambda signum, frame: self.post(Resized()))


def configure_logging(debug_log: Optional[str]):
    """Debug output goes to a file; the terminal belongs to the chat view."""
    root = logging.getLogger('duochat')
    if not debug_log:
        root.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(debug_log, encoding='utf-8')
    handler.setFormatter(logging.Formatter(DEBUG_LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)


def main(argv: Optional[Sequence[str]] = None) -> int:
    options = parse_args(argv)
    configure_logging(options.debug_log)
    enable_ansi()
    terminal = ConsoleTerminal()
    app = ChatApp(terminal, options)
    logger.debug("starting in %s mode, %s:%s", options.mode, options.host, options.port)
    with terminal_mode():
        app.install_signal_handlers()
        reader = KeyReader(app.post)
        try:
            app.start()
            reader.start()
            code = app.run()
        finally:
            reader.stop()
            app.connection.close(graceful=False)
            terminal.reset()
    return code


if __name__ == '__main__':
    sys.exit(main())
