"""
DuoChat - Session State Machine
Pure transitions from (state, event) to (state, effects). No I/O happens here.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from duochat.chat.events import (
    CloseConnection, ConnectStarted, Connected, ConnectionClosed, ConnectionFailed,
    DataReceived, Display, Effect, Event, Exit, Interrupted, LineSubmitted, ListenStarted,
    Notice, OffsetInput, Redraw, Resized, Send, StopListening,
)
from duochat.chat.message import Message


class ConnectionState(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    CONNECTING = "connecting"
    ESTABLISHED = "established"
    CLOSED = "closed"


@dataclass(frozen=True)
class SessionState:
    phase: ConnectionState = ConnectionState.IDLE
    peer: str = ""
    reason: str = ""
    interrupted: bool = False
    exit_code: Optional[int] = None

    @property
    def established(self) -> bool:
        return self.phase is ConnectionState.ESTABLISHED

    @property
    def closed(self) -> bool:
        return self.phase is ConnectionState.CLOSED


Transition = Tuple[SessionState, List[Effect]]


def _close(state: SessionState, reason: str, code: int) -> SessionState:
    return replace(state, phase=ConnectionState.CLOSED, reason=reason, exit_code=code)


def decode(data: bytes) -> str:
    return data.decode('utf-8', errors='replace')


def on_listen_started(state: SessionState, event: ListenStarted) -> Transition:
    if state.phase is not ConnectionState.IDLE:
        return state, []
    return (replace(state, phase=ConnectionState.LISTENING),
            [Display(Message.system("Waiting for a connection..."))])


def on_connect_started(state: SessionState, event: ConnectStarted) -> Transition:
    if state.phase is not ConnectionState.IDLE:
        return state, []
    return (replace(state, phase=ConnectionState.CONNECTING),
            [Display(Message.system("Joining server..."))])


def on_connected(state: SessionState, event: Connected) -> Transition:
    # First connection only; anything later is never shown to the user.
    if state.phase not in (ConnectionState.LISTENING, ConnectionState.CONNECTING):
        return state, []
    return (replace(state, phase=ConnectionState.ESTABLISHED, peer=event.peer),
            [Display(Message.system(f"Now connected to {event.peer}", 'SUCCESS'))])


def on_data(state: SessionState, event: DataReceived) -> Transition:
    if not state.established:
        return state, []
    return state, [Display(Message.incoming(decode(event.data)))]


def on_closed(state: SessionState, event: ConnectionClosed) -> Transition:
    # After an error the error path has already shut everything down.
    if state.closed or event.had_error:
        return state, []
    return (_close(state, "closed", 0),
            [Display(Message.system("Connection closed.")), CloseConnection(graceful=True),
             Exit(0)])


def on_failed(state: SessionState, event: ConnectionFailed) -> Transition:
    if state.closed:
        return state, []
    return (_close(state, event.error, 1),
            [Display(Message.system(f"Error: {event.error}", 'ERROR')),
             StopListening(), CloseConnection(graceful=False), Exit(1)])


def on_line(state: SessionState, event: LineSubmitted) -> Transition:
    effects: List[Effect] = [OffsetInput()]
    # After Ctrl+C the socket is already being closed; the line goes nowhere.
    if state.established and not state.interrupted and event.text.strip():
        effects += [Send(event.text.encode('utf-8')), Display(Message.outgoing(event.text))]
    else:
        effects.append(Redraw())
    return state, effects


def on_interrupt(state: SessionState, event: Interrupted) -> Transition:
    if state.interrupted or state.closed:
        return state, []
    state = replace(state, interrupted=True)
    if state.phase is ConnectionState.ESTABLISHED:
        # The resulting close event finishes the shutdown.
        return state, [Display(Message.system("Issued close.")), CloseConnection(graceful=True)]
    if state.phase is ConnectionState.LISTENING:
        return (_close(state, "stopped listening", 1),
                [StopListening(), Display(Message.system("Stopped listening for connections.")),
                 Exit(1)])
    if state.phase is ConnectionState.CONNECTING:
        return (_close(state, "aborted", 0),
                [Display(Message.system("Aborting connection!", 'WARNING')),
                 CloseConnection(graceful=False), Exit(0)])
    return _close(state, "quit", 0), [Exit(0)]


def on_resize(state: SessionState, event: Resized) -> Transition:
    return state, [Redraw()]


def on_notice(state: SessionState, event: Notice) -> Transition:
    return state, [Display(event.message)]


HANDLERS = {
    ListenStarted: on_listen_started,
    ConnectStarted: on_connect_started,
    Connected: on_connected,
    DataReceived: on_data,
    ConnectionClosed: on_closed,
    ConnectionFailed: on_failed,
    LineSubmitted: on_line,
    Interrupted: on_interrupt,
    Resized: on_resize,
    Notice: on_notice,
}


def transition(state: SessionState, event: Event) -> Transition:
    """Apply one event to the session and return the new state plus the effects to run."""
    handler = HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"No transition for event {event!r}")
    return handler(state, event)
