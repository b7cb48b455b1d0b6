"""Pytest configuration and shared fixtures."""
import socket
import struct
import time

import pytest

from duochat.app import ChatApp
from duochat.chat.history import MessageLog
from duochat.chat.session import ConnectionState, SessionState
from duochat.cli import Options
from duochat.ui.input import InputController
from duochat.ui.renderer import Renderer
from tests.screen import ScreenBuffer


def pump_until(apps, predicate, timeout=5.0):
    """Drive one or more apps' event queues until ``predicate()`` holds."""
    if isinstance(apps, ChatApp):
        apps = [apps]
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        for app in apps:
            app.pump(timeout=0.02)
    return predicate()


def reset(sock):
    """Close ``sock`` so the other end sees a connection reset instead of EOF."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
    sock.close()


def last_message(log):
    return log.get_all()[-1]


def messages_from(log, origin):
    return [m for m in log if m.origin is origin]


@pytest.fixture
def screen():
    """An 80x24 in-memory terminal."""
    return ScreenBuffer(columns=80, rows=24)


@pytest.fixture
def renderer(screen):
    """A renderer with an empty log, already drawn once."""
    input_controller = InputController(screen)
    renderer = Renderer(screen, MessageLog(), input_controller)
    renderer.full_redraw()
    return renderer


@pytest.fixture
def make_app(screen):
    """Factory for apps on the shared screen; every app is closed at teardown."""
    apps = []

    def _make(options=None, terminal=None):
        app = ChatApp(terminal or screen, options or Options(mode='idle'))
        apps.append(app)
        return app

    yield _make
    for app in apps:
        app.connection.close(graceful=False)


@pytest.fixture
def established_app(make_app):
    """An app whose session believes it is connected, with no real socket behind it."""
    app = make_app()
    app.renderer.full_redraw()
    app.state = SessionState(phase=ConnectionState.ESTABLISHED, peer="10.0.0.2:50000")
    return app


@pytest.fixture
def free_port():
    """A TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
