"""Integration tests for the connection manager over loopback TCP."""
import queue
import socket
import time

import pytest

from duochat.chat.events import (
    Connected, ConnectionClosed, ConnectionFailed, DataReceived,
)
from duochat.chat.session import ConnectionState
from duochat.network.connection import ConnectionManager
from tests.conftest import reset


def next_event(events, timeout=5.0):
    return events.get(timeout=timeout)


def drain(events, wait=0.3):
    time.sleep(wait)
    found = []
    while True:
        try:
            found.append(events.get_nowait())
        except queue.Empty:
            return found


@pytest.fixture
def events():
    return queue.SimpleQueue()


@pytest.fixture
def manager(events):
    mgr = ConnectionManager(events.put, timeout=2)
    yield mgr
    mgr.close(graceful=False)


@pytest.fixture
def host(manager):
    """A manager listening on an ephemeral loopback port."""
    manager.start_as_host(0, "127.0.0.1")
    assert manager.state is ConnectionState.LISTENING
    return manager


class TestHost:
    """Tests for listening and accepting."""

    def test_accepts_one_peer(self, host, events):
        client = socket.create_connection(host.address)
        try:
            event = next_event(events)
            assert isinstance(event, Connected)
            assert event.peer.startswith("127.0.0.1:")
            assert host.state is ConnectionState.ESTABLISHED
            assert host.server_socket is None
        finally:
            client.close()

    def test_second_peer_never_reaches_the_application(self, host, events):
        listen_address = host.address
        first = socket.create_connection(listen_address)
        local = first.getsockname()
        try:
            assert isinstance(next_event(events), Connected)
            for _ in range(3):
                try:
                    socket.create_connection(listen_address, timeout=1).close()
                except OSError:
                    pass
            assert not any(isinstance(e, Connected) for e in drain(events))
            assert host.peer == f"{local[0]}:{local[1]}"
        finally:
            first.close()

    def test_receives_raw_bytes(self, host, events):
        client = socket.create_connection(host.address)
        try:
            next_event(events)
            client.sendall(b"hello")
            assert next_event(events) == DataReceived(b"hello")
        finally:
            client.close()

    def test_peer_close_is_reported(self, host, events):
        client = socket.create_connection(host.address)
        next_event(events)
        client.close()
        assert next_event(events) == ConnectionClosed()

    def test_peer_reset_is_an_error_then_a_close(self, host, events):
        client = socket.create_connection(host.address)
        assert isinstance(next_event(events), Connected)
        reset(client)
        failed = next_event(events)
        assert isinstance(failed, ConnectionFailed)
        assert failed.error
        assert next_event(events) == ConnectionClosed(had_error=True)

    def test_error_after_local_close_is_a_clean_close(self, manager, events):
        class ResetSocket:
            def recv(self, size):
                raise ConnectionResetError(104, "Connection reset by peer")

        manager.close()
        manager._receive_loop(ResetSocket())
        assert drain(events, wait=0) == [ConnectionClosed()]

    def test_stop_listening(self, host, events):
        address = host.address
        host.stop_listening()
        assert host.state is ConnectionState.CLOSED
        with pytest.raises(OSError):
            socket.create_connection(address, timeout=1).close()
        assert drain(events) == []

    def test_bind_failure_is_reported(self, events):
        with socket.socket() as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen(1)
            mgr = ConnectionManager(events.put)
            mgr.start_as_host(taken.getsockname()[1], "127.0.0.1")
            event = next_event(events)
            assert isinstance(event, ConnectionFailed)
            assert mgr.state is ConnectionState.CLOSED

    def test_cannot_start_twice(self, host):
        with pytest.raises(RuntimeError):
            host.start_as_peer("127.0.0.1", 1)


class TestPeer:
    """Tests for dialing."""

    def test_connects_and_exchanges_bytes(self, manager, events):
        with socket.socket() as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            manager.start_as_peer("127.0.0.1", server.getsockname()[1])
            assert manager.state in (ConnectionState.CONNECTING, ConnectionState.ESTABLISHED)
            conn, _ = server.accept()
            with conn:
                assert isinstance(next_event(events), Connected)
                manager.send(b"hi there")
                assert conn.recv(100) == b"hi there"
                conn.sendall(b"back")
                assert next_event(events) == DataReceived(b"back")

    def test_refused_connection_is_an_error(self, manager, events, free_port):
        manager.start_as_peer("127.0.0.1", free_port)
        event = next_event(events)
        assert isinstance(event, ConnectionFailed)
        assert event.error

    def test_send_without_connection_raises(self, manager):
        with pytest.raises(RuntimeError):
            manager.send(b"x")


class TestClose:
    """Tests for tearing the connection down."""

    def test_graceful_close_wakes_reader(self, host, events):
        client = socket.create_connection(host.address)
        try:
            next_event(events)
            host.close(graceful=True)
            assert next_event(events) == ConnectionClosed()
            assert client.recv(10) == b""
        finally:
            client.close()

    def test_send_after_close_is_dropped(self, host, events):
        client = socket.create_connection(host.address)
        try:
            next_event(events)
            host.close(graceful=True)
            host.send(b"late")
            assert not any(isinstance(e, ConnectionFailed) for e in drain(events))
        finally:
            client.close()

    def test_close_is_idempotent(self, host):
        host.close()
        host.close(graceful=False)
        host.close()
        assert host.state is ConnectionState.CLOSED

    def test_close_before_anything(self, manager):
        manager.close()
        assert manager.state is ConnectionState.CLOSED
