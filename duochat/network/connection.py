"""
DuoChat - Connection Manager
Turns "listen" or "dial" into exactly one established TCP stream. Blocking
socket calls run on daemon threads; everything they learn is posted to the
reactor as an event.
"""

import logging
import socket
import threading
from typing import Callable, Optional, Tuple

from duochat.chat.events import (
    Connected, ConnectionClosed, ConnectionFailed, DataReceived, Event,
)
from duochat.chat.session import ConnectionState
from duochat.config.settings import BUFFER_SIZE, CONNECTION_TIMEOUT, LISTEN_HOST

logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    return getattr(error, 'strerror', None) or str(error) or error.__class__.__name__


def format_peer(address) -> str:
    return f"{address[0]}:{address[1]}"


class ConnectionManager:
    """Owns the listening socket (host mode) and the single peer socket.

    ``post`` receives :mod:`duochat.chat.events` instances and must be thread safe.
    """

    def __init__(self, post: Callable[[Event], None], buffer_size: int = BUFFER_SIZE,
                 timeout: float = CONNECTION_TIMEOUT):
        self._post = post
        self.buffer_size = buffer_size
        self.timeout = timeout
        self.state = ConnectionState.IDLE
        self.peer = ""
        self.server_socket: Optional[socket.socket] = None
        self.client_socket: Optional[socket.socket] = None
        self._lock = threading.Lock()
        self._accepted = False
        self._closing = False

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound address of the listener (useful with port 0)."""
        sock = self.server_socket
        return sock.getsockname()[:2] if sock else None

    # ─── Host ───────────────────────────────────────────────────

    def start_as_host(self, port: int, host: str = LISTEN_HOST):
        with self._lock:
            if self.state is not ConnectionState.IDLE:
                raise RuntimeError(f"Cannot listen while {self.state.value}")
            self.state = ConnectionState.LISTENING
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(1)
        except OSError as e:
            logger.debug("listen on %s:%s failed: %s", host, port, e)
            sock.close()
            self.state = ConnectionState.CLOSED
            self._post(ConnectionFailed(describe_error(e)))
            return
        self.server_socket = sock
        logger.debug("listening on %s:%s", *self.address)
        threading.Thread(target=self._accept_loop, args=(sock,), name="duochat-accept",
                         daemon=True).start()

    def _accept_loop(self, server_socket: socket.socket):
        try:
            conn, address = server_socket.accept()
        except OSError as e:
            with self._lock:
                stopped = self.state is not ConnectionState.LISTENING
            if not stopped:
                self._post(ConnectionFailed(describe_error(e)))
            return
        with self._lock:
            if self._accepted or self.state is not ConnectionState.LISTENING:
                # A second peer never reaches the application.
                conn.close()
                return
            self._accepted = True
            self._close_server()
            self._establish(conn, address)

    def stop_listening(self):
        with self._lock:
            if self.state is ConnectionState.LISTENING:
                self.state = ConnectionState.CLOSED
            self._close_server()

    def _close_server(self):
        sock, self.server_socket = self.server_socket, None
        if sock:
            # shutdown() wakes a thread blocked in accept() on Linux; close() alone may not.
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()

    # ─── Peer ───────────────────────────────────────────────────

    def start_as_peer(self, address: str, port: int):
        with self._lock:
            if self.state is not ConnectionState.IDLE:
                raise RuntimeError(f"Cannot connect while {self.state.value}")
            self.state = ConnectionState.CONNECTING
        threading.Thread(target=self._connect, args=(address, port), name="duochat-connect",
                         daemon=True).start()

    def _connect(self, address: str, port: int):
        try:
            sock = socket.create_connection((address, port), timeout=self.timeout)
        except OSError as e:
            logger.debug("connect to %s:%s failed: %s", address, port, e)
            with self._lock:
                aborted = self.state is not ConnectionState.CONNECTING
                self.state = ConnectionState.CLOSED
            if not aborted:
                self._post(ConnectionFailed(describe_error(e)))
            return
        sock.settimeout(None)
        with self._lock:
            if self.state is not ConnectionState.CONNECTING:
                sock.close()
                return
            self._establish(sock, sock.getpeername())

    # ─── Established ────────────────────────────────────────────

    def _establish(self, sock: socket.socket, address):
        """Called with the lock held."""
        self.client_socket = sock
        self.peer = format_peer(address)
        self.state = ConnectionState.ESTABLISHED
        logger.debug("connected to %s", self.peer)
        self._post(Connected(self.peer))
        threading.Thread(target=self._receive_loop, args=(sock,), name="duochat-recv",
                         daemon=True).start()

    def _receive_loop(self, sock: socket.socket):
        while True:
            try:
                data = sock.recv(self.buffer_size)
            except OSError as e:
                if self._closing:
                    self._post(ConnectionClosed())
                else:
                    logger.debug("receive failed: %s", e)
                    self._post(ConnectionFailed(describe_error(e)))
                    self._post(ConnectionClosed(had_error=True))
                return
            if not data:
                self._post(ConnectionClosed())
                return
            self._post(DataReceived(data))

    def send(self, data: bytes):
        """Write raw bytes. No framing: the peer may see them split or merged with others.

        Data sent after :meth:`close` is dropped.
        """
        if self.state is ConnectionState.CLOSED:
            logger.debug("dropping %d bytes, connection closed", len(data))
            return
        sock = self.client_socket
        if sock is None or self.state is not ConnectionState.ESTABLISHED:
            raise RuntimeError("No established connection")
        try:
            sock.sendall(data)
        except OSError as e:
            logger.debug("send failed: %s", e)
            self._post(ConnectionFailed(describe_error(e)))

    def close(self, graceful: bool = True):
        """Release everything. Safe to call any number of times."""
        with self._lock:
            self._closing = True
            if self.state is not ConnectionState.CLOSED:
                self.state = ConnectionState.CLOSED
            self._close_server()
            sock, self.client_socket = self.client_socket, None
        if sock is None:
            return
        if graceful:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        sock.close()
