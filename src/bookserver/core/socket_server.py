"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

The listening half of the transport: create the socket, bind, listen and
hand every accepted client to a callback.

    1. socket()    create a TCP socket
    2. bind()      reserve host:port
    3. listen()    let the OS queue incoming connections
    4. accept()    one new socket per client; the listener keeps listening
    5. close()     release the listener on shutdown

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR   restart immediately instead of waiting out TIME_WAIT
TCP_NODELAY    send small responses at once (no Nagle buffering)
timeout 1.0s   accept() wakes up every second to notice shutdown()

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (kill, docker stop) stop the accept loop and
close the listener. Python only lets the main thread install signal
handlers, so a server started from any other thread (an embedding app, a
test fixture) leaves signals alone and is stopped with shutdown().

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

        def handle(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle)      # blocks until shutdown()

    ┌─────────────────────────────────────────────────────────────────────┐
    │  start()                                                             │
    │     ├──► _create_socket()   socket + options                        │
    │     ├──► bind() / listen()                                           │
    │     ├──► _setup_signals()   main thread only                        │
    │     └──► _accept_loop()     Connection(...) → callback              │
    │                                                                      │
    │  shutdown()                 flag + event, safe from any thread       │
    │  _cleanup()                 restore signals, close listener          │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound, once listening.

        With port=0 this is where the OS-assigned port shows up.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that call shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in the main thread, leaving signal handlers alone")
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept until shutdown() is called. Blocks.

        Raises:
            OSError: If the address can't be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                read_timeout=self.config.read_timeout,
                write_timeout=self.config.write_timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_header_bytes=self.config.max_header_bytes,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop accepting. Idempotent and callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                logger.debug("Listener already closed")
            self._socket = None
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is accepting. False on timeout."""
        return self._ready_event.wait(timeout)

