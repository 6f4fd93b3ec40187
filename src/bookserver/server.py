"""
=============================================================================
BOOK SERVER
=============================================================================

Ties the transport (core/) to the dispatcher (http/):

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          HTTPServer                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer ──accept──► _handle_connection                        │
    │                                  │                                   │
    │                     ThreadPool.submit (full → 503)                   │
    │                                  │                                   │
    │                                  ▼                                   │
    │                          _process_connection   (worker thread)       │
    │                                  │                                   │
    │          Connection.read_request ──timeout──► 408                    │
    │                                  │                                   │
    │          RequestParser.parse ──HTTPParseError──► 400/405/413/431/505 │
    │                                  │                                   │
    │          Dispatcher.dispatch ──► HTTPResponse                        │
    │                                  │                                   │
    │          Connection.send_response, then keep-alive or close          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The route table is built before the server exists (see app.build_router)
and handed in finished; the server never registers routes itself.

=============================================================================
INTERVIEW QUESTIONS ABOUT WEB SERVERS
=============================================================================

Q: "How do you handle concurrent connections?"
A: "Thread pool with configurable min/max workers. Each connection is
   processed by a worker thread; the pool's queue is bounded, and when
   it's full the connection gets 503 Service Unavailable at once."

Q: "What happens during graceful shutdown?"
A: "1. Stop accepting and close the listener
   2. Let in-flight requests finish (with a timeout)
   3. Stop the worker threads"

=============================================================================
"""

import logging
import threading
from typing import Optional, Tuple, Union

from .config import ServerConfig
from .core import Connection, RequestTimeout, SocketServer, ThreadPool
from .http import (
    Dispatcher,
    HTTPParseError,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    Router,
    api_error,
)


logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class HTTPServer:
    """
    Threaded HTTP/1.1 server around a finished Router.

        router = build_router()
        server = HTTPServer(router, ServerConfig(port=9090))
        server.run()          # blocks until SIGINT/SIGTERM or shutdown()

    From another thread (tests, embedding):

        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5)
        host, port = server.address
        ...
        server.shutdown()
    """

    def __init__(
        self,
        app: Union[Router, Dispatcher],
        config: Optional[ServerConfig] = None,
        configure_logging: bool = True,
    ):
        """
        Args:
            app: A Router (wrapped in a default Dispatcher) or a Dispatcher
                 with its own error handler.
            config: Server configuration; defaults when omitted.
            configure_logging: Call logging.basicConfig from config.log_level
                               in run(). Tests and embedding apps that manage
                               logging themselves pass False.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.dispatcher = app if isinstance(app, Dispatcher) else Dispatcher(app)
        self.configure_logging = configure_logging

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(
            max_request_size=self.config.max_request_size,
            max_header_bytes=self.config.max_header_bytes,
        )
        self._running = threading.Event()

    @property
    def router(self) -> Router:
        return self.dispatcher.router

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) actually bound; the OS-chosen port when port=0."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Serve until shutdown() or SIGINT/SIGTERM. Blocks.

        Raises:
            OSError: If the listener can't be bound.
        """
        if self.configure_logging:
            self._setup_logging()

        self._running.set()
        self._thread_pool.start()
        self._log_startup_banner()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Stopping the server...")
        self._running.clear()
        self._thread_pool.shutdown(wait=True, timeout=self.config.write_timeout or 30.0)
        logger.info("Server stopped")

    def _setup_logging(self):
        level = self.config.log_level_number
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        logging.getLogger("bookserver").setLevel(level)

    def _log_startup_banner(self):
        host, port = self.config.host, self.config.port
        logger.info(self.config.server_name)
        logger.info("Starting book server...")
        logger.info(f"  workers: {self.config.min_workers}-{self.config.max_workers} threads")
        logger.info(
            f"  timeouts: read {self.config.read_timeout}s, write {self.config.write_timeout}s, "
            f"max header bytes {self.config.max_header_bytes}"
        )
        logger.info(f"Point your browser to: http://localhost:{port} (bound to {host})")
        logger.info("Routes:")
        for line in self.router.describe():
            logger.info(line)
        logger.info("Press Ctrl+C to stop")

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand a fresh connection to the pool, or turn it away with 503."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection (runs on a worker thread).

        read → parse → dispatch → send, repeated while the client keeps the
        connection open.
        """
        with conn:
            while self._running.is_set():
                try:
                    raw_request = conn.read_request()
                except RequestTimeout as e:
                    logger.info(f"[{conn.id}] {e}")
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except HTTPParseError as e:
                    self._send_error(conn, e.status_code, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Rejected request: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    break

                response = self.dispatcher.dispatch(request)

                keep_alive = request.is_keep_alive and self.config.keep_alive
                self._set_connection_headers(response, keep_alive)

                data = response.to_bytes(self.config.server_name, include_body=request.method != "HEAD")
                if not conn.send_response(data):
                    break
                if not keep_alive:
                    break
                conn.set_keep_alive()

    def _set_connection_headers(self, response: HTTPResponse, keep_alive: bool):
        if keep_alive:
            response.headers.setdefault("Connection", "keep-alive")
            response.headers.setdefault("Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}")
        else:
            response.headers["Connection"] = "close"

    def _send_error(self, conn: Connection, status: int, message: str):
        """Answer a request that never reached the dispatcher."""
        response = api_error(status, message)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))
