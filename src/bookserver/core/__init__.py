"""
=============================================================================
CORE MODULE
=============================================================================

The transport under the HTTP layer:

    socket_server.py   listen, accept, signals
    connection.py      read one request, write one response, close
    thread_pool.py     workers that process connections

    accept ──► Connection ──► ThreadPool.submit ──► HTTPServer._process_connection

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestTimeout
from .thread_pool import ThreadPool, Worker, WorkerState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTimeout",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
