"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the server in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m bookserver --port 3000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── BOOKSERVER_PORT=3000 python -m bookserver                 │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The defaults reproduce the classic setup of this server: port 9090, ten
second read and write timeouts and a 1 MiB cap on request headers.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

ENV_PREFIX = "BOOKSERVER_"


@dataclass
class ServerConfig:
    """
    Configuration for the book server.

    NETWORK SETTINGS
    - host, port, backlog, buffer_size

    TIMEOUTS AND LIMITS
    - read_timeout, write_timeout, max_header_bytes, max_request_size

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout

    THREADING SETTINGS
    - min_workers, max_workers

    LOGGING
    - log_level, log_format
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. "0.0.0.0" listens on all interfaces."""

    port: int = 9090
    """Port to listen on. 0 asks the OS for a free one (used by tests)."""

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    # ─────────────────────────────────────────────────────────────────────
    # TIMEOUTS AND LIMITS
    # ─────────────────────────────────────────────────────────────────────

    read_timeout: Optional[float] = 10.0
    """
    Seconds allowed for reading one whole request.
    A client that stalls longer gets 408 Request Timeout.
    None waits forever.
    """

    write_timeout: Optional[float] = 10.0
    """Seconds allowed for writing one response. None waits forever."""

    max_header_bytes: int = 1 << 20
    """Request line plus headers, in bytes. Larger gets 431."""

    max_request_size: int = 10 * 1024 * 1024
    """Whole request including body, in bytes. Larger gets 413."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Serve several requests per TCP connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: "text" or "json"."""

    server_name: str = "bookserver/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ServerConfig":
        """
        Create configuration from environment variables.

        BOOKSERVER_HOST            bind address      (0.0.0.0)
        BOOKSERVER_PORT            port              (9090)
        BOOKSERVER_WORKERS         max workers       (16)
        BOOKSERVER_READ_TIMEOUT    seconds           (10)
        BOOKSERVER_WRITE_TIMEOUT   seconds           (10)
        BOOKSERVER_MAX_HEADER_BYTES                  (1048576)
        BOOKSERVER_LOG_LEVEL                         (INFO)
        BOOKSERVER_LOG_FORMAT      text or json      (text)

        Unset variables keep the dataclass default.

        Args:
            environ: Mapping to read instead of os.environ.

        Raises:
            ValueError: If a numeric variable doesn't parse.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str, default, convert=str):
            value = env.get(ENV_PREFIX + name)
            if value is None or value == "":
                return default
            try:
                return convert(value)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{name} has an invalid value: {value!r}")

        return cls(
            host=get("HOST", defaults.host),
            port=get("PORT", defaults.port, int),
            max_workers=get("WORKERS", defaults.max_workers, int),
            read_timeout=get("READ_TIMEOUT", defaults.read_timeout, float),
            write_timeout=get("WRITE_TIMEOUT", defaults.write_timeout, float),
            max_header_bytes=get("MAX_HEADER_BYTES", defaults.max_header_bytes, int),
            log_level=get("LOG_LEVEL", defaults.log_level).upper(),
            log_format=get("LOG_FORMAT", defaults.log_format).lower(),
        )

    def validate(self) -> None:
        """
        Validate configuration values at startup.

        Raises:
            ValueError: Naming the first bad setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        for name in ("read_timeout", "write_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.max_header_bytes < 1024:
            raise ValueError("max_header_bytes must be >= 1024")

        if self.max_request_size < self.max_header_bytes:
            raise ValueError("max_request_size must be >= max_header_bytes")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper())
