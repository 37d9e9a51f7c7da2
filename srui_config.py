"""Server configuration and the configuration error types.

ServerConfig is a frozen dataclass; ``App.Debug`` / ``App.AutoReload`` swap
in modified copies instead of mutating it::

    config = ServerConfig(port=3000, debug=True)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Tuple


class SruiError(Exception):
    """Base for all srui-specific errors."""


class ConfigurationError(SruiError, ValueError):
    """Invalid registration or wiring, raised at startup (or in tests).

    Not recoverable: duplicate page paths, empty paths, ``None`` handlers,
    handlers used by a request builder without being registered.
    """


@dataclass(frozen=True)
class ServerConfig:
    # Server
    host: str = "0.0.0.0"
    port: int = 1422
    debug: bool = False

    # Request limits
    max_body_size: int = 1_000_000
    body_timeout: float = 10.0
    header_timeout: float = 15.0
    keep_alive_timeout: float = 5.0

    # Streams
    heartbeat_interval: float = 15.0
    stream_queue_size: int = 256
    live_path: str = "/__live"
    patch_path: str = "/__sse"

    # Sessions
    session_cookie: str = "srui__sid"

    # Reload (development)
    autoreload: bool = False
    reload_dirs: Tuple[str, ...] = ()
    reload_interval: float = 1.0

    def __post_init__(self) -> None:
        if self.max_body_size < 0:
            raise ConfigurationError("max_body_size must be >= 0")
        if self.heartbeat_interval <= 0:
            raise ConfigurationError("heartbeat_interval must be > 0")
        if self.live_path == self.patch_path:
            raise ConfigurationError("live_path and patch_path must differ")

    def replace(self, **changes: Any) -> "ServerConfig":
        return dataclasses.replace(self, **changes)
