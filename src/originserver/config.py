"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

The server takes exactly two settings from the operator: a port and a root
folder. Everything else is a fixed constant with a field here so it lives
in one place.

=============================================================================
IMMUTABLE, BUILT ONCE
=============================================================================

    __main__.py                     server.py / router.py
    ───────────                     ─────────────────────
    ServerConfig.create(8080, "./site")
         │  validate port
         │  resolve + check root
         ▼
    ServerConfig(frozen) ─────────► passed to OriginServer(config)
                                    └─► Router(config)   (read-only)

The dataclass is frozen, so the one instance can be shared by every
connection thread without a lock. Nothing reads it from a global.

=============================================================================
FAIL-FAST
=============================================================================

A root folder that doesn't exist is a startup error, not a stream of 404s
later. create() raises ConfigError; the CLI prints it and exits non-zero.

=============================================================================
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union


class ConfigError(ValueError):
    """Raised when the startup parameters are unusable."""


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the origin server.

    Attributes:
        port: TCP port to listen on. 0 lets the OS pick (tests).
        root_folder: Absolute, resolved path of the folder to serve.
        host: Interface to bind. All interfaces, like any origin server.
        backlog: Listen queue size.
        buffer_size: Bytes per recv() call.
        max_request_size: Most bytes read for one request head.
        log_level: Logging level name.
        server_name: Value of the Server response header.
    """

    port: int
    root_folder: Path

    host: str = "0.0.0.0"
    backlog: int = 128
    buffer_size: int = 8192
    max_request_size: int = 8192
    log_level: str = "INFO"
    server_name: str = "originserver/1.0"

    @classmethod
    def create(cls, port: int, root_folder: Union[str, Path], **kwargs) -> "ServerConfig":
        """
        Build a validated configuration from the two startup parameters.

        Args:
            port: Listening port.
            root_folder: Folder to serve; resolved to an absolute path.
            **kwargs: Overrides for the fixed fields (tests use host=...).

        Raises:
            ConfigError: If the port is out of range or the root folder
                         doesn't exist or isn't a directory.
        """
        root = Path(root_folder).expanduser()
        if not root.exists():
            raise ConfigError(f"The specified root folder does not exist: {root_folder}")
        if not root.is_dir():
            raise ConfigError(f"The specified root folder is not a directory: {root_folder}")

        config = cls(port=port, root_folder=root.resolve(), **kwargs)
        config.validate()
        return config

    @property
    def scripts_folder(self) -> Path:
        return self.root_folder / "scripts"

    def validate(self) -> None:
        """Validate configuration values (fail-fast)."""
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.max_request_size < self.buffer_size:
            raise ConfigError("max_request_size must be >= buffer_size")
