"""
=============================================================================
ORIGIN SERVER
=============================================================================

Ties the pieces together: listener, one thread per connection, parser,
access logging, router.

=============================================================================
REQUEST FLOW
=============================================================================

    SocketServer.accept()
         │
         └─► _handle_connection(conn)          (listener thread)
                  │  start Thread(conn-<id>), return immediately
                  ▼
             _process_connection(conn)         (connection thread)
                  │
                  ├─ conn.read_request()        head bytes
                  ├─ RequestParser.parse()      ─ HTTPParseError ─► 400
                  ├─ LoggingMiddleware
                  │     └─ Router.handle()      ─ exception ──────► 500
                  ├─ conn.send_response()
                  └─ conn.close()

=============================================================================
CONCURRENCY MODEL
=============================================================================

Thread per connection, no pool, no queue. Threads share nothing but the
frozen ServerConfig and stateless handlers, so there are no locks: two
scripts run side by side, limited only by the OS scheduler.

The flip side is that nothing bounds the thread count, and a hanging
script or a client that never finishes its headers holds its thread
forever. Accepted trade-off for a small single-operator server.

=============================================================================
"""

import logging
import threading
import time
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .handlers.scripts import ScriptExecutor
from .http import HTTPRequest, HTTPResponse, RequestParser, HTTPParseError, bad_request, internal_error
from .middleware import MiddlewarePipeline, LoggingMiddleware, RequestLog
from .router import Router


logger = logging.getLogger(__name__)


class OriginServer:
    """
    Static file + script HTTP server.

    Usage:
        config = ServerConfig.create(8080, "./site")
        server = OriginServer(config)
        server.run()   # blocks until Ctrl+C / SIGTERM

    Components:
        SocketServer       accept loop
        RequestParser      bytes → HTTPRequest
        MiddlewarePipeline access logging around the router
        Router             GET → static, POST scripts/ → script, else 405
    """

    def __init__(self, config: ServerConfig, executor: Optional[ScriptExecutor] = None):
        """
        Args:
            config: Validated server configuration.
            executor: Script executor; defaults to real subprocesses.
        """
        self.config = config
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._router = Router(self.config, executor)

        self._access_log = LoggingMiddleware()
        self._middleware = MiddlewarePipeline().add(self._access_log)

        # middleware.wrap(router.handle), built in run()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            configure_logging: Install the basicConfig handler. Embedding
                               code with its own logging setup passes False.

        Raises:
            OSError: If the port can't be bound.
        """
        if configure_logging:
            self._setup_logging()

        self._handler = self._middleware.wrap(self._router.handle)

        logger.info(f"Root folder: {self.config.root_folder}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. In-flight connections finish on their own."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("originserver").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Start a dedicated thread for a new connection.

        Called by SocketServer from the accept loop, so it must not block.
        Daemon threads: a stuck script doesn't keep the process alive
        after shutdown.
        """
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        thread.start()

    def _process_connection(self, conn: Connection):
        """
        Handle exactly one request on a connection (runs in its own thread).

        Nothing raised here may escape: a broken request ends its own
        connection and nothing else.
        """
        with conn:  # Context manager ensures connection is closed
            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    logger.debug(f"[{conn.id}] Client closed without sending a request")
                    return

                response = self._respond(raw_request, conn)
                conn.send_response(response.to_bytes(self.config.server_name))
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _respond(self, raw_request: bytes, conn: Connection) -> HTTPResponse:
        """Parse and dispatch one request, mapping every failure to a status."""
        start_time = time.time()

        try:
            request = self._parser.parse(raw_request, conn.address)
        except HTTPParseError as e:
            logger.info(f"[{conn.id}] Failed to parse request: {e}")
            response = bad_request()
            self._access_log.emit(RequestLog.create(
                "-", "-", conn.address, response, (time.time() - start_time) * 1000
            ))
            return response

        conn.state = ConnectionState.PROCESSING

        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            response = internal_error()
            self._access_log.emit(RequestLog.create(
                request.method, request.path, conn.address, response,
                (time.time() - start_time) * 1000
            ))
            return response
