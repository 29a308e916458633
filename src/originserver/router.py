"""
=============================================================================
REQUEST ROUTER
=============================================================================

Decides what happens to a parsed request. The routing policy is fixed:

    ┌────────┬──────────────────────┬──────────────────────────────────┐
    │ Method │ Path                 │ Outcome                          │
    ├────────┼──────────────────────┼──────────────────────────────────┤
    │ GET    │ anything             │ StaticFileHandler                │
    │ POST   │ scripts/...          │ ScriptHandler                    │
    │ POST   │ anything else        │ 404, even if a file is there     │
    │ other  │ anything             │ 405, Allow: GET, POST            │
    └────────┴──────────────────────┴──────────────────────────────────┘

Every branch returns a complete HTTPResponse; the server writes it out
unchanged.

=============================================================================
"""

import logging
from typing import Callable, Dict, Optional

from .config import ServerConfig
from .handlers.scripts import ScriptHandler, ScriptExecutor, SCRIPTS_DIR
from .handlers.static import StaticFileHandler
from .http.request import HTTPRequest
from .http.response import HTTPResponse, not_found, method_not_allowed


logger = logging.getLogger(__name__)

# Handler: A function that takes a request and returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]


class Router:
    """
    Routes requests by method to the static or script handler.

    Usage:
        router = Router(config)
        response = router.handle(request)

        # In tests, swap the process spawner:
        router = Router(config, executor=FakeExecutor())
    """

    def __init__(self, config: ServerConfig, executor: Optional[ScriptExecutor] = None):
        self.config = config
        self.static = StaticFileHandler(config.root_folder)
        self.scripts = ScriptHandler(config.root_folder, executor)

        self._handlers: Dict[str, Handler] = {
            "GET": self.static.handle,
            "POST": self._handle_post,
        }

    @property
    def allowed_methods(self) -> list:
        return sorted(self._handlers)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to the appropriate handler.

        Args:
            request: The parsed HTTP request.

        Returns:
            HTTP response from the handler, or 405.
        """
        handler = self._handlers.get(request.method)
        if handler is None:
            return method_not_allowed(self.allowed_methods)
        return handler(request)

    def _handle_post(self, request: HTTPRequest) -> HTTPResponse:
        if not request.path.startswith(SCRIPTS_DIR + "/"):
            logger.info(f"Script not found: {request.path} is outside {SCRIPTS_DIR}/")
            return not_found()
        return self.scripts.handle(request)
