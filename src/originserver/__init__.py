"""
=============================================================================
ORIGINSERVER - Static Files and Scripts over Raw Sockets
=============================================================================

A small HTTP origin server: GET serves files (or lists directories) under a
root folder, POST to scripts/<name> runs an executable from
<root>/scripts and returns what it printed.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  core/          TCP listener, one thread per accepted connection    │
    │  http/          request parsing, response serialization             │
    │  middleware/    access logging around the router                    │
    │  router.py      GET → static, POST scripts/ → scripts, else 405     │
    │  handlers/      path containment, static files, script execution    │
    └─────────────────────────────────────────────────────────────────────┘

Every response carries Connection: close. One request per connection.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    originserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI: python -m originserver PORT ROOT_FOLDER
    ├── server.py            # OriginServer: wires everything together
    ├── config.py            # ServerConfig (frozen) + validation
    ├── router.py            # Method/path dispatch
    ├── core/
    │   ├── socket_server.py # Listening socket + accept loop
    │   └── connection.py    # Read one request head, write one response
    ├── http/
    │   ├── request.py       # Request line + headers parser
    │   ├── response.py      # HTTPResponse, ResponseBuilder, helpers
    │   ├── status_codes.py  # The status codes we send
    │   └── mime_types.py    # Suffix → Content-Type
    ├── middleware/
    │   ├── base.py          # Middleware ABC + pipeline
    │   └── logging.py       # Access log lines (text or JSON)
    └── handlers/
        ├── paths.py         # Root/base containment, file kind
        ├── static.py        # Files and directory listings
        └── scripts.py       # Script environment + subprocess execution

=============================================================================
QUICK START
=============================================================================

    from originserver import OriginServer, ServerConfig

    config = ServerConfig.create(8080, "./site")
    OriginServer(config).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import OriginServer
from .config import ServerConfig, ConfigError

__all__ = ["OriginServer", "ServerConfig", "ConfigError", "__version__"]
