"""
=============================================================================
ORIGINSERVER CLI ENTRY POINT
=============================================================================

    python -m originserver PORT ROOT_FOLDER

    # Serve ./site on port 8080
    python -m originserver 8080 ./site

    # Same, installed as a console script
    originserver 8080 ./site

Both arguments are required. Everything else is fixed in ServerConfig.

Exit codes:
    0   clean shutdown (Ctrl+C / SIGTERM)
    1   bad root folder, or the port couldn't be bound
    2   bad arguments (argparse)

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig, ConfigError
from .server import OriginServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="originserver",
        description="Serve static files over HTTP and run scripts on POST",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m originserver 8080 ./site        # Serve ./site on port 8080
  curl -X POST localhost:8080/scripts/hello # Run ./site/scripts/hello
        """
    )

    parser.add_argument(
        "port",
        type=int,
        help="TCP port to listen on (all interfaces)"
    )

    parser.add_argument(
        "root_folder",
        help="Folder to serve; executable scripts live in ROOT_FOLDER/scripts"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"originserver {__version__}"
    )

    return parser


def main(argv=None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.create(args.port, args.root_folder, log_level=args.log_level)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    server = OriginServer(config)

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
