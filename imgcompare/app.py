#!/usr/bin/env python3
"""
imgcompare - HTTP Server
========================
A JSON API for scanning paths and browsing cached duplicate sets.

Run with: python -m imgcompare serve
Or: imgcompare-server

Options:
    -q, --quiet       Quiet mode - suppress all output except errors
    -v, --verbose     Verbose mode - show all Flask request logs
    --host            Interface to bind (default: 127.0.0.1)
    -p, --port        Port to run on (default: 8080)
    -t, --threshold   Override the configured similarity threshold
    -g, --grid-size   Override the configured grid size
    --database        Override the configured cache database path
"""

import argparse
import logging
from typing import Optional

from flask import Flask

from .api import api
from .config import DEFAULT_HOST, DEFAULT_PORT
from .user_config import get_user_config


# Logging levels
LOG_QUIET = 0    # No output except errors
LOG_MINIMAL = 1  # Startup info only (default)
LOG_VERBOSE = 2  # All Flask request logs


def create_app(
    database_path: Optional[str] = None,
    threshold: Optional[int] = None,
    grid_size: Optional[int] = None,
    log_level: int = LOG_MINIMAL,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        database_path: Cache database; defaults to the user configuration
        threshold: Default threshold for requests that don't pass one
        grid_size: Default grid size for requests that don't pass one
        log_level: Logging verbosity level

    Returns:
        Configured Flask app instance
    """
    user_config = get_user_config()

    app = Flask(__name__)
    app.config['IMGCOMPARE'] = {
        'database_path': database_path or user_config.database_path,
        'threshold': threshold if threshold is not None else user_config.threshold,
        'grid_size': grid_size if grid_size is not None else user_config.grid_size,
        'workers': user_config.workers,
        'ignore_paths': user_config.ignore_paths,
    }

    # Configure logging based on level
    if log_level < LOG_VERBOSE:
        # Suppress Flask's default request logging
        log = logging.getLogger('werkzeug')
        log.setLevel(logging.ERROR if log_level == LOG_QUIET else logging.WARNING)

    # Register routes
    app.register_blueprint(api)

    return app


def suppress_flask_banner():
    """Suppress Flask's development server banner and startup messages."""
    try:
        import flask.cli
        flask.cli.show_server_banner = lambda *args, **kwargs: None
    except (ImportError, AttributeError):
        pass

    # Suppress werkzeug's startup log messages
    logging.getLogger('werkzeug').setLevel(logging.ERROR)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='imgcompare-server',
        description='imgcompare - HTTP server',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Quiet mode - suppress all output except errors'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose mode - show all Flask request logs'
    )
    parser.add_argument(
        '--host',
        default=DEFAULT_HOST,
        help=f'Interface to bind (default: {DEFAULT_HOST})'
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=DEFAULT_PORT,
        help=f'Port to run the server on (default: {DEFAULT_PORT})'
    )
    parser.add_argument(
        '-t', '--threshold',
        type=int,
        default=None,
        help='Similarity threshold used when a request does not pass one'
    )
    parser.add_argument(
        '-g', '--grid-size',
        type=int,
        default=None,
        help='Grid size used when a request does not pass one'
    )
    parser.add_argument(
        '--database',
        default=None,
        help='Path to the hash cache database'
    )
    return parser


def main(argv=None):
    """Main entry point for the HTTP server."""
    args = create_parser().parse_args(argv)

    # Determine log level
    if args.quiet:
        log_level = LOG_QUIET
    elif args.verbose:
        log_level = LOG_VERBOSE
    else:
        log_level = LOG_MINIMAL

    logging.basicConfig(
        level=logging.DEBUG if log_level == LOG_VERBOSE else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    app = create_app(
        database_path=args.database,
        threshold=args.threshold,
        grid_size=args.grid_size,
        log_level=log_level,
    )

    url = f'http://{args.host}:{args.port}'

    # Print startup message (unless quiet)
    if log_level >= LOG_MINIMAL:
        settings = app.config['IMGCOMPARE']
        print()
        print("  imgcompare server")
        print(f"  Server running at: {url}")
        print(f"  Cache database:    {settings['database_path']}")
        print(f"  Threshold:         {settings['threshold']}")
        print()
        print("  Press Ctrl+C to stop")
        print()

    # Suppress Flask banner for non-verbose modes
    if log_level < LOG_VERBOSE:
        suppress_flask_banner()

    # Run Flask
    try:
        app.run(
            host=args.host,
            port=args.port,
            debug=False,
            threaded=True,
            use_reloader=False
        )
    except KeyboardInterrupt:
        if log_level >= LOG_MINIMAL:
            print("\n  Server stopped\n")


if __name__ == '__main__':
    main()
