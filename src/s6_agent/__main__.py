"""
Entry point for running the sync agent.

Usage:
    # Run with ./config.json
    python -m s6_agent

    # Run with an explicit config and metrics port
    python -m s6_agent --config /etc/s6/config.yaml --metrics-port 9100

Environment overrides:
    S6_HTTP_ADDRESS, S6_BASE_DIR, S6_THUMBOR_URL, S6_THUMBOR_KEY
    JSON_LOGS=false (or --no-json-logs) for human-readable file logs
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from aiohttp import web
from prometheus_client import start_http_server

from core.errors.exceptions import ConfigurationError
from core.logging.setup import setup_logging
from s6_agent.config import load_config
from s6_agent.server import create_app

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="s6-agent",
        description="Materialize object-store uploads locally and warm the image cache",
    )

    parser.add_argument(
        "--config",
        type=str,
        default="./config.json",
        help="YAML or JSON file with all configuration (default: ./config.json)",
    )

    parser.add_argument(
        "--metrics-port",
        type=int,
        default=int(os.getenv("METRICS_PORT", "0")),
        help="Port for Prometheus metrics server, 0 disables (default: 0)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        default=os.getenv("LOG_DIR"),
        help="Directory for rotating log files (default: console only)",
    )

    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=os.getenv("JSON_LOGS", "true").lower() in ("true", "1", "yes"),
        help="JSON format for file logs (default: JSON_LOGS env, else true)",
    )

    parser.add_argument(
        "--drain-timeout",
        type=float,
        default=None,
        help="Seconds to wait for running tasks on shutdown (default: no limit)",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    global logger
    args = parse_args(argv)

    setup_logging(
        name="s6_agent",
        log_dir=Path(args.log_dir) if args.log_dir else None,
        json_format=args.json_logs,
        console_level=getattr(logging, args.log_level),
        worker_id=os.getenv("WORKER_ID"),
    )
    logger = logging.getLogger(__name__)

    try:
        config = load_config(Path(args.config))
    except ConfigurationError as e:
        logger.error(f"Failed loading configs: {e}")
        for error in e.context.get("errors", []):
            logger.error(f"  - {error}")
        sys.exit(1)

    if args.metrics_port:
        logger.info(f"Starting metrics server on port {args.metrics_port}")
        start_http_server(args.metrics_port)

    host, port = config.listen_address()
    app = create_app(config, drain_timeout=args.drain_timeout)

    try:
        web.run_app(app, host=host, port=port, print=None)
    except Exception as e:
        logger.error(f"Error running agent: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
