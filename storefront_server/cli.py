"""Command-line launcher for the storefront MCP and HTTP servers."""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .config import StorefrontConfig

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront-server",
        description="Serve a Shopify product catalog and a local cart over MCP or HTTP",
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="stdio speaks MCP to a client on stdin/stdout; http serves the JSON API",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind in http mode")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind in http mode")
    parser.add_argument(
        "--storage-file",
        help="JSON file holding the cart and recent searches (overrides STOREFRONT_STORAGE_FILE)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="INFO",
        type=str.upper,
        help="Root logger level",
    )
    return parser


def load_settings(args: argparse.Namespace) -> StorefrontConfig:
    """Environment configuration with command-line overrides applied."""
    settings = StorefrontConfig.from_env()
    if args.storage_file:
        settings = settings.model_copy(update={"storage_file": args.storage_file})
    return settings


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)
    settings = load_settings(args)

    try:
        if args.mode == "stdio":
            from .server import main as server_main

            asyncio.run(server_main(settings))
        else:
            from .http_server import run_http_server

            print(f"Storefront API listening on http://{args.host}:{args.port}", file=sys.stderr)
            print(f"Product routes under http://{args.host}:{args.port}/api/shopify/products", file=sys.stderr)
            run_http_server(host=args.host, port=args.port, settings=settings)
    except KeyboardInterrupt:
        print("\nStorefront server stopped", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
