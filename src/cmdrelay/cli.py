"""Command-line interface for cmdrelay.

Provides the main entry point for running the rendezvous server,
submitting a single command, or printing the execution log.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="cmdrelay",
        description="Command-dispatch rendezvous server and client",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/cmdrelay.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the rendezvous HTTP server")

    send_parser = subparsers.add_parser("send", help="Submit a command and wait for its result")
    send_parser.add_argument("text", type=str, help="Command text for the agent")

    subparsers.add_parser("logs", help="Print the execution log")

    return parser.parse_args(argv)


async def _send(settings, text: str) -> int:
    """Submit one command and print the result."""
    from cmdrelay.client.http_client import CommandClient
    from cmdrelay.domain.errors import ClientError, CommandTimeoutError

    try:
        async with CommandClient(
            base_url=settings.client.base_url, timeout=settings.client.timeout
        ) as client:
            outcome = await client.send(text)
    except CommandTimeoutError as e:
        print(f"Timed out: {e}", file=sys.stderr)
        return 2
    except ClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(outcome.result)
    return 0


async def _logs(settings) -> int:
    """Print the execution log as a table."""
    from cmdrelay.client.http_client import CommandClient
    from cmdrelay.domain.errors import ClientError

    try:
        async with CommandClient(
            base_url=settings.client.base_url, timeout=settings.client.timeout
        ) as client:
            entries = await client.logs()
    except ClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for entry in entries:
        ts = entry.submitted_at.strftime("%Y-%m-%d %H:%M:%S")
        result = (entry.result or "").replace("\n", " ")[:60]
        print(f"{entry.id}  {ts}  {entry.status.value:<8}  {entry.command[:30]:<30}  {result}")
    print(f"\n{len(entries)} command(s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the cmdrelay CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 0

    from cmdrelay.config.settings import load_settings
    from cmdrelay.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting rendezvous server on %s:%d", settings.server.host, settings.server.port)
        from cmdrelay.server.app import main as serve
        serve(settings)
        return 0

    if args.command == "send":
        return asyncio.run(_send(settings, args.text))

    if args.command == "logs":
        return asyncio.run(_logs(settings))

    return 0


if __name__ == "__main__":
    sys.exit(main())
