"""Command line entry point.

Usage
-----
Set environment variables and run::

    export NOTION_API_KEY="secret_..."
    export NOTION_DATABASE_ID="..."
    export NOTION_POLL_MQTT_HOST="broker.local"
    pynotionpoll run

Commands::

    run      Poll once, print the result as JSON, exit 1 on failure
    serve    Start the HTTP trigger (POST / polls once)

Options::

    --state-uri URI   Override NOTION_POLL_STATE_URI
    --topic TOPIC     Override NOTION_POLL_TOPIC
    --dry-run         Keep events in memory instead of publishing them
    --verbose, -v     Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from pynotionpoll.config import PollerConfig
from pynotionpoll.exceptions import PollerError
from pynotionpoll.models.result import InvocationResult
from pynotionpoll.runtime import PollerRuntime
from pynotionpoll.server import serve


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pynotionpoll",
        description="Diff a Notion database against stored state and publish change events.",
    )
    parser.add_argument("command", choices=("run", "serve"), help="Poll once or serve the HTTP trigger")
    parser.add_argument("--state-uri", help="State location (s3://bucket/key, file://path, memory://key)")
    parser.add_argument("--topic", help="Topic events are published to")
    parser.add_argument("--dry-run", action="store_true", help="Do not publish; keep events in memory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run_once(config: PollerConfig, *, dry_run: bool) -> InvocationResult:
    async with PollerRuntime(config, dry_run=dry_run) as runtime:
        return await runtime.invoke()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.state_uri:
        overrides["state_uri"] = args.state_uri
    if args.topic:
        overrides["topic"] = args.topic

    try:
        config = PollerConfig.from_env(**overrides)
    except PollerError as exc:
        print(f"pynotionpoll: {exc}", file=sys.stderr)
        return 2

    if args.command == "serve":
        serve(config, dry_run=args.dry_run)
        return 0

    try:
        result = asyncio.run(_run_once(config, dry_run=args.dry_run))
    except PollerError as exc:
        result = InvocationResult.failure(exc)
    print(json.dumps(result.to_body()))
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
