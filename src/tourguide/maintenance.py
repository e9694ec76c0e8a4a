"""Maintenance commands run outside the web server.

Usage:
    tourguide-maintenance fill-signatures   # give every user without a signature one
    tourguide-maintenance sweep-sessions    # delete expired user and guide sessions

Configuration comes from the same TOURGUIDE_* environment variables as the server.
"""

import argparse
import asyncio
import sys

import structlog

from tourguide.app import App
from tourguide.config import Config
from tourguide.errors import StoreUnavailableError
from tourguide.logging import setup_logging

logger = structlog.get_logger(__name__)


async def fill_signatures(app: App) -> int:
    result = await app.backfill_signatures()
    print(f"Signatures assigned: {result.assigned}, already set: {result.skipped}, failed: {len(result.failed)}")
    for user_id in result.failed:
        print(f"  failed: {user_id}", file=sys.stderr)
    return 1 if result.failed else 0


async def sweep_sessions(app: App) -> int:
    removed = await app.sweep_expired_sessions()
    print(f"Expired sessions removed: {removed['sessions']} user, {removed['guide_sessions']} guide")
    return 0


COMMANDS = {
    "fill-signatures": fill_signatures,
    "sweep-sessions": sweep_sessions,
}


async def run(command: str, config: Config) -> int:
    app = App(config)
    async with app.lifespan():
        return await COMMANDS[command](app)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="tourguide-maintenance", description="TourGuide maintenance commands")
    parser.add_argument("command", choices=sorted(COMMANDS), help="Command to run")
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")
    args = parser.parse_args(argv)

    config = Config()
    setup_logging(args.debug or config.debug)
    try:
        return asyncio.run(run(args.command, config))
    except StoreUnavailableError:
        logger.exception("maintenance_failed", command=args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
