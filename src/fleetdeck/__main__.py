"""Fleetdeck entry point.

Changes:
  - 2026-02-10: Added ``sync`` to push workspace state into the hosted tables.
  - 2026-02-09: Dashboard server is the default command.
"""

import argparse
import asyncio
import logging

import httpx

from fleetdeck import __version__
from fleetdeck.config import get_settings
from fleetdeck.errors import FleetdeckError
from fleetdeck.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run_sync() -> int:
    """Scan agent workspaces and upsert them into the hosted tables."""
    from fleetdeck.sources.sync import WorkspaceSync
    from fleetdeck.sources.workspace import WorkspaceScanner
    from fleetdeck.tables import TableClient

    settings = get_settings()
    sync = WorkspaceSync(
        WorkspaceScanner(settings.agents_dir, settings.activity_days),
        TableClient.from_settings(settings),
    )
    try:
        report = asyncio.run(sync.run())
    except (FleetdeckError, httpx.HTTPError) as e:
        logger.error(f"Sync failed: {e}")
        return 1

    print(
        f"Synced {report.agents} agents, {report.tasks} tasks, "
        f"{report.activities} activities"
    )
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="fleetdeck",
        description="Mission Control dashboard for an agent fleet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fleetdeck                      Start the dashboard server (default)
  fleetdeck serve --port 9000    Start on another port
  fleetdeck sync                 Push workspace state into the hosted tables
""",
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override FLEETDECK_LOG_LEVEL")

    sub = parser.add_subparsers(dest="command")
    serve = sub.add_parser("serve", help="Run the dashboard server")
    serve.add_argument("--host", default=None, help="Bind address (default: FLEETDECK_WEB_HOST)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Port (default: 8890)")
    sub.add_parser("sync", help="Sync agent workspaces to the hosted tables")

    args = parser.parse_args()
    setup_logging(level=args.log_level or get_settings().log_level)

    if args.command == "sync":
        raise SystemExit(run_sync())

    from fleetdeck.dashboard import run_dashboard

    run_dashboard(host=getattr(args, "host", None), port=getattr(args, "port", None))


if __name__ == "__main__":
    main()
