"""Scoreboard CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from scoreboard import __version__
from scoreboard.config import Settings, get_settings
from scoreboard.dashboard import DashboardController
from scoreboard.exceptions import ConfigError
from scoreboard.models import Leaderboard
from scoreboard.notifications import build_sink
from scoreboard.services.sheets import SheetsClient
from scoreboard.surfaces import LogSurface, MemorySurface

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

SHEET = "https://docs.google.com/spreadsheets/d/148f8oGqJL5u3ujLdwRzm05x7TKpPoqQikyltXa1zTCw"

CONFIG_TEMPLATE = f"""# Scoreboard Configuration
# Secrets (Telegram bot token, Logfire token) belong in .env, not here.

timers:
  refresh_interval_ms: 30000
  rotation_interval_ms: 60000
  scroll_speed: 1          # pixels per frame
  frame_rate: 60
  scroll_spacer_px: 20

display:
  title_prefix: Malappuram
  top_n: 3
  unknown_name: Unknown
  row_height_px: 64
  viewport_height_px: 720

datasets:
  advisor:
    url: "{SHEET}/export?format=csv&gid=244746706"
    format: csv
    name_fields: ["Advisor Name", "Name"]
    # Display columns default to the score columns of the active mode.
    # columns:
    #   Load: Today Load
    #   MGA: MGA
  technician:
    url: "{SHEET}/export?format=csv&gid=136202424"
    format: csv
    name_fields: ["Technician Name", "Name"]

rotation:
  enabled: true
  sequence:
    - [today, advisor]
    - [today, technician]
    - [total, advisor]
    - [total, technician]

alerts:
  log_enabled: true
  telegram_enabled: false

server:
  host: 127.0.0.1
  port: 8000
"""


def _init_logfire(settings: Settings, app=None) -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from scoreboard.observability import initialize_logfire

        initialize_logfire(settings, app)
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _print_board(board: Leaderboard) -> None:
    print(f"\n=== {board.title} ===")
    if board.status:
        print(f"Status: {board.status}{' (stale)' if board.stale else ''}")
    if not board.rows:
        print("  (no rows)")
        return
    for record in board.rows:
        metrics = "  ".join(f"{label}: {value}" for label, value in record.metrics.items())
        print(f"  #{record.rank:<3} {record.name:<28} {record.score:>6}   {metrics}")


def cmd_init(args: argparse.Namespace) -> int:
    """Create the data directory and a config template."""
    data_dir = Path(args.data_dir).resolve()

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        config_path = data_dir / "config.yaml"
        if config_path.exists():
            logger.info(f"Config file already exists: {config_path}")
        else:
            config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
            logger.info(f"Created config template: {config_path}")

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Point datasets.*.url in data/config.yaml at your published sheets")
        print("2. Run 'python -m scoreboard fetch' to check the feeds")
        print("3. Run 'python -m scoreboard serve' to start the dashboard API\n")
        return 0

    except OSError as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()
    except (ConfigError, ValidationError) as e:
        print(f"\n❌ Configuration Error:\n  {e}\n")
        return 1

    timers = settings.timers
    print("\n=== Scoreboard Configuration ===\n")
    print(f"Data Directory: {settings.data_dir}\n")

    print("Timers:")
    print(f"  Refresh Interval: {timers.refresh_interval_ms} ms")
    print(f"  Rotation Interval: {timers.rotation_interval_ms} ms")
    print(f"  Scroll Speed: {timers.scroll_speed} px/frame @ {timers.frame_rate:g} fps\n")

    print("Datasets:")
    for dataset, config in settings.datasets.items():
        print(f"  {dataset.value}: {config.url or '(no url)'} [{config.format}]")
    print()

    print("Rotation:")
    print(f"  Enabled: {settings.rotation.enabled}")
    for mode, dataset in settings.rotation.sequence:
        print(f"  • {dataset.value}/{mode.value}")
    print()

    print("Alerts:")
    print(f"  Log: {'✓' if settings.alerts.log_enabled else '✗'}")
    print(f"  Telegram: {'✓' if settings.alerts.telegram_enabled else '✗'}")
    print(f"  Telegram Token: {'✓ Set' if settings.telegram_bot_token else '✗ Not set'}")
    print(f"  Logfire Token: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")
    return 0


async def _fetch_once(settings: Settings) -> list[Leaderboard]:
    async with SheetsClient(settings.datasets, settings.sheets) as client:
        controller = DashboardController(
            settings=settings,
            source=client,
            surface=MemorySurface(),
            sink=build_sink(settings),
        )
        await controller.refresh()
        controller.animator.stop()
        return controller.boards(settings.rotation.sequence)


def cmd_fetch(args: argparse.Namespace) -> int:
    """Fetch every dataset once and print the boards."""
    try:
        settings = get_settings()
        for board in asyncio.run(_fetch_once(settings)):
            _print_board(board)
        print()
        return 0

    except ConfigError as e:
        print(f"\n❌ Configuration Error: {e}\n")
        return 1


async def _run_forever(settings: Settings) -> None:
    async with SheetsClient(settings.datasets, settings.sheets) as client:
        controller = DashboardController(
            settings=settings,
            source=client,
            surface=LogSurface(),
            sink=build_sink(settings),
        )
        async with controller:
            await asyncio.Event().wait()


def cmd_run(args: argparse.Namespace) -> int:
    """Run the dashboard loop, logging each rendered board."""
    try:
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        settings = get_settings()
        _init_logfire(settings)

        print("\n=== Scoreboard ===\n")
        print(f"Version: {__version__}")
        print(f"Refresh: every {settings.timers.refresh_interval_seconds:g}s")
        rotation = f"every {settings.timers.rotation_interval_seconds:g}s" if settings.rotation.enabled else "off"
        print(f"Rotation: {rotation}\n")

        asyncio.run(_run_forever(settings))
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except ConfigError as e:
        print(f"\n❌ Configuration Error: {e}\n")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Serve the dashboard API."""
    import uvicorn

    from scoreboard.api import create_app

    try:
        settings = get_settings()
        app = create_app(settings)
        _init_logfire(settings, app)

        uvicorn.run(
            app,
            host=args.host or settings.server.host,
            port=args.port or settings.server.port,
            log_level="debug" if args.debug else "info",
        )
        return 0

    except ConfigError as e:
        print(f"\n❌ Configuration Error: {e}\n")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scoreboard: live advisor and technician leaderboards",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Scoreboard {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser("init", help="Create data directory and config template")
    parser_init.add_argument("--data-dir", default="data", help="Directory to initialize")
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser("config", help="Display merged configuration")
    parser_config.set_defaults(func=cmd_config)

    parser_fetch = subparsers.add_parser("fetch", help="Fetch all datasets once and print the boards")
    parser_fetch.set_defaults(func=cmd_fetch)

    parser_run = subparsers.add_parser("run", help="Run the refresh/rotation loop with log output")
    parser_run.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_run.set_defaults(func=cmd_run)

    parser_serve = subparsers.add_parser("serve", help="Serve the dashboard HTTP API")
    parser_serve.add_argument("--host", default=None, help="Bind address")
    parser_serve.add_argument("--port", type=int, default=None, help="Bind port")
    parser_serve.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
