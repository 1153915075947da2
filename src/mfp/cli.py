"""
MFP CLI - Entry point

Each invocation runs one command against the persisted state and exits.
'mfp play' stays in the foreground for as long as the player runs.
"""

import argparse
import sys

from loguru import logger

from mfp import __version__
from mfp.context import AppContext
from mfp.core import config
from mfp.core.console import get_console
from mfp.core.output import setup_loguru
from mfp.helpers import install_signal_handlers
from mfp.router import handle_command


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mfp",
        description="MFP - Terminal music player for YouTube playlists",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show help and exit")
    parser.add_argument("--version", action="version", version=f"mfp {__version__}")
    parser.add_argument(
        "--log-level",
        help="Log file level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("command", nargs="?", default="help", help="Command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Command arguments")
    return parser


def main(argv=None) -> None:
    """Main entry point for the mfp command."""
    args = build_parser().parse_args(argv)

    cfg = config.load_config()
    if args.log_level:
        cfg.logging.level = args.log_level.upper()

    try:
        config.ensure_directories(cfg)
    except OSError as e:
        print(f"Error: cannot create data directory {cfg.data_dir}: {e}", file=sys.stderr)
        sys.exit(1)

    setup_loguru(cfg.log_file, level=cfg.logging.level)
    install_signal_handlers()

    command = "help" if args.help else args.command
    ctx = AppContext.create(cfg, console=get_console())
    try:
        handle_command(ctx, command, args.args)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    sys.exit(0)


if __name__ == "__main__":
    main()
