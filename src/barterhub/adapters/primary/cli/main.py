#!/usr/bin/env python3
import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

# Load .env from the working directory before settings are read
load_dotenv()

from ....configuration.settings import settings
from ....configuration.container import get_engine
from ...secondary.persistence.models import metadata
from .trade_cli import setup_trade_commands
from .catalog_cli import setup_catalog_commands
from .config_cli import setup_config_commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BarterHub trade lifecycle")
    parser.add_argument("--log-level", default=settings.log_level,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    subparsers = parser.add_subparsers(dest="command")

    setup_trade_commands(subparsers)
    setup_catalog_commands(subparsers)
    setup_config_commands(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Use func attribute set by set_defaults
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    if args.command != "config":
        metadata.create_all(get_engine())
    return args.func(args)


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
