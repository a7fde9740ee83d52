"""Config CLI commands"""
import argparse

from ....configuration.config import get_config
from ....configuration.settings import settings
from ....adapters.secondary.persistence.engine import get_database_url


def show_config_command(args: argparse.Namespace) -> int:
    """Handle config show command"""
    config = get_config()
    print(f"Config file: {config.config_path}")
    print(f"  Default user: {config.default_user_id if config.default_user_id is not None else '(none)'}")
    print(f"  Database: {get_database_url(settings.db_path)}")
    print(f"  Log level: {settings.log_level}")
    timeout = settings.lock_timeout_seconds
    print(f"  Lock timeout: {'none' if timeout is None else f'{timeout}s'}")
    return 0


def set_user_command(args: argparse.Namespace) -> int:
    """Handle config set-user command"""
    if args.user_id <= 0:
        print("❌ Error: user id must be a positive integer")
        return 1
    get_config().default_user_id = args.user_id
    print(f"✅ Default user set to {args.user_id}")
    return 0


def clear_user_command(args: argparse.Namespace) -> int:
    """Handle config clear-user command"""
    get_config().default_user_id = None
    print("✅ Cleared default user")
    return 0


def setup_config_commands(subparsers):
    """Setup config CLI commands"""
    config_parser = subparsers.add_parser("config", help="CLI configuration")
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    show_parser = config_subparsers.add_parser("show", help="Show configuration")
    show_parser.set_defaults(func=show_config_command)

    set_parser = config_subparsers.add_parser("set-user", help="Set the default acting user")
    set_parser.add_argument("user_id", type=int)
    set_parser.set_defaults(func=set_user_command)

    clear_parser = config_subparsers.add_parser("clear-user", help="Clear the default acting user")
    clear_parser.set_defaults(func=clear_user_command)
