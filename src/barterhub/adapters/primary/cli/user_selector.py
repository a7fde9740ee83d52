"""
Acting-user selection helper for CLI commands.

Priority:
1. Explicit --as flag
2. Default from ~/.barterhub/config.json
3. Error
"""
import argparse

from ....configuration.config import get_config


class UserSelectionError(Exception):
    """Error when the acting user cannot be determined"""
    pass


def get_user_id_from_args(args: argparse.Namespace) -> int:
    """
    Determine the acting user id from command line arguments.

    Args:
        args: Command line arguments namespace

    Returns:
        int: User ID to act as

    Raises:
        UserSelectionError: If no user was given and none is configured
    """
    if getattr(args, 'user_id', None) is not None:
        return args.user_id

    default_user_id = get_config().default_user_id
    if default_user_id is not None:
        return int(default_user_id)

    raise UserSelectionError(
        "No user specified. Pass --as USER_ID or set a default with "
        "'barterhub config set-user USER_ID'"
    )


def add_user_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--as", dest="user_id", type=int,
        help="Act as this user (defaults to the configured user)"
    )
