"""
Command-line interface for the Redmine time tracking client.

This module provides the CLI using argparse and dispatches to the
tracking workflows.
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from rich.prompt import Prompt

from .config import Config, ConfigError, load_config, store_config
from .logging_utils import setup_logging, get_logger, log_error, log_success
from .models import MalformedDate, parse_spent_on
from .redmine_client import RedmineClient, RedmineError, login
from . import tracking


COMMANDS = ('track', 'search', 'login', 'list', 'gui')
SHARED_FLAGS = ('-v', '--verbose')

LOGIN_HINT = (
    "Hi, you don't seem to have logged in yet. Please use \n\n"
    "    `track login` \n"
)


def _date_argument(value: str) -> date:
    try:
        return parse_spent_on(value)
    except MalformedDate as e:
        raise argparse.ArgumentTypeError(str(e))


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured ArgumentParser
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable verbose logging (debug level)'
    )
    common.add_argument(
        '--config',
        type=str,
        metavar='PATH',
        help='Config file (default: ~/.track)'
    )

    parser = argparse.ArgumentParser(
        prog='track',
        description='Track your time with Redmine.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Log in once, stores ~/.track
  track login -u jdoe -b https://redmine.example.com

  # Book time for today (asks for project, issue, activity, ...)
  track

  # Book time on issue 1234 for yesterday
  track -y 1234

  # Show today's entries / last week's grid with issues
  track list
  track list --week --previous --issues
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    track_parser = subparsers.add_parser(
        'track',
        parents=[common],
        help='Create a time entry (default command)'
    )
    track_parser.add_argument(
        'id',
        nargs='?',
        type=int,
        help='Create entry for the specified issue id'
    )
    track_parser.add_argument(
        '--yesterday',
        '-y',
        action='store_true',
        help='Create entry for yesterday'
    )

    search_parser = subparsers.add_parser(
        'search',
        parents=[common],
        help='Search for tickets'
    )
    search_parser.add_argument('query', help='Text to search in issue titles')
    search_parser.add_argument(
        '--direct_track',
        '--direct-track',
        '-t',
        dest='direct_track',
        action='store_true',
        help='If only one issue is found, start tracking on it'
    )

    login_parser = subparsers.add_parser(
        'login',
        parents=[common],
        help='Login to your account'
    )
    login_parser.add_argument(
        '--user',
        '-u',
        required=True,
        help='The name of your Redmine user'
    )
    login_parser.add_argument(
        '--baseUrl',
        '--base-url',
        '-b',
        dest='base_url',
        required=True,
        help='The base URL of your Redmine installation'
    )

    list_parser = subparsers.add_parser(
        'list',
        parents=[common],
        help='List your time entries for today, yesterday or this week'
    )
    list_parser.add_argument(
        '--issues',
        '-i',
        dest='with_issues',
        action='store_true',
        help='Show weekly overview, including all issues'
    )
    list_parser.add_argument(
        '--previous',
        '-p',
        action='store_true',
        help='Show time entries from the previous week or day'
    )
    list_parser.add_argument(
        '--week',
        '-w',
        action='store_true',
        help='Show a summary of the weekly activity'
    )
    list_parser.add_argument(
        '--date',
        type=_date_argument,
        metavar='YYYY-MM-DD',
        help='Use this date instead of today'
    )

    subparsers.add_parser(
        'gui',
        parents=[common],
        help='Open the weekly overview window'
    )

    return parser


def normalize_argv(argv: List[str]) -> List[str]:
    """
    Put the command word first, inserting the default ``track`` command.

    ``track -y 1234`` becomes ``track track -y 1234``. Shared options given
    before the command move behind it, so ``track -v list -w`` becomes
    ``track list -v -w``. Help and explicit commands are left alone.
    """
    leading: List[str] = []
    rest = list(argv)
    while rest:
        if rest[0] in SHARED_FLAGS or rest[0].startswith('--config='):
            leading.append(rest.pop(0))
        elif rest[0] == '--config' and len(rest) > 1:
            leading.extend(rest[:2])
            del rest[:2]
        else:
            break

    if rest and rest[0] in ('-h', '--help') and not leading:
        return rest
    if rest and rest[0] in COMMANDS:
        return [rest[0]] + leading + rest[1:]
    return ['track'] + leading + rest


def cmd_login(args: argparse.Namespace) -> int:
    """
    Execute the login command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    password = Prompt.ask("Password", password=True)
    user = login(args.base_url, args.user, password)
    config = Config.from_user(args.base_url, user)
    path = store_config(config, Path(args.config) if args.config else None)
    log_success(f"You have successfully logged in! A config file has been created at {path}")
    return 0


def run_command(args: argparse.Namespace, config: Config) -> int:
    """Dispatch a command that needs a stored configuration."""
    client = RedmineClient(config)

    if args.command == 'track':
        tracking.track(client, yesterday=args.yesterday, issue_id=args.id)
    elif args.command == 'list':
        tracking.list_entries(
            client,
            with_issues=args.with_issues,
            previous=args.previous,
            week=args.week,
            today=args.date,
        )
    elif args.command == 'search':
        tracking.search(client, args.query, direct_track=args.direct_track)
    elif args.command == 'gui':
        from .gui import main as gui_main
        return gui_main(config)
    else:
        log_error(f"Unknown command: {args.command}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(normalize_argv(list(sys.argv[1:] if argv is None else argv)))

    setup_logging(verbose=getattr(args, 'verbose', False))
    logger = get_logger()

    try:
        if args.command == 'login':
            return cmd_login(args)

        config = load_config(Path(args.config) if args.config else None)
        if config is None:
            log_error(LOGIN_HINT, logger)
            return 1
        config.validate()

        return run_command(args, config)

    except KeyboardInterrupt:
        logger.info("")
        logger.warning("Operation cancelled by user")
        return 130  # Standard exit code for SIGINT

    except (ConfigError, RedmineError, ValueError) as e:
        log_error(str(e), logger)
        if args.verbose:
            import traceback
            logger.debug(traceback.format_exc())
        return 1

    except Exception as e:
        log_error(f"Operation failed: {e}", logger)
        if args.verbose:
            import traceback
            logger.debug(traceback.format_exc())
        return 1


if __name__ == '__main__':
    sys.exit(main())
