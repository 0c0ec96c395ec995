"""
at-utils CLI - Install and update the Adapt authoring tool.

Usage:
    at-utils install [dir] [--tag TAG]       Clone, install and bootstrap
    at-utils update [dir] [--tag TAG]        Move an install to another release
    at-utils releases [dir]                  List upgrade candidates
    at-utils deps [dir]                      Show aggregated plugin dependencies
    at-utils schemas [dir]                   Show module config schemas
    at-utils register [dir]                  Create the super user account
"""

import argparse
import logging
import sys
from pathlib import Path

from atutils import __version__
from atutils.config import load_settings
from atutils.errors import AtUtilsError


def configure_logging(verbose: bool = False) -> None:
    """Send library log records to stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    for name in ("atutils", "atcli"):
        logger = logging.getLogger(name)
        logger.handlers[:] = [handler]
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _add_dir(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "dir", nargs="?", type=Path, default=Path.cwd(), help="Application directory"
    )


def _add_channels(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--prerelease", action="store_true", help="Include prereleases")
    parser.add_argument("--draft", action="store_true", help="Include drafts")
    parser.add_argument("--branches", action="store_true", help="Include branch heads")


def _add_super_user(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--super-email", help="Super user email")
    parser.add_argument("--super-password", help="Super user password")
    parser.add_argument(
        "--pipe-passwd", action="store_true", help="Read the super user password from stdin"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="at-utils",
        description="Installer and updater for the Adapt authoring tool",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", type=Path, help="Settings file (TOML)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    commands = parser.add_subparsers(dest="command", metavar="command")

    install = commands.add_parser("install", help="Clone, install and bootstrap")
    _add_dir(install)
    install.add_argument("--tag", help="Release or branch to install")
    install.add_argument("--ignore-prereqs", action="store_true", help="Continue on failed checks")
    install.add_argument("--no-clean", action="store_true", help="Use npm install, not npm ci")
    install.add_argument(
        "--app-config", type=Path, help="JSON file to write as the application config"
    )
    install.add_argument(
        "--local-modules", nargs="*", default=[], help="Module repos to clone locally"
    )
    _add_super_user(install)

    update = commands.add_parser("update", help="Move an install to another release")
    _add_dir(update)
    update.add_argument("--tag", help="Release or branch to check out")
    _add_channels(update)

    releases = commands.add_parser("releases", help="List upgrade candidates")
    _add_dir(releases)
    releases.add_argument("--current", help="Installed version (read from package.json)")
    _add_channels(releases)

    deps = commands.add_parser("deps", help="Show aggregated plugin dependencies")
    _add_dir(deps)

    schemas = commands.add_parser("schemas", help="Show module config schemas")
    _add_dir(schemas)

    register = commands.add_parser("register", help="Create the super user account")
    _add_dir(register)
    _add_super_user(register)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the at-utils CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = load_settings(args.config)

        if args.command == "install":
            from atcli.commands.install import install_command

            return install_command(args, settings)

        elif args.command == "update":
            from atcli.commands.update import update_command

            return update_command(args, settings)

        elif args.command == "register":
            from atcli.commands.register import register_command

            return register_command(args, settings)

        else:
            from atcli.commands.query import query_command

            return query_command(args, settings)

    except AtUtilsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
