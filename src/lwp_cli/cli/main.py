"""
CLI Main - Entry point for the `lwp` command.

Usage:
    lwp connect [--skip-addon] [--json]   Bootstrap and print the GraphQL endpoint
    lwp status [--json]                   Show install, process and addon state
    lwp addon install                     Install (or reinstall) the CLI addon
    lwp addon activate                    Enable the addon in Local
"""

import argparse
import json
import sys
from typing import Any

from ..bootstrap import BootstrapOptions, bootstrap, build_context
from ..config import CLIConfig
from ..errors import BootstrapError
from ..logging import configure_logging
from .output import print_actions, print_error, print_status_line

__all__ = ["main", "create_parser", "run_command"]


def main(args: list[str] | None = None) -> int:
    """Main entry point for the lwp CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    if args is None:
        args = sys.argv[1:]

    parser = create_parser()
    parsed = parser.parse_args(args)

    config = CLIConfig()
    configure_logging(config, verbose=parsed.verbose)

    if not getattr(parsed, "command", None):
        parser.print_help()
        return 0

    try:
        return run_command(parsed.command, parsed, config)
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        print_error(str(e))
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lwp",
        description="Local CLI - manage Local WordPress sites from the terminal",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print results and errors")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # connect
    connect_parser = subparsers.add_parser("connect", help="Start Local if needed and print the GraphQL endpoint")
    connect_parser.add_argument("--skip-addon", action="store_true", help="Don't install or activate the addon")
    connect_parser.add_argument("--json", action="store_true", help="Print connection info as JSON")

    # status
    status_parser = subparsers.add_parser("status", help="Show Local and addon state")
    status_parser.add_argument("--json", action="store_true", help="Print status as JSON")

    # addon
    addon_parser = subparsers.add_parser("addon", help="Manage the Local CLI addon")
    addon_parser.add_argument("action", choices=["install", "activate"], help="Addon action")

    return parser


def run_command(command: str, args: argparse.Namespace, config: CLIConfig) -> int:
    """Run the specified command.

    Args:
        command: Command name
        args: Parsed arguments
        config: CLI configuration

    Returns:
        Exit code
    """
    if command == "connect":
        return cmd_connect(args, config)
    elif command == "status":
        return cmd_status(args, config)
    elif command == "addon":
        return cmd_addon(args, config)

    print_error(f"Unknown command: {command}")
    return 1


def cmd_connect(args: argparse.Namespace, config: CLIConfig) -> int:
    on_status = None if args.quiet or args.json else print_status_line
    options = BootstrapOptions(
        skip_addon=args.skip_addon,
        on_status=on_status,
        timeout_ms=config.ready_timeout_ms,
        poll_interval_ms=config.poll_interval_ms,
    )
    result = bootstrap(options, config=config)

    if not result.success or result.connection_info is None:
        # Status lines were already streamed unless suppressed
        if on_status is None and not args.quiet:
            print_actions(result.actions)
        print_error(result.error or "Unknown error")
        return 1

    info = result.connection_info
    if args.json:
        print(json.dumps(info.to_dict(), indent=2))
    else:
        print(f"Connected to Local at {info.url}")
    return 0


def cmd_status(args: argparse.Namespace, config: CLIConfig) -> int:
    try:
        context = build_context(config)
    except BootstrapError as e:
        print_error(str(e))
        return 1

    try:
        state = context.probe.addon_state()
        info = context.probe.read_connection_info()
        status: dict[str, Any] = {
            "installed": context.probe.is_host_app_installed(),
            "running": context.controller.is_running(),
            "addon": {"installed": state.installed, "activated": state.activated},
            "connection": info.to_dict() if info else None,
            "data_dir": str(context.paths.data_dir),
        }
        if info is not None:
            status["reachable"] = context.readiness.check_once(info)
    finally:
        context.close()

    if args.json:
        print(json.dumps(status, indent=2))
        return 0

    print(f"Local installed:  {_yes_no(status['installed'])}")
    print(f"Local running:    {_yes_no(status['running'])}")
    print(f"Addon installed:  {_yes_no(state.installed)}")
    print(f"Addon activated:  {_yes_no(state.activated)}")
    if info is not None:
        print(f"GraphQL endpoint: {info.url} ({'reachable' if status['reachable'] else 'not responding'})")
    else:
        print("GraphQL endpoint: unknown (no connection info)")
    print(f"Data directory:   {status['data_dir']}")
    return 0


def cmd_addon(args: argparse.Namespace, config: CLIConfig) -> int:
    try:
        context = build_context(config)
    except BootstrapError as e:
        print_error(str(e))
        return 1

    try:
        if args.action == "activate":
            if not context.probe.is_addon_installed():
                print_error("Addon is not installed. Run: lwp addon install")
                return 1
            changed = context.installer.activate()
            if changed:
                print("Addon activated. Restart Local to load it.")
            else:
                print("Addon already active.")
            return 0

        on_status = None if args.quiet else print_status_line
        result = context.installer.install(on_status=on_status)
    finally:
        context.close()

    if not result.success:
        print_error(result.error or "Addon installation failed")
        return 1
    print(f"Addon installed ({result.method}). Restart Local to load it.")
    return 0


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


if __name__ == "__main__":
    sys.exit(main())
