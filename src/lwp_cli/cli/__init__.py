"""
CLI - Command-line interface for Local.

Commands:
    lwp connect          Bootstrap Local and print the GraphQL endpoint
    lwp status           Show install, process and addon state
    lwp addon install    Install the CLI addon
    lwp addon activate   Enable the CLI addon

Example:
    $ lwp connect
    Checking for Local...
    Checking Local CLI addon...
    Local is not running.
    Starting Local...
    Local started.
    Waiting for Local GraphQL server...
    GraphQL server ready.
    Connected to Local at http://127.0.0.1:4000/graphql
"""

from .main import main

__all__ = ["main"]
