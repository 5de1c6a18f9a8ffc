"""Console output helpers for CLI commands."""

import sys
from collections.abc import Iterable


def print_status_line(message: str) -> None:
    """Print a progress line to stderr so stdout stays parseable."""
    print(message, file=sys.stderr)


def print_actions(actions: Iterable[str]) -> None:
    """Print the bootstrap action log."""
    for action in actions:
        print(f"  - {action}", file=sys.stderr)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)
