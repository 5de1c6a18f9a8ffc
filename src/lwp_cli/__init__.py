"""
lwp CLI - Command-line access to Local WordPress sites.

Talks to Local's GraphQL server; the bootstrap package gets that server
running and reachable first.
"""

__version__ = "1.0.0"

from .config import CLIConfig, config

__all__ = [
    "__version__",
    "CLIConfig",
    "config",
]
