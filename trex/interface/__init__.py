"""
High-level client and command line interface.

This module contains the components that belong to the interface layer:
- TRexClient (rule files, typed publications from strings, subscriptions)
- ConsoleListener (prints notifications as they arrive)
- The trex-client command line entry point (trex.interface.cli)
"""

from .client import TRexClient, ConsoleListener

__all__ = [
    "TRexClient",
    "ConsoleListener",
]
