"""
T-Rex Python Client

A Python client for the T-Rex Complex Event Processing server.

This library provides three distinct layers of abstraction:

1. **trex.io**: Wire-level transport (TCP connection, frame delimiting)
2. **trex.api**: Packets, typed attributes, and the client session with its receive loop
3. **trex.interface**: High-level client and command line tool

Example usage:
    import trex

    class Printer(trex.PacketListener):
        async def on_notification(self, packet):
            print(packet)
        async def on_connection_error(self):
            print("connection lost")

    async with trex.TRexClient("localhost", 50254) as client:
        client.add_listener(Printer())
        await client.start_listening()
        await client.subscribe([2100])
        await client.publish(2001, ["area", "value"], ["toto", "50"])
        await client.wait_closed()
"""

# High-level interface (recommended for most users)
from .interface import TRexClient, ConsoleListener

# API-level models and session
from .api import (
    Attribute, RulePacket, SubPacket, PubPacket, Notification, build_publication,
    TRexSession, PacketListener, RuleParser, TeslaRuleParser,
)

# Low-level transport
from .io import TRexTransport, Frame

# Shared types and exceptions
from .api.types import ValueType, PacketType, EngineType, SessionState
from .exceptions import (
    TRexError, TRexConnectionError, TRexSendError, TRexNotConnectedError,
    TRexParseError, TRexArgumentError, TRexDecodeError, TRexConfigurationError,
)
from .config import TRexConfig

# Utilities
from .utils import run_with_keyboard_interrupt

__version__ = "0.1.0"

# Public API - these are the main classes users should import
__all__ = [
    # High-level interface (recommended)
    "TRexClient",
    "ConsoleListener",

    # API-level models (for advanced users)
    "Attribute",
    "RulePacket",
    "SubPacket",
    "PubPacket",
    "Notification",
    "build_publication",
    "TRexSession",
    "PacketListener",
    "RuleParser",
    "TeslaRuleParser",

    # Low-level transport (for advanced users)
    "TRexTransport",
    "Frame",

    # Exceptions
    "TRexError",
    "TRexConnectionError",
    "TRexSendError",
    "TRexNotConnectedError",
    "TRexParseError",
    "TRexArgumentError",
    "TRexDecodeError",
    "TRexConfigurationError",

    # Types and enums
    "ValueType",
    "PacketType",
    "EngineType",
    "SessionState",

    # Configuration and utilities
    "TRexConfig",
    "run_with_keyboard_interrupt",
]
