"""
API-level type definitions.

This module contains types and enums that belong to the API layer:
- Attribute value types
- Packet kinds and rule execution engines
- Session lifecycle states
- Constants used by the API layer
"""

from enum import Enum, IntEnum


class ValueType(IntEnum):
    INT = 0x00
    FLOAT = 0x01
    BOOL = 0x02
    STRING = 0x03


class PacketType(IntEnum):
    PUBLICATION = 0x00
    RULE = 0x01
    SUBSCRIPTION = 0x02


class EngineType(IntEnum):
    CPU = 0x00
    GPU = 0x01


class SessionState(Enum):
    CREATED = "created"
    CONNECTED = "connected"
    LISTENING = "listening"
    TERMINATED = "terminated"


# API-level constants
class Const:
    """API-level constants"""
    DEFAULT_PORT = 50254
    DEFAULT_RULE_ID = 2000  # Event type assigned to a rule's derived event

    # Integer attributes travel as signed 32-bit values
    MIN_INT = -(2 ** 31)
    MAX_INT = 2 ** 31 - 1

    # Literal tokens recognised as booleans (case-sensitive)
    TRUE_TOKEN = "true"
    FALSE_TOKEN = "false"
