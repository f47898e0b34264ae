"""
API-level models and session implementation.

This module contains models and types that belong to the API layer:
- Attribute, RulePacket, SubPacket, PubPacket, Notification (packets)
- TRexSession, PacketListener (session and listener contract)
- TeslaRuleParser (rule text to RulePacket)
- Types and enums used by the API layer
"""

from .models import Attribute, RulePacket, SubPacket, PubPacket, Notification, Packet, build_publication
from .codec import encode_packet, decode_frame
from .parser import RuleParser, TeslaRuleParser
from .session import TRexSession, PacketListener
from .types import ValueType, PacketType, EngineType, SessionState, Const

__all__ = [
    # API-level models
    "Attribute",
    "RulePacket",
    "SubPacket",
    "PubPacket",
    "Notification",
    "Packet",
    "build_publication",

    # Codec
    "encode_packet",
    "decode_frame",

    # Rules
    "RuleParser",
    "TeslaRuleParser",

    # Session
    "TRexSession",
    "PacketListener",

    # API-level types
    "ValueType",
    "PacketType",
    "EngineType",
    "SessionState",
    "Const",
]
