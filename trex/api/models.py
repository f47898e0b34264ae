"""
T-Rex API-level models.

This module contains the packets exchanged with a T-Rex server:
- Attribute (a named, typed event value)
- RulePacket, SubPacket, PubPacket (outbound packets)
- Notification (a publication delivered by the server)
"""

import math
import re
import struct
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Iterator, Optional, Self, Sequence

from .types import ValueType, PacketType, EngineType, Const
from ..exceptions import TRexArgumentError


_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?[fFdD]?)")
_FLOAT32 = struct.Struct(">f")
# Control characters and space, trimmed around a float literal
_FLOAT_TRIM = "".join(chr(c) for c in range(0x21))


def _to_float32(value: float) -> float:
    """Round to the nearest 32-bit float; values beyond its range become infinities"""
    try:
        return _FLOAT32.unpack(_FLOAT32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _check_event_type(event_type: int, label: str = "event type") -> None:
    if isinstance(event_type, bool) or not isinstance(event_type, int) or not Const.MIN_INT <= event_type <= Const.MAX_INT:
        raise ValueError(f"Invalid {label} {event_type!r}, must be a 32-bit integer")


@dataclass(frozen=True)
class Attribute:
    """Represents a named event attribute"""
    name: str
    value_type: ValueType
    value: bool | int | float | str

    def __post_init__(self):
        match self.value_type:
            case ValueType.BOOL:
                valid = isinstance(self.value, bool)
            case ValueType.INT:
                valid = isinstance(self.value, int) and not isinstance(self.value, bool)
                if valid and not Const.MIN_INT <= self.value <= Const.MAX_INT:
                    raise ValueError(f"INT attribute '{self.name}' out of 32-bit range: {self.value}")
            case ValueType.FLOAT:
                valid = isinstance(self.value, float)
                if valid:
                    object.__setattr__(self, "value", _to_float32(self.value))
            case ValueType.STRING:
                valid = isinstance(self.value, str)
            case _:
                valid = False
        if not valid:
            raise ValueError(f"Attribute '{self.name}' value {self.value!r} does not match type {self.value_type}")

    @classmethod
    def infer(cls, name: str, raw: str) -> Self:
        """
        Build an attribute with the most specific type `raw` can represent.

        Precedence: the literal "true"/"false" (case-sensitive), then a base-10
        integer that fits in 32 bits, then a 32-bit floating-point number
        (surrounding whitespace and an f/d suffix allowed), else the raw string.
        FLOAT values are rounded to 32 bits, the precision carried on the wire.
        """
        if raw == Const.TRUE_TOKEN:
            return cls(name, ValueType.BOOL, True)
        if raw == Const.FALSE_TOKEN:
            return cls(name, ValueType.BOOL, False)
        if _INT_PATTERN.fullmatch(raw):
            number = int(raw)
            if Const.MIN_INT <= number <= Const.MAX_INT:
                return cls(name, ValueType.INT, number)
        literal = raw.strip(_FLOAT_TRIM)
        if _FLOAT_PATTERN.fullmatch(literal):
            return cls(name, ValueType.FLOAT, float(literal.rstrip("fFdD")))
        return cls(name, ValueType.STRING, raw)

    def __str__(self) -> str:
        value = str(self.value).lower() if self.value_type == ValueType.BOOL else self.value
        return f"<{self.name} : {self.value_type.name.lower()} = {value}>"


@dataclass
class RulePacket:
    """A TESLA rule to be deployed on the server"""
    packet_type: ClassVar[PacketType] = PacketType.RULE
    rule_text: str
    assigned_id: int
    engine: EngineType = EngineType.CPU

    def __post_init__(self):
        _check_event_type(self.assigned_id, "rule id")


@dataclass
class SubPacket:
    """A subscription to one event type"""
    packet_type: ClassVar[PacketType] = PacketType.SUBSCRIPTION
    event_type: int

    def __post_init__(self):
        _check_event_type(self.event_type)


@dataclass
class PubPacket:
    """A published event; the timestamp is left to the server"""
    packet_type: ClassVar[PacketType] = PacketType.PUBLICATION
    event_type: int
    attributes: list[Attribute] = field(default_factory=list)
    timestamp: Optional[int] = None

    def __post_init__(self):
        _check_event_type(self.event_type)
        names = [a.name for a in self.attributes]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate attribute names in event {self.event_type}: {names}")

    def add_attribute(self, attribute: Attribute) -> None:
        if attribute.name in self:
            raise ValueError(f"Attribute '{attribute.name}' already present in event {self.event_type}")
        self.attributes.append(attribute)

    def get(self, name: str) -> Optional[Attribute]:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)


@dataclass
class Notification(PubPacket):
    """A publication received from the server because it matched a subscription"""

    def __post_init__(self):
        super().__post_init__()
        if self.timestamp is None:
            raise ValueError("Notification must carry a server timestamp")

    @property
    def received_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000)

    def __str__(self) -> str:
        attributes = "".join(f" {a}" for a in self.attributes)
        try:
            stamp = self.received_at.strftime("%Y-%m-%d %H:%M:%S")
        except (ValueError, OverflowError, OSError):
            stamp = str(self.timestamp)  # Milliseconds, outside the datetime range
        return f"{{{self.event_type}{attributes}}}@{stamp}"


Packet = RulePacket | SubPacket | PubPacket


def build_publication(event_type: int, keys: Sequence[str], values: Sequence[str]) -> PubPacket:
    """Build a publication from parallel key and raw value lists, inferring each value's type"""
    if len(keys) != len(values):
        raise TRexArgumentError(f"Got {len(keys)} keys but {len(values)} values for event {event_type}")
    if len(set(keys)) != len(keys):
        raise TRexArgumentError(f"Duplicate keys for event {event_type}: {list(keys)}")
    pub = PubPacket(event_type=event_type)
    for key, raw in zip(keys, values):
        pub.add_attribute(Attribute.infer(key, raw))
    return pub
