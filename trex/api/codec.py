"""
Packet codec.

Maps packets to and from the frames carried by trex.io. All integers are big-endian.

  string      = [length (u32), utf-8 bytes]
  attribute   = [name (string), value_type (u8), value]
                  INT i32 | FLOAT f32 | BOOL u8 | STRING string
  PUBLICATION = [event_type (i32), timestamp (i64, 0 = unset), count (u32), attribute * count]
  SUBSCRIPTION= [event_type (i32)]
  RULE        = [assigned_id (i32), engine (u8), rule_text (string)]
"""

import struct

from ..io import Frame
from ..exceptions import TRexDecodeError
from .models import Attribute, RulePacket, SubPacket, PubPacket, Notification, Packet
from .types import ValueType, PacketType, EngineType


_I32 = struct.Struct(">i")
_U32 = struct.Struct(">I")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")
_U8 = struct.Struct(">B")


def _pack_string(text: str) -> bytes:
    data = text.encode("utf-8")
    return _U32.pack(len(data)) + data


def _pack_attribute(attribute: Attribute) -> bytes:
    head = _pack_string(attribute.name) + _U8.pack(attribute.value_type)
    match attribute.value_type:
        case ValueType.INT:
            return head + _I32.pack(attribute.value)
        case ValueType.FLOAT:
            return head + _F32.pack(attribute.value)
        case ValueType.BOOL:
            return head + _U8.pack(1 if attribute.value else 0)
        case ValueType.STRING:
            return head + _pack_string(attribute.value)
    raise ValueError(f"Unsupported value type {attribute.value_type}")


def encode_packet(packet: Packet) -> Frame:
    """Convert a packet to a frame"""
    match packet:
        case PubPacket():
            payload = (_I32.pack(packet.event_type)
                       + _I64.pack(packet.timestamp or 0)
                       + _U32.pack(len(packet.attributes))
                       + b"".join(_pack_attribute(a) for a in packet.attributes))
        case SubPacket():
            payload = _I32.pack(packet.event_type)
        case RulePacket():
            payload = _I32.pack(packet.assigned_id) + _U8.pack(packet.engine) + _pack_string(packet.rule_text)
        case _:
            raise TypeError(f"Cannot encode {type(packet).__name__}")
    return Frame(packet_type=packet.packet_type, payload=payload)


class _PayloadReader:
    """Sequential reader over one frame payload"""

    def __init__(self, payload: bytes):
        self.payload = payload
        self.offset = 0

    def _unpack(self, fmt: struct.Struct):
        if self.offset + fmt.size > len(self.payload):
            raise TRexDecodeError(f"Payload truncated at offset {self.offset}, wanted {fmt.size} more bytes")
        (value,) = fmt.unpack_from(self.payload, self.offset)
        self.offset += fmt.size
        return value

    def u8(self) -> int: return self._unpack(_U8)
    def u32(self) -> int: return self._unpack(_U32)
    def i32(self) -> int: return self._unpack(_I32)
    def i64(self) -> int: return self._unpack(_I64)
    def f32(self) -> float: return self._unpack(_F32)

    def string(self) -> str:
        length = self.u32()
        if self.offset + length > len(self.payload):
            raise TRexDecodeError(f"String of {length} bytes overruns payload at offset {self.offset}")
        data = self.payload[self.offset:self.offset + length]
        self.offset += length
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TRexDecodeError(f"String at offset {self.offset - length} is not valid UTF-8") from e

    def attribute(self) -> Attribute:
        name = self.string()
        type_byte = self.u8()
        if type_byte not in ValueType._value2member_map_:
            raise TRexDecodeError(f"Attribute '{name}' has unknown value type 0x{type_byte:02X}")
        value_type = ValueType(type_byte)
        match value_type:
            case ValueType.INT:
                value = self.i32()
            case ValueType.FLOAT:
                value = self.f32()
            case ValueType.BOOL:
                value = self.u8() != 0
            case ValueType.STRING:
                value = self.string()
        return Attribute(name, value_type, value)

    def finish(self) -> None:
        if self.offset != len(self.payload):
            raise TRexDecodeError(f"{len(self.payload) - self.offset} trailing bytes after packet")


def decode_frame(frame: Frame) -> Packet:
    """
    Convert a received frame to a packet.

    A publication coming from the server is returned as a Notification.
    Raises TRexDecodeError if the frame is of an unknown type or its payload
    is malformed; the frame itself has already been consumed, so the stream
    remains usable.
    """
    if frame.packet_type not in PacketType._value2member_map_:
        raise TRexDecodeError(f"Unknown packet type 0x{frame.packet_type:02X}")
    reader = _PayloadReader(frame.payload)
    match PacketType(frame.packet_type):
        case PacketType.PUBLICATION:
            event_type = reader.i32()
            timestamp = reader.i64()
            count = reader.u32()
            attributes = [reader.attribute() for _ in range(count)]
            reader.finish()
            try:
                return Notification(event_type=event_type, attributes=attributes, timestamp=timestamp)
            except ValueError as e:
                raise TRexDecodeError(str(e)) from e
        case PacketType.SUBSCRIPTION:
            event_type = reader.i32()
            reader.finish()
            return SubPacket(event_type=event_type)
        case PacketType.RULE:
            assigned_id = reader.i32()
            engine_byte = reader.u8()
            rule_text = reader.string()
            reader.finish()
            if engine_byte not in EngineType._value2member_map_:
                raise TRexDecodeError(f"Rule has unknown engine 0x{engine_byte:02X}")
            return RulePacket(rule_text=rule_text, assigned_id=assigned_id, engine=EngineType(engine_byte))
