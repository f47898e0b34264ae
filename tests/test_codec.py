import math
import struct

import pytest

from trex import (Attribute, PubPacket, SubPacket, RulePacket, Notification, ValueType, PacketType, EngineType,
                  TRexDecodeError, Frame, build_publication)
from trex.api import encode_packet, decode_frame


def _string(text: str) -> bytes:
    data = text.encode("utf-8")
    return struct.pack(">I", len(data)) + data


def test_encode_subscription():
    frame = encode_packet(SubPacket(event_type=2100))
    assert frame.packet_type == PacketType.SUBSCRIPTION
    assert frame.payload == struct.pack(">i", 2100)
    assert frame.to_bytes() == bytes([0x02, 0x00, 0x00, 0x00, 0x04]) + struct.pack(">i", 2100)


def test_encode_publication_leaves_timestamp_unset():
    frame = encode_packet(build_publication(2001, ["area", "value", "hot", "temp"], ["toto", "50", "true", "45.5"]))
    assert frame.packet_type == PacketType.PUBLICATION
    expected = (struct.pack(">iqI", 2001, 0, 4)
                + _string("area") + bytes([ValueType.STRING]) + _string("toto")
                + _string("value") + bytes([ValueType.INT]) + struct.pack(">i", 50)
                + _string("hot") + bytes([ValueType.BOOL, 1])
                + _string("temp") + bytes([ValueType.FLOAT]) + struct.pack(">f", 45.5))
    assert frame.payload == expected


def test_encode_rule_carries_engine():
    frame = encode_packet(RulePacket(rule_text="Define X From Y", assigned_id=2000, engine=EngineType.GPU))
    assert frame.packet_type == PacketType.RULE
    assert frame.payload == struct.pack(">iB", 2000, EngineType.GPU) + _string("Define X From Y")


def test_encode_float_beyond_float32_range():
    frame = encode_packet(PubPacket(event_type=1, attributes=[Attribute("big", ValueType.FLOAT, 1e50)]))
    (value,) = struct.unpack(">f", frame.payload[-4:])
    assert value == math.inf


def test_decode_publication_as_notification():
    payload = (struct.pack(">iqI", 2100, 1_700_000_000_000, 2)
               + _string("area") + bytes([ValueType.STRING]) + _string("toto")
               + _string("measuredTemp") + bytes([ValueType.FLOAT]) + struct.pack(">f", 50.0))
    packet = decode_frame(Frame(packet_type=PacketType.PUBLICATION, payload=payload))
    assert isinstance(packet, Notification)
    assert packet.event_type == 2100
    assert packet.timestamp == 1_700_000_000_000
    assert packet.get("area").value == "toto"
    assert packet.get("measuredTemp") == Attribute("measuredTemp", ValueType.FLOAT, 50.0)


def test_decode_subscription():
    packet = decode_frame(Frame(packet_type=PacketType.SUBSCRIPTION, payload=struct.pack(">i", 7)))
    assert packet == SubPacket(event_type=7)


def test_decode_unknown_packet_type():
    with pytest.raises(TRexDecodeError):
        decode_frame(Frame(packet_type=0x7F, payload=b""))


@pytest.mark.parametrize("payload", [
    b"",
    struct.pack(">iq", 1, 0),
    struct.pack(">iqI", 1, 0, 1) + _string("a"),
    struct.pack(">iqI", 1, 0, 1) + _string("a") + bytes([0x09]) + b"\x00",
    struct.pack(">iqI", 1, 0, 0) + b"\x00",
    struct.pack(">iqI", 1, 0, 1) + struct.pack(">I", 100) + b"ab",
    struct.pack(">iqI", 1, 0, 1) + struct.pack(">I", 2) + b"\xff\xfe" + bytes([ValueType.BOOL, 1]),
    struct.pack(">iqI", 1, 0, 2) + (_string("a") + bytes([ValueType.BOOL, 1])) * 2,
])
def test_decode_malformed_publication(payload):
    with pytest.raises(TRexDecodeError):
        decode_frame(Frame(packet_type=PacketType.PUBLICATION, payload=payload))
