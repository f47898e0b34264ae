import math
import struct

import pytest

from trex import Attribute, PubPacket, Notification, SubPacket, RulePacket, ValueType, TRexArgumentError, build_publication


@pytest.mark.parametrize("raw, value_type, value", [
    ("true", ValueType.BOOL, True),
    ("false", ValueType.BOOL, False),
    ("True", ValueType.STRING, "True"),
    ("TRUE", ValueType.STRING, "TRUE"),
    ("42", ValueType.INT, 42),
    ("-7", ValueType.INT, -7),
    ("42.0", ValueType.FLOAT, 42.0),
    ("1.0", ValueType.FLOAT, 1.0),
    ("-2.5e3", ValueType.FLOAT, -2500.0),
    (".5", ValueType.FLOAT, 0.5),
    ("abc", ValueType.STRING, "abc"),
    ("", ValueType.STRING, ""),
    (" 42", ValueType.FLOAT, 42.0),
    ("42 ", ValueType.FLOAT, 42.0),
    ("1f", ValueType.FLOAT, 1.0),
    ("2.5d", ValueType.FLOAT, 2.5),
    ("-3.5E2F", ValueType.FLOAT, -350.0),
    ("1x", ValueType.STRING, "1x"),
    ("f", ValueType.STRING, "f"),
    ("1_000", ValueType.STRING, "1_000"),
    ("inf", ValueType.STRING, "inf"),
])
def test_infer(raw, value_type, value):
    attribute = Attribute.infer("key", raw)
    assert attribute.name == "key"
    assert attribute.value_type == value_type
    assert attribute.value == value
    assert type(attribute.value) is type(value)


def test_infer_is_deterministic():
    for raw in ("true", "12", "3.5", "hello", "-0", "Infinity"):
        assert Attribute.infer("a", raw) == Attribute.infer("a", raw)


def test_infer_integer_overflow_becomes_float():
    attribute = Attribute.infer("big", "2147483648")
    assert attribute.value_type == ValueType.FLOAT
    assert attribute.value == 2147483648.0

    attribute = Attribute.infer("max", "2147483647")
    assert attribute.value_type == ValueType.INT


def test_infer_float_literals():
    assert Attribute.infer("a", "Infinity").value == math.inf
    assert Attribute.infer("a", "-Infinity").value == -math.inf
    assert math.isnan(Attribute.infer("a", "NaN").value)


def test_attribute_is_immutable():
    attribute = Attribute.infer("a", "1")
    with pytest.raises(AttributeError):
        attribute.value = 2


def test_attribute_rejects_inconsistent_value():
    with pytest.raises(ValueError):
        Attribute("a", ValueType.INT, "1")
    with pytest.raises(ValueError):
        Attribute("a", ValueType.INT, True)
    with pytest.raises(ValueError):
        Attribute("a", ValueType.BOOL, 1)
    with pytest.raises(ValueError):
        Attribute("a", ValueType.FLOAT, 1)
    with pytest.raises(ValueError):
        Attribute("a", ValueType.INT, 2 ** 31)


def test_attribute_str():
    assert str(Attribute.infer("area", "toto")) == "<area : string = toto>"
    assert str(Attribute.infer("value", "50")) == "<value : int = 50>"
    assert str(Attribute.infer("on", "true")) == "<on : bool = true>"


def test_build_publication():
    pub = build_publication(2001, ["area", "value"], ["toto", "50"])
    assert pub.event_type == 2001
    assert pub.timestamp is None
    assert [a.name for a in pub] == ["area", "value"]
    assert pub.get("area") == Attribute("area", ValueType.STRING, "toto")
    assert pub.get("value") == Attribute("value", ValueType.INT, 50)


def test_build_publication_without_attributes():
    pub = build_publication(2000, [], [])
    assert len(pub) == 0
    assert pub.event_type == 2000


def test_build_publication_length_mismatch():
    with pytest.raises(TRexArgumentError):
        build_publication(2001, ["area", "value"], ["toto"])
    with pytest.raises(TRexArgumentError):
        build_publication(2001, ["area"], ["toto", "50"])


def test_build_publication_duplicate_keys():
    with pytest.raises(TRexArgumentError):
        build_publication(2001, ["area", "area"], ["a", "b"])


def test_pub_packet_unique_names():
    pub = PubPacket(event_type=1)
    pub.add_attribute(Attribute.infer("a", "1"))
    with pytest.raises(ValueError):
        pub.add_attribute(Attribute.infer("a", "2"))
    with pytest.raises(ValueError):
        PubPacket(event_type=1, attributes=[Attribute.infer("a", "1"), Attribute.infer("a", "2")])
    assert "a" in pub
    assert "b" not in pub


def test_event_type_range():
    with pytest.raises(ValueError):
        SubPacket(event_type=2 ** 31)
    with pytest.raises(ValueError):
        PubPacket(event_type="2000")
    with pytest.raises(ValueError):
        RulePacket(rule_text="Define", assigned_id=-(2 ** 31) - 1)


def test_notification_requires_timestamp():
    with pytest.raises(ValueError):
        Notification(event_type=2100)
    notification = Notification(event_type=2100, attributes=[Attribute.infer("area", "toto")], timestamp=0)
    assert notification.received_at.year in (1969, 1970)
    assert str(notification).startswith("{2100 <area : string = toto>}@")


def test_float_values_carry_32_bit_precision():
    attribute = Attribute.infer("t", "0.1")
    assert attribute.value == struct.unpack(">f", struct.pack(">f", 0.1))[0]
    assert attribute.value != 0.1
    assert Attribute("t", ValueType.FLOAT, 0.1) == attribute


def test_float_beyond_32_bit_range_becomes_infinite():
    assert Attribute.infer("big", "1e50").value == math.inf
    assert Attribute("small", ValueType.FLOAT, -1e50).value == -math.inf


def test_notification_with_timestamp_outside_datetime_range():
    notification = Notification(event_type=1, timestamp=2 ** 62)
    assert str(notification) == f"{{1}}@{2 ** 62}"
