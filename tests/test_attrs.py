import random
import struct
import sys

import pytest

from netlinker.attrs import (
    FAMILY_V4,
    FAMILY_V6,
    IfInfomsg,
    RouteAttr,
    RtAttr,
    bytes_to_string,
    get_ip_family,
    htonl,
    htons,
    native_endian,
    new_if_infomsg_child,
    non_zero_terminated,
    ntohl,
    ntohs,
    parse_route_attr,
    swap16,
    swap32,
    uint8_attr,
    uint16_attr,
    uint32_attr,
    uint64_attr,
    zero_terminated,
)

NATIVE = "<" if sys.byteorder == "little" else ">"


@pytest.mark.parametrize("seed", range(10))
def test_if_infomsg_deserialize_serialize(seed):
    orig = bytearray(random.Random(seed).randbytes(16))
    orig[1] = 0
    msg = IfInfomsg.deserialize(bytes(orig))
    assert msg.serialize() == bytes(orig)
    assert msg.family == orig[0]
    assert msg.if_type == int.from_bytes(orig[2:4], sys.byteorder)
    assert msg.change == int.from_bytes(orig[12:16], sys.byteorder)


def test_if_infomsg_fields():
    raw = bytes([7, 0]) + struct.pack(NATIVE + "HiII", 772, 3, 0x1003, 0xFFFFFFFF)
    msg = IfInfomsg.deserialize(raw)
    assert (msg.family, msg.if_type, msg.index) == (7, 772, 3)
    assert (msg.flags, msg.change) == (0x1003, 0xFFFFFFFF)
    assert msg.encap_type() == "loopback"
    assert len(msg) == 16


def test_if_infomsg_short_input():
    with pytest.raises(ValueError):
        IfInfomsg.deserialize(b"\x00" * 15)


@pytest.mark.parametrize(
    "value, name",
    [(0, "generic"), (1, "ether"), (768, "ipip"), (790, "fcfb3"), (799, "fcfb12"),
     (804, "ieee802.15.4"), (65534, "none"), (65535, "void"), (12345, "unknown12345")],
)
def test_encap_type(value, name):
    assert IfInfomsg(if_type=value).encap_type() == name


def test_rt_attr_with_data():
    attr = RtAttr(1, b"abc")
    assert len(attr) == 7
    assert attr.serialize() == struct.pack(NATIVE + "HH", 7, 1) + b"abc\x00"


def test_rt_attr_empty():
    attr = RtAttr(9)
    assert len(attr) == 4
    assert attr.serialize() == struct.pack(NATIVE + "HH", 4, 9)


def test_rt_attr_nested():
    parent = RtAttr(2)
    child = parent.add_rt_attr(3, uint32_attr(5))
    assert parent.children == [child]
    assert len(parent) == 12
    child_bytes = struct.pack(NATIVE + "HH", 8, 3) + uint32_attr(5)
    assert parent.serialize() == struct.pack(NATIVE + "HH", 12, 2) + child_bytes


def test_parse_route_attr_nested_round_trip():
    parent = RtAttr(2)
    parent.add_rt_attr(3, uint32_attr(5))
    outer = parse_route_attr(parent.serialize())
    assert len(outer) == 1 and outer[0].attr_type == 2
    inner = parse_route_attr(outer[0].value)
    assert inner == [RouteAttr(3, uint32_attr(5))]


def test_parse_route_attr_several_aligned():
    data = RtAttr(1, b"abc").serialize() + RtAttr(4, b"xy").serialize()
    assert parse_route_attr(data) == [RouteAttr(1, b"abc"), RouteAttr(4, b"xy")]


def test_parse_route_attr_ignores_short_tail():
    assert parse_route_attr(b"\x01\x02") == []


@pytest.mark.parametrize("length", [2, 40])
def test_parse_route_attr_bad_length(length):
    with pytest.raises(ValueError):
        parse_route_attr(struct.pack(NATIVE + "HH", length, 1) + b"\x00" * 4)


def test_new_if_infomsg_child():
    parent = RtAttr(18)
    msg = new_if_infomsg_child(parent, 7)
    assert msg.family == 7
    assert len(parent) == 20
    out = parent.serialize()
    assert out[4] == 7
    assert len(out) == 20


def test_add_child():
    parent = RtAttr(1)
    parent.add_child(RtAttr(2, b"\x01\x02\x03\x04"))
    assert len(parent) == 12


@pytest.mark.parametrize(
    "ip, family",
    [("10.0.0.1", FAMILY_V4), ("::ffff:10.0.0.1", FAMILY_V4), ("fe80::1", FAMILY_V6),
     (b"\x0a\x00\x00\x01", FAMILY_V4), (bytes(10) + b"\xff\xff\x01\x02\x03\x04", FAMILY_V4),
     (bytes(15) + b"\x01", FAMILY_V6)],
)
def test_get_ip_family(ip, family):
    assert get_ip_family(ip) == family


def test_native_endian():
    assert native_endian() == sys.byteorder


def test_swaps():
    little = sys.byteorder == "little"
    assert swap16(0x1234) == (0x3412 if little else 0x1234)
    assert swap32(0x01020304) == (0x04030201 if little else 0x01020304)


def test_network_order():
    assert htonl(0x01020304) == b"\x01\x02\x03\x04"
    assert htons(0x1234) == b"\x12\x34"
    assert ntohl(b"\x01\x02\x03\x04") == 0x01020304
    assert ntohs(b"\x12\x34") == 0x1234


def test_strings():
    assert zero_terminated("lo") == b"lo\x00"
    assert non_zero_terminated("lo") == b"lo"
    assert bytes_to_string(b"eth0\x00xx") == "eth0"
    with pytest.raises(ValueError):
        bytes_to_string(b"eth0")


def test_int_attrs():
    assert uint8_attr(7) == b"\x07"
    assert uint16_attr(1) == (1).to_bytes(2, sys.byteorder)
    assert uint32_attr(0xABCDEF) == (0xABCDEF).to_bytes(4, sys.byteorder)
    value = 2**40 + 5
    assert int.from_bytes(uint64_attr(value), sys.byteorder) == value
    assert len(uint64_attr(1)) == 8