import random
import struct
import sys

import pytest

from netlinker.attrs import RtAttr, uint32_attr
from netlinker.messages import (
    BRIDGE_VLAN_INFO_MASTER,
    BRIDGE_VLAN_INFO_PVID,
    BRIDGE_VLAN_INFO_UNTAGGED,
    RT_SCOPE_NOWHERE,
    RT_TABLE_MAIN,
    BridgeVlanInfo,
    Genlmsg,
    IfaCacheInfo,
    IfAddrmsg,
    RtGenMsg,
    RtMsg,
    RtNexthop,
    new_rt_del_msg,
    new_rt_msg,
)

NATIVE = "<" if sys.byteorder == "little" else ">"


@pytest.mark.parametrize("cls, size", [(IfAddrmsg, 8), (IfaCacheInfo, 16),
                                       (BridgeVlanInfo, 4), (RtMsg, 12)])
@pytest.mark.parametrize("seed", range(5))
def test_deserialize_serialize_round_trip(cls, size, seed):
    orig = random.Random(seed).randbytes(size)
    msg = cls.deserialize(orig)
    assert len(msg) == size
    assert msg.serialize() == orig
    assert cls.deserialize(msg.serialize()) == msg


def test_if_addrmsg_fields():
    msg = IfAddrmsg.deserialize(bytes([2, 24, 0x80, 0]) + struct.pack(NATIVE + "I", 5))
    assert (msg.family, msg.prefixlen, msg.flags, msg.scope, msg.index) == (2, 24, 0x80, 0, 5)


def test_ifa_cache_info_fields():
    msg = IfaCacheInfo.deserialize(struct.pack(NATIVE + "IIII", 1, 2, 3, 4))
    assert (msg.ifa_prefered, msg.ifa_valid, msg.cstamp, msg.tstamp) == (1, 2, 3, 4)


def test_bridge_vlan_info_flags():
    info = BridgeVlanInfo(flags=BRIDGE_VLAN_INFO_PVID | BRIDGE_VLAN_INFO_UNTAGGED, vid=100)
    assert info.port_vid() is True
    assert info.egress_untag() is True
    assert str(info) == "{Flags:6 Vid:100}"
    master = BridgeVlanInfo(flags=BRIDGE_VLAN_INFO_MASTER, vid=1)
    assert master.port_vid() is False
    assert master.egress_untag() is False


def test_bridge_vlan_info_short_input():
    with pytest.raises(ValueError):
        BridgeVlanInfo.deserialize(b"\x01\x02\x03")


def test_rt_msg_fields():
    raw = bytes([10, 64, 0, 0, 254, 3, 0, 1]) + struct.pack(NATIVE + "I", 0x200)
    msg = RtMsg.deserialize(raw)
    assert (msg.family, msg.dst_len, msg.table, msg.protocol, msg.route_type) == (10, 64, 254, 3, 1)
    assert msg.flags == 0x200


def test_new_rt_msg_defaults():
    msg = new_rt_msg()
    assert (msg.table, msg.scope, msg.protocol, msg.route_type) == (RT_TABLE_MAIN, 0, 3, 1)
    assert msg.serialize()[4:8] == bytes([254, 3, 0, 1])


def test_new_rt_del_msg_defaults():
    msg = new_rt_del_msg()
    assert (msg.table, msg.scope, msg.protocol, msg.route_type) == (RT_TABLE_MAIN, RT_SCOPE_NOWHERE, 0, 0)


def test_rt_nexthop_without_children():
    hop = RtNexthop(hops=2, ifindex=7)
    assert len(hop) == 8
    out = hop.serialize()
    assert out == struct.pack(NATIVE + "HBBi", 8, 0, 2, 7)
    assert hop.length == 8


def test_rt_nexthop_with_children():
    hop = RtNexthop(ifindex=3)
    child = RtAttr(1, uint32_attr(9))
    hop.children.append(child)
    assert len(hop) == 16
    out = hop.serialize()
    assert len(out) == 16
    assert out[8:] == child.serialize()
    parsed = RtNexthop.deserialize(out)
    assert (parsed.length, parsed.ifindex, parsed.children) == (16, 3, [])


def test_rt_gen_msg():
    msg = RtGenMsg(family=2)
    assert len(msg) == 4
    assert msg.serialize() == b"\x02\x00\x00\x00"
    assert RtGenMsg.deserialize(b"\x0a\x00\x00\x00").family == 10
    assert RtGenMsg().serialize() == b"\x00\x00\x00\x00"
    with pytest.raises(ValueError):
        RtGenMsg.deserialize(b"")


def test_genlmsg():
    msg = Genlmsg(command=3, version=2)
    assert len(msg) == 4
    out = msg.serialize()
    assert out[:2] == b"\x03\x02"
    assert Genlmsg.deserialize(out) == msg