import pytest

from netlinker.attrs import IfInfomsg, RouteAttr, RtAttr
from netlinker.linkinfo import (
    IFLA_BRPORT_COST,
    IFLA_BRPORT_GUARD,
    IFLA_BRPORT_LEARNING,
    IFLA_BRPORT_MODE,
    IFLA_BRPORT_PROTECT,
    IFLA_BRPORT_PROXYARP,
    IFLA_BRPORT_PROXYARP_WIFI,
    NLA_F_NESTED,
)
from netlinker.protinfo import (
    IFLA_PROTINFO,
    Protinfo,
    bool_to_byte,
    byte_to_bool,
    parse_protinfo,
    protinfo_from_messages,
)
from netlinker.request import NetlinkError


def link_message(index, flags):
    nested = RtAttr(IFLA_PROTINFO | NLA_F_NESTED)
    for attr_type, value in flags.items():
        nested.add_rt_attr(attr_type, bool_to_byte(value))
    return IfInfomsg(family=7, index=index).serialize() + nested.serialize()


def test_bool_byte_conversion():
    assert bool_to_byte(True) == b"\x01"
    assert bool_to_byte(False) == b"\x00"
    assert byte_to_bool(0) is False
    assert byte_to_bool(5) is True


def test_str_lists_enabled_flags_in_order():
    pi = Protinfo(flood=True, hairpin=True, proxy_arp_wifi=True)
    assert str(pi) == "Hairpin Flood ProxyArpWiFi"
    assert str(Protinfo()) == ""


def test_parse_protinfo_sets_flags():
    infos = [
        RouteAttr(IFLA_BRPORT_MODE, b"\x01"),
        RouteAttr(IFLA_BRPORT_PROTECT, b"\x01"),
        RouteAttr(IFLA_BRPORT_LEARNING, b"\x00"),
        RouteAttr(IFLA_BRPORT_COST, b"\x64\x00\x00\x00"),
    ]
    pi = parse_protinfo(infos)
    assert pi == Protinfo(hairpin=True, root_block=True)


def test_hairpin_and_root_block_leave_others_unchanged():
    before = protinfo_from_messages([link_message(4, {IFLA_BRPORT_LEARNING: True})], 4)
    after = protinfo_from_messages(
        [link_message(4, {
            IFLA_BRPORT_LEARNING: True,
            IFLA_BRPORT_MODE: True,
            IFLA_BRPORT_PROTECT: True,
        })],
        4,
    )
    assert after.hairpin and after.root_block
    assert after.guard == before.guard
    assert after.learning == before.learning
    assert after.proxy_arp == before.proxy_arp


def test_guard_and_learning_off():
    msg = link_message(9, {IFLA_BRPORT_GUARD: True, IFLA_BRPORT_LEARNING: False})
    pi = protinfo_from_messages([msg], 9)
    assert pi.guard is True
    assert pi.learning is False
    assert pi.hairpin is False


def test_proxy_arp_flags():
    msg = link_message(2, {IFLA_BRPORT_PROXYARP: True, IFLA_BRPORT_PROXYARP_WIFI: True})
    pi = protinfo_from_messages([msg], 2)
    assert pi.proxy_arp and pi.proxy_arp_wifi
    assert not pi.root_block


def test_other_links_are_skipped():
    msgs = [
        link_message(1, {IFLA_BRPORT_MODE: True}),
        link_message(3, {IFLA_BRPORT_GUARD: True}),
    ]
    assert protinfo_from_messages(msgs, 3) == Protinfo(guard=True)


def test_missing_device_raises():
    with pytest.raises(NetlinkError, match="Device with index 42 not found"):
        protinfo_from_messages([link_message(1, {IFLA_BRPORT_MODE: True})], 42)


def test_link_without_protinfo_attr_raises():
    bare = IfInfomsg(family=7, index=6).serialize()
    with pytest.raises(NetlinkError):
        protinfo_from_messages([bare], 6)