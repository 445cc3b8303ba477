"""Bridge port flags (protinfo) of a link."""

from __future__ import annotations

from dataclasses import dataclass, fields

from netlinker.attrs import IfInfomsg, RouteAttr, parse_route_attr
from netlinker.linkinfo import (
    IFLA_BRPORT_FAST_LEAVE,
    IFLA_BRPORT_GUARD,
    IFLA_BRPORT_LEARNING,
    IFLA_BRPORT_MODE,
    IFLA_BRPORT_PROTECT,
    IFLA_BRPORT_PROXYARP,
    IFLA_BRPORT_PROXYARP_WIFI,
    IFLA_BRPORT_UNICAST_FLOOD,
    NLA_F_NESTED,
)
from netlinker.request import (
    NETLINK_ROUTE,
    NLM_F_DUMP,
    NetlinkError,
    new_netlink_request,
)

AF_BRIDGE = 7
IFLA_PROTINFO = 12
RTM_GETLINK = 18

_FLAG_NAMES = {
    "hairpin": "Hairpin",
    "guard": "Guard",
    "fast_leave": "FastLeave",
    "root_block": "RootBlock",
    "learning": "Learning",
    "flood": "Flood",
    "proxy_arp": "ProxyArp",
    "proxy_arp_wifi": "ProxyArpWiFi",
}

_ATTR_FIELDS = {
    IFLA_BRPORT_MODE: "hairpin",
    IFLA_BRPORT_GUARD: "guard",
    IFLA_BRPORT_FAST_LEAVE: "fast_leave",
    IFLA_BRPORT_PROTECT: "root_block",
    IFLA_BRPORT_LEARNING: "learning",
    IFLA_BRPORT_UNICAST_FLOOD: "flood",
    IFLA_BRPORT_PROXYARP: "proxy_arp",
    IFLA_BRPORT_PROXYARP_WIFI: "proxy_arp_wifi",
}


@dataclass
class Protinfo:
    """Bridge port flags as reported by the kernel."""

    hairpin: bool = False
    guard: bool = False
    fast_leave: bool = False
    root_block: bool = False
    learning: bool = False
    flood: bool = False
    proxy_arp: bool = False
    proxy_arp_wifi: bool = False

    def __str__(self) -> str:
        return " ".join(
            _FLAG_NAMES[f.name] for f in fields(self) if getattr(self, f.name)
        )


def bool_to_byte(x: bool) -> bytes:
    return b"\x01" if x else b"\x00"


def byte_to_bool(x: int) -> bool:
    return x != 0


def parse_protinfo(infos: list[RouteAttr]) -> Protinfo:
    """Build Protinfo from the nested bridge port attributes."""
    pi = Protinfo()
    for info in infos:
        name = _ATTR_FIELDS.get(info.attr_type)
        if name is not None:
            if not info.value:
                raise ValueError(f"empty value for bridge port attribute {info.attr_type}")
            setattr(pi, name, byte_to_bool(info.value[0]))
    return pi


def protinfo_from_messages(msgs, link_index: int) -> Protinfo:
    """Find the protinfo of ``link_index`` among link dump payloads."""
    for payload in msgs:
        header = IfInfomsg.deserialize(payload)
        if header.index != link_index:
            continue
        for attr in parse_route_attr(payload[len(header):]):
            if attr.attr_type != IFLA_PROTINFO | NLA_F_NESTED:
                continue
            return parse_protinfo(parse_route_attr(attr.value))
    raise NetlinkError(f"Device with index {link_index} not found")


def link_get_protinfo(link_index: int) -> Protinfo:
    """Query the kernel for the bridge port flags of a link."""
    req = new_netlink_request(RTM_GETLINK, NLM_F_DUMP)
    req.add_data(IfInfomsg(family=AF_BRIDGE))
    msgs = req.execute(NETLINK_ROUTE, 0)
    return protinfo_from_messages(msgs, link_index)