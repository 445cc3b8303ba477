"""Address, bridge, generic-netlink and route message headers."""

from __future__ import annotations

from dataclasses import dataclass, field

from netlinker.attrs import FAMILY_ALL, NetlinkStruct, _place, _rta_align

IFA_CACHEINFO = 6

# Bridge flags
BRIDGE_FLAGS_MASTER = 1
BRIDGE_FLAGS_SELF = 2

# Bridge management nested attributes
IFLA_BRIDGE_FLAGS = 0
IFLA_BRIDGE_MODE = 1
IFLA_BRIDGE_VLAN_INFO = 2

BRIDGE_VLAN_INFO_MASTER = 1 << 0
BRIDGE_VLAN_INFO_PVID = 1 << 1
BRIDGE_VLAN_INFO_UNTAGGED = 1 << 2
BRIDGE_VLAN_INFO_RANGE_BEGIN = 1 << 3
BRIDGE_VLAN_INFO_RANGE_END = 1 << 4

RTEXT_FILTER_VF = 1 << 0
RTEXT_FILTER_BRVLAN = 1 << 1
RTEXT_FILTER_BRVLAN_COMPRESSED = 1 << 2

# Generic netlink
GENL_ID_CTRL = 0x10
GENL_CTRL_VERSION = 2
GENL_CTRL_NAME = "nlctrl"
GENL_CTRL_CMD_GETFAMILY = 3

GENL_CTRL_ATTR_UNSPEC = 0
GENL_CTRL_ATTR_FAMILY_ID = 1
GENL_CTRL_ATTR_FAMILY_NAME = 2
GENL_CTRL_ATTR_VERSION = 3
GENL_CTRL_ATTR_HDRSIZE = 4
GENL_CTRL_ATTR_MAXATTR = 5
GENL_CTRL_ATTR_OPS = 6
GENL_CTRL_ATTR_MCAST_GROUPS = 7

GENL_CTRL_ATTR_OP_UNSPEC = 0
GENL_CTRL_ATTR_OP_ID = 1
GENL_CTRL_ATTR_OP_FLAGS = 2

GENL_ADMIN_PERM = 1 << 0
GENL_CMD_CAP_DO = 1 << 1
GENL_CMD_CAP_DUMP = 1 << 2
GENL_CMD_CAP_HASPOL = 1 << 3

GENL_CTRL_ATTR_MCAST_GRP_UNSPEC = 0
GENL_CTRL_ATTR_MCAST_GRP_NAME = 1
GENL_CTRL_ATTR_MCAST_GRP_ID = 2

GENL_GTP_VERSION = 0
GENL_GTP_NAME = "gtp"

GENL_GTP_CMD_NEWPDP = 0
GENL_GTP_CMD_DELPDP = 1
GENL_GTP_CMD_GETPDP = 2

GENL_GTP_ATTR_UNSPEC = 0
GENL_GTP_ATTR_LINK = 1
GENL_GTP_ATTR_VERSION = 2
GENL_GTP_ATTR_TID = 3
GENL_GTP_ATTR_PEER_ADDRESS = 4
GENL_GTP_ATTR_MS_ADDRESS = 5
GENL_GTP_ATTR_FLOW = 6
GENL_GTP_ATTR_NET_NS_FD = 7
GENL_GTP_ATTR_I_TEI = 8
GENL_GTP_ATTR_O_TEI = 9
GENL_GTP_ATTR_PAD = 10

# Route message defaults
RT_TABLE_MAIN = 254
RT_SCOPE_UNIVERSE = 0
RT_SCOPE_NOWHERE = 255
RTPROT_BOOT = 3
RTN_UNICAST = 1


@dataclass
class IfAddrmsg(NetlinkStruct):
    """struct ifaddrmsg."""

    family: int = 0
    prefixlen: int = 0
    flags: int = 0
    scope: int = 0
    index: int = 0

    _layout = ("B", "B", "B", "B", "I")


@dataclass
class IfaCacheInfo(NetlinkStruct):
    """struct ifa_cacheinfo; timestamps are in hundredths of seconds."""

    ifa_prefered: int = 0
    ifa_valid: int = 0
    cstamp: int = 0
    tstamp: int = 0

    _layout = ("I", "I", "I", "I")


@dataclass
class BridgeVlanInfo(NetlinkStruct):
    """struct bridge_vlan_info."""

    flags: int = 0
    vid: int = 0

    _layout = ("H", "H")

    def port_vid(self) -> bool:
        return bool(self.flags & BRIDGE_VLAN_INFO_PVID)

    def egress_untag(self) -> bool:
        return bool(self.flags & BRIDGE_VLAN_INFO_UNTAGGED)

    def __str__(self) -> str:
        return f"{{Flags:{self.flags} Vid:{self.vid}}}"


@dataclass
class Genlmsg(NetlinkStruct):
    """Generic netlink header."""

    command: int = 0
    version: int = 0
    reserved: int = 0

    _layout = ("B", "B", "H")


@dataclass
class RtMsg(NetlinkStruct):
    """struct rtmsg."""

    family: int = 0
    dst_len: int = 0
    src_len: int = 0
    tos: int = 0
    table: int = 0
    protocol: int = 0
    scope: int = 0
    route_type: int = 0
    flags: int = 0

    _layout = ("B", "B", "B", "B", "B", "B", "B", "B", "I")


def new_rt_msg() -> RtMsg:
    return RtMsg(
        table=RT_TABLE_MAIN,
        scope=RT_SCOPE_UNIVERSE,
        protocol=RTPROT_BOOT,
        route_type=RTN_UNICAST,
    )


def new_rt_del_msg() -> RtMsg:
    return RtMsg(table=RT_TABLE_MAIN, scope=RT_SCOPE_NOWHERE)


@dataclass
class RtNexthop(NetlinkStruct):
    """struct rtnexthop followed by nested attributes."""

    length: int = 0
    flags: int = 0
    hops: int = 0
    ifindex: int = 0
    children: list = field(default_factory=list)

    _layout = ("H", "B", "B", "i")

    def __len__(self) -> int:
        if not self.children:
            return self.size
        total = sum(_rta_align(len(child)) for child in self.children)
        return _rta_align(total + self.size)

    def serialize(self) -> bytes:
        length = len(self)
        self.length = length & 0xFFFF
        buf = bytearray(length)
        _place(buf, 0, super().serialize())
        offset = _rta_align(self.size)
        for child in self.children:
            chunk = child.serialize()
            _place(buf, offset, chunk)
            offset += _rta_align(len(chunk))
        return bytes(buf)


@dataclass
class RtGenMsg:
    """struct rtgenmsg, padded to attribute alignment."""

    family: int = FAMILY_ALL

    def __len__(self) -> int:
        return _rta_align(1)

    def serialize(self) -> bytes:
        out = bytearray(len(self))
        out[0] = self.family
        return bytes(out)

    @classmethod
    def deserialize(cls, b: bytes) -> "RtGenMsg":
        if not b:
            raise ValueError("RtGenMsg needs at least 1 byte")
        return cls(family=b[0])