"""Netlink attribute encoding, byte-order helpers and the base for fixed structs."""

from __future__ import annotations

import dataclasses
import ipaddress
import struct
import sys
from dataclasses import dataclass, field
from typing import Any, ClassVar

# Address families
FAMILY_ALL = 0
FAMILY_V4 = 2
FAMILY_V6 = 10
AF_MPLS = 28
FAMILY_MPLS = AF_MPLS

# Larger than the default page-sized buffer so that verbose replies fit.
RECEIVE_BUFFER_SIZE = 65536

RTA_ALIGNTO = 4
SIZEOF_RTATTR = 4

# Rule attributes
FRA_UNSPEC = 0
FRA_DST = 1
FRA_SRC = 2
FRA_IIFNAME = 3
FRA_GOTO = 4
FRA_UNUSED2 = 5
FRA_PRIORITY = 6
FRA_UNUSED3 = 7
FRA_UNUSED4 = 8
FRA_UNUSED5 = 9
FRA_FWMARK = 10
FRA_FLOW = 11
FRA_TUN_ID = 12
FRA_SUPPRESS_IFGROUP = 13
FRA_SUPPRESS_PREFIXLEN = 14
FRA_TABLE = 15
FRA_FWMASK = 16
FRA_OIFNAME = 17

# Rule actions
FR_ACT_UNSPEC = 0
FR_ACT_TO_TBL = 1
FR_ACT_GOTO = 2
FR_ACT_NOP = 3
FR_ACT_RES3 = 4
FR_ACT_RES4 = 5
FR_ACT_BLACKHOLE = 6
FR_ACT_UNREACHABLE = 7
FR_ACT_PROHIBIT = 8

# Socket diagnostics
SOCK_DIAG_BY_FAMILY = 20
TCPDIAG_NOCOOKIE = 0xFFFFFFFF

RTA_NEWDST = 0x13
RTA_ENCAP_TYPE = 0x15
RTA_ENCAP = 0x16

MPLS_IPTUNNEL_UNSPEC = 0
MPLS_IPTUNNEL_DST = 1

# Lightweight tunnel encapsulation types
LWTUNNEL_ENCAP_NONE = 0
LWTUNNEL_ENCAP_MPLS = 1
LWTUNNEL_ENCAP_IP = 2
LWTUNNEL_ENCAP_ILA = 3
LWTUNNEL_ENCAP_IP6 = 4
LWTUNNEL_ENCAP_SEG6 = 5
LWTUNNEL_ENCAP_BPF = 6
LWTUNNEL_ENCAP_SEG6_LOCAL = 7

# Routing header types
IPV6_SRCRT_STRICT = 0x01
IPV6_SRCRT_TYPE_0 = 0
IPV6_SRCRT_TYPE_2 = 2
IPV6_SRCRT_TYPE_4 = 4

_NATIVE = "<" if sys.byteorder == "little" else ">"
_RTATTR_HDR = struct.Struct(_NATIVE + "HH")


def _rta_align(length: int) -> int:
    return (length + RTA_ALIGNTO - 1) & ~(RTA_ALIGNTO - 1)


def _place(buf: bytearray, offset: int, chunk: bytes) -> None:
    """Copy ``chunk`` into ``buf`` at ``offset``, never growing ``buf``."""
    end = min(len(buf), offset + len(chunk))
    if end > offset:
        buf[offset:end] = chunk[: end - offset]


class NetlinkStruct:
    """Base for fixed-layout kernel structs in native byte order.

    Subclasses are dataclasses whose leading fields match ``_layout``; each
    layout entry is either a ``struct`` format code or a nested struct class.
    """

    _layout: ClassVar[tuple[Any, ...]] = ()
    _codecs: ClassVar[tuple[Any, ...]] = ()
    size: ClassVar[int] = 0

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        codecs = tuple(
            struct.Struct(_NATIVE + spec) if isinstance(spec, str) else spec
            for spec in cls._layout
        )
        cls._codecs = codecs
        cls.size = sum(codec.size for codec in codecs)

    def __len__(self) -> int:
        return self.size

    def _layout_values(self) -> list[Any]:
        names = [f.name for f in dataclasses.fields(self)][: len(self._codecs)]
        return [getattr(self, name) for name in names]

    def serialize(self) -> bytes:
        out = bytearray()
        for codec, value in zip(self._codecs, self._layout_values()):
            if isinstance(codec, struct.Struct):
                out += codec.pack(value)
            else:
                out += value.serialize()
        return bytes(out)

    @classmethod
    def deserialize(cls, b: bytes):
        if len(b) < cls.size:
            raise ValueError(
                f"{cls.__name__} needs {cls.size} bytes, got {len(b)}"
            )
        values = []
        offset = 0
        for codec in cls._codecs:
            if isinstance(codec, struct.Struct):
                (value,) = codec.unpack_from(b, offset)
            else:
                value = codec.deserialize(bytes(b[offset : offset + codec.size]))
            values.append(value)
            offset += codec.size
        return cls(*values)


@dataclass(frozen=True)
class RouteAttr:
    """A parsed route attribute: its raw type and its payload."""

    attr_type: int
    value: bytes


@dataclass
class RtAttr:
    """A route attribute to be sent, with optional payload and children."""

    attr_type: int
    data: bytes | None = None
    children: list = field(default_factory=list)

    def add_rt_attr(self, attr_type: int, data: bytes | None) -> "RtAttr":
        attr = RtAttr(attr_type, data)
        self.children.append(attr)
        return attr

    def add_child(self, child) -> None:
        self.children.append(child)

    def __len__(self) -> int:
        data_len = len(self.data) if self.data is not None else 0
        if not self.children:
            return SIZEOF_RTATTR + data_len
        total = sum(_rta_align(len(child)) for child in self.children)
        return _rta_align(total + SIZEOF_RTATTR + data_len)

    def serialize(self) -> bytes:
        length = len(self)
        buf = bytearray(_rta_align(length))
        offset = SIZEOF_RTATTR
        if self.data is not None:
            _place(buf, offset, self.data)
            offset += _rta_align(len(self.data))
        for child in self.children:
            chunk = child.serialize()
            _place(buf, offset, chunk)
            offset += _rta_align(len(chunk))
        _RTATTR_HDR.pack_into(buf, 0, length & 0xFFFF, self.attr_type & 0xFFFF)
        return bytes(buf)


_ENCAP_TYPES = {
    0: "generic",
    1: "ether",
    2: "eether",
    3: "ax25",
    4: "pronet",
    5: "chaos",
    6: "ieee802",
    7: "arcnet",
    8: "atalk",
    15: "dlci",
    19: "atm",
    23: "metricom",
    24: "ieee1394",
    32: "infiniband",
    256: "slip",
    257: "cslip",
    258: "slip6",
    259: "cslip6",
    260: "rsrvd",
    264: "adapt",
    270: "rose",
    271: "x25",
    272: "hwx25",
    512: "ppp",
    513: "hdlc",
    516: "lapb",
    517: "ddcmp",
    518: "rawhdlc",
    768: "ipip",
    769: "tunnel6",
    770: "frad",
    771: "skip",
    772: "loopback",
    773: "ltalk",
    774: "fddi",
    775: "bif",
    776: "sit",
    777: "ip/ddp",
    778: "gre",
    779: "pimreg",
    780: "hippi",
    781: "ash",
    782: "econet",
    783: "irda",
    784: "fcpp",
    785: "fcal",
    786: "fcpl",
    **{787 + n: f"fcfb{n}" for n in range(13)},
    800: "tr",
    801: "ieee802.11",
    802: "ieee802.11/prism",
    803: "ieee802.11/radiotap",
    804: "ieee802.15.4",
    65534: "none",
    65535: "void",
}


@dataclass
class IfInfomsg(NetlinkStruct):
    """struct ifinfomsg: link header, also used for list requests."""

    family: int = 0
    pad: int = 0
    if_type: int = 0
    index: int = 0
    flags: int = 0
    change: int = 0

    _layout = ("B", "B", "H", "i", "I", "I")

    def encap_type(self) -> str:
        return _ENCAP_TYPES.get(self.if_type, f"unknown{self.if_type}")


def new_if_infomsg_child(parent: RtAttr, family: int) -> IfInfomsg:
    msg = IfInfomsg(family=family)
    parent.add_child(msg)
    return msg


def get_ip_family(ip) -> int:
    """Return FAMILY_V4 or FAMILY_V6 for an address given as text, object or bytes."""
    if isinstance(ip, (bytes, bytearray)):
        raw = bytes(ip)
    else:
        raw = ipaddress.ip_address(ip).packed
    if len(raw) <= 4:
        return FAMILY_V4
    if len(raw) == 16 and raw[:10] == bytes(10) and raw[10:12] == b"\xff\xff":
        return FAMILY_V4
    return FAMILY_V6


def native_endian() -> str:
    return sys.byteorder


def swap16(i: int) -> int:
    if sys.byteorder == "big":
        return i
    return ((i & 0xFF00) >> 8) | ((i & 0xFF) << 8)


def swap32(i: int) -> int:
    if sys.byteorder == "big":
        return i
    return (
        ((i & 0xFF000000) >> 24)
        | ((i & 0xFF0000) >> 8)
        | ((i & 0xFF00) << 8)
        | ((i & 0xFF) << 24)
    )


def htonl(val: int) -> bytes:
    return val.to_bytes(4, "big")


def htons(val: int) -> bytes:
    return val.to_bytes(2, "big")


def ntohl(buf: bytes) -> int:
    return int.from_bytes(buf[:4], "big")


def ntohs(buf: bytes) -> int:
    return int.from_bytes(buf[:2], "big")


def _as_bytes(s) -> bytes:
    return s.encode() if isinstance(s, str) else bytes(s)


def zero_terminated(s) -> bytes:
    return _as_bytes(s) + b"\x00"


def non_zero_terminated(s) -> bytes:
    return _as_bytes(s)


def bytes_to_string(b: bytes) -> str:
    """Decode a NUL-terminated byte string."""
    end = bytes(b).find(b"\x00")
    if end < 0:
        raise ValueError("byte string is not NUL-terminated")
    return bytes(b[:end]).decode()


def uint8_attr(v: int) -> bytes:
    return struct.pack("B", v)


def uint16_attr(v: int) -> bytes:
    return struct.pack(_NATIVE + "H", v)


def uint32_attr(v: int) -> bytes:
    return struct.pack(_NATIVE + "I", v)


def uint64_attr(v: int) -> bytes:
    return struct.pack(_NATIVE + "Q", v)


def parse_route_attr(b: bytes) -> list[RouteAttr]:
    """Split a buffer into its route attributes."""
    data = bytes(b)
    attrs = []
    offset = 0
    while len(data) - offset >= SIZEOF_RTATTR:
        length, attr_type = _RTATTR_HDR.unpack_from(data, offset)
        if length < SIZEOF_RTATTR or length > len(data) - offset:
            raise ValueError(f"invalid route attribute length {length}")
        attrs.append(RouteAttr(attr_type, data[offset + SIZEOF_RTATTR : offset + length]))
        offset += _rta_align(length)
    return attrs