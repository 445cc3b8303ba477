"""IPsec (xfrm) netlink constants and kernel structs."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field
from typing import ClassVar

from netlinker.attrs import FAMILY_V4, NetlinkStruct, _NATIVE, _place, get_ip_family

# Infinity for packet and byte counts
XFRM_INF = 0xFFFFFFFFFFFFFFFF

# Message types
XFRM_MSG_BASE = 0x10
XFRM_MSG_NEWSA = 0x10
XFRM_MSG_DELSA = 0x11
XFRM_MSG_GETSA = 0x12
XFRM_MSG_NEWPOLICY = 0x13
XFRM_MSG_DELPOLICY = 0x14
XFRM_MSG_GETPOLICY = 0x15
XFRM_MSG_ALLOCSPI = 0x16
XFRM_MSG_ACQUIRE = 0x17
XFRM_MSG_EXPIRE = 0x18
XFRM_MSG_UPDPOLICY = 0x19
XFRM_MSG_UPDSA = 0x1A
XFRM_MSG_POLEXPIRE = 0x1B
XFRM_MSG_FLUSHSA = 0x1C
XFRM_MSG_FLUSHPOLICY = 0x1D
XFRM_MSG_NEWAE = 0x1E
XFRM_MSG_GETAE = 0x1F
XFRM_MSG_REPORT = 0x20
XFRM_MSG_MIGRATE = 0x21
XFRM_MSG_NEWSADINFO = 0x22
XFRM_MSG_GETSADINFO = 0x23
XFRM_MSG_NEWSPDINFO = 0x24
XFRM_MSG_GETSPDINFO = 0x25
XFRM_MSG_MAPPING = 0x26
XFRM_MSG_MAX = 0x26
XFRM_NR_MSGTYPES = 0x17

# Attribute types
XFRMA_UNSPEC = 0
XFRMA_ALG_AUTH = 1
XFRMA_ALG_CRYPT = 2
XFRMA_ALG_COMP = 3
XFRMA_ENCAP = 4
XFRMA_TMPL = 5
XFRMA_SA = 6
XFRMA_POLICY = 7
XFRMA_SEC_CTX = 8
XFRMA_LTIME_VAL = 9
XFRMA_REPLAY_VAL = 10
XFRMA_REPLAY_THRESH = 11
XFRMA_ETIMER_THRESH = 12
XFRMA_SRCADDR = 13
XFRMA_COADDR = 14
XFRMA_LASTUSED = 15
XFRMA_POLICY_TYPE = 16
XFRMA_MIGRATE = 17
XFRMA_ALG_AEAD = 18
XFRMA_KMADDRESS = 19
XFRMA_ALG_AUTH_TRUNC = 20
XFRMA_MARK = 21
XFRMA_TFCPAD = 22
XFRMA_REPLAY_ESN_VAL = 23
XFRMA_SA_EXTRA_FLAGS = 24
XFRMA_PROTO = 25
XFRMA_ADDRESS_FILTER = 26
XFRMA_PAD = 27
XFRMA_OFFLOAD_DEV = 28
XFRMA_SET_MARK = 29
XFRMA_SET_MARK_MASK = 30
XFRMA_IF_ID = 31
XFRMA_MAX = 31

SIZEOF_XFRM_ADDRESS = 0x10
SIZEOF_XFRM_SELECTOR = 0x38
SIZEOF_XFRM_LIFETIME_CFG = 0x40
SIZEOF_XFRM_LIFETIME_CUR = 0x20
SIZEOF_XFRM_ID = 0x18
SIZEOF_XFRM_MARK = 0x08

SIZEOF_XFRM_USER_EXPIRE = 0xE8

SIZEOF_XFRM_USERPOLICY_ID = 0x40
SIZEOF_XFRM_USERPOLICY_INFO = 0xA8
SIZEOF_XFRM_USER_TMPL = 0x40

SIZEOF_XFRM_USERSA_ID = 0x18
SIZEOF_XFRM_STATS = 0x0C
SIZEOF_XFRM_USERSA_INFO = 0xE0
SIZEOF_XFRM_USER_SPI_INFO = 0xE8
SIZEOF_XFRM_ALGO = 0x44
SIZEOF_XFRM_ALGO_AUTH = 0x48
SIZEOF_XFRM_ALGO_AEAD = 0x48
SIZEOF_XFRM_ENCAP_TMPL = 0x18
SIZEOF_XFRM_USERSA_FLUSH = 0x8
SIZEOF_XFRM_REPLAY_STATE_ESN = 0x18

# Netlink groups
XFRMNLGRP_NONE = 0x0
XFRMNLGRP_ACQUIRE = 0x1
XFRMNLGRP_EXPIRE = 0x2
XFRMNLGRP_SA = 0x3
XFRMNLGRP_POLICY = 0x4
XFRMNLGRP_AEVENTS = 0x5
XFRMNLGRP_REPORT = 0x6
XFRMNLGRP_MIGRATE = 0x7
XFRMNLGRP_MAPPING = 0x8
XFRMNLGRP_MAX = 0x9

# State flags
XFRM_STATE_NOECN = 1
XFRM_STATE_DECAP_DSCP = 2
XFRM_STATE_NOPMTUDISC = 4
XFRM_STATE_WILDRECV = 8
XFRM_STATE_ICMP = 16
XFRM_STATE_AF_UNSPEC = 32
XFRM_STATE_ALIGN4 = 64
XFRM_STATE_ESN = 128

_U32 = struct.Struct(_NATIVE + "I")


@dataclass
class XfrmAddress(NetlinkStruct):
    """xfrm_address_t: an IPv4 address in the first 4 bytes, or a full IPv6 one."""

    raw: bytes = bytes(SIZEOF_XFRM_ADDRESS)

    _layout = ("16s",)

    def __post_init__(self) -> None:
        self.raw = bytes(self.raw)
        if len(self.raw) != SIZEOF_XFRM_ADDRESS:
            raise ValueError(f"xfrm address must be 16 bytes, got {len(self.raw)}")

    def to_ip(self) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        if self.raw[4:16] == bytes(12):
            return ipaddress.IPv4Address(self.raw[:4])
        return ipaddress.IPv6Address(self.raw)

    def to_ip_network(self, prefixlen: int):
        """Return the address together with a prefix length, unmasked."""
        return ipaddress.ip_interface((str(self.to_ip()), prefixlen))

    @classmethod
    def from_ip(cls, ip) -> "XfrmAddress":
        """Build from text, an address object or raw bytes; short input gives zeros."""
        if ip is None:
            raw = b""
        elif isinstance(ip, (bytes, bytearray)):
            raw = bytes(ip)
        else:
            raw = ipaddress.ip_address(ip).packed
        if len(raw) < 4:
            return cls()
        if get_ip_family(raw) == FAMILY_V4:
            return cls(raw[-4:] + bytes(12))
        if len(raw) != 16:
            raise ValueError(f"invalid address length {len(raw)}")
        return cls(raw)


def _address() -> XfrmAddress:
    return field(default_factory=XfrmAddress)


@dataclass
class XfrmSelector(NetlinkStruct):
    """struct xfrm_selector; ports and masks are kept as stored (big endian)."""

    daddr: XfrmAddress = _address()
    saddr: XfrmAddress = _address()
    dport: int = 0
    dport_mask: int = 0
    sport: int = 0
    sport_mask: int = 0
    family: int = 0
    prefixlen_d: int = 0
    prefixlen_s: int = 0
    proto: int = 0
    pad: bytes = bytes(3)
    ifindex: int = 0
    user: int = 0

    _layout = (XfrmAddress, XfrmAddress, "H", "H", "H", "H", "H", "B", "B", "B", "3s", "i", "I")


@dataclass
class XfrmLifetimeCfg(NetlinkStruct):
    """struct xfrm_lifetime_cfg."""

    soft_byte_limit: int = 0
    hard_byte_limit: int = 0
    soft_packet_limit: int = 0
    hard_packet_limit: int = 0
    soft_add_expires_seconds: int = 0
    hard_add_expires_seconds: int = 0
    soft_use_expires_seconds: int = 0
    hard_use_expires_seconds: int = 0

    _layout = ("Q",) * 8


@dataclass
class XfrmLifetimeCur(NetlinkStruct):
    """struct xfrm_lifetime_cur."""

    bytes: int = 0
    packets: int = 0
    add_time: int = 0
    use_time: int = 0

    _layout = ("Q",) * 4


@dataclass
class XfrmId(NetlinkStruct):
    """struct xfrm_id; ``spi`` is kept as stored (big endian)."""

    daddr: XfrmAddress = _address()
    spi: int = 0
    proto: int = 0
    pad: bytes = bytes(3)

    _layout = (XfrmAddress, "I", "B", "3s")


@dataclass
class XfrmMark(NetlinkStruct):
    """struct xfrm_mark."""

    value: int = 0
    mask: int = 0

    _layout = ("I", "I")


@dataclass
class XfrmUsersaId(NetlinkStruct):
    """struct xfrm_usersa_id."""

    daddr: XfrmAddress = _address()
    spi: int = 0
    family: int = 0
    proto: int = 0
    pad: int = 0

    _layout = (XfrmAddress, "I", "H", "B", "B")


@dataclass
class XfrmStats(NetlinkStruct):
    """struct xfrm_stats."""

    replay_window: int = 0
    replay: int = 0
    integrity_failed: int = 0

    _layout = ("I", "I", "I")


@dataclass
class XfrmUsersaInfo(NetlinkStruct):
    """struct xfrm_usersa_info."""

    sel: XfrmSelector = field(default_factory=XfrmSelector)
    id: XfrmId = field(default_factory=XfrmId)
    saddr: XfrmAddress = _address()
    lft: XfrmLifetimeCfg = field(default_factory=XfrmLifetimeCfg)
    curlft: XfrmLifetimeCur = field(default_factory=XfrmLifetimeCur)
    stats: XfrmStats = field(default_factory=XfrmStats)
    seq: int = 0
    reqid: int = 0
    family: int = 0
    mode: int = 0
    replay_window: int = 0
    flags: int = 0
    pad: bytes = bytes(7)

    _layout = (
        XfrmSelector,
        XfrmId,
        XfrmAddress,
        XfrmLifetimeCfg,
        XfrmLifetimeCur,
        XfrmStats,
        "I",
        "I",
        "H",
        "B",
        "B",
        "B",
        "7s",
    )


@dataclass
class XfrmUserSpiInfo(NetlinkStruct):
    """struct xfrm_userspi_info."""

    xfrm_usersa_info: XfrmUsersaInfo = field(default_factory=XfrmUsersaInfo)
    min: int = 0
    max: int = 0

    _layout = (XfrmUsersaInfo, "I", "I")


@dataclass
class XfrmUserExpire(NetlinkStruct):
    """struct xfrm_user_expire."""

    xfrm_usersa_info: XfrmUsersaInfo = field(default_factory=XfrmUsersaInfo)
    hard: int = 0
    pad: bytes = bytes(7)

    _layout = (XfrmUsersaInfo, "B", "7s")


@dataclass
class XfrmUserpolicyId(NetlinkStruct):
    """struct xfrm_userpolicy_id."""

    sel: XfrmSelector = field(default_factory=XfrmSelector)
    index: int = 0
    dir: int = 0
    pad: bytes = bytes(3)

    _layout = (XfrmSelector, "I", "B", "3s")


@dataclass
class XfrmUserpolicyInfo(NetlinkStruct):
    """struct xfrm_userpolicy_info."""

    sel: XfrmSelector = field(default_factory=XfrmSelector)
    lft: XfrmLifetimeCfg = field(default_factory=XfrmLifetimeCfg)
    curlft: XfrmLifetimeCur = field(default_factory=XfrmLifetimeCur)
    priority: int = 0
    index: int = 0
    dir: int = 0
    action: int = 0
    flags: int = 0
    share: int = 0
    pad: bytes = bytes(4)

    _layout = (
        XfrmSelector,
        XfrmLifetimeCfg,
        XfrmLifetimeCur,
        "I",
        "I",
        "B",
        "B",
        "B",
        "B",
        "4s",
    )


@dataclass
class XfrmUserTmpl(NetlinkStruct):
    """struct xfrm_user_tmpl."""

    xfrm_id: XfrmId = field(default_factory=XfrmId)
    family: int = 0
    pad1: bytes = bytes(2)
    saddr: XfrmAddress = _address()
    reqid: int = 0
    mode: int = 0
    share: int = 0
    optional: int = 0
    pad2: int = 0
    aalgos: int = 0
    ealgos: int = 0
    calgos: int = 0

    _layout = (XfrmId, "H", "2s", XfrmAddress, "I", "B", "B", "B", "B", "I", "I", "I")


def _key_span(header: int, key_len_bits: int) -> int:
    return header + key_len_bits // 8


def _check_header(name: str, b: bytes, header: int) -> None:
    if len(b) < header:
        raise ValueError(f"{name} needs at least {header} bytes, got {len(b)}")


def _check_key(name: str, b: bytes, end: int) -> None:
    if len(b) < end:
        raise ValueError(f"{name} key needs {end} bytes, got {len(b)}")


@dataclass
class XfrmAlgo:
    """struct xfrm_algo followed by its key; key length is in bits."""

    alg_name: bytes = bytes(64)
    alg_key_len: int = 0
    alg_key: bytes = b""

    size: ClassVar[int] = SIZEOF_XFRM_ALGO

    def __len__(self) -> int:
        return _key_span(self.size, self.alg_key_len)

    def serialize(self) -> bytes:
        buf = bytearray(len(self))
        _place(buf, 0, bytes(self.alg_name)[:64])
        _U32.pack_into(buf, 64, self.alg_key_len)
        _place(buf, 68, bytes(self.alg_key))
        return bytes(buf)

    @classmethod
    def deserialize(cls, b: bytes) -> "XfrmAlgo":
        b = bytes(b)
        _check_header(cls.__name__, b, cls.size)
        (key_len,) = _U32.unpack_from(b, 64)
        end = _key_span(cls.size, key_len)
        _check_key(cls.__name__, b, end)
        return cls(b[:64], key_len, b[68:end])


@dataclass
class XfrmAlgoAuth:
    """struct xfrm_algo_auth followed by its key; lengths are in bits."""

    alg_name: bytes = bytes(64)
    alg_key_len: int = 0
    alg_trunc_len: int = 0
    alg_key: bytes = b""

    size: ClassVar[int] = SIZEOF_XFRM_ALGO_AUTH

    def __len__(self) -> int:
        return _key_span(self.size, self.alg_key_len)

    def serialize(self) -> bytes:
        buf = bytearray(len(self))
        _place(buf, 0, bytes(self.alg_name)[:64])
        _U32.pack_into(buf, 64, self.alg_key_len)
        _U32.pack_into(buf, 68, self.alg_trunc_len)
        _place(buf, 72, bytes(self.alg_key))
        return bytes(buf)

    @classmethod
    def deserialize(cls, b: bytes) -> "XfrmAlgoAuth":
        b = bytes(b)
        _check_header(cls.__name__, b, cls.size)
        (key_len,) = _U32.unpack_from(b, 64)
        (trunc_len,) = _U32.unpack_from(b, 68)
        end = _key_span(cls.size, key_len)
        _check_key(cls.__name__, b, end)
        return cls(b[:64], key_len, trunc_len, b[72:end])


@dataclass
class XfrmAlgoAEAD:
    """struct xfrm_algo_aead followed by its key; lengths are in bits."""

    alg_name: bytes = bytes(64)
    alg_key_len: int = 0
    alg_icv_len: int = 0
    alg_key: bytes = b""

    size: ClassVar[int] = SIZEOF_XFRM_ALGO_AEAD

    def __len__(self) -> int:
        return _key_span(self.size, self.alg_key_len)

    def serialize(self) -> bytes:
        buf = bytearray(len(self))
        _place(buf, 0, bytes(self.alg_name)[:64])
        _U32.pack_into(buf, 64, self.alg_key_len)
        _U32.pack_into(buf, 68, self.alg_icv_len)
        _place(buf, 72, bytes(self.alg_key))
        return bytes(buf)

    @classmethod
    def deserialize(cls, b: bytes) -> "XfrmAlgoAEAD":
        b = bytes(b)
        _check_header(cls.__name__, b, cls.size)
        (key_len,) = _U32.unpack_from(b, 64)
        (icv_len,) = _U32.unpack_from(b, 68)
        end = _key_span(cls.size, key_len)
        _check_key(cls.__name__, b, end)
        return cls(b[:64], key_len, icv_len, b[72:end])


@dataclass
class XfrmEncapTmpl(NetlinkStruct):
    """struct xfrm_encap_tmpl; ports are kept as stored (big endian)."""

    encap_type: int = 0
    encap_sport: int = 0
    encap_dport: int = 0
    pad: bytes = bytes(2)
    encap_oa: XfrmAddress = _address()

    _layout = ("H", "H", "H", "2s", XfrmAddress)


@dataclass
class XfrmUsersaFlush(NetlinkStruct):
    """struct xfrm_usersa_flush, padded to its 8-byte wire size."""

    proto: int = 0
    pad: bytes = bytes(7)

    _layout = ("B", "7s")


@dataclass
class XfrmReplayStateEsn(NetlinkStruct):
    """struct xfrm_replay_state_esn; the bitmap is set by the kernel and not sent."""

    bmp_len: int = 0
    oseq: int = 0
    seq: int = 0
    oseq_hi: int = 0
    seq_hi: int = 0
    replay_window: int = 0
    bmp: list[int] = field(default_factory=list)

    _layout = ("I",) * 6