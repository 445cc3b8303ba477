"""Traffic-control netlink constants and kernel structs."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from netlinker.attrs import NetlinkStruct, _place

# Link layer
LINKLAYER_UNSPEC = 0
LINKLAYER_ETHERNET = 1
LINKLAYER_ATM = 2

# ATM
ATM_CELL_PAYLOAD = 48
ATM_CELL_SIZE = 53

TC_LINKLAYER_MASK = 0x0F

# Police
TCA_POLICE_UNSPEC = 0
TCA_POLICE_TBF = 1
TCA_POLICE_RATE = 2
TCA_POLICE_PEAKRATE = 3
TCA_POLICE_AVRATE = 4
TCA_POLICE_RESULT = 5
TCA_POLICE_MAX = TCA_POLICE_RESULT

# Message attribute types
TCA_UNSPEC = 0
TCA_KIND = 1
TCA_OPTIONS = 2
TCA_STATS = 3
TCA_XSTATS = 4
TCA_RATE = 5
TCA_FCNT = 6
TCA_STATS2 = 7
TCA_STAB = 8
TCA_MAX = TCA_STAB

TCA_ACT_TAB = 1
TCAA_MAX = 1

TCA_ACT_UNSPEC = 0
TCA_ACT_KIND = 1
TCA_ACT_OPTIONS = 2
TCA_ACT_INDEX = 3
TCA_ACT_STATS = 4
TCA_ACT_MAX = 5

TCA_PRIO_UNSPEC = 0
TCA_PRIO_MQ = 1
TCA_PRIO_MAX = TCA_PRIO_MQ

TCA_STATS_UNSPEC = 0
TCA_STATS_BASIC = 1
TCA_STATS_RATE_EST = 2
TCA_STATS_QUEUE = 3
TCA_STATS_APP = 4
TCA_STATS_MAX = TCA_STATS_APP

SIZEOF_TC_MSG = 0x14
SIZEOF_TC_ACTION_MSG = 0x04
SIZEOF_TC_PRIO_MAP = 0x14
SIZEOF_TC_RATE_SPEC = 0x0C
SIZEOF_TC_NETEM_QOPT = 0x18
SIZEOF_TC_NETEM_CORR = 0x0C
SIZEOF_TC_NETEM_REORDER = 0x08
SIZEOF_TC_NETEM_CORRUPT = 0x08
SIZEOF_TC_TBF_QOPT = 2 * SIZEOF_TC_RATE_SPEC + 0x0C
SIZEOF_TC_HTB_COPT = 2 * SIZEOF_TC_RATE_SPEC + 0x14
SIZEOF_TC_HTB_GLOB = 0x14
SIZEOF_TC_U32_KEY = 0x10
SIZEOF_TC_U32_SEL = 0x10  # without keys
SIZEOF_TC_GEN = 0x14
SIZEOF_TC_MIRRED = SIZEOF_TC_GEN + 0x08
SIZEOF_TC_POLICE = 2 * SIZEOF_TC_RATE_SPEC + 0x20

TC_PRIO_MAX = 15

TCA_TBF_UNSPEC = 0
TCA_TBF_PARMS = 1
TCA_TBF_RTAB = 2
TCA_TBF_PTAB = 3
TCA_TBF_RATE64 = 4
TCA_TBF_PRATE64 = 5
TCA_TBF_BURST = 6
TCA_TBF_PBURST = 7
TCA_TBF_MAX = TCA_TBF_PBURST

# Netem
TCA_NETEM_UNSPEC = 0
TCA_NETEM_CORR = 1
TCA_NETEM_DELAY_DIST = 2
TCA_NETEM_REORDER = 3
TCA_NETEM_CORRUPT = 4
TCA_NETEM_LOSS = 5
TCA_NETEM_RATE = 6
TCA_NETEM_ECN = 7
TCA_NETEM_RATE64 = 8
TCA_NETEM_MAX = TCA_NETEM_RATE64

TCA_HTB_UNSPEC = 0
TCA_HTB_PARMS = 1
TCA_HTB_INIT = 2
TCA_HTB_CTAB = 3
TCA_HTB_RTAB = 4
TCA_HTB_DIRECT_QLEN = 5
TCA_HTB_RATE64 = 6
TCA_HTB_CEIL64 = 7
TCA_HTB_MAX = TCA_HTB_CEIL64

TCA_U32_UNSPEC = 0
TCA_U32_CLASSID = 1
TCA_U32_HASH = 2
TCA_U32_LINK = 3
TCA_U32_DIVISOR = 4
TCA_U32_SEL = 5
TCA_U32_POLICE = 6
TCA_U32_ACT = 7
TCA_U32_INDEV = 8
TCA_U32_PCNT = 9
TCA_U32_MARK = 10
TCA_U32_MAX = TCA_U32_MARK

TC_U32_TERMINAL = 1 << 0
TC_U32_OFFSET = 1 << 1
TC_U32_VAROFFSET = 1 << 2
TC_U32_EAT = 1 << 3

TCA_ACT_GACT = 5

TCA_GACT_UNSPEC = 0
TCA_GACT_TM = 1
TCA_GACT_PARMS = 2
TCA_GACT_PROB = 3
TCA_GACT_MAX = TCA_GACT_PROB

TCA_ACT_BPF = 13

TCA_ACT_BPF_UNSPEC = 0
TCA_ACT_BPF_TM = 1
TCA_ACT_BPF_PARMS = 2
TCA_ACT_BPF_OPS_LEN = 3
TCA_ACT_BPF_OPS = 4
TCA_ACT_BPF_FD = 5
TCA_ACT_BPF_NAME = 6
TCA_ACT_BPF_MAX = TCA_ACT_BPF_NAME

TCA_BPF_FLAG_ACT_DIRECT = 1 << 0

TCA_BPF_UNSPEC = 0
TCA_BPF_ACT = 1
TCA_BPF_POLICE = 2
TCA_BPF_CLASSID = 3
TCA_BPF_OPS_LEN = 4
TCA_BPF_OPS = 5
TCA_BPF_FD = 6
TCA_BPF_NAME = 7
TCA_BPF_FLAGS = 8
TCA_BPF_MAX = TCA_BPF_FLAGS

TCA_ACT_MIRRED = 8

TCA_MIRRED_UNSPEC = 0
TCA_MIRRED_TM = 1
TCA_MIRRED_PARMS = 2
TCA_MIRRED_MAX = TCA_MIRRED_PARMS

TCA_FW_UNSPEC = 0
TCA_FW_CLASSID = 1
TCA_FW_POLICE = 2
TCA_FW_INDEV = 3
TCA_FW_ACT = 4
TCA_FW_MASK = 5
TCA_FW_MAX = TCA_FW_MASK

TCA_MATCHALL_UNSPEC = 0
TCA_MATCHALL_CLASSID = 1
TCA_MATCHALL_ACT = 2
TCA_MATCHALL_FLAGS = 3

TCA_FQ_UNSPEC = 0
TCA_FQ_PLIMIT = 1  # limit of total number of packets in queue
TCA_FQ_FLOW_PLIMIT = 2  # limit of packets per flow
TCA_FQ_QUANTUM = 3  # RR quantum
TCA_FQ_INITIAL_QUANTUM = 4  # RR quantum for new flow
TCA_FQ_RATE_ENABLE = 5  # enable/disable rate limiting
TCA_FQ_FLOW_DEFAULT_RATE = 6  # obsolete
TCA_FQ_FLOW_MAX_RATE = 7  # per flow max rate
TCA_FQ_BUCKETS_LOG = 8  # log2(number of buckets)
TCA_FQ_FLOW_REFILL_DELAY = 9  # flow credit refill delay in usec
TCA_FQ_ORPHAN_MASK = 10  # mask applied to orphaned skb hashes
TCA_FQ_LOW_RATE_THRESHOLD = 11  # per packet delay under this rate

TCA_FQ_CODEL_UNSPEC = 0
TCA_FQ_CODEL_TARGET = 1
TCA_FQ_CODEL_LIMIT = 2
TCA_FQ_CODEL_INTERVAL = 3
TCA_FQ_CODEL_ECN = 4
TCA_FQ_CODEL_FLOWS = 5
TCA_FQ_CODEL_QUANTUM = 6
TCA_FQ_CODEL_CE_THRESHOLD = 7
TCA_FQ_CODEL_DROP_BATCH_SIZE = 8
TCA_FQ_CODEL_MEMORY_LIMIT = 9

TCA_HFSC_UNSPEC = 0
TCA_HFSC_RSC = 1
TCA_HFSC_FSC = 2
TCA_HFSC_USC = 3


@dataclass
class TcMsg(NetlinkStruct):
    """struct tcmsg."""

    family: int = 0
    pad: bytes = bytes(3)
    ifindex: int = 0
    handle: int = 0
    parent: int = 0
    info: int = 0

    _layout = ("B", "3s", "i", "I", "I", "I")


@dataclass
class TcActionMsg(NetlinkStruct):
    """struct tcamsg."""

    family: int = 0
    pad: bytes = bytes(3)

    _layout = ("B", "3s")


@dataclass
class TcPrioMap(NetlinkStruct):
    """struct tc_prio_qopt: band count and the priority-to-band map."""

    bands: int = 0
    priomap: bytes = bytes(TC_PRIO_MAX + 1)

    _layout = ("i", f"{TC_PRIO_MAX + 1}s")


@dataclass
class TcRateSpec(NetlinkStruct):
    """struct tc_ratespec."""

    cell_log: int = 0
    linklayer: int = 0
    overhead: int = 0
    cell_align: int = 0
    mpu: int = 0
    rate: int = 0

    _layout = ("B", "B", "H", "h", "H", "I")


@dataclass
class TcNetemQopt(NetlinkStruct):
    """struct tc_netem_qopt."""

    latency: int = 0
    limit: int = 0
    loss: int = 0
    gap: int = 0
    duplicate: int = 0
    jitter: int = 0

    _layout = ("I",) * 6


@dataclass
class TcNetemCorr(NetlinkStruct):
    """struct tc_netem_corr."""

    delay_corr: int = 0
    loss_corr: int = 0
    dup_corr: int = 0

    _layout = ("I", "I", "I")


@dataclass
class TcNetemReorder(NetlinkStruct):
    """struct tc_netem_reorder."""

    probability: int = 0
    correlation: int = 0

    _layout = ("I", "I")


@dataclass
class TcNetemCorrupt(NetlinkStruct):
    """struct tc_netem_corrupt."""

    probability: int = 0
    correlation: int = 0

    _layout = ("I", "I")


@dataclass
class TcTbfQopt(NetlinkStruct):
    """struct tc_tbf_qopt."""

    rate: TcRateSpec = field(default_factory=TcRateSpec)
    peakrate: TcRateSpec = field(default_factory=TcRateSpec)
    limit: int = 0
    buffer: int = 0
    mtu: int = 0

    _layout = (TcRateSpec, TcRateSpec, "I", "I", "I")


@dataclass
class TcHtbCopt(NetlinkStruct):
    """struct tc_htb_opt; ``level`` is output only."""

    rate: TcRateSpec = field(default_factory=TcRateSpec)
    ceil: TcRateSpec = field(default_factory=TcRateSpec)
    buffer: int = 0
    cbuffer: int = 0
    quantum: int = 0
    level: int = 0
    prio: int = 0

    _layout = (TcRateSpec, TcRateSpec, "I", "I", "I", "I", "I")


@dataclass
class TcHtbGlob(NetlinkStruct):
    """struct tc_htb_glob."""

    version: int = 0
    rate2quantum: int = 0
    defcls: int = 0
    debug: int = 0
    direct_pkts: int = 0

    _layout = ("I",) * 5


_CURVE = struct.Struct("<III")


@dataclass
class Curve:
    """An HFSC service curve: slope m1 for d, then slope m2."""

    m1: int = 0
    d: int = 0
    m2: int = 0


@dataclass
class HfscCopt:
    """HFSC class options: real-time, link-sharing and upper-limit curves."""

    rsc: Curve = field(default_factory=Curve)
    fsc: Curve = field(default_factory=Curve)
    usc: Curve = field(default_factory=Curve)


def deserialize_hfsc_curve(b: bytes) -> Curve:
    """Read a curve stored as three little-endian 32-bit values."""
    if len(b) < _CURVE.size:
        raise ValueError(f"HFSC curve needs {_CURVE.size} bytes, got {len(b)}")
    return Curve(*_CURVE.unpack_from(bytes(b), 0))


def serialize_hfsc_curve(c: Curve) -> bytes:
    """Write a curve as three little-endian 32-bit values."""
    return _CURVE.pack(c.m1, c.d, c.m2)


@dataclass
class TcHfscOpt(NetlinkStruct):
    """struct tc_hfsc_qopt."""

    defcls: int = 0

    _layout = ("H",)


@dataclass
class TcU32Key(NetlinkStruct):
    """struct tc_u32_key; mask and value are kept as stored (big endian)."""

    mask: int = 0
    val: int = 0
    off: int = 0
    off_mask: int = 0

    _layout = ("I", "I", "i", "i")


@dataclass
class TcU32Sel(NetlinkStruct):
    """struct tc_u32_sel followed by ``nkeys`` keys."""

    flags: int = 0
    offshift: int = 0
    nkeys: int = 0
    pad: int = 0
    offmask: int = 0
    off: int = 0
    offoff: int = 0
    hoff: int = 0
    hmask: int = 0
    keys: list[TcU32Key] = field(default_factory=list)

    _layout = ("B", "B", "B", "B", "H", "H", "h", "h", "I")

    def __len__(self) -> int:
        return self.size + self.nkeys * TcU32Key.size

    def serialize(self) -> bytes:
        buf = bytearray(len(self))
        _place(buf, 0, super().serialize())
        for position, key in enumerate(self.keys):
            _place(buf, self.size + position * TcU32Key.size, key.serialize())
        return bytes(buf)

    @classmethod
    def deserialize(cls, b: bytes) -> "TcU32Sel":
        data = bytes(b)
        sel = super().deserialize(data)
        starts = range(cls.size, cls.size + sel.nkeys * TcU32Key.size, TcU32Key.size)
        sel.keys = [
            TcU32Key.deserialize(data[start : start + TcU32Key.size]) for start in starts
        ]
        return sel


@dataclass
class TcGen(NetlinkStruct):
    """The generic action header shared by tc actions."""

    index: int = 0
    capab: int = 0
    action: int = 0
    refcnt: int = 0
    bindcnt: int = 0

    _layout = ("I", "I", "i", "i", "i")


TcGact = TcGen
TcBpf = TcGen


@dataclass
class TcMirred(NetlinkStruct):
    """struct tc_mirred."""

    gen: TcGen = field(default_factory=TcGen)
    eaction: int = 0
    ifindex: int = 0

    _layout = (TcGen, "i", "I")


@dataclass
class TcPolice(NetlinkStruct):
    """struct tc_police."""

    index: int = 0
    action: int = 0
    limit: int = 0
    burst: int = 0
    mtu: int = 0
    rate: TcRateSpec = field(default_factory=TcRateSpec)
    peak_rate: TcRateSpec = field(default_factory=TcRateSpec)
    refcnt: int = 0
    bindcnt: int = 0
    capab: int = 0

    _layout = ("I", "i", "I", "I", "I", TcRateSpec, TcRateSpec, "i", "i", "I")