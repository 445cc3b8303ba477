"""Queueing disciplines and qdisc handle helpers."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

HANDLE_NONE = 0
HANDLE_INGRESS = 0xFFFFFFF1
HANDLE_CLSACT = HANDLE_INGRESS
HANDLE_ROOT = 0xFFFFFFFF
PRIORITY_MAP_LEN = 16

HANDLE_MIN_INGRESS = 0xFFFFFFF2
HANDLE_MIN_EGRESS = 0xFFFFFFF3

_MAX_UINT32 = 0xFFFFFFFF
_F32 = struct.Struct("f")


def _float32(x: float) -> float:
    return _F32.unpack(_F32.pack(x))[0]


@dataclass
class QdiscAttrs:
    """Common qdisc fields; a device's root qdisc has parent HANDLE_ROOT."""

    link_index: int = 0
    handle: int = 0
    parent: int = 0
    refcnt: int = 0  # read only

    def __str__(self) -> str:
        return (
            f"{{LinkIndex: {self.link_index}, Handle: {handle_str(self.handle)}, "
            f"Parent: {handle_str(self.parent)}, Refcnt: {self.refcnt}}}"
        )


def make_handle(major: int, minor: int) -> int:
    return ((major & 0xFFFF) << 16) | (minor & 0xFFFF)


def major_minor(handle: int) -> tuple[int, int]:
    return (handle >> 16) & 0xFFFF, handle & 0xFFFF


def handle_str(handle: int) -> str:
    if handle == HANDLE_NONE:
        return "none"
    if handle == HANDLE_INGRESS:
        return "ingress"
    if handle == HANDLE_ROOT:
        return "root"
    major, minor = major_minor(handle)
    return f"{major:x}:{minor:x}"


def percentage2u32(percentage: float) -> int:
    """Scale a percentage to the kernel's 0..2**32-1 probability range."""
    percentage = _float32(percentage)
    if percentage == 100:
        return _MAX_UINT32
    fraction = _float32(percentage / 100)
    scaled = _float32(_float32(_MAX_UINT32) * fraction)
    return max(0, min(_MAX_UINT32, int(scaled)))


def _check_priority_map(values) -> tuple[int, ...]:
    priority_map = tuple(values)
    if len(priority_map) != PRIORITY_MAP_LEN:
        raise ValueError(
            f"priority map needs {PRIORITY_MAP_LEN} entries, got {len(priority_map)}"
        )
    if any(not 0 <= v <= 0xFF for v in priority_map):
        raise ValueError("priority map entries must fit in a byte")
    return priority_map


@dataclass
class Qdisc:
    """Base of all qdiscs: their shared attributes and their kind."""

    attrs: QdiscAttrs = field(default_factory=QdiscAttrs)

    _kind: ClassVar[str] = ""

    @property
    def type(self) -> str:
        return self._kind


@dataclass
class PfifoFast(Qdisc):
    """The default qdisc the kernel creates when none is configured."""

    bands: int = 0
    priority_map: tuple[int, ...] = (0,) * PRIORITY_MAP_LEN

    _kind: ClassVar[str] = "pfifo_fast"

    def __post_init__(self) -> None:
        self.priority_map = _check_priority_map(self.priority_map)


@dataclass
class Prio(Qdisc):
    """A basic qdisc that works like pfifo_fast."""

    bands: int = 3
    priority_map: tuple[int, ...] = (1, 2, 2, 2, 1, 2, 0, 0, 1, 1, 1, 1, 1, 1, 1, 1)

    _kind: ClassVar[str] = "prio"

    def __post_init__(self) -> None:
        self.priority_map = _check_priority_map(self.priority_map)


@dataclass
class Htb(Qdisc):
    """A classful qdisc that rate limits based on tokens."""

    version: int = 3
    rate2quantum: int = 10
    defcls: int = 0
    debug: int = 0
    direct_pkts: int = 0

    _kind: ClassVar[str] = "htb"


@dataclass
class NetemQdiscAttrs:
    """User-facing netem settings; times in us, probabilities in percent."""

    latency: int = 0
    delay_corr: float = 0.0
    limit: int = 0
    loss: float = 0.0
    loss_corr: float = 0.0
    gap: int = 0
    duplicate: float = 0.0
    duplicate_corr: float = 0.0
    jitter: int = 0
    reorder_prob: float = 0.0
    reorder_corr: float = 0.0
    corrupt_prob: float = 0.0
    corrupt_corr: float = 0.0

    def __str__(self) -> str:
        return (
            f"{{Latency: {self.latency}, Limit: {self.limit}, Loss: {self.loss:f}, "
            f"Gap: {self.gap}, Duplicate: {self.duplicate:f}, Jitter: {self.jitter}}}"
        )


@dataclass
class Netem(Qdisc):
    """Network emulator qdisc in kernel units."""

    latency: int = 0
    delay_corr: int = 0
    limit: int = 0
    loss: int = 0
    loss_corr: int = 0
    gap: int = 0
    duplicate: int = 0
    duplicate_corr: int = 0
    jitter: int = 0
    reorder_prob: int = 0
    reorder_corr: int = 0
    corrupt_prob: int = 0
    corrupt_corr: int = 0

    _kind: ClassVar[str] = "netem"

    def __str__(self) -> str:
        return (
            f"{{Latency: {self.latency}, Limit: {self.limit}, Loss: {self.loss}, "
            f"Gap: {self.gap}, Duplicate: {self.duplicate}, Jitter: {self.jitter}}}"
        )


@dataclass
class Tbf(Qdisc):
    """A classless qdisc that rate limits based on tokens."""

    rate: int = 0
    limit: int = 0
    buffer: int = 0
    peakrate: int = 0
    minburst: int = 0

    _kind: ClassVar[str] = "tbf"


@dataclass
class Ingress(Qdisc):
    """A qdisc for attaching ingress filters."""

    _kind: ClassVar[str] = "ingress"


@dataclass
class GenericQdisc(Qdisc):
    """A qdisc of a kind this package does not model."""

    qdisc_type: str = ""

    @property
    def type(self) -> str:
        return self.qdisc_type


@dataclass
class Hfsc(Qdisc):
    """Hierarchical fair service curve qdisc."""

    defcls: int = 1

    _kind: ClassVar[str] = "hfsc"

    def __str__(self) -> str:
        return f"{{{self.attrs} -- default: {self.defcls}}}"


@dataclass
class Fq(Qdisc):
    """Fair queue packet scheduler, mostly for locally generated traffic."""

    packet_limit: int = 0
    flow_packet_limit: int = 0
    quantum: int = 0  # bytes
    initial_quantum: int = 0
    pacing: int = 1  # rate enable
    flow_default_rate: int = 0
    flow_max_rate: int = 0
    buckets: int = 0  # log2 of the bucket count
    flow_refill_delay: int = 0
    low_rate_threshold: int = 0

    _kind: ClassVar[str] = "fq"

    def __str__(self) -> str:
        return (
            f"{{PacketLimit: {self.packet_limit}, FlowPacketLimit: {self.flow_packet_limit}, "
            f"Quantum: {self.quantum}, InitalQuantum: {self.initial_quantum}, "
            f"Pacing: {self.pacing}, FlowDefaultRate: {self.flow_default_rate}, "
            f"FlowMaxRate: {self.flow_max_rate}, Buckets: {self.buckets}, "
            f"FlowRefillDelay: {self.flow_refill_delay},  "
            f"LowRateTreshold: {self.low_rate_threshold}}}"
        )


@dataclass
class FqCodel(Qdisc):
    """Fair queuing combined with the CoDel active queue management scheme."""

    target: int = 0
    limit: int = 0
    interval: int = 0
    ecn: int = 1
    flows: int = 0
    quantum: int = 0

    _kind: ClassVar[str] = "fq_codel"

    def __str__(self) -> str:
        return (
            f"{{{self.attrs} -- Target: {self.target}, Limit: {self.limit}, "
            f"Interval: {self.interval}, ECM: {self.ecn}, Flows: {self.flows}, "
            f"Quantum: {self.quantum}}}"
        )