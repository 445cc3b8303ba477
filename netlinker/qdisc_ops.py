"""Adding, changing, deleting and listing qdiscs, and the packet scheduler clock."""

from __future__ import annotations

import string
import struct
from dataclasses import dataclass
from typing import Callable

from netlinker.attrs import (
    RtAttr,
    parse_route_attr,
    uint32_attr,
    uint64_attr,
    zero_terminated,
)
from netlinker.qdisc import (
    HANDLE_INGRESS,
    Fq,
    FqCodel,
    GenericQdisc,
    Hfsc,
    Htb,
    Ingress,
    Netem,
    NetemQdiscAttrs,
    PfifoFast,
    Prio,
    Qdisc,
    QdiscAttrs,
    Tbf,
    percentage2u32,
)
from netlinker.request import (
    NETLINK_ROUTE,
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_DUMP,
    NLM_F_EXCL,
    NLM_F_REPLACE,
    NetlinkRequest,
    new_netlink_request,
)
from netlinker.tc import (
    TCA_FQ_BUCKETS_LOG,
    TCA_FQ_CODEL_ECN,
    TCA_FQ_CODEL_FLOWS,
    TCA_FQ_CODEL_INTERVAL,
    TCA_FQ_CODEL_LIMIT,
    TCA_FQ_CODEL_QUANTUM,
    TCA_FQ_CODEL_TARGET,
    TCA_FQ_FLOW_DEFAULT_RATE,
    TCA_FQ_FLOW_MAX_RATE,
    TCA_FQ_FLOW_PLIMIT,
    TCA_FQ_FLOW_REFILL_DELAY,
    TCA_FQ_INITIAL_QUANTUM,
    TCA_FQ_LOW_RATE_THRESHOLD,
    TCA_FQ_PLIMIT,
    TCA_FQ_QUANTUM,
    TCA_FQ_RATE_ENABLE,
    TCA_HTB_INIT,
    TCA_KIND,
    TCA_NETEM_CORR,
    TCA_NETEM_CORRUPT,
    TCA_NETEM_REORDER,
    TCA_OPTIONS,
    TCA_TBF_PARMS,
    TCA_TBF_PBURST,
    TCA_TBF_PRATE64,
    TCA_TBF_RATE64,
    TcHfscOpt,
    TcHtbGlob,
    TcMsg,
    TcNetemCorr,
    TcNetemCorrupt,
    TcNetemQopt,
    TcNetemReorder,
    TcPrioMap,
    TcRateSpec,
    TcTbfQopt,
)

RTM_NEWQDISC = 36
RTM_DELQDISC = 37
RTM_GETQDISC = 38

AF_UNSPEC = 0

TIME_UNITS_PER_SEC = 1000000
PSCHED_PATH = "/proc/net/psched"

_MASK32 = 0xFFFFFFFF
_U16 = struct.Struct("=H")
_U32 = struct.Struct("=I")
_U64 = struct.Struct("=Q")


def _u32(x: float) -> int:
    return int(x) & _MASK32


@dataclass(frozen=True)
class PschedClock:
    """Packet scheduler clock parameters; all zero when unknown."""

    tick_in_usec: float = 0.0
    clock_factor: float = 0.0
    hz: float = 0.0

    @classmethod
    def load(cls, path: str = PSCHED_PATH) -> "PschedClock":
        """Read the clock from a psched file; give a zero clock if it is unusable."""
        try:
            with open(path, encoding="ascii") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError):
            return cls()
        parts = text.strip().split(" ")
        if len(parts) < 3:
            return cls()
        vals = []
        for part in parts[:3]:
            if not part or any(c not in string.hexdigits for c in part):
                return cls()
            value = int(part, 16)
            if value > _MASK32:
                return cls()
            vals.append(value)
        if vals[2] == 1000000000:
            vals[0] = vals[1]
        if vals[1] == 0:
            return cls()
        factor = vals[2] / TIME_UNITS_PER_SEC
        return cls(
            tick_in_usec=vals[0] / vals[1] * factor,
            clock_factor=factor,
            hz=float(vals[0]),
        )

    def time2tick(self, time: int) -> int:
        return _u32(float(time) * self.tick_in_usec)

    def tick2time(self, tick: int) -> int:
        return _u32(float(tick) / self.tick_in_usec)

    def time2ktime(self, time: int) -> int:
        return _u32(float(time) * self.clock_factor)

    def ktime2time(self, ktime: int) -> int:
        return _u32(float(ktime) / self.clock_factor)

    def xmittime(self, rate: int, size: int) -> float:
        """Transmission time, in ticks, of ``size`` bytes at ``rate`` bytes/s."""
        return self.tick_in_usec * TIME_UNITS_PER_SEC * (float(size) / float(rate))

    def _burst(self, rate: int, buffer: int) -> int:
        return _u32(float(rate) * float(self.tick2time(buffer)) / TIME_UNITS_PER_SEC)

    def _latency(self, rate: int, limit: int, buffer: int) -> float:
        return TIME_UNITS_PER_SEC * (float(limit) / float(rate)) - float(
            self.tick2time(buffer)
        )


_default_clock: PschedClock | None = None


def _clock() -> PschedClock:
    global _default_clock
    if _default_clock is None or _default_clock.tick_in_usec == 0.0:
        _default_clock = PschedClock.load()
    return _default_clock


def tick_in_usec() -> float:
    return _clock().tick_in_usec


def clock_factor() -> float:
    return _clock().clock_factor


def hz() -> float:
    return _clock().hz


def xmittime(rate: int, size: int) -> float:
    return _clock().xmittime(rate, size)


def new_netem(attrs: QdiscAttrs, nattrs: NetemQdiscAttrs) -> Netem:
    """Convert user-facing netem settings into kernel units."""
    limit = 1000
    delay_corr = loss_corr = duplicate_corr = 0

    latency = nattrs.latency
    loss = percentage2u32(nattrs.loss)
    gap = nattrs.gap
    duplicate = percentage2u32(nattrs.duplicate)
    jitter = nattrs.jitter

    if latency > 0 and jitter > 0:
        delay_corr = percentage2u32(nattrs.delay_corr)
    if loss > 0:
        loss_corr = percentage2u32(nattrs.loss_corr)
    if duplicate > 0:
        duplicate_corr = percentage2u32(nattrs.duplicate_corr)

    clock = _clock()
    latency = clock.time2tick(latency)
    if nattrs.limit != 0:
        limit = nattrs.limit
    if latency > 0:
        jitter = clock.time2tick(jitter)

    reorder_prob = percentage2u32(nattrs.reorder_prob)
    reorder_corr = percentage2u32(nattrs.reorder_corr)
    if reorder_prob > 0 and gap == 0:
        gap = 1

    return Netem(
        attrs=attrs,
        latency=latency,
        delay_corr=delay_corr,
        limit=limit,
        loss=loss,
        loss_corr=loss_corr,
        gap=gap,
        duplicate=duplicate,
        duplicate_corr=duplicate_corr,
        jitter=jitter,
        reorder_prob=reorder_prob,
        reorder_corr=reorder_corr,
        corrupt_prob=percentage2u32(nattrs.corrupt_prob),
        corrupt_corr=percentage2u32(nattrs.corrupt_corr),
    )


def _tbf_options(qdisc: Tbf) -> RtAttr:
    options = RtAttr(TCA_OPTIONS, b"")
    opt = TcTbfQopt(
        rate=TcRateSpec(rate=qdisc.rate & _MASK32),
        peakrate=TcRateSpec(rate=qdisc.peakrate & _MASK32),
        limit=qdisc.limit,
        buffer=qdisc.buffer,
    )
    options.add_rt_attr(TCA_TBF_PARMS, opt.serialize())
    if qdisc.rate >= 1 << 32:
        options.add_rt_attr(TCA_TBF_RATE64, uint64_attr(qdisc.rate))
    if qdisc.peakrate >= 1 << 32:
        options.add_rt_attr(TCA_TBF_PRATE64, uint64_attr(qdisc.peakrate))
    if qdisc.peakrate > 0:
        options.add_rt_attr(TCA_TBF_PBURST, uint32_attr(qdisc.minburst))
    return options


def _netem_options(qdisc: Netem) -> RtAttr:
    opt = TcNetemQopt(
        latency=qdisc.latency,
        limit=qdisc.limit,
        loss=qdisc.loss,
        gap=qdisc.gap,
        duplicate=qdisc.duplicate,
        jitter=qdisc.jitter,
    )
    options = RtAttr(TCA_OPTIONS, opt.serialize())
    corr = TcNetemCorr(
        delay_corr=qdisc.delay_corr,
        loss_corr=qdisc.loss_corr,
        dup_corr=qdisc.duplicate_corr,
    )
    if corr.delay_corr > 0 or corr.loss_corr > 0 or corr.dup_corr > 0:
        options.add_rt_attr(TCA_NETEM_CORR, corr.serialize())
    if qdisc.corrupt_prob > 0:
        corruption = TcNetemCorrupt(
            probability=qdisc.corrupt_prob, correlation=qdisc.corrupt_corr
        )
        options.add_rt_attr(TCA_NETEM_CORRUPT, corruption.serialize())
    if qdisc.reorder_prob > 0:
        reorder = TcNetemReorder(
            probability=qdisc.reorder_prob, correlation=qdisc.reorder_corr
        )
        options.add_rt_attr(TCA_NETEM_REORDER, reorder.serialize())
    return options


def _add_positive(options: RtAttr, pairs) -> None:
    for attr_type, value in pairs:
        if value > 0:
            options.add_rt_attr(attr_type, uint32_attr(value))


def _fq_codel_options(qdisc: FqCodel) -> RtAttr:
    options = RtAttr(TCA_OPTIONS, b"")
    options.add_rt_attr(TCA_FQ_CODEL_ECN, uint32_attr(qdisc.ecn))
    _add_positive(
        options,
        [
            (TCA_FQ_CODEL_LIMIT, qdisc.limit),
            (TCA_FQ_CODEL_INTERVAL, qdisc.interval),
            (TCA_FQ_CODEL_FLOWS, qdisc.flows),
            (TCA_FQ_CODEL_QUANTUM, qdisc.quantum),
        ],
    )
    return options


def _fq_options(qdisc: Fq) -> RtAttr:
    options = RtAttr(TCA_OPTIONS, b"")
    options.add_rt_attr(TCA_FQ_RATE_ENABLE, uint32_attr(qdisc.pacing))
    _add_positive(
        options,
        [
            (TCA_FQ_BUCKETS_LOG, qdisc.buckets),
            (TCA_FQ_LOW_RATE_THRESHOLD, qdisc.low_rate_threshold),
            (TCA_FQ_QUANTUM, qdisc.quantum),
            (TCA_FQ_INITIAL_QUANTUM, qdisc.initial_quantum),
            (TCA_FQ_FLOW_REFILL_DELAY, qdisc.flow_refill_delay),
            (TCA_FQ_FLOW_PLIMIT, qdisc.flow_packet_limit),
            (TCA_FQ_FLOW_MAX_RATE, qdisc.flow_max_rate),
            (TCA_FQ_FLOW_DEFAULT_RATE, qdisc.flow_default_rate),
        ],
    )
    return options


def _htb_options(qdisc: Htb) -> RtAttr:
    options = RtAttr(TCA_OPTIONS, b"")
    glob = TcHtbGlob(
        version=qdisc.version,
        rate2quantum=qdisc.rate2quantum,
        defcls=qdisc.defcls,
        debug=qdisc.debug,
        direct_pkts=qdisc.direct_pkts,
    )
    options.add_rt_attr(TCA_HTB_INIT, glob.serialize())
    return options


def qdisc_payload(qdisc: Qdisc) -> list[RtAttr]:
    """Build the attributes describing ``qdisc``: its kind and its options."""
    payload = [RtAttr(TCA_KIND, zero_terminated(qdisc.type))]
    options: RtAttr | None
    if isinstance(qdisc, Prio):
        tcmap = TcPrioMap(bands=qdisc.bands, priomap=bytes(qdisc.priority_map))
        options = RtAttr(TCA_OPTIONS, tcmap.serialize())
    elif isinstance(qdisc, Tbf):
        options = _tbf_options(qdisc)
    elif isinstance(qdisc, Htb):
        options = _htb_options(qdisc)
    elif isinstance(qdisc, Hfsc):
        options = RtAttr(TCA_OPTIONS, TcHfscOpt(defcls=qdisc.defcls).serialize())
    elif isinstance(qdisc, Netem):
        options = _netem_options(qdisc)
    elif isinstance(qdisc, Ingress):
        if qdisc.attrs.parent != HANDLE_INGRESS:
            raise ValueError("Ingress filters must set Parent to HANDLE_INGRESS")
        options = RtAttr(TCA_OPTIONS, b"")
    elif isinstance(qdisc, FqCodel):
        options = _fq_codel_options(qdisc)
    elif isinstance(qdisc, Fq):
        options = _fq_options(qdisc)
    else:
        options = None
    if options is not None:
        payload.append(options)
    return payload


def build_qdisc_request(cmd: int, flags: int, qdisc: Qdisc) -> NetlinkRequest:
    """Build the request that adds, changes, replaces or deletes ``qdisc``."""
    req = new_netlink_request(cmd, flags | NLM_F_ACK)
    base = qdisc.attrs
    req.add_data(
        TcMsg(
            family=AF_UNSPEC,
            ifindex=base.link_index,
            handle=base.handle,
            parent=base.parent,
        )
    )
    if cmd != RTM_DELQDISC:
        for attr in qdisc_payload(qdisc):
            req.add_data(attr)
    return req


def _modify(cmd: int, flags: int, qdisc: Qdisc) -> None:
    build_qdisc_request(cmd, flags, qdisc).execute(NETLINK_ROUTE, 0)


def qdisc_del(qdisc: Qdisc) -> None:
    """Delete a qdisc, like ``tc qdisc del``."""
    _modify(RTM_DELQDISC, 0, qdisc)


def qdisc_change(qdisc: Qdisc) -> None:
    """Change a qdisc in place; its parent and handle must stay the same."""
    _modify(RTM_NEWQDISC, 0, qdisc)


def qdisc_replace(qdisc: Qdisc) -> None:
    """Replace a qdisc; the handle must change."""
    _modify(RTM_NEWQDISC, NLM_F_CREATE | NLM_F_REPLACE, qdisc)


def qdisc_add(qdisc: Qdisc) -> None:
    """Add a qdisc, like ``tc qdisc add``."""
    _modify(RTM_NEWQDISC, NLM_F_CREATE | NLM_F_EXCL, qdisc)


def _read_u32(value: bytes) -> int:
    return _U32.unpack_from(value, 0)[0]


def _parse_prio_map(qdisc, value: bytes) -> None:
    tcmap = TcPrioMap.deserialize(value[: TcPrioMap.size])
    qdisc.priority_map = tuple(tcmap.priomap)
    qdisc.bands = tcmap.bands & 0xFF


def _parse_hfsc(qdisc: Hfsc, value: bytes) -> None:
    qdisc.defcls = _U16.unpack_from(value, 0)[0]


def _parse_netem(qdisc: Netem, value: bytes) -> None:
    opt = TcNetemQopt.deserialize(value[: TcNetemQopt.size])
    qdisc.latency = opt.latency
    qdisc.limit = opt.limit
    qdisc.loss = opt.loss
    qdisc.gap = opt.gap
    qdisc.duplicate = opt.duplicate
    qdisc.jitter = opt.jitter
    for datum in parse_route_attr(value[TcNetemQopt.size :]):
        if datum.attr_type == TCA_NETEM_CORR:
            corr = TcNetemCorr.deserialize(datum.value[: TcNetemCorr.size])
            qdisc.delay_corr = corr.delay_corr
            qdisc.loss_corr = corr.loss_corr
            qdisc.duplicate_corr = corr.dup_corr
        elif datum.attr_type == TCA_NETEM_CORRUPT:
            corrupt = TcNetemCorrupt.deserialize(datum.value[: TcNetemCorrupt.size])
            qdisc.corrupt_prob = corrupt.probability
            qdisc.corrupt_corr = corrupt.correlation
        elif datum.attr_type == TCA_NETEM_REORDER:
            reorder = TcNetemReorder.deserialize(datum.value[: TcNetemReorder.size])
            qdisc.reorder_prob = reorder.probability
            qdisc.reorder_corr = reorder.correlation


def _parse_tbf(qdisc: Tbf, value: bytes) -> None:
    for datum in parse_route_attr(value):
        if datum.attr_type == TCA_TBF_PARMS:
            opt = TcTbfQopt.deserialize(datum.value[: TcTbfQopt.size])
            qdisc.rate = opt.rate.rate
            qdisc.peakrate = opt.peakrate.rate
            qdisc.limit = opt.limit
            qdisc.buffer = opt.buffer
        elif datum.attr_type == TCA_TBF_RATE64:
            qdisc.rate = _U64.unpack_from(datum.value, 0)[0]
        elif datum.attr_type == TCA_TBF_PRATE64:
            qdisc.peakrate = _U64.unpack_from(datum.value, 0)[0]
        elif datum.attr_type == TCA_TBF_PBURST:
            qdisc.minburst = _read_u32(datum.value)


def _parse_htb(qdisc: Htb, value: bytes) -> None:
    for datum in parse_route_attr(value):
        if datum.attr_type == TCA_HTB_INIT:
            glob = TcHtbGlob.deserialize(datum.value[: TcHtbGlob.size])
            qdisc.version = glob.version
            qdisc.rate2quantum = glob.rate2quantum
            qdisc.defcls = glob.defcls
            qdisc.debug = glob.debug
            qdisc.direct_pkts = glob.direct_pkts


_FQ_FIELDS = {
    TCA_FQ_BUCKETS_LOG: "buckets",
    TCA_FQ_LOW_RATE_THRESHOLD: "low_rate_threshold",
    TCA_FQ_QUANTUM: "quantum",
    TCA_FQ_RATE_ENABLE: "pacing",
    TCA_FQ_INITIAL_QUANTUM: "initial_quantum",
    TCA_FQ_FLOW_REFILL_DELAY: "flow_refill_delay",
    TCA_FQ_FLOW_PLIMIT: "flow_packet_limit",
    TCA_FQ_PLIMIT: "packet_limit",
    TCA_FQ_FLOW_MAX_RATE: "flow_max_rate",
    TCA_FQ_FLOW_DEFAULT_RATE: "flow_default_rate",
}

_FQ_CODEL_FIELDS = {
    TCA_FQ_CODEL_TARGET: "target",
    TCA_FQ_CODEL_LIMIT: "limit",
    TCA_FQ_CODEL_INTERVAL: "interval",
    TCA_FQ_CODEL_ECN: "ecn",
    TCA_FQ_CODEL_FLOWS: "flows",
    TCA_FQ_CODEL_QUANTUM: "quantum",
}


def _u32_fields(mapping: dict[int, str]) -> Callable[[Qdisc, bytes], None]:
    def parse(qdisc: Qdisc, value: bytes) -> None:
        for datum in parse_route_attr(value):
            name = mapping.get(datum.attr_type)
            if name is not None:
                setattr(qdisc, name, _read_u32(datum.value))

    return parse


_FACTORIES: dict[str, Callable[[], Qdisc]] = {
    "pfifo_fast": PfifoFast,
    "prio": lambda: Prio(bands=0, priority_map=(0,) * 16),
    "tbf": Tbf,
    "ingress": Ingress,
    "htb": lambda: Htb(version=0, rate2quantum=0),
    "fq": lambda: Fq(pacing=0),
    "hfsc": lambda: Hfsc(defcls=0),
    "fq_codel": lambda: FqCodel(ecn=0),
    "netem": Netem,
}

_OPTION_PARSERS: dict[str, Callable[[Qdisc, bytes], None]] = {
    "pfifo_fast": _parse_prio_map,
    "prio": _parse_prio_map,
    "tbf": _parse_tbf,
    "hfsc": _parse_hfsc,
    "htb": _parse_htb,
    "fq": _u32_fields(_FQ_FIELDS),
    "fq_codel": _u32_fields(_FQ_CODEL_FIELDS),
    "netem": _parse_netem,
}


def parse_qdisc_message(m: bytes) -> Qdisc:
    """Build a qdisc from the payload of one RTM_NEWQDISC message."""
    data = bytes(m)
    msg = TcMsg.deserialize(data[: TcMsg.size])
    qdisc: Qdisc | None = None
    kind = ""
    for attr in parse_route_attr(data[TcMsg.size :]):
        if attr.attr_type == TCA_KIND:
            kind = bytes(attr.value[:-1]).decode("utf-8", "replace")
            factory = _FACTORIES.get(kind)
            qdisc = factory() if factory is not None else GenericQdisc(qdisc_type=kind)
        elif attr.attr_type == TCA_OPTIONS:
            parser = _OPTION_PARSERS.get(kind)
            if parser is not None and qdisc is not None:
                parser(qdisc, bytes(attr.value))
    if qdisc is None:
        raise ValueError("qdisc message carries no kind")
    qdisc.attrs = QdiscAttrs(
        link_index=msg.ifindex,
        handle=msg.handle,
        parent=msg.parent,
        refcnt=msg.info,
    )
    return qdisc


def qdisc_list(link_index: int | None = None) -> list[Qdisc]:
    """List the qdiscs of the system, or of one link when ``link_index`` is given."""
    req = new_netlink_request(RTM_GETQDISC, NLM_F_DUMP)
    index = 0 if link_index is None else link_index
    req.add_data(TcMsg(family=AF_UNSPEC, ifindex=index))
    msgs = req.execute(NETLINK_ROUTE, RTM_NEWQDISC)
    result = []
    for m in msgs:
        qdisc = parse_qdisc_message(m)
        if link_index is not None and qdisc.attrs.link_index != index:
            continue
        result.append(qdisc)
    return result