# netlinker

A pure-Python toolkit for talking to the Linux kernel over rtnetlink. It
builds and parses netlink messages and route attributes, adds, changes,
replaces, deletes and lists queueing disciplines, reads bridge port flags
and looks up or assigns network namespace IDs. It also encodes and decodes
many of the kernel's fixed-layout structures, MPLS label stacks and IPv6
segment-routing headers.

## Installation

```
pip install netlinker
```

The package has no runtime dependencies. Calls that open a netlink socket
work only on Linux, and most of the ones that change state need
`CAP_NET_ADMIN`. Everything that only encodes or decodes bytes works on
any platform.

## Building and parsing attributes

```python
from netlinker.attrs import RtAttr, parse_route_attr, uint32_attr, zero_terminated

opts = RtAttr(2, None)
opts.add_rt_attr(4, uint32_attr(1))
raw = RtAttr(1, zero_terminated("fq_codel")).serialize() + opts.serialize()

for attr in parse_route_attr(raw):
    print(attr.attr_type, attr.value)
```

`parse_route_attr` raises `ValueError` when an attribute's length is
invalid. Integer attributes (`uint8_attr`, `uint16_attr`, `uint32_attr`,
`uint64_attr`) are written in the host's byte order; `htonl`, `htons`,
`ntohl` and `ntohs` convert to and from network order.

## Fixed-layout structures

Most structures derive from `netlinker.attrs.NetlinkStruct`. Call
`serialize()` on one to get its bytes, and the class method
`deserialize()` to build one from bytes:

```python
from netlinker.tc import TcMsg

msg = TcMsg(ifindex=3, handle=0x10000, parent=0xFFFFFFFF)
raw = msg.serialize()
assert len(raw) == TcMsg.size
assert TcMsg.deserialize(raw) == msg
```

The structures are spread over these modules:

- `netlinker.attrs`: `IfInfomsg` and the `RtAttr` builder.
- `netlinker.messages`: `IfAddrmsg`, `IfaCacheInfo`, `BridgeVlanInfo`,
  `Genlmsg`, `RtMsg`, `RtNexthop` and `RtGenMsg`.
- `netlinker.linkinfo`: SR-IOV VF records (`VfMac`, `VfVlan`, `VfRate`, ...)
  and `Nfgenmsg`, with link, conntrack, devlink and RDMA constants.
- `netlinker.xfrm`: IPsec addresses, selectors, SAs, policies, templates
  and algorithms (`XfrmAlgo`, `XfrmAlgoAuth`, `XfrmAlgoAEAD` carry a key
  whose length is given in bits).
- `netlinker.tc`: traffic-control headers and options, and HFSC curves via
  `serialize_hfsc_curve` and `deserialize_hfsc_curve`.

## Requests and sockets

`netlinker.request.new_netlink_request(proto, flags)` creates a
`NetlinkRequest` with a fresh sequence number. Add parts with `add_data()`
and `add_raw_data()`, and call `execute(sock_type, res_type)` to send it
and collect the reply payloads. `open_netlink_socket(protocol)` and
`subscribe(protocol, *groups)` return a `NetlinkSocket`, which can be used
as a context manager.

Errors the kernel reports are raised as `NetlinkError`, a subclass of
`OSError`, carrying the kernel's errno. Protocol problems, such as a reply
with the wrong sequence number or pid, are also raised as `NetlinkError`.

## Queueing disciplines

```python
from netlinker.qdisc import QdiscAttrs, Tbf, make_handle, handle_str, HANDLE_ROOT
from netlinker.qdisc_ops import qdisc_add, qdisc_list, qdisc_del

tbf = Tbf(
    attrs=QdiscAttrs(link_index=3, handle=make_handle(1, 0), parent=HANDLE_ROOT),
    rate=131072,
    limit=1220703,
    buffer=16793,
)
qdisc_add(tbf)
for q in qdisc_list(3):
    print(q.type, handle_str(q.attrs.handle))
qdisc_del(tbf)
```

`qdisc_change` and `qdisc_replace` complete the set. The qdisc classes are
`PfifoFast`, `Prio`, `Htb`, `Netem`, `Tbf`, `Ingress`, `Hfsc`, `Fq`,
`FqCodel` and `GenericQdisc` for kinds the package does not model. `Prio`
defaults to three bands and the usual priority map, `Htb` to version 3 with
a rate-to-quantum of 10, `Hfsc` to default class 1, `Fq` to pacing on and
`FqCodel` to ECN on. An `Ingress` qdisc must have `HANDLE_INGRESS` as its
parent, or building its payload raises `ValueError`.

`new_netem(attrs, nattrs)` converts a `NetemQdiscAttrs` (times in
microseconds, probabilities in percent) into a `Netem` in kernel units.
`build_qdisc_request` and `parse_qdisc_message` build and read the raw
messages without touching a socket.

The `PschedClock` class reads the packet scheduler clock from
`/proc/net/psched` (or another path given to `PschedClock.load`); the
`tick_in_usec()`, `clock_factor()`, `hz()` and `xmittime()` helpers use
the clock of the running system.

## Bridge port flags and namespace IDs

```python
from netlinker.protinfo import link_get_protinfo
from netlinker.netns import get_netns_id_by_pid

print(link_get_protinfo(5))
print(get_netns_id_by_pid(1))
```

`link_get_protinfo` returns a `Protinfo` whose string form lists the flags
that are set. `get_netns_id_by_pid` and `get_netns_id_by_fd` return -1 when
the namespace has no ID; `set_netns_id_by_pid` and `set_netns_id_by_fd`
assign one.

## MPLS and segment routing

`netlinker.encap` provides `encode_mpls_stack` / `decode_mpls_stack`,
`encode_seg6_encap` / `decode_seg6_encap`, `encode_seg6_srh` /
`decode_seg6_srh`, and the name helpers `seg6_encap_mode_string` and
`seg6_local_action_string`.

## What it does not do

The package does not create, delete or configure links, addresses, routes,
neighbours, rules, or IPsec states and policies; for those it offers only
the message structures and constants. It has no tc classes or filters and
no command-line tool: it is a library to be imported.

## Running the tests

```
pip install -e .[test]
pytest
```