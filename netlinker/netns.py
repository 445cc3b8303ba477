"""Network namespace ID lookup and assignment.

A namespace may be given a numeric ID once, either by the user or by the
kernel (for instance when one end of a veth pair is moved into it).
"""

from __future__ import annotations

import struct

from netlinker.attrs import RtAttr, parse_route_attr, uint32_attr
from netlinker.messages import RtGenMsg
from netlinker.request import (
    NETLINK_ROUTE,
    NLM_F_ACK,
    NLM_F_REQUEST,
    NetlinkError,
    NetlinkRequest,
    new_netlink_request,
)

NETNSA_NSID = 1
NETNSA_PID = 2
NETNSA_FD = 3

RTM_NEWNSID = 88
RTM_DELNSID = 89
RTM_GETNSID = 90

_I32 = struct.Struct("=i")


def build_get_nsid_request(attr_type: int, val: int) -> NetlinkRequest:
    """Build a request for the namespace ID selected by a pid or fd attribute."""
    req = new_netlink_request(RTM_GETNSID, NLM_F_REQUEST)
    req.add_data(RtGenMsg())
    req.add_data(RtAttr(attr_type, uint32_attr(val & 0xFFFFFFFF)))
    return req


def build_set_nsid_request(attr_type: int, val: int, nsid: int) -> NetlinkRequest:
    """Build a request assigning ``nsid`` to the namespace selected by pid or fd."""
    req = new_netlink_request(RTM_NEWNSID, NLM_F_REQUEST | NLM_F_ACK)
    req.add_data(RtGenMsg())
    req.add_data(RtAttr(attr_type, uint32_attr(val & 0xFFFFFFFF)))
    req.add_data(RtAttr(NETNSA_NSID, uint32_attr(nsid & 0xFFFFFFFF)))
    return req


def parse_nsid_messages(msgs) -> int:
    """Return the namespace ID from reply payloads; -1 means none is set."""
    for payload in msgs:
        header = RtGenMsg.deserialize(payload)
        for attr in parse_route_attr(payload[len(header):]):
            if attr.attr_type == NETNSA_NSID:
                return _I32.unpack_from(attr.value, 0)[0]
    raise NetlinkError("unexpected empty result")


def _get(attr_type: int, val: int) -> int:
    msgs = build_get_nsid_request(attr_type, val).execute(NETLINK_ROUTE, RTM_NEWNSID)
    return parse_nsid_messages(msgs)


def _set(attr_type: int, val: int, nsid: int) -> None:
    build_set_nsid_request(attr_type, val, nsid).execute(NETLINK_ROUTE, RTM_NEWNSID)


def get_netns_id_by_pid(pid: int) -> int:
    """Look up the namespace ID of a thread; -1 if it has none."""
    return _get(NETNSA_PID, pid)


def set_netns_id_by_pid(pid: int, nsid: int) -> None:
    """Assign an ID to a thread's namespace, which must not have one yet."""
    _set(NETNSA_PID, pid, nsid)


def get_netns_id_by_fd(fd: int) -> int:
    """Look up the namespace ID for an open namespace file; -1 if it has none."""
    return _get(NETNSA_FD, fd)


def set_netns_id_by_fd(fd: int, nsid: int) -> None:
    """Assign an ID to the namespace of an open namespace file."""
    _set(NETNSA_FD, fd, nsid)