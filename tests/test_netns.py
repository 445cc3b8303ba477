import struct

import pytest

from netlinker.attrs import RouteAttr, RtAttr, parse_route_attr, uint32_attr
from netlinker.messages import RtGenMsg
from netlinker.netns import (
    NETNSA_FD,
    NETNSA_NSID,
    NETNSA_PID,
    RTM_GETNSID,
    RTM_NEWNSID,
    build_get_nsid_request,
    build_set_nsid_request,
    parse_nsid_messages,
)
from netlinker.request import NLM_F_ACK, NLM_F_REQUEST, NetlinkError


def header(b):
    return struct.unpack_from("=IHHII", b)


def test_get_request_layout():
    req = build_get_nsid_request(NETNSA_PID, 1234)
    b = req.serialize()
    length, mtype, flags, seq, _ = header(b)
    assert (length, mtype, flags, seq) == (len(b), RTM_GETNSID, NLM_F_REQUEST, req.seq)
    assert b[16:20] == RtGenMsg().serialize()
    assert parse_route_attr(b[20:]) == [RouteAttr(NETNSA_PID, uint32_attr(1234))]


def test_set_request_layout():
    req = build_set_nsid_request(NETNSA_FD, 5, 9)
    b = req.serialize()
    _, mtype, flags, _, _ = header(b)
    assert mtype == RTM_NEWNSID
    assert flags == NLM_F_REQUEST | NLM_F_ACK
    assert parse_route_attr(b[20:]) == [
        RouteAttr(NETNSA_FD, uint32_attr(5)),
        RouteAttr(NETNSA_NSID, uint32_attr(9)),
    ]


def reply(*attrs):
    return RtGenMsg().serialize() + b"".join(a.serialize() for a in attrs)


def test_parse_nsid():
    msgs = [reply(RtAttr(NETNSA_PID, uint32_attr(3)), RtAttr(NETNSA_NSID, uint32_attr(7)))]
    assert parse_nsid_messages(msgs) == 7


def test_parse_unset_nsid_is_negative_one():
    assert parse_nsid_messages([reply(RtAttr(NETNSA_NSID, uint32_attr(0xFFFFFFFF)))]) == -1


def test_parse_without_nsid_raises():
    with pytest.raises(NetlinkError, match="unexpected empty result"):
        parse_nsid_messages([reply(RtAttr(NETNSA_PID, uint32_attr(3)))])
    with pytest.raises(NetlinkError):
        parse_nsid_messages([])