import errno
import struct

import pytest

from netlinker.attrs import RtAttr
from netlinker.request import (
    NLM_F_DUMP,
    NLM_F_MULTI,
    NLM_F_REQUEST,
    NLMSG_DONE,
    NLMSG_ERROR,
    NetlinkError,
    NetlinkMessage,
    NetlinkSocket,
    SocketHandle,
    new_netlink_request,
    parse_netlink_messages,
)

PID = 4321


class FakeSocket:
    def __init__(self, replies=(), pid=PID):
        self.replies = list(replies)
        self.sent = []
        self.options = []
        self.closed = False
        self.pid = pid

    def sendto(self, data, addr):
        self.sent.append(bytes(data))

    def recv(self, size):
        return self.replies.pop(0)

    def getsockname(self):
        return (self.pid, 0)

    def setsockopt(self, level, option, value):
        self.options.append((level, option, value))

    def fileno(self):
        return 42

    def close(self):
        self.closed = True


def msg(seq, pid, mtype, flags=0, data=b""):
    return struct.pack("=IHHII", 16 + len(data), mtype, flags, seq, pid) + data


def shared(replies, seq=100):
    fake = FakeSocket(replies)
    handle = SocketHandle(seq=seq, socket=NetlinkSocket(fake))
    return fake, {0: handle}


def test_serialize_header_and_payload():
    req = new_netlink_request(18, NLM_F_DUMP)
    attr = RtAttr(1, b"abcd")
    req.add_data(attr)
    req.add_raw_data(b"\x01\x02")
    b = req.serialize()
    assert struct.unpack_from("=IHHII", b) == (
        26,
        18,
        NLM_F_REQUEST | NLM_F_DUMP,
        req.seq,
        0,
    )
    assert b[16:24] == attr.serialize()
    assert b[24:] == b"\x01\x02"
    assert req.length == 26


def test_sequence_numbers_increase():
    first = new_netlink_request(1, 0)
    second = new_netlink_request(1, 0)
    assert second.seq > first.seq


def test_parse_messages():
    raw = msg(5, 7, 16, NLM_F_MULTI, b"abcd") + msg(6, 7, NLMSG_DONE)
    assert parse_netlink_messages(raw) == [
        NetlinkMessage(16, NLM_F_MULTI, 5, 7, b"abcd"),
        NetlinkMessage(NLMSG_DONE, 0, 6, 7, b""),
    ]


def test_parse_messages_rejects_bad_length():
    raw = struct.pack("=IHHII", 64, 16, 0, 1, 1)
    with pytest.raises(NetlinkError):
        parse_netlink_messages(raw)


def test_execute_filters_by_type_and_skips_foreign_seq():
    replies = [
        msg(55, PID, 16, NLM_F_MULTI, b"zzzz")
        + msg(101, PID, 16, NLM_F_MULTI, b"aaaa")
        + msg(101, PID, 17, NLM_F_MULTI, b"bbbb")
        + msg(101, PID, NLMSG_DONE)
    ]
    fake, sockets = shared(replies)
    req = new_netlink_request(18, NLM_F_DUMP)
    req.sockets = sockets
    assert req.execute(0, 16) == [b"aaaa"]
    assert req.seq == 101
    assert fake.sent == [req.serialize()]


def test_execute_reads_until_done_across_receives():
    replies = [
        msg(101, PID, 16, NLM_F_MULTI, b"aaaa"),
        msg(101, PID, 16, NLM_F_MULTI, b"bbbb") + msg(101, PID, NLMSG_DONE),
    ]
    _, sockets = shared(replies)
    req = new_netlink_request(18, NLM_F_DUMP)
    req.sockets = sockets
    assert req.execute(0, 0) == [b"aaaa", b"bbbb"]


def test_execute_single_reply_without_multi_flag():
    replies = [msg(101, PID, 16, 0, b"aaaa") + msg(101, PID, 16, 0, b"bbbb")]
    _, sockets = shared(replies)
    req = new_netlink_request(18, 0)
    req.sockets = sockets
    assert req.execute(0, 0) == [b"aaaa"]


def test_execute_ack_returns_empty():
    replies = [msg(101, PID, NLMSG_ERROR, 0, struct.pack("=i", 0))]
    _, sockets = shared(replies)
    req = new_netlink_request(18, 0)
    req.sockets = sockets
    assert req.execute(0, 0) == []


def test_execute_error_raises_errno():
    replies = [msg(101, PID, NLMSG_ERROR, 0, struct.pack("=i", -errno.EPERM))]
    _, sockets = shared(replies)
    req = new_netlink_request(18, 0)
    req.sockets = sockets
    with pytest.raises(NetlinkError) as info:
        req.execute(0, 0)
    assert info.value.errno == errno.EPERM


def test_execute_wrong_pid_raises():
    replies = [msg(101, PID + 1, 16, 0, b"aaaa")]
    _, sockets = shared(replies)
    req = new_netlink_request(18, 0)
    req.sockets = sockets
    with pytest.raises(NetlinkError, match="Wrong pid"):
        req.execute(0, 0)


def test_socket_closes():
    fake = FakeSocket()
    sock = NetlinkSocket(fake)
    assert sock.fileno() == 42
    sock.close()
    assert fake.closed
    assert sock.fileno() == -1
    with pytest.raises(NetlinkError, match="closed socket"):
        sock.receive()
    with pytest.raises(NetlinkError, match="closed socket"):
        sock.send(new_netlink_request(18, 0))


def test_short_response_raises():
    sock = NetlinkSocket(FakeSocket([b"\x00\x01"]))
    with pytest.raises(NetlinkError, match="short response"):
        sock.receive()


def test_get_pid():
    assert NetlinkSocket(FakeSocket()).get_pid() == PID


def test_receive_timeout_is_packed_as_timeval():
    fake = FakeSocket()
    NetlinkSocket(fake).set_receive_timeout(2.5)
    (_, _, value), = fake.options
    assert struct.unpack("@ll", value) == (2, 500000)


def test_socket_handle_close():
    fake = FakeSocket()
    SocketHandle(socket=NetlinkSocket(fake)).close()
    assert fake.closed