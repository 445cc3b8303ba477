"""Netlink requests, message parsing and netlink sockets."""

from __future__ import annotations

import itertools
import os
import socket
import struct
import threading
from dataclasses import dataclass, field
from typing import Any

from netlinker.attrs import RECEIVE_BUFFER_SIZE

# Netlink protocols
NETLINK_ROUTE = 0
NETLINK_XFRM = 6
NETLINK_NETFILTER = 12

SUPPORTED_NL_FAMILIES = [NETLINK_ROUTE, NETLINK_XFRM, NETLINK_NETFILTER]

# Message header flags
NLM_F_REQUEST = 0x1
NLM_F_MULTI = 0x2
NLM_F_ACK = 0x4
NLM_F_ECHO = 0x8
NLM_F_ROOT = 0x100
NLM_F_MATCH = 0x200
NLM_F_DUMP = NLM_F_ROOT | NLM_F_MATCH
NLM_F_REPLACE = 0x100
NLM_F_EXCL = 0x200
NLM_F_CREATE = 0x400
NLM_F_APPEND = 0x800

# Control message types
NLMSG_NOOP = 0x1
NLMSG_ERROR = 0x2
NLMSG_DONE = 0x3

NLMSG_HDRLEN = 16
NLMSG_ALIGNTO = 4

AF_NETLINK = getattr(socket, "AF_NETLINK", 16)
_SOCK_CLOEXEC = getattr(socket, "SOCK_CLOEXEC", 0)
_SO_SNDTIMEO = getattr(socket, "SO_SNDTIMEO", 21)
_SO_RCVTIMEO = getattr(socket, "SO_RCVTIMEO", 20)

_HEADER = struct.Struct("=IHHII")
_ERRNO = struct.Struct("=i")
_TIMEVAL = struct.Struct("@ll")

_seq_lock = threading.Lock()
_seq_counter = itertools.count(1)


def _next_seq() -> int:
    with _seq_lock:
        return next(_seq_counter) & 0xFFFFFFFF


def _nlmsg_align(length: int) -> int:
    return (length + NLMSG_ALIGNTO - 1) & ~(NLMSG_ALIGNTO - 1)


class NetlinkError(OSError):
    """Error reported by the kernel or raised while talking netlink."""


@dataclass(frozen=True)
class NetlinkMessage:
    """One message received from a netlink socket."""

    msg_type: int
    flags: int
    seq: int
    pid: int
    data: bytes


def parse_netlink_messages(b: bytes) -> list[NetlinkMessage]:
    """Split a received buffer into netlink messages."""
    data = bytes(b)
    messages = []
    offset = 0
    while len(data) - offset >= NLMSG_HDRLEN:
        length, msg_type, flags, seq, pid = _HEADER.unpack_from(data, offset)
        if length < NLMSG_HDRLEN or length > len(data) - offset:
            raise NetlinkError(f"invalid netlink message length {length}")
        payload = data[offset + NLMSG_HDRLEN : offset + length]
        messages.append(NetlinkMessage(msg_type, flags, seq, pid, payload))
        offset += _nlmsg_align(length)
    return messages


class NetlinkSocket:
    """A netlink socket; wraps any object with the socket interface."""

    def __init__(self, sock: Any) -> None:
        self._sock = sock
        self.lock = threading.Lock()

    def __enter__(self) -> "NetlinkSocket":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()

    def fileno(self) -> int:
        sock = self._sock
        return -1 if sock is None else sock.fileno()

    def send(self, request: "NetlinkRequest") -> None:
        sock = self._sock
        if sock is None:
            raise NetlinkError("Send called on a closed socket")
        sock.sendto(request.serialize(), (0, 0))

    def receive(self) -> list[NetlinkMessage]:
        sock = self._sock
        if sock is None:
            raise NetlinkError("Receive called on a closed socket")
        data = sock.recv(RECEIVE_BUFFER_SIZE)
        if len(data) < NLMSG_HDRLEN:
            raise NetlinkError("Got short response from netlink")
        return parse_netlink_messages(data)

    def _set_timeout(self, option: int, timeout: float) -> None:
        sock = self._sock
        if sock is None:
            raise NetlinkError("socket is closed")
        seconds = int(timeout)
        micros = int(round((timeout - seconds) * 1_000_000))
        sock.setsockopt(socket.SOL_SOCKET, option, _TIMEVAL.pack(seconds, micros))

    def set_send_timeout(self, timeout: float) -> None:
        """Bound how long a send may block, in seconds."""
        self._set_timeout(_SO_SNDTIMEO, timeout)

    def set_receive_timeout(self, timeout: float) -> None:
        """Bound how long a receive may block, in seconds."""
        self._set_timeout(_SO_RCVTIMEO, timeout)

    def get_pid(self) -> int:
        sock = self._sock
        if sock is None:
            raise NetlinkError("socket is closed")
        name = sock.getsockname()
        if not isinstance(name, tuple) or not name:
            raise NetlinkError("Wrong socket type")
        return name[0]


def _open(protocol: int, groups: int, extra_flags: int) -> NetlinkSocket:
    sock = socket.socket(AF_NETLINK, socket.SOCK_RAW | extra_flags, protocol)
    try:
        sock.bind((0, groups))
    except OSError:
        sock.close()
        raise
    return NetlinkSocket(sock)


def open_netlink_socket(protocol: int) -> NetlinkSocket:
    """Open and bind a netlink socket for ``protocol``."""
    return _open(protocol, 0, _SOCK_CLOEXEC)


def subscribe(protocol: int, *groups: int) -> NetlinkSocket:
    """Open a netlink socket subscribed to the given multicast groups."""
    mask = 0
    for group in groups:
        mask |= 1 << (group - 1)
    return _open(protocol, mask, 0)


@dataclass
class SocketHandle:
    """A shared netlink socket with its own sequence counter."""

    seq: int = 0
    socket: NetlinkSocket | None = None
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def _next_seq(self) -> int:
        with self._lock:
            self.seq = (self.seq + 1) & 0xFFFFFFFF
            return self.seq

    def close(self) -> None:
        if self.socket is not None:
            self.socket.close()


@dataclass
class NetlinkRequest:
    """A netlink message to be sent, with its payload parts."""

    msg_type: int
    flags: int
    seq: int
    pid: int = 0
    length: int = NLMSG_HDRLEN
    data: list = field(default_factory=list)
    raw_data: bytearray = field(default_factory=bytearray)
    sockets: dict[int, SocketHandle] | None = None

    def add_data(self, data) -> None:
        self.data.append(data)

    def add_raw_data(self, data: bytes) -> None:
        """Append raw bytes after all other payload."""
        self.raw_data += data

    def serialize(self) -> bytes:
        body = b"".join(part.serialize() for part in self.data) + bytes(self.raw_data)
        self.length = NLMSG_HDRLEN + len(body)
        header = _HEADER.pack(
            self.length, self.msg_type, self.flags & 0xFFFF, self.seq, self.pid
        )
        return header + body

    def execute(self, sock_type: int, res_type: int = 0) -> list[bytes]:
        """Send the request and collect reply payloads, filtered by ``res_type``."""
        handle = self.sockets.get(sock_type) if self.sockets else None
        if handle is not None and handle.socket is not None:
            self.seq = handle._next_seq()
            sock = handle.socket
            with sock.lock:
                return self._exchange(sock, res_type, shared=True)
        with open_netlink_socket(sock_type) as sock:
            return self._exchange(sock, res_type, shared=False)

    def _exchange(self, sock: NetlinkSocket, res_type: int, shared: bool) -> list[bytes]:
        sock.send(self)
        pid = sock.get_pid()
        results: list[bytes] = []
        while True:
            for message in sock.receive():
                if message.seq != self.seq:
                    if shared:
                        continue
                    raise NetlinkError(
                        f"Wrong Seq nr {message.seq}, expected {self.seq}"
                    )
                if message.pid != pid:
                    raise NetlinkError(f"Wrong pid {message.pid}, expected {pid}")
                if message.msg_type == NLMSG_DONE:
                    return results
                if message.msg_type == NLMSG_ERROR:
                    (code,) = _ERRNO.unpack_from(message.data, 0)
                    if code == 0:
                        return results
                    raise NetlinkError(-code, os.strerror(-code))
                if res_type and message.msg_type != res_type:
                    continue
                results.append(message.data)
                if not message.flags & NLM_F_MULTI:
                    return results


def new_netlink_request(proto: int, flags: int) -> NetlinkRequest:
    """Create a request of type ``proto`` with a fresh sequence number."""
    return NetlinkRequest(
        msg_type=proto, flags=NLM_F_REQUEST | flags, seq=_next_seq()
    )