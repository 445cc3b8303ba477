"""MPLS label stacks and IPv6 segment-routing encapsulation."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field

from netlinker.attrs import IPV6_SRCRT_TYPE_4

MPLS_LS_LABEL_SHIFT = 12
MPLS_LS_S_SHIFT = 8

# seg6 encap modes
SEG6_IPTUN_MODE_INLINE = 0
SEG6_IPTUN_MODE_ENCAP = 1

SEG6_IPTUNNEL_UNSPEC = 0
SEG6_IPTUNNEL_SRH = 1
SEG6_IPTUNNEL_MAX = 1

# seg6local parameters
SEG6_LOCAL_UNSPEC = 0
SEG6_LOCAL_ACTION = 1
SEG6_LOCAL_SRH = 2
SEG6_LOCAL_TABLE = 3
SEG6_LOCAL_NH4 = 4
SEG6_LOCAL_NH6 = 5
SEG6_LOCAL_IIF = 6
SEG6_LOCAL_OIF = 7
SEG6_LOCAL_MAX = 8

# seg6local actions
SEG6_LOCAL_ACTION_END = 1
SEG6_LOCAL_ACTION_END_X = 2
SEG6_LOCAL_ACTION_END_T = 3
SEG6_LOCAL_ACTION_END_DX2 = 4
SEG6_LOCAL_ACTION_END_DX6 = 5
SEG6_LOCAL_ACTION_END_DX4 = 6
SEG6_LOCAL_ACTION_END_DT6 = 7
SEG6_LOCAL_ACTION_END_DT4 = 8
SEG6_LOCAL_ACTION_END_B6 = 9
SEG6_LOCAL_ACTION_END_B6_ENCAPS = 10
SEG6_LOCAL_ACTION_END_BM = 11
SEG6_LOCAL_ACTION_END_S = 12
SEG6_LOCAL_ACTION_END_AS = 13
SEG6_LOCAL_ACTION_END_AM = 14
SEG6_LOCAL_ACTION_MAX = 14

_ACTION_NAMES = {
    SEG6_LOCAL_ACTION_END: "End",
    SEG6_LOCAL_ACTION_END_X: "End.X",
    SEG6_LOCAL_ACTION_END_T: "End.T",
    SEG6_LOCAL_ACTION_END_DX2: "End.DX2",
    SEG6_LOCAL_ACTION_END_DX6: "End.DX6",
    SEG6_LOCAL_ACTION_END_DX4: "End.DX4",
    SEG6_LOCAL_ACTION_END_DT6: "End.DT6",
    SEG6_LOCAL_ACTION_END_DT4: "End.DT4",
    SEG6_LOCAL_ACTION_END_B6: "End.B6",
    SEG6_LOCAL_ACTION_END_B6_ENCAPS: "End.B6.Encaps",
    SEG6_LOCAL_ACTION_END_BM: "End.BM",
    SEG6_LOCAL_ACTION_END_S: "End.S",
    SEG6_LOCAL_ACTION_END_AS: "End.AS",
    SEG6_LOCAL_ACTION_END_AM: "End.AM",
}

_MODE_NAMES = {SEG6_IPTUN_MODE_INLINE: "inline", SEG6_IPTUN_MODE_ENCAP: "encap"}

_U32 = struct.Struct("=I")
_SRH = struct.Struct("=BBBBBBH")


@dataclass
class IPv6SrHdr:
    """IPv6 segment routing header; ``reserved`` is ignored in comparisons."""

    next_hdr: int = 0
    hdr_len: int = 0
    routing_type: int = 0
    segments_left: int = 0
    first_segment: int = 0
    flags: int = 0
    reserved: int = field(default=0, compare=False)
    segments: list[ipaddress.IPv6Address] = field(default_factory=list)


def encode_mpls_stack(*labels: int) -> bytes:
    """Encode labels as an MPLS stack, marking the last as bottom of stack."""
    out = bytearray()
    last = len(labels) - 1
    for position, label in enumerate(labels):
        word = label << MPLS_LS_LABEL_SHIFT
        if position == last:
            word |= 1 << MPLS_LS_S_SHIFT
        out += (word & 0xFFFFFFFF).to_bytes(4, "big")
    return bytes(out)


def decode_mpls_stack(buf: bytes) -> list[int] | None:
    """Decode labels up to the bottom-of-stack entry; None if misaligned."""
    if len(buf) % 4:
        return None
    stack = []
    for offset in range(0, len(buf), 4):
        word = int.from_bytes(buf[offset : offset + 4], "big")
        stack.append(word >> MPLS_LS_LABEL_SHIFT)
        if (word >> MPLS_LS_S_SHIFT) & 1:
            break
    return stack


def _segment_bytes(ip) -> bytes:
    if isinstance(ip, (bytes, bytearray)):
        raw = bytes(ip)
        if len(raw) != 16:
            raise ValueError(f"segment must be 16 bytes, got {len(raw)}")
        return raw
    addr = ipaddress.ip_address(ip)
    if addr.version == 4:
        return b"\x00" * 10 + b"\xff\xff" + addr.packed
    return addr.packed


def _srh_header(nsegs: int) -> bytes:
    return _SRH.pack(
        0,
        (16 * nsegs >> 3) & 0xFF,
        IPV6_SRCRT_TYPE_4,
        (nsegs - 1) & 0xFF,
        (nsegs - 1) & 0xFF,
        0,
        0,
    )


def _decode_segments(buf: bytes, what: str) -> list[ipaddress.IPv6Address]:
    if len(buf) % 16:
        raise ValueError(f"{what}: error parsing Segment List (buf len: {len(buf)})")
    return [
        ipaddress.IPv6Address(bytes(buf[offset : offset + 16]))
        for offset in range(0, len(buf), 16)
    ]


def encode_seg6_encap(mode: int, segments) -> bytes:
    """Encode a seg6 tunnel encapsulation: mode followed by the SRH."""
    segments = list(segments)
    if not segments:
        raise ValueError("EncodeSEG6Encap: No Segment in srh")
    body = b"".join(_segment_bytes(ip) for ip in segments)
    return _U32.pack(mode & 0xFFFFFFFF) + _srh_header(len(segments)) + body


def decode_seg6_encap(buf: bytes) -> tuple[int, list[ipaddress.IPv6Address]]:
    """Decode a seg6 encapsulation into its mode and segment list."""
    if len(buf) < 12:
        raise ValueError(f"DecodeSEG6Encap: buffer too short ({len(buf)} bytes)")
    (mode,) = _U32.unpack_from(buf, 0)
    return mode, _decode_segments(buf[12:], "DecodeSEG6Encap")


def encode_seg6_srh(segments) -> bytes:
    """Encode a bare segment routing header."""
    segments = list(segments)
    if not segments:
        raise ValueError("EncodeSEG6Srh: No Segments")
    body = b"".join(_segment_bytes(ip) for ip in segments)
    return _srh_header(len(segments)) + body


def decode_seg6_srh(buf: bytes) -> list[ipaddress.IPv6Address]:
    """Decode the segment list of a bare segment routing header."""
    if len(buf) < 8:
        raise ValueError(f"DecodeSEG6Srh: buffer too short ({len(buf)} bytes)")
    return _decode_segments(buf[8:], "DecodeSEG6Srh")


def seg6_encap_mode_string(mode: int) -> str:
    return _MODE_NAMES.get(mode, "unknown")


def seg6_local_action_string(action: int) -> str:
    return _ACTION_NAMES.get(action, "unknown")