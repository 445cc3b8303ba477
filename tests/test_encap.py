import ipaddress

import pytest

from netlinker.attrs import IPV6_SRCRT_TYPE_4
from netlinker.encap import (
    SEG6_IPTUN_MODE_ENCAP,
    SEG6_IPTUN_MODE_INLINE,
    SEG6_LOCAL_ACTION_END,
    SEG6_LOCAL_ACTION_END_B6_ENCAPS,
    IPv6SrHdr,
    decode_mpls_stack,
    decode_seg6_encap,
    decode_seg6_srh,
    encode_mpls_stack,
    encode_seg6_encap,
    encode_seg6_srh,
    seg6_encap_mode_string,
    seg6_local_action_string,
)

SEGMENTS = ["2001:db8::1", "2001:db8::2"]


def test_mpls_round_trip():
    assert decode_mpls_stack(encode_mpls_stack(100, 200, 300)) == [100, 200, 300]


def test_mpls_single_label_wire_bytes():
    assert encode_mpls_stack(1) == bytes.fromhex("00001100")


def test_mpls_decode_stops_at_bottom_of_stack():
    buf = encode_mpls_stack(1, 2) + encode_mpls_stack(3)
    assert decode_mpls_stack(buf) == [1, 2]


def test_mpls_misaligned_returns_none():
    assert decode_mpls_stack(b"\x00\x01\x02") is None


def test_srh_round_trip_and_header():
    encoded = encode_seg6_srh(SEGMENTS)
    assert len(encoded) == 8 + 16 * len(SEGMENTS)
    assert encoded[2] == IPV6_SRCRT_TYPE_4
    assert encoded[3] == len(SEGMENTS) - 1
    assert encoded[1] * 8 == 16 * len(SEGMENTS)
    assert decode_seg6_srh(encoded) == [ipaddress.IPv6Address(s) for s in SEGMENTS]


def test_encap_round_trip():
    encoded = encode_seg6_encap(SEG6_IPTUN_MODE_ENCAP, SEGMENTS)
    mode, segments = decode_seg6_encap(encoded)
    assert mode == SEG6_IPTUN_MODE_ENCAP
    assert segments == [ipaddress.IPv6Address(s) for s in SEGMENTS]
    assert encoded[6] == IPV6_SRCRT_TYPE_4


def test_encode_without_segments_raises():
    with pytest.raises(ValueError):
        encode_seg6_encap(SEG6_IPTUN_MODE_INLINE, [])
    with pytest.raises(ValueError):
        encode_seg6_srh([])


def test_decode_bad_segment_list_raises():
    encoded = encode_seg6_srh(SEGMENTS)
    with pytest.raises(ValueError, match="Segment List"):
        decode_seg6_srh(encoded[:-3])
    with pytest.raises(ValueError, match="Segment List"):
        decode_seg6_encap(encode_seg6_encap(0, SEGMENTS)[:-1])


def test_srh_equality_ignores_reserved():
    a = IPv6SrHdr(hdr_len=2, reserved=1, segments=[ipaddress.IPv6Address(SEGMENTS[0])])
    b = IPv6SrHdr(hdr_len=2, reserved=9, segments=[ipaddress.IPv6Address(SEGMENTS[0])])
    c = IPv6SrHdr(hdr_len=3, segments=[ipaddress.IPv6Address(SEGMENTS[0])])
    assert a == b
    assert not a == c


def test_mode_and_action_strings():
    assert seg6_encap_mode_string(SEG6_IPTUN_MODE_INLINE) == "inline"
    assert seg6_encap_mode_string(SEG6_IPTUN_MODE_ENCAP) == "encap"
    assert seg6_encap_mode_string(99) == "unknown"
    assert seg6_local_action_string(SEG6_LOCAL_ACTION_END) == "End"
    assert seg6_local_action_string(SEG6_LOCAL_ACTION_END_B6_ENCAPS) == "End.B6.Encaps"
    assert seg6_local_action_string(0) == "unknown"