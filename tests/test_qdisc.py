import pytest

from netlinker.qdisc import (
    HANDLE_CLSACT,
    HANDLE_INGRESS,
    HANDLE_NONE,
    HANDLE_ROOT,
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
    QdiscAttrs,
    Tbf,
    handle_str,
    major_minor,
    make_handle,
    percentage2u32,
)


@pytest.mark.parametrize("major, minor", [(1, 0), (2, 0), (0xFFFF, 0xFFFF), (7, 42)])
def test_make_handle_round_trip(major, minor):
    assert major_minor(make_handle(major, minor)) == (major, minor)


def test_handle_names():
    assert handle_str(HANDLE_NONE) == "none"
    assert handle_str(HANDLE_INGRESS) == "ingress"
    assert handle_str(HANDLE_CLSACT) == "ingress"
    assert handle_str(HANDLE_ROOT) == "root"


def test_handle_str_hex_form():
    assert handle_str(make_handle(1, 0)) == "1:0"
    assert handle_str(make_handle(0xAB, 0xCD)) == "ab:cd"


def test_percentage_full_scale():
    assert percentage2u32(100) == 0xFFFFFFFF
    assert percentage2u32(0) == 0


def test_percentage_is_monotonic():
    values = [percentage2u32(p) for p in (0.5, 10, 25, 50, 75, 99.5)]
    assert values == sorted(values)
    assert all(0 < v < 0xFFFFFFFF for v in values)


def test_types():
    assert Tbf().type == "tbf"
    assert Htb().type == "htb"
    assert Prio().type == "prio"
    assert PfifoFast().type == "pfifo_fast"
    assert Netem().type == "netem"
    assert Ingress().type == "ingress"
    assert Hfsc().type == "hfsc"
    assert Fq().type == "fq"
    assert FqCodel().type == "fq_codel"
    assert GenericQdisc(qdisc_type="sfq").type == "sfq"


def test_defaults_follow_constructors():
    assert Prio().bands == 3
    assert Prio().priority_map == (1, 2, 2, 2, 1, 2, 0, 0, 1, 1, 1, 1, 1, 1, 1, 1)
    htb = Htb()
    assert (htb.version, htb.rate2quantum, htb.defcls, htb.debug) == (3, 10, 0, 0)
    assert Hfsc().defcls == 1
    assert Fq().pacing == 1
    assert FqCodel().ecn == 1


def test_attrs_are_carried():
    attrs = QdiscAttrs(link_index=4, handle=make_handle(1, 0), parent=HANDLE_ROOT)
    qdisc = Tbf(attrs=attrs, rate=131072, limit=1220703, buffer=16793)
    assert qdisc.attrs.parent == HANDLE_ROOT
    assert qdisc.rate == 131072


def test_priority_map_length_checked():
    with pytest.raises(ValueError):
        Prio(priority_map=(1, 2, 3))
    with pytest.raises(ValueError):
        PfifoFast(priority_map=(300,) * 16)


def test_qdisc_attrs_str():
    attrs = QdiscAttrs(link_index=2, handle=make_handle(1, 0), parent=HANDLE_ROOT)
    assert str(attrs) == "{LinkIndex: 2, Handle: 1:0, Parent: root, Refcnt: 0}"


def test_hfsc_and_fq_codel_str_embed_attrs():
    attrs = QdiscAttrs(link_index=3, parent=HANDLE_ROOT)
    assert str(Hfsc(attrs=attrs)) == "{" + str(attrs) + " -- default: 1}"
    text = str(FqCodel(attrs=attrs, quantum=9000))
    assert text.startswith("{" + str(attrs) + " -- Target: 0")
    assert "Quantum: 9000}" in text


def test_netem_attrs_str_uses_fixed_decimals():
    text = str(NetemQdiscAttrs(latency=5, loss=1.5))
    assert text.startswith("{Latency: 5, Limit: 0, Loss: 1.500000,")


def test_fq_str_lists_fields():
    text = str(Fq(flow_packet_limit=123, pacing=0))
    assert "FlowPacketLimit: 123" in text
    assert "Pacing: 0" in text
    assert text.endswith("LowRateTreshold: 0}")