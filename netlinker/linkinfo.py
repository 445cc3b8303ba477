"""Link, conntrack, devlink and RDMA netlink constants and VF structs."""

from __future__ import annotations

from dataclasses import dataclass

from netlinker.attrs import NetlinkStruct

DEFAULT_CHANGE = 0xFFFFFFFF

# Link info
IFLA_INFO_UNSPEC = 0
IFLA_INFO_KIND = 1
IFLA_INFO_DATA = 2
IFLA_INFO_XSTATS = 3
IFLA_INFO_MAX = IFLA_INFO_XSTATS

# VLAN
IFLA_VLAN_UNSPEC = 0
IFLA_VLAN_ID = 1
IFLA_VLAN_FLAGS = 2
IFLA_VLAN_EGRESS_QOS = 3
IFLA_VLAN_INGRESS_QOS = 4
IFLA_VLAN_PROTOCOL = 5
IFLA_VLAN_MAX = IFLA_VLAN_PROTOCOL

# veth
VETH_INFO_UNSPEC = 0
VETH_INFO_PEER = 1
VETH_INFO_MAX = VETH_INFO_PEER

# VXLAN
IFLA_VXLAN_UNSPEC = 0
IFLA_VXLAN_ID = 1
IFLA_VXLAN_GROUP = 2
IFLA_VXLAN_LINK = 3
IFLA_VXLAN_LOCAL = 4
IFLA_VXLAN_TTL = 5
IFLA_VXLAN_TOS = 6
IFLA_VXLAN_LEARNING = 7
IFLA_VXLAN_AGEING = 8
IFLA_VXLAN_LIMIT = 9
IFLA_VXLAN_PORT_RANGE = 10
IFLA_VXLAN_PROXY = 11
IFLA_VXLAN_RSC = 12
IFLA_VXLAN_L2MISS = 13
IFLA_VXLAN_L3MISS = 14
IFLA_VXLAN_PORT = 15
IFLA_VXLAN_GROUP6 = 16
IFLA_VXLAN_LOCAL6 = 17
IFLA_VXLAN_UDP_CSUM = 18
IFLA_VXLAN_UDP_ZERO_CSUM6_TX = 19
IFLA_VXLAN_UDP_ZERO_CSUM6_RX = 20
IFLA_VXLAN_REMCSUM_TX = 21
IFLA_VXLAN_REMCSUM_RX = 22
IFLA_VXLAN_GBP = 23
IFLA_VXLAN_REMCSUM_NOPARTIAL = 24
IFLA_VXLAN_FLOWBASED = 25
IFLA_VXLAN_MAX = IFLA_VXLAN_FLOWBASED

BRIDGE_MODE_UNSPEC = 0
BRIDGE_MODE_HAIRPIN = 1

# Bridge port attributes
IFLA_BRPORT_UNSPEC = 0
IFLA_BRPORT_STATE = 1
IFLA_BRPORT_PRIORITY = 2
IFLA_BRPORT_COST = 3
IFLA_BRPORT_MODE = 4
IFLA_BRPORT_GUARD = 5
IFLA_BRPORT_PROTECT = 6
IFLA_BRPORT_FAST_LEAVE = 7
IFLA_BRPORT_LEARNING = 8
IFLA_BRPORT_UNICAST_FLOOD = 9
IFLA_BRPORT_PROXYARP = 10
IFLA_BRPORT_LEARNING_SYNC = 11
IFLA_BRPORT_PROXYARP_WIFI = 12
IFLA_BRPORT_MAX = IFLA_BRPORT_PROXYARP_WIFI

# IPVLAN
IFLA_IPVLAN_UNSPEC = 0
IFLA_IPVLAN_MODE = 1
IFLA_IPVLAN_MAX = IFLA_IPVLAN_MODE

# MACVLAN
IFLA_MACVLAN_UNSPEC = 0
IFLA_MACVLAN_MODE = 1
IFLA_MACVLAN_FLAGS = 2
IFLA_MACVLAN_MACADDR_MODE = 3
IFLA_MACVLAN_MACADDR = 4
IFLA_MACVLAN_MACADDR_DATA = 5
IFLA_MACVLAN_MACADDR_COUNT = 6
IFLA_MACVLAN_MAX = IFLA_MACVLAN_FLAGS

MACVLAN_MODE_PRIVATE = 1
MACVLAN_MODE_VEPA = 2
MACVLAN_MODE_BRIDGE = 4
MACVLAN_MODE_PASSTHRU = 8
MACVLAN_MODE_SOURCE = 16

MACVLAN_MACADDR_ADD = 0
MACVLAN_MACADDR_DEL = 1
MACVLAN_MACADDR_FLUSH = 2
MACVLAN_MACADDR_SET = 3

# Bonding
IFLA_BOND_UNSPEC = 0
IFLA_BOND_MODE = 1
IFLA_BOND_ACTIVE_SLAVE = 2
IFLA_BOND_MIIMON = 3
IFLA_BOND_UPDELAY = 4
IFLA_BOND_DOWNDELAY = 5
IFLA_BOND_USE_CARRIER = 6
IFLA_BOND_ARP_INTERVAL = 7
IFLA_BOND_ARP_IP_TARGET = 8
IFLA_BOND_ARP_VALIDATE = 9
IFLA_BOND_ARP_ALL_TARGETS = 10
IFLA_BOND_PRIMARY = 11
IFLA_BOND_PRIMARY_RESELECT = 12
IFLA_BOND_FAIL_OVER_MAC = 13
IFLA_BOND_XMIT_HASH_POLICY = 14
IFLA_BOND_RESEND_IGMP = 15
IFLA_BOND_NUM_PEER_NOTIF = 16
IFLA_BOND_ALL_SLAVES_ACTIVE = 17
IFLA_BOND_MIN_LINKS = 18
IFLA_BOND_LP_INTERVAL = 19
IFLA_BOND_PACKETS_PER_SLAVE = 20
IFLA_BOND_AD_LACP_RATE = 21
IFLA_BOND_AD_SELECT = 22
IFLA_BOND_AD_INFO = 23
IFLA_BOND_AD_ACTOR_SYS_PRIO = 24
IFLA_BOND_AD_USER_PORT_KEY = 25
IFLA_BOND_AD_ACTOR_SYSTEM = 26
IFLA_BOND_TLB_DYNAMIC_LB = 27

IFLA_BOND_AD_INFO_UNSPEC = 0
IFLA_BOND_AD_INFO_AGGREGATOR = 1
IFLA_BOND_AD_INFO_NUM_PORTS = 2
IFLA_BOND_AD_INFO_ACTOR_KEY = 3
IFLA_BOND_AD_INFO_PARTNER_KEY = 4
IFLA_BOND_AD_INFO_PARTNER_MAC = 5

IFLA_BOND_SLAVE_UNSPEC = 0
IFLA_BOND_SLAVE_STATE = 1
IFLA_BOND_SLAVE_MII_STATUS = 2
IFLA_BOND_SLAVE_LINK_FAILURE_COUNT = 3
IFLA_BOND_SLAVE_PERM_HWADDR = 4
IFLA_BOND_SLAVE_QUEUE_ID = 5
IFLA_BOND_SLAVE_AD_AGGREGATOR_ID = 6

# GRE
IFLA_GRE_UNSPEC = 0
IFLA_GRE_LINK = 1
IFLA_GRE_IFLAGS = 2
IFLA_GRE_OFLAGS = 3
IFLA_GRE_IKEY = 4
IFLA_GRE_OKEY = 5
IFLA_GRE_LOCAL = 6
IFLA_GRE_REMOTE = 7
IFLA_GRE_TTL = 8
IFLA_GRE_TOS = 9
IFLA_GRE_PMTUDISC = 10
IFLA_GRE_ENCAP_LIMIT = 11
IFLA_GRE_FLOWINFO = 12
IFLA_GRE_FLAGS = 13
IFLA_GRE_ENCAP_TYPE = 14
IFLA_GRE_ENCAP_FLAGS = 15
IFLA_GRE_ENCAP_SPORT = 16
IFLA_GRE_ENCAP_DPORT = 17
IFLA_GRE_COLLECT_METADATA = 18
IFLA_GRE_MAX = IFLA_GRE_COLLECT_METADATA

GRE_CSUM = 0x8000
GRE_ROUTING = 0x4000
GRE_KEY = 0x2000
GRE_SEQ = 0x1000
GRE_STRICT = 0x0800
GRE_REC = 0x0700
GRE_FLAGS = 0x00F8
GRE_VERSION = 0x0007

# Virtual functions
IFLA_VF_INFO_UNSPEC = 0
IFLA_VF_INFO = 1
IFLA_VF_INFO_MAX = IFLA_VF_INFO

IFLA_VF_UNSPEC = 0
IFLA_VF_MAC = 1
IFLA_VF_VLAN = 2
IFLA_VF_TX_RATE = 3
IFLA_VF_SPOOFCHK = 4
IFLA_VF_LINK_STATE = 5
IFLA_VF_RATE = 6
IFLA_VF_RSS_QUERY_EN = 7
IFLA_VF_STATS = 8
IFLA_VF_TRUST = 9
IFLA_VF_IB_NODE_GUID = 10
IFLA_VF_IB_PORT_GUID = 11
IFLA_VF_MAX = IFLA_VF_IB_PORT_GUID

IFLA_VF_LINK_STATE_AUTO = 0
IFLA_VF_LINK_STATE_ENABLE = 1
IFLA_VF_LINK_STATE_DISABLE = 2
IFLA_VF_LINK_STATE_MAX = IFLA_VF_LINK_STATE_DISABLE

IFLA_VF_STATS_RX_PACKETS = 0
IFLA_VF_STATS_TX_PACKETS = 1
IFLA_VF_STATS_RX_BYTES = 2
IFLA_VF_STATS_TX_BYTES = 3
IFLA_VF_STATS_BROADCAST = 4
IFLA_VF_STATS_MULTICAST = 5
IFLA_VF_STATS_MAX = IFLA_VF_STATS_MULTICAST

SIZEOF_VF_MAC = 0x24
SIZEOF_VF_VLAN = 0x0C
SIZEOF_VF_TX_RATE = 0x08
SIZEOF_VF_RATE = 0x0C
SIZEOF_VF_SPOOFCHK = 0x08
SIZEOF_VF_LINK_STATE = 0x08
SIZEOF_VF_RSS_QUERY_EN = 0x08
SIZEOF_VF_TRUST = 0x08
SIZEOF_VF_GUID = 0x10

# XDP
XDP_FLAGS_UPDATE_IF_NOEXIST = 1 << 0
XDP_FLAGS_SKB_MODE = 1 << 1
XDP_FLAGS_DRV_MODE = 1 << 2
XDP_FLAGS_MASK = XDP_FLAGS_UPDATE_IF_NOEXIST | XDP_FLAGS_SKB_MODE | XDP_FLAGS_DRV_MODE

IFLA_XDP_UNSPEC = 0
IFLA_XDP_FD = 1
IFLA_XDP_ATTACHED = 2
IFLA_XDP_FLAGS = 3
IFLA_XDP_PROG_ID = 4
IFLA_XDP_MAX = IFLA_XDP_PROG_ID

# IP tunnels
IFLA_IPTUN_UNSPEC = 0
IFLA_IPTUN_LINK = 1
IFLA_IPTUN_LOCAL = 2
IFLA_IPTUN_REMOTE = 3
IFLA_IPTUN_TTL = 4
IFLA_IPTUN_TOS = 5
IFLA_IPTUN_ENCAP_LIMIT = 6
IFLA_IPTUN_FLOWINFO = 7
IFLA_IPTUN_FLAGS = 8
IFLA_IPTUN_PROTO = 9
IFLA_IPTUN_PMTUDISC = 10
IFLA_IPTUN_6RD_PREFIX = 11
IFLA_IPTUN_6RD_RELAY_PREFIX = 12
IFLA_IPTUN_6RD_PREFIXLEN = 13
IFLA_IPTUN_6RD_RELAY_PREFIXLEN = 14
IFLA_IPTUN_ENCAP_TYPE = 15
IFLA_IPTUN_ENCAP_FLAGS = 16
IFLA_IPTUN_ENCAP_SPORT = 17
IFLA_IPTUN_ENCAP_DPORT = 18
IFLA_IPTUN_COLLECT_METADATA = 19
IFLA_IPTUN_MAX = IFLA_IPTUN_COLLECT_METADATA

# VTI
IFLA_VTI_UNSPEC = 0
IFLA_VTI_LINK = 1
IFLA_VTI_IKEY = 2
IFLA_VTI_OKEY = 3
IFLA_VTI_LOCAL = 4
IFLA_VTI_REMOTE = 5
IFLA_VTI_MAX = IFLA_VTI_REMOTE

# VRF
IFLA_VRF_UNSPEC = 0
IFLA_VRF_TABLE = 1

# Bridge device attributes
IFLA_BR_UNSPEC = 0
IFLA_BR_FORWARD_DELAY = 1
IFLA_BR_HELLO_TIME = 2
IFLA_BR_MAX_AGE = 3
IFLA_BR_AGEING_TIME = 4
IFLA_BR_STP_STATE = 5
IFLA_BR_PRIORITY = 6
IFLA_BR_VLAN_FILTERING = 7
IFLA_BR_VLAN_PROTOCOL = 8
IFLA_BR_GROUP_FWD_MASK = 9
IFLA_BR_ROOT_ID = 10
IFLA_BR_BRIDGE_ID = 11
IFLA_BR_ROOT_PORT = 12
IFLA_BR_ROOT_PATH_COST = 13
IFLA_BR_TOPOLOGY_CHANGE = 14
IFLA_BR_TOPOLOGY_CHANGE_DETECTED = 15
IFLA_BR_HELLO_TIMER = 16
IFLA_BR_TCN_TIMER = 17
IFLA_BR_TOPOLOGY_CHANGE_TIMER = 18
IFLA_BR_GC_TIMER = 19
IFLA_BR_GROUP_ADDR = 20
IFLA_BR_FDB_FLUSH = 21
IFLA_BR_MCAST_ROUTER = 22
IFLA_BR_MCAST_SNOOPING = 23
IFLA_BR_MCAST_QUERY_USE_IFADDR = 24
IFLA_BR_MCAST_QUERIER = 25
IFLA_BR_MCAST_HASH_ELASTICITY = 26
IFLA_BR_MCAST_HASH_MAX = 27
IFLA_BR_MCAST_LAST_MEMBER_CNT = 28
IFLA_BR_MCAST_STARTUP_QUERY_CNT = 29
IFLA_BR_MCAST_LAST_MEMBER_INTVL = 30
IFLA_BR_MCAST_MEMBERSHIP_INTVL = 31
IFLA_BR_MCAST_QUERIER_INTVL = 32
IFLA_BR_MCAST_QUERY_INTVL = 33
IFLA_BR_MCAST_QUERY_RESPONSE_INTVL = 34
IFLA_BR_MCAST_STARTUP_QUERY_INTVL = 35
IFLA_BR_NF_CALL_IPTABLES = 36
IFLA_BR_NF_CALL_IP6TABLES = 37
IFLA_BR_NF_CALL_ARPTABLES = 38
IFLA_BR_VLAN_DEFAULT_PVID = 39
IFLA_BR_PAD = 40
IFLA_BR_VLAN_STATS_ENABLED = 41
IFLA_BR_MCAST_STATS_ENABLED = 42
IFLA_BR_MCAST_IGMP_VERSION = 43
IFLA_BR_MCAST_MLD_VERSION = 44
IFLA_BR_MAX = IFLA_BR_MCAST_MLD_VERSION

# GTP
IFLA_GTP_UNSPEC = 0
IFLA_GTP_FD0 = 1
IFLA_GTP_FD1 = 2
IFLA_GTP_PDP_HASHSIZE = 3
IFLA_GTP_ROLE = 4

GTP_ROLE_GGSN = 0
GTP_ROLE_SGSN = 1

# XFRM interface
IFLA_XFRM_UNSPEC = 0
IFLA_XFRM_LINK = 1
IFLA_XFRM_IF_ID = 2
IFLA_XFRM_MAX = IFLA_XFRM_IF_ID

# Conntrack
SIZEOF_NFGENMSG = 4
SIZEOF_NFATTR = 4
SIZEOF_NF_CONNTRACK = 376
SIZEOF_NFCT_TUPLE_HEAD = 52

L4_PROTO_MAP = {6: "tcp", 17: "udp"}

IPCTNL_MSG_CT_GET = 1
IPCTNL_MSG_CT_DELETE = 2

NFNETLINK_V0 = 0

NLA_F_NESTED = 1 << 15

CTA_TUPLE_ORIG = 1
CTA_TUPLE_REPLY = 2
CTA_STATUS = 3
CTA_PROTOINFO = 4
CTA_TIMEOUT = 7
CTA_MARK = 8
CTA_COUNTERS_ORIG = 9
CTA_COUNTERS_REPLY = 10

CTA_TUPLE_IP = 1
CTA_TUPLE_PROTO = 2

CTA_IP_V4_SRC = 1
CTA_IP_V4_DST = 2
CTA_IP_V6_SRC = 3
CTA_IP_V6_DST = 4

CTA_PROTO_NUM = 1
CTA_PROTO_SRC_PORT = 2
CTA_PROTO_DST_PORT = 3

CTA_PROTOINFO_TCP = 1

CTA_PROTOINFO_TCP_STATE = 1
CTA_PROTOINFO_TCP_WSCALE_ORIGINAL = 2
CTA_PROTOINFO_TCP_WSCALE_REPLY = 3
CTA_PROTOINFO_TCP_FLAGS_ORIGINAL = 4
CTA_PROTOINFO_TCP_FLAGS_REPLY = 5

CTA_COUNTERS_PACKETS = 1
CTA_COUNTERS_BYTES = 2

# Devlink
GENL_DEVLINK_VERSION = 1
GENL_DEVLINK_NAME = "devlink"

DEVLINK_CMD_GET = 1
DEVLINK_CMD_ESWITCH_GET = 29

DEVLINK_ATTR_BUS_NAME = 1
DEVLINK_ATTR_DEV_NAME = 2
DEVLINK_ATTR_ESWITCH_MODE = 25
DEVLINK_ATTR_ESWITCH_INLINE_MODE = 26
DEVLINK_ATTR_ESWITCH_ENCAP_MODE = 62

DEVLINK_ESWITCH_MODE_LEGACY = 0
DEVLINK_ESWITCH_MODE_SWITCHDEV = 1

DEVLINK_ESWITCH_INLINE_MODE_NONE = 0
DEVLINK_ESWITCH_INLINE_MODE_LINK = 1
DEVLINK_ESWITCH_INLINE_MODE_NETWORK = 2
DEVLINK_ESWITCH_INLINE_MODE_TRANSPORT = 3

DEVLINK_ESWITCH_ENCAP_MODE_NONE = 0
DEVLINK_ESWITCH_ENCAP_MODE_BASIC = 1

# RDMA
RDMA_NL_GET_CLIENT_SHIFT = 10
RDMA_NL_NLDEV = 5

RDMA_NLDEV_CMD_GET = 1
RDMA_NLDEV_CMD_SET = 2

RDMA_NLDEV_ATTR_DEV_INDEX = 1
RDMA_NLDEV_ATTR_DEV_NAME = 2
RDMA_NLDEV_ATTR_PORT_INDEX = 3
RDMA_NLDEV_ATTR_CAP_FLAGS = 4
RDMA_NLDEV_ATTR_FW_VERSION = 5
RDMA_NLDEV_ATTR_NODE_GUID = 6
RDMA_NLDEV_ATTR_SYS_IMAGE_GUID = 7
RDMA_NLDEV_ATTR_SUBNET_PREFIX = 8
RDMA_NLDEV_ATTR_LID = 9
RDMA_NLDEV_ATTR_SM_LID = 10
RDMA_NLDEV_ATTR_LMC = 11
RDMA_NLDEV_ATTR_PORT_STATE = 12
RDMA_NLDEV_ATTR_PORT_PHYS_STATE = 13
RDMA_NLDEV_ATTR_DEV_NODE_TYPE = 14


@dataclass
class VfMac(NetlinkStruct):
    """struct ifla_vf_mac."""

    vf: int = 0
    mac: bytes = bytes(32)

    _layout = ("I", "32s")


@dataclass
class VfVlan(NetlinkStruct):
    """struct ifla_vf_vlan; vlan 0 disables the filter."""

    vf: int = 0
    vlan: int = 0
    qos: int = 0

    _layout = ("I", "I", "I")


@dataclass
class VfTxRate(NetlinkStruct):
    """struct ifla_vf_tx_rate; rate in Mbps, 0 disables throttling."""

    vf: int = 0
    rate: int = 0

    _layout = ("I", "I")


@dataclass
class VfRate(NetlinkStruct):
    """struct ifla_vf_rate; rates in Mbps."""

    vf: int = 0
    min_tx_rate: int = 0
    max_tx_rate: int = 0

    _layout = ("I", "I", "I")


@dataclass
class VfSpoofchk(NetlinkStruct):
    """struct ifla_vf_spoofchk."""

    vf: int = 0
    setting: int = 0

    _layout = ("I", "I")


@dataclass
class VfLinkState(NetlinkStruct):
    """struct ifla_vf_link_state."""

    vf: int = 0
    link_state: int = 0

    _layout = ("I", "I")


@dataclass
class VfRssQueryEn(NetlinkStruct):
    """struct ifla_vf_rss_query_en."""

    vf: int = 0
    setting: int = 0

    _layout = ("I", "I")


@dataclass
class VfTrust(NetlinkStruct):
    """struct ifla_vf_trust."""

    vf: int = 0
    setting: int = 0

    _layout = ("I", "I")


@dataclass
class VfGUID(NetlinkStruct):
    """struct ifla_vf_guid."""

    vf: int = 0
    rsvd: int = 0
    guid: int = 0

    _layout = ("I", "I", "Q")


@dataclass
class Nfgenmsg(NetlinkStruct):
    """struct nfgenmsg; ``res_id`` is kept as stored (big endian on the wire)."""

    nfgen_family: int = 0
    version: int = 0
    res_id: int = 0

    _layout = ("B", "B", "H")