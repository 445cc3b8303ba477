"""Linux rtnetlink messages, qdisc management, bridge port flags and namespace IDs."""

__version__ = "0.1.0"

__all__ = [
    "attrs",
    "messages",
    "request",
    "encap",
    "netns",
    "linkinfo",
    "protinfo",
    "xfrm",
    "tc",
    "qdisc",
    "qdisc_ops",
]