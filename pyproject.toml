[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netlinker"
version = "0.1.0"
description = "Linux rtnetlink message encoding, decoding and traffic-control helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["netlink", "rtnetlink", "linux", "tc", "qdisc", "xfrm", "seg6", "mpls", "networking"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["netlinker"]

[tool.pytest.ini_options]
addopts = "-ra"
