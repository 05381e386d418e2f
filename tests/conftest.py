"""Shared fixtures: fake /proc and /sys trees and a wired TableBuilder."""

import os
import socket
import sys
import warnings
from collections import namedtuple
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import psutil
import pytest

# Silence DeprecationWarnings from pysnmp itself; they are not actionable here
warnings.filterwarnings("ignore", category=DeprecationWarning, module=r"pysnmp.*")

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from linux_mib.if_index import InterfaceIndexRegistry  # noqa: E402
from linux_mib.pci_ids import PciIdDatabase  # noqa: E402
from linux_mib.procfs import ProcfsReader  # noqa: E402
from linux_mib.sysfs import SysfsReader  # noqa: E402
from linux_mib.table_builder import TableBuilder  # noqa: E402

# Same shape as psutil's snicaddr
FakeAddr = namedtuple("FakeAddr", "family address netmask broadcast ptp")

NET_SNMP = """\
Ip: Forwarding DefaultTTL InReceives InHdrErrors InAddrErrors ForwDatagrams InUnknownProtos InDiscards InDelivers OutRequests OutDiscards OutNoRoutes ReasmTimeout ReasmReqds ReasmOKs ReasmFails FragOKs FragFails FragCreates
Ip: 2 64 4294967301 0 3 0 0 0 1000 900 0 12 30 0 0 0 0 0 0
Icmp: InMsgs InErrors InCsumErrors InDestUnreachs InTimeExcds InParmProbs InSrcQuenchs InRedirects InEchos InEchoReps InTimestamps InTimestampReps InAddrMasks InAddrMaskReps OutMsgs OutErrors OutRateLimitGlobal OutRateLimitHost OutDestUnreachs OutTimeExcds OutParmProbs OutSrcQuenchs OutRedirects OutEchos OutEchoReps OutTimestamps OutTimestampReps OutAddrMasks OutAddrMaskReps
Icmp: 45 1 0 44 0 0 0 0 1 0 0 0 0 0 50 0 0 0 49 0 0 0 0 0 1 0 0 0 0
IcmpMsg: InType3 OutType3
IcmpMsg: 44 49
Tcp: RtoAlgorithm RtoMin RtoMax MaxConn ActiveOpens PassiveOpens AttemptFails EstabResets CurrEstab InSegs OutSegs RetransSegs InErrs OutRsts InCsumErrors
Tcp: 1 200 120000 -1 500 20 3 4 5 10000 9000 7 0 11 0
Udp: InDatagrams NoPorts InErrors OutDatagrams RcvbufErrors SndbufErrors InCsumErrors IgnoredMulti MemErrors
Udp: 300 2 0 310 0 0 0 0 0
UdpLite: InDatagrams NoPorts InErrors OutDatagrams RcvbufErrors SndbufErrors InCsumErrors IgnoredMulti MemErrors
UdpLite: 0 0 0 0 0 0 0 0 0
"""

NET_ROUTE = """\
Iface\tDestination\tGateway \tFlags\tRefCnt\tUse\tMetric\tMask\t\tMTU\tWindow\tIRTT
eth0\t00000000\t0101A8C0\t0003\t0\t0\t100\t00000000\t0\t0\t0
eth0\t0001A8C0\t00000000\t0001\t0\t0\t100\t00FFFFFF\t0\t0\t0
"""

NET_TCP = """\
  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
   0: 0100007F:0277 00000000:0000 0A 00000000:00000000 00:00000000 00000000     0        0 20954 1 0000000000000000 100 0 0 10 0
   1: 0F01A8C0:0016 6401A8C0:D431 01 00000000:00000000 02:0006C1A4 00000000     0        0 30512 4 0000000000000000 20 4 29 10 -1
"""

NET_UDP = """\
   sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode ref pointer drops
  412: 00000000:0044 00000000:0000 07 00000000:00000000 00:00000000 00000000     0        0 19235 2 0000000000000000 0
"""

SNMP6_ETH0 = """\
Ip6InReceives                   \t120
Ip6InHdrErrors                  \t1
Ip6InDelivers                   \t118
Ip6OutRequests                  \t4294967297
Ip6InMcastPkts                  \t9
Icmp6InMsgs                     \t4
"""

PCI_IDS = """\
# List of PCI ID's
8086  Intel Corporation
\t100e  82540EM Gigabit Ethernet Controller
\t\t8086 001e  PRO/1000 MT Desktop Adapter
10ec  Realtek Semiconductor Co., Ltd.
\t8168  RTL8111/8168/8411 PCI Express Gigabit Ethernet Controller
C 02  Network controller
\t00  Ethernet controller
"""

DEFAULT_STATISTICS = {
    "rx_bytes": 5000,
    "rx_packets": 60,
    "multicast": 10,
    "rx_dropped": 2,
    "rx_missed_errors": 1,
    "rx_errors": 3,
    "tx_bytes": 7000,
    "tx_packets": 70,
    "tx_dropped": 4,
    "tx_errors": 5,
}


def write_tree(root: Path, files: Dict[str, Any]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{content}\n" if not isinstance(content, str) else content)


@pytest.fixture
def sysfs_root(tmp_path: Path) -> Path:
    root = tmp_path / "sys" / "class" / "net"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def add_interface(sysfs_root: Path) -> Callable[..., Path]:
    """Create /sys/class/net/<name> with sensible defaults; None omits a file."""

    def _add(
        name: str,
        mtu: Optional[int] = 1500,
        speed: Optional[int] = 1000,
        address: Optional[str] = "08:00:27:aa:bb:cc",
        operstate: Optional[str] = "up",
        tx_queue_len: Optional[int] = 1000,
        device: Optional[Dict[str, str]] = None,
        statistics: Optional[Dict[str, int]] = None,
    ) -> Path:
        files: Dict[str, Any] = {
            "mtu": mtu,
            "speed": speed,
            "address": address,
            "operstate": operstate,
            "tx_queue_len": tx_queue_len,
        }
        for stat, value in (DEFAULT_STATISTICS if statistics is None else statistics).items():
            files[f"statistics/{stat}"] = value
        for attr, value in (device or {}).items():
            files[f"device/{attr}"] = value
        write_tree(sysfs_root / name, {k: v for k, v in files.items() if v is not None})
        (sysfs_root / name / "statistics").mkdir(parents=True, exist_ok=True)
        return sysfs_root / name

    return _add


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    root = tmp_path / "proc"
    write_tree(
        root,
        {
            "net/snmp": NET_SNMP,
            "net/route": NET_ROUTE,
            "net/tcp": NET_TCP,
            "net/udp": NET_UDP,
            "net/snmp6/lo": "Ip6InReceives \t7\n",
            "net/snmp6/eth0": SNMP6_ETH0,
            "sys/net/ipv4/ip_forward": 1,
            "sys/net/ipv4/ip_default_ttl": 64,
            "sys/net/ipv6/conf/all/forwarding": 0,
            "sys/net/ipv6/conf/all/hop_limit": 64,
        },
    )
    return root


@pytest.fixture
def pci_db() -> PciIdDatabase:
    return PciIdDatabase.from_lines(PCI_IDS.splitlines())


@pytest.fixture
def fake_addrs() -> Dict[str, List[FakeAddr]]:
    """What psutil.net_if_addrs() returns for a host with lo and eth0."""
    return {
        "lo": [
            FakeAddr(socket.AF_INET, "127.0.0.1", "255.0.0.0", None, None),
            FakeAddr(socket.AF_INET6, "::1", "ffff:ffff:ffff:ffff:ffff:ffff:ffff:ffff", None, None),
            FakeAddr(psutil.AF_LINK, "00:00:00:00:00:00", None, None, None),
        ],
        "eth0": [
            FakeAddr(socket.AF_INET, "192.168.1.15", "255.255.255.0", "192.168.1.255", None),
            FakeAddr(socket.AF_INET6, "fe80::a00:27ff:feaa:bbcc%eth0", "ffff:ffff:ffff:ffff::", None, None),
            FakeAddr(psutil.AF_LINK, "08:00:27:AA:BB:CC", None, "ff:ff:ff:ff:ff:ff", None),
        ],
    }


@pytest.fixture
def two_interfaces(add_interface: Callable[..., Path]) -> List[str]:
    add_interface("lo", speed=None, address="00:00:00:00:00:00", operstate="unknown", mtu=65536)
    add_interface("eth0", device={"vendor": "0x8086", "device": "0x100e", "revision": "0x02"})
    return ["lo", "eth0"]


@pytest.fixture
def builder(
    sysfs_root: Path,
    proc_root: Path,
    pci_db: PciIdDatabase,
    fake_addrs: Dict[str, List[FakeAddr]],
    two_interfaces: List[str],
) -> TableBuilder:
    """A TableBuilder over fake trees, enumerating lo then eth0."""
    names = list(two_interfaces)
    return TableBuilder(
        registry=InterfaceIndexRegistry(lambda: list(names)),
        sysfs=SysfsReader(str(sysfs_root), timeout=5.0),
        procfs=ProcfsReader(str(proc_root), timeout=5.0),
        pci_ids=pci_db,
        net_if_addrs=lambda: fake_addrs,
        resolver=lambda address: (f"host-{address}", [], [address]),
    )


@pytest.fixture
def net_snmp_text() -> str:
    return NET_SNMP


@pytest.fixture
def fake_addr() -> type:
    return FakeAddr
