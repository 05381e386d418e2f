"""
OS-level address enumeration.

One psutil.net_if_addrs() pass covers every interface and address family;
the result is partitioned into a by-IP-address map and a by-hardware-address
map which the address, net-to-media and IPv6 tables share for one build.
"""

import logging
import socket
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import psutil

from linux_mib.addr_utils import strip_scope

logger = logging.getLogger(__name__)

IPV4 = "IPv4"
IPV6 = "IPv6"
LOOPBACK = "lo"

_FAMILIES = {socket.AF_INET: IPV4, socket.AF_INET6: IPV6}


@dataclass(frozen=True)
class AddressEntry:
    """One address bound to one interface."""

    interface: str
    family: str
    address: str
    netmask: Optional[str]
    mac: Optional[str]


@dataclass
class AddressInfo:
    """Addresses of all interfaces, keyed two ways per family."""

    by_ip: Dict[str, Dict[str, AddressEntry]] = field(
        default_factory=lambda: {IPV4: {}, IPV6: {}}
    )
    by_hw: Dict[str, Dict[str, List[AddressEntry]]] = field(
        default_factory=lambda: {IPV4: {}, IPV6: {}}
    )


def _device_name(label: str) -> str:
    # "eth0:1" is an alias label on device "eth0"
    return label.split(":", 1)[0]


def collect_address_info(
    net_if_addrs: Optional[Callable[[], Mapping[str, List[Any]]]] = None,
) -> AddressInfo:
    """Enumerate all addresses and build the lookup maps.

    The loopback interface is left out of the by-hardware map because it
    has no meaningful hardware address.

    Args:
        net_if_addrs: Enumerator with the shape of psutil.net_if_addrs,
            which is used when omitted
    """
    interfaces = (net_if_addrs or psutil.net_if_addrs)()
    info = AddressInfo()

    macs: Dict[str, str] = {}
    for label, addrs in interfaces.items():
        for addr in addrs:
            if addr.family == psutil.AF_LINK and addr.address:
                macs.setdefault(_device_name(label), addr.address.lower())

    for label, addrs in interfaces.items():
        device = _device_name(label)
        for addr in addrs:
            family = _FAMILIES.get(addr.family)
            if family is None:
                continue
            entry = AddressEntry(
                interface=device,
                family=family,
                address=strip_scope(addr.address) if family == IPV6 else addr.address,
                netmask=addr.netmask,
                mac=macs.get(device),
            )
            # IPv6 keys keep their %scope so link-local addresses shared by
            # several interfaces stay distinct
            info.by_ip[family][addr.address] = entry
            if device != LOOPBACK and entry.mac:
                info.by_hw[family].setdefault(entry.mac, []).append(entry)

    logger.debug(
        f"Enumerated {len(info.by_ip[IPV4])} IPv4 and {len(info.by_ip[IPV6])} IPv6 addresses"
    )
    return info
