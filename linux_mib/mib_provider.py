"""
LinuxMibProvider: one accessor per MIB scalar or table.

An SNMP engine asks for objects by name. The name is looked up in a static
map built once at construction; there is no name-derived method dispatch.
"""

import functools
import logging
from typing import Any, Dict, List, Optional

from linux_mib.errors import FormatError, NotWritableError, UnknownObjectError
from linux_mib.if_index import InterfaceIndexRegistry
from linux_mib.mib_objects import COUNTER32, GAUGE32, NET_SNMP_SCALARS, CounterScalar
from linux_mib.numeric import clamp_gauge32, wrap_counter32
from linux_mib.pci_ids import PCI_IDS_PATH, PciIdDatabase
from linux_mib.procfs import PROCFS_ROOT, ProcfsReader
from linux_mib.records import IpForwarding
from linux_mib.sysfs import SYSFS_NET_ROOT, SysfsReader
from linux_mib.system_group import DEFAULT_OBJECT_ID, DEFAULT_SERVICES, SystemGroup
from linux_mib.table_builder import DEFAULT_DNS_CONCURRENCY, DEFAULT_DNS_TIMEOUT, TableBuilder
from linux_mib.types import Accessor

logger = logging.getLogger(__name__)

WRITABLE_OBJECTS = {
    "sysContact": "contact",
    "sysName": "name",
    "sysLocation": "location",
}


def _forwarding(value: int) -> IpForwarding:
    # Any nonzero sysctl value enables forwarding
    return IpForwarding.FORWARDING if value != 0 else IpForwarding.NOT_FORWARDING


class LinuxMibProvider:
    """Serves RFC1213-MIB and IPV6-MIB values computed from the running kernel."""

    def __init__(self, system: SystemGroup, tables: TableBuilder) -> None:
        self.system = system
        self.tables = tables
        self.procfs = tables.procfs
        self._accessors: Dict[str, Accessor] = self._build_accessors()

    def _build_accessors(self) -> Dict[str, Accessor]:
        tables = self.tables
        accessors: Dict[str, Accessor] = {
            # system
            "sysDescr": self.get_sys_descr,
            "sysObjectID": self.get_sys_object_id,
            "sysUpTime": self.get_sys_up_time,
            "sysContact": self.get_sys_contact,
            "sysName": self.get_sys_name,
            "sysLocation": self.get_sys_location,
            "sysServices": self.get_sys_services,
            # interfaces
            "ifNumber": tables.get_if_number,
            "ifTable": tables.get_if_table,
            # ip
            "ipForwarding": self.get_ip_forwarding,
            "ipDefaultTTL": self.get_ip_default_ttl,
            "ipAddrTable": tables.get_ip_addr_table,
            "ipRouteTable": tables.get_ip_route_table,
            "ipNetToMediaTable": tables.get_ip_net_to_media_table,
            "ipRoutingDiscards": self.get_ip_routing_discards,
            # tcp / udp
            "tcpConnTable": tables.get_tcp_conn_table,
            "udpTable": tables.get_udp_table,
            # ipv6
            "ipv6Forwarding": self.get_ipv6_forwarding,
            "ipv6DefaultHopLimit": self.get_ipv6_default_hop_limit,
            "ipv6Interfaces": tables.get_ipv6_interfaces,
            "ipv6IfTableLastChange": self.get_ipv6_if_table_last_change,
            "ipv6IfTable": tables.get_ipv6_if_table,
            "ipv6IfStatsTable": tables.get_ipv6_if_stats_table,
            "ipv6AddrTable": tables.get_ipv6_addr_table,
        }
        for scalar in NET_SNMP_SCALARS:
            accessors[scalar.name] = functools.partial(self.get_net_snmp_scalar, scalar)
        return accessors

    def names(self) -> List[str]:
        """Every object name this provider serves."""
        return list(self._accessors)

    def accessor(self, name: str) -> Accessor:
        try:
            return self._accessors[name]
        except KeyError:
            raise UnknownObjectError(name) from None

    async def get(self, name: str) -> Any:
        """Compute the current value of a scalar, or the rows of a table.

        Raises:
            UnknownObjectError: The name is not served
            FormatError: A shared kernel source could not be parsed
        """
        return await self.accessor(name)()

    def set(self, name: str, value: Any) -> None:
        """Write one of the read-write system objects.

        Raises:
            UnknownObjectError: The name is not served
            NotWritableError: The object is read-only
        """
        if name not in self._accessors:
            raise UnknownObjectError(name)
        attribute = WRITABLE_OBJECTS.get(name)
        if attribute is None:
            raise NotWritableError(name)
        setattr(self.system, attribute, value)
        logger.info(f"{name} set to {value!r}")

    # ------------------------------------------------------------------
    # system group
    # ------------------------------------------------------------------

    async def get_sys_descr(self) -> str:
        return self.system.descr

    async def get_sys_object_id(self) -> str:
        return self.system.object_id

    async def get_sys_up_time(self) -> int:
        return self.system.uptime()

    async def get_sys_contact(self) -> str:
        return self.system.contact

    async def get_sys_name(self) -> str:
        return self.system.name

    async def get_sys_location(self) -> str:
        return self.system.location

    async def get_sys_services(self) -> int:
        return self.system.services

    # ------------------------------------------------------------------
    # kernel scalars
    # ------------------------------------------------------------------

    async def get_net_snmp_scalar(self, scalar: CounterScalar) -> int:
        """Read one /proc/net/snmp counter under the scalar's numeric policy.

        Raises:
            FormatError: The file is malformed or lacks the counter
        """
        counters = await self.procfs.net_snmp()
        try:
            value = counters[scalar.group][scalar.key]
        except KeyError:
            raise FormatError(f"/proc/net/snmp has no {scalar.group}.{scalar.key}") from None
        if scalar.syntax == COUNTER32:
            return wrap_counter32(value)
        if scalar.syntax == GAUGE32:
            return clamp_gauge32(value)
        return value

    async def get_ip_forwarding(self) -> IpForwarding:
        return _forwarding(await self.procfs.ip_forward())

    async def get_ip_default_ttl(self) -> int:
        return await self.procfs.ip_default_ttl()

    async def get_ip_routing_discards(self) -> int:
        # Not exposed by the kernel
        return 0

    async def get_ipv6_forwarding(self) -> IpForwarding:
        return _forwarding(await self.procfs.ipv6_forwarding())

    async def get_ipv6_default_hop_limit(self) -> int:
        return await self.procfs.ipv6_hop_limit()

    async def get_ipv6_if_table_last_change(self) -> int:
        return 0


def build_provider(app_config: Optional[Any] = None) -> LinuxMibProvider:
    """Wire a provider from configuration.

    Args:
        app_config: An AppConfig (or anything with get(key, default));
            None uses built-in defaults for every setting
    """

    def setting(key: str, default: Any) -> Any:
        if app_config is None:
            return default
        return app_config.get(key, default)

    read_timeout = float(setting("kernel.read_timeout", 2.0))
    sysfs = SysfsReader(setting("kernel.sysfs_net_root", SYSFS_NET_ROOT), read_timeout)
    procfs = ProcfsReader(setting("kernel.procfs_root", PROCFS_ROOT), read_timeout)
    registry = InterfaceIndexRegistry(sysfs.list_interfaces)
    tables = TableBuilder(
        registry=registry,
        sysfs=sysfs,
        procfs=procfs,
        pci_ids=PciIdDatabase(setting("pci_ids_path", PCI_IDS_PATH)),
        dns_timeout=float(setting("dns.timeout", DEFAULT_DNS_TIMEOUT)),
        dns_concurrency=int(setting("dns.max_concurrency", DEFAULT_DNS_CONCURRENCY)),
    )
    system = SystemGroup(
        descr=setting("system.descr", ""),
        object_id=setting("system.object_id", DEFAULT_OBJECT_ID),
        contact=setting("system.contact", ""),
        name=setting("system.name", ""),
        location=setting("system.location", ""),
        services=int(setting("system.services", DEFAULT_SERVICES)),
    )
    logger.info(f"Serving kernel data from {procfs.root} and {sysfs.root}")
    return LinuxMibProvider(system, tables)
