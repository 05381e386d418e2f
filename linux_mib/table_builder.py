"""
TableBuilder: joins kernel sources into MIB table rows.

Every table is rebuilt from scratch on each call. Independent reads (the
per-field sysfs reads of one interface, and the interfaces themselves) are
issued concurrently.

Row isolation: a row whose mandatory reads fail, or whose interface cannot
be resolved to an ifIndex, is logged and left out; the rest of the table is
still returned. A structural error in a source shared by the whole table
(FormatError) fails the call.
"""

import asyncio
import logging
import socket
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from linux_mib import kernel_io
from linux_mib.addr_utils import broadcast_bit, mac_to_bytes, prefix_length
from linux_mib.address_info import IPV4, IPV6, AddressEntry, AddressInfo, collect_address_info
from linux_mib.errors import NotFoundError, StateMappingError
from linux_mib.if_index import InterfaceIndexRegistry
from linux_mib.numeric import ROUTE_METRIC_UNUSED, clamp_gauge32, wrap_counter32
from linux_mib.pci_ids import PciIdDatabase
from linux_mib.procfs import KernelRoute, KernelSocket, ProcfsReader
from linux_mib.records import (
    KERNEL_TCP_STATES,
    OPERSTATE_MAP,
    ZERO_DOT_ZERO,
    IfAdminStatus,
    IfOperStatus,
    IfType,
    InterfaceRecord,
    IpAddrRecord,
    IpNetToMediaType,
    IpRouteProto,
    IpRouteType,
    Ipv6AddrRecord,
    Ipv6AddrStatus,
    Ipv6AddrType,
    Ipv6IfOperStatus,
    Ipv6InterfaceRecord,
    Ipv6StatsRecord,
    NetToMediaRecord,
    RouteFlags,
    RouteRecord,
    TcpConnRecord,
    TcpConnState,
    TruthValue,
    UdpRecord,
)
from linux_mib.sysfs import SysfsReader

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Largest datagram the Linux stack reassembles
REASM_MAX_SIZE = 65535

# Interface identifier length when the MAC address is reused as the identifier
MAC_IDENTIFIER_BITS = 48

DEFAULT_DNS_TIMEOUT = 2.0
DEFAULT_DNS_CONCURRENCY = 8

# Failures that exclude a single row rather than the whole table
_ROW_ERRORS = (OSError, TimeoutError, ValueError, NotFoundError, StateMappingError)

# ifEntry counter -> (statistics files added, statistics files subtracted)
IF_COUNTERS: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    ("in_octets", ("rx_bytes",), ()),
    ("in_ucast_pkts", ("rx_packets",), ("multicast",)),
    ("in_nucast_pkts", ("multicast",), ()),
    ("in_discards", ("rx_dropped", "rx_missed_errors"), ()),
    ("in_errors", ("rx_errors",), ()),
    ("in_unknown_protos", ("rx_dropped",), ()),
    ("out_octets", ("tx_bytes",), ()),
    ("out_ucast_pkts", ("tx_packets",), ()),
    ("out_discards", ("tx_dropped",), ()),
    ("out_errors", ("tx_errors",), ()),
)

_IF_STATISTICS = sorted({name for _, plus, minus in IF_COUNTERS for name in plus + minus})

# ipv6IfStatsEntry field -> /proc/net/snmp6/<if> counter
IPV6_STATS: Tuple[Tuple[str, str], ...] = (
    ("in_receives", "Ip6InReceives"),
    ("in_hdr_errors", "Ip6InHdrErrors"),
    ("in_too_big_errors", "Ip6InTooBigErrors"),
    ("in_no_routes", "Ip6InNoRoutes"),
    ("in_addr_errors", "Ip6InAddrErrors"),
    ("in_unknown_protos", "Ip6InUnknownProtos"),
    ("in_truncated_pkts", "Ip6InTruncatedPkts"),
    ("in_discards", "Ip6InDiscards"),
    ("in_delivers", "Ip6InDelivers"),
    ("out_forw_datagrams", "Ip6OutForwDatagrams"),
    ("out_requests", "Ip6OutRequests"),
    ("out_discards", "Ip6OutDiscards"),
    ("out_frag_oks", "Ip6FragOKs"),
    ("out_frag_fails", "Ip6FragFails"),
    ("out_frag_creates", "Ip6FragCreates"),
    ("reasm_reqds", "Ip6ReasmReqds"),
    ("reasm_oks", "Ip6ReasmOKs"),
    ("reasm_fails", "Ip6ReasmFails"),
    ("in_mcast_pkts", "Ip6InMcastPkts"),
    ("out_mcast_pkts", "Ip6OutMcastPkts"),
)

_IPV6_OPER_STATUS = {
    "up": Ipv6IfOperStatus.UP,
    "down": Ipv6IfOperStatus.DOWN,
    "lowerlayerdown": Ipv6IfOperStatus.DOWN,
    "notpresent": Ipv6IfOperStatus.NOT_PRESENT,
}


def map_tcp_state(code: int) -> TcpConnState:
    """Translate a kernel TCP state code into tcpConnState.

    Raises:
        StateMappingError: The code is not a known kernel state
    """
    try:
        return KERNEL_TCP_STATES[code]
    except KeyError:
        raise StateMappingError(code) from None


class TableBuilder:
    """Builds every MIB table from the kernel sources it is given."""

    def __init__(
        self,
        registry: InterfaceIndexRegistry,
        sysfs: SysfsReader,
        procfs: ProcfsReader,
        pci_ids: PciIdDatabase,
        net_if_addrs: Optional[Callable[[], Mapping[str, List[Any]]]] = None,
        resolver: Optional[Callable[[str], Tuple[str, List[str], List[str]]]] = None,
        dns_timeout: float = DEFAULT_DNS_TIMEOUT,
        dns_concurrency: int = DEFAULT_DNS_CONCURRENCY,
    ) -> None:
        """
        Args:
            registry: Source of interface names and their ifIndex values
            sysfs: Per-interface attribute reader
            procfs: /proc/net and /proc/sys reader
            pci_ids: Vendor/device names for ifDescr
            net_if_addrs: Address enumerator; psutil.net_if_addrs if omitted
            resolver: Reverse DNS lookup; socket.gethostbyaddr if omitted
            dns_timeout: Seconds allowed for each reverse lookup
            dns_concurrency: Reverse lookups allowed in flight at once
        """
        self.registry = registry
        self.sysfs = sysfs
        self.procfs = procfs
        self.pci_ids = pci_ids
        self._net_if_addrs = net_if_addrs
        self._resolver = resolver
        self.dns_timeout = dns_timeout
        self.dns_concurrency = dns_concurrency

    # ------------------------------------------------------------------
    # row isolation helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _isolated(what: str, build: Awaitable[T]) -> Optional[T]:
        try:
            return await build
        except _ROW_ERRORS as e:
            logger.warning(f"Excluding {what}: {e}")
            return None

    @staticmethod
    def _isolated_sync(what: str, build: Callable[[], T]) -> Optional[T]:
        try:
            return build()
        except _ROW_ERRORS as e:
            logger.warning(f"Excluding {what}: {e}")
            return None

    # ------------------------------------------------------------------
    # interfaces group
    # ------------------------------------------------------------------

    async def _enumerate(self) -> List[str]:
        """Index the visible interfaces off the event loop, bounded like any kernel read.

        A later index_of miss still re-enumerates inline; after this call that
        only happens for an interface that is already gone.
        """
        return await kernel_io.run_bounded(self.registry.ensure_indexed, timeout=self.sysfs.timeout)

    async def get_if_number(self) -> int:
        return len(await self._enumerate())

    async def get_if_table(self) -> List[InterfaceRecord]:
        """One ifEntry per visible interface, in discovery order."""
        await asyncio.to_thread(self.pci_ids.ensure_loaded)
        names = await self._enumerate()
        rows = await asyncio.gather(
            *(self._isolated(f"ifEntry for {name}", self.get_if_entry(name)) for name in names)
        )
        return [row for row in rows if row is not None]

    async def get_if_entry(self, if_name: str) -> InterfaceRecord:
        """Build the ifEntry of one interface.

        Raises:
            NotFoundError: The interface is unknown
            OSError: A mandatory attribute (mtu, statistics) could not be read
        """
        index = self.registry.index_of(if_name)
        sysfs = self.sysfs
        (ids, mtu, speed, phys_address, operstate, qlen), stats = await asyncio.gather(
            asyncio.gather(
                sysfs.device_ids(if_name),
                sysfs.mtu(if_name),
                sysfs.speed_bps(if_name),
                sysfs.phys_address(if_name),
                sysfs.operstate(if_name),
                sysfs.tx_queue_len(if_name),
            ),
            asyncio.gather(*(sysfs.statistic(if_name, name) for name in _IF_STATISTICS)),
        )
        values = dict(zip(_IF_STATISTICS, stats))
        counters = {
            field: wrap_counter32(
                max(0, sum(values[n] for n in plus) - sum(values[n] for n in minus))
            )
            for field, plus, minus in IF_COUNTERS
        }

        return InterfaceRecord(
            index=index,
            descr=self.pci_ids.describe(*ids),
            # No host-level facility tells us the link type precisely
            type=IfType.OTHER,
            mtu=mtu,
            speed=speed,
            phys_address=phys_address,
            admin_status=IfAdminStatus.UP,
            oper_status=OPERSTATE_MAP.get(operstate, IfOperStatus.UNKNOWN),
            last_change=0,
            out_nucast_pkts=0,
            out_qlen=clamp_gauge32(qlen),
            **counters,
        )

    # ------------------------------------------------------------------
    # address tables
    # ------------------------------------------------------------------

    async def address_info(self) -> AddressInfo:
        """Enumerate all interface addresses once."""
        return await asyncio.to_thread(collect_address_info, self._net_if_addrs)

    def _ip_addr_record(self, entry: AddressEntry) -> IpAddrRecord:
        netmask = entry.netmask or "255.255.255.255"
        return IpAddrRecord(
            address=entry.address,
            if_index=self.registry.index_of(entry.interface),
            net_mask=netmask,
            bcast_addr=broadcast_bit(entry.address, netmask),
            reasm_max_size=REASM_MAX_SIZE,
            interface=entry.interface,
        )

    async def get_ip_addr_table(self, info: Optional[AddressInfo] = None) -> List[IpAddrRecord]:
        """One ipAddrEntry per IPv4 address bound to any interface."""
        await self._enumerate()
        info = info or await self.address_info()
        rows = [
            self._isolated_sync(f"ipAddrEntry {entry.address}", lambda e=entry: self._ip_addr_record(e))
            for entry in info.by_ip[IPV4].values()
        ]
        return [row for row in rows if row is not None]

    async def get_ip_addr_entry(
        self, address: str, info: Optional[AddressInfo] = None
    ) -> IpAddrRecord:
        """ipAddrEntry for one address; pass info to reuse an enumeration.

        Raises:
            NotFoundError: The address is not bound to any interface
        """
        info = info or await self.address_info()
        entry = info.by_ip[IPV4].get(address)
        if entry is None:
            raise NotFoundError(address, kind="Address")
        return self._ip_addr_record(entry)

    def _net_to_media_records(self, hw_address: str, entries: List[AddressEntry]) -> List[NetToMediaRecord]:
        return [
            NetToMediaRecord(
                if_index=self.registry.index_of(entry.interface),
                phys_address=mac_to_bytes(hw_address),
                net_address=entry.address,
                # No generic way to tell dynamic from static mappings
                media_type=IpNetToMediaType.OTHER,
                interface=entry.interface,
            )
            for entry in entries
        ]

    async def get_ip_net_to_media_table(
        self, info: Optional[AddressInfo] = None
    ) -> List[NetToMediaRecord]:
        """IPv4 address <-> hardware address equivalences of this host."""
        await self._enumerate()
        info = info or await self.address_info()
        rows: List[NetToMediaRecord] = []
        for hw_address, entries in info.by_hw[IPV4].items():
            records = self._isolated_sync(
                f"ipNetToMediaEntry {hw_address}",
                lambda h=hw_address, e=entries: self._net_to_media_records(h, e),
            )
            rows.extend(records or [])
        return rows

    async def get_ip_net_to_media_entry(
        self, hw_address: str, info: Optional[AddressInfo] = None
    ) -> List[NetToMediaRecord]:
        """Entries for one hardware address; pass info to reuse an enumeration.

        Raises:
            NotFoundError: No interface has that hardware address
        """
        info = info or await self.address_info()
        entries = info.by_hw[IPV4].get(hw_address.lower())
        if not entries:
            raise NotFoundError(hw_address, kind="Hardware address")
        return self._net_to_media_records(hw_address.lower(), entries)

    # ------------------------------------------------------------------
    # routing table
    # ------------------------------------------------------------------

    def _route_record(self, route: KernelRoute) -> RouteRecord:
        flags = RouteFlags(route.flags)
        return RouteRecord(
            destination=route.destination,
            if_index=self.registry.index_of(route.interface),
            metric1=route.metric,
            metric2=ROUTE_METRIC_UNUSED,
            metric3=ROUTE_METRIC_UNUSED,
            metric4=ROUTE_METRIC_UNUSED,
            gateway=route.gateway,
            route_type=IpRouteType.INDIRECT if flags & RouteFlags.GATEWAY else IpRouteType.DIRECT,
            proto=IpRouteProto.OTHER,
            age=0,
            mask=route.mask,
            metric5=ROUTE_METRIC_UNUSED,
            info=ZERO_DOT_ZERO,
            interface=route.interface,
            flags=flags,
        )

    async def get_ip_route_table(self) -> List[RouteRecord]:
        """One ipRouteEntry per line of /proc/net/route."""
        await self._enumerate()
        routes = await self.procfs.routes()
        rows = [
            self._isolated_sync(f"route to {route.destination} via {route.interface}", lambda r=route: self._route_record(r))
            for route in routes
        ]
        return [row for row in rows if row is not None]

    # ------------------------------------------------------------------
    # TCP / UDP
    # ------------------------------------------------------------------

    async def _lookup(self, address: str, limiter: asyncio.Semaphore) -> Tuple[str, ...]:
        await limiter.acquire()
        lookup = asyncio.get_running_loop().run_in_executor(
            None, self._resolver or socket.gethostbyaddr, address
        )

        def finished(future: "asyncio.Future[Any]") -> None:
            # The slot is held until the resolver thread returns, even after a timeout
            limiter.release()
            if not future.cancelled():
                future.exception()

        lookup.add_done_callback(finished)
        try:
            hostname, aliases, _ = await asyncio.wait_for(asyncio.shield(lookup), self.dns_timeout)
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"Reverse lookup of {address} failed: {e!r}")
            return ()
        return (hostname, *aliases)

    async def resolve_hostnames(self, addresses: List[str]) -> Dict[str, Tuple[str, ...]]:
        """Best-effort reverse DNS for each distinct address.

        Failed or timed-out lookups yield an empty tuple; they never fail
        the caller. At most dns_concurrency resolver threads run at once,
        counting ones whose caller already gave up on them.
        """
        distinct = sorted({a for a in addresses if a != "0.0.0.0"})
        limiter = asyncio.Semaphore(self.dns_concurrency)
        names = await asyncio.gather(*(self._lookup(a, limiter) for a in distinct))
        return dict(zip(distinct, names))

    @staticmethod
    def _tcp_record(sock: KernelSocket, hostnames: Tuple[str, ...] = ()) -> TcpConnRecord:
        return TcpConnRecord(
            state=map_tcp_state(sock.state),
            local_address=sock.local_address,
            local_port=sock.local_port,
            remote_address=sock.remote_address,
            remote_port=sock.remote_port,
            remote_hostnames=hostnames,
        )

    async def get_tcp_conn_table(self, resolve_names: bool = False) -> List[TcpConnRecord]:
        """One tcpConnEntry per IPv4 TCP socket.

        Args:
            resolve_names: Attach reverse-DNS names of the remote addresses
        """
        sockets = await self.procfs.tcp()
        hostnames: Dict[str, Tuple[str, ...]] = {}
        if resolve_names:
            hostnames = await self.resolve_hostnames([s.remote_address for s in sockets])
        rows = [
            self._isolated_sync(
                f"tcpConnEntry {s.local_address}:{s.local_port}",
                lambda s=s: self._tcp_record(s, hostnames.get(s.remote_address, ())),
            )
            for s in sockets
        ]
        return [row for row in rows if row is not None]

    async def get_udp_table(self) -> List[UdpRecord]:
        sockets = await self.procfs.udp()
        return [UdpRecord(local_address=s.local_address, local_port=s.local_port) for s in sockets]

    # ------------------------------------------------------------------
    # IPv6
    # ------------------------------------------------------------------

    async def _ipv6_interfaces(self) -> List[str]:
        """Registry-ordered names of interfaces that have IPv6 statistics."""
        names, listed = await asyncio.gather(self._enumerate(), self.procfs.snmp6_interfaces())
        enabled = set(listed)
        return [name for name in names if name in enabled]

    async def get_ipv6_interfaces(self) -> int:
        return len(await self._ipv6_interfaces())

    async def get_ipv6_if_entry(self, if_name: str) -> Ipv6InterfaceRecord:
        index = self.registry.index_of(if_name)
        mtu, phys_address, operstate = await asyncio.gather(
            self.sysfs.mtu(if_name),
            self.sysfs.phys_address(if_name),
            self.sysfs.operstate(if_name),
        )
        has_mac = any(phys_address)
        return Ipv6InterfaceRecord(
            index=index,
            descr=if_name,
            lower_layer=ZERO_DOT_ZERO,
            effective_mtu=mtu,
            reasm_max_size=REASM_MAX_SIZE,
            identifier=phys_address if has_mac else b"",
            identifier_length=MAC_IDENTIFIER_BITS if has_mac else 0,
            phys_address=phys_address,
            admin_status=IfAdminStatus.UP,
            oper_status=_IPV6_OPER_STATUS.get(operstate, Ipv6IfOperStatus.UNKNOWN),
            last_change=0,
        )

    async def get_ipv6_if_table(self) -> List[Ipv6InterfaceRecord]:
        names = await self._ipv6_interfaces()
        rows = await asyncio.gather(
            *(self._isolated(f"ipv6IfEntry for {n}", self.get_ipv6_if_entry(n)) for n in names)
        )
        return [row for row in rows if row is not None]

    async def get_ipv6_if_stats_entry(self, if_name: str) -> Ipv6StatsRecord:
        """Statistics row of one interface, keyed by its ipv6IfIndex."""
        index = self.registry.index_of(if_name)
        counters = await self.procfs.snmp6(if_name)
        values = {field: wrap_counter32(counters.get(name, 0)) for field, name in IPV6_STATS}
        return Ipv6StatsRecord(if_index=index, **values)

    async def get_ipv6_if_stats_table(self) -> List[Ipv6StatsRecord]:
        names = await self._ipv6_interfaces()
        rows = await asyncio.gather(
            *(self._isolated(f"ipv6IfStatsEntry for {n}", self.get_ipv6_if_stats_entry(n)) for n in names)
        )
        return [row for row in rows if row is not None]

    def _ipv6_addr_record(self, entry: AddressEntry) -> Ipv6AddrRecord:
        return Ipv6AddrRecord(
            if_index=self.registry.index_of(entry.interface),
            address=entry.address,
            pfx_length=prefix_length(entry.netmask),
            addr_type=Ipv6AddrType.UNKNOWN,
            anycast_flag=TruthValue.FALSE,
            status=Ipv6AddrStatus.UNKNOWN,
            interface=entry.interface,
        )

    async def get_ipv6_addr_table(self, info: Optional[AddressInfo] = None) -> List[Ipv6AddrRecord]:
        await self._enumerate()
        info = info or await self.address_info()
        rows = [
            self._isolated_sync(f"ipv6AddrEntry {entry.address}", lambda e=entry: self._ipv6_addr_record(e))
            for entry in info.by_ip[IPV6].values()
        ]
        return [row for row in rows if row is not None]
