"""
Parsers and readers for /proc/net/* and /proc/sys/net/*.

The parse_* functions are pure and operate on file contents; ProcfsReader
binds them to a procfs root so tests can point it at a fake tree.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from linux_mib import kernel_io
from linux_mib.addr_utils import hex_to_endpoint, hex_to_ipv4
from linux_mib.errors import FormatError
from linux_mib.types import NetSnmpCounters, Snmp6Counters

logger = logging.getLogger(__name__)

PROCFS_ROOT = "/proc"


@dataclass(frozen=True)
class KernelRoute:
    """One line of /proc/net/route."""

    interface: str
    destination: str
    gateway: str
    flags: int
    metric: int
    mask: str


@dataclass(frozen=True)
class KernelSocket:
    """One line of /proc/net/tcp or /proc/net/udp."""

    local_address: str
    local_port: int
    remote_address: str
    remote_port: int
    state: int


def _to_int(value: str, context: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise FormatError(f"{context}: {value!r} is not an integer") from e


def parse_net_snmp(text: str) -> NetSnmpCounters:
    """Parse the header/value line pairs of /proc/net/snmp.

    A definition line looks like:
        Ip: Forwarding DefaultTTL InReceives ...
    and is followed by its value line:
        Ip: 1 64 87367079 ...

    Raises:
        FormatError: A value line does not belong to the preceding header,
            or the number of values differs from the number of names
    """
    info: NetSnmpCounters = {}
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) % 2:
        raise FormatError(f"Header line {lines[-1]!r} has no value line")

    for header_line, value_line in zip(lines[0::2], lines[1::2]):
        heading, sep, names = header_line.partition(":")
        if not sep:
            raise FormatError(f"Missing group name in {header_line!r}")
        this_heading, sep, values = value_line.partition(":")
        if not sep:
            raise FormatError(f"Missing group name in {value_line!r}")
        if this_heading != heading:
            raise FormatError(f"Unexpected heading {this_heading}; expected {heading}")

        field_names = names.split()
        field_values = values.split()
        if len(field_names) != len(field_values):
            raise FormatError(
                f"Number of field names in {field_names} does not match "
                f"number of values in {field_values}"
            )

        info[heading] = {
            name: _to_int(value, f"{heading}.{name}")
            for name, value in zip(field_names, field_values)
        }

    return info


def parse_snmp6(text: str) -> Snmp6Counters:
    """Parse the flat "name value" list of /proc/net/snmp6/<if>."""
    counters: Snmp6Counters = {}
    for line in text.splitlines():
        fields = line.split()
        if not fields:
            continue
        if len(fields) != 2:
            raise FormatError(f"Expected 'name value', got {line!r}")
        counters[fields[0]] = _to_int(fields[1], fields[0])
    return counters


def _table_lines(text: str) -> List[List[str]]:
    # The first line is always the column header
    return [line.split() for line in text.splitlines()[1:] if line.strip()]


def parse_route_table(text: str) -> List[KernelRoute]:
    """Parse /proc/net/route.

    Columns: Iface Destination Gateway Flags RefCnt Use Metric Mask MTU Window IRTT
    """
    routes = []
    for fields in _table_lines(text):
        if len(fields) < 8:
            raise FormatError(f"Short route line: {fields}")
        try:
            flags = int(fields[3], 16)
        except ValueError as e:
            raise FormatError(f"Bad route flags {fields[3]!r}") from e
        routes.append(
            KernelRoute(
                interface=fields[0],
                destination=hex_to_ipv4(fields[1]),
                gateway=hex_to_ipv4(fields[2]),
                flags=flags,
                metric=_to_int(fields[6], "route metric"),
                mask=hex_to_ipv4(fields[7]),
            )
        )
    return routes


def parse_inet_table(text: str) -> List[KernelSocket]:
    """Parse /proc/net/tcp or /proc/net/udp.

    Columns: sl local_address rem_address st tx_queue:rx_queue ...
    """
    sockets = []
    for fields in _table_lines(text):
        if len(fields) < 4:
            raise FormatError(f"Short socket line: {fields}")
        local_address, local_port = hex_to_endpoint(fields[1])
        remote_address, remote_port = hex_to_endpoint(fields[2])
        try:
            state = int(fields[3], 16)
        except ValueError as e:
            raise FormatError(f"Bad socket state {fields[3]!r}") from e
        sockets.append(
            KernelSocket(
                local_address=local_address,
                local_port=local_port,
                remote_address=remote_address,
                remote_port=remote_port,
                state=state,
            )
        )
    return sockets


class ProcfsReader:
    """Reads and parses the procfs files the MIB tables are built from."""

    def __init__(
        self,
        root: str = PROCFS_ROOT,
        timeout: float = kernel_io.DEFAULT_READ_TIMEOUT,
    ) -> None:
        self.root = Path(root)
        self.timeout = timeout

    async def _read(self, relative: str) -> str:
        return await kernel_io.read_text(self.root / relative, self.timeout)

    async def _read_int(self, relative: str) -> int:
        return await kernel_io.read_int(self.root / relative, self.timeout)

    async def net_snmp(self) -> NetSnmpCounters:
        return parse_net_snmp(await self._read("net/snmp"))

    async def snmp6(self, if_name: str) -> Snmp6Counters:
        return parse_snmp6(await self._read(f"net/snmp6/{if_name}"))

    async def snmp6_interfaces(self) -> List[str]:
        """Names of interfaces with IPv6 statistics; empty without IPv6."""
        try:
            return await kernel_io.list_dir(self.root / "net" / "snmp6", self.timeout)
        except FileNotFoundError as e:
            logger.debug(f"No per-interface IPv6 statistics: {e}")
            return []

    async def routes(self) -> List[KernelRoute]:
        return parse_route_table(await self._read("net/route"))

    async def tcp(self) -> List[KernelSocket]:
        return parse_inet_table(await self._read("net/tcp"))

    async def udp(self) -> List[KernelSocket]:
        return parse_inet_table(await self._read("net/udp"))

    async def ip_forward(self) -> int:
        return await self._read_int("sys/net/ipv4/ip_forward")

    async def ip_default_ttl(self) -> int:
        return await self._read_int("sys/net/ipv4/ip_default_ttl")

    async def ipv6_forwarding(self) -> int:
        return await self._read_int("sys/net/ipv6/conf/all/forwarding")

    async def ipv6_hop_limit(self) -> int:
        return await self._read_int("sys/net/ipv6/conf/all/hop_limit")
